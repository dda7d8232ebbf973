"""Simulation wrapper used by the CLI

Builds the hierarchy from a configuration, reads a trace and forwards
its events to the hierarchy.
"""
from typing import Dict, Iterable

from cachesim.core.config import HierarchyConfig
from cachesim.core.hierarchy import CacheHierarchy
from cachesim.data.stats_export import LevelStats
from cachesim.data.trace import open_trace, read_trace


class Simulation:
    def __init__(self, config: HierarchyConfig):
        self.config = config
        self.hierarchy = CacheHierarchy(config)

    @property
    def stats(self) -> Dict[str, LevelStats]:
        return self.hierarchy.stats

    def run_lines(self, lines: Iterable[str]) -> Dict[str, LevelStats]:
        """Run every event of a text trace; returns the per-level stats.

        A fatal trace line raises TraceError and leaves the counters
        meaningless; callers must not report them.
        """
        handle = self.hierarchy.handle_access
        for address, kind in read_trace(lines):
            handle(kind, address)
        return self.stats

    def run_file(self, path) -> Dict[str, LevelStats]:
        with open_trace(path) as fh:
            return self.run_lines(fh)
