"""CacheSimulator coordinates trace events and the cache hierarchy.
Feeds (address, kind) events into the hierarchy one at a time.
"""
from typing import Callable, Iterable, List, Optional

from .hierarchy import CacheHierarchy
from ..data.trace import AccessKind, TraceEvent


class CacheSimulator:
    def __init__(self, hierarchy: CacheHierarchy):
        self.hierarchy = hierarchy
        self.sequence: List[TraceEvent] = []
        self.index = 0

    def reset(self):
        # clear caches and stats and rewind the sequence pointer
        self.hierarchy.reset()
        self.index = 0

    def load_sequence(self, events: Iterable[TraceEvent]):
        self.sequence = [TraceEvent(int(a), AccessKind(k)) for a, k in events]
        self.index = 0

    def has_next(self) -> bool:
        return self.index < len(self.sequence)

    def step(self) -> Optional[dict]:
        if not self.has_next():
            return None
        address, kind = self.sequence[self.index]
        self.index += 1

        hit = self.hierarchy.handle_access(kind, address)

        return {
            'address': address,
            'kind': kind,
            'hit': hit,
            'stats': {name: s.as_dict() for name, s in self.hierarchy.stats.items()},
        }

    def run_all(self, callback: Optional[Callable[[dict], None]] = None):
        while self.has_next():
            info = self.step()
            if callback:
                callback(info)
