"""Cache hierarchy: one instruction cache plus up to three data levels.

The data levels form an inclusive chain L1 -> L2 -> L3. A read miss at
level L first flushes a dirty victim to L+1, then reads the block from
L+1, then installs it at L. Writes follow the level's write scheme:

    write-through / write-no-allocate  never install, always propagate
    write-through / write-allocate     install on miss, always propagate
    write-back    / write-allocate     install on miss, mark dirty,
                                       propagate only on eviction

When there is no level below, "propagate" means memory and only the
word counters of the level record it.
"""

import logging
import random
from collections import OrderedDict
from typing import Dict, List, Optional

from .cache import Cache, MissKind
from .config import AllocateScheme, HierarchyConfig, WriteScheme
from ..data.stats_export import LevelStats
from ..data.trace import AccessKind

logger = logging.getLogger(__name__)


class CacheHierarchy:
    def __init__(self, config: HierarchyConfig):
        config.validate()
        self.config = config
        # one generator for every Random level, seeded once per hierarchy
        self.rng = random.Random(config.seed)

        self.icache = Cache(config.icache, self.rng, name="I-cache")
        self.icache_stats = LevelStats(name="I-cache", instruction=True)
        self.dcaches: List[Cache] = []
        self.dcache_stats: List[LevelStats] = []
        for i, cfg in enumerate(config.dcaches, start=1):
            name = f"L{i} D-cache"
            self.dcaches.append(Cache(cfg, self.rng, name=name))
            self.dcache_stats.append(LevelStats(name=name))

    @property
    def levels(self) -> int:
        return len(self.dcaches)

    @property
    def stats(self) -> Dict[str, LevelStats]:
        out = OrderedDict()
        out[self.icache_stats.name] = self.icache_stats
        for s in self.dcache_stats:
            out[s.name] = s
        return out

    def reset(self):
        """Empty every level, zero the counters and reseed the generator."""
        self.rng.seed(self.config.seed)
        self.icache.reset()
        self.icache_stats.reset()
        for cache, stats in zip(self.dcaches, self.dcache_stats):
            cache.reset()
            stats.reset()

    def handle_access(self, kind: AccessKind, address: int) -> Optional[bool]:
        """Simulate one trace event.

        Returns whether the first level it reached hit, or None when the
        access had nowhere to go (data access without a data cache).
        """
        kind = AccessKind(kind)
        if kind is AccessKind.INSTRUCTION_FETCH:
            return self.access_fetch(address)
        if not self.dcaches:
            return None
        if kind is AccessKind.READ:
            return self.read(address, 0)
        return self.write(address, 0)

    def access_fetch(self, address: int) -> bool:
        cache, stats = self.icache, self.icache_stats
        tag, row, _ = cache.decode(address)
        stats.reads += 1

        way = cache.probe(row, tag)
        if way is not None:
            cache.touch(row, way)
            return True

        kind = cache.classify_miss(row)
        way = cache.placement(row, kind)
        cache.fill(row, way, tag)
        stats.record_read_miss(kind)
        stats.words_read += cache.words_per_block
        return False

    def read(self, address: int, level: int) -> bool:
        cache, stats = self.dcaches[level], self.dcache_stats[level]
        tag, row, _ = cache.decode(address)
        stats.reads += 1

        way = cache.probe(row, tag)
        if way is not None:
            cache.touch(row, way)
            return True

        kind = cache.classify_miss(row)
        way = cache.placement(row, kind)
        self._flush(level, row, way)
        if level + 1 < self.levels:
            self.read(address, level + 1)
        cache.fill(row, way, tag, dirty=False)
        stats.record_read_miss(kind)
        stats.words_read += cache.words_per_block
        return False

    def write(self, address: int, level: int) -> bool:
        cache, stats = self.dcaches[level], self.dcache_stats[level]
        cfg = cache.config
        tag, row, _ = cache.decode(address)
        stats.writes += 1

        way = cache.probe(row, tag)
        hit = way is not None
        if hit:
            cache.touch(row, way)
        else:
            kind = cache.classify_miss(row, for_write=True)
            stats.record_write_miss(kind)

        if cfg.write_scheme is WriteScheme.WRITE_BACK:
            if hit:
                cache.block(row, way).dirty = True
            else:
                self._allocate(address, level, row, tag, kind, dirty=True)
            return hit

        if not hit:
            if cfg.allocate_scheme is AllocateScheme.ALLOCATE:
                self._allocate(address, level, row, tag, kind, dirty=False)
            else:
                cache.write_around(row)
        stats.words_written += 1
        if level + 1 < self.levels:
            self.write(address, level + 1)
        return hit

    def _allocate(self, address: int, level: int, row: int, tag: int, kind: MissKind, dirty: bool):
        """Install the block of a write miss at `level`."""
        cache, stats = self.dcaches[level], self.dcache_stats[level]
        way = cache.placement(row, kind)
        self._flush(level, row, way)
        if cache.words_per_block > 1:
            # the rest of the block has to come from below
            if level + 1 < self.levels:
                self.read(address, level + 1)
            stats.words_read += cache.words_per_block
        cache.fill(row, way, tag, dirty=dirty)

    def _flush(self, level: int, row: int, way: int):
        """Write back the block at (row, way) if it is about to be replaced dirty."""
        cache, stats = self.dcaches[level], self.dcache_stats[level]
        victim = cache.block(row, way)
        if not (victim.valid and victim.dirty):
            return
        victim_address = cache.block_address(row, way)
        logger.debug("%s: write back dirty block 0x%08x (row %d, way %d)",
                     cache.name, victim_address, row, way)
        if level + 1 < self.levels:
            self.write(victim_address, level + 1)
        stats.words_written += cache.words_per_block
        victim.dirty = False


__all__ = ["CacheHierarchy"]
