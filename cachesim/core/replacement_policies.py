"""Replacement policy implementations for the cache levels.

One policy object is created per row (set) of a cache, so the rest of the
simulator can call them interchangeably:

- LRUReplacement(blocks)
- RandomReplacement(ways, rng)

API (methods):
- access(way): notify the policy that `way` was hit or filled
- evict(): choose the victim way when every way of the row is occupied
- peek(): ways in eviction order (for reports/debug)
- reset(): clear policy state

The policies never print; the hierarchy logs evictions if asked to.
"""

import random
from typing import Any, List, Optional

from .config import ReplacementKind


class LRUReplacement:
    """Least-Recently-Used replacement using per-block age counters.

    Each block of the row carries a `recency` value: 1 is the most recently
    used way, larger is older and 0 means the way has never been used.
    Because the ways of a row are filled in index order, the never-used
    ways always form a suffix of the row.
    """

    def __init__(self, blocks: List[Any]):
        self.blocks = blocks
        self.capacity = len(blocks)

    def access(self, way: int) -> None:
        """Make `way` the most recently used and age every other used way."""
        self.blocks[way].recency = 1
        for i, block in enumerate(self.blocks):
            if block.recency == 0:
                # this way and the rest have not been used yet
                break
            if i != way:
                block.recency += 1

    def evict(self) -> int:
        """Return the oldest way; ties go to the lowest way index."""
        victim = 0
        oldest = self.blocks[0].recency
        for i in range(1, self.capacity):
            if self.blocks[i].recency > oldest:
                oldest = self.blocks[i].recency
                victim = i
        return victim

    def peek(self) -> List[int]:
        """Return used ways from LRU to MRU."""
        used = [i for i, b in enumerate(self.blocks) if b.recency != 0]
        return sorted(used, key=lambda i: (-self.blocks[i].recency, i))

    def reset(self) -> None:
        for block in self.blocks:
            block.recency = 0


class RandomReplacement:
    """Random replacement picks a uniformly distributed way on eviction.

    The generator is shared by every row of every level of a hierarchy so
    a run is reproducible from its seed.
    """

    def __init__(self, capacity: int, rng: Optional[random.Random] = None):
        self.capacity = int(capacity)
        self.rng = rng if rng is not None else random.Random()

    def access(self, way: int) -> None:
        return

    def evict(self) -> int:
        return self.rng.randrange(self.capacity)

    def peek(self) -> List[int]:
        return list(range(self.capacity))

    def reset(self) -> None:
        return


def make_policy(kind: ReplacementKind, blocks: List[Any], rng: Optional[random.Random] = None):
    """Create the policy object for one row of `blocks`."""
    if ReplacementKind(kind) is ReplacementKind.RANDOM:
        return RandomReplacement(len(blocks), rng)
    return LRUReplacement(blocks)


__all__ = ["LRUReplacement", "RandomReplacement", "make_policy"]
