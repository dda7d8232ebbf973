"""Core cache implementation

This file provides the set-associative cache level used by the hierarchy.
Behavior:
- A cache is composed of rows (sets); each row has `associativity` ways.
- Addresses are split by the level's `CacheLayout` into (tag, row, word).
- Only tags and valid/dirty/recency metadata are tracked, never data.
- Ways of a row are filled in index order and a block never becomes
  invalid again until the whole cache is reset.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .config import CacheConfig
from .replacement_policies import make_policy


@dataclass
class CacheBlock:
    """container for a cache line (way).

    Fields:
    - tag: the tag stored in the line
    - valid: whether the line currently holds a block
    - dirty: whether the line was written and not yet flushed (write-back)
    - recency: LRU age, 1 = most recent, 0 = never used
    - referenced: some miss already targeted this slot, even a write
      that went around the cache without installing a block (only write
      misses look at it)
    """

    tag: int = 0
    valid: bool = False
    dirty: bool = False
    recency: int = 0
    referenced: bool = False


class MissKind(str, Enum):
    COMPULSORY = "compulsory"
    CONFLICT = "conflict"
    CAPACITY = "capacity"


def classify_miss(blocks: List[CacheBlock], associativity: int, for_write: bool = False) -> MissKind:
    """Classify a miss in the row `blocks` before anything is replaced.

    Direct-mapped: compulsory while the slot has never held a block,
    conflict afterwards. A write miss also counts earlier write-arounds
    to the slot, a read miss does not. Set-associative: compulsory while
    some way is still empty, capacity once every way holds another block.
    """
    if associativity == 1:
        seen = blocks[0].referenced if for_write else blocks[0].valid
        return MissKind.CONFLICT if seen else MissKind.COMPULSORY
    for block in blocks:
        if not block.valid:
            return MissKind.COMPULSORY
    return MissKind.CAPACITY


class Cache:
    """One cache level: a rows x ways block array plus replacement state.

    The block array is allocated once here and only mutated through the
    methods below.
    """

    def __init__(self, config: CacheConfig, rng: Optional[random.Random] = None, name: str = "cache"):
        self.config = config
        self.name = name
        self.layout = config.layout
        self.num_sets = self.layout.rows
        self.associativity = self.layout.ways
        self.words_per_block = config.words_per_block

        # allocate the sets matrix: num_sets x associativity
        self.sets: List[List[CacheBlock]] = [
            [CacheBlock() for _ in range(self.associativity)] for _ in range(self.num_sets)
        ]
        self.replacement_policy_objs = [make_policy(config.replacement, row, rng) for row in self.sets]

    def decode(self, address: int):
        """Decode address into (tag, row, word)."""
        return self.layout.decompose(address)

    def probe(self, row: int, tag: int) -> Optional[int]:
        """Return the way holding `tag` in `row`, or None on a miss."""
        for wi, block in enumerate(self.sets[row]):
            if block.valid and block.tag == tag:
                return wi
        return None

    def classify_miss(self, row: int, for_write: bool = False) -> MissKind:
        return classify_miss(self.sets[row], self.associativity, for_write)

    def placement(self, row: int, kind: MissKind) -> int:
        """Way a miss of the given kind is installed into."""
        if kind is MissKind.COMPULSORY:
            for wi, block in enumerate(self.sets[row]):
                if not block.valid:
                    return wi
        if self.associativity == 1:
            return 0
        return self.select_victim(row)

    def write_around(self, row: int) -> None:
        """Record a write miss that does not install a block."""
        for block in self.sets[row]:
            if not block.valid:
                block.referenced = True
                return

    def select_victim(self, row: int) -> int:
        return self.replacement_policy_objs[row].evict()

    def touch(self, row: int, way: int) -> None:
        self.replacement_policy_objs[row].access(way)

    def block(self, row: int, way: int) -> CacheBlock:
        return self.sets[row][way]

    def fill(self, row: int, way: int, tag: int, dirty: bool = False) -> None:
        block = self.sets[row][way]
        block.valid = True
        block.referenced = True
        block.tag = tag
        block.dirty = dirty
        self.touch(row, way)

    def block_address(self, row: int, way: int) -> int:
        """Base address of the block currently resident at (row, way)."""
        return self.layout.block_address(self.sets[row][way].tag, row)

    def contains(self, address: int) -> bool:
        tag, row, _ = self.decode(address)
        return self.probe(row, tag) is not None

    def reset(self):
        """Clear cache contents and reset replacement policies."""
        for s in self.sets:
            for b in s:
                b.tag = 0
                b.valid = False
                b.dirty = False
                b.recency = 0
                b.referenced = False

        for p in self.replacement_policy_objs:
            p.reset()


__all__ = ["Cache", "CacheBlock", "MissKind", "classify_miss"]
