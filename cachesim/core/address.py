"""Address layout for one cache level.

A 32-bit byte address is split, from the low bits up, into:

    | tag | row | word | byte (2 bits) |

The byte offset is always discarded (word addressing). The widths of the
word and row fields come from the cache shape, the tag takes what is left.
"""

from dataclasses import dataclass
from typing import Tuple

from .errors import ConfigError

ADDRESS_BITS = 32
BYTE_BITS = 2


def power_of_two(n: int) -> int:
    """Return log2(n) for an exact power of two, or -1 otherwise."""
    if n < 1 or n & (n - 1):
        return -1
    return n.bit_length() - 1


@dataclass(frozen=True)
class CacheLayout:
    """Immutable bit-field layout derived from a cache shape."""

    rows: int
    ways: int
    word_bits: int
    row_bits: int
    tag_bits: int
    word_shift: int
    row_shift: int
    tag_shift: int
    word_mask: int
    row_mask: int
    tag_mask: int

    @classmethod
    def from_shape(cls, block_count: int, words_per_block: int, associativity: int) -> "CacheLayout":
        if associativity < 1 or block_count % associativity != 0:
            raise ConfigError(
                f"associativity {associativity} does not divide block count {block_count}"
            )
        rows = block_count // associativity
        word_bits = power_of_two(words_per_block)
        if word_bits < 0:
            raise ConfigError(f"words per block must be a power of two, got {words_per_block}")
        row_bits = power_of_two(rows)
        if row_bits < 0:
            raise ConfigError(f"number of rows must be a power of two, got {rows}")
        tag_bits = ADDRESS_BITS - BYTE_BITS - word_bits - row_bits
        if tag_bits < 0:
            raise ConfigError(f"cache too large for a {ADDRESS_BITS}-bit address")

        return cls(
            rows=rows,
            ways=associativity,
            word_bits=word_bits,
            row_bits=row_bits,
            tag_bits=tag_bits,
            word_shift=BYTE_BITS,
            row_shift=BYTE_BITS + word_bits,
            tag_shift=BYTE_BITS + word_bits + row_bits,
            word_mask=(1 << word_bits) - 1,
            row_mask=(1 << row_bits) - 1,
            tag_mask=(1 << tag_bits) - 1,
        )

    def decompose(self, address: int) -> Tuple[int, int, int]:
        """Split `address` into (tag, row, word_offset)."""
        word = (address >> self.word_shift) & self.word_mask
        row = (address >> self.row_shift) & self.row_mask
        tag = (address >> self.tag_shift) & self.tag_mask
        return tag, row, word

    def block_address(self, tag: int, row: int) -> int:
        """Base byte address of the block holding `tag` in `row`."""
        return ((tag & self.tag_mask) << self.tag_shift) | ((row & self.row_mask) << self.row_shift)


__all__ = ["ADDRESS_BITS", "BYTE_BITS", "CacheLayout", "power_of_two"]
