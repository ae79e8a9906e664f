"""Canonical Huffman tables and symbol decoding for DEFLATE streams."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, Sequence

from .bitstream import BitStream
from .utils import CrazyPngError, reverse_bits

__all__ = [
    "HuffmanCode",
    "HuffmanTable",
    "assign_huffman_codes",
    "table_from_lengths",
    "fixed_literal_table",
    "fixed_distance_table",
]

DEFLATE_MAXBITS = 15
DEFLATE_LL_TABLE_SIZE = 288
DEFLATE_D_TABLE_SIZE = 32

_MASK16 = 0xFFFF
# Tables wider than this are searched symbol by symbol instead of indexed.
_MAX_LOOKUP_BITS = 16


@dataclass(frozen=True)
class HuffmanCode:
    """One symbol's code, stored bit-reversed so it matches LSB-first input."""

    code: int = 0
    bits: int = 0


@dataclass(frozen=True)
class HuffmanTable:
    """A symbol-indexed list of codes and the longest code length to peek."""

    codes: tuple[HuffmanCode, ...]
    max_bits: int

    @property
    def count(self) -> int:
        """Number of symbols in the table."""
        return len(self.codes)

    @property
    def _peek_width(self) -> int:
        return self.max_bits if 1 <= self.max_bits <= 64 else 0

    @cached_property
    def _lookup(self) -> list[int] | None:
        """Map each possible peeked value to the first matching symbol."""
        width = self._peek_width
        if width > _MAX_LOOKUP_BITS:
            return None
        size = 1 << width
        table = [-1] * size
        for symbol, entry in enumerate(self.codes):
            if entry.bits == 0:
                continue
            if entry.bits >= width:
                if entry.code < size and table[entry.code] < 0:
                    table[entry.code] = symbol
                continue
            step = 1 << entry.bits
            if entry.code >= step:
                continue
            for value in range(entry.code, size, step):
                if table[value] < 0:
                    table[value] = symbol
        return table

    def _match(self, peeked: int) -> int:
        lookup = self._lookup
        if lookup is not None:
            return lookup[peeked]
        for symbol, entry in enumerate(self.codes):
            if entry.bits and peeked & ((1 << entry.bits) - 1) == entry.code:
                return symbol
        return -1

    def decode(self, stream: BitStream) -> int:
        """Decode and consume one symbol from ``stream``.

        Raises :class:`CrazyPngError` when no code matches the upcoming
        bits, and lets :class:`BitStreamError` through when consuming the
        code reaches the end of the stream.
        """
        peeked = stream.peek_bits(self.max_bits)
        symbol = self._match(peeked)
        if symbol < 0:
            raise CrazyPngError("no Huffman code matches the input bits")
        stream.consume_bits(self.codes[symbol].bits)
        return symbol


def assign_huffman_codes(code_lengths: Iterable[int]) -> list[HuffmanCode]:
    """Build canonical codes from per-symbol lengths (RFC 1951, 3.2.2).

    A length of 0 leaves the symbol without a code.
    """
    lengths = list(code_lengths)
    for length in lengths:
        if not 0 <= length <= DEFLATE_MAXBITS:
            raise ValueError(
                f"code length {length} outside 0..{DEFLATE_MAXBITS}"
            )

    bl_count = [0] * (DEFLATE_MAXBITS + 1)
    for length in lengths:
        if length:
            bl_count[length] += 1

    next_code = [0] * (DEFLATE_MAXBITS + 1)
    code = 0
    for bits in range(1, DEFLATE_MAXBITS + 1):
        code = ((code + bl_count[bits - 1]) << 1) & _MASK16
        next_code[bits] = code

    codes = []
    for length in lengths:
        if length == 0:
            codes.append(HuffmanCode())
            continue
        codes.append(HuffmanCode(reverse_bits(next_code[length], length), length))
        next_code[length] = (next_code[length] + 1) & _MASK16
    return codes


def table_from_lengths(code_lengths: Sequence[int], max_bits: int) -> HuffmanTable:
    """Build a decoding table from code lengths."""
    return HuffmanTable(tuple(assign_huffman_codes(code_lengths)), max_bits)


def fixed_literal_table() -> HuffmanTable:
    """The fixed literal/length table of DEFLATE block type 1."""
    lengths = [8] * 144 + [9] * 112 + [7] * 24 + [8] * 8
    return table_from_lengths(lengths, 9)


def fixed_distance_table() -> HuffmanTable:
    """The fixed distance table of DEFLATE block type 1."""
    return table_from_lengths([5] * DEFLATE_D_TABLE_SIZE, 5)