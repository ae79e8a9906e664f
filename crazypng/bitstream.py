"""Least-significant-bit-first reader over a byte string."""

from __future__ import annotations

from .utils import CrazyPngError

__all__ = ["BitStreamError", "BitStream"]


class BitStreamError(CrazyPngError):
    """Raised when a read runs past the end of the stream."""


class BitStream:
    """Reads bits LSB first from ``data``, as DEFLATE streams require."""

    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.size = len(self.data)
        self.byte_pos = 0
        self.bit_pos = 0
        self.overflowed = False

    @property
    def bits_left(self) -> int:
        """Number of bits not yet consumed."""
        return max(0, (self.size - self.byte_pos) * 8 - self.bit_pos)

    def _window(self, count: int) -> int:
        end = self.byte_pos + (self.bit_pos + count + 7) // 8
        chunk = int.from_bytes(self.data[self.byte_pos:end], "little")
        return (chunk >> self.bit_pos) & ((1 << count) - 1)

    def _mark_overflow(self, message: str) -> BitStreamError:
        self.overflowed = True
        return BitStreamError(message)

    def peek_bits(self, count: int) -> int:
        """Return the next ``count`` bits without consuming them.

        Returns 0 for a count outside 1..64, after an overflow, or when
        fewer than ``count`` bits remain.
        """
        if count <= 0 or count > 64 or self.overflowed:
            return 0
        if count > self.bits_left:
            return 0
        return self._window(count)

    def consume_bits(self, n: int) -> None:
        """Skip ``n`` bits; raise if the position reaches the end of data."""
        if self.overflowed:
            raise BitStreamError("bit stream already overflowed")
        total = self.bit_pos + n
        self.byte_pos += total // 8
        self.bit_pos = total % 8
        if self.byte_pos >= self.size:
            raise self._mark_overflow("consumed past the end of the bit stream")

    def read_bits(self, count: int) -> int:
        """Read and consume ``count`` bits (1..64); 0 bits read as 0."""
        if count <= 0 or count > 64:
            return 0
        if self.overflowed:
            raise BitStreamError("bit stream already overflowed")
        if count > self.bits_left:
            self.byte_pos = self.size
            self.bit_pos = 0
            raise self._mark_overflow("read past the end of the bit stream")
        value = self._window(count)
        total = self.bit_pos + count
        self.byte_pos += total // 8
        self.bit_pos = total % 8
        return value

    def read_checked(self, count: int, width: int) -> int:
        """Read ``count`` bits into an unsigned value of ``width`` bits."""
        if width < 64 and count > width:
            raise ValueError(f"cannot read {count} bits into a {width}-bit value")
        return self.read_bits(count) & ((1 << width) - 1)

    def read_bytes(self, length: int) -> bytes:
        """Read ``length`` whole bytes from the current byte position."""
        if length < 0:
            raise ValueError("length must not be negative")
        if self.byte_pos + length > self.size:
            raise self._mark_overflow("byte read past the end of the bit stream")
        chunk = self.data[self.byte_pos:self.byte_pos + length]
        self.byte_pos += length
        self.bit_pos = 0
        return chunk

    def align(self) -> None:
        """Skip to the next byte boundary; raise if no bytes remain."""
        if self.bit_pos != 0:
            self.bit_pos = 0
            self.byte_pos += 1
        if self.byte_pos >= self.size:
            raise self._mark_overflow("aligned past the end of the bit stream")