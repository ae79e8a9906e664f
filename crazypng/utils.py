"""Shared error type and small integer helpers."""

from __future__ import annotations

__all__ = [
    "CrazyPngError",
    "swap_endian32",
    "swap_endian16",
    "reverse_bits",
]

_MASK16 = 0xFFFF
_MASK32 = 0xFFFFFFFF


class CrazyPngError(Exception):
    """Base class for every error raised by this package."""


def swap_endian32(value: int) -> int:
    """Reverse the byte order of a 32-bit unsigned integer."""
    value &= _MASK32
    return int.from_bytes(value.to_bytes(4, "little"), "big")


def swap_endian16(value: int) -> int:
    """Reverse the byte order of a 16-bit unsigned integer."""
    value &= _MASK16
    return ((value >> 8) | (value << 8)) & _MASK16


def reverse_bits(code: int, length: int) -> int:
    """Return the lowest ``length`` bits of ``code`` in reverse order.

    ``length`` is clamped to the range 0..32.
    """
    length = max(0, min(32, length))
    reversed_code = 0
    for _ in range(length):
        reversed_code = (reversed_code << 1) | (code & 1)
        code >>= 1
    return reversed_code