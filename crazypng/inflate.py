"""Decompression of zlib-wrapped DEFLATE streams (RFC 1950 / RFC 1951)."""

from __future__ import annotations

from functools import lru_cache

from .bitstream import BitStream, BitStreamError
from .huffman import (
    HuffmanTable,
    fixed_distance_table,
    fixed_literal_table,
    table_from_lengths,
)
from .utils import CrazyPngError

__all__ = [
    "InflateError",
    "LZ77Window",
    "LZ77_WINDOW_SIZE",
    "check_zlib_header",
    "read_dynamic_tables",
    "inflate",
]

LZ77_WINDOW_SIZE = 32768

DEFLATE_CLEN_SIZE = 19
DEFLATE_CLEN_MAXBITS = 7
DEFLATE_MAXBITS = 15

_END_OF_BLOCK = 256
_MAX_LITLEN_SYMBOL = 286
_MAX_DISTANCE_SYMBOL = 29

_HCLEN_ORDER = (
    16, 17, 18, 0, 8, 7, 9, 6, 10, 5, 11, 4, 12, 3, 13, 2, 14, 1, 15,
)

# (base, extra bits) for length symbols 257.. and distance symbols 0..
# (RFC 1951, section 3.2.5).
_LENGTH_TABLE = (
    (3, 0), (4, 0), (5, 0), (6, 0),
    (7, 0), (8, 0), (9, 0), (10, 0),
    (11, 1), (13, 1), (15, 1), (17, 1),
    (19, 2), (23, 2), (27, 2), (31, 2),
    (35, 3), (43, 3), (51, 3), (59, 3),
    (67, 4), (83, 4), (99, 4), (115, 4),
    (131, 5), (163, 5), (195, 5), (227, 5),
    (258, 0), (0, 0), (0, 0),
)

_DISTANCE_TABLE = (
    (1, 0), (2, 0), (3, 0), (4, 0),
    (5, 1), (7, 1), (9, 2), (13, 2),
    (17, 3), (25, 3), (33, 4), (49, 4),
    (65, 5), (97, 5), (129, 6), (193, 6),
    (257, 7), (385, 7), (513, 8), (769, 8),
    (1025, 9), (1537, 9), (2049, 10), (3073, 10),
    (4097, 11), (6145, 11), (8193, 12), (12289, 12),
    (16385, 13), (24577, 13),
)

_ERROR_METHOD = "Decompression Error : Unsupported compression method"
_ERROR_WINDOW = "Decompression Error : Unsupported LZ77 window size"
_ERROR_HEADER = "Decompression Error : Invalid header"
_ERROR_BLOCK = "Decompression Error : Couldnt read block"


class InflateError(CrazyPngError):
    """Raised when a compressed stream cannot be decoded."""


class LZ77Window:
    """Ring buffer holding the last 32 KiB of output for back-references."""

    def __init__(self) -> None:
        self.buffer = bytearray(LZ77_WINDOW_SIZE)
        self.pos = 0

    def push(self, byte: int) -> None:
        """Append one byte to the window."""
        self.buffer[self.pos] = byte & 0xFF
        self.pos = (self.pos + 1) % LZ77_WINDOW_SIZE

    def push_bytes(self, data: bytes) -> None:
        """Append a run of bytes to the window."""
        data = bytes(data)
        if len(data) > LZ77_WINDOW_SIZE:
            skipped = len(data) - LZ77_WINDOW_SIZE
            self.pos = (self.pos + skipped) % LZ77_WINDOW_SIZE
            data = data[skipped:]
        first = min(len(data), LZ77_WINDOW_SIZE - self.pos)
        self.buffer[self.pos:self.pos + first] = data[:first]
        rest = data[first:]
        self.buffer[:len(rest)] = rest
        self.pos = (self.pos + len(data)) % LZ77_WINDOW_SIZE

    def _read(self, start: int, count: int) -> bytes:
        end = start + count
        if end <= LZ77_WINDOW_SIZE:
            return bytes(self.buffer[start:end])
        return bytes(self.buffer[start:]) + bytes(self.buffer[:end - LZ77_WINDOW_SIZE])

    def copy_reference(self, distance: int, length: int) -> bytes:
        """Copy ``length`` bytes starting ``distance`` bytes back.

        The copied bytes are pushed into the window and returned; a copy
        longer than its distance repeats the referenced run.
        """
        if not 1 <= distance <= LZ77_WINDOW_SIZE:
            raise ValueError(f"distance {distance} outside 1..{LZ77_WINDOW_SIZE}")
        if length <= 0:
            return b""
        start = (self.pos - distance) % LZ77_WINDOW_SIZE
        if distance >= length:
            chunk = self._read(start, length)
        else:
            run = self._read(start, distance)
            chunk = (run * (length // distance + 1))[:length]
        self.push_bytes(chunk)
        return chunk


@lru_cache(maxsize=None)
def _fixed_tables() -> tuple[HuffmanTable, HuffmanTable]:
    return fixed_literal_table(), fixed_distance_table()


def check_zlib_header(stream: BitStream) -> None:
    """Read and validate the two-byte zlib header at the start of ``stream``."""
    try:
        cmf = stream.read_bits(8)
        flg = stream.read_bits(8)
    except BitStreamError as exc:
        raise InflateError(_ERROR_HEADER) from exc
    if cmf == 0 or flg == 0:
        raise InflateError(_ERROR_HEADER)
    if (cmf & 0x0F) != 8 or flg & 0x20:
        raise InflateError(_ERROR_METHOD)
    if (cmf >> 4) > 7:
        raise InflateError(_ERROR_WINDOW)
    if ((cmf << 8) | flg) % 31 != 0:
        raise InflateError(_ERROR_HEADER)


def _read_code_lengths(
    stream: BitStream, clen_table: HuffmanTable, total: int
) -> list[int]:
    lengths: list[int] = []
    last = 0
    while len(lengths) < total:
        symbol = clen_table.decode(stream)
        if symbol <= 15:
            lengths.append(symbol)
            last = symbol
            continue
        if symbol == 16:
            extra_bits, base = 2, 3
        elif symbol == 17:
            last = 0
            extra_bits, base = 3, 3
        elif symbol == 18:
            last = 0
            extra_bits, base = 7, 11
        else:
            raise InflateError(f"invalid code length symbol {symbol}")
        repeat = stream.read_checked(extra_bits, 16) + base
        if len(lengths) + repeat > total:
            raise InflateError(
                "code lengths exceed buffer size: attempted to write "
                f"{repeat} entries at index {len(lengths)} / {total}"
            )
        lengths.extend([last] * repeat)
    return lengths


def read_dynamic_tables(stream: BitStream) -> tuple[HuffmanTable, HuffmanTable]:
    """Read the code tables of a dynamic block; return (literal, distance)."""
    hlit = stream.read_checked(5, 8) + 257
    hdist = stream.read_checked(5, 8) + 1
    hclen = stream.read_checked(4, 8) + 4

    clen_lengths = [0] * DEFLATE_CLEN_SIZE
    for symbol in _HCLEN_ORDER[:hclen]:
        clen_lengths[symbol] = stream.read_checked(3, 8)
    clen_table = table_from_lengths(clen_lengths, DEFLATE_CLEN_MAXBITS)

    lengths = _read_code_lengths(stream, clen_table, hlit + hdist)
    literal = table_from_lengths(lengths[:hlit], DEFLATE_MAXBITS)
    distance = table_from_lengths(lengths[hlit:], DEFLATE_MAXBITS)
    return literal, distance


def _inflate_stored(stream: BitStream, window: LZ77Window, output: bytearray) -> None:
    stream.align()
    length = stream.read_checked(16, 16)
    nlength = stream.read_checked(16, 16)
    if length ^ nlength != 0xFFFF:
        raise InflateError("stored block length does not match its complement")
    chunk = stream.read_bytes(length)
    output += chunk
    window.push_bytes(chunk)


def _inflate_huffman(
    stream: BitStream,
    window: LZ77Window,
    output: bytearray,
    literal: HuffmanTable,
    distance: HuffmanTable,
) -> None:
    while True:
        symbol = literal.decode(stream)
        if symbol == _END_OF_BLOCK:
            return
        if symbol > _MAX_LITLEN_SYMBOL:
            raise InflateError(f"invalid literal/length symbol {symbol}")
        if symbol < _END_OF_BLOCK:
            output.append(symbol)
            window.push(symbol)
            continue
        base, extra = _LENGTH_TABLE[symbol - 257]
        length = base + stream.read_checked(extra, 16)
        distance_symbol = distance.decode(stream)
        if distance_symbol > _MAX_DISTANCE_SYMBOL:
            raise InflateError(f"invalid distance symbol {distance_symbol}")
        dist_base, dist_extra = _DISTANCE_TABLE[distance_symbol]
        back = dist_base + stream.read_checked(dist_extra, 16)
        output += window.copy_reference(back, length)


def _inflate_blocks(stream: BitStream, output: bytearray) -> None:
    window = LZ77Window()
    fixed_literal, fixed_distance = _fixed_tables()
    final = False
    while not final:
        final = bool(stream.read_bits(1))
        block_type = stream.read_bits(2)
        if block_type == 0:
            _inflate_stored(stream, window, output)
        elif block_type == 1:
            _inflate_huffman(stream, window, output, fixed_literal, fixed_distance)
        elif block_type == 2:
            literal, distance = read_dynamic_tables(stream)
            _inflate_huffman(stream, window, output, literal, distance)
        else:
            raise InflateError(f"invalid block type {block_type}")


def inflate(data: bytes) -> bytes:
    """Decompress a zlib stream and return the decoded bytes.

    The trailing Adler-32 checksum is not verified.
    """
    stream = BitStream(data)
    check_zlib_header(stream)
    output = bytearray()
    try:
        _inflate_blocks(stream, output)
    except CrazyPngError as exc:
        raise InflateError(f"{_ERROR_BLOCK}: {exc}") from exc
    return bytes(output)