"""PNG chunk reading, palette handling and whole-file decoding."""

from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from enum import IntEnum
from os import PathLike
from typing import BinaryIO

from .filters import unfilter
from .header import ColorType, ImageHeader, Pixel, PngError
from .inflate import inflate

__all__ = [
    "PNG_SIGNATURE",
    "ChunkType",
    "Chunk",
    "Png",
    "chunk_type_from_name",
    "chunk_precedes_idat",
    "chunk_precedes_plte",
    "read_chunk",
    "parse_palette",
    "parse_png",
    "png_open",
]

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

_ERROR_SIGNATURE = "PNG Error: Wrong signature"
_ERROR_FIRST_CHUNK = "PNG Error: PNG not valid, first chunk must be IHDR"
_ERROR_TRUNCATED = "PNG Error: Truncated chunk"
_ERROR_CHUNK_NAME = "PNG Error: Invalid chunk type"


class ChunkType(IntEnum):
    """Chunk types the decoder tells apart."""

    IHDR = 0
    IDAT = 1
    IEND = 2
    PLTE = 3
    GAMA = 4
    UNKNOWN = 5


# Checked in this order; only the first three characters are compared.
_KNOWN_NAMES = (
    ("IHDR", ChunkType.IHDR),
    ("PLTE", ChunkType.PLTE),
    ("IDAT", ChunkType.IDAT),
    ("IEND", ChunkType.IEND),
    ("gAMA", ChunkType.GAMA),
)


def chunk_type_from_name(name: str) -> ChunkType:
    """Classify a chunk by the first three characters of its four-letter name."""
    prefix = name[:3]
    for known, chunk_type in _KNOWN_NAMES:
        if prefix == known[:3]:
            return chunk_type
    return ChunkType.UNKNOWN


def chunk_precedes_idat(chunk_type: ChunkType) -> bool:
    """Tell whether chunks of this type must appear before any IDAT chunk."""
    return chunk_type in (ChunkType.IHDR, ChunkType.PLTE, ChunkType.GAMA)


def chunk_precedes_plte(chunk_type: ChunkType) -> bool:
    """Tell whether chunks of this type must appear before the PLTE chunk."""
    return chunk_type == ChunkType.GAMA


@dataclass(frozen=True)
class Chunk:
    """One chunk as read from the file; the checksum is kept but not verified."""

    name: str
    data: bytes
    checksum: int

    @property
    def length(self) -> int:
        """Length of the chunk payload in bytes."""
        return len(self.data)

    @property
    def chunk_type(self) -> ChunkType:
        """The decoder's classification of this chunk."""
        return chunk_type_from_name(self.name)

    @property
    def ancillary(self) -> bool:
        """True when the first letter of the name is lower case."""
        return self.name[0].islower()

    @property
    def private(self) -> bool:
        """True when the second letter of the name is lower case."""
        return self.name[1].islower()


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    chunk = stream.read(size)
    if len(chunk) != size:
        raise PngError(_ERROR_TRUNCATED)
    return chunk


def read_chunk(stream: BinaryIO) -> Chunk:
    """Read one chunk (length, name, payload, checksum) from a binary stream."""
    length, raw_name = struct.unpack(">I4s", _read_exact(stream, 8))
    if not all(0x41 <= c <= 0x5A or 0x61 <= c <= 0x7A for c in raw_name):
        raise PngError(_ERROR_CHUNK_NAME)
    data = _read_exact(stream, length)
    (checksum,) = struct.unpack(">I", _read_exact(stream, 4))
    return Chunk(raw_name.decode("ascii"), data, checksum)


def parse_palette(
    chunk: Chunk, header: ImageHeader, idat_seen: bool, palette_count: int
) -> tuple[Pixel, ...]:
    """Decode a PLTE chunk into opaque RGBA entries."""
    if idat_seen:
        raise PngError("PNG Error: PLTE chunk after image data")
    if palette_count > 0:
        raise PngError("PNG Error: more than one PLTE chunk")
    if header.color_type in (ColorType.GRAYSCALE, ColorType.GRAYSCALE_ALPHA):
        raise PngError("PNG Error: PLTE chunk in a grayscale image")
    if chunk.length % 3 != 0:
        raise PngError("PNG Error: PLTE length is not a multiple of 3")
    entries = chunk.length // 3
    if entries > (1 << header.bit_depth):
        raise PngError("PNG Error: too many palette entries")
    data = chunk.data
    return tuple(
        Pixel(data[i], data[i + 1], data[i + 2], 255)
        for i in range(0, chunk.length, 3)
    )


@dataclass(frozen=True)
class Png:
    """A decoded image: its header, palette and RGBA pixels in row order."""

    header: ImageHeader
    palette: tuple[Pixel, ...]
    pixels: tuple[Pixel, ...]

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self.header.width

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self.header.height


def _finish(
    header: ImageHeader,
    palette: tuple[Pixel, ...],
    palette_count: int,
    compressed: bytes,
) -> Png:
    if palette_count == 1:
        if header.color_type not in (
            ColorType.PALETTE, ColorType.RGB, ColorType.RGBA
        ):
            raise PngError("PNG Error: PLTE chunk not allowed for this colour type")
    elif palette_count == 0 and header.color_type == ColorType.PALETTE:
        raise PngError("PNG Error: missing PLTE chunk")
    elif palette_count > 1:
        raise PngError("PNG Error: more than one PLTE chunk")
    if not compressed:
        raise PngError("PNG Error: no image data")
    data = inflate(compressed)
    pixels = unfilter(data, header, palette)
    return Png(header, palette, tuple(pixels))


def parse_png(data: bytes) -> Png:
    """Decode a complete PNG file held in memory."""
    data = bytes(data)
    if len(data) < len(PNG_SIGNATURE):
        raise PngError(_ERROR_TRUNCATED)
    if data[:len(PNG_SIGNATURE)] != PNG_SIGNATURE:
        raise PngError(_ERROR_SIGNATURE)
    stream = io.BytesIO(data[len(PNG_SIGNATURE):])

    first = read_chunk(stream)
    if first.chunk_type != ChunkType.IHDR:
        raise PngError(_ERROR_FIRST_CHUNK)
    header = ImageHeader.from_bytes(first.data)

    palette: tuple[Pixel, ...] = ()
    palette_count = 0
    idat_seen = False
    compressed = bytearray()
    while True:
        chunk = read_chunk(stream)
        chunk_type = chunk.chunk_type
        if chunk_precedes_idat(chunk_type) and idat_seen:
            raise PngError(f"PNG Error: {chunk.name} chunk after image data")
        if chunk_type == ChunkType.IEND:
            if not idat_seen:
                raise PngError("PNG Error: no IDAT chunk")
            return _finish(header, palette, palette_count, bytes(compressed))
        if chunk_type == ChunkType.PLTE:
            palette = parse_palette(chunk, header, idat_seen, palette_count)
            palette_count += 1
        elif chunk_type == ChunkType.IDAT:
            compressed += chunk.data
            idat_seen = True


def png_open(file_name: str | PathLike[str]) -> Png:
    """Read and decode the PNG file at ``file_name``."""
    with open(file_name, "rb") as handle:
        return parse_png(handle.read())