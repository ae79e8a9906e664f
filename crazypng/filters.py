"""Reversal of PNG scanline filters and unpacking of samples into pixels."""

from __future__ import annotations

from typing import Sequence

from .header import ColorType, ImageHeader, Pixel, PngError

__all__ = [
    "paeth_predictor",
    "filter_sub",
    "filter_up",
    "filter_average",
    "filter_paeth",
    "unpack_scanline",
    "unfilter",
]

_ERROR_BUFFER = "PNG Error : Malformed buffer during unfiltering"
_ERROR_TYPE = "PNG Error : Could not unfilter PNG decompressed data"


def paeth_predictor(a: int, b: int, c: int) -> int:
    """Pick whichever of left ``a``, up ``b`` and up-left ``c`` is nearest a + b - c."""
    p = a + b - c
    pa, pb, pc = abs(p - a), abs(p - b), abs(p - c)
    if pa <= pb and pa <= pc:
        return a & 0xFF
    if pb <= pc:
        return b & 0xFF
    return c & 0xFF


def filter_sub(raw: bytes, bpp: int) -> bytes:
    """Undo the Sub filter: add the byte ``bpp`` positions to the left."""
    out = bytearray(raw)
    for i in range(bpp, len(out)):
        out[i] = (out[i] + out[i - bpp]) & 0xFF
    return bytes(out)


def filter_up(raw: bytes, prev: bytes) -> bytes:
    """Undo the Up filter: add the byte above."""
    return bytes((x + up) & 0xFF for x, up in zip(raw, prev))


def filter_average(raw: bytes, prev: bytes, bpp: int) -> bytes:
    """Undo the Average filter: add the mean of the left and upper bytes."""
    out = bytearray(len(raw))
    for i, (x, up) in enumerate(zip(raw, prev)):
        left = out[i - bpp] if i >= bpp else 0
        out[i] = (x + ((left + up) >> 1)) & 0xFF
    return bytes(out)


def filter_paeth(raw: bytes, prev: bytes, bpp: int) -> bytes:
    """Undo the Paeth filter."""
    out = bytearray(len(raw))
    for i, (x, up) in enumerate(zip(raw, prev)):
        if i >= bpp:
            left, up_left = out[i - bpp], prev[i - bpp]
        else:
            left = up_left = 0
        out[i] = (x + paeth_predictor(left, up, up_left)) & 0xFF
    return bytes(out)


def _sample(line: bytes, bit_pos: int, bit_depth: int, has_palette: bool) -> int:
    value = line[bit_pos >> 3]
    if bit_depth >= 8:
        # 16-bit samples keep only their most significant byte.
        return value
    channel_max = (1 << bit_depth) - 1
    raw = (value >> (8 - bit_depth - (bit_pos & 7))) & channel_max
    return raw if has_palette else raw * 255 // channel_max


def _to_pixel(
    samples: list[int], color_type: int, palette: Sequence[Pixel]
) -> Pixel:
    samples = samples + [0] * (4 - len(samples))
    if color_type == ColorType.GRAYSCALE:
        return Pixel(samples[0], samples[0], samples[0], 255)
    if color_type == ColorType.GRAYSCALE_ALPHA:
        return Pixel(samples[0], samples[0], samples[0], samples[1])
    if color_type == ColorType.PALETTE:
        index = samples[0]
        if index >= len(palette):
            raise PngError(f"PNG Error: palette index {index} out of range")
        return palette[index]
    if color_type == ColorType.RGB:
        return Pixel(samples[0], samples[1], samples[2], 255)
    return Pixel(*samples[:4])


def unpack_scanline(
    line: bytes, header: ImageHeader, palette: Sequence[Pixel] | None
) -> list[Pixel]:
    """Turn one unfiltered scanline into a row of RGBA pixels."""
    palette = tuple(palette or ())
    channels = header.channels
    depth = header.bit_depth
    has_palette = bool(palette)
    row = []
    for x in range(header.width):
        start = x * channels * depth
        samples = [
            _sample(line, start + channel * depth, depth, has_palette)
            for channel in range(channels)
        ]
        row.append(_to_pixel(samples, header.color_type, palette))
    return row


def unfilter(
    data: bytes, header: ImageHeader, palette: Sequence[Pixel] | None
) -> list[Pixel]:
    """Unfilter decompressed image data and return the pixels row by row."""
    bits_pp = header.bit_depth * header.channels
    bpp = (bits_pp + 7) // 8
    line_bytes = (header.width * bits_pp + 7) // 8
    prev = bytes(line_bytes)
    pixels: list[Pixel] = []
    offset = 0
    for _ in range(header.height):
        if offset + 1 + line_bytes > len(data):
            raise PngError(_ERROR_BUFFER)
        filter_type = data[offset]
        raw = bytes(data[offset + 1:offset + 1 + line_bytes])
        offset += 1 + line_bytes
        if filter_type == 0:
            current = raw
        elif filter_type == 1:
            current = filter_sub(raw, bpp)
        elif filter_type == 2:
            current = filter_up(raw, prev)
        elif filter_type == 3:
            current = filter_average(raw, prev, bpp)
        elif filter_type == 4:
            current = filter_paeth(raw, prev, bpp)
        else:
            raise PngError(_ERROR_TYPE)
        pixels.extend(unpack_scanline(current, header, palette))
        prev = current
    return pixels