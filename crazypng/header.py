"""PNG image header (IHDR), colour types and the decoded pixel type."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from .utils import CrazyPngError

__all__ = [
    "PngError",
    "ColorType",
    "Pixel",
    "ImageHeader",
    "IHDR_SIZE",
    "channels_from_color",
    "is_valid_depth_color_pair",
]

IHDR_SIZE = 13

_IHDR_FORMAT = ">IIBBBBB"
_VALID_BIT_DEPTHS = frozenset({1, 2, 4, 8, 16})

_ERROR_BITDEPTH = "PNG Error: Invalid bit depth, color pair"
_ERROR_IHDR_SIZE = "PNG Error: Invalid IHDR size"


class PngError(CrazyPngError):
    """Raised when a PNG file or its image data is malformed."""


class ColorType(IntEnum):
    """Colour types defined by the PNG specification."""

    GRAYSCALE = 0
    RGB = 2
    PALETTE = 3
    GRAYSCALE_ALPHA = 4
    RGBA = 6


@dataclass(frozen=True)
class Pixel:
    """An 8-bit-per-channel RGBA pixel."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 255


def is_valid_depth_color_pair(bit_depth: int, color_type: int) -> bool:
    """Tell whether the PNG specification allows this bit depth for the colour type."""
    if bit_depth not in _VALID_BIT_DEPTHS:
        return False
    if color_type == ColorType.GRAYSCALE:
        return True
    if color_type == ColorType.PALETTE:
        return bit_depth != 16
    if color_type in (ColorType.RGB, ColorType.GRAYSCALE_ALPHA, ColorType.RGBA):
        return bit_depth in (8, 16)
    return False


def channels_from_color(color_type: int) -> int:
    """Number of samples per pixel for a colour type (1 for unknown types)."""
    return {
        ColorType.RGB: 3,
        ColorType.RGBA: 4,
        ColorType.GRAYSCALE_ALPHA: 2,
        ColorType.GRAYSCALE: 1,
        ColorType.PALETTE: 1,
    }.get(color_type, 1)


@dataclass(frozen=True)
class ImageHeader:
    """Contents of the IHDR chunk."""

    width: int
    height: int
    bit_depth: int
    color_type: ColorType
    compression: int = 0
    filter: int = 0
    interlace: int = 0

    @property
    def channels(self) -> int:
        """Samples per pixel."""
        return channels_from_color(self.color_type)

    @classmethod
    def from_bytes(cls, data: bytes) -> ImageHeader:
        """Parse the 13-byte payload of an IHDR chunk."""
        if len(data) != IHDR_SIZE:
            raise PngError(_ERROR_IHDR_SIZE)
        (width, height, bit_depth, color_type,
         compression, filter_method, interlace) = struct.unpack(_IHDR_FORMAT, data)
        if not is_valid_depth_color_pair(bit_depth, color_type):
            raise PngError(_ERROR_BITDEPTH)
        return cls(
            width=width,
            height=height,
            bit_depth=bit_depth,
            color_type=ColorType(color_type),
            compression=compression,
            filter=filter_method,
            interlace=interlace,
        )