import pytest

from crazypng.filters import (
    filter_average,
    filter_paeth,
    filter_sub,
    filter_up,
    paeth_predictor,
    unfilter,
    unpack_scanline,
)
from crazypng.header import ColorType, ImageHeader, Pixel, PngError


def _header(width, height, depth, color):
    return ImageHeader(width, height, depth, ColorType(color))


def test_paeth_prefers_left_on_ties():
    assert paeth_predictor(10, 10, 10) == 10
    assert paeth_predictor(7, 0, 0) == 7


def test_paeth_picks_up_when_left_is_far():
    # p = 0 + 50 - 0 = 50 -> up is exact
    assert paeth_predictor(0, 50, 0) == 50


def test_paeth_picks_up_left():
    # p = 10 + 10 - 20 = 0, nearest is... a and b are 10 away, c is 20 away
    assert paeth_predictor(10, 10, 20) == 10
    assert paeth_predictor(30, 5, 10) == 30


def test_filter_up_with_zero_prev_is_identity():
    raw = bytes([1, 200, 255, 3])
    assert filter_up(raw, bytes(4)) == raw


def test_filter_up_wraps_modulo_256():
    raw = bytes([200, 10])
    prev = bytes([100, 250])
    result = filter_up(raw, prev)
    assert all((r + p) % 256 == out for r, p, out in zip(raw, prev, result))


def test_filter_sub_accumulates():
    assert filter_sub(bytes([1, 1, 1, 1]), 1) == bytes([1, 2, 3, 4])


def test_filter_sub_large_bpp_is_identity():
    raw = bytes([5, 6, 7])
    assert filter_sub(raw, 3) == raw


def test_filter_average_without_left_halves_up():
    raw = bytes([1, 2])
    prev = bytes([10, 21])
    result = filter_average(raw, prev, 4)
    assert list(result) == [r + (p >> 1) for r, p in zip(raw, prev)]


def test_filter_paeth_with_zero_prev_matches_sub():
    raw = bytes([3, 9, 250, 17, 40, 1])
    assert filter_paeth(raw, bytes(len(raw)), 2) == filter_sub(raw, 2)


def test_filter_paeth_first_bytes_use_up():
    raw = bytes([1, 2])
    prev = bytes([40, 41])
    assert filter_paeth(raw, prev, 2) == filter_up(raw, prev)


def test_unpack_rgba_scanline():
    header = _header(1, 1, 8, 6)
    assert unpack_scanline(bytes([10, 20, 30, 40]), header, None) == [
        Pixel(10, 20, 30, 40)
    ]


def test_unpack_grayscale_sets_opaque_alpha():
    header = _header(2, 1, 8, 0)
    assert unpack_scanline(bytes([7, 99]), header, ()) == [
        Pixel(7, 7, 7, 255),
        Pixel(99, 99, 99, 255),
    ]


def test_unpack_one_bit_grayscale_scales_to_full_range():
    header = _header(2, 1, 1, 0)
    assert unpack_scanline(bytes([0b10000000]), header, None) == [
        Pixel(255, 255, 255, 255),
        Pixel(0, 0, 0, 255),
    ]


def test_unpack_sixteen_bit_keeps_high_byte():
    header = _header(1, 1, 16, 0)
    assert unpack_scanline(bytes([0x12, 0x34]), header, None) == [
        Pixel(0x12, 0x12, 0x12, 255)
    ]


def test_unpack_palette_indices():
    palette = [Pixel(1, 2, 3, 255), Pixel(4, 5, 6, 255)]
    header = _header(2, 1, 2, 3)
    # indices 1 and 0 in the top bits
    assert unpack_scanline(bytes([0b01000000]), header, palette) == [
        palette[1],
        palette[0],
    ]


def test_unpack_palette_index_out_of_range():
    header = _header(1, 1, 8, 3)
    with pytest.raises(PngError):
        unpack_scanline(bytes([2]), header, [Pixel(), Pixel()])


def test_unfilter_rgb_rows():
    header = _header(1, 2, 8, 2)
    data = bytes([0, 10, 20, 30, 2, 1, 1, 1])
    pixels = unfilter(data, header, None)
    assert pixels == [Pixel(10, 20, 30, 255), Pixel(11, 21, 31, 255)]


def test_unfilter_returns_width_times_height_pixels():
    header = _header(3, 4, 8, 4)
    line = bytes([0]) + bytes(6)
    pixels = unfilter(line * 4, header, None)
    assert len(pixels) == 12
    assert all(p == Pixel(0, 0, 0, 0) for p in pixels)


def test_unfilter_rejects_short_buffer():
    header = _header(2, 2, 8, 0)
    with pytest.raises(PngError, match="Malformed buffer"):
        unfilter(bytes([0, 1, 2, 0, 3]), header, None)


def test_unfilter_rejects_unknown_filter_type():
    header = _header(1, 1, 8, 0)
    with pytest.raises(PngError, match="Could not unfilter"):
        unfilter(bytes([5, 0]), header, None)