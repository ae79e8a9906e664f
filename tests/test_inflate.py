import random
import zlib

import pytest

from crazypng.bitstream import BitStream
from crazypng.inflate import (
    LZ77_WINDOW_SIZE,
    InflateError,
    LZ77Window,
    check_zlib_header,
    inflate,
    read_dynamic_tables,
)
from crazypng.utils import CrazyPngError


def _text(size: int, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    words = [b"pixel", b"chunk", b"filter", b"palette", b"deflate", b"scanline", b" ", b"\n"]
    parts = []
    total = 0
    while total < size:
        word = rng.choice(words)
        parts.append(word)
        total += len(word)
    return b"".join(parts)[:size]


@pytest.mark.parametrize("level", [0, 1, 6, 9])
def test_round_trip_levels(level):
    payload = _text(5000)
    assert inflate(zlib.compress(payload, level)) == payload


def test_round_trip_empty_default():
    assert inflate(zlib.compress(b"")) == b""


def test_round_trip_empty_stored():
    assert inflate(zlib.compress(b"", 0)) == b""


def test_round_trip_fixed_strategy():
    payload = _text(3000, seed=3)
    compressor = zlib.compressobj(9, zlib.DEFLATED, 15, 9, zlib.Z_FIXED)
    data = compressor.compress(payload) + compressor.flush()
    assert inflate(data) == payload


def test_round_trip_larger_than_window():
    rng = random.Random(7)
    payload = _text(40000, seed=1) + rng.randbytes(20000) + _text(50000, seed=1)
    assert len(payload) > LZ77_WINDOW_SIZE
    assert inflate(zlib.compress(payload, 9)) == payload


def test_round_trip_long_runs():
    payload = b"a" * 70000 + b"b" * 300 + b"ab" * 1000
    assert inflate(zlib.compress(payload)) == payload


def test_round_trip_multiple_stored_blocks():
    payload = bytes(range(256)) * 400
    assert len(payload) > 65535
    assert inflate(zlib.compress(payload, 0)) == payload


def test_checksum_is_not_verified():
    payload = b"hello hello hello"
    data = bytearray(zlib.compress(payload))
    data[-1] ^= 0xFF
    assert inflate(bytes(data)) == payload


def test_check_zlib_header_accepts_valid_and_advances():
    stream = BitStream(zlib.compress(b"abc"))
    check_zlib_header(stream)
    assert stream.byte_pos == 2
    assert stream.bit_pos == 0


def test_header_unsupported_method():
    with pytest.raises(InflateError, match="Unsupported compression method"):
        inflate(bytes([0x77, 0x01, 0x00, 0x00]))


def test_header_preset_dictionary_unsupported():
    with pytest.raises(InflateError, match="Unsupported compression method"):
        inflate(bytes([0x78, 0x20, 0x00, 0x00]))


def test_header_window_too_large():
    with pytest.raises(InflateError, match="Unsupported LZ77 window size"):
        inflate(bytes([0x88, 0x01, 0x00, 0x00]))


def test_header_bad_checksum():
    with pytest.raises(InflateError, match="Invalid header"):
        inflate(bytes([0x78, 0x02, 0x00, 0x00]))


def test_header_zero_bytes_rejected():
    with pytest.raises(InflateError, match="Invalid header"):
        inflate(bytes([0x00, 0x00, 0x00, 0x00]))


def test_header_truncated():
    with pytest.raises(InflateError):
        inflate(b"\x78")


def test_truncated_body():
    data = zlib.compress(_text(2000))
    with pytest.raises(InflateError):
        inflate(data[:2])


def test_truncated_middle_of_stream():
    data = zlib.compress(_text(4000), 9)
    with pytest.raises(InflateError):
        inflate(data[: len(data) // 2])


def test_stored_length_complement_mismatch():
    data = bytes([0x78, 0x01, 0x01, 0x05, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00])
    with pytest.raises(InflateError):
        inflate(data)


def test_reserved_block_type():
    data = bytes([0x78, 0x01, 0x07, 0x00, 0x00, 0x00, 0x00])
    with pytest.raises(InflateError):
        inflate(data)


def test_inflate_error_is_package_error():
    with pytest.raises(CrazyPngError):
        inflate(bytes([0x78, 0x02]))


def test_read_dynamic_tables_sizes():
    data = zlib.compress(_text(6000, seed=5), 9)
    stream = BitStream(data)
    check_zlib_header(stream)
    stream.read_bits(1)
    assert stream.read_bits(2) == 2
    literal, distance = read_dynamic_tables(stream)
    assert 257 <= literal.count <= 288
    assert 1 <= distance.count <= 32
    assert literal.codes[256].bits > 0


def test_window_push_and_repeat():
    window = LZ77Window()
    window.push(ord("a"))
    assert window.copy_reference(1, 4) == b"aaaa"
    assert window.pos == 5


def test_window_overlapping_copy():
    window = LZ77Window()
    window.push_bytes(b"abc")
    assert window.copy_reference(3, 5) == b"abcab"


def test_window_copy_then_reference_again():
    window = LZ77Window()
    window.push_bytes(b"xy")
    first = window.copy_reference(2, 2)
    assert window.copy_reference(4, 4) == b"xy" + first


def test_window_wraps_around():
    window = LZ77Window()
    window.push_bytes(bytes(LZ77_WINDOW_SIZE - 1))
    window.push_bytes(b"xyz")
    assert window.pos == 2
    assert window.copy_reference(3, 3) == b"xyz"


def test_window_push_more_than_capacity():
    data = bytes(range(256)) * 200
    window = LZ77Window()
    window.push_bytes(data)
    assert window.pos == len(data) % LZ77_WINDOW_SIZE
    assert window.copy_reference(LZ77_WINDOW_SIZE, 4) == data[-LZ77_WINDOW_SIZE:][:4]


def test_window_zero_length_copy():
    window = LZ77Window()
    window.push_bytes(b"abc")
    assert window.copy_reference(2, 0) == b""
    assert window.pos == 3


@pytest.mark.parametrize("distance", [0, LZ77_WINDOW_SIZE + 1])
def test_window_rejects_bad_distance(distance):
    window = LZ77Window()
    with pytest.raises(ValueError):
        window.copy_reference(distance, 3)