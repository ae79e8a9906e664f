# crazypng

A small, dependency-free PNG decoder. It reads a PNG file, checks its
signature and chunk layout, inflates the image data with its own zlib/DEFLATE
implementation, undoes the scanline filters and hands you the image as 8-bit
RGBA pixels.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Using it

```python
from crazypng.png import png_open

png = png_open("picture.png")
print(png.width, png.height)
first = png.pixels[0]
print(first.r, first.g, first.b, first.a)
```

`png_open` reads a file by name. `parse_png` does the same for bytes already
in memory:

```python
from crazypng.png import parse_png

with open("picture.png", "rb") as fh:
    png = parse_png(fh.read())
```

The result is a `crazypng.png.Png` with:

- `header`: a `crazypng.header.ImageHeader` (width, height, bit depth,
  colour type, compression, filter and interlace fields of the IHDR chunk);
- `palette`: the PLTE entries as opaque `Pixel` values, or an empty tuple;
- `pixels`: a tuple of `crazypng.header.Pixel` (`r`, `g`, `b`, `a`), row by
  row, `width * height` entries long;
- `width` and `height` as shortcuts to the header fields.

### Errors

Every error the package raises derives from `crazypng.utils.CrazyPngError`.

- `crazypng.header.PngError` is raised for a wrong signature, a truncated or
  misnamed chunk, a first chunk that is not IHDR, an IHDR of the wrong size,
  an invalid bit depth and colour type pair, a misplaced or invalid PLTE
  chunk, a missing PLTE for a palette image, no IDAT chunk, too little image
  data, an unknown filter type, or a palette index out of range.
- `crazypng.inflate.InflateError` is raised when the compressed image data is
  not a valid zlib/DEFLATE stream.
- A file that cannot be opened raises the usual `OSError`.

### What is supported

- Colour types: grayscale, RGB, palette, grayscale with alpha, and RGBA
  (`crazypng.header.ColorType`).
- Bit depths of 1, 2, 4, 8 and 16, wherever PNG allows them. Grayscale
  samples narrower than 8 bits are scaled to the range 0–255; 16-bit samples
  keep their most significant byte.
- All five scanline filters: none, sub, up, average and Paeth
  (`crazypng.filters`).
- IHDR, PLTE, IDAT and IEND are interpreted; other chunks are read and
  skipped.

### What it does not do

- It only decodes: there is no PNG writer and no command-line tool.
- Interlaced (Adam7) images are not de-interlaced; their data is read as if
  the image were not interlaced.
- Chunk CRCs and the zlib Adler-32 checksum are not verified.
- Transparency (tRNS), gamma and other ancillary chunks have no effect on the
  pixels.

### Lower-level pieces

Each stage can also be used on its own:

- `crazypng.inflate.inflate(data)` decompresses a zlib stream to `bytes`
  (stored, fixed-Huffman and dynamic-Huffman blocks).
  `check_zlib_header`, `read_dynamic_tables` and `LZ77Window` are exposed too.
- `crazypng.bitstream.BitStream` reads a byte string bit by bit,
  least-significant bit first, as DEFLATE requires; reading past the end
  raises `BitStreamError`.
- `crazypng.huffman` builds canonical Huffman codes from code lengths
  (`assign_huffman_codes`, `table_from_lengths`) and provides the fixed
  DEFLATE tables (`fixed_literal_table`, `fixed_distance_table`);
  `HuffmanTable.decode(stream)` reads one symbol.
- `crazypng.filters.unfilter(data, header, palette)` turns inflated scanlines
  into a list of `Pixel` values; `filter_sub`, `filter_up`, `filter_average`,
  `filter_paeth`, `paeth_predictor` and `unpack_scanline` work on single
  lines.
- `crazypng.png.read_chunk(stream)` reads one chunk from a binary stream, and
  `parse_palette` decodes a PLTE chunk.
- `crazypng.utils` holds `swap_endian16`, `swap_endian32` and
  `reverse_bits`.