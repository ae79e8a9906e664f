"""A self-contained PNG decoder with its own zlib/DEFLATE inflater, producing RGBA pixels."""

__version__ = "0.1.0"
__all__ = ["bitstream", "filters", "header", "huffman", "inflate", "png", "utils"]