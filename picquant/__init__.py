"""Quantization-driven image recompression for PNG, JPEG, WebP and GIF."""

from picquant.config import CompressOptions
from picquant.errors import (
    CompressionError,
    DecodeError,
    EncodeError,
    InvalidRequestError,
    QuantizationError,
    UnsupportedFormatError,
)
from picquant.formats import Format, detect_format
from picquant.models import CompressionRequest, CompressionResult
from picquant.pipeline import compress, compress_request, size_guard

__version__ = "0.1.0"

__all__ = [
    "CompressOptions",
    "CompressionError",
    "CompressionRequest",
    "CompressionResult",
    "DecodeError",
    "EncodeError",
    "Format",
    "InvalidRequestError",
    "QuantizationError",
    "UnsupportedFormatError",
    "compress",
    "compress_request",
    "detect_format",
    "size_guard",
]
