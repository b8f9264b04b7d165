"""Exceptions raised by the compression pipeline."""


class CompressionError(Exception):
    """Base class for every terminal pipeline failure."""


class DecodeError(CompressionError):
    """Input bytes could not be parsed as an image."""


class UnsupportedFormatError(CompressionError):
    """Container is not one of PNG, JPEG, WebP or GIF."""


class QuantizationError(CompressionError):
    """The quantization engine rejected the raster or the quality bound."""


class EncodeError(CompressionError):
    """The target encoder rejected the assembled data."""


class InvalidRequestError(CompressionError, ValueError):
    """Quality or resize factor outside the accepted range."""
