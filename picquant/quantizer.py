"""Palette quantization through libimagequant."""

import logging
from typing import Optional

import imagequant
from PIL import Image

from picquant.config import DEFAULT_DITHERING_LEVEL, DEFAULT_MAX_COLORS
from picquant.errors import QuantizationError
from picquant.models import Palette, QuantizedImage

module_logger = logging.getLogger(__name__)


class Quantizer:
    """Turns a dense RGBA raster into a palette and one index per pixel."""

    def quantize(self, rgba: bytes, width: int, height: int, quality: int) -> QuantizedImage:
        raise NotImplementedError


class ImageQuantQuantizer(Quantizer):
    """libimagequant with quality used only as the upper bound (min=0, max=quality)."""

    def __init__(
        self,
        dithering_level: float = DEFAULT_DITHERING_LEVEL,
        max_colors: int = DEFAULT_MAX_COLORS,
    ) -> None:
        self.dithering_level = dithering_level
        self.max_colors = max_colors

    def quantize(self, rgba: bytes, width: int, height: int, quality: int) -> QuantizedImage:
        if width <= 0 or height <= 0:
            raise QuantizationError(f"Cannot quantize a {width}x{height} raster")
        if len(rgba) != width * height * 4:
            raise QuantizationError(
                f"Expected {width * height * 4} RGBA bytes, got {len(rgba)}"
            )
        try:
            indexes, flat_palette = imagequant.quantize_raw_rgba_bytes(
                rgba,
                width,
                height,
                dithering_level=self.dithering_level,
                max_colors=self.max_colors,
                min_quality=0,
                max_quality=quality,
            )
        except (RuntimeError, ValueError, MemoryError) as exc:
            raise QuantizationError(f"Quantization failed: {exc}") from exc

        palette = split_flat_palette(flat_palette)
        return QuantizedImage(width, height, palette, bytes(indexes)).validate()


def split_flat_palette(flat) -> Palette:
    """[r, g, b, a, r, g, b, a, ...] -> [(r, g, b, a), ...]"""
    if len(flat) % 4:
        raise QuantizationError(f"Palette length {len(flat)} is not a multiple of 4")
    values = list(flat)
    return [tuple(values[i : i + 4]) for i in range(0, len(values), 4)]


def quantize_image(
    img: Image.Image,
    quality: int,
    quantizer: Quantizer,
    logger: Optional[logging.Logger] = None,
) -> QuantizedImage:
    """Quantize any Pillow image; non-RGBA modes are widened to RGBA first."""
    log = logger or module_logger
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    width, height = img.size
    result = quantizer.quantize(img.tobytes(), width, height, quality).validate()
    log.debug("Quantized %dx%d to %d colors", width, height, len(result.palette))
    return result
