"""Still-image branches: indexed PNG and quality-scaled JPEG."""

import io
import logging
from typing import Optional, Tuple

from PIL import Image

from picquant.config import CompressOptions
from picquant.errors import EncodeError
from picquant.indexed import build_indexed_png
from picquant.quantizer import Quantizer, quantize_image

module_logger = logging.getLogger(__name__)


def jpeg_quality(quality: int, scale: float) -> int:
    """Map pipeline quality onto the JPEG scale, clamped to what libjpeg accepts."""
    return max(1, min(100, round(quality * scale)))


def narrow_to_rgb(img: Image.Image, background: Optional[Tuple[int, int, int]] = None) -> Image.Image:
    """Remove alpha so JPEG saves cleanly.

    Without a background the alpha channel is simply dropped; with one,
    transparent areas are composited onto that color.
    """
    if img.mode == "RGB":
        return img
    if background is None:
        return img.convert("RGB")
    if img.mode == "P" or img.mode == "PA" or "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        flattened = Image.new("RGB", img.size, background)
        flattened.paste(img, mask=img.split()[-1])
        return flattened
    return img.convert("RGB")


def encode_jpeg(
    img: Image.Image,
    quality: int,
    options: CompressOptions,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    log = logger or module_logger
    work_img = narrow_to_rgb(img, options.background)
    scaled = jpeg_quality(quality, options.jpeg_quality_scale)
    log.debug("Encoding JPEG at quality %d (requested %d)", scaled, quality)

    buffer = io.BytesIO()
    try:
        work_img.save(buffer, format="JPEG", quality=scaled, optimize=True)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"JPEG encoder failed: {exc}") from exc
    return buffer.getvalue()


def encode_png(
    img: Image.Image,
    quality: int,
    quantizer: Quantizer,
    options: CompressOptions,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    quantized = quantize_image(img, quality, quantizer, logger)
    return build_indexed_png(
        quantized.width,
        quantized.height,
        quantized.palette,
        quantized.indexes,
        compress_level=options.png_compress_level,
    )
