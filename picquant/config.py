"""Tunable defaults for the compression pipeline."""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

DEFAULT_QUALITY = 80
DEFAULT_RESIZE = 1.0
DEFAULT_JPEG_QUALITY_SCALE = 0.75
DEFAULT_PNG_COMPRESS_LEVEL = 9
DEFAULT_DITHERING_LEVEL = 1.0
DEFAULT_MAX_COLORS = 256

NAMED_COLORS = {
    "white": (255, 255, 255),
    "black": (0, 0, 0),
    "gray": (245, 245, 245),
    "red": (255, 0, 0),
}


@dataclass(frozen=True)
class CompressOptions:
    """Encoder settings shared by every branch of one compression call.

    Fields:
        jpeg_quality_scale: Multiplier applied to quality before JPEG encoding.
        png_compress_level: zlib level for indexed PNG output.
        dithering_level: Dithering strength handed to the quantizer, 0-1.
        max_colors: Upper bound on palette entries.
        max_workers: Thread pool size for animation frames; None lets the pool decide.
        background: Color used to flatten alpha for JPEG output; None discards alpha.
    """
    jpeg_quality_scale: float = DEFAULT_JPEG_QUALITY_SCALE
    png_compress_level: int = DEFAULT_PNG_COMPRESS_LEVEL
    dithering_level: float = DEFAULT_DITHERING_LEVEL
    max_colors: int = DEFAULT_MAX_COLORS
    max_workers: Optional[int] = None
    background: Optional[Tuple[int, int, int]] = None

    def __post_init__(self) -> None:
        if self.jpeg_quality_scale <= 0:
            raise ValueError("jpeg_quality_scale must be positive")
        if not 0 <= self.png_compress_level <= 9:
            raise ValueError("png_compress_level must be within 0-9")
        if not 0.0 <= self.dithering_level <= 1.0:
            raise ValueError("dithering_level must be within 0-1")
        if not 2 <= self.max_colors <= 256:
            raise ValueError("max_colors must be within 2-256")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

    def with_overrides(self, **changes) -> "CompressOptions":
        return replace(self, **changes)


def parse_color(value: str) -> Tuple[int, int, int]:
    """Convert common color strings into an RGB tuple."""
    value = value.strip().lower()
    if value.startswith("#"):
        value = value.lstrip("#")
        if len(value) == 3:
            value = "".join(ch * 2 for ch in value)
        if len(value) != 6:
            raise ValueError("Hex color must be 3 or 6 characters.")
        try:
            return tuple(int(value[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise ValueError(f"Invalid hex color '#{value}'.") from None
    if value in NAMED_COLORS:
        return NAMED_COLORS[value]
    raise ValueError(f"Unsupported color '{value}'. Use hex or a basic name.")
