"""Value types passed between pipeline stages."""

from dataclasses import dataclass
from typing import List, Tuple

from PIL import Image

from picquant.errors import InvalidRequestError, QuantizationError
from picquant.formats import Format

RGBA = Tuple[int, int, int, int]
Palette = List[RGBA]

MAX_PALETTE_SIZE = 256


@dataclass(frozen=True)
class CompressionRequest:
    """One compression call: input bytes plus the knobs that shape the output.

    Fields:
        data: Raw image bytes of unknown container.
        quality: 0-100, lower gives smaller and lossier output.
        resize_percent: Linear scale factor in (0, 1]; 1 means no resize.
    """
    data: bytes
    quality: int = 80
    resize_percent: float = 1.0

    def __post_init__(self) -> None:
        if isinstance(self.quality, bool) or not isinstance(self.quality, int):
            raise InvalidRequestError(f"Quality must be an integer, got {self.quality!r}")
        if not 0 <= self.quality <= 100:
            raise InvalidRequestError(f"Quality must be within 0-100, got {self.quality}")
        if not 0.0 < self.resize_percent <= 1.0:
            raise InvalidRequestError(
                f"Resize factor must be within (0, 1], got {self.resize_percent}"
            )


@dataclass(frozen=True)
class CompressionResult:
    data: bytes
    input_format: Format
    output_format: Format
    original_size: int
    kept_original: bool

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def ratio(self) -> float:
        """Output size as a fraction of the input size."""
        if not self.original_size:
            return 1.0
        return self.size / self.original_size


@dataclass(frozen=True)
class QuantizedImage:
    """Palette plus one palette index per pixel, row-major."""
    width: int
    height: int
    palette: Palette
    indexes: bytes

    def validate(self) -> "QuantizedImage":
        if not self.palette or len(self.palette) > MAX_PALETTE_SIZE:
            raise QuantizationError(f"Palette size {len(self.palette)} outside 1-{MAX_PALETTE_SIZE}")
        if len(self.indexes) != self.width * self.height:
            raise QuantizationError(
                f"Expected {self.width * self.height} indexes, got {len(self.indexes)}"
            )
        if self.indexes and max(self.indexes) >= len(self.palette):
            raise QuantizationError("Index buffer references a color outside the palette")
        return self


@dataclass(frozen=True)
class AnimationFrame:
    image: Image.Image
    duration: int
    index: int
