"""Container sniffing and decoding."""

import enum
import io

from PIL import Image, UnidentifiedImageError

from picquant.errors import DecodeError, UnsupportedFormatError

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")


class Format(enum.Enum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    GIF = "gif"

    @property
    def output_format(self) -> "Format":
        """Container written for this input. WebP is re-encoded as JPEG."""
        if self is Format.WEBP:
            return Format.JPEG
        return self

    @property
    def extension(self) -> str:
        return "jpg" if self is Format.JPEG else self.value


def detect_format(data: bytes) -> Format:
    """Identify the container from its magic bytes, ignoring any name hints."""
    if data.startswith(PNG_SIGNATURE):
        return Format.PNG
    if data.startswith(JPEG_SIGNATURE):
        return Format.JPEG
    if data[:6] in GIF_SIGNATURES:
        return Format.GIF
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return Format.WEBP
    raise UnsupportedFormatError("Unsupported image format")


def open_image(data: bytes) -> Image.Image:
    """Decode bytes into a Pillow image, forcing the pixel data to load."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except Image.DecompressionBombError as exc:
        raise DecodeError(f"Image too large to decode: {exc}") from exc
    except UnidentifiedImageError as exc:
        raise DecodeError("Input is not a recognizable image") from exc
    except (OSError, EOFError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc
    return img
