"""Indexed-color serialization and dense RGBA reconstruction.

A quantized image is a palette of at most 256 RGBA entries plus one byte per
pixel.  PNG stores it natively: the palette is split into an RGB table (PLTE)
and a parallel alpha table (tRNS), so per-color transparency survives without a
per-pixel alpha channel.  Containers without an indexed model (GIF frames fed
through Pillow's frame writer) get the palette expanded back into RGBA.
"""

import io
from typing import Tuple

from PIL import Image

from picquant.config import DEFAULT_PNG_COMPRESS_LEVEL
from picquant.errors import EncodeError
from picquant.models import MAX_PALETTE_SIZE, Palette


def _check_indexes(width: int, height: int, palette: Palette, indexes: bytes) -> None:
    if width <= 0 or height <= 0:
        raise EncodeError(f"Invalid dimensions {width}x{height}")
    if not palette or len(palette) > MAX_PALETTE_SIZE:
        raise EncodeError(f"Palette size {len(palette)} outside 1-{MAX_PALETTE_SIZE}")
    if len(indexes) != width * height:
        raise EncodeError(f"Expected {width * height} indexes, got {len(indexes)}")
    highest = max(indexes)
    if highest >= len(palette):
        raise EncodeError(f"Index {highest} out of bounds for palette of {len(palette)}")


def split_palette(palette: Palette) -> Tuple[bytes, bytes]:
    """Return (rgb_table, alpha_table), both in palette order."""
    rgb = bytearray()
    alpha = bytearray()
    for r, g, b, a in palette:
        rgb.extend((r, g, b))
        alpha.append(a)
    if len(rgb) // 3 != len(alpha) or len(alpha) != len(palette):
        raise EncodeError("RGB and alpha tables out of sync with palette")
    return bytes(rgb), bytes(alpha)


def build_indexed_png(
    width: int,
    height: int,
    palette: Palette,
    indexes: bytes,
    compress_level: int = DEFAULT_PNG_COMPRESS_LEVEL,
) -> bytes:
    """Serialize palette + indexes as an indexed PNG with PLTE and tRNS chunks.

    Palettes of 16 colors or fewer are bit-packed (1, 2 or 4 bits per pixel)
    by Pillow; only larger palettes are stored at 8 bits.  Decoders unpack both
    to one index per pixel, but the raw IDAT data is not always one byte each.
    """
    _check_indexes(width, height, palette, indexes)
    rgb_table, alpha_table = split_palette(palette)

    img = Image.frombytes("P", (width, height), bytes(indexes))
    img.putpalette(rgb_table)

    # Pillow skips row filtering for palette rasters, so only zlib effort is set.
    buffer = io.BytesIO()
    try:
        img.save(buffer, format="PNG", transparency=alpha_table, compress_level=compress_level)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"PNG encoder rejected indexed data: {exc}") from exc
    return buffer.getvalue()


def reconstruct_rgba(width: int, height: int, palette: Palette, indexes: bytes) -> bytes:
    """Expand each index into its palette entry's four channel bytes."""
    _check_indexes(width, height, palette, indexes)
    entries = [bytes(color) for color in palette]
    return b"".join([entries[i] for i in indexes])


def reconstruct_image(width: int, height: int, palette: Palette, indexes: bytes) -> Image.Image:
    return Image.frombytes("RGBA", (width, height), reconstruct_rgba(width, height, palette, indexes))
