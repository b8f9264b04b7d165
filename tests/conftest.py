import io
import random
import time
from typing import Dict, List, Optional, Tuple

import pytest
from PIL import Image

from picquant.errors import QuantizationError
from picquant.models import QuantizedImage
from picquant.quantizer import Quantizer


def png_bytes(img: Image.Image, compress_level: int = 0) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="PNG", compress_level=compress_level)
    return buffer.getvalue()


def jpeg_bytes(img: Image.Image, quality: int = 100) -> bytes:
    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def gif_bytes(frames: List[Image.Image], durations: List[int], loop: int = 0) -> bytes:
    buffer = io.BytesIO()
    frames[0].save(
        buffer,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=loop,
    )
    return buffer.getvalue()


def banded_image(width: int = 100, height: int = 100, bands: int = 10) -> Image.Image:
    """Opaque RGB image made of a few horizontal color bands."""
    img = Image.new("RGB", (width, height))
    band_h = max(1, height // bands)
    for i in range(bands):
        color = (i * 25 % 256, 255 - i * 20, (i * 60) % 256)
        img.paste(color, (0, i * band_h, width, min(height, (i + 1) * band_h)))
    return img


def noise_image(width: int, height: int, mode: str = "RGB", seed: int = 1) -> Image.Image:
    rng = random.Random(seed)
    channels = len(mode)
    data = bytes(rng.randrange(256) for _ in range(width * height * channels))
    return Image.frombytes(mode, (width, height), data)


class SolidQuantizer(Quantizer):
    """Maps every pixel to the color of the first pixel, optionally slowly."""

    def __init__(self, delays: Optional[Dict[Tuple[int, int, int, int], float]] = None) -> None:
        self.delays = delays or {}
        self.calls = 0

    def quantize(self, rgba, width, height, quality):
        self.calls += 1
        color = tuple(rgba[0:4])
        time.sleep(self.delays.get(color, 0))
        return QuantizedImage(width, height, [color], bytes(width * height))


class FailingQuantizer(Quantizer):
    def __init__(self, fail_on: Tuple[int, int, int, int]) -> None:
        self.fail_on = fail_on

    def quantize(self, rgba, width, height, quality):
        color = tuple(rgba[0:4])
        if color == self.fail_on:
            raise QuantizationError("quality too low")
        return QuantizedImage(width, height, [color], bytes(width * height))


class WidePaletteQuantizer(Quantizer):
    """Always returns a full 256-entry palette with a scrambled index buffer."""

    def quantize(self, rgba, width, height, quality):
        palette = [(i, 255 - i, (i * 7) % 256, 255) for i in range(256)]
        indexes = bytes((i * 37) % 256 for i in range(width * height))
        return QuantizedImage(width, height, palette, indexes)


@pytest.fixture
def rgb_png():
    img = banded_image()
    return img, png_bytes(img)


@pytest.fixture
def four_frame_gif():
    colors = [(255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 0)]
    frames = []
    for i, color in enumerate(colors):
        frame = Image.new("RGB", (40, 30), color)
        frame.paste((0, 0, 0), (i * 5, 5, i * 5 + 10, 15))
        frames.append(frame)
    durations = [50, 60, 70, 80]
    return gif_bytes(frames, durations, loop=3), durations
