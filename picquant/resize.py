"""Nearest-neighbor downscaling ahead of quantization."""

import math
from typing import Tuple

from PIL import Image


def scaled_size(size: Tuple[int, int], factor: float) -> Tuple[int, int]:
    """Floor each dimension by factor, never going below one pixel."""
    w, h = size
    return max(1, math.floor(w * factor)), max(1, math.floor(h * factor))


def resize_image(img: Image.Image, factor: float) -> Image.Image:
    """Scale by a linear factor; factor 1.0 returns the same image object."""
    if factor == 1.0:
        return img
    new_size = scaled_size(img.size, factor)
    if new_size == img.size:
        return img
    return img.resize(new_size, Image.NEAREST)
