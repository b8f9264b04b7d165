"""Per-frame quantization for animated GIF input.

Every frame is resized and quantized against its own palette independently of
its neighbours, which lets frames run on a thread pool.  Results are slotted
back by source index so the output order never depends on completion order.

Frames are written one at a time through Pillow's GIF header/frame helpers, each
with its own local color table.  ``Image.save(save_all=True)`` is not used
because it folds identical consecutive frames into one.
"""

import io
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import List, Optional, Tuple

from PIL import GifImagePlugin, Image, ImageSequence

from picquant.errors import EncodeError
from picquant.indexed import reconstruct_image, split_palette
from picquant.models import AnimationFrame, QuantizedImage
from picquant.quantizer import Quantizer, quantize_image
from picquant.resize import resize_image

module_logger = logging.getLogger(__name__)

DEFAULT_FRAME_DURATION = 100
GIF_TRAILER = b";"
# Palette entries below this alpha become the frame's single transparent index.
GIF_ALPHA_THRESHOLD = 128
# Restore to background, so transparent pixels never show the previous frame.
GIF_DISPOSAL = 2


@dataclass(frozen=True)
class EncodedFrame:
    """One quantized output frame with its own palette and source timing."""
    quantized: QuantizedImage
    duration: int
    index: int

    def to_image(self) -> Image.Image:
        """Dense RGBA rendering of the frame."""
        q = self.quantized
        return reconstruct_image(q.width, q.height, q.palette, q.indexes)


def decode_frames(img: Image.Image) -> List[AnimationFrame]:
    """Copy every frame out as RGBA along with its own display duration."""
    default = img.info.get("duration", DEFAULT_FRAME_DURATION)
    frames = []
    for index, frame in enumerate(ImageSequence.Iterator(img)):
        duration = frame.info.get("duration", default)
        frames.append(AnimationFrame(image=frame.convert("RGBA"), duration=duration, index=index))
    return frames


def process_frame(
    frame: AnimationFrame,
    resize_factor: float,
    quality: int,
    quantizer: Quantizer,
    logger: Optional[logging.Logger] = None,
) -> EncodedFrame:
    resized = resize_image(frame.image, resize_factor)
    quantized = quantize_image(resized, quality, quantizer, logger)
    return EncodedFrame(quantized=quantized, duration=frame.duration, index=frame.index)


def process_frames(
    frames: List[AnimationFrame],
    resize_factor: float,
    quality: int,
    quantizer: Quantizer,
    max_workers: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> List[EncodedFrame]:
    """Run process_frame over all frames concurrently, returned in source order.

    Each result goes into the slot named by its frame's ``index``, which must
    cover 0..n-1 exactly once.  The first failing frame cancels whatever has
    not started yet and its error is re-raised; no partial animation is
    produced.
    """
    log = logger or module_logger
    if sorted(frame.index for frame in frames) != list(range(len(frames))):
        raise EncodeError("Frame indexes must cover 0..n-1 exactly once")

    results: List[Optional[EncodedFrame]] = [None] * len(frames)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_frame = {
            executor.submit(process_frame, frame, resize_factor, quality, quantizer, logger): frame
            for frame in frames
        }
        try:
            for future in as_completed(future_to_frame):
                index = future_to_frame[future].index
                results[index] = future.result()
                log.debug("Frame %d/%d done", index + 1, len(frames))
        except BaseException:
            for pending in future_to_frame:
                pending.cancel()
            raise
    return results


def gif_frame(quantized: QuantizedImage) -> Tuple[Image.Image, Optional[int]]:
    """Indexed Pillow frame plus its transparent index, if any.

    GIF has one transparent index per frame, so every palette entry under the
    alpha threshold is folded onto the first such entry.
    """
    rgb_table, alpha_table = split_palette(quantized.palette)
    transparent = [i for i, alpha in enumerate(alpha_table) if alpha < GIF_ALPHA_THRESHOLD]
    indexes = quantized.indexes
    transparency = None
    if transparent:
        transparency = transparent[0]
        folded = set(transparent)
        table = bytes(transparency if i in folded else i for i in range(256))
        indexes = indexes.translate(table)

    img = Image.frombytes("P", (quantized.width, quantized.height), bytes(indexes))
    img.putpalette(rgb_table)
    return img, transparency


def write_gif(frames: List[EncodedFrame], loop: int = 0) -> bytes:
    """Write every frame, in order, as an animated GIF with a NETSCAPE loop block."""
    if not frames:
        raise EncodeError("Animation has no frames")

    indexed = [gif_frame(frame.quantized) for frame in frames]
    buffer = io.BytesIO()
    try:
        header, _ = GifImagePlugin.getheader(indexed[0][0].copy(), info={"loop": loop})
        for block in header:
            buffer.write(block)
        for frame, (img, transparency) in zip(frames, indexed):
            params = {
                "duration": frame.duration,
                "disposal": GIF_DISPOSAL,
                "include_color_table": True,
            }
            if transparency is not None:
                params["transparency"] = transparency
            for block in GifImagePlugin.getdata(img, **params):
                buffer.write(block)
        buffer.write(GIF_TRAILER)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"GIF encoder failed: {exc}") from exc
    return buffer.getvalue()


def encode_animation(
    frames: List[AnimationFrame],
    resize_factor: float,
    quality: int,
    quantizer: Quantizer,
    max_workers: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    """Quantize each frame independently and write an infinitely looping GIF."""
    log = logger or module_logger
    if not frames:
        raise EncodeError("Animation has no frames")

    encoded = process_frames(frames, resize_factor, quality, quantizer, max_workers, logger)
    data = write_gif(encoded, loop=0)
    log.debug("Encoded %d frames", len(encoded))
    return data
