"""Top-level compression: detect, resize, encode per format, then size-guard."""

import logging
from typing import Optional

from picquant.animation import decode_frames, encode_animation
from picquant.config import DEFAULT_QUALITY, DEFAULT_RESIZE, CompressOptions
from picquant.encoders import encode_jpeg, encode_png
from picquant.errors import UnsupportedFormatError
from picquant.formats import Format, detect_format, open_image
from picquant.log import get_logger
from picquant.models import CompressionRequest, CompressionResult
from picquant.quantizer import ImageQuantQuantizer, Quantizer
from picquant.resize import resize_image


def size_guard(original: bytes, compressed: bytes) -> bytes:
    """Never hand back more bytes than we were given."""
    if len(compressed) > len(original):
        return original
    return compressed


def compress_request(
    request: CompressionRequest,
    options: Optional[CompressOptions] = None,
    logger: Optional[logging.Logger] = None,
    quantizer: Optional[Quantizer] = None,
) -> CompressionResult:
    options = options or CompressOptions()
    log = get_logger(logger)
    if quantizer is None:
        quantizer = ImageQuantQuantizer(options.dithering_level, options.max_colors)

    fmt = detect_format(request.data)
    log.debug("Detected %s input (%d bytes)", fmt.name, len(request.data))
    img = open_image(request.data)

    if fmt is Format.GIF:
        # Animations are resized frame by frame.
        frames = decode_frames(img)
        log.debug("Decoded %d frames", len(frames))
        output = encode_animation(
            frames, request.resize_percent, request.quality, quantizer, options.max_workers, log
        )
    else:
        img = resize_image(img, request.resize_percent)
        log.debug("Working size %dx%d", img.width, img.height)
        if fmt is Format.PNG:
            output = encode_png(img, request.quality, quantizer, options, log)
        elif fmt in (Format.JPEG, Format.WEBP):
            output = encode_jpeg(img, request.quality, options, log)
        else:
            raise UnsupportedFormatError(f"No encoder for {fmt.name}")

    data = size_guard(request.data, output)
    kept_original = len(output) > len(request.data)
    if kept_original:
        log.info(
            "Compressed output (%d bytes) larger than input (%d bytes); keeping original",
            len(output),
            len(request.data),
        )
    return CompressionResult(
        data=data,
        input_format=fmt,
        output_format=fmt if kept_original else fmt.output_format,
        original_size=len(request.data),
        kept_original=kept_original,
    )


def compress(
    data: bytes,
    quality: int = DEFAULT_QUALITY,
    resize_percent: float = DEFAULT_RESIZE,
    options: Optional[CompressOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> bytes:
    """Compress image bytes, returning output no larger than the input.

    Args:
        data: PNG, JPEG, WebP or GIF bytes.
        quality: 0-100, lower gives smaller and lossier output.
        resize_percent: Linear scale factor in (0, 1]; 1 keeps dimensions.
        options: Encoder settings; defaults apply when omitted.
        logger: Destination for diagnostic records; the package logger otherwise.

    Returns:
        Indexed PNG for PNG input, JPEG for JPEG/WebP input, looping GIF for
        GIF input, or the original bytes if re-encoding did not shrink them.

    Raises:
        UnsupportedFormatError: if the container is not recognized.
        DecodeError: if the bytes cannot be decoded.
        QuantizationError: if the quantizer rejects an image or frame.
        EncodeError: if the output encoder rejects the data.
        InvalidRequestError: if quality or resize_percent is out of range.
    """
    request = CompressionRequest(data=bytes(data), quality=quality, resize_percent=resize_percent)
    return compress_request(request, options=options, logger=logger).data
