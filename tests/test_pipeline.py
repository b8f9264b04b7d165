import io
import logging

import pytest
from PIL import Image, ImageSequence, features

from picquant import (
    CompressionRequest,
    CompressOptions,
    DecodeError,
    Format,
    InvalidRequestError,
    QuantizationError,
    UnsupportedFormatError,
    compress,
    compress_request,
    size_guard,
)
from tests.conftest import (
    FailingQuantizer,
    WidePaletteQuantizer,
    banded_image,
    gif_bytes,
    jpeg_bytes,
    noise_image,
    png_bytes,
)


def test_size_guard_prefers_smaller_output():
    assert size_guard(b"abcdef", b"abc") == b"abc"
    assert size_guard(b"abc", b"abc") == b"abc"
    original = b"ab"
    assert size_guard(original, b"abcdef") is original


def test_png_scenario(rgb_png):
    _, data = rgb_png

    out = compress(data, quality=80, resize_percent=1.0)

    assert out.startswith(b"\x89PNG\r\n\x1a\n")
    assert len(out) < len(data)
    decoded = Image.open(io.BytesIO(out))
    decoded.load()
    assert decoded.mode == "P"
    assert decoded.size == (100, 100)
    assert len(decoded.getpalette()) // 3 <= 256


def test_png_transparency_preserved():
    img = Image.new("RGBA", (64, 64), (0, 0, 0, 0))
    img.paste((255, 128, 0, 255), (16, 16, 48, 48))
    img.paste((0, 64, 255, 90), (0, 0, 16, 64))
    data = png_bytes(img)

    result = compress_request(CompressionRequest(data, quality=90))

    assert result.output_format is Format.PNG
    assert not result.kept_original
    decoded = Image.open(io.BytesIO(result.data)).convert("RGBA")
    assert decoded.getpixel((40, 2))[3] == 0
    assert decoded.getpixel((30, 30))[3] == 255
    assert 0 < decoded.getpixel((5, 5))[3] < 255


def test_png_resized_before_quantization(rgb_png):
    _, data = rgb_png
    out = compress(data, quality=80, resize_percent=0.25)
    assert Image.open(io.BytesIO(out)).size == (25, 25)


def test_jpeg_reencoded_as_jpeg():
    data = jpeg_bytes(noise_image(64, 64), quality=100)

    result = compress_request(CompressionRequest(data, quality=50))

    assert result.data.startswith(b"\xff\xd8\xff")
    assert result.output_format is Format.JPEG
    assert result.size < result.original_size
    assert result.ratio < 1.0


@pytest.mark.skipif(not features.check("webp"), reason="Pillow built without WebP")
def test_webp_becomes_jpeg():
    buffer = io.BytesIO()
    noise_image(64, 64, "RGBA").save(buffer, format="WEBP", lossless=True)
    data = buffer.getvalue()

    result = compress_request(CompressionRequest(data, quality=50))

    assert result.input_format is Format.WEBP
    assert result.output_format is Format.JPEG
    assert result.data.startswith(b"\xff\xd8\xff")
    assert Image.open(io.BytesIO(result.data)).mode == "RGB"


def test_gif_compressed_frame_by_frame():
    frames = [noise_image(64, 64, seed=i) for i in range(4)]
    data = gif_bytes(frames, [100, 100, 100, 100], loop=1)

    result = compress_request(CompressionRequest(data, quality=50, resize_percent=0.5))

    assert result.data.startswith(b"GIF8")
    assert result.size <= len(data)
    if not result.kept_original:
        out = Image.open(io.BytesIO(result.data))
        assert out.n_frames == 4
        assert out.info["loop"] == 0
        assert all(f.size == (32, 32) for f in ImageSequence.Iterator(out))


def test_size_guard_returns_original_bytes():
    data = png_bytes(Image.new("RGB", (8, 8), (10, 10, 10)), compress_level=9)

    result = compress_request(CompressionRequest(data, quality=80), quantizer=WidePaletteQuantizer())

    assert result.kept_original
    assert result.data == data
    assert result.output_format is Format.PNG


@pytest.mark.parametrize("quality", [0, 30, 100])
@pytest.mark.parametrize("resize", [1.0, 0.5, 0.01])
def test_output_never_larger_than_input(quality, resize):
    inputs = [
        png_bytes(banded_image(), compress_level=9),
        png_bytes(Image.new("RGBA", (1, 1), (1, 2, 3, 4)), compress_level=9),
        jpeg_bytes(banded_image(32, 32), quality=20),
    ]
    for data in inputs:
        assert len(compress(data, quality, resize)) <= len(data)


def test_unsupported_format():
    with pytest.raises(UnsupportedFormatError):
        compress(bytes(128))


def test_decode_failure():
    with pytest.raises(DecodeError):
        compress(b"\x89PNG\r\n\x1a\n" + b"\x01" * 32)


@pytest.mark.parametrize("quality, resize", [(-1, 1.0), (101, 1.0), (50, 0.0), (50, 1.5), (50, -0.2)])
def test_invalid_request(rgb_png, quality, resize):
    _, data = rgb_png
    with pytest.raises(InvalidRequestError):
        compress(data, quality, resize)
    with pytest.raises(ValueError):
        compress(data, quality, resize)


def test_quantization_failure_is_terminal(rgb_png):
    img, data = rgb_png
    first = img.convert("RGBA").getpixel((0, 0))
    with pytest.raises(QuantizationError):
        compress_request(CompressionRequest(data), quantizer=FailingQuantizer(first))


def test_injected_logger_receives_records(rgb_png, caplog):
    _, data = rgb_png
    logger = logging.getLogger("tests.host")
    with caplog.at_level(logging.DEBUG, logger="tests.host"):
        compress(data, quality=80, logger=logger)
    assert "Detected PNG" in caplog.text


def test_injected_logger_receives_stage_records(rgb_png, caplog):
    _, png = rgb_png
    jpeg = jpeg_bytes(noise_image(16, 16))
    gif = gif_bytes([Image.new("RGB", (8, 8), c) for c in ((255, 0, 0), (0, 0, 255))], [50, 50])
    logger = logging.getLogger("tests.host")
    with caplog.at_level(logging.DEBUG, logger="tests.host"):
        compress(png, quality=80, logger=logger)
        compress(jpeg, quality=80, logger=logger)
        compress(gif, quality=80, logger=logger)
    messages = [r.getMessage() for r in caplog.records if r.name == "tests.host"]
    assert any(m.startswith("Quantized") for m in messages)
    assert any(m.startswith("Encoding JPEG") for m in messages)
    assert any(m.startswith("Frame 2/2 done") for m in messages)
    assert any(m.startswith("Encoded 2 frames") for m in messages)


def test_jpeg_quality_scale_option():
    data = jpeg_bytes(noise_image(48, 48), quality=100)
    low = compress(data, 90, options=CompressOptions(jpeg_quality_scale=0.2))
    high = compress(data, 90, options=CompressOptions(jpeg_quality_scale=1.0))
    assert len(low) < len(high)
