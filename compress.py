#!/usr/bin/env python3
"""
Simple CLI to recompress an image through palette quantization.

Usage examples:
  python compress.py banner.png --quality 60
  python compress.py photo.webp -o photo.jpg --quality 70 --resize 0.5
  python compress.py anim.gif --resize 0.5 --workers 4 -v
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from picquant.config import (
    DEFAULT_JPEG_QUALITY_SCALE,
    DEFAULT_QUALITY,
    DEFAULT_RESIZE,
    CompressOptions,
    parse_color,
)
from picquant.errors import CompressionError
from picquant.log import configure_logging
from picquant.models import CompressionRequest, CompressionResult
from picquant.pipeline import compress_request


def color_arg(value: str) -> Tuple[int, int, int]:
    try:
        return parse_color(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def quality_arg(value: str) -> int:
    quality = int(value)
    if not 0 <= quality <= 100:
        raise argparse.ArgumentTypeError("Quality must be within 0-100.")
    return quality


def resize_arg(value: str) -> float:
    factor = float(value)
    if not 0.0 < factor <= 1.0:
        raise argparse.ArgumentTypeError("Resize factor must be within (0, 1].")
    return factor


def default_output_path(input_path: Path, result: CompressionResult) -> Path:
    suffix = result.output_format.extension
    return input_path.with_name(f"{input_path.stem}_compressed.{suffix}")


def compress_file(
    input_path: Path,
    output_path: Optional[Path],
    quality: int,
    resize: float,
    options: CompressOptions,
) -> Tuple[Path, CompressionResult]:
    """Compress one file on disk and write the result next to it (or to output_path)."""
    request = CompressionRequest(data=input_path.read_bytes(), quality=quality, resize_percent=resize)
    result = compress_request(request, options=options)
    if output_path is None:
        output_path = default_output_path(input_path, result)
    output_path.write_bytes(result.data)
    return output_path, result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compress an image with palette quantization (PNG/GIF) or JPEG re-encoding."
    )
    parser.add_argument("input", type=Path, help="Input image path (PNG, JPEG, WebP or GIF).")
    parser.add_argument("-o", "--output", type=Path, help="Output path. Defaults to *_compressed.<ext>.")
    parser.add_argument(
        "--quality",
        type=quality_arg,
        default=DEFAULT_QUALITY,
        help=f"Quality 0-100, lower is smaller. Default: {DEFAULT_QUALITY}.",
    )
    parser.add_argument(
        "--resize",
        type=resize_arg,
        default=DEFAULT_RESIZE,
        help="Linear scale factor in (0, 1]. Default: 1.0 (no resize).",
    )
    parser.add_argument(
        "--jpeg-scale",
        type=float,
        default=DEFAULT_JPEG_QUALITY_SCALE,
        help=f"Multiplier applied to quality for JPEG output. Default: {DEFAULT_JPEG_QUALITY_SCALE}.",
    )
    parser.add_argument("--workers", type=int, help="Threads used for GIF frames. Default: automatic.")
    parser.add_argument(
        "--bg-color",
        type=color_arg,
        help="Flatten transparency onto this color for JPEG output instead of dropping alpha. "
        "Accepts hex (#fff) or names (white, black, gray, red).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log pipeline steps to stderr.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        options = CompressOptions(
            jpeg_quality_scale=args.jpeg_scale,
            max_workers=args.workers,
            background=args.bg_color,
        )
        output_path, result = compress_file(
            input_path=args.input,
            output_path=args.output,
            quality=args.quality,
            resize=args.resize,
            options=options,
        )
    except (CompressionError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    note = " (original kept)" if result.kept_original else ""
    print(
        f"Saved {output_path} | {result.size / 1024:.1f} KB | format={result.output_format.name} "
        f"| quality={args.quality}{note}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
