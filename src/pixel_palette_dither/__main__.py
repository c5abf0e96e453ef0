"""エントリーポイント: python -m pixel_palette_dither"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from pixel_palette_dither.application.image_converter import ImageConverter
from pixel_palette_dither.domain.color import rgb_to_hex
from pixel_palette_dither.domain.image_model import DitherMode, DitherSettings, ImageSpec
from pixel_palette_dither.infrastructure.image_io import load_buffer, save_buffer
from pixel_palette_dither.infrastructure.palette_io import load_palette, parse_palette

logger = logging.getLogger("pixel_palette_dither")


def parse_cli_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pixel_palette_dither",
        description="Re-quantize an image onto a fixed palette with optional dithering.",
    )
    parser.add_argument("input", type=Path, help="Input image")
    parser.add_argument("output", type=Path, help="Output image")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--palette", nargs="+", metavar="HEX", help="Palette colors, e.g. '#000' '#fff'"
    )
    source.add_argument(
        "--palette-file", type=Path, help="Palette file with one hex color per line"
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in DitherMode],
        default=DitherMode.FLOYD_STEINBERG.value,
        help="Quantization mode.",
    )
    parser.add_argument("--denoise", action="store_true", help="Remove lone pixels afterwards")
    parser.add_argument("--width", type=int, default=None, help="Target width")
    parser.add_argument("--height", type=int, default=None, help="Target height")
    parser.add_argument(
        "--stretch", action="store_true", help="Ignore aspect ratio when resizing"
    )
    parser.add_argument(
        "--lenient-hex",
        action="store_true",
        help="Treat malformed palette entries as black instead of failing",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    if (args.width is None) != (args.height is None):
        parser.error("--width and --height must be given together")
    return args


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_cli_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = DitherSettings(
        mode=DitherMode(args.mode),
        denoise=args.denoise,
        strict_hex=not args.lenient_hex,
    )
    spec = None
    if args.width is not None:
        spec = ImageSpec(args.width, args.height, keep_aspect_ratio=not args.stretch)

    try:
        if args.palette_file is not None:
            palette = load_palette(args.palette_file, settings.strict_hex)
        else:
            palette = parse_palette(args.palette, settings.strict_hex)
        logger.debug("palette: %s", " ".join(rgb_to_hex(c) for c in palette))

        converter = ImageConverter(palette, settings)
        original = load_buffer(args.input)
        result = converter.convert_buffer(original.copy(), spec)
        save_buffer(result, args.output)
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        return 1

    stats = converter.report(original, result)
    logger.info("wrote %s (%dx%d)", args.output, result.width, result.height)
    for color, count in zip(palette, stats["palette_usage"]):
        logger.debug("  %s: %d px", rgb_to_hex(color), count)
    if "mean_delta_e" in stats:
        logger.info("mean ΔE %.2f, PSNR %.2f dB", stats["mean_delta_e"], stats["psnr"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
