"""Command-line interface for rasterdither.

Writes the greyscale, quantised and dithered stages of an image as PNG files,
with an optional raw single-channel dump of the dithered result.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from rasterdither.core.dither import KernelName


def _package_version() -> str:
    try:
        return version("rasterdither")
    except PackageNotFoundError:
        return "unknown"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rasterdither",
        description="Greyscale, quantise and error-diffusion dither raster images.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {_package_version()}"
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- dither subcommand ---
    dither = subparsers.add_parser(
        "dither",
        help="Dither an image file.",
    )
    dither.add_argument("input", help="Input image path (PNG, JPEG, ...).")
    dither.add_argument(
        "-o", "--output-dir",
        help="Directory for output files. Defaults to the input's directory.",
    )
    dither.add_argument(
        "--kernel",
        choices=[k.value for k in KernelName],
        default=KernelName.FLOYD_STEINBERG.value,
        help="Diffusion kernel (default: floyd-steinberg).",
    )
    dither.add_argument(
        "--levels",
        type=int,
        default=2,
        help="Output levels per channel, 2 = black/white (default: 2).",
    )
    dither.add_argument(
        "--threshold",
        type=float,
        default=0.5,
        help="Black/white threshold when --levels is 2 (default: 0.5).",
    )
    dither.add_argument(
        "--blur",
        type=int,
        default=0,
        help="Box blur radius applied before dithering (default: 0, off).",
    )
    dither.add_argument("--flip-h", action="store_true", help="Mirror left-right.")
    dither.add_argument("--flip-v", action="store_true", help="Mirror top-bottom.")
    dither.add_argument(
        "--normalize",
        action="store_true",
        help="Rescale samples so the brightest becomes 1.0.",
    )
    dither.add_argument(
        "--raw-out",
        help="Also write the dithered image as raw 8-bit grey samples to this path.",
    )
    dither.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly).",
    )
    dither.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    dither.add_argument(
        "--debug",
        action="store_true",
        help="Show stack traces on error (with --json).",
    )

    return parser


def configure_logging(verbose: bool = False) -> logging.Logger:
    level = "DEBUG" if verbose else os.getenv("RASTERDITHER_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return logging.getLogger("rasterdither")


def _output_paths(input_path: Path, output_dir: Path) -> dict[str, Path]:
    """Generate output paths for each stage from the input's stem."""
    stem = input_path.stem
    return {
        stage: output_dir / f"{stem}_{stage}.png"
        for stage in ("greyscale", "quantised", "dithered")
    }


def _json_error(message: str, code: str) -> None:
    """Print JSON error to stderr and exit with code 1."""
    err = {"status": "error", "error": message, "code": code}
    print(json.dumps(err), file=sys.stderr)
    sys.exit(1)


def _fail(args: argparse.Namespace, message: str, code: str) -> None:
    if args.json:
        if args.debug:
            import traceback
            traceback.print_exc(file=sys.stderr)
        _json_error(message, code)
    else:
        print(f"Error: {message}", file=sys.stderr)
        sys.exit(1)


def _run_dither(args: argparse.Namespace) -> None:
    """Run the dither pipeline on one file."""
    from rasterdither.core.codec import load_image, save_image
    from rasterdither.core.errors import DecodeError
    from rasterdither.core.processor import Settings, process_image
    from rasterdither.utils.sink import save_greyscale

    logger = configure_logging(args.verbose)

    input_path = Path(args.input).resolve()
    if not input_path.exists():
        _fail(args, f"File not found: {input_path}", "FILE_NOT_FOUND")

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent

    try:
        source = load_image(input_path)
    except DecodeError as e:
        _fail(args, str(e), "DECODE_ERROR")

    logger.info("Loaded %s: %r", input_path, source)

    try:
        settings = Settings(
            kernel=KernelName(args.kernel),
            levels=args.levels,
            threshold=args.threshold,
            blur=args.blur,
            flip_horizontal=args.flip_h,
            flip_vertical=args.flip_v,
            normalize=args.normalize,
        )
        result = process_image(source, settings)

        output_dir.mkdir(parents=True, exist_ok=True)
        paths = _output_paths(input_path, output_dir)
        save_image(result.greyscale, paths["greyscale"])
        save_image(result.quantised, paths["quantised"])
        save_image(result.dithered, paths["dithered"])

        raw_path = None
        if args.raw_out:
            raw_path = save_greyscale(result.dithered, Path(args.raw_out).resolve())
    except (ValueError, ArithmeticError, OSError) as e:
        _fail(args, str(e), "PROCESSING_ERROR")

    if not args.json:
        for path in paths.values():
            print(f"Saved {path}", file=sys.stderr)
        if raw_path is not None:
            print(f"Saved {raw_path}", file=sys.stderr)
        return

    output = {
        "status": "success",
        "input": str(input_path),
        "outputs": {stage: str(path) for stage, path in paths.items()},
        "raw": str(raw_path) if raw_path is not None else None,
        "settings": {
            "kernel": settings.kernel.value,
            "levels": settings.levels,
            "threshold": settings.threshold,
            "blur": settings.blur,
            "flip_h": settings.flip_horizontal,
            "flip_v": settings.flip_vertical,
            "normalize": settings.normalize,
            "hash": settings.hash(),
        },
        "metadata": {
            "width": source.width,
            "height": source.height,
            "channels": source.channels,
        },
    }
    print(json.dumps(output, indent=2))


def main(argv: list[str] | None = None) -> None:
    """Main entry point.

    Routing:
      rasterdither dither <file> [opts]  → dither subcommand
      rasterdither                       → help
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command == "dither":
        _run_dither(args)
    else:
        parser.print_help()
