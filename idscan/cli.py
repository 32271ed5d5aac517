"""Command-line interface for the ID card image pipeline.

Provides subcommands for quality scoring, crop suggestion, OCR
preparation, perspective correction, manual adjustments and batch
analysis of image folders with CSV export.
"""

import argparse
import csv
import json
import sys
from pathlib import Path

from idscan.batch import BatchSummary, analyze_folder, find_images
from idscan.codec import ImageCodec
from idscan.preprocessing.adjust import adjust_brightness_contrast, apply_transformations
from idscan.preprocessing.autocrop import suggest_crop
from idscan.preprocessing.perspective import Quadrilateral, correct_perspective
from idscan.preprocessing.pipeline import PreprocessingPipeline, make_thumbnail
from idscan.quality.analyzer import analyze_image_quality
from idscan.utils.config import AppConfig, load_config
from idscan.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "overall_score",
    "error",
]


def _emit_json(payload: dict[str, object], output: Path | None) -> None:
    """Print a JSON payload or write it to a file."""
    output_str = json.dumps(payload, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def _parse_corners(value: str) -> Quadrilateral:
    """Parse ``x1,y1,x2,y2,x3,y3,x4,y4`` (TL, TR, BR, BL)."""
    try:
        coords = [float(part) for part in value.split(",")]
        return Quadrilateral.from_sequence(coords)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            "corners must be eight comma-separated numbers: TL, TR, BR, BL"
        ) from exc


def _write_csv(summary: BatchSummary, output_path: Path) -> None:
    """Write batch analysis rows to a CSV file.

    Args:
        summary: Batch results.
        output_path: Path for the output CSV file.
    """
    rows = [r.to_row() for r in summary.results]
    if not rows:
        return

    all_keys: set[str] = set()
    for row in rows:
        all_keys.update(row.keys())

    metric_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + metric_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: BatchSummary, output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Analysis Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary.total}")
    print(f"Successful: {summary.successful}")
    print(f"Failed:     {summary.failed}")
    print(f"Output:     {output_csv}")


def run_quality(args: argparse.Namespace, config: AppConfig, codec: ImageCodec) -> None:
    quality_config = config.quality.model_copy(
        update={
            k: v
            for k, v in {
                "blur_threshold": args.blur_threshold,
                "focus_threshold": args.focus_threshold,
            }.items()
            if v is not None
        }
    )
    report = analyze_image_quality(codec.load(args.file), quality_config)
    _emit_json(report.to_dict(), args.output)


def run_crop(args: argparse.Namespace, config: AppConfig, codec: ImageCodec) -> None:
    image = codec.load(args.file)
    suggestion = suggest_crop(image, config.autocrop)
    if suggestion is None:
        print("No crop suggestion found")
        return
    print(json.dumps(suggestion.to_dict()))
    if args.output:
        codec.save(suggestion.apply(image), args.output, config.output.export_quality)


def run_enhance(args: argparse.Namespace, config: AppConfig, codec: ImageCodec) -> None:
    image = codec.load(args.file)
    pipeline = PreprocessingPipeline(config.preprocessing)
    result = pipeline.process(image)
    codec.save(result, args.output, config.output.export_quality)
    if args.thumbnail:
        thumbnail = make_thumbnail(result, config.output.thumbnail_width)
        codec.save(thumbnail, args.thumbnail, config.output.thumbnail_quality)


def run_correct(args: argparse.Namespace, config: AppConfig, codec: ImageCodec) -> None:
    image = codec.load(args.file)
    result = correct_perspective(image, args.corners)
    codec.save(result, args.output, config.output.export_quality)


def run_adjust(args: argparse.Namespace, config: AppConfig, codec: ImageCodec) -> None:
    image = codec.load(args.file)
    result = adjust_brightness_contrast(image, args.brightness, args.contrast)
    result = apply_transformations(result, args.flip_h, args.flip_v, args.rotate)
    codec.save(result, args.output, config.output.export_quality)


def run_batch(args: argparse.Namespace, config: AppConfig, codec: ImageCodec) -> None:
    files = find_images(args.input_dir)
    if not files:
        logger.warning("No images found in %s", args.input_dir)
        return
    summary = analyze_folder(files, config, args.workers)
    if args.verbose:
        for result in summary.results:
            score = result.report.overall_score if result.report else "-"
            print(f"{result.filename}: {score}")
    _write_csv(summary, args.output)
    logger.info("Results written to %s", args.output)
    _print_summary(summary, args.output)


_COMMANDS = {
    "quality": run_quality,
    "crop": run_crop,
    "enhance": run_enhance,
    "correct": run_correct,
    "adjust": run_adjust,
    "batch": run_batch,
}


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        description="ID card image pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    quality = subparsers.add_parser("quality", help="Score capture quality")
    quality.add_argument("file", type=Path, help="Image file to analyze")
    quality.add_argument("--blur-threshold", type=float, help="Laplacian variance threshold")
    quality.add_argument("--focus-threshold", type=float, help="Gradient magnitude threshold")
    quality.add_argument("-o", "--output", type=Path, help="Output JSON file")

    crop = subparsers.add_parser("crop", help="Suggest a crop around the card")
    crop.add_argument("file", type=Path, help="Image file to analyze")
    crop.add_argument("-o", "--output", type=Path, help="Write the cropped image here")

    enhance = subparsers.add_parser("enhance", help="Prepare an image for OCR")
    enhance.add_argument("file", type=Path, help="Image file to process")
    enhance.add_argument("-o", "--output", type=Path, required=True, help="Output image")
    enhance.add_argument("--thumbnail", type=Path, help="Also write a thumbnail here")

    correct = subparsers.add_parser("correct", help="Correct perspective skew")
    correct.add_argument("file", type=Path, help="Image file to process")
    correct.add_argument(
        "--corners",
        type=_parse_corners,
        required=True,
        help="x1,y1,x2,y2,x3,y3,x4,y4 in TL, TR, BR, BL order",
    )
    correct.add_argument("-o", "--output", type=Path, required=True, help="Output image")

    adjust = subparsers.add_parser("adjust", help="Brightness, contrast, flip, rotate")
    adjust.add_argument("file", type=Path, help="Image file to process")
    adjust.add_argument("--brightness", type=float, default=100, help="Percent (default: 100)")
    adjust.add_argument("--contrast", type=float, default=100, help="Percent (default: 100)")
    adjust.add_argument("--flip-h", action="store_true", help="Mirror horizontally")
    adjust.add_argument("--flip-v", action="store_true", help="Mirror vertically")
    adjust.add_argument(
        "--rotate", type=int, choices=[0, 90, 180, 270], default=0, help="Clockwise degrees"
    )
    adjust.add_argument("-o", "--output", type=Path, required=True, help="Output image")

    batch = subparsers.add_parser("batch", help="Analyze a folder of images")
    batch.add_argument("input_dir", type=Path, help="Input directory with images")
    batch.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("quality.csv"),
        help="Output CSV file (default: quality.csv)",
    )
    batch.add_argument("-w", "--workers", type=int, help="Worker threads")
    batch.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
    elif not args.file.exists():
        print(f"Error: {args.file} does not exist", file=sys.stderr)
        sys.exit(1)

    try:
        _COMMANDS[args.command](args, config, ImageCodec())
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
