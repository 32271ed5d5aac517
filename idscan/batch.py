"""Folder-level analysis on a bounded worker pool.

Each image runs decode, quality analysis and crop suggestion in sequence
on one worker. Images are independent, so they are spread across a
``ThreadPoolExecutor``; results come back in input order.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from idscan.codec import ImageCodec
from idscan.preprocessing.autocrop import CropSuggestion, suggest_crop
from idscan.quality.analyzer import ImageQualityReport, analyze_image_quality
from idscan.utils.config import AppConfig
from idscan.utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp")


@dataclass
class ImageAnalysis:
    """Outcome of analyzing one image file."""

    filename: str
    report: ImageQualityReport | None = None
    crop: CropSuggestion | None = None
    processing_time_s: float = 0.0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_row(self) -> dict[str, object]:
        """Flatten into a CSV-friendly dictionary."""
        row: dict[str, object] = {
            "filename": self.filename,
            "status": "success" if self.succeeded else "failed",
            "processing_time_s": self.processing_time_s,
            "error": self.error,
        }
        if self.report is not None:
            report = self.report.to_dict()
            report["tips"] = " | ".join(self.report.tips)
            row.update(report)
        if self.crop is not None:
            row.update({f"crop_{k}": v for k, v in self.crop.to_dict().items()})
        return row


@dataclass
class BatchSummary:
    """Aggregate counts for a batch run."""

    results: list[ImageAnalysis] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.successful


def find_images(input_dir: Path) -> list[Path]:
    """List supported image files in a directory, sorted by name."""
    return sorted(
        p
        for p in input_dir.iterdir()
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def analyze_file(path: Path, config: AppConfig, codec: ImageCodec) -> ImageAnalysis:
    """Analyze one image file, capturing failures in the result."""
    start_time = time.time()
    try:
        image = codec.load(path)
        report = analyze_image_quality(image, config.quality)
        crop = suggest_crop(image, config.autocrop)
    except (OSError, ValueError) as exc:
        logger.error("Failed to analyze %s: %s", path.name, exc)
        return ImageAnalysis(
            filename=path.name,
            processing_time_s=round(time.time() - start_time, 3),
            error=str(exc),
        )
    return ImageAnalysis(
        filename=path.name,
        report=report,
        crop=crop,
        processing_time_s=round(time.time() - start_time, 3),
    )


def analyze_folder(
    paths: list[Path],
    config: AppConfig | None = None,
    max_workers: int | None = None,
) -> BatchSummary:
    """Analyze many images concurrently.

    Args:
        paths: Image files to analyze.
        config: Application configuration.
        max_workers: Pool size; defaults to ``config.batch.max_workers``.

    Returns:
        Summary holding one result per path, in the order given.
    """
    config = config or AppConfig()
    workers = max_workers or config.batch.max_workers
    codec = ImageCodec()

    logger.info("Analyzing %d images with %d workers", len(paths), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        results = list(executor.map(lambda p: analyze_file(p, config, codec), paths))

    summary = BatchSummary(results=results)
    logger.info(
        "Batch complete: %d successful, %d failed", summary.successful, summary.failed
    )
    return summary
