"""Automatic crop suggestion for photographed ID cards.

Finds the card by scanning edge-density profiles of a downscaled,
contrast-stretched Sobel edge map from all four sides.
"""

from dataclasses import asdict, dataclass

import cv2
import numpy as np

from idscan.utils.config import AutoCropConfig
from idscan.utils.logger import get_logger

from .convolution import sobel_edge_map
from .grayscale import contrast_stretch, luminance
from .pixels import require_rgba

logger = get_logger(__name__)


@dataclass(frozen=True)
class CropSuggestion:
    """Crop rectangle in source-image pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def apply(self, image: np.ndarray) -> np.ndarray:
        """Cut the suggested region out of an image (returns a copy)."""
        return image[self.y : self.y + self.height, self.x : self.x + self.width].copy()

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class _Box:
    """Float bounding box in working-image coordinates."""

    x: float
    y: float
    width: float
    height: float


def _first_dense_line(densities: np.ndarray, threshold: float) -> int:
    hits = np.flatnonzero(densities > threshold)
    return int(hits[0]) if hits.size else -1


def find_bounding_box(
    edge_map: np.ndarray,
    edge_threshold: int = 50,
    line_density_threshold: float = 0.10,
) -> tuple[int, int, int, int] | None:
    """Locate the outermost dense edge lines on each side.

    A row (or column) counts as part of the object when the fraction of
    its pixels with edge magnitude above ``edge_threshold`` exceeds
    ``line_density_threshold``.

    Args:
        edge_map: 8-bit edge magnitude map.
        edge_threshold: Magnitude above which a pixel is an edge.
        line_density_threshold: Fraction of edge pixels that marks a line.

    Returns:
        ``(left, top, right, bottom)`` line indices, or None if any side is
        missing or the box is empty.
    """
    height, width = edge_map.shape
    is_edge = edge_map > edge_threshold
    row_density = is_edge.sum(axis=1) / width
    col_density = is_edge.sum(axis=0) / height

    top = _first_dense_line(row_density, line_density_threshold)
    bottom = _first_dense_line(row_density[::-1], line_density_threshold)
    left = _first_dense_line(col_density, line_density_threshold)
    right = _first_dense_line(col_density[::-1], line_density_threshold)

    if -1 in (top, bottom, left, right):
        return None

    bottom = height - 1 - bottom
    right = width - 1 - right
    if right <= left or bottom <= top:
        return None
    return left, top, right, bottom


def _downscale(image: np.ndarray, target_width: int) -> tuple[np.ndarray, float]:
    """Resize to ``target_width`` keeping the aspect ratio.

    Returns:
        Tuple of (resized_image, scale) where ``scale`` maps working
        coordinates back to the original.
    """
    height, width = image.shape[:2]
    scale = width / target_width
    target_height = max(1, round(height / scale))
    interpolation = cv2.INTER_AREA if scale > 1 else cv2.INTER_LINEAR
    resized = cv2.resize(image, (target_width, target_height), interpolation=interpolation)
    return resized, scale


def stretched_luminance(image: np.ndarray, factor: float = 1.5) -> np.ndarray:
    """Contrast-stretch the unrounded luminance of an RGBA image.

    Rounding happens once, after the stretch, so the edge detector sees
    the same levels as a single ``clamp(factor * (lum - 128) + 128)``.
    """
    return contrast_stretch(luminance(image), factor)


def suggest_crop(
    image: np.ndarray, config: AutoCropConfig | None = None
) -> CropSuggestion | None:
    """Suggest a crop rectangle around the ID card in an image.

    Args:
        image: RGBA buffer at full resolution.
        config: Locator constants. Defaults are used when omitted.

    Returns:
        Crop rectangle in original-image coordinates, or None when no
        plausible card outline was found.
    """
    config = config or AutoCropConfig()
    require_rgba(image)
    original_height, original_width = image.shape[:2]

    working, scale = _downscale(image, config.downscale_width)
    edges = sobel_edge_map(stretched_luminance(working, config.contrast_factor))

    bounds = find_bounding_box(edges, config.edge_threshold, config.line_density_threshold)
    if bounds is None:
        logger.info("Auto-crop found no card outline")
        return None

    left, top, right, bottom = bounds
    box = _Box(x=left, y=top, width=right - left, height=bottom - top)

    pad_x = box.width * config.padding_ratio
    pad_y = box.height * config.padding_ratio
    box.x += pad_x
    box.y += pad_y
    box.width -= pad_x * 2
    box.height -= pad_y * 2

    x = min(max(0, round(box.x * scale)), original_width - 1)
    y = min(max(0, round(box.y * scale)), original_height - 1)
    width = min(round(box.width * scale), original_width - x)
    height = min(round(box.height * scale), original_height - y)

    image_area = original_width * original_height
    crop_area = width * height
    if width <= 0 or height <= 0:
        return None
    if crop_area < image_area * config.min_area_ratio:
        logger.info("Auto-crop rejected: area %.1f%% too small", 100 * crop_area / image_area)
        return None
    if crop_area > image_area * config.max_area_ratio:
        logger.info("Auto-crop rejected: area %.1f%% too large", 100 * crop_area / image_area)
        return None

    suggestion = CropSuggestion(x=x, y=y, width=width, height=height)
    logger.info("Auto-crop suggestion: %s", suggestion)
    return suggestion
