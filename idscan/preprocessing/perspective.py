"""Perspective correction for photographed ID cards.

Maps a user or detector supplied quadrilateral onto an upright rectangle
by solving for the inverse homography and resampling the source image
with bilinear interpolation.
"""

import math
from dataclasses import dataclass

import numpy as np

from idscan.utils.logger import get_logger

from .linalg import SingularMatrixError, solve_linear_system
from .pixels import require_rgba, to_uint8

logger = get_logger(__name__)


class PerspectiveError(ValueError):
    """Raised when a quadrilateral cannot be rectified."""


@dataclass(frozen=True)
class Point:
    """2D point in source-image pixel coordinates."""

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return math.hypot(other.x - self.x, other.y - self.y)


@dataclass(frozen=True)
class Quadrilateral:
    """Four corners of the region to rectify, clockwise from top-left."""

    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    @classmethod
    def from_sequence(cls, coords: list[float] | tuple[float, ...]) -> "Quadrilateral":
        """Build from ``[x1, y1, ..., x4, y4]`` in TL, TR, BR, BL order.

        Raises:
            ValueError: If there are not exactly eight numbers.
        """
        if len(coords) != 8:
            raise ValueError(f"Expected 8 coordinates, got {len(coords)}")
        points = [Point(float(coords[i]), float(coords[i + 1])) for i in range(0, 8, 2)]
        return cls(*points)

    @property
    def corners(self) -> tuple[Point, Point, Point, Point]:
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)

    def output_size(self) -> tuple[int, int]:
        """Rectified size as the mean lengths of opposite edges.

        Returns:
            Tuple of (width, height), rounded to whole pixels.
        """
        top = self.top_left.distance_to(self.top_right)
        bottom = self.bottom_left.distance_to(self.bottom_right)
        left = self.top_left.distance_to(self.bottom_left)
        right = self.top_right.distance_to(self.bottom_right)
        return round((top + bottom) / 2), round((left + right) / 2)


def compute_homography(quad: Quadrilateral, width: int, height: int) -> np.ndarray:
    """Solve for the destination-to-source mapping coefficients.

    The eight unknowns ``a..h`` satisfy::

        x = (a*u + b*v + c) / (g*u + h*v + 1)
        y = (d*u + e*v + f) / (g*u + h*v + 1)

    for the corners ``(0, 0), (w, 0), (w, h), (0, h)`` of the output
    rectangle and the matching corners of ``quad``.

    Args:
        quad: Source quadrilateral.
        width: Output width in pixels.
        height: Output height in pixels.

    Returns:
        Array of the eight coefficients ``[a, b, c, d, e, f, g, h]``.

    Raises:
        SingularMatrixError: If the corners are degenerate.
    """
    destination = [(0, 0), (width, 0), (width, height), (0, height)]
    rows: list[list[float]] = []
    rhs: list[float] = []

    for (u, v), src in zip(destination, quad.corners):
        rows.append([u, v, 1, 0, 0, 0, -src.x * u, -src.x * v])
        rhs.append(src.x)
    for (u, v), src in zip(destination, quad.corners):
        rows.append([0, 0, 0, u, v, 1, -src.y * u, -src.y * v])
        rhs.append(src.y)

    return solve_linear_system(rows, rhs)


def _bilinear_sample(image: np.ndarray, x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Sample every channel at float positions known to be in bounds."""
    x0 = np.floor(x).astype(np.intp)
    y0 = np.floor(y).astype(np.intp)
    fx = (x - x0)[:, np.newaxis]
    fy = (y - y0)[:, np.newaxis]

    source = image.astype(np.float64)
    p00 = source[y0, x0]
    p10 = source[y0, x0 + 1]
    p01 = source[y0 + 1, x0]
    p11 = source[y0 + 1, x0 + 1]

    top = p00 * (1 - fx) + p10 * fx
    bottom = p01 * (1 - fx) + p11 * fx
    return top * (1 - fy) + bottom * fy


def correct_perspective(image: np.ndarray, quad: Quadrilateral) -> np.ndarray:
    """Rectify the region inside ``quad`` into an upright image.

    Destination pixels whose source position falls outside the image stay
    fully transparent.

    Args:
        image: RGBA source buffer.
        quad: Corners of the region in source pixel coordinates.

    Returns:
        Rectified RGBA image.

    Raises:
        PerspectiveError: If the output would be empty or the corners are
            degenerate (for example collinear).
    """
    require_rgba(image)
    out_width, out_height = quad.output_size()
    if out_width < 1 or out_height < 1:
        raise PerspectiveError("Invalid source points result in a zero-sized output image")

    try:
        a, b, c, d, e, f, g, h = compute_homography(quad, out_width, out_height)
    except SingularMatrixError as exc:
        raise PerspectiveError(
            "Could not solve perspective transform; ensure the four points are not collinear"
        ) from exc

    u, v = np.meshgrid(
        np.arange(out_width, dtype=np.float64), np.arange(out_height, dtype=np.float64)
    )
    denominator = g * u + h * v + 1
    with np.errstate(divide="ignore", invalid="ignore"):
        src_x = (a * u + b * v + c) / denominator
        src_y = (d * u + e * v + f) / denominator

    src_h, src_w = image.shape[:2]
    x_floor = np.floor(src_x)
    y_floor = np.floor(src_y)
    inside = (
        np.isfinite(src_x)
        & np.isfinite(src_y)
        & (x_floor >= 0)
        & (x_floor < src_w - 1)
        & (y_floor >= 0)
        & (y_floor < src_h - 1)
    )

    result = np.zeros((out_height, out_width, 4), dtype=np.uint8)
    if inside.any():
        result[inside] = to_uint8(_bilinear_sample(image, src_x[inside], src_y[inside]))

    logger.info(
        "Perspective corrected to %dx%d (%.1f%% of pixels sampled)",
        out_width,
        out_height,
        100 * inside.mean(),
    )
    return result
