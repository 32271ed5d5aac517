"""Binarization and contrast enhancement for ID card images.

Provides tile-based CLAHE contrast enhancement and integral-image
accelerated adaptive mean thresholding to improve text readability
for OCR.
"""

import numpy as np

from idscan.utils.logger import get_logger

from .pixels import require_gray, to_uint8

logger = get_logger(__name__)

_BINS = 256


def _clipped_cdf(tile: np.ndarray, clip_limit: float) -> np.ndarray:
    """Histogram a tile, clip it, redistribute the excess and integrate.

    Args:
        tile: Grayscale tile.
        clip_limit: Clip height as a multiple of the mean bin height.

    Returns:
        CDF of 256 values normalized by the tile pixel count.
    """
    pixel_count = tile.size
    histogram = np.bincount(tile.ravel(), minlength=_BINS).astype(np.float64)

    limit = clip_limit * (pixel_count / _BINS)
    excess = np.clip(histogram - limit, 0, None).sum()
    histogram = np.minimum(histogram, limit) + excess / _BINS

    return np.cumsum(histogram) / pixel_count


def apply_clahe(
    image: np.ndarray,
    clip_limit: float = 2.0,
    grid_size: int = 8,
) -> np.ndarray:
    """Enhance contrast using CLAHE (Contrast Limited Adaptive Histogram Equalization).

    The image is split into ``grid_size x grid_size`` tiles, each with its
    own clipped CDF. Every pixel is mapped through the CDFs of its tile
    and the right, lower and diagonal neighbours, and the four results are
    blended bilinearly by the pixel's position inside its tile.

    Args:
        image: Grayscale buffer.
        clip_limit: Threshold for contrast limiting.
        grid_size: Number of tiles along each axis.

    Returns:
        Contrast-enhanced grayscale image. If the grid is too fine for the
        image the input is returned unchanged.
    """
    gray = require_gray(image)
    height, width = gray.shape
    tile_w = width // grid_size
    tile_h = height // grid_size

    if tile_w == 0 or tile_h == 0:
        logger.warning(
            "CLAHE grid %d is too large for a %dx%d image, skipping",
            grid_size,
            width,
            height,
        )
        return gray.copy()

    cdfs = np.empty((grid_size, grid_size, _BINS), dtype=np.float64)
    for gy in range(grid_size):
        for gx in range(grid_size):
            tile = gray[gy * tile_h : (gy + 1) * tile_h, gx * tile_w : (gx + 1) * tile_w]
            cdfs[gy, gx] = _clipped_cdf(tile, clip_limit)

    xs = np.arange(width)
    ys = np.arange(height)
    grid_x = np.minimum(grid_size - 1, xs // tile_w)[np.newaxis, :]
    grid_y = np.minimum(grid_size - 1, ys // tile_h)[:, np.newaxis]
    local_x = ((xs % tile_w) / tile_w)[np.newaxis, :]
    local_y = ((ys % tile_h) / tile_h)[:, np.newaxis]

    right_x = np.minimum(grid_x + 1, grid_size - 1)
    lower_y = np.minimum(grid_y + 1, grid_size - 1)
    has_diagonal = (grid_x < grid_size - 1) & (grid_y < grid_size - 1)

    top_left = cdfs[grid_y, grid_x, gray] * 255
    top_right = cdfs[grid_y, right_x, gray] * 255
    bottom_left = cdfs[lower_y, grid_x, gray] * 255
    bottom_right = np.where(has_diagonal, cdfs[lower_y, right_x, gray] * 255, top_left)

    top = top_left * (1 - local_x) + top_right * local_x
    bottom = bottom_left * (1 - local_x) + bottom_right * local_x
    result = to_uint8(top * (1 - local_y) + bottom * local_y)

    logger.debug("Applied CLAHE (clip=%.1f, grid=%d)", clip_limit, grid_size)
    return result


def integral_image(image: np.ndarray) -> np.ndarray:
    """Build a summed-area table padded with a zero first row and column.

    ``table[y + 1, x + 1]`` holds the sum of all pixels in the rectangle
    from (0, 0) to (x, y) inclusive.

    Args:
        image: Grayscale buffer.

    Returns:
        Int64 array of shape (height + 1, width + 1).
    """
    gray = require_gray(image)
    table = np.zeros((gray.shape[0] + 1, gray.shape[1] + 1), dtype=np.int64)
    table[1:, 1:] = np.cumsum(np.cumsum(gray, axis=1, dtype=np.int64), axis=0)
    return table


def binarize_adaptive(
    image: np.ndarray, block_size: int = 21, c: float = 7
) -> np.ndarray:
    """Binarize an image using adaptive mean thresholding.

    A pixel becomes white when it is brighter than the mean of its
    ``block_size x block_size`` neighbourhood (clipped at the image
    borders) minus ``c``. Neighbourhood sums come from an integral image,
    so the cost does not depend on ``block_size``.

    Args:
        image: Grayscale buffer.
        block_size: Side of the neighbourhood window. Must be odd.
        c: Constant subtracted from the mean.

    Returns:
        Binary image with pixel values 0 or 255.

    Raises:
        ValueError: If ``block_size`` is not a positive odd number.
    """
    gray = require_gray(image)
    if block_size < 1 or block_size % 2 == 0:
        raise ValueError(f"block_size must be a positive odd number, got {block_size}")

    height, width = gray.shape
    half = block_size // 2
    table = integral_image(gray)

    xs = np.arange(width)
    ys = np.arange(height)
    x1 = np.maximum(0, xs - half)
    x2 = np.minimum(width - 1, xs + half) + 1
    y1 = np.maximum(0, ys - half)[:, np.newaxis]
    y2 = (np.minimum(height - 1, ys + half) + 1)[:, np.newaxis]

    window_sum = table[y2, x2] - table[y1, x2] - table[y2, x1] + table[y1, x1]
    count = (y2 - y1) * (x2 - x1)
    threshold = window_sum / count - c

    result = np.where(gray > threshold, 255, 0).astype(np.uint8)
    logger.debug("Applied adaptive binarization (block=%d, c=%.1f)", block_size, c)
    return result
