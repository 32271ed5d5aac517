"""Noise reduction and sharpening filters for ID card images.

Provides a median filter against salt-and-pepper sensor noise and a
Laplacian-style sharpening kernel that restores text edges afterwards.
"""

import cv2
import numpy as np

from idscan.utils.logger import get_logger

from .convolution import SHARPEN, apply_kernel
from .pixels import require_gray

logger = get_logger(__name__)


def median_filter(image: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Apply a median filter with edge replication at the borders.

    Args:
        image: Grayscale buffer.
        kernel_size: Side of the square window (must be odd).

    Returns:
        Denoised grayscale image.

    Raises:
        ValueError: If ``kernel_size`` is not a positive odd number.
    """
    gray = require_gray(image)
    if kernel_size < 1 or kernel_size % 2 == 0:
        raise ValueError(f"kernel_size must be a positive odd number, got {kernel_size}")

    if kernel_size == 1:
        return gray.copy()

    # medianBlur replicates edge pixels, matching a clamped k x k window.
    result = cv2.medianBlur(np.ascontiguousarray(gray), kernel_size)
    logger.debug("Applied median filter with kernel_size=%d", kernel_size)
    return result


def sharpen(image: np.ndarray) -> np.ndarray:
    """Sharpen text edges with a 3x3 kernel.

    Border pixels keep their source values so the frame does not turn
    black.

    Args:
        image: Grayscale buffer.

    Returns:
        Sharpened grayscale image.
    """
    gray = require_gray(image)
    result = apply_kernel(gray, SHARPEN, border="copy")
    logger.debug("Applied sharpening kernel")
    return result
