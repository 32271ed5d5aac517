"""Luminance extraction using the ITU-R BT.601 luma weights."""

import numpy as np

from .pixels import require_rgba, to_uint8

# 0.299, 0.587 and 0.114 as integer parts per thousand.
LUMA_WEIGHTS_PER_MILLE = np.array([299, 587, 114], dtype=np.int64)


def luminance(image: np.ndarray) -> np.ndarray:
    """Compute unrounded per-pixel luminance.

    The weighted sum is formed in integers and divided once, so a neutral
    pixel ``(v, v, v)`` has luminance exactly ``v``.

    Args:
        image: RGBA buffer.

    Returns:
        Float64 array of shape (height, width).
    """
    require_rgba(image)
    return (image[..., :3].astype(np.int64) @ LUMA_WEIGHTS_PER_MILLE) / 1000


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert an image to an 8-bit grayscale buffer.

    Grayscale input is returned as a copy so callers always own the result.

    Args:
        image: RGBA or grayscale buffer.

    Returns:
        Grayscale buffer with the same width and height.
    """
    if image.ndim == 2:
        return image.copy()
    return to_uint8(luminance(image))


def contrast_stretch(values: np.ndarray, factor: float = 1.5) -> np.ndarray:
    """Stretch intensities around mid-gray: ``factor * (v - 128) + 128``.

    Accepts 8-bit gray or the float map from :func:`luminance`; the result
    is rounded and clamped once.
    """
    stretched = factor * (values.astype(np.float64) - 128) + 128
    return to_uint8(stretched)
