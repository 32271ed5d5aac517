"""Pixel buffer conventions shared by every pipeline stage.

A color buffer is a ``uint8`` array of shape ``(height, width, 4)`` holding
R, G, B, A. A grayscale buffer is a ``uint8`` array of shape
``(height, width)``. Stages never modify their input in place.
"""

import numpy as np


def require_rgba(image: np.ndarray) -> np.ndarray:
    """Validate a color buffer.

    Args:
        image: Candidate RGBA buffer.

    Returns:
        The same array, for call chaining.

    Raises:
        ValueError: If the shape, dtype or size is not a usable RGBA image.
    """
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(
            f"Expected uint8 RGBA buffer of shape (h, w, 4), got {image.dtype} {image.shape}"
        )
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError("Image has zero width or height")
    return image


def require_gray(image: np.ndarray) -> np.ndarray:
    """Validate a single-channel buffer.

    Raises:
        ValueError: If the array is not a non-empty 2D ``uint8`` image.
    """
    if image.dtype != np.uint8 or image.ndim != 2:
        raise ValueError(
            f"Expected uint8 grayscale buffer of shape (h, w), got {image.dtype} {image.shape}"
        )
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise ValueError("Image has zero width or height")
    return image


def to_uint8(values: np.ndarray) -> np.ndarray:
    """Round float values to the nearest integer and clamp to [0, 255]."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def gray_to_rgba(gray: np.ndarray) -> np.ndarray:
    """Expand a grayscale buffer into an opaque RGBA buffer."""
    require_gray(gray)
    rgba = np.empty((*gray.shape, 4), dtype=np.uint8)
    rgba[..., :3] = gray[..., np.newaxis]
    rgba[..., 3] = 255
    return rgba
