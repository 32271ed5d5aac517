"""Manual image adjustments: brightness, contrast, flips and rotation."""

import numpy as np

from idscan.utils.logger import get_logger

from .pixels import require_rgba, to_uint8

logger = get_logger(__name__)

_RIGHT_ANGLES = (0, 90, 180, 270)


def adjust_brightness_contrast(
    image: np.ndarray, brightness: float = 100, contrast: float = 100
) -> np.ndarray:
    """Scale brightness, then contrast around mid-gray.

    Both values are percentages where 100 leaves the image unchanged.
    Alpha is preserved.

    Args:
        image: RGBA buffer.
        brightness: Brightness percentage.
        contrast: Contrast percentage.

    Returns:
        Adjusted RGBA image.

    Raises:
        ValueError: If either percentage is negative.
    """
    require_rgba(image)
    if brightness < 0 or contrast < 0:
        raise ValueError("Brightness and contrast must be non-negative percentages")
    if brightness == 100 and contrast == 100:
        return image.copy()

    rgb = image[..., :3].astype(np.float64) * (brightness / 100)
    rgb = (rgb - 127.5) * (contrast / 100) + 127.5

    result = image.copy()
    result[..., :3] = to_uint8(rgb)
    logger.debug("Adjusted brightness=%s%% contrast=%s%%", brightness, contrast)
    return result


def apply_transformations(
    image: np.ndarray,
    flip_h: bool = False,
    flip_v: bool = False,
    rotation: int = 0,
) -> np.ndarray:
    """Flip and then rotate an image clockwise by a right angle.

    Args:
        image: RGBA buffer.
        flip_h: Mirror left to right.
        flip_v: Mirror top to bottom.
        rotation: Clockwise rotation in degrees (0, 90, 180 or 270).

    Returns:
        Transformed RGBA image. Width and height swap for 90 and 270.

    Raises:
        ValueError: If ``rotation`` is not a right angle.
    """
    require_rgba(image)
    rotation %= 360
    if rotation not in _RIGHT_ANGLES:
        raise ValueError(f"Unsupported rotation: {rotation} (expected one of {_RIGHT_ANGLES})")

    result = image
    if flip_h:
        result = result[:, ::-1]
    if flip_v:
        result = result[::-1, :]
    result = np.rot90(result, k=-(rotation // 90))
    return np.ascontiguousarray(result)
