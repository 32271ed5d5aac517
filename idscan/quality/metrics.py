"""Scalar image quality measurements.

Each function takes a grayscale or RGBA buffer and returns a single
float, so the analyzer can combine them into component scores.
"""

import numpy as np

from idscan.preprocessing.convolution import has_interior, laplacian, sobel_magnitude
from idscan.preprocessing.grayscale import luminance, to_grayscale


def luminance_stats(image: np.ndarray) -> tuple[float, float]:
    """Mean luminance and population standard deviation of the gray image.

    The mean is taken over the unrounded luminance. Deviations are measured
    from the rounded 8-bit grayscale values to that mean.

    Args:
        image: RGBA buffer.

    Returns:
        Tuple of (mean, stddev).
    """
    mean = float(luminance(image).mean())
    gray = to_grayscale(image).astype(np.float64)
    std = float(np.sqrt(((gray - mean) ** 2).mean()))
    return mean, std


def laplacian_variance(gray: np.ndarray) -> float:
    """Estimate sharpness using the variance of the Laplacian.

    Lower values mean blurrier images. Images smaller than 3x3 score 0.
    """
    if not has_interior(gray):
        return 0.0
    return float(laplacian(gray).var())


def gradient_magnitude_mean(gray: np.ndarray) -> float:
    """Average Sobel gradient magnitude over interior pixels.

    Lower values mean the image is out of focus. Images smaller than 3x3
    score 0.
    """
    if not has_interior(gray):
        return 0.0
    return float(sobel_magnitude(gray).mean())


def saturation_mean(image: np.ndarray) -> float:
    """Average HSL saturation on a 0-100 scale."""
    rgb = image[..., :3].astype(np.float64) / 255
    high = rgb.max(axis=2)
    low = rgb.min(axis=2)
    chroma = high - low
    lightness = (high + low) / 2

    denominator = np.where(lightness > 0.5, 2 - high - low, high + low)
    saturation = np.divide(
        chroma, denominator, out=np.zeros_like(chroma), where=chroma > 0
    )
    return float(saturation.mean() * 100)


def channel_means(image: np.ndarray) -> tuple[float, float, float]:
    """Mean of the R, G and B channels."""
    means = image[..., :3].reshape(-1, 3).mean(axis=0)
    return float(means[0]), float(means[1]), float(means[2])


def color_balance_deviation(image: np.ndarray) -> float:
    """Spread between the brightest and darkest channel means (0-255)."""
    means = channel_means(image)
    return max(means) - min(means)


def clipped_pixel_percent(image: np.ndarray) -> float:
    """Percentage of pixels with any RGB channel at 0 or 255."""
    rgb = image[..., :3]
    clipped = ((rgb == 0) | (rgb == 255)).any(axis=2)
    return float(clipped.mean() * 100)


def color_distortion(balance_deviation: float, clipped_percent: float) -> float:
    """Combine balance and clipping into a 0-100 distortion value."""
    return ((balance_deviation / 255) + (clipped_percent / 100)) / 2 * 100
