"""Capture quality scoring for ID card photos.

Combines sharpness, lighting, resolution and color measurements into
component scores, an overall weighted score and user-facing tips.
"""

import math
from dataclasses import asdict, dataclass

import numpy as np

from idscan.preprocessing.grayscale import to_grayscale
from idscan.preprocessing.pixels import require_rgba
from idscan.utils.config import QualityConfig
from idscan.utils.logger import get_logger

from .metrics import (
    clipped_pixel_percent,
    color_balance_deviation,
    color_distortion,
    gradient_magnitude_mean,
    laplacian_variance,
    luminance_stats,
    saturation_mean,
)

logger = get_logger(__name__)

MIN_RESOLUTION_WIDTH = 600
MIN_RESOLUTION_HEIGHT = 400
BLUR_OPTIMAL = 300
FOCUS_OPTIMAL = 25
BRIGHTNESS_LOW_THRESHOLD = 50
BRIGHTNESS_HIGH_THRESHOLD = 205
BRIGHTNESS_OPTIMAL = 128
CONTRAST_LOW_THRESHOLD = 25
CONTRAST_OPTIMAL = 60
SATURATION_HIGH_THRESHOLD = 85
COLOR_BALANCE_DEVIATION_THRESHOLD = 30
COLOR_CLIPPING_PERCENT_THRESHOLD = 5

SHARPNESS_WEIGHT = 0.40
LIGHTING_WEIGHT = 0.40
RESOLUTION_WEIGHT = 0.15
COLOR_WEIGHT = 0.05

TIP_NOT_SHARP = (
    "Image is not sharp. Hold the camera steady and tap the screen to focus "
    "directly on the ID card's text. Ensure the camera lens is clean."
)
TIP_TOO_DARK = (
    "Image is too dark. Move to a well-lit area, preferably with neutral, "
    "indirect light. Using your phone's flash may help if the room is dark."
)
TIP_DARK_LOW_CONTRAST = (
    "The lack of light is also causing low contrast, making text hard to read. "
    "Brighter, more direct lighting is needed."
)
TIP_TOO_BRIGHT = (
    "Image is overexposed or has glare. Avoid direct overhead lights or camera "
    "flash reflecting off the card. Tilting the card slightly can reduce reflections."
)
TIP_LOW_CONTRAST = (
    "Text lacks contrast. Ensure the ID is on a plain, dark surface and lit "
    "evenly without shadows across the card face."
)
TIP_LOW_RESOLUTION = (
    "Resolution is low ({width}x{height}). Move the camera closer to ensure the "
    "ID card fills most of the frame before taking the photo."
)
TIP_GENERAL = (
    "For best results, ensure the ID is on a flat surface, in sharp focus, and "
    "evenly lit without any glare or shadows."
)


@dataclass(frozen=True)
class ImageQualityReport:
    """Quality assessment of a single captured image."""

    overall_score: int

    sharpness_score: int
    lighting_score: int
    resolution_score: int
    color_score: int

    is_blurry: bool
    blur_value: float
    is_out_of_focus: bool
    focus_value: float
    is_too_dark: bool
    is_too_bright: bool
    brightness_value: float
    is_low_contrast: bool
    contrast_value: float
    is_low_resolution: bool
    resolution_width: int
    resolution_height: int
    is_over_saturated: bool
    saturation_value: float
    is_color_distorted: bool
    color_balance_deviation: float
    clipped_pixel_percent: float
    color_distortion_value: float

    tips: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["tips"] = list(self.tips)
        return data


def round_score(value: float) -> int:
    """Round a non-negative score to the nearest integer, halves up."""
    return math.floor(value + 0.5)


def sharpness_score(blur_value: float, focus_value: float) -> float:
    """Blend normalized Laplacian variance and gradient mean (0-100)."""
    normalized_blur = min(1.0, blur_value / BLUR_OPTIMAL)
    normalized_focus = min(1.0, focus_value / FOCUS_OPTIMAL)
    return (normalized_blur * 0.6 + normalized_focus * 0.4) * 100


def lighting_score(brightness: float, contrast: float) -> float:
    """Blend closeness to mid-gray with normalized contrast (0-100)."""
    proximity = max(0.0, 1 - abs(brightness - BRIGHTNESS_OPTIMAL) / BRIGHTNESS_OPTIMAL)
    normalized_contrast = min(1.0, contrast / CONTRAST_OPTIMAL)
    return proximity * 100 * 0.5 + normalized_contrast * 100 * 0.5


def _build_tips(
    report_flags: dict[str, bool], overall: float, width: int, height: int
) -> list[str]:
    tips: list[str] = []
    if report_flags["blurry"] or report_flags["out_of_focus"]:
        tips.append(TIP_NOT_SHARP)
    if report_flags["too_dark"]:
        tips.append(TIP_TOO_DARK)
        if report_flags["low_contrast"]:
            tips.append(TIP_DARK_LOW_CONTRAST)
    elif report_flags["too_bright"]:
        tips.append(TIP_TOO_BRIGHT)
    elif report_flags["low_contrast"]:
        tips.append(TIP_LOW_CONTRAST)
    if report_flags["low_resolution"]:
        tips.append(TIP_LOW_RESOLUTION.format(width=width, height=height))
    if not tips and overall < 90:
        tips.append(TIP_GENERAL)
    return tips


def analyze_image_quality(
    image: np.ndarray, config: QualityConfig | None = None
) -> ImageQualityReport:
    """Analyze how suitable a captured image is for data extraction.

    Args:
        image: RGBA buffer.
        config: Blur and focus threshold overrides.

    Returns:
        Immutable quality report with scores, raw metrics, flags and tips.
    """
    config = config or QualityConfig()
    require_rgba(image)
    height, width = image.shape[:2]

    brightness, contrast = luminance_stats(image)
    gray = to_grayscale(image)
    blur = laplacian_variance(gray)
    focus = gradient_magnitude_mean(gray)
    saturation = saturation_mean(image)
    balance = color_balance_deviation(image)
    clipped = clipped_pixel_percent(image)
    distortion = color_distortion(balance, clipped)

    flags = {
        "low_resolution": width < MIN_RESOLUTION_WIDTH or height < MIN_RESOLUTION_HEIGHT,
        "too_dark": brightness < BRIGHTNESS_LOW_THRESHOLD,
        "too_bright": brightness > BRIGHTNESS_HIGH_THRESHOLD,
        "low_contrast": contrast < CONTRAST_LOW_THRESHOLD,
        "blurry": blur < config.blur_threshold,
        "out_of_focus": focus < config.focus_threshold,
        "over_saturated": saturation > SATURATION_HIGH_THRESHOLD,
        "color_distorted": balance > COLOR_BALANCE_DEVIATION_THRESHOLD
        or clipped > COLOR_CLIPPING_PERCENT_THRESHOLD,
    }

    resolution = 0.0 if flags["low_resolution"] else 100.0
    sharpness = sharpness_score(blur, focus)
    lighting = lighting_score(brightness, contrast)
    color = 100 - distortion
    overall = (
        sharpness * SHARPNESS_WEIGHT
        + lighting * LIGHTING_WEIGHT
        + resolution * RESOLUTION_WEIGHT
        + color * COLOR_WEIGHT
    )

    report = ImageQualityReport(
        overall_score=round_score(overall),
        sharpness_score=round_score(sharpness),
        lighting_score=round_score(lighting),
        resolution_score=round_score(resolution),
        color_score=round_score(color),
        is_blurry=flags["blurry"],
        blur_value=round(blur, 2),
        is_out_of_focus=flags["out_of_focus"],
        focus_value=round(focus, 2),
        is_too_dark=flags["too_dark"],
        is_too_bright=flags["too_bright"],
        brightness_value=round(brightness, 2),
        is_low_contrast=flags["low_contrast"],
        contrast_value=round(contrast, 2),
        is_low_resolution=flags["low_resolution"],
        resolution_width=width,
        resolution_height=height,
        is_over_saturated=flags["over_saturated"],
        saturation_value=round(saturation, 2),
        is_color_distorted=flags["color_distorted"],
        color_balance_deviation=round(balance, 2),
        clipped_pixel_percent=round(clipped, 2),
        color_distortion_value=round(distortion, 2),
        tips=tuple(_build_tips(flags, overall, width, height)),
    )
    logger.info(
        "Quality score %d (sharpness %d, lighting %d, resolution %d, color %d)",
        report.overall_score,
        report.sharpness_score,
        report.lighting_score,
        report.resolution_score,
        report.color_score,
    )
    return report
