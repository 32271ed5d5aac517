"""Configurable OCR preparation pipeline for ID card images.

Orchestrates grayscale conversion, CLAHE contrast enhancement, median
denoising, sharpening and adaptive binarization, and exports the result
as a full-size PNG plus a JPEG thumbnail.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from idscan.codec import ImageCodec
from idscan.utils.config import OutputConfig, PreprocessingConfig
from idscan.utils.logger import get_logger

from .binarize import apply_clahe, binarize_adaptive
from .denoise import median_filter, sharpen
from .grayscale import to_grayscale
from .pixels import gray_to_rgba, require_rgba

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessedImageOutput:
    """Encoded outputs of the OCR preparation pipeline."""

    ocr_png: bytes
    thumbnail_jpeg: bytes


def make_thumbnail(image: np.ndarray, width: int = 200) -> np.ndarray:
    """Resize an image to ``width`` pixels wide, keeping the aspect ratio."""
    height = max(1, round(image.shape[0] * width / image.shape[1]))
    interpolation = cv2.INTER_AREA if width < image.shape[1] else cv2.INTER_LINEAR
    return cv2.resize(image, (width, height), interpolation=interpolation)


class PreprocessingPipeline:
    """ID card OCR preparation pipeline.

    Applies the enabled stages in a fixed order; each stage allocates a
    new buffer so the input image is never modified.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig | None = None) -> None:
        self.config = config or PreprocessingConfig()

    def process(self, image: np.ndarray) -> np.ndarray:
        """Run the enabled stages on an image.

        Args:
            image: RGBA buffer.

        Returns:
            Grayscale result (binary when binarization is enabled).
        """
        require_rgba(image)
        result = to_grayscale(image)

        if self.config.contrast_enabled:
            result = apply_clahe(
                result,
                clip_limit=self.config.clahe_clip_limit,
                grid_size=self.config.clahe_grid_size,
            )

        if self.config.denoise_enabled:
            result = median_filter(result, kernel_size=self.config.median_kernel_size)

        if self.config.sharpen_enabled:
            result = sharpen(result)

        if self.config.binarize_enabled:
            result = binarize_adaptive(
                result,
                block_size=self.config.binarize_block_size,
                c=self.config.binarize_c,
            )

        logger.info(
            "Preprocessing complete for %dx%d image", image.shape[1], image.shape[0]
        )
        return result

    def export(
        self,
        image: np.ndarray,
        codec: ImageCodec | None = None,
        output: OutputConfig | None = None,
    ) -> ProcessedImageOutput:
        """Process an image and encode the OCR and thumbnail outputs.

        Args:
            image: RGBA buffer.
            codec: Encoder for the outputs.
            output: Thumbnail size and JPEG quality.

        Returns:
            PNG of the processed image and a JPEG thumbnail of it.
        """
        codec = codec or ImageCodec()
        output = output or OutputConfig()

        rgba = gray_to_rgba(self.process(image))
        thumbnail = make_thumbnail(rgba, output.thumbnail_width)
        return ProcessedImageOutput(
            ocr_png=codec.encode(rgba, "png"),
            thumbnail_jpeg=codec.encode(thumbnail, "jpeg", output.thumbnail_quality),
        )
