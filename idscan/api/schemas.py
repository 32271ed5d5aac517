"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel, Field

from idscan.preprocessing.perspective import Point, Quadrilateral


class PointModel(BaseModel):
    """A corner point in source-image pixels."""

    x: float
    y: float


class QuadrilateralModel(BaseModel):
    """Corners of the region to rectify."""

    top_left: PointModel
    top_right: PointModel
    bottom_right: PointModel
    bottom_left: PointModel

    def to_quadrilateral(self) -> Quadrilateral:
        return Quadrilateral(
            *(
                Point(p.x, p.y)
                for p in (self.top_left, self.top_right, self.bottom_right, self.bottom_left)
            )
        )


class CropResponse(BaseModel):
    """Response schema for a crop suggestion request."""

    found: bool
    x: int | None = None
    y: int | None = None
    width: int | None = None
    height: int | None = None


class QualityReportResponse(BaseModel):
    """Response schema for a quality analysis request."""

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
    tips: list[str] = Field(default_factory=list)


class ProcessedImageResponse(BaseModel):
    """Response schema for the OCR preparation endpoint (base64 images)."""

    ocr_png: str
    thumbnail_jpeg: str
    width: int
    height: int


class ImageResponse(BaseModel):
    """Response schema for endpoints returning a single image."""

    image: str
    mime_type: str
    width: int
    height: int


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
