"""FastAPI application for the ID card image pipeline.

Provides REST endpoints for quality analysis, crop suggestion, OCR
preparation, perspective correction, manual adjustments and health
checks. Images are uploaded as multipart files and returned base64
encoded. Decoding, pixel work and encoding run in the threadpool so the
event loop stays free for other requests.
"""

import base64
from typing import Annotated

import numpy as np
from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from idscan import __version__
from idscan.codec import ImageCodec
from idscan.preprocessing.adjust import adjust_brightness_contrast, apply_transformations
from idscan.preprocessing.autocrop import suggest_crop
from idscan.preprocessing.perspective import correct_perspective
from idscan.preprocessing.pipeline import PreprocessingPipeline
from idscan.quality.analyzer import analyze_image_quality
from idscan.utils.config import load_config
from idscan.utils.logger import get_logger

from .schemas import (
    CropResponse,
    HealthResponse,
    ImageResponse,
    ProcessedImageResponse,
    QualityReportResponse,
    QuadrilateralModel,
)

logger = get_logger(__name__)

app = FastAPI(
    title="ID Card Image Pipeline API",
    description="Crop, rectify, enhance and score photographed ID cards",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/webp",
    "application/octet-stream",
}

_MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg"}

codec = ImageCodec()


async def _read_image(file: UploadFile) -> np.ndarray:
    """Validate and decode an uploaded image.

    Raises:
        HTTPException: 400 for unsupported or undecodable uploads.
    """
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )
    content = await file.read()
    try:
        return await run_in_threadpool(codec.decode, content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _image_response(image: np.ndarray, fmt: str, quality: int) -> ImageResponse:
    return ImageResponse(
        image=_b64(codec.encode(image, fmt, quality)),
        mime_type=_MIME_TYPES[fmt],
        width=image.shape[1],
        height=image.shape[0],
    )


def _adjust(
    image: np.ndarray,
    brightness: float,
    contrast: float,
    flip_h: bool,
    flip_v: bool,
    rotation: int,
) -> np.ndarray:
    result = adjust_brightness_contrast(image, brightness, contrast)
    return apply_transformations(result, flip_h, flip_v, rotation)


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(status="healthy", version=__version__)


@app.post("/quality", response_model=QualityReportResponse)
async def quality(
    file: Annotated[UploadFile, File(...)],
    blur_threshold: Annotated[float | None, Query()] = None,
    focus_threshold: Annotated[float | None, Query()] = None,
) -> QualityReportResponse:
    """Score the capture quality of an uploaded photo."""
    image = await _read_image(file)
    overrides = {
        k: v
        for k, v in {
            "blur_threshold": blur_threshold,
            "focus_threshold": focus_threshold,
        }.items()
        if v is not None
    }
    config = load_config().quality.model_copy(update=overrides)
    report = await run_in_threadpool(analyze_image_quality, image, config)
    return QualityReportResponse(**report.to_dict())


@app.post("/crop", response_model=CropResponse)
async def crop(file: Annotated[UploadFile, File(...)]) -> CropResponse:
    """Suggest a crop rectangle around the ID card."""
    image = await _read_image(file)
    suggestion = await run_in_threadpool(suggest_crop, image, load_config().autocrop)
    if suggestion is None:
        return CropResponse(found=False)
    return CropResponse(found=True, **suggestion.to_dict())


@app.post("/enhance", response_model=ProcessedImageResponse)
async def enhance(file: Annotated[UploadFile, File(...)]) -> ProcessedImageResponse:
    """Prepare an image for OCR and return it with a thumbnail."""
    image = await _read_image(file)
    config = load_config()
    try:
        pipeline = PreprocessingPipeline(config.preprocessing)
        output = await run_in_threadpool(pipeline.export, image, codec, config.output)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Enhancement failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ProcessedImageResponse(
        ocr_png=_b64(output.ocr_png),
        thumbnail_jpeg=_b64(output.thumbnail_jpeg),
        width=image.shape[1],
        height=image.shape[0],
    )


@app.post("/perspective", response_model=ImageResponse)
async def perspective(
    file: Annotated[UploadFile, File(...)],
    corners: Annotated[str, Form(...)],
    output_format: Annotated[str, Query(pattern="^(png|jpeg)$")] = "png",
) -> ImageResponse:
    """Rectify the quadrilateral given as JSON in the ``corners`` form field."""
    image = await _read_image(file)
    try:
        quad = QuadrilateralModel.model_validate_json(corners).to_quadrilateral()
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid corners: {exc}") from exc

    try:
        result = await run_in_threadpool(correct_perspective, image, quad)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return await run_in_threadpool(
        _image_response, result, output_format, load_config().output.export_quality
    )


@app.post("/adjust", response_model=ImageResponse)
async def adjust(
    file: Annotated[UploadFile, File(...)],
    brightness: Annotated[float, Query(ge=0)] = 100,
    contrast: Annotated[float, Query(ge=0)] = 100,
    flip_h: Annotated[bool, Query()] = False,
    flip_v: Annotated[bool, Query()] = False,
    rotation: Annotated[int, Query()] = 0,
    output_format: Annotated[str, Query(pattern="^(png|jpeg)$")] = "png",
) -> ImageResponse:
    """Apply brightness/contrast and flip/rotate to an uploaded image."""
    image = await _read_image(file)
    try:
        result = await run_in_threadpool(
            _adjust, image, brightness, contrast, flip_h, flip_v, rotation
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return await run_in_threadpool(
        _image_response, result, output_format, load_config().output.export_quality
    )
