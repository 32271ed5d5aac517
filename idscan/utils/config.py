"""Configuration management for the ID card image pipeline.

Every stage takes an explicit pydantic model whose fields all have
documented defaults. Callers override any subset, either in code or
through a YAML file loaded with :func:`load_config`.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


def _require_odd(value: int) -> int:
    if value % 2 == 0:
        raise ValueError(f"must be odd, got {value}")
    return value


class PreprocessingConfig(BaseModel):
    """Configuration for the OCR preparation pipeline."""

    contrast_enabled: bool = True
    clahe_clip_limit: float = Field(default=2.0, gt=0)
    clahe_grid_size: int = Field(default=8, ge=1)
    denoise_enabled: bool = True
    median_kernel_size: int = Field(default=3, ge=1)
    sharpen_enabled: bool = True
    binarize_enabled: bool = True
    binarize_block_size: int = Field(default=21, ge=1)
    binarize_c: float = 7.0

    @field_validator("median_kernel_size", "binarize_block_size")
    @classmethod
    def _odd_window(cls, value: int) -> int:
        return _require_odd(value)


class AutoCropConfig(BaseModel):
    """Tunable constants of the edge-density crop locator."""

    downscale_width: int = Field(default=400, ge=3)
    contrast_factor: float = 1.5
    edge_threshold: int = Field(default=50, ge=0, le=255)
    line_density_threshold: float = Field(default=0.10, ge=0, lt=1)
    padding_ratio: float = Field(default=0.02, ge=0, lt=0.5)
    min_area_ratio: float = Field(default=0.10, ge=0, le=1)
    max_area_ratio: float = Field(default=0.98, ge=0, le=1)


class QualityConfig(BaseModel):
    """Overridable thresholds of the quality analyzer."""

    blur_threshold: float = 100.0
    focus_threshold: float = 8.0


class OutputConfig(BaseModel):
    """Encoding settings for exported images."""

    thumbnail_width: int = Field(default=200, ge=1)
    thumbnail_quality: int = Field(default=85, ge=1, le=100)
    export_quality: int = Field(default=90, ge=1, le=100)


class BatchConfig(BaseModel):
    """Worker pool settings for folder analysis."""

    max_workers: int = Field(default=4, ge=1)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    autocrop: AutoCropConfig = Field(default_factory=AutoCropConfig)
    quality: QualityConfig = Field(default_factory=QualityConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration. Defaults are used when the
        file does not exist.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
