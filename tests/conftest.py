"""Shared test fixtures for the ID card image pipeline test suite."""

from pathlib import Path

import numpy as np
import pytest

from idscan.codec import ImageCodec


def _make_rgba(gray: np.ndarray) -> np.ndarray:
    """Expand a grayscale array into an opaque RGBA image."""
    rgba = np.empty((*gray.shape, 4), dtype=np.uint8)
    rgba[..., :3] = gray[..., np.newaxis]
    rgba[..., 3] = 255
    return rgba


def _make_card_image(
    height: int = 600,
    width: int = 800,
    card: tuple[int, int, int, int] = (100, 100, 700, 500),
    background: int = 40,
    foreground: int = 220,
) -> np.ndarray:
    """Create a light, featureless card on a dark uniform background.

    Args:
        card: ``(left, top, right, bottom)`` with exclusive right/bottom.
    """
    gray = np.full((height, width), background, dtype=np.uint8)
    left, top, right, bottom = card
    gray[top:bottom, left:right] = foreground
    return _make_rgba(gray)


@pytest.fixture
def uniform_gray_image() -> np.ndarray:
    """1000x1000 mid-gray RGBA image."""
    return _make_rgba(np.full((1000, 1000), 128, dtype=np.uint8))


@pytest.fixture
def card_image() -> np.ndarray:
    """800x600 RGBA image with a card spanning (100, 100)-(700, 500)."""
    return _make_card_image()


@pytest.fixture
def noisy_gray() -> np.ndarray:
    """Deterministic noisy grayscale image."""
    rng = np.random.default_rng(42)
    base = np.zeros((120, 160), dtype=np.int16)
    base[30:90, 40:120] = 180
    noise = rng.integers(0, 60, size=base.shape, dtype=np.int16)
    return np.clip(base + noise, 0, 255).astype(np.uint8)


@pytest.fixture
def codec() -> ImageCodec:
    return ImageCodec()


@pytest.fixture
def card_png(codec: ImageCodec) -> bytes:
    """Card image encoded as PNG."""
    return codec.encode(_make_card_image(), "png")


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
