"""Tests for the Pillow-backed image codec."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from idscan.codec import ImageCodec


def _gradient_rgba(height: int = 20, width: int = 30) -> np.ndarray:
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[..., 0] = np.arange(width, dtype=np.uint8) * 8
    image[..., 1] = np.arange(height, dtype=np.uint8)[:, np.newaxis] * 12
    image[..., 2] = 99
    image[..., 3] = 255
    return image


class TestDecode:
    """Tests for decoding bytes into RGBA buffers."""

    def test_png_roundtrip_is_lossless(self, codec: ImageCodec) -> None:
        image = _gradient_rgba()
        np.testing.assert_array_equal(codec.decode(codec.encode(image, "png")), image)

    def test_rgb_png_gets_opaque_alpha(self, codec: ImageCodec) -> None:
        buf = io.BytesIO()
        Image.fromarray(np.full((5, 7, 3), 60, dtype=np.uint8)).save(buf, format="PNG")
        decoded = codec.decode(buf.getvalue())
        assert decoded.shape == (5, 7, 4)
        assert (decoded[..., 3] == 255).all()

    def test_garbage_raises(self, codec: ImageCodec) -> None:
        with pytest.raises(ValueError, match="Could not decode image"):
            codec.decode(b"definitely not an image")

    def test_empty_bytes_raise(self, codec: ImageCodec) -> None:
        with pytest.raises(ValueError):
            codec.decode(b"")


class TestEncode:
    """Tests for encoding buffers to PNG and JPEG."""

    def test_png_signature(self, codec: ImageCodec) -> None:
        assert codec.encode(_gradient_rgba(), "png").startswith(b"\x89PNG")

    def test_jpeg_signature(self, codec: ImageCodec) -> None:
        data = codec.encode(_gradient_rgba(), "jpeg", quality=70)
        assert data.startswith(b"\xff\xd8")

    def test_jpg_alias(self, codec: ImageCodec) -> None:
        assert codec.encode(_gradient_rgba(), "JPG").startswith(b"\xff\xd8")

    def test_grayscale_input(self, codec: ImageCodec) -> None:
        gray = np.full((8, 9), 200, dtype=np.uint8)
        decoded = codec.decode(codec.encode(gray, "png"))
        assert decoded.shape == (8, 9, 4)
        assert (decoded[..., :3] == 200).all()

    def test_unsupported_format(self, codec: ImageCodec) -> None:
        with pytest.raises(ValueError, match="Unsupported image format"):
            codec.encode(_gradient_rgba(), "gif")


class TestFiles:
    """Tests for loading and saving image files."""

    def test_save_and_load(self, codec: ImageCodec, tmp_path: Path) -> None:
        image = _gradient_rgba()
        path = tmp_path / "nested" / "card.png"
        codec.save(image, path)
        assert path.exists()
        np.testing.assert_array_equal(codec.load(path), image)

    def test_save_jpeg_by_suffix(self, codec: ImageCodec, tmp_path: Path) -> None:
        path = tmp_path / "card.JPEG"
        codec.save(_gradient_rgba(), path)
        assert path.read_bytes().startswith(b"\xff\xd8")

    def test_save_unsupported_suffix(self, codec: ImageCodec, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unsupported output file type"):
            codec.save(_gradient_rgba(), tmp_path / "card.bmp")

    def test_load_missing_file(self, codec: ImageCodec, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            codec.load(tmp_path / "missing.png")
