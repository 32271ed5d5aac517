"""Image decoding and encoding at the edge of the pipeline.

The algorithms only ever see RGBA numpy buffers; this module turns
uploaded or on-disk files into those buffers and back.
"""

import io
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from idscan.preprocessing.pixels import gray_to_rgba
from idscan.utils.logger import get_logger

logger = get_logger(__name__)

_FORMATS = {
    "png": "PNG",
    "jpeg": "JPEG",
    "jpg": "JPEG",
}
_SUFFIX_FORMATS = {
    ".png": "png",
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
}


class ImageCodec:
    """Pillow-backed conversion between encoded bytes and RGBA buffers."""

    def decode(self, data: bytes) -> np.ndarray:
        """Decode image bytes into an RGBA buffer.

        Args:
            data: Encoded image (PNG, JPEG, TIFF, ...).

        Returns:
            RGBA ``uint8`` array of shape (height, width, 4).

        Raises:
            ValueError: If the bytes are not a decodable image.
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                rgba = np.array(img.convert("RGBA"))
        except (UnidentifiedImageError, OSError) as exc:
            raise ValueError(f"Could not decode image: {exc}") from exc
        logger.debug("Decoded %dx%d image", rgba.shape[1], rgba.shape[0])
        return rgba

    def encode(self, image: np.ndarray, fmt: str = "png", quality: int = 90) -> bytes:
        """Encode a buffer as PNG or JPEG.

        Args:
            image: RGBA or grayscale buffer.
            fmt: ``"png"`` or ``"jpeg"``.
            quality: JPEG quality (1-100). Ignored for PNG.

        Returns:
            Encoded image bytes.

        Raises:
            ValueError: If an unsupported format is specified.
        """
        pil_format = _FORMATS.get(fmt.lower())
        if pil_format is None:
            raise ValueError(f"Unsupported image format: {fmt}")

        if image.ndim == 2:
            image = gray_to_rgba(image)
        img = Image.fromarray(image)

        buf = io.BytesIO()
        if pil_format == "JPEG":
            img.convert("RGB").save(buf, format="JPEG", quality=quality)
        else:
            img.save(buf, format="PNG")
        return buf.getvalue()

    def load(self, path: Path) -> np.ndarray:
        """Read and decode an image file."""
        return self.decode(Path(path).read_bytes())

    def save(self, image: np.ndarray, path: Path, quality: int = 90) -> None:
        """Encode an image and write it, choosing the format by suffix.

        Raises:
            ValueError: If the suffix is not .png, .jpg or .jpeg.
        """
        path = Path(path)
        fmt = _SUFFIX_FORMATS.get(path.suffix.lower())
        if fmt is None:
            raise ValueError(f"Unsupported output file type: {path.suffix}")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.encode(image, fmt, quality))
        logger.info("Wrote %s", path)
