"""3x3 convolution engine and the edge operators built on it.

Kernels are applied to interior pixels only (``1 <= x < w - 1`` and
``1 <= y < h - 1``). Callers choose what happens on the one-pixel border.
"""

import numpy as np

from idscan.utils.logger import get_logger

from .pixels import require_gray, to_uint8

logger = get_logger(__name__)

SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)
LAPLACIAN = np.array([[0, 1, 0], [1, -4, 1], [0, 1, 0]], dtype=np.float64)
SHARPEN = np.array([[0, -1, 0], [-1, 5, -1], [0, -1, 0]], dtype=np.float64)


def has_interior(gray: np.ndarray) -> bool:
    """Return True if the image is at least 3x3 pixels."""
    return gray.shape[0] >= 3 and gray.shape[1] >= 3


def convolve3x3(gray: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Apply a 3x3 kernel to every interior pixel.

    The kernel is used as written (correlation order), matching how the
    Sobel and Laplacian kernels are conventionally tabulated.

    Args:
        gray: Grayscale buffer, at least 3x3.
        kernel: 3x3 array of weights.

    Returns:
        Float64 response of shape (height - 2, width - 2).

    Raises:
        ValueError: If the kernel is not 3x3 or the image is smaller than 3x3.
    """
    require_gray(gray)
    kernel = np.asarray(kernel, dtype=np.float64)
    if kernel.shape != (3, 3):
        raise ValueError(f"Kernel must be 3x3, got {kernel.shape}")
    if not has_interior(gray):
        raise ValueError(
            f"Image of size {gray.shape[1]}x{gray.shape[0]} is too small for a 3x3 kernel"
        )

    height, width = gray.shape
    source = gray.astype(np.float64)
    response = np.zeros((height - 2, width - 2), dtype=np.float64)
    for ky in range(3):
        for kx in range(3):
            weight = kernel[ky, kx]
            if weight:
                response += weight * source[ky : ky + height - 2, kx : kx + width - 2]
    return response


def apply_kernel(gray: np.ndarray, kernel: np.ndarray, border: str = "zero") -> np.ndarray:
    """Convolve and clamp to a full-size 8-bit buffer.

    Args:
        gray: Grayscale buffer.
        kernel: 3x3 array of weights.
        border: ``"zero"`` leaves border pixels black, ``"copy"`` copies
            them from the source.

    Returns:
        Grayscale buffer with the same shape as the input.

    Raises:
        ValueError: If an unsupported border mode is specified.
    """
    if border == "zero":
        result = np.zeros_like(gray)
    elif border == "copy":
        result = gray.copy()
    else:
        raise ValueError(f"Unsupported border mode: {border}")

    if has_interior(gray):
        result[1:-1, 1:-1] = to_uint8(convolve3x3(gray, kernel))
    return result


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """Gradient magnitude ``sqrt(Gx^2 + Gy^2)`` over interior pixels."""
    gx = convolve3x3(gray, SOBEL_X)
    gy = convolve3x3(gray, SOBEL_Y)
    return np.hypot(gx, gy)


def sobel_edge_map(gray: np.ndarray) -> np.ndarray:
    """Build an 8-bit edge map scaled so the strongest edge is 255.

    Border pixels are zero. A flat image (or one too small for the
    kernel) produces an all-zero map.

    Args:
        gray: Grayscale buffer.

    Returns:
        Edge magnitude map with the same shape as the input.
    """
    edges = np.zeros_like(gray)
    if not has_interior(gray):
        return edges

    magnitude = sobel_magnitude(gray)
    peak = float(magnitude.max())
    if peak > 0:
        edges[1:-1, 1:-1] = to_uint8(magnitude / peak * 255)
    logger.debug("Sobel edge map built (peak magnitude %.1f)", peak)
    return edges


def laplacian(gray: np.ndarray) -> np.ndarray:
    """Second-derivative response over interior pixels."""
    return convolve3x3(gray, LAPLACIAN)
