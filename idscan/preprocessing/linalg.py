"""Dense linear system solving by Gauss-Jordan elimination."""

from collections.abc import Sequence

import numpy as np

PIVOT_TOLERANCE = 1e-9


class SingularMatrixError(ValueError):
    """Raised when a system has no unique solution."""


def solve_linear_system(
    matrix: Sequence[Sequence[float]] | np.ndarray,
    vector: Sequence[float] | np.ndarray,
) -> np.ndarray:
    """Solve ``A x = b`` with Gauss-Jordan elimination and partial pivoting.

    The inputs are copied into a private augmented matrix; the caller's
    arrays are never modified.

    Args:
        matrix: n x n coefficient matrix.
        vector: Right-hand side of length n.

    Returns:
        Solution vector of length n.

    Raises:
        ValueError: If the shapes do not describe a square system.
        SingularMatrixError: If a pivot falls below ``PIVOT_TOLERANCE``.
    """
    a = np.array(matrix, dtype=np.float64)
    b = np.array(vector, dtype=np.float64)
    n = a.shape[0] if a.ndim == 2 else 0
    if a.ndim != 2 or a.shape != (n, n) or b.shape != (n,) or n == 0:
        raise ValueError(f"Expected an n x n matrix and length-n vector, got {a.shape} and {b.shape}")

    augmented = np.column_stack([a, b])

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(augmented[col:, col])))
        if pivot_row != col:
            augmented[[col, pivot_row]] = augmented[[pivot_row, col]]

        pivot = augmented[col, col]
        if abs(pivot) < PIVOT_TOLERANCE:
            raise SingularMatrixError(
                f"Matrix is singular or near-singular (pivot {pivot:.3g} in column {col})"
            )

        augmented[col, col:] /= pivot
        factors = augmented[:, col].copy()
        factors[col] = 0.0
        augmented[:, col:] -= np.outer(factors, augmented[col, col:])

    return augmented[:, n].copy()
