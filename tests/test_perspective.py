"""Tests for the linear system solver and perspective corrector."""

import numpy as np
import pytest

from idscan.preprocessing.linalg import SingularMatrixError, solve_linear_system
from idscan.preprocessing.perspective import (
    PerspectiveError,
    Point,
    Quadrilateral,
    compute_homography,
    correct_perspective,
)


def _random_rgba(height: int = 80, width: int = 100, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    image = rng.integers(0, 256, size=(height, width, 4)).astype(np.uint8)
    image[..., 3] = 255
    return image


def _rect(left: float, top: float, right: float, bottom: float) -> Quadrilateral:
    return Quadrilateral(
        Point(left, top), Point(right, top), Point(right, bottom), Point(left, bottom)
    )


class TestSolveLinearSystem:
    """Tests for Gauss-Jordan elimination with partial pivoting."""

    def test_known_solution(self) -> None:
        a = [[2, 1, -1], [-3, -1, 2], [-2, 1, 2]]
        b = [8, -11, -3]
        np.testing.assert_allclose(solve_linear_system(a, b), [2, 3, -1])

    def test_requires_row_swap(self) -> None:
        np.testing.assert_allclose(solve_linear_system([[0, 1], [1, 0]], [2, 3]), [3, 2])

    def test_matches_numpy(self) -> None:
        rng = np.random.default_rng(3)
        a = rng.normal(size=(8, 8))
        b = rng.normal(size=8)
        np.testing.assert_allclose(solve_linear_system(a, b), np.linalg.solve(a, b))

    def test_singular_raises(self) -> None:
        with pytest.raises(SingularMatrixError):
            solve_linear_system([[1, 2], [2, 4]], [3, 6])

    def test_singular_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            solve_linear_system([[0, 0], [0, 0]], [0, 0])

    def test_inputs_not_modified(self) -> None:
        a = np.array([[0.0, 1.0], [1.0, 0.0]])
        b = np.array([2.0, 3.0])
        a_list = [[0.0, 1.0], [1.0, 0.0]]
        solve_linear_system(a, b)
        solve_linear_system(a_list, [2.0, 3.0])
        np.testing.assert_array_equal(a, [[0.0, 1.0], [1.0, 0.0]])
        np.testing.assert_array_equal(b, [2.0, 3.0])
        assert a_list == [[0.0, 1.0], [1.0, 0.0]]

    @pytest.mark.parametrize(
        "matrix,vector",
        [
            ([[1, 2, 3], [4, 5, 6]], [1, 2]),
            ([[1, 0], [0, 1]], [1, 2, 3]),
            ([1, 2], [1, 2]),
        ],
    )
    def test_shape_mismatch_raises(self, matrix: list, vector: list) -> None:
        with pytest.raises(ValueError, match="n x n"):
            solve_linear_system(matrix, vector)


class TestQuadrilateral:
    """Tests for the corner container."""

    def test_from_sequence(self) -> None:
        quad = Quadrilateral.from_sequence([0, 0, 10, 0, 10, 5, 0, 5])
        assert quad.top_right == Point(10.0, 0.0)
        assert quad.bottom_left == Point(0.0, 5.0)

    def test_from_sequence_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="8 coordinates"):
            Quadrilateral.from_sequence([1, 2, 3])

    def test_output_size_averages_edges(self) -> None:
        quad = Quadrilateral(Point(0, 0), Point(100, 0), Point(90, 50), Point(10, 50))
        assert quad.output_size() == (90, 51)


class TestComputeHomography:
    """Tests for the destination-to-source coefficient solve."""

    def test_identity_rectangle(self) -> None:
        coeffs = compute_homography(_rect(0, 0, 40, 30), 40, 30)
        np.testing.assert_allclose(coeffs, [1, 0, 0, 0, 1, 0, 0, 0], atol=1e-12)

    def test_maps_corners(self) -> None:
        quad = Quadrilateral(Point(12, 8), Point(95, 15), Point(88, 70), Point(5, 60))
        a, b, c, d, e, f, g, h = compute_homography(quad, 80, 55)
        for (u, v), corner in zip([(0, 0), (80, 0), (80, 55), (0, 55)], quad.corners):
            denominator = g * u + h * v + 1
            assert (a * u + b * v + c) / denominator == pytest.approx(corner.x)
            assert (d * u + e * v + f) / denominator == pytest.approx(corner.y)


class TestCorrectPerspective:
    """Tests for inverse-mapped bilinear rectification."""

    def test_axis_aligned_rectangle_equals_crop(self) -> None:
        image = _random_rgba()
        result = correct_perspective(image, _rect(10, 20, 60, 60))
        assert result.shape == (40, 50, 4)
        np.testing.assert_allclose(
            result.astype(int), image[20:60, 10:60].astype(int), atol=1
        )

    def test_collinear_points_raise(self) -> None:
        image = _random_rgba(50, 50)
        quad = Quadrilateral(Point(0, 0), Point(10, 0), Point(20, 0), Point(30, 0))
        with pytest.raises(PerspectiveError, match="collinear"):
            correct_perspective(image, quad)

    def test_zero_size_output_raises(self) -> None:
        image = _random_rgba(50, 50)
        quad = Quadrilateral(Point(5, 5), Point(5, 5), Point(5, 5), Point(5, 5))
        with pytest.raises(PerspectiveError, match="zero-sized"):
            correct_perspective(image, quad)

    def test_errors_are_value_errors(self) -> None:
        assert issubclass(PerspectiveError, ValueError)

    def test_outside_source_is_transparent(self) -> None:
        image = _random_rgba(50, 50)
        result = correct_perspective(image, _rect(-10, -10, 40, 40))
        assert result.shape == (50, 50, 4)
        assert (result[:9, :, 3] == 0).all()
        assert (result[:, :9, 3] == 0).all()
        assert (result[11:, 11:, 3] == 255).all()
        np.testing.assert_allclose(
            result[11:, 11:].astype(int), image[1:40, 1:40].astype(int), atol=1
        )

    def test_skewed_quad_fills_output(self) -> None:
        image = _random_rgba(120, 160)
        quad = Quadrilateral(Point(20, 10), Point(140, 25), Point(130, 100), Point(15, 110))
        result = correct_perspective(image, quad)
        width, height = quad.output_size()
        assert result.shape == (height, width, 4)
        assert (result[..., 3] == 255).mean() > 0.95

    def test_input_not_modified(self) -> None:
        image = _random_rgba()
        original = image.copy()
        correct_perspective(image, _rect(5, 5, 50, 50))
        np.testing.assert_array_equal(image, original)
