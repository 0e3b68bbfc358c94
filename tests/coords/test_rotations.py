"""
Unit tests for inertial_dr/coords/rotations.py (quaternion algebra).

Tests cover:
    - Hamilton product and conjugate
    - Vector rotation (identity, zero vector, agreement with matrix form)
    - Rotation-vector reconstruction (3, 4 and 5 components, invalid input)
    - Yaw quaternions and heading extraction

Run with: pytest tests/coords/test_rotations.py -v
"""

import unittest

import numpy as np
import pytest

from inertial_dr.coords.rotations import (
    IDENTITY_QUAT,
    quat_conjugate,
    quat_from_rotation_vector,
    quat_heading,
    quat_multiply,
    quat_normalize,
    quat_to_rotation_matrix,
    rotate_vector,
    yaw_to_quat,
)


def _random_unit_quats(n, seed=0):
    rng = np.random.default_rng(seed)
    q = rng.normal(size=(n, 4))
    return q / np.linalg.norm(q, axis=1, keepdims=True)


class TestQuatAlgebra(unittest.TestCase):
    """Test suite for the Hamilton product and conjugate."""

    def test_identity_is_neutral(self) -> None:
        """Test that q ⊗ 1 = 1 ⊗ q = q."""
        for q in _random_unit_quats(5):
            np.testing.assert_allclose(quat_multiply(q, IDENTITY_QUAT), q)
            np.testing.assert_allclose(quat_multiply(IDENTITY_QUAT, q), q)

    def test_product_with_conjugate_is_identity(self) -> None:
        """Test that q ⊗ q* = identity for a unit quaternion."""
        for q in _random_unit_quats(5, seed=1):
            np.testing.assert_allclose(
                quat_multiply(q, quat_conjugate(q)), IDENTITY_QUAT, atol=1e-12
            )

    def test_product_composes_yaw(self) -> None:
        """Test that two yaw rotations compose by adding angles."""
        q = quat_multiply(yaw_to_quat(0.3), yaw_to_quat(0.5))
        np.testing.assert_allclose(q, yaw_to_quat(0.8), atol=1e-12)

    def test_hamilton_basis(self) -> None:
        """Test i ⊗ j = k (Hamilton convention)."""
        i = np.array([1.0, 0.0, 0.0, 0.0])
        j = np.array([0.0, 1.0, 0.0, 0.0])
        k = np.array([0.0, 0.0, 1.0, 0.0])
        np.testing.assert_array_equal(quat_multiply(i, j), k)

    def test_conjugate(self) -> None:
        """Test conjugate negates the vector part only."""
        np.testing.assert_array_equal(
            quat_conjugate([0.1, -0.2, 0.3, 0.9]), [-0.1, 0.2, -0.3, 0.9]
        )

    def test_wrong_shape_raises(self) -> None:
        """Test that non-quaternion input raises ValueError."""
        with pytest.raises(ValueError):
            quat_multiply([0.0, 0.0, 1.0], IDENTITY_QUAT)

    def test_normalize_zero_raises(self) -> None:
        """Test that a zero quaternion cannot be normalized."""
        with pytest.raises(ValueError):
            quat_normalize(np.zeros(4))


class TestRotateVector(unittest.TestCase):
    """Test suite for device-to-world vector rotation."""

    def test_identity_leaves_vector_unchanged(self) -> None:
        """Test that the identity quaternion is a no-op."""
        v = np.array([1.5, -2.0, 0.25])
        np.testing.assert_array_equal(rotate_vector(IDENTITY_QUAT, v), v)

    def test_zero_vector_stays_zero(self) -> None:
        """Test that rotating the zero vector yields zero for any unit quaternion."""
        for q in _random_unit_quats(10, seed=2):
            np.testing.assert_allclose(rotate_vector(q, np.zeros(3)), np.zeros(3), atol=0.0)

    def test_yaw_90_maps_x_to_y(self) -> None:
        """Test a 90 degree yaw maps East to North."""
        v = rotate_vector(yaw_to_quat(np.pi / 2), [1.0, 0.0, 0.0])
        np.testing.assert_allclose(v, [0.0, 1.0, 0.0], atol=1e-12)

    def test_matches_rotation_matrix(self) -> None:
        """Test the sandwich product agrees with R @ v."""
        rng = np.random.default_rng(3)
        for q in _random_unit_quats(10, seed=3):
            v = rng.normal(size=3)
            np.testing.assert_allclose(
                rotate_vector(q, v), quat_to_rotation_matrix(q) @ v, atol=1e-12
            )

    def test_preserves_norm(self) -> None:
        """Test rotation preserves vector length."""
        v = np.array([3.0, 4.0, 12.0])
        for q in _random_unit_quats(5, seed=4):
            self.assertAlmostEqual(np.linalg.norm(rotate_vector(q, v)), 13.0, places=10)

    def test_float32_input_computed_in_float64(self) -> None:
        """Test single-precision input produces a float64 result."""
        q = yaw_to_quat(0.7).astype(np.float32)
        v = np.array([1.0, 2.0, 3.0], dtype=np.float32)
        self.assertEqual(rotate_vector(q, v).dtype, np.float64)

    def test_rotation_matrix_is_orthonormal(self) -> None:
        """Test R^T R = I and det(R) = 1."""
        for q in _random_unit_quats(5, seed=5):
            R = quat_to_rotation_matrix(q)
            np.testing.assert_allclose(R.T @ R, np.eye(3), atol=1e-12)
            self.assertAlmostEqual(np.linalg.det(R), 1.0, places=12)


class TestQuatFromRotationVector(unittest.TestCase):
    """Test suite for rotation-vector sensor values → unit quaternion."""

    def test_three_components_reconstruct_w(self) -> None:
        """Test w = sqrt(1 - x² - y² - z²) when only x, y, z are given."""
        s = np.sin(np.pi / 8)
        q = quat_from_rotation_vector([0.0, 0.0, s])
        np.testing.assert_allclose(q, [0.0, 0.0, s, np.cos(np.pi / 8)], atol=1e-12)

    def test_three_components_clamp_w(self) -> None:
        """Test the radicand is clamped at 0 when x² + y² + z² > 1."""
        q = quat_from_rotation_vector([1.0, 1.0, 0.0])
        np.testing.assert_allclose(q, [np.sqrt(0.5), np.sqrt(0.5), 0.0, 0.0])

    def test_four_components_normalized(self) -> None:
        """Test a 4-component value is used as-is and normalized."""
        q = quat_from_rotation_vector([0.0, 0.0, 0.0, 2.0])
        np.testing.assert_array_equal(q, IDENTITY_QUAT)

    def test_extra_components_ignored(self) -> None:
        """Test a trailing accuracy field is ignored."""
        q = quat_from_rotation_vector([0.0, 0.0, 0.0, 1.0, 0.35])
        np.testing.assert_array_equal(q, IDENTITY_QUAT)

    def test_result_is_unit_norm(self) -> None:
        """Test output norm is 1."""
        q = quat_from_rotation_vector([0.1, 0.2, 0.3, 0.8])
        self.assertAlmostEqual(np.linalg.norm(q), 1.0, places=12)

    def test_too_few_components_raise(self) -> None:
        """Test fewer than 3 components raises ValueError."""
        with pytest.raises(ValueError):
            quat_from_rotation_vector([0.1, 0.2])

    def test_non_finite_raises(self) -> None:
        """Test NaN components raise ValueError."""
        with pytest.raises(ValueError):
            quat_from_rotation_vector([np.nan, 0.0, 0.0, 1.0])

    def test_zero_quaternion_raises(self) -> None:
        """Test an all-zero 4-component value raises ValueError."""
        with pytest.raises(ValueError):
            quat_from_rotation_vector([0.0, 0.0, 0.0, 0.0])


class TestHeading(unittest.TestCase):
    """Test suite for heading extraction."""

    def test_identity_heading_is_north(self) -> None:
        """Test device +y points North for the identity orientation."""
        self.assertAlmostEqual(quat_heading(IDENTITY_QUAT), np.pi / 2, places=12)

    def test_yaw_minus_90_heading_is_east(self) -> None:
        """Test yawing -90 degrees turns device +y to East."""
        self.assertAlmostEqual(quat_heading(yaw_to_quat(-np.pi / 2)), 0.0, places=12)

    def test_custom_forward_axis(self) -> None:
        """Test heading of the device +x axis equals the yaw angle."""
        yaw = 0.4
        self.assertAlmostEqual(
            quat_heading(yaw_to_quat(yaw), forward_axis=(1.0, 0.0, 0.0)), yaw, places=12
        )

    def test_vertical_axis_returns_zero(self) -> None:
        """Test heading is 0 when the forward axis points straight up."""
        q = np.array([np.sin(np.pi / 4), 0.0, 0.0, np.cos(np.pi / 4)])
        self.assertEqual(quat_heading(q), 0.0)


if __name__ == "__main__":
    unittest.main()
