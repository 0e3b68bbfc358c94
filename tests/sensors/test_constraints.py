"""
Unit tests for inertial_dr/sensors/constraints.py.

Tests cover:
    - Quiet-sample test and per-axis deadzone
    - Stationary hysteresis (run length must exceed required_count)
    - Immediate return to MOVING on a loud sample
    - Bias EMA and correction

Run with: pytest tests/sensors/test_constraints.py -v
"""

import unittest

import numpy as np
import pytest

from inertial_dr.sensors.constraints import (
    BiasEstimator,
    MotionClassifier,
    apply_deadzone,
    is_quiet,
)
from inertial_dr.sensors.types import MotionState


class TestDeadzone(unittest.TestCase):
    """Test suite for apply_deadzone()."""

    def test_small_components_zeroed(self) -> None:
        out = apply_deadzone(np.array([0.05, -0.2, 0.01]), 0.08)
        np.testing.assert_array_equal(out, [0.0, -0.2, 0.0])

    def test_threshold_is_strict(self) -> None:
        """Test a component equal to the deadzone is kept."""
        np.testing.assert_array_equal(apply_deadzone([0.1, 0.0, 0.0], 0.1), [0.1, 0.0, 0.0])

    def test_zero_deadzone_is_noop(self) -> None:
        a = np.array([1e-9, -1e-9, 0.0])
        np.testing.assert_array_equal(apply_deadzone(a, 0.0), a)

    def test_negative_deadzone_raises(self) -> None:
        with pytest.raises(ValueError):
            apply_deadzone(np.zeros(3), -0.1)


class TestIsQuiet(unittest.TestCase):

    def test_uses_euclidean_magnitude(self) -> None:
        """Test each axis below threshold but norm above is not quiet."""
        self.assertFalse(is_quiet([0.15, 0.15, 0.0], 0.2))
        self.assertTrue(is_quiet([0.1, 0.1, 0.0], 0.2))

    def test_zero_threshold_never_quiet(self) -> None:
        self.assertFalse(is_quiet(np.zeros(3), 0.0))


class TestMotionClassifier(unittest.TestCase):
    """Test suite for stationary hysteresis."""

    def test_requires_more_than_required_count(self) -> None:
        """Test STATIONARY appears on quiet sample required_count + 1."""
        clf = MotionClassifier(threshold=0.2, required_count=5)
        states = [clf.update(np.zeros(3)) for _ in range(6)]
        self.assertTrue(all(s is MotionState.MOVING for s in states[:5]))
        self.assertIs(states[5], MotionState.STATIONARY)

    def test_loud_sample_resets_immediately(self) -> None:
        clf = MotionClassifier(threshold=0.2, required_count=2)
        for _ in range(10):
            clf.update(np.zeros(3))
        self.assertIs(clf.state, MotionState.STATIONARY)

        self.assertIs(clf.update(np.array([0.3, 0.0, 0.0])), MotionState.MOVING)
        self.assertEqual(clf.counter, 0)

    def test_sample_at_threshold_is_loud(self) -> None:
        clf = MotionClassifier(threshold=0.2, required_count=1)
        clf.update(np.zeros(3))
        clf.update(np.array([0.2, 0.0, 0.0]))
        self.assertEqual(clf.counter, 0)

    def test_get_set_state_roundtrip(self) -> None:
        clf = MotionClassifier(threshold=0.2, required_count=1)
        clf.update(np.zeros(3))
        saved = clf.get_state()
        clf.update(np.zeros(3))
        clf.set_state(saved)
        self.assertEqual(clf.counter, 1)
        self.assertIs(clf.state, MotionState.MOVING)

    def test_reset(self) -> None:
        clf = MotionClassifier(threshold=0.2, required_count=1)
        for _ in range(3):
            clf.update(np.zeros(3))
        clf.reset()
        self.assertEqual(clf.counter, 0)
        self.assertIs(clf.state, MotionState.MOVING)

    def test_invalid_parameters(self) -> None:
        with pytest.raises(ValueError):
            MotionClassifier(threshold=-1.0, required_count=1)
        with pytest.raises(ValueError):
            MotionClassifier(threshold=0.2, required_count=0)


class TestBiasEstimator(unittest.TestCase):
    """Test suite for BiasEstimator."""

    def test_single_update(self) -> None:
        """Test b = b(1-λ) + aλ."""
        est = BiasEstimator(learning_rate=0.1)
        est.update(np.array([1.0, -1.0, 0.5]))
        np.testing.assert_allclose(est.bias, [0.1, -0.1, 0.05])

    def test_converges_to_constant(self) -> None:
        est = BiasEstimator(learning_rate=0.05)
        for _ in range(1000):
            est.update(np.array([0.02, -0.03, 0.01]))
        np.testing.assert_allclose(est.bias, [0.02, -0.03, 0.01], atol=1e-12)

    def test_zero_rate_never_learns(self) -> None:
        est = BiasEstimator(learning_rate=0.0)
        est.update(np.ones(3))
        np.testing.assert_array_equal(est.bias, np.zeros(3))

    def test_correct_subtracts_bias(self) -> None:
        est = BiasEstimator(learning_rate=0.01, initial_bias=[0.1, 0.2, 0.3])
        np.testing.assert_allclose(est.correct([1.0, 1.0, 1.0]), [0.9, 0.8, 0.7])

    def test_reset_zeroes(self) -> None:
        est = BiasEstimator(learning_rate=0.01, initial_bias=[0.1, 0.2, 0.3])
        est.reset()
        np.testing.assert_array_equal(est.bias, np.zeros(3))

    def test_invalid_rate(self) -> None:
        with pytest.raises(ValueError):
            BiasEstimator(learning_rate=1.0)


if __name__ == "__main__":
    unittest.main()
