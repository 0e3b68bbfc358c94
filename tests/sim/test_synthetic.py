"""
Unit tests for inertial_dr/sim/synthetic.py.

Tests cover:
    - Ground truth of the synthetic generators
    - Time ordering of merged streams
    - Sample-log save / load
    - Exact replay of constant acceleration through an undamped estimator

Run with: pytest tests/sim/test_synthetic.py -v
"""

import tempfile
import unittest

import numpy as np
import pytest

from inertial_dr.config import EstimatorConfig
from inertial_dr.estimation import DoubleIntegrationEstimator
from inertial_dr.sensors.types import AccelerationSample, OrientationSample
from inertial_dr.sim import (
    SampleLog,
    generate_constant_acceleration,
    generate_step_walk,
    generate_walk_stop,
    load_sample_log,
    merge_streams,
    replay_log,
    save_sample_log,
)


class TestGenerators(unittest.TestCase):
    """Test suite for generator ground truth."""

    def test_constant_acceleration_truth(self) -> None:
        log = generate_constant_acceleration(accel_world=(2.0, 0.0, 0.0), duration=1.0)
        self.assertEqual(len(log.accel), 51)
        self.assertAlmostEqual(log.duration, 1.0)
        # Explicit Euler: p_k = k(k+1)/2 · a · dt²
        self.assertAlmostEqual(log.true_position[-1, 0], 50 * 51 / 2 * 2.0 * 0.02**2)

    def test_constant_acceleration_device_frame(self) -> None:
        """Test a world +x acceleration appears on device -y after a 90 degree yaw."""
        log = generate_constant_acceleration(accel_world=(1.0, 0.0, 0.0), yaw=np.pi / 2)
        np.testing.assert_allclose(log.accel[0], [0.0, -1.0, 0.0], atol=1e-12)

    def test_walk_stop_segment_distance(self) -> None:
        log = generate_walk_stop(n_segments=2, headings=[0.0, np.pi / 2], peak_accel=2.0,
                                 walk_duration=2.0)
        d = 2.0 * 2.0**2 / (2.0 * np.pi)
        np.testing.assert_allclose(log.true_position[-1], [d, d, 0.0], atol=1e-12)
        self.assertAlmostEqual(log.meta["segment_distance_m"], d)

    def test_walk_stop_starts_and_ends_at_rest(self) -> None:
        log = generate_walk_stop(n_segments=1)
        n_stop = 75
        np.testing.assert_array_equal(log.accel[:n_stop], 0.0)
        np.testing.assert_array_equal(log.accel[-n_stop:], 0.0)

    def test_walk_stop_noise_is_seeded(self) -> None:
        a = generate_walk_stop(noise_std=0.05, seed=3)
        b = generate_walk_stop(noise_std=0.05, seed=3)
        np.testing.assert_array_equal(a.accel, b.accel)

    def test_walk_stop_bias(self) -> None:
        log = generate_walk_stop(n_segments=1, bias=[0.01, 0.02, 0.03])
        np.testing.assert_allclose(log.accel[0], [0.01, 0.02, 0.03])

    def test_walk_stop_invalid(self) -> None:
        with pytest.raises(ValueError):
            generate_walk_stop(n_segments=0)
        with pytest.raises(ValueError):
            generate_walk_stop(n_segments=2, headings=[0.0])

    def test_step_walk_truth(self) -> None:
        log = generate_step_walk(n_steps=10, stride=0.7, heading=np.pi / 2)
        np.testing.assert_allclose(log.true_position[-1], [0.0, 7.0, 0.0], atol=1e-12)
        self.assertTrue(np.all(log.accel[:, 2] >= 0.0))
        np.testing.assert_array_equal(log.accel[:, :2], 0.0)


class TestSampleLog(unittest.TestCase):

    def test_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            SampleLog(
                orientation_t=[0, 1],
                orientation=np.zeros((3, 4)),
                accel_t=[0],
                accel=np.zeros((1, 3)),
            )

    def test_merge_orders_by_time_orientation_first(self) -> None:
        log = SampleLog(
            orientation_t=[0, 20],
            orientation=[[0.0, 0.0, 0.0, 1.0]] * 2,
            accel_t=[0, 10, 20],
            accel=np.zeros((3, 3)),
        )
        merged = merge_streams(log)
        kinds = [type(s) for s in merged]
        self.assertEqual(
            kinds,
            [OrientationSample, AccelerationSample, AccelerationSample,
             OrientationSample, AccelerationSample],
        )
        self.assertEqual([s.timestamp_ns for s in merged], [0, 0, 10, 20, 20])

    def test_save_and_load(self) -> None:
        log = generate_walk_stop(n_segments=1, noise_std=0.02, seed=1)
        with tempfile.TemporaryDirectory() as tmp:
            save_sample_log(log, tmp)
            loaded = load_sample_log(tmp)

        np.testing.assert_array_equal(loaded.accel_t, log.accel_t)
        np.testing.assert_array_equal(loaded.orientation_t, log.orientation_t)
        np.testing.assert_allclose(loaded.orientation, log.orientation, atol=1e-12)
        np.testing.assert_allclose(loaded.accel, log.accel, atol=1e-9)
        np.testing.assert_allclose(loaded.true_position, log.true_position, atol=1e-9)
        self.assertEqual(loaded.meta, log.meta)

    def test_load_missing_directory(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_sample_log("/nonexistent/inertial_dr_log")


class TestReplay(unittest.TestCase):

    def test_constant_acceleration_replay_is_exact(self) -> None:
        log = generate_constant_acceleration(accel_world=(0.5, -0.25, 0.1), yaw=0.4)
        cfg = EstimatorConfig(
            lowpass_alpha=0.0,
            stationary_threshold=0.0,
            accel_deadzone=0.0,
            velocity_damping=1.0,
            bias_learning_rate=0.0,
        )
        positions = replay_log(log, DoubleIntegrationEstimator(cfg))
        self.assertEqual(positions.shape, log.true_position.shape)
        np.testing.assert_allclose(positions, log.true_position, rtol=1e-9, atol=1e-12)


if __name__ == "__main__":
    unittest.main()
