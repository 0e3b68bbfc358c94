"""
Unit tests for strategy selection in inertial_dr/estimation/__init__.py.

Run with: pytest tests/estimation/test_estimator_registry.py -v
"""

import unittest

from inertial_dr.config import EstimatorConfig, get_preset
from inertial_dr.estimation import (
    ESTIMATORS,
    DoubleIntegrationEstimator,
    MotionEstimator,
    StepHeadingEstimator,
    create_estimator,
)


class TestCreateEstimator(unittest.TestCase):

    def test_default_is_double_integration(self) -> None:
        est = create_estimator()
        self.assertIsInstance(est, DoubleIntegrationEstimator)
        self.assertEqual(est.config, EstimatorConfig())

    def test_step_heading_preset(self) -> None:
        est = create_estimator(get_preset("pedestrian_steps"))
        self.assertIsInstance(est, StepHeadingEstimator)

    def test_observer_passed_through(self) -> None:
        events = []
        est = create_estimator(observer=events.append)
        est.report("seeded", 0)
        self.assertEqual([e.kind for e in events], ["seeded"])

    def test_registry_contents(self) -> None:
        self.assertEqual(set(ESTIMATORS), {"double_integration", "step_heading"})
        for cls in ESTIMATORS.values():
            self.assertTrue(issubclass(cls, MotionEstimator))


if __name__ == "__main__":
    unittest.main()
