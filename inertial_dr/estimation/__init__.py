"""
Motion estimation strategies for dead reckoning.

Available estimators:
    - DoubleIntegrationEstimator: acceleration double integration with
      stationary detection, bias learning, deadzone and damping
    - StepHeadingEstimator: step detection with stride length x heading

Both implement MotionEstimator and are selected by EstimatorConfig.strategy
through create_estimator().
"""

from typing import Dict, Optional, Type

from inertial_dr.config import EstimatorConfig
from inertial_dr.estimation.base import DiagnosticObserver, MotionEstimator
from inertial_dr.estimation.double_integration import DoubleIntegrationEstimator
from inertial_dr.estimation.path import PathBuffer
from inertial_dr.estimation.step_heading import StepHeadingEstimator

ESTIMATORS: Dict[str, Type[MotionEstimator]] = {
    DoubleIntegrationEstimator.name: DoubleIntegrationEstimator,
    StepHeadingEstimator.name: StepHeadingEstimator,
}


def create_estimator(
    config: Optional[EstimatorConfig] = None,
    observer: Optional[DiagnosticObserver] = None,
) -> MotionEstimator:
    """
    Build the estimator named by config.strategy.

    Args:
        config: Parameters; defaults to EstimatorConfig().
        observer: Optional DiagnosticEvent callback.

    Raises:
        ValueError: If the strategy is not registered.
    """
    config = config if config is not None else EstimatorConfig()
    try:
        cls = ESTIMATORS[config.strategy]
    except KeyError:
        raise ValueError(
            f"Unknown strategy '{config.strategy}'. Available: {sorted(ESTIMATORS)}"
        ) from None
    return cls(config, observer)


__all__ = [
    "ESTIMATORS",
    "DiagnosticObserver",
    "DoubleIntegrationEstimator",
    "MotionEstimator",
    "PathBuffer",
    "StepHeadingEstimator",
    "create_estimator",
]
