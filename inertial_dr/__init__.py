"""Inertial dead reckoning for handheld devices.

This package turns a device orientation stream (unit quaternion) and a
linear-acceleration stream into a running 3D displacement estimate:
- coords: Quaternion algebra and frame rotations
- sensors: Sample types, filters, motion constraints, strapdown and PDR helpers
- estimation: MotionEstimator strategies (double integration, step-and-heading)
- engine: Single-writer engine with sensor acquisition and snapshot publication
- sim: Synthetic sample streams and sample-log IO
"""

import logging

from inertial_dr.config import EstimatorConfig, PRESETS, get_preset, load_config
from inertial_dr.engine import DeadReckoningEngine
from inertial_dr.estimation import (
    DoubleIntegrationEstimator,
    MotionEstimator,
    StepHeadingEstimator,
    create_estimator,
)
from inertial_dr.sensors.types import (
    AccelerationSample,
    InvalidSample,
    KinematicSnapshot,
    MotionState,
    OrientationSample,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "EstimatorConfig",
    "PRESETS",
    "get_preset",
    "load_config",
    "DeadReckoningEngine",
    "MotionEstimator",
    "DoubleIntegrationEstimator",
    "StepHeadingEstimator",
    "create_estimator",
    "AccelerationSample",
    "OrientationSample",
    "InvalidSample",
    "KinematicSnapshot",
    "MotionState",
]

__version__ = "0.1.0"
