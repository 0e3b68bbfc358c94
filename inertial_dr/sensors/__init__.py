"""
Sensor-level building blocks of the dead-reckoning pipeline.

Modules:
    types: Sample types, state enums, kinematic state and snapshots
    filters: Orientation tracker and acceleration low-pass filter
    constraints: Stationary detection, bias learning, deadzone
    strapdown: Device-to-world rotation and velocity/position updates
    pdr: Step detection, step length, step-and-heading position update

Design principles:
    - Samples and snapshots are frozen (immutable) dataclasses
    - Kinematic state is mutable and owned by exactly one estimator
    - All arithmetic is float64 NumPy
    - Frames: device (sensor axes) and world (x = East, y = North, z = Up)

Example:
    >>> import numpy as np
    >>> from inertial_dr.sensors import AccelerationFilter, device_to_world
    >>> filt = AccelerationFilter(alpha=0.4)
    >>> a_f = filt.update([1.0, 0.0, 0.0])
    >>> a_w = device_to_world(a_f, np.array([0.0, 0.0, 0.0, 1.0]))
"""

from inertial_dr.sensors.types import (
    AccelerationSample,
    DiagnosticEvent,
    IntegratorPhase,
    InvalidSample,
    KinematicSnapshot,
    KinematicState,
    MotionState,
    OrientationSample,
)
from inertial_dr.sensors.filters import (
    AccelerationFilter,
    OrientationTracker,
    lowpass_ema,
)
from inertial_dr.sensors.constraints import (
    BiasEstimator,
    MotionClassifier,
    apply_deadzone,
    is_quiet,
)
from inertial_dr.sensors.strapdown import (
    device_to_world,
    pos_update,
    snap_position,
    vel_update,
)
from inertial_dr.sensors.pdr import (
    StreamingStepDetector,
    pdr_step_update,
    step_frequency,
    step_length,
    total_accel_magnitude,
)

__all__ = [
    # Types
    "AccelerationSample",
    "OrientationSample",
    "DiagnosticEvent",
    "IntegratorPhase",
    "InvalidSample",
    "KinematicSnapshot",
    "KinematicState",
    "MotionState",
    # Filters
    "AccelerationFilter",
    "OrientationTracker",
    "lowpass_ema",
    # Constraints
    "BiasEstimator",
    "MotionClassifier",
    "apply_deadzone",
    "is_quiet",
    # Strapdown
    "device_to_world",
    "pos_update",
    "snap_position",
    "vel_update",
    # PDR
    "StreamingStepDetector",
    "pdr_step_update",
    "step_frequency",
    "step_length",
    "total_accel_magnitude",
]
