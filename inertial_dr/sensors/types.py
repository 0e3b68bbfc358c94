"""
Data structures for the dead-reckoning sensor pipeline.

This module defines the shared data types used across the pipeline:
    - Timestamped sensor samples (orientation, linear acceleration)
    - Motion and integrator state enums
    - Mutable kinematic state owned by an estimator
    - Immutable kinematic snapshots published to readers
    - Diagnostic events reported to an external observer

Time Base Convention:
    All timestamps are integer nanoseconds from a monotonic sensor clock
    (the platform sensor-event timestamp). Intervals are converted to float
    seconds with dt = (t_k - t_{k-1}) / 1e9.

Frame Conventions:
    - Device frame: sensor axes of the handheld device
    - World frame: x = East, y = North, z = Up
    - Velocity and position are always world-frame quantities
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class InvalidSample(ValueError):
    """Raised when a sensor sample cannot be used (wrong size, NaN, ...).

    Estimators convert it into a DiagnosticEvent and keep their prior state;
    it never needs a restart to recover from.
    """


class MotionState(Enum):
    """Output of the stationary detector."""

    MOVING = "moving"
    STATIONARY = "stationary"


class IntegratorPhase(Enum):
    """Run state of an estimator.

    IDLE: not started (or stopped); samples are filtered but not integrated.
    SEEDING: started, waiting for the first timestamp to seed the clock.
    INTEGRATING: clock seeded; each valid sample advances the state.
    """

    IDLE = "idle"
    SEEDING = "seeding"
    INTEGRATING = "integrating"


def _as_values(values) -> np.ndarray:
    try:
        arr = np.array(values, dtype=np.float64).ravel()
    except (TypeError, ValueError) as exc:
        raise InvalidSample(f"Sample values are not numeric: {values!r}") from exc
    arr.setflags(write=False)
    return arr


def _as_timestamp(timestamp_ns) -> int:
    try:
        return int(timestamp_ns)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidSample(f"Timestamp is not an integer: {timestamp_ns!r}") from exc


@dataclass(frozen=True)
class OrientationSample:
    """
    Rotation-vector reading.

    Attributes:
        values: Raw components, [x, y, z] or [x, y, z, w, ...].
                Stored as a read-only float64 array. Component count and
                finiteness are checked by the OrientationTracker so that a
                malformed sample still travels through the sample queue and
                is reported by the single writer.
        timestamp_ns: Sensor timestamp in nanoseconds.

    Example:
        >>> s = OrientationSample(values=[0.0, 0.0, 0.0, 1.0], timestamp_ns=10)
        >>> s.values.shape
        (4,)
    """

    values: np.ndarray
    timestamp_ns: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _as_values(self.values))
        object.__setattr__(self, "timestamp_ns", _as_timestamp(self.timestamp_ns))


@dataclass(frozen=True)
class AccelerationSample:
    """
    Linear-acceleration reading (gravity already removed by the platform).

    Attributes:
        values: [ax, ay, az] in the device frame. Units: m/s².
        timestamp_ns: Sensor timestamp in nanoseconds.
    """

    values: np.ndarray
    timestamp_ns: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", _as_values(self.values))
        object.__setattr__(self, "timestamp_ns", _as_timestamp(self.timestamp_ns))


@dataclass
class KinematicState:
    """
    Mutable world-frame kinematic state owned by a single estimator.

    Attributes:
        velocity: World-frame velocity. Shape: (3,). Units: m/s.
        position: World-frame position relative to the start point.
                  Shape: (3,). Units: m.

    Notes:
        - Mutated once per accepted integration step, never by readers.
        - Use copy() to take a rollback point before a step.
    """

    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.velocity = np.asarray(self.velocity, dtype=np.float64).copy()
        self.position = np.asarray(self.position, dtype=np.float64).copy()
        if self.velocity.shape != (3,):
            raise ValueError(f"velocity must have shape (3,), got {self.velocity.shape}")
        if self.position.shape != (3,):
            raise ValueError(f"position must have shape (3,), got {self.position.shape}")

    def copy(self) -> "KinematicState":
        return KinematicState(velocity=self.velocity.copy(), position=self.position.copy())

    def zero(self) -> None:
        self.velocity[:] = 0.0
        self.position[:] = 0.0

    def is_finite(self) -> bool:
        return bool(np.all(np.isfinite(self.velocity)) and np.all(np.isfinite(self.position)))


def _readonly_path(path) -> np.ndarray:
    arr = np.array(path, dtype=np.float64).reshape(-1, 3)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class KinematicSnapshot:
    """
    Immutable copy of an estimator's output, safe to hand to other threads.

    Attributes:
        position: (x, y, z) in metres, world frame.
        velocity: (vx, vy, vz) in m/s, world frame.
        motion_state: Latest stationary-detector output.
        timestamp_ns: Timestamp of the last acceleration sample that advanced
                      the state, or None before the first such step.
                      Seeding, discarded and rolled-back samples leave it
                      unchanged.
        path: Read-only array of recorded positions. Shape: (N, 3).
              Excluded from == comparison; compare with numpy.testing.
    """

    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    motion_state: MotionState = MotionState.MOVING
    timestamp_ns: Optional[int] = None
    path: np.ndarray = field(default_factory=lambda: _readonly_path([]), compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", tuple(float(x) for x in self.position))
        object.__setattr__(self, "velocity", tuple(float(x) for x in self.velocity))
        object.__setattr__(self, "path", _readonly_path(self.path))


@dataclass(frozen=True)
class DiagnosticEvent:
    """
    Discard / invalid-sample report passed to an external observer.

    Attributes:
        kind: One of 'invalid_orientation', 'invalid_acceleration',
              'dt_discarded', 'non_finite_step', 'seeded'.
        timestamp_ns: Timestamp of the offending sample, if known.
        detail: Human-readable explanation.
    """

    kind: str
    timestamp_ns: Optional[int] = None
    detail: str = ""
