"""
Input conditioning for orientation and linear-acceleration streams.

This module implements the two leaf components of the pipeline:
    - OrientationTracker: latest device-to-world unit quaternion
    - AccelerationFilter: exponential low-pass of device-frame acceleration

Both run on every incoming sample regardless of whether integration is
running, so the filter is warmed up and the orientation is current by the
time the first integration step happens.

EMA low-pass:
    a_f[k] = α * a_f[k-1] + (1 - α) * a_raw[k]

    α close to 1 smooths more (more lag); α = 0 passes the raw signal.
"""

from typing import Optional

import numpy as np

from inertial_dr.coords.rotations import IDENTITY_QUAT, quat_from_rotation_vector
from inertial_dr.sensors.types import InvalidSample


def lowpass_ema(prev: np.ndarray, x: np.ndarray, alpha: float) -> np.ndarray:
    """
    One step of the exponential moving average a = α*prev + (1-α)*x.

    Args:
        prev: Previous filter output. Shape: (3,).
        x: New raw sample. Shape: (3,).
        alpha: Smoothing coefficient in [0, 1).

    Returns:
        New filter output. Shape: (3,).

    Example:
        >>> lowpass_ema(np.zeros(3), np.array([1.0, 0.0, 0.0]), 0.6)
        array([0.4, 0. , 0. ])
    """
    return alpha * prev + (1.0 - alpha) * x


class OrientationTracker:
    """
    Holds the most recent device-to-world orientation.

    Accepts rotation-vector values with 3 components (scalar part implied)
    or 4+ components (scalar part given). The stored quaternion is always
    unit-norm and starts as the identity [0, 0, 0, 1].

    Example:
        >>> tracker = OrientationTracker()
        >>> tracker.update([0.0, 0.0, 0.0])
        array([0., 0., 0., 1.])
    """

    def __init__(self) -> None:
        self._q = IDENTITY_QUAT.copy()
        self.timestamp_ns: Optional[int] = None

    @property
    def quaternion(self) -> np.ndarray:
        """Current unit quaternion [qx, qy, qz, qw] (copy)."""
        return self._q.copy()

    def update(self, values, timestamp_ns: Optional[int] = None) -> np.ndarray:
        """
        Replace the stored orientation with a new rotation-vector reading.

        Args:
            values: Rotation-vector components, at least 3.
            timestamp_ns: Sensor timestamp, recorded for diagnostics.

        Returns:
            The new unit quaternion (copy).

        Raises:
            InvalidSample: If fewer than 3 components are given or the values
                           are not finite. The previous orientation is kept.
        """
        try:
            q = quat_from_rotation_vector(values)
        except ValueError as exc:
            raise InvalidSample(str(exc)) from exc

        self._q = q
        self.timestamp_ns = timestamp_ns
        return self._q.copy()

    def reset(self) -> None:
        self._q = IDENTITY_QUAT.copy()
        self.timestamp_ns = None


class AccelerationFilter:
    """
    Exponential low-pass filter for device-frame linear acceleration.

    Args:
        alpha: Smoothing coefficient in [0, 1). Typical range 0.4-0.6.
    """

    def __init__(self, alpha: float) -> None:
        if not 0.0 <= alpha < 1.0:
            raise ValueError(f"alpha must be in [0, 1), got {alpha}")
        self.alpha = alpha
        self._value = np.zeros(3)

    @property
    def value(self) -> np.ndarray:
        """Current filtered acceleration (copy). Units: m/s²."""
        return self._value.copy()

    def update(self, values) -> np.ndarray:
        """
        Feed one raw acceleration sample.

        Raises:
            InvalidSample: If values is not a finite 3-vector. The filter
                           state is left unchanged.
        """
        a = np.asarray(values, dtype=np.float64).ravel()
        if a.shape != (3,):
            raise InvalidSample(f"Acceleration needs 3 components, got {a.size}")
        if not np.all(np.isfinite(a)):
            raise InvalidSample(f"Acceleration has non-finite components: {a}")

        self._value = lowpass_ema(self._value, a, self.alpha)
        return self._value.copy()

    def reset(self) -> None:
        self._value = np.zeros(3)
