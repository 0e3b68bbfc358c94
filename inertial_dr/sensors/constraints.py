"""
Drift-mitigation constraints for acceleration double integration.

This module implements the pieces that keep the integrator from running away
on a consumer-grade accelerometer:
    - Stationary detection with hysteresis (zero-velocity condition)
    - Accelerometer bias learning while stationary
    - Per-axis deadzone (noise floor) applied before integration

Stationary detector:
    A sample is "quiet" if ||a_f|| < δ_stat. The device is declared
    STATIONARY once more than N_req consecutive quiet samples have been seen;
    a single loud sample immediately returns it to MOVING and clears the run.
    Requiring a run of quiet samples prevents flicker from the zero crossings
    of a real acceleration profile.

Bias learning (EMA, device frame):
    b[k] = b[k-1] * (1 - λ) + a_f[k] * λ        (only while STATIONARY)

    λ is small (1e-3 to 5e-3) so b tracks slow sensor drift, not motion. The
    learned bias is subtracted in the device frame, before rotation, because
    it is a property of the sensor axes.

Deadzone:
    a'[i] = 0 if |a[i]| < δ_dz else a[i]
"""

from typing import Optional

import numpy as np

from inertial_dr.sensors.types import MotionState


def is_quiet(accel: np.ndarray, threshold: float) -> bool:
    """
    Instantaneous stationary test ||a|| < threshold.

    Args:
        accel: Acceleration vector. Shape: (3,). Units: m/s².
        threshold: Magnitude threshold. Units: m/s².

    Returns:
        True if the magnitude is strictly below the threshold.
    """
    accel = np.asarray(accel, dtype=np.float64)
    if accel.shape != (3,):
        raise ValueError(f"accel must have shape (3,), got {accel.shape}")
    return bool(np.linalg.norm(accel) < threshold)


def apply_deadzone(accel: np.ndarray, deadzone: float) -> np.ndarray:
    """
    Zero every component whose magnitude is below the deadzone.

    Args:
        accel: Acceleration vector. Shape: (3,). Units: m/s².
        deadzone: Per-axis noise floor. Units: m/s². 0 disables.

    Returns:
        New array with small components forced to exactly 0.0.

    Example:
        >>> apply_deadzone(np.array([0.05, -0.2, 0.01]), 0.08)
        array([ 0. , -0.2,  0. ])
    """
    accel = np.asarray(accel, dtype=np.float64)
    if accel.shape != (3,):
        raise ValueError(f"accel must have shape (3,), got {accel.shape}")
    if deadzone < 0:
        raise ValueError(f"deadzone must be non-negative, got {deadzone}")
    return np.where(np.abs(accel) < deadzone, 0.0, accel)


class MotionClassifier:
    """
    Stationary / moving classifier with run-length hysteresis.

    Attributes:
        threshold: Magnitude below which a sample counts as quiet. Units: m/s².
        required_count: Quiet samples that must be EXCEEDED before the state
                        becomes STATIONARY (so required_count + 1 samples).
        counter: Current run of consecutive quiet samples.
        state: Current MotionState.

    Example:
        >>> clf = MotionClassifier(threshold=0.2, required_count=2)
        >>> [clf.update(np.zeros(3)).value for _ in range(3)]
        ['moving', 'moving', 'stationary']
    """

    def __init__(self, threshold: float, required_count: int) -> None:
        if threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {threshold}")
        if required_count < 1:
            raise ValueError(f"required_count must be >= 1, got {required_count}")
        self.threshold = threshold
        self.required_count = required_count
        self.counter = 0
        self.state = MotionState.MOVING

    def update(self, accel: np.ndarray) -> MotionState:
        """Classify one (filtered) acceleration sample and return the new state."""
        if is_quiet(accel, self.threshold):
            self.counter += 1
        else:
            self.counter = 0

        if self.counter > self.required_count:
            self.state = MotionState.STATIONARY
        else:
            self.state = MotionState.MOVING
        return self.state

    def get_state(self) -> tuple:
        """Return (counter, state) for rollback."""
        return self.counter, self.state

    def set_state(self, saved: tuple) -> None:
        self.counter, self.state = saved

    def reset(self) -> None:
        self.counter = 0
        self.state = MotionState.MOVING


class BiasEstimator:
    """
    Device-frame accelerometer bias learned while the device is at rest.

    Args:
        learning_rate: EMA rate λ in [0, 1). 0 disables learning.
        initial_bias: Optional starting bias. Shape: (3,). Units: m/s².
    """

    def __init__(self, learning_rate: float, initial_bias: Optional[np.ndarray] = None) -> None:
        if not 0.0 <= learning_rate < 1.0:
            raise ValueError(f"learning_rate must be in [0, 1), got {learning_rate}")
        self.learning_rate = learning_rate
        self._initial = (
            np.zeros(3) if initial_bias is None
            else np.asarray(initial_bias, dtype=np.float64).copy()
        )
        if self._initial.shape != (3,):
            raise ValueError(f"initial_bias must have shape (3,), got {self._initial.shape}")
        self._bias = self._initial.copy()

    @property
    def bias(self) -> np.ndarray:
        """Current bias estimate (copy). Units: m/s²."""
        return self._bias.copy()

    @bias.setter
    def bias(self, value: np.ndarray) -> None:
        self._bias = np.asarray(value, dtype=np.float64).copy()

    def update(self, accel: np.ndarray) -> np.ndarray:
        """Blend a stationary acceleration sample into the bias estimate."""
        lam = self.learning_rate
        self._bias = self._bias * (1.0 - lam) + np.asarray(accel, dtype=np.float64) * lam
        return self._bias.copy()

    def correct(self, accel: np.ndarray) -> np.ndarray:
        """Return accel - bias (device frame)."""
        return np.asarray(accel, dtype=np.float64) - self._bias

    def reset(self) -> None:
        self._bias = np.zeros(3)
