"""
Pedestrian Dead Reckoning (step-and-heading) building blocks.

This module implements the pieces of the step-and-heading alternative to
acceleration double integration:
    - Acceleration magnitude of the (gravity-free) linear acceleration
    - Streaming step detection on the low-passed magnitude
    - Step frequency and step length (Weinberg model)
    - Position update from a detected step

Step-and-heading PDR never integrates acceleration twice, so its error grows
with the number of steps (stride-length and heading error) instead of with
time squared.

Heading convention (world frame x = East, y = North):
    heading 0 = East (+x), π/2 = North (+y), counter-clockwise positive.
    p_k = p_{k-1} + L * [cos ψ, sin ψ, 0]
"""

from typing import Optional

import numpy as np
from scipy import signal


def total_accel_magnitude(accel: np.ndarray) -> float:
    """
    Euclidean magnitude ||a|| of a 3-axis acceleration.

    The platform linear-acceleration stream has gravity removed, so the
    magnitude oscillates around 0 while walking instead of around g.

    Args:
        accel: Acceleration. Shape: (3,). Units: m/s².

    Returns:
        Magnitude, non-negative. Units: m/s².
    """
    accel = np.asarray(accel, dtype=np.float64)
    if accel.shape != (3,):
        raise ValueError(f"accel must have shape (3,), got {accel.shape}")
    return float(np.linalg.norm(accel))


def step_frequency(delta_t: float) -> float:
    """
    Step frequency f = 1 / Δt from the interval between consecutive steps.

    Args:
        delta_t: Inter-step interval. Units: s. Must be positive.

    Returns:
        Step frequency. Units: Hz.
    """
    if delta_t <= 0:
        raise ValueError(f"delta_t must be positive, got {delta_t}")
    return 1.0 / delta_t


def step_length(
    h: float,
    f_step: float,
    a: float = 0.371,
    b: float = 0.227,
    c: float = 1.0,
) -> float:
    """
    Estimate step length using the Weinberg-type model L = c * h^a * f^b.

    Args:
        h: User height. Units: m.
        f_step: Step frequency. Units: Hz.
        a: Height exponent. Default: 0.371.
        b: Frequency exponent. Default: 0.227.
        c: Personal scaling constant. Default: 1.0.

    Returns:
        Step length. Units: m. Typical 0.5-1.0 m.

    Example:
        >>> round(step_length(1.75, 2.0), 2)
        1.44
        >>> round(step_length(1.75, 2.0, c=0.5), 2)
        0.72
    """
    if h <= 0:
        raise ValueError(f"h (height) must be positive, got {h}")
    if f_step <= 0:
        raise ValueError(f"f_step must be positive, got {f_step}")
    if c <= 0:
        raise ValueError(f"c must be positive, got {c}")

    return c * (h**a) * (f_step**b)


def pdr_step_update(
    p_prev: np.ndarray,
    step_len: float,
    heading_rad: float,
) -> np.ndarray:
    """
    Advance a 3D position by one step in the horizontal plane.

        p_k = p_{k-1} + L * [cos ψ, sin ψ, 0]

    Args:
        p_prev: Position before the step. Shape: (3,). Units: m.
        step_len: Step length. Units: m. Non-negative.
        heading_rad: Heading ψ (0 = East, π/2 = North). Units: rad.

    Returns:
        Position after the step. Shape: (3,). Units: m. Height unchanged.
    """
    if p_prev.shape != (3,):
        raise ValueError(f"p_prev must have shape (3,), got {p_prev.shape}")
    if step_len < 0:
        raise ValueError(f"step_len must be non-negative, got {step_len}")

    displacement = step_len * np.array([np.cos(heading_rad), np.sin(heading_rad), 0.0])
    return p_prev + displacement


class StreamingStepDetector:
    """
    Sample-by-sample step detector on acceleration magnitude.

    Processing per sample:
        1. Optional causal 2nd-order Butterworth low-pass of the magnitude
           (scipy.signal.butter + lfilter with carried filter state)
        2. A step is the rising crossing of `threshold` by the filtered
           magnitude
        3. Crossings closer than `min_interval` seconds to the previous step
           are ignored (refractory period)

    Args:
        threshold: Magnitude threshold. Units: m/s². Typical 1.0-2.0.
        min_interval: Refractory period. Units: s. Typical 0.25-0.4.
        lowpass_cutoff: Butterworth cutoff. Units: Hz. None disables.
        sample_rate_hz: Nominal stream rate used to design the filter.

    Attributes:
        step_count: Number of steps detected since the last reset.
        last_interval: Seconds between the two most recent steps, or None.
    """

    def __init__(
        self,
        threshold: float,
        min_interval: float,
        lowpass_cutoff: Optional[float] = 3.0,
        sample_rate_hz: float = 50.0,
    ) -> None:
        if threshold <= 0:
            raise ValueError(f"threshold must be positive, got {threshold}")
        if min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {min_interval}")
        if sample_rate_hz <= 0:
            raise ValueError(f"sample_rate_hz must be positive, got {sample_rate_hz}")

        self.threshold = threshold
        self.min_interval = min_interval

        self._b = None
        self._a = None
        self._zi_unit = None
        if lowpass_cutoff is not None:
            normalized_cutoff = lowpass_cutoff / (sample_rate_hz / 2.0)
            if not 0.0 < normalized_cutoff < 1.0:
                raise ValueError(
                    f"lowpass_cutoff must be in (0, {sample_rate_hz / 2.0}) Hz, "
                    f"got {lowpass_cutoff}"
                )
            self._b, self._a = signal.butter(2, normalized_cutoff, btype="low")
            self._zi_unit = signal.lfilter_zi(self._b, self._a)

        self.reset()

    def reset(self) -> None:
        self._zi = None
        self._prev_value = 0.0
        self._last_step_ns: Optional[int] = None
        self.step_count = 0
        self.last_interval: Optional[float] = None

    @property
    def last_step_ns(self) -> Optional[int]:
        return self._last_step_ns

    def get_state(self) -> tuple:
        """Return the full detector state for rollback."""
        zi = None if self._zi is None else self._zi.copy()
        return zi, self._prev_value, self._last_step_ns, self.step_count, self.last_interval

    def set_state(self, saved: tuple) -> None:
        zi, self._prev_value, self._last_step_ns, self.step_count, self.last_interval = saved
        self._zi = None if zi is None else zi.copy()

    def _filter(self, magnitude: float) -> float:
        if self._b is None:
            return magnitude
        if self._zi is None:
            # Start in steady state at the first value to avoid a transient
            self._zi = self._zi_unit * magnitude
        y, self._zi = signal.lfilter(self._b, self._a, [magnitude], zi=self._zi)
        return float(y[0])

    def update(self, magnitude: float, timestamp_ns: int) -> bool:
        """
        Feed one magnitude sample.

        Returns:
            True if this sample completes a step.
        """
        value = self._filter(magnitude)
        rising = self._prev_value < self.threshold <= value
        self._prev_value = value

        if not rising:
            return False

        if self._last_step_ns is not None:
            interval = (timestamp_ns - self._last_step_ns) / 1e9
            if interval < self.min_interval:
                return False
            self.last_interval = interval
        else:
            self.last_interval = None

        self._last_step_ns = timestamp_ns
        self.step_count += 1
        return True
