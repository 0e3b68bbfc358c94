"""
Step-and-heading pedestrian dead reckoning.

Instead of integrating acceleration twice, each detected step moves the
position by one stride along the current heading:

    p_k = p_{k-1} + L [cos ψ, sin ψ, 0]

    L: stride_length, or the Weinberg model stride_scale * h^0.371 * f^0.227
       when user_height is configured (f from the inter-step interval)
    ψ: azimuth of the device +y axis in the world frame

Velocity is the last stride divided by its step interval and drops to zero
once no step has been seen for step_timeout seconds.
"""

import logging
from typing import Optional

import numpy as np

from inertial_dr.config import EstimatorConfig
from inertial_dr.coords.rotations import quat_heading
from inertial_dr.estimation.base import DiagnosticObserver, MotionEstimator
from inertial_dr.sensors.pdr import (
    StreamingStepDetector,
    pdr_step_update,
    step_frequency,
    step_length,
    total_accel_magnitude,
)
from inertial_dr.sensors.types import MotionState


class StepHeadingEstimator(MotionEstimator):
    """Stride-length x heading dead reckoning driven by step detection."""

    name = "step_heading"

    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        observer: Optional[DiagnosticObserver] = None,
    ):
        super().__init__(config, observer)
        self.detector = StreamingStepDetector(
            threshold=self.config.step_threshold,
            min_interval=self.config.step_min_interval,
            lowpass_cutoff=self.config.step_lowpass_cutoff,
            sample_rate_hz=self.config.sample_rate_hz,
        )
        self.last_stride: Optional[float] = None

    @property
    def step_count(self) -> int:
        return self.detector.step_count

    def _reset_strategy(self) -> None:
        self.detector.reset()
        self.last_stride = None

    def _stride(self, interval: Optional[float]) -> float:
        cfg = self.config
        if cfg.user_height is None or interval is None:
            return cfg.stride_length
        return step_length(cfg.user_height, step_frequency(interval), c=cfg.stride_scale)

    def _step(self, a_filtered: np.ndarray, dt: float, timestamp_ns: int) -> bool:
        cfg = self.config
        saved_detector = self.detector.get_state()
        stepped = self.detector.update(total_accel_magnitude(a_filtered), timestamp_ns)

        if not stepped:
            last = self.detector.last_step_ns
            if last is None or (timestamp_ns - last) / 1e9 > cfg.step_timeout:
                self.state.velocity = np.zeros(3)
                self.motion_state = MotionState.STATIONARY
            return True

        interval = self.detector.last_interval
        if interval is not None and interval > cfg.step_timeout:
            # First step after a pause; no cadence to speak of
            interval = None

        stride = self._stride(interval)
        heading = quat_heading(self.orientation.quaternion)
        p_new = pdr_step_update(self.state.position, stride, heading)
        if interval is not None:
            v_new = (p_new - self.state.position) / interval
        else:
            v_new = np.zeros(3)

        if not (np.all(np.isfinite(p_new)) and np.all(np.isfinite(v_new))):
            self.detector.set_state(saved_detector)
            self.report(
                "non_finite_step",
                timestamp_ns,
                "non-finite stride update, step rolled back",
                level=logging.WARNING,
            )
            return False

        self.state.position = p_new
        self.state.velocity = v_new
        self.last_stride = stride
        self.motion_state = MotionState.MOVING
        self._path.push(p_new)
        return True
