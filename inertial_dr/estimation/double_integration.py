"""
Acceleration double integration with drift mitigation.

Per accepted interval dt (see MotionEstimator for clock handling):

    1. Classify motion on the filtered acceleration (device frame) or on the
       bias-corrected world-frame acceleration (stationary_frame='world').
    2. STATIONARY:
           v = 0                              (hard reset, not a decay)
           b = b(1 - λ) + a_f λ               (bias learning)
    3. MOVING:
           a   = a_f - b                      (device frame)
           a   = deadzone(a)                  (deadzone_frame='device')
           a_w = q ⊗ a ⊗ q*
           a_w = deadzone(a_w)                (deadzone_frame='world')
           v   = (v + a_w dt) * damping
           p   = p + v dt
           p   = snap(p, position_epsilon)
    4. Append p to the path.

If the step yields a non-finite velocity or position the whole step is
rolled back (kinematics, bias, classifier run) and reported.
"""

import logging
from typing import Optional

import numpy as np

from inertial_dr.config import EstimatorConfig
from inertial_dr.estimation.base import DiagnosticObserver, MotionEstimator
from inertial_dr.sensors.constraints import BiasEstimator, MotionClassifier, apply_deadzone
from inertial_dr.sensors.strapdown import device_to_world, pos_update, snap_position, vel_update
from inertial_dr.sensors.types import MotionState


class DoubleIntegrationEstimator(MotionEstimator):
    """
    Integrator: double-integrates world-frame linear acceleration.

    Example:
        >>> from inertial_dr.config import get_preset
        >>> from inertial_dr.sensors.types import AccelerationSample
        >>> est = DoubleIntegrationEstimator(get_preset("drift_reduced"))
        >>> est.start()
        >>> est.process_acceleration(AccelerationSample([0.0, 0.0, 0.0], 0))
        False
    """

    name = "double_integration"

    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        observer: Optional[DiagnosticObserver] = None,
    ):
        super().__init__(config, observer)
        self.classifier = MotionClassifier(
            threshold=self.config.stationary_threshold,
            required_count=self.config.stationary_required_count,
        )
        self.bias = BiasEstimator(self.config.bias_learning_rate)

    def _reset_strategy(self) -> None:
        self.classifier.reset()
        self.bias.reset()

    def _step(self, a_filtered: np.ndarray, dt: float, timestamp_ns: int) -> bool:
        cfg = self.config
        saved_state = self.state.copy()
        saved_bias = self.bias.bias
        saved_classifier = self.classifier.get_state()

        q = self.orientation.quaternion
        if cfg.stationary_frame == "device":
            motion = self.classifier.update(a_filtered)
        else:
            motion = self.classifier.update(device_to_world(self.bias.correct(a_filtered), q))

        if motion is MotionState.STATIONARY:
            self.state.velocity = np.zeros(3)
            self.bias.update(a_filtered)
        else:
            a = self.bias.correct(a_filtered)
            if cfg.deadzone_frame == "device":
                a = apply_deadzone(a, cfg.accel_deadzone)
            a_world = device_to_world(a, q)
            if cfg.deadzone_frame == "world":
                a_world = apply_deadzone(a_world, cfg.accel_deadzone)

            v = vel_update(self.state.velocity, a_world, dt, cfg.velocity_damping)
            p = pos_update(self.state.position, v, dt)
            self.state.velocity = v
            self.state.position = snap_position(p, cfg.position_epsilon)

        if not (self.state.is_finite() and np.all(np.isfinite(self.bias.bias))):
            self.state = saved_state
            self.bias.bias = saved_bias
            self.classifier.set_state(saved_classifier)
            self.report(
                "non_finite_step",
                timestamp_ns,
                "non-finite velocity or position, step rolled back",
                level=logging.WARNING,
            )
            return False

        self.motion_state = motion
        self._path.push(self.state.position)
        return True
