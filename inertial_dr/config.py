"""Estimator configuration and named parameter presets.

Every tunable constant of the pipeline lives in one frozen dataclass,
EstimatorConfig, instead of being hard-coded at each call site. Values are
validated on construction: impossible values raise ValueError, legal but
unusual values emit a UserWarning.

Configurations can be built from a preset, from a dict, or from a JSON file:

    >>> cfg = get_preset("drift_reduced", velocity_damping=0.99)
    >>> cfg = EstimatorConfig.from_dict({"preset": "aggressive_damping", "dt_max": 0.2})
    >>> cfg = load_config("my_calibration.json")

JSON layout (all keys optional):

    {
      "preset": "drift_reduced",
      "accel_deadzone": 0.05,
      "deadzone_frame": "device"
    }
"""

import json
import warnings
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

STRATEGIES = ("double_integration", "step_heading")
FRAMES = ("device", "world")


@dataclass(frozen=True)
class EstimatorConfig:
    """Tunable parameters of the dead-reckoning estimators.

    Attributes:
        strategy: Which MotionEstimator to build: 'double_integration' or
                  'step_heading'.
        lowpass_alpha: EMA coefficient α of the acceleration low-pass, in
                       [0, 1). Observed range 0.4-0.6.
        stationary_threshold: Magnitude (m/s²) below which a sample counts as
                              quiet. 0 disables stationary detection.
        stationary_required_count: Quiet samples that must be exceeded before
                                   the device is declared stationary.
        stationary_frame: 'device' classifies the filtered device-frame
                          acceleration; 'world' classifies the bias-corrected
                          world-frame acceleration.
        accel_deadzone: Per-axis noise floor (m/s²) zeroed before
                        integration. Observed range 0.02-0.15.
        deadzone_frame: Apply the deadzone in the 'device' frame (before
                        rotation) or the 'world' frame (after rotation).
        velocity_damping: Per-step velocity multiplier in (0, 1]. 1 disables.
        bias_learning_rate: EMA rate of the stationary bias estimator in
                            [0, 1). 0 disables bias learning.
        dt_max: Largest accepted inter-sample gap in seconds.
        path_capacity: Maximum number of retained path points.
        position_epsilon: Position components smaller than this (m) are
                          snapped to 0. None disables.
        step_threshold: Step-detector magnitude threshold (m/s²).
        step_min_interval: Step-detector refractory period (s).
        step_timeout: Seconds without a step after which velocity is zeroed.
        step_lowpass_cutoff: Butterworth cutoff (Hz) for the step detector.
                             None disables the filter.
        sample_rate_hz: Nominal acceleration rate used to design the step
                        filter.
        stride_length: Fixed stride length (m) used when user_height is None.
        user_height: User height (m). When set, stride length follows the
                     Weinberg model c * h^0.371 * f^0.227.
        stride_scale: Personal constant c of the Weinberg model.
    """

    strategy: str = "double_integration"
    lowpass_alpha: float = 0.4
    stationary_threshold: float = 0.2
    stationary_required_count: int = 5
    stationary_frame: str = "device"
    accel_deadzone: float = 0.08
    deadzone_frame: str = "world"
    velocity_damping: float = 0.998
    bias_learning_rate: float = 0.001
    dt_max: float = 0.5
    path_capacity: int = 4000
    position_epsilon: Optional[float] = None
    step_threshold: float = 1.2
    step_min_interval: float = 0.3
    step_timeout: float = 2.0
    step_lowpass_cutoff: Optional[float] = 3.0
    sample_rate_hz: float = 50.0
    stride_length: float = 0.7
    user_height: Optional[float] = None
    stride_scale: float = 0.5

    def __post_init__(self) -> None:
        """Validate parameter ranges."""
        if self.strategy not in STRATEGIES:
            raise ValueError(f"strategy must be one of {STRATEGIES}, got '{self.strategy}'")
        if self.stationary_frame not in FRAMES:
            raise ValueError(
                f"stationary_frame must be one of {FRAMES}, got '{self.stationary_frame}'"
            )
        if self.deadzone_frame not in FRAMES:
            raise ValueError(
                f"deadzone_frame must be one of {FRAMES}, got '{self.deadzone_frame}'"
            )

        if not 0.0 <= self.lowpass_alpha < 1.0:
            raise ValueError(f"lowpass_alpha must be in [0, 1), got {self.lowpass_alpha}")
        if self.stationary_threshold < 0:
            raise ValueError(
                f"stationary_threshold must be non-negative, got {self.stationary_threshold}"
            )
        if int(self.stationary_required_count) != self.stationary_required_count or \
                self.stationary_required_count < 1:
            raise ValueError(
                f"stationary_required_count must be an integer >= 1, "
                f"got {self.stationary_required_count}"
            )
        if self.accel_deadzone < 0:
            raise ValueError(f"accel_deadzone must be non-negative, got {self.accel_deadzone}")
        if not 0.0 < self.velocity_damping <= 1.0:
            raise ValueError(
                f"velocity_damping must be in (0, 1], got {self.velocity_damping}"
            )
        if not 0.0 <= self.bias_learning_rate < 1.0:
            raise ValueError(
                f"bias_learning_rate must be in [0, 1), got {self.bias_learning_rate}"
            )
        if self.dt_max <= 0:
            raise ValueError(f"dt_max must be positive, got {self.dt_max}")
        if int(self.path_capacity) != self.path_capacity or self.path_capacity < 1:
            raise ValueError(
                f"path_capacity must be an integer >= 1, got {self.path_capacity}"
            )
        if self.position_epsilon is not None and self.position_epsilon <= 0:
            raise ValueError(
                f"position_epsilon must be positive or None, got {self.position_epsilon}"
            )

        for name in ("step_threshold", "step_min_interval", "step_timeout",
                     "sample_rate_hz", "stride_length", "stride_scale"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.step_lowpass_cutoff is not None and \
                not 0.0 < self.step_lowpass_cutoff < self.sample_rate_hz / 2.0:
            raise ValueError(
                f"step_lowpass_cutoff must be in (0, {self.sample_rate_hz / 2.0}) Hz "
                f"or None, got {self.step_lowpass_cutoff}"
            )
        if self.user_height is not None and self.user_height <= 0:
            raise ValueError(f"user_height must be positive or None, got {self.user_height}")

        # Legal but outside anything seen in calibration
        if self.velocity_damping < 0.9:
            warnings.warn(
                f"velocity_damping={self.velocity_damping} decays velocity by more "
                f"than 10% per sample; typical values are 0.9-0.998.",
                UserWarning,
            )
        if self.dt_max > 1.0:
            warnings.warn(
                f"dt_max={self.dt_max} s accepts gaps longer than one second; "
                f"typical values are 0.15-0.5 s.",
                UserWarning,
            )
        if self.bias_learning_rate > 0.05:
            warnings.warn(
                f"bias_learning_rate={self.bias_learning_rate} will track real "
                f"motion, not sensor drift; typical values are 0.001-0.005.",
                UserWarning,
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EstimatorConfig":
        """Build a config from a dict, optionally starting from a preset.

        Args:
            data: Parameter overrides. The optional key 'preset' names the
                  starting point (default: the dataclass defaults).

        Raises:
            ValueError: On unknown keys or an unknown preset name.
        """
        data = dict(data)
        preset = data.pop("preset", None)
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {unknown}")

        if preset is None:
            return cls(**data)
        return get_preset(preset, **data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def replace(self, **overrides: Any) -> "EstimatorConfig":
        """Return a copy with some fields changed (validated again)."""
        return replace(self, **overrides)


PRESETS: Dict[str, Dict[str, Any]] = {
    "default": {
        "description": "Drift-reduced double integration (same as 'drift_reduced')",
    },
    "rotation_vector_basic": {
        "description": "Plain double integration: light smoothing, tiny deadzone, "
                       "no damping, no stationary detection or bias learning",
        "lowpass_alpha": 0.6,
        "stationary_threshold": 0.0,
        "accel_deadzone": 0.02,
        "velocity_damping": 1.0,
        "bias_learning_rate": 0.0,
        "dt_max": 0.5,
        "path_capacity": 2000,
    },
    "drift_reduced": {
        "description": "Stationary detection, bias learning and gentle damping",
        "lowpass_alpha": 0.4,
        "stationary_threshold": 0.2,
        "stationary_required_count": 5,
        "accel_deadzone": 0.08,
        "velocity_damping": 0.998,
        "bias_learning_rate": 0.001,
        "dt_max": 0.5,
        "path_capacity": 4000,
    },
    "aggressive_damping": {
        "description": "Short-range scribbling: strong damping, wide deadzone, "
                       "tight dt_max",
        "lowpass_alpha": 0.5,
        "stationary_threshold": 0.3,
        "stationary_required_count": 3,
        "accel_deadzone": 0.15,
        "velocity_damping": 0.9,
        "bias_learning_rate": 0.005,
        "dt_max": 0.15,
        "path_capacity": 2000,
        "position_epsilon": 1e-3,
    },
    "pedestrian_steps": {
        "description": "Step-and-heading PDR with a fixed stride",
        "strategy": "step_heading",
        "lowpass_alpha": 0.4,
        "step_threshold": 1.2,
        "step_min_interval": 0.3,
        "stride_length": 0.7,
        "path_capacity": 4000,
    },
}


def get_preset(name: str, **overrides: Any) -> EstimatorConfig:
    """Build the named preset, with optional field overrides.

    Raises:
        ValueError: If the preset name is unknown.
    """
    if name not in PRESETS:
        raise ValueError(f"Unknown preset '{name}'. Available: {sorted(PRESETS)}")
    params = {k: v for k, v in PRESETS[name].items() if k != "description"}
    params.update(overrides)
    return EstimatorConfig(**params)


def load_config(path: Union[str, Path]) -> EstimatorConfig:
    """Load an EstimatorConfig from a JSON file (see module docstring)."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a JSON object")
    return EstimatorConfig.from_dict(data)


def save_config(config: EstimatorConfig, path: Union[str, Path]) -> None:
    """Write an EstimatorConfig to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
