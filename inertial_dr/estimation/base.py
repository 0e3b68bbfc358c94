"""
Base class for motion estimators.

A MotionEstimator turns orientation and linear-acceleration samples into a
world-frame position track. Every strategy shares the same input
conditioning and run-state machine:

    IDLE --start()--> SEEDING --first sample--> INTEGRATING
      ^                                              |
      +------------------------stop()----------------+

    - Orientation samples always update the OrientationTracker.
    - Acceleration samples always update the AccelerationFilter, so the
      filter is warm when integration starts.
    - Only while running, an acceleration sample advances the clock and,
      if the interval is valid, calls the strategy's _step().

Malformed samples and rejected intervals never raise: they are counted in
`diagnostics`, logged, and passed to the optional observer as
DiagnosticEvent objects. Estimators are not thread-safe; exactly one thread
(see DeadReckoningEngine) may call into an instance.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from typing import Callable, Optional

import numpy as np

from inertial_dr.config import EstimatorConfig
from inertial_dr.estimation.path import PathBuffer
from inertial_dr.sensors.filters import AccelerationFilter, OrientationTracker
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

logger = logging.getLogger(__name__)

DiagnosticObserver = Callable[[DiagnosticEvent], None]


class MotionEstimator(ABC):
    """Abstract base class for dead-reckoning strategies."""

    name = "abstract"

    def __init__(
        self,
        config: Optional[EstimatorConfig] = None,
        observer: Optional[DiagnosticObserver] = None,
    ):
        """
        Initialize estimator state (identity orientation, zero kinematics).

        Args:
            config: Parameters; defaults to EstimatorConfig().
            observer: Optional callback receiving each DiagnosticEvent.
        """
        self.config = config if config is not None else EstimatorConfig()
        self.observer = observer

        self.orientation = OrientationTracker()
        self.accel_filter = AccelerationFilter(self.config.lowpass_alpha)
        self.state = KinematicState()
        self.motion_state = MotionState.MOVING
        self.phase = IntegratorPhase.IDLE
        self.diagnostics: Counter = Counter()

        self._path = PathBuffer(self.config.path_capacity)
        self._last_ns: Optional[int] = None
        self._last_step_ns: Optional[int] = None

    @property
    def is_running(self) -> bool:
        return self.phase is not IntegratorPhase.IDLE

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin integrating. The next acceleration sample only seeds the clock."""
        if self.is_running:
            return
        self.phase = IntegratorPhase.SEEDING
        self._last_ns = None
        logger.debug("%s started", self.name)

    def stop(self) -> None:
        """Stop integrating. Position, velocity, bias and path are kept."""
        self.phase = IntegratorPhase.IDLE
        logger.debug("%s stopped", self.name)

    def reset(self) -> None:
        """
        Zero velocity and position, clear the path and unset the clock.

        Orientation and the acceleration filter are left as they are; they
        describe the device, not the track. If running, the next sample seeds.
        """
        self.state.zero()
        self._path.clear()
        self.motion_state = MotionState.MOVING
        self._last_ns = None
        self._last_step_ns = None
        if self.is_running:
            self.phase = IntegratorPhase.SEEDING
        self._reset_strategy()
        logger.debug("%s reset", self.name)

    # ------------------------------------------------------------------
    # Sample processing
    # ------------------------------------------------------------------

    def process_orientation(self, sample: OrientationSample) -> bool:
        """Update the orientation. Returns False if the sample was rejected."""
        try:
            self.orientation.update(sample.values, sample.timestamp_ns)
        except InvalidSample as exc:
            self.report("invalid_orientation", sample.timestamp_ns, str(exc))
            return False
        return True

    def process_acceleration(self, sample: AccelerationSample) -> bool:
        """
        Filter one acceleration sample and, while running, advance the estimate.

        Returns:
            True if the kinematic state was advanced by this sample.
        """
        try:
            a_filtered = self.accel_filter.update(sample.values)
        except InvalidSample as exc:
            self.report("invalid_acceleration", sample.timestamp_ns, str(exc))
            return False

        if not self.is_running:
            return False

        dt = self._advance_clock(sample.timestamp_ns)
        if dt is None:
            return False

        advanced = self._step(a_filtered, dt, sample.timestamp_ns)
        if advanced:
            self._last_step_ns = sample.timestamp_ns
        return advanced

    def _advance_clock(self, timestamp_ns: int) -> Optional[float]:
        """
        Move the integration clock to timestamp_ns.

        Returns:
            dt in seconds if the interval can be integrated, else None (the
            clock was seeded or reseeded and nothing else changes).
        """
        if self.phase is IntegratorPhase.SEEDING or self._last_ns is None:
            self._last_ns = timestamp_ns
            self.phase = IntegratorPhase.INTEGRATING
            self.report("seeded", timestamp_ns, "integration clock seeded")
            return None

        dt = (timestamp_ns - self._last_ns) / 1e9
        self._last_ns = timestamp_ns
        if not np.isfinite(dt) or dt <= 0.0 or dt > self.config.dt_max:
            self.report(
                "dt_discarded",
                timestamp_ns,
                f"dt={dt:.6g} s outside (0, {self.config.dt_max}]",
            )
            return None
        return dt

    @abstractmethod
    def _step(self, a_filtered: np.ndarray, dt: float, timestamp_ns: int) -> bool:
        """
        Advance the estimate by one accepted interval.

        Args:
            a_filtered: Low-passed device-frame acceleration. Shape: (3,).
            dt: Interval since the previous sample. Units: s. In (0, dt_max].
            timestamp_ns: Timestamp of the current sample.

        Returns:
            True if the step was applied, False if it was rolled back.
        """
        pass

    def _reset_strategy(self) -> None:
        """Clear strategy-specific state on reset(). Default: nothing."""

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def snapshot(self) -> KinematicSnapshot:
        """Immutable copy of position, velocity, motion state and path."""
        return KinematicSnapshot(
            position=tuple(self.state.position),
            velocity=tuple(self.state.velocity),
            motion_state=self.motion_state,
            timestamp_ns=self._last_step_ns,
            path=self._path.snapshot(),
        )

    def path(self) -> np.ndarray:
        """Read-only copy of the recorded path. Shape: (N, 3)."""
        return self._path.snapshot()

    def report(
        self,
        kind: str,
        timestamp_ns: Optional[int],
        detail: str = "",
        level: int = logging.DEBUG,
    ) -> None:
        self.diagnostics[kind] += 1
        logger.log(level, "%s: %s at t=%s ns: %s", self.name, kind, timestamp_ns, detail)
        if self.observer is not None:
            self.observer(DiagnosticEvent(kind=kind, timestamp_ns=timestamp_ns, detail=detail))
