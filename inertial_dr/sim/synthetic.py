"""
Synthetic orientation / linear-acceleration streams with ground truth.

The generators produce what a phone's rotation-vector and linear-acceleration
sensors would report for simple, analytically integrable motions:

    - generate_constant_acceleration: constant world-frame acceleration
    - generate_walk_stop: start-stop walk, each segment a full sine cycle
      a(τ) = A sin(2πτ/T) so the device is at rest between segments
    - generate_step_walk: vertical bounce at the step frequency, the signal
      a step detector sees while walking

Measurement model (device frame, gravity already removed):

    a_d = C_W^D a_w + b_a + n_a,    n_a ~ N(0, σ²)

with C_W^D the transpose of the device-to-world rotation built from a
yaw-only orientation. Logs can be written to and read from a directory of
plain-text arrays (np.savetxt) plus a config.json with generation metadata.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from inertial_dr.coords.rotations import quat_to_rotation_matrix, yaw_to_quat
from inertial_dr.sensors.types import AccelerationSample, OrientationSample


@dataclass
class SampleLog:
    """
    Recorded (or generated) sensor streams.

    Attributes:
        orientation_t: Orientation timestamps. Shape: (N,). Units: ns (int64).
        orientation: Rotation-vector values [x, y, z, w]. Shape: (N, 4).
        accel_t: Acceleration timestamps. Shape: (M,). Units: ns (int64).
        accel: Device-frame linear acceleration. Shape: (M, 3). Units: m/s².
        true_position: Ground-truth world position at each acceleration
                       timestamp, or None. Shape: (M, 3). Units: m.
        meta: Generation parameters, stored as config.json.
    """

    orientation_t: np.ndarray
    orientation: np.ndarray
    accel_t: np.ndarray
    accel: np.ndarray
    true_position: Optional[np.ndarray] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.orientation_t = np.asarray(self.orientation_t, dtype=np.int64).reshape(-1)
        self.orientation = np.asarray(self.orientation, dtype=np.float64).reshape(-1, 4)
        self.accel_t = np.asarray(self.accel_t, dtype=np.int64).reshape(-1)
        self.accel = np.asarray(self.accel, dtype=np.float64).reshape(-1, 3)
        if len(self.orientation_t) != len(self.orientation):
            raise ValueError(
                f"orientation_t ({len(self.orientation_t)}) and orientation "
                f"({len(self.orientation)}) lengths differ"
            )
        if len(self.accel_t) != len(self.accel):
            raise ValueError(
                f"accel_t ({len(self.accel_t)}) and accel ({len(self.accel)}) lengths differ"
            )
        if self.true_position is not None:
            self.true_position = np.asarray(self.true_position, dtype=np.float64).reshape(-1, 3)
            if len(self.true_position) != len(self.accel):
                raise ValueError("true_position must have one row per acceleration sample")

    @property
    def duration(self) -> float:
        """Span of the acceleration stream in seconds."""
        if len(self.accel_t) < 2:
            return 0.0
        return float(self.accel_t[-1] - self.accel_t[0]) / 1e9


def _timestamps(n: int, rate_hz: float, start_ns: int) -> np.ndarray:
    if rate_hz <= 0:
        raise ValueError(f"rate_hz must be positive, got {rate_hz}")
    period_ns = int(round(1e9 / rate_hz))
    return start_ns + period_ns * np.arange(n, dtype=np.int64)


def _world_to_device(accel_world: np.ndarray, quats: np.ndarray) -> np.ndarray:
    """Rotate world-frame rows into the device frame of the matching quaternion."""
    out = np.empty_like(accel_world)
    for i, (a, q) in enumerate(zip(accel_world, quats)):
        out[i] = quat_to_rotation_matrix(q).T @ a
    return out


def _add_errors(
    accel: np.ndarray,
    bias: Optional[Sequence[float]],
    noise_std: float,
    seed: Optional[int],
) -> np.ndarray:
    if noise_std < 0:
        raise ValueError(f"noise_std must be non-negative, got {noise_std}")
    out = accel.copy()
    if bias is not None:
        out = out + np.asarray(bias, dtype=np.float64)
    if noise_std > 0:
        rng = np.random.default_rng(seed)
        out = out + rng.normal(0.0, noise_std, size=out.shape)
    return out


def generate_constant_acceleration(
    accel_world: Sequence[float] = (1.0, 0.0, 0.0),
    duration: float = 1.0,
    rate_hz: float = 50.0,
    yaw: float = 0.0,
    start_ns: int = 1_000_000_000,
) -> SampleLog:
    """
    Constant world-frame acceleration from rest.

    Ground truth uses the same explicit-Euler recursion as the integrator
    (velocity first), so an undamped, unfiltered estimator reproduces it
    exactly after the seeding sample:

        v_k = v_{k-1} + a Δt,   p_k = p_{k-1} + v_k Δt

    Args:
        accel_world: World-frame acceleration. Units: m/s².
        duration: Length of the stream. Units: s.
        rate_hz: Sample rate of both streams.
        yaw: Device yaw (rotation about world z). Units: rad.
        start_ns: First timestamp.
    """
    n = int(round(duration * rate_hz)) + 1
    t_ns = _timestamps(n, rate_hz, start_ns)
    a_w = np.tile(np.asarray(accel_world, dtype=np.float64), (n, 1))
    quats = np.tile(yaw_to_quat(yaw), (n, 1))

    dt = 1.0 / rate_hz
    k = np.arange(n, dtype=np.float64)
    # Seeding sample contributes nothing; step k adds k * a * dt to v
    true_position = np.outer(k * (k + 1) / 2.0 * dt * dt, a_w[0])

    return SampleLog(
        orientation_t=t_ns,
        orientation=quats,
        accel_t=t_ns,
        accel=_world_to_device(a_w, quats),
        true_position=true_position,
        meta={
            "generator": "constant_acceleration",
            "accel_world": list(map(float, accel_world)),
            "duration_s": duration,
            "rate_hz": rate_hz,
            "yaw_rad": yaw,
        },
    )


def generate_walk_stop(
    n_segments: int = 3,
    walk_duration: float = 2.0,
    stop_duration: float = 1.5,
    peak_accel: float = 2.0,
    headings: Optional[Sequence[float]] = None,
    rate_hz: float = 50.0,
    noise_std: float = 0.0,
    bias: Optional[Sequence[float]] = None,
    seed: Optional[int] = None,
    start_ns: int = 1_000_000_000,
) -> SampleLog:
    """
    Start-stop walk: rest, then alternating walk and stop segments.

    Each walk segment accelerates along its heading with
    a(τ) = A sin(2πτ/T), T = walk_duration, which starts and ends at rest and
    covers A T² / (2π) metres. The device's +x axis points along the heading.

    Args:
        n_segments: Number of walk segments.
        walk_duration: Duration of each walk segment. Units: s.
        stop_duration: Rest before each segment and after the last. Units: s.
        peak_accel: Amplitude A. Units: m/s².
        headings: Per-segment heading (0 = East, π/2 = North). Units: rad.
                  Defaults to 0 for every segment.
        rate_hz: Sample rate of both streams.
        noise_std: White accelerometer noise σ. Units: m/s².
        bias: Constant device-frame accelerometer bias. Units: m/s².
        seed: Random seed for the noise.
        start_ns: First timestamp.

    Example:
        >>> log = generate_walk_stop(n_segments=2)
        >>> round(float(np.linalg.norm(log.true_position[-1])), 3)
        2.546
    """
    if n_segments < 1:
        raise ValueError(f"n_segments must be >= 1, got {n_segments}")
    if walk_duration <= 0 or stop_duration < 0:
        raise ValueError("walk_duration must be positive and stop_duration non-negative")
    if headings is None:
        headings = [0.0] * n_segments
    if len(headings) != n_segments:
        raise ValueError(f"Expected {n_segments} headings, got {len(headings)}")

    dt = 1.0 / rate_hz
    n_walk = int(round(walk_duration * rate_hz))
    n_stop = int(round(stop_duration * rate_hz))
    T = walk_duration
    omega = 2.0 * np.pi / T
    seg_distance = peak_accel * T * T / (2.0 * np.pi)

    a_rows: List[np.ndarray] = []
    p_rows: List[np.ndarray] = []
    yaw_rows: List[float] = []
    p_start = np.zeros(3)

    def rest(n: int, yaw: float) -> None:
        for _ in range(n):
            a_rows.append(np.zeros(3))
            p_rows.append(p_start.copy())
            yaw_rows.append(yaw)

    rest(n_stop, float(headings[0]))
    for heading in headings:
        u = np.array([np.cos(heading), np.sin(heading), 0.0])
        for i in range(n_walk):
            tau = i * dt
            a_rows.append(peak_accel * np.sin(omega * tau) * u)
            s = peak_accel / omega * (tau - np.sin(omega * tau) / omega)
            p_rows.append(p_start + s * u)
            yaw_rows.append(float(heading))
        p_start = p_start + seg_distance * u
        rest(n_stop, float(heading))

    a_w = np.array(a_rows)
    quats = np.array([yaw_to_quat(y) for y in yaw_rows])
    t_ns = _timestamps(len(a_w), rate_hz, start_ns)
    accel = _add_errors(_world_to_device(a_w, quats), bias, noise_std, seed)

    return SampleLog(
        orientation_t=t_ns,
        orientation=quats,
        accel_t=t_ns,
        accel=accel,
        true_position=np.array(p_rows),
        meta={
            "generator": "walk_stop",
            "n_segments": n_segments,
            "walk_duration_s": walk_duration,
            "stop_duration_s": stop_duration,
            "peak_accel": peak_accel,
            "headings_rad": [float(h) for h in headings],
            "rate_hz": rate_hz,
            "noise_std": noise_std,
            "bias": None if bias is None else [float(b) for b in bias],
            "seed": seed,
            "segment_distance_m": seg_distance,
        },
    )


def generate_step_walk(
    n_steps: int = 10,
    step_freq: float = 2.0,
    peak_accel: float = 3.0,
    heading: float = 0.0,
    stride: float = 0.7,
    tail_duration: float = 1.0,
    rate_hz: float = 50.0,
    noise_std: float = 0.0,
    seed: Optional[int] = None,
    start_ns: int = 1_000_000_000,
) -> SampleLog:
    """
    Straight walk seen by a phone held flat with its top edge forward.

    The vertical linear acceleration bounces once per step,
    a_z = A (1 - cos 2πft) / 2, followed by `tail_duration` seconds at rest.
    The orientation is yaw-only with the device +y axis along `heading`.
    Ground truth advances `stride` metres per step cycle.

    Args:
        n_steps: Number of steps.
        step_freq: Step frequency f. Units: Hz.
        peak_accel: Peak vertical acceleration A. Units: m/s².
        heading: Walking direction (0 = East, π/2 = North). Units: rad.
        stride: True stride length. Units: m.
        tail_duration: Rest after the last step. Units: s.
        rate_hz: Sample rate of both streams.
        noise_std: White accelerometer noise σ. Units: m/s².
        seed: Random seed for the noise.
        start_ns: First timestamp.
    """
    if n_steps < 1:
        raise ValueError(f"n_steps must be >= 1, got {n_steps}")
    if step_freq <= 0:
        raise ValueError(f"step_freq must be positive, got {step_freq}")

    walk_time = n_steps / step_freq
    n = int(round((walk_time + tail_duration) * rate_hz)) + 1
    t = np.arange(n) / rate_hz
    walking = t < walk_time

    accel = np.zeros((n, 3))
    accel[walking, 2] = peak_accel * (1.0 - np.cos(2.0 * np.pi * step_freq * t[walking])) / 2.0
    accel = _add_errors(accel, None, noise_std, seed)

    cycles = np.minimum(t * step_freq, n_steps)
    u = np.array([np.cos(heading), np.sin(heading), 0.0])
    true_position = np.outer(stride * cycles, u)

    yaw = heading - np.pi / 2.0
    quats = np.tile(yaw_to_quat(yaw), (n, 1))
    t_ns = _timestamps(n, rate_hz, start_ns)

    return SampleLog(
        orientation_t=t_ns,
        orientation=quats,
        accel_t=t_ns,
        accel=accel,
        true_position=true_position,
        meta={
            "generator": "step_walk",
            "n_steps": n_steps,
            "step_freq_hz": step_freq,
            "peak_accel": peak_accel,
            "heading_rad": heading,
            "stride_m": stride,
            "tail_duration_s": tail_duration,
            "rate_hz": rate_hz,
            "noise_std": noise_std,
            "seed": seed,
        },
    )


def merge_streams(log: SampleLog) -> List[Union[OrientationSample, AccelerationSample]]:
    """
    Time-ordered list of samples from both streams.

    At equal timestamps the orientation sample comes first, so the
    acceleration is rotated with the orientation of the same instant.
    """
    keyed = [
        (int(t), 0, i, OrientationSample(values=q, timestamp_ns=int(t)))
        for i, (t, q) in enumerate(zip(log.orientation_t, log.orientation))
    ]
    keyed += [
        (int(t), 1, i, AccelerationSample(values=a, timestamp_ns=int(t)))
        for i, (t, a) in enumerate(zip(log.accel_t, log.accel))
    ]
    keyed.sort(key=lambda item: item[:3])
    return [item[3] for item in keyed]


def replay_log(log: SampleLog, estimator) -> np.ndarray:
    """
    Feed a log through a MotionEstimator from a started state.

    Returns:
        Estimated position after each acceleration sample. Shape: (M, 3).
    """
    estimator.start()
    positions = []
    for sample in merge_streams(log):
        if isinstance(sample, OrientationSample):
            estimator.process_orientation(sample)
        else:
            estimator.process_acceleration(sample)
            positions.append(estimator.state.position.copy())
    return np.array(positions).reshape(-1, 3)


def save_sample_log(log: SampleLog, output_dir: Union[str, Path]) -> Path:
    """
    Write a SampleLog as plain-text arrays plus config.json.

    Files:
        orientation_time.txt, orientation.txt, accel_time.txt, accel.txt,
        ground_truth_position.txt (if known), config.json
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    np.savetxt(output_dir / "orientation_time.txt", log.orientation_t, fmt="%d",
               header="timestamp (ns)")
    np.savetxt(output_dir / "orientation.txt", log.orientation, fmt="%.12f",
               header="qx qy qz qw (device-to-world)")
    np.savetxt(output_dir / "accel_time.txt", log.accel_t, fmt="%d",
               header="timestamp (ns)")
    np.savetxt(output_dir / "accel.txt", log.accel, fmt="%.9f",
               header="ax ay az (m/s^2, device frame, gravity removed)")
    if log.true_position is not None:
        np.savetxt(output_dir / "ground_truth_position.txt", log.true_position, fmt="%.9f",
                   header="x y z (m, ENU)")

    with open(output_dir / "config.json", "w") as f:
        json.dump(log.meta, f, indent=2)

    return output_dir


def load_sample_log(data_dir: Union[str, Path]) -> SampleLog:
    """Read a SampleLog written by save_sample_log()."""
    path = Path(data_dir)
    if not path.is_dir():
        raise FileNotFoundError(f"Sample log directory not found: {path}")

    truth_file = path / "ground_truth_position.txt"
    meta = {}
    if (path / "config.json").exists():
        with open(path / "config.json") as f:
            meta = json.load(f)

    return SampleLog(
        orientation_t=np.loadtxt(path / "orientation_time.txt", dtype=np.int64, ndmin=1),
        orientation=np.loadtxt(path / "orientation.txt", ndmin=2),
        accel_t=np.loadtxt(path / "accel_time.txt", dtype=np.int64, ndmin=1),
        accel=np.loadtxt(path / "accel.txt", ndmin=2),
        true_position=np.loadtxt(truth_file, ndmin=2) if truth_file.exists() else None,
        meta=meta,
    )
