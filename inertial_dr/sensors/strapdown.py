"""
Frame transformation and double integration of linear acceleration.

This module implements the numerical core of the dead-reckoning integrator:
    - Device-to-world rotation of acceleration via quaternion sandwich product
    - Velocity update with per-step damping
    - Position update (explicit Euler, velocity first)
    - Optional snapping of tiny position components to zero

Unlike a full strapdown mechanization there is no gravity term: the input is
platform "linear acceleration", i.e. specific force with gravity already
removed, and there is no gyro integration because orientation arrives as an
absolute quaternion from the rotation-vector sensor.

Update order per accepted step (explicit Euler):
    1. a_w = q ⊗ a_d ⊗ q*                      (device → world)
    2. v_k = (v_{k-1} + a_w * Δt) * d          (d = damping, 1 disables)
    3. p_k = p_{k-1} + v_k * Δt                (uses the NEW velocity)

With d = 1 and constant a_w the sequence is v = a·Δt, 2a·Δt, ... and
p = a·Δt², 3a·Δt², ...
"""

from typing import Optional

import numpy as np

from inertial_dr.coords.rotations import rotate_vector


def device_to_world(accel_device: np.ndarray, q: np.ndarray) -> np.ndarray:
    """
    Rotate a device-frame acceleration into the world frame.

    Treats the acceleration as a pure quaternion [ax, ay, az, 0] and computes
    (q ⊗ a) ⊗ q*. The conjugate replaces the inverse since q is unit-norm.
    Intermediate arithmetic is float64 so the sandwich product does not lose
    precision when the sensor delivers float32 values.

    Args:
        accel_device: Bias-corrected acceleration in device frame.
                      Shape: (3,). Units: m/s².
        q: Unit quaternion [qx, qy, qz, qw], device-to-world.

    Returns:
        World-frame acceleration. Shape: (3,). Units: m/s².

    Example:
        >>> device_to_world(np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, 0.0, 1.0]))
        array([1., 0., 0.])
    """
    return rotate_vector(q, accel_device)


def vel_update(
    v_prev: np.ndarray,
    a_world: np.ndarray,
    dt: float,
    damping: float = 1.0,
) -> np.ndarray:
    """
    Velocity update with multiplicative damping.

        v_k = (v_{k-1} + a_w * Δt) * d

    Damping bounds the velocity random walk caused by residual bias; d close
    to 1 (0.998) barely affects genuine motion, d = 0.9 is aggressive.

    Args:
        v_prev: Previous world-frame velocity. Shape: (3,). Units: m/s.
        a_world: World-frame acceleration. Shape: (3,). Units: m/s².
        dt: Time step. Units: s. Must be positive.
        damping: Per-step multiplier in (0, 1]. Default: 1.0 (no damping).

    Returns:
        Updated velocity. Shape: (3,). Units: m/s.
    """
    if v_prev.shape != (3,):
        raise ValueError(f"v_prev must have shape (3,), got {v_prev.shape}")
    if a_world.shape != (3,):
        raise ValueError(f"a_world must have shape (3,), got {a_world.shape}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")

    v_next = v_prev + a_world * dt
    v_next = v_next * damping

    return v_next


def pos_update(
    p_prev: np.ndarray,
    v_current: np.ndarray,
    dt: float,
) -> np.ndarray:
    """
    Position update using the current (already updated) velocity.

        p_k = p_{k-1} + v_k * Δt

    Args:
        p_prev: Previous world-frame position. Shape: (3,). Units: m.
        v_current: Velocity from vel_update. Shape: (3,). Units: m/s.
        dt: Time step. Units: s. Must be positive.

    Returns:
        Updated position. Shape: (3,). Units: m.

    Example:
        >>> pos_update(np.zeros(3), np.array([0.1, 0.0, 0.0]), 0.1)
        array([0.01, 0.  , 0.  ])
    """
    if p_prev.shape != (3,):
        raise ValueError(f"p_prev must have shape (3,), got {p_prev.shape}")
    if v_current.shape != (3,):
        raise ValueError(f"v_current must have shape (3,), got {v_current.shape}")
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")

    return p_prev + v_current * dt


def snap_position(p: np.ndarray, epsilon: Optional[float]) -> np.ndarray:
    """
    Force position components with |p[i]| < epsilon to exactly zero.

    Cosmetic noise floor for display; epsilon=None leaves p untouched.
    """
    if epsilon is None:
        return p
    return np.where(np.abs(p) < epsilon, 0.0, p)
