"""Quaternion algebra and frame rotations.

This module provides the rotation primitives used by the dead-reckoning
pipeline:
- Hamilton product and conjugate of unit quaternions
- Rotation of 3-vectors from device frame to world frame
- Reconstruction of a unit quaternion from a 3- or 4-component rotation vector
- Conversions to rotation matrices, yaw quaternions and horizontal heading

Conventions:
- Quaternions are scalar-LAST: q = [qx, qy, qz, qw], the layout delivered by
  the platform rotation-vector sensor.
- q represents the device-to-world rotation: v_world = q ⊗ v_device ⊗ q*.
- World frame is ENU-like: x = East, y = North, z = Up.
- All arithmetic is float64, whatever the precision of the input.
"""

import numpy as np
from numpy.typing import ArrayLike, NDArray

IDENTITY_QUAT = np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float64)


def _as_quat(q: ArrayLike) -> NDArray[np.float64]:
    q = np.asarray(q, dtype=np.float64)
    if q.shape != (4,):
        raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")
    return q


def _as_vec3(v: ArrayLike) -> NDArray[np.float64]:
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (3,):
        raise ValueError(f"Expected 3-element vector, got shape {v.shape}")
    return v


def quat_normalize(q: ArrayLike) -> NDArray[np.float64]:
    """Scale a quaternion to unit norm.

    Args:
        q: Quaternion [qx, qy, qz, qw].

    Returns:
        Unit quaternion with the same orientation.

    Raises:
        ValueError: If q has the wrong shape, or zero / non-finite norm.
    """
    q = _as_quat(q)
    norm = np.linalg.norm(q)
    if not np.isfinite(norm) or norm == 0.0:
        raise ValueError(f"Cannot normalize quaternion with norm {norm}")
    return q / norm


def quat_conjugate(q: ArrayLike) -> NDArray[np.float64]:
    """Return the conjugate q* = [-qx, -qy, -qz, qw].

    For a unit quaternion the conjugate equals the inverse, so it can be used
    to undo a rotation without computing 1/||q||².
    """
    q = _as_quat(q)
    return np.array([-q[0], -q[1], -q[2], q[3]], dtype=np.float64)


def quat_multiply(p: ArrayLike, q: ArrayLike) -> NDArray[np.float64]:
    """Hamilton product p ⊗ q of two scalar-last quaternions.

    With p = [x1, y1, z1, w1] and q = [x2, y2, z2, w2]:

        w = w1*w2 - x1*x2 - y1*y2 - z1*z2
        x = w1*x2 + x1*w2 + y1*z2 - z1*y2
        y = w1*y2 - x1*z2 + y1*w2 + z1*x2
        z = w1*z2 + x1*y2 - y1*x2 + z1*w2

    Args:
        p: Left quaternion [x, y, z, w].
        q: Right quaternion [x, y, z, w].

    Returns:
        Product quaternion [x, y, z, w]. Not renormalized.

    Example:
        >>> q = np.array([0.0, 0.0, np.sin(0.25), np.cos(0.25)])
        >>> np.allclose(quat_multiply(q, quat_conjugate(q)), IDENTITY_QUAT)
        True
    """
    x1, y1, z1, w1 = _as_quat(p)
    x2, y2, z2, w2 = _as_quat(q)

    return np.array(
        [
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        ],
        dtype=np.float64,
    )


def rotate_vector(q: ArrayLike, v: ArrayLike) -> NDArray[np.float64]:
    """Rotate a 3-vector by a unit quaternion: v' = q ⊗ [v, 0] ⊗ q*.

    The vector is lifted to a pure quaternion [vx, vy, vz, 0], multiplied on
    the left by q and on the right by the conjugate of q. The conjugate is
    used in place of the inverse, so q must already be unit-norm.

    Args:
        q: Unit quaternion [qx, qy, qz, qw] (device-to-world).
        v: Vector in the source (device) frame. Shape: (3,).

    Returns:
        Vector part of the result, i.e. v expressed in the target (world)
        frame. Shape: (3,), float64.

    Example:
        >>> rotate_vector(IDENTITY_QUAT, [1.0, 2.0, 3.0])
        array([1., 2., 3.])
    """
    v = _as_vec3(v)
    pure = np.array([v[0], v[1], v[2], 0.0], dtype=np.float64)
    rotated = quat_multiply(quat_multiply(q, pure), quat_conjugate(q))
    return rotated[:3]


def quat_from_rotation_vector(values: ArrayLike) -> NDArray[np.float64]:
    """Build a unit quaternion from rotation-vector sensor values.

    Rotation-vector sensors report either [x, y, z] (the scalar part is
    implied) or [x, y, z, w] optionally followed by extra fields such as a
    heading-accuracy estimate. When w is missing it is reconstructed as

        w = sqrt(max(0, 1 - x² - y² - z²))

    Args:
        values: Sensor values, at least 3 components.

    Returns:
        Unit quaternion [qx, qy, qz, qw].

    Raises:
        ValueError: If fewer than 3 components are given, a component is not
                    finite, or the quaternion has zero norm.
    """
    values = np.asarray(values, dtype=np.float64).ravel()
    if values.size < 3:
        raise ValueError(
            f"Rotation vector needs at least 3 components, got {values.size}"
        )
    if values.size >= 4:
        q = values[:4].copy()
    else:
        x, y, z = values
        w = np.sqrt(max(0.0, 1.0 - x * x - y * y - z * z))
        q = np.array([x, y, z, w], dtype=np.float64)

    if not np.all(np.isfinite(q)):
        raise ValueError(f"Rotation vector has non-finite components: {q}")

    return quat_normalize(q)


def quat_to_rotation_matrix(q: ArrayLike) -> NDArray[np.float64]:
    """Convert a scalar-last unit quaternion to a 3x3 rotation matrix.

    Args:
        q: Unit quaternion [qx, qy, qz, qw].

    Returns:
        3x3 rotation matrix R such that v_world = R @ v_device.

    Example:
        >>> np.allclose(quat_to_rotation_matrix(IDENTITY_QUAT), np.eye(3))
        True
    """
    qx, qy, qz, qw = _as_quat(q)

    R = np.array(
        [
            [
                1.0 - 2.0 * (qy * qy + qz * qz),
                2.0 * (qx * qy - qw * qz),
                2.0 * (qx * qz + qw * qy),
            ],
            [
                2.0 * (qx * qy + qw * qz),
                1.0 - 2.0 * (qx * qx + qz * qz),
                2.0 * (qy * qz - qw * qx),
            ],
            [
                2.0 * (qx * qz - qw * qy),
                2.0 * (qy * qz + qw * qx),
                1.0 - 2.0 * (qx * qx + qy * qy),
            ],
        ],
        dtype=np.float64,
    )

    return R


def yaw_to_quat(yaw: float) -> NDArray[np.float64]:
    """Quaternion for a pure rotation of `yaw` radians about world z."""
    half = 0.5 * yaw
    return np.array([0.0, 0.0, np.sin(half), np.cos(half)], dtype=np.float64)


def quat_heading(
    q: ArrayLike,
    forward_axis: ArrayLike = (0.0, 1.0, 0.0),
) -> float:
    """Horizontal heading of a device axis in the world frame.

    The device axis is rotated into the world frame and its azimuth in the
    x-y plane is returned, measured counter-clockwise from +x (East):
    0 = East, π/2 = North.

    Args:
        q: Unit quaternion [qx, qy, qz, qw] (device-to-world).
        forward_axis: Device-frame axis treated as "forward". Defaults to the
                      +y axis (top edge of a phone held in portrait).

    Returns:
        Heading in radians, in [-π, π]. Returns 0.0 when the axis is vertical
        and the azimuth is undefined.
    """
    f = rotate_vector(q, forward_axis)
    if np.hypot(f[0], f[1]) < 1e-9:
        return 0.0
    return float(np.arctan2(f[1], f[0]))
