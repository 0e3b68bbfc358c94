"""Quaternion algebra and frame rotations for dead reckoning.

Quaternions are scalar-last [qx, qy, qz, qw] and rotate device-frame vectors
into the world frame (x = East, y = North, z = Up).
"""

from inertial_dr.coords.rotations import (
    IDENTITY_QUAT,
    quat_conjugate,
    quat_from_rotation_vector,
    quat_heading,
    quat_multiply,
    quat_normalize,
    quat_to_rotation_matrix,
    rotate_vector,
    yaw_to_quat,
)

__all__ = [
    "IDENTITY_QUAT",
    "quat_conjugate",
    "quat_from_rotation_vector",
    "quat_heading",
    "quat_multiply",
    "quat_normalize",
    "quat_to_rotation_matrix",
    "rotate_vector",
    "yaw_to_quat",
]
