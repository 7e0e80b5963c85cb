"""
Geometry package for quadric_slam.

Usage:
    from quadric_slam.common.geometry import (
        se3_exp_matrix,
        se3_matrix_inverse,
        euler_zyx_to_rotmat,
    )
"""

from __future__ import annotations

from quadric_slam.common.geometry.se3_numpy import (
    # SO(3) operations
    skew,
    rotvec_to_rotmat,
    rotmat_to_rotvec,
    quat_to_rotmat,
    # Euler angles
    euler_zyx_to_rotmat,
    rotmat_to_euler_zyx,
    # Homogeneous form
    se3_to_matrix,
    matrix_to_se3,
    se3_exp_matrix,
    se3_matrix_inverse,
    as_homogeneous,
)

__all__ = [
    "skew",
    "rotvec_to_rotmat",
    "rotmat_to_rotvec",
    "quat_to_rotmat",
    "euler_zyx_to_rotmat",
    "rotmat_to_euler_zyx",
    "se3_to_matrix",
    "matrix_to_se3",
    "se3_exp_matrix",
    "se3_matrix_inverse",
    "as_homogeneous",
]
