"""
SE(3) geometry for quadric and camera poses.

Poses are 4x4 homogeneous matrices wherever they are composed (quadric
poses, camera poses), so that composing with the identity is exact and no
log/exp round trip is paid per update. The 6D vector (x, y, z, rx, ry, rz),
translation + rotation vector, is only used at the text I/O boundary.

Twists are ordered (ω, v), rotation first, matching g2o's SE3Quat::exp so
increments computed by a g2o-style optimizer can be applied unchanged.

Euler angles only appear in the quadric minimal vector, always in intrinsic
ZYX order: R = Rz(yaw) @ Ry(pitch) @ Rx(roll).

References:
- Barfoot (2017): State Estimation for Robotics
- Sola et al. (2018): A micro Lie theory for state estimation
"""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np
from scipy.spatial.transform import Rotation

from quadric_slam.common.constants import ROTATION_EPSILON


# =============================================================================
# SO(3)
# =============================================================================


def skew(v: np.ndarray) -> np.ndarray:
    """Skew-symmetric matrix from 3-vector (hat operator)."""
    v = np.asarray(v, dtype=float).reshape(-1)
    return np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0]
    ], dtype=float)


def _rodrigues(omega: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Rotation exp(ω) and the left Jacobian V used by the SE(3) exponential."""
    theta = np.linalg.norm(omega)
    if theta < ROTATION_EPSILON:
        # First-order expansion
        return np.eye(3, dtype=float) + skew(omega), np.eye(3, dtype=float)

    K = skew(omega / theta)
    KK = K @ K
    R = np.eye(3, dtype=float) + math.sin(theta) * K + (1.0 - math.cos(theta)) * KK
    V = (
        np.eye(3, dtype=float)
        + ((1.0 - math.cos(theta)) / theta) * K
        + ((theta - math.sin(theta)) / theta) * KK
    )
    return R, V


def rotvec_to_rotmat(rotvec: np.ndarray) -> np.ndarray:
    """Rotation vector (axis * angle) -> rotation matrix, Rodrigues' formula."""
    rotvec = np.asarray(rotvec, dtype=float).reshape(-1)
    if len(rotvec) != 3:
        raise ValueError(f"Expected 3D rotation vector, got shape {rotvec.shape}")
    return _rodrigues(rotvec)[0]


def rotmat_to_rotvec(R: np.ndarray) -> np.ndarray:
    """Rotation matrix -> rotation vector (log map), valid up to angle pi."""
    R = np.asarray(R, dtype=float)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")
    if not np.allclose(R @ R.T, np.eye(3), atol=1e-5):
        raise ValueError("Input matrix is not orthogonal (R @ R.T != I)")
    return Rotation.from_matrix(R).as_rotvec()


def quat_to_rotmat(q: np.ndarray) -> np.ndarray:
    """Quaternion (x, y, z, w), not necessarily normalized -> rotation matrix."""
    q = np.asarray(q, dtype=float).reshape(-1)
    if len(q) != 4:
        raise ValueError(f"Expected 4-element quaternion, got {len(q)}")
    if np.linalg.norm(q) < 1e-10:
        raise ValueError("Quaternion norm is too small (near zero)")
    return Rotation.from_quat(q).as_matrix()


# =============================================================================
# Euler angles (intrinsic ZYX: yaw about z, then pitch about y', roll about x'')
# =============================================================================


def euler_zyx_to_rotmat(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Rotation matrix R = Rz(yaw) @ Ry(pitch) @ Rx(roll). Angles in radians."""
    return Rotation.from_euler("ZYX", [yaw, pitch, roll]).as_matrix()


def rotmat_to_euler_zyx(R: np.ndarray) -> Tuple[float, float, float]:
    """
    Inverse of euler_zyx_to_rotmat, returns (roll, pitch, yaw).

    pitch is in [-pi/2, pi/2]. At pitch = +-pi/2 (gimbal lock) roll and yaw
    are not separable; scipy assigns the whole in-plane angle to yaw and
    warns.
    """
    R = np.asarray(R, dtype=float)
    if R.shape != (3, 3):
        raise ValueError(f"Expected 3x3 matrix, got shape {R.shape}")
    yaw, pitch, roll = Rotation.from_matrix(R).as_euler("ZYX")
    return float(roll), float(pitch), float(yaw)


# =============================================================================
# SE(3), homogeneous 4x4 form
# =============================================================================


def se3_to_matrix(T: np.ndarray) -> np.ndarray:
    """6D transform (x, y, z, rx, ry, rz) -> 4x4 homogeneous matrix."""
    T = np.asarray(T, dtype=float).reshape(-1)
    if len(T) != 6:
        raise ValueError(f"Expected 6D vector, got shape {T.shape}")
    M = np.eye(4, dtype=float)
    M[:3, :3] = rotvec_to_rotmat(T[3:6])
    M[:3, 3] = T[:3]
    return M


def matrix_to_se3(M: np.ndarray) -> np.ndarray:
    """4x4 homogeneous matrix -> 6D transform (x, y, z, rx, ry, rz)."""
    M = np.asarray(M, dtype=float)
    if M.shape != (4, 4):
        raise ValueError(f"Expected 4x4 matrix, got shape {M.shape}")
    return np.concatenate([M[:3, 3], rotmat_to_rotvec(M[:3, :3])])


def se3_exp_matrix(xi: np.ndarray) -> np.ndarray:
    """
    Exponential map se(3) -> SE(3) as a 4x4 matrix.

    Args:
        xi: 6D twist (ωx, ωy, ωz, vx, vy, vz), rotation first

    Returns:
        [[exp(ω), V v], [0, 1]]; exactly the identity for a zero twist
    """
    xi = np.asarray(xi, dtype=float).reshape(-1)
    if len(xi) != 6:
        raise ValueError(f"Expected 6D twist, got shape {xi.shape}")
    R, V = _rodrigues(xi[:3])
    M = np.eye(4, dtype=float)
    M[:3, :3] = R
    M[:3, 3] = V @ xi[3:6]
    return M


def se3_matrix_inverse(M: np.ndarray) -> np.ndarray:
    """Closed-form inverse of a rigid 4x4 transform: [R^T, -R^T t; 0, 1]."""
    M = np.asarray(M, dtype=float)
    if M.shape != (4, 4):
        raise ValueError(f"Expected 4x4 matrix, got shape {M.shape}")
    R_inv = M[:3, :3].T
    M_inv = np.eye(4, dtype=float)
    M_inv[:3, :3] = R_inv
    M_inv[:3, 3] = -R_inv @ M[:3, 3]
    return M_inv


def as_homogeneous(T: np.ndarray) -> np.ndarray:
    """Accept a 6D transform or a 4x4 matrix and return a 4x4 float copy."""
    T = np.asarray(T, dtype=float)
    if T.shape == (4, 4):
        return T.copy()
    if T.size == 6:
        return se3_to_matrix(T)
    raise ValueError(f"Expected 6D vector or 4x4 matrix, got shape {T.shape}")
