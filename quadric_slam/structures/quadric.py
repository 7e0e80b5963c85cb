"""
Ellipsoid ("quadric") landmark.

A quadric is stored as a rigid pose (4x4 homogeneous, object -> reference
frame) plus three semi-axis lengths. Two derived representations are used:

Minimal vector (9):
    (tx, ty, tz, roll, pitch, yaw, a, b, c), Euler angles intrinsic ZYX.
    Used as the optimizer tangent layout and for persistence.

Dual quadric (4x4 symmetric, 10 independent values):
    Q* = Z diag(a^2, b^2, c^2, -1) Z^T, Z = pose.
    Used for projection: a camera P = K [R|t] images Q* to the dual conic
    C* = P Q* P^T, whose inverse is the point conic of the outline.

Decomposition convention (from_dual_quadric):
    The eigenvectors of the point quadric's 3x3 block only fix the axes up to
    order and sign. Semi-axes are returned longest first, the first two
    rotation columns have a positive largest-magnitude component, and the
    third column is their cross product (det +1). Compare decomposed quadrics
    through their dual matrices, or canonicalize before comparing poses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from quadric_slam.common.constants import (
    CONIC_DISC_EPS,
    DEGENERATE_RCOND_EPS,
    DUAL_VECTOR_DIM,
    MINIMAL_DIM,
    TANGENT_DISC_EPS,
)
from quadric_slam.common.errors import DegenerateGeometryError, UnprojectableError
from quadric_slam.common.geometry.se3_numpy import (
    as_homogeneous,
    euler_zyx_to_rotmat,
    quat_to_rotmat,
    rotmat_to_euler_zyx,
    se3_exp_matrix,
    se3_matrix_inverse,
)

# Row-major upper triangle of a symmetric 4x4 matrix
_UPPER_TRIANGLE = np.triu_indices(4)


def _near_singular(M: np.ndarray, rcond_eps: float) -> bool:
    """True if M is non-finite or its reciprocal condition is <= rcond_eps."""
    if not np.all(np.isfinite(M)):
        return True
    s = np.linalg.svd(M, compute_uv=False)
    return bool(s[0] <= 0.0 or s[-1] <= rcond_eps * s[0])


def _canonical_axes(eigvecs: np.ndarray) -> np.ndarray:
    """Fix eigenvector signs so the result is a proper rotation (see module doc)."""
    R = np.array(eigvecs, dtype=float)
    for j in range(2):
        col = R[:, j]
        if col[np.argmax(np.abs(col))] < 0.0:
            R[:, j] = -col
    R[:, 2] = np.cross(R[:, 0], R[:, 1])
    return R


def _tangent_roots(a: float, b: float, c: float, disc_eps: float) -> np.ndarray:
    """Both roots of a*s^2 + b*s + c = 0; a is already known to be non-zero."""
    disc = b * b - 4.0 * a * c
    if disc < 0.0:
        if disc < -disc_eps * (b * b + 4.0 * abs(a * c)):
            raise UnprojectableError(
                f"Projected conic has no real tangent extrema (discriminant {disc:.3e})"
            )
        disc = 0.0
    root = np.sqrt(disc)
    return np.array([(-b + root) / (2.0 * a), (-b - root) / (2.0 * a)], dtype=float)


def dual_matrix_from_vector10d(v: Sequence[float]) -> np.ndarray:
    """Assemble the symmetric 4x4 matrix from its row-major upper triangle."""
    v = np.asarray(v, dtype=float).reshape(-1)
    if len(v) != DUAL_VECTOR_DIM:
        raise ValueError(f"Expected {DUAL_VECTOR_DIM}D vector, got shape {v.shape}")
    M = np.zeros((4, 4), dtype=float)
    M[_UPPER_TRIANGLE] = v
    return M + np.triu(M, 1).T


def rect_to_bbox(rect: Sequence[float]) -> np.ndarray:
    """(xmin, ymin, xmax, ymax) -> (cx, cy, w, h)."""
    rect = np.asarray(rect, dtype=float).reshape(-1)
    if len(rect) != 4:
        raise ValueError(f"Expected 4D rectangle, got shape {rect.shape}")
    center = (rect[2:] + rect[:2]) / 2.0
    extent = rect[2:] - rect[:2]
    return np.concatenate([center, extent])


def bbox_to_rect(bbox: Sequence[float]) -> np.ndarray:
    """(cx, cy, w, h) -> (xmin, ymin, xmax, ymax)."""
    bbox = np.asarray(bbox, dtype=float).reshape(-1)
    if len(bbox) != 4:
        raise ValueError(f"Expected 4D box, got shape {bbox.shape}")
    half = bbox[2:] / 2.0
    return np.concatenate([bbox[:2] - half, bbox[:2] + half])


def clip_rect(rect: Sequence[float], width: float, height: float) -> np.ndarray:
    """Clip a rectangle to the image [0, width] x [0, height]."""
    rect = np.asarray(rect, dtype=float).reshape(-1)
    if len(rect) != 4:
        raise ValueError(f"Expected 4D rectangle, got shape {rect.shape}")
    lo = np.array([0.0, 0.0, 0.0, 0.0])
    hi = np.array([width, height, width, height], dtype=float)
    return np.clip(rect, lo, hi)


@dataclass(eq=False)
class Quadric:
    """
    Ellipsoid with a rigid pose and three semi-axes.

    Attributes:
        pose: 4x4 homogeneous transform, object frame -> reference frame
        scale: semi-axis lengths (a, b, c) along the object x, y, z axes
    """
    pose: np.ndarray = field(default_factory=lambda: np.eye(4, dtype=float))
    scale: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=float))

    def __post_init__(self) -> None:
        self.pose = as_homogeneous(self.pose)
        self.scale = np.asarray(self.scale, dtype=float).reshape(-1).copy()
        if len(self.scale) != 3:
            raise ValueError(f"Expected 3 semi-axes, got shape {self.scale.shape}")

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_rotation_translation(
        cls,
        R: np.ndarray,
        t: Sequence[float],
        scale: Sequence[float],
    ) -> "Quadric":
        pose = np.eye(4, dtype=float)
        pose[:3, :3] = np.asarray(R, dtype=float)
        pose[:3, 3] = np.asarray(t, dtype=float).reshape(-1)
        return cls(pose=pose, scale=scale)

    @classmethod
    def from_minimal_vector(cls, v: Sequence[float]) -> "Quadric":
        """(tx, ty, tz, roll, pitch, yaw, a, b, c) -> Quadric."""
        v = np.asarray(v, dtype=float).reshape(-1)
        if len(v) != MINIMAL_DIM:
            raise ValueError(f"Expected {MINIMAL_DIM}D vector, got shape {v.shape}")
        R = euler_zyx_to_rotmat(v[3], v[4], v[5])
        return cls.from_rotation_translation(R, v[:3], v[6:9])

    @classmethod
    def from_dual_quadric(
        cls,
        v: np.ndarray,
        rcond_eps: float = DEGENERATE_RCOND_EPS,
    ) -> "Quadric":
        """
        Closed-form decomposition of a dual quadric into pose and semi-axes.

        Args:
            v: 10D upper-triangle vector or symmetric 4x4 dual quadric
            rcond_eps: reciprocal condition below which a matrix is singular

        The centre is read off the last column, t = Q*[:3, 3] / Q*[3, 3], and
        the matrix is moved to the origin before any conditioning test, so
        the distance of the quadric from the origin does not count against it.

        Raises:
            DegenerateGeometryError: Q*[3, 3] vanishes, the centred dual
                matrix or the 3x3 block of its inverse is (near) singular, or
                the result is not finite
        """
        v = np.asarray(v, dtype=float)
        if v.shape == (4, 4):
            dual = 0.5 * (v + v.T)
        else:
            dual = dual_matrix_from_vector10d(v)

        if not np.all(np.isfinite(dual)):
            raise DegenerateGeometryError("Dual quadric matrix is not finite")
        w = dual[3, 3]
        if abs(w) <= rcond_eps * np.abs(dual).max():
            raise DegenerateGeometryError("Dual quadric has no finite centre (Q*[3, 3] ~ 0)")
        translation = dual[:3, 3] / w

        to_centre = np.eye(4, dtype=float)
        to_centre[:3, 3] = -translation
        centred = to_centre @ dual @ to_centre.T
        centred = 0.5 * (centred + centred.T)

        if _near_singular(centred, rcond_eps):
            raise DegenerateGeometryError("Dual quadric matrix is near singular")

        # Scale-consistent normalization before inversion
        centred = centred / np.cbrt(np.linalg.det(centred))
        raw = np.linalg.inv(centred)
        raw = 0.5 * (raw + raw.T)

        Q33 = raw[:3, :3]
        if _near_singular(Q33, rcond_eps):
            raise DegenerateGeometryError("Quadric 3x3 block is near singular")

        eigvals, eigvecs = np.linalg.eigh(Q33)
        det_ratio = np.linalg.det(raw) / np.linalg.det(Q33)
        shape = np.sqrt(np.abs(-det_ratio / eigvals))

        order = np.argsort(-shape, kind="stable")
        shape = shape[order]
        R = _canonical_axes(eigvecs[:, order])

        if not (np.all(np.isfinite(shape)) and np.all(np.isfinite(translation))):
            raise DegenerateGeometryError("Dual quadric decomposition is not finite")

        return cls.from_rotation_translation(R, translation, shape)

    @classmethod
    def from_vector10d(cls, v: Sequence[float], rcond_eps: float = DEGENERATE_RCOND_EPS) -> "Quadric":
        return cls.from_dual_quadric(dual_matrix_from_vector10d(v), rcond_eps=rcond_eps)

    def copy(self) -> "Quadric":
        return Quadric(pose=self.pose.copy(), scale=self.scale.copy())

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def translation(self) -> np.ndarray:
        return self.pose[:3, 3].copy()

    @property
    def rotation(self) -> np.ndarray:
        return self.pose[:3, :3].copy()

    def set_translation(self, t: Sequence[float]) -> None:
        self.pose[:3, 3] = np.asarray(t, dtype=float).reshape(-1)

    def set_rotation(self, r: np.ndarray) -> None:
        """Set rotation from a 3x3 matrix or a quaternion (x, y, z, w)."""
        r = np.asarray(r, dtype=float)
        self.pose[:3, :3] = r if r.shape == (3, 3) else quat_to_rotmat(r)

    def set_scale(self, scale: Sequence[float]) -> None:
        scale = np.asarray(scale, dtype=float).reshape(-1)
        if len(scale) != 3:
            raise ValueError(f"Expected 3 semi-axes, got shape {scale.shape}")
        self.scale = scale.copy()

    # -------------------------------------------------------------------------
    # Representations
    # -------------------------------------------------------------------------

    def to_minimal_vector(self) -> np.ndarray:
        roll, pitch, yaw = rotmat_to_euler_zyx(self.pose[:3, :3])
        return np.concatenate([self.pose[:3, 3], [roll, pitch, yaw], self.scale])

    def to_dual_quadric(self) -> np.ndarray:
        """Q* = Z diag(a^2, b^2, c^2, -1) Z^T."""
        centred = np.diag(np.append(self.scale ** 2, -1.0))
        Z = self.pose
        return Z @ centred @ Z.T

    def to_vector10d(self) -> np.ndarray:
        return self.to_dual_quadric()[_UPPER_TRIANGLE]

    # -------------------------------------------------------------------------
    # Manifold update and frame changes
    # -------------------------------------------------------------------------

    def exp_update(self, update: Sequence[float]) -> "Quadric":
        """
        Local update: pose * exp(update[0:6]), scale + update[6:9].

        The twist is ordered (ω, v), rotation first, as in g2o's SE3Quat.
        A zero update returns an identical quadric.
        """
        update = np.asarray(update, dtype=float).reshape(-1)
        if len(update) != MINIMAL_DIM:
            raise ValueError(f"Expected {MINIMAL_DIM}D update, got shape {update.shape}")
        return Quadric(
            pose=self.pose @ se3_exp_matrix(update[:6]),
            scale=self.scale + update[6:9],
        )

    def transform_from(self, T: np.ndarray) -> "Quadric":
        """Move a quadric expressed in frame B into frame A, T = T_AB."""
        return Quadric(pose=as_homogeneous(T) @ self.pose, scale=self.scale)

    def transform_to(self, T: np.ndarray) -> "Quadric":
        """Move a quadric expressed in frame A into frame B, T = T_AB."""
        return Quadric(pose=se3_matrix_inverse(as_homogeneous(T)) @ self.pose, scale=self.scale)

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def to_conic(
        self,
        campose_cw: np.ndarray,
        calib: np.ndarray,
        rcond_eps: float = DEGENERATE_RCOND_EPS,
    ) -> np.ndarray:
        """
        Point conic (3x3) of the quadric's outline in the image.

        Args:
            campose_cw: world -> camera transform (4x4 or 6D)
            calib: 3x3 intrinsic matrix K

        Raises:
            UnprojectableError: projected dual conic is (near) singular
        """
        calib = np.asarray(calib, dtype=float)
        if calib.shape != (3, 3):
            raise ValueError(f"Expected 3x3 calibration, got shape {calib.shape}")
        P = calib @ as_homogeneous(campose_cw)[:3, :]
        dual_conic = P @ self.to_dual_quadric() @ P.T
        dual_conic = 0.5 * (dual_conic + dual_conic.T)
        if _near_singular(dual_conic, rcond_eps):
            raise UnprojectableError("Projected dual conic is near singular")
        return np.linalg.inv(dual_conic)

    def project_to_image_rect(
        self,
        campose_cw: np.ndarray,
        calib: np.ndarray,
        rcond_eps: float = DEGENERATE_RCOND_EPS,
        conic_disc_eps: float = CONIC_DISC_EPS,
        tangent_disc_eps: float = TANGENT_DISC_EPS,
    ) -> np.ndarray:
        """
        Axis-aligned rectangle (xmin, ymin, xmax, ymax) enclosing the outline.

        With the conic A x^2 + B xy + C y^2 + D x + E y + F = 0, a vertical
        tangent at x exists where the quadratic in y has a double root, i.e.
        (B^2 - 4AC) x^2 + (2BE - 4CD) x + (E^2 - 4CF) = 0; symmetrically for y.

        Raises:
            UnprojectableError: singular projection, parabolic conic
                (B^2 - 4AC ~ 0), or no real tangent extrema
        """
        conic = self.to_conic(campose_cw, calib, rcond_eps=rcond_eps)
        A = conic[0, 0]
        B = 2.0 * conic[0, 1]
        C = conic[1, 1]
        D = 2.0 * conic[0, 2]
        E = 2.0 * conic[1, 2]
        F = conic[2, 2]

        denom = B * B - 4.0 * A * C
        if abs(denom) <= conic_disc_eps * (B * B + 4.0 * abs(A * C)):
            raise UnprojectableError("Projected conic is parabolic (B^2 - 4AC ~ 0)")

        y = _tangent_roots(denom, 2.0 * B * D - 4.0 * A * E, D * D - 4.0 * A * F, tangent_disc_eps)
        x = _tangent_roots(denom, 2.0 * B * E - 4.0 * C * D, E * E - 4.0 * C * F, tangent_disc_eps)

        return np.array([x.min(), y.min(), x.max(), y.max()], dtype=float)

    def project_to_image_bbox(
        self,
        campose_cw: np.ndarray,
        calib: np.ndarray,
        **eps: float,
    ) -> np.ndarray:
        """(cx, cy, w, h) of project_to_image_rect."""
        return rect_to_bbox(self.project_to_image_rect(campose_cw, calib, **eps))

    def __repr__(self) -> str:
        return (
            f"Quadric(t={np.array2string(self.pose[:3, 3], precision=4)}, "
            f"scale={np.array2string(self.scale, precision=4)})"
        )


def canonicalize(q: Quadric) -> Quadric:
    """Quadric re-expressed in the from_dual_quadric axis convention."""
    order = np.argsort(-q.scale, kind="stable")
    R = _canonical_axes(q.rotation[:, order])
    return Quadric.from_rotation_translation(R, q.translation, q.scale[order])
