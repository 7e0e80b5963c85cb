"""
Optimizable variables (graph vertices).

A vertex owns one estimate and exposes the three operations an external
least-squares optimizer drives:

- set_to_origin(): reset the estimate
- oplus(update): apply a tangent-space increment
- read(stream) / write(stream): persist the estimate as plain text

Vertices carry no geometry of their own; they delegate to Quadric and the
SE(3) helpers.
"""

from __future__ import annotations

from typing import Generic, Optional, Sequence, TextIO, TypeVar

import numpy as np

from quadric_slam.backend.io import format_vector, parse_minimal_vector
from quadric_slam.common.constants import MINIMAL_DIM, POSE_DOF
from quadric_slam.common.errors import MalformedStateError
from quadric_slam.common.geometry.se3_numpy import (
    as_homogeneous,
    matrix_to_se3,
    se3_exp_matrix,
)
from quadric_slam.structures.quadric import Quadric

EstimateT = TypeVar("EstimateT")


class BaseVertex(Generic[EstimateT]):
    """Base interface for optimizable variables."""

    dimension: int = 0

    def __init__(self, vertex_id: int = 0, fixed: bool = False) -> None:
        self.id = int(vertex_id)
        self.fixed = bool(fixed)
        self._estimate: Optional[EstimateT] = None
        self.set_to_origin()

    @property
    def estimate(self) -> EstimateT:
        return self._estimate

    def set_estimate(self, estimate: EstimateT) -> None:
        self._estimate = estimate

    def set_to_origin(self) -> None:
        raise NotImplementedError

    def oplus(self, update: Sequence[float]) -> None:
        """Apply a tangent increment. Fixed vertices ignore updates."""
        if self.fixed:
            return
        update = np.asarray(update, dtype=float).reshape(-1)
        if len(update) != self.dimension:
            raise ValueError(f"Expected {self.dimension}D update, got shape {update.shape}")
        self._oplus_impl(update)

    def _oplus_impl(self, update: np.ndarray) -> None:
        raise NotImplementedError

    def snapshot(self) -> EstimateT:
        """Independent copy of the current estimate."""
        raise NotImplementedError

    def read(self, stream: TextIO) -> None:
        raise NotImplementedError

    def write(self, stream: TextIO) -> None:
        raise NotImplementedError


class VertexQuadric(BaseVertex[Quadric]):
    """
    Quadric landmark in world coordinates, 9 DoF.

    Updates are (ωx, ωy, ωz, vx, vy, vz, da, db, dc): a g2o-ordered twist,
    rotation first, applied on the right of the pose, then semi-axis deltas.
    """

    dimension = MINIMAL_DIM

    def set_to_origin(self) -> None:
        self._estimate = Quadric()

    def _oplus_impl(self, update: np.ndarray) -> None:
        # Increments are expressed in the local frame (right composition)
        self._estimate = self._estimate.exp_update(update)

    def snapshot(self) -> Quadric:
        return self._estimate.copy()

    def read(self, stream: TextIO) -> None:
        line = stream.readline()
        v = parse_minimal_vector(line, where=f"vertex {self.id}")
        self.set_estimate(Quadric.from_minimal_vector(v))

    def write(self, stream: TextIO) -> None:
        stream.write(format_vector(self._estimate.to_minimal_vector()))


class VertexSE3Expmap(BaseVertex[np.ndarray]):
    """
    Camera pose T_cw (world -> camera) as a 4x4 matrix, 6 DoF.

    Increments are twists (ω, v), rotation first as in g2o, applied on the
    left: T <- exp(update) * T.
    Persisted as the 6D vector (x, y, z, rx, ry, rz).
    """

    dimension = POSE_DOF

    def set_to_origin(self) -> None:
        self._estimate = np.eye(4, dtype=float)

    def set_estimate(self, estimate: np.ndarray) -> None:
        self._estimate = as_homogeneous(estimate)

    def _oplus_impl(self, update: np.ndarray) -> None:
        self._estimate = se3_exp_matrix(update) @ self._estimate

    def snapshot(self) -> np.ndarray:
        return self._estimate.copy()

    def read(self, stream: TextIO) -> None:
        tokens = stream.readline().split()
        if len(tokens) < POSE_DOF:
            raise MalformedStateError(
                f"vertex {self.id}: expected {POSE_DOF} values, got {len(tokens)}"
            )
        try:
            v = np.array([float(tok) for tok in tokens[:POSE_DOF]], dtype=float)
        except ValueError as exc:
            raise MalformedStateError(f"vertex {self.id}: non-numeric value ({exc})") from exc
        self.set_estimate(v)

    def write(self, stream: TextIO) -> None:
        stream.write(format_vector(matrix_to_se3(self._estimate)))
