"""Camera-quadric 2D projection factor (bounding box difference)."""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from quadric_slam.backend.vertices import VertexQuadric, VertexSE3Expmap
from quadric_slam.common.constants import (
    BBOX_DIM,
    CONIC_DISC_EPS,
    DEGENERATE_RCOND_EPS,
    TANGENT_DISC_EPS,
)
from quadric_slam.structures.quadric import Quadric

logger = logging.getLogger(__name__)


class EdgeSE3QuadricProj:
    """
    Binary factor between a camera pose (T_cw) and a world quadric.

    The error is the elementwise SQUARED difference between the projected
    box (cx, cy, w, h) and the measured detection box, so every component is
    non-negative. chi2 then aggregates error^T Omega error.

    Projection failures (DegenerateGeometryError, UnprojectableError)
    propagate to the caller.
    """

    dimension = BBOX_DIM

    def __init__(
        self,
        calib: np.ndarray,
        measurement: Sequence[float],
        information: Optional[np.ndarray] = None,
        rcond_eps: float = DEGENERATE_RCOND_EPS,
        conic_disc_eps: float = CONIC_DISC_EPS,
        tangent_disc_eps: float = TANGENT_DISC_EPS,
    ) -> None:
        self.calib = np.asarray(calib, dtype=float)
        if self.calib.shape != (3, 3):
            raise ValueError(f"Expected 3x3 calibration, got shape {self.calib.shape}")
        self.set_measurement(measurement)
        self.information = (
            np.eye(BBOX_DIM, dtype=float)
            if information is None
            else np.asarray(information, dtype=float)
        )
        if self.information.shape != (BBOX_DIM, BBOX_DIM):
            raise ValueError(f"Expected 4x4 information, got shape {self.information.shape}")
        self._eps = {
            "rcond_eps": rcond_eps,
            "conic_disc_eps": conic_disc_eps,
            "tangent_disc_eps": tangent_disc_eps,
        }
        self.vertices: Tuple[Optional[VertexSE3Expmap], Optional[VertexQuadric]] = (None, None)
        self.error = np.zeros(BBOX_DIM, dtype=float)

    def set_measurement(self, measurement: Sequence[float]) -> None:
        measurement = np.asarray(measurement, dtype=float).reshape(-1)
        if len(measurement) != BBOX_DIM:
            raise ValueError(f"Expected 4D box measurement, got shape {measurement.shape}")
        self.measurement = measurement

    def set_vertices(self, pose_vertex: VertexSE3Expmap, quadric_vertex: VertexQuadric) -> None:
        self.vertices = (pose_vertex, quadric_vertex)

    def evaluate(self, campose_cw: np.ndarray, quadric: Quadric) -> np.ndarray:
        """Error for explicit inputs, without touching the vertices."""
        bbox = quadric.project_to_image_bbox(campose_cw, self.calib, **self._eps)
        return (bbox - self.measurement) ** 2

    def compute_error(self) -> np.ndarray:
        pose_vertex, quadric_vertex = self.vertices
        if pose_vertex is None or quadric_vertex is None:
            raise ValueError("EdgeSE3QuadricProj has no vertices attached")
        # Cleared first so a failed projection leaves no residual behind
        self.error = np.full(BBOX_DIM, np.nan)
        self.error = self.evaluate(pose_vertex.estimate, quadric_vertex.estimate)
        logger.debug(
            "edge(%d, %d) error=%s",
            pose_vertex.id,
            quadric_vertex.id,
            np.array2string(self.error, precision=4),
        )
        return self.error

    def chi2(self) -> float:
        return float(self.error @ self.information @ self.error)
