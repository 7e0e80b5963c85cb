"""
Batch residual evaluation against a frozen estimate set.

All vertex estimates referenced by the edges are copied before the first
edge is evaluated, so every residual of one iteration sees the same state
even if a caller mutates vertices while the batch runs. Edges whose geometry
is degenerate are skipped and reported instead of aborting the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence

import numpy as np

from quadric_slam.backend.factors.quadric_proj import EdgeSE3QuadricProj
from quadric_slam.common.constants import BBOX_DIM
from quadric_slam.common.errors import DegenerateGeometryError, UnprojectableError

logger = logging.getLogger(__name__)


@dataclass
class EvaluationResult:
    """Per-edge errors and skips for one evaluation pass."""
    errors: Dict[int, np.ndarray] = field(default_factory=dict)  # edge index -> error
    chi2: Dict[int, float] = field(default_factory=dict)
    skipped: Dict[int, str] = field(default_factory=dict)  # edge index -> reason

    @property
    def total_chi2(self) -> float:
        return float(sum(self.chi2.values()))

    @property
    def n_evaluated(self) -> int:
        return len(self.errors)


def evaluate_edges(edges: Sequence[EdgeSE3QuadricProj]) -> EvaluationResult:
    """
    Evaluate every edge against a snapshot of its vertices.

    The edges' own ``error`` fields are updated for evaluated edges and set
    to NaN for skipped ones.
    """
    frozen = {}
    for edge in edges:
        for vertex in edge.vertices:
            if vertex is None:
                raise ValueError("Edge has no vertices attached")
            if id(vertex) not in frozen:
                frozen[id(vertex)] = vertex.snapshot()

    result = EvaluationResult()
    for index, edge in enumerate(edges):
        pose_vertex, quadric_vertex = edge.vertices
        try:
            error = edge.evaluate(frozen[id(pose_vertex)], frozen[id(quadric_vertex)])
        except (DegenerateGeometryError, UnprojectableError) as exc:
            # Skipped edges carry no residual for this pass
            edge.error = np.full(BBOX_DIM, np.nan)
            result.skipped[index] = str(exc)
            logger.warning(
                "skipping edge %d (pose %d, quadric %d): %s",
                index,
                pose_vertex.id,
                quadric_vertex.id,
                exc,
            )
            continue
        edge.error = error
        result.errors[index] = error
        result.chi2[index] = edge.chi2()

    logger.debug(
        "evaluated %d edges, skipped %d, total chi2 %.6g",
        result.n_evaluated,
        len(result.skipped),
        result.total_chi2,
    )
    return result
