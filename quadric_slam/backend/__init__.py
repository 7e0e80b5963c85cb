"""
Optimizer-facing layer.

- vertices: VertexQuadric (9 DoF landmark), VertexSE3Expmap (camera pose)
- factors: EdgeSE3QuadricProj (bounding box reprojection)
- evaluation: snapshot evaluation of residual batches
- io: plain-text persistence of quadric estimates
"""

from quadric_slam.backend.evaluation import EvaluationResult, evaluate_edges
from quadric_slam.backend.factors.quadric_proj import EdgeSE3QuadricProj
from quadric_slam.backend.vertices import BaseVertex, VertexQuadric, VertexSE3Expmap

__all__ = [
    "BaseVertex",
    "VertexQuadric",
    "VertexSE3Expmap",
    "EdgeSE3QuadricProj",
    "EvaluationResult",
    "evaluate_edges",
]
