from quadric_slam.backend.factors.quadric_proj import EdgeSE3QuadricProj

__all__ = ["EdgeSE3QuadricProj"]
