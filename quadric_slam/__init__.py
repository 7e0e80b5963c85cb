"""
quadric_slam: ellipsoid landmarks for object-level SLAM.

Subpackages:
- common/: SE(3) geometry, constants, errors, parameter models
- structures/: the Quadric primitive
- backend/: optimizer-facing vertices, factors, evaluation, persistence
- tools/: command line utilities
"""

from quadric_slam.structures.quadric import Quadric

__all__ = ["Quadric"]
