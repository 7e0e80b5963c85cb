"""
Common package for quadric_slam.

Shared geometry, constants, errors and parameter models used by the
structures and the backend.
"""

from quadric_slam.common import constants
from quadric_slam.common.errors import (
    DegenerateGeometryError,
    MalformedStateError,
    QuadricError,
    UnprojectableError,
)

__all__ = [
    "constants",
    "QuadricError",
    "DegenerateGeometryError",
    "UnprojectableError",
    "MalformedStateError",
]
