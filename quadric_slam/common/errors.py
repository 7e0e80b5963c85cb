"""
Failure taxonomy for quadric geometry.

All errors are local and recoverable by the caller: an optimizer is expected
to skip or down-weight the offending landmark for the current iteration.
They subclass ValueError so code that guards geometry calls with
``except ValueError`` keeps working.
"""


class QuadricError(ValueError):
    """Base class for quadric geometry failures."""


class DegenerateGeometryError(QuadricError):
    """Dual quadric decomposition hit a near-singular matrix or block."""


class UnprojectableError(QuadricError):
    """Projected conic is singular, parabolic, or has no real tangent extrema."""


class MalformedStateError(QuadricError):
    """Persisted minimal vector is short or contains non-numeric tokens."""
