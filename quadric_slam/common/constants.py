"""
Numerical constants for quadric geometry.

These are NUMERICAL STABILITY choices, not model parameters. Tunable
thresholds are mirrored in NumericsConfig (quadric_slam.config) and default
to the values below.
"""

# =============================================================================
# SE(3) / SO(3)
# =============================================================================

# Small-angle branch of the SO(3) exponential: ~sqrt(machine_epsilon) with margin
ROTATION_EPSILON: float = 1e-10

# =============================================================================
# Quadric decomposition and projection
# =============================================================================

# Reciprocal condition threshold: s_min / s_max <= eps is treated as singular
DEGENERATE_RCOND_EPS: float = 1e-12

# Relative threshold on B^2 - 4AC against B^2 + 4|AC| (parabolic conic)
CONIC_DISC_EPS: float = 1e-12

# Relative threshold below which a negative tangent discriminant is clamped to 0
TANGENT_DISC_EPS: float = 1e-9

# =============================================================================
# Layout
# =============================================================================

MINIMAL_DIM = 9  # translation(3) + roll/pitch/yaw(3) + semi-axes(3)
DUAL_VECTOR_DIM = 10  # upper triangle of the symmetric 4x4 dual quadric
POSE_DOF = 6
BBOX_DIM = 4

# Image size assumed when no camera config is given
DEFAULT_IMAGE_WIDTH = 640
DEFAULT_IMAGE_HEIGHT = 480
