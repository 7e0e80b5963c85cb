"""
Configuration classes for quadric_slam parameters.

Organizes parameters into logical groups; see config_loader for YAML loading.
"""

from dataclasses import dataclass, field

import numpy as np

from quadric_slam.common import constants
from quadric_slam.common.param_models import QuadricSlamParams


@dataclass
class CameraConfig:
    """Pinhole intrinsics."""
    fx: float
    fy: float
    cx: float
    cy: float
    width: int = constants.DEFAULT_IMAGE_WIDTH
    height: int = constants.DEFAULT_IMAGE_HEIGHT

    def calibration_matrix(self) -> np.ndarray:
        return np.array([
            [self.fx, 0.0, self.cx],
            [0.0, self.fy, self.cy],
            [0.0, 0.0, 1.0],
        ], dtype=float)


@dataclass
class NumericsConfig:
    """Degeneracy thresholds for decomposition and projection."""
    degenerate_rcond_eps: float = constants.DEGENERATE_RCOND_EPS
    conic_disc_eps: float = constants.CONIC_DISC_EPS
    tangent_disc_eps: float = constants.TANGENT_DISC_EPS

    def edge_kwargs(self) -> dict:
        """Keyword arguments accepted by EdgeSE3QuadricProj and Quadric projection."""
        return {
            "rcond_eps": self.degenerate_rcond_eps,
            "conic_disc_eps": self.conic_disc_eps,
            "tangent_disc_eps": self.tangent_disc_eps,
        }


@dataclass
class QuadricSlamConfig:
    """Complete configuration."""
    camera: CameraConfig
    numerics: NumericsConfig = field(default_factory=NumericsConfig)

    @classmethod
    def from_params(cls, params: QuadricSlamParams) -> "QuadricSlamConfig":
        camera = CameraConfig(
            fx=params.fx,
            fy=params.fy,
            cx=params.cx,
            cy=params.cy,
            width=params.image_width,
            height=params.image_height,
        )
        numerics = NumericsConfig(
            degenerate_rcond_eps=params.degenerate_rcond_eps,
            conic_disc_eps=params.conic_disc_eps,
            tangent_disc_eps=params.tangent_disc_eps,
        )
        return cls(camera=camera, numerics=numerics)
