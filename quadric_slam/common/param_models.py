"""
Pydantic models for quadric_slam parameters.

Parameters are flat (as they appear in YAML / node parameter lists) and are
validated here before being grouped into the dataclasses of
quadric_slam.config.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from quadric_slam.common import constants


class QuadricSlamParams(BaseModel):
    """Camera intrinsics and numerical thresholds."""

    model_config = ConfigDict(extra="forbid")

    fx: float = Field(gt=0.0)
    fy: float = Field(gt=0.0)
    cx: float
    cy: float
    image_width: int = Field(default=constants.DEFAULT_IMAGE_WIDTH, gt=0)
    image_height: int = Field(default=constants.DEFAULT_IMAGE_HEIGHT, gt=0)

    degenerate_rcond_eps: float = Field(default=constants.DEGENERATE_RCOND_EPS, gt=0.0, lt=1.0)
    conic_disc_eps: float = Field(default=constants.CONIC_DISC_EPS, gt=0.0, lt=1.0)
    tangent_disc_eps: float = Field(default=constants.TANGENT_DISC_EPS, gt=0.0, lt=1.0)

    @model_validator(mode="after")
    def _principal_point_inside_image(self) -> "QuadricSlamParams":
        if not (0.0 <= self.cx <= self.image_width and 0.0 <= self.cy <= self.image_height):
            raise ValueError(
                f"principal point ({self.cx}, {self.cy}) outside image "
                f"{self.image_width}x{self.image_height}"
            )
        return self
