import os
from typing import Any, Dict

import numpy as np
import pytest

# =============================================================================
# Production Config Fixtures
# =============================================================================
# These fixtures load the configuration shipped in config/, so tests exercise
# the same parameters the CLI uses by default.


def _load_yaml_file(path: str) -> Dict[str, Any]:
    """Load a YAML config file, handling the ros__parameters wrapper."""
    import yaml
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    section = data.get("quadric_slam", {})
    if "ros__parameters" in section:
        return section["ros__parameters"]
    return data


@pytest.fixture
def config_dir() -> str:
    test_dir = os.path.dirname(__file__)
    return os.path.join(os.path.dirname(test_dir), "config")


@pytest.fixture
def prod_config(config_dir) -> Dict[str, Any]:
    """Flat parameters of config/quadric_slam_base.yaml."""
    path = os.path.join(config_dir, "quadric_slam_base.yaml")
    if not os.path.exists(path):
        pytest.skip("quadric_slam_base.yaml not found")
    return _load_yaml_file(path)


# =============================================================================
# Test Utility Fixtures
# =============================================================================

@pytest.fixture
def rng():
    """Seeded generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def calib() -> np.ndarray:
    """Pinhole intrinsics with distinct focal lengths."""
    return np.array([
        [500.0, 0.0, 320.0],
        [0.0, 400.0, 240.0],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


@pytest.fixture
def identity_pose() -> np.ndarray:
    """Identity SE(3) pose as 4x4 matrix."""
    return np.eye(4, dtype=np.float64)


@pytest.fixture
def random_pose(rng) -> np.ndarray:
    """Moderate random SE(3) pose as 6D vector [x, y, z, rx, ry, rz]."""
    trans = rng.normal(size=3)
    rot = rng.normal(size=3) * 0.5
    return np.concatenate([trans, rot])


@pytest.fixture
def minimal_vector() -> np.ndarray:
    """Well-conditioned quadric: distinct axes, away from gimbal lock."""
    return np.array([0.4, -0.3, 6.0, 0.3, -0.2, 0.9, 1.2, 0.8, 0.5], dtype=np.float64)


@pytest.fixture
def quadric(minimal_vector):
    from quadric_slam.structures.quadric import Quadric
    return Quadric.from_minimal_vector(minimal_vector)


@pytest.fixture
def unit_sphere():
    """Unit sphere 5 units in front of an identity camera."""
    from quadric_slam.structures.quadric import Quadric
    return Quadric.from_rotation_translation(np.eye(3), [0.0, 0.0, 5.0], [1.0, 1.0, 1.0])
