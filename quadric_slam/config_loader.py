"""
Configuration loading.

Bridges YAML files and the pydantic parameter model:

    from quadric_slam.config_loader import load_quadric_config

    config = load_quadric_config("/path/to/quadric_slam_base.yaml")
    K = config.camera.calibration_matrix()

YAML files may be flat (``fx: 525.0``) or wrapped in a node section
(``quadric_slam: {ros__parameters: {...}}``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from quadric_slam.common.param_models import QuadricSlamParams
from quadric_slam.config import QuadricSlamConfig

logger = logging.getLogger(__name__)

SECTION_NAME = "quadric_slam"


def load_yaml_config(config_path: str | Path) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
        ValueError: If the root is not a mapping
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")
    return data


def extract_section(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return the quadric_slam parameters of a loaded YAML document."""
    section = data.get(SECTION_NAME)
    if isinstance(section, dict):
        return section.get("ros__parameters", section)
    return data


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge configuration dictionaries (later configs override earlier)."""
    result: Dict[str, Any] = {}
    for config in configs:
        if config:
            _deep_merge(result, config)
    return result


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override dict into base dict (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def load_quadric_config(
    base_path: Optional[str | Path] = None,
    preset_path: Optional[str | Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> QuadricSlamConfig:
    """
    Load and validate configuration: base <- preset <- overrides.

    Raises:
        pydantic.ValidationError: If the merged parameters are invalid
    """
    base_config: Dict[str, Any] = {}
    if base_path:
        base_config = extract_section(load_yaml_config(base_path))

    preset_config: Dict[str, Any] = {}
    if preset_path:
        preset_config = extract_section(load_yaml_config(preset_path))

    merged = merge_configs(base_config, preset_config, overrides or {})
    params = QuadricSlamParams(**merged)
    logger.info(
        "camera fx=%.3f fy=%.3f cx=%.3f cy=%.3f (%dx%d)",
        params.fx,
        params.fy,
        params.cx,
        params.cy,
        params.image_width,
        params.image_height,
    )
    return QuadricSlamConfig.from_params(params)


def get_default_config_path() -> Path:
    """Path of the base configuration shipped with the repository."""
    pkg_root = Path(__file__).resolve().parent.parent
    return pkg_root / "config" / "quadric_slam_base.yaml"
