#!/usr/bin/env python3
"""
Project persisted quadrics through a configured camera.

Reads a file of minimal 9-vectors (one per line) and prints one JSON object
per quadric: its index and either the projected box or the reason it could
not be projected.

    project_quadrics --quadrics landmarks.txt --camera-pose 0 0 0 0 0 0
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
import yaml

from quadric_slam.backend.io import read_quadric_vectors
from quadric_slam.common.errors import QuadricError
from quadric_slam.config import QuadricSlamConfig
from quadric_slam.config_loader import get_default_config_path, load_quadric_config
from quadric_slam.structures.quadric import Quadric, clip_rect, rect_to_bbox

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def project_all(
    quadrics: List[Quadric],
    config: QuadricSlamConfig,
    campose_cw: np.ndarray,
    rect: bool = False,
    clip: bool = False,
) -> List[dict]:
    K = config.camera.calibration_matrix()
    eps = config.numerics.edge_kwargs()
    records = []
    for index, q in enumerate(quadrics):
        record: dict = {"index": index}
        try:
            r = q.project_to_image_rect(campose_cw, K, **eps)
        except QuadricError as exc:
            record["error"] = str(exc)
            logger.warning("quadric %d not projectable: %s", index, exc)
        else:
            if clip:
                r = clip_rect(r, config.camera.width, config.camera.height)
            key, value = ("rect", r) if rect else ("bbox", rect_to_bbox(r))
            record[key] = [float(x) for x in value]
        records.append(record)
    return records


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description=__doc__.split("\n\n")[0].strip())
    ap.add_argument("--quadrics", type=Path, required=True, help="File of minimal 9-vectors.")
    ap.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config (defaults to config/quadric_slam_base.yaml).",
    )
    ap.add_argument("--preset", type=Path, default=None, help="Preset YAML overriding --config.")
    ap.add_argument(
        "--camera-pose",
        type=float,
        nargs=6,
        default=[0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        metavar=("X", "Y", "Z", "RX", "RY", "RZ"),
        help="World->camera transform as translation + rotation vector.",
    )
    ap.add_argument("--rect", action="store_true", help="Print corners instead of center/size.")
    ap.add_argument("--clip", action="store_true", help="Clip boxes to the image bounds.")
    ap.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default="warning",
    )
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    configure_logging(args.log_level)

    config_path = args.config if args.config is not None else get_default_config_path()
    try:
        config = load_quadric_config(config_path, args.preset)
        quadrics = read_quadric_vectors(args.quadrics)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.error("%s", exc)
        return 2

    records = project_all(
        quadrics,
        config,
        np.asarray(args.camera_pose, dtype=float),
        rect=args.rect,
        clip=args.clip,
    )
    for record in records:
        sys.stdout.write(json.dumps(record) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
