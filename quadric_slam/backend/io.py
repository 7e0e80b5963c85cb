"""
Plain-text persistence of quadric estimates.

Layout: one minimal 9-vector per line, whitespace separated ASCII floats in
the order translation(3), roll/pitch/yaw(3), semi-axes(3). No header and no
versioning; blank lines and lines starting with '#' are skipped on read.
Values are not validated semantically (negative axes are accepted).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List

import numpy as np

from quadric_slam.common.constants import MINIMAL_DIM
from quadric_slam.common.errors import MalformedStateError
from quadric_slam.structures.quadric import Quadric

logger = logging.getLogger(__name__)


def format_vector(v: Iterable[float]) -> str:
    """Whitespace separated floats with round-trip precision."""
    return " ".join(f"{float(x):.17g}" for x in v)


def parse_minimal_vector(text: str, where: str = "input") -> np.ndarray:
    """
    Parse the first nine numeric tokens of text.

    Raises:
        MalformedStateError: fewer than nine tokens, or a non-numeric token
            among the first nine
    """
    tokens = text.split()
    if len(tokens) < MINIMAL_DIM:
        raise MalformedStateError(
            f"{where}: expected {MINIMAL_DIM} values, got {len(tokens)}"
        )
    try:
        return np.array([float(tok) for tok in tokens[:MINIMAL_DIM]], dtype=float)
    except ValueError as exc:
        raise MalformedStateError(f"{where}: non-numeric value ({exc})") from exc


def write_quadric_vectors(path: str | Path, quadrics: Iterable[Quadric]) -> int:
    """Write one minimal vector per line. Returns the number of lines written."""
    path = Path(path)
    count = 0
    with path.open("w", encoding="utf-8") as f:
        for q in quadrics:
            f.write(format_vector(q.to_minimal_vector()) + "\n")
            count += 1
    logger.info("wrote %d quadrics to %s", count, path)
    return count


def read_quadric_vectors(path: str | Path) -> List[Quadric]:
    """Read quadrics written by write_quadric_vectors (fails fast on bad lines)."""
    path = Path(path)
    quadrics: List[Quadric] = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            v = parse_minimal_vector(line, where=f"{path}:{lineno}")
            quadrics.append(Quadric.from_minimal_vector(v))
    logger.info("loaded %d quadrics from %s", len(quadrics), path)
    return quadrics
