"""SVG ``transform`` attribute parsing into 3x3 affine matrices.

Matrices act on column vectors ``(x, y, 1)``.  A transform list such as
``translate(10) rotate(45)`` composes left to right, so the rightmost
function is applied to a point first.
"""

from __future__ import annotations

import math
import re
import warnings
from typing import Optional

import numpy as np

_FUNC_RE = re.compile(r"([A-Za-z]+)\s*\(([^)]*)\)")
NUMBER_RE = re.compile(r"[-+]?(?:\d*\.\d+|\d+\.?)(?:[eE][-+]?\d+)?")


def identity() -> np.ndarray:
    return np.identity(3)


def translation(tx: float, ty: float = 0.0) -> np.ndarray:
    return np.array(((1.0, 0.0, tx), (0.0, 1.0, ty), (0.0, 0.0, 1.0)))


def scaling(sx: float, sy: Optional[float] = None) -> np.ndarray:
    if sy is None:
        sy = sx
    return np.array(((sx, 0.0, 0.0), (0.0, sy, 0.0), (0.0, 0.0, 1.0)))


def rotation(degrees: float, cx: float = 0.0, cy: float = 0.0) -> np.ndarray:
    rad = math.radians(degrees)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    rot = np.array(((cos_a, -sin_a, 0.0), (sin_a, cos_a, 0.0), (0.0, 0.0, 1.0)))
    if cx == 0.0 and cy == 0.0:
        return rot
    return translation(cx, cy) @ rot @ translation(-cx, -cy)


def skew_x(degrees: float) -> np.ndarray:
    return np.array(
        ((1.0, math.tan(math.radians(degrees)), 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))
    )


def skew_y(degrees: float) -> np.ndarray:
    return np.array(
        ((1.0, 0.0, 0.0), (math.tan(math.radians(degrees)), 1.0, 0.0), (0.0, 0.0, 1.0))
    )


def _function_matrix(name: str, values: list[float]) -> Optional[np.ndarray]:
    """Matrix for one transform function, or None if it is malformed."""
    n = len(values)
    if name == "matrix" and n == 6:
        a, b, c, d, e, f = values
        return np.array(((a, c, e), (b, d, f), (0.0, 0.0, 1.0)))
    if name == "translate" and n in (1, 2):
        return translation(*values)
    if name == "scale" and n in (1, 2):
        return scaling(*values)
    if name == "rotate" and n in (1, 3):
        return rotation(*values)
    if name == "skewX" and n == 1:
        return skew_x(values[0])
    if name == "skewY" and n == 1:
        return skew_y(values[0])
    return None


def parse_transform(text: Optional[str]) -> np.ndarray:
    """Parse an SVG transform list into a single affine matrix.

    Unknown or malformed functions are skipped with a warning; the rest of
    the list still applies.  An empty or missing attribute is the identity.
    """
    matrix = identity()
    if not text:
        return matrix

    for name, args in _FUNC_RE.findall(text):
        values = [float(v) for v in NUMBER_RE.findall(args)]
        part = _function_matrix(name, values)
        if part is None:
            warnings.warn(
                f"Ignoring unsupported transform {name}({args.strip()})",
                stacklevel=2,
            )
            continue
        matrix = matrix @ part
    return matrix


def apply_matrix(matrix: np.ndarray, coords: np.ndarray) -> np.ndarray:
    """Transform an ``(n, 2)`` coordinate array by *matrix*."""
    if coords.size == 0:
        return coords
    linear = matrix[:2, :2]
    offset = matrix[:2, 2]
    return coords @ linear.T + offset
