"""Points, polylines and bounding boxes shared by every stage."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class Point:
    """A 2D coordinate.  Which space it lives in depends on the stage."""

    x: float
    y: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


# One continuous pen stroke, at least two points long.
Polyline = list[Point]


def distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box over a set of polylines."""

    min_x: float = 0.0
    max_x: float = 0.0
    min_y: float = 0.0
    max_y: float = 0.0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def min_corner(self) -> Point:
        return Point(self.min_x, self.min_y)

    @classmethod
    def from_array(cls, coords: np.ndarray) -> "Bounds":
        """Bounds of an ``(n, 2)`` array; the zero box when it is empty."""
        if coords.size == 0:
            return cls()
        mins = coords.min(axis=0)
        maxs = coords.max(axis=0)
        if not (np.all(np.isfinite(mins)) and np.all(np.isfinite(maxs))):
            return cls()
        return cls(
            min_x=float(mins[0]), max_x=float(maxs[0]),
            min_y=float(mins[1]), max_y=float(maxs[1]),
        )


def polylines_to_array(polylines: Iterable[Sequence[Point]]) -> np.ndarray:
    """Stack every point of *polylines* into one ``(n, 2)`` float array."""
    coords = [(p.x, p.y) for line in polylines for p in line]
    if not coords:
        return np.empty((0, 2), dtype=np.float64)
    return np.asarray(coords, dtype=np.float64)


def compute_bounds(polylines: Iterable[Sequence[Point]]) -> Bounds:
    """Tight bounds of *polylines*; ``Bounds()`` (all zeros) for empty input."""
    return Bounds.from_array(polylines_to_array(polylines))


def is_closed(polyline: Sequence[Point]) -> bool:
    return len(polyline) >= 2 and polyline[0] == polyline[-1]
