"""Atomic directed line segments: the unit of route planning."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..processing.context import ProcessingContext
from .geometry import Point, Polyline

# Edges shorter than this never reach the optimizer
MIN_SEGMENT_LENGTH = 1e-5


@dataclass(frozen=True)
class Segment:
    """One straight pen stroke from (x1, y1) to (x2, y2).

    ``source_id`` is the index of the polyline it came from; it is kept for
    diagnostics only and plays no part in ordering.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    source_id: int = -1

    @property
    def start(self) -> Point:
        return Point(self.x1, self.y1)

    @property
    def end(self) -> Point:
        return Point(self.x2, self.y2)

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    def reversed(self) -> Segment:
        return Segment(self.x2, self.y2, self.x1, self.y1, self.source_id)

    def undirected_key(self) -> tuple:
        """Identity of the segment regardless of direction."""
        a = (self.x1, self.y1)
        b = (self.x2, self.y2)
        return (min(a, b), max(a, b), self.source_id)


def total_length(segments: list[Segment]) -> float:
    return sum(s.length for s in segments)


async def polylines_to_segments(
    polylines: list[Polyline],
    ctx: ProcessingContext,
) -> list[Segment]:
    """Split each polyline into consecutive-point segments.

    Zero-length (below ``MIN_SEGMENT_LENGTH``) pairs are dropped.
    """
    segments: list[Segment] = []
    for index, polyline in enumerate(polylines):
        for prev, current in zip(polyline, polyline[1:]):
            if math.hypot(current.x - prev.x, current.y - prev.y) < MIN_SEGMENT_LENGTH:
                continue
            segments.append(Segment(prev.x, prev.y, current.x, current.y, index))
            await ctx.tick(index, len(polylines))
    return segments
