"""Greedy nearest-endpoint route planning.

Algorithm
---------
1. ``current`` starts at the configured start point.
2. Among all segments not yet emitted, find the endpoint closest to
   ``current``.  Endpoints are scanned segment by segment, start before
   end, and the first minimum wins ties.
3. Emit that segment oriented so the chosen endpoint comes first, move
   ``current`` to its other end and repeat.

This is O(n^2) in the number of segments and only approximates the shortest
pen-up travel.  The output is always a permutation of the input with some
segments reversed; nothing is split, merged or dropped.
"""

from __future__ import annotations

import numpy as np

from ..processing.context import ProcessingContext
from .segments import Segment


async def optimize_route(
    segments: list[Segment],
    start_x: float,
    start_y: float,
    ctx: ProcessingContext,
    optimize: bool = True,
) -> list[Segment]:
    """Reorder (and possibly reverse) *segments* to shorten pen-up travel.

    When *optimize* is False the segments are returned in their original
    order and orientation.
    """
    if not optimize or not segments:
        return list(segments)

    n = len(segments)
    # endpoints[i, 0] is the start of segment i, endpoints[i, 1] its end
    endpoints = np.array(
        [((s.x1, s.y1), (s.x2, s.y2)) for s in segments], dtype=np.float64
    )
    xs = endpoints[:, :, 0]
    ys = endpoints[:, :, 1]
    remaining = np.ones(n, dtype=bool)

    ordered: list[Segment] = []
    cx, cy = float(start_x), float(start_y)

    for step in range(n):
        dist = np.hypot(xs - cx, ys - cy)
        dist[~remaining] = np.inf
        # Row-major argmin visits (seg0.start, seg0.end, seg1.start, ...)
        # and returns the first minimum, which is the scan-order tie-break.
        index, which = divmod(int(np.argmin(dist)), 2)

        segment = segments[index]
        if which == 1:
            segment = segment.reversed()
        remaining[index] = False
        ordered.append(segment)
        cx, cy = segment.x2, segment.y2

        await ctx.tick(step + 1, n)

    return ordered
