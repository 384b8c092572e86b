"""Document units -> physical units, with optional auto-origin and flip."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from ..processing.context import ProcessingContext
from .geometry import Bounds, Point, Polyline, polylines_to_array


@dataclass
class NormalizeParams:
    """Parameters for placing document geometry on the plotter bed."""

    units_per_physical_unit: float = 1.0
    flip_vertical: bool = False
    auto_origin: bool = True
    margin: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0


@dataclass
class Normalized:
    polylines: list[Polyline] = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds)


async def normalize_polylines(
    polylines: list[Polyline],
    params: NormalizeParams,
    ctx: ProcessingContext,
) -> Normalized:
    """Scale, optionally flip, then translate *polylines* as one rigid block.

    With ``auto_origin`` the tight bounding box is moved so its lower corner
    sits at ``(margin, margin)`` and the user offset is ignored.  Otherwise
    every point is shifted by ``margin + offset`` per axis.
    """
    if not polylines:
        return Normalized()

    k = params.units_per_physical_unit
    linear = np.array((k, -k if params.flip_vertical else k))

    scaled = [polylines_to_array([line]) * linear for line in polylines]
    bounds = Bounds.from_array(np.concatenate(scaled))

    if params.auto_origin:
        # Subtract first so the minimum lands on exactly ``margin``.
        origin = np.array((bounds.min_x, bounds.min_y))
        shift = np.array((params.margin, params.margin))
    else:
        origin = np.zeros(2)
        shift = np.array((params.margin + params.offset_x,
                          params.margin + params.offset_y))

    out: list[Polyline] = []
    moved_all: list[np.ndarray] = []
    for i, coords in enumerate(scaled):
        moved = (coords - origin) + shift
        moved_all.append(moved)
        out.append([Point(float(x), float(y)) for x, y in moved])
        await ctx.tick(i + 1, len(scaled))

    return Normalized(polylines=out, bounds=Bounds.from_array(np.concatenate(moved_all)))
