"""Preview SVG: the normalized strokes plus pen-down / pen-up arrows."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import svgwrite

from .core.geometry import Bounds, Point, Polyline

PEN_DOWN_COLOR = "#2ecc71"
PEN_UP_COLOR = "#e74c3c"

STROKE_WIDTH = 0.25
MIN_EXTENT = 0.001


def _r(value: float) -> float:
    return round(float(value), 3)


def arrow_size(bounds: Bounds) -> float:
    """Marker size scaled to the drawing's larger dimension."""
    extent = max(bounds.width, bounds.height, 1.0)
    return min(max(extent / 100.0, 1.2), max(extent / 30.0, 6.0))


def _add_arrow(dwg, group, point: Point, pointing_down: bool, size: float) -> None:
    color = PEN_DOWN_COLOR if pointing_down else PEN_UP_COLOR
    scale = max(size, 0.5)
    shaft = scale * 0.6
    head_width = scale * 0.8
    sign = 1.0 if pointing_down else -1.0

    tail_y = point.y - sign * scale
    tip_y = point.y + sign * scale
    base_y = point.y + sign * shaft

    group.add(dwg.line(
        start=(_r(point.x), _r(tail_y)),
        end=(_r(point.x), _r(base_y)),
        stroke=color,
        stroke_width=_r(max(scale * 0.15, 0.2)),
        stroke_linecap="round",
        vector_effect="non-scaling-stroke",
    ))
    group.add(dwg.polygon(
        points=[
            (_r(point.x), _r(tip_y)),
            (_r(point.x - head_width), _r(base_y)),
            (_r(point.x + head_width), _r(base_y)),
        ],
        fill=color,
        stroke=color,
        stroke_width=_r(max(scale * 0.1, 0.15)),
        vector_effect="non-scaling-stroke",
    ))


def build_preview_svg(
    polylines: Sequence[Polyline],
    bounds: Bounds,
    pen_down_points: Sequence[Point] = (),
    pen_up_points: Sequence[Point] = (),
) -> str:
    """Return standalone SVG markup previewing the plot."""
    width = max(bounds.width, MIN_EXTENT)
    height = max(bounds.height, MIN_EXTENT)

    dwg = svgwrite.Drawing(
        size=None,
        viewBox=f"{bounds.min_x} {bounds.min_y} {width} {height}",
        stroke="black",
        fill="none",
        debug=False,
    )

    strokes = dwg.g(id="strokes")
    for line in polylines:
        strokes.add(dwg.polyline(
            points=[(_r(p.x), _r(p.y)) for p in line],
            fill="none",
            stroke="#000",
            stroke_width=STROKE_WIDTH,
            stroke_linecap="round",
            stroke_linejoin="round",
        ))
    dwg.add(strokes)

    size = arrow_size(bounds)
    ups = dwg.g(id="pen-up")
    for point in pen_up_points:
        _add_arrow(dwg, ups, point, pointing_down=False, size=size)
    dwg.add(ups)

    downs = dwg.g(id="pen-down")
    for point in pen_down_points:
        _add_arrow(dwg, downs, point, pointing_down=True, size=size)
    dwg.add(downs)

    return '<?xml version="1.0" encoding="UTF-8"?>\n' + dwg.tostring() + "\n"


def write_preview(markup: str, output: Path) -> None:
    Path(output).write_text(markup)
