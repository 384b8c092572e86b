"""SVG geometry extraction: markup -> polylines in document space.

Every drawable primitive (``path``, ``line``, ``polyline``, ``polygon``,
``rect``, ``circle``, ``ellipse``) is flattened to one or more polylines.
Curves are sampled by arc length with svgpathtools; straight-edged shapes
keep their exact vertices; circles and ellipses use a fixed number of
angular samples.  The ``transform`` attributes of the element and all of
its ancestors are composed into one matrix and applied to every sample.
The root element contributes its own ``transform`` and the mapping from
its ``viewBox`` onto the ``width`` / ``height`` viewport.
"""

from __future__ import annotations

import math
import re
import warnings
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, Optional

import numpy as np
from svgpathtools import Line, parse_path

from ..config.settings import PlotConfig
from ..errors import ParseError
from ..processing.context import ProcessingContext
from .geometry import Bounds, Point, Polyline, compute_bounds
from .transforms import NUMBER_RE, apply_matrix, parse_transform, scaling, translation

DRAWABLE_TAGS = ("path", "line", "polyline", "polygon", "rect", "circle", "ellipse")

# Containers whose children are never rendered directly
NON_RENDERED_TAGS = {
    "defs", "clipPath", "mask", "marker", "pattern", "symbol",
    "title", "desc", "metadata", "style", "script",
}

# Consecutive samples closer than this are merged
MIN_SAMPLE_SPACING = 1e-5

# Gaps wider than this many sampling steps split a path into separate strokes
GAP_FACTOR = 4.0


@dataclass
class Extraction:
    """Polylines in the root viewport space plus their bounds."""

    polylines: list[Polyline] = field(default_factory=list)
    bounds: Bounds = field(default_factory=Bounds)
    view_box: Optional[tuple[float, float, float, float]] = None

    @property
    def is_empty(self) -> bool:
        return len(self.polylines) == 0


# ---------------------------------------------------------------------------
# Document traversal
# ---------------------------------------------------------------------------


def _local_name(tag) -> str:
    if not isinstance(tag, str):
        return ""   # comments / processing instructions
    return tag.rsplit("}", 1)[-1]


def _find_svg_root(markup: str) -> ET.Element:
    try:
        root = ET.fromstring(markup)
    except ET.ParseError as exc:
        raise ParseError(f"Invalid SVG: {exc}") from exc

    if _local_name(root.tag) == "svg":
        return root
    for elem in root.iter():
        if _local_name(elem.tag) == "svg":
            return elem
    raise ParseError("No <svg> root element found.")


def _iter_primitives(
    elem: ET.Element, parent_matrix: np.ndarray
) -> Iterator[tuple[str, ET.Element, np.ndarray]]:
    """Yield ``(tag, element, matrix)`` for drawables in document order."""
    for child in elem:
        tag = _local_name(child.tag)
        if not tag or tag in NON_RENDERED_TAGS:
            continue
        matrix = parent_matrix @ parse_transform(child.get("transform"))
        if tag in DRAWABLE_TAGS:
            yield tag, child, matrix
        else:
            yield from _iter_primitives(child, matrix)


def _parse_view_box(text: Optional[str]) -> Optional[tuple[float, float, float, float]]:
    if not text:
        return None
    values = [float(v) for v in NUMBER_RE.findall(text)]
    if len(values) != 4:
        return None
    return (values[0], values[1], values[2], values[3])


# CSS pixels per absolute length unit
CSS_PX_PER_UNIT = {
    "": 1.0, "px": 1.0, "in": 96.0, "cm": 96.0 / 2.54, "mm": 96.0 / 25.4,
    "pt": 96.0 / 72.0, "pc": 16.0,
}

_LENGTH_RE = re.compile(rf"\s*({NUMBER_RE.pattern})\s*([A-Za-z%]*)\s*$")

_ALIGN_FRACTION = {"Min": 0.0, "Mid": 0.5, "Max": 1.0}


def _viewport_length(text: Optional[str]) -> Optional[float]:
    """Root ``width``/``height`` in px; None for missing or relative lengths."""
    if not text:
        return None
    match = _LENGTH_RE.match(text)
    if match is None:
        return None
    factor = CSS_PX_PER_UNIT.get(match.group(2).lower())
    if factor is None:
        return None
    value = float(match.group(1)) * factor
    return value if math.isfinite(value) and value > 0 else None


def _viewport_matrix(
    svg: ET.Element, view_box: Optional[tuple[float, float, float, float]]
) -> np.ndarray:
    """Matrix from root user space to the root's parent space.

    A missing ``width`` or ``height`` takes the viewBox size, so the
    viewBox origin lands on (0, 0) at scale 1.  ``preserveAspectRatio``
    is honoured for ``none``, ``meet`` and ``slice`` with all nine
    alignments.
    """
    own = parse_transform(svg.get("transform"))
    if view_box is None:
        return own
    vx, vy, vw, vh = view_box
    if not (vw > 0 and vh > 0):
        return own

    width = _viewport_length(svg.get("width")) or vw
    height = _viewport_length(svg.get("height")) or vh
    sx, sy = width / vw, height / vh
    tx = ty = 0.0

    words = (svg.get("preserveAspectRatio") or "").split()
    if words and words[0] == "defer":
        words = words[1:]
    align = words[0] if words else "xMidYMid"
    if align != "none":
        s = max(sx, sy) if words[1:2] == ["slice"] else min(sx, sy)
        sx = sy = s
        tx = (width - vw * s) * _ALIGN_FRACTION.get(align[1:4], 0.5)
        ty = (height - vh * s) * _ALIGN_FRACTION.get(align[5:8], 0.5)

    return own @ translation(tx, ty) @ scaling(sx, sy) @ translation(-vx, -vy)


# ---------------------------------------------------------------------------
# Attribute helpers
# ---------------------------------------------------------------------------


def _number(elem: ET.Element, name: str, default: float = 0.0) -> float:
    """Leading number of an attribute (``"10px"`` -> 10), else *default*."""
    raw = elem.get(name)
    if raw is None:
        return default
    match = NUMBER_RE.match(raw.strip())
    if match is None:
        return default
    value = float(match.group(0))
    return value if math.isfinite(value) else default


def _to_points(coords: np.ndarray) -> Polyline:
    return [Point(float(x), float(y)) for x, y in coords]


def _close(points: Polyline) -> Polyline:
    """Make the last point exactly equal to the first."""
    if len(points) >= 2 and points[-1] != points[0]:
        points[-1] = points[0]
    return points


# ---------------------------------------------------------------------------
# Per-primitive flattening
# ---------------------------------------------------------------------------


def _convert_line(elem: ET.Element, matrix: np.ndarray) -> list[Polyline]:
    coords = np.array((
        (_number(elem, "x1"), _number(elem, "y1")),
        (_number(elem, "x2"), _number(elem, "y2")),
    ))
    return [_to_points(apply_matrix(matrix, coords))]


def _convert_polyline(
    elem: ET.Element, matrix: np.ndarray, closed: bool
) -> list[Polyline]:
    values = [float(v) for v in NUMBER_RE.findall(elem.get("points") or "")]
    pairs = [
        (values[i], values[i + 1])
        for i in range(0, len(values) - 1, 2)
        if math.isfinite(values[i]) and math.isfinite(values[i + 1])
    ]
    if len(pairs) < 2:
        return []
    if closed:
        pairs.append(pairs[0])
    points = _to_points(apply_matrix(matrix, np.array(pairs)))
    return [_close(points) if closed else points]


def _convert_rect(elem: ET.Element, matrix: np.ndarray) -> list[Polyline]:
    x = _number(elem, "x")
    y = _number(elem, "y")
    w = _number(elem, "width")
    h = _number(elem, "height")
    coords = np.array(((x, y), (x + w, y), (x + w, y + h), (x, y + h), (x, y)))
    return [_close(_to_points(apply_matrix(matrix, coords)))]


def _approximate_ellipse(
    cx: float, cy: float, rx: float, ry: float,
    matrix: np.ndarray, resolution: int,
) -> list[Polyline]:
    angles = np.linspace(0.0, 2.0 * math.pi, resolution + 1)
    coords = np.column_stack((cx + rx * np.cos(angles), cy + ry * np.sin(angles)))
    return [_close(_to_points(apply_matrix(matrix, coords)))]


def _convert_circle(elem: ET.Element, matrix: np.ndarray, resolution: int) -> list[Polyline]:
    r = _number(elem, "r")
    if r <= 0:
        return []
    return _approximate_ellipse(
        _number(elem, "cx"), _number(elem, "cy"), r, r, matrix, resolution
    )


def _convert_ellipse(elem: ET.Element, matrix: np.ndarray, resolution: int) -> list[Polyline]:
    rx = _number(elem, "rx")
    ry = _number(elem, "ry")
    if rx <= 0 or ry <= 0:
        return []
    return _approximate_ellipse(
        _number(elem, "cx"), _number(elem, "cy"), rx, ry, matrix, resolution
    )


class _ArcLengthSampler:
    """Maps distances along an svgpathtools Path to points on it."""

    def __init__(self, path, s_tol: float):
        self._segments = list(path)
        self._lengths = np.array([seg.length() for seg in self._segments])
        self._starts = np.concatenate(([0.0], np.cumsum(self._lengths)[:-1]))
        self._s_tol = s_tol
        self.length = float(self._lengths.sum())

    def point(self, s: float) -> tuple[float, float]:
        k = int(np.searchsorted(self._starts, s, side="right")) - 1
        k = min(max(k, 0), len(self._segments) - 1)
        seg = self._segments[k]
        seg_len = float(self._lengths[k])
        local = min(max(s - float(self._starts[k]), 0.0), seg_len)

        if seg_len <= 0.0 or local <= 0.0:
            t = 0.0
        elif local >= seg_len:
            t = 1.0
        elif isinstance(seg, Line):
            t = local / seg_len
        else:
            try:
                t = seg.ilength(local, s_tol=self._s_tol)
            except ValueError:
                t = local / seg_len
        z = seg.point(t)
        return (z.real, z.imag)


async def _convert_path(
    elem: ET.Element,
    matrix: np.ndarray,
    segment_length: float,
    ctx: ProcessingContext,
) -> list[Polyline]:
    d = elem.get("d") or ""
    try:
        path = parse_path(d)
        if len(path) == 0:
            return []
        sampler = _ArcLengthSampler(path, s_tol=max(segment_length * 1e-4, 1e-9))
    except Exception as exc:
        warnings.warn(f"Skipping unparseable path data: {exc}", stacklevel=2)
        return []

    length = sampler.length
    if not math.isfinite(length) or length == 0:
        return []

    step = max(segment_length or length / 200.0, length / 500.0)
    sample_count = max(2, math.ceil(length / step))
    gap_threshold = step * GAP_FACTOR

    samples = np.empty((sample_count + 1, 2))
    for i in range(sample_count + 1):
        samples[i] = sampler.point(length * i / sample_count)
        await ctx.tick()
    coords = apply_matrix(matrix, samples)

    polylines: list[Polyline] = []
    current: Polyline = []
    previous: Optional[Point] = None
    for x, y in coords:
        point = Point(float(x), float(y))
        if previous is None:
            current.append(point)
            previous = point
            continue
        gap = math.hypot(point.x - previous.x, point.y - previous.y)
        if gap > gap_threshold and len(current) >= 2:
            polylines.append(current)
            current = [point]
        elif gap > MIN_SAMPLE_SPACING:
            current.append(point)
        previous = point

    if len(current) >= 2:
        polylines.append(current)
    return polylines


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def extract_geometry(
    markup: str,
    config: PlotConfig,
    ctx: ProcessingContext,
) -> Extraction:
    """Flatten every drawable primitive of *markup* into polylines.

    Raises
    ------
    ParseError:
        If the markup is not well-formed XML or contains no ``<svg>``.
    """
    svg = _find_svg_root(markup)
    view_box = _parse_view_box(svg.get("viewBox"))

    segment_length = config.segment_length_document
    resolution = config.effective_circle_resolution

    primitives = list(_iter_primitives(svg, _viewport_matrix(svg, view_box)))
    polylines: list[Polyline] = []

    for i, (tag, elem, matrix) in enumerate(primitives):
        if tag == "path":
            curves = await _convert_path(elem, matrix, segment_length, ctx)
        elif tag == "line":
            curves = _convert_line(elem, matrix)
        elif tag == "polyline":
            curves = _convert_polyline(elem, matrix, closed=False)
        elif tag == "polygon":
            curves = _convert_polyline(elem, matrix, closed=True)
        elif tag == "rect":
            curves = _convert_rect(elem, matrix)
        elif tag == "circle":
            curves = _convert_circle(elem, matrix, resolution)
        else:
            curves = _convert_ellipse(elem, matrix, resolution)

        polylines.extend(c for c in curves if len(c) >= 2)
        await ctx.tick(i + 1, len(primitives))

    return Extraction(
        polylines=polylines,
        bounds=compute_bounds(polylines),
        view_box=view_box,
    )
