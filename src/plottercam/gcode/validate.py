"""Toolpath sanity checks.

Checks a generated toolpath against the plotter's bed and feed limits
before anything is written out.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional

from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import box

from ..core.geometry import Point
from ..core.toolpath.base import EventType, Toolpath


@dataclass
class PlotterEnvelope:
    """Reachable bed area and feed limit of a plotter."""

    x_min: float = 0.0
    x_max: float = 300.0
    y_min: float = 0.0
    y_max: float = 300.0
    max_feed: float = 6000.0

    def as_shapely_polygon(self):
        """Return a Shapely Polygon of the bed footprint."""
        return box(self.x_min, self.y_min, self.x_max, self.y_max)


ERROR = "error"
WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    severity: str          # ERROR or WARNING
    message: str
    point: Optional[Point] = None


@dataclass
class ValidationResult:
    """Issues found in one toolpath, errors and warnings mixed in event order."""

    issues: list[ValidationIssue] = field(default_factory=list)

    def add(self, severity: str, message: str, point: Optional[Point] = None) -> None:
        self.issues.append(ValidationIssue(severity, message, point))

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == WARNING]

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def is_ok(self) -> bool:
        return not self.issues


def validate_toolpath(
    toolpath: Toolpath,
    envelope: PlotterEnvelope,
) -> ValidationResult:
    """Check *toolpath* against *envelope*.

    Checks performed:
    - All coordinates finite
    - All XY coordinates, including the start point, on the bed
    - Feed rates within the plotter maximum
    - Toolpath is non-empty
    """
    result = ValidationResult()

    if toolpath.is_empty:
        result.add(WARNING, "Toolpath is empty; no motion will be generated")
        return result

    bed = envelope.as_shapely_polygon()
    seen: set[Point] = set()
    warned_feeds: set[float] = set()

    def check_point(pt: Point) -> None:
        if pt in seen:
            return
        seen.add(pt)
        if not (math.isfinite(pt.x) and math.isfinite(pt.y)):
            result.add(ERROR, f"Non-finite coordinate ({pt.x}, {pt.y})", pt)
        elif not bed.covers(ShapelyPoint(pt.x, pt.y)):
            result.add(
                ERROR,
                f"X={pt.x:.3f} Y={pt.y:.3f} outside bed "
                f"[{envelope.x_min}, {envelope.x_max}] x "
                f"[{envelope.y_min}, {envelope.y_max}]",
                pt,
            )

    check_point(toolpath.events[0].start)
    for event in toolpath.events:
        if event.kind in (EventType.PEN_UP, EventType.PEN_DOWN):
            continue
        check_point(event.end)

        feed = event.feed_rate
        if feed is not None and feed > envelope.max_feed and feed not in warned_feeds:
            warned_feeds.add(feed)
            result.add(
                WARNING,
                f"Feed {feed:.1f} exceeds plotter max ({envelope.max_feed:.1f})",
                event.end,
            )

    return result
