"""Core toolpath data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional

from ..geometry import Point, distance


class EventType(Enum):
    """Kind of plotter motion."""
    DRAW = "draw"            # G1 with the pen on the paper
    TRAVEL = "travel"        # G0 with the pen lifted
    PEN_DOWN = "pen_down"    # G1 Z to drawing height
    PEN_UP = "pen_up"        # G1 Z to safe height


@dataclass(frozen=True)
class ToolpathEvent:
    """One entry of the append-only toolpath log.

    Pen events have ``start == end`` and carry the target ``z``.
    """
    kind: EventType
    start: Point
    end: Point
    feed_rate: Optional[float] = None
    z: Optional[float] = None
    drag: bool = False       # DRAW that bridges a short gap without lifting

    @property
    def length(self) -> float:
        return distance(self.start, self.end)

    @property
    def point(self) -> Point:
        return self.end


@dataclass
class Toolpath:
    """Ordered events plus accumulated drawn / travelled distance."""
    events: list[ToolpathEvent] = field(default_factory=list)
    draw_length: float = 0.0
    travel_length: float = 0.0

    def append(self, event: ToolpathEvent) -> None:
        self.events.append(event)
        if event.kind is EventType.DRAW:
            self.draw_length += event.length
        elif event.kind is EventType.TRAVEL:
            self.travel_length += event.length

    def iter_kind(self, kind: EventType) -> Iterator[ToolpathEvent]:
        return (e for e in self.events if e.kind is kind)

    def count(self, kind: EventType) -> int:
        return sum(1 for _ in self.iter_kind(kind))

    @property
    def pen_down_points(self) -> list[Point]:
        return [e.point for e in self.iter_kind(EventType.PEN_DOWN)]

    @property
    def pen_up_points(self) -> list[Point]:
        return [e.point for e in self.iter_kind(EventType.PEN_UP)]

    @property
    def is_empty(self) -> bool:
        return len(self.events) == 0
