"""Pen state machine: ordered segments -> toolpath events.

The pen starts up at ``(start_x, start_y)``.  For every segment:

1. If the segment does not start where the pen is, get there.  A lifted
   pen travels.  A lowered pen is lifted first when the gap is longer than
   ``z_hop_threshold``; shorter gaps are dragged across on the paper.
2. Lower the pen if it is up.
3. Draw to the segment's end.

After the last segment a lowered pen is lifted.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import ConfigError
from ...processing.context import ProcessingContext
from ..geometry import Point, distance
from ..segments import Segment
from .base import EventType, Toolpath, ToolpathEvent


@dataclass
class ToolpathParams:
    """Parameters for turning ordered segments into pen motion."""

    feed_rate: float = 1500.0
    travel_rate: float = 1500.0
    pen_down_depth: float = 0.0
    pen_up_depth: float = 2.0
    z_hop_threshold: float = 3.0   # longest gap dragged with the pen down
    start_x: float = 0.0
    start_y: float = 0.0


async def generate_toolpath(
    segments: list[Segment],
    params: ToolpathParams,
    ctx: ProcessingContext,
) -> Toolpath:
    """Walk *segments* in order and record pen moves.

    Raises
    ------
    ConfigError:
        If ``z_hop_threshold`` is negative.
    """
    if params.z_hop_threshold < 0:
        raise ConfigError("z_hop_threshold must not be negative")

    toolpath = Toolpath()
    position = Point(params.start_x, params.start_y)
    pen_down = False

    for i, segment in enumerate(segments):
        target = segment.start
        gap = distance(position, target)

        if gap > 0:
            if pen_down and gap > params.z_hop_threshold:
                toolpath.append(ToolpathEvent(
                    EventType.PEN_UP, position, position,
                    params.travel_rate, params.pen_up_depth))
                pen_down = False

            if pen_down:
                toolpath.append(ToolpathEvent(
                    EventType.DRAW, position, target, params.feed_rate, drag=True))
            else:
                toolpath.append(ToolpathEvent(
                    EventType.TRAVEL, position, target, params.travel_rate))

        if not pen_down:
            toolpath.append(ToolpathEvent(
                EventType.PEN_DOWN, target, target,
                params.feed_rate, params.pen_down_depth))
            pen_down = True

        toolpath.append(ToolpathEvent(
            EventType.DRAW, target, segment.end, params.feed_rate))
        position = segment.end

        await ctx.tick(i + 1, len(segments))

    if pen_down:
        toolpath.append(ToolpathEvent(
            EventType.PEN_UP, position, position,
            params.travel_rate, params.pen_up_depth))

    return toolpath
