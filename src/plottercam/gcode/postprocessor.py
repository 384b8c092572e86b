"""Pen-plotter post-processor: Toolpath -> G-code text.

Program layout::

    ; header comments
    G21 / G20          units
    G90                absolute positioning
    G94                feed per minute
    F<feed>
    G0 Z<pen up>
    ... one line per toolpath event ...
    G0 Z<pen up>
    G0 X0 Y0
    M2
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from ..core.geometry import Bounds
from ..core.toolpath.base import EventType, Toolpath, ToolpathEvent
from ..core.units import Units
from .gcode_writer import comment, fmt, linear, rapid


@dataclass
class PostProcessorConfig:
    units: Units = Units.MM
    feed_rate: float = 1500.0
    pen_up_depth: float = 2.0
    pen_down_depth: float = 0.0
    program_name: str = "plottercam"
    canvas: Optional[Bounds] = None


class PlotterPostProcessor:
    """Emits G-code for a single toolpath."""

    def __init__(self, config: PostProcessorConfig):
        self.config = config

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def preamble(self) -> list[str]:
        cfg = self.config
        unit = cfg.units.label()
        lines = [
            comment(f"Generated by {cfg.program_name}"),
            comment(f"Feed rate: {fmt(cfg.feed_rate, 1)} {cfg.units.feed_label()}"),
            comment(f"Pen down Z: {fmt(cfg.pen_down_depth)} {unit}"),
            comment(f"Pen up Z: {fmt(cfg.pen_up_depth)} {unit}"),
        ]
        if cfg.canvas is not None:
            lines.append(comment(
                f"Canvas: {fmt(max(cfg.canvas.width, 0.0))} x "
                f"{fmt(max(cfg.canvas.height, 0.0))} {unit}"
            ))
        lines += [
            cfg.units.gcode_modal,
            "G90",
            "G94",
            f"F{fmt(cfg.feed_rate, 1)}",
            rapid(z=cfg.pen_up_depth),
        ]
        return lines

    def event_line(self, event: ToolpathEvent) -> str:
        kind = event.kind
        if kind is EventType.TRAVEL:
            return rapid(x=event.end.x, y=event.end.y, f=event.feed_rate)
        if kind is EventType.DRAW:
            return linear(x=event.end.x, y=event.end.y, f=event.feed_rate)
        if kind is EventType.PEN_DOWN:
            z = self.config.pen_down_depth if event.z is None else event.z
            return linear(z=z, f=event.feed_rate)
        z = self.config.pen_up_depth if event.z is None else event.z
        return linear(z=z, f=event.feed_rate)

    def postamble(self) -> list[str]:
        return [
            rapid(z=self.config.pen_up_depth),
            rapid(x=0.0, y=0.0),
            "M2",
        ]

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def iter_lines(self, toolpath: Toolpath) -> Iterator[str]:
        yield from self.preamble()
        for event in toolpath.events:
            yield self.event_line(event)
        yield from self.postamble()

    def get_lines(self, toolpath: Toolpath) -> list[str]:
        return list(self.iter_lines(toolpath))

    def render(self, toolpath: Toolpath) -> str:
        return "\n".join(self.iter_lines(toolpath)) + "\n"

    def generate(self, toolpath: Toolpath, output: Path) -> None:
        """Write the program for *toolpath* to *output*."""
        Path(output).write_text(self.render(toolpath))
