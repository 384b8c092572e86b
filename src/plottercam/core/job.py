"""Job orchestrator: ties SVG markup + plot options together.

The PlotJob class is the top-level entry point for the CLI and the
scheduler.  ``compute`` runs extraction -> normalization -> segmentation ->
route optimization -> toolpath -> G-code/preview rendering strictly in that
order, each stage feeding the next.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..config.settings import PlotConfig
from ..errors import EmptyResult
from ..gcode.postprocessor import PlotterPostProcessor, PostProcessorConfig
from ..preview import build_preview_svg
from ..processing.context import ProcessingContext
from .extractor import Extraction, extract_geometry
from .geometry import Bounds, Polyline
from .normalize import NormalizeParams, normalize_polylines
from .optimizer import optimize_route
from .segments import Segment, polylines_to_segments
from .toolpath.base import Toolpath
from .toolpath.generator import ToolpathParams, generate_toolpath

# (message, start percent, span percent)
STAGE_EXTRACT = ("Extracting geometry", 0.0, 30.0)
STAGE_NORMALIZE = ("Normalizing coordinates", 30.0, 5.0)
STAGE_SEGMENT = ("Splitting into segments", 35.0, 5.0)
STAGE_OPTIMIZE = ("Optimizing route", 40.0, 30.0)
STAGE_TOOLPATH = ("Generating toolpath", 70.0, 20.0)
STAGE_RENDER = ("Writing G-code", 90.0, 10.0)


@dataclass
class PlotStats:
    stroke_count: int = 0
    segment_count: int = 0
    draw_length: float = 0.0
    travel_length: float = 0.0

    def summary(self, unit: str = "mm") -> str:
        return (
            f"{self.stroke_count} paths, {self.segment_count} segments, "
            f"draw {self.draw_length:.2f} {unit}, "
            f"travel {self.travel_length:.2f} {unit}"
        )


@dataclass
class PlotResult:
    """Everything a completed run produces."""

    polylines: list[Polyline]
    bounds: Bounds
    segments: list[Segment]
    toolpath: Toolpath
    gcode: str
    preview_svg: str
    stats: PlotStats
    view_box: Optional[tuple[float, float, float, float]] = None


@dataclass
class PlotJob:
    """One SVG document and the options to plot it with."""

    markup: str
    config: PlotConfig = field(default_factory=PlotConfig)
    name: str = "toolpath"

    @classmethod
    def from_file(cls, path: Path, config: Optional[PlotConfig] = None) -> PlotJob:
        path = Path(path)
        return cls(
            markup=path.read_text(encoding="utf-8"),
            config=config or PlotConfig(),
            name=path.stem,
        )

    def make_context(self, **kwargs) -> ProcessingContext:
        """Standalone context honouring this job's timeout / yield settings."""
        kwargs.setdefault("timeout", self.config.timeout)
        kwargs.setdefault("yield_every", self.config.yield_every)
        return ProcessingContext(**kwargs)

    async def compute(self, ctx: ProcessingContext) -> PlotResult:
        """Run every stage and return the finished result.

        Raises
        ------
        ParseError:
            If the markup cannot be parsed.
        EmptyResult:
            If nothing drawable was found.
        ConfigError:
            If the options are out of range.
        ProcessingCancelled, ProcessingTimeout:
            If *ctx* is invalidated while running.
        """
        cfg = self.config.validate()

        ctx.begin_stage(*STAGE_EXTRACT)
        extraction: Extraction = await extract_geometry(self.markup, cfg, ctx)
        if extraction.is_empty:
            raise EmptyResult()

        ctx.begin_stage(*STAGE_NORMALIZE)
        normalized = await normalize_polylines(
            extraction.polylines,
            NormalizeParams(
                units_per_physical_unit=cfg.effective_units_per_physical_unit,
                flip_vertical=cfg.flip_vertical,
                auto_origin=cfg.auto_origin,
                margin=cfg.margin,
                offset_x=cfg.offset_x,
                offset_y=cfg.offset_y,
            ),
            ctx,
        )

        ctx.begin_stage(*STAGE_SEGMENT)
        segments = await polylines_to_segments(normalized.polylines, ctx)

        ctx.begin_stage(*STAGE_OPTIMIZE)
        ordered = await optimize_route(
            segments, cfg.start_x, cfg.start_y, ctx, optimize=cfg.optimize_route
        )

        ctx.begin_stage(*STAGE_TOOLPATH)
        toolpath = await generate_toolpath(
            ordered,
            ToolpathParams(
                feed_rate=cfg.feed_rate,
                travel_rate=cfg.effective_travel_rate,
                pen_down_depth=cfg.pen_down_depth,
                pen_up_depth=cfg.pen_up_depth,
                z_hop_threshold=cfg.z_hop_threshold,
                start_x=cfg.start_x,
                start_y=cfg.start_y,
            ),
            ctx,
        )

        ctx.begin_stage(*STAGE_RENDER)
        post = PlotterPostProcessor(PostProcessorConfig(
            units=cfg.units,
            feed_rate=cfg.feed_rate,
            pen_up_depth=cfg.pen_up_depth,
            pen_down_depth=cfg.pen_down_depth,
            canvas=normalized.bounds,
        ))
        lines: list[str] = []
        n_lines = len(toolpath.events) + len(post.preamble()) + len(post.postamble())
        for line in post.iter_lines(toolpath):
            lines.append(line)
            await ctx.tick(len(lines), n_lines)
        gcode = "\n".join(lines) + "\n"

        preview = build_preview_svg(
            normalized.polylines,
            normalized.bounds,
            toolpath.pen_down_points,
            toolpath.pen_up_points,
        )
        ctx.check()
        ctx.report(1.0, "Toolpath updated.")

        return PlotResult(
            polylines=normalized.polylines,
            bounds=normalized.bounds,
            segments=ordered,
            toolpath=toolpath,
            gcode=gcode,
            preview_svg=preview,
            stats=PlotStats(
                stroke_count=len(normalized.polylines),
                segment_count=len(segments),
                draw_length=toolpath.draw_length,
                travel_length=toolpath.travel_length,
            ),
            view_box=extraction.view_box,
        )
