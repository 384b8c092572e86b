"""CLI entry point: ``python -m plottercam input.svg -o output.gcode``"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config.settings import PlotConfig, load_config
from .core.job import PlotJob, PlotResult
from .core.units import Units
from .errors import ConfigError
from .gcode.validate import PlotterEnvelope, validate_toolpath
from .preview import write_preview
from .processing.scheduler import PipelineScheduler

logger = logging.getLogger("plottercam")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="plottercam",
        description="Generate pen-plotter G-code from SVG drawings.",
    )
    p.add_argument("input", type=Path, help="Input SVG file")
    p.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output G-code file (default: <input>.gcode)",
    )
    p.add_argument("--preview", type=Path, default=None,
                   help="Also write a preview SVG to this path")
    p.add_argument("--config", type=Path, default=None,
                   help="JSON file with plot options; flags override it")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="More log output (repeat for debug)")

    # Placement
    g = p.add_argument_group("placement")
    g.add_argument("--scale", dest="units_per_physical_unit", type=float,
                   help="Physical units per SVG unit (default: 1.0)")
    g.add_argument("--margin", type=float, help="Margin (default: 0)")
    g.add_argument("--offset-x", type=float, help="X offset when --no-auto-origin")
    g.add_argument("--offset-y", type=float, help="Y offset when --no-auto-origin")
    g.add_argument("--auto-origin", action=argparse.BooleanOptionalAction, default=None,
                   help="Move the drawing's corner to (margin, margin) (default: on)")
    g.add_argument("--flip-vertical", action=argparse.BooleanOptionalAction, default=None,
                   help="Negate Y (default: off)")
    g.add_argument("--units", choices=["mm", "in", "inch"], default=None,
                   help="Working units (default: mm)")

    # Flattening
    g = p.add_argument_group("flattening")
    g.add_argument("--max-segment-length", type=float,
                   help="Longest straight piece used for curves (default: 1.0)")
    g.add_argument("--circle-resolution", type=int,
                   help="Samples per circle/ellipse, 8-720 (default: 72)")

    # Feeds and pen
    g = p.add_argument_group("feeds and pen")
    g.add_argument("--feed-rate", type=float, help="Drawing feed (default: 1500)")
    g.add_argument("--travel-rate", type=float,
                   help="Pen-up feed (default: same as --feed-rate)")
    g.add_argument("--pen-down", dest="pen_down_depth", type=float,
                   help="Pen down Z (default: 0)")
    g.add_argument("--pen-up", dest="pen_up_depth", type=float,
                   help="Pen up Z (default: 2)")
    g.add_argument("--z-hop-threshold", type=float,
                   help="Longest gap dragged without lifting (default: 3)")

    # Route
    g = p.add_argument_group("route")
    g.add_argument("--start-x", type=float, help="Start X (default: 0)")
    g.add_argument("--start-y", type=float, help="Start Y (default: 0)")
    g.add_argument("--optimize", dest="optimize_route",
                   action=argparse.BooleanOptionalAction, default=None,
                   help="Reorder strokes to shorten travel (default: on)")
    g.add_argument("--timeout", type=float,
                   help="Give up after this many seconds (default: no limit)")

    # Validation
    g = p.add_argument_group("validation")
    g.add_argument("--skip-validate", action="store_true",
                   help="Skip bed / feed validation")
    g.add_argument("--bed-width", type=float, default=300.0,
                   help="Plotter bed width (default: 300)")
    g.add_argument("--bed-height", type=float, default=300.0,
                   help="Plotter bed height (default: 300)")
    g.add_argument("--max-feed", type=float, default=6000.0,
                   help="Plotter maximum feed (default: 6000)")

    return p


_OPTION_NAMES = (
    "units_per_physical_unit", "margin", "offset_x", "offset_y", "auto_origin",
    "flip_vertical", "max_segment_length", "circle_resolution", "feed_rate",
    "travel_rate", "pen_down_depth", "pen_up_depth", "z_hop_threshold",
    "start_x", "start_y", "optimize_route", "timeout",
)


def build_config(args: argparse.Namespace) -> PlotConfig:
    """Config file (if any) overlaid with every flag that was given."""
    config = load_config(args.config) if args.config else PlotConfig()
    data = config.to_dict()
    for name in _OPTION_NAMES:
        value = getattr(args, name)
        if value is not None:
            data[name] = value
    if args.units is not None:
        data["units"] = Units.parse(args.units).value
    return PlotConfig.from_dict(data).validate()


def _print_progress(percent: float, message: str) -> None:
    print(f"  [{percent:5.1f}%] {message}")


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    output: Path = args.output or args.input.with_suffix(".gcode")

    try:
        config = build_config(args)
    except (ConfigError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Loading {args.input} ...")
    try:
        job = PlotJob.from_file(args.input, config)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    errors: list[str] = []
    scheduler = PipelineScheduler(
        on_progress=_print_progress if args.verbose else None,
        on_error=errors.append,
    )

    print("Computing toolpath ...")
    result: PlotResult | None = asyncio.run(scheduler.run(job))
    if result is None:
        for message in errors or ["Cancelled."]:
            print(f"Error: {message}", file=sys.stderr)
        return 1

    unit = config.units.label()
    print(f"  {result.stats.summary(unit)}")
    if result.view_box is not None:
        logger.info("viewBox: %s", " ".join(f"{v:g}" for v in result.view_box))

    if not args.skip_validate:
        envelope = PlotterEnvelope(
            x_max=args.bed_width,
            y_max=args.bed_height,
            max_feed=args.max_feed,
        )
        check = validate_toolpath(result.toolpath, envelope)
        if check.has_errors:
            print("VALIDATION ERRORS:", file=sys.stderr)
            for issue in check.errors:
                print(f"  ERROR: {issue.message}", file=sys.stderr)
            return 1
        for issue in check.warnings:
            print(f"  Warning: {issue.message}")

    output.write_text(result.gcode)
    print(f"Wrote {output}")

    if args.preview is not None:
        write_preview(result.preview_svg, args.preview)
        print(f"Wrote {args.preview}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
