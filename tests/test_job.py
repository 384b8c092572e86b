"""End-to-end tests: SVG markup in, toolpath / G-code / preview / stats out."""

import asyncio

import pytest

from plottercam.config.settings import PlotConfig
from plottercam.core.job import PlotJob, PlotStats
from plottercam.core.segments import total_length
from plottercam.core.toolpath.base import EventType
from plottercam.errors import ConfigError, EmptyResult, ParseError

SVG_NS = 'xmlns="http://www.w3.org/2000/svg"'


def _run(markup: str, **options):
    job = PlotJob(markup, PlotConfig(**options))
    return asyncio.run(job.compute(job.make_context()))


def _svg(body: str) -> str:
    return f"<svg {SVG_NS}>{body}</svg>"


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_single_line(self):
        result = _run(
            _svg('<line x1="0" y1="0" x2="10" y2="0"/>'), optimize_route=False
        )
        tp = result.toolpath
        draws = list(tp.iter_kind(EventType.DRAW))
        assert len(draws) == 1
        assert (draws[0].start.as_tuple(), draws[0].end.as_tuple()) == ((0, 0), (10, 0))
        assert tp.draw_length == pytest.approx(10.0)
        assert tp.travel_length == 0.0

    def test_two_distant_lines_lift_once_between(self):
        body = (
            '<line x1="0" y1="0" x2="1" y2="0"/>'
            '<line x1="101" y1="0" x2="102" y2="0"/>'
        )
        result = _run(_svg(body), z_hop_threshold=2.0)
        kinds = [e.kind for e in result.toolpath.events]
        first, second = [i for i, k in enumerate(kinds) if k is EventType.DRAW]
        assert kinds[first + 1:second] == [
            EventType.PEN_UP, EventType.TRAVEL, EventType.PEN_DOWN,
        ]

    def test_optimization_preserves_draw_length(self):
        body = "".join(
            f'<line x1="{(i * 37) % 100}" y1="{(i * 53) % 100}" '
            f'x2="{(i * 71) % 100}" y2="{(i * 13) % 100}"/>'
            for i in range(40)
        )
        plain = _run(_svg(body), optimize_route=False)
        optimized = _run(_svg(body), optimize_route=True)
        assert total_length(optimized.segments) == pytest.approx(
            total_length(plain.segments)
        )
        assert optimized.toolpath.travel_length <= plain.toolpath.travel_length

    def test_margin_places_drawing(self):
        result = _run(_svg('<rect x="40" y="40" width="10" height="5"/>'), margin=5.0)
        assert result.bounds.min_corner.as_tuple() == (5.0, 5.0)

    def test_fixed_origin_with_flip_and_view_box(self):
        markup = (
            f'<svg {SVG_NS} viewBox="100 100 50 50">'
            '<line x1="100" y1="100" x2="110" y2="120"/></svg>'
        )
        result = _run(
            markup, auto_origin=False, flip_vertical=True,
            margin=1.0, offset_x=10.0, offset_y=20.0, optimize_route=False,
        )
        (draw,) = result.toolpath.iter_kind(EventType.DRAW)
        assert (draw.start.as_tuple(), draw.end.as_tuple()) == ((11, 21), (21, 1))
        assert result.bounds.min_corner.as_tuple() == (11, 1)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class TestOutputs:
    @pytest.fixture
    def result(self):
        body = (
            '<rect x="0" y="0" width="20" height="10"/>'
            '<circle cx="50" cy="5" r="5"/>'
        )
        return _run(_svg(body), circle_resolution=16)

    def test_stats(self, result):
        assert result.stats.stroke_count == 2
        assert result.stats.segment_count == 4 + 16
        assert result.stats.draw_length == pytest.approx(result.toolpath.draw_length)
        assert result.stats.travel_length == pytest.approx(result.toolpath.travel_length)

    def test_gcode_frame(self, result):
        lines = result.gcode.splitlines()
        assert "G21" in lines and "G90" in lines
        assert lines[-3:] == ["G0 Z2", "G0 X0 Y0", "M2"]
        assert result.gcode.endswith("\n")

    def test_gcode_has_line_per_event(self, result):
        body = [l for l in result.gcode.splitlines() if l.startswith(("G0 X", "G1"))]
        # every event plus the footer's return to origin
        assert len(body) == len(result.toolpath.events) + 1

    def test_preview_contains_strokes(self, result):
        assert result.preview_svg.count("<polyline") == 2

    def test_summary(self):
        stats = PlotStats(2, 20, 123.456, 7.0)
        assert stats.summary() == "2 paths, 20 segments, draw 123.46 mm, travel 7.00 mm"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_parse_error(self):
        with pytest.raises(ParseError):
            _run("not xml at all")

    def test_nothing_drawable(self):
        with pytest.raises(EmptyResult):
            _run(_svg('<defs><rect width="5" height="5"/></defs>'))

    def test_invalid_config(self):
        with pytest.raises(ConfigError):
            _run(_svg('<line x2="1"/>'), z_hop_threshold=-1.0)


def test_from_file(tmp_path):
    path = tmp_path / "drawing.svg"
    path.write_text(_svg('<line x2="1"/>'))
    job = PlotJob.from_file(path)
    assert job.name == "drawing"
    assert job.markup.startswith("<svg")
