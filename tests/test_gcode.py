"""Tests for the pen-plotter G-code output."""

import math

import pytest

from plottercam.core.geometry import Bounds, Point
from plottercam.core.toolpath.base import EventType, Toolpath, ToolpathEvent
from plottercam.core.units import Units
from plottercam.gcode.gcode_writer import comment, fmt, linear, rapid
from plottercam.gcode.postprocessor import PlotterPostProcessor, PostProcessorConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_simple_toolpath() -> Toolpath:
    """Travel to (10, 0), draw to (20, 0), lift."""
    tp = Toolpath()
    a, b = Point(10, 0), Point(20, 0)
    tp.append(ToolpathEvent(EventType.TRAVEL, Point(0, 0), a, 3000.0))
    tp.append(ToolpathEvent(EventType.PEN_DOWN, a, a, 1500.0, 0.0))
    tp.append(ToolpathEvent(EventType.DRAW, a, b, 1500.0))
    tp.append(ToolpathEvent(EventType.PEN_UP, b, b, 3000.0, 2.0))
    return tp


@pytest.fixture
def post() -> PlotterPostProcessor:
    return PlotterPostProcessor(PostProcessorConfig())


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class TestWriter:
    @pytest.mark.parametrize("value,expected", [
        (1.5, "1.5"),
        (10.0, "10"),
        (100, "100"),
        (0.12349, "0.123"),
        (2.0006, "2.001"),
        (-0.0001, "0"),
        (-3.25, "-3.25"),
    ])
    def test_fmt(self, value, expected):
        assert fmt(value) == expected

    def test_fmt_rejects_non_finite(self):
        with pytest.raises(ValueError):
            fmt(math.nan)

    def test_rapid_and_linear(self):
        assert rapid(x=1, y=2) == "G0 X1 Y2"
        assert rapid(z=2) == "G0 Z2"
        assert linear(x=1.25, y=0, f=1500) == "G1 X1.25 Y0 F1500"
        assert linear(z=-0.5, f=800.5) == "G1 Z-0.5 F800.5"

    def test_comment_single_line(self):
        assert comment("a\nb") == "; a b"


# ---------------------------------------------------------------------------
# Post-processor
# ---------------------------------------------------------------------------


class TestPlotterPostProcessor:
    def test_preamble_order(self, post):
        lines = post.get_lines(Toolpath())
        codes = [line for line in lines if not line.startswith(";")]
        assert codes[:5] == ["G21", "G90", "G94", "F1500", "G0 Z2"]

    def test_inch_mode_uses_g20(self):
        pp = PlotterPostProcessor(PostProcessorConfig(units=Units.INCH))
        assert "G20" in pp.get_lines(Toolpath())

    def test_header_comments(self):
        pp = PlotterPostProcessor(PostProcessorConfig(canvas=Bounds(0, 120, 0, 80.5)))
        header = [line for line in pp.get_lines(Toolpath()) if line.startswith(";")]
        assert header[0] == "; Generated by plottercam"
        assert "; Feed rate: 1500 mm/min" in header
        assert "; Canvas: 120 x 80.5 mm" in header

    def test_event_lines(self, post):
        lines = post.get_lines(_make_simple_toolpath())
        body = lines[lines.index("G0 Z2") + 1:-3]
        assert body == [
            "G0 X10 Y0 F3000",
            "G1 Z0 F1500",
            "G1 X20 Y0 F1500",
            "G1 Z2 F3000",
        ]

    def test_postamble(self, post):
        lines = post.get_lines(_make_simple_toolpath())
        assert lines[-3:] == ["G0 Z2", "G0 X0 Y0", "M2"]

    def test_render_ends_with_newline(self, post):
        text = post.render(_make_simple_toolpath())
        assert text.endswith("M2\n")
        assert text == "\n".join(post.get_lines(_make_simple_toolpath())) + "\n"

    def test_output_is_deterministic(self, post):
        tp = _make_simple_toolpath()
        assert post.render(tp) == post.render(tp)

    def test_generate_writes_file(self, post, tmp_path):
        out = tmp_path / "plot.gcode"
        post.generate(_make_simple_toolpath(), out)
        assert out.read_text() == post.render(_make_simple_toolpath())
