"""Tests for toolpath validation against the plotter bed."""

import math

import pytest

from plottercam.core.geometry import Point
from plottercam.core.toolpath.base import EventType, Toolpath, ToolpathEvent
from plottercam.gcode.validate import PlotterEnvelope, validate_toolpath


@pytest.fixture
def small_envelope() -> PlotterEnvelope:
    return PlotterEnvelope(x_min=0.0, x_max=100.0, y_min=0.0, y_max=60.0, max_feed=3000.0)


def _make_tp(*targets: tuple[float, float], feed: float = 1500.0) -> Toolpath:
    tp = Toolpath()
    position = Point(0, 0)
    for x, y in targets:
        target = Point(x, y)
        tp.append(ToolpathEvent(EventType.DRAW, position, target, feed))
        position = target
    return tp


class TestValidation:
    def test_valid_toolpath_passes(self, small_envelope):
        result = validate_toolpath(_make_tp((10, 10), (50, 20)), small_envelope)
        assert result.is_ok

    def test_point_on_bed_edge_is_inside(self, small_envelope):
        result = validate_toolpath(_make_tp((100, 60)), small_envelope)
        assert result.is_ok

    def test_x_out_of_range(self, small_envelope):
        result = validate_toolpath(_make_tp((150, 10)), small_envelope)
        assert result.has_errors

    def test_y_out_of_range(self, small_envelope):
        result = validate_toolpath(_make_tp((10, -1)), small_envelope)
        assert result.has_errors

    def test_non_finite_is_error(self, small_envelope):
        result = validate_toolpath(_make_tp((math.nan, 1)), small_envelope)
        assert result.has_errors
        assert "Non-finite" in result.issues[0].message

    def test_feed_too_high_warns_once(self, small_envelope):
        result = validate_toolpath(
            _make_tp((1, 1), (2, 2), (3, 3), feed=5000.0), small_envelope
        )
        assert result.has_warnings
        assert not result.has_errors
        assert len(result.issues) == 1

    def test_pen_depth_not_checked(self, small_envelope):
        tp = Toolpath()
        p = Point(1, 1)
        tp.append(ToolpathEvent(EventType.PEN_DOWN, p, p, 1500.0, -50.0))
        assert validate_toolpath(tp, small_envelope).is_ok

    def test_start_point_checked(self, small_envelope):
        tp = Toolpath()
        tp.append(ToolpathEvent(EventType.TRAVEL, Point(-5, 0), Point(1, 1), 1500.0))
        result = validate_toolpath(tp, small_envelope)
        assert len(result.errors) == 1
        assert result.errors[0].point == Point(-5, 0)

    def test_empty_toolpath_warns(self, small_envelope):
        result = validate_toolpath(Toolpath(), small_envelope)
        assert result.has_warnings
        assert not result.has_errors
