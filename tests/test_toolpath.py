"""Tests for the pen state machine that turns segments into toolpath events."""

import asyncio
import math

import numpy as np
import pytest

from plottercam.core.geometry import Point
from plottercam.core.segments import Segment
from plottercam.core.toolpath import (
    EventType,
    Toolpath,
    ToolpathEvent,
    ToolpathParams,
    generate_toolpath,
)
from plottercam.errors import ConfigError
from plottercam.processing.context import ProcessingContext


def _generate(segments, **params) -> Toolpath:
    return asyncio.run(
        generate_toolpath(segments, ToolpathParams(**params), ProcessingContext())
    )


def _kinds(toolpath: Toolpath) -> list[EventType]:
    return [e.kind for e in toolpath.events]


D, T, PD, PU = EventType.DRAW, EventType.TRAVEL, EventType.PEN_DOWN, EventType.PEN_UP


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class TestToolpathModel:
    def test_append_accumulates_lengths(self):
        tp = Toolpath()
        tp.append(ToolpathEvent(T, Point(0, 0), Point(3, 4)))
        tp.append(ToolpathEvent(PD, Point(3, 4), Point(3, 4), z=0.0))
        tp.append(ToolpathEvent(D, Point(3, 4), Point(3, 10)))
        assert tp.travel_length == pytest.approx(5.0)
        assert tp.draw_length == pytest.approx(6.0)
        assert tp.count(PD) == 1
        assert tp.pen_down_points == [Point(3, 4)]

    def test_empty(self):
        assert Toolpath().is_empty


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class TestGenerateToolpath:
    def test_single_segment_from_origin(self):
        tp = _generate([Segment(0, 0, 10, 0)])
        assert _kinds(tp) == [PD, D, PU]
        (draw,) = list(tp.iter_kind(D))
        assert (draw.start, draw.end) == (Point(0, 0), Point(10, 0))
        assert tp.draw_length == pytest.approx(10.0)
        assert tp.travel_length == 0.0

    def test_travel_from_start_point(self):
        tp = _generate([Segment(0, 0, 1, 0)], start_x=3.0, start_y=4.0)
        assert _kinds(tp) == [T, PD, D, PU]
        assert tp.travel_length == pytest.approx(5.0)

    def test_long_gap_lifts_pen(self):
        segs = [Segment(0, 0, 1, 0), Segment(101, 0, 102, 0)]
        tp = _generate(segs, z_hop_threshold=2.0)
        assert _kinds(tp) == [PD, D, PU, T, PD, D, PU]
        assert tp.travel_length == pytest.approx(100.0)
        assert tp.draw_length == pytest.approx(2.0)

    def test_short_gap_is_dragged(self):
        segs = [Segment(0, 0, 1, 0), Segment(2, 0, 3, 0)]
        tp = _generate(segs, z_hop_threshold=3.0)
        assert _kinds(tp) == [PD, D, D, D, PU]
        drag = tp.events[2]
        assert drag.drag
        assert drag.feed_rate == 1500.0
        assert tp.draw_length == pytest.approx(3.0)
        assert tp.travel_length == 0.0

    def test_gap_equal_to_threshold_is_dragged(self):
        segs = [Segment(0, 0, 1, 0), Segment(3, 0, 4, 0)]
        tp = _generate(segs, z_hop_threshold=2.0)
        assert tp.count(PU) == 1

    def test_zero_threshold_always_lifts(self):
        segs = [Segment(0, 0, 1, 0), Segment(1.5, 0, 2, 0)]
        tp = _generate(segs, z_hop_threshold=0.0)
        assert tp.count(PD) == 2

    def test_connected_segments_stay_down(self):
        segs = [Segment(0, 0, 1, 0), Segment(1, 0, 1, 1), Segment(1, 1, 0, 1)]
        tp = _generate(segs)
        assert _kinds(tp) == [PD, D, D, D, PU]

    def test_feeds_and_depths(self):
        segs = [Segment(5, 5, 6, 5)]
        tp = _generate(
            segs, feed_rate=800.0, travel_rate=3000.0,
            pen_down_depth=-0.5, pen_up_depth=4.0,
        )
        travel, down, draw, up = tp.events
        assert travel.feed_rate == 3000.0
        assert (down.z, down.feed_rate) == (-0.5, 800.0)
        assert draw.feed_rate == 800.0
        assert (up.z, up.feed_rate) == (4.0, 3000.0)

    def test_negative_threshold_rejected(self):
        with pytest.raises(ConfigError):
            _generate([Segment(0, 0, 1, 0)], z_hop_threshold=-1.0)

    def test_no_segments(self):
        assert _generate([]).is_empty


# ---------------------------------------------------------------------------
# Pen state invariants on random input
# ---------------------------------------------------------------------------


class TestPenInvariants:
    @pytest.fixture
    def random_toolpath(self):
        rng = np.random.default_rng(11)
        segs = [Segment(*map(float, row)) for row in rng.uniform(0, 20, size=(150, 4))]
        return segs, _generate(segs, z_hop_threshold=2.5)

    def test_draw_only_when_down_travel_only_when_up(self, random_toolpath):
        _, tp = random_toolpath
        down = False
        transitions = 0
        for event in tp.events:
            if event.kind is D:
                assert down
            elif event.kind is T:
                assert not down
            elif event.kind is PD:
                assert not down
                down = True
                transitions += 1
            else:
                assert down
                down = False
        assert not down
        assert tp.count(PD) == transitions

    def test_pen_downs_bounded_by_segments(self, random_toolpath):
        segs, tp = random_toolpath
        assert 1 <= tp.count(PD) <= len(segs)

    def test_motion_is_continuous(self, random_toolpath):
        _, tp = random_toolpath
        position = Point(0, 0)
        for event in tp.events:
            assert event.start == position
            position = event.end

    def test_lengths_match_events(self, random_toolpath):
        _, tp = random_toolpath
        draw = sum(e.length for e in tp.iter_kind(D))
        travel = sum(e.length for e in tp.iter_kind(T))
        assert math.isclose(tp.draw_length, draw)
        assert math.isclose(tp.travel_length, travel)
