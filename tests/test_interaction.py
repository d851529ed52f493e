"""Tests for the timeline pointer state machine."""

from __future__ import annotations

import pytest

from video_review.interaction import TimelineController, TimelineState


class _Recorder:
    def __init__(self):
        self.seeks = []
        self.captures = []

    def seek(self, t):
        self.seeks.append(t)

    def capture(self, grab):
        self.captures.append(grab)


def _controller(duration=100.0, left=10.0, width=200.0, media_duration=None):
    rec = _Recorder()
    ctl = TimelineController(seek=rec.seek, media_duration=media_duration, capture=rec.capture)
    ctl.set_geometry(left, width)
    if duration:
        ctl.set_duration(duration)
    return ctl, rec


# ---------------------------------------------------------------------------
# Hover
# ---------------------------------------------------------------------------


class TestHover:
    def test_enter_and_leave(self):
        ctl, _ = _controller()
        assert ctl.state == TimelineState.IDLE
        ctl.pointer_enter()
        assert ctl.state == TimelineState.HOVERING
        ctl.pointer_leave()
        assert ctl.state == TimelineState.IDLE

    def test_preview_follows_pointer(self):
        ctl, rec = _controller()
        ctl.pointer_enter()
        ctl.pointer_move(110)  # halfway along a 200px track starting at 10
        assert ctl.preview_time == pytest.approx(50.0)
        assert rec.seeks == []

    def test_no_preview_when_idle(self):
        ctl, _ = _controller()
        assert ctl.preview_time is None

    def test_preview_hidden_without_duration(self):
        ctl, _ = _controller(duration=0)
        ctl.pointer_move(50)
        assert ctl.state == TimelineState.HOVERING
        assert ctl.preview_time is None

    def test_leave_clears_preview(self):
        ctl, _ = _controller()
        ctl.pointer_move(60)
        ctl.pointer_leave()
        assert ctl.preview_time is None


# ---------------------------------------------------------------------------
# Drag
# ---------------------------------------------------------------------------


class TestDrag:
    def test_press_seeks_and_captures(self):
        ctl, rec = _controller()
        assert ctl.pointer_down(60) is True
        assert ctl.state == TimelineState.DRAGGING
        assert rec.captures == [True]
        assert rec.seeks == [pytest.approx(25.0)]
        assert ctl.current_time == pytest.approx(25.0)

    def test_grabbing_the_playhead_keeps_the_time(self):
        ctl, rec = _controller()
        ctl.seek_to_comment(40)
        ctl.pointer_down(90)  # 40% of a 200px track starting at 10
        assert ctl.is_dragging
        assert rec.seeks[-1] == pytest.approx(40.0)
        assert ctl.current_time == pytest.approx(40.0)

    def test_moves_reseek_while_dragging(self):
        ctl, rec = _controller()
        ctl.pointer_down(10)
        ctl.pointer_move(110)
        ctl.pointer_move(160)
        assert rec.seeks == [0.0, pytest.approx(50.0), pytest.approx(75.0)]

    def test_drag_past_right_edge_clamps_to_duration(self):
        ctl, rec = _controller()
        ctl.pointer_down(100)
        ctl.pointer_move(5000, inside=False)
        assert rec.seeks[-1] == pytest.approx(100.0)
        assert ctl.current_time <= 100.0

    def test_drag_past_left_edge_never_negative(self):
        ctl, rec = _controller()
        ctl.pointer_down(100)
        ctl.pointer_move(-5000, inside=False)
        assert rec.seeks[-1] == 0.0
        assert all(t >= 0 for t in rec.seeks)

    def test_release_returns_to_idle(self):
        ctl, rec = _controller()
        ctl.pointer_down(50)
        ctl.pointer_up()
        assert ctl.state == TimelineState.IDLE
        assert rec.captures == [True, False]

    def test_leave_while_dragging_keeps_dragging(self):
        ctl, _ = _controller()
        ctl.pointer_down(50)
        ctl.pointer_leave()
        assert ctl.state == TimelineState.DRAGGING

    def test_press_without_duration_does_nothing(self):
        ctl, rec = _controller(duration=0)
        assert ctl.pointer_down(50) is False
        assert ctl.state == TimelineState.IDLE
        assert rec.seeks == []
        assert rec.captures == []

    def test_press_without_width_does_nothing(self):
        ctl, rec = _controller(width=0)
        assert ctl.pointer_down(50) is False
        assert rec.seeks == []

    def test_cancel_releases_capture(self):
        ctl, rec = _controller()
        ctl.pointer_down(50)
        ctl.cancel()
        assert ctl.state == TimelineState.IDLE
        assert rec.captures == [True, False]

    def test_cancel_when_idle_does_not_release(self):
        ctl, rec = _controller()
        ctl.cancel()
        assert rec.captures == []

    def test_seek_failure_keeps_time(self):
        def boom(_t):
            raise RuntimeError("player gone")

        ctl = TimelineController(seek=boom)
        ctl.set_geometry(0, 100)
        ctl.set_duration(10)
        ctl.pointer_down(50)
        assert ctl.current_time == 0.0


# ---------------------------------------------------------------------------
# Duration
# ---------------------------------------------------------------------------


class TestDuration:
    def test_falls_back_to_media_duration(self):
        ctl, _ = _controller(duration=0, media_duration=lambda: 42.0)
        assert ctl.duration() == pytest.approx(42.0)

    def test_zero_when_nothing_known(self):
        ctl, _ = _controller(duration=0)
        assert ctl.duration() == 0.0

    def test_keeps_last_known_duration(self):
        ctl, _ = _controller(duration=80)
        ctl.set_duration(0)
        assert ctl.duration() == pytest.approx(80.0)

    def test_seek_to_comment_clamps(self):
        ctl, rec = _controller(duration=30)
        ctl.seek_to_comment(45)
        assert rec.seeks == [pytest.approx(30.0)]

    def test_sync_time_never_negative(self):
        ctl, _ = _controller()
        ctl.sync_time(-3)
        assert ctl.current_time == 0.0
