# video_review/interaction.py
"""
Pointer state machine for the comment timeline.

The controller knows nothing about Qt. The timeline widget feeds it pointer
positions (x in the widget's own coordinates) and the controller decides when
to seek, what the hover preview reads, and when pointer input must be captured.

    Idle --enter--> Hovering --leave--> Idle
    Idle/Hovering --press--> Dragging --release/cancel--> Idle

While Dragging every move re-seeks, wherever the pointer is.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional

from .timeutils import x_to_time

logger = logging.getLogger(__name__)


class TimelineState(Enum):
    IDLE = "idle"
    HOVERING = "hovering"
    DRAGGING = "dragging"


def _noop_capture(_grab: bool) -> None:
    return None


class TimelineController:
    def __init__(
        self,
        seek: Callable[[float], None],
        media_duration: Optional[Callable[[], float]] = None,
        capture: Optional[Callable[[bool], None]] = None,
    ):
        self._seek = seek
        self._media_duration = media_duration or (lambda: 0.0)
        self._capture = capture or _noop_capture

        self._state = TimelineState.IDLE
        self._left: float = 0.0
        self._width: float = 0.0

        self._duration: float = 0.0
        self._current_time: float = 0.0
        self._preview_time: Optional[float] = None

    # ---------------- State ----------------

    @property
    def state(self) -> TimelineState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state == TimelineState.DRAGGING

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def preview_time(self) -> Optional[float]:
        """Hover tooltip time; None when not hovering or duration is unknown."""
        if self._state != TimelineState.HOVERING:
            return None
        return self._preview_time

    def set_media_duration(self, fn: Optional[Callable[[], float]]) -> None:
        self._media_duration = fn or (lambda: 0.0)

    def set_geometry(self, left: float, width: float) -> None:
        self._left = float(left)
        self._width = max(0.0, float(width))

    # ---------------- Player feedback ----------------

    def set_duration(self, seconds: float) -> None:
        try:
            d = float(seconds)
        except (TypeError, ValueError):
            return
        if d > 0:
            self._duration = d

    def duration(self) -> float:
        """Last known duration, else whatever the media reports right now, else 0."""
        if self._duration > 0:
            return self._duration
        try:
            live = float(self._media_duration() or 0.0)
        except (TypeError, ValueError):
            live = 0.0
        if live > 0:
            self._duration = live
            return live
        return 0.0

    def sync_time(self, seconds: float) -> None:
        self._current_time = max(0.0, float(seconds or 0.0))

    # ---------------- Pointer input ----------------

    def pointer_enter(self) -> None:
        if self._state == TimelineState.IDLE:
            self._state = TimelineState.HOVERING

    def pointer_leave(self) -> None:
        if self._state == TimelineState.HOVERING:
            self._state = TimelineState.IDLE
            self._preview_time = None

    def pointer_down(self, x: float) -> bool:
        """
        Start a scrub at x, on the playhead or anywhere on the track.
        Returns False (and stays put) when the duration or width is not known yet.
        """
        if self._state == TimelineState.DRAGGING:
            return True
        if self.duration() <= 0 or self._width <= 0:
            return False

        self._state = TimelineState.DRAGGING
        self._preview_time = None
        self._capture(True)
        self._seek_to_x(x)
        return True

    def pointer_move(self, x: float, inside: bool = True) -> None:
        if self._state == TimelineState.DRAGGING:
            self._seek_to_x(x)
            return

        if not inside:
            return
        if self._state == TimelineState.IDLE:
            self._state = TimelineState.HOVERING

        d = self.duration()
        if d <= 0:
            self._preview_time = None
            return
        self._preview_time = x_to_time(float(x) - self._left, self._width, d)

    def pointer_up(self) -> None:
        if self._state != TimelineState.DRAGGING:
            return
        self._end_drag()

    def cancel(self) -> None:
        """Release everything (focus loss, hide, teardown)."""
        if self._state == TimelineState.DRAGGING:
            self._end_drag()
        self._state = TimelineState.IDLE
        self._preview_time = None

    # ---------------- Seeking ----------------

    def seek_to_comment(self, timestamp: float) -> bool:
        d = self.duration()
        t = max(0.0, float(timestamp or 0.0))
        if d > 0:
            t = min(t, d)
        return self._apply_seek(t)

    def _seek_to_x(self, x: float) -> bool:
        d = self.duration()
        if d <= 0 or self._width <= 0:
            return False
        return self._apply_seek(x_to_time(float(x) - self._left, self._width, d))

    def _apply_seek(self, t: float) -> bool:
        try:
            self._seek(t)
        except Exception:
            logger.exception("seek to %.3fs failed", t)
            return False
        self._current_time = t
        return True

    def _end_drag(self) -> None:
        self._state = TimelineState.IDLE
        self._capture(False)
