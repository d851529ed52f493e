# video_review/widgets/comment_timeline.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from PyQt5.QtCore import QPoint, QRect, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QFontMetrics, QPainter, QPen
from PyQt5.QtWidgets import QSizePolicy, QToolTip, QWidget

from ..domain import Comment
from ..interaction import TimelineController, TimelineState
from ..ordering import timeline_markers
from ..timeutils import format_display, marker_percent, time_to_percent

EDITOR_COLOR = "#F97316"
CLIENT_COLOR = "#EC4899"


@dataclass
class _HitMarker:
    comment_id: str
    timestamp: float
    rect: QRect


class CommentTimeline(QWidget):
    """
    Scrub bar with a progress fill, one marker per top-level comment and a draggable playhead.

    Use:
      - set_comments(comments) whenever the comment list changes
      - set_duration(seconds) / set_time(seconds) from the player
      - connect seek_requested to the player's seek

    Dragging grabs the mouse, so moves and the release are seen outside the widget.
    """
    seek_requested = pyqtSignal(float)
    marker_clicked = pyqtSignal(str)  # comment id

    def __init__(self, parent: Optional[QWidget] = None, media_duration: Optional[Callable[[], float]] = None):
        super().__init__(parent)

        self._pad_x = 12
        self._track_h = 8
        self._marker_r = 6
        self._handle_r = 7

        self._markers: List[Comment] = []
        self._hit_markers: List[_HitMarker] = []

        self.controller = TimelineController(
            seek=self.seek_requested.emit,
            media_duration=media_duration,
            capture=self._set_capture,
        )

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.ClickFocus)
        self.setMinimumHeight(44)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self._cursor_mode: str = ""

    # ---------------- Public API ----------------

    def set_comments(self, comments: List[Comment]) -> None:
        self._markers = timeline_markers(comments)
        self.update()

    def set_duration(self, seconds: float) -> None:
        self.controller.set_duration(seconds)
        self.update()

    def set_time(self, seconds: float) -> None:
        self.controller.sync_time(seconds)
        self.update()

    def set_media_duration_provider(self, fn: Callable[[], float]) -> None:
        self.controller.set_media_duration(fn)

    def seek_to_comment(self, timestamp: float) -> None:
        self.controller.seek_to_comment(timestamp)
        self.update()

    # ---------------- Geometry ----------------

    def _track_rect(self) -> QRect:
        y = (self.height() - self._track_h) // 2
        return QRect(self._pad_x, y, max(1, self.width() - 2 * self._pad_x), self._track_h)

    def _percent_to_x(self, percent: float) -> int:
        track = self._track_rect()
        return track.left() + int(round(track.width() * percent / 100.0))

    def _sync_geometry(self) -> None:
        track = self._track_rect()
        self.controller.set_geometry(track.left(), track.width())

    def resizeEvent(self, event):
        self._sync_geometry()
        return super().resizeEvent(event)

    # ---------------- Painting ----------------

    def paintEvent(self, event):
        self._sync_geometry()
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)

        track = self._track_rect()
        duration = self.controller.duration()

        # Track + progress
        painter.fillRect(track, QColor("#3a3a3a"))
        played = time_to_percent(self.controller.current_time, duration)
        if played > 0:
            fill = QRect(track.left(), track.top(), self._percent_to_x(played) - track.left(), track.height())
            painter.fillRect(fill, QColor("#60A5FA"))

        # Markers
        self._hit_markers = []
        cy = track.center().y()
        for c in self._markers:
            x = self._percent_to_x(marker_percent(c.timestamp, duration))
            r = self._marker_r
            rect = QRect(x - r, cy - r, 2 * r, 2 * r)
            color = QColor(EDITOR_COLOR if c.author.is_editor else CLIENT_COLOR)
            if c.is_completed:
                color.setAlpha(120)
            painter.setPen(QPen(QColor("#111111"), 1))
            painter.setBrush(color)
            painter.drawEllipse(rect)
            self._hit_markers.append(_HitMarker(comment_id=c.id, timestamp=float(c.timestamp), rect=rect))

        # Playhead
        if duration > 0:
            x = self._percent_to_x(time_to_percent(self.controller.current_time, duration))
            painter.setPen(QPen(QColor("#ffffff"), 2))
            painter.drawLine(x, track.top() - 8, x, track.bottom() + 8)
            painter.setBrush(QColor("#ffffff"))
            painter.drawEllipse(QPoint(x, cy), self._handle_r - 2, self._handle_r - 2)

        # Hover preview
        preview = self.controller.preview_time
        if preview is not None and duration > 0:
            x = self._percent_to_x(time_to_percent(preview, duration))
            painter.setPen(QPen(QColor(255, 255, 255, 110), 1))
            painter.drawLine(x, track.top() - 6, x, track.bottom() + 6)
            txt = format_display(preview)
            fm = QFontMetrics(self.font())
            w = fm.horizontalAdvance(txt) + 8
            box = QRect(min(max(0, x - w // 2), self.width() - w), 0, w, fm.height() + 2)
            painter.fillRect(box, QColor(0, 0, 0, 180))
            painter.setPen(QPen(QColor("#ffffff"), 1))
            painter.drawText(box, Qt.AlignCenter, txt)

        painter.end()

    # ---------------- Hit testing ----------------

    def _hit_test_marker(self, pos: QPoint) -> Optional[_HitMarker]:
        # last painted wins (drawn on top)
        for hm in reversed(self._hit_markers):
            if hm.rect.adjusted(-2, -2, 2, 2).contains(pos):
                return hm
        return None

    def _on_playhead(self, pos: QPoint) -> bool:
        duration = self.controller.duration()
        if duration <= 0:
            return False
        x = self._percent_to_x(time_to_percent(self.controller.current_time, duration))
        return abs(pos.x() - x) <= self._handle_r

    def _set_cursor_mode(self, mode: str) -> None:
        if mode == self._cursor_mode:
            return
        self._cursor_mode = mode
        if mode == "hand":
            self.setCursor(Qt.PointingHandCursor)
        elif mode == "drag":
            self.setCursor(Qt.ClosedHandCursor)
        else:
            self.unsetCursor()

    # ---------------- Pointer input ----------------

    def _set_capture(self, grab: bool) -> None:
        if grab:
            self.grabMouse()
            self._set_cursor_mode("drag")
        else:
            self.releaseMouse()
            self._set_cursor_mode("")

    def enterEvent(self, event):
        self.controller.pointer_enter()
        self.update()
        return super().enterEvent(event)

    def leaveEvent(self, event):
        self.controller.pointer_leave()
        QToolTip.hideText()
        if not self.controller.is_dragging:
            self._set_cursor_mode("")
        self.update()
        return super().leaveEvent(event)

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)

        pos = event.pos()
        hm = self._hit_test_marker(pos)
        if hm is not None and not self._on_playhead(pos):
            self.controller.seek_to_comment(hm.timestamp)
            self.marker_clicked.emit(hm.comment_id)
            self.update()
            event.accept()
            return

        self.controller.pointer_down(pos.x())
        self.update()
        event.accept()

    def mouseMoveEvent(self, event):
        pos = event.pos()
        inside = self.rect().contains(pos)
        self.controller.pointer_move(pos.x(), inside=inside)

        if not self.controller.is_dragging:
            hm = self._hit_test_marker(pos) if inside else None
            if hm is not None:
                self._set_cursor_mode("hand")
                c = next((m for m in self._markers if m.id == hm.comment_id), None)
                if c is not None:
                    QToolTip.showText(
                        self.mapToGlobal(hm.rect.topLeft()),
                        f"{format_display(c.timestamp)} - {c.content}",
                        self,
                    )
            else:
                self._set_cursor_mode("hand" if inside and self._on_playhead(pos) else "")
                QToolTip.hideText()

        self.update()

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton and self.controller.is_dragging:
            self.controller.pointer_up()
            if self.rect().contains(event.pos()):
                self.controller.pointer_move(event.pos().x(), inside=True)
            self.update()
            event.accept()
            return
        return super().mouseReleaseEvent(event)

    def focusOutEvent(self, event):
        self.controller.cancel()
        self.update()
        return super().focusOutEvent(event)

    def hideEvent(self, event):
        self.controller.cancel()
        return super().hideEvent(event)

    def closeEvent(self, event):
        self.controller.cancel()
        return super().closeEvent(event)

    def state(self) -> TimelineState:
        return self.controller.state
