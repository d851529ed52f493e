# video_review/main_window.py
from __future__ import annotations

import logging
import os
from typing import List, Optional

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtWidgets import (
    QApplication,
    QComboBox,
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSlider,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from .comment_store import CommentStore
from .dialogs.comment_dialog import prompt_comment_text
from .dialogs.open_project import STATUS_LABELS, OpenProjectDialog
from .domain import Author, Comment, CommentDraft, CommentValidationError, Project, ProjectStatus
from .exports import CSV_FILENAME, SRT_FILENAME, to_csv, to_srt, write_export
from .media import resolve_media_source
from .persistence import ReviewConfig
from .projects import acknowledge_feedback, load_project, send_feedback, set_project_status, share_project
from .records.base import RecordStore, RecordStoreError
from .sync import CommentFeed
from .timeutils import format_display
from .widgets.comment_timeline import CommentTimeline
from .widgets.comments_panel import CommentsPanel
from .widgets.video_player import VideoPlayer

logger = logging.getLogger(__name__)


class ReviewWindow(QMainWindow):
    def __init__(self, records: RecordStore, cfg: Optional[ReviewConfig] = None, base_dir: Optional[str] = None):
        super().__init__()
        self.setWindowTitle("Video Review")
        self.resize(1400, 900)

        self.cfg: ReviewConfig = cfg or ReviewConfig()
        self.records = records
        self.base_dir = base_dir or os.getcwd()

        # Identity: a configured user id means the editor; otherwise an anonymous client.
        self.author = Author.editor(self.cfg.user_id) if self.cfg.user_id else Author.client()

        self.project: Optional[Project] = None
        self.comments = CommentStore(records)
        self.comments.add_listener(self._on_comments_changed)
        self.feed = CommentFeed(records, self.comments)

        self._busy = False

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(int(self.cfg.poll_interval_ms))
        self._poll_timer.timeout.connect(self._poll_comments)

        self._build_ui()
        self._update_enabled_state()

    @property
    def is_editor(self) -> bool:
        return self.author.is_editor

    # ---------------- UI ----------------

    def _build_ui(self):
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(6, 6, 6, 6)
        main_layout.setSpacing(6)

        # ===== Top: project + role =====
        top = QHBoxLayout()
        top.setSpacing(10)
        self.project_label = QLabel("No project loaded")
        self.project_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        self.role_label = QLabel(f"Reviewing as: {self.author.label}")
        self.btn_open = QPushButton("Open Project")
        self.btn_open.clicked.connect(self.open_project_dialog)

        # editor only: hand out the review link, set status by hand
        self.btn_share = QPushButton("Share")
        self.btn_share.clicked.connect(self._share_project)
        self.status_combo = QComboBox()
        for status in ProjectStatus.ALL:
            self.status_combo.addItem(STATUS_LABELS.get(status, status), status)
        self.status_combo.activated.connect(self._on_status_chosen)
        self.btn_share.setVisible(self.is_editor)
        self.status_combo.setVisible(self.is_editor)

        top.addWidget(self.project_label, stretch=1)
        top.addWidget(self.role_label)
        top.addWidget(self.status_combo)
        top.addWidget(self.btn_share)
        top.addWidget(self.btn_open)
        main_layout.addLayout(top)

        split = QSplitter(Qt.Horizontal)
        main_layout.addWidget(split, stretch=1)

        # ===== Left: player + controls + timeline =====
        left = QWidget()
        left_lay = QVBoxLayout(left)
        left_lay.setContentsMargins(0, 0, 0, 0)
        left_lay.setSpacing(6)

        self.player = VideoPlayer()
        self.player.position_changed.connect(self._on_position)
        self.player.duration_changed.connect(self._on_duration)
        self.player.playing_changed.connect(lambda _p: self._update_play_button())
        self.player.clicked.connect(self._toggle_play)
        left_lay.addWidget(self.player, stretch=1)

        play_bar = QHBoxLayout()
        play_bar.setSpacing(8)
        self.btn_play = QPushButton("Play")
        self.btn_play.clicked.connect(self._toggle_play)
        self.time_label = QLabel("0:00 / 0:00")
        self.btn_mute = QPushButton("Mute")
        self.btn_mute.clicked.connect(self._toggle_mute)
        self.volume_slider = QSlider(Qt.Horizontal)
        self.volume_slider.setRange(0, 100)
        self.volume_slider.setValue(100)
        self.volume_slider.setFixedWidth(110)
        self.volume_slider.valueChanged.connect(self._on_volume)
        self.btn_add_comment = QPushButton("Add Comment")
        self.btn_add_comment.clicked.connect(self._add_comment)

        play_bar.addWidget(self.btn_play)
        play_bar.addWidget(self.time_label)
        play_bar.addSpacing(12)
        play_bar.addWidget(self.btn_mute)
        play_bar.addWidget(self.volume_slider)
        play_bar.addStretch()
        play_bar.addWidget(self.btn_add_comment)
        left_lay.addLayout(play_bar)

        self.timeline = CommentTimeline(media_duration=self.player.duration)
        self.timeline.seek_requested.connect(self._seek_player)
        self.timeline.marker_clicked.connect(lambda cid: self.panel.select_comment(cid))
        left_lay.addWidget(self.timeline)

        # ===== Right: comments + exports =====
        right = QGroupBox("Comments")
        right_lay = QVBoxLayout(right)
        right_lay.setContentsMargins(6, 6, 6, 6)
        right_lay.setSpacing(6)

        self.panel = CommentsPanel(editor_view=self.is_editor)
        self.panel.seek_requested.connect(self._seek_to_comment)
        self.panel.reply_requested.connect(self._reply_to_comment)
        self.panel.toggle_requested.connect(self._toggle_completed)
        self.panel.delete_requested.connect(self._delete_comment)
        right_lay.addWidget(self.panel, stretch=1)

        export_bar = QHBoxLayout()
        self.btn_export_srt = QPushButton("Download Comments (.srt)")
        self.btn_export_csv = QPushButton("Download Comments (.csv)")
        self.btn_export_srt.clicked.connect(lambda: self._export(SRT_FILENAME))
        self.btn_export_csv.clicked.connect(lambda: self._export(CSV_FILENAME))
        export_bar.addWidget(self.btn_export_srt)
        export_bar.addWidget(self.btn_export_csv)
        right_lay.addLayout(export_bar)

        self.btn_send_feedback = QPushButton("Send Feedback")
        self.btn_send_feedback.clicked.connect(self._send_feedback)
        self.btn_send_feedback.setVisible(not self.is_editor)
        right_lay.addWidget(self.btn_send_feedback)

        split.addWidget(left)
        split.addWidget(right)
        split.setStretchFactor(0, 3)
        split.setStretchFactor(1, 2)

        for w in (
            self.btn_open, self.btn_share, self.btn_play, self.btn_mute, self.btn_add_comment,
            self.btn_export_srt, self.btn_export_csv, self.btn_send_feedback,
        ):
            w.setCursor(Qt.PointingHandCursor)

    # ---------------- Project loading ----------------

    def open_project_dialog(self):
        dlg = OpenProjectDialog(self.records, user_id=self.author.user_id, parent=self)
        if dlg.exec_() != dlg.Accepted:
            return
        project = dlg.selected_project()
        if project is not None:
            self.open_project(project)

    def open_project_by_id(self, project_id: str) -> bool:
        try:
            project = load_project(self.records, project_id)
        except RecordStoreError as e:
            QMessageBox.warning(self, "Could not load project", str(e))
            return False
        if project is None:
            QMessageBox.warning(self, "Not found", f"Project '{project_id}' does not exist.")
            return False
        self.open_project(project)
        return True

    def open_project(self, project: Project) -> None:
        try:
            self.comments.load(project.id)
        except RecordStoreError as e:
            QMessageBox.warning(self, "Could not load comments", str(e))
            return

        self.feed.stop()
        self._poll_timer.stop()
        self.timeline.controller.cancel()

        self.project = project
        self.project_label.setText(f"Project: {project.title or project.id}")

        ok, source = resolve_media_source(project.video_url, self.base_dir)
        if ok:
            self.player.load(source)
        else:
            self.player.clear()
            QMessageBox.warning(self, "Video unavailable", source)

        if self.is_editor and acknowledge_feedback(self.records, project):
            self.statusBar().showMessage("New client feedback on this project.", 4000)
        self._show_status()

        self.feed.start()
        if self.feed.uses_polling:
            self._poll_timer.start()

        self._update_enabled_state()

    def _poll_comments(self) -> None:
        self.feed.poll()

    # ---------------- Store -> views ----------------

    def _on_comments_changed(self, comments: List[Comment]) -> None:
        self.panel.set_comments(comments)
        self.timeline.set_comments(comments)
        self._update_enabled_state()

    # ---------------- Playback ----------------

    def _on_position(self, seconds: float) -> None:
        if self.timeline.controller.is_dragging:
            return
        self.timeline.set_time(seconds)
        self._update_time_label()

    def _on_duration(self, seconds: float) -> None:
        self.timeline.set_duration(seconds)
        self._update_time_label()

    def _seek_player(self, seconds: float) -> None:
        self.player.seek(seconds)
        self._update_time_label()

    def _seek_to_comment(self, timestamp: float) -> None:
        # keeps playing if it was playing; stays paused otherwise
        self.timeline.seek_to_comment(timestamp)

    def _toggle_play(self) -> None:
        if self.project is None:
            return
        self.player.toggle()

    def _update_play_button(self) -> None:
        self.btn_play.setText("Pause" if self.player.is_playing() else "Play")

    def _update_time_label(self) -> None:
        cur = self.timeline.controller.current_time
        dur = self.timeline.controller.duration()
        self.time_label.setText(f"{format_display(cur)} / {format_display(dur)}")

    def _toggle_mute(self) -> None:
        self.player.toggle_mute()
        self.btn_mute.setText("Unmute" if self.player.is_muted() else "Mute")

    def _on_volume(self, value: int) -> None:
        self.player.set_volume(value)
        self.btn_mute.setText("Unmute" if self.player.is_muted() else "Mute")

    # ---------------- Comment actions ----------------

    def _set_busy(self, busy: bool) -> None:
        self._busy = bool(busy)
        self.panel.set_busy(busy)
        self._update_enabled_state()

    def _add_comment(self) -> None:
        if self.project is None or self._busy:
            return
        self.player.pause()
        at = self.timeline.controller.current_time

        text = prompt_comment_text(self, "Add Comment", f"Adding comment at {format_display(at)}")
        if text is None:
            return

        draft = CommentDraft(content=text, timestamp=at, project_id=self.project.id, author=self.author)
        self._set_busy(True)
        try:
            self.comments.create(draft)
        except CommentValidationError as e:
            QMessageBox.information(self, "Comment not saved", str(e))
        except RecordStoreError as e:
            QMessageBox.warning(self, "Save failed", f"Failed to save comment. Please try again.\n\n{e}")
        finally:
            self._set_busy(False)

    def _reply_to_comment(self, comment_id: str) -> None:
        parent = self.comments.get(comment_id)
        if parent is None or self._busy:
            return
        text = prompt_comment_text(
            self,
            "Reply",
            f"Replying to comment at {format_display(parent.timestamp)}",
            placeholder="Add your reply...",
        )
        if text is None:
            return

        self._set_busy(True)
        try:
            self.comments.reply(comment_id, text, self.author)
        except CommentValidationError as e:
            QMessageBox.information(self, "Reply not saved", str(e))
        except RecordStoreError as e:
            QMessageBox.warning(self, "Save failed", f"Failed to save reply. Please try again.\n\n{e}")
        finally:
            self._set_busy(False)

    def _toggle_completed(self, comment_id: str) -> None:
        if self._busy or not self.is_editor:
            return
        self._set_busy(True)
        try:
            self.comments.toggle_completed(comment_id)
        except CommentValidationError:
            pass
        except RecordStoreError as e:
            QMessageBox.warning(
                self, "Update failed", f"Failed to update completion status. Please try again.\n\n{e}"
            )
        finally:
            self._set_busy(False)

    def _confirm_delete(self, c: Comment) -> bool:
        resp = QMessageBox.question(
            self,
            "Delete comment",
            f"Are you sure you want to delete this comment?\n\n{format_display(c.timestamp)} - {c.content}",
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        return resp == QMessageBox.Yes

    def _delete_comment(self, comment_id: str) -> None:
        c = self.comments.get(comment_id)
        if c is None or self._busy or not self.panel.can_delete(c):
            return
        self._set_busy(True)
        try:
            self.comments.delete(comment_id, confirm=self._confirm_delete)
        except CommentValidationError:
            pass
        except RecordStoreError as e:
            QMessageBox.warning(self, "Delete failed", f"Failed to delete comment. Please try again.\n\n{e}")
        finally:
            self._set_busy(False)

    # ---------------- Exports / feedback ----------------

    def _export(self, filename: str) -> None:
        if self.project is None:
            return
        text = to_srt(self.comments.comments()) if filename == SRT_FILENAME else to_csv(self.comments.comments())

        start = os.path.join(self.cfg.export_dir or self.base_dir, filename)
        path, _ = QFileDialog.getSaveFileName(self, "Save comments", start)
        if not path:
            return
        try:
            write_export(path, text)
        except OSError as e:
            logger.error("export to %s failed: %s", path, e)
            QMessageBox.warning(self, "Export failed", str(e))
            return
        self.statusBar().showMessage(f"Saved {path}", 4000)

    def _send_feedback(self) -> None:
        if self.project is None or self._busy:
            return
        self._set_busy(True)
        try:
            self.project = send_feedback(self.records, self.project.id, self.comments.has_comments())
        except CommentValidationError as e:
            QMessageBox.information(self, "Nothing to send", str(e))
            return
        except RecordStoreError as e:
            QMessageBox.warning(self, "Send failed", f"Failed to send feedback. Please try again.\n\n{e}")
            return
        finally:
            self._set_busy(False)
        QMessageBox.information(self, "Feedback sent", "Feedback sent successfully! The editor has been notified.")

    # ---------------- Project status (editor) ----------------

    def _show_status(self) -> None:
        if self.project is None:
            return
        idx = self.status_combo.findData(self.project.status)
        if idx >= 0:
            self.status_combo.setCurrentIndex(idx)

    def _share_project(self) -> None:
        if self.project is None or self._busy or not self.is_editor:
            return
        self._set_busy(True)
        try:
            link = share_project(self.records, self.project, self.cfg.review_base_url)
        finally:
            self._set_busy(False)
        QApplication.clipboard().setText(link)
        self._show_status()
        if self.project.status == ProjectStatus.IN_REVIEW:
            self.statusBar().showMessage('Link copied to clipboard! Status updated to "In Review"', 4000)
        else:
            self.statusBar().showMessage("Link copied to clipboard. The status could not be updated.", 4000)

    def _on_status_chosen(self, index: int) -> None:
        if self.project is None or self._busy or not self.is_editor:
            return
        status = self.status_combo.itemData(index)
        if status == self.project.status:
            return
        self._set_busy(True)
        try:
            set_project_status(self.records, self.project, status)
        except (ValueError, RecordStoreError) as e:
            QMessageBox.warning(self, "Update failed", f"Failed to update project status.\n\n{e}")
        finally:
            self._set_busy(False)
        self._show_status()

    # ---------------- State ----------------

    def _update_enabled_state(self) -> None:
        loaded = self.project is not None
        idle = loaded and not self._busy
        self.btn_play.setEnabled(loaded)
        self.btn_add_comment.setEnabled(idle)
        self.btn_export_srt.setEnabled(loaded)
        self.btn_export_csv.setEnabled(loaded)
        self.btn_send_feedback.setEnabled(idle and self.comments.has_comments())
        self.btn_share.setEnabled(idle)
        self.status_combo.setEnabled(idle)
        self.timeline.setEnabled(loaded)

    def closeEvent(self, event):
        self._poll_timer.stop()
        self.feed.stop()
        self.timeline.controller.cancel()
        self.player.clear()
        try:
            self.records.close()
        except RecordStoreError as e:
            logger.warning("closing record store failed: %s", e)
        super().closeEvent(event)
