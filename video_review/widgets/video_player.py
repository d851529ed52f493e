# video_review/widgets/video_player.py
from __future__ import annotations

import os
from typing import Optional

from PyQt5.QtCore import QSize, QUrl, pyqtSignal
from PyQt5.QtMultimedia import QMediaContent, QMediaPlayer
from PyQt5.QtMultimediaWidgets import QVideoWidget
from PyQt5.QtWidgets import QSizePolicy, QVBoxLayout, QWidget


class VideoPlayer(QWidget):
    """
    One QMediaPlayer + video surface, reporting time in seconds.

    Signals:
      - position_changed(float)  current playback time
      - duration_changed(float)  media duration once metadata is known
      - playing_changed(bool)
      - clicked()                click on the picture (toggles play/pause in the window)
    """
    position_changed = pyqtSignal(float)
    duration_changed = pyqtSignal(float)
    playing_changed = pyqtSignal(bool)
    clicked = pyqtSignal()

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)

        self.video = QVideoWidget(self)
        self.video.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)
        self.video.setStyleSheet("background-color: black;")
        lay.addWidget(self.video)

        self._player = QMediaPlayer(None, QMediaPlayer.VideoSurface)
        self._player.setVideoOutput(self.video)
        self._player.positionChanged.connect(lambda ms: self.position_changed.emit(ms / 1000.0))
        self._player.durationChanged.connect(lambda ms: self.duration_changed.emit(ms / 1000.0))
        self._player.stateChanged.connect(
            lambda st: self.playing_changed.emit(st == QMediaPlayer.PlayingState)
        )
        self._player.setNotifyInterval(100)

        self._volume = 100
        self._muted = False

    # ---------------- Media ----------------

    def load(self, source: str) -> None:
        """source is an http(s) URL or a local path."""
        if not source:
            self._player.setMedia(QMediaContent())
            return
        if "://" in source:
            url = QUrl(source)
        else:
            url = QUrl.fromLocalFile(os.path.abspath(source))
        self._player.setMedia(QMediaContent(url))
        # show the first frame
        self._player.pause()

    def clear(self) -> None:
        self._player.stop()
        self._player.setMedia(QMediaContent())

    # ---------------- Playback ----------------

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def toggle(self) -> None:
        if self.is_playing():
            self.pause()
        else:
            self.play()

    def is_playing(self) -> bool:
        return self._player.state() == QMediaPlayer.PlayingState

    def seek(self, seconds: float) -> None:
        self._player.setPosition(int(round(max(0.0, float(seconds)) * 1000.0)))

    def position(self) -> float:
        return self._player.position() / 1000.0

    def duration(self) -> float:
        """Live duration as reported by the backend, 0 until metadata arrives."""
        return max(0, self._player.duration()) / 1000.0

    # ---------------- Volume ----------------

    def set_volume(self, volume: int) -> None:
        self._volume = max(0, min(int(volume), 100))
        self._muted = self._volume == 0
        self._player.setVolume(self._volume)

    def volume(self) -> int:
        return 0 if self._muted else self._volume

    def is_muted(self) -> bool:
        return self._muted

    def toggle_mute(self) -> None:
        if self._muted:
            self._muted = False
            self._player.setVolume(self._volume or 100)
        else:
            self._muted = True
            self._player.setVolume(0)

    # ---------------- Qt ----------------

    def mouseReleaseEvent(self, event):
        self.clicked.emit()
        return super().mouseReleaseEvent(event)

    def sizeHint(self) -> QSize:
        return QSize(960, 540)
