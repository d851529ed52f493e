# video_review/dialogs/comment_dialog.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QTextEdit,
    QVBoxLayout,
)


class CommentDialog(QDialog):
    """
    Multi-line text prompt for a new comment or a reply.
    OK stays disabled until there is non-blank text.
    """

    def __init__(self, title: str, caption: str, placeholder: str = "Enter your comment...", parent=None):
        super().__init__(parent)
        self.setWindowTitle(title)
        self.setModal(True)
        self.resize(460, 240)

        layout = QVBoxLayout(self)

        head = QLabel(caption)
        head.setTextInteractionFlags(Qt.TextSelectableByMouse)
        layout.addWidget(head)

        self.text = QTextEdit()
        self.text.setPlaceholderText(placeholder)
        self.text.setAcceptRichText(False)
        layout.addWidget(self.text, stretch=1)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.button(QDialogButtonBox.Ok).setText("Save")
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        self.text.textChanged.connect(self._update_ok)
        self._update_ok()
        self.text.setFocus()

    def _update_ok(self) -> None:
        self.buttons.button(QDialogButtonBox.Ok).setEnabled(bool(self.value()))

    def value(self) -> str:
        return self.text.toPlainText().strip()


def prompt_comment_text(parent, title: str, caption: str, placeholder: str = "Enter your comment...") -> Optional[str]:
    dlg = CommentDialog(title, caption, placeholder, parent)
    if dlg.exec_() == QDialog.Accepted and dlg.value():
        return dlg.value()
    return None
