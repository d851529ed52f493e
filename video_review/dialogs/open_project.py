# video_review/dialogs/open_project.py
from __future__ import annotations

import logging
from typing import List, Optional

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QAbstractItemView,
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
)

from ..domain import Project, ProjectStatus
from ..projects import list_projects
from ..records.base import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    ProjectStatus.PENDING: "pending",
    ProjectStatus.IN_REVIEW: "in review",
    ProjectStatus.COMMENT_NOTIFICATION: "new comments",
    ProjectStatus.COMPLETED: "completed",
}


class OpenProjectDialog(QDialog):
    """
    Lists projects in the record store (an editor only sees their own) and picks one.
    """

    def __init__(self, records: RecordStore, user_id: Optional[str] = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Open Project")
        self.setModal(True)
        self.resize(620, 420)

        self._records = records
        self._user_id = user_id
        self._projects: List[Project] = []
        self._selected: Optional[Project] = None

        self._build_ui()
        self._load_projects()

    def selected_project(self) -> Optional[Project]:
        return self._selected

    # ---------------- UI ----------------

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        layout.addWidget(QLabel("Select a project to review:"))

        self.list = QListWidget()
        self.list.setSelectionMode(QAbstractItemView.SingleSelection)
        self.list.itemDoubleClicked.connect(self._on_double_click)
        layout.addWidget(self.list, stretch=1)

        btn_row = QHBoxLayout()
        self.btn_refresh = QPushButton("Refresh")
        self.btn_refresh.setCursor(Qt.PointingHandCursor)
        self.btn_refresh.clicked.connect(self._load_projects)
        btn_row.addWidget(self.btn_refresh)
        btn_row.addStretch()
        layout.addLayout(btn_row)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self._on_accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _load_projects(self):
        self.list.clear()
        try:
            self._projects = list_projects(self._records, self._user_id)
        except RecordStoreError as e:
            logger.error("could not list projects: %s", e)
            QMessageBox.warning(self, "Could not load projects", str(e))
            self._projects = []
            return

        for p in self._projects:
            status = STATUS_LABELS.get(p.status, p.status)
            it = QListWidgetItem(f"{p.title or p.id}   [{status}]")
            it.setData(Qt.UserRole, p.id)
            self.list.addItem(it)

        if self._projects:
            self.list.setCurrentRow(0)

    # ---------------- Actions ----------------

    def _on_double_click(self, item: QListWidgetItem):
        if item is None:
            return
        self.list.setCurrentItem(item)
        self._on_accept()

    def _on_accept(self):
        item = self.list.currentItem()
        pid = item.data(Qt.UserRole) if item is not None else None
        project = next((p for p in self._projects if p.id == pid), None)
        if project is None:
            QMessageBox.warning(self, "No selection", "Please select a project.")
            return
        self._selected = project
        self.accept()
