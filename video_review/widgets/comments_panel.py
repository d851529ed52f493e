# video_review/widgets/comments_panel.py
from __future__ import annotations

from typing import Dict, List, Optional

from PyQt5.QtCore import Qt, pyqtSignal
from PyQt5.QtGui import QBrush, QColor, QFont
from PyQt5.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QMenu,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from ..domain import Comment
from ..ordering import DisplayComment, group_threads
from ..timeutils import format_display
from .comment_timeline import CLIENT_COLOR, EDITOR_COLOR

COLUMNS = ["time", "author", "comment", "status"]

_ID_ROLE = Qt.UserRole
_TIME_ROLE = Qt.UserRole + 1


class CommentsPanel(QWidget):
    """
    Threaded comment list, re-sorted and re-numbered on every set_comments().

    Editor view: reply + mark completed on top-level comments, delete anything.
    Client view: delete client-authored top-level comments only.

    Signals:
      - seek_requested(float)   click on a row
      - reply_requested(str)    comment id
      - toggle_requested(str)   comment id
      - delete_requested(str)   comment id
    """
    seek_requested = pyqtSignal(float)
    reply_requested = pyqtSignal(str)
    toggle_requested = pyqtSignal(str)
    delete_requested = pyqtSignal(str)

    def __init__(self, parent: Optional[QWidget] = None, editor_view: bool = True):
        super().__init__(parent)
        self._editor_view = bool(editor_view)
        self._comments: Dict[str, Comment] = {}
        self._busy = False

        lay = QVBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.setSpacing(6)

        self.tree = QTreeWidget(self)
        self.tree.setColumnCount(len(COLUMNS))
        self.tree.setHeaderLabels(COLUMNS)
        self.tree.setRootIsDecorated(True)
        self.tree.setSelectionMode(QAbstractItemView.SingleSelection)
        self.tree.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.tree.setWordWrap(True)
        self.tree.header().setStretchLastSection(False)
        self.tree.setColumnWidth(0, 70)
        self.tree.setColumnWidth(1, 110)
        self.tree.setColumnWidth(2, 360)
        self.tree.setContextMenuPolicy(Qt.CustomContextMenu)
        self.tree.customContextMenuRequested.connect(self._show_context_menu)
        self.tree.itemClicked.connect(self._on_item_clicked)
        self.tree.currentItemChanged.connect(lambda *_: self._update_buttons())
        lay.addWidget(self.tree, stretch=1)

        actions = QHBoxLayout()
        actions.setSpacing(8)
        self.btn_reply = QPushButton("Reply")
        self.btn_toggle = QPushButton("Mark Completed")
        self.btn_delete = QPushButton("Delete")
        self.btn_reply.clicked.connect(lambda: self._emit_for_selected(self.reply_requested))
        self.btn_toggle.clicked.connect(lambda: self._emit_for_selected(self.toggle_requested))
        self.btn_delete.clicked.connect(lambda: self._emit_for_selected(self.delete_requested))
        for b in (self.btn_reply, self.btn_toggle, self.btn_delete):
            b.setCursor(Qt.PointingHandCursor)
        actions.addWidget(self.btn_reply)
        actions.addWidget(self.btn_toggle)
        actions.addStretch()
        actions.addWidget(self.btn_delete)
        lay.addLayout(actions)

        self.btn_reply.setVisible(self._editor_view)
        self.btn_toggle.setVisible(self._editor_view)
        self._update_buttons()

    # ---------------- Public API ----------------

    def set_editor_view(self, editor_view: bool) -> None:
        self._editor_view = bool(editor_view)
        self.btn_reply.setVisible(self._editor_view)
        self.btn_toggle.setVisible(self._editor_view)
        self._update_buttons()

    def set_busy(self, busy: bool) -> None:
        """Disable actions while a request is in flight."""
        self._busy = bool(busy)
        self._update_buttons()

    def set_comments(self, comments: List[Comment]) -> None:
        selected = self.selected_comment_id()
        self._comments = {c.id: c for c in comments or []}

        self.tree.clear()
        restore: Optional[QTreeWidgetItem] = None
        for thread in group_threads(comments):
            if thread.root is not None:
                parent_item = self._make_item(thread.root)
                self.tree.addTopLevelItem(parent_item)
                for dc in thread.replies:
                    child = self._make_item(dc)
                    parent_item.addChild(child)
                    if dc.comment.id == selected:
                        restore = child
                parent_item.setExpanded(True)
                if thread.root.comment.id == selected:
                    restore = parent_item
            else:
                for dc in thread.replies:
                    item = self._make_item(dc)
                    self.tree.addTopLevelItem(item)
                    if dc.comment.id == selected:
                        restore = item

        if restore is not None:
            self.tree.setCurrentItem(restore)
        self._update_buttons()

    def selected_comment_id(self) -> Optional[str]:
        item = self.tree.currentItem()
        if item is None:
            return None
        return item.data(0, _ID_ROLE)

    def select_comment(self, comment_id: str) -> None:
        it = self._find_item(comment_id)
        if it is not None:
            self.tree.setCurrentItem(it)
            self.tree.scrollToItem(it)

    # ---------------- Permissions ----------------

    def can_reply(self, c: Optional[Comment]) -> bool:
        return c is not None and self._editor_view and not c.is_reply

    def can_toggle(self, c: Optional[Comment]) -> bool:
        return c is not None and self._editor_view and not c.is_reply

    def can_delete(self, c: Optional[Comment]) -> bool:
        if c is None:
            return False
        if self._editor_view:
            return True
        return not c.is_reply and not c.author.is_editor

    # ---------------- Items ----------------

    def _make_item(self, dc: DisplayComment) -> QTreeWidgetItem:
        c = dc.comment
        status = ""
        if not c.is_reply and c.is_completed:
            status = "Completed"
        elif dc.orphan:
            status = "Reply (no parent)"

        item = QTreeWidgetItem([format_display(c.timestamp), dc.label, c.body if c.is_reply else c.content, status])
        item.setData(0, _ID_ROLE, c.id)
        item.setData(0, _TIME_ROLE, float(c.timestamp))
        item.setToolTip(2, c.content)
        item.setForeground(1, QBrush(QColor(EDITOR_COLOR if c.author.is_editor else CLIENT_COLOR)))
        if c.is_reply:
            f = QFont(item.font(2))
            f.setItalic(True)
            item.setFont(2, f)
        if not c.is_reply and c.is_completed:
            f = QFont(item.font(2))
            f.setStrikeOut(True)
            item.setFont(2, f)
        return item

    def _find_item(self, comment_id: str) -> Optional[QTreeWidgetItem]:
        for i in range(self.tree.topLevelItemCount()):
            top = self.tree.topLevelItem(i)
            if top.data(0, _ID_ROLE) == comment_id:
                return top
            for j in range(top.childCount()):
                ch = top.child(j)
                if ch.data(0, _ID_ROLE) == comment_id:
                    return ch
        return None

    # ---------------- Interaction ----------------

    def _on_item_clicked(self, item: QTreeWidgetItem, _col: int) -> None:
        t = item.data(0, _TIME_ROLE)
        if t is not None:
            self.seek_requested.emit(float(t))

    def _emit_for_selected(self, signal) -> None:
        cid = self.selected_comment_id()
        if cid and not self._busy:
            signal.emit(cid)

    def _update_buttons(self) -> None:
        c = self._comments.get(self.selected_comment_id() or "")
        self.btn_reply.setEnabled(not self._busy and self.can_reply(c))
        self.btn_toggle.setEnabled(not self._busy and self.can_toggle(c))
        self.btn_delete.setEnabled(not self._busy and self.can_delete(c))
        if c is not None and c.is_completed:
            self.btn_toggle.setText("Mark Incomplete")
        else:
            self.btn_toggle.setText("Mark Completed")

    def _show_context_menu(self, pos) -> None:
        item = self.tree.itemAt(pos)
        if item is None or self._busy:
            return
        self.tree.setCurrentItem(item)
        c = self._comments.get(item.data(0, _ID_ROLE))
        if c is None:
            return

        menu = QMenu(self)
        act_seek = menu.addAction(f"Go to {format_display(c.timestamp)}")
        act_reply = menu.addAction("Reply") if self.can_reply(c) else None
        act_toggle = None
        if self.can_toggle(c):
            act_toggle = menu.addAction("Mark as incomplete" if c.is_completed else "Mark as completed")
        act_delete = menu.addAction("Delete") if self.can_delete(c) else None

        chosen = menu.exec_(self.tree.viewport().mapToGlobal(pos))
        if chosen is None:
            return
        if chosen == act_seek:
            self.seek_requested.emit(float(c.timestamp))
        elif chosen == act_reply:
            self.reply_requested.emit(c.id)
        elif chosen == act_toggle:
            self.toggle_requested.emit(c.id)
        elif chosen == act_delete:
            self.delete_requested.emit(c.id)
