# video_review/comment_store.py
"""
Client-side collection of one project's comments.

Local state only ever reflects what the record store confirmed: every mutation
goes to the store first and touches the local list only after it succeeds.
On RecordStoreError the list is unchanged and the error propagates to the caller.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional

from .domain import (
    COMMENTS_TABLE,
    POLLED_COMMENT_FIELDS,
    REPLY_MARKER,
    Author,
    Comment,
    CommentDraft,
    CommentValidationError,
    apply_record_fields,
    is_reply_content,
    reply_content,
)
from .records.base import CHANGE_DELETE, CHANGE_INSERT, CHANGE_UPDATE, RecordChange, RecordStore

logger = logging.getLogger(__name__)

Listener = Callable[[List[Comment]], None]


def _same_project(row: Dict, project_id: str) -> bool:
    # backends may hand ids back as ints; rows without the column are assumed to match
    pid = row.get("project_id")
    return pid is None or str(pid) == str(project_id)


class CommentStore:
    def __init__(self, records: RecordStore, project_id: Optional[str] = None):
        self._records = records
        self._project_id = project_id
        self._comments: List[Comment] = []
        self._listeners: List[Listener] = []

        # Bumped on every confirmed local mutation; comment id -> revision it was last touched at.
        self._revision = 0
        self._touched: Dict[str, int] = {}

    # ---------------- Read access ----------------

    @property
    def project_id(self) -> Optional[str]:
        return self._project_id

    @property
    def revision(self) -> int:
        return self._revision

    def comments(self) -> List[Comment]:
        return list(self._comments)

    def get(self, comment_id: str) -> Optional[Comment]:
        for c in self._comments:
            if c.id == comment_id:
                return c
        return None

    def has_comments(self) -> bool:
        return any(not c.is_reply for c in self._comments)

    def __len__(self) -> int:
        return len(self._comments)

    # ---------------- Listeners ----------------

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def remove_listener(self, fn: Listener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def _notify(self) -> None:
        snapshot = self.comments()
        for fn in list(self._listeners):
            fn(snapshot)

    def _touch(self, comment_id: str) -> None:
        self._revision += 1
        self._touched[comment_id] = self._revision

    # ---------------- Operations ----------------

    def load(self, project_id: Optional[str] = None) -> List[Comment]:
        """Fetch all comments for the project ordered by timestamp. Replaces the local list."""
        pid = project_id or self._project_id
        if not pid:
            raise CommentValidationError("No project selected.")
        rows = self._records.select(COMMENTS_TABLE, {"project_id": pid}, order="timestamp")

        self._project_id = pid
        self._comments = [Comment.from_record(r) for r in rows]
        self._touched = {}
        self._revision += 1
        self._notify()
        return self.comments()

    def create(self, draft: CommentDraft) -> Comment:
        if not draft.content or not draft.content.strip():
            raise CommentValidationError("Comment text is empty.")
        if not draft.project_id:
            raise CommentValidationError("No project selected.")
        if not draft.parent_id and is_reply_content(draft.content.strip()):
            raise CommentValidationError(f"Comments cannot start with '{REPLY_MARKER.strip()}'.")

        row = self._records.insert(COMMENTS_TABLE, draft.to_record())
        comment = Comment.from_record(row)

        # a push subscription may already have delivered this row
        if self.get(comment.id) is None:
            self._comments.append(comment)
        else:
            self._replace(comment)
        self._touch(comment.id)
        self._notify()
        return comment

    def update(self, comment_id: str, patch: Dict) -> Comment:
        current = self.get(comment_id)
        if current is None:
            raise CommentValidationError(f"Comment {comment_id} is not loaded.")
        if not patch:
            return current

        row = self._records.update(COMMENTS_TABLE, comment_id, dict(patch))
        confirmed = apply_record_fields(current, row if row else patch)
        self._replace(confirmed)
        self._touch(comment_id)
        self._notify()
        return confirmed

    def toggle_completed(self, comment_id: str) -> Comment:
        current = self.get(comment_id)
        if current is None:
            raise CommentValidationError(f"Comment {comment_id} is not loaded.")
        return self.update(comment_id, {"is_completed": not current.is_completed})

    def delete(self, comment_id: str, confirm: Callable[[Comment], bool]) -> bool:
        """
        Hard-delete after confirm(comment) returns True.
        Returns False when the user declined (nothing is sent).
        """
        current = self.get(comment_id)
        if current is None:
            raise CommentValidationError(f"Comment {comment_id} is not loaded.")
        if not confirm(current):
            return False

        self._records.delete(COMMENTS_TABLE, comment_id)
        self._comments = [c for c in self._comments if c.id != comment_id]
        self._touch(comment_id)
        self._notify()
        return True

    def reply(self, parent_id: str, text: str, author: Author) -> Optional[Comment]:
        """Reply to a top-level comment; returns None (and sends nothing) for blank text."""
        if not text or not text.strip():
            return None
        parent = self.get(parent_id)
        if parent is None:
            raise CommentValidationError("Parent comment not found.")
        if parent.is_reply:
            raise CommentValidationError("Replies cannot be replied to.")

        return self.create(
            CommentDraft(
                content=reply_content(text),
                timestamp=parent.timestamp,
                project_id=parent.project_id,
                author=author,
                parent_id=parent.id,
            )
        )

    # ---------------- Remote refresh ----------------

    def merge_polled(
        self,
        rows: Iterable[Dict],
        fields: Iterable[str] = POLLED_COMMENT_FIELDS,
        since_revision: Optional[int] = None,
    ) -> bool:
        """
        Fold a polled snapshot into the local list.

        Only `fields` are copied onto known comments, and never onto a comment that was
        changed locally after since_revision (the snapshot may predate that change).
        Unknown rows are added unless they were deleted locally meanwhile.
        Returns True if anything changed.
        """
        fields = tuple(fields)
        changed = False
        for row in rows or []:
            rid = str(row.get("id") or "")
            if not rid:
                continue
            if since_revision is not None and self._touched.get(rid, 0) > since_revision:
                continue
            if self._project_id and not _same_project(row, self._project_id):
                continue

            current = self.get(rid)
            if current is None:
                self._comments.append(Comment.from_record(row))
                changed = True
                continue

            merged = apply_record_fields(current, row, fields)
            if merged != current:
                self._replace(merged)
                changed = True

        if changed:
            self._notify()
        return changed

    def apply_change(self, change: RecordChange) -> bool:
        """Apply one pushed change. Repeats and echoes of local writes are harmless."""
        if change.table != COMMENTS_TABLE:
            return False
        row = change.row or {}
        rid = str(row.get("id") or "")
        if not rid:
            return False
        if self._project_id and not _same_project(row, self._project_id):
            return False

        current = self.get(rid)
        if change.kind == CHANGE_INSERT:
            if current is not None:
                return False
            self._comments.append(Comment.from_record(row))
        elif change.kind == CHANGE_UPDATE:
            if current is None:
                return False
            merged = apply_record_fields(current, row)
            if merged == current:
                return False
            self._replace(merged)
        elif change.kind == CHANGE_DELETE:
            if current is None:
                return False
            self._comments = [c for c in self._comments if c.id != rid]
        else:
            logger.warning("ignoring unknown change kind %r", change.kind)
            return False

        self._notify()
        return True

    # ---------------- Helpers ----------------

    def _replace(self, comment: Comment) -> None:
        self._comments = [comment if c.id == comment.id else c for c in self._comments]
