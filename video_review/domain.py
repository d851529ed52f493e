# video_review/domain.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional


# Leading marker that turns a comment row into a reply.
REPLY_MARKER = "Reply: "

# Table names in the record store
PROJECTS_TABLE = "projects"
COMMENTS_TABLE = "comments"


class CommentValidationError(ValueError):
    """Rejected locally before any request is made (empty text, unknown parent...)."""


# -----------------------------
# Authorship
# -----------------------------

@dataclass(frozen=True)
class Author:
    """
    Who wrote a comment.

    An editor is the signed-in owner of the project and carries a user id.
    A client is an anonymous reviewer reached through a share link.
    Stored as the nullable ``created_by`` column (None -> client).
    """
    user_id: Optional[str] = None

    @staticmethod
    def editor(user_id: str) -> "Author":
        if not user_id:
            raise ValueError("editor author requires a user id")
        return Author(user_id=str(user_id))

    @staticmethod
    def client() -> "Author":
        return Author(user_id=None)

    @staticmethod
    def from_created_by(created_by: Optional[str]) -> "Author":
        return Author(user_id=str(created_by)) if created_by else Author(user_id=None)

    @property
    def is_editor(self) -> bool:
        return bool(self.user_id)

    @property
    def label(self) -> str:
        return "Editor" if self.is_editor else "Client"

    def to_created_by(self) -> Optional[str]:
        return self.user_id if self.is_editor else None


# -----------------------------
# Comments
# -----------------------------

def is_reply_content(content: str) -> bool:
    return str(content or "").startswith(REPLY_MARKER)


def reply_content(text: str) -> str:
    return f"{REPLY_MARKER}{str(text or '').strip()}"


@dataclass(frozen=True)
class Comment:
    """
    A timestamped remark on a project's video.

    timestamp is in seconds from the start of the video.
    parent_id links a reply to its top-level comment; rows written before the
    column existed only carry the "Reply: " prefix and share the parent's timestamp.
    """
    id: str
    content: str
    timestamp: float
    project_id: str
    author: Author = field(default_factory=Author.client)
    created_at: Optional[str] = None
    is_completed: bool = False
    deleted_at: Optional[str] = None
    parent_id: Optional[str] = None

    @property
    def is_reply(self) -> bool:
        return is_reply_content(self.content)

    @property
    def body(self) -> str:
        if self.is_reply:
            return self.content[len(REPLY_MARKER):]
        return self.content

    @property
    def is_deleted(self) -> bool:
        return bool(self.deleted_at)

    def with_fields(self, **changes) -> "Comment":
        return replace(self, **changes)

    def to_record(self) -> Dict:
        return {
            "id": self.id,
            "content": self.content,
            "timestamp": float(self.timestamp),
            "project_id": self.project_id,
            "created_by": self.author.to_created_by(),
            "created_at": self.created_at,
            "is_completed": bool(self.is_completed),
            "deleted_at": self.deleted_at,
            "parent_id": self.parent_id,
        }

    @staticmethod
    def from_record(d: Dict) -> "Comment":
        return Comment(
            id=str(d["id"]),
            content=str(d.get("content") or ""),
            timestamp=float(d.get("timestamp") or 0.0),
            project_id=str(d.get("project_id") or ""),
            author=Author.from_created_by(d.get("created_by")),
            created_at=d.get("created_at"),
            is_completed=bool(d.get("is_completed") or False),
            deleted_at=d.get("deleted_at") or None,
            parent_id=(str(d["parent_id"]) if d.get("parent_id") else None),
        )


# Columns a status poll is allowed to overwrite on an existing comment.
POLLED_COMMENT_FIELDS = ("is_completed", "deleted_at")

# Record column -> Comment attribute, for fields that may be patched.
_COMMENT_FIELD_FROM_COLUMN = {
    "content": "content",
    "timestamp": "timestamp",
    "is_completed": "is_completed",
    "deleted_at": "deleted_at",
    "parent_id": "parent_id",
    "created_by": "author",
    "created_at": "created_at",
}


def apply_record_fields(comment: Comment, row: Dict, fields=None) -> Comment:
    """Copy the given record columns (all known ones if None) from row onto comment."""
    names = list(fields) if fields is not None else list(_COMMENT_FIELD_FROM_COLUMN)
    changes = {}
    for col in names:
        if col not in row or col not in _COMMENT_FIELD_FROM_COLUMN:
            continue
        value = row[col]
        if col == "created_by":
            value = Author.from_created_by(value)
        elif col == "timestamp":
            value = float(value or 0.0)
        elif col == "is_completed":
            value = bool(value)
        elif col in ("deleted_at", "parent_id"):
            value = value or None
        changes[_COMMENT_FIELD_FROM_COLUMN[col]] = value
    if not changes:
        return comment
    return replace(comment, **changes)


@dataclass(frozen=True)
class CommentDraft:
    content: str
    timestamp: float
    project_id: str
    author: Author = field(default_factory=Author.client)
    parent_id: Optional[str] = None

    def to_record(self) -> Dict:
        row = {
            "content": self.content.strip(),
            "timestamp": max(0.0, float(self.timestamp)),
            "project_id": self.project_id,
            "created_by": self.author.to_created_by(),
        }
        if self.parent_id:
            row["parent_id"] = self.parent_id
        return row


# -----------------------------
# Projects
# -----------------------------

class ProjectStatus:
    PENDING = "pending"
    IN_REVIEW = "in_review"
    COMMENT_NOTIFICATION = "comment_notification"
    COMPLETED = "completed"

    ALL = (PENDING, IN_REVIEW, COMMENT_NOTIFICATION, COMPLETED)


@dataclass
class Project:
    """
    A video shared for review.

    video_url is whatever the upload step produced: an http(s) URL or a path.
    user_id is the owning editor.
    """
    id: str
    title: str
    video_url: str = ""
    thumbnail_url: Optional[str] = None
    status: str = ProjectStatus.PENDING
    user_id: Optional[str] = None
    created_at: Optional[str] = None

    def to_record(self) -> Dict:
        return {
            "id": self.id,
            "title": self.title,
            "video_url": self.video_url,
            "thumbnail_url": self.thumbnail_url,
            "status": self.status,
            "user_id": self.user_id,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_record(d: Dict) -> "Project":
        return Project(
            id=str(d["id"]),
            title=str(d.get("title") or ""),
            video_url=str(d.get("video_url") or ""),
            thumbnail_url=d.get("thumbnail_url") or None,
            status=str(d.get("status") or ProjectStatus.PENDING),
            user_id=d.get("user_id") or None,
            created_at=d.get("created_at"),
        )


def comments_from_records(rows: List[Dict]) -> List[Comment]:
    return [Comment.from_record(r) for r in (rows or [])]
