# video_review/ordering.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from .domain import Comment


# -----------------------------
# Sort order
# -----------------------------

def display_sort_key(c: Comment):
    # created_at is an ISO-8601 string from the store; missing sorts first
    return (float(c.timestamp), 1 if c.is_reply else 0, c.created_at or "")


def sort_for_display(comments: Iterable[Comment]) -> List[Comment]:
    """Timestamp, then top-level before replies, then creation time. Stable for full ties."""
    return sorted(comments or [], key=display_sort_key)


# -----------------------------
# Numbering
# -----------------------------

def number_comments(comments: Iterable[Comment]) -> Dict[str, int]:
    """
    comment id -> display number.

    Editor and client comments are counted separately, each 1-based by timestamp.
    Replies get no number.
    """
    editor_n = 0
    client_n = 0
    out: Dict[str, int] = {}
    for c in sort_for_display(comments):
        if c.is_reply:
            continue
        if c.author.is_editor:
            editor_n += 1
            out[c.id] = editor_n
        else:
            client_n += 1
            out[c.id] = client_n
    return out


# -----------------------------
# Threads
# -----------------------------

@dataclass(frozen=True)
class DisplayComment:
    comment: Comment
    number: Optional[int] = None
    parent_id: Optional[str] = None
    orphan: bool = False

    @property
    def is_reply(self) -> bool:
        return self.comment.is_reply

    @property
    def label(self) -> str:
        """"Editor #2", "Client #1"; replies show the bare role."""
        role = self.comment.author.label
        if self.number:
            return f"{role} #{self.number}"
        return role


@dataclass
class Thread:
    """A top-level comment and its replies. root is None for replies whose parent is gone."""
    root: Optional[DisplayComment]
    replies: List[DisplayComment] = field(default_factory=list)

    @property
    def timestamp(self) -> float:
        if self.root is not None:
            return float(self.root.comment.timestamp)
        return float(self.replies[0].comment.timestamp) if self.replies else 0.0


def iter_display(comments: Iterable[Comment]) -> Iterator[DisplayComment]:
    """
    Yield every comment in display order with its number and resolved parent.

    A reply with a parent_id attaches to that comment, or is an orphan when it is gone.
    Older rows without parent_id attach to the nearest preceding top-level comment
    with the same timestamp, or are orphans when there is none.
    Nothing is cached: call again after any change.
    """
    ordered = sort_for_display(comments)
    numbers = number_comments(ordered)
    top_level_ids = {c.id for c in ordered if not c.is_reply}

    last_top_at: Dict[float, str] = {}
    for c in ordered:
        if not c.is_reply:
            last_top_at[float(c.timestamp)] = c.id
            yield DisplayComment(comment=c, number=numbers.get(c.id))
            continue

        parent_id: Optional[str] = None
        if c.parent_id:
            if c.parent_id in top_level_ids:
                parent_id = c.parent_id
        else:
            parent_id = last_top_at.get(float(c.timestamp))
        yield DisplayComment(comment=c, number=None, parent_id=parent_id, orphan=parent_id is None)


def group_threads(comments: Iterable[Comment]) -> List[Thread]:
    rows = list(iter_display(comments))
    by_root: Dict[str, Thread] = {
        dc.comment.id: Thread(root=dc) for dc in rows if not dc.is_reply
    }

    threads: List[Thread] = []
    for dc in rows:
        if not dc.is_reply:
            threads.append(by_root[dc.comment.id])
        elif dc.parent_id is not None and dc.parent_id in by_root:
            by_root[dc.parent_id].replies.append(dc)
        else:
            threads.append(Thread(root=None, replies=[dc]))
    return threads


def timeline_markers(comments: Iterable[Comment]) -> List[Comment]:
    """Top-level comments that get a marker on the timeline."""
    return [c for c in sort_for_display(comments) if not c.is_reply]
