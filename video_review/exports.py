# video_review/exports.py
from __future__ import annotations

from typing import Iterable, List

from .domain import Comment
from .persistence import atomic_write_text
from .timeutils import format_display, format_srt


SRT_FILENAME = "comments.srt"
CSV_FILENAME = "comments.csv"

CSV_HEADER = "author,timestamp,text"

# Every subtitle stays on screen this long.
SRT_CUE_SECONDS = 2.0


def exportable_comments(comments: Iterable[Comment]) -> List[Comment]:
    """Top-level, not soft-deleted; input order is kept."""
    return [c for c in (comments or []) if not c.is_reply and not c.is_deleted]


def _csv_quote(text: str) -> str:
    return '"' + str(text or "").replace('"', '""') + '"'


def to_srt(comments: Iterable[Comment]) -> str:
    """
    SubRip text, one cue per comment:

        1
        00:00:05,000 --> 00:00:07,000
        Cut this shot
        <blank>

    An empty selection gives an empty string.
    """
    blocks: List[str] = []
    for i, c in enumerate(exportable_comments(comments), start=1):
        start = format_srt(c.timestamp)
        end = format_srt(float(c.timestamp) + SRT_CUE_SECONDS)
        blocks.append(f"{i}\n{start} --> {end}\n{c.content}\n")
    return "\n".join(blocks)


def to_csv(comments: Iterable[Comment]) -> str:
    rows = [CSV_HEADER]
    for c in exportable_comments(comments):
        rows.append(f"{c.author.label},{format_display(c.timestamp)},{_csv_quote(c.content)}")
    return "\n".join(rows)


def write_export(path: str, text: str) -> str:
    atomic_write_text(path, text)
    return path
