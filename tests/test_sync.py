"""Tests for keeping the comment list fresh."""

from __future__ import annotations

from unittest.mock import MagicMock

from video_review.comment_store import CommentStore
from video_review.domain import COMMENTS_TABLE
from video_review.records import RecordStoreError
from video_review.records.jsonfile import JsonFileRecordStore
from video_review.records.memory import MemoryRecordStore
from video_review.sync import CommentFeed


def _row(cid, t, **extra):
    row = {"id": cid, "content": "note", "timestamp": t, "project_id": "p1", "created_by": None}
    row.update(extra)
    return row


class TestPushFeed:
    def test_subscribes_when_store_can_push(self):
        records = MemoryRecordStore({COMMENTS_TABLE: [_row("a", 1)]})
        store = CommentStore(records)
        store.load("p1")
        feed = CommentFeed(records, store)
        feed.start()

        assert feed.is_subscribed
        assert not feed.uses_polling

        # another reviewer writes through the same backend
        records.insert(COMMENTS_TABLE, _row("b", 4))
        records.update(COMMENTS_TABLE, "a", {"is_completed": True})
        assert store.get("b") is not None
        assert store.get("a").is_completed is True

    def test_stop_unsubscribes(self):
        records = MemoryRecordStore()
        store = CommentStore(records)
        store.load("p1")
        feed = CommentFeed(records, store)
        feed.start()
        feed.stop()
        records.insert(COMMENTS_TABLE, _row("b", 4))
        assert store.get("b") is None
        assert not feed.is_subscribed

    def test_other_project_changes_ignored(self):
        records = MemoryRecordStore()
        store = CommentStore(records)
        store.load("p1")
        CommentFeed(records, store).start()
        records.insert(COMMENTS_TABLE, _row("z", 1, project_id="p2"))
        assert len(store) == 0

    def test_nothing_to_do_without_project(self):
        records = MemoryRecordStore()
        feed = CommentFeed(records, CommentStore(records))
        feed.start()
        assert not feed.is_subscribed
        assert not feed.uses_polling


class TestPollingFeed:
    def test_falls_back_to_polling(self, tmp_path):
        records = JsonFileRecordStore(str(tmp_path / "store.json"))
        records.insert(COMMENTS_TABLE, _row("a", 1, is_completed=False))
        store = CommentStore(records)
        store.load("p1")
        feed = CommentFeed(records, store)
        feed.start()
        assert feed.uses_polling

        # a second window on the same file marks it done
        JsonFileRecordStore(str(tmp_path / "store.json")).update(COMMENTS_TABLE, "a", {"is_completed": True})
        assert feed.poll() is True
        assert store.get("a").is_completed is True
        assert feed.poll() is False

    def test_failed_poll_changes_nothing(self):
        records = MagicMock()
        records.supports_subscriptions = False
        records.select.return_value = [_row("a", 1)]
        store = CommentStore(records)
        store.load("p1")
        feed = CommentFeed(records, store)
        feed.start()

        records.select.side_effect = RecordStoreError("offline")
        assert feed.poll() is False
        assert [c.id for c in store.comments()] == ["a"]

    def test_subscription_error_falls_back_to_polling(self):
        records = MagicMock()
        records.supports_subscriptions = True
        records.subscribe.side_effect = RecordStoreError("realtime unavailable")
        records.select.return_value = []
        store = CommentStore(records)
        store.load("p1")
        feed = CommentFeed(records, store)
        feed.start()
        assert feed.uses_polling
        assert not feed.is_subscribed

    def test_poll_is_noop_when_stopped(self):
        records = MagicMock()
        records.supports_subscriptions = False
        records.select.return_value = []
        store = CommentStore(records)
        store.load("p1")
        feed = CommentFeed(records, store)
        assert feed.poll() is False
        assert records.select.call_count == 1
