"""Tests for record store backends."""

from __future__ import annotations

import json

import httpx
import pytest

from video_review.records import RecordNotFoundError, RecordStoreError
from video_review.records.base import CHANGE_DELETE, CHANGE_INSERT, CHANGE_UPDATE
from video_review.records.jsonfile import JsonFileRecordStore
from video_review.records.memory import MemoryRecordStore
from video_review.records.rest import RestRecordStore, filter_value

# ---------------------------------------------------------------------------
# MemoryRecordStore
# ---------------------------------------------------------------------------


class TestMemoryRecordStore:
    def test_insert_fills_id_and_created_at(self):
        store = MemoryRecordStore()
        row = store.insert("comments", {"content": "hi", "timestamp": 1})
        assert row["id"]
        assert row["created_at"]
        assert store.select("comments") == [row]

    def test_select_filters_and_orders(self):
        store = MemoryRecordStore()
        store.insert("comments", {"id": "a", "project_id": "p1", "timestamp": 5})
        store.insert("comments", {"id": "b", "project_id": "p1", "timestamp": 2})
        store.insert("comments", {"id": "c", "project_id": "p2", "timestamp": 1})
        rows = store.select("comments", {"project_id": "p1"}, order="timestamp")
        assert [r["id"] for r in rows] == ["b", "a"]
        rows = store.select("comments", {"project_id": "p1"}, order="timestamp", ascending=False)
        assert [r["id"] for r in rows] == ["a", "b"]

    def test_select_returns_copies(self):
        store = MemoryRecordStore()
        store.insert("comments", {"id": "a", "content": "x"})
        store.select("comments")[0]["content"] = "mutated"
        assert store.select("comments")[0]["content"] == "x"

    def test_update_and_delete_missing(self):
        store = MemoryRecordStore()
        with pytest.raises(RecordNotFoundError):
            store.update("comments", "nope", {"content": "x"})
        with pytest.raises(RecordNotFoundError):
            store.delete("comments", "nope")

    def test_update_never_changes_id(self):
        store = MemoryRecordStore()
        store.insert("comments", {"id": "a", "content": "x"})
        row = store.update("comments", "a", {"id": "b", "content": "y"})
        assert row["id"] == "a"
        assert row["content"] == "y"

    def test_subscribers_see_matching_changes(self):
        store = MemoryRecordStore()
        seen = []
        sub = store.subscribe("comments", {"project_id": "p1"}, seen.append)
        store.insert("comments", {"id": "a", "project_id": "p1"})
        store.insert("comments", {"id": "b", "project_id": "p2"})
        store.update("comments", "a", {"is_completed": True})
        store.delete("comments", "a")
        assert [(c.kind, c.row["id"]) for c in seen] == [
            (CHANGE_INSERT, "a"),
            (CHANGE_UPDATE, "a"),
            (CHANGE_DELETE, "a"),
        ]

        sub.close()
        sub.close()
        store.insert("comments", {"id": "c", "project_id": "p1"})
        assert len(seen) == 3

    def test_failing_subscriber_does_not_break_writes(self):
        store = MemoryRecordStore()

        def boom(_change):
            raise RuntimeError("listener bug")

        store.subscribe("comments", None, boom)
        row = store.insert("comments", {"id": "a"})
        assert row["id"] == "a"


# ---------------------------------------------------------------------------
# JsonFileRecordStore
# ---------------------------------------------------------------------------


class TestJsonFileRecordStore:
    def test_roundtrip_through_file(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonFileRecordStore(str(path))
        row = store.insert("projects", {"id": "p1", "title": "Teaser"})

        other = JsonFileRecordStore(str(path))
        assert other.select("projects") == [row]

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["tables"]["projects"][0]["title"] == "Teaser"
        assert data["store_version"] == 1

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileRecordStore(str(tmp_path / "none.json"))
        assert store.select("comments") == []

    def test_update_and_delete(self, tmp_path):
        store = JsonFileRecordStore(str(tmp_path / "store.json"))
        store.insert("comments", {"id": "a", "is_completed": False})
        assert store.update("comments", "a", {"is_completed": True})["is_completed"] is True
        store.delete("comments", "a")
        assert store.select("comments") == []
        with pytest.raises(RecordNotFoundError):
            store.delete("comments", "a")

    def test_corrupt_file_raises_store_error(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(RecordStoreError):
            JsonFileRecordStore(str(path)).select("comments")

    def test_cannot_push(self, tmp_path):
        store = JsonFileRecordStore(str(tmp_path / "store.json"))
        assert store.supports_subscriptions is False
        with pytest.raises(NotImplementedError):
            store.subscribe("comments", None, lambda c: None)

    def test_requires_path(self):
        with pytest.raises(ValueError):
            JsonFileRecordStore("")


# ---------------------------------------------------------------------------
# RestRecordStore
# ---------------------------------------------------------------------------


def _rest(handler, **kwargs):
    kwargs.setdefault("retry_delay", 0)
    return RestRecordStore(
        "https://example.test",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestRestRecordStore:
    def test_select_query_and_headers(self):
        seen = {}

        def handler(request):
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json=[{"id": "a"}])

        store = _rest(handler)
        rows = store.select("comments", {"project_id": "p1"}, order="timestamp")
        assert rows == [{"id": "a"}]
        assert seen["url"].path == "/rest/v1/comments"
        assert seen["url"].params["project_id"] == "eq.p1"
        assert seen["url"].params["order"] == "timestamp.asc"
        assert seen["headers"]["apikey"] == "anon-key"
        assert seen["headers"]["authorization"] == "Bearer anon-key"

    def test_select_retries_transient_errors(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503, json={"message": "busy"})
            return httpx.Response(200, json=[])

        store = _rest(handler, max_retries=2)
        assert store.select("comments") == []
        assert len(calls) == 3

    def test_select_gives_up_after_retries(self):
        def handler(request):
            return httpx.Response(503, json={"message": "busy"})

        store = _rest(handler, max_retries=1)
        with pytest.raises(RecordStoreError) as exc:
            store.select("comments")
        assert exc.value.status_code == 503

    def test_insert_is_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        store = _rest(handler, max_retries=3)
        with pytest.raises(RecordStoreError):
            store.insert("comments", {"content": "x"})
        assert len(calls) == 1

    def test_insert_returns_representation(self):
        def handler(request):
            assert request.method == "POST"
            assert request.headers["prefer"] == "return=representation"
            body = json.loads(request.content)
            return httpx.Response(201, json=[{**body, "id": "new"}])

        store = _rest(handler)
        assert store.insert("comments", {"content": "x"}) == {"content": "x", "id": "new"}

    def test_update_missing_row(self):
        def handler(request):
            assert request.method == "PATCH"
            assert request.url.params["id"] == "eq.a"
            return httpx.Response(200, json=[])

        store = _rest(handler)
        with pytest.raises(RecordNotFoundError):
            store.update("comments", "a", {"is_completed": True})

    def test_client_error_message(self):
        def handler(request):
            return httpx.Response(400, json={"message": "bad column"})

        store = _rest(handler)
        with pytest.raises(RecordStoreError) as exc:
            store.delete("comments", "a")
        assert "bad column" in str(exc.value)
        assert exc.value.status_code == 400

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        store = _rest(handler, max_retries=0)
        with pytest.raises(RecordStoreError) as exc:
            store.select("comments")
        assert exc.value.status_code is None


class TestFilterValue:
    def test_operands(self):
        assert filter_value(None) == "is.null"
        assert filter_value(True) == "is.true"
        assert filter_value(False) == "is.false"
        assert filter_value("p1") == "eq.p1"
        assert filter_value(3) == "eq.3"
