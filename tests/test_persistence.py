"""Tests for config loading and record store selection."""

from __future__ import annotations

import json
import os

import pytest

from video_review.persistence import (
    DEFAULT_POLL_INTERVAL_MS,
    ReviewConfig,
    build_record_store,
    load_config,
    resolve_config,
    save_config,
)
from video_review.records.jsonfile import JsonFileRecordStore
from video_review.records.memory import MemoryRecordStore
from video_review.records.rest import RestRecordStore


class TestConfig:
    def test_missing_file_returns_none(self, tmp_path):
        assert load_config(str(tmp_path / "config.json")) is None

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        save_config(
            str(path),
            ReviewConfig(store="memory", user_id="u1", poll_interval_ms=2000, review_base_url="https://r.test"),
        )
        cfg = load_config(str(path))
        assert cfg.review_base_url == "https://r.test"
        assert cfg.store == "memory"
        assert cfg.user_id == "u1"
        assert cfg.poll_interval_ms == 2000

    def test_defaults(self):
        cfg = ReviewConfig.from_dict({})
        assert cfg.store == "json"
        assert cfg.user_id is None
        assert cfg.poll_interval_ms == DEFAULT_POLL_INTERVAL_MS

    def test_relative_store_path_is_next_to_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"store": "json", "store_path": "data/store.json"}), encoding="utf-8")
        cfg = load_config(str(path))
        assert cfg.store_path == os.path.join(str(tmp_path), "data/store.json")

    def test_invalid_json_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops", encoding="utf-8")
        assert load_config(str(path)) is None

    def test_unknown_store_is_rejected(self):
        with pytest.raises(ValueError):
            ReviewConfig.from_dict({"store": "carrier-pigeon"})

    def test_poll_interval_has_a_floor(self):
        assert ReviewConfig.from_dict({"poll_interval_ms": 10}).poll_interval_ms == 250
        assert ReviewConfig.from_dict({"poll_interval_ms": "soon"}).poll_interval_ms == DEFAULT_POLL_INTERVAL_MS

    def test_command_line_user_wins(self, tmp_path):
        path = tmp_path / "config.json"
        save_config(str(path), ReviewConfig(user_id="from-file"))
        assert resolve_config(str(path), "from-cli").user_id == "from-cli"
        assert resolve_config(str(path)).user_id == "from-file"
        assert resolve_config(str(tmp_path / "missing.json")).user_id is None


class TestBuildRecordStore:
    def test_memory(self):
        assert isinstance(build_record_store(ReviewConfig(store="memory")), MemoryRecordStore)

    def test_json(self, tmp_path):
        store = build_record_store(ReviewConfig(store="json", store_path=str(tmp_path / "s.json")))
        assert isinstance(store, JsonFileRecordStore)
        assert store.path == str(tmp_path / "s.json")

    def test_rest(self):
        store = build_record_store(ReviewConfig(store="rest", rest_url="https://example.test", api_key="k"))
        assert isinstance(store, RestRecordStore)
        store.close()

    def test_rest_requires_url(self):
        with pytest.raises(ValueError):
            build_record_store(ReviewConfig(store="rest"))
