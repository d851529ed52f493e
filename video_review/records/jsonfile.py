"""Single-file local record store.

The whole database is one JSON document ({"tables": {name: [rows]}}) that is
re-read before every call and rewritten atomically after every mutation, so two
app windows pointed at the same file see each other's changes on the next poll.
It cannot push changes.
"""

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Dict, List

from ..persistence import atomic_write_json, read_json
from .base import RecordNotFoundError, RecordStore, RecordStoreError, Row, row_matches
from .memory import sort_rows

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class JsonFileRecordStore(RecordStore):
    def __init__(self, path: str) -> None:
        if not path:
            raise ValueError("JsonFileRecordStore requires a path")
        self.path = path

    # ---------------- File I/O ----------------

    def _load(self) -> Dict[str, List[Row]]:
        if not os.path.exists(self.path):
            return {}
        try:
            data = read_json(self.path)
        except (OSError, ValueError) as e:
            raise RecordStoreError(f"Could not read {self.path}: {e}") from e
        tables = data.get("tables") if isinstance(data, dict) else None
        if not isinstance(tables, dict):
            raise RecordStoreError(f"{self.path} is not a record store file")
        return {str(k): list(v or []) for k, v in tables.items()}

    def _save(self, tables: Dict[str, List[Row]]) -> None:
        try:
            atomic_write_json(self.path, {"tables": tables, "store_version": STORE_VERSION})
        except OSError as e:
            raise RecordStoreError(f"Could not write {self.path}: {e}") from e

    # ---------------- RecordStore ----------------

    def select(self, table, filters=None, order=None, ascending=True) -> List[Row]:
        rows = [dict(r) for r in self._load().get(table, []) if row_matches(r, filters)]
        return sort_rows(rows, order, ascending)

    def insert(self, table: str, row: Row) -> Row:
        tables = self._load()
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        tables.setdefault(table, []).append(stored)
        self._save(tables)
        return dict(stored)

    def update(self, table: str, record_id: str, patch: Row) -> Row:
        tables = self._load()
        for row in tables.get(table, []):
            if str(row.get("id")) == str(record_id):
                row.update({k: v for k, v in patch.items() if k != "id"})
                self._save(tables)
                return dict(row)
        raise RecordNotFoundError(f"{table} row {record_id} not found", status_code=404)

    def delete(self, table: str, record_id: str) -> None:
        tables = self._load()
        rows = tables.get(table, [])
        kept = [r for r in rows if str(r.get("id")) != str(record_id)]
        if len(kept) == len(rows):
            raise RecordNotFoundError(f"{table} row {record_id} not found", status_code=404)
        tables[table] = kept
        self._save(tables)
