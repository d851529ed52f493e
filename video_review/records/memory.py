"""In-process record store.

Used for demos, tests and as the reference for the push-capable interface:
every mutation is delivered synchronously to matching subscribers.
"""

from __future__ import annotations

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base import (
    CHANGE_DELETE,
    CHANGE_INSERT,
    CHANGE_UPDATE,
    RecordChange,
    RecordNotFoundError,
    RecordStore,
    Row,
    Subscription,
    row_matches,
)

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def sort_rows(rows: List[Row], order: Optional[str], ascending: bool = True) -> List[Row]:
    if not order:
        return rows
    # missing values sort before present ones when ascending
    return sorted(
        rows,
        key=lambda r: (r.get(order) is not None, r.get(order) if r.get(order) is not None else 0),
        reverse=not ascending,
    )


class MemoryRecordStore(RecordStore):
    supports_subscriptions = True

    def __init__(self, tables: Optional[Dict[str, List[Row]]] = None) -> None:
        self._tables: Dict[str, List[Row]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self._subscribers: List[Tuple[str, Dict[str, Any], Callable[[RecordChange], None]]] = []

    # ---------------- Queries ----------------

    def select(self, table, filters=None, order=None, ascending=True) -> List[Row]:
        rows = [copy.deepcopy(r) for r in self._tables.get(table, []) if row_matches(r, filters)]
        return sort_rows(rows, order, ascending)

    def insert(self, table: str, row: Row) -> Row:
        stored = dict(row)
        stored.setdefault("id", str(uuid.uuid4()))
        stored.setdefault("created_at", _now_iso())
        self._tables.setdefault(table, []).append(stored)
        self._publish(RecordChange(CHANGE_INSERT, table, copy.deepcopy(stored)))
        return copy.deepcopy(stored)

    def update(self, table: str, record_id: str, patch: Row) -> Row:
        row = self._find(table, record_id)
        row.update({k: v for k, v in patch.items() if k != "id"})
        self._publish(RecordChange(CHANGE_UPDATE, table, copy.deepcopy(row)))
        return copy.deepcopy(row)

    def delete(self, table: str, record_id: str) -> None:
        row = self._find(table, record_id)
        self._tables[table].remove(row)
        self._publish(RecordChange(CHANGE_DELETE, table, copy.deepcopy(row)))

    # ---------------- Push ----------------

    def subscribe(self, table, filters, callback) -> Subscription:
        entry = (table, dict(filters or {}), callback)
        self._subscribers.append(entry)

        def _remove() -> None:
            if entry in self._subscribers:
                self._subscribers.remove(entry)

        return Subscription(on_close=_remove)

    def _publish(self, change: RecordChange) -> None:
        for table, filters, callback in list(self._subscribers):
            if table != change.table or not row_matches(change.row, filters):
                continue
            try:
                callback(change)
            except Exception:
                logger.exception("subscriber failed on %s %s", change.kind, change.table)

    # ---------------- Helpers ----------------

    def _find(self, table: str, record_id: str) -> Row:
        for row in self._tables.get(table, []):
            if str(row.get("id")) == str(record_id):
                return row
        raise RecordNotFoundError(f"{table} row {record_id} not found", status_code=404)

    def close(self) -> None:
        self._subscribers = []
