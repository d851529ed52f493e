"""Abstract record store interface.

The review app treats the backend as a generic table store: select rows by
equality filters with an ordering, insert, patch and delete by id. Every call
is a single request/response and any of them may fail with RecordStoreError.
Comment logic depends on RecordStore, never on a concrete backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

Row = Dict[str, Any]


class RecordStoreError(Exception):
    """Transport or remote validation failure. The attempted operation had no effect locally."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordNotFoundError(RecordStoreError):
    pass


CHANGE_INSERT = "insert"
CHANGE_UPDATE = "update"
CHANGE_DELETE = "delete"


@dataclass(frozen=True)
class RecordChange:
    """One pushed change. For deletes, row holds at least the id."""
    kind: str
    table: str
    row: Row = field(default_factory=dict)


class Subscription:
    """Handle returned by RecordStore.subscribe(). close() is idempotent."""

    def __init__(self, on_close: Optional[Callable[[], None]] = None) -> None:
        self._on_close = on_close
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close()


def row_matches(row: Row, filters: Optional[Dict[str, Any]]) -> bool:
    for key, value in (filters or {}).items():
        if row.get(key) != value:
            return False
    return True


class RecordStore(ABC):
    """Pluggable table store.

    supports_subscriptions tells callers whether subscribe() pushes changes;
    stores without it are kept fresh by polling.
    """

    supports_subscriptions: bool = False

    @abstractmethod
    def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Row]:
        """Return rows matching every filter (column == value), ordered by one column."""

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it as stored (with id and created_at filled in)."""

    @abstractmethod
    def update(self, table: str, record_id: str, patch: Row) -> Row:
        """Patch one row by id and return the stored row. Raises RecordNotFoundError."""

    @abstractmethod
    def delete(self, table: str, record_id: str) -> None:
        """Delete one row by id."""

    def subscribe(
        self,
        table: str,
        filters: Optional[Dict[str, Any]],
        callback: Callable[[RecordChange], None],
    ) -> Subscription:
        raise NotImplementedError(f"{type(self).__name__} cannot push changes")

    def close(self) -> None:
        """Release connections or file handles. Safe to call more than once."""
