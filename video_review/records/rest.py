"""Hosted PostgREST-style record store over HTTP.

Speaks the query dialect of PostgREST (the REST layer of the hosted backend
the review links point at):

  GET    /rest/v1/comments?project_id=eq.<id>&order=timestamp.asc
  POST   /rest/v1/comments                 Prefer: return=representation
  PATCH  /rest/v1/comments?id=eq.<id>      Prefer: return=representation
  DELETE /rest/v1/comments?id=eq.<id>

Reads are retried on timeouts, connection errors and 408/429/5xx. Writes are
sent once; the user repeats the action if it failed.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from .base import RecordNotFoundError, RecordStore, RecordStoreError, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")

REST_PREFIX = "/rest/v1"

RETRIABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


def is_retriable_error(error: Exception) -> bool:
    if isinstance(error, (httpx.TimeoutException, httpx.ConnectError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in RETRIABLE_STATUS_CODES
    return False


def describe_http_error(error: Exception) -> str:
    if isinstance(error, httpx.TimeoutException):
        return "The server did not respond in time."
    if isinstance(error, httpx.ConnectError):
        return "Could not connect to the server."
    if isinstance(error, httpx.HTTPStatusError):
        resp = error.response
        detail = ""
        try:
            body = resp.json()
            if isinstance(body, dict):
                detail = str(body.get("message") or body.get("error") or "")
        except ValueError:
            detail = resp.text[:200]
        return f"Server returned {resp.status_code}" + (f": {detail}" if detail else "")
    return str(error) or type(error).__name__


def filter_value(value: Any) -> str:
    """Python value -> PostgREST filter operand."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return "is.true" if value else "is.false"
    return f"eq.{value}"


class RestRecordStore(RecordStore):
    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        access_token: Optional[str] = None,
        timeout: float = 15.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
        token = access_token or api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._max_retries = max(0, int(max_retries))
        self._retry_delay = max(0.0, float(retry_delay))

    # ---------------- Plumbing ----------------

    def _path(self, table: str) -> str:
        return f"{REST_PREFIX}/{table}"

    def _send(self, fn: Callable[[], httpx.Response], operation: str, retries: int = 0) -> httpx.Response:
        for attempt in range(retries + 1):
            try:
                resp = fn()
                resp.raise_for_status()
                return resp
            except httpx.HTTPError as e:
                if attempt < retries and is_retriable_error(e):
                    delay = self._retry_delay * (2 ** attempt)
                    logger.warning(
                        "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                        operation, attempt + 1, retries + 1, delay, e,
                    )
                    time.sleep(delay)
                    continue
                status = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
                message = f"{operation} failed. {describe_http_error(e)}"
                logger.error(message)
                raise RecordStoreError(message, status_code=status) from e
        raise RecordStoreError(f"{operation} failed.")

    @staticmethod
    def _rows(resp: httpx.Response) -> List[Row]:
        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as e:
            raise RecordStoreError(f"Server returned invalid JSON: {e}") from e
        if isinstance(data, dict):
            return [data]
        return list(data or [])

    # ---------------- RecordStore ----------------

    def select(self, table, filters=None, order=None, ascending=True) -> List[Row]:
        params: Dict[str, str] = {"select": "*"}
        for key, value in (filters or {}).items():
            params[key] = filter_value(value)
        if order:
            params["order"] = f"{order}.{'asc' if ascending else 'desc'}"
        resp = self._send(
            lambda: self._client.get(self._path(table), params=params),
            f"Loading {table}",
            retries=self._max_retries,
        )
        return self._rows(resp)

    def insert(self, table: str, row: Row) -> Row:
        resp = self._send(
            lambda: self._client.post(
                self._path(table), json=row, headers={"Prefer": "return=representation"}
            ),
            f"Saving to {table}",
        )
        rows = self._rows(resp)
        if not rows:
            raise RecordStoreError(f"No {table} row returned from insert")
        return rows[0]

    def update(self, table: str, record_id: str, patch: Row) -> Row:
        resp = self._send(
            lambda: self._client.patch(
                self._path(table),
                params={"id": filter_value(record_id)},
                json=patch,
                headers={"Prefer": "return=representation"},
            ),
            f"Updating {table}",
        )
        rows = self._rows(resp)
        if not rows:
            raise RecordNotFoundError(f"{table} row {record_id} not found", status_code=404)
        return rows[0]

    def delete(self, table: str, record_id: str) -> None:
        self._send(
            lambda: self._client.delete(self._path(table), params={"id": filter_value(record_id)}),
            f"Deleting from {table}",
        )

    def close(self) -> None:
        self._client.close()
