# video_review/sync.py
"""
Keeps a CommentStore in step with changes made elsewhere (the other reviewer).

Stores that can push are subscribed to; the rest are polled. The poll only
carries status fields and never overrides a comment edited locally while the
poll was in flight.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from .comment_store import CommentStore
from .domain import COMMENTS_TABLE, POLLED_COMMENT_FIELDS
from .records.base import RecordChange, RecordStore, RecordStoreError, Subscription

logger = logging.getLogger(__name__)


class CommentFeed:
    def __init__(
        self,
        records: RecordStore,
        store: CommentStore,
        poll_fields: Iterable[str] = POLLED_COMMENT_FIELDS,
    ):
        self._records = records
        self._store = store
        self._poll_fields = tuple(poll_fields)
        self._subscription: Optional[Subscription] = None
        self._polling = False

    @property
    def uses_polling(self) -> bool:
        return self._polling

    @property
    def is_subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def start(self) -> None:
        """Subscribe if the store can push, otherwise switch to polling."""
        self.stop()
        pid = self._store.project_id
        if not pid:
            return

        if getattr(self._records, "supports_subscriptions", False):
            try:
                self._subscription = self._records.subscribe(
                    COMMENTS_TABLE, {"project_id": pid}, self._on_change
                )
                logger.info("subscribed to comment changes for project %s", pid)
                return
            except (NotImplementedError, RecordStoreError) as e:
                logger.warning("subscription unavailable, polling instead: %s", e)

        self._polling = True
        logger.info("polling comment status for project %s", pid)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        self._polling = False

    def poll(self) -> bool:
        """One poll cycle. Returns True if the local list changed; a failed poll changes nothing."""
        pid = self._store.project_id
        if not self._polling or not pid:
            return False

        since = self._store.revision
        try:
            rows = self._records.select(COMMENTS_TABLE, {"project_id": pid}, order="timestamp")
        except RecordStoreError as e:
            logger.warning("comment poll failed: %s", e)
            return False
        return self._store.merge_polled(rows, self._poll_fields, since_revision=since)

    def _on_change(self, change: RecordChange) -> None:
        self._store.apply_change(change)
