from __future__ import annotations

from .base import (
    RecordChange,
    RecordNotFoundError,
    RecordStore,
    RecordStoreError,
    Subscription,
)

__all__ = [
    "RecordChange",
    "RecordNotFoundError",
    "RecordStore",
    "RecordStoreError",
    "Subscription",
]
