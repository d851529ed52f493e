# video_review/persistence.py
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from .records.base import RecordStore

logger = logging.getLogger(__name__)


CONFIG_FILENAME = "config.json"
DEFAULT_STORE_FILENAME = "review_store.json"

STORE_MEMORY = "memory"
STORE_JSON = "json"
STORE_REST = "rest"
STORE_KINDS = (STORE_MEMORY, STORE_JSON, STORE_REST)

# Status poll cadence when the store cannot push changes.
DEFAULT_POLL_INTERVAL_MS = 5000


# -----------------------------
# Atomic file helpers
# -----------------------------

def atomic_write_text(path: str, text: str, encoding: str = "utf-8") -> None:
    d = os.path.dirname(os.path.abspath(path))
    os.makedirs(d, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=d)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                logger.warning("could not remove temp file %s", tmp_path)


def atomic_write_json(path: str, payload: Dict) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    atomic_write_text(path, text + "\n")


def read_json(path: str) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


# -----------------------------
# App config (config.json)
# -----------------------------

@dataclass
class ReviewConfig:
    """
    Stored as JSON, by default <cwd>/config.json.

    user_id set -> the app runs as that editor; unset -> anonymous client reviewer.
    """
    store: str = STORE_JSON
    store_path: str = DEFAULT_STORE_FILENAME
    rest_url: str = ""
    api_key: str = ""
    user_id: Optional[str] = None
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    export_dir: str = ""
    review_base_url: str = ""

    def to_dict(self) -> Dict:
        return {
            "store": self.store,
            "store_path": self.store_path,
            "rest_url": self.rest_url,
            "api_key": self.api_key,
            "user_id": self.user_id,
            "poll_interval_ms": int(self.poll_interval_ms),
            "export_dir": self.export_dir,
            "review_base_url": self.review_base_url,
            "config_version": 1,
        }

    @staticmethod
    def from_dict(d: Dict) -> "ReviewConfig":
        store = str(d.get("store") or STORE_JSON).strip().lower()
        if store not in STORE_KINDS:
            raise ValueError(f"Unknown store '{store}'. Expected one of {list(STORE_KINDS)}")
        try:
            poll = int(d.get("poll_interval_ms", DEFAULT_POLL_INTERVAL_MS))
        except (TypeError, ValueError):
            poll = DEFAULT_POLL_INTERVAL_MS
        return ReviewConfig(
            store=store,
            store_path=str(d.get("store_path") or DEFAULT_STORE_FILENAME),
            rest_url=str(d.get("rest_url") or ""),
            api_key=str(d.get("api_key") or ""),
            user_id=(str(d["user_id"]) if d.get("user_id") else None),
            poll_interval_ms=max(250, poll),
            export_dir=str(d.get("export_dir") or ""),
            review_base_url=str(d.get("review_base_url") or ""),
        )


def load_config(path: str) -> Optional[ReviewConfig]:
    """
    Loads a config file.

    If missing or invalid, returns None (caller should fall back to defaults).
    """
    if not path or not os.path.exists(path):
        return None
    try:
        cfg = ReviewConfig.from_dict(read_json(path))
    except (OSError, ValueError) as e:
        logger.warning("ignoring invalid config %s: %s", path, e)
        return None
    # relative store paths live next to the config file
    if cfg.store == STORE_JSON and not os.path.isabs(cfg.store_path):
        cfg.store_path = os.path.join(os.path.dirname(os.path.abspath(path)), cfg.store_path)
    return cfg


def save_config(path: str, cfg: ReviewConfig) -> None:
    atomic_write_json(path, cfg.to_dict())


def build_record_store(cfg: ReviewConfig) -> "RecordStore":
    """Instantiate the configured record store backend."""
    if cfg.store == STORE_REST:
        from .records.rest import RestRecordStore

        if not cfg.rest_url:
            raise ValueError("store 'rest' requires rest_url")
        return RestRecordStore(base_url=cfg.rest_url, api_key=cfg.api_key)

    if cfg.store == STORE_MEMORY:
        from .records.memory import MemoryRecordStore

        return MemoryRecordStore()

    from .records.jsonfile import JsonFileRecordStore

    return JsonFileRecordStore(path=cfg.store_path)


def resolve_config(config_path: Optional[str], user_id: Optional[str] = None) -> ReviewConfig:
    """Config file (or defaults), with a command-line user id taking precedence."""
    cfg = load_config(config_path) if config_path else None
    if cfg is None:
        cfg = ReviewConfig()
    if user_id:
        cfg.user_id = user_id
    return cfg
