# video_review/media.py
from __future__ import annotations

import os
from typing import Optional, Tuple
from urllib.parse import urlparse


ALLOWED_VIDEO_EXTS = {
    ".mp4", ".mov", ".mkv", ".avi", ".m4v", ".webm",
}
ALLOWED_URL_EXTS = ALLOWED_VIDEO_EXTS | {".m3u8"}


def is_probably_url(s: str) -> bool:
    p = urlparse((s or "").strip())
    return p.scheme in ("http", "https") and bool(p.netloc)


def ext_lower(path_or_url: str) -> str:
    base = path_or_url.strip().split("?")[0].split("#")[0]
    _, ext = os.path.splitext(base)
    return ext.lower().strip()


def validate_local_video_path(path: str) -> Tuple[bool, str]:
    if not path:
        return (False, "No file selected.")
    if not os.path.exists(path):
        return (False, f"File does not exist: {path}")
    if not os.path.isfile(path):
        return (False, f"Not a file: {path}")
    ext = ext_lower(path)
    if ext not in ALLOWED_VIDEO_EXTS:
        return (False, f"Unsupported file type '{ext}'. Allowed: {sorted(ALLOWED_VIDEO_EXTS)}")
    return (True, "OK")


def validate_video_url(url: str) -> Tuple[bool, str]:
    if not url or not is_probably_url(url):
        return (False, "Invalid URL.")
    ext = ext_lower(url)
    # CDNs often serve without an extension; only reject known-wrong ones
    if ext and ext not in ALLOWED_URL_EXTS:
        return (False, f"Unsupported URL type '{ext}'. Allowed: {sorted(ALLOWED_URL_EXTS)}")
    return (True, "OK")


def resolve_media_source(video_url: str, base_dir: Optional[str] = None) -> Tuple[bool, str]:
    """
    Project video_url -> something the player can open.

    Returns (True, url_or_absolute_path) or (False, message).
    """
    src = (video_url or "").strip()
    if not src:
        return (False, "Project has no video.")
    if "://" in src:
        ok, msg = validate_video_url(src)
        return (ok, src if ok else msg)

    path = src if os.path.isabs(src) else os.path.join(base_dir or os.getcwd(), src)
    path = os.path.abspath(path)
    ok, msg = validate_local_video_path(path)
    return (ok, path if ok else msg)
