# video_review/timeutils.py
from __future__ import annotations

import math


# -----------------------------
# Input normalization
# -----------------------------

def _finite(value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v):
        return 0.0
    return v


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(v, hi))


# -----------------------------
# Time formatting
# -----------------------------

def format_display(seconds: float) -> str:
    """Seconds -> "M:SS" (minutes are not capped, 3725 -> "62:05")."""
    s = max(0.0, _finite(seconds))
    mins = int(math.floor(s / 60.0))
    secs = int(math.floor(s % 60.0))
    return f"{mins}:{secs:02d}"


def format_srt(seconds: float) -> str:
    """Seconds -> SubRip "HH:MM:SS,mmm". Truncates to the millisecond, never rounds up."""
    s = max(0.0, _finite(seconds))
    whole = int(math.floor(s))
    ms = int(math.floor((s - whole) * 1000.0))
    # float noise can push 0.9999... to 1000
    ms = min(ms, 999)
    h = whole // 3600
    m = (whole % 3600) // 60
    sec = whole % 60
    return f"{h:02d}:{m:02d}:{sec:02d},{ms:03d}"


# -----------------------------
# Timeline mapping
# -----------------------------

def percent_to_time(percent: float, duration: float) -> float:
    """Fraction of the timeline (0..1) -> seconds, clamped to [0, duration]."""
    d = max(0.0, _finite(duration))
    return _clamp(_finite(percent), 0.0, 1.0) * d


def time_to_percent(seconds: float, duration: float) -> float:
    """Seconds -> position on the timeline in percent (0..100). 0 when duration is unknown."""
    d = _finite(duration)
    if d <= 0:
        return 0.0
    return _clamp(_finite(seconds) / d, 0.0, 1.0) * 100.0


def x_to_time(x: float, width: float, duration: float) -> float:
    """Pointer offset from the timeline's left edge -> seconds."""
    w = _finite(width)
    if w <= 0:
        return 0.0
    return percent_to_time(_finite(x) / w, duration)


# Markers never sit flush against the ends so they stay clickable.
MARKER_MIN_PERCENT = 5.0
MARKER_MAX_PERCENT = 95.0
MARKER_FALLBACK_PERCENT = 50.0


def marker_percent(timestamp: float, duration: float) -> float:
    d = _finite(duration)
    if d <= 0:
        return MARKER_FALLBACK_PERCENT
    raw = (_finite(timestamp) / d) * 100.0
    return _clamp(raw, MARKER_MIN_PERCENT, MARKER_MAX_PERCENT)
