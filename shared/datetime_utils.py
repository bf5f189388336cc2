"""
Date/time helpers — framework-agnostic.

MongoDB hands back naive datetimes unless the client is tz-aware, so every
comparison against "now" goes through ensure_utc().
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """True when *expires_at* is missing or not strictly after *now*."""
    if expires_at is None:
        return True
    return ensure_utc(expires_at) <= ensure_utc(now)

