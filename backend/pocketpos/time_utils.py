"""
Timestamps for ledger events and snapshot metadata.

Everything is stored UTC-naive and written as ISO-8601 with a trailing 'Z'.
Snapshot files written by older browser builds carry millisecond ISO strings
("2024-05-01T18:30:00.123Z") or epoch milliseconds; both are read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_utc_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Read a stored or imported timestamp. Unreadable input gives None.

    Accepts datetime, epoch milliseconds (int/float) and ISO strings with
    'Z' or an offset. Naive strings are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc_naive(value)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return _as_utc_naive(datetime.fromisoformat(text))
    except ValueError:
        return None


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Second-precision ISO-8601 with 'Z'; naive values are UTC."""
    if dt is None:
        return None
    stamp = _as_utc_naive(dt).replace(microsecond=0)
    return stamp.isoformat() + "Z"


def date_stamp(dt: Optional[datetime] = None) -> str:
    # Export file names: HORNET_CONFIG_<YYYY-MM-DD>.json
    return (dt or utcnow()).strftime("%Y-%m-%d")
