from __future__ import annotations

import time
from datetime import datetime, timedelta, timezone
from typing import Optional


EPOCH = datetime(1970, 1, 1)
_ONE_MS = timedelta(milliseconds=1)


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical), truncated to milliseconds."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def timestamp(milliseconds: bool = False) -> int:
    """Current Unix time in seconds, or in milliseconds when asked."""
    if milliseconds:
        return time.time_ns() // 1_000_000
    return int(time.time())


def timestamp_to_milliseconds(value: int) -> int:
    """
    Normalize a gateway timestamp to milliseconds.

    Values that already carry 13 digits are milliseconds and returned as is;
    anything shorter is treated as seconds.
    """
    if len(str(abs(value))) >= 13:
        return value
    return value * 1000


def timestamp_to_seconds(value: int) -> int:
    if len(str(abs(value))) >= 13:
        return value // 1000
    return value


def timestamp_to_datetime(value: int) -> datetime:
    """Convert a seconds or milliseconds timestamp into a UTC-naive datetime."""
    return EPOCH + timedelta(milliseconds=timestamp_to_milliseconds(value))


def datetime_to_milliseconds(dt: Optional[datetime]) -> Optional[int]:
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return (dt - EPOCH) // _ONE_MS


def datetime_to_timestamp(dt: Optional[datetime]) -> Optional[int]:
    """Seconds since the epoch for a stored datetime (None stays None)."""
    ms = datetime_to_milliseconds(dt)
    if ms is None:
        return None
    return ms // 1000


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
