# Overview: UTC clock, ISO-8601 parsing and serialization helpers.

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def days_after(start: datetime, days: int) -> datetime:
    return start + timedelta(days=days)


def days_ago(days: int) -> datetime:
    return utcnow() - timedelta(days=days)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse client-supplied ISO-8601 text into naive UTC.

    Blank input gives None. Values without an offset (including bare dates)
    are taken as UTC already; "Z" and "+HH:MM" offsets are shifted to UTC.
    Raises ValueError for text fromisoformat cannot read.
    """
    if value is None or not value.strip():
        return None

    text = value.strip()
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """Render a stored datetime as second-precision ISO-8601 with a 'Z' suffix."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.replace(microsecond=0).isoformat() + "Z"
