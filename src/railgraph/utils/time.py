from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(dt: datetime | None = None) -> str:
    """
    Second-precision UTC timestamp, e.g. ``2026-03-14T10:00:00Z``.

    Naive datetimes are taken to be UTC already.
    """
    if dt is None:
        dt = utc_now()
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def is_even_utc_hour(dt: datetime) -> bool:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.hour % 2 == 0
