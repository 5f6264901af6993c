# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for the curriculum sync service.

All timestamps are timezone-aware UTC. Sync timestamps written to the
database (synced_at, created_at, updated_at) and the timestamps reported
in sync results come from these helpers.

Usage:
    from src.utils.datetime import utc_now

    synced_at = utc_now()
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Naive datetimes are assumed to be UTC; aware ones are converted.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_iso(dt: datetime | None) -> str | None:
    """Format a datetime as ISO 8601 string.

    Args:
        dt: Datetime to format.

    Returns:
        ISO 8601 formatted string or None.
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat()


def elapsed_ms(start: datetime, end: datetime | None = None) -> int:
    """Whole milliseconds between two datetimes.

    Args:
        start: Start of the interval.
        end: End of the interval. Defaults to now.

    Returns:
        Elapsed milliseconds, never negative.
    """
    finish = ensure_utc(end) if end is not None else utc_now()
    delta = finish - ensure_utc(start)
    return max(0, int(delta.total_seconds() * 1000))
