# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for MartialBase.

All timestamps are stored in UTC and every Python datetime handled by
the services is timezone-aware.

Usage:
    from martialbase.utils.datetime import utc_now

    created_at = mapped_column(DateTime(timezone=True), default=utc_now)
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or aware) or None.

    Returns:
        Timezone-aware UTC datetime or None. Naive values are assumed
        to already be UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def days_from_now(days: int, start: datetime | None = None) -> datetime:
    """Get datetime N days in the future.

    Args:
        days: Number of days ahead.
        start: Moment to count from; defaults to the current time.

    Returns:
        Timezone-aware UTC datetime.
    """
    return (start or utc_now()) + timedelta(days=days)


def is_expired(expiry: datetime | None) -> bool:
    """Check whether an expiry timestamp lies in the past.

    Args:
        expiry: Expiry timestamp, or None for "never expires".

    Returns:
        True if the expiry has passed.
    """
    if expiry is None:
        return False
    return ensure_utc(expiry) <= utc_now()
