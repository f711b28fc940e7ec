"""Timestamps: epoch milliseconds in storage, datetimes for display."""

from __future__ import annotations

from datetime import datetime, timezone

import pendulum

# Strict output format: YYYY-MM-DD HH:MM:SS±TZ
STRICT_FORMAT = "%Y-%m-%d %H:%M:%S%z"


def now_utc() -> datetime:
    """Return the current UTC datetime."""
    return datetime.now(timezone.utc)


def now_millis() -> int:
    """Return the current time as epoch milliseconds."""
    return int(now_utc().timestamp() * 1000)


def millis_to_datetime(value: int) -> datetime:
    """Convert epoch milliseconds to a timezone-aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def format_datetime(dt: datetime) -> str:
    """Format a datetime to the strict output format."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.strftime(STRICT_FORMAT)


def describe_millis(value: int, now: int | None = None) -> str:
    """Describe an epoch-millis timestamp for humans, e.g. ``"3 minutes ago"``.

    Zero means the event never happened.  With an explicit ``now`` the
    description is relative to it (``"3 minutes before"``).
    """
    if value <= 0:
        return "never"
    moment = pendulum.from_timestamp(value / 1000)
    if now is None:
        return moment.diff_for_humans()
    return moment.diff_for_humans(pendulum.from_timestamp(now / 1000))
