"""Date/time helpers.

Always operate on timezone-aware UTC datetimes.
"""

from __future__ import annotations

from datetime import UTC, datetime

from discord_play_manager.domain.shared.messages import ErrorMessages


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        raise ValueError(ErrorMessages.TIMEZONE_REQUIRED_UTC_DATETIME)
    return dt.astimezone(UTC)


def seconds_until(target: datetime, *, now: datetime | None = None) -> float:
    """Seconds from *now* until *target*, clamped at zero."""
    current = now or utcnow()
    return max(0.0, (ensure_utc(target) - ensure_utc(current)).total_seconds())
