"""
Time semantics utilities for evaluation time and launch instants.

All instants handled by the core are timezone-aware UTC datetimes. The
evaluation time is passed explicitly wherever a rule depends on "now" so
that validation stays referentially transparent; wall-clock time is only
a fallback when the caller does not supply one.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def get_evaluation_time(evaluation_time: Optional[datetime] = None) -> datetime:
    """
    Get the evaluation time, preferring an explicit value over wall-clock time.

    Args:
        evaluation_time: Optional caller-supplied evaluation instant

    Returns:
        Evaluation time as UTC datetime
    """
    if evaluation_time is not None:
        return ensure_utc(evaluation_time)

    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_instant(value: str) -> datetime:
    """
    Parse an ISO 8601 instant into an aware UTC datetime.

    Args:
        value: ISO 8601 string, ``Z`` suffix accepted

    Returns:
        Aware UTC datetime

    Raises:
        ValueError: If the string is not a valid ISO 8601 instant
    """
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid instant: {value!r}")
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_instant(ts: datetime) -> str:
    """
    Format an instant for the public response.

    Args:
        ts: Datetime to format

    Returns:
        ISO 8601 string with an explicit UTC offset
    """
    return ensure_utc(ts).isoformat()


def add_hours(ts: datetime, hours: float) -> datetime:
    """Offset an instant by a fractional number of hours."""
    return ts + timedelta(seconds=hours * 3600.0)


def hours_between(start_time: datetime, end_time: datetime) -> float:
    """Elapsed time between two instants in hours."""
    return (end_time - start_time).total_seconds() / 3600.0
