"""Date and time utilities for authflow."""

from datetime import datetime, timedelta
from typing import Optional

import pytz


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Args:
        dt: Datetime to convert

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def expires_on(expires_in: Optional[int], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Convert a relative token lifetime into an absolute UTC expiry.

    Args:
        expires_in: Lifetime in seconds as reported by the provider
        now: Reference time (defaults to the current UTC time)

    Returns:
        UTC expiry datetime, or None if the provider did not report a lifetime
    """
    if expires_in is None:
        return None
    reference = ensure_utc(now) if now else datetime.now(pytz.utc)
    return reference + timedelta(seconds=int(expires_in))


def format_duration(seconds: float) -> str:
    """
    Render a timeout for user-facing messages.

    Examples: 30 -> "30 seconds", 1 -> "1 second", 0.5 -> "0.5 seconds".
    """
    unit = "second" if seconds == 1 else "seconds"
    return f"{seconds:g} {unit}"
