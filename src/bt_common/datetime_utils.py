"""UTC datetime utilities.

History timestamps are stored as epoch milliseconds (BIGINT).
"""

from datetime import datetime, timedelta, timezone

MILLIS_PER_DAY = 24 * 60 * 60 * 1000


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def now_millis() -> int:
    """Current time as epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)


def millis_to_datetime(millis: int) -> datetime:
    """Epoch milliseconds -> timezone-aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def retention_cutoff_millis(retention_days: int, now_ms: int | None = None) -> int:
    """Rows with timestamp strictly below this value are outside the window."""
    if now_ms is None:
        now_ms = now_millis()
    return now_ms - retention_days * MILLIS_PER_DAY


def seconds_until_hour(hour: int, now: datetime | None = None) -> float:
    """Seconds from `now` until the next occurrence of `hour`:00 UTC.

    If `now` is exactly on the hour, the next day's occurrence is returned.
    """
    if not (0 <= hour <= 23):
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")
    if now is None:
        now = utc_now()
    target = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return (target - now).total_seconds()
