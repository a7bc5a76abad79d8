from datetime import datetime, timedelta, timezone
from typing import Optional

DAY = timedelta(days=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round trips)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(moment: datetime) -> datetime:
    """Last representable instant of the day containing `moment`."""
    return start_of_day(moment) + DAY - timedelta(microseconds=1)


def days_between(earlier: datetime, later: datetime) -> float:
    """Signed distance in fractional days."""
    return (ensure_aware(later) - ensure_aware(earlier)) / DAY
