from datetime import date, datetime, timezone

from app.core.constants import SUNDAY


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def is_sunday(d: date) -> bool:
    return d.weekday() == SUNDAY


def days_late(d: date, today: date | None = None) -> int:
    """
    Whole days between a service date and today.
    Example: service on 2024-01-07, today 2024-01-10 -> 3
    Negative for future dates.
    """
    today = today or date.today()
    return (today - d).days
