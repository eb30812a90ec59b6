"""Date helpers shared by the maintenance engine."""

from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(anchor: date, months: int) -> date:
    """Add calendar months, clamping to the end of shorter months."""
    return anchor + relativedelta(months=months)


def days_between(start: date, end: date) -> int:
    """Whole days from start to end (negative when end is earlier)."""
    if isinstance(start, datetime):
        start = start.date()
    if isinstance(end, datetime):
        end = end.date()
    return (end - start).days
