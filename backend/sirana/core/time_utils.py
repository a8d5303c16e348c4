from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple


def now_local() -> datetime:
    """Return a naive datetime in server local time.

    Record timestamps and all statistics windows use local time.
    """
    return datetime.now()


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def start_of_week(moment: datetime, week_starts_on: int = 6) -> datetime:
    """Midnight of the most recent ``week_starts_on`` weekday (0 = Monday)."""
    days_back = (moment.weekday() - week_starts_on) % 7
    return start_of_day(moment) - timedelta(days=days_back)


def start_of_month(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1)


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    """Half-open ``[day 00:00, next day 00:00)`` interval."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def date_range_bounds(
    date_from: Optional[date], date_to: Optional[date]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Turn an inclusive date range into ``[start, end)`` datetime bounds."""
    start = datetime.combine(date_from, time.min) if date_from else None
    end = day_bounds(date_to)[1] if date_to else None
    return start, end
