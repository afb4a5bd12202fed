"""Calendar helpers. Weeks start on Monday."""
from datetime import date, datetime, timedelta
from typing import List, Optional, Union

from calorie.utilities.constants import DATE_FORMAT, DAYS_PER_WEEK


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def week_dates(week_start: date) -> List[date]:
    return [week_start + timedelta(days=i) for i in range(DAYS_PER_WEEK)]


def day_index(week_start: date, day: date) -> int:
    """Offset of day from week_start (0 = Monday). Not clamped."""
    return (day - week_start).days


def in_week(week_start: date, day: date) -> bool:
    return 0 <= day_index(week_start, day) < DAYS_PER_WEEK


def days_until_next_monday(day: date) -> int:
    """Days left in the week including day itself (Monday -> 7, Sunday -> 1)."""
    return DAYS_PER_WEEK - day.weekday()


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value, DATE_FORMAT).date()


def format_date(value: Optional[date]) -> Optional[str]:
    return value.strftime(DATE_FORMAT) if value is not None else None


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positives, the way calorie figures are shown."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)
