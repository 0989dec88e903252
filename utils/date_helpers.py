from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo
import calendar
from utils.constants import DATE_FORMAT


def today() -> date:
    return date.today()


def today_in(tz_name: str) -> date:
    """Calendar date right now in the given IANA time zone."""
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str or not isinstance(date_str, str):
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def to_calendar_date(value) -> date:
    """Normalize a date, datetime or ISO string to a plain calendar date.

    Datetimes lose their time of day. Raises ValueError for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # Accept full ISO timestamps, e.g. '2024-06-04T13:45:00Z'
        parsed = parse_date(value[:10])
        if parsed is not None:
            return parsed
    raise ValueError(f"Invalid date: {value!r}")


def is_on_or_before(d: date, ref: date) -> bool:
    return d <= ref


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


def add_days(d: date, n: int) -> date:
    return d + timedelta(days=n)


def add_weeks(d: date, n: int) -> date:
    return d + timedelta(days=7 * n)


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping day to month end."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = clamp_day_to_month(year, month, d.day)
    return d.replace(year=year, month=month, day=day)


def add_years(d: date, n: int) -> date:
    """Add n years to date d; Feb 29 becomes Feb 28 in non-leap years."""
    year = d.year + n
    return d.replace(year=year, day=clamp_day_to_month(year, d.month, d.day))


def days_until(d: date, ref: date) -> int:
    return (d - ref).days
