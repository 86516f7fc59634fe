"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def to_utc_datetime(value) -> datetime:
    """Coerce a date, datetime or ISO string to an aware UTC datetime.

    Naive datetimes are taken to already be in UTC; plain dates become
    midnight UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a point in time
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Could not parse datetime '{value}': {e}")
        return to_utc_datetime(parsed)
    raise ValueError(f"Expected a date or datetime, got {type(value).__name__}")


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates (defaults to today in UTC)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    if today is None:
        today = datetime.now(timezone.utc).date()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            return today - timedelta(days=today.weekday() + 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_datetime(value: str, today: Optional[date] = None) -> datetime:
    """Parse a user-supplied date or timestamp into a UTC datetime.

    Strings with a time component keep it; bare dates (including relative
    ones such as "yesterday") become midnight UTC.
    """
    stripped = value.strip()
    if "t" in stripped.lower() and any(ch.isdigit() for ch in stripped):
        try:
            return to_utc_datetime(date_parser.isoparse(stripped))
        except ValueError:
            pass
    return to_utc_datetime(parse_date(stripped, today=today))


def get_date_range(period: str, today: Optional[date] = None) -> tuple[datetime, datetime]:
    """Get the half-open ``[start, end)`` UTC range for a named period.

    Args:
        period: Period string (this-month, this-year, this-week, last-month,
            last-year, last-week)
        today: Reference day (defaults to today in UTC)

    Returns:
        Tuple of (start, end) datetimes; ``end`` is the first instant after
        the period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    if today is None:
        today = datetime.now(timezone.utc).date()

    if period == "this-month":
        start = today.replace(day=1)
        end = start + relativedelta(months=1)
    elif period == "this-year":
        start = today.replace(month=1, day=1)
        end = start + relativedelta(years=1)
    elif period == "this-week":
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=7)
    elif period == "last-month":
        end = today.replace(day=1)
        start = end - relativedelta(months=1)
    elif period == "last-year":
        end = today.replace(month=1, day=1)
        start = end - relativedelta(years=1)
    elif period == "last-week":
        end = today - timedelta(days=today.weekday())
        start = end - timedelta(days=7)
    else:
        raise ValueError(
            f"Unknown period: '{period}'. Supported periods: this-month, this-year, "
            "this-week, last-month, last-year, last-week"
        )

    return to_utc_datetime(start), to_utc_datetime(end)
