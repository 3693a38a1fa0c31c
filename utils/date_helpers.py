from datetime import date, datetime, timedelta
import calendar
from utils.constants import DATE_FORMAT, DATETIME_FORMAT


def today() -> date:
    return date.today()


def now_str() -> str:
    return datetime.now().strftime(DATETIME_FORMAT)


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure."""
    if not date_str:
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue
    return None


def to_date(value: date | str | None) -> date | None:
    """Accept either a date or a YYYY-MM-DD string."""
    if value is None or isinstance(value, date):
        return value
    return parse_date(value)


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def clamp_day_to_month(year: int, month: int, day: int) -> int:
    """Clamp day to valid range for the given year/month."""
    max_day = calendar.monthrange(year, month)[1]
    return min(day, max_day)


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


def advance(d: date, frequency: str) -> date:
    """Return the occurrence one period after d.

    Pure: depends only on its arguments, never on the current date.
    """
    if frequency == "daily":
        return d + timedelta(days=1)
    if frequency == "weekly":
        return d + timedelta(days=7)
    if frequency == "monthly":
        return add_months(d, 1)
    if frequency == "yearly":
        return add_years(d, 1)
    raise ValueError(f"Unknown frequency: {frequency}")
