"""Member date parsing and the reference dates used for filtering."""

from datetime import date, datetime

# ISO for the roster store, M/D/YY for the club-management CSV export
DATE_FORMATS = ('%Y-%m-%d', '%m/%d/%y')

# Returned for any unparseable date; sorts before every real date
ZERO_DATE = date.min

# Expire cutoff meaning "no date filtering requested"
NO_FILTER_DATE = date(1963, 11, 4)


def parse_date(value: str | None) -> date:
    """Parse a member date string.

    Args:
        value: Date string in ISO (``2025-12-31``) or M/D/YY (``12/31/25``)
            form. Surrounding whitespace is ignored.

    Returns:
        The parsed date, or ZERO_DATE if the string is empty or malformed.
    """
    if not value:
        return ZERO_DATE
    text = value.strip()
    for pattern in DATE_FORMATS:
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue
    return ZERO_DATE


def is_zero(value: date) -> bool:
    return value == ZERO_DATE


def end_of_year(today: date | None = None) -> str:
    """Return Dec 31 of the current local year as an ISO string."""
    today = today or date.today()
    return date(today.year, 12, 31).isoformat()
