"""Ledger date helpers.

Ledger dates are ISO strings in one of two forms: a full day
(``YYYY-MM-DD``) or a year-month (``YYYY-MM``) for month-end entries.
Both forms order correctly under plain string comparison, which is what
the repositories and the reconstructor rely on: a year-month sorts before
every day of that month.
"""

import calendar
import re
from datetime import date

_LEDGER_DATE_RE = re.compile(r"^(\d{4})-(\d{2})(?:-(\d{2}))?$")


def parse_ledger_date(value: str) -> str:
    """Validate a ledger date string and return it unchanged.

    Args:
        value: ``YYYY-MM-DD`` or ``YYYY-MM``

    Returns:
        The same string

    Raises:
        ValueError: If the string is not a real calendar day or month

    Example:
        >>> parse_ledger_date("2024-02")
        '2024-02'
        >>> parse_ledger_date("2024-02-30")
        Traceback (most recent call last):
        ValueError: ...
    """
    match = _LEDGER_DATE_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Date must be YYYY-MM-DD or YYYY-MM, got {value!r}")

    year, month, day = match.groups()
    try:
        if day is None:
            date(int(year), int(month), 1)
        else:
            date(int(year), int(month), int(day))
    except ValueError as e:
        raise ValueError(f"Invalid calendar date {value!r}: {e}") from e
    return value.strip()


def is_year_month(value: str) -> bool:
    """Whether ``value`` is the 7-character ``YYYY-MM`` form."""
    return len(value) == 7


def end_of_period(value: str) -> str:
    """Map a year-month to the last day of that month; days pass through.

    Used when a year-month has to be compared against full-day dates as
    "anything that happened within that month".

    Example:
        >>> end_of_period("2024-02")
        '2024-02-29'
        >>> end_of_period("2024-02-10")
        '2024-02-10'
    """
    if not is_year_month(value):
        return value
    year, month = int(value[:4]), int(value[5:7])
    last_day = calendar.monthrange(year, month)[1]
    return f"{value}-{last_day:02d}"


def year_month(day: date) -> str:
    """Format a date as ``YYYY-MM``."""
    return day.strftime("%Y-%m")


def one_year_before(day: date) -> date:
    """Same calendar day one year earlier (Feb 29 falls back to Feb 28)."""
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        return day.replace(year=day.year - 1, day=28)
