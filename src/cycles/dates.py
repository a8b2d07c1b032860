"""Calendar arithmetic shared by the cycle engine.

All helpers work on ``datetime.date`` values.  Rows coming from the hosted
store carry ISO strings (``"2024-01-01"``) or timestamps
(``"2024-01-01T08:30:00Z"``); ``parse_date`` normalises both.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta


def parse_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime or ISO-8601 string to a ``date``.

    Raises:
        ValueError: If a string is not a valid ISO date or timestamp.
        TypeError:  For any other input type.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    raise TypeError(f"Cannot interpret {value!r} as a date")


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def days_between(earlier: date, later: date) -> int:
    """Signed whole days from ``earlier`` to ``later``."""
    return (later - earlier).days


def days_until(target: date, as_of_date: date | None = None) -> int:
    """Days from ``as_of_date`` (default today) until ``target``.

    Negative when the target has already passed.
    """
    today = as_of_date or date.today()
    return days_between(today, target)


def is_within_window(
    window_start: date, window_end: date, as_of_date: date | None = None
) -> bool:
    """True when ``as_of_date`` falls inside the window, both ends inclusive."""
    today = as_of_date or date.today()
    return window_start <= today <= window_end


def format_short_date(value: date) -> str:
    """Format as ``"Jan 05"`` for summary strings."""
    return value.strftime("%b %d")
