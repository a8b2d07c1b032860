"""User-facing prediction strings.

The phrasing here is a contract with every screen and notification that
shows it; change it only together with those consumers.
"""

from __future__ import annotations

from datetime import date

from src.cycles.cycle_tracker import PredictionResult
from src.cycles.dates import days_until, format_short_date, is_within_window


def format_prediction_summary(result: PredictionResult, as_of_date: date | None = None) -> str:
    """Describe when the next period is due relative to ``as_of_date``.

    Returns one of:
        "Period was expected {n} days ago"
        "Period expected today"
        "Period expected tomorrow"
        "Period expected in {n} days ({Mon dd})"
    """
    days = days_until(result.next_period_date, as_of_date)
    if days < 0:
        return f"Period was expected {abs(days)} days ago"
    if days == 0:
        return "Period expected today"
    if days == 1:
        return "Period expected tomorrow"
    return f"Period expected in {days} days ({format_short_date(result.next_period_date)})"


def in_fertile_window(result: PredictionResult, as_of_date: date | None = None) -> bool:
    return is_within_window(result.fertile_window_start, result.fertile_window_end, as_of_date)
