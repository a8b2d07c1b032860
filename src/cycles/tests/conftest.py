"""Shared fixtures and builders for cycle engine tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.cycles.config_loader import CycleConfig, load_cycle_config
from src.cycles.cycle_tracker import CycleRecord

# Fixed "today" so recency bonuses and summaries never depend on the clock
TEST_DATE = date(2024, 6, 1)


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cycle_config() -> CycleConfig:
    """Load the bundled cycle config for tests."""
    return load_cycle_config()


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_cycle(
    start: date,
    cycle_length: int = 28,
    period_length: int = 5,
    end: date | None = None,
) -> CycleRecord:
    return CycleRecord(
        start_date=start,
        cycle_length=cycle_length,
        period_length=period_length,
        end_date=end,
    )


def build_cycles_from_gaps(
    gaps: list[int], start: date = date(2024, 1, 1), period_length: int = 5
) -> list[CycleRecord]:
    """Build len(gaps) + 1 cycles whose consecutive starts differ by ``gaps``.

    Each record's stored cycle_length is the gap that follows it (28 for
    the last one).
    """
    cycles = []
    current = start
    for gap in gaps:
        cycles.append(make_cycle(current, gap, period_length))
        current += timedelta(days=gap)
    cycles.append(make_cycle(current, 28, period_length))
    return cycles


def build_regular_cycles(n: int = 6, length: int = 28, start: date = date(2024, 1, 1)) -> list[CycleRecord]:
    """Build n consecutive regular cycles."""
    return build_cycles_from_gaps([length] * (n - 1), start=start)
