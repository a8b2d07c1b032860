"""Menstrual cycle prediction engine.

Uses calendar averaging over the recorded history to predict:
- Next period start date
- Ovulation date and fertile window
- A heuristic confidence score (10–95)

With no history the user's profile defaults seed the prediction.  The
luteal phase is a fixed 14 days regardless of cycle length: ovulation is
placed 14 days before the predicted period.  That is a deliberate
simplification, not a physiological model.

All functions are pure.  "Today" is always injectable via ``as_of_date``
so results are reproducible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.dates import add_days, days_between
from src.cycles.stats import mean, population_stdev, round_half_up

logger = logging.getLogger("cyclewise.cycles.cycle_tracker")


@dataclass(frozen=True)
class CycleRecord:
    """A single historical menstrual cycle.

    Attributes:
        start_date:    First day of bleeding.
        cycle_length:  Days attributed to this cycle.  May be a user estimate
                       rather than the true gap to the next cycle.
        period_length: Days of bleeding.
        end_date:      Last day of bleeding (optional).
    """

    start_date: date
    cycle_length: int
    period_length: int
    end_date: date | None = None


@dataclass(frozen=True)
class UserProfile:
    """The subset of a user's profile relevant to prediction."""

    last_period_date: date | None = None
    default_cycle_length: int | None = None
    default_period_length: int | None = None


@dataclass(frozen=True)
class PredictionResult:
    """Prediction for the user's next cycle.

    Attributes:
        next_period_date:        Best estimate for next period start.
        ovulation_date:          next_period_date minus the luteal phase.
        fertile_window_start:    First fertile day (inclusive).
        fertile_window_end:      Last fertile day (inclusive).
        confidence:              Integer percentage, 10–95.
        average_cycle_length:    Rounded mean cycle length used (days).
        predicted_period_length: Rounded mean period length (days).
        cycle_variability:       Population std-dev of cycle lengths (days).
        cycles_used:             Number of historical cycles behind the numbers.
    """

    next_period_date: date
    ovulation_date: date
    fertile_window_start: date
    fertile_window_end: date
    confidence: int
    average_cycle_length: int
    predicted_period_length: int
    cycle_variability: float
    cycles_used: int = 0


def score_confidence(
    cycles: Sequence[CycleRecord],
    variability: float,
    as_of_date: date | None = None,
    config: CycleConfig | None = None,
) -> int:
    """Score how much a prediction can be trusted.

    Additive heuristic: a base score, bonuses for data volume, a bonus or
    penalty for variability and a bonus for recent history, clamped to
    the configured bounds.

    Args:
        cycles:      Historical cycles behind the prediction.
        variability: Standard deviation of their cycle lengths (days).
        as_of_date:  Reference date for the recency bonus (defaults to today).
        config:      Engine config (defaults to the global singleton).

    Returns:
        Integer confidence percentage.
    """
    cf = (config or get_cycle_config()).confidence
    if not cycles:
        return cf.no_history

    today = as_of_date or date.today()
    score = cf.base
    score += cf.volume_bonus(len(cycles))
    score += cf.variability_adjustment(variability)

    cutoff = today - timedelta(days=cf.recency_window_days)
    recent = sum(1 for c in cycles if c.start_date > cutoff)
    if recent >= cf.recency_min_cycles:
        score += cf.recency_bonus

    return cf.clamp(score)


def prediction_label(confidence: int) -> str:
    """Short human description of a confidence score."""
    if confidence >= 80:
        return "High confidence"
    if confidence >= 60:
        return "Good confidence"
    if confidence >= 40:
        return "Moderate confidence"
    return "Low confidence - need more data"


class CyclePredictor:
    """Predict the next period and fertile window from cycle history.

    Usage::

        predictor = CyclePredictor()
        result = predictor.predict(
            cycles=past_cycles,
            profile=UserProfile(last_period_date=date(2024, 1, 1)),
            as_of_date=date(2024, 1, 10),
        )
        if result is not None:
            print(result.next_period_date, result.confidence)
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    @property
    def _pr_config(self):
        return self._config.prediction

    def predict(
        self,
        cycles: Sequence[CycleRecord],
        profile: UserProfile,
        as_of_date: date | None = None,
    ) -> PredictionResult | None:
        """Generate a prediction anchored on the profile's last period date.

        Args:
            cycles:     Historical cycle records, any order.
            profile:    User profile with anchor date and defaults.
            as_of_date: Reference date for confidence scoring (defaults to today).

        Returns:
            PredictionResult, or None when the profile has no last period
            date to extrapolate from.
        """
        pr = self._pr_config

        if profile.last_period_date is None:
            logger.info("No last period date on profile; prediction unavailable")
            return None

        if cycles:
            lengths = [c.cycle_length for c in cycles]
            average_cycle = round_half_up(mean(lengths))
            period_length = round_half_up(mean([c.period_length for c in cycles]))
            variability = population_stdev(lengths, center=average_cycle)
            confidence = score_confidence(cycles, variability, as_of_date, self._config)
        else:
            average_cycle, period_length = self.default_lengths(profile)
            variability = 0.0
            confidence = self._config.confidence.base

        next_period = add_days(profile.last_period_date, average_cycle)
        ovulation = add_days(next_period, -pr.luteal_phase_days)

        logger.debug(
            "Predicted next period %s from %d cycle(s): avg=%d sd=%.2f confidence=%d",
            next_period, len(cycles), average_cycle, variability, confidence,
        )

        return PredictionResult(
            next_period_date=next_period,
            ovulation_date=ovulation,
            fertile_window_start=add_days(ovulation, -pr.fertile_days_before_ovulation),
            fertile_window_end=add_days(ovulation, pr.fertile_days_after_ovulation),
            confidence=confidence,
            average_cycle_length=average_cycle,
            predicted_period_length=period_length,
            cycle_variability=variability,
            cycles_used=len(cycles),
        )

    def default_lengths(self, profile: UserProfile) -> tuple[int, int]:
        """Return (cycle, period) defaults from the profile, clamped to plausible ranges.

        Missing or non-positive values fall back to the configured defaults.
        """
        pr = self._pr_config
        cycle = profile.default_cycle_length or pr.fallback_cycle_length
        period = profile.default_period_length or pr.fallback_period_length
        if cycle <= 0:
            cycle = pr.fallback_cycle_length
        if period <= 0:
            period = pr.fallback_period_length

        clamped_cycle = min(max(cycle, pr.min_cycle_length), pr.max_cycle_length)
        clamped_period = min(max(period, pr.min_period_length), pr.max_period_length)
        if clamped_cycle != cycle or clamped_period != period:
            logger.warning(
                "Profile defaults out of range (cycle=%d, period=%d); clamped to (%d, %d)",
                cycle, period, clamped_cycle, clamped_period,
            )
        return clamped_cycle, clamped_period

    def roll_forward_anchor(
        self,
        last_period_date: date,
        cycle_length: int,
        as_of_date: date | None = None,
    ) -> tuple[bool, date]:
        """Project a stale last-period date forward by whole cycles.

        When more than ``missed_period_factor`` cycle lengths have passed
        without a new period being logged, assume the missed periods
        happened on schedule and return the most recent projected start.

        Args:
            last_period_date: Last logged period start.
            cycle_length:     Cycle length to project with (days).
            as_of_date:       Reference date (defaults to today).

        Returns:
            (should_update, anchor); anchor is unchanged when no update is due.
        """
        if cycle_length <= 0:
            return False, last_period_date

        today = as_of_date or date.today()
        elapsed = days_between(last_period_date, today)
        threshold = int(cycle_length * self._pr_config.missed_period_factor)
        if elapsed <= threshold:
            return False, last_period_date

        missed = elapsed // cycle_length
        anchor = add_days(last_period_date, missed * cycle_length)
        logger.info(
            "Projected %d missed cycle(s): anchor %s → %s", missed, last_period_date, anchor
        )
        return True, anchor

    @staticmethod
    def cycle_day(period_start: date, as_of_date: date | None = None) -> int:
        """Return the cycle day number for a given date.

        Day 1 = first day of period.  Dates before the period start give
        zero or negative numbers.
        """
        today = as_of_date or date.today()
        return days_between(period_start, today) + 1

    def current_phase(
        self,
        prediction: PredictionResult,
        last_period_date: date,
        as_of_date: date | None = None,
    ) -> str:
        """Estimate the current cycle phase.

        Returns:
            'menstrual', 'follicular', 'ovulation' or 'luteal'.
        """
        today = as_of_date or date.today()
        day = self.cycle_day(last_period_date, today)
        if 1 <= day <= prediction.predicted_period_length:
            return "menstrual"

        days_to_ov = days_between(today, prediction.ovulation_date)
        if days_to_ov > 1:
            return "follicular"
        if days_to_ov >= -1:
            return "ovulation"
        return "luteal"
