"""Cycle trend analysis and anomaly detection.

Statistics are computed over the *actual* gaps between consecutive period
starts rather than the ``cycle_length`` stored on each record, which is
often a user estimate.  This is the one canonical definition of cycle
variability; screens and reports read it from here.

Also builds symptom and mood frequency tables from a caller-supplied log.
The caller scopes that log to the right user; nothing here filters it.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Sequence

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.cycle_tracker import CycleRecord
from src.cycles.dates import days_between
from src.cycles.stats import (
    coefficient_of_variation,
    mean,
    median,
    median_absolute_deviation,
    population_stdev,
)

logger = logging.getLogger("cyclewise.cycles.trend_analyzer")


@dataclass(frozen=True)
class SymptomLog:
    """A single day's symptom log.

    Attributes:
        date:     Calendar date of the entry.
        mood:     Mood label, may be empty.
        symptoms: Symptom labels logged that day.
        flow:     Menstrual flow ('none', 'light', 'medium', 'heavy').
        spotting: Spotting level ('none', 'light', 'heavy').
    """

    date: date
    mood: str = ""
    symptoms: tuple[str, ...] = ()
    flow: str = "none"
    spotting: str = "none"


@dataclass(frozen=True)
class TrendPoint:
    """One point of the cycle-length chart."""

    cycle_number: int
    start_date: date
    cycle_length: int
    period_length: int


@dataclass(frozen=True)
class TrendInsight:
    """A human-readable observation about the cycle history.

    Attributes:
        kind:        'positive', 'neutral' or 'warning'.
        title:       Short display title.
        description: One-sentence explanation.
    """

    kind: str
    title: str
    description: str


@dataclass
class TrendReport:
    """Descriptive statistics over a user's cycle history.

    Attributes:
        mean_cycle_length:         Mean gap between period starts (days).
        median_cycle_length:       Median gap (days).
        standard_deviation:        Population std-dev of gaps (days).
        median_absolute_deviation: Median of |gap - median| (days).
        coefficient_of_variation:  Std-dev as a percentage of the mean.
        shortest_cycle:            Smallest gap (days).
        longest_cycle:             Largest gap (days).
        anomalies:                 Ordered human-readable flags.
        symptom_frequency:         Symptom label → occurrences.
        mood_frequency:            Mood label → occurrences.
        cycle_lengths:             The gaps themselves, oldest first.
        mean_period_length:        Mean bleeding length over all cycles.
        trend_points:              Per-cycle chart series.
        insights:                  Regularity and length observations.
    """

    mean_cycle_length: float
    median_cycle_length: float
    standard_deviation: float
    median_absolute_deviation: float
    coefficient_of_variation: float
    shortest_cycle: int
    longest_cycle: int
    anomalies: list[str] = field(default_factory=list)
    symptom_frequency: dict[str, int] = field(default_factory=dict)
    mood_frequency: dict[str, int] = field(default_factory=dict)
    cycle_lengths: list[int] = field(default_factory=list)
    mean_period_length: float = 0.0
    trend_points: list[TrendPoint] = field(default_factory=list)
    insights: list[TrendInsight] = field(default_factory=list)


def consecutive_gaps(cycles: Sequence[CycleRecord]) -> list[int]:
    """Days between each pair of consecutive period starts, oldest first."""
    ordered = sorted(cycles, key=lambda c: c.start_date)
    return [
        days_between(a.start_date, b.start_date)
        for a, b in zip(ordered, ordered[1:])
    ]


def frequency_table(labels: Iterable[str]) -> dict[str, int]:
    """Count labels, most frequent first, ties broken alphabetically."""
    counts = Counter(label.strip() for label in labels if label and label.strip())
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


class TrendAnalyzer:
    """Compute cycle statistics, anomalies and frequency tables.

    Usage::

        analyzer = TrendAnalyzer()
        report = analyzer.analyze(cycles, symptom_logs)
        if report is None:
            ...  # fewer than 5 cycles logged
    """

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()

    @property
    def _tr_config(self):
        return self._config.trends

    def analyze(
        self,
        cycles: Sequence[CycleRecord],
        symptom_logs: Sequence[SymptomLog] | None = None,
    ) -> TrendReport | None:
        """Build a TrendReport from the cycle history.

        Args:
            cycles:       Historical cycle records, any order.
            symptom_logs: Pre-scoped symptom logs for frequency tables.

        Returns:
            TrendReport, or None with fewer than ``min_cycles`` cycles.
        """
        tr = self._tr_config
        if len(cycles) < tr.min_cycles:
            logger.info(
                "Insufficient cycle history for trends: %d cycles (need %d)",
                len(cycles), tr.min_cycles,
            )
            return None

        ordered = sorted(cycles, key=lambda c: c.start_date)
        gaps = consecutive_gaps(ordered)
        logs = symptom_logs or []

        report = TrendReport(
            mean_cycle_length=mean(gaps),
            median_cycle_length=median(gaps),
            standard_deviation=population_stdev(gaps),
            median_absolute_deviation=median_absolute_deviation(gaps),
            coefficient_of_variation=coefficient_of_variation(gaps),
            shortest_cycle=min(gaps),
            longest_cycle=max(gaps),
            anomalies=self._detect_anomalies(ordered, gaps),
            symptom_frequency=frequency_table(s for log in logs for s in log.symptoms),
            mood_frequency=frequency_table(log.mood for log in logs),
            cycle_lengths=gaps,
            mean_period_length=mean([c.period_length for c in ordered]),
            trend_points=self._trend_points(ordered, gaps),
        )
        report.insights = self._insights(report)

        if report.anomalies:
            logger.info("Detected %d cycle anomalies", len(report.anomalies))
        return report

    def _detect_anomalies(
        self, ordered: Sequence[CycleRecord], gaps: Sequence[int]
    ) -> list[str]:
        """Flag out-of-range gaps, long periods and amenorrhea-scale gaps.

        Each check runs independently; a 95-day gap is reported both as an
        out-of-range length and in the amenorrhea summary.
        """
        tr = self._tr_config
        anomalies: list[str] = []

        for i, gap in enumerate(gaps, start=1):
            if gap < tr.normal_min_days or gap > tr.normal_max_days:
                anomalies.append(f"Cycle {i}→{i + 1}: length {gap} days")

        long_periods = sum(1 for c in ordered if c.period_length > tr.long_period_days)
        if long_periods:
            anomalies.append(
                f"{long_periods} cycle(s) with period length over {tr.long_period_days} days"
            )

        very_long = sum(1 for gap in gaps if gap >= tr.amenorrhea_gap_days)
        if very_long:
            anomalies.append(
                f"{very_long} gap(s) of {tr.amenorrhea_gap_days}+ days between periods "
                "(possible amenorrhea)"
            )

        return anomalies

    @staticmethod
    def _trend_points(
        ordered: Sequence[CycleRecord], gaps: Sequence[int]
    ) -> list[TrendPoint]:
        # The newest cycle has no successor yet; fall back to its stored length.
        return [
            TrendPoint(
                cycle_number=i + 1,
                start_date=cycle.start_date,
                cycle_length=gaps[i] if i < len(gaps) else cycle.cycle_length,
                period_length=cycle.period_length,
            )
            for i, cycle in enumerate(ordered)
        ]

    def _insights(self, report: TrendReport) -> list[TrendInsight]:
        tr = self._tr_config
        insights: list[TrendInsight] = []

        if report.standard_deviation <= tr.regular_max_std:
            insights.append(TrendInsight(
                kind="positive",
                title="Regular Cycles",
                description="Your cycles are very regular! This indicates good hormonal health.",
            ))
        elif report.standard_deviation <= tr.moderate_max_std:
            insights.append(TrendInsight(
                kind="neutral",
                title="Moderately Regular",
                description="Your cycles show some variation, which is normal for most people.",
            ))
        else:
            insights.append(TrendInsight(
                kind="warning",
                title="Irregular Cycles",
                description=(
                    "Consider tracking lifestyle factors that might affect "
                    "your cycle regularity."
                ),
            ))

        avg = round(report.mean_cycle_length, 1)
        if tr.normal_min_days <= report.mean_cycle_length <= tr.normal_max_days:
            insights.append(TrendInsight(
                kind="positive",
                title="Normal Cycle Length",
                description=(
                    f"Your average cycle length of {avg:g} days is within the healthy range."
                ),
            ))
        else:
            insights.append(TrendInsight(
                kind="warning",
                title="Cycle Length Notice",
                description=(
                    f"Your cycle length is outside the typical "
                    f"{tr.normal_min_days}-{tr.normal_max_days} day range. "
                    "Consider consulting a healthcare provider."
                ),
            ))

        return insights
