"""Tests for gap-based trend statistics, anomalies and frequency tables."""

from __future__ import annotations

import math
import statistics
from datetime import date

import pytest

from src.cycles.config_loader import CycleConfig
from src.cycles.trend_analyzer import (
    SymptomLog,
    TrendAnalyzer,
    consecutive_gaps,
    frequency_table,
)
from src.cycles.tests.conftest import (
    build_cycles_from_gaps,
    build_regular_cycles,
    make_cycle,
)


class TestMinimumHistory:
    @pytest.mark.parametrize("n", [0, 1, 4])
    def test_fewer_than_five_cycles_returns_none(
        self, cycle_config: CycleConfig, n: int
    ) -> None:
        analyzer = TrendAnalyzer(cycle_config)
        assert analyzer.analyze(build_regular_cycles(n) if n else []) is None

    def test_five_cycles_is_enough(self, cycle_config: CycleConfig) -> None:
        analyzer = TrendAnalyzer(cycle_config)
        assert analyzer.analyze(build_regular_cycles(5)) is not None


class TestStatistics:
    def test_identical_gaps(self, cycle_config: CycleConfig) -> None:
        report = TrendAnalyzer(cycle_config).analyze(build_regular_cycles(5, length=28))
        assert report.cycle_lengths == [28, 28, 28, 28]
        assert report.mean_cycle_length == pytest.approx(28.0)
        assert report.median_cycle_length == 28
        assert report.standard_deviation == 0
        assert report.coefficient_of_variation == 0
        assert report.median_absolute_deviation == 0
        assert report.shortest_cycle == 28
        assert report.longest_cycle == 28
        assert report.anomalies == []

    def test_gaps_ignore_stored_cycle_length(self, cycle_config: CycleConfig) -> None:
        # Stored lengths all claim 40 days; actual starts are 28 days apart
        cycles = [
            make_cycle(c.start_date, cycle_length=40) for c in build_regular_cycles(5)
        ]
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert report.mean_cycle_length == pytest.approx(28.0)

    def test_input_order_does_not_matter(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([26, 30, 28, 32])
        analyzer = TrendAnalyzer(cycle_config)
        forward = analyzer.analyze(cycles)
        backward = analyzer.analyze(list(reversed(cycles)))
        assert forward.cycle_lengths == backward.cycle_lengths == [26, 30, 28, 32]
        assert forward.anomalies == backward.anomalies

    def test_values_match_manual_recomputation(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([26, 30, 28, 32], period_length=5)
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        gaps = [26, 30, 28, 32]

        assert report.mean_cycle_length == pytest.approx(statistics.fmean(gaps))
        assert report.median_cycle_length == pytest.approx(statistics.median(gaps))
        assert report.standard_deviation == pytest.approx(statistics.pstdev(gaps))
        assert report.standard_deviation == pytest.approx(math.sqrt(5))
        assert report.median_absolute_deviation == pytest.approx(2.0)
        assert report.coefficient_of_variation == pytest.approx(math.sqrt(5) / 29 * 100)
        assert report.shortest_cycle == 26
        assert report.longest_cycle == 32
        assert report.mean_period_length == pytest.approx(5.0)

    def test_repeated_analysis_is_identical(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([26, 30, 28, 32])
        analyzer = TrendAnalyzer(cycle_config)
        assert analyzer.analyze(cycles) == analyzer.analyze(cycles)


class TestAnomalies:
    def test_single_short_gap(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([28, 28, 10, 28, 28])
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert report.anomalies == ["Cycle 3→4: length 10 days"]
        assert sum("length 10 days" in a for a in report.anomalies) == 1

    def test_long_gap_flags_length_and_amenorrhea(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([28, 28, 95, 28])
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert report.anomalies == [
            "Cycle 3→4: length 95 days",
            "1 gap(s) of 90+ days between periods (possible amenorrhea)",
        ]

    def test_range_boundaries_are_normal(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([21, 35, 21, 35])
        assert TrendAnalyzer(cycle_config).analyze(cycles).anomalies == []

    def test_just_outside_range(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([20, 28, 36, 28])
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert report.anomalies == [
            "Cycle 1→2: length 20 days",
            "Cycle 3→4: length 36 days",
        ]

    def test_long_periods_summarised_once(self, cycle_config: CycleConfig) -> None:
        cycles = build_regular_cycles(5)
        cycles[1] = make_cycle(cycles[1].start_date, 28, period_length=8)
        cycles[3] = make_cycle(cycles[3].start_date, 28, period_length=9)
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert report.anomalies == ["2 cycle(s) with period length over 7 days"]

    def test_seven_day_period_is_not_flagged(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([28, 28, 28, 28], period_length=7)
        assert TrendAnalyzer(cycle_config).analyze(cycles).anomalies == []

    def test_duplicate_start_dates_are_anomalies_not_errors(
        self, cycle_config: CycleConfig
    ) -> None:
        cycles = build_cycles_from_gaps([28, 0, 28, 28])
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert "Cycle 2→3: length 0 days" in report.anomalies
        assert report.shortest_cycle == 0
        for value in (
            report.mean_cycle_length,
            report.standard_deviation,
            report.coefficient_of_variation,
            report.median_absolute_deviation,
        ):
            assert not math.isnan(value)

    def test_all_same_day_gives_zero_cv(self, cycle_config: CycleConfig) -> None:
        cycles = [make_cycle(date(2024, 1, 1)) for _ in range(5)]
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert report.mean_cycle_length == 0
        assert report.coefficient_of_variation == 0
        assert len(report.anomalies) == 4


class TestFrequencyTables:
    def test_counts_symptoms_and_moods(self, cycle_config: CycleConfig) -> None:
        logs = [
            SymptomLog(date=date(2024, 1, 1), mood="happy", symptoms=("cramps", "bloating")),
            SymptomLog(date=date(2024, 1, 2), mood="sad", symptoms=("cramps",)),
            SymptomLog(date=date(2024, 1, 3), mood="happy"),
            SymptomLog(date=date(2024, 1, 4), mood=""),
        ]
        report = TrendAnalyzer(cycle_config).analyze(build_regular_cycles(5), logs)
        assert report.symptom_frequency == {"cramps": 2, "bloating": 1}
        assert list(report.symptom_frequency) == ["cramps", "bloating"]
        assert report.mood_frequency == {"happy": 2, "sad": 1}

    def test_no_logs_gives_empty_tables(self, cycle_config: CycleConfig) -> None:
        report = TrendAnalyzer(cycle_config).analyze(build_regular_cycles(5))
        assert report.symptom_frequency == {}
        assert report.mood_frequency == {}

    def test_ties_are_alphabetical(self) -> None:
        assert list(frequency_table(["tired", "acne", "tired", "acne", "bloating"])) == [
            "acne",
            "tired",
            "bloating",
        ]


class TestTrendPointsAndInsights:
    def test_trend_points(self, cycle_config: CycleConfig) -> None:
        cycles = build_cycles_from_gaps([26, 30, 28, 32])
        report = TrendAnalyzer(cycle_config).analyze(cycles)
        assert [p.cycle_number for p in report.trend_points] == [1, 2, 3, 4, 5]
        assert [p.cycle_length for p in report.trend_points] == [26, 30, 28, 32, 28]
        assert report.trend_points[0].start_date == date(2024, 1, 1)

    def test_regular_history_insights(self, cycle_config: CycleConfig) -> None:
        report = TrendAnalyzer(cycle_config).analyze(build_regular_cycles(5))
        titles = [i.title for i in report.insights]
        assert titles == ["Regular Cycles", "Normal Cycle Length"]
        assert "28 days" in report.insights[1].description

    def test_moderately_regular(self, cycle_config: CycleConfig) -> None:
        report = TrendAnalyzer(cycle_config).analyze(build_cycles_from_gaps([26, 30, 28, 32]))
        assert report.insights[0].title == "Moderately Regular"

    def test_irregular_and_long(self, cycle_config: CycleConfig) -> None:
        report = TrendAnalyzer(cycle_config).analyze(build_cycles_from_gaps([30, 50, 28, 60]))
        assert [i.kind for i in report.insights] == ["warning", "warning"]
        assert report.insights[0].title == "Irregular Cycles"
        assert report.insights[1].title == "Cycle Length Notice"


def test_consecutive_gaps_sorts_first() -> None:
    cycles = [make_cycle(date(2024, 3, 1)), make_cycle(date(2024, 1, 1)), make_cycle(date(2024, 1, 31))]
    assert consecutive_gaps(cycles) == [30, 30]
