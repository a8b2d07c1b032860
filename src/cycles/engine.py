"""Single entry point combining prediction, trends and reminders.

Every consumer (dashboard, reports, reminder job) calls
``CycleEngine.build_insights`` instead of re-deriving statistics, so all
of them agree on one set of numbers for the same input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.cycle_tracker import (
    CyclePredictor,
    CycleRecord,
    PredictionResult,
    UserProfile,
    prediction_label,
)
from src.cycles.dates import days_until
from src.cycles.reminders import Reminder, ReminderSettings, plan_reminders
from src.cycles.stats import mean, round_half_up
from src.cycles.summary import format_prediction_summary, in_fertile_window
from src.cycles.trend_analyzer import SymptomLog, TrendAnalyzer, TrendReport

logger = logging.getLogger("cyclewise.cycles.engine")


@dataclass
class CycleInsights:
    """Everything the app shows about a user's cycle on one date.

    Prediction-derived fields are None when no prediction is available.
    ``trends`` is None with too little history.
    """

    as_of_date: date
    prediction: PredictionResult | None = None
    summary: str | None = None
    confidence_label: str | None = None
    days_until_period: int | None = None
    in_fertile_window: bool = False
    cycle_day: int | None = None
    phase: str | None = None
    anchor_projected: bool = False
    trends: TrendReport | None = None
    reminders: list[Reminder] = field(default_factory=list)


class CycleEngine:
    """Run the whole cycle pipeline for one user."""

    def __init__(self, config: CycleConfig | None = None) -> None:
        self._config = config or get_cycle_config()
        self.predictor = CyclePredictor(self._config)
        self.analyzer = TrendAnalyzer(self._config)

    def build_insights(
        self,
        cycles: Sequence[CycleRecord],
        profile: UserProfile,
        symptom_logs: Sequence[SymptomLog] = (),
        reminder_settings: ReminderSettings | None = None,
        as_of_date: date | None = None,
        project_missed_periods: bool = False,
    ) -> CycleInsights:
        """Compute prediction, summary, trends and reminders.

        Args:
            cycles:                 Validated cycle history.
            profile:                User profile (anchor date + defaults).
            symptom_logs:           Pre-scoped logs for frequency tables.
            reminder_settings:      Reminder preferences (config defaults if None).
            as_of_date:             Reference date (defaults to today).
            project_missed_periods: Roll a stale anchor forward by whole
                                    cycles before predicting.

        Returns:
            CycleInsights for ``as_of_date``.
        """
        today = as_of_date or date.today()
        settings = reminder_settings or ReminderSettings.from_config(self._config)
        insights = CycleInsights(as_of_date=today)

        if project_missed_periods and profile.last_period_date is not None:
            cycle_length = self._anchor_cycle_length(cycles, profile)
            moved, anchor = self.predictor.roll_forward_anchor(
                profile.last_period_date, cycle_length, today
            )
            if moved:
                profile = UserProfile(
                    last_period_date=anchor,
                    default_cycle_length=profile.default_cycle_length,
                    default_period_length=profile.default_period_length,
                )
                insights.anchor_projected = True

        prediction = self.predictor.predict(cycles, profile, as_of_date=today)
        if prediction is not None and profile.last_period_date is not None:
            insights.prediction = prediction
            insights.summary = format_prediction_summary(prediction, today)
            insights.confidence_label = prediction_label(prediction.confidence)
            insights.days_until_period = days_until(prediction.next_period_date, today)
            insights.in_fertile_window = in_fertile_window(prediction, today)
            insights.cycle_day = self.predictor.cycle_day(profile.last_period_date, today)
            insights.phase = self.predictor.current_phase(
                prediction, profile.last_period_date, today
            )
            insights.reminders = plan_reminders(prediction.next_period_date, settings, today)

        insights.trends = self.analyzer.analyze(cycles, symptom_logs)

        logger.debug(
            "Built insights for %s: prediction=%s trends=%s reminders=%d",
            today,
            insights.prediction is not None,
            insights.trends is not None,
            len(insights.reminders),
        )
        return insights

    def _anchor_cycle_length(
        self, cycles: Sequence[CycleRecord], profile: UserProfile
    ) -> int:
        if cycles:
            return round_half_up(mean([c.cycle_length for c in cycles]))
        return self.predictor.default_lengths(profile)[0]
