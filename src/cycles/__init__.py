"""Cyclewise cycle engine.

Stateless prediction and statistics over a user's recorded cycles.  All
data is health data; callers pass in only what belongs to one user.

Modules:
    config_loader   Load/validate/hot-reload cycle_config.yaml
    dates           Calendar arithmetic helpers
    stats           Mean / std-dev / median / MAD / CV with zero guards
    cycle_tracker   Next-period, ovulation and fertile-window prediction
    trend_analyzer  Gap-based trend statistics, anomalies, frequency tables
    summary         User-facing prediction strings
    reminders       Reminder planning over explicit settings and snoozes
    engine          One call that runs all of the above
"""

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.cycle_tracker import (
    CyclePredictor,
    CycleRecord,
    PredictionResult,
    UserProfile,
    prediction_label,
    score_confidence,
)
from src.cycles.dates import days_until, is_within_window
from src.cycles.engine import CycleEngine, CycleInsights
from src.cycles.reminders import Reminder, ReminderSettings
from src.cycles.summary import format_prediction_summary
from src.cycles.trend_analyzer import SymptomLog, TrendAnalyzer, TrendReport

__all__ = [
    "CycleConfig",
    "get_cycle_config",
    "CycleRecord",
    "UserProfile",
    "PredictionResult",
    "CyclePredictor",
    "score_confidence",
    "prediction_label",
    "SymptomLog",
    "TrendReport",
    "TrendAnalyzer",
    "days_until",
    "is_within_window",
    "format_prediction_summary",
    "Reminder",
    "ReminderSettings",
    "CycleEngine",
    "CycleInsights",
]
