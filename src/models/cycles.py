"""Pydantic schemas for rows read from the hosted cycle store.

These sit between the store and the engine: rows arrive as snake_case
dicts (``start_date``, ``cycle_length`` …), are validated here, and
converted to the engine's frozen dataclasses.  Malformed rows are
rejected at this boundary so the engine can assume well-formed input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable

from pydantic import (
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from src.cycles.cycle_tracker import CycleRecord, UserProfile
from src.cycles.dates import parse_date
from src.cycles.reminders import ReminderSettings
from src.cycles.trend_analyzer import SymptomLog
from src.models.base import CyclewiseBase

logger = logging.getLogger("cyclewise.models.cycles")


def _store_date(value: Any) -> Any:
    # Store timestamps carry a time part; only the calendar day matters.
    return parse_date(value) if isinstance(value, str) else value


class CycleRow(CyclewiseBase):
    start_date: date
    end_date: date | None = None
    cycle_length: int = Field(gt=0)
    period_length: int = Field(gt=0)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _store_date(value)

    @model_validator(mode="after")
    def _end_not_before_start(self) -> CycleRow:
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )
        return self

    def to_record(self) -> CycleRecord:
        return CycleRecord(
            start_date=self.start_date,
            end_date=self.end_date,
            cycle_length=self.cycle_length,
            period_length=self.period_length,
        )


class ProfileRow(CyclewiseBase):
    """Profile columns the engine reads.  Lengths are clamped downstream, not here."""

    last_period_date: date | None = None
    cycle_length: int | None = None
    period_length: int | None = None

    @field_validator("last_period_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _store_date(value)

    def to_profile(self) -> UserProfile:
        return UserProfile(
            last_period_date=self.last_period_date,
            default_cycle_length=self.cycle_length,
            default_period_length=self.period_length,
        )


class SymptomRow(CyclewiseBase):
    log_date: date = Field(alias="date")
    mood: str = ""
    symptoms: list[str] = Field(default_factory=list)
    spotting: str = "none"
    menstrual_flow: str = "none"

    @field_validator("log_date", mode="before")
    @classmethod
    def _parse_dates(cls, value: Any) -> Any:
        return _store_date(value)

    @field_validator("mood", "spotting", "menstrual_flow", mode="before")
    @classmethod
    def _none_to_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return "" if info.field_name == "mood" else "none"
        return value

    @field_validator("symptoms", mode="before")
    @classmethod
    def _null_symptoms(cls, value: Any) -> Any:
        return [] if value is None else value

    def to_log(self) -> SymptomLog:
        return SymptomLog(
            date=self.log_date,
            mood=self.mood,
            symptoms=tuple(self.symptoms),
            flow=self.menstrual_flow,
            spotting=self.spotting,
        )


class ReminderSettingsRow(CyclewiseBase):
    """Stored reminder preferences; accepts the app's camelCase keys too."""

    enabled: bool = False
    days_before: int = Field(default=5, ge=1, le=14, alias="daysBefore")
    snooze_duration_hours: int = Field(default=24, ge=1, le=168, alias="snoozeDuration")

    def to_settings(self) -> ReminderSettings:
        return ReminderSettings(
            enabled=self.enabled,
            days_before=self.days_before,
            snooze_duration_hours=self.snooze_duration_hours,
        )


@dataclass
class RejectedRow:
    """A store row that failed validation."""

    index: int
    row: dict[str, Any]
    errors: list[str]


def load_cycle_rows(
    rows: Iterable[dict[str, Any]],
) -> tuple[list[CycleRecord], list[RejectedRow]]:
    """Validate store rows and convert the good ones to CycleRecords.

    Args:
        rows: Raw cycle rows as returned by the store.

    Returns:
        (records, rejected); records keep input order.
    """
    records: list[CycleRecord] = []
    rejected: list[RejectedRow] = []
    for i, row in enumerate(rows):
        try:
            records.append(CycleRow.model_validate(row).to_record())
        except ValidationError as exc:
            messages = [
                f"{'.'.join(str(p) for p in err['loc']) or 'row'}: {err['msg']}"
                for err in exc.errors()
            ]
            logger.warning("Rejected cycle row %d: %s", i, "; ".join(messages))
            rejected.append(RejectedRow(index=i, row=dict(row), errors=messages))
    return records, rejected


def load_symptom_rows(rows: Iterable[dict[str, Any]]) -> list[SymptomLog]:
    """Validate symptom rows; invalid rows are skipped with a warning."""
    logs: list[SymptomLog] = []
    for i, row in enumerate(rows):
        try:
            logs.append(SymptomRow.model_validate(row).to_log())
        except ValidationError as exc:
            logger.warning("Skipped symptom row %d: %d error(s)", i, exc.error_count())
    return logs
