"""Period reminder planning.

Decides *which* reminders should exist for a predicted period; delivering
them (local notifications, push, browser) is the host app's job.

Settings and snooze state are explicit inputs.  Snoozes are a plain
``tag → snoozed-until`` mapping owned by the caller; every function that
changes them returns a new mapping.

Reminder kinds, each with a stable notification id so re-scheduling
replaces rather than duplicates:

    id 1  ``period-reminder-{n}days``  ``days_before`` days ahead
    id 2  ``period-reminder-1day``     the day before
    id 3  ``period-reminder-today``    on the predicted day
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Mapping

from src.cycles.config_loader import CycleConfig, get_cycle_config
from src.cycles.dates import add_days

logger = logging.getLogger("cyclewise.cycles.reminders")


@dataclass(frozen=True)
class ReminderSettings:
    """A user's reminder preferences.

    Attributes:
        enabled:               Master switch; nothing is planned when off.
        days_before:           Lead time of the early reminder (days).
        snooze_duration_hours: How long a snoozed reminder stays quiet.
    """

    enabled: bool = False
    days_before: int = 5
    snooze_duration_hours: int = 24

    @classmethod
    def from_config(cls, config: CycleConfig | None = None) -> ReminderSettings:
        rm = (config or get_cycle_config()).reminders
        return cls(
            enabled=rm.enabled,
            days_before=rm.days_before,
            snooze_duration_hours=rm.snooze_duration_hours,
        )


@dataclass(frozen=True)
class Reminder:
    """One reminder to schedule or show."""

    notification_id: int
    tag: str
    title: str
    body: str
    fire_on: date
    can_snooze: bool = True


def _early_tag(settings: ReminderSettings) -> str:
    return f"period-reminder-{settings.days_before}days"


def _build_reminders(next_period_date: date, settings: ReminderSettings) -> list[Reminder]:
    return [
        Reminder(
            notification_id=1,
            tag=_early_tag(settings),
            title="Period Reminder 🌸",
            body=(
                f"Your period is expected to start in {settings.days_before} days. "
                "Don't forget to prepare!"
            ),
            fire_on=add_days(next_period_date, -settings.days_before),
        ),
        Reminder(
            notification_id=2,
            tag="period-reminder-1day",
            title="Period Tomorrow 🌸",
            body="Your period is expected to start tomorrow. Make sure you're prepared!",
            fire_on=add_days(next_period_date, -1),
        ),
        Reminder(
            notification_id=3,
            tag="period-reminder-today",
            title="🩸 Period Day is Here! 🌸",
            body=(
                "Your period is expected to start today. "
                "Don't forget to log it and track your symptoms!"
            ),
            fire_on=next_period_date,
        ),
    ]


def plan_reminders(
    next_period_date: date,
    settings: ReminderSettings,
    as_of_date: date | None = None,
) -> list[Reminder]:
    """Reminders to schedule ahead of time for ``next_period_date``.

    Only reminders dated strictly after ``as_of_date`` are returned; past
    and same-day ones are the job of ``due_reminders``.
    """
    if not settings.enabled:
        return []
    today = as_of_date or date.today()
    planned = [r for r in _build_reminders(next_period_date, settings) if r.fire_on > today]
    logger.debug("Planned %d reminder(s) for period on %s", len(planned), next_period_date)
    return planned


def is_snoozed(snoozes: Mapping[str, datetime], tag: str, now: datetime) -> bool:
    until = snoozes.get(tag)
    return until is not None and now <= until


def active_snoozes(snoozes: Mapping[str, datetime], now: datetime) -> dict[str, datetime]:
    """Drop expired snoozes."""
    return {tag: until for tag, until in snoozes.items() if now <= until}


def snooze(
    snoozes: Mapping[str, datetime],
    tag: str,
    settings: ReminderSettings,
    now: datetime,
) -> dict[str, datetime]:
    """Return a new snooze mapping with ``tag`` quiet for the configured duration.

    An existing snooze for the same tag is replaced, not extended.
    """
    updated = active_snoozes(snoozes, now)
    updated[tag] = now + timedelta(hours=settings.snooze_duration_hours)
    logger.info("Snoozed %s until %s", tag, updated[tag].isoformat())
    return updated


def due_reminders(
    next_period_date: date,
    settings: ReminderSettings,
    snoozes: Mapping[str, datetime],
    now: datetime,
) -> list[Reminder]:
    """Reminders that should be shown right now.

    A reminder is due when the days remaining until the period equal its
    lead time (``days_before``, 1 or 0) and its tag is not snoozed.
    """
    if not settings.enabled:
        return []
    today = now.date()
    due = [r for r in _build_reminders(next_period_date, settings) if r.fire_on == today]
    return [r for r in due if not is_snoozed(snoozes, r.tag, now)]
