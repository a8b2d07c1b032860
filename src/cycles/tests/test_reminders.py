"""Tests for reminder planning, due checks and snoozing."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from src.cycles.config_loader import CycleConfig
from src.cycles.reminders import (
    ReminderSettings,
    active_snoozes,
    due_reminders,
    is_snoozed,
    plan_reminders,
    snooze,
)

NEXT_PERIOD = date(2024, 1, 29)
ENABLED = ReminderSettings(enabled=True, days_before=5, snooze_duration_hours=24)


class TestSettings:
    def test_defaults_from_config(self, cycle_config: CycleConfig) -> None:
        settings = ReminderSettings.from_config(cycle_config)
        assert settings == ReminderSettings(enabled=False, days_before=5, snooze_duration_hours=24)


class TestPlanReminders:
    def test_disabled_plans_nothing(self) -> None:
        assert plan_reminders(NEXT_PERIOD, ReminderSettings(), date(2024, 1, 1)) == []

    def test_all_three_in_future(self) -> None:
        planned = plan_reminders(NEXT_PERIOD, ENABLED, date(2024, 1, 20))
        assert [r.notification_id for r in planned] == [1, 2, 3]
        assert [r.fire_on for r in planned] == [
            date(2024, 1, 24),
            date(2024, 1, 28),
            date(2024, 1, 29),
        ]
        assert planned[0].tag == "period-reminder-5days"
        assert "5 days" in planned[0].body

    def test_past_reminders_skipped(self) -> None:
        planned = plan_reminders(NEXT_PERIOD, ENABLED, date(2024, 1, 25))
        assert [r.notification_id for r in planned] == [2, 3]

    def test_same_day_not_scheduled(self) -> None:
        assert plan_reminders(NEXT_PERIOD, ENABLED, NEXT_PERIOD) == []

    def test_custom_lead_time(self) -> None:
        settings = ReminderSettings(enabled=True, days_before=3)
        planned = plan_reminders(NEXT_PERIOD, settings, date(2024, 1, 1))
        assert planned[0].fire_on == date(2024, 1, 26)
        assert planned[0].tag == "period-reminder-3days"


class TestDueReminders:
    @pytest.mark.parametrize(
        "now, ids",
        [
            (datetime(2024, 1, 24, 9), [1]),
            (datetime(2024, 1, 28, 9), [2]),
            (datetime(2024, 1, 29, 9), [3]),
            (datetime(2024, 1, 26, 9), []),
            (datetime(2024, 1, 30, 9), []),
        ],
    )
    def test_due_by_day(self, now: datetime, ids: list[int]) -> None:
        due = due_reminders(NEXT_PERIOD, ENABLED, {}, now)
        assert [r.notification_id for r in due] == ids

    def test_disabled(self) -> None:
        assert due_reminders(NEXT_PERIOD, ReminderSettings(), {}, datetime(2024, 1, 28, 9)) == []

    def test_snoozed_reminder_suppressed_until_expiry(self) -> None:
        snoozes = {"period-reminder-1day": datetime(2024, 1, 28, 20)}
        assert due_reminders(NEXT_PERIOD, ENABLED, snoozes, datetime(2024, 1, 28, 9)) == []
        due = due_reminders(NEXT_PERIOD, ENABLED, snoozes, datetime(2024, 1, 28, 21))
        assert [r.notification_id for r in due] == [2]


class TestSnooze:
    def test_snooze_returns_new_mapping(self) -> None:
        now = datetime(2024, 1, 28, 9)
        original: dict[str, datetime] = {}
        updated = snooze(original, "period-reminder-1day", ENABLED, now)
        assert original == {}
        assert updated == {"period-reminder-1day": now + timedelta(hours=24)}
        assert is_snoozed(updated, "period-reminder-1day", now + timedelta(hours=23))
        assert not is_snoozed(updated, "period-reminder-1day", now + timedelta(hours=25))

    def test_snooze_replaces_existing(self) -> None:
        now = datetime(2024, 1, 28, 9)
        first = snooze({}, "period-reminder-today", ENABLED, now)
        second = snooze(first, "period-reminder-today", ENABLED, now + timedelta(hours=2))
        assert second["period-reminder-today"] == now + timedelta(hours=26)

    def test_custom_duration(self) -> None:
        now = datetime(2024, 1, 28, 9)
        settings = ReminderSettings(enabled=True, snooze_duration_hours=4)
        assert snooze({}, "x", settings, now)["x"] == now + timedelta(hours=4)

    def test_expired_snoozes_dropped(self) -> None:
        now = datetime(2024, 1, 28, 9)
        snoozes = {
            "old": now - timedelta(hours=1),
            "live": now + timedelta(hours=1),
        }
        assert active_snoozes(snoozes, now) == {"live": now + timedelta(hours=1)}
        assert "old" not in snooze(snoozes, "new", ENABLED, now)

    def test_unknown_tag_not_snoozed(self) -> None:
        assert not is_snoozed({}, "period-reminder-1day", datetime(2024, 1, 28))
