"""Tests for materializing reminder definitions into notifications."""

from datetime import timedelta

import pytest

from notification_engine.models.notification import Notification
from notification_engine.repositories.notification_preference_repository import (
    NotificationPreferenceRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.repositories.reminder_definition_repository import (
    ReminderDefinitionRepository,
)
from notification_engine.services.reminder_generator import ReminderGenerator
from tests.conftest import NOON


def _define(db, user_id, **overrides):  # type: ignore[no-untyped-def]
    fields = {
        "notification_type": "habit_checkin",
        "data": {"habit_name": "Read"},
        "repeat_pattern": "daily",
        "time_of_day": "12:00",
    }
    fields.update(overrides)
    return ReminderDefinitionRepository(db).create(user_id, **fields)


def _notifications(db):  # type: ignore[no-untyped-def]
    return db.query(Notification).order_by(Notification.scheduled_at).all()


class TestGenerate:
    def test_creates_pending_notification(self, db_session, user_id) -> None:
        definition = _define(db_session, user_id)

        assert ReminderGenerator(db_session).generate(NOON) == 1

        [notification] = _notifications(db_session)
        assert notification.status == "pending"
        assert notification.user_id == user_id
        assert notification.scheduled_at == NOON
        assert notification.title == "Time for Your Habit"
        assert notification.body == "Don't forget: Read"
        assert notification.category == "habit"
        assert notification.priority == "normal"
        assert notification.is_reminder is True
        assert notification.reminder_definition_id == definition.id
        assert notification.repeat_pattern == "daily"

    def test_same_period_is_idempotent(self, db_session, user_id) -> None:
        """However often the generator runs in a period, one notification results."""
        definition = _define(db_session, user_id)
        generator = ReminderGenerator(db_session)

        assert generator.generate(NOON) == 1
        assert generator.generate(NOON) == 0
        assert generator.generate(NOON + timedelta(minutes=30)) == 0
        assert generator.generate_for(definition, NOON) is None

        assert len(_notifications(db_session)) == 1
        assert NotificationRepository(db_session).has_occurrence(definition.id, "2026-10-14")

    def test_next_period_creates_again(self, db_session, user_id) -> None:
        _define(db_session, user_id)
        generator = ReminderGenerator(db_session)

        generator.generate(NOON)
        generator.generate(NOON + timedelta(days=1))

        assert [n.scheduled_at for n in _notifications(db_session)] == [
            NOON,
            NOON + timedelta(days=1),
        ]

    def test_materializes_later_today_ahead_of_time(self, db_session, user_id) -> None:
        _define(db_session, user_id, time_of_day="18:00")

        assert ReminderGenerator(db_session).generate(NOON) == 1
        assert _notifications(db_session)[0].scheduled_at == NOON.replace(hour=18)

    def test_stale_occurrence_is_skipped(self, db_session, user_id) -> None:
        _define(db_session, user_id, time_of_day="09:00")

        assert ReminderGenerator(db_session).generate(NOON) == 0
        assert ReminderGenerator(db_session, max_lateness_minutes=240).generate(NOON) == 1

    @pytest.mark.parametrize(
        "overrides, expected",
        [
            ({"repeat_pattern": "weekly", "days_of_week": [3]}, 1),
            ({"repeat_pattern": "weekly", "days_of_week": [1]}, 0),
            ({"repeat_pattern": "daily", "days_of_week": [1, 2, 3, 4, 5]}, 1),
            ({"repeat_pattern": "daily", "days_of_week": [6, 7]}, 0),
            ({"repeat_pattern": "monthly", "day_of_month": 14}, 1),
            ({"repeat_pattern": "monthly", "day_of_month": 15}, 0),
            ({"repeat_pattern": "custom", "cron_expression": "0 12 * * *"}, 1),
            ({"repeat_pattern": "custom", "cron_expression": "0 12 * * mon"}, 0),
        ],
    )
    def test_patterns(self, db_session, user_id, overrides, expected) -> None:
        # NOON is Wednesday the 14th
        _define(db_session, user_id, **overrides)
        assert ReminderGenerator(db_session).generate(NOON) == expected

    def test_weekly_fires_on_each_listed_day(self, db_session, user_id) -> None:
        _define(db_session, user_id, repeat_pattern="weekly", days_of_week=[3, 4])
        generator = ReminderGenerator(db_session)

        assert generator.generate(NOON) == 1
        assert generator.generate(NOON + timedelta(days=1)) == 1
        assert generator.generate(NOON + timedelta(days=2)) == 0
        assert generator.generate(NOON + timedelta(days=7)) == 1

    def test_dense_cron_keeps_up_when_run_every_minute(self, db_session, user_id) -> None:
        _define(
            db_session, user_id, repeat_pattern="custom", cron_expression="*/30 * * * *"
        )
        generator = ReminderGenerator(db_session)

        start = NOON - timedelta(hours=2)
        for minute in range(121):
            generator.generate(start + timedelta(minutes=minute))

        times = [n.scheduled_at for n in _notifications(db_session)]
        assert times == [start + timedelta(minutes=m) for m in (0, 30, 60, 90, 120)]
        assert NOON in times

    def test_uses_users_timezone(self, db_session, user_id) -> None:
        NotificationPreferenceRepository(db_session).upsert(
            user_id, {"timezone": "America/New_York"}
        )
        _define(db_session, user_id, time_of_day="08:00")

        assert ReminderGenerator(db_session).generate(NOON) == 1
        # 08:00 EDT is 12:00 UTC
        assert _notifications(db_session)[0].scheduled_at == NOON

    def test_definition_overrides_type_defaults(self, db_session, user_id) -> None:
        _define(
            db_session,
            user_id,
            notification_type="medication_reminder",
            title="Pills for {medication_name}",
            body="Take {dose}",
            data={"medication_name": "Aspirin", "dose": "100mg"},
            priority="high",
            delivery_methods=["push", "email"],
            max_snooze_count=1,
        )

        ReminderGenerator(db_session).generate(NOON)

        [notification] = _notifications(db_session)
        assert notification.title == "Pills for Aspirin"
        assert notification.body == "Take 100mg"
        assert notification.priority == "high"
        assert notification.delivery_methods == ["push", "email"]
        assert notification.max_snooze_count == 1

    def test_type_priority_is_default(self, db_session, user_id) -> None:
        _define(db_session, user_id, notification_type="medication_reminder", data={})

        ReminderGenerator(db_session).generate(NOON)

        assert _notifications(db_session)[0].priority == "urgent"


class TestSkipRules:
    def test_disabled_definition(self, db_session, user_id) -> None:
        _define(db_session, user_id, is_enabled=False)
        assert ReminderGenerator(db_session).generate(NOON) == 0

    def test_disabled_category(self, db_session, user_id) -> None:
        NotificationPreferenceRepository(db_session).upsert(
            user_id, {"category_settings": {"habit": False}}
        )
        _define(db_session, user_id)
        _define(db_session, user_id, notification_type="task_due", data={"task_title": "x"})

        assert ReminderGenerator(db_session).generate(NOON) == 1
        assert _notifications(db_session)[0].category == "task"

    def test_outside_active_range(self, db_session, user_id) -> None:
        _define(db_session, user_id, starts_at=NOON + timedelta(days=1))
        _define(db_session, user_id, ends_at=NOON - timedelta(days=1))
        _define(db_session, user_id, ends_at=NOON - timedelta(minutes=1), time_of_day="12:30")

        assert ReminderGenerator(db_session).generate(NOON) == 0

    def test_one_time_reminder_fires_at_start(self, db_session, user_id) -> None:
        _define(db_session, user_id, repeat_pattern="none", starts_at=NOON - timedelta(minutes=5))
        generator = ReminderGenerator(db_session)

        assert generator.generate(NOON) == 1
        assert generator.generate(NOON + timedelta(days=1)) == 0
        assert _notifications(db_session)[0].scheduled_at == NOON - timedelta(minutes=5)

    def test_bad_definitions_do_not_block_others(self, db_session, user_id) -> None:
        _define(db_session, user_id, repeat_pattern="custom", cron_expression=None)
        _define(db_session, user_id, repeat_pattern="custom", cron_expression="not a cron")
        _define(db_session, user_id, notification_type="retired_type")
        _define(db_session, user_id)

        assert ReminderGenerator(db_session).generate(NOON) == 1
