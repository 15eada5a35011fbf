"""Tests for the caller-facing notification and reminder service."""

import uuid
from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from notification_engine.core.errors import NotFoundError
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.schemas.notification import (
    NotificationCreate,
    NotificationInteractionCreate,
)
from notification_engine.schemas.reminder import (
    ReminderDefinitionCreate,
    ReminderDefinitionUpdate,
)
from notification_engine.services.notification_service import NotificationService
from notification_engine.services.notification_types import (
    NotificationTypeConfig,
    build_type_table,
)
from tests.conftest import NOON, OTHER_USER_ID, create_notification


class TestCreateNotification:
    def test_defaults_from_type(self, db_session, user_id) -> None:
        service = NotificationService(db_session)

        notification = service.create_notification(
            user_id,
            NotificationCreate(
                notification_type="bill_due",
                data={"bill_name": "Rent", "amount": 1200},
                scheduled_at=NOON,
            ),
        )

        assert notification.status == "pending"
        assert notification.category == "finance"
        assert notification.title == "Bill Due Soon"
        assert notification.body == "Bill due: Rent - $1200"
        assert notification.priority == "high"
        assert notification.delivery_methods == ["push"]
        assert notification.max_snooze_count == 3
        assert notification.scheduled_at == NOON
        assert notification.version == 0

    def test_explicit_fields_win(self, db_session, user_id) -> None:
        notification = NotificationService(db_session, default_max_snooze_count=5).create_notification(
            user_id,
            NotificationCreate(
                notification_type="task_due",
                title="Heads up: {task_title}",
                body="Due soon",
                data={"task_title": "Taxes"},
                priority="urgent",
                delivery_methods=["email", "push", "email"],
            ),
        )

        assert notification.title == "Heads up: Taxes"
        assert notification.body == "Due soon"
        assert notification.priority == "urgent"
        assert notification.delivery_methods == ["email", "push"]
        assert notification.max_snooze_count == 5

    def test_defaults_to_now(self, db_session, user_id) -> None:
        before = datetime.now(UTC)
        notification = NotificationService(db_session).create_notification(
            user_id, NotificationCreate(notification_type="welcome")
        )
        assert notification.scheduled_at >= before - timedelta(seconds=1)

    def test_offset_timestamp_is_normalized(self, db_session, user_id) -> None:
        local = datetime(2026, 10, 14, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        notification = NotificationService(db_session).create_notification(
            user_id, NotificationCreate(notification_type="welcome", scheduled_at=local)
        )
        assert notification.scheduled_at == NOON

    def test_unknown_type(self, db_session, user_id) -> None:
        with pytest.raises(ValueError, match="Unknown notification type"):
            NotificationService(db_session).create_notification(
                user_id, NotificationCreate(notification_type="nope")
            )

    def test_custom_types_table(self, db_session, user_id) -> None:
        types = build_type_table([
            NotificationTypeConfig(
                type_key="standup",
                name="Standup",
                category="system",
                default_title="Standup",
                default_body="Standup in {minutes} minutes",
                priority="low",
            )
        ])

        notification = NotificationService(db_session, types=types).create_notification(
            user_id, NotificationCreate(notification_type="standup", data={"minutes": 5})
        )

        assert notification.body == "Standup in 5 minutes"
        assert notification.priority == "low"

    def test_custom_repeat_requires_cron(self) -> None:
        with pytest.raises(ValidationError):
            NotificationCreate(notification_type="task_due", repeat_pattern="custom")
        with pytest.raises(ValidationError):
            NotificationCreate(
                notification_type="task_due", repeat_pattern="custom", cron_expression="bad"
            )


class TestReadSide:
    def test_get_notification_checks_owner(self, db_session, user_id) -> None:
        notification = create_notification(db_session)
        service = NotificationService(db_session)

        assert service.get_notification(user_id, notification.id).id == notification.id
        with pytest.raises(NotFoundError):
            service.get_notification(OTHER_USER_ID, notification.id)
        with pytest.raises(NotFoundError):
            service.get_notification(user_id, uuid.uuid4())

    def test_record_interaction(self, db_session, user_id) -> None:
        notification = create_notification(db_session, status="sent", sent_at=NOON)

        interaction = NotificationService(db_session).record_interaction(
            user_id,
            notification.id,
            NotificationInteractionCreate(action_type="clicked", action_key="open"),
        )

        assert interaction.action_type == "clicked"
        assert interaction.action_key == "open"
        # Engagement never moves delivery state
        assert NotificationRepository(db_session).get(notification.id).status == "sent"

    def test_record_interaction_for_other_user(self, db_session) -> None:
        notification = create_notification(db_session)
        with pytest.raises(NotFoundError):
            NotificationService(db_session).record_interaction(
                OTHER_USER_ID,
                notification.id,
                NotificationInteractionCreate(action_type="viewed"),
            )

    def test_get_delivery_attempts(self, db_session, user_id) -> None:
        notification = create_notification(db_session)
        service = NotificationService(db_session)

        assert service.get_delivery_attempts(user_id, notification.id) == []
        with pytest.raises(NotFoundError):
            service.get_delivery_attempts(OTHER_USER_ID, notification.id)

    def test_stats(self, db_session, user_id) -> None:
        sent = create_notification(db_session, status="sent", sent_at=NOON)
        create_notification(db_session, status="sent", sent_at=NOON)
        create_notification(db_session, status="failed")
        create_notification(db_session, notification_type="welcome", category="system")
        create_notification(db_session, user_id=OTHER_USER_ID)
        service = NotificationService(db_session)
        service.record_interaction(
            user_id, sent.id, NotificationInteractionCreate(action_type="clicked")
        )

        stats = service.get_stats(user_id, days=7)

        assert stats["period_days"] == 7
        assert stats["total"] == 4
        assert stats["sent"] == 2
        assert stats["failed"] == 1
        assert stats["pending"] == 1
        assert stats["clicked"] == 1
        assert stats["delivery_rate"] == 50.0
        assert stats["click_rate"] == 50.0
        assert stats["by_type"]["task_due"] == {"count": 3, "sent": 2}

    def test_stats_empty(self, db_session, user_id) -> None:
        stats = NotificationService(db_session).get_stats(user_id)
        assert stats["total"] == 0
        assert stats["delivery_rate"] == 0.0
        assert stats["click_rate"] == 0.0


class TestReminders:
    def test_create_and_get(self, db_session, user_id) -> None:
        service = NotificationService(db_session)

        definition = service.create_reminder(
            user_id,
            ReminderDefinitionCreate(
                notification_type="salat_reminder",
                data={"prayer_name": "Fajr"},
                time_of_day="05:10",
                days_of_week=[5, 1, 1],
            ),
        )

        assert definition.repeat_pattern == "daily"
        assert definition.days_of_week == [1, 5]
        assert definition.is_enabled is True
        assert service.get_reminder(user_id, definition.id).id == definition.id
        with pytest.raises(NotFoundError):
            service.get_reminder(OTHER_USER_ID, definition.id)

    def test_create_unknown_type(self, db_session, user_id) -> None:
        with pytest.raises(ValueError):
            NotificationService(db_session).create_reminder(
                user_id, ReminderDefinitionCreate(notification_type="nope")
            )

    def test_create_validation(self) -> None:
        with pytest.raises(ValidationError):
            ReminderDefinitionCreate(notification_type="task_due", time_of_day="25:00")
        with pytest.raises(ValidationError):
            ReminderDefinitionCreate(notification_type="task_due", days_of_week=[0])
        with pytest.raises(ValidationError):
            ReminderDefinitionCreate(
                notification_type="task_due",
                starts_at=NOON,
                ends_at=NOON - timedelta(days=1),
            )

    def test_update(self, db_session, user_id) -> None:
        service = NotificationService(db_session)
        definition = service.create_reminder(
            user_id, ReminderDefinitionCreate(notification_type="habit_checkin")
        )

        updated = service.update_reminder(
            user_id,
            definition.id,
            ReminderDefinitionUpdate(time_of_day="07:30", repeat_pattern="weekly"),
        )

        assert updated.time_of_day == "07:30"
        assert updated.repeat_pattern == "weekly"
        assert updated.notification_type == "habit_checkin"

    def test_update_to_custom_needs_cron(self, db_session, user_id) -> None:
        service = NotificationService(db_session)
        definition = service.create_reminder(
            user_id, ReminderDefinitionCreate(notification_type="habit_checkin")
        )

        with pytest.raises(ValueError, match="cron_expression"):
            service.update_reminder(
                user_id, definition.id, ReminderDefinitionUpdate(repeat_pattern="custom")
            )

        updated = service.update_reminder(
            user_id,
            definition.id,
            ReminderDefinitionUpdate(repeat_pattern="custom", cron_expression="*/30 9-17 * * 1-5"),
        )
        assert updated.cron_expression == "*/30 9-17 * * 1-5"

    def test_disable(self, db_session, user_id) -> None:
        service = NotificationService(db_session)
        definition = service.create_reminder(
            user_id, ReminderDefinitionCreate(notification_type="habit_checkin")
        )

        assert service.disable_reminder(user_id, definition.id).is_enabled is False
        with pytest.raises(NotFoundError):
            service.disable_reminder(OTHER_USER_ID, definition.id)
