"""Caller-facing operations on notifications and reminder definitions.

Domain code (tasks, habits, prayer times, budgets) decides *what* to remind
about and calls into this service; the scheduler decides *when* it goes out.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.core.errors import NotFoundError
from notification_engine.models.notification import Notification, RepeatPattern
from notification_engine.models.notification_delivery_attempt import NotificationDeliveryAttempt
from notification_engine.models.notification_interaction import NotificationInteraction
from notification_engine.models.reminder_definition import ReminderDefinition
from notification_engine.models.shared import ensure_utc, utc_now
from notification_engine.repositories.notification_interaction_repository import (
    NotificationInteractionRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.repositories.reminder_definition_repository import (
    ReminderDefinitionRepository,
)
from notification_engine.schemas.notification import (
    NotificationCreate,
    NotificationInteractionCreate,
)
from notification_engine.schemas.reminder import (
    ReminderDefinitionCreate,
    ReminderDefinitionUpdate,
)
from notification_engine.services.notification_types import (
    DEFAULT_NOTIFICATION_TYPES,
    NotificationTypeTable,
    render_template,
    resolve_type,
)
from notification_engine.services.recurrence import parse_cron

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates notifications and reminder definitions and serves their read side."""

    def __init__(
        self,
        db: Session,
        types: NotificationTypeTable = DEFAULT_NOTIFICATION_TYPES,
        default_max_snooze_count: int = 3,
    ):
        self.db = db
        self.types = types
        self.default_max_snooze_count = default_max_snooze_count
        self.notifications = NotificationRepository(db)
        self.interactions = NotificationInteractionRepository(db)
        self.reminders = ReminderDefinitionRepository(db)

    def create_notification(self, user_id: UUID, data: NotificationCreate) -> Notification:
        """Create a pending notification.

        Title, body and priority fall back to the notification type's defaults;
        templates are filled from ``data.data``.

        Raises:
            ValueError: Unknown or inactive notification type.
        """
        config = resolve_type(self.types, data.notification_type)
        scheduled_at = ensure_utc(data.scheduled_at) if data.scheduled_at else utc_now()

        notification = self.notifications.create(
            user_id=user_id,
            notification_type=config.type_key,
            category=config.category,
            title=render_template(data.title or config.default_title, data.data),
            body=render_template(data.body or config.default_body, data.data),
            data=dict(data.data),
            scheduled_at=scheduled_at,
            is_reminder=data.is_reminder,
            reference_type=data.reference_type,
            reference_id=data.reference_id,
            repeat_pattern=data.repeat_pattern,
            cron_expression=data.cron_expression,
            max_snooze_count=(
                data.max_snooze_count
                if data.max_snooze_count is not None
                else self.default_max_snooze_count
            ),
            delivery_methods=list(data.delivery_methods),
            priority=data.priority or config.priority,
        )
        logger.info(
            "Created %s notification %s for user %s at %s",
            config.type_key,
            notification.id,
            user_id,
            scheduled_at,
        )
        return notification

    def get_notification(self, user_id: UUID, notification_id: UUID) -> Notification:
        """Fetch a notification owned by ``user_id`` or raise ``NotFoundError``."""
        notification = self.notifications.get_by_id(notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification", notification_id)
        return notification

    def record_interaction(
        self,
        user_id: UUID,
        notification_id: UUID,
        data: NotificationInteractionCreate,
    ) -> NotificationInteraction:
        """Append to the engagement log. Delivery state is untouched."""
        self.get_notification(user_id, notification_id)
        return self.interactions.create(
            notification_id=notification_id,
            user_id=user_id,
            action_type=str(data.action_type),
            action_key=data.action_key,
            action_data=data.action_data,
        )

    def get_delivery_attempts(
        self, user_id: UUID, notification_id: UUID
    ) -> list[NotificationDeliveryAttempt]:
        self.get_notification(user_id, notification_id)
        return self.notifications.get_delivery_attempts(notification_id)

    def get_stats(self, user_id: UUID, days: int = 30) -> dict[str, Any]:
        """Counts over the last ``days`` days plus delivery and click rates (percent)."""
        stats = self.notifications.stats(user_id, utc_now() - timedelta(days=days))
        total = stats["total"]
        sent = stats["sent"]
        stats["period_days"] = days
        stats["delivery_rate"] = round(sent / total * 100, 1) if total else 0.0
        stats["click_rate"] = round(stats["clicked"] / sent * 100, 1) if sent else 0.0
        return stats

    def create_reminder(self, user_id: UUID, data: ReminderDefinitionCreate) -> ReminderDefinition:
        """Register a recurring reminder for the generator to materialize."""
        resolve_type(self.types, data.notification_type)
        values = data.model_dump()
        for key in ("starts_at", "ends_at"):
            if values[key] is not None:
                values[key] = ensure_utc(values[key])
        definition = self.reminders.create(user_id, **values)
        logger.info(
            "Created %s reminder definition %s for user %s",
            definition.repeat_pattern,
            definition.id,
            user_id,
        )
        return definition

    def get_reminder(self, user_id: UUID, definition_id: UUID) -> ReminderDefinition:
        definition = self.reminders.get_by_id(definition_id)
        if definition is None or definition.user_id != user_id:
            raise NotFoundError("Reminder definition", definition_id)
        return definition

    def update_reminder(
        self,
        user_id: UUID,
        definition_id: UUID,
        data: ReminderDefinitionUpdate,
    ) -> ReminderDefinition:
        definition = self.get_reminder(user_id, definition_id)
        values = data.model_dump(exclude_unset=True)
        for key in ("starts_at", "ends_at"):
            if values.get(key) is not None:
                values[key] = ensure_utc(values[key])

        pattern = values.get("repeat_pattern", definition.repeat_pattern)
        cron_expression = values.get("cron_expression", definition.cron_expression)
        if pattern == RepeatPattern.CUSTOM.value:
            if not cron_expression:
                raise ValueError("cron_expression is required when repeat_pattern is 'custom'")
            parse_cron(cron_expression)

        updated = self.reminders.update(definition_id, values)
        if updated is None:
            raise NotFoundError("Reminder definition", definition_id)
        return updated

    def disable_reminder(self, user_id: UUID, definition_id: UUID) -> ReminderDefinition:
        """Stop generating from a definition. Already materialized notifications stay."""
        self.get_reminder(user_id, definition_id)
        updated = self.reminders.update(definition_id, {"is_enabled": False})
        if updated is None:
            raise NotFoundError("Reminder definition", definition_id)
        logger.info("Disabled reminder definition %s", definition_id)
        return updated
