"""Reminder generator: materializes notifications from recurring definitions.

Each run looks at every enabled definition and creates at most one pending
notification per ``(definition, period bucket)``. The bucket is recorded in
``reminder_occurrences`` under a unique constraint, so running the generator
twice in a period (or from two workers at once) creates one notification.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from notification_engine.models.notification import Notification
from notification_engine.models.reminder_definition import ReminderDefinition
from notification_engine.models.shared import utc_now
from notification_engine.repositories.notification_preference_repository import (
    NotificationPreferenceRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.repositories.reminder_definition_repository import (
    ReminderDefinitionRepository,
)
from notification_engine.services.notification_types import (
    DEFAULT_NOTIFICATION_TYPES,
    NotificationTypeTable,
    render_template,
    resolve_type,
)
from notification_engine.services.quiet_hours import to_local
from notification_engine.services.recurrence import due_occurrence, period_bucket

logger = logging.getLogger(__name__)


class ReminderGenerator:
    def __init__(
        self,
        db: Session,
        types: NotificationTypeTable = DEFAULT_NOTIFICATION_TYPES,
        max_lateness_minutes: int = 60,
    ):
        self.types = types
        self.max_lateness = timedelta(minutes=max_lateness_minutes)
        self.definitions = ReminderDefinitionRepository(db)
        self.notifications = NotificationRepository(db)
        self.preferences = NotificationPreferenceRepository(db)

    def generate(self, now: datetime | None = None) -> int:
        """Create notifications for every definition due in the current period.

        Returns:
            Number of notifications created.
        """
        now = now or utc_now()
        created = 0
        for definition in self.definitions.get_enabled():
            try:
                if self.generate_for(definition, now) is not None:
                    created += 1
            except ValueError as exc:
                # Bad cron expression or retired notification type; other
                # definitions must still be served
                logger.warning("Skipping reminder definition %s: %s", definition.id, exc)

        if created:
            logger.info("Generated %d reminder notifications", created)
        return created

    def generate_for(self, definition: ReminderDefinition, now: datetime) -> Notification | None:
        """Materialize this period's occurrence of one definition, if due and not yet done."""
        if definition.starts_at is not None and definition.starts_at > now:
            return None
        if definition.ends_at is not None and definition.ends_at < now:
            return None

        config = resolve_type(self.types, str(definition.notification_type))
        preference = self.preferences.get_by_user(definition.user_id)
        if preference is not None and (preference.category_settings or {}).get(
            config.category, True
        ) is False:
            return None

        tz_name = preference.timezone if preference is not None else "UTC"
        occurrence = due_occurrence(definition, now, tz_name, self.max_lateness)
        if occurrence is None:
            return None
        if definition.ends_at is not None and occurrence > definition.ends_at:
            return None

        bucket = period_bucket(str(definition.repeat_pattern), to_local(occurrence, tz_name))
        if self.notifications.has_occurrence(definition.id, bucket):
            return None

        data = dict(definition.data or {})
        notification = self.notifications.create_for_occurrence(
            definition.id,
            bucket,
            user_id=definition.user_id,
            notification_type=config.type_key,
            category=config.category,
            title=render_template(definition.title or config.default_title, data),
            body=render_template(definition.body or config.default_body, data),
            data=data,
            scheduled_at=occurrence,
            reference_type=definition.reference_type,
            reference_id=definition.reference_id,
            repeat_pattern=definition.repeat_pattern,
            cron_expression=definition.cron_expression,
            max_snooze_count=definition.max_snooze_count,
            delivery_methods=list(definition.delivery_methods or []),
            priority=definition.priority or config.priority,
        )
        if notification is None:
            logger.debug(
                "Reminder definition %s already materialized for %s", definition.id, bucket
            )
            return None

        logger.info(
            "Materialized reminder %s for definition %s (%s) at %s",
            notification.id,
            definition.id,
            bucket,
            occurrence,
        )
        return notification
