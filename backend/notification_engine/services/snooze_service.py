"""Snooze and cancellation: the user-initiated side entries into the lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.core.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SnoozeLimitExceeded,
)
from notification_engine.models.notification import Notification, NotificationStatus
from notification_engine.models.notification_interaction import InteractionType
from notification_engine.models.shared import utc_now
from notification_engine.repositories.notification_interaction_repository import (
    NotificationInteractionRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

SNOOZABLE_STATUSES = {NotificationStatus.PENDING.value, NotificationStatus.SENT.value}
CANCELLABLE_STATUSES = {NotificationStatus.PENDING.value, NotificationStatus.SNOOZED.value}

# Re-reads after losing a compare-and-transition before giving up
MAX_CONFLICT_RETRIES = 3


class SnoozeManager:
    def __init__(self, db: Session, default_minutes: int = 10):
        self.default_minutes = default_minutes
        self.notifications = NotificationRepository(db)
        self.interactions = NotificationInteractionRepository(db)

    def _load(self, notification_id: UUID, user_id: UUID | None) -> Notification:
        notification = self.notifications.get(notification_id)
        if user_id is not None and notification.user_id != user_id:
            raise NotFoundError("Notification", notification_id)
        return notification

    def snooze(
        self,
        notification_id: UUID,
        minutes: int | None = None,
        user_id: UUID | None = None,
        now: datetime | None = None,
    ) -> Notification:
        """Push a pending or sent notification back by ``minutes``.

        Raises:
            SnoozeLimitExceeded: ``snooze_count`` already reached ``max_snooze_count``.
                Nothing is changed.
            InvalidTransitionError: The notification is not pending or sent.
            ConflictError: It kept changing underneath us.
            NotFoundError: No such notification for this user.
        """
        minutes = self.default_minutes if minutes is None else minutes
        if minutes <= 0:
            raise ValueError("Snooze duration must be positive")

        for _ in range(MAX_CONFLICT_RETRIES):
            now_ = now or utc_now()
            notification = self._load(notification_id, user_id)
            status = str(notification.status)
            if status not in SNOOZABLE_STATUSES:
                raise InvalidTransitionError(
                    notification_id, status, NotificationStatus.SNOOZED.value
                )
            if notification.snooze_count >= notification.max_snooze_count:
                raise SnoozeLimitExceeded(notification_id, int(notification.max_snooze_count))

            snooze_until = now_ + timedelta(minutes=minutes)
            try:
                snoozed = self.notifications.transition(
                    notification_id,
                    status,
                    NotificationStatus.SNOOZED.value,
                    fields={
                        "snooze_until": snooze_until,
                        "snooze_count": notification.snooze_count + 1,
                    },
                    expected_version=int(notification.version),
                )
            except InvalidTransitionError:
                raise
            except ConflictError:
                logger.info(
                    "Snooze of notification %s raced another update, retrying", notification_id
                )
                continue

            self.interactions.create(
                notification_id=notification_id,
                user_id=snoozed.user_id,
                action_type=InteractionType.SNOOZED.value,
                action_data={"minutes": minutes, "snooze_until": snooze_until.isoformat()},
            )
            logger.info(
                "Notification %s snoozed until %s (%d/%d)",
                notification_id,
                snooze_until,
                snoozed.snooze_count,
                snoozed.max_snooze_count,
            )
            return snoozed

        raise ConflictError(notification_id)

    def cancel(self, notification_id: UUID, user_id: UUID | None = None) -> Notification:
        """Cancel a pending or snoozed notification.

        The update only checks status, not version, so it beats a dispatch that
        is still in flight. Once the notification is sent, failed or cancelled
        this raises ``InvalidTransitionError`` naming that status.
        """
        for _ in range(MAX_CONFLICT_RETRIES):
            notification = self._load(notification_id, user_id)
            status = str(notification.status)
            if status not in CANCELLABLE_STATUSES:
                raise InvalidTransitionError(
                    notification_id, status, NotificationStatus.CANCELLED.value
                )
            try:
                cancelled = self.notifications.transition(
                    notification_id,
                    status,
                    NotificationStatus.CANCELLED.value,
                    fields={"locked_until": None},
                )
            except InvalidTransitionError:
                raise
            except ConflictError:
                continue
            logger.info("Notification %s cancelled", notification_id)
            return cancelled

        raise ConflictError(notification_id)
