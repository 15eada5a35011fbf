"""Repository for the notification engagement log."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.models.notification_interaction import NotificationInteraction


class NotificationInteractionRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        notification_id: UUID,
        user_id: UUID,
        action_type: str,
        action_key: str | None = None,
        action_data: dict[str, Any] | None = None,
    ) -> NotificationInteraction:
        interaction = NotificationInteraction(
            notification_id=notification_id,
            user_id=user_id,
            action_type=action_type,
            action_key=action_key,
            action_data=action_data or {},
        )
        self.db.add(interaction)
        self.db.commit()
        self.db.refresh(interaction)
        return interaction

    def get_for_notification(self, notification_id: UUID) -> list[NotificationInteraction]:
        return (
            self.db.query(NotificationInteraction)
            .filter(NotificationInteraction.notification_id == notification_id)
            .order_by(NotificationInteraction.interacted_at.asc())
            .all()
        )
