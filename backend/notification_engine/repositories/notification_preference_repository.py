"""Repository for per-user notification preferences."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.models.notification_preference import NotificationPreference


class NotificationPreferenceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: UUID) -> NotificationPreference | None:
        return (
            self.db.query(NotificationPreference)
            .filter(NotificationPreference.user_id == user_id)
            .first()
        )

    def get_or_default(self, user_id: UUID) -> NotificationPreference:
        """Stored preferences, or an unsaved record carrying the defaults."""
        preference = self.get_by_user(user_id)
        if preference is not None:
            return preference
        return NotificationPreference(
            user_id=user_id,
            notifications_enabled=True,
            push_enabled=True,
            email_enabled=True,
            sms_enabled=False,
            category_settings={},
            quiet_hours_enabled=False,
            quiet_hours_start="22:00",
            quiet_hours_end="07:00",
            weekend_notifications=True,
            timezone="UTC",
        )

    def upsert(self, user_id: UUID, values: dict[str, Any]) -> NotificationPreference:
        preference = self.get_by_user(user_id)
        if preference is None:
            preference = self.get_or_default(user_id)
            self.db.add(preference)
        for key, value in values.items():
            setattr(preference, key, value)
        self.db.commit()
        self.db.refresh(preference)
        return preference
