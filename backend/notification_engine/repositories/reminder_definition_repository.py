"""Reminder definition repository for data access."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.core.sorting import apply_order_by
from notification_engine.models.reminder_definition import ReminderDefinition


class ReminderDefinitionRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: UUID, **fields: Any) -> ReminderDefinition:
        definition = ReminderDefinition(user_id=user_id, **fields)
        self.db.add(definition)
        self.db.commit()
        self.db.refresh(definition)
        return definition

    def get_by_id(self, definition_id: UUID) -> ReminderDefinition | None:
        return (
            self.db.query(ReminderDefinition)
            .filter(ReminderDefinition.id == definition_id)
            .first()
        )

    def get_all(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 100,
        is_enabled: bool | None = None,
        order_by: str | None = None,
    ) -> list[ReminderDefinition]:
        query = self.db.query(ReminderDefinition).filter(ReminderDefinition.user_id == user_id)
        if is_enabled is not None:
            query = query.filter(ReminderDefinition.is_enabled == is_enabled)
        query = apply_order_by(query, ReminderDefinition, order_by)
        return query.offset(skip).limit(limit).all()

    def get_enabled(self) -> list[ReminderDefinition]:
        """Every enabled definition across all users, oldest first."""
        return (
            self.db.query(ReminderDefinition)
            .filter(ReminderDefinition.is_enabled == True)  # noqa: E712
            .order_by(ReminderDefinition.created_at.asc())
            .all()
        )

    def update(self, definition_id: UUID, values: dict[str, Any]) -> ReminderDefinition | None:
        definition = self.get_by_id(definition_id)
        if definition is None:
            return None
        for key, value in values.items():
            setattr(definition, key, value)
        self.db.commit()
        self.db.refresh(definition)
        return definition
