"""Notification store: durable lifecycle records plus the attempt log."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, case, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from notification_engine.core.errors import ConflictError, InvalidTransitionError, NotFoundError
from notification_engine.core.sorting import apply_order_by
from notification_engine.models.notification import (
    PRIORITY_RANK,
    TERMINAL_STATUSES,
    Notification,
    NotificationStatus,
    is_allowed_transition,
)
from notification_engine.models.notification_delivery_attempt import (
    NotificationDeliveryAttempt,
)
from notification_engine.models.notification_interaction import (
    InteractionType,
    NotificationInteraction,
)
from notification_engine.models.reminder_definition import ReminderOccurrence
from notification_engine.models.shared import ensure_utc, generate_uuid, utc_now


class NotificationRepository:
    """Repository for Notification records.

    ``transition`` and ``claim`` are the only ways to change a notification's
    status or lease. Both are a single conditional UPDATE, so two callers racing
    on the same row cannot both succeed.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Notification:
        fields.setdefault("occurrence_at", fields.get("scheduled_at"))
        notification = Notification(id=generate_uuid(), **fields)
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def create_for_occurrence(
        self,
        reminder_definition_id: UUID,
        period_bucket: str,
        **fields: Any,
    ) -> Notification | None:
        """Create a reminder notification and its idempotency record together.

        Returns ``None`` when the ``(definition, period)`` pair has already been
        materialized, including by a concurrent generator run.
        """
        notification = Notification(
            id=generate_uuid(),
            reminder_definition_id=reminder_definition_id,
            is_reminder=True,
            occurrence_at=fields.get("scheduled_at"),
            **fields,
        )
        occurrence = ReminderOccurrence(
            reminder_definition_id=reminder_definition_id,
            period_bucket=period_bucket,
            notification_id=notification.id,
        )
        self.db.add(occurrence)
        self.db.add(notification)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(notification)
        return notification

    def has_occurrence(self, reminder_definition_id: UUID, period_bucket: str) -> bool:
        return (
            self.db.query(ReminderOccurrence.id)
            .filter(
                ReminderOccurrence.reminder_definition_id == reminder_definition_id,
                ReminderOccurrence.period_bucket == period_bucket,
            )
            .first()
            is not None
        )

    def get_by_id(self, notification_id: UUID) -> Notification | None:
        return (
            self.db.query(Notification)
            .filter(Notification.id == notification_id)
            .first()
        )

    def get(self, notification_id: UUID) -> Notification:
        """Like ``get_by_id`` but raises ``NotFoundError``."""
        notification = self.get_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        return notification

    def _filtered(
        self,
        query: Query[Any],
        user_id: UUID,
        status: str | None,
        category: str | None,
        is_reminder: bool | None,
    ) -> Query[Any]:
        query = query.filter(Notification.user_id == user_id)
        if status is not None:
            query = query.filter(Notification.status == status)
        if category is not None:
            query = query.filter(Notification.category == category)
        if is_reminder is not None:
            query = query.filter(Notification.is_reminder == is_reminder)
        return query

    def get_all(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 50,
        status: str | None = None,
        category: str | None = None,
        is_reminder: bool | None = None,
        order_by: str | None = None,
    ) -> list[Notification]:
        query = self._filtered(
            self.db.query(Notification), user_id, status, category, is_reminder
        )
        query = apply_order_by(query, Notification, order_by, default_field="scheduled_at")
        return query.offset(skip).limit(limit).all()

    def count(
        self,
        user_id: UUID,
        status: str | None = None,
        category: str | None = None,
        is_reminder: bool | None = None,
    ) -> int:
        query = self._filtered(
            self.db.query(func.count(Notification.id)), user_id, status, category, is_reminder
        )
        return query.scalar() or 0

    def list_due(self, now: datetime, limit: int = 100) -> list[Notification]:
        """Pending notifications whose time has come and snoozes that expired.

        Notifications under an unexpired dispatch lease are left out. Urgent
        notifications come first, then oldest ``scheduled_at``.
        """
        priority_rank = case(PRIORITY_RANK, value=Notification.priority, else_=1)
        return (
            self.db.query(Notification)
            .filter(
                or_(
                    and_(
                        Notification.status == NotificationStatus.PENDING.value,
                        Notification.scheduled_at <= now,
                    ),
                    and_(
                        Notification.status == NotificationStatus.SNOOZED.value,
                        Notification.snooze_until <= now,
                    ),
                ),
                or_(Notification.locked_until.is_(None), Notification.locked_until <= now),
            )
            .order_by(priority_rank.desc(), Notification.scheduled_at.asc())
            .limit(limit)
            .all()
        )

    def transition(
        self,
        notification_id: UUID,
        expected_status: str,
        new_status: str,
        fields: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> Notification:
        """Atomically move a notification from ``expected_status`` to ``new_status``.

        Args:
            notification_id: Notification to update.
            expected_status: Status the caller last observed.
            new_status: Target status; must be an edge of the state machine.
            fields: Extra columns to set in the same UPDATE.
            expected_version: When given, the row's ``version`` must also match.

        Raises:
            InvalidTransitionError: The edge is not allowed, or the row has since
                moved to a status from which ``new_status`` is unreachable.
            ConflictError: Another writer changed the row first.
            NotFoundError: No such notification.
        """
        if not is_allowed_transition(expected_status, new_status):
            self.get(notification_id)
            raise InvalidTransitionError(notification_id, expected_status, new_status)

        values: dict[str, Any] = dict(fields or {})
        values["status"] = new_status
        values["version"] = Notification.version + 1
        values["updated_at"] = utc_now()

        query = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.status == expected_status,
        )
        if expected_version is not None:
            query = query.filter(Notification.version == expected_version)
        updated = query.update(values, synchronize_session=False)
        self.db.commit()

        if updated == 0:
            current = self.get(notification_id)
            if current.status != expected_status and not is_allowed_transition(
                str(current.status), new_status
            ):
                raise InvalidTransitionError(notification_id, str(current.status), new_status)
            raise ConflictError(notification_id)
        return self.get(notification_id)

    def claim(
        self,
        notification_id: UUID,
        expected_status: str,
        expected_version: int,
        lease_until: datetime,
        now: datetime,
    ) -> Notification:
        """Take the dispatch lease on a due notification.

        Raises ``ConflictError`` when the row changed since it was read or
        another worker already holds an unexpired lease.
        """
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.status == expected_status,
                Notification.version == expected_version,
                or_(Notification.locked_until.is_(None), Notification.locked_until <= now),
            )
            .update(
                {
                    "locked_until": lease_until,
                    "version": Notification.version + 1,
                    "updated_at": utc_now(),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        if updated == 0:
            raise ConflictError(notification_id)
        return self.get(notification_id)

    def release(self, notification_id: UUID, expected_version: int) -> bool:
        """Drop a lease without changing status. Returns False if the row moved on."""
        updated = (
            self.db.query(Notification)
            .filter(
                Notification.id == notification_id,
                Notification.version == expected_version,
            )
            .update(
                {"locked_until": None, "version": Notification.version + 1},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated > 0

    def append_attempts(
        self,
        notification_id: UUID,
        attempts: list[dict[str, Any]],
    ) -> list[NotificationDeliveryAttempt]:
        """Append delivery attempts, keeping ``attempted_at`` monotonic per notification."""
        if not attempts:
            return []

        last = (
            self.db.query(func.max(NotificationDeliveryAttempt.attempted_at))
            .filter(NotificationDeliveryAttempt.notification_id == notification_id)
            .scalar()
        )
        floor = ensure_utc(last) if last is not None else None

        rows: list[NotificationDeliveryAttempt] = []
        for attempt in sorted(attempts, key=lambda a: a.get("attempted_at") or utc_now()):
            attempted_at = ensure_utc(attempt.get("attempted_at") or utc_now())
            if floor is not None and attempted_at < floor:
                attempted_at = floor
            floor = attempted_at
            row = NotificationDeliveryAttempt(
                notification_id=notification_id,
                attempt_number=attempt["attempt_number"],
                channel=attempt["channel"],
                push_token_id=attempt.get("push_token_id"),
                outcome=attempt["outcome"],
                error_message=(attempt.get("error_message") or None),
                external_id=attempt.get("external_id"),
                attempted_at=attempted_at,
            )
            self.db.add(row)
            rows.append(row)
        self.db.commit()
        for row in rows:
            self.db.refresh(row)
        return rows

    def get_delivery_attempts(self, notification_id: UUID) -> list[NotificationDeliveryAttempt]:
        """Attempt log for a notification, oldest first."""
        return (
            self.db.query(NotificationDeliveryAttempt)
            .filter(NotificationDeliveryAttempt.notification_id == notification_id)
            .order_by(
                NotificationDeliveryAttempt.attempted_at.asc(),
                NotificationDeliveryAttempt.attempt_number.asc(),
            )
            .all()
        )

    def stats(self, user_id: UUID, since: datetime) -> dict[str, Any]:
        """Aggregate counts for a user's notifications created since ``since``."""
        base = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.created_at >= since,
        )

        status_rows = (
            base.with_entities(Notification.status, func.count(Notification.id))
            .group_by(Notification.status)
            .all()
        )
        by_status = {str(status): int(count) for status, count in status_rows}

        type_rows = (
            base.with_entities(
                Notification.notification_type,
                func.count(Notification.id).label("total"),
                func.sum(
                    case((Notification.status == NotificationStatus.SENT.value, 1), else_=0)
                ).label("sent"),
            )
            .group_by(Notification.notification_type)
            .all()
        )
        by_type = {
            str(row.notification_type): {"count": int(row.total), "sent": int(row.sent or 0)}
            for row in type_rows
        }

        day_column = func.date(Notification.created_at)
        day_rows = (
            base.with_entities(day_column, func.count(Notification.id))
            .group_by(day_column)
            .all()
        )
        by_day = {str(day): int(count) for day, count in day_rows}

        clicked = (
            self.db.query(func.count(func.distinct(NotificationInteraction.notification_id)))
            .join(Notification, Notification.id == NotificationInteraction.notification_id)
            .filter(
                Notification.user_id == user_id,
                Notification.created_at >= since,
                NotificationInteraction.action_type == InteractionType.CLICKED.value,
            )
            .scalar()
            or 0
        )

        return {
            "total": sum(by_status.values()),
            "sent": by_status.get(NotificationStatus.SENT.value, 0),
            "failed": by_status.get(NotificationStatus.FAILED.value, 0),
            "pending": by_status.get(NotificationStatus.PENDING.value, 0),
            "snoozed": by_status.get(NotificationStatus.SNOOZED.value, 0),
            "cancelled": by_status.get(NotificationStatus.CANCELLED.value, 0),
            "clicked": int(clicked),
            "by_type": by_type,
            "by_day": by_day,
        }

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete finished notifications created before ``cutoff`` with their logs."""
        finished = set(TERMINAL_STATUSES) | {NotificationStatus.SENT.value}
        ids = [
            row.id
            for row in self.db.query(Notification.id)
            .filter(
                Notification.created_at < cutoff,
                Notification.status.in_(finished),
            )
            .all()
        ]
        if not ids:
            return 0

        self.db.query(NotificationDeliveryAttempt).filter(
            NotificationDeliveryAttempt.notification_id.in_(ids)
        ).delete(synchronize_session=False)
        self.db.query(NotificationInteraction).filter(
            NotificationInteraction.notification_id.in_(ids)
        ).delete(synchronize_session=False)
        deleted = (
            self.db.query(Notification)
            .filter(Notification.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted
