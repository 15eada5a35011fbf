"""Notification model and its lifecycle vocabulary."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, Index, Integer, String, Text

from notification_engine.core.database import Base
from notification_engine.models.shared import UTCDateTime, UUIDType, generate_uuid, utc_now


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"
    SNOOZED = "snoozed"


class RepeatPattern(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class DeliveryMethod(str, Enum):
    PUSH = "push"
    EMAIL = "email"
    SMS = "sms"


class NotificationCategory(str, Enum):
    TASK = "task"
    HABIT = "habit"
    FAITH = "faith"
    FINANCE = "finance"
    HEALTH = "health"
    SYSTEM = "system"


# Higher rank is dispatched first within a tick
PRIORITY_RANK = {
    NotificationPriority.LOW.value: 0,
    NotificationPriority.NORMAL.value: 1,
    NotificationPriority.HIGH.value: 2,
    NotificationPriority.URGENT.value: 3,
}

# Edges of the notification state machine. ``pending -> pending`` is the
# reschedule edge (quiet hours, retry backoff); ``sent -> snoozed`` lets a
# delivered reminder be resurfaced later.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    NotificationStatus.PENDING.value: frozenset(
        {
            NotificationStatus.PENDING.value,
            NotificationStatus.SENT.value,
            NotificationStatus.FAILED.value,
            NotificationStatus.CANCELLED.value,
            NotificationStatus.SNOOZED.value,
        }
    ),
    NotificationStatus.SNOOZED.value: frozenset(
        {
            NotificationStatus.PENDING.value,
            NotificationStatus.SENT.value,
            NotificationStatus.FAILED.value,
            NotificationStatus.CANCELLED.value,
        }
    ),
    NotificationStatus.SENT.value: frozenset({NotificationStatus.SNOOZED.value}),
    NotificationStatus.FAILED.value: frozenset(),
    NotificationStatus.CANCELLED.value: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    {NotificationStatus.FAILED.value, NotificationStatus.CANCELLED.value}
)


def is_allowed_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


class Notification(Base):
    """A scheduled unit of user-facing communication."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_due", "status", "scheduled_at"),
        Index("ix_notifications_reference", "reference_type", "reference_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    notification_type = Column(String(50), nullable=False, index=True)
    category = Column(String(20), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    data = Column(JSON, nullable=False, default=dict)

    scheduled_at = Column(UTCDateTime, nullable=False)
    # Nominal time of this occurrence; retries and quiet-hours deferrals move
    # scheduled_at but never this, so repeats stay anchored to it
    occurrence_at = Column(UTCDateTime, nullable=True)
    sent_at = Column(UTCDateTime, nullable=True)
    status = Column(
        String(20), nullable=False, default=NotificationStatus.PENDING.value, index=True
    )
    failure_reason = Column(String(1000), nullable=True)

    is_reminder = Column(Boolean, nullable=False, default=False)
    reminder_definition_id = Column(UUIDType, nullable=True, index=True)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(UUIDType, nullable=True)

    repeat_pattern = Column(String(20), nullable=False, default=RepeatPattern.NONE.value)
    cron_expression = Column(String(100), nullable=True)

    snooze_until = Column(UTCDateTime, nullable=True)
    snooze_count = Column(Integer, nullable=False, default=0)
    max_snooze_count = Column(Integer, nullable=False, default=3)

    delivery_methods = Column(JSON, nullable=False, default=lambda: [DeliveryMethod.PUSH.value])
    priority = Column(String(20), nullable=False, default=NotificationPriority.NORMAL.value)

    # Completed dispatch rounds; drives retry backoff
    attempt_count = Column(Integer, nullable=False, default=0)
    # Channels already delivered in the current delivery cycle
    delivered_channels = Column(JSON, nullable=False, default=list)
    # Optimistic concurrency counter, bumped on every compare-and-transition
    version = Column(Integer, nullable=False, default=0)
    # Dispatch lease; a notification is not handed out again until it expires
    locked_until = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)
