"""Recurring reminder templates and their materialized occurrences."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from notification_engine.core.database import Base
from notification_engine.models.notification import RepeatPattern
from notification_engine.models.shared import UTCDateTime, UUIDType, generate_uuid, utc_now


class ReminderDefinition(Base):
    """Template the reminder generator turns into notifications once per period."""

    __tablename__ = "reminder_definitions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    notification_type = Column(String(50), nullable=False)

    title = Column(String(255), nullable=True)
    body = Column(Text, nullable=True)
    data = Column(JSON, nullable=False, default=dict)
    reference_type = Column(String(50), nullable=True)
    reference_id = Column(UUIDType, nullable=True)

    repeat_pattern = Column(String(20), nullable=False, default=RepeatPattern.DAILY.value)
    time_of_day = Column(String(5), nullable=False, default="09:00")
    # ISO weekdays, Monday = 1 ... Sunday = 7
    days_of_week = Column(JSON, nullable=False, default=list)
    day_of_month = Column(Integer, nullable=True)
    cron_expression = Column(String(100), nullable=True)

    delivery_methods = Column(JSON, nullable=False, default=lambda: ["push"])
    priority = Column(String(20), nullable=True)
    max_snooze_count = Column(Integer, nullable=False, default=3)

    is_enabled = Column(Boolean, nullable=False, default=True, index=True)
    starts_at = Column(UTCDateTime, nullable=True)
    ends_at = Column(UTCDateTime, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)


class ReminderOccurrence(Base):
    """Idempotency record: one notification per definition per period bucket."""

    __tablename__ = "reminder_occurrences"
    __table_args__ = (
        UniqueConstraint(
            "reminder_definition_id", "period_bucket", name="uq_reminder_occurrence_period"
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    reminder_definition_id = Column(
        UUIDType,
        ForeignKey("reminder_definitions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_bucket = Column(String(32), nullable=False)
    notification_id = Column(UUIDType, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
