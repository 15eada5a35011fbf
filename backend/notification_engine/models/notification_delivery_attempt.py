"""Delivery attempt log: one row per channel target per dispatch round."""

from enum import Enum

from sqlalchemy import Column, ForeignKey, Index, Integer, String

from notification_engine.core.database import Base
from notification_engine.models.shared import UTCDateTime, UUIDType, generate_uuid, utc_now


class DeliveryOutcome(str, Enum):
    SUCCESS = "success"
    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    PERMANENT = "permanent"


# Ordered from least to most severe
OUTCOME_SEVERITY = {
    DeliveryOutcome.SUCCESS.value: 0,
    DeliveryOutcome.TRANSIENT.value: 1,
    DeliveryOutcome.RATE_LIMITED.value: 2,
    DeliveryOutcome.PERMANENT.value: 3,
}


class NotificationDeliveryAttempt(Base):
    """Append-only record of a single delivery try via one channel."""

    __tablename__ = "notification_delivery_attempts"
    __table_args__ = (
        Index(
            "ix_notification_delivery_attempts_notification_id",
            "notification_id",
            "attempted_at",
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    notification_id = Column(
        UUIDType,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
    )
    attempt_number = Column(Integer, nullable=False)
    channel = Column(String(20), nullable=False)
    push_token_id = Column(UUIDType, nullable=True)
    outcome = Column(String(20), nullable=False)
    error_message = Column(String(1000), nullable=True)
    external_id = Column(String(255), nullable=True)
    attempted_at = Column(UTCDateTime, nullable=False, default=utc_now)
