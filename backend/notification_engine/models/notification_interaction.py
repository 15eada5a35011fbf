"""Engagement log: views, clicks and other user actions on a notification."""

from enum import Enum

from sqlalchemy import JSON, Column, ForeignKey, String

from notification_engine.core.database import Base
from notification_engine.models.shared import UTCDateTime, UUIDType, generate_uuid, utc_now


class InteractionType(str, Enum):
    VIEWED = "viewed"
    CLICKED = "clicked"
    DISMISSED = "dismissed"
    SNOOZED = "snoozed"
    COMPLETED = "completed"
    CUSTOM = "custom"


class NotificationInteraction(Base):
    __tablename__ = "notification_interactions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    notification_id = Column(
        UUIDType,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(UUIDType, nullable=False, index=True)
    action_type = Column(String(20), nullable=False)
    action_key = Column(String(100), nullable=True)
    action_data = Column(JSON, nullable=False, default=dict)
    interacted_at = Column(UTCDateTime, nullable=False, default=utc_now)
