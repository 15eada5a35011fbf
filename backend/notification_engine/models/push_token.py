"""Push notification device tokens."""

from enum import Enum

from sqlalchemy import Boolean, Column, String, Text, UniqueConstraint

from notification_engine.core.database import Base
from notification_engine.models.shared import UTCDateTime, UUIDType, generate_uuid, utc_now


class PushPlatform(str, Enum):
    WEB = "web"
    ANDROID = "android"
    IOS = "ios"


class PushToken(Base):
    __tablename__ = "push_tokens"
    __table_args__ = (
        UniqueConstraint("user_id", "device_id", "platform", name="uq_push_token_device"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, index=True)
    device_id = Column(String(255), nullable=False)
    platform = Column(String(20), nullable=False)
    token = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    last_used_at = Column(UTCDateTime, nullable=True, default=utc_now)
    deactivated_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)
