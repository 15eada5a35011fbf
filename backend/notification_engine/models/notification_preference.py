"""Per-user notification preferences."""

from sqlalchemy import JSON, Boolean, Column, String

from notification_engine.core.database import Base
from notification_engine.models.shared import UTCDateTime, UUIDType, generate_uuid, utc_now


class NotificationPreference(Base):
    """Delivery settings a user controls; read-only to the engine."""

    __tablename__ = "notification_preferences"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    user_id = Column(UUIDType, nullable=False, unique=True, index=True)

    notifications_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=True)
    email_enabled = Column(Boolean, nullable=False, default=True)
    sms_enabled = Column(Boolean, nullable=False, default=False)
    # category -> enabled; categories not listed are enabled
    category_settings = Column(JSON, nullable=False, default=dict)

    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_hours_start = Column(String(5), nullable=False, default="22:00")
    quiet_hours_end = Column(String(5), nullable=False, default="07:00")
    weekend_notifications = Column(Boolean, nullable=False, default=True)
    timezone = Column(String(64), nullable=False, default="UTC")

    email_address = Column(String(255), nullable=True)
    phone_number = Column(String(32), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utc_now)
    updated_at = Column(UTCDateTime, nullable=False, default=utc_now, onupdate=utc_now)
