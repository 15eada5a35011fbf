"""Pydantic schemas for notification preferences."""

from datetime import datetime
from typing import Any
from uuid import UUID

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator

from notification_engine.models.notification import NotificationCategory
from notification_engine.services.quiet_hours import parse_time_of_day


def validate_time_of_day(value: str | None) -> str | None:
    """Accept ``HH:MM`` (24h) and normalize to zero-padded form."""
    if value is None:
        return value
    try:
        parsed = parse_time_of_day(value)
    except ValueError:
        raise ValueError("Time must be in HH:MM format") from None
    return parsed.strftime("%H:%M")


class NotificationPreferenceUpdate(BaseModel):
    notifications_enabled: bool | None = None
    push_enabled: bool | None = None
    email_enabled: bool | None = None
    sms_enabled: bool | None = None
    category_settings: dict[str, bool] | None = None
    quiet_hours_enabled: bool | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    weekend_notifications: bool | None = None
    timezone: str | None = Field(default=None, max_length=64)
    email_address: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=32)

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def check_time(cls, v: str | None) -> str | None:
        return validate_time_of_day(v)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        if v is not None and v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @field_validator("category_settings")
    @classmethod
    def check_categories(cls, v: dict[str, Any] | None) -> dict[str, Any] | None:
        if v is None:
            return v
        known = {c.value for c in NotificationCategory}
        unknown = sorted(set(v) - known)
        if unknown:
            raise ValueError(f"Unknown categories: {', '.join(unknown)}")
        return v


class NotificationPreferenceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    notifications_enabled: bool
    push_enabled: bool
    email_enabled: bool
    sms_enabled: bool
    category_settings: dict[str, bool]
    quiet_hours_enabled: bool
    quiet_hours_start: str
    quiet_hours_end: str
    weekend_notifications: bool
    timezone: str
    email_address: str | None = None
    phone_number: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
