"""Pydantic schemas for push token registration."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from notification_engine.models.push_token import PushPlatform


class PushTokenRegister(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    device_id: str = Field(min_length=1, max_length=255)
    platform: PushPlatform
    token: str = Field(min_length=1, max_length=4096)


class PushTokenResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    device_id: str
    platform: str
    is_active: bool
    last_used_at: datetime | None = None
    deactivated_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PushTokenDeregisterResponse(BaseModel):
    deactivated: int
