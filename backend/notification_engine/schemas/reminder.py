"""Pydantic schemas for recurring reminder definitions."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from notification_engine.models.notification import (
    DeliveryMethod,
    NotificationPriority,
    RepeatPattern,
)
from notification_engine.schemas.notification_preference import validate_time_of_day
from notification_engine.services.recurrence import parse_cron


def _check_days(v: list[int] | None) -> list[int] | None:
    if v is None:
        return v
    if any(day < 1 or day > 7 for day in v):
        raise ValueError("days_of_week must be ISO weekdays 1 (Monday) to 7 (Sunday)")
    return sorted(set(v))


class ReminderDefinitionCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    notification_type: str = Field(min_length=1, max_length=50)
    title: str | None = Field(default=None, max_length=255)
    body: str | None = Field(default=None, max_length=4000)
    data: dict[str, Any] = Field(default_factory=dict)
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: UUID | None = None
    repeat_pattern: RepeatPattern = RepeatPattern.DAILY
    time_of_day: str = "09:00"
    days_of_week: list[int] = Field(default_factory=list)
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    cron_expression: str | None = Field(default=None, max_length=100)
    delivery_methods: list[DeliveryMethod] = Field(
        default_factory=lambda: [DeliveryMethod.PUSH], min_length=1
    )
    priority: NotificationPriority | None = None
    max_snooze_count: int = Field(default=3, ge=0, le=20)
    is_enabled: bool = True
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    @field_validator("time_of_day")
    @classmethod
    def check_time(cls, v: str) -> str:
        return validate_time_of_day(v) or v

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, v: list[int]) -> list[int]:
        return _check_days(v) or []

    @model_validator(mode="after")
    def check_schedule(self) -> "ReminderDefinitionCreate":
        if self.repeat_pattern == RepeatPattern.CUSTOM.value:
            if not self.cron_expression:
                raise ValueError("cron_expression is required when repeat_pattern is 'custom'")
            parse_cron(self.cron_expression)
        if self.starts_at and self.ends_at and self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        return self


class ReminderDefinitionUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    title: str | None = Field(default=None, max_length=255)
    body: str | None = Field(default=None, max_length=4000)
    data: dict[str, Any] | None = None
    repeat_pattern: RepeatPattern | None = None
    time_of_day: str | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    cron_expression: str | None = Field(default=None, max_length=100)
    delivery_methods: list[DeliveryMethod] | None = Field(default=None, min_length=1)
    priority: NotificationPriority | None = None
    max_snooze_count: int | None = Field(default=None, ge=0, le=20)
    is_enabled: bool | None = None
    starts_at: datetime | None = None
    ends_at: datetime | None = None

    @field_validator("time_of_day")
    @classmethod
    def check_time(cls, v: str | None) -> str | None:
        return validate_time_of_day(v)

    @field_validator("days_of_week")
    @classmethod
    def check_days(cls, v: list[int] | None) -> list[int] | None:
        return _check_days(v)

    @field_validator("cron_expression")
    @classmethod
    def check_cron(cls, v: str | None) -> str | None:
        if v is not None:
            parse_cron(v)
        return v


class ReminderDefinitionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    notification_type: str
    title: str | None = None
    body: str | None = None
    data: dict[str, Any]
    reference_type: str | None = None
    reference_id: UUID | None = None
    repeat_pattern: str
    time_of_day: str
    days_of_week: list[int]
    day_of_month: int | None = None
    cron_expression: str | None = None
    delivery_methods: list[str]
    priority: str | None = None
    max_snooze_count: int
    is_enabled: bool
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
