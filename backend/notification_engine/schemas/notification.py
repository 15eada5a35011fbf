"""Pydantic schemas for notifications, their attempt log and engagement log."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from notification_engine.models.notification import (
    DeliveryMethod,
    NotificationPriority,
    RepeatPattern,
)
from notification_engine.models.notification_interaction import InteractionType
from notification_engine.services.recurrence import parse_cron


class NotificationCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    notification_type: str = Field(min_length=1, max_length=50)
    title: str | None = Field(default=None, max_length=255)
    body: str | None = Field(default=None, max_length=4000)
    data: dict[str, Any] = Field(default_factory=dict)
    scheduled_at: datetime | None = None
    delivery_methods: list[DeliveryMethod] = Field(
        default_factory=lambda: [DeliveryMethod.PUSH], min_length=1
    )
    priority: NotificationPriority | None = None
    repeat_pattern: RepeatPattern = RepeatPattern.NONE
    cron_expression: str | None = Field(default=None, max_length=100)
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: UUID | None = None
    max_snooze_count: int | None = Field(default=None, ge=0, le=20)
    is_reminder: bool = False

    @field_validator("delivery_methods")
    @classmethod
    def dedupe_methods(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_cron(self) -> "NotificationCreate":
        if self.repeat_pattern == RepeatPattern.CUSTOM.value:
            if not self.cron_expression:
                raise ValueError("cron_expression is required when repeat_pattern is 'custom'")
            parse_cron(self.cron_expression)
        return self


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    notification_type: str
    category: str
    title: str
    body: str
    data: dict[str, Any]
    scheduled_at: datetime
    occurrence_at: datetime | None = None
    sent_at: datetime | None = None
    status: str
    failure_reason: str | None = None
    is_reminder: bool
    reminder_definition_id: UUID | None = None
    reference_type: str | None = None
    reference_id: UUID | None = None
    repeat_pattern: str
    cron_expression: str | None = None
    snooze_until: datetime | None = None
    snooze_count: int
    max_snooze_count: int
    delivery_methods: list[str]
    delivered_channels: list[str]
    priority: str
    attempt_count: int
    created_at: datetime
    updated_at: datetime


class NotificationSnoozeRequest(BaseModel):
    minutes: int | None = Field(default=None, ge=1, le=10080)


class NotificationInteractionCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    action_type: InteractionType
    action_key: str | None = Field(default=None, max_length=100)
    action_data: dict[str, Any] = Field(default_factory=dict)


class NotificationInteractionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    notification_id: UUID
    user_id: UUID
    action_type: str
    action_key: str | None = None
    action_data: dict[str, Any]
    interacted_at: datetime


class DeliveryAttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    notification_id: UUID
    attempt_number: int
    channel: str
    push_token_id: UUID | None = None
    outcome: str
    error_message: str | None = None
    external_id: str | None = None
    attempted_at: datetime


class NotificationTypeStats(BaseModel):
    count: int
    sent: int


class NotificationStatsResponse(BaseModel):
    period_days: int
    total: int
    sent: int
    failed: int
    pending: int
    snoozed: int
    cancelled: int
    clicked: int
    delivery_rate: float
    click_rate: float
    by_type: dict[str, NotificationTypeStats]
    by_day: dict[str, int]


class NotificationTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type_key: str
    name: str
    description: str | None = None
    category: str
    default_title: str
    default_body: str
    icon: str | None = None
    sound: str
    priority: str
