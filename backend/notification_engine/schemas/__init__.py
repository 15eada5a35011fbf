from notification_engine.schemas.notification import (
    DeliveryAttemptResponse,
    NotificationCreate,
    NotificationInteractionCreate,
    NotificationInteractionResponse,
    NotificationResponse,
    NotificationSnoozeRequest,
    NotificationStatsResponse,
    NotificationTypeResponse,
    NotificationTypeStats,
)
from notification_engine.schemas.notification_preference import (
    NotificationPreferenceResponse,
    NotificationPreferenceUpdate,
)
from notification_engine.schemas.push_token import (
    PushTokenDeregisterResponse,
    PushTokenRegister,
    PushTokenResponse,
)
from notification_engine.schemas.reminder import (
    ReminderDefinitionCreate,
    ReminderDefinitionResponse,
    ReminderDefinitionUpdate,
)

__all__ = [
    "DeliveryAttemptResponse",
    "NotificationCreate",
    "NotificationInteractionCreate",
    "NotificationInteractionResponse",
    "NotificationPreferenceResponse",
    "NotificationPreferenceUpdate",
    "NotificationResponse",
    "NotificationSnoozeRequest",
    "NotificationStatsResponse",
    "NotificationTypeResponse",
    "NotificationTypeStats",
    "PushTokenDeregisterResponse",
    "PushTokenRegister",
    "PushTokenResponse",
    "ReminderDefinitionCreate",
    "ReminderDefinitionResponse",
    "ReminderDefinitionUpdate",
]
