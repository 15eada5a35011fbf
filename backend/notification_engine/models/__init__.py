from notification_engine.models.notification import (
    DeliveryMethod,
    Notification,
    NotificationCategory,
    NotificationPriority,
    NotificationStatus,
    RepeatPattern,
)
from notification_engine.models.notification_delivery_attempt import (
    DeliveryOutcome,
    NotificationDeliveryAttempt,
)
from notification_engine.models.notification_interaction import (
    InteractionType,
    NotificationInteraction,
)
from notification_engine.models.notification_preference import NotificationPreference
from notification_engine.models.push_token import PushPlatform, PushToken
from notification_engine.models.reminder_definition import ReminderDefinition, ReminderOccurrence

__all__ = [
    "DeliveryMethod",
    "DeliveryOutcome",
    "InteractionType",
    "Notification",
    "NotificationCategory",
    "NotificationDeliveryAttempt",
    "NotificationInteraction",
    "NotificationPreference",
    "NotificationPriority",
    "NotificationStatus",
    "PushPlatform",
    "PushToken",
    "ReminderDefinition",
    "ReminderOccurrence",
    "RepeatPattern",
]
