from notification_engine.repositories.notification_interaction_repository import (
    NotificationInteractionRepository,
)
from notification_engine.repositories.notification_preference_repository import (
    NotificationPreferenceRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.repositories.push_token_repository import PushTokenRepository
from notification_engine.repositories.reminder_definition_repository import (
    ReminderDefinitionRepository,
)

__all__ = [
    "NotificationInteractionRepository",
    "NotificationPreferenceRepository",
    "NotificationRepository",
    "PushTokenRepository",
    "ReminderDefinitionRepository",
]
