"""Delivery channel adapters and the registry the dispatcher looks them up in."""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from notification_engine.models.notification import DeliveryMethod
from notification_engine.services.channels.base import (
    ChannelAdapter,
    ChannelPayload,
    Destination,
    Recipient,
    SendResult,
)
from notification_engine.services.channels.email import SmtpEmailAdapter
from notification_engine.services.channels.push import FcmPushAdapter
from notification_engine.services.channels.sms import TwilioSmsAdapter

logger = logging.getLogger(__name__)

ChannelRegistry = Mapping[str, ChannelAdapter]


def build_channel_adapters(config: Any) -> ChannelRegistry:
    """Register an adapter for every channel that has credentials configured.

    Channels left unconfigured are simply absent; the dispatcher records a
    permanent failure when one of them is requested.
    """
    adapters: dict[str, ChannelAdapter] = {}
    timeout = config.CHANNEL_TIMEOUT_SECONDS

    if config.push_enabled:
        adapters[DeliveryMethod.PUSH.value] = FcmPushAdapter(
            project_id=config.FCM_PROJECT_ID,
            access_token=config.FCM_ACCESS_TOKEN,
            timeout=timeout,
        )
    if config.email_enabled:
        adapters[DeliveryMethod.EMAIL.value] = SmtpEmailAdapter(
            hostname=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            use_tls=config.SMTP_USE_TLS,
            from_email=config.SMTP_FROM_EMAIL,
            from_name=config.SMTP_FROM_NAME,
            timeout=timeout,
        )
    if config.sms_enabled:
        adapters[DeliveryMethod.SMS.value] = TwilioSmsAdapter(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_FROM_NUMBER,
            timeout=timeout,
        )

    logger.info("Delivery channels configured: %s", ", ".join(sorted(adapters)) or "none")
    return MappingProxyType(adapters)


__all__ = [
    "ChannelAdapter",
    "ChannelPayload",
    "ChannelRegistry",
    "Destination",
    "FcmPushAdapter",
    "Recipient",
    "SendResult",
    "SmtpEmailAdapter",
    "TwilioSmsAdapter",
    "build_channel_adapters",
]
