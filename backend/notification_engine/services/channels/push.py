"""Push channel over the FCM HTTP v1 API."""

import json
import logging
from typing import Any

import httpx

from notification_engine.models.notification import NotificationPriority
from notification_engine.models.push_token import PushPlatform
from notification_engine.services.channels.base import (
    ChannelAdapter,
    ChannelPayload,
    Destination,
    Recipient,
    SendResult,
    push_destinations,
)

logger = logging.getLogger(__name__)

FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"

# FCM error codes meaning the registration token will never work again
INVALID_TOKEN_ERRORS = {"UNREGISTERED", "SENDER_ID_MISMATCH"}


def _stringify_data(data: dict[str, Any]) -> dict[str, str]:
    """FCM data payloads only accept string values."""
    return {
        str(key): value if isinstance(value, str) else json.dumps(value, default=str)
        for key, value in data.items()
    }


def _fcm_error_code(response: httpx.Response) -> str | None:
    try:
        error = response.json().get("error", {})
    except ValueError:
        return None
    for detail in error.get("details", []) or []:
        code = detail.get("errorCode")
        if code:
            return str(code)
    status = error.get("status")
    return str(status) if status else None


def _names_token_field(response: httpx.Response) -> bool:
    """Whether a 400 ``INVALID_ARGUMENT`` blames the token rather than the message."""
    try:
        error = response.json().get("error", {})
    except ValueError:
        return False
    for detail in error.get("details", []) or []:
        for violation in detail.get("fieldViolations", []) or []:
            if violation.get("field") == "message.token":
                return True
    return False


def build_message(destination: Destination, payload: ChannelPayload) -> dict[str, Any]:
    """Build the FCM ``message`` body for one device token."""
    high = payload.priority in (NotificationPriority.HIGH.value, NotificationPriority.URGENT.value)
    extra = {"notification_id": payload.notification_id}
    if payload.notification_type:
        extra["notification_type"] = payload.notification_type
    data = _stringify_data({**payload.data, **extra})
    message: dict[str, Any] = {
        "token": destination.address,
        "notification": {"title": payload.title, "body": payload.body},
        "data": data,
    }
    if destination.platform == PushPlatform.ANDROID.value:
        message["android"] = {
            "priority": "high" if high else "normal",
            "notification": {"sound": payload.sound or "default"},
        }
    elif destination.platform == PushPlatform.IOS.value:
        message["apns"] = {
            "headers": {"apns-priority": "10" if high else "5"},
            "payload": {"aps": {"sound": payload.sound or "default"}},
        }
    elif destination.platform == PushPlatform.WEB.value:
        message["webpush"] = {
            "headers": {"Urgency": "high" if high else "normal"},
        }
        if payload.icon:
            message["webpush"]["notification"] = {"icon": payload.icon}
    return {"message": message}


class FcmPushAdapter(ChannelAdapter):
    """Sends to a single device token through FCM.

    ``client`` may be supplied to share a connection pool (or to inject a
    mock transport); otherwise a short-lived client is opened per send.
    """

    def __init__(
        self,
        project_id: str,
        access_token: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.url = FCM_SEND_URL.format(project_id=project_id)
        self.access_token = access_token
        self.client = client
        self.timeout = timeout

    @property
    def channel(self) -> str:
        return "push"

    def destinations(self, recipient: Recipient) -> list[Destination] | str:
        return push_destinations(recipient)

    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        if self.client is not None:
            return await self.client.post(self.url, json=body, headers=headers)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=body, headers=headers)

    async def send(self, destination: Destination, payload: ChannelPayload) -> SendResult:
        try:
            response = await self._post(build_message(destination, payload))
        except httpx.HTTPError as exc:
            logger.warning("FCM request failed for token %s: %s", destination.push_token_id, exc)
            return SendResult.transient(f"FCM request failed: {exc}")

        if response.is_success:
            try:
                external_id = response.json().get("name")
            except ValueError:
                external_id = None
            return SendResult.ok(external_id=external_id)

        code = _fcm_error_code(response)
        error = f"FCM returned {response.status_code}" + (f" ({code})" if code else "")
        if response.status_code == 429 or code in ("QUOTA_EXCEEDED", "RESOURCE_EXHAUSTED"):
            return SendResult.rate_limited(error)
        if response.status_code == 404 or code in INVALID_TOKEN_ERRORS:
            return SendResult.permanent(error)
        if code == "INVALID_ARGUMENT":
            # A malformed message fails for every token; only a bad token is dropped
            return SendResult.permanent(error, invalid_destination=_names_token_field(response))
        logger.warning("FCM delivery failed for token %s: %s", destination.push_token_id, error)
        return SendResult.transient(error)
