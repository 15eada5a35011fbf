"""SMS channel over the Twilio REST API."""

import logging

import httpx

from notification_engine.services.channels.base import (
    ChannelAdapter,
    ChannelPayload,
    Destination,
    Recipient,
    SendResult,
    phone_destinations,
)

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"

# Twilio error codes for numbers that can never receive messages
PERMANENT_ERROR_CODES = {21211, 21214, 21408, 21610, 21612, 21614}

SMS_MAX_LENGTH = 1600


class TwilioSmsAdapter(ChannelAdapter):
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.url = TWILIO_MESSAGES_URL.format(account_sid=account_sid)
        self.auth = (account_sid, auth_token)
        self.from_number = from_number
        self.client = client
        self.timeout = timeout

    @property
    def channel(self) -> str:
        return "sms"

    def destinations(self, recipient: Recipient) -> list[Destination] | str:
        return phone_destinations(recipient)

    async def _post(self, form: dict[str, str]) -> httpx.Response:
        if self.client is not None:
            return await self.client.post(self.url, data=form, auth=self.auth)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, data=form, auth=self.auth)

    async def send(self, destination: Destination, payload: ChannelPayload) -> SendResult:
        text = f"{payload.title}: {payload.body}"[:SMS_MAX_LENGTH]
        form = {"To": destination.address, "From": self.from_number, "Body": text}
        try:
            response = await self._post(form)
        except httpx.HTTPError as exc:
            logger.warning("Twilio request failed for %s: %s", destination.address, exc)
            return SendResult.transient(f"Twilio request failed: {exc}")

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_success:
            return SendResult.ok(external_id=body.get("sid"))

        code = body.get("code")
        error = f"Twilio returned {response.status_code}" + (f" (code {code})" if code else "")
        if response.status_code == 429:
            return SendResult.rate_limited(error)
        if code in PERMANENT_ERROR_CODES or response.status_code in (400, 404):
            return SendResult.permanent(error)
        logger.warning("Twilio delivery to %s failed: %s", destination.address, error)
        return SendResult.transient(error)
