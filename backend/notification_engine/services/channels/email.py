"""Email channel over SMTP."""

import logging
from email.message import EmailMessage
from html import escape

import aiosmtplib

from notification_engine.services.channels.base import (
    ChannelAdapter,
    ChannelPayload,
    Destination,
    Recipient,
    SendResult,
    email_destinations,
)

logger = logging.getLogger(__name__)


class SmtpEmailAdapter(ChannelAdapter):
    """Sends a plain-text email with an HTML alternative."""

    def __init__(
        self,
        hostname: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        from_email: str = "notifications@example.com",
        from_name: str = "Notifications",
        timeout: float = 10.0,
    ) -> None:
        self.hostname = hostname
        self.port = port
        self.username = username or None
        self.password = password or None
        self.use_tls = use_tls
        self.sender = f"{from_name} <{from_email}>"
        self.timeout = timeout

    @property
    def channel(self) -> str:
        return "email"

    def destinations(self, recipient: Recipient) -> list[Destination] | str:
        return email_destinations(recipient)

    def build_message(self, to: str, payload: ChannelPayload) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = payload.title
        msg.set_content(payload.body)
        msg.add_alternative(
            f"<h2>{escape(payload.title)}</h2><p>{escape(payload.body)}</p>",
            subtype="html",
        )
        return msg

    async def send(self, destination: Destination, payload: ChannelPayload) -> SendResult:
        msg = self.build_message(destination.address, payload)
        try:
            _, response = await aiosmtplib.send(
                msg,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.use_tls,
                timeout=self.timeout,
            )
        except aiosmtplib.SMTPRecipientsRefused as exc:
            return SendResult.permanent(f"Recipient refused: {exc}")
        except aiosmtplib.SMTPResponseException as exc:
            if 500 <= exc.code < 600:
                return SendResult.permanent(f"SMTP {exc.code}: {exc.message}")
            logger.warning("SMTP temporary failure sending to %s: %s", destination.address, exc)
            return SendResult.transient(f"SMTP {exc.code}: {exc.message}")
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP send to %s failed: %s", destination.address, exc)
            return SendResult.transient(f"SMTP error: {exc}")

        logger.info("Email sent to %s: %s", destination.address, payload.title)
        return SendResult.ok(external_id=msg.get("Message-ID") or response)
