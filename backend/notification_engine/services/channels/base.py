"""Channel adapter interface.

Every delivery transport implements ``ChannelAdapter``. Adapters report
transport problems as a ``SendResult`` outcome and never raise for them; the
dispatcher treats anything they do raise as a transient failure.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from notification_engine.models.notification_delivery_attempt import DeliveryOutcome


@dataclass(frozen=True)
class ChannelPayload:
    """What a channel receives: rendered content plus the opaque ``data`` payload."""

    notification_id: str
    title: str
    body: str
    data: dict[str, Any] = field(default_factory=dict)
    notification_type: str | None = None
    category: str | None = None
    priority: str = "normal"
    icon: str | None = None
    sound: str | None = None


@dataclass(frozen=True)
class Destination:
    """Where to send: a push token, email address or phone number."""

    address: str
    platform: str | None = None
    push_token_id: Any = None


@dataclass(frozen=True)
class Recipient:
    """A user's addresses across every channel."""

    user_id: Any
    push_tokens: tuple[Destination, ...] = ()
    email_address: str | None = None
    phone_number: str | None = None


def push_destinations(recipient: Recipient) -> list[Destination] | str:
    return list(recipient.push_tokens) or "no active push tokens"


def email_destinations(recipient: Recipient) -> list[Destination] | str:
    if not recipient.email_address:
        return "no email address on file"
    return [Destination(address=recipient.email_address)]


def phone_destinations(recipient: Recipient) -> list[Destination] | str:
    if not recipient.phone_number:
        return "no phone number on file"
    return [Destination(address=recipient.phone_number)]


@dataclass
class SendResult:
    """Result of a single send call.

    ``invalid_destination`` marks a permanent failure caused by the address
    itself (an unregistered push token), as opposed to the message.
    """

    outcome: DeliveryOutcome
    error: str | None = None
    external_id: str | None = None
    invalid_destination: bool = False

    @property
    def success(self) -> bool:
        return self.outcome == DeliveryOutcome.SUCCESS

    @classmethod
    def ok(cls, external_id: str | None = None) -> "SendResult":
        return cls(outcome=DeliveryOutcome.SUCCESS, external_id=external_id)

    @classmethod
    def transient(cls, error: str) -> "SendResult":
        return cls(outcome=DeliveryOutcome.TRANSIENT, error=error)

    @classmethod
    def rate_limited(cls, error: str) -> "SendResult":
        return cls(outcome=DeliveryOutcome.RATE_LIMITED, error=error)

    @classmethod
    def permanent(cls, error: str, invalid_destination: bool = True) -> "SendResult":
        return cls(
            outcome=DeliveryOutcome.PERMANENT,
            error=error,
            invalid_destination=invalid_destination,
        )


class ChannelAdapter(ABC):
    """Abstract base class for delivery channels."""

    @property
    @abstractmethod
    def channel(self) -> str:
        """Channel name this adapter is registered under."""
        ...  # pragma: no cover

    @abstractmethod
    async def send(self, destination: Destination, payload: ChannelPayload) -> SendResult:
        """Deliver ``payload`` to ``destination``."""
        ...  # pragma: no cover

    @abstractmethod
    def destinations(self, recipient: Recipient) -> list[Destination] | str:
        """Where this channel delivers for ``recipient``, or why it cannot."""
        ...  # pragma: no cover
