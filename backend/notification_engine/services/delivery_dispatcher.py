"""Delivery dispatcher: fans a due notification out to its channel adapters.

The dispatcher looks adapters up by channel name in the registry it was given;
it never branches on a specific transport. Each adapter call is bounded by a
timeout, and every target tried yields one ``ChannelAttempt`` so no failure
goes unrecorded.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.models.notification import Notification
from notification_engine.models.notification_delivery_attempt import (
    OUTCOME_SEVERITY,
    DeliveryOutcome,
)
from notification_engine.models.shared import utc_now
from notification_engine.repositories.notification_preference_repository import (
    NotificationPreferenceRepository,
)
from notification_engine.repositories.push_token_repository import PushTokenRepository
from notification_engine.services.channels.base import (
    ChannelAdapter,
    ChannelPayload,
    Destination,
    Recipient,
    SendResult,
)
from notification_engine.services.notification_types import (
    DEFAULT_NOTIFICATION_TYPES,
    NotificationTypeTable,
)

logger = logging.getLogger(__name__)

DISABLED_BY_PREFERENCES = "disabled by user preferences"


@dataclass(frozen=True)
class NotificationSnapshot:
    """Plain copy of the fields delivery needs.

    Taken right after the dispatch lease is claimed so nothing reads ORM
    state across an ``await``.
    """

    id: UUID
    user_id: UUID
    notification_type: str
    category: str
    title: str
    body: str
    data: dict[str, Any]
    priority: str
    status: str
    version: int
    scheduled_at: datetime
    sent_at: datetime | None
    occurrence_at: datetime | None
    attempt_count: int
    delivery_methods: tuple[str, ...]
    delivered_channels: tuple[str, ...]
    repeat_pattern: str
    cron_expression: str | None
    reminder_definition_id: UUID | None
    reference_type: str | None
    reference_id: UUID | None
    max_snooze_count: int

    @classmethod
    def from_model(cls, notification: Notification) -> NotificationSnapshot:
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            notification_type=str(notification.notification_type),
            category=str(notification.category),
            title=str(notification.title),
            body=str(notification.body),
            data=dict(notification.data or {}),
            priority=str(notification.priority),
            status=str(notification.status),
            version=int(notification.version),
            scheduled_at=notification.scheduled_at,
            sent_at=notification.sent_at,
            occurrence_at=notification.occurrence_at,
            attempt_count=int(notification.attempt_count or 0),
            delivery_methods=tuple(notification.delivery_methods or ()),
            delivered_channels=tuple(notification.delivered_channels or ()),
            repeat_pattern=str(notification.repeat_pattern),
            cron_expression=notification.cron_expression,
            reminder_definition_id=notification.reminder_definition_id,
            reference_type=notification.reference_type,
            reference_id=notification.reference_id,
            max_snooze_count=int(notification.max_snooze_count),
        )

    @property
    def pending_channels(self) -> list[str]:
        """Requested channels not yet delivered in this delivery cycle."""
        return [c for c in self.delivery_methods if c not in self.delivered_channels]


@dataclass
class ChannelAttempt:
    """One delivery try against one target of one channel."""

    channel: str
    outcome: str
    attempted_at: datetime
    push_token_id: UUID | None = None
    error: str | None = None
    external_id: str | None = None
    invalid_destination: bool = False

    def as_record(self, attempt_number: int) -> dict[str, Any]:
        return {
            "attempt_number": attempt_number,
            "channel": self.channel,
            "outcome": self.outcome,
            "push_token_id": self.push_token_id,
            "error_message": self.error,
            "external_id": self.external_id,
            "attempted_at": self.attempted_at,
        }


@dataclass
class DeliveryResult:
    """Per-channel outcome map plus the raw attempts behind it."""

    channels: dict[str, str] = field(default_factory=dict)
    attempts: list[ChannelAttempt] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return all(o == DeliveryOutcome.SUCCESS.value for o in self.channels.values())

    @property
    def succeeded_channels(self) -> set[str]:
        return {c for c, o in self.channels.items() if o == DeliveryOutcome.SUCCESS.value}

    @property
    def worst_failure(self) -> str | None:
        """Most severe failure kind across channels, or None if all succeeded."""
        failures = [o for o in self.channels.values() if o != DeliveryOutcome.SUCCESS.value]
        if not failures:
            return None
        return max(failures, key=lambda o: OUTCOME_SEVERITY[o])

    @property
    def failure_summary(self) -> str:
        parts = []
        for attempt in self.attempts:
            if attempt.outcome == DeliveryOutcome.SUCCESS.value:
                continue
            parts.append(f"{attempt.channel}: {attempt.error or attempt.outcome}")
        return "; ".join(parts)[:1000]

    def attempt_records(self, attempt_number: int) -> list[dict[str, Any]]:
        return [attempt.as_record(attempt_number) for attempt in self.attempts]


def _preference_block(preference: Any, category: str) -> bool:
    if not preference.notifications_enabled:
        return True
    category_settings = preference.category_settings or {}
    return category_settings.get(category, True) is False


def _channel_enabled(preference: Any, channel: str) -> bool:
    return bool(getattr(preference, f"{channel}_enabled", True))


class DeliveryDispatcher:
    """Routes a notification to its requested channels and aggregates outcomes.

    Args:
        db: Session used for push token and preference lookups.
        adapters: Channel name to adapter. Missing channels fail permanently.
        types: Notification type table; supplies icon and sound.
        timeout: Seconds allowed per adapter call before it counts as transient.
    """

    def __init__(
        self,
        db: Session,
        adapters: Mapping[str, ChannelAdapter],
        types: NotificationTypeTable = DEFAULT_NOTIFICATION_TYPES,
        timeout: float = 10.0,
    ):
        self.adapters = adapters
        self.types = types
        self.timeout = timeout
        self.push_tokens = PushTokenRepository(db)
        self.preferences = NotificationPreferenceRepository(db)

    def build_payload(self, notification: NotificationSnapshot) -> ChannelPayload:
        config = self.types.get(notification.notification_type)
        return ChannelPayload(
            notification_id=str(notification.id),
            title=notification.title,
            body=notification.body,
            data=dict(notification.data),
            notification_type=notification.notification_type,
            category=notification.category,
            priority=notification.priority,
            icon=config.icon if config else None,
            sound=config.sound if config else None,
        )

    async def dispatch(
        self,
        notification: NotificationSnapshot,
        channels: Iterable[str] | None = None,
    ) -> DeliveryResult:
        """Deliver to ``channels`` (default: channels not yet delivered).

        A channel succeeds when at least one of its targets does. Push tokens
        that fail permanently are deactivated whatever the channel outcome.
        """
        requested = list(channels if channels is not None else notification.pending_channels)
        result = DeliveryResult()
        if not requested:
            return result

        preference = self.preferences.get_or_default(notification.user_id)
        enabled = [c for c in requested if _channel_enabled(preference, c)]
        if _preference_block(preference, notification.category) or not enabled:
            now = utc_now()
            for channel in requested:
                self._record(result, channel, [
                    ChannelAttempt(
                        channel=channel,
                        outcome=DeliveryOutcome.PERMANENT.value,
                        attempted_at=now,
                        error=DISABLED_BY_PREFERENCES,
                    )
                ])
            return result

        payload = self.build_payload(notification)
        recipient = self._recipient(notification.user_id, preference)
        channel_attempts = await asyncio.gather(
            *(self._deliver_channel(channel, recipient, payload) for channel in enabled)
        )
        for channel, attempts in zip(enabled, channel_attempts, strict=True):
            self._record(result, channel, attempts)
            self._apply_token_side_effects(attempts)
        return result

    def _recipient(self, user_id: UUID, preference: Any) -> Recipient:
        """Every address the user has; each adapter picks the ones it delivers to."""
        tokens = self.push_tokens.get_active_for_user(user_id)
        return Recipient(
            user_id=user_id,
            push_tokens=tuple(
                Destination(address=str(t.token), platform=str(t.platform), push_token_id=t.id)
                for t in tokens
            ),
            email_address=preference.email_address,
            phone_number=preference.phone_number,
        )

    async def _deliver_channel(
        self,
        channel: str,
        recipient: Recipient,
        payload: ChannelPayload,
    ) -> list[ChannelAttempt]:
        adapter = self.adapters.get(channel)
        if adapter is None:
            return [self._failed(channel, f"no adapter configured for '{channel}'")]
        targets = adapter.destinations(recipient)
        if isinstance(targets, str):
            return [self._failed(channel, targets)]
        return list(
            await asyncio.gather(*(self._send(adapter, channel, t, payload) for t in targets))
        )

    async def _send(
        self,
        adapter: ChannelAdapter,
        channel: str,
        destination: Destination,
        payload: ChannelPayload,
    ) -> ChannelAttempt:
        try:
            sent: SendResult = await asyncio.wait_for(
                adapter.send(destination, payload), timeout=self.timeout
            )
        except TimeoutError:
            logger.warning(
                "%s delivery of notification %s timed out after %ss",
                channel,
                payload.notification_id,
                self.timeout,
            )
            sent = SendResult.transient(f"timed out after {self.timeout}s")
        except Exception as exc:
            logger.exception(
                "%s adapter raised while delivering notification %s",
                channel,
                payload.notification_id,
            )
            sent = SendResult.transient(f"adapter error: {exc}")

        return ChannelAttempt(
            channel=channel,
            outcome=DeliveryOutcome(sent.outcome).value,
            attempted_at=utc_now(),
            push_token_id=destination.push_token_id,
            error=sent.error,
            external_id=sent.external_id,
            invalid_destination=sent.invalid_destination,
        )

    @staticmethod
    def _failed(channel: str, error: str) -> ChannelAttempt:
        return ChannelAttempt(
            channel=channel,
            outcome=DeliveryOutcome.PERMANENT.value,
            attempted_at=utc_now(),
            error=error,
        )

    @staticmethod
    def _record(result: DeliveryResult, channel: str, attempts: list[ChannelAttempt]) -> None:
        result.attempts.extend(attempts)
        outcomes = [a.outcome for a in attempts]
        if DeliveryOutcome.SUCCESS.value in outcomes:
            result.channels[channel] = DeliveryOutcome.SUCCESS.value
        else:
            # The channel can still recover through any target that is retryable
            result.channels[channel] = min(outcomes, key=lambda o: OUTCOME_SEVERITY[o])

    def _apply_token_side_effects(self, attempts: list[ChannelAttempt]) -> None:
        for attempt in attempts:
            if attempt.push_token_id is None:
                continue
            if attempt.invalid_destination:
                if self.push_tokens.deactivate(attempt.push_token_id):
                    logger.info(
                        "Deactivated push token %s: %s", attempt.push_token_id, attempt.error
                    )
            elif attempt.outcome == DeliveryOutcome.SUCCESS.value:
                self.push_tokens.touch(attempt.push_token_id, attempt.attempted_at)
