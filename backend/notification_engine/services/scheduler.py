"""Scheduler: the periodic tick that drives notifications through their lifecycle.

Per tick the scheduler lists due notifications, re-admits expired snoozes,
defers anything inside the user's quiet hours, claims a dispatch lease, hands
the notification to the dispatcher and records the outcome. Every status
change goes through the store's compare-and-transition, so a tick racing
another tick (or a user cancelling) cannot double-deliver.

Dispatch runs concurrently across notifications. Database calls are plain
synchronous calls made between awaits, never across one.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from notification_engine.core.errors import ConflictError
from notification_engine.models.notification import (
    Notification,
    NotificationStatus,
    RepeatPattern,
)
from notification_engine.models.notification_delivery_attempt import DeliveryOutcome
from notification_engine.models.shared import utc_now
from notification_engine.repositories.notification_preference_repository import (
    NotificationPreferenceRepository,
)
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.services.delivery_dispatcher import (
    DeliveryDispatcher,
    DeliveryResult,
    NotificationSnapshot,
)
from notification_engine.services.quiet_hours import is_suppressed, next_allowed_time
from notification_engine.services.recurrence import next_occurrence
from notification_engine.services.retry_policy import GiveUp, RetryPolicy

logger = logging.getLogger(__name__)

# Upper bound on periods skipped when catching a repeating notification up to now
MAX_CATCH_UP_PERIODS = 1000


@dataclass
class TickResult:
    processed: int = 0
    sent: int = 0
    retried: int = 0
    failed: int = 0
    deferred: int = 0
    conflicts: int = 0

    def add(self, outcome: str) -> None:
        setattr(self, outcome, getattr(self, outcome) + 1)


@dataclass(frozen=True)
class _DueItem:
    id: UUID
    status: str
    version: int
    user_id: UUID
    priority: str
    snooze_until: datetime | None


class NotificationScheduler:
    """Runs one scheduling pass per ``tick`` call. Safe to run re-entrantly."""

    def __init__(
        self,
        db: Session,
        dispatcher: DeliveryDispatcher,
        retry_policy: RetryPolicy | None = None,
        lease_seconds: int = 120,
        batch_size: int = 100,
        concurrency: int = 10,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.retry_policy = retry_policy or RetryPolicy()
        self.lease = timedelta(seconds=lease_seconds)
        self.batch_size = batch_size
        self.concurrency = max(concurrency, 1)
        self.notifications = NotificationRepository(db)
        self.preferences = NotificationPreferenceRepository(db)

    async def tick(self, now: datetime | None = None) -> TickResult:
        """Process every notification due at ``now``."""
        now = now or utc_now()
        due = [
            _DueItem(
                id=n.id,
                status=str(n.status),
                version=int(n.version),
                user_id=n.user_id,
                priority=str(n.priority),
                snooze_until=n.snooze_until,
            )
            for n in self.notifications.list_due(now, limit=self.batch_size)
        ]

        result = TickResult()
        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(*(self._process(item, now, semaphore) for item in due))
        for outcome in outcomes:
            result.processed += 1
            result.add(outcome)

        if due:
            logger.info(
                "Scheduler tick: processed=%d sent=%d retried=%d failed=%d deferred=%d "
                "conflicts=%d",
                result.processed,
                result.sent,
                result.retried,
                result.failed,
                result.deferred,
                result.conflicts,
            )
        return result

    async def _process(self, item: _DueItem, now: datetime, semaphore: asyncio.Semaphore) -> str:
        try:
            version = item.version
            if item.status == NotificationStatus.SNOOZED.value:
                version = self._readmit_snoozed(item)

            preference = self.preferences.get_by_user(item.user_id)
            if is_suppressed(now, preference, item.priority):
                self._defer(item.id, version, next_allowed_time(now, preference, item.priority))
                return "deferred"

            claimed = self.notifications.claim(
                item.id,
                expected_status=NotificationStatus.PENDING.value,
                expected_version=version,
                lease_until=now + self.lease,
                now=now,
            )
            snapshot = NotificationSnapshot.from_model(claimed)
        except ConflictError as exc:
            logger.warning("Skipping notification %s this tick: %s", item.id, exc)
            return "conflicts"

        async with semaphore:
            delivery = await self.dispatcher.dispatch(snapshot, snapshot.pending_channels)

        try:
            return self._record_outcome(snapshot, delivery, now, preference)
        except ConflictError as exc:
            logger.warning(
                "Notification %s changed during delivery, outcome not applied: %s",
                snapshot.id,
                exc,
            )
            return "conflicts"

    def _readmit_snoozed(self, item: _DueItem) -> int:
        """``snoozed -> pending`` at the old ``snooze_until``, starting a new delivery cycle."""
        notification = self.notifications.transition(
            item.id,
            NotificationStatus.SNOOZED.value,
            NotificationStatus.PENDING.value,
            fields={
                "scheduled_at": item.snooze_until,
                "snooze_until": None,
                "delivered_channels": [],
                "attempt_count": 0,
                "failure_reason": None,
            },
            expected_version=item.version,
        )
        return int(notification.version)

    def _defer(self, notification_id: UUID, version: int, until: datetime) -> None:
        self.notifications.transition(
            notification_id,
            NotificationStatus.PENDING.value,
            NotificationStatus.PENDING.value,
            fields={"scheduled_at": until},
            expected_version=version,
        )
        logger.debug("Notification %s deferred by quiet hours until %s", notification_id, until)

    def _record_outcome(
        self,
        snapshot: NotificationSnapshot,
        delivery: DeliveryResult,
        now: datetime,
        preference: Any,
    ) -> str:
        # The attempt log is written before the status so a lost race still
        # leaves a record of what was tried
        self.notifications.append_attempts(
            snapshot.id, delivery.attempt_records(snapshot.attempt_count + 1)
        )
        delivered = sorted(set(snapshot.delivered_channels) | delivery.succeeded_channels)

        if delivery.all_succeeded:
            self.notifications.transition(
                snapshot.id,
                NotificationStatus.PENDING.value,
                NotificationStatus.SENT.value,
                fields={
                    "sent_at": max(now, utc_now()),
                    "locked_until": None,
                    "delivered_channels": delivered,
                    "failure_reason": None,
                },
                expected_version=snapshot.version,
            )
            if snapshot.sent_at is None:
                self._schedule_next_occurrence(snapshot, now, preference)
            return "sent"

        failure_kind = delivery.worst_failure or DeliveryOutcome.TRANSIENT.value
        summary = delivery.failure_summary
        if failure_kind == DeliveryOutcome.PERMANENT.value:
            logger.warning(
                "Permanent delivery failure for notification %s: %s", snapshot.id, summary
            )

        decision = self.retry_policy.next_action(
            snapshot.attempt_count, failure_kind, snapshot.priority
        )
        if isinstance(decision, GiveUp):
            reason = f"{decision.reason}: {summary}" if summary else decision.reason
            self.notifications.transition(
                snapshot.id,
                NotificationStatus.PENDING.value,
                NotificationStatus.FAILED.value,
                fields={
                    "failure_reason": reason[:1000],
                    "locked_until": None,
                    "attempt_count": snapshot.attempt_count + 1,
                    "delivered_channels": delivered,
                },
                expected_version=snapshot.version,
            )
            logger.error("Notification %s failed: %s", snapshot.id, reason)
            return "failed"

        self.notifications.transition(
            snapshot.id,
            NotificationStatus.PENDING.value,
            NotificationStatus.PENDING.value,
            fields={
                "scheduled_at": now + decision.delay,
                "failure_reason": summary or None,
                "locked_until": None,
                "attempt_count": snapshot.attempt_count + 1,
                "delivered_channels": delivered,
            },
            expected_version=snapshot.version,
        )
        logger.info(
            "Notification %s will be retried in %s (%s)", snapshot.id, decision.delay, failure_kind
        )
        return "retried"

    def _schedule_next_occurrence(
        self,
        snapshot: NotificationSnapshot,
        now: datetime,
        preference: Any,
    ) -> Notification | None:
        """Queue the following occurrence of a self-repeating notification.

        Reminders materialized from a definition are left to the generator.
        """
        if snapshot.repeat_pattern == RepeatPattern.NONE.value or snapshot.reminder_definition_id:
            return None

        tz_name = preference.timezone if preference is not None else "UTC"
        following = snapshot.occurrence_at or snapshot.scheduled_at
        for _ in range(MAX_CATCH_UP_PERIODS):
            following = next_occurrence(
                snapshot.repeat_pattern, following, tz_name, snapshot.cron_expression
            )
            if following is None or following > now:
                break
        if following is None or following <= now:
            return None

        created = self.notifications.create(
            user_id=snapshot.user_id,
            notification_type=snapshot.notification_type,
            category=snapshot.category,
            title=snapshot.title,
            body=snapshot.body,
            data=dict(snapshot.data),
            scheduled_at=following,
            reference_type=snapshot.reference_type,
            reference_id=snapshot.reference_id,
            repeat_pattern=snapshot.repeat_pattern,
            cron_expression=snapshot.cron_expression,
            max_snooze_count=snapshot.max_snooze_count,
            delivery_methods=list(snapshot.delivery_methods),
            priority=snapshot.priority,
        )
        logger.info(
            "Scheduled next %s occurrence of notification %s as %s at %s",
            snapshot.repeat_pattern,
            snapshot.id,
            created.id,
            following,
        )
        return created
