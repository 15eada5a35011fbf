"""Retry policy for failed delivery rounds.

Backoff doubles per attempt from a base delay and is capped. Urgent
notifications start sooner and get more attempts. Permanent failures are
never retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from notification_engine.models.notification import NotificationPriority
from notification_engine.models.notification_delivery_attempt import DeliveryOutcome


@dataclass(frozen=True)
class RetryAfter:
    delay: timedelta


@dataclass(frozen=True)
class GiveUp:
    reason: str


RetryDecision = RetryAfter | GiveUp


@dataclass(frozen=True)
class RetryPolicy:
    base_delay_seconds: int = 60
    urgent_base_delay_seconds: int = 15
    max_delay_seconds: int = 3600
    max_attempts: int = 5
    urgent_max_attempts: int = 8
    rate_limit_multiplier: int = 4

    @classmethod
    def from_settings(cls, config: Any) -> RetryPolicy:
        return cls(
            base_delay_seconds=config.RETRY_BASE_DELAY_SECONDS,
            urgent_base_delay_seconds=config.RETRY_URGENT_BASE_DELAY_SECONDS,
            max_delay_seconds=config.RETRY_MAX_DELAY_SECONDS,
            max_attempts=config.RETRY_MAX_ATTEMPTS,
            urgent_max_attempts=config.RETRY_URGENT_MAX_ATTEMPTS,
            rate_limit_multiplier=config.RETRY_RATE_LIMIT_MULTIPLIER,
        )

    def attempt_ceiling(self, priority: str) -> int:
        if priority == NotificationPriority.URGENT.value:
            return self.urgent_max_attempts
        return self.max_attempts

    def next_action(self, attempt_count: int, failure_kind: str, priority: str) -> RetryDecision:
        """Decide what to do after a failed delivery round.

        Args:
            attempt_count: Failed rounds before this one (0 on the first failure).
            failure_kind: ``transient``, ``rate_limited`` or ``permanent``.
            priority: Notification priority.
        """
        if failure_kind == DeliveryOutcome.PERMANENT.value:
            return GiveUp(reason="permanent delivery failure")

        ceiling = self.attempt_ceiling(priority)
        if attempt_count + 1 >= ceiling:
            return GiveUp(reason=f"gave up after {attempt_count + 1} delivery attempts")

        if priority == NotificationPriority.URGENT.value:
            base = self.urgent_base_delay_seconds
        else:
            base = self.base_delay_seconds
        delay = base * (2 ** max(attempt_count, 0))
        if failure_kind == DeliveryOutcome.RATE_LIMITED.value:
            delay *= self.rate_limit_multiplier
        return RetryAfter(delay=timedelta(seconds=min(delay, self.max_delay_seconds)))


_default_policy = RetryPolicy()


def next_action(attempt_count: int, failure_kind: str, priority: str) -> RetryDecision:
    """``RetryPolicy.next_action`` with the default configuration."""
    return _default_policy.next_action(attempt_count, failure_kind, priority)
