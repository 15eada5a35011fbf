"""Quiet hours policy.

Decides whether delivery is suppressed right now for a user, and when the
next delivery window opens. Times are evaluated on the user's local calendar.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, time, timedelta
from typing import Any

import pytz

from notification_engine.models.notification import NotificationPriority

logger = logging.getLogger(__name__)

SATURDAY = 5


def parse_time_of_day(value: str) -> time:
    """Parse ``"HH:MM"`` into a ``time``."""
    hours, _, minutes = value.partition(":")
    return time(int(hours), int(minutes or 0))


def get_timezone(name: str | None) -> Any:
    """Resolve an IANA zone name, falling back to UTC for unknown names."""
    if not name:
        return pytz.UTC
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return pytz.UTC


def to_local(moment: datetime, tz_name: str | None) -> datetime:
    """Convert an aware (or naive UTC) datetime to naive local wall time."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(get_timezone(tz_name)).replace(tzinfo=None)


def from_local(local: datetime, tz_name: str | None) -> datetime:
    """Attach the user's zone to naive wall time and convert to UTC."""
    tz = get_timezone(tz_name)
    return tz.localize(local).astimezone(UTC)


def in_window(moment: time, start: time, end: time) -> bool:
    """Whether ``moment`` falls in ``[start, end)``.

    ``start > end`` means the window wraps past midnight. ``start == end``
    is an empty window.
    """
    if start == end:
        return False
    if start < end:
        return start <= moment < end
    return moment >= start or moment < end


def _weekend_blocked(local: datetime, preference: Any) -> bool:
    return not preference.weekend_notifications and local.weekday() >= SATURDAY


def _quiet_window_active(local: datetime, preference: Any) -> bool:
    if not preference.quiet_hours_enabled:
        return False
    return in_window(
        local.time(),
        parse_time_of_day(preference.quiet_hours_start),
        parse_time_of_day(preference.quiet_hours_end),
    )


def is_suppressed(now: datetime, preference: Any | None, priority: str) -> bool:
    """Whether non-urgent delivery is currently suppressed for this user.

    Args:
        now: Current instant.
        preference: Object with ``quiet_hours_enabled``, ``quiet_hours_start``,
            ``quiet_hours_end``, ``weekend_notifications`` and ``timezone``;
            ``None`` means no restrictions.
        priority: Notification priority. ``urgent`` is never suppressed.
    """
    if priority == NotificationPriority.URGENT.value or preference is None:
        return False
    local = to_local(now, preference.timezone)
    return _weekend_blocked(local, preference) or _quiet_window_active(local, preference)


def next_allowed_time(now: datetime, preference: Any | None, priority: str) -> datetime:
    """The first instant at or after ``now`` when delivery is not suppressed.

    Returns ``now`` unchanged when nothing suppresses delivery.
    """
    if preference is None or not is_suppressed(now, preference, priority):
        return now

    local = to_local(now, preference.timezone)
    end = parse_time_of_day(preference.quiet_hours_end)

    # A weekend block plus a quiet window can chain: Saturday night pushes to
    # Monday 00:00, which may itself sit inside the quiet window.
    for _ in range(8):
        if _weekend_blocked(local, preference):
            days_ahead = 7 - local.weekday()
            local = datetime.combine(local.date() + timedelta(days=days_ahead), time(0, 0))
        elif _quiet_window_active(local, preference):
            window_end = datetime.combine(local.date(), end)
            if window_end <= local:
                window_end += timedelta(days=1)
            local = window_end
        else:
            break

    return from_local(local, preference.timezone)
