"""Recurrence evaluation for reminder definitions and repeating notifications.

Everything here is pure: callers pass the current instant and a rule-like
object (anything with ``repeat_pattern``, ``time_of_day``, ``days_of_week``,
``day_of_month`` and ``cron_expression`` attributes). Calendar math runs on
naive local wall time and is converted back to UTC at the edges.
"""

from __future__ import annotations

import calendar as cal
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from arq.cron import next_cron

from notification_engine.models.notification import RepeatPattern
from notification_engine.services.quiet_hours import from_local, parse_time_of_day, to_local

_FIELD_RANGES = {
    "minute": (0, 59),
    "hour": (0, 23),
    "day": (1, 31),
    "month": (1, 12),
    "weekday": (0, 7),
}

_MONTH_NAMES = {name.lower(): i for i, name in enumerate(cal.month_abbr) if name}
_WEEKDAY_NAMES = {"sun": 0, "mon": 1, "tue": 2, "wed": 3, "thu": 4, "fri": 5, "sat": 6}


@dataclass(frozen=True)
class CronSchedule:
    """A parsed five-field cron expression.

    ``weekday`` uses Python numbering (Monday = 0). A field of ``None`` is
    unrestricted.
    """

    minute: frozenset[int] | None
    hour: frozenset[int] | None
    day: frozenset[int] | None
    month: frozenset[int] | None
    weekday: frozenset[int] | None


def _parse_value(token: str, field: str) -> int:
    token = token.lower()
    if field == "month" and token in _MONTH_NAMES:
        return _MONTH_NAMES[token]
    if field == "weekday" and token in _WEEKDAY_NAMES:
        return _WEEKDAY_NAMES[token]
    try:
        return int(token)
    except ValueError:
        raise ValueError(f"Invalid cron {field} value: {token!r}") from None


def _parse_field(spec: str, field: str) -> frozenset[int] | None:
    low, high = _FIELD_RANGES[field]
    if spec == "*":
        return None

    values: set[int] = set()
    for part in spec.split(","):
        if not part:
            raise ValueError(f"Invalid cron {field} field: {spec!r}")
        base, _, step_text = part.partition("/")
        step = int(step_text) if step_text else 1
        if step < 1:
            raise ValueError(f"Invalid cron step in {field} field: {spec!r}")

        if base == "*":
            start, end = low, high
        elif "-" in base:
            first, _, last = base.partition("-")
            start, end = _parse_value(first, field), _parse_value(last, field)
        else:
            start = _parse_value(base, field)
            end = high if step_text else start

        if start < low or end > high or start > end:
            raise ValueError(f"Cron {field} value out of range: {spec!r}")
        values.update(range(start, end + 1, step))

    if field == "weekday":
        # cron: 0 and 7 are Sunday; Python: Monday = 0
        values = {(v - 1) % 7 for v in values}
    return frozenset(values)


def parse_cron(expression: str) -> CronSchedule:
    """Parse ``"minute hour day month weekday"``.

    Supports ``*``, lists, ranges, steps and three-letter month/day names.
    Raises ``ValueError`` on malformed input.
    """
    parts = expression.split()
    if len(parts) != 5:
        raise ValueError(f"Cron expression must have 5 fields, got {len(parts)}: {expression!r}")
    minute, hour, day, month, weekday = (
        _parse_field(spec, field)
        for spec, field in zip(parts, ("minute", "hour", "day", "month", "weekday"), strict=True)
    )
    return CronSchedule(minute=minute, hour=hour, day=day, month=month, weekday=weekday)


def _as_option(values: frozenset[int] | None) -> set[int] | None:
    return set(values) if values is not None else None


def next_cron_fire(schedule: CronSchedule, after: datetime) -> datetime:
    """First fire time strictly after ``after`` (naive wall time, minute precision).

    When both day-of-month and day-of-week are restricted, either one
    matching is enough, as in standard cron.
    """
    start = after.replace(second=0, microsecond=0)
    common = {
        "month": _as_option(schedule.month),
        "hour": _as_option(schedule.hour),
        "minute": _as_option(schedule.minute),
        "second": 0,
        "microsecond": 0,
    }
    if schedule.day is not None and schedule.weekday is not None:
        by_day = next_cron(start, day=_as_option(schedule.day), **common)
        by_weekday = next_cron(start, weekday=_as_option(schedule.weekday), **common)
        return min(by_day, by_weekday)
    return next_cron(
        start,
        day=_as_option(schedule.day),
        weekday=_as_option(schedule.weekday),
        **common,
    )


def add_months(dt: datetime, months: int) -> datetime:
    """Add months to a datetime, clamping to the last day of the month."""
    month = dt.month - 1 + months
    year = dt.year + month // 12
    month = month % 12 + 1
    max_day = cal.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(dt.day, max_day))


def period_bucket(repeat_pattern: str, moment: datetime) -> str:
    """Idempotency key for the period containing ``moment``.

    Calendar date for daily, ISO week and weekday for weekly (a weekly rule
    may name several days), year-month for monthly and the exact fire minute
    for cron schedules.
    """
    if repeat_pattern == RepeatPattern.DAILY.value:
        return moment.date().isoformat()
    if repeat_pattern == RepeatPattern.WEEKLY.value:
        iso_year, iso_week, iso_weekday = moment.isocalendar()
        return f"{iso_year}-W{iso_week:02d}-{iso_weekday}"
    if repeat_pattern == RepeatPattern.MONTHLY.value:
        return f"{moment.year:04d}-{moment.month:02d}"
    if repeat_pattern == RepeatPattern.CUSTOM.value:
        return moment.strftime("%Y-%m-%dT%H:%M")
    return "once"


def _local_occurrence(rule: Any, local_now: datetime, max_lateness: timedelta) -> datetime | None:
    """The rule's occurrence in the current period, as naive local time, if any."""
    pattern = rule.repeat_pattern
    days_of_week = set(rule.days_of_week or [])

    if pattern == RepeatPattern.CUSTOM.value:
        if not rule.cron_expression:
            raise ValueError("Custom repeat pattern requires a cron expression")
        schedule = parse_cron(rule.cron_expression)
        now_minute = local_now.replace(second=0, microsecond=0)
        fire = next_cron_fire(schedule, now_minute - max_lateness)
        if fire > now_minute:
            return None
        # Latest fire at or before now; earlier ones in the window are superseded
        following = next_cron_fire(schedule, fire)
        while following <= now_minute:
            fire, following = following, next_cron_fire(schedule, following)
        return fire

    at = parse_time_of_day(rule.time_of_day or "00:00")
    today_at = datetime.combine(local_now.date(), at)

    if pattern == RepeatPattern.DAILY.value:
        if days_of_week and local_now.isoweekday() not in days_of_week:
            return None
        return today_at
    if pattern == RepeatPattern.WEEKLY.value:
        if local_now.isoweekday() not in (days_of_week or {1}):
            return None
        return today_at
    if pattern == RepeatPattern.MONTHLY.value:
        wanted = rule.day_of_month or 1
        last_day = cal.monthrange(local_now.year, local_now.month)[1]
        if local_now.day != min(wanted, last_day):
            return None
        return today_at
    return today_at


def due_occurrence(
    rule: Any,
    now: datetime,
    tz_name: str | None = "UTC",
    max_lateness: timedelta = timedelta(minutes=60),
) -> datetime | None:
    """UTC time of the rule's occurrence for the current period, if it is due.

    An occurrence later today (or this period) counts as due so it can be
    materialized ahead of time; one that passed more than ``max_lateness``
    ago does not, so a late generator run never fires stale reminders.
    """
    local_now = to_local(now, tz_name)
    starts_at = getattr(rule, "starts_at", None)
    if rule.repeat_pattern == RepeatPattern.NONE.value and starts_at is not None:
        occurrence: datetime | None = to_local(starts_at, tz_name)
    else:
        occurrence = _local_occurrence(rule, local_now, max_lateness)
    if occurrence is None or occurrence < local_now - max_lateness:
        return None
    return from_local(occurrence, tz_name)


def is_due(
    rule: Any,
    now: datetime,
    tz_name: str | None = "UTC",
    max_lateness: timedelta = timedelta(minutes=60),
) -> bool:
    return due_occurrence(rule, now, tz_name, max_lateness) is not None


def next_occurrence(
    repeat_pattern: str,
    previous: datetime,
    tz_name: str | None = "UTC",
    cron_expression: str | None = None,
) -> datetime | None:
    """Next scheduled time after ``previous`` for a repeating notification.

    Returns ``None`` for non-repeating patterns.
    """
    local = to_local(previous, tz_name)
    if repeat_pattern == RepeatPattern.DAILY.value:
        following = local + timedelta(days=1)
    elif repeat_pattern == RepeatPattern.WEEKLY.value:
        following = local + timedelta(weeks=1)
    elif repeat_pattern == RepeatPattern.MONTHLY.value:
        following = add_months(local, 1)
    elif repeat_pattern == RepeatPattern.CUSTOM.value and cron_expression:
        following = next_cron_fire(parse_cron(cron_expression), local)
    else:
        return None
    return from_local(following, tz_name)
