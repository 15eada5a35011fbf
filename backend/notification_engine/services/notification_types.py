"""Notification type catalogue.

Each type carries its category, default title/body templates, icon, sound and
default priority. The catalogue is an immutable mapping handed to the
components that need it, so nothing reads it as ambient global state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from notification_engine.models.notification import NotificationCategory, NotificationPriority


@dataclass(frozen=True)
class NotificationTypeConfig:
    type_key: str
    name: str
    category: str
    default_title: str
    default_body: str
    icon: str | None = None
    sound: str = "default"
    priority: str = NotificationPriority.NORMAL.value
    description: str | None = None
    is_active: bool = True


NotificationTypeTable = Mapping[str, NotificationTypeConfig]


class _KeepMissing(dict[str, Any]):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def render_template(template: str, data: Mapping[str, Any] | None) -> str:
    """Fill ``{placeholders}`` from ``data``; unknown placeholders stay as written."""
    try:
        return template.format_map(_KeepMissing(data or {}))
    except (ValueError, IndexError, AttributeError):
        # Malformed format strings (stray braces, positional fields) are shown verbatim
        return template


def _type(
    type_key: str,
    name: str,
    category: NotificationCategory,
    title: str,
    body: str,
    icon: str,
    priority: NotificationPriority,
    description: str,
) -> NotificationTypeConfig:
    return NotificationTypeConfig(
        type_key=type_key,
        name=name,
        category=category.value,
        default_title=title,
        default_body=body,
        icon=icon,
        priority=priority.value,
        description=description,
    )


_DEFAULT_TYPES = [
    # Tasks
    _type("task_due", "Task Due", NotificationCategory.TASK, "Task Due Soon",
          "You have a task due: {task_title}", "\U0001F4CB", NotificationPriority.NORMAL,
          "Task deadline reminder"),
    _type("task_overdue", "Task Overdue", NotificationCategory.TASK, "Task Overdue",
          "Task is overdue: {task_title}", "⚠️", NotificationPriority.HIGH,
          "Overdue task notification"),
    _type("task_completed", "Task Completed", NotificationCategory.TASK, "Task Completed",
          "Great job! You completed: {task_title}", "✅", NotificationPriority.LOW,
          "Task completion confirmation"),
    # Habits
    _type("habit_checkin", "Habit Check-in", NotificationCategory.HABIT, "Time for Your Habit",
          "Don't forget: {habit_name}", "\U0001F504", NotificationPriority.NORMAL,
          "Daily habit reminder"),
    _type("habit_streak", "Habit Streak", NotificationCategory.HABIT, "Habit Streak!",
          "Amazing! {streak_days} day streak for {habit_name}", "\U0001F525",
          NotificationPriority.NORMAL, "Habit streak milestone"),
    _type("habit_missed", "Habit Missed", NotificationCategory.HABIT, "Habit Missed",
          "You missed your habit: {habit_name}", "\U0001F614", NotificationPriority.LOW,
          "Missed habit notification"),
    # Faith
    _type("salat_reminder", "Salat Reminder", NotificationCategory.FAITH, "Prayer Time",
          "Time for {prayer_name} prayer", "\U0001F54C", NotificationPriority.HIGH,
          "Prayer time reminder"),
    _type("azkar_alert", "Azkar Alert", NotificationCategory.FAITH, "Time for Azkar",
          "Remember Allah: {azkar_title}", "\U0001F4FF", NotificationPriority.NORMAL,
          "Dhikr and remembrance reminder"),
    _type("quran_reading", "Quran Reading", NotificationCategory.FAITH, "Quran Reading Time",
          "Continue your Quran reading journey", "\U0001F4D6", NotificationPriority.NORMAL,
          "Daily Quran reading reminder"),
    # Finance
    _type("bill_due", "Bill Due", NotificationCategory.FINANCE, "Bill Due Soon",
          "Bill due: {bill_name} - ${amount}", "\U0001F4B3", NotificationPriority.HIGH,
          "Bill payment reminder"),
    _type("budget_alert", "Budget Alert", NotificationCategory.FINANCE, "Budget Alert",
          "You've reached {percentage}% of your {category} budget", "\U0001F4B0",
          NotificationPriority.NORMAL, "Budget limit notification"),
    _type("expense_reminder", "Expense Reminder", NotificationCategory.FINANCE,
          "Log Your Expenses", "Don't forget to log today's expenses", "\U0001F4CA",
          NotificationPriority.LOW, "Expense tracking reminder"),
    # Health
    _type("medication_reminder", "Medication Reminder", NotificationCategory.HEALTH,
          "Medication Time", "Time to take: {medication_name}", "\U0001F48A",
          NotificationPriority.URGENT, "Medication time reminder"),
    _type("appointment_reminder", "Appointment Reminder", NotificationCategory.HEALTH,
          "Appointment Reminder", "Appointment with {doctor_name} at {time}", "\U0001F3E5",
          NotificationPriority.HIGH, "Medical appointment reminder"),
    _type("health_checkin", "Health Check-in", NotificationCategory.HEALTH, "Health Check-in",
          "Time to log your health metrics", "\U0001F4C8", NotificationPriority.NORMAL,
          "Daily health metrics reminder"),
    # System
    _type("welcome", "Welcome", NotificationCategory.SYSTEM, "Welcome!",
          "Start your journey to a better life", "\U0001F389", NotificationPriority.NORMAL,
          "Welcome new user"),
    _type("backup_reminder", "Backup Reminder", NotificationCategory.SYSTEM, "Backup Your Data",
          "Consider backing up your important data", "\U0001F4BE", NotificationPriority.LOW,
          "Data backup reminder"),
    _type("update_available", "Update Available", NotificationCategory.SYSTEM,
          "Update Available", "A new version is available", "\U0001F504",
          NotificationPriority.NORMAL, "App update notification"),
]


def build_type_table(types: list[NotificationTypeConfig]) -> NotificationTypeTable:
    """Freeze a list of type configs into a read-only mapping keyed by ``type_key``."""
    return MappingProxyType({config.type_key: config for config in types})


DEFAULT_NOTIFICATION_TYPES: NotificationTypeTable = build_type_table(_DEFAULT_TYPES)


def resolve_type(types: NotificationTypeTable, type_key: str) -> NotificationTypeConfig:
    """Look up an active type, raising ``ValueError`` for unknown or inactive keys."""
    config = types.get(type_key)
    if config is None or not config.is_active:
        raise ValueError(f"Unknown notification type '{type_key}'")
    return config
