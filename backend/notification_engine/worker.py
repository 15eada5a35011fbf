import logging
from datetime import timedelta
from typing import Any

from arq import cron
from sqlalchemy.orm import Session

from notification_engine.core.config import settings
from notification_engine.core.database import SessionLocal
from notification_engine.models.shared import utc_now
from notification_engine.repositories.notification_repository import NotificationRepository
from notification_engine.services.channels import build_channel_adapters
from notification_engine.services.delivery_dispatcher import DeliveryDispatcher
from notification_engine.services.notification_types import DEFAULT_NOTIFICATION_TYPES
from notification_engine.services.reminder_generator import ReminderGenerator
from notification_engine.services.retry_policy import RetryPolicy
from notification_engine.services.scheduler import NotificationScheduler
from notification_engine.tasks import redis_settings

logger = logging.getLogger(__name__)


def build_scheduler(db: Session, ctx: dict[str, Any] | None = None) -> NotificationScheduler:
    """Wire a scheduler from settings.

    Channel adapters are built once per worker in ``startup`` and reused from
    ``ctx``; callers without a worker context get a fresh registry.
    """
    adapters = (ctx or {}).get("channel_adapters") or build_channel_adapters(settings)
    dispatcher = DeliveryDispatcher(
        db,
        adapters,
        types=DEFAULT_NOTIFICATION_TYPES,
        timeout=settings.CHANNEL_TIMEOUT_SECONDS,
    )
    return NotificationScheduler(
        db,
        dispatcher,
        retry_policy=RetryPolicy.from_settings(settings),
        lease_seconds=settings.DISPATCH_LEASE_SECONDS,
        batch_size=settings.SCHEDULER_BATCH_SIZE,
        concurrency=settings.SCHEDULER_CONCURRENCY,
    )


async def startup(ctx: dict[str, Any]) -> None:
    ctx["channel_adapters"] = build_channel_adapters(settings)


async def process_due_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: deliver every notification that is due.

    Runs every minute. Returns the number of notifications processed.
    """
    db = SessionLocal()
    try:
        result = await build_scheduler(db, ctx).tick()
        return result.processed
    finally:
        db.close()


async def generate_reminders_task(ctx: dict[str, Any]) -> int:
    """Background task: materialize due reminder definitions into notifications.

    Runs every minute; generation is idempotent per period.
    """
    db = SessionLocal()
    try:
        generator = ReminderGenerator(
            db,
            types=DEFAULT_NOTIFICATION_TYPES,
            max_lateness_minutes=settings.REMINDER_MAX_LATENESS_MINUTES,
        )
        return generator.generate()
    finally:
        db.close()


async def cleanup_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: delete finished notifications past the retention period.

    Runs daily.
    """
    db = SessionLocal()
    try:
        cutoff = utc_now() - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)
        count = NotificationRepository(db).delete_older_than(cutoff)
        if count > 0:
            logger.info("Deleted %d notifications older than %s", count, cutoff)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        process_due_notifications_task,
        generate_reminders_task,
        cleanup_notifications_task,
    ]
    cron_jobs = [
        cron(process_due_notifications_task, second=0),  # every minute
        cron(generate_reminders_task, second=30),  # every minute, offset from the tick
        cron(cleanup_notifications_task, hour=3, minute=0),  # daily
    ]
    on_startup = startup
    redis_settings = redis_settings
