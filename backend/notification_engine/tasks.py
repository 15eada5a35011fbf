"""Enqueue worker tasks on demand, outside their cron schedule."""

from datetime import datetime
from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from notification_engine.core.config import settings
from notification_engine.models.shared import utc_now

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job | None:
    """Enqueue a task on the arq worker by function name.

    Keyword arguments starting with ``_`` (``_job_id``, ``_defer_by``) are arq
    job options. Returns ``None`` when a job with the same ``_job_id`` already
    exists.
    """
    pool = await get_redis_pool()
    try:
        return await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()


def _minute_key(prefix: str, now: datetime | None) -> str:
    return f"{prefix}:{(now or utc_now()):%Y%m%dT%H%M}"


async def enqueue_process_due_notifications(now: datetime | None = None) -> Job | None:
    """Run a scheduler tick now instead of waiting for the next minute.

    Requests within the same minute collapse into a single job.
    """
    return await enqueue_task(
        "process_due_notifications_task", _job_id=_minute_key("process-due", now)
    )


async def enqueue_generate_reminders(now: datetime | None = None) -> Job | None:
    return await enqueue_task(
        "generate_reminders_task", _job_id=_minute_key("generate-reminders", now)
    )


async def enqueue_cleanup_notifications() -> Job | None:
    return await enqueue_task("cleanup_notifications_task")
