"""Tests for enqueueing background tasks."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notification_engine.tasks import (
    enqueue_cleanup_notifications,
    enqueue_generate_reminders,
    enqueue_process_due_notifications,
    enqueue_task,
    get_redis_pool,
)


def _mock_pool(job_id="job-123"):
    mock_job = MagicMock()
    mock_job.job_id = job_id
    mock_pool = MagicMock()
    mock_pool.enqueue_job = AsyncMock(return_value=mock_job)
    mock_pool.close = AsyncMock()
    return mock_pool, mock_job


class TestTasks:
    @pytest.mark.asyncio
    async def test_get_redis_pool(self):
        """Test get_redis_pool creates a pool."""
        mock_pool = MagicMock()

        with patch("notification_engine.tasks.create_pool", new_callable=AsyncMock) as mock_create:
            mock_create.return_value = mock_pool

            result = await get_redis_pool()

            assert result == mock_pool
            mock_create.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task(self):
        """Test enqueue_task enqueues a job and closes the pool."""
        mock_pool, mock_job = _mock_pool()

        with patch(
            "notification_engine.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            result = await enqueue_task("my_task", "arg1", kwarg1="value1")

            assert result == mock_job
            mock_pool.enqueue_job.assert_called_once_with("my_task", "arg1", kwarg1="value1")
            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_enqueue_task_closes_pool_on_error(self):
        """Test enqueue_task closes pool even when job enqueue fails."""
        mock_pool = MagicMock()
        mock_pool.enqueue_job = AsyncMock(side_effect=Exception("Redis error"))
        mock_pool.close = AsyncMock()

        with patch(
            "notification_engine.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            with pytest.raises(Exception, match="Redis error"):
                await enqueue_task("failing_task")

            mock_pool.close.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "enqueue, task_name, job_id",
        [
            (
                enqueue_process_due_notifications,
                "process_due_notifications_task",
                "process-due:20261014T1230",
            ),
            (
                enqueue_generate_reminders,
                "generate_reminders_task",
                "generate-reminders:20261014T1230",
            ),
        ],
    )
    async def test_manual_ticks_are_keyed_by_minute(self, enqueue, task_name, job_id):
        mock_pool, mock_job = _mock_pool()

        with patch(
            "notification_engine.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            result = await enqueue(datetime(2026, 10, 14, 12, 30, 45, tzinfo=UTC))

        assert result == mock_job
        mock_pool.enqueue_job.assert_called_once_with(task_name, _job_id=job_id)

    @pytest.mark.asyncio
    async def test_duplicate_tick_in_same_minute_returns_none(self):
        mock_pool, _ = _mock_pool()
        mock_pool.enqueue_job = AsyncMock(return_value=None)

        with patch(
            "notification_engine.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            assert await enqueue_process_due_notifications() is None

    @pytest.mark.asyncio
    async def test_enqueue_cleanup(self):
        mock_pool, mock_job = _mock_pool()

        with patch(
            "notification_engine.tasks.get_redis_pool", new_callable=AsyncMock
        ) as mock_get_pool:
            mock_get_pool.return_value = mock_pool

            result = await enqueue_cleanup_notifications()

        assert result == mock_job
        mock_pool.enqueue_job.assert_called_once_with("cleanup_notifications_task")
