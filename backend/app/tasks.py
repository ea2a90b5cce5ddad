from collections.abc import Sequence
from typing import Any
from uuid import UUID

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from app.core.config import settings

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Open an arq connection pool on REDIS_URL."""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Queue ``task_name`` for the worker and return the arq job handle.

    A fresh pool is opened per call and always closed again, so callers in
    request handlers do not hold Redis connections between requests.
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_send_invoice_reminders(invoice_ids: Sequence[UUID] | None = None) -> Job:
    """Queue a reminder run outside the daily schedule.

    Without ``invoice_ids`` the worker sweeps everything due today; with them
    it sends to exactly those invoices, ignoring their reminder dates.
    """
    if invoice_ids:
        return await enqueue_task(
            "send_invoice_reminders_task", invoice_ids=[str(i) for i in invoice_ids],
        )
    return await enqueue_task("send_invoice_reminders_task")
