import logging
from typing import Any
from uuid import UUID

from arq import cron

from app.core import database
from app.models.shared import utc_now
from app.schemas.invoice_reminder import ReminderDispatchRequest
from app.services.reminder_dispatch_service import ReminderDispatchService
from app.services.reminder_notifier import EmailReminderNotifier
from app.tasks import redis_settings

logger = logging.getLogger(__name__)


async def send_invoice_reminders_task(
    ctx: dict[str, Any], invoice_ids: list[str] | None = None,
) -> dict[str, int]:
    """Background task: send payment reminders.

    The daily cron run sweeps every invoice due today, capped at
    REMINDER_BATCH_LIMIT; anything left over stays eligible for the next run.
    Jobs enqueued with ``invoice_ids`` send to those invoices only.
    """
    if invoice_ids:
        request = ReminderDispatchRequest(invoice_ids=[UUID(i) for i in invoice_ids])
    else:
        request = ReminderDispatchRequest(send_all=True)

    db = database.SessionLocal()
    try:
        service = ReminderDispatchService(db, EmailReminderNotifier())
        result = await service.dispatch(request, now=utc_now())
        if result.sent or result.failed:
            logger.info(
                "Scheduled reminders: %d sent, %d failed", result.sent, result.failed,
            )
        return {"sent": result.sent, "failed": result.failed}
    finally:
        db.close()


class WorkerSettings:
    functions = [
        send_invoice_reminders_task,
    ]
    cron_jobs = [
        cron(send_invoice_reminders_task, hour=9, minute=0),  # daily at 09:00 UTC
    ]
    redis_settings = redis_settings
