"""Invoice reminder API endpoints: preview, dispatch, scheduled run, history."""

from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.auth import verify_cron_secret
from app.core.clock import get_now
from app.core.database import get_db
from app.models.invoice_reminder import ReminderOutcome
from app.repositories.invoice_reminder_repository import InvoiceReminderRepository
from app.schemas.invoice_reminder import (
    InvoiceReminderResponse,
    ReminderDispatchRequest,
    ReminderDispatchResponse,
    ReminderHistoryPagination,
    ReminderHistoryResponse,
    ReminderHistoryStats,
    ReminderPreviewResponse,
)
from app.services.reminder_dispatch_service import (
    InvalidReminderRequestError,
    ReminderDispatchService,
)
from app.services.reminder_notifier import ReminderNotifier, get_reminder_notifier

router = APIRouter()


@router.get(
    "/preview",
    response_model=ReminderPreviewResponse,
    summary="Preview reminders",
)
async def preview_reminders(
    as_of: date | None = Query(default=None, description="Classify as of this date (default today, UTC)"),
    invoice_ids: list[UUID] | None = Query(default=None),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ReminderPreviewResponse:
    """Classify every invoice due for a reminder without sending anything."""
    service = ReminderDispatchService(db)
    return service.preview(as_of or now.date(), invoice_ids=invoice_ids)


@router.post(
    "/dispatch",
    response_model=ReminderDispatchResponse,
    summary="Dispatch reminders",
    responses={
        400: {"description": "Neither invoice_ids nor send_all was provided"},
        422: {"description": "Validation error"},
    },
)
async def dispatch_reminders(
    data: ReminderDispatchRequest,
    db: Session = Depends(get_db),
    notifier: ReminderNotifier = Depends(get_reminder_notifier),
    now: datetime = Depends(get_now),
) -> ReminderDispatchResponse:
    """Send reminders for the given invoices, or for everything due today.

    Partial failures are reported per invoice; the request itself succeeds.
    """
    service = ReminderDispatchService(db, notifier)
    try:
        return await service.dispatch(data, now=now)
    except InvalidReminderRequestError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None


@router.post(
    "/run",
    response_model=ReminderDispatchResponse,
    summary="Run scheduled reminder sweep",
    responses={401: {"description": "Missing or invalid cron secret"}},
    dependencies=[Depends(verify_cron_secret)],
)
async def run_reminder_sweep(
    db: Session = Depends(get_db),
    notifier: ReminderNotifier = Depends(get_reminder_notifier),
    now: datetime = Depends(get_now),
) -> ReminderDispatchResponse:
    """Entry point for an external scheduler: sweep everything due today."""
    service = ReminderDispatchService(db, notifier)
    return await service.dispatch(ReminderDispatchRequest(send_all=True), now=now)


@router.get(
    "/history",
    response_model=ReminderHistoryResponse,
    summary="Reminder history",
)
async def reminder_history(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    invoice_id: UUID | None = None,
    status: ReminderOutcome | None = None,
    db: Session = Depends(get_db),
) -> ReminderHistoryResponse:
    """List reminder attempts across all invoices, newest first."""
    repo = InvoiceReminderRepository(db)
    reminders = repo.get_all(skip=skip, limit=limit, invoice_id=invoice_id, status=status)
    total = repo.count(invoice_id=invoice_id, status=status)
    counts = repo.status_counts()
    return ReminderHistoryResponse(
        reminders=[InvoiceReminderResponse.model_validate(r) for r in reminders],
        pagination=ReminderHistoryPagination(
            total=total,
            skip=skip,
            limit=limit,
            has_more=skip + limit < total,
        ),
        stats=ReminderHistoryStats(
            total=sum(counts.values()),
            sent=counts.get(ReminderOutcome.SENT.value, 0),
            failed=counts.get(ReminderOutcome.FAILED.value, 0),
        ),
    )
