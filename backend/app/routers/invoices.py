from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.clock import get_now
from app.core.database import get_db
from app.models.invoice import Invoice, InvoiceStatus
from app.repositories.invoice_reminder_repository import InvoiceReminderRepository
from app.repositories.invoice_repository import InvoiceRepository
from app.schemas.invoice import InvoiceResponse, SplitPaymentResponse
from app.schemas.invoice_reminder import (
    InvoiceReminderResponse,
    ReminderDispatchDetail,
    ReminderDispatchRequest,
    ReminderPauseRequest,
    ReminderPauseResponse,
)
from app.services.reminder_dispatch_service import ReminderDispatchService, reminder_block_reason
from app.services.reminder_notifier import ReminderNotifier, get_reminder_notifier
from app.services.split_payment import split_payment_breakdown

router = APIRouter()


def _get_invoice_or_404(repo: InvoiceRepository, invoice_id: UUID) -> Invoice:
    invoice = repo.get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice


@router.get(
    "/",
    response_model=list[InvoiceResponse],
    summary="List invoices",
)
async def list_invoices(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: InvoiceStatus | None = None,
    db: Session = Depends(get_db),
) -> list[Invoice]:
    """List invoices with optional status filter."""
    repo = InvoiceRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(status=status))
    return repo.get_all(skip=skip, limit=limit, status=status)


@router.get(
    "/{invoice_id}",
    response_model=InvoiceResponse,
    summary="Get invoice",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> Invoice:
    """Get an invoice by ID."""
    return _get_invoice_or_404(InvoiceRepository(db), invoice_id)


@router.get(
    "/{invoice_id}/split_payment",
    response_model=SplitPaymentResponse,
    summary="Get split-payment figures",
    responses={
        400: {"description": "Invoice has no deposit split or an invalid percentage"},
        404: {"description": "Invoice not found"},
    },
)
async def get_split_payment(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> SplitPaymentResponse:
    """Full trip cost, deposit and balance derived from a deposit or final invoice."""
    invoice = _get_invoice_or_404(InvoiceRepository(db), invoice_id)
    try:
        breakdown = split_payment_breakdown(
            str(invoice.total_amount),
            invoice.deposit_percent,  # type: ignore[arg-type]
            str(invoice.invoice_type),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from None
    return SplitPaymentResponse(
        invoice_id=invoice.id,  # type: ignore[arg-type]
        invoice_number=str(invoice.invoice_number),
        currency=str(invoice.currency),
        invoice_type=breakdown.invoice_type,
        deposit_percent=breakdown.deposit_percent,
        full_trip_cost=breakdown.full_trip_cost,
        deposit_amount=breakdown.deposit_amount,
        balance_amount=breakdown.balance_amount,
    )


@router.get(
    "/{invoice_id}/reminders",
    response_model=list[InvoiceReminderResponse],
    summary="Get invoice reminder history",
    responses={404: {"description": "Invoice not found"}},
)
async def get_invoice_reminders(
    invoice_id: UUID,
    db: Session = Depends(get_db),
) -> list[InvoiceReminderResponse]:
    """Reminder attempts for one invoice, newest first."""
    _get_invoice_or_404(InvoiceRepository(db), invoice_id)
    repo = InvoiceReminderRepository(db)
    return [InvoiceReminderResponse.model_validate(r) for r in repo.get_by_invoice(invoice_id)]


@router.post(
    "/{invoice_id}/reminders",
    response_model=ReminderDispatchDetail,
    summary="Send reminder now",
    responses={
        400: {"description": "Invoice cannot receive reminders"},
        404: {"description": "Invoice not found"},
    },
)
async def send_invoice_reminder(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    notifier: ReminderNotifier = Depends(get_reminder_notifier),
    now: datetime = Depends(get_now),
) -> ReminderDispatchDetail:
    """Send a reminder for one invoice immediately, ignoring its reminder schedule."""
    invoice = _get_invoice_or_404(InvoiceRepository(db), invoice_id)
    reason = reminder_block_reason(invoice)
    if reason:
        raise HTTPException(status_code=400, detail=reason)

    service = ReminderDispatchService(db, notifier)
    result = await service.dispatch(ReminderDispatchRequest(invoice_ids=[invoice_id]), now=now)
    if not result.details:
        raise HTTPException(status_code=400, detail="Invoice cannot receive reminders")
    return result.details[0]


@router.patch(
    "/{invoice_id}/reminder_pause",
    response_model=ReminderPauseResponse,
    summary="Pause or resume reminders",
    responses={404: {"description": "Invoice not found"}},
)
async def set_reminder_pause(
    invoice_id: UUID,
    data: ReminderPauseRequest | None = None,
    db: Session = Depends(get_db),
) -> ReminderPauseResponse:
    """Pause or resume reminders for an invoice; toggles when ``paused`` is omitted."""
    repo = InvoiceRepository(db)
    paused = data.paused if data is not None else None
    invoice = repo.set_reminder_paused(invoice_id, paused)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return ReminderPauseResponse(
        invoice_id=invoice.id,  # type: ignore[arg-type]
        invoice_number=str(invoice.invoice_number),
        reminder_paused=bool(invoice.reminder_paused),
    )
