"""Reminder dispatch: select due invoices, send reminders, record every attempt.

Each dispatch call is a self-contained sweep. The only durable state is the
reminder fields on the invoice and the append-only ``invoice_reminders`` log,
so an interrupted sweep needs no recovery: whatever was not recorded is simply
still eligible next time.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.invoice import CLOSED_INVOICE_STATUSES, Invoice
from app.models.invoice_reminder import ReminderOutcome
from app.repositories.invoice_reminder_repository import InvoiceReminderRepository
from app.repositories.invoice_repository import InvoiceRepository
from app.schemas.invoice_reminder import (
    ReminderDispatchDetail,
    ReminderDispatchRequest,
    ReminderDispatchResponse,
    ReminderPreviewItem,
    ReminderPreviewResponse,
)
from app.services.reminder_classifier import ReminderType, classify_due_date
from app.services.reminder_notifier import DeliveryResult, EmailReminderNotifier, ReminderNotifier
from app.services.reminder_templates import RenderedReminder, render_reminder

logger = logging.getLogger(__name__)


class InvalidReminderRequestError(ValueError):
    """Raised when a dispatch names neither invoices nor a full sweep."""


class ReminderDataError(ValueError):
    """Raised when an invoice reaching dispatch breaks a data invariant."""


def _dedupe(invoices: Iterable[Invoice]) -> list[Invoice]:
    seen: set[UUID] = set()
    unique: list[Invoice] = []
    for invoice in invoices:
        invoice_id: UUID = invoice.id  # type: ignore[assignment]
        if invoice_id in seen:
            continue
        seen.add(invoice_id)
        unique.append(invoice)
    return unique


def reminder_block_reason(invoice: Invoice) -> str | None:
    """Why an invoice cannot receive a reminder regardless of its schedule, if it cannot."""
    if invoice.status in CLOSED_INVOICE_STATUSES:
        return f"Invoice is {invoice.status}"
    if Decimal(str(invoice.balance_due or 0)) <= 0:
        return "Invoice has no balance due"
    if invoice.reminder_paused:
        return "Reminders are paused for this invoice"
    if not invoice.client_email:
        return "Invoice has no client email"
    if invoice.due_date is None:
        return "Invoice has no due date"
    return None


def check_reminder_invariants(invoice: Invoice) -> None:
    """Reject invoices that should never have been selected for a reminder."""
    if not invoice.client_email:
        raise ReminderDataError(f"Invoice {invoice.invoice_number} has no client email")
    balance = Decimal(str(invoice.balance_due or 0))
    if balance <= 0:
        raise ReminderDataError(f"Invoice {invoice.invoice_number} has no balance due")
    if invoice.due_date is None:
        raise ReminderDataError(f"Invoice {invoice.invoice_number} has no due date")


class ReminderDispatchService:
    """Service for previewing and dispatching invoice payment reminders."""

    def __init__(
        self,
        db: Session,
        notifier: ReminderNotifier | None = None,
        *,
        interval_days: int | None = None,
        max_concurrency: int | None = None,
        send_timeout: float | None = None,
        batch_limit: int | None = None,
    ):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.reminder_repo = InvoiceReminderRepository(db)
        self.notifier = notifier or EmailReminderNotifier()
        self.interval_days = (
            interval_days if interval_days is not None else settings.REMINDER_INTERVAL_DAYS
        )
        self.max_concurrency = max(
            1, max_concurrency if max_concurrency is not None else settings.REMINDER_MAX_CONCURRENCY
        )
        self.send_timeout = (
            send_timeout if send_timeout is not None else settings.REMINDER_SEND_TIMEOUT_SECONDS
        )
        self.batch_limit = batch_limit if batch_limit is not None else settings.REMINDER_BATCH_LIMIT

    # ------------------------------------------------------------------
    # Candidate selection
    # ------------------------------------------------------------------

    def resolve_candidates(
        self, request: ReminderDispatchRequest, today: date,
    ) -> list[Invoice]:
        """Explicit ids bypass the schedule date; ``send_all`` sweeps what is due."""
        if request.invoice_ids:
            invoices = self.invoice_repo.list_by_ids(request.invoice_ids)
        elif request.send_all:
            invoices = self.invoice_repo.list_reminder_eligible(
                today, limit=self.batch_limit or None,
            )
        else:
            raise InvalidReminderRequestError("Provide invoice_ids or set send_all=true")
        return _dedupe(invoices)

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(
        self, today: date, invoice_ids: Sequence[UUID] | None = None,
    ) -> ReminderPreviewResponse:
        """Classify what would be sent on ``today`` without sending or writing."""
        if invoice_ids:
            invoices = self.invoice_repo.list_by_ids(invoice_ids)
        else:
            invoices = self.invoice_repo.list_reminder_eligible(today)

        items: list[ReminderPreviewItem] = []
        for invoice in _dedupe(invoices):
            item = ReminderPreviewItem(
                invoice_id=invoice.id,  # type: ignore[arg-type]
                invoice_number=str(invoice.invoice_number),
                client_name=str(invoice.client_name),
                client_email=invoice.client_email,  # type: ignore[arg-type]
                balance_due=Decimal(str(invoice.balance_due)),
                currency=str(invoice.currency),
                due_date=invoice.due_date,  # type: ignore[arg-type]
                reminder_count=int(invoice.reminder_count or 0),
                last_reminder_sent=invoice.last_reminder_sent,  # type: ignore[arg-type]
                next_reminder_date=invoice.next_reminder_date,  # type: ignore[arg-type]
            )
            try:
                check_reminder_invariants(invoice)
            except ReminderDataError as e:
                item.error = str(e)
            else:
                classification = classify_due_date(invoice.due_date, today)  # type: ignore[arg-type]
                item.days_until_due = classification.days_until_due
                item.reminder_type = classification.reminder_type
                item.urgency = classification.urgency
            items.append(item)

        return ReminderPreviewResponse(as_of=today, count=len(items), reminders=items)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(
        self, request: ReminderDispatchRequest, now: datetime,
    ) -> ReminderDispatchResponse:
        """Run one dispatch cycle.

        1. Resolve and deduplicate the candidate invoices
        2. For each candidate, concurrently: check, classify, render, send
        3. On success: advance the schedule and log a ``sent`` record atomically
        4. On failure: log a ``failed`` record, leave the invoice untouched
        5. Return aggregate counts with per-invoice detail

        A failure for one invoice never aborts the sweep.
        """
        today = now.date()
        invoices = self.resolve_candidates(request, today)
        if not invoices:
            logger.info("No invoices due for reminders on %s", today.isoformat())
            return ReminderDispatchResponse(sent=0, failed=0, details=[])

        # Identity is captured before any commit expires the loaded instances
        targets = [
            (invoice, invoice.id, str(invoice.invoice_number), invoice.client_email)
            for invoice in invoices
        ]
        semaphore = asyncio.Semaphore(self.max_concurrency)
        details = await asyncio.gather(
            *(
                self._dispatch_one(invoice, invoice_id, number, recipient, today, now, semaphore)
                for invoice, invoice_id, number, recipient in targets
            )
        )

        sent = sum(1 for d in details if d.status == ReminderOutcome.SENT)
        failed = len(details) - sent
        logger.info(
            "Reminder sweep for %s: %d sent, %d failed", today.isoformat(), sent, failed,
        )
        return ReminderDispatchResponse(sent=sent, failed=failed, details=list(details))

    async def _dispatch_one(
        self,
        invoice: Invoice,
        invoice_id: UUID,
        invoice_number: str,
        recipient: str | None,
        today: date,
        now: datetime,
        semaphore: asyncio.Semaphore,
    ) -> ReminderDispatchDetail:
        async with semaphore:
            try:
                return await self._process_one(
                    invoice, invoice_id, invoice_number, recipient, today, now,
                )
            except Exception as e:
                self.db.rollback()
                logger.exception("Unexpected error dispatching reminder for invoice %s", invoice_number)
                return ReminderDispatchDetail(
                    invoice_id=invoice_id,
                    invoice_number=invoice_number,
                    recipient=recipient,
                    status=ReminderOutcome.FAILED,
                    error=f"Unexpected error: {e}",
                )

    async def _process_one(
        self,
        invoice: Invoice,
        invoice_id: UUID,
        invoice_number: str,
        recipient: str | None,
        today: date,
        now: datetime,
    ) -> ReminderDispatchDetail:
        reminder_type: ReminderType | None = None
        subject = ""

        try:
            check_reminder_invariants(invoice)
            classification = classify_due_date(invoice.due_date, today)  # type: ignore[arg-type]
            reminder_type = classification.reminder_type
            rendered = render_reminder(invoice, classification)
            subject = rendered.subject
            result = await self._deliver(str(recipient), rendered)
        except ReminderDataError as e:
            result = DeliveryResult(ok=False, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error sending reminder for invoice %s", invoice_number)
            result = DeliveryResult(ok=False, error=f"Unexpected error: {e}")

        if result.ok and reminder_type is not None:
            return self._record_sent(
                invoice_id, invoice_number, recipient, reminder_type, subject, today, now,
            )

        logger.warning(
            "Reminder for invoice %s to %s failed: %s", invoice_number, recipient, result.error,
        )
        return self._record_failed(
            invoice_id, invoice_number, recipient, reminder_type, subject, result.error, now,
        )

    async def _deliver(self, recipient: str, rendered: RenderedReminder) -> DeliveryResult:
        try:
            return await asyncio.wait_for(
                self.notifier.send(recipient, rendered.subject, rendered.html),
                timeout=self.send_timeout,
            )
        except TimeoutError:
            return DeliveryResult(
                ok=False, error=f"Notification timed out after {self.send_timeout:g}s",
            )

    def _record_sent(
        self,
        invoice_id: UUID,
        invoice_number: str,
        recipient: str | None,
        reminder_type: ReminderType,
        subject: str,
        today: date,
        now: datetime,
    ) -> ReminderDispatchDetail:
        """Advance the schedule and append the audit row in one transaction."""
        detail = ReminderDispatchDetail(
            invoice_id=invoice_id,
            invoice_number=invoice_number,
            recipient=recipient,
            status=ReminderOutcome.SENT,
            reminder_type=reminder_type,
        )
        try:
            updated = self.invoice_repo.record_reminder_sent(
                invoice_id,
                last_sent_at=now,
                next_reminder_date=today + timedelta(days=self.interval_days),
                commit=False,
            )
            if updated is None:
                raise NoResultFound(f"Invoice {invoice_id} no longer exists")
            self.reminder_repo.create(
                invoice_id=invoice_id,
                reminder_type=reminder_type.value,
                recipient_email=recipient,
                subject=subject,
                status=ReminderOutcome.SENT,
                sent_at=now,
                commit=False,
            )
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.exception(
                "Reminder for invoice %s was sent to %s but recording the outcome failed",
                invoice_number,
                recipient,
            )
            detail.error = f"Reminder sent but outcome not recorded: {e}"
            # The message went out; keep at least the audit trail of it.
            self._append_sent_record(invoice_id, invoice_number, recipient, reminder_type, subject, now)
        return detail

    def _append_sent_record(
        self,
        invoice_id: UUID,
        invoice_number: str,
        recipient: str | None,
        reminder_type: ReminderType,
        subject: str,
        now: datetime,
    ) -> None:
        try:
            self.reminder_repo.create(
                invoice_id=invoice_id,
                reminder_type=reminder_type.value,
                recipient_email=recipient,
                subject=subject,
                status=ReminderOutcome.SENT,
                sent_at=now,
            )
        except Exception:
            self.db.rollback()
            logger.exception(
                "Audit record lost for reminder sent to %s (invoice %s)", recipient, invoice_number,
            )

    def _record_failed(
        self,
        invoice_id: UUID,
        invoice_number: str,
        recipient: str | None,
        reminder_type: ReminderType | None,
        subject: str,
        error: str | None,
        now: datetime,
    ) -> ReminderDispatchDetail:
        """Log the failed attempt; reminder fields on the invoice stay as they were."""
        error_message = error or "Unknown delivery error"
        try:
            self.reminder_repo.create(
                invoice_id=invoice_id,
                reminder_type=reminder_type.value if reminder_type else "unclassified",
                recipient_email=recipient,
                subject=subject,
                status=ReminderOutcome.FAILED,
                error_message=error_message,
                sent_at=now,
            )
        except Exception:
            self.db.rollback()
            logger.exception("Failed to record failed reminder for invoice %s", invoice_number)
        return ReminderDispatchDetail(
            invoice_id=invoice_id,
            invoice_number=invoice_number,
            recipient=recipient,
            status=ReminderOutcome.FAILED,
            reminder_type=reminder_type,
            error=error_message,
        )
