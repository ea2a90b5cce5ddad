"""Repository for the append-only InvoiceReminder log."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Query, Session

from app.models.invoice_reminder import InvoiceReminder, ReminderOutcome
from app.models.shared import generate_uuid


class InvoiceReminderRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        invoice_id: UUID,
        reminder_type: str,
        recipient_email: str | None,
        subject: str,
        status: ReminderOutcome,
        error_message: str | None = None,
        sent_at: datetime | None = None,
        commit: bool = True,
    ) -> InvoiceReminder:
        kwargs: dict[str, Any] = {
            "id": generate_uuid(),
            "invoice_id": invoice_id,
            "reminder_type": reminder_type,
            "recipient_email": recipient_email,
            "subject": subject,
            "status": status.value,
            "error_message": error_message,
        }
        if sent_at is not None:
            kwargs["sent_at"] = sent_at
        reminder = InvoiceReminder(**kwargs)
        self.db.add(reminder)
        if commit:
            self.db.commit()
            self.db.refresh(reminder)
        else:
            self.db.flush()
        return reminder

    def _filtered(
        self,
        invoice_id: UUID | None = None,
        status: ReminderOutcome | None = None,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(InvoiceReminder)
        if invoice_id is not None:
            query = query.filter(InvoiceReminder.invoice_id == invoice_id)
        if status is not None:
            query = query.filter(InvoiceReminder.status == status.value)
        return query

    def get_by_invoice(self, invoice_id: UUID) -> list[InvoiceReminder]:
        return (
            self._filtered(invoice_id=invoice_id)
            .order_by(InvoiceReminder.sent_at.desc())
            .all()
        )

    def get_all(
        self,
        skip: int = 0,
        limit: int = 50,
        invoice_id: UUID | None = None,
        status: ReminderOutcome | None = None,
    ) -> list[InvoiceReminder]:
        return (
            self._filtered(invoice_id=invoice_id, status=status)
            .order_by(InvoiceReminder.sent_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(
        self,
        invoice_id: UUID | None = None,
        status: ReminderOutcome | None = None,
    ) -> int:
        return self._filtered(invoice_id=invoice_id, status=status).count()

    def status_counts(self) -> dict[str, int]:
        """Number of records per outcome across the whole log."""
        rows = (
            self.db.query(InvoiceReminder.status, func.count(InvoiceReminder.id))
            .group_by(InvoiceReminder.status)
            .all()
        )
        counts = {outcome.value: 0 for outcome in ReminderOutcome}
        for status, total in rows:
            counts[str(status)] = int(total)
        return counts
