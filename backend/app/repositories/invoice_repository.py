from collections.abc import Sequence
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from app.models.invoice import CLOSED_INVOICE_STATUSES, Invoice, InvoiceStatus


class InvoiceRepository:
    def __init__(self, db: Session):
        self.db = db

    def _contactable_query(self) -> Query:  # type: ignore[type-arg]
        """Invoices passing every reminder predicate except the schedule date."""
        return self.db.query(Invoice).filter(
            Invoice.status.notin_(CLOSED_INVOICE_STATUSES),
            Invoice.balance_due > 0,
            Invoice.reminder_paused.is_(False),
            Invoice.client_email.isnot(None),
            Invoice.client_email != "",
            Invoice.due_date.isnot(None),
        )

    @staticmethod
    def _order_by_due_date(query: Query) -> Query:  # type: ignore[type-arg]
        # Earliest due first so the most urgent reminders go out within any cap
        return query.order_by(Invoice.due_date.asc(), Invoice.invoice_number.asc())

    def list_reminder_eligible(self, as_of: date, limit: int | None = None) -> list[Invoice]:
        """Invoices due for a reminder on ``as_of``, earliest due date first."""
        query = self._contactable_query().filter(
            or_(
                Invoice.next_reminder_date.is_(None),
                Invoice.next_reminder_date <= as_of,
            )
        )
        query = self._order_by_due_date(query)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def list_by_ids(self, ids: Sequence[UUID]) -> list[Invoice]:
        """Explicit selection: ignores the reminder schedule, keeps the other predicates."""
        if not ids:
            return []
        query = self._contactable_query().filter(Invoice.id.in_(list(ids)))
        return self._order_by_due_date(query).all()

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: InvoiceStatus | None = None,
    ) -> list[Invoice]:
        query = self.db.query(Invoice)
        if status:
            query = query.filter(Invoice.status == status.value)
        return query.order_by(Invoice.created_at.desc()).offset(skip).limit(limit).all()

    def count(self, status: InvoiceStatus | None = None) -> int:
        query = self.db.query(Invoice)
        if status:
            query = query.filter(Invoice.status == status.value)
        return query.count()

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_by_invoice_number(self, invoice_number: str) -> Invoice | None:
        return self.db.query(Invoice).filter(Invoice.invoice_number == invoice_number).first()

    def record_reminder_sent(
        self,
        invoice_id: UUID,
        last_sent_at: datetime,
        next_reminder_date: date,
        commit: bool = True,
    ) -> Invoice | None:
        """Advance the reminder schedule after a successful send.

        The count is incremented in the database, never written back from
        a loaded value, so overlapping sweeps both count. Only the reminder
        fields are written; monetary fields and status are left alone. With
        ``commit=False`` the change is flushed into the caller's transaction.
        """
        updated = (
            self.db.query(Invoice)
            .filter(Invoice.id == invoice_id)
            .update(
                {
                    Invoice.reminder_count: func.coalesce(Invoice.reminder_count, 0) + 1,
                    Invoice.last_reminder_sent: last_sent_at,
                    Invoice.next_reminder_date: next_reminder_date,
                },
                synchronize_session=False,
            )
        )
        if not updated:
            return None

        if commit:
            self.db.commit()
        else:
            self.db.flush()
        return (
            self.db.query(Invoice)
            .populate_existing()
            .filter(Invoice.id == invoice_id)
            .first()
        )

    def set_reminder_paused(self, invoice_id: UUID, paused: bool | None = None) -> Invoice | None:
        """Pause or resume reminders. ``paused=None`` toggles the current value."""
        invoice = self.get_by_id(invoice_id)
        if not invoice:
            return None
        new_value = (not invoice.reminder_paused) if paused is None else paused
        invoice.reminder_paused = new_value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(invoice)
        return invoice
