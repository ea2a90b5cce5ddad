from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.invoice import InvoiceStatus, InvoiceType


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_number: str
    client_name: str
    client_email: str | None = None
    invoice_type: InvoiceType
    deposit_percent: Decimal | None = None
    parent_invoice_id: UUID | None = None
    status: InvoiceStatus
    currency: str
    total_amount: Decimal
    amount_paid: Decimal
    balance_due: Decimal
    issue_date: date | None = None
    due_date: date | None = None
    payment_instructions: str | None = None
    reminder_paused: bool
    reminder_count: int
    last_reminder_sent: datetime | None = None
    next_reminder_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SplitPaymentResponse(BaseModel):
    """Display figures for a deposit or final invoice."""

    model_config = ConfigDict(from_attributes=True)

    invoice_id: UUID
    invoice_number: str
    currency: str
    invoice_type: InvoiceType
    deposit_percent: Decimal
    full_trip_cost: Decimal
    deposit_amount: Decimal
    balance_amount: Decimal
