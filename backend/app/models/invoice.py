from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    SENT = "sent"
    VIEWED = "viewed"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# Statuses that never receive payment reminders
CLOSED_INVOICE_STATUSES = (InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value)


class InvoiceType(str, Enum):
    STANDARD = "standard"
    DEPOSIT = "deposit"
    FINAL = "final"


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), unique=True, index=True, nullable=False)

    # Recipient
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)

    # Split-payment linkage
    invoice_type = Column(String(20), nullable=False, default=InvoiceType.STANDARD.value)
    deposit_percent = Column(Numeric(5, 2), nullable=True)
    parent_invoice_id = Column(
        UUIDType, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True
    )

    status = Column(String(20), nullable=False, default=InvoiceStatus.DRAFT.value, index=True)

    # Amounts
    currency = Column(String(3), nullable=False, default="EUR")
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    amount_paid = Column(Numeric(12, 2), nullable=False, default=0)
    balance_due = Column(Numeric(12, 2), nullable=False, default=0)

    issue_date = Column(Date, nullable=True)
    due_date = Column(Date, nullable=True, index=True)
    payment_instructions = Column(Text, nullable=True)

    # Reminder schedule
    reminder_paused = Column(Boolean, nullable=False, default=False)
    reminder_count = Column(Integer, nullable=False, default=0)
    last_reminder_sent = Column(DateTime(timezone=True), nullable=True)
    next_reminder_date = Column(Date, nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
