"""InvoiceReminder model: append-only log of reminder dispatch attempts."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class ReminderOutcome(str, Enum):
    SENT = "sent"
    FAILED = "failed"


class InvoiceReminder(Base):
    """One row per reminder attempt, sent or failed. Rows are never updated."""

    __tablename__ = "invoice_reminders"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    invoice_id = Column(
        UUIDType,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    reminder_type = Column(String(30), nullable=False)
    recipient_email = Column(String(255), nullable=True)
    subject = Column(String(500), nullable=False, default="")
    status = Column(String(20), nullable=False, index=True)
    error_message = Column(Text, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
