from app.models.invoice import Invoice, InvoiceStatus, InvoiceType
from app.models.invoice_reminder import InvoiceReminder, ReminderOutcome

__all__ = [
    "Invoice",
    "InvoiceReminder",
    "InvoiceStatus",
    "InvoiceType",
    "ReminderOutcome",
]
