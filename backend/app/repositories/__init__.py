from app.repositories.invoice_reminder_repository import InvoiceReminderRepository
from app.repositories.invoice_repository import InvoiceRepository

__all__ = [
    "InvoiceReminderRepository",
    "InvoiceRepository",
]
