from app.schemas.invoice import InvoiceResponse, SplitPaymentResponse
from app.schemas.invoice_reminder import (
    InvoiceReminderResponse,
    ReminderDispatchDetail,
    ReminderDispatchRequest,
    ReminderDispatchResponse,
    ReminderHistoryResponse,
    ReminderPauseRequest,
    ReminderPauseResponse,
    ReminderPreviewItem,
    ReminderPreviewResponse,
)

__all__ = [
    "InvoiceReminderResponse",
    "InvoiceResponse",
    "ReminderDispatchDetail",
    "ReminderDispatchRequest",
    "ReminderDispatchResponse",
    "ReminderHistoryResponse",
    "ReminderPauseRequest",
    "ReminderPauseResponse",
    "ReminderPreviewItem",
    "ReminderPreviewResponse",
    "SplitPaymentResponse",
]
