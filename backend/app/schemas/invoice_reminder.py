"""Invoice reminder schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.invoice_reminder import ReminderOutcome
from app.services.reminder_classifier import ReminderType, UrgencyTier


class ReminderDispatchRequest(BaseModel):
    """Either an explicit list of invoices or a sweep of everything due."""

    model_config = ConfigDict(populate_by_name=True)

    invoice_ids: list[UUID] | None = Field(
        default=None,
        validation_alias=AliasChoices("invoice_ids", "invoiceIds"),
    )
    send_all: bool = Field(
        default=False,
        validation_alias=AliasChoices("send_all", "sendAll"),
    )


class ReminderDispatchDetail(BaseModel):
    invoice_id: UUID
    invoice_number: str
    recipient: str | None = None
    status: ReminderOutcome
    reminder_type: ReminderType | None = None
    error: str | None = None


class ReminderDispatchResponse(BaseModel):
    sent: int
    failed: int
    details: list[ReminderDispatchDetail] = Field(default_factory=list)


class ReminderPreviewItem(BaseModel):
    invoice_id: UUID
    invoice_number: str
    client_name: str
    client_email: str | None = None
    balance_due: Decimal
    currency: str
    due_date: date | None = None
    days_until_due: int | None = None
    reminder_type: ReminderType | None = None
    urgency: UrgencyTier | None = None
    reminder_count: int
    last_reminder_sent: datetime | None = None
    next_reminder_date: date | None = None
    error: str | None = None


class ReminderPreviewResponse(BaseModel):
    as_of: date
    count: int
    reminders: list[ReminderPreviewItem] = Field(default_factory=list)


class InvoiceReminderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    invoice_id: UUID
    reminder_type: str
    recipient_email: str | None = None
    subject: str
    status: ReminderOutcome
    error_message: str | None = None
    sent_at: datetime


class ReminderHistoryPagination(BaseModel):
    total: int
    skip: int
    limit: int
    has_more: bool


class ReminderHistoryStats(BaseModel):
    total: int
    sent: int
    failed: int


class ReminderHistoryResponse(BaseModel):
    reminders: list[InvoiceReminderResponse] = Field(default_factory=list)
    pagination: ReminderHistoryPagination
    stats: ReminderHistoryStats


class ReminderPauseRequest(BaseModel):
    """Omit ``paused`` to toggle the current value."""

    paused: bool | None = None


class ReminderPauseResponse(BaseModel):
    invoice_id: UUID
    invoice_number: str
    reminder_paused: bool
