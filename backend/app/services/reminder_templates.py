"""Render payment reminder emails from an invoice and its classification."""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from app.core.config import settings
from app.models.invoice import InvoiceType
from app.services.reminder_classifier import ReminderClassification, ReminderType, UrgencyTier
from app.services.split_payment import (
    InvalidPercentageError,
    SplitPaymentBreakdown,
    round_money,
    split_payment_breakdown,
    to_decimal,
)

if TYPE_CHECKING:
    from app.models.invoice import Invoice

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "$", "GBP": "£"}

URGENCY_COLORS = {
    UrgencyTier.INFO: "#3b82f6",
    UrgencyTier.WARNING: "#f59e0b",
    UrgencyTier.URGENT: "#ef4444",
    UrgencyTier.FINAL_NOTICE: "#dc2626",
}


@dataclass(frozen=True)
class RenderedReminder:
    subject: str
    html: str


def format_money(value: object, currency: str | None) -> str:
    """Format an amount with its currency symbol, e.g. ``€1,250.00``."""
    amount = round_money(to_decimal(value if value is not None else 0))  # type: ignore[arg-type]
    code = (currency or "").upper()
    symbol = CURRENCY_SYMBOLS.get(code, html.escape(code))
    return f"{symbol}{amount:,.2f}"


def format_long_date(value: date | None) -> str:
    """Format a date as ``19 October 2026``."""
    if value is None:
        return ""
    return f"{value.day} {value:%B %Y}"


def _plural_days(days: int) -> str:
    return f"{days} day{'s' if days != 1 else ''}"


def reminder_subject(invoice_number: str, classification: ReminderClassification) -> str:
    reminder_type = classification.reminder_type
    if reminder_type == ReminderType.BEFORE_DUE_7:
        return f"Upcoming Payment Due: Invoice {invoice_number}"
    if reminder_type == ReminderType.BEFORE_DUE_3:
        return f"Payment Reminder: Invoice {invoice_number} due in {_plural_days(classification.days_until_due)}"
    if reminder_type == ReminderType.ON_DUE:
        return f"Payment Due Today: Invoice {invoice_number}"
    if reminder_type == ReminderType.OVERDUE_7:
        return f"Payment Overdue: Invoice {invoice_number}"
    if reminder_type == ReminderType.OVERDUE_14:
        return f"Second Notice: Invoice {invoice_number} is overdue"
    return f"Final Notice: Invoice {invoice_number} - Immediate Payment Required"


def urgency_message(classification: ReminderClassification) -> str:
    days = classification.days_until_due
    reminder_type = classification.reminder_type
    if reminder_type in (ReminderType.BEFORE_DUE_7, ReminderType.BEFORE_DUE_3):
        return f"This is a friendly reminder that your invoice is due in {_plural_days(days)}."
    if reminder_type == ReminderType.ON_DUE:
        if days == 0:
            return "Your invoice payment is due today."
        return "Your invoice payment is due tomorrow."
    overdue = _plural_days(-days)
    if reminder_type == ReminderType.OVERDUE_7:
        return f"Your payment is now {overdue} overdue. Please arrange payment as soon as possible."
    if reminder_type == ReminderType.OVERDUE_14:
        return f"Your payment is now {overdue} overdue. This is your second reminder."
    return (
        f"Your payment is now {overdue} overdue. "
        "This is your final notice before further action may be taken."
    )


def _split_breakdown(invoice: Invoice) -> SplitPaymentBreakdown | None:
    if invoice.invoice_type not in (InvoiceType.DEPOSIT.value, InvoiceType.FINAL.value):
        return None
    try:
        return split_payment_breakdown(
            Decimal(str(invoice.total_amount)),
            invoice.deposit_percent,  # type: ignore[arg-type]
            str(invoice.invoice_type),
        )
    except InvalidPercentageError:
        # Display-only figures; a bad percentage just drops the breakdown
        return None


def _row(label: str, value: str, value_style: str = "") -> str:
    return (
        "<tr>"
        f'<td style="padding: 8px 0; color: #6b7280; font-size: 14px;">{label}</td>'
        f'<td style="padding: 8px 0; text-align: right; font-size: 14px; {value_style}">{value}</td>'
        "</tr>"
    )


def render_reminder(invoice: Invoice, classification: ReminderClassification) -> RenderedReminder:
    """Build subject and HTML body. Output depends only on the arguments and settings."""
    currency = str(invoice.currency or "")
    invoice_number = html.escape(str(invoice.invoice_number))
    subject = reminder_subject(str(invoice.invoice_number), classification)
    color = URGENCY_COLORS[classification.urgency]
    overdue = classification.days_until_due < 0
    agency = html.escape(settings.AGENCY_NAME)

    rows = [
        _row("Invoice Number:", invoice_number, "font-weight: 600;"),
        _row("Invoice Date:", format_long_date(invoice.issue_date)),  # type: ignore[arg-type]
        _row(
            "Due Date:",
            format_long_date(invoice.due_date),  # type: ignore[arg-type]
            "color: #ef4444; font-weight: 600;" if overdue else "",
        ),
        _row("Total Amount:", format_money(invoice.total_amount, currency)),
    ]

    breakdown = _split_breakdown(invoice)
    if breakdown is not None:
        percent = f"{breakdown.deposit_percent.normalize():f}"
        rows.append(_row("Full Trip Cost:", format_money(breakdown.full_trip_cost, currency)))
        rows.append(
            _row(f"Deposit ({percent}%):", format_money(breakdown.deposit_amount, currency))
        )
        rows.append(_row("Remaining Balance:", format_money(breakdown.balance_amount, currency)))

    rows.append(
        _row(
            "<strong>Balance Due:</strong>",
            format_money(invoice.balance_due, currency),
            "color: #ef4444; font-size: 20px; font-weight: 700;",
        )
    )

    instructions = ""
    if invoice.payment_instructions:
        instructions = (
            '<div style="background-color: #f0fdf4; border-left: 4px solid #22c55e; '
            'padding: 15px 20px; margin-bottom: 30px;">'
            '<p style="margin: 0 0 5px; color: #166534; font-weight: 600;">Payment Instructions</p>'
            f'<p style="margin: 0; color: #15803d;">{html.escape(str(invoice.payment_instructions))}</p>'
            "</div>"
        )

    body = (
        "<!DOCTYPE html>"
        f'<html><head><meta charset="utf-8"><title>{html.escape(subject)}</title></head>'
        '<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f3f4f6;">'
        '<table width="600" cellpadding="0" cellspacing="0" style="background-color: #ffffff; margin: 40px auto;">'
        f'<tr><td style="background-color: #647C47; padding: 30px 40px; text-align: center;">'
        f'<h1 style="margin: 0; color: #ffffff;">{agency}</h1></td></tr>'
        f'<tr><td style="background-color: {color}; padding: 15px 40px;">'
        f'<p style="margin: 0; color: #ffffff; text-align: center;">{urgency_message(classification)}</p>'
        "</td></tr>"
        '<tr><td style="padding: 40px;">'
        f"<p>Dear {html.escape(str(invoice.client_name or 'Customer'))},</p>"
        "<p>We are writing regarding the following invoice:</p>"
        f'<table width="100%" cellpadding="0" cellspacing="0">{"".join(rows)}</table>'
        "<p>Please arrange payment at your earliest convenience. "
        "If you have already made this payment, please disregard this reminder.</p>"
        f"{instructions}"
        f"<p>Best regards,<br><strong>{agency} Team</strong></p>"
        "</td></tr>"
        '<tr><td style="background-color: #f9fafb; padding: 25px 40px; text-align: center;">'
        f'<p style="margin: 0; color: #6b7280; font-size: 13px;">{agency} | '
        f"{html.escape(settings.AGENCY_LOCATION)}</p>"
        '<p style="margin: 0; color: #9ca3af; font-size: 12px;">'
        "This is an automated payment reminder. Please do not reply directly to this email.</p>"
        "</td></tr>"
        "</table></body></html>"
    )
    return RenderedReminder(subject=subject, html=body)
