"""Deposit / balance arithmetic for split-payment trip invoices.

A trip is billed either as one standard invoice or as a deposit invoice
followed by a final invoice. Both invoices of a split derive from the same
underlying trip cost, which is not stored anywhere: it is reconstructed from
the invoice total and the deposit percentage. The figures produced here are
for display (PDF, UI, reminder emails) and never feed the ledger.

All math runs in ``Decimal``. Rounding to cents happens once, in
``round_money``, after every intermediate value has been computed.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, localcontext

from app.models.invoice import InvoiceType

HUNDRED = Decimal(100)
CENT = Decimal("0.01")

# Enough significant digits that a division never loses a cent before the
# final quantize, whatever the magnitude of the trip cost.
_MATH_CONTEXT = Context(prec=34)


class InvalidPercentageError(ValueError):
    """Raised when a deposit percentage is outside the open interval (0, 100)."""


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert an amount to Decimal without going through binary float math."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _validated_percent(deposit_percent: Decimal | int | float | str | None) -> Decimal:
    if deposit_percent is None:
        raise InvalidPercentageError("Deposit percentage is required")
    try:
        percent = to_decimal(deposit_percent)
    except ArithmeticError:
        raise InvalidPercentageError(f"Invalid deposit percentage: {deposit_percent!r}") from None
    if not percent.is_finite() or percent <= 0 or percent >= HUNDRED:
        raise InvalidPercentageError(
            f"Deposit percentage must be between 0 and 100 (exclusive), got {deposit_percent}"
        )
    return percent


def round_money(value: Decimal) -> Decimal:
    """Round a monetary value to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_full_trip_cost(
    invoice_total: Decimal | int | float | str,
    deposit_percent: Decimal | int | float | str | None,
    invoice_type: InvoiceType | str,
) -> Decimal:
    """Reconstruct the full trip cost from one invoice of a split.

    For a deposit invoice the total *is* the deposit, so the trip cost is
    ``total * 100 / percent``. For a final invoice the total is the remaining
    ``100 - percent`` share, so the deposit part is added back on top.

    The result is unrounded.
    """
    kind = InvoiceType(invoice_type)
    if kind == InvoiceType.STANDARD:
        raise ValueError(f"Invoice type '{kind.value}' has no deposit split")
    percent = _validated_percent(deposit_percent)
    total = to_decimal(invoice_total)

    with localcontext(_MATH_CONTEXT):
        if kind == InvoiceType.DEPOSIT:
            return total * HUNDRED / percent
        return total + total * percent / (HUNDRED - percent)


def derive_deposit_and_balance(
    full_trip_cost: Decimal | int | float | str,
    deposit_percent: Decimal | int | float | str | None,
) -> tuple[Decimal, Decimal]:
    """Split a trip cost into ``(deposit, balance)``. Both values are unrounded."""
    percent = _validated_percent(deposit_percent)
    cost = to_decimal(full_trip_cost)
    with localcontext(_MATH_CONTEXT):
        deposit = cost * percent / HUNDRED
        balance = cost - deposit
    return deposit, balance


@dataclass(frozen=True)
class SplitPaymentBreakdown:
    """Display figures for one split-payment booking, rounded to cents."""

    invoice_type: InvoiceType
    deposit_percent: Decimal
    full_trip_cost: Decimal
    deposit_amount: Decimal
    balance_amount: Decimal


def split_payment_breakdown(
    invoice_total: Decimal | int | float | str,
    deposit_percent: Decimal | int | float | str | None,
    invoice_type: InvoiceType | str,
) -> SplitPaymentBreakdown:
    """Derive the trip cost, deposit and balance shown for a deposit/final invoice."""
    full_cost = derive_full_trip_cost(invoice_total, deposit_percent, invoice_type)
    deposit, balance = derive_deposit_and_balance(full_cost, deposit_percent)
    return SplitPaymentBreakdown(
        invoice_type=InvoiceType(invoice_type),
        deposit_percent=_validated_percent(deposit_percent),
        full_trip_cost=round_money(full_cost),
        deposit_amount=round_money(deposit),
        balance_amount=round_money(balance),
    )
