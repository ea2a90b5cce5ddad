"""Tests for split-payment math: trip cost, deposit and balance derivation."""

from decimal import Decimal

import pytest

from app.models.invoice import InvoiceType
from app.services.split_payment import (
    InvalidPercentageError,
    SplitPaymentBreakdown,
    derive_deposit_and_balance,
    derive_full_trip_cost,
    round_money,
    split_payment_breakdown,
    to_decimal,
)


class TestToDecimal:
    def test_decimal_passthrough(self) -> None:
        value = Decimal("12.34")
        assert to_decimal(value) is value

    def test_float_goes_through_str(self) -> None:
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self) -> None:
        assert to_decimal(30) == Decimal("30")
        assert to_decimal("1000.50") == Decimal("1000.50")


class TestRoundMoney:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("2.345", "2.35"),
            ("2.344", "2.34"),
            ("0.005", "0.01"),
            ("3333.3333333", "3333.33"),
            ("10", "10.00"),
        ],
    )
    def test_half_up(self, value: str, expected: str) -> None:
        assert round_money(Decimal(value)) == Decimal(expected)


class TestDeriveFullTripCost:
    @pytest.mark.parametrize(
        ("total", "percent", "invoice_type", "expected"),
        [
            ("1000", "30", InvoiceType.DEPOSIT, "3333.33"),
            ("300", "30", InvoiceType.DEPOSIT, "1000.00"),
            ("500", "50", InvoiceType.DEPOSIT, "1000.00"),
            ("700", "30", InvoiceType.FINAL, "1000.00"),
            ("2333.33", "30", InvoiceType.FINAL, "3333.33"),
            ("750", "25", "final", "1000.00"),
        ],
    )
    def test_table(self, total: str, percent: str, invoice_type: InvoiceType | str, expected: str) -> None:
        cost = derive_full_trip_cost(Decimal(total), Decimal(percent), invoice_type)
        assert round_money(cost) == Decimal(expected)

    def test_result_is_unrounded(self) -> None:
        cost = derive_full_trip_cost(Decimal("1000"), Decimal("30"), InvoiceType.DEPOSIT)
        assert cost != round_money(cost)
        assert str(cost).startswith("3333.333333")

    def test_standard_invoice_has_no_split(self) -> None:
        with pytest.raises(ValueError, match="no deposit split"):
            derive_full_trip_cost(Decimal("1000"), Decimal("30"), InvoiceType.STANDARD)

    def test_unknown_invoice_type(self) -> None:
        with pytest.raises(ValueError):
            derive_full_trip_cost(Decimal("1000"), Decimal("30"), "instalment")

    @pytest.mark.parametrize("percent", [None, "0", "100", "-5", "150", "NaN", "Infinity", "abc"])
    def test_invalid_percentage(self, percent: str | None) -> None:
        with pytest.raises(InvalidPercentageError):
            derive_full_trip_cost(Decimal("1000"), percent, InvoiceType.DEPOSIT)

    def test_invalid_percentage_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            derive_full_trip_cost(Decimal("1000"), "0", InvoiceType.FINAL)


class TestDeriveDepositAndBalance:
    def test_simple_split(self) -> None:
        deposit, balance = derive_deposit_and_balance(Decimal("1000"), Decimal("30"))
        assert deposit == Decimal("300")
        assert balance == Decimal("700")

    def test_parts_add_up_to_cost(self) -> None:
        cost = Decimal("1234.57")
        deposit, balance = derive_deposit_and_balance(cost, Decimal("33.33"))
        assert deposit + balance == cost

    def test_invalid_percentage(self) -> None:
        with pytest.raises(InvalidPercentageError):
            derive_deposit_and_balance(Decimal("1000"), Decimal("100"))

    @pytest.mark.parametrize("total", ["0.01", "1", "99.99", "1000", "3333.33", "123456.78"])
    @pytest.mark.parametrize("percent", ["0.01", "1", "12.5", "30", "33.33", "50", "99.99"])
    def test_deposit_round_trip_within_one_cent(self, total: str, percent: str) -> None:
        cost = derive_full_trip_cost(Decimal(total), Decimal(percent), InvoiceType.DEPOSIT)
        deposit, _ = derive_deposit_and_balance(cost, Decimal(percent))
        assert abs(round_money(deposit) - Decimal(total)) <= Decimal("0.01")

    @pytest.mark.parametrize("percent", ["10", "30", "45.5", "90"])
    def test_final_round_trip_within_one_cent(self, percent: str) -> None:
        total = Decimal("2100.00")
        cost = derive_full_trip_cost(total, Decimal(percent), InvoiceType.FINAL)
        _, balance = derive_deposit_and_balance(cost, Decimal(percent))
        assert abs(round_money(balance) - total) <= Decimal("0.01")


class TestSplitPaymentBreakdown:
    def test_deposit_invoice_of_1000_at_30_percent(self) -> None:
        breakdown = split_payment_breakdown(Decimal("1000"), Decimal("30"), InvoiceType.DEPOSIT)
        assert breakdown == SplitPaymentBreakdown(
            invoice_type=InvoiceType.DEPOSIT,
            deposit_percent=Decimal("30"),
            full_trip_cost=Decimal("3333.33"),
            deposit_amount=Decimal("1000.00"),
            balance_amount=Decimal("2333.33"),
        )

    def test_rounds_only_once(self) -> None:
        breakdown = split_payment_breakdown("1000", "30", "deposit")
        assert breakdown.deposit_amount + breakdown.balance_amount == Decimal("3333.33")

    def test_final_invoice(self) -> None:
        breakdown = split_payment_breakdown(Decimal("700"), Decimal("30"), InvoiceType.FINAL)
        assert breakdown.full_trip_cost == Decimal("1000.00")
        assert breakdown.deposit_amount == Decimal("300.00")
        assert breakdown.balance_amount == Decimal("700.00")

    def test_float_inputs_do_not_drift(self) -> None:
        breakdown = split_payment_breakdown(0.1 + 0.2, 50, InvoiceType.DEPOSIT)
        assert breakdown.full_trip_cost == Decimal("0.60")

    def test_breakdown_is_frozen(self) -> None:
        breakdown = split_payment_breakdown(Decimal("300"), Decimal("30"), InvoiceType.DEPOSIT)
        with pytest.raises(AttributeError):
            breakdown.full_trip_cost = Decimal("0")  # type: ignore[misc]

    def test_rejects_invalid_percentage(self) -> None:
        with pytest.raises(InvalidPercentageError):
            split_payment_breakdown(Decimal("1000"), None, InvoiceType.DEPOSIT)
