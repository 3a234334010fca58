"""Tests for einvoice.calculate: tax breakdown, totals and line amounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Tuple

import pytest

from einvoice.calculate import (
    calculate_line_total,
    calculate_tax_amount,
    derive_tax_breakdown,
    update_allowances_and_charges,
    update_line_totals,
    update_totals,
)
from einvoice.model import AllowanceCharge, Invoice, InvoiceLine, TradeTax
from einvoice.samples import build_sample_invoice, get_scenario


@dataclass
class TotalsScenario:
    code: str
    line_total: Decimal
    allowance_total: Decimal
    charge_total: Decimal
    tax_basis_total: Decimal
    tax_total: Decimal
    grand_total: Decimal


TOTALS: List[TotalsScenario] = [
    TotalsScenario("S1", Decimal("100.00"), Decimal("0"), Decimal("0"), Decimal("100.00"), Decimal("19.00"), Decimal("119.00")),
    TotalsScenario("S2", Decimal("1000.00"), Decimal("100.00"), Decimal("50.00"), Decimal("950.00"), Decimal("180.50"), Decimal("1130.50")),
    TotalsScenario("S6", Decimal("160.00"), Decimal("0"), Decimal("0"), Decimal("160.00"), Decimal("23.20"), Decimal("183.20")),
]


@pytest.mark.parametrize("scenario", TOTALS, ids=[s.code for s in TOTALS])
def test_sample_totals(scenario: TotalsScenario) -> None:
    # Arrange / Act
    invoice = build_sample_invoice(get_scenario(scenario.code))

    # Assert
    assert invoice.line_total == scenario.line_total
    assert invoice.allowance_total == scenario.allowance_total
    assert invoice.charge_total == scenario.charge_total
    assert invoice.tax_basis_total == scenario.tax_basis_total
    assert invoice.tax_total == scenario.tax_total
    assert invoice.grand_total == scenario.grand_total
    assert invoice.due_payable == scenario.grand_total


def test_total_invariants_hold_with_prepaid_and_rounding(s2_invoice: Invoice) -> None:
    s2_invoice.prepaid_total = Decimal("30.00")
    s2_invoice.rounding_amount = Decimal("0.01")

    update_totals(s2_invoice)

    assert s2_invoice.tax_basis_total == s2_invoice.line_total - s2_invoice.allowance_total + s2_invoice.charge_total
    assert s2_invoice.grand_total == s2_invoice.tax_basis_total + s2_invoice.tax_total
    assert s2_invoice.due_payable == Decimal("1100.51")


def test_breakdown_one_entry_per_category_and_rate_in_first_seen_order() -> None:
    invoice = Invoice(
        lines=[
            InvoiceLine(line_id="1", line_total="10.00", tax_category="S", tax_rate="19"),
            InvoiceLine(line_id="2", line_total="20.00", tax_category="S", tax_rate="7"),
            InvoiceLine(line_id="3", line_total="5.00", tax_category="S", tax_rate="19.00"),
        ],
        allowances_charges=[AllowanceCharge(actual_amount="2.00", tax_category="S", tax_rate="7")],
    )

    derive_tax_breakdown(invoice)

    keys: List[Tuple[str, Decimal]] = [(t.category_code, t.rate) for t in invoice.trade_taxes]
    assert keys == [("S", Decimal("19")), ("S", Decimal("7"))]
    assert invoice.trade_taxes[0].basis_amount == Decimal("15.00")
    assert invoice.trade_taxes[0].calculated_amount == Decimal("2.85")
    assert invoice.trade_taxes[1].basis_amount == Decimal("18.00")
    assert invoice.trade_taxes[1].calculated_amount == Decimal("1.26")


def test_breakdown_rounds_basis_after_accumulation() -> None:
    # 50.004 + 49.997 = 100.001 -> 100.00
    invoice = build_sample_invoice(get_scenario("S4"))

    assert len(invoice.trade_taxes) == 1
    tax = invoice.trade_taxes[0]
    assert tax.category_code == "K"
    assert tax.basis_amount == Decimal("100.00")
    assert tax.calculated_amount == Decimal("0.00")
    assert tax.exemption_reason == "Intra-community supply"


def test_exemption_reasons_only_for_zero_rates_and_mapping_untouched() -> None:
    reasons = {"E": "Steuerbefreit nach § 4 UStG", "S": "never used"}
    invoice = Invoice(
        lines=[
            InvoiceLine(line_id="1", line_total="10.00", tax_category="E", tax_rate="0"),
            InvoiceLine(line_id="2", line_total="10.00", tax_category="S", tax_rate="19"),
        ]
    )

    derive_tax_breakdown(invoice, reasons)

    assert invoice.trade_taxes[0].exemption_reason == "Steuerbefreit nach § 4 UStG"
    assert invoice.trade_taxes[1].exemption_reason == ""
    assert reasons == {"E": "Steuerbefreit nach § 4 UStG", "S": "never used"}


def test_breakdown_keeps_previous_reason_code_and_tax_point_date(s1_invoice: Invoice) -> None:
    s1_invoice.trade_taxes[0].tax_point_date = date(2024, 3, 1)
    s1_invoice.trade_taxes[0].exemption_reason_code = "VATEX-EU-O"

    derive_tax_breakdown(s1_invoice)

    assert s1_invoice.trade_taxes[0].tax_point_date == date(2024, 3, 1)
    assert s1_invoice.trade_taxes[0].exemption_reason_code == "VATEX-EU-O"


def test_empty_invoice_produces_zero_totals() -> None:
    invoice = Invoice()

    derive_tax_breakdown(invoice)
    update_totals(invoice)

    assert invoice.trade_taxes == []
    for value in (invoice.line_total, invoice.tax_basis_total, invoice.tax_total, invoice.grand_total, invoice.due_payable):
        assert value == Decimal("0")


def test_calculator_is_idempotent(s2_invoice: Invoice) -> None:
    first_taxes = [TradeTax(**{f: getattr(t, f) for f in ("category_code", "rate", "basis_amount", "calculated_amount")}) for t in s2_invoice.trade_taxes]
    first = (s2_invoice.line_total, s2_invoice.tax_basis_total, s2_invoice.tax_total, s2_invoice.grand_total)

    derive_tax_breakdown(s2_invoice)
    update_totals(s2_invoice)
    update_totals(s2_invoice)

    assert s2_invoice.trade_taxes == first_taxes
    assert (s2_invoice.line_total, s2_invoice.tax_basis_total, s2_invoice.tax_total, s2_invoice.grand_total) == first


@pytest.mark.parametrize(
    ("basis", "rate", "expected"),
    [
        ("100.00", "19", "19.00"),
        ("0.50", "7", "0.04"),
        ("10.50", "5", "0.53"),
        ("-10.50", "5", "-0.53"),
    ],
    ids=["standard", "reduced", "half_up", "negative_away_from_zero"],
)
def test_calculate_tax_amount_rounds_half_up(basis: str, rate: str, expected: str) -> None:
    assert calculate_tax_amount(Decimal(basis), Decimal(rate)) == Decimal(expected)


def test_line_total_with_base_quantity_and_line_adjustments() -> None:
    line = InvoiceLine(
        line_id="1",
        billed_quantity="3",
        net_price="12.50",
        base_quantity="2",
        charges=[AllowanceCharge(is_charge=True, actual_amount="1.00")],
        allowances=[AllowanceCharge(actual_amount="0.255")],
    )

    # 3 * 12.50 / 2 + 1.00 - 0.255 = 19.495 -> 19.50
    assert calculate_line_total(line) == Decimal("19.50")


def test_update_line_totals_defaults_base_quantity_to_one() -> None:
    invoice = Invoice(lines=[InvoiceLine(line_id="1", billed_quantity="4", net_price="2.499")])

    update_line_totals(invoice)

    assert invoice.lines[0].line_total == Decimal("10.00")


def test_update_allowances_and_charges_splits_by_indicator() -> None:
    invoice = Invoice(
        allowances_charges=[
            AllowanceCharge(actual_amount="10.00"),
            AllowanceCharge(is_charge=True, actual_amount="4.50"),
            AllowanceCharge(actual_amount="0.25"),
        ],
        allowance_total="999",
    )

    update_allowances_and_charges(invoice)

    assert invoice.allowance_total == Decimal("10.25")
    assert invoice.charge_total == Decimal("4.50")
