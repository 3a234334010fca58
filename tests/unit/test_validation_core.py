"""Tests for core, calculation and decimal-precision rule families."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, List

import pytest

from einvoice.errors import ValidationError
from einvoice.model import AllowanceCharge, Invoice, Party, PostalAddress
from einvoice.profiles import EN16931
from einvoice.samples import build_sample_invoice, get_scenario
from einvoice.validation import validate


def _codes(error: ValidationError) -> List[str]:
    return [v.code for v in error.violations]


@pytest.mark.parametrize("code", ["S1", "S2", "S3", "S6"])
def test_sample_invoices_are_valid(code: str) -> None:
    invoice = build_sample_invoice(get_scenario(code))

    assert validate(invoice) is None
    assert invoice.violations == []


def test_valid_invoice_keeps_german_seller_warning(s1_invoice: Invoice) -> None:
    assert validate(s1_invoice) is None

    assert [w.code for w in s1_invoice.warnings] == ["BR-DE-21"]


def test_invalid_line_precision_reports_br_dec_23() -> None:
    # Arrange
    invoice = build_sample_invoice(get_scenario("S5"))

    # Act
    error = validate(invoice)

    # Assert
    assert error is not None
    assert error.has_rule("BR-DEC-23")
    assert "100.123" in error.by_code("BR-DEC-23")[0].text


def test_two_decimals_with_trailing_zero_never_violate(s1_invoice: Invoice) -> None:
    s1_invoice.prepaid_total = Decimal("0.000")
    s1_invoice.allowances_charges.append(
        AllowanceCharge(actual_amount=Decimal("0.500"), reason="Rabatt", reason_code="95", tax_category="S", tax_rate="19")
    )

    error = validate(s1_invoice)

    assert error is not None
    assert not any(code.startswith("BR-DEC") for code in _codes(error))


def test_empty_invoice_has_no_calculation_violations() -> None:
    invoice = Invoice(specification_id=EN16931, seller=Party(vat_id="DE123456789"))

    error = validate(invoice)

    assert error is not None
    assert not any(code.startswith("BR-CO") for code in _codes(error))
    assert {"BR-2", "BR-3", "BR-4", "BR-5", "BR-6", "BR-7", "BR-8"} <= set(_codes(error))


def test_unknown_specification_is_br_1_for_built_invoices(s1_invoice: Invoice) -> None:
    s1_invoice.specification_id = "urn:example:unknown"

    error = validate(s1_invoice)

    assert error is not None
    assert "BR-1" in _codes(error)


def test_parsed_non_en16931_invoice_is_accepted_as_is() -> None:
    invoice = Invoice(parsed=True, specification_id="urn:ferd:CrossIndustryDocument:invoice:1p0:comfort")

    assert validate(invoice) is None
    assert invoice.violations == []
    assert invoice.warnings == []


def test_validate_is_idempotent_and_resets_lists(s1_invoice: Invoice) -> None:
    s1_invoice.invoice_number = ""

    first = validate(s1_invoice)
    second = validate(s1_invoice)

    assert first is not None and second is not None
    assert _codes(first) == _codes(second) == ["BR-2"]
    assert [v.code for v in s1_invoice.violations] == ["BR-2"]

    s1_invoice.invoice_number = "RE-1"
    assert validate(s1_invoice) is None
    assert s1_invoice.violations == []


def test_invoice_validate_raises(s1_invoice: Invoice) -> None:
    s1_invoice.currency = ""

    with pytest.raises(ValidationError) as excinfo:
        s1_invoice.validate()

    assert str(excinfo.value) == "validation failed: BR-5 - invoice currency code is empty"
    assert excinfo.value.count == 1
    assert [w.code for w in excinfo.value.warnings] == ["BR-DE-21"]


def test_error_summary_with_several_violations(s1_invoice: Invoice) -> None:
    s1_invoice.invoice_number = ""
    s1_invoice.currency = ""

    error = validate(s1_invoice)

    assert error is not None
    assert str(error).startswith("validation failed with 2 violations (first: BR-2")


@dataclass
class Breakage:
    name: str
    mutate: Callable[[Invoice], None]
    code: str


def _negative_price(inv: Invoice) -> None:
    inv.lines[0].net_price = Decimal("-1")


def _period_reversed(inv: Invoice) -> None:
    inv.billing_period_start = date(2024, 3, 31)
    inv.billing_period_end = date(2024, 3, 1)


def _allowance_without_reason(inv: Invoice) -> None:
    inv.allowances_charges[0].reason = ""
    inv.allowances_charges[0].reason_code = ""


def _charge_without_category(inv: Invoice) -> None:
    inv.allowances_charges[1].tax_category = ""


def _payee_without_name(inv: Invoice) -> None:
    inv.payee = Party()


def _tax_rep_without_vat(inv: Invoice) -> None:
    inv.tax_representative = Party(name="Rep", postal_address=PostalAddress(country_code="AT"))


def _credit_transfer_without_account(inv: Invoice) -> None:
    inv.payment_means[0].payee_iban = ""


def _electronic_address_without_scheme(inv: Invoice) -> None:
    inv.seller.electronic_address_scheme = ""


def _reason_without_code(inv: Invoice) -> None:
    inv.allowances_charges[0].reason_code = ""


def _vat_without_prefix(inv: Invoice) -> None:
    inv.buyer.vat_id = "123456789"


def _wrong_grand_total(inv: Invoice) -> None:
    inv.grand_total = Decimal("1130.49")


def _no_payment_terms(inv: Invoice) -> None:
    inv.payment_terms = []


def _line_without_category(inv: Invoice) -> None:
    inv.lines[0].tax_category = ""


BREAKAGES: List[Breakage] = [
    Breakage("negative_net_price", _negative_price, "BR-27"),
    Breakage("period_reversed", _period_reversed, "BR-29"),
    Breakage("allowance_without_reason", _allowance_without_reason, "BR-33"),
    Breakage("charge_without_category", _charge_without_category, "BR-37"),
    Breakage("payee_without_name", _payee_without_name, "BR-17"),
    Breakage("tax_rep_without_vat", _tax_rep_without_vat, "BR-56"),
    Breakage("credit_transfer_without_account", _credit_transfer_without_account, "BR-61"),
    Breakage("electronic_address_without_scheme", _electronic_address_without_scheme, "BR-62"),
    Breakage("reason_without_code", _reason_without_code, "BR-CO-5"),
    Breakage("vat_without_prefix", _vat_without_prefix, "BR-CO-9"),
    Breakage("wrong_grand_total", _wrong_grand_total, "BR-CO-15"),
    Breakage("no_payment_terms", _no_payment_terms, "BR-CO-25"),
    Breakage("line_without_category", _line_without_category, "BR-CO-4"),
]


@pytest.mark.parametrize("breakage", BREAKAGES, ids=[b.name for b in BREAKAGES])
def test_single_rule_breakage(s2_invoice: Invoice, breakage: Breakage) -> None:
    # Arrange
    breakage.mutate(s2_invoice)

    # Act
    error = validate(s2_invoice)

    # Assert
    assert error is not None
    assert breakage.code in _codes(error)


def test_breakdown_mismatch_cites_values(s1_invoice: Invoice) -> None:
    s1_invoice.trade_taxes[0].basis_amount = Decimal("90.00")

    error = validate(s1_invoice)

    assert error is not None
    text = error.by_code("BR-45")[0].text
    assert "90.00" in text and "100.00" in text


def test_total_equation_cites_values(s2_invoice: Invoice) -> None:
    s2_invoice.grand_total = Decimal("1130.49")

    error = validate(s2_invoice)

    assert error is not None
    text = error.by_code("BR-CO-15")[0].text
    assert "1130.49" in text and "1130.50" in text


def test_missing_breakdown_with_lines_is_br_co_18(s1_invoice: Invoice) -> None:
    s1_invoice.trade_taxes = []
    s1_invoice.tax_total = Decimal("0")
    s1_invoice.grand_total = s1_invoice.tax_basis_total
    s1_invoice.due_payable = s1_invoice.grand_total

    error = validate(s1_invoice)

    assert error is not None
    assert "BR-CO-18" in _codes(error)
    assert "BR-S-1" in _codes(error)


def test_presence_flag_overrides_zero_default(s1_invoice: Invoice) -> None:
    s1_invoice.line_total_present = False
    s1_invoice.lines[0].net_price_present = False

    error = validate(s1_invoice)

    assert error is not None
    assert {"BR-12", "BR-26"} <= set(_codes(error))
