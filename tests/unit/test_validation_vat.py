"""Tests for the VAT category rule families (S, Z, E, AE, K, G, O, L, M)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import List, Optional

import pytest

from einvoice.calculate import derive_tax_breakdown, update_totals
from einvoice.model import AllowanceCharge, Invoice, InvoiceLine, Party, PaymentTerms, build_invoice
from einvoice.profiles import EN16931
from einvoice.samples import BUYER_PARTY, SELLER_PARTY, build_sample_invoice, get_scenario
from einvoice.validation import validate


def _codes(invoice: Invoice) -> List[str]:
    validate(invoice)
    return [v.code for v in invoice.violations]


def _party(template: Party, **changes) -> Party:
    party = Party(
        name=template.name,
        postal_address=template.postal_address,
        electronic_address=template.electronic_address,
        electronic_address_scheme=template.electronic_address_scheme,
        vat_id=template.vat_id,
        contacts=list(template.contacts),
    )
    for key, value in changes.items():
        setattr(party, key, value)
    return party


def _invoice(category: str, rate: str, reason: Optional[str] = None, *, seller: Optional[Party] = None, buyer: Optional[Party] = None) -> Invoice:
    line = InvoiceLine(
        line_id="1",
        item_name="Item",
        billed_quantity="1",
        billed_quantity_unit="C62",
        net_price="100.00",
        line_total="100.00",
        tax_category=category,
        tax_rate=rate,
    )
    return build_invoice(
        invoice_number="RE-1",
        issue_date=date(2024, 3, 1),
        seller=seller or _party(SELLER_PARTY),
        buyer=buyer or _party(BUYER_PARTY),
        lines=[line],
        specification_id=EN16931,
        payment_terms=[PaymentTerms(description="sofort")],
        exemption_reasons={category: reason} if reason else None,
    )


def test_reverse_charge_sample_has_no_ae_violations() -> None:
    invoice = build_sample_invoice(get_scenario("S3"))

    codes = _codes(invoice)

    assert not [c for c in codes if c.startswith("BR-AE")]
    tax = invoice.trade_taxes[0]
    assert (tax.category_code, tax.basis_amount, tax.calculated_amount) == ("AE", Decimal("100.00"), Decimal("0.00"))
    assert tax.exemption_reason == "reverse charge"


def test_intra_community_rounding_has_no_ic_violations() -> None:
    invoice = build_sample_invoice(get_scenario("S4"))

    codes = _codes(invoice)

    assert "BR-IC-6" not in codes
    assert not [c for c in codes if c.startswith("BR-IC")]
    # the line amounts themselves carry three decimals
    assert codes.count("BR-DEC-23") == 2


@dataclass
class CategoryCase:
    name: str
    category: str
    rate: str
    reason: Optional[str]
    expected: str


CATEGORY_CASES: List[CategoryCase] = [
    CategoryCase("standard_zero_rate", "S", "0", None, "BR-S-5"),
    CategoryCase("standard_with_reason", "S", "19", None, "BR-S-10"),
    CategoryCase("zero_rated_positive_rate", "Z", "7", None, "BR-Z-5"),
    CategoryCase("exempt_without_reason", "E", "0", None, "BR-E-10"),
    CategoryCase("export_without_reason", "G", "0", None, "BR-G-10"),
    CategoryCase("reverse_charge_without_buyer_id", "AE", "0", "Reverse charge", "BR-AE-2"),
    CategoryCase("igic_negative_rate", "L", "-1", None, "BR-IG-5"),
    CategoryCase("intra_community_without_reason", "K", "0", None, "BR-IC-10"),
    CategoryCase("intra_community_without_delivery", "K", "0", "Intra-community supply", "BR-IC-11"),
    CategoryCase("not_subject_without_reason", "O", "0", None, "BR-O-10"),
]


@pytest.mark.parametrize("case", CATEGORY_CASES, ids=[c.name for c in CATEGORY_CASES])
def test_category_rule_fires(case: CategoryCase) -> None:
    # Arrange
    invoice = _invoice(case.category, case.rate, case.reason)
    if case.name == "standard_with_reason":
        invoice.trade_taxes[0].exemption_reason = "not allowed"

    # Act
    codes = _codes(invoice)

    # Assert
    assert case.expected in codes


@pytest.mark.parametrize(
    ("category", "rate", "reason"),
    [("Z", "0", None), ("E", "0", "Steuerfrei"), ("G", "0", "Ausfuhr"), ("L", "7", None), ("L", "0", None)],
    ids=["zero_rated", "exempt", "export", "igic_reduced", "igic_zero"],
)
def test_category_family_passes_for_consistent_invoice(category: str, rate: str, reason: Optional[str]) -> None:
    invoice = _invoice(category, rate, reason)

    codes = _codes(invoice)

    prefix = {"Z": "BR-Z", "E": "BR-E", "G": "BR-G", "L": "BR-IG"}[category]
    assert not [c for c in codes if c.startswith(prefix + "-")]


def test_standard_amount_mismatch_cites_values() -> None:
    invoice = _invoice("S", "19")
    invoice.trade_taxes[0].calculated_amount = Decimal("18.99")

    validate(invoice)

    texts = [v.text for v in invoice.violations if v.code == "BR-S-9"]
    assert texts and "18.99" in texts[0] and "19.00" in texts[0]


def test_standard_requires_seller_tax_identifier() -> None:
    invoice = _invoice("S", "19", seller=_party(SELLER_PARTY, vat_id=""))

    assert "BR-S-2" in _codes(invoice)


def test_standard_accepts_tax_registration_instead_of_vat_id() -> None:
    invoice = _invoice("S", "19", seller=_party(SELLER_PARTY, vat_id="", tax_registration_id="201/123/45678"))
    invoice.allowances_charges.append(AllowanceCharge(actual_amount="1.00", reason="Rabatt", reason_code="95", tax_category="S", tax_rate="19"))

    codes = _codes(invoice)

    assert "BR-S-2" not in codes
    assert "BR-S-3" not in codes


def test_ipsi_forbids_buyer_vat_identifier() -> None:
    invoice = _invoice("M", "4", buyer=_party(BUYER_PARTY, vat_id="ES12345678Z"))

    assert "BR-IP-2" in _codes(invoice)


def test_export_requires_seller_vat_not_only_tax_registration() -> None:
    invoice = _invoice("G", "0", "Ausfuhr", seller=_party(SELLER_PARTY, vat_id="", tax_registration_id="201/123/45678"))

    assert "BR-G-2" in _codes(invoice)


def test_intra_community_requires_single_breakdown_entry() -> None:
    invoice = build_sample_invoice(get_scenario("S4"))
    invoice.trade_taxes.append(replace(invoice.trade_taxes[0]))

    codes = _codes(invoice)

    assert "BR-IC-1" in codes


def test_intra_community_requires_ship_to_country() -> None:
    invoice = build_sample_invoice(get_scenario("S4"))
    invoice.ship_to = None

    assert "BR-IC-12" in _codes(invoice)


def test_not_subject_mixed_with_standard_reports_both_overlapping_rules() -> None:
    seller = _party(SELLER_PARTY, vat_id="")
    invoice = _invoice("O", "0", "Nicht steuerbar", seller=seller)
    invoice.lines.append(
        InvoiceLine(
            line_id="2",
            item_name="Other",
            billed_quantity="1",
            billed_quantity_unit="C62",
            net_price="10.00",
            line_total="10.00",
            tax_category="S",
            tax_rate="19",
        )
    )
    derive_tax_breakdown(invoice, {"O": "Nicht steuerbar"})
    update_totals(invoice)

    codes = _codes(invoice)

    assert "BR-O-11" in codes
    assert "BR-O-12" in codes
    assert "BR-O-14" in codes


def test_not_subject_forbids_vat_identifiers() -> None:
    invoice = _invoice("O", "0", "Nicht steuerbar")

    codes = _codes(invoice)

    assert "BR-O-2" in codes
    assert "BR-O-11" not in codes


def test_not_subject_without_vat_ids_is_clean() -> None:
    invoice = _invoice("O", "0", "Nicht steuerbar", seller=_party(SELLER_PARTY, vat_id="", ids=["LIEF-1"]))

    codes = _codes(invoice)

    assert not [c for c in codes if c.startswith("BR-O-")]
