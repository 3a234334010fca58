"""Tests for profile-specific rules: PEPPOL BIS 3.0, XRechnung (BR-DE) and the DE country warning."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List

import pytest

from einvoice.model import AttachedDocument, Contact, Invoice, Note, PaymentMeans, PaymentTerms, PostalAddress
from einvoice.profiles import EN16931, PEPPOL_BILLING, PEPPOL_BUSINESS_PROCESS, XRECHNUNG_3_0
from einvoice.samples import build_sample_invoice, get_scenario
from einvoice.validation import validate
from einvoice.validation.xrechnung import valid_email, valid_iban, valid_skonto


def _codes(invoice: Invoice) -> List[str]:
    validate(invoice)
    return [v.code for v in invoice.violations]


@pytest.fixture
def peppol_invoice() -> Invoice:
    invoice = build_sample_invoice(get_scenario("S1"), specification_id=PEPPOL_BILLING)
    invoice.business_process_id = PEPPOL_BUSINESS_PROCESS
    invoice.buyer.electronic_address = "0204:991-12345-67"
    invoice.buyer.electronic_address_scheme = "0204"
    return invoice


@pytest.fixture
def xrechnung_invoice() -> Invoice:
    return build_sample_invoice(get_scenario("S1"), specification_id=XRECHNUNG_3_0)


def test_peppol_sample_is_valid(peppol_invoice: Invoice) -> None:
    assert validate(peppol_invoice) is None


def test_peppol_rules_skip_other_profiles(s1_invoice: Invoice) -> None:
    s1_invoice.business_process_id = ""

    assert not [c for c in _codes(s1_invoice) if c.startswith("PEPPOL")]


@dataclass
class PeppolCase:
    name: str
    mutate: Callable[[Invoice], None]
    code: str


def _no_process(inv: Invoice) -> None:
    inv.business_process_id = ""


def _bad_process(inv: Invoice) -> None:
    inv.business_process_id = "urn:fdc:peppol.eu:2017:poacc:billing:1:1.0"


def _two_notes(inv: Invoice) -> None:
    inv.notes = [Note(text="a"), Note(text="b")]


def _no_references(inv: Invoice) -> None:
    inv.buyer_reference = ""


def _no_buyer_address(inv: Invoice) -> None:
    inv.buyer.electronic_address = ""
    inv.buyer.electronic_address_scheme = ""


def _no_seller_address(inv: Invoice) -> None:
    inv.seller.electronic_address = ""
    inv.seller.electronic_address_scheme = ""


def _line_amount_off(inv: Invoice) -> None:
    inv.lines[0].base_quantity = Decimal("2")


def _negative_base_quantity(inv: Invoice) -> None:
    inv.lines[0].base_quantity = Decimal("-1")


def _base_unit_differs(inv: Invoice) -> None:
    inv.lines[0].base_quantity_unit = "HUR"


PEPPOL_CASES: List[PeppolCase] = [
    PeppolCase("no_process", _no_process, "PEPPOL-EN16931-R001"),
    PeppolCase("two_notes", _two_notes, "PEPPOL-EN16931-R002"),
    PeppolCase("no_references", _no_references, "PEPPOL-EN16931-R003"),
    PeppolCase("bad_process", _bad_process, "PEPPOL-EN16931-R007"),
    PeppolCase("no_buyer_address", _no_buyer_address, "PEPPOL-EN16931-R010"),
    PeppolCase("no_seller_address", _no_seller_address, "PEPPOL-EN16931-R020"),
    PeppolCase("line_amount_off", _line_amount_off, "PEPPOL-EN16931-R120"),
    PeppolCase("negative_base_quantity", _negative_base_quantity, "PEPPOL-EN16931-R121"),
    PeppolCase("base_unit_differs", _base_unit_differs, "PEPPOL-EN16931-R130"),
]


@pytest.mark.parametrize("case", PEPPOL_CASES, ids=[c.name for c in PEPPOL_CASES])
def test_peppol_rule_fires(peppol_invoice: Invoice, case: PeppolCase) -> None:
    # Arrange
    case.mutate(peppol_invoice)

    # Act
    codes = _codes(peppol_invoice)

    # Assert
    assert case.code in codes


def test_xrechnung_sample_is_valid_without_warnings(xrechnung_invoice: Invoice) -> None:
    assert validate(xrechnung_invoice) is None
    assert xrechnung_invoice.warnings == []


def test_xrechnung_requires_seller_contact_and_buyer_reference(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.seller.contacts = []
    xrechnung_invoice.buyer_reference = ""
    xrechnung_invoice.payment_means = []

    codes = _codes(xrechnung_invoice)

    assert {"BR-DE-1", "BR-DE-2", "BR-DE-15"} <= set(codes)


def test_xrechnung_contact_details(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.seller.contacts = [Contact(name="", phone="12", email="a@b")]

    codes = _codes(xrechnung_invoice)

    assert "BR-DE-5" in codes
    assert "BR-DE-27" in codes
    assert "BR-DE-28" in codes


def test_xrechnung_type_code_and_corrected_invoice(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.type_code = 384

    codes = _codes(xrechnung_invoice)
    assert "BR-DE-26" in codes
    assert "BR-DE-17" not in codes

    xrechnung_invoice.type_code = 383
    assert "BR-DE-17" in _codes(xrechnung_invoice)


def test_xrechnung_skonto_terms(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.payment_terms = [PaymentTerms(description="2% Skonto bei Zahlung in 10 Tagen")]

    assert "BR-DE-18" in _codes(xrechnung_invoice)

    xrechnung_invoice.payment_terms = [PaymentTerms(description="#SKONTO#TAGE=10#PROZENT=2.00#\n")]
    assert "BR-DE-18" not in _codes(xrechnung_invoice)


def test_xrechnung_payment_group_exclusivity(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.payment_means = [
        PaymentMeans(type_code=58, payee_iban="DE02120300000000202051", card_id="1234"),
        PaymentMeans(type_code=59),
        PaymentMeans(type_code=48, payee_iban="DE02120300000000202051"),
    ]

    codes = _codes(xrechnung_invoice)

    assert {"BR-DE-23-b", "BR-DE-25-a", "BR-DE-24-a", "BR-DE-24-b", "BR-DE-30", "BR-DE-31"} <= set(codes)


def test_xrechnung_invalid_iban_for_sepa(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.payment_means[0].payee_iban = "DE0212"

    assert "BR-DE-19" in _codes(xrechnung_invoice)


def test_xrechnung_duplicate_attachment_filenames(xrechnung_invoice: Invoice) -> None:
    xrechnung_invoice.attachments = [
        AttachedDocument(id="A1", filename="lieferschein.pdf"),
        AttachedDocument(id="A2", filename="lieferschein.pdf"),
    ]

    assert "BR-DE-22" in _codes(xrechnung_invoice)


def test_german_seller_with_plain_en16931_gets_warning_only(s1_invoice: Invoice) -> None:
    # Arrange
    assert s1_invoice.specification_id == EN16931

    # Act
    error = validate(s1_invoice)

    # Assert
    assert error is None
    assert [w.code for w in s1_invoice.warnings] == ["BR-DE-21"]
    assert s1_invoice.violations == []


def test_foreign_seller_gets_no_country_warning(s1_invoice: Invoice) -> None:
    s1_invoice.seller.postal_address = PostalAddress(city="Wien", postcode="1010", country_code="AT")

    validate(s1_invoice)

    assert s1_invoice.warnings == []


def test_country_warning_travels_with_validation_error(s1_invoice: Invoice) -> None:
    s1_invoice.invoice_number = ""

    error = validate(s1_invoice)

    assert error is not None
    assert [w.code for w in error.warnings] == ["BR-DE-21"]
    assert all(v.code != "BR-DE-21" for v in error.violations)


@pytest.mark.parametrize(
    ("email", "ok"),
    [
        ("rechnung@firma.de", True),
        ("a@firma.de", False),
        ("ab@@firma.de", False),
        (".ab@firma.de", False),
        ("ab.@firma.de", False),
        ("ab@firma.de.", False),
    ],
    ids=["valid", "short_local", "two_at", "leading_dot", "dot_before_at", "trailing_dot"],
)
def test_valid_email(email: str, ok: bool) -> None:
    assert valid_email(email) is ok


def test_valid_iban_and_skonto_helpers() -> None:
    assert valid_iban("DE02 1203 0000 0000 2020 51")
    assert not valid_iban("1234567890123456")
    assert valid_skonto("Zahlbar sofort")
    assert valid_skonto("#SKONTO#TAGE=14#PROZENT=3.00#BASISBETRAG=100.00#")
    assert not valid_skonto("#SKONTO#TAGE=14#")
