"""Tests for parse failures: syntax detection, malformed input and invalid field content."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Type

import pytest

from einvoice.errors import (
    InvalidAttachmentError,
    InvalidDateError,
    InvalidDecimalError,
    MalformedXMLError,
    ParseError,
    UnknownSyntaxError,
)
from einvoice.dates import parse_date_cii, parse_date_ubl
from einvoice.parser import detect_syntax, parse
from einvoice.profiles import EN16931, SchemaType
from einvoice.validation import validate

CII_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rsm:CrossIndustryInvoice
    xmlns:rsm="urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100"
    xmlns:ram="urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100"
    xmlns:udt="urn:un:unece:uncefact:data:standard:UnqualifiedDataType:100">
  <rsm:ExchangedDocumentContext>
    <ram:GuidelineSpecifiedDocumentContextParameter><ram:ID>{profile}</ram:ID></ram:GuidelineSpecifiedDocumentContextParameter>
  </rsm:ExchangedDocumentContext>
  <rsm:ExchangedDocument>
    <ram:ID>RE-4711</ram:ID>
    <ram:TypeCode>380</ram:TypeCode>
    <ram:IssueDateTime><udt:DateTimeString format="{date_format}">{issue_date}</udt:DateTimeString></ram:IssueDateTime>
  </rsm:ExchangedDocument>
  <rsm:SupplyChainTradeTransaction>
    <ram:ApplicableHeaderTradeAgreement>
      <ram:SellerTradeParty><ram:Name>Tenant Seller GmbH</ram:Name></ram:SellerTradeParty>
      <ram:BuyerTradeParty><ram:Name>Customer GmbH</ram:Name></ram:BuyerTradeParty>
      {attachment}
    </ram:ApplicableHeaderTradeAgreement>
    <ram:ApplicableHeaderTradeDelivery/>
    <ram:ApplicableHeaderTradeSettlement>
      <ram:InvoiceCurrencyCode>EUR</ram:InvoiceCurrencyCode>
      <ram:SpecifiedTradeSettlementHeaderMonetarySummation>
        <ram:LineTotalAmount>{line_total}</ram:LineTotalAmount>
      </ram:SpecifiedTradeSettlementHeaderMonetarySummation>
    </ram:ApplicableHeaderTradeSettlement>
  </rsm:SupplyChainTradeTransaction>
</rsm:CrossIndustryInvoice>
"""

UBL_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<Invoice xmlns="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
    xmlns:cbc="urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2">
  <cbc:CustomizationID>urn:cen.eu:en16931:2017</cbc:CustomizationID>
  <cbc:ID>RE-4711</cbc:ID>
  <cbc:IssueDate>{issue_date}</cbc:IssueDate>
  <cbc:InvoiceTypeCode>380</cbc:InvoiceTypeCode>
  <cbc:DocumentCurrencyCode>EUR</cbc:DocumentCurrencyCode>
</Invoice>
"""

ATTACHMENT = (
    "<ram:AdditionalReferencedDocument><ram:IssuerAssignedID>A1</ram:IssuerAssignedID>"
    "<ram:TypeCode>916</ram:TypeCode>"
    '<ram:AttachmentBinaryObject mimeCode="text/plain" filename="a.txt">{content}</ram:AttachmentBinaryObject>'
    "</ram:AdditionalReferencedDocument>"
)


def _cii(
    *,
    profile: str = EN16931,
    date_format: str = "102",
    issue_date: str = "20240301",
    line_total: str = "100.00",
    attachment: str = "",
) -> bytes:
    return CII_TEMPLATE.format(
        profile=profile,
        date_format=date_format,
        issue_date=issue_date,
        line_total=line_total,
        attachment=attachment,
    ).encode("utf-8")


def test_minimal_cii_document_parses() -> None:
    invoice = parse(_cii())

    assert invoice.schema_type is SchemaType.CII
    assert invoice.parsed is True
    assert invoice.invoice_number == "RE-4711"
    assert invoice.issue_date == date(2024, 3, 1)
    assert invoice.line_total == Decimal("100.00")
    assert invoice.has_line_total()
    assert invoice.has_grand_total() is False


def test_minimal_ubl_document_parses_from_text() -> None:
    invoice = parse(UBL_TEMPLATE.format(issue_date="2024-03-01"))

    assert invoice.schema_type is SchemaType.UBL
    assert invoice.issue_date == date(2024, 3, 1)
    assert invoice.currency == "EUR"


@pytest.mark.parametrize(
    ("namespace", "expected"),
    [
        ("urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100", SchemaType.CII),
        ("urn:oasis:names:specification:ubl:schema:xsd:Invoice-2", SchemaType.UBL),
        ("urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2", SchemaType.UBL),
        ("urn:ferd:CrossIndustryDocument:invoice:1p0", SchemaType.UNKNOWN),
        ("", SchemaType.UNKNOWN),
    ],
    ids=["cii", "ubl_invoice", "ubl_credit_note", "zugferd_1", "no_namespace"],
)
def test_detect_syntax(namespace: str, expected: SchemaType) -> None:
    assert detect_syntax(namespace) is expected


@dataclass
class BrokenInput:
    name: str
    data: bytes
    error: Type[ParseError]
    fragment: str


BROKEN_INPUTS: List[BrokenInput] = [
    BrokenInput("unknown_root", b"<Order xmlns='urn:example:order'/>", UnknownSyntaxError, "urn:example:order"),
    BrokenInput("not_xml", b"this is not xml", MalformedXMLError, "malformed XML"),
    BrokenInput("truncated", _cii()[:200], MalformedXMLError, "malformed XML"),
    BrokenInput("invalid_decimal", _cii(line_total="12,50"), InvalidDecimalError, "BT-106"),
    BrokenInput("infinite_decimal", _cii(line_total="Infinity"), InvalidDecimalError, "BT-106"),
    BrokenInput("date_format_610", _cii(date_format="610", issue_date="202403"), InvalidDateError, "BT-2"),
    BrokenInput("iso_date_in_cii", _cii(issue_date="2024-03-01"), InvalidDateError, "YYYYMMDD"),
    BrokenInput(
        "bad_base64",
        _cii(attachment=ATTACHMENT.format(content="not*base64!")),
        InvalidAttachmentError,
        "BT-125",
    ),
    BrokenInput(
        "bad_ubl_date",
        UBL_TEMPLATE.format(issue_date="01.03.2024").encode("utf-8"),
        InvalidDateError,
        "YYYY-MM-DD",
    ),
]


@pytest.mark.parametrize("broken", BROKEN_INPUTS, ids=[b.name for b in BROKEN_INPUTS])
def test_broken_input_raises_typed_parse_error(broken: BrokenInput) -> None:
    # Act
    with pytest.raises(broken.error) as excinfo:
        parse(broken.data)

    # Assert
    assert isinstance(excinfo.value, ParseError)
    assert broken.fragment in str(excinfo.value)


def test_attachment_content_is_decoded() -> None:
    invoice = parse(_cii(attachment=ATTACHMENT.format(content="SGFsbG8=")))

    assert len(invoice.attachments) == 1
    assert invoice.attachments[0].content == b"Hallo"
    assert invoice.attachments[0].filename == "a.txt"
    assert invoice.attachments[0].mime_code == "text/plain"


def test_external_entities_are_not_resolved(tmp_path) -> None:
    secret = tmp_path / "secret.txt"
    secret.write_text("geheim", encoding="utf-8")
    data = _cii().replace(
        b"<?xml version=\"1.0\" encoding=\"UTF-8\"?>",
        f'<?xml version="1.0" encoding="UTF-8"?><!DOCTYPE r [<!ENTITY x SYSTEM "file://{secret}">]>'.encode("utf-8"),
    ).replace(b"RE-4711", b"&x;")

    invoice = parse(data)

    assert "geheim" not in invoice.invoice_number


def test_parsed_legacy_profile_is_not_validated() -> None:
    invoice = parse(_cii(profile="urn:ferd:CrossIndustryDocument:invoice:1p0:comfort"))

    assert validate(invoice) is None
    assert invoice.warnings == []


@pytest.mark.parametrize(
    "value",
    ["2024-03-01garbage", "2024-03-01T10:00:00", "2024-03-01+02:00", "2024-3-01", "20240301"],
    ids=["trailing_text", "time_part", "timezone_suffix", "short_month", "cii_form"],
)
def test_ubl_date_must_be_exactly_iso(value: str) -> None:
    with pytest.raises(InvalidDateError, match="YYYY-MM-DD") as excinfo:
        parse_date_ubl(value, "BT-2")

    assert excinfo.value.field == "BT-2"


def test_ubl_date_with_timestamp_fails_document_parse() -> None:
    with pytest.raises(InvalidDateError, match="BT-2"):
        parse(UBL_TEMPLATE.format(issue_date="2024-03-01T10:00:00"))


def test_ubl_date_tolerates_surrounding_whitespace() -> None:
    assert parse_date_ubl(" 2024-03-01\n", "BT-2") == date(2024, 3, 1)


@pytest.mark.parametrize("value", ["2024031", "202431"], ids=["seven_digits", "six_digits"])
def test_cii_date_rejects_short_values(value: str) -> None:
    with pytest.raises(InvalidDateError, match="YYYYMMDD"):
        parse_date_cii(value, "BT-2")
