"""UBL-Parser: ``Invoice-2`` / ``CreditNote-2`` → ``Invoice``."""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from ..dates import parse_date_ubl
from ..errors import InvalidAttachmentError, ParseError
from ..logging import get_logger
from ..model import (
    AllowanceCharge,
    AttachedDocument,
    Characteristic,
    Classification,
    Contact,
    ForeignAmount,
    Invoice,
    InvoiceLine,
    LegalOrganization,
    Note,
    Party,
    PaymentMeans,
    PaymentTerms,
    PostalAddress,
    ReferencedDocument,
    SchemedID,
    TradeTax,
)
from ..profiles import SchemaType
from ..xmlutil import Element, Reader, namespace_of

log = get_logger(__name__)

INVOICE_NS = "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
CREDIT_NOTE_NS = "urn:oasis:names:specification:ubl:schema:xsd:CreditNote-2"

NS = {
    "cac": "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2",
    "cbc": "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2",
}

CREDITOR_ID_SCHEME = "SEPA"
NOT_APPLICABLE = "NA"

_x = Reader(NS)


def _int(text: str, field: str) -> int:
    if not text:
        return 0
    try:
        return int(text)
    except ValueError as exc:
        raise ParseError(f"{field}: invalid code {text!r}") from exc


def _date(element: Optional[Element], path: str, field: str):
    text = _x.text(element, path)
    return parse_date_ubl(text, field) if text else None


def split_note(text: str) -> Note:
    """``#AAI#Freitext`` trägt den Betreff-Code (BT-21) im Notiztext."""

    if text.startswith("#") and text.count("#") >= 2:
        _, code, rest = text.split("#", 2)
        if code and code.isalnum():
            return Note(text=rest, subject_code=code)
    return Note(text=text)


def _address(element: Optional[Element]) -> Optional[PostalAddress]:
    if element is None:
        return None
    return PostalAddress(
        country_code=_x.text(element, "cac:Country/cbc:IdentificationCode"),
        postcode=_x.text(element, "cbc:PostalZone"),
        line1=_x.text(element, "cbc:StreetName"),
        line2=_x.text(element, "cbc:AdditionalStreetName"),
        line3=_x.text(element, "cac:AddressLine/cbc:Line"),
        city=_x.text(element, "cbc:CityName"),
        subdivision=_x.text(element, "cbc:CountrySubentity"),
    )


def _identifications(party: Party, element: Element) -> str:
    """Liest PartyIdentification; liefert eine SEPA-Gläubiger-ID (BT-90) separat zurück."""

    creditor_id = ""
    for ident in _x.findall(element, "cac:PartyIdentification/cbc:ID"):
        scheme = ident.get("schemeID", "")
        if scheme == CREDITOR_ID_SCHEME:
            creditor_id = _x.text(ident)
        elif scheme:
            party.global_ids.append(SchemedID(_x.text(ident), scheme))
        elif _x.text(ident):
            party.ids.append(_x.text(ident))
    return creditor_id


def _tax_schemes(party: Party, element: Element) -> None:
    for scheme in _x.findall(element, "cac:PartyTaxScheme"):
        company_id = _x.text(scheme, "cbc:CompanyID")
        if _x.text(scheme, "cac:TaxScheme/cbc:ID").upper() == "VAT":
            party.vat_id = company_id
        else:
            party.tax_registration_id = company_id


def _trading_party(element: Optional[Element]) -> tuple[Optional[Party], str]:
    """Verkäufer und Käufer: Name aus PartyLegalEntity, Handelsname aus PartyName."""

    if element is None:
        return None, ""
    party = Party()
    creditor_id = _identifications(party, element)
    trading_name = _x.text(element, "cac:PartyName/cbc:Name")
    legal = _x.find(element, "cac:PartyLegalEntity")
    registration_name = _x.text(legal, "cbc:RegistrationName")
    party.name = registration_name or trading_name
    company_id = _x.find(legal, "cbc:CompanyID")
    if company_id is not None or (trading_name and registration_name):
        party.legal_organization = LegalOrganization(
            id=_x.text(company_id),
            scheme=_x.attr(company_id, "", "schemeID"),
            trading_name=trading_name if registration_name else "",
        )
    party.postal_address = _address(_x.find(element, "cac:PostalAddress"))
    party.electronic_address = _x.text(element, "cbc:EndpointID")
    party.electronic_address_scheme = _x.attr(element, "cbc:EndpointID", "schemeID")
    _tax_schemes(party, element)
    contact = _x.find(element, "cac:Contact")
    if contact is not None:
        party.contacts.append(
            Contact(
                name=_x.text(contact, "cbc:Name"),
                phone=_x.text(contact, "cbc:Telephone"),
                email=_x.text(contact, "cbc:ElectronicMail"),
            )
        )
    return party, creditor_id


def _named_party(element: Optional[Element]) -> tuple[Optional[Party], str]:
    """Zahlungsempfänger und Steuervertreter: Name aus PartyName."""

    if element is None:
        return None, ""
    party = Party(name=_x.text(element, "cac:PartyName/cbc:Name"))
    creditor_id = _identifications(party, element)
    company_id = _x.find(element, "cac:PartyLegalEntity/cbc:CompanyID")
    if company_id is not None:
        party.legal_organization = LegalOrganization(id=_x.text(company_id), scheme=company_id.get("schemeID", ""))
    party.postal_address = _address(_x.find(element, "cac:PostalAddress"))
    _tax_schemes(party, element)
    return party, creditor_id


def _ship_to(delivery: Optional[Element]) -> Optional[Party]:
    location = _x.find(delivery, "cac:DeliveryLocation")
    delivery_party = _x.find(delivery, "cac:DeliveryParty")
    if location is None and delivery_party is None:
        return None
    party = Party(name=_x.text(delivery_party, "cac:PartyName/cbc:Name"))
    location_id = _x.find(location, "cbc:ID")
    if location_id is not None and _x.text(location_id):
        scheme = location_id.get("schemeID", "")
        if scheme:
            party.global_ids.append(SchemedID(_x.text(location_id), scheme))
        else:
            party.ids.append(_x.text(location_id))
    party.postal_address = _address(_x.find(location, "cac:Address"))
    return party


def _allowance_charge(element: Element, *, line_level: bool) -> AllowanceCharge:
    is_charge = _x.text(element, "cbc:ChargeIndicator").lower() == "true"
    if line_level:
        fields = ("BT-141", "BT-142", "BT-143") if is_charge else ("BT-136", "BT-137", "BT-138")
    else:
        fields = ("BT-99", "BT-100", "BT-101") if is_charge else ("BT-92", "BT-93", "BT-94")
    category = _x.find(element, "cac:TaxCategory")
    return AllowanceCharge(
        is_charge=is_charge,
        actual_amount=_x.decimal(element, "cbc:Amount", fields[0]),
        basis_amount=_x.decimal(element, "cbc:BaseAmount", fields[1]),
        calculation_percent=_x.decimal(element, "cbc:MultiplierFactorNumeric", fields[2]),
        reason_code=_x.text(element, "cbc:AllowanceChargeReasonCode"),
        reason=_x.text(element, "cbc:AllowanceChargeReason"),
        tax_category=_x.text(category, "cbc:ID"),
        tax_rate=_x.decimal(category, "cbc:Percent", "BT-103" if is_charge else "BT-96"),
    )


def _line(element: Element, quantity_tag: str) -> InvoiceLine:
    item = _x.find(element, "cac:Item")
    price = _x.find(element, "cac:Price")
    category = _x.find(item, "cac:ClassifiedTaxCategory")
    period = _x.find(element, "cac:InvoicePeriod")
    line = InvoiceLine(
        line_id=_x.text(element, "cbc:ID"),
        note=_x.text(element, "cbc:Note"),
        item_name=_x.text(item, "cbc:Name"),
        description=_x.text(item, "cbc:Description"),
        seller_item_id=_x.text(item, "cac:SellersItemIdentification/cbc:ID"),
        buyer_item_id=_x.text(item, "cac:BuyersItemIdentification/cbc:ID"),
        global_id=_x.text(item, "cac:StandardItemIdentification/cbc:ID"),
        global_id_scheme=_x.attr(item, "cac:StandardItemIdentification/cbc:ID", "schemeID"),
        origin_country=_x.text(item, "cac:OriginCountry/cbc:IdentificationCode"),
        net_price=_x.decimal(price, "cbc:PriceAmount", "BT-146"),
        base_quantity=_x.decimal(price, "cbc:BaseQuantity", "BT-149"),
        base_quantity_unit=_x.attr(price, "cbc:BaseQuantity", "unitCode"),
        billed_quantity=_x.decimal(element, quantity_tag, "BT-129"),
        billed_quantity_unit=_x.attr(element, quantity_tag, "unitCode"),
        line_total=_x.decimal(element, "cbc:LineExtensionAmount", "BT-131"),
        tax_category=_x.text(category, "cbc:ID"),
        tax_rate=_x.decimal(category, "cbc:Percent", "BT-152"),
        billing_period_start=_date(period, "cbc:StartDate", "BT-134"),
        billing_period_end=_date(period, "cbc:EndDate", "BT-135"),
        order_line_reference=_x.text(element, "cac:OrderLineReference/cbc:LineID"),
        accounting_reference=_x.text(element, "cbc:AccountingCost"),
        object_id=_x.text(element, "cac:DocumentReference/cbc:ID"),
        line_total_present=_x.exists(element, "cbc:LineExtensionAmount"),
        net_price_present=_x.exists(price, "cbc:PriceAmount"),
    )
    price_allowance = _x.find(price, "cac:AllowanceCharge")
    if price_allowance is not None:
        line.gross_price = _x.decimal(price_allowance, "cbc:BaseAmount", "BT-148")
        discount = _x.decimal(price_allowance, "cbc:Amount", "BT-147")
        if not discount.is_zero():
            line.price_allowances.append(AllowanceCharge(actual_amount=discount))
    for prop in _x.findall(item, "cac:AdditionalItemProperty"):
        line.characteristics.append(Characteristic(name=_x.text(prop, "cbc:Name"), value=_x.text(prop, "cbc:Value")))
    for code in _x.findall(item, "cac:CommodityClassification/cbc:ItemClassificationCode"):
        line.classifications.append(
            Classification(code=_x.text(code), list_id=code.get("listID", ""), list_version_id=code.get("listVersionID", ""))
        )
    for ac_element in _x.findall(element, "cac:AllowanceCharge"):
        ac = _allowance_charge(ac_element, line_level=True)
        (line.charges if ac.is_charge else line.allowances).append(ac)
    return line


def _attachment(element: Element) -> AttachedDocument:
    binary = _x.find(element, "cac:Attachment/cbc:EmbeddedDocumentBinaryObject")
    content = b""
    if binary is not None and (binary.text or "").strip():
        try:
            content = base64.b64decode("".join(binary.text.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidAttachmentError("BT-125") from exc
    return AttachedDocument(
        id=_x.text(element, "cbc:ID"),
        type_code=_x.text(element, "cbc:DocumentTypeCode") or "916",
        reference_type_code=_x.attr(element, "cbc:ID", "schemeID"),
        description=_x.text(element, "cbc:DocumentDescription"),
        uri=_x.text(element, "cac:Attachment/cac:ExternalReference/cbc:URI"),
        content=content,
        mime_code=binary.get("mimeCode", "") if binary is not None else "",
        filename=binary.get("filename", "") if binary is not None else "",
    )


def _trade_taxes(invoice: Invoice, root: Element) -> None:
    seen_invoice_currency = False
    for total in _x.findall(root, "cac:TaxTotal"):
        amount = _x.find(total, "cbc:TaxAmount")
        currency = _x.attr(amount, "", "currencyID")
        if (not currency or currency == invoice.currency) and not seen_invoice_currency:
            seen_invoice_currency = True
            invoice.tax_total = _x.decimal(amount, "", "BT-110")
            for subtotal in _x.findall(total, "cac:TaxSubtotal"):
                category = _x.find(subtotal, "cac:TaxCategory")
                invoice.trade_taxes.append(
                    TradeTax(
                        type_code=_x.text(category, "cac:TaxScheme/cbc:ID") or "VAT",
                        category_code=_x.text(category, "cbc:ID"),
                        rate=_x.decimal(category, "cbc:Percent", "BT-119"),
                        basis_amount=_x.decimal(subtotal, "cbc:TaxableAmount", "BT-116"),
                        calculated_amount=_x.decimal(subtotal, "cbc:TaxAmount", "BT-117"),
                        exemption_reason=_x.text(category, "cbc:TaxExemptionReason"),
                        exemption_reason_code=_x.text(category, "cbc:TaxExemptionReasonCode"),
                    )
                )
        elif invoice.tax_currency and currency == invoice.tax_currency:
            invoice.tax_total_accounting = _x.decimal(amount, "", "BT-111")
        else:
            invoice.foreign_tax_totals.append(ForeignAmount(currency, _x.decimal(amount, "", "BT-110")))

    tax_point_date = _date(root, "cbc:TaxPointDate", "BT-7")
    due_date_code = _x.text(root, "cac:InvoicePeriod/cbc:DescriptionCode")
    for tax in invoice.trade_taxes:
        tax.tax_point_date = tax_point_date
        tax.due_date_type_code = due_date_code


def _monetary_total(invoice: Invoice, total: Optional[Element]) -> None:
    invoice.line_total = _x.decimal(total, "cbc:LineExtensionAmount", "BT-106")
    invoice.tax_basis_total = _x.decimal(total, "cbc:TaxExclusiveAmount", "BT-109")
    invoice.grand_total = _x.decimal(total, "cbc:TaxInclusiveAmount", "BT-112")
    invoice.allowance_total = _x.decimal(total, "cbc:AllowanceTotalAmount", "BT-107")
    invoice.charge_total = _x.decimal(total, "cbc:ChargeTotalAmount", "BT-108")
    invoice.prepaid_total = _x.decimal(total, "cbc:PrepaidAmount", "BT-113")
    invoice.rounding_amount = _x.decimal(total, "cbc:PayableRoundingAmount", "BT-114")
    invoice.due_payable = _x.decimal(total, "cbc:PayableAmount", "BT-115")
    invoice.line_total_present = _x.exists(total, "cbc:LineExtensionAmount")
    invoice.tax_basis_total_present = _x.exists(total, "cbc:TaxExclusiveAmount")
    invoice.grand_total_present = _x.exists(total, "cbc:TaxInclusiveAmount")
    invoice.due_payable_present = _x.exists(total, "cbc:PayableAmount")


def _payment(invoice: Invoice, root: Element) -> None:
    mandate_id = ""
    due_date = _date(root, "cbc:DueDate", "BT-9")
    for element in _x.findall(root, "cac:PaymentMeans"):
        account = _x.find(element, "cac:PayeeFinancialAccount")
        card = _x.find(element, "cac:CardAccount")
        invoice.payment_means.append(
            PaymentMeans(
                type_code=_int(_x.text(element, "cbc:PaymentMeansCode"), "BT-81"),
                information=_x.attr(element, "cbc:PaymentMeansCode", "name"),
                payee_iban=_x.text(account, "cbc:ID"),
                payee_account_name=_x.text(account, "cbc:Name"),
                payee_bic=_x.text(account, "cac:FinancialInstitutionBranch/cbc:ID"),
                payer_iban=_x.text(element, "cac:PaymentMandate/cac:PayerFinancialAccount/cbc:ID"),
                card_id=_x.text(card, "cbc:PrimaryAccountNumberID"),
                card_holder=_x.text(card, "cbc:HolderName"),
                payee_account_present=account is not None,
            )
        )
        if not invoice.payment_reference:
            invoice.payment_reference = _x.text(element, "cbc:PaymentID")
        mandate_id = mandate_id or _x.text(element, "cac:PaymentMandate/cbc:ID")
        if due_date is None:
            due_date = _date(element, "cbc:PaymentDueDate", "BT-9")

    terms = [PaymentTerms(description=_x.text(e, "cbc:Note")) for e in _x.findall(root, "cac:PaymentTerms")]
    if (due_date is not None or mandate_id) and not terms:
        terms.append(PaymentTerms())
    if terms:
        terms[0].due_date = due_date
        terms[0].direct_debit_mandate_id = mandate_id
    invoice.payment_terms = terms


def parse_ubl(root: Element) -> Invoice:
    credit_note = namespace_of(root) == CREDIT_NOTE_NS
    prefix = "CreditNote" if credit_note else "Invoice"
    invoice = Invoice(schema_type=SchemaType.UBL, parsed=True)

    invoice.specification_id = _x.text(root, "cbc:CustomizationID")
    invoice.business_process_id = _x.text(root, "cbc:ProfileID")
    invoice.invoice_number = _x.text(root, "cbc:ID")
    invoice.issue_date = _date(root, "cbc:IssueDate", "BT-2")
    invoice.type_code = _int(_x.text(root, f"cbc:{prefix}TypeCode"), "BT-3")
    invoice.notes = [split_note(_x.text(e)) for e in _x.findall(root, "cbc:Note")]
    invoice.currency = _x.text(root, "cbc:DocumentCurrencyCode")
    invoice.tax_currency = _x.text(root, "cbc:TaxCurrencyCode")
    invoice.receivable_account = _x.text(root, "cbc:AccountingCost")
    invoice.buyer_reference = _x.text(root, "cbc:BuyerReference")
    invoice.billing_period_start = _date(root, "cac:InvoicePeriod/cbc:StartDate", "BT-73")
    invoice.billing_period_end = _date(root, "cac:InvoicePeriod/cbc:EndDate", "BT-74")
    order_id = _x.text(root, "cac:OrderReference/cbc:ID")
    invoice.buyer_order_reference = "" if order_id == NOT_APPLICABLE else order_id
    invoice.seller_order_reference = _x.text(root, "cac:OrderReference/cbc:SalesOrderID")
    for reference in _x.findall(root, "cac:BillingReference/cac:InvoiceDocumentReference"):
        invoice.preceding_invoices.append(
            ReferencedDocument(id=_x.text(reference, "cbc:ID"), issue_date=_date(reference, "cbc:IssueDate", "BT-26"))
        )
    invoice.despatch_advice_reference = _x.text(root, "cac:DespatchDocumentReference/cbc:ID")
    invoice.receiving_advice_reference = _x.text(root, "cac:ReceiptDocumentReference/cbc:ID")
    invoice.contract_reference = _x.text(root, "cac:ContractDocumentReference/cbc:ID")
    invoice.attachments = [_attachment(e) for e in _x.findall(root, "cac:AdditionalDocumentReference")]
    invoice.project_id = _x.text(root, "cac:ProjectReference/cbc:ID")

    seller, seller_creditor_id = _trading_party(_x.find(root, "cac:AccountingSupplierParty/cac:Party"))
    buyer, _ = _trading_party(_x.find(root, "cac:AccountingCustomerParty/cac:Party"))
    invoice.seller = seller or Party()
    invoice.buyer = buyer or Party()
    invoice.payee, payee_creditor_id = _named_party(_x.find(root, "cac:PayeeParty"))
    invoice.tax_representative, _ = _named_party(_x.find(root, "cac:TaxRepresentativeParty"))
    invoice.creditor_reference_id = payee_creditor_id or seller_creditor_id

    delivery = _x.find(root, "cac:Delivery")
    invoice.delivery_date = _date(delivery, "cbc:ActualDeliveryDate", "BT-72")
    invoice.ship_to = _ship_to(delivery)

    _payment(invoice, root)
    invoice.allowances_charges = [_allowance_charge(e, line_level=False) for e in _x.findall(root, "cac:AllowanceCharge")]
    _trade_taxes(invoice, root)
    _monetary_total(invoice, _x.find(root, "cac:LegalMonetaryTotal"))

    quantity_tag = "cbc:CreditedQuantity" if credit_note else "cbc:InvoicedQuantity"
    invoice.lines = [_line(e, quantity_tag) for e in _x.findall(root, f"cac:{prefix}Line")]

    log.debug("parsed UBL %s %s (%d lines, profile %s)", prefix, invoice.invoice_number, len(invoice.lines), invoice.specification_id)
    return invoice


__all__ = ["INVOICE_NS", "CREDIT_NOTE_NS", "NS", "parse_ubl", "split_note"]
