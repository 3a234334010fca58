"""CII-Parser: ``rsm:CrossIndustryInvoice`` → ``Invoice``."""

from __future__ import annotations

import base64
import binascii
from typing import List, Optional, Tuple

from ..dates import parse_date_cii
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
from ..xmlutil import Element, Reader

log = get_logger(__name__)

NS = {
    "rsm": "urn:un:unece:uncefact:data:standard:CrossIndustryInvoice:100",
    "ram": "urn:un:unece:uncefact:data:standard:ReusableAggregateBusinessInformationEntity:100",
    "qdt": "urn:un:unece:uncefact:data:standard:QualifiedDataType:100",
    "udt": "urn:un:unece:uncefact:data:standard:UnqualifiedDataType:100",
}

_x = Reader(NS)

# (amount, basis, percent) field ids per allowance/charge position
_DOC_ALLOWANCE = ("BT-92", "BT-93", "BT-94")
_DOC_CHARGE = ("BT-99", "BT-100", "BT-101")
_LINE_ALLOWANCE = ("BT-136", "BT-137", "BT-138")
_LINE_CHARGE = ("BT-141", "BT-142", "BT-143")
_PRICE_ALLOWANCE = ("BT-147", "BT-148", "BT-147")


def _int(text: str, field: str) -> int:
    if not text:
        return 0
    try:
        return int(text)
    except ValueError as exc:
        raise ParseError(f"{field}: invalid code {text!r}") from exc


def _date(element: Optional[Element], path: str, field: str, value_tag: str = "udt:DateTimeString"):
    target = _x.find(element, f"{path}/{value_tag}" if path else value_tag)
    if target is None or not (target.text or "").strip():
        return None
    return parse_date_cii(target.text, field, target.get("format"))


def _address(element: Optional[Element]) -> Optional[PostalAddress]:
    if element is None:
        return None
    return PostalAddress(
        country_code=_x.text(element, "ram:CountryID"),
        postcode=_x.text(element, "ram:PostcodeCode"),
        line1=_x.text(element, "ram:LineOne"),
        line2=_x.text(element, "ram:LineTwo"),
        line3=_x.text(element, "ram:LineThree"),
        city=_x.text(element, "ram:CityName"),
        subdivision=_x.text(element, "ram:CountrySubDivisionName"),
    )


def _party(element: Optional[Element]) -> Optional[Party]:
    if element is None:
        return None
    party = Party(
        name=_x.text(element, "ram:Name"),
        ids=[t for t in (_x.text(e) for e in _x.findall(element, "ram:ID")) if t],
        global_ids=[SchemedID(_x.text(e), e.get("schemeID", "")) for e in _x.findall(element, "ram:GlobalID")],
        postal_address=_address(_x.find(element, "ram:PostalTradeAddress")),
        electronic_address=_x.text(element, "ram:URIUniversalCommunication/ram:URIID"),
        electronic_address_scheme=_x.attr(element, "ram:URIUniversalCommunication/ram:URIID", "schemeID"),
    )
    legal = _x.find(element, "ram:SpecifiedLegalOrganization")
    if legal is not None:
        party.legal_organization = LegalOrganization(
            id=_x.text(legal, "ram:ID"),
            scheme=_x.attr(legal, "ram:ID", "schemeID"),
            trading_name=_x.text(legal, "ram:TradingBusinessName"),
        )
    for contact in _x.findall(element, "ram:DefinedTradeContact"):
        party.contacts.append(
            Contact(
                name=_x.text(contact, "ram:PersonName"),
                department=_x.text(contact, "ram:DepartmentName"),
                phone=_x.text(contact, "ram:TelephoneUniversalCommunication/ram:CompleteNumber"),
                email=_x.text(contact, "ram:EmailURIUniversalCommunication/ram:URIID"),
            )
        )
    for registration in _x.findall(element, "ram:SpecifiedTaxRegistration/ram:ID"):
        scheme = registration.get("schemeID", "")
        if scheme == "VA":
            party.vat_id = _x.text(registration)
        elif scheme == "FC":
            party.tax_registration_id = _x.text(registration)
    return party


def _allowance_charge(element: Element, fields: Tuple[str, str, str], charge_fields: Tuple[str, str, str]) -> AllowanceCharge:
    is_charge = _x.text(element, "ram:ChargeIndicator/udt:Indicator").lower() == "true"
    amount_field, basis_field, percent_field = charge_fields if is_charge else fields
    tax = _x.find(element, "ram:CategoryTradeTax")
    return AllowanceCharge(
        is_charge=is_charge,
        actual_amount=_x.decimal(element, "ram:ActualAmount", amount_field),
        basis_amount=_x.decimal(element, "ram:BasisAmount", basis_field),
        calculation_percent=_x.decimal(element, "ram:CalculationPercent", percent_field),
        reason_code=_x.text(element, "ram:ReasonCode"),
        reason=_x.text(element, "ram:Reason"),
        tax_type_code=_x.text(tax, "ram:TypeCode") or "VAT",
        tax_category=_x.text(tax, "ram:CategoryCode"),
        tax_rate=_x.decimal(tax, "ram:RateApplicablePercent", "BT-96" if not is_charge else "BT-103"),
    )


def _line(item: Element) -> InvoiceLine:
    document = _x.find(item, "ram:AssociatedDocumentLineDocument")
    product = _x.find(item, "ram:SpecifiedTradeProduct")
    agreement = _x.find(item, "ram:SpecifiedLineTradeAgreement")
    delivery = _x.find(item, "ram:SpecifiedLineTradeDelivery")
    settlement = _x.find(item, "ram:SpecifiedLineTradeSettlement")
    gross = _x.find(agreement, "ram:GrossPriceProductTradePrice")
    net = _x.find(agreement, "ram:NetPriceProductTradePrice")
    tax = _x.find(settlement, "ram:ApplicableTradeTax")
    summation = _x.find(settlement, "ram:SpecifiedTradeSettlementLineMonetarySummation")

    line = InvoiceLine(
        line_id=_x.text(document, "ram:LineID"),
        note=_x.text(document, "ram:IncludedNote/ram:Content"),
        item_name=_x.text(product, "ram:Name"),
        description=_x.text(product, "ram:Description"),
        seller_item_id=_x.text(product, "ram:SellerAssignedID"),
        buyer_item_id=_x.text(product, "ram:BuyerAssignedID"),
        global_id=_x.text(product, "ram:GlobalID"),
        global_id_scheme=_x.attr(product, "ram:GlobalID", "schemeID"),
        origin_country=_x.text(product, "ram:OriginTradeCountry/ram:ID"),
        gross_price=_x.decimal(gross, "ram:ChargeAmount", "BT-148"),
        net_price=_x.decimal(net, "ram:ChargeAmount", "BT-146"),
        base_quantity=_x.decimal(net, "ram:BasisQuantity", "BT-149"),
        base_quantity_unit=_x.attr(net, "ram:BasisQuantity", "unitCode"),
        billed_quantity=_x.decimal(delivery, "ram:BilledQuantity", "BT-129"),
        billed_quantity_unit=_x.attr(delivery, "ram:BilledQuantity", "unitCode"),
        line_total=_x.decimal(summation, "ram:LineTotalAmount", "BT-131"),
        tax_type_code=_x.text(tax, "ram:TypeCode") or "VAT",
        tax_category=_x.text(tax, "ram:CategoryCode"),
        tax_rate=_x.decimal(tax, "ram:RateApplicablePercent", "BT-152"),
        billing_period_start=_date(settlement, "ram:BillingSpecifiedPeriod/ram:StartDateTime", "BT-134"),
        billing_period_end=_date(settlement, "ram:BillingSpecifiedPeriod/ram:EndDateTime", "BT-135"),
        order_line_reference=_x.text(agreement, "ram:BuyerOrderReferencedDocument/ram:LineID"),
        accounting_reference=_x.text(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount/ram:ID"),
        object_id=_x.text(settlement, "ram:AdditionalReferencedDocument/ram:IssuerAssignedID"),
        line_total_present=_x.exists(summation, "ram:LineTotalAmount"),
        net_price_present=_x.exists(net, "ram:ChargeAmount"),
    )
    for characteristic in _x.findall(product, "ram:ApplicableProductCharacteristic"):
        line.characteristics.append(
            Characteristic(name=_x.text(characteristic, "ram:Description"), value=_x.text(characteristic, "ram:Value"))
        )
    for code in _x.findall(product, "ram:DesignatedProductClassification/ram:ClassCode"):
        line.classifications.append(
            Classification(code=_x.text(code), list_id=code.get("listID", ""), list_version_id=code.get("listVersionID", ""))
        )
    for applied in _x.findall(gross, "ram:AppliedTradeAllowanceCharge"):
        line.price_allowances.append(_allowance_charge(applied, _PRICE_ALLOWANCE, _PRICE_ALLOWANCE))
    for element in _x.findall(settlement, "ram:SpecifiedTradeAllowanceCharge"):
        ac = _allowance_charge(element, _LINE_ALLOWANCE, _LINE_CHARGE)
        (line.charges if ac.is_charge else line.allowances).append(ac)
    return line


def _attachment(element: Element) -> AttachedDocument:
    binary = _x.find(element, "ram:AttachmentBinaryObject")
    content = b""
    if binary is not None and (binary.text or "").strip():
        try:
            content = base64.b64decode("".join(binary.text.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidAttachmentError("BT-125") from exc
    return AttachedDocument(
        id=_x.text(element, "ram:IssuerAssignedID"),
        type_code=_x.text(element, "ram:TypeCode") or "916",
        reference_type_code=_x.text(element, "ram:ReferenceTypeCode"),
        description=_x.text(element, "ram:Name"),
        uri=_x.text(element, "ram:URIID"),
        content=content,
        mime_code=binary.get("mimeCode", "") if binary is not None else "",
        filename=binary.get("filename", "") if binary is not None else "",
    )


def _trade_tax(element: Element) -> TradeTax:
    return TradeTax(
        type_code=_x.text(element, "ram:TypeCode") or "VAT",
        category_code=_x.text(element, "ram:CategoryCode"),
        rate=_x.decimal(element, "ram:RateApplicablePercent", "BT-119"),
        basis_amount=_x.decimal(element, "ram:BasisAmount", "BT-116"),
        calculated_amount=_x.decimal(element, "ram:CalculatedAmount", "BT-117"),
        exemption_reason=_x.text(element, "ram:ExemptionReason"),
        exemption_reason_code=_x.text(element, "ram:ExemptionReasonCode"),
        tax_point_date=_date(element, "ram:TaxPointDate", "BT-7", "udt:DateString"),
        due_date_type_code=_x.text(element, "ram:DueDateTypeCode"),
    )


def _payment_means(element: Element) -> PaymentMeans:
    payee_account = _x.find(element, "ram:PayeePartyCreditorFinancialAccount")
    return PaymentMeans(
        type_code=_int(_x.text(element, "ram:TypeCode"), "BT-81"),
        information=_x.text(element, "ram:Information"),
        payee_iban=_x.text(payee_account, "ram:IBANID"),
        payee_account_name=_x.text(payee_account, "ram:AccountName"),
        payee_proprietary_id=_x.text(payee_account, "ram:ProprietaryID"),
        payee_bic=_x.text(element, "ram:PayeeSpecifiedCreditorFinancialInstitution/ram:BICID"),
        payer_iban=_x.text(element, "ram:PayerPartyDebtorFinancialAccount/ram:IBANID"),
        card_id=_x.text(element, "ram:ApplicableTradeSettlementFinancialCard/ram:ID"),
        card_holder=_x.text(element, "ram:ApplicableTradeSettlementFinancialCard/ram:CardholderName"),
        payee_account_present=payee_account is not None,
    )


def _monetary_summation(invoice: Invoice, summation: Optional[Element]) -> None:
    invoice.line_total = _x.decimal(summation, "ram:LineTotalAmount", "BT-106")
    invoice.charge_total = _x.decimal(summation, "ram:ChargeTotalAmount", "BT-108")
    invoice.allowance_total = _x.decimal(summation, "ram:AllowanceTotalAmount", "BT-107")
    invoice.tax_basis_total = _x.decimal(summation, "ram:TaxBasisTotalAmount", "BT-109")
    invoice.rounding_amount = _x.decimal(summation, "ram:RoundingAmount", "BT-114")
    invoice.grand_total = _x.decimal(summation, "ram:GrandTotalAmount", "BT-112")
    invoice.prepaid_total = _x.decimal(summation, "ram:TotalPrepaidAmount", "BT-113")
    invoice.due_payable = _x.decimal(summation, "ram:DuePayableAmount", "BT-115")
    invoice.line_total_present = _x.exists(summation, "ram:LineTotalAmount")
    invoice.tax_basis_total_present = _x.exists(summation, "ram:TaxBasisTotalAmount")
    invoice.grand_total_present = _x.exists(summation, "ram:GrandTotalAmount")
    invoice.due_payable_present = _x.exists(summation, "ram:DuePayableAmount")

    seen_invoice_currency = False
    for element in _x.findall(summation, "ram:TaxTotalAmount"):
        currency = element.get("currencyID", "")
        if (not currency or currency == invoice.currency) and not seen_invoice_currency:
            invoice.tax_total = _x.decimal(element, "", "BT-110")
            seen_invoice_currency = True
        elif invoice.tax_currency and currency == invoice.tax_currency:
            invoice.tax_total_accounting = _x.decimal(element, "", "BT-111")
        else:
            invoice.foreign_tax_totals.append(ForeignAmount(currency, _x.decimal(element, "", "BT-110")))


def _references(element: Optional[Element], path: str) -> str:
    return _x.text(element, f"{path}/ram:IssuerAssignedID")


def parse_cii(root: Element) -> Invoice:
    invoice = Invoice(schema_type=SchemaType.CII, parsed=True)

    context = _x.find(root, "rsm:ExchangedDocumentContext")
    invoice.business_process_id = _x.text(context, "ram:BusinessProcessSpecifiedDocumentContextParameter/ram:ID")
    invoice.specification_id = _x.text(context, "ram:GuidelineSpecifiedDocumentContextParameter/ram:ID")

    document = _x.find(root, "rsm:ExchangedDocument")
    invoice.invoice_number = _x.text(document, "ram:ID")
    invoice.type_code = _int(_x.text(document, "ram:TypeCode"), "BT-3")
    invoice.issue_date = _date(document, "ram:IssueDateTime", "BT-2")
    for note in _x.findall(document, "ram:IncludedNote"):
        invoice.notes.append(Note(text=_x.text(note, "ram:Content"), subject_code=_x.text(note, "ram:SubjectCode")))

    transaction = _x.find(root, "rsm:SupplyChainTradeTransaction")
    agreement = _x.find(transaction, "ram:ApplicableHeaderTradeAgreement")
    delivery = _x.find(transaction, "ram:ApplicableHeaderTradeDelivery")
    settlement = _x.find(transaction, "ram:ApplicableHeaderTradeSettlement")

    invoice.buyer_reference = _x.text(agreement, "ram:BuyerReference")
    invoice.seller = _party(_x.find(agreement, "ram:SellerTradeParty")) or Party()
    invoice.buyer = _party(_x.find(agreement, "ram:BuyerTradeParty")) or Party()
    invoice.tax_representative = _party(_x.find(agreement, "ram:SellerTaxRepresentativeTradeParty"))
    invoice.seller_order_reference = _references(agreement, "ram:SellerOrderReferencedDocument")
    invoice.buyer_order_reference = _references(agreement, "ram:BuyerOrderReferencedDocument")
    invoice.contract_reference = _references(agreement, "ram:ContractReferencedDocument")
    invoice.project_id = _x.text(agreement, "ram:SpecifiedProcuringProject/ram:ID")
    invoice.project_name = _x.text(agreement, "ram:SpecifiedProcuringProject/ram:Name")
    invoice.attachments = [_attachment(e) for e in _x.findall(agreement, "ram:AdditionalReferencedDocument")]

    invoice.ship_to = _party(_x.find(delivery, "ram:ShipToTradeParty"))
    invoice.delivery_date = _date(delivery, "ram:ActualDeliverySupplyChainEvent/ram:OccurrenceDateTime", "BT-72")
    invoice.despatch_advice_reference = _references(delivery, "ram:DespatchAdviceReferencedDocument")
    invoice.receiving_advice_reference = _references(delivery, "ram:ReceivingAdviceReferencedDocument")

    invoice.creditor_reference_id = _x.text(settlement, "ram:CreditorReferenceID")
    invoice.payment_reference = _x.text(settlement, "ram:PaymentReference")
    invoice.tax_currency = _x.text(settlement, "ram:TaxCurrencyCode")
    invoice.currency = _x.text(settlement, "ram:InvoiceCurrencyCode")
    invoice.payee = _party(_x.find(settlement, "ram:PayeeTradeParty"))
    invoice.payment_means = [_payment_means(e) for e in _x.findall(settlement, "ram:SpecifiedTradeSettlementPaymentMeans")]
    invoice.trade_taxes = [_trade_tax(e) for e in _x.findall(settlement, "ram:ApplicableTradeTax")]
    invoice.billing_period_start = _date(settlement, "ram:BillingSpecifiedPeriod/ram:StartDateTime", "BT-73")
    invoice.billing_period_end = _date(settlement, "ram:BillingSpecifiedPeriod/ram:EndDateTime", "BT-74")
    invoice.allowances_charges = [
        _allowance_charge(e, _DOC_ALLOWANCE, _DOC_CHARGE) for e in _x.findall(settlement, "ram:SpecifiedTradeAllowanceCharge")
    ]
    for terms in _x.findall(settlement, "ram:SpecifiedTradePaymentTerms"):
        invoice.payment_terms.append(
            PaymentTerms(
                description=_x.text(terms, "ram:Description"),
                due_date=_date(terms, "ram:DueDateDateTime", "BT-9"),
                direct_debit_mandate_id=_x.text(terms, "ram:DirectDebitMandateID"),
            )
        )
    _monetary_summation(invoice, _x.find(settlement, "ram:SpecifiedTradeSettlementHeaderMonetarySummation"))
    preceding: List[ReferencedDocument] = []
    for reference in _x.findall(settlement, "ram:InvoiceReferencedDocument"):
        preceding.append(
            ReferencedDocument(
                id=_x.text(reference, "ram:IssuerAssignedID"),
                issue_date=_date(reference, "ram:FormattedIssueDateTime", "BT-26", "qdt:DateTimeString"),
            )
        )
    invoice.preceding_invoices = preceding
    invoice.receivable_account = _x.text(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount/ram:ID")

    invoice.lines = [_line(item) for item in _x.findall(transaction, "ram:IncludedSupplyChainTradeLineItem")]

    log.debug("parsed CII invoice %s (%d lines, profile %s)", invoice.invoice_number, len(invoice.lines), invoice.specification_id)
    return invoice


__all__ = ["NS", "parse_cii"]
