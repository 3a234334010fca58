"""CII-Writer: ``Invoice`` → ``rsm:CrossIndustryInvoice``.

Die Elementreihenfolge folgt dem CII D16B Schema; welche Gruppen je Profil
geschrieben werden, entscheidet ``profiles.emits``.
"""

from __future__ import annotations

import base64
from datetime import date
from decimal import Decimal
from typing import Optional

from ..dates import CII_DATE_FORMAT, format_date_cii
from ..decimals import format_amount, format_percent, format_quantity
from ..model import AllowanceCharge, AttachedDocument, Invoice, InvoiceLine, Party, PaymentMeans, PostalAddress, TradeTax
from ..profiles import ProfileLevel, SchemaType, effective_level, emits
from ..xmlutil import Builder, Element, to_bytes
from .parser import NS

_NSMAP = dict(NS, xs="http://www.w3.org/2001/XMLSchema")


class CIIWriter:
    def __init__(self, invoice: Invoice) -> None:
        self.invoice = invoice
        self.level: ProfileLevel = effective_level(invoice.specification_id)
        self.b = Builder(_NSMAP, "ram")

    def emits(self, field: str) -> bool:
        return emits(field, SchemaType.CII, self.level)

    def build(self) -> Element:
        root = self.b.root("rsm:CrossIndustryInvoice")
        self._context(root)
        self._document(root)
        self._transaction(root)
        return root

    # -- helpers ---------------------------------------------------------

    def _date(self, parent: Element, tag: str, value: Optional[date], value_tag: str = "udt:DateTimeString") -> None:
        if value is None:
            return
        holder = self.b.el(parent, tag)
        self.b.el(holder, value_tag, format_date_cii(value), format=CII_DATE_FORMAT)

    def _amount(self, parent: Element, tag: str, value: Decimal, currency: str = "") -> Element:
        return self.b.el(parent, tag, format_amount(value), currencyID=currency)

    def _reference(self, parent: Element, tag: str, value: str) -> None:
        if value:
            self.b.el(self.b.el(parent, tag), "ram:IssuerAssignedID", value)

    def _address(self, parent: Element, address: Optional[PostalAddress]) -> None:
        if address is None:
            return
        el = self.b.el(parent, "ram:PostalTradeAddress")
        self.b.opt(el, "ram:PostcodeCode", address.postcode)
        self.b.opt(el, "ram:LineOne", address.line1)
        self.b.opt(el, "ram:LineTwo", address.line2)
        self.b.opt(el, "ram:LineThree", address.line3)
        self.b.opt(el, "ram:CityName", address.city)
        self.b.opt(el, "ram:CountryID", address.country_code)
        self.b.opt(el, "ram:CountrySubDivisionName", address.subdivision)

    def _party(self, parent: Element, tag: str, party: Party, *, address: bool = True) -> None:
        el = self.b.el(parent, tag)
        for party_id in party.ids:
            self.b.el(el, "ram:ID", party_id)
        for global_id in party.global_ids:
            self.b.el(el, "ram:GlobalID", global_id.id, schemeID=global_id.scheme)
        self.b.opt(el, "ram:Name", party.name)
        legal = party.legal_organization
        if legal is not None:
            org = self.b.el(el, "ram:SpecifiedLegalOrganization")
            self.b.opt(org, "ram:ID", legal.id, schemeID=legal.scheme)
            self.b.opt(org, "ram:TradingBusinessName", legal.trading_name)
        if self.emits("party_contact"):
            for contact in party.contacts:
                ct = self.b.el(el, "ram:DefinedTradeContact")
                self.b.opt(ct, "ram:PersonName", contact.name)
                self.b.opt(ct, "ram:DepartmentName", contact.department)
                if contact.phone:
                    self.b.el(self.b.el(ct, "ram:TelephoneUniversalCommunication"), "ram:CompleteNumber", contact.phone)
                if contact.email:
                    self.b.el(self.b.el(ct, "ram:EmailURIUniversalCommunication"), "ram:URIID", contact.email)
        if address:
            self._address(el, party.postal_address)
        if party.electronic_address and self.emits("party_electronic_address"):
            uri = self.b.el(el, "ram:URIUniversalCommunication")
            self.b.el(uri, "ram:URIID", party.electronic_address, schemeID=party.electronic_address_scheme)
        if party.tax_registration_id:
            self.b.el(self.b.el(el, "ram:SpecifiedTaxRegistration"), "ram:ID", party.tax_registration_id, schemeID="FC")
        if party.vat_id:
            self.b.el(self.b.el(el, "ram:SpecifiedTaxRegistration"), "ram:ID", party.vat_id, schemeID="VA")

    def _allowance_charge(self, parent: Element, tag: str, ac: AllowanceCharge, *, with_tax: bool) -> None:
        el = self.b.el(parent, tag)
        self.b.el(self.b.el(el, "ram:ChargeIndicator"), "udt:Indicator", "true" if ac.is_charge else "false")
        if not ac.calculation_percent.is_zero():
            self.b.el(el, "ram:CalculationPercent", format_percent(ac.calculation_percent))
        if not ac.basis_amount.is_zero():
            self._amount(el, "ram:BasisAmount", ac.basis_amount)
        self._amount(el, "ram:ActualAmount", ac.actual_amount)
        self.b.opt(el, "ram:ReasonCode", ac.reason_code)
        self.b.opt(el, "ram:Reason", ac.reason)
        if with_tax:
            tax = self.b.el(el, "ram:CategoryTradeTax")
            self.b.el(tax, "ram:TypeCode", ac.tax_type_code or "VAT")
            self.b.opt(tax, "ram:CategoryCode", ac.tax_category)
            self.b.el(tax, "ram:RateApplicablePercent", format_percent(ac.tax_rate))

    # -- document --------------------------------------------------------

    def _context(self, root: Element) -> None:
        ctx = self.b.el(root, "rsm:ExchangedDocumentContext")
        if self.invoice.business_process_id or self.level >= ProfileLevel.EXTENDED:
            process = self.b.el(ctx, "ram:BusinessProcessSpecifiedDocumentContextParameter")
            self.b.el(process, "ram:ID", self.invoice.business_process_id)
        guideline = self.b.el(ctx, "ram:GuidelineSpecifiedDocumentContextParameter")
        self.b.el(guideline, "ram:ID", self.invoice.specification_id)

    def _document(self, root: Element) -> None:
        inv = self.invoice
        doc = self.b.el(root, "rsm:ExchangedDocument")
        self.b.el(doc, "ram:ID", inv.invoice_number)
        self.b.el(doc, "ram:TypeCode", str(inv.type_code))
        self._date(doc, "ram:IssueDateTime", inv.issue_date)
        if self.emits("notes"):
            for note in inv.notes:
                el = self.b.el(doc, "ram:IncludedNote")
                self.b.el(el, "ram:Content", note.text)
                self.b.opt(el, "ram:SubjectCode", note.subject_code)

    def _transaction(self, root: Element) -> None:
        txn = self.b.el(root, "rsm:SupplyChainTradeTransaction")
        if self.emits("line_items"):
            for line in self.invoice.lines:
                self._line(txn, line)
        self._agreement(txn)
        self._delivery(txn)
        self._settlement(txn)

    # -- lines -----------------------------------------------------------

    def _line(self, txn: Element, line: InvoiceLine) -> None:
        item = self.b.el(txn, "ram:IncludedSupplyChainTradeLineItem")
        doc = self.b.el(item, "ram:AssociatedDocumentLineDocument")
        self.b.el(doc, "ram:LineID", line.line_id)
        if line.note:
            self.b.el(self.b.el(doc, "ram:IncludedNote"), "ram:Content", line.note)

        product = self.b.el(item, "ram:SpecifiedTradeProduct")
        self.b.opt(product, "ram:GlobalID", line.global_id, schemeID=line.global_id_scheme)
        if self.emits("line_item_identifiers"):
            self.b.opt(product, "ram:SellerAssignedID", line.seller_item_id)
            self.b.opt(product, "ram:BuyerAssignedID", line.buyer_item_id)
        self.b.el(product, "ram:Name", line.item_name)
        if self.emits("line_item_details"):
            self.b.opt(product, "ram:Description", line.description)
            for characteristic in line.characteristics:
                ch = self.b.el(product, "ram:ApplicableProductCharacteristic")
                self.b.el(ch, "ram:Description", characteristic.name)
                self.b.el(ch, "ram:Value", characteristic.value)
            for classification in line.classifications:
                cl = self.b.el(product, "ram:DesignatedProductClassification")
                self.b.el(
                    cl,
                    "ram:ClassCode",
                    classification.code,
                    listID=classification.list_id,
                    listVersionID=classification.list_version_id,
                )
            if line.origin_country:
                self.b.el(self.b.el(product, "ram:OriginTradeCountry"), "ram:ID", line.origin_country)

        agreement = self.b.el(item, "ram:SpecifiedLineTradeAgreement")
        if line.order_line_reference and self.emits("line_references"):
            self.b.el(self.b.el(agreement, "ram:BuyerOrderReferencedDocument"), "ram:LineID", line.order_line_reference)
        if not line.gross_price.is_zero() or line.price_allowances:
            gross = self.b.el(agreement, "ram:GrossPriceProductTradePrice")
            self.b.el(gross, "ram:ChargeAmount", format_quantity(line.gross_price))
            for allowance in line.price_allowances:
                self._allowance_charge(gross, "ram:AppliedTradeAllowanceCharge", allowance, with_tax=False)
        net = self.b.el(agreement, "ram:NetPriceProductTradePrice")
        self.b.el(net, "ram:ChargeAmount", format_quantity(line.net_price))
        if not line.base_quantity.is_zero():
            self.b.el(net, "ram:BasisQuantity", format_quantity(line.base_quantity), unitCode=line.base_quantity_unit)

        delivery = self.b.el(item, "ram:SpecifiedLineTradeDelivery")
        self.b.el(delivery, "ram:BilledQuantity", format_quantity(line.billed_quantity), unitCode=line.billed_quantity_unit)

        settlement = self.b.el(item, "ram:SpecifiedLineTradeSettlement")
        tax = self.b.el(settlement, "ram:ApplicableTradeTax")
        self.b.el(tax, "ram:TypeCode", line.tax_type_code or "VAT")
        self.b.el(tax, "ram:CategoryCode", line.tax_category)
        if line.tax_category != "O":
            self.b.el(tax, "ram:RateApplicablePercent", format_percent(line.tax_rate))
        if self.emits("line_period") and (line.billing_period_start or line.billing_period_end):
            period = self.b.el(settlement, "ram:BillingSpecifiedPeriod")
            self._date(period, "ram:StartDateTime", line.billing_period_start)
            self._date(period, "ram:EndDateTime", line.billing_period_end)
        for ac in [*line.allowances, *line.charges]:
            self._allowance_charge(settlement, "ram:SpecifiedTradeAllowanceCharge", ac, with_tax=False)
        summation = self.b.el(settlement, "ram:SpecifiedTradeSettlementLineMonetarySummation")
        self._amount(summation, "ram:LineTotalAmount", line.line_total)
        if self.emits("line_references"):
            if line.object_id:
                ref = self.b.el(settlement, "ram:AdditionalReferencedDocument")
                self.b.el(ref, "ram:IssuerAssignedID", line.object_id)
                self.b.el(ref, "ram:TypeCode", "130")
            if line.accounting_reference:
                account = self.b.el(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount")
                self.b.el(account, "ram:ID", line.accounting_reference)

    # -- header ----------------------------------------------------------

    def _attachment(self, parent: Element, doc: AttachedDocument) -> None:
        el = self.b.el(parent, "ram:AdditionalReferencedDocument")
        self.b.el(el, "ram:IssuerAssignedID", doc.id)
        self.b.opt(el, "ram:URIID", doc.uri)
        self.b.el(el, "ram:TypeCode", doc.type_code or "916")
        self.b.opt(el, "ram:Name", doc.description)
        if doc.content:
            self.b.el(
                el,
                "ram:AttachmentBinaryObject",
                base64.b64encode(doc.content).decode("ascii"),
                mimeCode=doc.mime_code,
                filename=doc.filename,
            )
        self.b.opt(el, "ram:ReferenceTypeCode", doc.reference_type_code)

    def _agreement(self, txn: Element) -> None:
        inv = self.invoice
        agreement = self.b.el(txn, "ram:ApplicableHeaderTradeAgreement")
        self.b.opt(agreement, "ram:BuyerReference", inv.buyer_reference)
        self._party(agreement, "ram:SellerTradeParty", inv.seller)
        self._party(agreement, "ram:BuyerTradeParty", inv.buyer, address=self.emits("buyer_postal_address"))
        if inv.tax_representative is not None and self.emits("tax_representative"):
            self._party(agreement, "ram:SellerTaxRepresentativeTradeParty", inv.tax_representative)
        references = self.emits("document_references")
        if references:
            self._reference(agreement, "ram:SellerOrderReferencedDocument", inv.seller_order_reference)
        self._reference(agreement, "ram:BuyerOrderReferencedDocument", inv.buyer_order_reference)
        if references:
            self._reference(agreement, "ram:ContractReferencedDocument", inv.contract_reference)
        if self.emits("attachments"):
            for doc in inv.attachments:
                self._attachment(agreement, doc)
        if references and (inv.project_id or inv.project_name):
            project = self.b.el(agreement, "ram:SpecifiedProcuringProject")
            self.b.el(project, "ram:ID", inv.project_id)
            self.b.el(project, "ram:Name", inv.project_name)

    def _delivery(self, txn: Element) -> None:
        inv = self.invoice
        delivery = self.b.el(txn, "ram:ApplicableHeaderTradeDelivery")
        if inv.ship_to is not None and self.emits("ship_to"):
            self._party(delivery, "ram:ShipToTradeParty", inv.ship_to, address=self.emits("party_postal_address"))
        if inv.delivery_date is not None and self.emits("delivery_date"):
            event = self.b.el(delivery, "ram:ActualDeliverySupplyChainEvent")
            self._date(event, "ram:OccurrenceDateTime", inv.delivery_date)
        if self.emits("document_references"):
            self._reference(delivery, "ram:DespatchAdviceReferencedDocument", inv.despatch_advice_reference)
            self._reference(delivery, "ram:ReceivingAdviceReferencedDocument", inv.receiving_advice_reference)

    def _payment_means(self, parent: Element, means: PaymentMeans) -> None:
        el = self.b.el(parent, "ram:SpecifiedTradeSettlementPaymentMeans")
        self.b.el(el, "ram:TypeCode", str(means.type_code))
        self.b.opt(el, "ram:Information", means.information)
        if means.card_id:
            card = self.b.el(el, "ram:ApplicableTradeSettlementFinancialCard")
            self.b.el(card, "ram:ID", means.card_id)
            self.b.opt(card, "ram:CardholderName", means.card_holder)
        if means.payer_iban:
            self.b.el(self.b.el(el, "ram:PayerPartyDebtorFinancialAccount"), "ram:IBANID", means.payer_iban)
        if means.payee_iban or means.payee_proprietary_id or means.payee_account_name:
            account = self.b.el(el, "ram:PayeePartyCreditorFinancialAccount")
            self.b.opt(account, "ram:IBANID", means.payee_iban)
            self.b.opt(account, "ram:AccountName", means.payee_account_name)
            self.b.opt(account, "ram:ProprietaryID", means.payee_proprietary_id)
        if means.payee_bic:
            institution = self.b.el(el, "ram:PayeeSpecifiedCreditorFinancialInstitution")
            self.b.el(institution, "ram:BICID", means.payee_bic)

    def _trade_tax(self, parent: Element, tax: TradeTax) -> None:
        el = self.b.el(parent, "ram:ApplicableTradeTax")
        self._amount(el, "ram:CalculatedAmount", tax.calculated_amount)
        self.b.el(el, "ram:TypeCode", tax.type_code or "VAT")
        self.b.opt(el, "ram:ExemptionReason", tax.exemption_reason)
        self._amount(el, "ram:BasisAmount", tax.basis_amount)
        self.b.el(el, "ram:CategoryCode", tax.category_code)
        self.b.opt(el, "ram:ExemptionReasonCode", tax.exemption_reason_code)
        self._date(el, "ram:TaxPointDate", tax.tax_point_date, "udt:DateString")
        self.b.opt(el, "ram:DueDateTypeCode", tax.due_date_type_code)
        if tax.category_code != "O":
            self.b.el(el, "ram:RateApplicablePercent", format_percent(tax.rate))

    def _settlement(self, txn: Element) -> None:
        inv = self.invoice
        settlement = self.b.el(txn, "ram:ApplicableHeaderTradeSettlement")
        payment = self.emits("payment_means")
        if payment:
            self.b.opt(settlement, "ram:CreditorReferenceID", inv.creditor_reference_id)
            self.b.opt(settlement, "ram:PaymentReference", inv.payment_reference)
        self.b.opt(settlement, "ram:TaxCurrencyCode", inv.tax_currency)
        self.b.el(settlement, "ram:InvoiceCurrencyCode", inv.currency)
        if inv.payee is not None and self.emits("payee"):
            self._party(settlement, "ram:PayeeTradeParty", inv.payee, address=False)
        if payment:
            for means in inv.payment_means:
                self._payment_means(settlement, means)
        if self.emits("trade_taxes"):
            for tax in inv.trade_taxes:
                self._trade_tax(settlement, tax)
        if self.emits("billing_period") and (inv.billing_period_start or inv.billing_period_end):
            period = self.b.el(settlement, "ram:BillingSpecifiedPeriod")
            self._date(period, "ram:StartDateTime", inv.billing_period_start)
            self._date(period, "ram:EndDateTime", inv.billing_period_end)
        if self.emits("allowances_charges"):
            for ac in inv.allowances_charges:
                self._allowance_charge(settlement, "ram:SpecifiedTradeAllowanceCharge", ac, with_tax=True)
        if self.emits("payment_terms"):
            for terms in inv.payment_terms:
                el = self.b.el(settlement, "ram:SpecifiedTradePaymentTerms")
                self.b.opt(el, "ram:Description", terms.description)
                self._date(el, "ram:DueDateDateTime", terms.due_date)
                self.b.opt(el, "ram:DirectDebitMandateID", terms.direct_debit_mandate_id)
        self._summation(settlement)
        if self.emits("preceding_invoices"):
            for reference in inv.preceding_invoices:
                el = self.b.el(settlement, "ram:InvoiceReferencedDocument")
                self.b.el(el, "ram:IssuerAssignedID", reference.id)
                self._date(el, "ram:FormattedIssueDateTime", reference.issue_date, "qdt:DateTimeString")
        if inv.receivable_account and self.emits("document_references"):
            account = self.b.el(settlement, "ram:ReceivableSpecifiedTradeAccountingAccount")
            self.b.el(account, "ram:ID", inv.receivable_account)

    def _summation(self, settlement: Element) -> None:
        inv = self.invoice
        summation = self.b.el(settlement, "ram:SpecifiedTradeSettlementHeaderMonetarySummation")
        if self.emits("line_total"):
            self._amount(summation, "ram:LineTotalAmount", inv.line_total)
        if self.emits("allowance_charge_totals"):
            self._amount(summation, "ram:ChargeTotalAmount", inv.charge_total)
            self._amount(summation, "ram:AllowanceTotalAmount", inv.allowance_total)
        self._amount(summation, "ram:TaxBasisTotalAmount", inv.tax_basis_total)
        self._amount(summation, "ram:TaxTotalAmount", inv.tax_total, inv.currency)
        if inv.tax_currency and inv.tax_currency != inv.currency:
            self._amount(summation, "ram:TaxTotalAmount", inv.tax_total_accounting, inv.tax_currency)
        if not inv.rounding_amount.is_zero() and self.emits("rounding_amount"):
            self._amount(summation, "ram:RoundingAmount", inv.rounding_amount)
        self._amount(summation, "ram:GrandTotalAmount", inv.grand_total)
        if self.emits("prepaid_total"):
            self._amount(summation, "ram:TotalPrepaidAmount", inv.prepaid_total)
        self._amount(summation, "ram:DuePayableAmount", inv.due_payable)


def build_cii(invoice: Invoice) -> Element:
    return CIIWriter(invoice).build()


def write_cii(invoice: Invoice, *, pretty: bool = True) -> bytes:
    return to_bytes(build_cii(invoice), pretty=pretty)


__all__ = ["CIIWriter", "build_cii", "write_cii"]
