"""UBL-Writer: ``Invoice`` → ``Invoice-2`` bzw. ``CreditNote-2`` (Typcode 381)."""

from __future__ import annotations

import base64
from decimal import Decimal
from typing import Optional

from ..dates import format_date_ubl
from ..decimals import format_amount, format_percent, format_quantity
from ..model import TYPE_CODE_CREDIT_NOTE, AllowanceCharge, AttachedDocument, Invoice, InvoiceLine, Party, PostalAddress
from ..profiles import ProfileLevel, SchemaType, effective_level, emits
from ..xmlutil import Builder, Element, to_bytes
from .parser import CREDIT_NOTE_NS, CREDITOR_ID_SCHEME, INVOICE_NS, NOT_APPLICABLE, NS


class UBLWriter:
    def __init__(self, invoice: Invoice) -> None:
        self.invoice = invoice
        self.level: ProfileLevel = effective_level(invoice.specification_id)
        self.credit_note = invoice.type_code == TYPE_CODE_CREDIT_NOTE
        self.prefix = "CreditNote" if self.credit_note else "Invoice"
        root_ns = CREDIT_NOTE_NS if self.credit_note else INVOICE_NS
        self.b = Builder({None: root_ns, **NS}, None)

    def emits(self, field: str) -> bool:
        return emits(field, SchemaType.UBL, self.level)

    def build(self) -> Element:
        root = self.b.root(self.prefix)
        self._header(root)
        self._parties(root)
        self._payment(root)
        if self.emits("allowances_charges"):
            for ac in self.invoice.allowances_charges:
                self._allowance_charge(root, ac, with_tax=True)
        self._tax_totals(root)
        self._monetary_total(root)
        if self.emits("line_items"):
            for line in self.invoice.lines:
                self._line(root, line)
        return root

    # -- helpers ---------------------------------------------------------

    def _amount(self, parent: Element, tag: str, value: Decimal) -> Element:
        return self.b.el(parent, tag, format_amount(value), currencyID=self.invoice.currency)

    def _address(self, parent: Element, tag: str, address: Optional[PostalAddress]) -> None:
        if address is None:
            return
        el = self.b.el(parent, tag)
        self.b.opt(el, "cbc:StreetName", address.line1)
        self.b.opt(el, "cbc:AdditionalStreetName", address.line2)
        self.b.opt(el, "cbc:CityName", address.city)
        self.b.opt(el, "cbc:PostalZone", address.postcode)
        self.b.opt(el, "cbc:CountrySubentity", address.subdivision)
        if address.line3:
            self.b.el(self.b.el(el, "cac:AddressLine"), "cbc:Line", address.line3)
        if address.country_code:
            self.b.el(self.b.el(el, "cac:Country"), "cbc:IdentificationCode", address.country_code)

    def _identifications(self, el: Element, party: Party, creditor_id: str = "") -> None:
        for global_id in party.global_ids:
            self.b.el(self.b.el(el, "cac:PartyIdentification"), "cbc:ID", global_id.id, schemeID=global_id.scheme)
        for party_id in party.ids:
            self.b.el(self.b.el(el, "cac:PartyIdentification"), "cbc:ID", party_id)
        if creditor_id:
            self.b.el(self.b.el(el, "cac:PartyIdentification"), "cbc:ID", creditor_id, schemeID=CREDITOR_ID_SCHEME)

    def _tax_schemes(self, el: Element, party: Party) -> None:
        for company_id, scheme in ((party.vat_id, "VAT"), (party.tax_registration_id, "FC")):
            if company_id:
                tax_scheme = self.b.el(el, "cac:PartyTaxScheme")
                self.b.el(tax_scheme, "cbc:CompanyID", company_id)
                self.b.el(self.b.el(tax_scheme, "cac:TaxScheme"), "cbc:ID", scheme)

    def _trading_party(self, parent: Element, tag: str, party: Party, *, creditor_id: str = "", address: bool = True) -> None:
        el = self.b.el(self.b.el(parent, tag), "cac:Party")
        if party.electronic_address and self.emits("party_electronic_address"):
            self.b.el(el, "cbc:EndpointID", party.electronic_address, schemeID=party.electronic_address_scheme)
        self._identifications(el, party, creditor_id)
        legal = party.legal_organization
        if legal is not None and legal.trading_name:
            self.b.el(self.b.el(el, "cac:PartyName"), "cbc:Name", legal.trading_name)
        if address:
            self._address(el, "cac:PostalAddress", party.postal_address)
        self._tax_schemes(el, party)
        if party.name or (legal is not None and legal.id):
            entity = self.b.el(el, "cac:PartyLegalEntity")
            self.b.opt(entity, "cbc:RegistrationName", party.name)
            if legal is not None and legal.id:
                self.b.el(entity, "cbc:CompanyID", legal.id, schemeID=legal.scheme)
        if party.contacts and self.emits("party_contact"):
            contact = party.contacts[0]
            ct = self.b.el(el, "cac:Contact")
            self.b.opt(ct, "cbc:Name", contact.name)
            self.b.opt(ct, "cbc:Telephone", contact.phone)
            self.b.opt(ct, "cbc:ElectronicMail", contact.email)

    def _named_party(self, parent: Element, tag: str, party: Party, *, creditor_id: str = "") -> None:
        el = self.b.el(parent, tag)
        self._identifications(el, party, creditor_id)
        self.b.el(self.b.el(el, "cac:PartyName"), "cbc:Name", party.name)
        self._address(el, "cac:PostalAddress", party.postal_address)
        self._tax_schemes(el, party)
        legal = party.legal_organization
        if legal is not None and legal.id:
            entity = self.b.el(el, "cac:PartyLegalEntity")
            self.b.el(entity, "cbc:CompanyID", legal.id, schemeID=legal.scheme)

    def _allowance_charge(self, parent: Element, ac: AllowanceCharge, *, with_tax: bool) -> None:
        el = self.b.el(parent, "cac:AllowanceCharge")
        self.b.el(el, "cbc:ChargeIndicator", "true" if ac.is_charge else "false")
        self.b.opt(el, "cbc:AllowanceChargeReasonCode", ac.reason_code)
        self.b.opt(el, "cbc:AllowanceChargeReason", ac.reason)
        if not ac.calculation_percent.is_zero():
            self.b.el(el, "cbc:MultiplierFactorNumeric", format_percent(ac.calculation_percent))
        self._amount(el, "cbc:Amount", ac.actual_amount)
        if not ac.basis_amount.is_zero():
            self._amount(el, "cbc:BaseAmount", ac.basis_amount)
        if with_tax:
            category = self.b.el(el, "cac:TaxCategory")
            self.b.el(category, "cbc:ID", ac.tax_category)
            if ac.tax_category != "O":
                self.b.el(category, "cbc:Percent", format_percent(ac.tax_rate))
            self.b.el(self.b.el(category, "cac:TaxScheme"), "cbc:ID", ac.tax_type_code or "VAT")

    def _attachment(self, parent: Element, doc: AttachedDocument) -> None:
        el = self.b.el(parent, "cac:AdditionalDocumentReference")
        self.b.el(el, "cbc:ID", doc.id, schemeID=doc.reference_type_code)
        if doc.type_code and doc.type_code != "916":
            self.b.el(el, "cbc:DocumentTypeCode", doc.type_code)
        self.b.opt(el, "cbc:DocumentDescription", doc.description)
        if doc.content or doc.uri:
            attachment = self.b.el(el, "cac:Attachment")
            if doc.content:
                self.b.el(
                    attachment,
                    "cbc:EmbeddedDocumentBinaryObject",
                    base64.b64encode(doc.content).decode("ascii"),
                    mimeCode=doc.mime_code,
                    filename=doc.filename,
                )
            if doc.uri:
                self.b.el(self.b.el(attachment, "cac:ExternalReference"), "cbc:URI", doc.uri)

    # -- document --------------------------------------------------------

    def _header(self, root: Element) -> None:
        inv = self.invoice
        self.b.el(root, "cbc:CustomizationID", inv.specification_id)
        if inv.business_process_id and self.emits("business_process"):
            self.b.el(root, "cbc:ProfileID", inv.business_process_id)
        self.b.el(root, "cbc:ID", inv.invoice_number)
        if inv.issue_date is not None:
            self.b.el(root, "cbc:IssueDate", format_date_ubl(inv.issue_date))
        due_date = self._due_date()
        if due_date is not None and not self.credit_note:
            self.b.el(root, "cbc:DueDate", format_date_ubl(due_date))
        self.b.el(root, f"cbc:{self.prefix}TypeCode", str(inv.type_code))
        if self.emits("notes"):
            for note in inv.notes:
                text = f"#{note.subject_code}#{note.text}" if note.subject_code else note.text
                self.b.el(root, "cbc:Note", text)
        tax_point_date = next((t.tax_point_date for t in inv.trade_taxes if t.tax_point_date), None)
        if tax_point_date is not None:
            self.b.el(root, "cbc:TaxPointDate", format_date_ubl(tax_point_date))
        self.b.el(root, "cbc:DocumentCurrencyCode", inv.currency)
        self.b.opt(root, "cbc:TaxCurrencyCode", inv.tax_currency)
        self.b.opt(root, "cbc:AccountingCost", inv.receivable_account)
        self.b.opt(root, "cbc:BuyerReference", inv.buyer_reference)

        due_date_code = next((t.due_date_type_code for t in inv.trade_taxes if t.due_date_type_code), "")
        has_period = self.emits("billing_period") and (inv.billing_period_start or inv.billing_period_end)
        if has_period or due_date_code:
            period = self.b.el(root, "cac:InvoicePeriod")
            if has_period and inv.billing_period_start:
                self.b.el(period, "cbc:StartDate", format_date_ubl(inv.billing_period_start))
            if has_period and inv.billing_period_end:
                self.b.el(period, "cbc:EndDate", format_date_ubl(inv.billing_period_end))
            self.b.opt(period, "cbc:DescriptionCode", due_date_code)

        if inv.buyer_order_reference or inv.seller_order_reference:
            order = self.b.el(root, "cac:OrderReference")
            self.b.el(order, "cbc:ID", inv.buyer_order_reference or NOT_APPLICABLE)
            self.b.opt(order, "cbc:SalesOrderID", inv.seller_order_reference)
        if self.emits("preceding_invoices"):
            for reference in inv.preceding_invoices:
                ref = self.b.el(self.b.el(root, "cac:BillingReference"), "cac:InvoiceDocumentReference")
                self.b.el(ref, "cbc:ID", reference.id)
                if reference.issue_date is not None:
                    self.b.el(ref, "cbc:IssueDate", format_date_ubl(reference.issue_date))
        for tag, value in (
            ("cac:DespatchDocumentReference", inv.despatch_advice_reference),
            ("cac:ReceiptDocumentReference", inv.receiving_advice_reference),
            ("cac:ContractDocumentReference", inv.contract_reference),
        ):
            if value:
                self.b.el(self.b.el(root, tag), "cbc:ID", value)
        if self.emits("attachments"):
            for doc in inv.attachments:
                self._attachment(root, doc)
        if inv.project_id:
            self.b.el(self.b.el(root, "cac:ProjectReference"), "cbc:ID", inv.project_id)

    def _due_date(self):
        return next((t.due_date for t in self.invoice.payment_terms if t.due_date), None)

    def _parties(self, root: Element) -> None:
        inv = self.invoice
        creditor_on_payee = inv.payee is not None
        self._trading_party(
            root,
            "cac:AccountingSupplierParty",
            inv.seller,
            creditor_id="" if creditor_on_payee else inv.creditor_reference_id,
        )
        self._trading_party(root, "cac:AccountingCustomerParty", inv.buyer, address=self.emits("buyer_postal_address"))
        if inv.payee is not None and self.emits("payee"):
            self._named_party(root, "cac:PayeeParty", inv.payee, creditor_id=inv.creditor_reference_id)
        if inv.tax_representative is not None and self.emits("tax_representative"):
            self._named_party(root, "cac:TaxRepresentativeParty", inv.tax_representative)
        ship_to = inv.ship_to if self.emits("ship_to") else None
        delivery_date = inv.delivery_date if self.emits("delivery_date") else None
        if ship_to is None and delivery_date is None:
            return
        delivery = self.b.el(root, "cac:Delivery")
        if delivery_date is not None:
            self.b.el(delivery, "cbc:ActualDeliveryDate", format_date_ubl(delivery_date))
        if ship_to is None:
            return
        location_id = ship_to.global_ids[0] if ship_to.global_ids else None
        if location_id is not None or ship_to.ids or ship_to.postal_address is not None:
            location = self.b.el(delivery, "cac:DeliveryLocation")
            if location_id is not None:
                self.b.el(location, "cbc:ID", location_id.id, schemeID=location_id.scheme)
            elif ship_to.ids:
                self.b.el(location, "cbc:ID", ship_to.ids[0])
            self._address(location, "cac:Address", ship_to.postal_address)
        if ship_to.name:
            self.b.el(self.b.el(self.b.el(delivery, "cac:DeliveryParty"), "cac:PartyName"), "cbc:Name", ship_to.name)

    def _payment(self, root: Element) -> None:
        inv = self.invoice
        if not self.emits("payment_means"):
            return
        mandate_id = next((t.direct_debit_mandate_id for t in inv.payment_terms if t.direct_debit_mandate_id), "")
        due_date = self._due_date()
        for index, means in enumerate(inv.payment_means):
            el = self.b.el(root, "cac:PaymentMeans")
            self.b.el(el, "cbc:PaymentMeansCode", str(means.type_code), name=means.information)
            if self.credit_note and due_date is not None and index == 0:
                self.b.el(el, "cbc:PaymentDueDate", format_date_ubl(due_date))
            if index == 0:
                self.b.opt(el, "cbc:PaymentID", inv.payment_reference)
            if means.card_id:
                card = self.b.el(el, "cac:CardAccount")
                self.b.el(card, "cbc:PrimaryAccountNumberID", means.card_id)
                self.b.el(card, "cbc:NetworkID", "NA")
                self.b.opt(card, "cbc:HolderName", means.card_holder)
            account_id = means.payee_iban or means.payee_proprietary_id
            if account_id or means.payee_account_name or means.payee_bic:
                account = self.b.el(el, "cac:PayeeFinancialAccount")
                self.b.el(account, "cbc:ID", account_id)
                self.b.opt(account, "cbc:Name", means.payee_account_name)
                if means.payee_bic:
                    self.b.el(self.b.el(account, "cac:FinancialInstitutionBranch"), "cbc:ID", means.payee_bic)
            if means.payer_iban or (mandate_id and index == 0):
                mandate = self.b.el(el, "cac:PaymentMandate")
                if index == 0:
                    self.b.opt(mandate, "cbc:ID", mandate_id)
                if means.payer_iban:
                    self.b.el(self.b.el(mandate, "cac:PayerFinancialAccount"), "cbc:ID", means.payer_iban)
        if self.emits("payment_terms"):
            for terms in inv.payment_terms:
                if terms.description:
                    self.b.el(self.b.el(root, "cac:PaymentTerms"), "cbc:Note", terms.description)

    def _tax_totals(self, root: Element) -> None:
        inv = self.invoice
        total = self.b.el(root, "cac:TaxTotal")
        self._amount(total, "cbc:TaxAmount", inv.tax_total)
        if self.emits("trade_taxes"):
            for tax in inv.trade_taxes:
                subtotal = self.b.el(total, "cac:TaxSubtotal")
                self._amount(subtotal, "cbc:TaxableAmount", tax.basis_amount)
                self._amount(subtotal, "cbc:TaxAmount", tax.calculated_amount)
                category = self.b.el(subtotal, "cac:TaxCategory")
                self.b.el(category, "cbc:ID", tax.category_code)
                if tax.category_code != "O":
                    self.b.el(category, "cbc:Percent", format_percent(tax.rate))
                self.b.opt(category, "cbc:TaxExemptionReasonCode", tax.exemption_reason_code)
                self.b.opt(category, "cbc:TaxExemptionReason", tax.exemption_reason)
                self.b.el(self.b.el(category, "cac:TaxScheme"), "cbc:ID", tax.type_code or "VAT")
        if inv.tax_currency and inv.tax_currency != inv.currency:
            accounting = self.b.el(root, "cac:TaxTotal")
            self.b.el(accounting, "cbc:TaxAmount", format_amount(inv.tax_total_accounting), currencyID=inv.tax_currency)

    def _monetary_total(self, root: Element) -> None:
        inv = self.invoice
        total = self.b.el(root, "cac:LegalMonetaryTotal")
        self._amount(total, "cbc:LineExtensionAmount", inv.line_total)
        self._amount(total, "cbc:TaxExclusiveAmount", inv.tax_basis_total)
        self._amount(total, "cbc:TaxInclusiveAmount", inv.grand_total)
        if not inv.allowance_total.is_zero():
            self._amount(total, "cbc:AllowanceTotalAmount", inv.allowance_total)
        if not inv.charge_total.is_zero():
            self._amount(total, "cbc:ChargeTotalAmount", inv.charge_total)
        if not inv.prepaid_total.is_zero():
            self._amount(total, "cbc:PrepaidAmount", inv.prepaid_total)
        if not inv.rounding_amount.is_zero():
            self._amount(total, "cbc:PayableRoundingAmount", inv.rounding_amount)
        self._amount(total, "cbc:PayableAmount", inv.due_payable)

    # -- lines -----------------------------------------------------------

    def _line(self, root: Element, line: InvoiceLine) -> None:
        el = self.b.el(root, f"cac:{self.prefix}Line")
        self.b.el(el, "cbc:ID", line.line_id)
        self.b.opt(el, "cbc:Note", line.note)
        quantity_tag = "cbc:CreditedQuantity" if self.credit_note else "cbc:InvoicedQuantity"
        self.b.el(el, quantity_tag, format_quantity(line.billed_quantity), unitCode=line.billed_quantity_unit)
        self._amount(el, "cbc:LineExtensionAmount", line.line_total)
        self.b.opt(el, "cbc:AccountingCost", line.accounting_reference)
        if line.billing_period_start or line.billing_period_end:
            period = self.b.el(el, "cac:InvoicePeriod")
            if line.billing_period_start:
                self.b.el(period, "cbc:StartDate", format_date_ubl(line.billing_period_start))
            if line.billing_period_end:
                self.b.el(period, "cbc:EndDate", format_date_ubl(line.billing_period_end))
        if line.order_line_reference:
            self.b.el(self.b.el(el, "cac:OrderLineReference"), "cbc:LineID", line.order_line_reference)
        if line.object_id:
            reference = self.b.el(el, "cac:DocumentReference")
            self.b.el(reference, "cbc:ID", line.object_id)
            self.b.el(reference, "cbc:DocumentTypeCode", "130")
        for ac in [*line.allowances, *line.charges]:
            self._allowance_charge(el, ac, with_tax=False)

        item = self.b.el(el, "cac:Item")
        self.b.opt(item, "cbc:Description", line.description)
        self.b.el(item, "cbc:Name", line.item_name)
        if line.buyer_item_id:
            self.b.el(self.b.el(item, "cac:BuyersItemIdentification"), "cbc:ID", line.buyer_item_id)
        if line.seller_item_id:
            self.b.el(self.b.el(item, "cac:SellersItemIdentification"), "cbc:ID", line.seller_item_id)
        if line.global_id:
            standard = self.b.el(item, "cac:StandardItemIdentification")
            self.b.el(standard, "cbc:ID", line.global_id, schemeID=line.global_id_scheme)
        if line.origin_country:
            self.b.el(self.b.el(item, "cac:OriginCountry"), "cbc:IdentificationCode", line.origin_country)
        for classification in line.classifications:
            self.b.el(
                self.b.el(item, "cac:CommodityClassification"),
                "cbc:ItemClassificationCode",
                classification.code,
                listID=classification.list_id,
                listVersionID=classification.list_version_id,
            )
        category = self.b.el(item, "cac:ClassifiedTaxCategory")
        self.b.el(category, "cbc:ID", line.tax_category)
        if line.tax_category != "O":
            self.b.el(category, "cbc:Percent", format_percent(line.tax_rate))
        self.b.el(self.b.el(category, "cac:TaxScheme"), "cbc:ID", line.tax_type_code or "VAT")
        for characteristic in line.characteristics:
            prop = self.b.el(item, "cac:AdditionalItemProperty")
            self.b.el(prop, "cbc:Name", characteristic.name)
            self.b.el(prop, "cbc:Value", characteristic.value)

        price = self.b.el(el, "cac:Price")
        self.b.el(price, "cbc:PriceAmount", format_quantity(line.net_price), currencyID=self.invoice.currency)
        if not line.base_quantity.is_zero():
            self.b.el(price, "cbc:BaseQuantity", format_quantity(line.base_quantity), unitCode=line.base_quantity_unit)
        if not line.gross_price.is_zero() or line.price_allowances:
            discount = sum((ac.actual_amount for ac in line.price_allowances), Decimal("0"))
            ac = self.b.el(price, "cac:AllowanceCharge")
            self.b.el(ac, "cbc:ChargeIndicator", "false")
            self.b.el(ac, "cbc:Amount", format_quantity(discount), currencyID=self.invoice.currency)
            self.b.el(ac, "cbc:BaseAmount", format_quantity(line.gross_price), currencyID=self.invoice.currency)


def build_ubl(invoice: Invoice) -> Element:
    return UBLWriter(invoice).build()


def write_ubl(invoice: Invoice, *, pretty: bool = True) -> bytes:
    return to_bytes(build_ubl(invoice), pretty=pretty)


__all__ = ["UBLWriter", "build_ubl", "write_ubl"]
