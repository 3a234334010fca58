"""Kernregeln BR-1 bis BR-65."""

from __future__ import annotations

from ..decimals import ZERO, canonical
from ..model import AllowanceCharge, Invoice, Party
from ..profiles import ProfileLevel
from .aggregates import expected_basis
from .report import Report

CREDIT_TRANSFER_CODES = (30, 58)


def check(invoice: Invoice, report: Report) -> None:
    _document(invoice, report)
    _parties(invoice, report)
    _totals_present(invoice, report)
    _lines(invoice, report)
    _periods(invoice, report)
    _document_allowances_charges(invoice, report)
    _line_allowances_charges(invoice, report)
    _breakdown(invoice, report)
    _payment(invoice, report)
    _references(invoice, report)
    _identifier_schemes(invoice, report)


def _document(invoice: Invoice, report: Report) -> None:
    if invoice.profile_level is ProfileLevel.UNKNOWN:
        report.fail("BR-1", f"specification identifier {invoice.specification_id!r} does not identify a known profile")
    if not invoice.invoice_number:
        report.fail("BR-2", "invoice number is empty")
    if invoice.issue_date is None:
        report.fail("BR-3", "invoice issue date is missing")
    if not invoice.type_code:
        report.fail("BR-4", "invoice type code is 0")
    if not invoice.currency:
        report.fail("BR-5", "invoice currency code is empty")


def _country_missing(party: Party) -> bool:
    return party.postal_address is not None and not party.postal_address.country_code


def _parties(invoice: Invoice, report: Report) -> None:
    if not invoice.seller.name:
        report.fail("BR-6", "seller name is empty")
    if not invoice.buyer.name:
        report.fail("BR-7", "buyer name is empty")
    if invoice.seller.postal_address is None:
        report.fail("BR-8", "seller has no postal address")
    elif _country_missing(invoice.seller):
        report.fail("BR-9", "seller country code is empty")
    if invoice.profile_level > ProfileLevel.MINIMUM:
        if invoice.buyer.postal_address is None:
            report.fail("BR-10", "buyer has no postal address")
        elif _country_missing(invoice.buyer):
            report.fail("BR-11", "buyer country code is empty")
    if invoice.payee is not None and not invoice.payee.name:
        report.fail("BR-17", "payee differs from seller but has no name")
    representative = invoice.tax_representative
    if representative is not None:
        if not representative.name:
            report.fail("BR-18", "tax representative has no name")
        if representative.postal_address is None:
            report.fail("BR-19", "tax representative has no postal address")
        elif _country_missing(representative):
            report.fail("BR-20", "tax representative postal address has no country code")
        if not representative.vat_id:
            report.fail("BR-56", "tax representative has no VAT identifier")
    ship_to = invoice.ship_to
    if ship_to is not None and _country_missing(ship_to):
        report.fail("BR-57", "deliver-to address has no country code")


def _totals_present(invoice: Invoice, report: Report) -> None:
    if not invoice.has_line_total():
        report.fail("BR-12", "sum of invoice line net amount (BT-106) is missing")
    if not invoice.has_tax_basis_total():
        report.fail("BR-13", "invoice total amount without VAT (BT-109) is missing")
    if not invoice.has_grand_total():
        report.fail("BR-14", "invoice total amount with VAT (BT-112) is missing")
    if not invoice.has_due_payable():
        report.fail("BR-15", "amount due for payment (BT-115) is missing")


def _lines(invoice: Invoice, report: Report) -> None:
    if invoice.profile_level >= ProfileLevel.BASIC and not invoice.lines:
        report.fail("BR-16", "invoice has no lines")
    for index, line in enumerate(invoice.lines, start=1):
        label = line.line_id or f"#{index}"
        if not line.line_id:
            report.fail("BR-21", f"line #{index} has no line identifier")
        if line.billed_quantity.is_zero():
            report.fail("BR-22", f"line {label} has no invoiced quantity")
        if not line.billed_quantity_unit:
            report.fail("BR-23", f"line {label} has no quantity unit code")
        if not line.has_line_total():
            report.fail("BR-24", f"line {label} has no net amount")
        if not line.item_name:
            report.fail("BR-25", f"line {label} has no item name")
        if not line.has_net_price():
            report.fail("BR-26", f"line {label} has no item net price")
        if line.net_price < ZERO:
            report.fail("BR-27", f"line {label} net price {canonical(line.net_price)} is negative")
        if line.gross_price < ZERO:
            report.fail("BR-28", f"line {label} gross price {canonical(line.gross_price)} is negative")
        for characteristic in line.characteristics:
            if not characteristic.name or not characteristic.value:
                report.fail("BR-54", f"line {label} has an item attribute without name or value")
        if line.global_id and not line.global_id_scheme:
            report.fail("BR-64", f"line {label} item standard identifier {line.global_id!r} has no scheme")
        for classification in line.classifications:
            if classification.code and not classification.list_id:
                report.fail("BR-65", f"line {label} classification {classification.code!r} has no scheme")


def _periods(invoice: Invoice, report: Report) -> None:
    start, end = invoice.billing_period_start, invoice.billing_period_end
    if start and end and end < start:
        report.fail("BR-29", f"invoicing period ends {end.isoformat()} before it starts {start.isoformat()}")
    for line in invoice.lines:
        start, end = line.billing_period_start, line.billing_period_end
        if start and end and end < start:
            report.fail("BR-30", f"line {line.line_id} period ends {end.isoformat()} before it starts {start.isoformat()}")


def _has_reason(ac: AllowanceCharge) -> bool:
    return bool(ac.reason or ac.reason_code)


def _document_allowances_charges(invoice: Invoice, report: Report) -> None:
    for ac in invoice.allowances_charges:
        if ac.is_charge:
            amount_rule, category_rule, reason_rule, negative_rule, base_rule = "BR-36", "BR-37", "BR-38", "BR-39", "BR-40"
            kind = "charge"
        else:
            amount_rule, category_rule, reason_rule, negative_rule, base_rule = "BR-31", "BR-32", "BR-33", "BR-34", "BR-35"
            kind = "allowance"
        if ac.actual_amount.is_zero():
            report.fail(amount_rule, f"document level {kind} has no amount")
        if not ac.tax_category:
            report.fail(category_rule, f"document level {kind} has no VAT category code")
        if not _has_reason(ac):
            report.fail(reason_rule, f"document level {kind} has neither reason nor reason code")
        if ac.actual_amount < ZERO:
            report.fail(negative_rule, f"document level {kind} amount {canonical(ac.actual_amount)} is negative")
        if ac.basis_amount < ZERO:
            report.fail(base_rule, f"document level {kind} base amount {canonical(ac.basis_amount)} is negative")


def _line_allowances_charges(invoice: Invoice, report: Report) -> None:
    for line in invoice.lines:
        for ac in line.allowances:
            if ac.actual_amount.is_zero():
                report.fail("BR-41", f"line {line.line_id} allowance has no amount")
            if not _has_reason(ac):
                report.fail("BR-42", f"line {line.line_id} allowance has neither reason nor reason code")
        for ac in line.charges:
            if ac.actual_amount.is_zero():
                report.fail("BR-43", f"line {line.line_id} charge has no amount")
            if not _has_reason(ac):
                report.fail("BR-44", f"line {line.line_id} charge has neither reason nor reason code")


def _breakdown(invoice: Invoice, report: Report) -> None:
    for tax in invoice.trade_taxes:
        expected = expected_basis(invoice, tax.category_code, tax.rate)
        if tax.basis_amount != expected:
            report.fail(
                "BR-45",
                f"VAT breakdown {tax.category_code} {canonical(tax.rate)}%: taxable amount "
                f"{canonical(tax.basis_amount)}, expected {canonical(expected)}",
            )
        if not tax.category_code:
            report.fail("BR-47", "VAT breakdown has no category code")
    if invoice.tax_currency and invoice.tax_total_accounting.is_zero():
        report.fail("BR-53", f"tax currency {invoice.tax_currency} given but no VAT total in accounting currency")


def _payment(invoice: Invoice, report: Report) -> None:
    for means in invoice.payment_means:
        if not means.type_code:
            report.fail("BR-49", "payment instruction has no payment means type code")
        if means.type_code in CREDIT_TRANSFER_CODES and not means.has_payee_account():
            report.fail("BR-61", f"payment means {means.type_code} requires a payment account identifier")


def _references(invoice: Invoice, report: Report) -> None:
    for doc in invoice.attachments:
        if not doc.id:
            report.fail("BR-52", "supporting document has no reference")
    for reference in invoice.preceding_invoices:
        if not reference.id:
            report.fail("BR-55", "preceding invoice reference has no invoice number")


def _identifier_schemes(invoice: Invoice, report: Report) -> None:
    if invoice.seller.electronic_address and not invoice.seller.electronic_address_scheme:
        report.fail("BR-62", f"seller electronic address {invoice.seller.electronic_address!r} has no scheme")
    if invoice.buyer.electronic_address and not invoice.buyer.electronic_address_scheme:
        report.fail("BR-63", f"buyer electronic address {invoice.buyer.electronic_address!r} has no scheme")


__all__ = ["check"]
