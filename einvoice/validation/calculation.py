"""Berechnungs- und Konsistenzregeln BR-CO-*."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ..calculate import calculate_tax_amount
from ..decimals import ZERO, canonical, sum_decimals
from ..model import AllowanceCharge, Invoice
from .aggregates import has_country_prefix
from .core import CREDIT_TRANSFER_CODES
from .report import Report


def check(invoice: Invoice, report: Report) -> None:
    for tax in invoice.trade_taxes:
        if tax.tax_point_date is not None and tax.due_date_type_code:
            report.fail(
                "BR-CO-3",
                f"VAT breakdown {tax.category_code} has tax point date {tax.tax_point_date.isoformat()} "
                f"and due date type code {tax.due_date_type_code}",
            )
    for index, line in enumerate(invoice.lines, start=1):
        if not line.tax_category:
            report.fail("BR-CO-4", f"line {line.line_id or f'#{index}'} has no VAT category code")

    _reason_pairs(invoice.allowances, "BR-CO-5", "document level allowance", report)
    _reason_pairs(invoice.charges, "BR-CO-6", "document level charge", report)
    for line in invoice.lines:
        _reason_pairs(line.allowances, "BR-CO-7", f"line {line.line_id} allowance", report)
        _reason_pairs(line.charges, "BR-CO-8", f"line {line.line_id} charge", report)

    _vat_prefixes(invoice, report)
    _totals(invoice, report)

    for tax in invoice.trade_taxes:
        expected = calculate_tax_amount(tax.basis_amount, tax.rate)
        if tax.calculated_amount != expected:
            report.fail(
                "BR-CO-17",
                f"VAT breakdown {tax.category_code} {canonical(tax.rate)}%: tax amount "
                f"{canonical(tax.calculated_amount)}, expected {canonical(expected)}",
            )

    # Ohne Positionen und Zu-/Abschläge gibt es nichts aufzuschlüsseln.
    if (invoice.lines or invoice.allowances_charges) and not invoice.trade_taxes:
        report.fail("BR-CO-18", "invoice has no VAT breakdown")

    if invoice.due_payable > ZERO and not any(t.due_date or t.description for t in invoice.payment_terms):
        report.fail(
            "BR-CO-25",
            f"amount due {canonical(invoice.due_payable)} is positive but neither due date nor payment terms are given",
        )

    seller = invoice.seller
    if not (seller.ids or seller.global_ids or seller.legal_id or seller.vat_id):
        report.fail("BR-CO-26", "seller has neither identifier, legal registration nor VAT identifier")

    for means in invoice.payment_means:
        if means.type_code in CREDIT_TRANSFER_CODES and not (means.payee_iban or means.payee_proprietary_id):
            report.fail("BR-CO-27", f"payment means {means.type_code} has neither IBAN nor proprietary account id")


def _reason_pairs(items: Iterable[AllowanceCharge], code: str, label: str, report: Report) -> None:
    for ac in items:
        if bool(ac.reason) != bool(ac.reason_code):
            report.fail(code, f"{label}: reason {ac.reason!r} and reason code {ac.reason_code!r} must be given together")


def _vat_prefixes(invoice: Invoice, report: Report) -> None:
    candidates = [("seller", invoice.seller.vat_id), ("buyer", invoice.buyer.vat_id)]
    if invoice.tax_representative is not None:
        candidates.append(("tax representative", invoice.tax_representative.vat_id))
    for role, vat_id in candidates:
        if vat_id and not has_country_prefix(vat_id):
            report.fail("BR-CO-9", f"{role} VAT identifier {vat_id!r} has no ISO 3166-1 country prefix")


def _mismatch(report: Report, code: str, label: str, actual: Decimal, expected: Decimal) -> None:
    if actual != expected:
        report.fail(code, f"{label} is {canonical(actual)}, expected {canonical(expected)}")


def _totals(invoice: Invoice, report: Report) -> None:
    _mismatch(report, "BR-CO-10", "sum of line net amounts", invoice.line_total,
              sum_decimals(line.line_total for line in invoice.lines))
    _mismatch(report, "BR-CO-11", "sum of document allowances", invoice.allowance_total,
              sum_decimals(ac.actual_amount for ac in invoice.allowances))
    _mismatch(report, "BR-CO-12", "sum of document charges", invoice.charge_total,
              sum_decimals(ac.actual_amount for ac in invoice.charges))
    _mismatch(report, "BR-CO-13", "total without VAT", invoice.tax_basis_total,
              invoice.line_total - invoice.allowance_total + invoice.charge_total)
    _mismatch(report, "BR-CO-14", "total VAT amount", invoice.tax_total,
              sum_decimals(tax.calculated_amount for tax in invoice.trade_taxes))
    _mismatch(report, "BR-CO-15", "total with VAT", invoice.grand_total,
              invoice.tax_basis_total + invoice.tax_total)
    _mismatch(report, "BR-CO-16", "amount due", invoice.due_payable,
              invoice.grand_total - invoice.prepaid_total + invoice.rounding_amount)


__all__ = ["check"]
