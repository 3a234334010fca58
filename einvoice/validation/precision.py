"""Nachkommastellen-Regeln BR-DEC-*.

Geprüft wird die normalisierte Stellenzahl: ``1.50`` gilt als eine
Nachkommastelle, Null verletzt nie.
"""

from __future__ import annotations

from decimal import Decimal

from ..decimals import MONEY_PLACES, canonical, has_max_decimals
from ..model import Invoice
from .report import Report


def _limit(report: Report, code: str, label: str, value: Decimal, places: int = MONEY_PLACES) -> None:
    if not has_max_decimals(value, places):
        report.fail(code, f"{label} {canonical(value)} has more than {places} decimals")


def check(invoice: Invoice, report: Report) -> None:
    for ac in invoice.allowances:
        _limit(report, "BR-DEC-1", "document allowance amount", ac.actual_amount)
        _limit(report, "BR-DEC-2", "document allowance base amount", ac.basis_amount)
    for ac in invoice.charges:
        _limit(report, "BR-DEC-5", "document charge amount", ac.actual_amount)
        _limit(report, "BR-DEC-6", "document charge base amount", ac.basis_amount)

    _limit(report, "BR-DEC-9", "sum of line net amounts", invoice.line_total)
    _limit(report, "BR-DEC-10", "sum of allowances", invoice.allowance_total)
    _limit(report, "BR-DEC-11", "sum of charges", invoice.charge_total)
    _limit(report, "BR-DEC-12", "total without VAT", invoice.tax_basis_total)
    _limit(report, "BR-DEC-13", "total VAT amount", invoice.tax_total)
    _limit(report, "BR-DEC-14", "total with VAT", invoice.grand_total)
    _limit(report, "BR-DEC-15", "total VAT amount in accounting currency", invoice.tax_total_accounting)
    _limit(report, "BR-DEC-16", "paid amount", invoice.prepaid_total)
    _limit(report, "BR-DEC-17", "rounding amount", invoice.rounding_amount)
    _limit(report, "BR-DEC-18", "amount due", invoice.due_payable)

    for tax in invoice.trade_taxes:
        _limit(report, "BR-DEC-19", f"VAT breakdown {tax.category_code} taxable amount", tax.basis_amount)
        _limit(report, "BR-DEC-20", f"VAT breakdown {tax.category_code} tax amount", tax.calculated_amount)

    for line in invoice.lines:
        _limit(report, "BR-DEC-23", f"line {line.line_id} net amount", line.line_total)
        for ac in line.allowances:
            _limit(report, "BR-DEC-24", f"line {line.line_id} allowance amount", ac.actual_amount)
            _limit(report, "BR-DEC-25", f"line {line.line_id} allowance base amount", ac.basis_amount)
        for ac in line.charges:
            _limit(report, "BR-DEC-27", f"line {line.line_id} charge amount", ac.actual_amount)
            _limit(report, "BR-DEC-28", f"line {line.line_id} charge base amount", ac.basis_amount)


__all__ = ["check"]
