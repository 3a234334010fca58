"""Regeln je Umsatzsteuerkategorie (BR-S, BR-Z, BR-E, BR-AE, BR-IC, BR-G, BR-O, BR-IG, BR-IP).

Die Kategorien S, Z, E, AE, G, L und M folgen demselben Zehn-Regel-Schema
und werden über eine Tabelle von :class:`CategoryRules` abgearbeitet. K und O
weichen davon ab und haben eigene Funktionen.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List

from ..calculate import calculate_tax_amount
from ..decimals import ZERO, canonical, sum_decimals
from ..model import VAT_CATEGORIES, Invoice, TradeTax
from .aggregates import (
    allowances_with,
    categories_in_use,
    category_used,
    charges_with,
    expected_basis,
    lines_with,
    seller_has_tax_id,
    seller_has_vat_id,
)
from .report import Report


def _positive(rate: Decimal) -> bool:
    return rate > ZERO


def _zero(rate: Decimal) -> bool:
    return rate.is_zero()


def _not_negative(rate: Decimal) -> bool:
    return rate >= ZERO


def _reverse_charge_ids(invoice: Invoice) -> bool:
    return seller_has_tax_id(invoice) and bool(invoice.buyer.vat_id or invoice.buyer.legal_id)


def _ipsi_ids(invoice: Invoice) -> bool:
    return seller_has_tax_id(invoice) and not invoice.buyer.vat_id


@dataclass(frozen=True)
class CategoryRules:
    category: str
    prefix: str
    ids_ok: Callable[[Invoice], bool]
    rate_ok: Callable[[Decimal], bool]
    rate_text: str
    proportional: bool
    reason_required: bool


UNIFORM: Dict[str, CategoryRules] = {
    rules.category: rules
    for rules in (
        CategoryRules("S", "BR-S", seller_has_tax_id, _positive, "greater than zero", True, False),
        CategoryRules("Z", "BR-Z", seller_has_tax_id, _zero, "0", False, False),
        CategoryRules("E", "BR-E", seller_has_tax_id, _zero, "0", False, True),
        CategoryRules("AE", "BR-AE", _reverse_charge_ids, _zero, "0", False, True),
        CategoryRules("G", "BR-G", seller_has_vat_id, _zero, "0", False, True),
        CategoryRules("L", "BR-IG", seller_has_tax_id, _not_negative, "0 or greater", True, False),
        CategoryRules("M", "BR-IP", _ipsi_ids, _not_negative, "0 or greater", True, False),
    )
}


def _entries(invoice: Invoice, category: str) -> List[TradeTax]:
    return [tax for tax in invoice.trade_taxes if tax.category_code == category]


def _has_reason(tax: TradeTax) -> bool:
    return bool(tax.exemption_reason or tax.exemption_reason_code)


def _check_rates(invoice: Invoice, category: str, codes: tuple, ok: Callable[[Decimal], bool], text: str, report: Report) -> None:
    line_code, allowance_code, charge_code = codes
    for line in lines_with(invoice, category):
        if not ok(line.tax_rate):
            report.fail(line_code, f"line {line.line_id} VAT rate {canonical(line.tax_rate)} must be {text}")
    for ac in allowances_with(invoice, category):
        if not ok(ac.tax_rate):
            report.fail(allowance_code, f"document allowance VAT rate {canonical(ac.tax_rate)} must be {text}")
    for ac in charges_with(invoice, category):
        if not ok(ac.tax_rate):
            report.fail(charge_code, f"document charge VAT rate {canonical(ac.tax_rate)} must be {text}")


def _check_basis(invoice: Invoice, tax: TradeTax, code: str, report: Report) -> None:
    expected = expected_basis(invoice, tax.category_code, tax.rate)
    if tax.basis_amount != expected:
        report.fail(
            code,
            f"VAT breakdown {tax.category_code} {canonical(tax.rate)}%: taxable amount "
            f"{canonical(tax.basis_amount)}, expected {canonical(expected)}",
        )


def _check_zero_amount(tax: TradeTax, code: str, report: Report) -> None:
    if not tax.calculated_amount.is_zero():
        report.fail(code, f"VAT breakdown {tax.category_code}: tax amount {canonical(tax.calculated_amount)}, expected 0")


def check_uniform(invoice: Invoice, rules: CategoryRules, report: Report) -> None:
    category, p = rules.category, rules.prefix
    entries = _entries(invoice, category)

    if category_used(invoice, category) and not entries:
        report.fail(f"{p}-1", f"category {category} is used but missing from the VAT breakdown")
    if lines_with(invoice, category) and not rules.ids_ok(invoice):
        report.fail(f"{p}-2", f"line with category {category} but required VAT identifiers are missing")
    if allowances_with(invoice, category) and not rules.ids_ok(invoice):
        report.fail(f"{p}-3", f"document allowance with category {category} but required VAT identifiers are missing")
    if charges_with(invoice, category) and not rules.ids_ok(invoice):
        report.fail(f"{p}-4", f"document charge with category {category} but required VAT identifiers are missing")

    _check_rates(invoice, category, (f"{p}-5", f"{p}-6", f"{p}-7"), rules.rate_ok, rules.rate_text, report)

    for tax in entries:
        _check_basis(invoice, tax, f"{p}-8", report)
    for tax in entries:
        if rules.proportional:
            expected = calculate_tax_amount(tax.basis_amount, tax.rate)
            if tax.calculated_amount != expected:
                report.fail(
                    f"{p}-9",
                    f"VAT breakdown {category} {canonical(tax.rate)}%: tax amount "
                    f"{canonical(tax.calculated_amount)}, expected {canonical(expected)}",
                )
        else:
            _check_zero_amount(tax, f"{p}-9", report)
    for tax in entries:
        if rules.reason_required and not _has_reason(tax):
            report.fail(f"{p}-10", f"VAT breakdown {category} has no exemption reason")
        elif not rules.reason_required and _has_reason(tax):
            report.fail(
                f"{p}-10",
                f"VAT breakdown {category} must not carry exemption reason {tax.exemption_reason or tax.exemption_reason_code!r}",
            )


def check_intra_community(invoice: Invoice, report: Report) -> None:
    entries = _entries(invoice, "K")
    used = category_used(invoice, "K")

    if used and len(entries) != 1:
        report.fail("BR-IC-1", f"category K is used, VAT breakdown holds {len(entries)} K entries instead of exactly one")
    if used and not (seller_has_vat_id(invoice) and invoice.buyer.vat_id):
        report.fail("BR-IC-2", "intra-community supply requires seller and buyer VAT identifiers")

    _check_rates(invoice, "K", ("BR-IC-3", "BR-IC-4", "BR-IC-5"), _zero, "0", report)

    if entries:
        basis = sum_decimals(tax.basis_amount for tax in entries)
        expected = expected_basis(invoice, "K")
        if basis != expected:
            report.fail("BR-IC-6", f"K taxable amount {canonical(basis)}, expected {canonical(expected)}")
    for tax in entries:
        _check_zero_amount(tax, "BR-IC-7", report)
    for tax in entries:
        _check_basis(invoice, tax, "BR-IC-8", report)
    for tax in entries:
        _check_zero_amount(tax, "BR-IC-9", report)
    for tax in entries:
        if not _has_reason(tax):
            report.fail("BR-IC-10", "VAT breakdown K has no exemption reason")

    if entries:
        if not (invoice.delivery_date or invoice.billing_period_start or invoice.billing_period_end):
            report.fail("BR-IC-11", "intra-community supply without delivery date or invoicing period")
        if invoice.ship_to is None or not invoice.ship_to.country_code:
            report.fail("BR-IC-12", "intra-community supply without deliver-to country code")


def check_not_subject(invoice: Invoice, report: Report) -> None:
    entries = _entries(invoice, "O")

    if category_used(invoice, "O") and len(entries) != 1:
        report.fail("BR-O-1", f"category O is used, VAT breakdown holds {len(entries)} O entries instead of exactly one")

    representative = invoice.tax_representative
    vat_ids = [invoice.seller.vat_id, invoice.buyer.vat_id, representative.vat_id if representative else ""]
    present = ", ".join(v for v in vat_ids if v)
    if present:
        if lines_with(invoice, "O"):
            report.fail("BR-O-2", f"line with category O but VAT identifiers present: {present}")
        if allowances_with(invoice, "O"):
            report.fail("BR-O-3", f"document allowance with category O but VAT identifiers present: {present}")
        if charges_with(invoice, "O"):
            report.fail("BR-O-4", f"document charge with category O but VAT identifiers present: {present}")

    _check_rates(invoice, "O", ("BR-O-5", "BR-O-6", "BR-O-7"), _zero, "absent", report)

    for tax in entries:
        _check_basis(invoice, tax, "BR-O-8", report)
    for tax in entries:
        _check_zero_amount(tax, "BR-O-9", report)
    for tax in entries:
        if not _has_reason(tax):
            report.fail("BR-O-10", "VAT breakdown O has no exemption reason")

    if not entries:
        return
    if len(invoice.trade_taxes) > 1:
        report.fail("BR-O-11", f"VAT breakdown with category O holds {len(invoice.trade_taxes)} entries")
    for line in invoice.lines:
        if line.tax_category != "O":
            report.fail("BR-O-12", f"line {line.line_id} has category {line.tax_category!r} next to O")
    for ac in invoice.allowances_charges:
        if ac.tax_category != "O":
            kind = "charge" if ac.is_charge else "allowance"
            report.fail("BR-O-13", f"document {kind} has category {ac.tax_category!r} next to O")
    others = sorted({tax.category_code for tax in invoice.trade_taxes if tax.category_code != "O"})
    if others:
        report.fail("BR-O-14", f"VAT breakdown mixes O with {', '.join(others)}")


def check(invoice: Invoice, report: Report) -> None:
    used = set(categories_in_use(invoice))
    for category in VAT_CATEGORIES:
        if category not in used:
            continue
        if category == "K":
            check_intra_community(invoice, report)
        elif category == "O":
            check_not_subject(invoice, report)
        else:
            check_uniform(invoice, UNIFORM[category], report)


__all__ = ["CategoryRules", "UNIFORM", "check", "check_uniform", "check_intra_community", "check_not_subject"]
