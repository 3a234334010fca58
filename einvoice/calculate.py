"""Berechnung abgeleiteter Beträge (Steueraufschlüsselung und Summen).

Alle Funktionen sind idempotent: ein zweiter Aufruf mit derselben Eingabe
liefert identische Werte. Gerundet wird ausschließlich an den dokumentierten
Stellen (Bemessungsgrundlage, Steuerbetrag, Positionsbetrag).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from .decimals import HUNDRED, ZERO, round_half_up, sum_decimals
from .logging import get_logger
from .model import Invoice, InvoiceLine, TradeTax

log = get_logger(__name__)

BucketKey = Tuple[str, Decimal]


def _key(category: str, rate: Decimal) -> BucketKey:
    # Decimal vergleicht und hasht wertbasiert: 19 und 19.00 teilen einen Bucket.
    return category, rate


def calculate_tax_amount(basis: Decimal, rate: Decimal) -> Decimal:
    return round_half_up(basis * rate / HUNDRED)


def derive_tax_breakdown(invoice: Invoice, exemption_reasons: Optional[Mapping[str, str]] = None) -> None:
    """Baut ``invoice.trade_taxes`` aus Positionen und Belegzu-/abschlägen neu auf.

    Je (Kategorie, Satz) entsteht genau ein Eintrag in der Reihenfolge des
    ersten Auftretens. Befreiungsgründe für Nullsätze kommen aus
    ``exemption_reasons``; die Zuordnung wird nur gelesen. Fehlt eine
    Kategorie darin, bleibt ein bereits vorhandener Grund erhalten.
    """

    reasons = dict(exemption_reasons or {})
    previous: Dict[BucketKey, TradeTax] = {_key(t.category_code, t.rate): t for t in invoice.trade_taxes}
    rates: Dict[BucketKey, Decimal] = {}
    bases: Dict[BucketKey, Decimal] = {}

    def add(category: str, rate: Decimal, amount: Decimal) -> None:
        key = _key(category, rate)
        rates.setdefault(key, rate)
        bases[key] = bases.get(key, ZERO) + amount

    for line in invoice.lines:
        add(line.tax_category, line.tax_rate, line.line_total)
    for ac in invoice.allowances_charges:
        add(ac.tax_category, ac.tax_rate, ac.actual_amount if ac.is_charge else -ac.actual_amount)

    taxes: List[TradeTax] = []
    for key, raw_basis in bases.items():
        category, _ = key
        rate = rates[key]
        basis = round_half_up(raw_basis)
        old = previous.get(key)
        tax = TradeTax(
            category_code=category,
            rate=rate,
            basis_amount=basis,
            calculated_amount=calculate_tax_amount(basis, rate),
            exemption_reason_code=old.exemption_reason_code if old else "",
            tax_point_date=old.tax_point_date if old else None,
            due_date_type_code=old.due_date_type_code if old else "",
        )
        if rate.is_zero():
            tax.exemption_reason = reasons.get(category, old.exemption_reason if old else "")
        taxes.append(tax)
    invoice.trade_taxes = taxes
    log.debug("derived %d tax breakdown entries for %s", len(taxes), invoice.invoice_number)


def update_allowances_and_charges(invoice: Invoice) -> None:
    invoice.allowance_total = sum_decimals(ac.actual_amount for ac in invoice.allowances)
    invoice.charge_total = sum_decimals(ac.actual_amount for ac in invoice.charges)


def update_totals(invoice: Invoice) -> None:
    """Setzt die Summen zurück und berechnet sie aus Positionen und Aufschlüsselung."""

    invoice.line_total = ZERO
    invoice.tax_total = ZERO

    invoice.line_total = sum_decimals(line.line_total for line in invoice.lines)
    update_allowances_and_charges(invoice)
    invoice.tax_total = sum_decimals(tax.calculated_amount for tax in invoice.trade_taxes)
    invoice.tax_basis_total = invoice.line_total - invoice.allowance_total + invoice.charge_total
    invoice.grand_total = invoice.tax_basis_total + invoice.tax_total
    invoice.due_payable = invoice.grand_total - invoice.prepaid_total + invoice.rounding_amount


def calculate_line_total(line: InvoiceLine) -> Decimal:
    """Positionsnettobetrag: Menge × Nettopreis / Basismenge + Zuschläge − Abschläge."""

    base_quantity = line.base_quantity if not line.base_quantity.is_zero() else Decimal("1")
    net = line.billed_quantity * line.net_price / base_quantity
    charges = sum_decimals(ac.actual_amount for ac in line.charges)
    allowances = sum_decimals(ac.actual_amount for ac in line.allowances)
    return round_half_up(net + charges - allowances)


def update_line_totals(invoice: Invoice) -> None:
    for line in invoice.lines:
        line.line_total = calculate_line_total(line)


__all__ = [
    "calculate_tax_amount",
    "derive_tax_breakdown",
    "update_allowances_and_charges",
    "update_totals",
    "calculate_line_total",
    "update_line_totals",
]
