"""Gemeinsame Summen und Prädikate für Kern- und Kategorie-Regeln."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterator, List, Optional

from ..decimals import ZERO, round_half_up
from ..model import AllowanceCharge, Invoice, InvoiceLine


def lines_with(invoice: Invoice, category: str) -> List[InvoiceLine]:
    return [line for line in invoice.lines if line.tax_category == category]


def allowances_with(invoice: Invoice, category: str) -> List[AllowanceCharge]:
    return [ac for ac in invoice.allowances if ac.tax_category == category]


def charges_with(invoice: Invoice, category: str) -> List[AllowanceCharge]:
    return [ac for ac in invoice.charges if ac.tax_category == category]


def category_used(invoice: Invoice, category: str) -> bool:
    """Kategorie kommt in einer Position oder einem Belegzu-/abschlag vor."""

    return bool(lines_with(invoice, category)) or any(
        ac.tax_category == category for ac in invoice.allowances_charges
    )


def categories_in_use(invoice: Invoice) -> Iterator[str]:
    yield from (line.tax_category for line in invoice.lines)
    yield from (ac.tax_category for ac in invoice.allowances_charges)
    yield from (tax.category_code for tax in invoice.trade_taxes)


def expected_basis(invoice: Invoice, category: str, rate: Optional[Decimal] = None) -> Decimal:
    """Bemessungsgrundlage aus Positionen und Belegzu-/abschlägen, auf 0.01 gerundet.

    Ohne ``rate`` zählen alle Einträge der Kategorie, unabhängig vom Satz.
    """

    total = ZERO
    for line in invoice.lines:
        if line.tax_category == category and (rate is None or line.tax_rate == rate):
            total += line.line_total
    for ac in invoice.allowances_charges:
        if ac.tax_category == category and (rate is None or ac.tax_rate == rate):
            total += ac.actual_amount if ac.is_charge else -ac.actual_amount
    return round_half_up(total)


def seller_has_tax_id(invoice: Invoice) -> bool:
    representative = invoice.tax_representative
    return bool(
        invoice.seller.vat_id
        or invoice.seller.tax_registration_id
        or (representative is not None and representative.vat_id)
    )


def seller_has_vat_id(invoice: Invoice) -> bool:
    representative = invoice.tax_representative
    return bool(invoice.seller.vat_id or (representative is not None and representative.vat_id))


def has_country_prefix(vat_id: str) -> bool:
    prefix = vat_id[:2]
    return len(prefix) == 2 and prefix.isascii() and prefix.isalpha() and prefix.isupper()


__all__ = [
    "lines_with",
    "allowances_with",
    "charges_with",
    "category_used",
    "categories_in_use",
    "expected_basis",
    "seller_has_tax_id",
    "seller_has_vat_id",
    "has_country_prefix",
]
