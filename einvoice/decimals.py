"""Dezimal-Hilfsfunktionen.

Alle Beträge werden als ``Decimal`` geführt und ausschließlich mit
``ROUND_HALF_UP`` (kaufmännisch, weg von Null) gerundet. Zwischenergebnisse
bleiben ungerundet.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

DecimalLike = Decimal | str | int | float

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONEY_PLACES = 2
PRICE_PLACES = 4


def to_decimal(value: DecimalLike) -> Decimal:
    """Konvertiere Eingaben deterministisch in ``Decimal``.

    Floats werden zunächst in Strings umgewandelt, um binäre Rundungsfehler zu
    vermeiden.
    """

    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Unsupported decimal input: {type(value)!r}")
    if isinstance(value, (int, str, float)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"invalid decimal value {value!r}") from exc
    raise TypeError(f"Unsupported decimal input: {type(value)!r}")


def round_half_up(value: DecimalLike, places: int = MONEY_PLACES) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def quantize_money(amount: DecimalLike) -> Decimal:
    """Rundet Beträge auf zwei Nachkommastellen (ROUND_HALF_UP)."""

    return round_half_up(amount, MONEY_PLACES)


def sum_decimals(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def fraction_digits(value: Decimal) -> int:
    """Anzahl signifikanter Nachkommastellen (``1.50`` zählt als 1)."""

    if value.is_zero():
        return 0
    exponent = value.normalize().as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def has_max_decimals(value: Decimal, places: int) -> bool:
    if value.is_zero():
        return True
    return fraction_digits(value) <= places


def canonical(value: Decimal) -> str:
    """Textdarstellung für Regelmeldungen, ohne Exponentenschreibweise."""

    return format(value, "f")


def format_amount(value: Decimal) -> str:
    return format(quantize_money(value), "f")


def format_quantity(value: Decimal, places: int = PRICE_PLACES) -> str:
    """Mengen und Einzelpreise: mindestens zwei, höchstens ``places`` Stellen."""

    digits = min(max(fraction_digits(value), MONEY_PLACES), places)
    return format(round_half_up(value, digits), "f")


def format_percent(value: Decimal) -> str:
    text = format(round_half_up(value, PRICE_PLACES), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


__all__ = [
    "DecimalLike",
    "ZERO",
    "HUNDRED",
    "to_decimal",
    "round_half_up",
    "quantize_money",
    "sum_decimals",
    "fraction_digits",
    "has_max_decimals",
    "canonical",
    "format_amount",
    "format_quantity",
    "format_percent",
]
