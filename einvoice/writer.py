"""Einstieg für das Schreiben: Auflösung der Zielsyntax und Ausgabe."""

from __future__ import annotations

from typing import BinaryIO, Optional, Union

from .cii.writer import write_cii
from .config import settings
from .errors import UnsupportedSyntaxError, WriteError
from .logging import get_logger
from .model import Invoice
from .profiles import SchemaType
from .ubl.writer import write_ubl

log = get_logger(__name__)


def resolve_syntax(invoice: Invoice, syntax: Optional[Union[SchemaType, str]] = None) -> SchemaType:
    """Reihenfolge: Argument, Herkunft der Rechnung, ``settings.default_syntax``."""

    for candidate in (syntax, invoice.schema_type, settings.default_syntax):
        if candidate is None:
            continue
        try:
            resolved = SchemaType(candidate.lower() if isinstance(candidate, str) else candidate)
        except ValueError as exc:
            raise UnsupportedSyntaxError(f"unsupported syntax {candidate!r}") from exc
        if resolved is not SchemaType.UNKNOWN:
            return resolved
    raise UnsupportedSyntaxError("no target syntax: pass syntax=, parse the invoice or set EINVOICE_DEFAULT_SYNTAX")


def write(
    invoice: Invoice,
    sink: Optional[BinaryIO] = None,
    *,
    syntax: Optional[Union[SchemaType, str]] = None,
) -> bytes:
    """Serialisiert ``invoice`` und schreibt das Ergebnis optional in ``sink``."""

    target = resolve_syntax(invoice, syntax)
    if target is SchemaType.CII:
        data = write_cii(invoice, pretty=settings.pretty_print)
    else:
        data = write_ubl(invoice, pretty=settings.pretty_print)
    log.debug("wrote %s invoice %s (%d bytes)", target.value, invoice.invoice_number, len(data))
    if sink is not None:
        try:
            sink.write(data)
        except OSError as exc:
            raise WriteError(f"failed to write invoice {invoice.invoice_number}: {exc}") from exc
    return data


__all__ = ["resolve_syntax", "write"]
