"""Regelbasierte Validierung nach EN 16931 und Profilregeln.

Reihenfolge der Regelfamilien: Kern (BR), Berechnung (BR-CO),
Nachkommastellen (BR-DEC), Umsatzsteuerkategorien, PEPPOL, XRechnung und
zuletzt die Länderprüfung für Deutschland. Es wird nicht abgebrochen; ein
Lauf liefert alle Verstöße auf einmal.
"""

from __future__ import annotations

from typing import Optional

from ..errors import ValidationError
from ..logging import get_logger
from ..model import Invoice
from ..profiles import is_en16931_family, is_peppol, is_xrechnung
from . import calculation, core, peppol, precision, vat, xrechnung
from .report import Report, Violation

log = get_logger(__name__)

FAMILIES = (core.check, calculation.check, precision.check, vat.check)


def validate(invoice: Invoice) -> Optional[ValidationError]:
    """Prüft ``invoice`` und gibt bei Verstößen einen ``ValidationError`` zurück.

    Verstöße und Warnungen werden zusätzlich an der Rechnung abgelegt und bei
    jedem Aufruf neu aufgebaut. Eingelesene Rechnungen ohne EN-16931-Kennung
    (etwa ZUGFeRD 1.x oder fremde Profile) werden ungeprüft angenommen.
    """

    invoice._violations = []
    invoice._warnings = []

    if invoice.parsed and not is_en16931_family(invoice.specification_id):
        log.debug("skipping validation of %s: %r is not an EN 16931 profile", invoice.invoice_number, invoice.specification_id)
        return None

    report = Report()
    for family in FAMILIES:
        family(invoice, report)
    if is_peppol(invoice.specification_id):
        peppol.check(invoice, report)
    if is_xrechnung(invoice.specification_id):
        xrechnung.check(invoice, report)
    xrechnung.check_country(invoice, report)

    invoice._violations = list(report.violations)
    invoice._warnings = list(report.warnings)

    if report.violations:
        log.info(
            "invoice %s failed validation with %d violations, %d warnings",
            invoice.invoice_number,
            len(report.violations),
            len(report.warnings),
        )
        return ValidationError(report.violations, report.warnings)
    log.debug("invoice %s is valid (%d warnings)", invoice.invoice_number, len(report.warnings))
    return None


__all__ = ["Report", "ValidationError", "Violation", "validate"]
