"""PEPPOL BIS Billing 3.0 Zusatzregeln (PEPPOL-EN16931-R*)."""

from __future__ import annotations

from ..calculate import calculate_line_total
from ..decimals import ZERO, canonical
from ..model import Invoice
from ..profiles import is_peppol_business_process
from .report import Report


def check(invoice: Invoice, report: Report) -> None:
    process = invoice.business_process_id
    if not process:
        report.fail("PEPPOL-EN16931-R001", "business process identifier is empty")
    if len(invoice.notes) > 1:
        report.fail("PEPPOL-EN16931-R002", f"{len(invoice.notes)} document level notes, at most one allowed")
    if not invoice.buyer_reference and not invoice.buyer_order_reference:
        report.fail("PEPPOL-EN16931-R003", "neither buyer reference nor purchase order reference given")
    if process and not is_peppol_business_process(process):
        report.fail("PEPPOL-EN16931-R007", f"business process {process!r} does not match urn:fdc:peppol.eu:2017:poacc:billing:NN:1.0")
    if not invoice.buyer.electronic_address:
        report.fail("PEPPOL-EN16931-R010", "buyer electronic address is empty")
    if not invoice.seller.electronic_address:
        report.fail("PEPPOL-EN16931-R020", "seller electronic address is empty")

    for line in invoice.lines:
        expected = calculate_line_total(line)
        if line.line_total != expected:
            report.fail(
                "PEPPOL-EN16931-R120",
                f"line {line.line_id} net amount {canonical(line.line_total)}, expected {canonical(expected)}",
            )
        if line.base_quantity < ZERO:
            report.fail("PEPPOL-EN16931-R121", f"line {line.line_id} base quantity {canonical(line.base_quantity)} is not positive")
        if line.base_quantity_unit and line.base_quantity_unit != line.billed_quantity_unit:
            report.fail(
                "PEPPOL-EN16931-R130",
                f"line {line.line_id} base quantity unit {line.base_quantity_unit!r} differs from {line.billed_quantity_unit!r}",
            )


__all__ = ["check"]
