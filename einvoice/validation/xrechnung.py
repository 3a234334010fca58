"""XRechnung-Regeln (BR-DE-*) und die länderspezifische Warnung BR-DE-21.

``check`` läuft nur für XRechnung-Kennungen. ``check_country`` betrifft alle
deutschen Verkäufer mit EN-16931-Kennung und erzeugt ausschließlich
Warnungen.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Optional

from ..model import Contact, Invoice, PaymentMeans
from ..profiles import is_en16931_family, is_xrechnung
from .aggregates import has_country_prefix
from .core import CREDIT_TRANSFER_CODES
from .report import Report

ALLOWED_TYPE_CODES = frozenset({326, 380, 384, 389, 381, 875, 876, 877})
CARD_CODES = (48, 54, 55)
DIRECT_DEBIT_CODE = 59
SEPA_CREDIT_TRANSFER_CODE = 58

SKONTO_RE = re.compile(r"(?i)#SKONTO#TAGE=\d+#PROZENT=\d+(\.\d{1,2})?#(BASISBETRAG=\d+(\.\d{1,2})?#)?")
IBAN_RE = re.compile(r"^[A-Z]{2}[0-9]{2}[A-Z0-9]{11,30}$")


def valid_iban(iban: str) -> bool:
    """Formprüfung (Länderkennzeichen, Prüfziffern, 15 bis 34 Zeichen), ohne Modulo 97."""

    return bool(IBAN_RE.match(iban.replace(" ", "").upper()))


def valid_email(email: str) -> bool:
    if email.count("@") != 1 or email.startswith(".") or email.endswith("."):
        return False
    local, domain = email.split("@")
    if len(local) < 2 or len(domain) < 2:
        return False
    return not (local.endswith((" ", ".")) or domain.startswith((" ", ".")))


def valid_skonto(terms: str) -> bool:
    if "SKONTO" not in terms.upper():
        return True
    return bool(SKONTO_RE.search(terms))


def _digits(text: str) -> int:
    return sum(1 for ch in text if ch.isdigit())


def check(invoice: Invoice, report: Report) -> None:
    seller, buyer = invoice.seller, invoice.buyer
    contact: Optional[Contact] = seller.contacts[0] if seller.contacts else None

    if not invoice.payment_means:
        report.fail("BR-DE-1", "invoice has no payment instructions")
    if contact is None:
        report.fail("BR-DE-2", "seller contact is missing")
    if seller.postal_address is None or not seller.postal_address.city:
        report.fail("BR-DE-3", "seller city is empty")
    if seller.postal_address is None or not seller.postal_address.postcode:
        report.fail("BR-DE-4", "seller post code is empty")
    if contact is not None:
        if not contact.name and not contact.department:
            report.fail("BR-DE-5", "seller contact point is empty")
        if not contact.phone:
            report.fail("BR-DE-6", "seller contact telephone number is empty")
        if not contact.email:
            report.fail("BR-DE-7", "seller contact email address is empty")
    if buyer.postal_address is None or not buyer.postal_address.city:
        report.fail("BR-DE-8", "buyer city is empty")
    if buyer.postal_address is None or not buyer.postal_address.postcode:
        report.fail("BR-DE-9", "buyer post code is empty")
    ship_to = invoice.ship_to
    if ship_to is not None and ship_to.postal_address is not None:
        if not ship_to.postal_address.city:
            report.fail("BR-DE-10", "deliver-to city is empty")
        if not ship_to.postal_address.postcode:
            report.fail("BR-DE-11", "deliver-to post code is empty")

    if not invoice.buyer_reference:
        report.fail("BR-DE-15", "buyer reference (Leitweg-ID) is empty")

    vat_ids = [("seller", seller.vat_id), ("buyer", buyer.vat_id)]
    if invoice.tax_representative is not None:
        vat_ids.append(("tax representative", invoice.tax_representative.vat_id))
    for role, vat_id in vat_ids:
        if vat_id and not has_country_prefix(vat_id):
            report.fail("BR-DE-16", f"{role} VAT identifier {vat_id!r} has no ISO 3166-1 country prefix")

    if invoice.type_code not in ALLOWED_TYPE_CODES:
        report.fail("BR-DE-17", f"invoice type code {invoice.type_code} is not permitted")

    for terms in invoice.payment_terms:
        if not valid_skonto(terms.description):
            report.fail("BR-DE-18", f"payment terms {terms.description!r} mention SKONTO without the structured format")

    for means in invoice.payment_means:
        if means.type_code == SEPA_CREDIT_TRANSFER_CODE and means.payee_iban and not valid_iban(means.payee_iban):
            report.fail("BR-DE-19", f"payment account {means.payee_iban!r} is not a valid IBAN")
        if means.type_code == DIRECT_DEBIT_CODE and means.payer_iban and not valid_iban(means.payer_iban):
            report.fail("BR-DE-20", f"debited account {means.payer_iban!r} is not a valid IBAN")

    filenames = Counter(doc.filename for doc in invoice.attachments if doc.filename)
    for filename, count in filenames.items():
        if count > 1:
            report.fail("BR-DE-22", f"attachment filename {filename!r} is used {count} times")

    for means in invoice.payment_means:
        _payment_groups(means, report)

    if invoice.type_code == 384 and not invoice.preceding_invoices:
        report.fail("BR-DE-26", "corrected invoice without preceding invoice reference")

    if contact is not None:
        if contact.phone and _digits(contact.phone) < 3:
            report.fail("BR-DE-27", f"seller contact telephone number {contact.phone!r} has fewer than three digits")
        if contact.email and not valid_email(contact.email):
            report.fail("BR-DE-28", f"seller contact email address {contact.email!r} is malformed")

    for means in invoice.payment_means:
        if means.type_code != DIRECT_DEBIT_CODE:
            continue
        if not invoice.creditor_reference_id:
            report.fail("BR-DE-30", "direct debit without bank assigned creditor identifier")
        if not means.payer_iban:
            report.fail("BR-DE-31", "direct debit without debited account identifier")


def _payment_groups(means: PaymentMeans, report: Report) -> None:
    credit_transfer = bool(means.payee_iban or means.payee_proprietary_id)
    card = bool(means.card_id)
    direct_debit = bool(means.payer_iban)
    code = means.type_code

    if code in CREDIT_TRANSFER_CODES:
        if not credit_transfer:
            report.fail("BR-DE-23-a", f"payment means {code} without credit transfer account")
        if card:
            report.fail("BR-DE-23-b", f"payment means {code} must not carry payment card information")
        if direct_debit:
            report.fail("BR-DE-23-b", f"payment means {code} must not carry direct debit information")
    elif code in CARD_CODES:
        if not card:
            report.fail("BR-DE-24-a", f"payment means {code} without payment card information")
        if credit_transfer:
            report.fail("BR-DE-24-b", f"payment means {code} must not carry a credit transfer account")
        if direct_debit:
            report.fail("BR-DE-24-b", f"payment means {code} must not carry direct debit information")
    elif code == DIRECT_DEBIT_CODE:
        if not direct_debit:
            report.fail("BR-DE-25-a", f"payment means {code} without direct debit information")
        if credit_transfer:
            report.fail("BR-DE-25-b", f"payment means {code} must not carry a credit transfer account")
        if card:
            report.fail("BR-DE-25-b", f"payment means {code} must not carry payment card information")


def check_country(invoice: Invoice, report: Report) -> None:
    urn = invoice.specification_id
    if invoice.seller.country_code == "DE" and is_en16931_family(urn) and not is_xrechnung(urn):
        report.warn("BR-DE-21", f"German seller uses specification identifier {urn!r} instead of XRechnung")


__all__ = ["check", "check_country", "valid_email", "valid_iban", "valid_skonto"]
