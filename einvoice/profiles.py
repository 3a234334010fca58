"""Profile (Spezifikationskennungen, BT-24) und feldweise Profil-Freigaben.

Die Tabelle ``FIELD_MIN_LEVEL`` ist die einzige Quelle dafür, ab welchem
Profil ein Feld in einer Syntax geschrieben wird.
"""

from __future__ import annotations

import re
from enum import Enum, IntEnum
from typing import Dict, Tuple


class SchemaType(Enum):
    UNKNOWN = "unknown"
    CII = "cii"
    UBL = "ubl"


class ProfileLevel(IntEnum):
    UNKNOWN = 0
    MINIMUM = 1
    BASIC_WL = 2
    BASIC = 3
    EN16931 = 4
    EXTENDED = 5


FACTURX_MINIMUM = "urn:factur-x.eu:1p0:minimum"
FACTURX_BASIC_WL = "urn:factur-x.eu:1p0:basicwl"
FACTURX_BASIC = "urn:cen.eu:en16931:2017#compliant#urn:factur-x.eu:1p0:basic"
FACTURX_BASIC_ALT = "urn:cen.eu:en16931:2017:compliant:factur-x.eu:1p0:basic"
FACTURX_EXTENDED = "urn:cen.eu:en16931:2017#conformant#urn:factur-x.eu:1p0:extended"
ZUGFERD_MINIMUM = "urn:zugferd.de:2p0:minimum"
ZUGFERD_BASIC_WL = "urn:zugferd.de:2p0:basicwl"
ZUGFERD_BASIC = "urn:cen.eu:en16931:2017#compliant#urn:zugferd.de:2p0:basic"
ZUGFERD_EXTENDED = "urn:cen.eu:en16931:2017#conformant#urn:zugferd.de:2p0:extended"
EN16931 = "urn:cen.eu:en16931:2017"
XRECHNUNG_2_0 = "urn:cen.eu:en16931:2017#compliant#urn:xoev-de:kosit:standard:xrechnung_2.0"
XRECHNUNG_2_1 = "urn:cen.eu:en16931:2017#compliant#urn:xoev-de:kosit:standard:xrechnung_2.1"
XRECHNUNG_2_2 = "urn:cen.eu:en16931:2017#compliant#urn:xoev-de:kosit:standard:xrechnung_2.2"
XRECHNUNG_2_3 = "urn:cen.eu:en16931:2017#compliant#urn:xeinkauf.de:kosit:xrechnung_2.3"
XRECHNUNG_3_0 = "urn:cen.eu:en16931:2017#compliant#urn:xeinkauf.de:kosit:xrechnung_3.0"
PEPPOL_BILLING = "urn:cen.eu:en16931:2017#compliant#urn:fdc:peppol.eu:2017:poacc:billing:3.0"
PEPPOL_BUSINESS_PROCESS = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"

_PEPPOL_PROCESS_RE = re.compile(r"^urn:fdc:peppol\.eu:2017:poacc:billing:\d{2}:1\.0$")

XRECHNUNG_URNS = (XRECHNUNG_2_0, XRECHNUNG_2_1, XRECHNUNG_2_2, XRECHNUNG_2_3, XRECHNUNG_3_0)

_KNOWN: Dict[str, Tuple[ProfileLevel, str]] = {
    FACTURX_MINIMUM: (ProfileLevel.MINIMUM, "Factur-X Minimum"),
    FACTURX_BASIC_WL: (ProfileLevel.BASIC_WL, "Factur-X BasicWL"),
    FACTURX_BASIC: (ProfileLevel.BASIC, "Factur-X Basic"),
    FACTURX_BASIC_ALT: (ProfileLevel.BASIC, "Factur-X Basic"),
    FACTURX_EXTENDED: (ProfileLevel.EXTENDED, "Factur-X Extended"),
    ZUGFERD_MINIMUM: (ProfileLevel.MINIMUM, "ZUGFeRD Minimum"),
    ZUGFERD_BASIC_WL: (ProfileLevel.BASIC_WL, "ZUGFeRD BasicWL"),
    ZUGFERD_BASIC: (ProfileLevel.BASIC, "ZUGFeRD Basic"),
    ZUGFERD_EXTENDED: (ProfileLevel.EXTENDED, "ZUGFeRD Extended"),
    EN16931: (ProfileLevel.EN16931, "EN 16931"),
    XRECHNUNG_2_0: (ProfileLevel.EN16931, "XRechnung 2.0"),
    XRECHNUNG_2_1: (ProfileLevel.EN16931, "XRechnung 2.1"),
    XRECHNUNG_2_2: (ProfileLevel.EN16931, "XRechnung 2.2"),
    XRECHNUNG_2_3: (ProfileLevel.EN16931, "XRechnung 2.3"),
    XRECHNUNG_3_0: (ProfileLevel.EN16931, "XRechnung 3.0"),
    PEPPOL_BILLING: (ProfileLevel.EN16931, "PEPPOL BIS Billing 3.0"),
}

_EN16931_TOKENS = ("en16931", "factur-x", "zugferd")


def level_for_urn(urn: str) -> ProfileLevel:
    urn = (urn or "").strip()
    if urn in _KNOWN:
        return _KNOWN[urn][0]
    lowered = urn.lower()
    if not lowered:
        return ProfileLevel.UNKNOWN
    if "extended" in lowered:
        return ProfileLevel.EXTENDED
    if "basicwl" in lowered:
        return ProfileLevel.BASIC_WL
    if "basic" in lowered:
        return ProfileLevel.BASIC
    if "minimum" in lowered:
        return ProfileLevel.MINIMUM
    if lowered.startswith(EN16931) or "xrechnung" in lowered or "peppol" in lowered:
        return ProfileLevel.EN16931
    return ProfileLevel.UNKNOWN


def profile_name(urn: str) -> str:
    known = _KNOWN.get((urn or "").strip())
    return known[1] if known else "Unknown"


def is_profile_urn(urn: str) -> bool:
    return (urn or "").strip() in _KNOWN


def is_en16931_family(urn: str) -> bool:
    lowered = (urn or "").lower()
    return any(token in lowered for token in _EN16931_TOKENS)


def is_xrechnung(urn: str) -> bool:
    return (urn or "").strip() in XRECHNUNG_URNS


def is_peppol(urn: str) -> bool:
    return (urn or "").strip() == PEPPOL_BILLING


def is_peppol_business_process(process_id: str) -> bool:
    return bool(_PEPPOL_PROCESS_RE.match(process_id or ""))


# Minimum profile per (field, syntax). Fields not listed are always written.
FIELD_MIN_LEVEL: Dict[Tuple[str, SchemaType], ProfileLevel] = {}


def _gate(field: str, cii: ProfileLevel, ubl: ProfileLevel = ProfileLevel.MINIMUM) -> None:
    FIELD_MIN_LEVEL[(field, SchemaType.CII)] = cii
    FIELD_MIN_LEVEL[(field, SchemaType.UBL)] = ubl


_gate("business_process", ProfileLevel.MINIMUM)
_gate("notes", ProfileLevel.BASIC_WL)
_gate("buyer_postal_address", ProfileLevel.BASIC_WL)
_gate("party_postal_address", ProfileLevel.BASIC_WL)
_gate("party_contact", ProfileLevel.EN16931)
_gate("party_electronic_address", ProfileLevel.BASIC_WL)
_gate("payee", ProfileLevel.BASIC_WL)
_gate("tax_representative", ProfileLevel.BASIC_WL)
_gate("ship_to", ProfileLevel.BASIC_WL)
_gate("delivery_date", ProfileLevel.BASIC_WL)
_gate("billing_period", ProfileLevel.BASIC_WL)
_gate("document_references", ProfileLevel.BASIC_WL)
_gate("attachments", ProfileLevel.EN16931)
_gate("preceding_invoices", ProfileLevel.BASIC_WL)
_gate("payment_means", ProfileLevel.BASIC_WL)
_gate("payment_terms", ProfileLevel.BASIC_WL)
_gate("allowances_charges", ProfileLevel.BASIC_WL)
_gate("trade_taxes", ProfileLevel.BASIC_WL)
_gate("allowance_charge_totals", ProfileLevel.BASIC_WL)
_gate("line_total", ProfileLevel.BASIC_WL)
_gate("prepaid_total", ProfileLevel.BASIC_WL)
_gate("rounding_amount", ProfileLevel.EN16931)
_gate("line_items", ProfileLevel.BASIC)
_gate("line_item_identifiers", ProfileLevel.EN16931)
_gate("line_item_details", ProfileLevel.EN16931)
_gate("line_period", ProfileLevel.BASIC)
_gate("line_references", ProfileLevel.EN16931)


def effective_level(urn: str) -> ProfileLevel:
    """Schreibprofil: unbekannte Kennungen werden wie EN 16931 behandelt."""

    level = level_for_urn(urn)
    return ProfileLevel.EN16931 if level is ProfileLevel.UNKNOWN else level


def emits(field: str, syntax: SchemaType, level: ProfileLevel) -> bool:
    return level >= FIELD_MIN_LEVEL.get((field, syntax), ProfileLevel.MINIMUM)


__all__ = [
    "SchemaType",
    "ProfileLevel",
    "FACTURX_MINIMUM",
    "FACTURX_BASIC_WL",
    "FACTURX_BASIC",
    "FACTURX_BASIC_ALT",
    "FACTURX_EXTENDED",
    "ZUGFERD_MINIMUM",
    "ZUGFERD_BASIC_WL",
    "ZUGFERD_BASIC",
    "ZUGFERD_EXTENDED",
    "EN16931",
    "XRECHNUNG_2_0",
    "XRECHNUNG_2_1",
    "XRECHNUNG_2_2",
    "XRECHNUNG_2_3",
    "XRECHNUNG_3_0",
    "XRECHNUNG_URNS",
    "PEPPOL_BILLING",
    "PEPPOL_BUSINESS_PROCESS",
    "FIELD_MIN_LEVEL",
    "level_for_urn",
    "effective_level",
    "profile_name",
    "is_profile_urn",
    "is_en16931_family",
    "is_xrechnung",
    "is_peppol",
    "is_peppol_business_process",
    "emits",
]
