"""Statischer Regelkatalog (EN 16931, PEPPOL BIS 3.0, XRechnung).

Jede Verletzung verweist auf genau eine Zeile dieses Katalogs. Die Zeilen
sind unveränderlich und werden beim Import einmalig aufgebaut.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple


@dataclass(frozen=True, slots=True)
class Rule:
    code: str
    fields: Tuple[str, ...]
    description: str

    @property
    def family(self) -> str:
        parts = self.code.split("-")
        if parts[0] == "PEPPOL":
            return "PEPPOL"
        if parts[1].isdigit():
            return "BR"
        return f"{parts[0]}-{parts[1]}"


def _r(code: str, fields: str, description: str) -> Rule:
    return Rule(code, tuple(f for f in fields.split() if f), description)


_CORE: List[Rule] = [
    _r("BR-1", "BT-24", "An Invoice shall have a Specification identifier (BT-24) that identifies a known profile."),
    _r("BR-2", "BT-1", "An Invoice shall have an Invoice number (BT-1)."),
    _r("BR-3", "BT-2", "An Invoice shall have an Invoice issue date (BT-2)."),
    _r("BR-4", "BT-3", "An Invoice shall have an Invoice type code (BT-3)."),
    _r("BR-5", "BT-5", "An Invoice shall have an Invoice currency code (BT-5)."),
    _r("BR-6", "BT-27", "An Invoice shall contain the Seller name (BT-27)."),
    _r("BR-7", "BT-44", "An Invoice shall contain the Buyer name (BT-44)."),
    _r("BR-8", "BG-5", "An Invoice shall contain the Seller postal address (BG-5)."),
    _r("BR-9", "BT-40", "The Seller postal address (BG-5) shall contain a Seller country code (BT-40)."),
    _r("BR-10", "BG-8", "An Invoice shall contain the Buyer postal address (BG-8)."),
    _r("BR-11", "BT-55", "The Buyer postal address shall contain a Buyer country code (BT-55)."),
    _r("BR-12", "BT-106", "An Invoice shall have the Sum of Invoice line net amount (BT-106)."),
    _r("BR-13", "BT-109", "An Invoice shall have the Invoice total amount without VAT (BT-109)."),
    _r("BR-14", "BT-112", "An Invoice shall have the Invoice total amount with VAT (BT-112)."),
    _r("BR-15", "BT-115", "An Invoice shall have the Amount due for payment (BT-115)."),
    _r("BR-16", "BG-25", "An Invoice shall have at least one Invoice line (BG-25)."),
    _r("BR-17", "BT-59", "The Payee name (BT-59) shall be provided if the Payee is different from the Seller."),
    _r("BR-18", "BT-62", "The Seller tax representative name (BT-62) shall be provided if the Seller has a tax representative."),
    _r("BR-19", "BG-12", "The Seller tax representative postal address (BG-12) shall be provided if the Seller has a tax representative."),
    _r("BR-20", "BT-69", "The Seller tax representative postal address shall contain a country code (BT-69)."),
    _r("BR-21", "BT-126", "Each Invoice line (BG-25) shall have an Invoice line identifier (BT-126)."),
    _r("BR-22", "BT-129", "Each Invoice line (BG-25) shall have an Invoiced quantity (BT-129)."),
    _r("BR-23", "BT-130", "An Invoice line (BG-25) shall have an Invoiced quantity unit of measure code (BT-130)."),
    _r("BR-24", "BT-131", "Each Invoice line (BG-25) shall have an Invoice line net amount (BT-131)."),
    _r("BR-25", "BT-153", "Each Invoice line (BG-25) shall contain the Item name (BT-153)."),
    _r("BR-26", "BT-146", "Each Invoice line (BG-25) shall contain the Item net price (BT-146)."),
    _r("BR-27", "BT-146", "The Item net price (BT-146) shall NOT be negative."),
    _r("BR-28", "BT-148", "The Item gross price (BT-148) shall NOT be negative."),
    _r("BR-29", "BT-73 BT-74", "If both Invoicing period start date (BT-73) and end date (BT-74) are given then the end date shall be later or equal to the start date."),
    _r("BR-30", "BT-134 BT-135", "If both Invoice line period start date (BT-134) and end date (BT-135) are given then the end date shall be later or equal to the start date."),
    _r("BR-31", "BT-92", "Each Document level allowance (BG-20) shall have a Document level allowance amount (BT-92)."),
    _r("BR-32", "BT-95", "Each Document level allowance (BG-20) shall have a Document level allowance VAT category code (BT-95)."),
    _r("BR-33", "BT-97 BT-98", "Each Document level allowance (BG-20) shall have a Document level allowance reason (BT-97) or a reason code (BT-98)."),
    _r("BR-34", "BT-92", "The Document level allowance amount (BT-92) shall not be negative."),
    _r("BR-35", "BT-93", "The Document level allowance base amount (BT-93) shall not be negative."),
    _r("BR-36", "BT-99", "Each Document level charge (BG-21) shall have a Document level charge amount (BT-99)."),
    _r("BR-37", "BT-102", "Each Document level charge (BG-21) shall have a Document level charge VAT category code (BT-102)."),
    _r("BR-38", "BT-104 BT-105", "Each Document level charge (BG-21) shall have a Document level charge reason (BT-104) or a reason code (BT-105)."),
    _r("BR-39", "BT-99", "The Document level charge amount (BT-99) shall not be negative."),
    _r("BR-40", "BT-100", "The Document level charge base amount (BT-100) shall not be negative."),
    _r("BR-41", "BT-136", "Each Invoice line allowance (BG-27) shall have an Invoice line allowance amount (BT-136)."),
    _r("BR-42", "BT-139 BT-140", "Each Invoice line allowance (BG-27) shall have an allowance reason (BT-139) or a reason code (BT-140)."),
    _r("BR-43", "BT-141", "Each Invoice line charge (BG-28) shall have an Invoice line charge amount (BT-141)."),
    _r("BR-44", "BT-144 BT-145", "Each Invoice line charge (BG-28) shall have a charge reason (BT-144) or a reason code (BT-145)."),
    _r("BR-45", "BT-116", "Each VAT breakdown (BG-23) shall have a VAT category taxable amount (BT-116) equal to the aggregate of its lines, allowances and charges."),
    _r("BR-47", "BT-118", "Each VAT breakdown (BG-23) shall be defined through a VAT category code (BT-118)."),
    _r("BR-49", "BT-81", "A Payment instruction (BG-16) shall specify the Payment means type code (BT-81)."),
    _r("BR-52", "BT-122", "Each Additional supporting document (BG-24) shall contain a Supporting document reference (BT-122)."),
    _r("BR-53", "BT-111", "If the VAT accounting currency code (BT-6) is present, then the Invoice total VAT amount in accounting currency (BT-111) shall be provided."),
    _r("BR-54", "BT-160 BT-161", "Each Item attribute (BG-32) shall contain an Item attribute name (BT-160) and an Item attribute value (BT-161)."),
    _r("BR-55", "BT-25", "Each Preceding Invoice reference (BG-3) shall contain a Preceding Invoice reference (BT-25)."),
    _r("BR-56", "BT-63", "Each Seller tax representative party (BG-11) shall have a Seller tax representative VAT identifier (BT-63)."),
    _r("BR-57", "BT-80", "Each Deliver to address (BG-15) shall contain a Deliver to country code (BT-80)."),
    _r("BR-61", "BT-84", "If the Payment means type code (BT-81) means SEPA credit transfer, Local credit transfer or Non-SEPA international credit transfer, the Payment account identifier (BT-84) shall be present."),
    _r("BR-62", "BT-34", "The Seller electronic address (BT-34) shall have a Scheme identifier."),
    _r("BR-63", "BT-49", "The Buyer electronic address (BT-49) shall have a Scheme identifier."),
    _r("BR-64", "BT-157", "The Item standard identifier (BT-157) shall have a Scheme identifier."),
    _r("BR-65", "BT-158", "The Item classification identifier (BT-158) shall have a Scheme identifier."),
]

_CALCULATION: List[Rule] = [
    _r("BR-CO-3", "BT-7 BT-8", "Value added tax point date (BT-7) and Value added tax point date code (BT-8) are mutually exclusive."),
    _r("BR-CO-4", "BT-151", "Each Invoice line (BG-25) shall be categorized with an Invoiced item VAT category code (BT-151)."),
    _r("BR-CO-5", "BT-97 BT-98", "Document level allowance reason code (BT-98) and Document level allowance reason (BT-97) shall indicate the same type of allowance."),
    _r("BR-CO-6", "BT-104 BT-105", "Document level charge reason code (BT-105) and Document level charge reason (BT-104) shall indicate the same type of charge."),
    _r("BR-CO-7", "BT-139 BT-140", "Invoice line allowance reason code (BT-140) and Invoice line allowance reason (BT-139) shall indicate the same type of allowance reason."),
    _r("BR-CO-8", "BT-144 BT-145", "Invoice line charge reason code (BT-145) and Invoice line charge reason (BT-144) shall indicate the same type of charge reason."),
    _r("BR-CO-9", "BT-31 BT-48 BT-63", "The Seller VAT identifier (BT-31), the Seller tax representative VAT identifier (BT-63) and the Buyer VAT identifier (BT-48) shall have a prefix in accordance with ISO code ISO 3166-1 alpha-2."),
    _r("BR-CO-10", "BT-106 BT-131", "Sum of Invoice line net amount (BT-106) = Σ Invoice line net amount (BT-131)."),
    _r("BR-CO-11", "BT-107 BT-92", "Sum of allowances on document level (BT-107) = Σ Document level allowance amount (BT-92)."),
    _r("BR-CO-12", "BT-108 BT-99", "Sum of charges on document level (BT-108) = Σ Document level charge amount (BT-99)."),
    _r("BR-CO-13", "BT-109 BT-106 BT-107 BT-108", "Invoice total amount without VAT (BT-109) = Σ Invoice line net amount (BT-131) - Sum of allowances on document level (BT-107) + Sum of charges on document level (BT-108)."),
    _r("BR-CO-14", "BT-110 BT-117", "Invoice total VAT amount (BT-110) = Σ VAT category tax amount (BT-117)."),
    _r("BR-CO-15", "BT-112 BT-109 BT-110", "Invoice total amount with VAT (BT-112) = Invoice total amount without VAT (BT-109) + Invoice total VAT amount (BT-110)."),
    _r("BR-CO-16", "BT-115 BT-112 BT-113 BT-114", "Amount due for payment (BT-115) = Invoice total amount with VAT (BT-112) - Paid amount (BT-113) + Rounding amount (BT-114)."),
    _r("BR-CO-17", "BT-117 BT-116 BT-119", "VAT category tax amount (BT-117) = VAT category taxable amount (BT-116) x (VAT category rate (BT-119) / 100), rounded to two decimals."),
    _r("BR-CO-18", "BG-23", "An Invoice shall at least have one VAT breakdown group (BG-23)."),
    _r("BR-CO-25", "BT-9 BT-20 BT-115", "In case the Amount due for payment (BT-115) is positive, either the Payment due date (BT-9) or the Payment terms (BT-20) shall be present."),
    _r("BR-CO-26", "BT-29 BT-30 BT-31", "In order for the buyer to automatically identify a supplier, the Seller identifier (BT-29), the Seller legal registration identifier (BT-30) and/or the Seller VAT identifier (BT-31) shall be present."),
    _r("BR-CO-27", "BT-84", "Either the IBAN or a Proprietary ID (BT-84) shall be used for credit transfers (payment means 30 and 58)."),
]

_PRECISION: List[Rule] = [
    _r("BR-DEC-1", "BT-92", "The allowed maximum number of decimals for the Document level allowance amount (BT-92) is 2."),
    _r("BR-DEC-2", "BT-93", "The allowed maximum number of decimals for the Document level allowance base amount (BT-93) is 2."),
    _r("BR-DEC-5", "BT-99", "The allowed maximum number of decimals for the Document level charge amount (BT-99) is 2."),
    _r("BR-DEC-6", "BT-100", "The allowed maximum number of decimals for the Document level charge base amount (BT-100) is 2."),
    _r("BR-DEC-9", "BT-106", "The allowed maximum number of decimals for the Sum of Invoice line net amount (BT-106) is 2."),
    _r("BR-DEC-10", "BT-107", "The allowed maximum number of decimals for the Sum of allowances on document level (BT-107) is 2."),
    _r("BR-DEC-11", "BT-108", "The allowed maximum number of decimals for the Sum of charges on document level (BT-108) is 2."),
    _r("BR-DEC-12", "BT-109", "The allowed maximum number of decimals for the Invoice total amount without VAT (BT-109) is 2."),
    _r("BR-DEC-13", "BT-110", "The allowed maximum number of decimals for the Invoice total VAT amount (BT-110) is 2."),
    _r("BR-DEC-14", "BT-112", "The allowed maximum number of decimals for the Invoice total amount with VAT (BT-112) is 2."),
    _r("BR-DEC-15", "BT-111", "The allowed maximum number of decimals for the Invoice total VAT amount in accounting currency (BT-111) is 2."),
    _r("BR-DEC-16", "BT-113", "The allowed maximum number of decimals for the Paid amount (BT-113) is 2."),
    _r("BR-DEC-17", "BT-114", "The allowed maximum number of decimals for the Rounding amount (BT-114) is 2."),
    _r("BR-DEC-18", "BT-115", "The allowed maximum number of decimals for the Amount due for payment (BT-115) is 2."),
    _r("BR-DEC-19", "BT-116", "The allowed maximum number of decimals for the VAT category taxable amount (BT-116) is 2."),
    _r("BR-DEC-20", "BT-117", "The allowed maximum number of decimals for the VAT category tax amount (BT-117) is 2."),
    _r("BR-DEC-23", "BT-131", "The allowed maximum number of decimals for the Invoice line net amount (BT-131) is 2."),
    _r("BR-DEC-24", "BT-136", "The allowed maximum number of decimals for the Invoice line allowance amount (BT-136) is 2."),
    _r("BR-DEC-25", "BT-137", "The allowed maximum number of decimals for the Invoice line allowance base amount (BT-137) is 2."),
    _r("BR-DEC-27", "BT-141", "The allowed maximum number of decimals for the Invoice line charge amount (BT-141) is 2."),
    _r("BR-DEC-28", "BT-142", "The allowed maximum number of decimals for the Invoice line charge base amount (BT-142) is 2."),
]


def _vat_family(prefix: str, label: str, *, seller_ids: str, rate: str, amount: str, reason: str) -> List[Rule]:
    """Die zehn gleichförmigen Regeln einer Umsatzsteuerkategorie."""

    return [
        _r(f"{prefix}-1", "BG-23 BT-118", f"An Invoice that contains an item, allowance or charge where the VAT category code is \"{label}\" shall contain in the VAT breakdown (BG-23) at least one VAT category code equal to \"{label}\"."),
        _r(f"{prefix}-2", "BT-151 BT-31 BT-32 BT-63", f"An Invoice that contains an Invoice line where the Invoiced item VAT category code (BT-151) is \"{label}\" {seller_ids}"),
        _r(f"{prefix}-3", "BT-95 BT-31 BT-32 BT-63", f"An Invoice that contains a Document level allowance where the VAT category code (BT-95) is \"{label}\" {seller_ids}"),
        _r(f"{prefix}-4", "BT-102 BT-31 BT-32 BT-63", f"An Invoice that contains a Document level charge where the VAT category code (BT-102) is \"{label}\" {seller_ids}"),
        _r(f"{prefix}-5", "BT-152", f"In an Invoice line where the Invoiced item VAT category code (BT-151) is \"{label}\" the Invoiced item VAT rate (BT-152) {rate}"),
        _r(f"{prefix}-6", "BT-96", f"In a Document level allowance where the VAT category code (BT-95) is \"{label}\" the Document level allowance VAT rate (BT-96) {rate}"),
        _r(f"{prefix}-7", "BT-103", f"In a Document level charge where the VAT category code (BT-102) is \"{label}\" the Document level charge VAT rate (BT-103) {rate}"),
        _r(f"{prefix}-8", "BT-116", f"For each different value of VAT category rate (BT-119) where the VAT category code (BT-118) is \"{label}\", the VAT category taxable amount (BT-116) shall equal the sum of Invoice line net amounts minus document level allowances plus document level charges with that category and rate."),
        _r(f"{prefix}-9", "BT-117", f"The VAT category tax amount (BT-117) in a VAT breakdown (BG-23) where VAT category code (BT-118) is \"{label}\" {amount}"),
        _r(f"{prefix}-10", "BT-120 BT-121", f"A VAT breakdown (BG-23) with VAT Category code (BT-118) \"{label}\" {reason}"),
    ]


_DEFAULT_SELLER_IDS = "shall contain the Seller VAT Identifier (BT-31), the Seller tax registration identifier (BT-32) and/or the Seller tax representative VAT identifier (BT-63)."
_ZERO_RATE = "shall be 0 (zero)."
_ZERO_AMOUNT = "shall equal 0 (zero)."
_RATE_AMOUNT = "shall equal the VAT category taxable amount (BT-116) multiplied by the VAT category rate (BT-119), rounded to two decimals."
_REASON_REQUIRED = "shall have a VAT exemption reason code (BT-121) or a VAT exemption reason text (BT-120)."
_REASON_FORBIDDEN = "shall not have a VAT exemption reason code (BT-121) or VAT exemption reason text (BT-120)."

_VAT: List[Rule] = [
    *_vat_family("BR-S", "Standard rated", seller_ids=_DEFAULT_SELLER_IDS, rate="shall be greater than zero.", amount=_RATE_AMOUNT, reason=_REASON_FORBIDDEN),
    *_vat_family("BR-Z", "Zero rated", seller_ids=_DEFAULT_SELLER_IDS, rate=_ZERO_RATE, amount=_ZERO_AMOUNT, reason=_REASON_FORBIDDEN),
    *_vat_family("BR-E", "Exempt from VAT", seller_ids=_DEFAULT_SELLER_IDS, rate=_ZERO_RATE, amount=_ZERO_AMOUNT, reason=_REASON_REQUIRED),
    *_vat_family(
        "BR-AE",
        "Reverse charge",
        seller_ids="shall contain the Seller VAT Identifier (BT-31), the Seller tax registration identifier (BT-32) and/or the Seller tax representative VAT identifier (BT-63) and the Buyer VAT identifier (BT-48) and/or the Buyer legal registration identifier (BT-47).",
        rate=_ZERO_RATE,
        amount=_ZERO_AMOUNT,
        reason=_REASON_REQUIRED,
    ),
    *_vat_family(
        "BR-G",
        "Export outside the EU",
        seller_ids="shall contain the Seller VAT Identifier (BT-31) or the Seller tax representative VAT identifier (BT-63).",
        rate=_ZERO_RATE,
        amount=_ZERO_AMOUNT,
        reason=_REASON_REQUIRED,
    ),
    *_vat_family(
        "BR-IG",
        "IGIC",
        seller_ids=_DEFAULT_SELLER_IDS,
        rate="shall be 0 (zero) or greater than zero.",
        amount=_RATE_AMOUNT,
        reason=_REASON_FORBIDDEN,
    ),
    *_vat_family(
        "BR-IP",
        "IPSI",
        seller_ids="shall contain the Seller VAT Identifier (BT-31), the Seller tax registration identifier (BT-32) and/or the Seller tax representative VAT identifier (BT-63) and shall not contain the Buyer VAT identifier (BT-48).",
        rate="shall be 0 (zero) or greater than zero.",
        amount=_RATE_AMOUNT,
        reason=_REASON_FORBIDDEN,
    ),
    _r("BR-IC-1", "BG-23 BT-118", "An Invoice that contains an item, allowance or charge where the VAT category code is \"Intra-community supply\" shall contain in the VAT breakdown (BG-23) exactly one VAT category code equal to \"Intra-community supply\"."),
    _r("BR-IC-2", "BT-151 BT-31 BT-63 BT-48", "An Invoice that contains an item, allowance or charge where the VAT category code is \"Intra-community supply\" shall contain the Seller VAT Identifier (BT-31) or the Seller tax representative VAT identifier (BT-63) and the Buyer VAT identifier (BT-48)."),
    _r("BR-IC-3", "BT-152", "In an Invoice line where the Invoiced item VAT category code (BT-151) is \"Intra-community supply\" the Invoiced item VAT rate (BT-152) shall be 0 (zero)."),
    _r("BR-IC-4", "BT-96", "In a Document level allowance where the VAT category code (BT-95) is \"Intra-community supply\" the Document level allowance VAT rate (BT-96) shall be 0 (zero)."),
    _r("BR-IC-5", "BT-103", "In a Document level charge where the VAT category code (BT-102) is \"Intra-community supply\" the Document level charge VAT rate (BT-103) shall be 0 (zero)."),
    _r("BR-IC-6", "BT-116", "In a VAT breakdown (BG-23) where the VAT category code (BT-118) is \"Intra-community supply\" the VAT category taxable amount (BT-116) shall equal the sum of Invoice line net amounts minus document level allowances plus document level charges where the VAT category code is \"Intra-community supply\"."),
    _r("BR-IC-7", "BT-117", "The VAT category tax amount (BT-117) in a VAT breakdown (BG-23) where the VAT category code (BT-118) equals \"Intra-community supply\" shall equal 0 (zero)."),
    _r("BR-IC-8", "BT-116 BT-119", "For each different value of VAT category rate (BT-119) where the VAT category code (BT-118) is \"Intra-community supply\", the VAT category taxable amount (BT-116) shall equal the sum of the matching line net amounts, allowances and charges."),
    _r("BR-IC-9", "BT-117", "The VAT category tax amount (BT-117) in a VAT breakdown (BG-23) where the VAT category code (BT-118) is \"Intra-community supply\" shall be 0 (zero)."),
    _r("BR-IC-10", "BT-120 BT-121", "A VAT breakdown (BG-23) with the VAT Category code (BT-118) \"Intra-community supply\" shall have a VAT exemption reason code (BT-121) or a VAT exemption reason text (BT-120)."),
    _r("BR-IC-11", "BT-72 BG-14", "In an Invoice with a VAT breakdown (BG-23) where the VAT category code (BT-118) is \"Intra-community supply\" the Actual delivery date (BT-72) or the Invoicing period (BG-14) shall not be blank."),
    _r("BR-IC-12", "BT-80", "In an Invoice with a VAT breakdown (BG-23) where the VAT category code (BT-118) is \"Intra-community supply\" the Deliver to country code (BT-80) shall not be blank."),
    _r("BR-O-1", "BG-23 BT-118", "An Invoice that contains an item, allowance or charge where the VAT category code is \"Not subject to VAT\" shall contain exactly one VAT breakdown group (BG-23) with the VAT category code (BT-118) equal to \"Not subject to VAT\"."),
    _r("BR-O-2", "BT-151 BT-31 BT-63 BT-48", "An Invoice that contains an Invoice line where the Invoiced item VAT category code (BT-151) is \"Not subject to VAT\" shall not contain the Seller VAT identifier (BT-31), the Seller tax representative VAT identifier (BT-63) or the Buyer VAT identifier (BT-48)."),
    _r("BR-O-3", "BT-95 BT-31 BT-63 BT-48", "An Invoice that contains a Document level allowance where the VAT category code (BT-95) is \"Not subject to VAT\" shall not contain the Seller VAT identifier (BT-31), the Seller tax representative VAT identifier (BT-63) or the Buyer VAT identifier (BT-48)."),
    _r("BR-O-4", "BT-102 BT-31 BT-63 BT-48", "An Invoice that contains a Document level charge where the VAT category code (BT-102) is \"Not subject to VAT\" shall not contain the Seller VAT identifier (BT-31), the Seller tax representative VAT identifier (BT-63) or the Buyer VAT identifier (BT-48)."),
    _r("BR-O-5", "BT-152", "An Invoice line (BG-25) where the VAT category code (BT-151) is \"Not subject to VAT\" shall not contain an Invoiced item VAT rate (BT-152)."),
    _r("BR-O-6", "BT-96", "A Document level allowance (BG-20) where VAT category code (BT-95) is \"Not subject to VAT\" shall not contain a Document level allowance VAT rate (BT-96)."),
    _r("BR-O-7", "BT-103", "A Document level charge (BG-21) where the VAT category code (BT-102) is \"Not subject to VAT\" shall not contain a Document level charge VAT rate (BT-103)."),
    _r("BR-O-8", "BT-116", "In a VAT breakdown (BG-23) where the VAT category code (BT-118) is \"Not subject to VAT\" the VAT category taxable amount (BT-116) shall equal the sum of Invoice line net amounts minus the sum of document level allowance amounts plus the sum of document level charge amounts where the VAT category codes are \"Not subject to VAT\"."),
    _r("BR-O-9", "BT-117", "The VAT category tax amount (BT-117) in a VAT breakdown (BG-23) where the VAT category code (BT-118) is \"Not subject to VAT\" shall be 0 (zero)."),
    _r("BR-O-10", "BT-120 BT-121", "A VAT breakdown (BG-23) with VAT Category code (BT-118) \"Not subject to VAT\" shall have a VAT exemption reason code (BT-121) or a VAT exemption reason text (BT-120)."),
    _r("BR-O-11", "BG-23", "An Invoice that contains a VAT breakdown group (BG-23) with a VAT category code (BT-118) \"Not subject to VAT\" shall not contain other VAT breakdown groups (BG-23)."),
    _r("BR-O-12", "BT-151", "An Invoice that contains a VAT breakdown group (BG-23) with a VAT category code (BT-118) \"Not subject to VAT\" shall not contain an Invoice line (BG-25) where the Invoiced item VAT category code (BT-151) is not \"Not subject to VAT\"."),
    _r("BR-O-13", "BT-95 BT-102", "An Invoice that contains a VAT breakdown group (BG-23) with a VAT category code (BT-118) \"Not subject to VAT\" shall not contain Document level allowances or charges where the VAT category code is not \"Not subject to VAT\"."),
    _r("BR-O-14", "BG-23", "An Invoice that contains a VAT breakdown group (BG-23) with a VAT category code (BT-118) \"Not subject to VAT\" shall not mix it with VAT breakdown groups of other categories."),
]

_PEPPOL: List[Rule] = [
    _r("PEPPOL-EN16931-R001", "BT-23", "Business process MUST be provided."),
    _r("PEPPOL-EN16931-R002", "BT-22", "No more than one note is allowed on document level."),
    _r("PEPPOL-EN16931-R003", "BT-10 BT-13", "A buyer reference or purchase order reference MUST be provided."),
    _r("PEPPOL-EN16931-R007", "BT-23", "Business process MUST be in the format 'urn:fdc:peppol.eu:2017:poacc:billing:NN:1.0' where NN indicates the process number."),
    _r("PEPPOL-EN16931-R010", "BT-49", "Buyer electronic address MUST be provided."),
    _r("PEPPOL-EN16931-R020", "BT-34", "Seller electronic address MUST be provided."),
    _r("PEPPOL-EN16931-R120", "BT-131", "Invoice line net amount MUST equal (Invoiced quantity * (Item net price/item price base quantity) + Sum of invoice line charge amount - sum of invoice line allowance amount."),
    _r("PEPPOL-EN16931-R121", "BT-149", "Base quantity MUST be a positive number above zero."),
    _r("PEPPOL-EN16931-R130", "BT-150 BT-130", "Unit code of price base quantity MUST be same as invoiced quantity."),
]

_XRECHNUNG: List[Rule] = [
    _r("BR-DE-1", "BG-16", "An invoice must contain information on PAYMENT INSTRUCTIONS (BG-16)."),
    _r("BR-DE-2", "BG-6", "The group SELLER CONTACT (BG-6) must be transmitted."),
    _r("BR-DE-3", "BT-37", "The element Seller city (BT-37) must be transmitted."),
    _r("BR-DE-4", "BT-38", "The element Seller post code (BT-38) must be transmitted."),
    _r("BR-DE-5", "BT-41", "The element Seller contact point (BT-41) must be transmitted."),
    _r("BR-DE-6", "BT-42", "The element Seller contact telephone number (BT-42) must be transmitted."),
    _r("BR-DE-7", "BT-43", "The element Seller contact email address (BT-43) must be transmitted."),
    _r("BR-DE-8", "BT-52", "The element Buyer city (BT-52) must be transmitted."),
    _r("BR-DE-9", "BT-53", "The element Buyer post code (BT-53) must be transmitted."),
    _r("BR-DE-10", "BT-77", "The element Deliver to city (BT-77) must be transmitted if the group DELIVER TO ADDRESS (BG-15) is transmitted."),
    _r("BR-DE-11", "BT-78", "The element Deliver to post code (BT-78) must be transmitted if the group DELIVER TO ADDRESS (BG-15) is transmitted."),
    _r("BR-DE-15", "BT-10", "The element Buyer reference (BT-10) must be transmitted."),
    _r("BR-DE-16", "BT-31 BT-32 BT-63", "VAT identifiers (BT-31, BT-63) must start with an ISO 3166-1 alpha-2 country prefix."),
    _r("BR-DE-17", "BT-3", "Only the invoice type codes 326, 380, 384, 389, 381, 875, 876 and 877 are permitted."),
    _r("BR-DE-18", "BT-20", "Cash discount (Skonto) information in Payment terms (BT-20) must follow the structure #SKONTO#TAGE=n#PROZENT=n.nn#[BASISBETRAG=n.nn#]."),
    _r("BR-DE-19", "BT-84", "For SEPA credit transfer (58) the Payment account identifier (BT-84) should be a correct IBAN."),
    _r("BR-DE-20", "BT-91", "For SEPA direct debit (59) the Debited account identifier (BT-91) should be a correct IBAN."),
    _r("BR-DE-21", "BT-24", "The Specification identifier (BT-24) should contain the XRechnung standard identifier for invoices of German sellers."),
    _r("BR-DE-22", "BT-125", "The filename attribute of all attached documents (BT-125) must be unique."),
    _r("BR-DE-23-a", "BG-17", "If BT-81 is a credit transfer code (30, 58), the group CREDIT TRANSFER (BG-17) must be transmitted."),
    _r("BR-DE-23-b", "BG-18 BG-19", "If BT-81 is a credit transfer code (30, 58), PAYMENT CARD INFORMATION (BG-18) and DIRECT DEBIT (BG-19) must not be transmitted."),
    _r("BR-DE-24-a", "BG-18", "If BT-81 is a card payment code (48, 54, 55), the group PAYMENT CARD INFORMATION (BG-18) must be transmitted."),
    _r("BR-DE-24-b", "BG-17 BG-19", "If BT-81 is a card payment code (48, 54, 55), CREDIT TRANSFER (BG-17) and DIRECT DEBIT (BG-19) must not be transmitted."),
    _r("BR-DE-25-a", "BG-19", "If BT-81 is the direct debit code (59), the group DIRECT DEBIT (BG-19) must be transmitted."),
    _r("BR-DE-25-b", "BG-17 BG-18", "If BT-81 is the direct debit code (59), CREDIT TRANSFER (BG-17) and PAYMENT CARD INFORMATION (BG-18) must not be transmitted."),
    _r("BR-DE-26", "BG-3", "If the invoice type code (BT-3) is 384 (corrected invoice), a PRECEDING INVOICE REFERENCE (BG-3) should be transmitted."),
    _r("BR-DE-27", "BT-42", "The Seller contact telephone number (BT-42) should contain at least three digits."),
    _r("BR-DE-28", "BT-43", "The Seller contact email address (BT-43) should contain exactly one @, must not start or end with a dot and must have at least two characters on each side of the @."),
    _r("BR-DE-30", "BT-90", "If the group DIRECT DEBIT (BG-19) is transmitted, the Bank assigned creditor identifier (BT-90) must be transmitted."),
    _r("BR-DE-31", "BT-91", "If the group DIRECT DEBIT (BG-19) is transmitted, the Debited account identifier (BT-91) must be transmitted."),
]


def _build(groups: Iterable[List[Rule]]) -> Mapping[str, Rule]:
    catalog: Dict[str, Rule] = {}
    for group in groups:
        for rule in group:
            if rule.code in catalog:
                raise ValueError(f"duplicate rule code {rule.code}")
            catalog[rule.code] = rule
    return MappingProxyType(catalog)


RULES: Mapping[str, Rule] = _build([_CORE, _CALCULATION, _PRECISION, _VAT, _PEPPOL, _XRECHNUNG])


def get_rule(code: str) -> Rule:
    try:
        return RULES[code]
    except KeyError as exc:
        raise KeyError(f"unknown rule code {code!r}") from exc


__all__ = ["Rule", "RULES", "get_rule"]
