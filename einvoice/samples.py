"""Deterministische Beispielrechnungen für Tests und Rundreisen."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional

from .model import (
    AllowanceCharge,
    Contact,
    Invoice,
    InvoiceLine,
    Party,
    PaymentMeans,
    PaymentTerms,
    PostalAddress,
    build_invoice,
)
from .profiles import EN16931


@dataclass(frozen=True)
class SampleScenario:
    code: str
    description: str
    # (Bezeichnung, Menge, Nettopreis, Kategorie, Satz)
    line_specs: tuple[tuple[str, str, str, str, str], ...]
    # (Zuschlag?, Betrag, Kategorie, Satz)
    allowance_charge_specs: tuple[tuple[bool, str, str, str], ...] = ()
    buyer_vat_id: str = ""
    exemption_reason: str = ""
    ship_to_country: str = ""


SELLER_PARTY = Party(
    name="Tenant Seller GmbH",
    postal_address=PostalAddress(
        line1="Sample Street 1",
        postcode="10115",
        city="Berlin",
        country_code="DE",
    ),
    electronic_address="billing@seller.example",
    electronic_address_scheme="EM",
    vat_id="DE123456789",
    contacts=[Contact(name="Erika Muster", phone="+49 30 1234567", email="erika@seller.example")],
)

BUYER_PARTY = Party(
    name="Customer GmbH",
    postal_address=PostalAddress(
        line1="Customer Way 5",
        postcode="20095",
        city="Hamburg",
        country_code="DE",
    ),
)

SELLER_IBAN = "DE02120300000000202051"


def _make_line(index: int, spec: tuple[str, str, str, str, str]) -> InvoiceLine:
    name, quantity, net_price, category, rate = spec
    qty = Decimal(quantity)
    price = Decimal(net_price)
    return InvoiceLine(
        line_id=str(index),
        item_name=name,
        billed_quantity=qty,
        billed_quantity_unit="C62",
        net_price=price,
        line_total=qty * price,
        tax_category=category,
        tax_rate=Decimal(rate),
    )


def _make_allowance_charge(spec: tuple[bool, str, str, str]) -> AllowanceCharge:
    is_charge, amount, category, rate = spec
    return AllowanceCharge(
        is_charge=is_charge,
        actual_amount=Decimal(amount),
        reason="Fracht" if is_charge else "Rabatt",
        reason_code="FC" if is_charge else "95",
        tax_category=category,
        tax_rate=Decimal(rate),
    )


SCENARIOS: List[SampleScenario] = [
    SampleScenario("S1", "single_standard", (("Consulting", "1", "100.00", "S", "19"),)),
    SampleScenario(
        "S2",
        "allowance_and_charge",
        (("Hardware", "1", "1000.00", "S", "19"),),
        allowance_charge_specs=((False, "100.00", "S", "19"), (True, "50.00", "S", "19")),
    ),
    SampleScenario(
        "S3",
        "reverse_charge",
        (("Installation", "1", "100.00", "AE", "0"),),
        buyer_vat_id="FR456",
        exemption_reason="reverse charge",
    ),
    SampleScenario(
        "S4",
        "intra_community_rounding",
        (
            ("Goods A", "1", "50.004", "K", "0"),
            ("Goods B", "1", "49.997", "K", "0"),
        ),
        buyer_vat_id="FR456789012",
        exemption_reason="Intra-community supply",
        ship_to_country="FR",
    ),
    SampleScenario("S5", "invalid_precision", (("Odd amount", "1", "100.123", "S", "19"),)),
    SampleScenario(
        "S6",
        "mixed_rates",
        (
            ("Consulting", "1", "100.00", "S", "19"),
            ("Books", "2", "30.00", "S", "7"),
        ),
    ),
]


def iter_sample_scenarios() -> Iterable[SampleScenario]:
    return list(SCENARIOS)


def get_scenario(code: str) -> SampleScenario:
    for scenario in SCENARIOS:
        if scenario.code == code:
            return scenario
    raise KeyError(code)


def build_sample_invoice(
    scenario: SampleScenario,
    *,
    invoice_number: str = "RE-2024-0001",
    issue_date: date = date(2024, 3, 1),
    specification_id: str = EN16931,
    payment_days: int = 14,
    seller: Optional[Party] = None,
    buyer: Optional[Party] = None,
) -> Invoice:
    """Baut die Rechnung eines Szenarios inklusive Steueraufschlüsselung und Summen.

    Parteien werden pro Aufruf kopiert, damit Tests sie verändern können.
    """

    seller = _copy_party(seller or SELLER_PARTY)
    buyer = _copy_party(buyer or BUYER_PARTY)
    if scenario.buyer_vat_id:
        buyer.vat_id = scenario.buyer_vat_id

    lines = [_make_line(i, spec) for i, spec in enumerate(scenario.line_specs, start=1)]
    reasons = None
    if scenario.exemption_reason:
        reasons = {spec[3]: scenario.exemption_reason for spec in scenario.line_specs if Decimal(spec[4]).is_zero()}

    invoice = build_invoice(
        invoice_number=invoice_number,
        issue_date=issue_date,
        seller=seller,
        buyer=buyer,
        lines=lines,
        specification_id=specification_id,
        allowances_charges=[_make_allowance_charge(spec) for spec in scenario.allowance_charge_specs],
        payment_terms=[
            PaymentTerms(
                description=f"Zahlbar innerhalb {payment_days} Tagen",
                due_date=issue_date + timedelta(days=payment_days),
            )
        ],
        payment_means=[PaymentMeans(type_code=58, payee_iban=SELLER_IBAN)],
        exemption_reasons=reasons,
    )
    invoice.buyer_reference = "04011000-12345-34"
    if scenario.ship_to_country:
        invoice.delivery_date = issue_date
        invoice.ship_to = Party(name=buyer.name, postal_address=PostalAddress(country_code=scenario.ship_to_country))
    return invoice


def _copy_party(party: Party) -> Party:
    return Party(
        name=party.name,
        ids=list(party.ids),
        global_ids=list(party.global_ids),
        legal_organization=party.legal_organization,
        postal_address=party.postal_address,
        electronic_address=party.electronic_address,
        electronic_address_scheme=party.electronic_address_scheme,
        vat_id=party.vat_id,
        tax_registration_id=party.tax_registration_id,
        contacts=list(party.contacts),
    )


__all__ = [
    "SampleScenario",
    "SCENARIOS",
    "SELLER_PARTY",
    "BUYER_PARTY",
    "SELLER_IBAN",
    "iter_sample_scenarios",
    "get_scenario",
    "build_sample_invoice",
]
