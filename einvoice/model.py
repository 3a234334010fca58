"""Semantisches Rechnungsmodell nach EN 16931.

Das Modell ist syntaxneutral: CII- und UBL-Parser erzeugen dieselben
Objekte, beide Writer lesen sie. Beträge sind ``Decimal``, Datumswerte
``datetime.date`` oder ``None``.

Schattenzustand (Präsenz-Flags, Fremdwährungs-Steuersummen, Verstöße) ist von
der Gleichheit ausgenommen, damit ``parse(write(inv)) == inv`` gilt.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List, Optional

from .decimals import ZERO, to_decimal
from .profiles import ProfileLevel, SchemaType, level_for_urn

if TYPE_CHECKING:  # pragma: no cover
    from .validation import Violation

CATEGORY_STANDARD = "S"
CATEGORY_ZERO = "Z"
CATEGORY_EXEMPT = "E"
CATEGORY_REVERSE_CHARGE = "AE"
CATEGORY_INTRA_COMMUNITY = "K"
CATEGORY_EXPORT = "G"
CATEGORY_NOT_SUBJECT = "O"
CATEGORY_IGIC = "L"
CATEGORY_IPSI = "M"

VAT_CATEGORIES = ("S", "Z", "E", "AE", "K", "G", "O", "L", "M")
ZERO_RATED_CATEGORIES = frozenset({"Z", "E", "AE", "K", "G", "O"})

TYPE_CODE_INVOICE = 380
TYPE_CODE_CREDIT_NOTE = 381
TYPE_CODE_CORRECTED = 384


def _present(flag: Optional[bool], value: Decimal) -> bool:
    return flag if flag is not None else not value.is_zero()


@dataclass(frozen=True, slots=True)
class PostalAddress:
    country_code: str = ""
    postcode: str = ""
    line1: str = ""
    line2: str = ""
    line3: str = ""
    city: str = ""
    subdivision: str = ""


@dataclass(frozen=True, slots=True)
class LegalOrganization:
    id: str = ""
    scheme: str = ""
    trading_name: str = ""


@dataclass(frozen=True, slots=True)
class Contact:
    name: str = ""
    department: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True, slots=True)
class SchemedID:
    id: str
    scheme: str = ""


@dataclass(slots=True)
class Party:
    name: str = ""
    ids: List[str] = field(default_factory=list)
    global_ids: List[SchemedID] = field(default_factory=list)
    legal_organization: Optional[LegalOrganization] = None
    postal_address: Optional[PostalAddress] = None
    electronic_address: str = ""
    electronic_address_scheme: str = ""
    vat_id: str = ""
    tax_registration_id: str = ""
    contacts: List[Contact] = field(default_factory=list)

    @property
    def country_code(self) -> str:
        return self.postal_address.country_code if self.postal_address else ""

    @property
    def legal_id(self) -> str:
        return self.legal_organization.id if self.legal_organization else ""


@dataclass(frozen=True, slots=True)
class Characteristic:
    name: str = ""
    value: str = ""


@dataclass(frozen=True, slots=True)
class Classification:
    code: str = ""
    list_id: str = ""
    list_version_id: str = ""


@dataclass(slots=True)
class AllowanceCharge:
    """Zu- oder Abschlag auf Beleg-, Positions- oder Preisebene."""

    is_charge: bool = False
    actual_amount: Decimal = ZERO
    basis_amount: Decimal = ZERO
    calculation_percent: Decimal = ZERO
    reason_code: str = ""
    reason: str = ""
    tax_type_code: str = "VAT"
    tax_category: str = ""
    tax_rate: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("actual_amount", "basis_amount", "calculation_percent", "tax_rate"):
            setattr(self, name, to_decimal(getattr(self, name)))


@dataclass(slots=True)
class TradeTax:
    type_code: str = "VAT"
    category_code: str = ""
    rate: Decimal = ZERO
    basis_amount: Decimal = ZERO
    calculated_amount: Decimal = ZERO
    exemption_reason: str = ""
    exemption_reason_code: str = ""
    tax_point_date: Optional[date] = None
    due_date_type_code: str = ""

    def __post_init__(self) -> None:
        for name in ("rate", "basis_amount", "calculated_amount"):
            setattr(self, name, to_decimal(getattr(self, name)))


@dataclass(slots=True)
class InvoiceLine:
    line_id: str = ""
    note: str = ""
    item_name: str = ""
    description: str = ""
    seller_item_id: str = ""
    buyer_item_id: str = ""
    global_id: str = ""
    global_id_scheme: str = ""
    characteristics: List[Characteristic] = field(default_factory=list)
    classifications: List[Classification] = field(default_factory=list)
    origin_country: str = ""
    gross_price: Decimal = ZERO
    price_allowances: List[AllowanceCharge] = field(default_factory=list)
    net_price: Decimal = ZERO
    base_quantity: Decimal = ZERO
    base_quantity_unit: str = ""
    billed_quantity: Decimal = ZERO
    billed_quantity_unit: str = ""
    line_total: Decimal = ZERO
    tax_type_code: str = "VAT"
    tax_category: str = ""
    tax_rate: Decimal = ZERO
    allowances: List[AllowanceCharge] = field(default_factory=list)
    charges: List[AllowanceCharge] = field(default_factory=list)
    billing_period_start: Optional[date] = None
    billing_period_end: Optional[date] = None
    order_line_reference: str = ""
    accounting_reference: str = ""
    object_id: str = ""
    line_total_present: Optional[bool] = field(default=None, compare=False, repr=False)
    net_price_present: Optional[bool] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        for name in ("gross_price", "net_price", "base_quantity", "billed_quantity", "line_total", "tax_rate"):
            setattr(self, name, to_decimal(getattr(self, name)))

    def has_line_total(self) -> bool:
        return _present(self.line_total_present, self.line_total)

    def has_net_price(self) -> bool:
        return _present(self.net_price_present, self.net_price)


@dataclass(slots=True)
class PaymentMeans:
    type_code: int = 0
    information: str = ""
    payee_iban: str = ""
    payee_account_name: str = ""
    payee_proprietary_id: str = ""
    payee_bic: str = ""
    payer_iban: str = ""
    card_id: str = ""
    card_holder: str = ""
    payee_account_present: Optional[bool] = field(default=None, compare=False, repr=False)

    def has_payee_account(self) -> bool:
        if self.payee_account_present is not None:
            return self.payee_account_present
        return bool(self.payee_iban or self.payee_proprietary_id)


@dataclass(slots=True)
class PaymentTerms:
    description: str = ""
    due_date: Optional[date] = None
    direct_debit_mandate_id: str = ""


@dataclass(frozen=True, slots=True)
class ReferencedDocument:
    id: str = ""
    issue_date: Optional[date] = None


@dataclass(slots=True)
class AttachedDocument:
    id: str = ""
    type_code: str = "916"
    reference_type_code: str = ""
    description: str = ""
    uri: str = ""
    content: bytes = b""
    mime_code: str = ""
    filename: str = ""


@dataclass(frozen=True, slots=True)
class Note:
    text: str = ""
    subject_code: str = ""


@dataclass(frozen=True, slots=True)
class ForeignAmount:
    currency: str
    amount: Decimal


@dataclass(slots=True)
class Invoice:
    invoice_number: str = ""
    type_code: int = 0
    issue_date: Optional[date] = None
    currency: str = ""
    tax_currency: str = ""
    specification_id: str = ""
    business_process_id: str = ""
    buyer_reference: str = ""
    preceding_invoices: List[ReferencedDocument] = field(default_factory=list)

    project_id: str = ""
    project_name: str = ""
    contract_reference: str = ""
    buyer_order_reference: str = ""
    seller_order_reference: str = ""
    receiving_advice_reference: str = ""
    despatch_advice_reference: str = ""
    receivable_account: str = ""
    creditor_reference_id: str = ""
    payment_reference: str = ""

    seller: Party = field(default_factory=Party)
    buyer: Party = field(default_factory=Party)
    payee: Optional[Party] = None
    tax_representative: Optional[Party] = None
    ship_to: Optional[Party] = None

    billing_period_start: Optional[date] = None
    billing_period_end: Optional[date] = None
    delivery_date: Optional[date] = None

    lines: List[InvoiceLine] = field(default_factory=list)
    allowances_charges: List[AllowanceCharge] = field(default_factory=list)
    trade_taxes: List[TradeTax] = field(default_factory=list)

    line_total: Decimal = ZERO
    allowance_total: Decimal = ZERO
    charge_total: Decimal = ZERO
    tax_basis_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    tax_total_accounting: Decimal = ZERO
    grand_total: Decimal = ZERO
    prepaid_total: Decimal = ZERO
    rounding_amount: Decimal = ZERO
    due_payable: Decimal = ZERO

    payment_means: List[PaymentMeans] = field(default_factory=list)
    payment_terms: List[PaymentTerms] = field(default_factory=list)
    attachments: List[AttachedDocument] = field(default_factory=list)
    notes: List[Note] = field(default_factory=list)

    schema_type: SchemaType = field(default=SchemaType.UNKNOWN, compare=False)

    line_total_present: Optional[bool] = field(default=None, compare=False, repr=False)
    tax_basis_total_present: Optional[bool] = field(default=None, compare=False, repr=False)
    grand_total_present: Optional[bool] = field(default=None, compare=False, repr=False)
    due_payable_present: Optional[bool] = field(default=None, compare=False, repr=False)
    foreign_tax_totals: List[ForeignAmount] = field(default_factory=list, compare=False, repr=False)

    parsed: bool = field(default=False, compare=False, repr=False)
    _violations: List["Violation"] = field(default_factory=list, init=False, compare=False, repr=False)
    _warnings: List["Violation"] = field(default_factory=list, init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        for name in (
            "line_total",
            "allowance_total",
            "charge_total",
            "tax_basis_total",
            "tax_total",
            "tax_total_accounting",
            "grand_total",
            "prepaid_total",
            "rounding_amount",
            "due_payable",
        ):
            setattr(self, name, to_decimal(getattr(self, name)))

    @property
    def profile_level(self) -> ProfileLevel:
        return level_for_urn(self.specification_id)

    @property
    def violations(self) -> List["Violation"]:
        return list(self._violations)

    @property
    def warnings(self) -> List["Violation"]:
        return list(self._warnings)

    @property
    def allowances(self) -> List[AllowanceCharge]:
        return [ac for ac in self.allowances_charges if not ac.is_charge]

    @property
    def charges(self) -> List[AllowanceCharge]:
        return [ac for ac in self.allowances_charges if ac.is_charge]

    def has_line_total(self) -> bool:
        return _present(self.line_total_present, self.line_total)

    def has_tax_basis_total(self) -> bool:
        return _present(self.tax_basis_total_present, self.tax_basis_total)

    def has_grand_total(self) -> bool:
        return _present(self.grand_total_present, self.grand_total)

    def has_due_payable(self) -> bool:
        return _present(self.due_payable_present, self.due_payable)

    def validate(self) -> None:
        """Prüft die Rechnung und wirft ``ValidationError`` bei Verstößen."""

        from .validation import validate

        error = validate(self)
        if error is not None:
            raise error


def build_invoice(
    *,
    invoice_number: str,
    issue_date: date,
    seller: Party,
    buyer: Party,
    lines: Iterable[InvoiceLine],
    specification_id: str,
    type_code: int = TYPE_CODE_INVOICE,
    currency: str = "EUR",
    allowances_charges: Iterable[AllowanceCharge] = (),
    payment_terms: Iterable[PaymentTerms] = (),
    payment_means: Iterable[PaymentMeans] = (),
    exemption_reasons: Optional[dict] = None,
) -> Invoice:
    """Erzeugt eine Rechnung und berechnet Steueraufschlüsselung und Summen."""

    from .calculate import derive_tax_breakdown, update_totals

    invoice = Invoice(
        invoice_number=invoice_number,
        type_code=type_code,
        issue_date=issue_date,
        currency=currency,
        specification_id=specification_id,
        seller=seller,
        buyer=buyer,
        lines=list(lines),
        allowances_charges=list(allowances_charges),
        payment_terms=list(payment_terms),
        payment_means=list(payment_means),
    )
    derive_tax_breakdown(invoice, exemption_reasons)
    update_totals(invoice)
    return invoice


__all__ = [
    "CATEGORY_STANDARD",
    "CATEGORY_ZERO",
    "CATEGORY_EXEMPT",
    "CATEGORY_REVERSE_CHARGE",
    "CATEGORY_INTRA_COMMUNITY",
    "CATEGORY_EXPORT",
    "CATEGORY_NOT_SUBJECT",
    "CATEGORY_IGIC",
    "CATEGORY_IPSI",
    "VAT_CATEGORIES",
    "ZERO_RATED_CATEGORIES",
    "TYPE_CODE_INVOICE",
    "TYPE_CODE_CREDIT_NOTE",
    "TYPE_CODE_CORRECTED",
    "PostalAddress",
    "LegalOrganization",
    "Contact",
    "SchemedID",
    "Party",
    "Characteristic",
    "Classification",
    "AllowanceCharge",
    "TradeTax",
    "InvoiceLine",
    "PaymentMeans",
    "PaymentTerms",
    "ReferencedDocument",
    "AttachedDocument",
    "Note",
    "ForeignAmount",
    "Invoice",
    "build_invoice",
]
