"""EN 16931 E-Rechnungen: semantisches Modell, CII/UBL, Berechnung und Validierung."""

from .calculate import (
    calculate_line_total,
    calculate_tax_amount,
    derive_tax_breakdown,
    update_allowances_and_charges,
    update_line_totals,
    update_totals,
)
from .errors import (
    EInvoiceError,
    InvalidAttachmentError,
    InvalidDateError,
    InvalidDecimalError,
    MalformedXMLError,
    ParseError,
    UnknownSyntaxError,
    UnsupportedSyntaxError,
    ValidationError,
    WriteError,
)
from .model import (
    AllowanceCharge,
    AttachedDocument,
    Characteristic,
    Classification,
    Contact,
    Invoice,
    InvoiceLine,
    LegalOrganization,
    Note,
    Party,
    PaymentMeans,
    PaymentTerms,
    PostalAddress,
    ReferencedDocument,
    SchemedID,
    TradeTax,
    build_invoice,
)
from .parser import detect_syntax, parse, parse_file
from .profiles import (
    ProfileLevel,
    SchemaType,
    is_profile_urn,
    level_for_urn,
    profile_name,
)
from .rules import RULES, Rule, get_rule
from .validation import Violation, validate
from .writer import write

__all__ = [
    "calculate_line_total",
    "calculate_tax_amount",
    "derive_tax_breakdown",
    "update_allowances_and_charges",
    "update_line_totals",
    "update_totals",
    "EInvoiceError",
    "InvalidAttachmentError",
    "InvalidDateError",
    "InvalidDecimalError",
    "MalformedXMLError",
    "ParseError",
    "UnknownSyntaxError",
    "UnsupportedSyntaxError",
    "ValidationError",
    "WriteError",
    "AllowanceCharge",
    "AttachedDocument",
    "Characteristic",
    "Classification",
    "Contact",
    "Invoice",
    "InvoiceLine",
    "LegalOrganization",
    "Note",
    "Party",
    "PaymentMeans",
    "PaymentTerms",
    "PostalAddress",
    "ReferencedDocument",
    "SchemedID",
    "TradeTax",
    "build_invoice",
    "detect_syntax",
    "parse",
    "parse_file",
    "ProfileLevel",
    "SchemaType",
    "is_profile_urn",
    "level_for_urn",
    "profile_name",
    "RULES",
    "Rule",
    "get_rule",
    "Violation",
    "validate",
    "write",
]
