"""OASIS UBL 2.1 Bindung (Invoice und CreditNote)."""

from .parser import CREDIT_NOTE_NS, INVOICE_NS, NS, parse_ubl
from .writer import write_ubl

__all__ = ["CREDIT_NOTE_NS", "INVOICE_NS", "NS", "parse_ubl", "write_ubl"]
