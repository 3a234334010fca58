"""UN/CEFACT Cross Industry Invoice (CII) D16B Bindung."""

from .parser import NS, parse_cii
from .writer import write_cii

__all__ = ["NS", "parse_cii", "write_cii"]
