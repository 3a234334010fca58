"""Datumsformate der beiden Syntaxen (CII ``102`` = YYYYMMDD, UBL = ISO 8601)."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

from .errors import InvalidDateError

CII_DATE_FORMAT = "102"
UBL_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_date_cii(value: str, field: str, fmt: Optional[str] = CII_DATE_FORMAT) -> date:
    if fmt is not None and fmt != CII_DATE_FORMAT:
        raise InvalidDateError(field, value, f"format {CII_DATE_FORMAT} (YYYYMMDD), got format {fmt!r}")
    text = value.strip()
    try:
        return datetime.strptime(text, "%Y%m%d").date()
    except ValueError as exc:
        raise InvalidDateError(field, value, "YYYYMMDD") from exc


def parse_date_ubl(value: str, field: str) -> date:
    text = value.strip()
    if not UBL_DATE_RE.fullmatch(text):
        raise InvalidDateError(field, value, "YYYY-MM-DD")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDateError(field, value, "YYYY-MM-DD") from exc


def format_date_cii(value: date) -> str:
    return value.strftime("%Y%m%d")


def format_date_ubl(value: date) -> str:
    return value.isoformat()


__all__ = [
    "CII_DATE_FORMAT",
    "parse_date_cii",
    "parse_date_ubl",
    "format_date_cii",
    "format_date_ubl",
]
