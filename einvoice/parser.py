"""Einstieg für das Einlesen: Syntax-Erkennung über den Wurzel-Namespace."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from .cii.parser import NS as CII_NS
from .cii.parser import parse_cii
from .errors import UnknownSyntaxError
from .logging import get_logger
from .model import Invoice
from .profiles import SchemaType
from .ubl.parser import CREDIT_NOTE_NS, INVOICE_NS, parse_ubl
from .xmlutil import namespace_of, parse_xml

log = get_logger(__name__)

CII_ROOT_NS = CII_NS["rsm"]


def detect_syntax(namespace: str) -> SchemaType:
    if namespace == CII_ROOT_NS:
        return SchemaType.CII
    if namespace in (INVOICE_NS, CREDIT_NOTE_NS):
        return SchemaType.UBL
    return SchemaType.UNKNOWN


def parse(data: Union[bytes, str]) -> Invoice:
    """Liest genau ein XML-Dokument (CII oder UBL) in das semantische Modell.

    Fehler brechen ohne Teilergebnis ab (``ParseError`` und Unterklassen).
    """

    if isinstance(data, str):
        data = data.encode("utf-8")
    root = parse_xml(data)
    namespace = namespace_of(root)
    syntax = detect_syntax(namespace)
    log.debug("detected %s document (%d bytes)", syntax.value, len(data))
    if syntax is SchemaType.CII:
        return parse_cii(root)
    if syntax is SchemaType.UBL:
        return parse_ubl(root)
    raise UnknownSyntaxError(namespace)


def parse_file(path: Union[str, Path]) -> Invoice:
    return parse(Path(path).read_bytes())


__all__ = ["CII_ROOT_NS", "detect_syntax", "parse", "parse_file"]
