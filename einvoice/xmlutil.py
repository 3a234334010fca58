"""Dünne XML-Schicht über ``lxml`` für beide Syntax-Bindungen."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from lxml import etree

from .decimals import ZERO
from .errors import InvalidDecimalError, MalformedXMLError

Element = etree._Element


def _safe_parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True, huge_tree=False)


def parse_xml(data: bytes) -> Element:
    try:
        return etree.fromstring(data, parser=_safe_parser())
    except etree.XMLSyntaxError as exc:
        raise MalformedXMLError(f"malformed XML: {exc}") from exc


def strip_ns(tag: str) -> str:
    return tag.split("}", 1)[1] if "}" in tag else tag


def namespace_of(element: Element) -> str:
    return etree.QName(element).namespace or ""


def parse_decimal(text: str, field: str) -> Decimal:
    text = (text or "").strip()
    if not text:
        return ZERO
    try:
        value = Decimal(text)
    except InvalidOperation as exc:
        raise InvalidDecimalError(field, text) from exc
    if not value.is_finite():
        raise InvalidDecimalError(field, text)
    return value


class Reader:
    """Namespace-gebundene Lesezugriffe; fehlende Elemente liefern Leerwerte."""

    def __init__(self, namespaces: Dict[str, str]) -> None:
        self.ns = namespaces

    def find(self, element: Optional[Element], path: str) -> Optional[Element]:
        if element is None:
            return None
        return element.find(path, self.ns)

    def findall(self, element: Optional[Element], path: str) -> List[Element]:
        if element is None:
            return []
        return element.findall(path, self.ns)

    def exists(self, element: Optional[Element], path: str) -> bool:
        return self.find(element, path) is not None

    def text(self, element: Optional[Element], path: str = "") -> str:
        target = self.find(element, path) if path else element
        if target is None or target.text is None:
            return ""
        return target.text.strip()

    def attr(self, element: Optional[Element], path: str, name: str) -> str:
        target = self.find(element, path) if path else element
        if target is None:
            return ""
        return (target.get(name) or "").strip()

    def decimal(self, element: Optional[Element], path: str, field: str) -> Decimal:
        return parse_decimal(self.text(element, path), field)


class Builder:
    """Erzeugt Elemente über Präfix-Notation (``"ram:ID"``)."""

    def __init__(self, namespaces: Dict[Optional[str], str], default_prefix: Optional[str]) -> None:
        self.ns = namespaces
        self.default_prefix = default_prefix

    def qname(self, tag: str) -> str:
        prefix, local = tag.split(":", 1) if ":" in tag else (self.default_prefix, tag)
        return f"{{{self.ns[prefix]}}}{local}"

    def root(self, tag: str) -> Element:
        return etree.Element(self.qname(tag), nsmap=dict(self.ns))

    def el(self, parent: Element, tag: str, text: Optional[str] = None, **attribs: str) -> Element:
        elem = etree.SubElement(parent, self.qname(tag))
        if text is not None:
            elem.text = str(text)
        for key, value in attribs.items():
            if value:
                elem.set(key, str(value))
        return elem

    def opt(self, parent: Element, tag: str, text: Optional[str], **attribs: str) -> Optional[Element]:
        """Wie ``el``, aber nur für nicht-leere Werte."""

        if not text:
            return None
        return self.el(parent, tag, text, **attribs)


def to_bytes(root: Element, *, pretty: bool = True) -> bytes:
    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=pretty)


__all__ = [
    "Element",
    "parse_xml",
    "strip_ns",
    "namespace_of",
    "parse_decimal",
    "Reader",
    "Builder",
    "to_bytes",
]
