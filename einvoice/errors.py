"""Fehlerhierarchie für Parser, Writer und Validierung."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .validation import Violation


class EInvoiceError(RuntimeError):
    """Basisklasse aller Fehler des Pakets."""


class ParseError(EInvoiceError):
    """Das Eingabedokument konnte nicht in das semantische Modell überführt werden."""


class UnknownSyntaxError(ParseError):
    def __init__(self, namespace: str) -> None:
        super().__init__(f"unknown invoice syntax (root namespace {namespace!r})")
        self.namespace = namespace


class MalformedXMLError(ParseError):
    pass


class InvalidDecimalError(ParseError):
    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"{field}: invalid decimal value {value!r}")
        self.field = field
        self.value = value


class InvalidDateError(ParseError):
    def __init__(self, field: str, value: str, expected: str) -> None:
        super().__init__(f"{field}: invalid date {value!r}, expected {expected}")
        self.field = field
        self.value = value
        self.expected = expected


class InvalidAttachmentError(ParseError):
    def __init__(self, field: str, reason: str = "invalid base64 content") -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field


class WriteError(EInvoiceError):
    """Serialisierung oder Ausgabe in die Senke ist fehlgeschlagen."""


class UnsupportedSyntaxError(WriteError):
    pass


class ValidationError(EInvoiceError):
    """Sammelt alle Regelverletzungen eines Validierungslaufs.

    ``str(err)`` nennt die erste Verletzung; ``violations`` und ``warnings``
    liefern Kopien, damit Aufrufer den Zustand der Rechnung nicht verändern.
    """

    def __init__(
        self,
        violations: List["Violation"],
        warnings: Optional[List["Violation"]] = None,
    ) -> None:
        self._violations = list(violations)
        self._warnings = list(warnings or [])
        super().__init__(self._summary())

    def _summary(self) -> str:
        if not self._violations:
            return "validation failed with no violations"
        first = self._violations[0]
        if len(self._violations) == 1:
            return f"validation failed: {first.code} - {first.text}"
        return (
            f"validation failed with {len(self._violations)} violations "
            f"(first: {first.code} - {first.text})"
        )

    def __str__(self) -> str:
        return self._summary()

    @property
    def violations(self) -> List["Violation"]:
        return list(self._violations)

    @property
    def warnings(self) -> List["Violation"]:
        return list(self._warnings)

    @property
    def count(self) -> int:
        return len(self._violations)

    def has_rule(self, code: str) -> bool:
        return any(v.code == code for v in self._violations)

    def by_code(self, code: str) -> List["Violation"]:
        return [v for v in self._violations if v.code == code]


__all__ = [
    "EInvoiceError",
    "ParseError",
    "UnknownSyntaxError",
    "MalformedXMLError",
    "InvalidDecimalError",
    "InvalidDateError",
    "InvalidAttachmentError",
    "WriteError",
    "UnsupportedSyntaxError",
    "ValidationError",
]
