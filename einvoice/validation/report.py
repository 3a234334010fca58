"""Verstöße, Warnungen und der Sammelbehälter eines Validierungslaufs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..rules import Rule, get_rule


@dataclass(frozen=True, slots=True)
class Violation:
    rule: Rule
    text: str

    @property
    def code(self) -> str:
        return self.rule.code

    def __str__(self) -> str:
        return f"{self.code}: {self.text}"


class Report:
    """Sammelt Verstöße und Warnungen in Aufrufreihenfolge."""

    def __init__(self) -> None:
        self.violations: List[Violation] = []
        self.warnings: List[Violation] = []

    def fail(self, code: str, text: Optional[str] = None) -> None:
        rule = get_rule(code)
        self.violations.append(Violation(rule, text or rule.description))

    def warn(self, code: str, text: Optional[str] = None) -> None:
        rule = get_rule(code)
        self.warnings.append(Violation(rule, text or rule.description))


__all__ = ["Violation", "Report"]
