"""Logging mit PII-Schwärzung (IBAN, E-Mail, Telefonnummer).

Rechnungen enthalten Bankverbindungen und Kontaktdaten; alle Logger des
Pakets laufen daher über ``PIIRedactionFilter``.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .config import settings


class PIIRedactionFilter(logging.Filter):
    """Filter to redact PII from log messages."""

    iban_pattern = re.compile(r"\b([A-Z]{2}\d{2}[A-Z0-9]{11,30})\b")
    email_pattern = re.compile(r"(\b[^\s@]+@[^\s@]+\.[^\s@]+\b)")
    # Phone numbers start with + or a trunk prefix 0; dates must not match.
    phone_pattern = re.compile(r"((?:\+|\b0)\d[\d \-/]{5,}\d)")

    def redact(self, text: str) -> str:
        text = self.iban_pattern.sub(self._mask_iban, text)
        text = self.email_pattern.sub(self._mask_email, text)
        return self.phone_pattern.sub(self._mask_phone, text)

    def filter(self, record: logging.LogRecord) -> bool:
        if not settings.redact_pii:
            return True
        if record.msg:
            record.msg = self.redact(str(record.msg))
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(self.redact(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True

    @staticmethod
    def _mask_iban(match: re.Match) -> str:
        iban = match.group(1)
        return iban[:2] + "*" * (len(iban) - 2)

    @staticmethod
    def _mask_email(match: re.Match) -> str:
        user, domain = match.group(1).split("@", 1)
        masked_user = "*" if len(user) <= 1 else user[0] + "*" * (len(user) - 1)
        return f"{masked_user}@{domain}"

    @staticmethod
    def _mask_phone(match: re.Match) -> str:
        phone = match.group(1)
        return phone[:2] + "*" * (len(phone) - 2)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with PII redaction applied."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, PIIRedactionFilter) for f in logger.filters):
        logger.addFilter(PIIRedactionFilter())
    return logger


def setup_logging(level: Optional[str] = None) -> None:
    """Setzt das Level des Paket-Loggers und hängt den Filter an alle Root-Handler."""

    logging.getLogger("einvoice").setLevel((level or settings.log_level).upper())
    pii_filter = PIIRedactionFilter()
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, PIIRedactionFilter) for f in handler.filters):
            handler.addFilter(pii_filter)


__all__ = ["PIIRedactionFilter", "get_logger", "setup_logging"]
