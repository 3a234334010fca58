"""Tests for PII redaction in logs and the EINVOICE_ settings."""

from __future__ import annotations

import logging

import pytest

from einvoice.config import Settings, settings
from einvoice.logging import PIIRedactionFilter, get_logger, setup_logging
from einvoice.validation import validate


@pytest.mark.parametrize(
    ("message", "hidden", "kept"),
    [
        ("Zahlung an DE02120300000000202051", "120300000000202051", "DE"),
        ("Kontakt erika@seller.example", "rika@", "e*"),
        ("Rückruf unter +49 30 1234567", "30 1234567", "+4"),
        ("Rechnung RE-2024-0001 vom 20240301", None, "RE-2024-0001 vom 20240301"),
    ],
    ids=["iban", "email", "phone", "no_pii"],
)
def test_redact(message: str, hidden, kept: str) -> None:
    redacted = PIIRedactionFilter().redact(message)

    if hidden is not None:
        assert hidden not in redacted
    assert kept in redacted


def test_filter_redacts_arguments_and_respects_switch(monkeypatch) -> None:
    record = logging.LogRecord("einvoice", logging.INFO, __file__, 1, "iban %s", ("DE02120300000000202051",), None)

    PIIRedactionFilter().filter(record)

    assert record.getMessage() == "iban DE" + "*" * 20

    monkeypatch.setattr(settings, "redact_pii", False)
    raw = logging.LogRecord("einvoice", logging.INFO, __file__, 1, "iban %s", ("DE02120300000000202051",), None)
    PIIRedactionFilter().filter(raw)
    assert raw.getMessage() == "iban DE02120300000000202051"


def test_get_logger_attaches_filter_once() -> None:
    first = get_logger("einvoice.tests")
    second = get_logger("einvoice.tests")

    assert first is second
    assert sum(isinstance(f, PIIRedactionFilter) for f in first.filters) == 1


def test_setup_logging_sets_package_level() -> None:
    package = logging.getLogger("einvoice")
    previous = package.level
    try:
        setup_logging("debug")
        assert package.level == logging.DEBUG
    finally:
        package.setLevel(previous)


def test_validation_logs_summary(s1_invoice, caplog) -> None:
    s1_invoice.invoice_number = ""

    with caplog.at_level(logging.INFO, logger="einvoice"):
        validate(s1_invoice)

    assert "failed validation with 1 violations, 1 warnings" in caplog.text


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("EINVOICE_DEFAULT_SYNTAX", "ubl")
    monkeypatch.setenv("EINVOICE_PRETTY_PRINT", "false")
    monkeypatch.setenv("EINVOICE_REDACT_PII", "0")

    fresh = Settings()

    assert fresh.default_syntax == "ubl"
    assert fresh.pretty_print is False
    assert fresh.redact_pii is False
    assert fresh.log_level == "INFO"


def test_settings_defaults(monkeypatch) -> None:
    for name in ("EINVOICE_DEFAULT_SYNTAX", "EINVOICE_PRETTY_PRINT", "EINVOICE_LOG_LEVEL", "EINVOICE_REDACT_PII"):
        monkeypatch.delenv(name, raising=False)

    fresh = Settings()

    assert fresh.default_syntax is None
    assert fresh.pretty_print is True
    assert fresh.redact_pii is True
