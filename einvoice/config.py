"""Konfiguration mit Pydantic v2 Settings (Präfix ``EINVOICE_``)."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Laufzeit-Einstellungen; keine davon ist für Parse/Write/Validate zwingend."""

    model_config = SettingsConfigDict(env_prefix="EINVOICE_")

    # Fallback syntax for write() when neither argument nor invoice provide one: cii|ubl
    default_syntax: Optional[str] = None
    pretty_print: bool = True
    log_level: str = "INFO"
    redact_pii: bool = True


settings = Settings()
