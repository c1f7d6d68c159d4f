"""Configuration management for the statement importer."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

MIB = 1024 * 1024
PACKAGE_LOGGER = "statement_importer"


def _default_known_banks() -> dict[str, list[str]]:
    # Checked in order, first hit wins
    return {
        "Nubank": ["nubank", "nu pagamentos"],
        "Banco Inter": ["banco inter", "inter.co"],
        "Itaú": ["itaú", "itau"],
        "Bradesco": ["bradesco"],
        "Santander": ["santander"],
        "Banco do Brasil": ["banco do brasil", "bb.com.br"],
        "Caixa Econômica": ["caixa econômica", "caixa economica", "cef"],
    }


class Settings(BaseSettings):
    """Importer settings loaded from environment variables."""

    # File limits
    max_upload_bytes: int = 10 * MIB
    csv_max_bytes: int = 5 * MIB
    ofx_max_bytes: int = 10 * MIB

    # How much of a file a parser may read while probing
    csv_probe_bytes: int = 500
    ofx_probe_bytes: int = 1000
    pdf_probe_bytes: int = 1024

    # Keep credits/refunds as positive amounts instead of dropping them
    include_credits: bool = False

    # Best-effort PDF extraction
    pdf_description_max_length: int = 200
    pdf_min_description_length: int = 4
    pdf_max_amount: float = 1_000_000.0
    known_banks: dict[str, list[str]] = Field(default_factory=_default_known_banks)

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="STATEMENT_IMPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def configure_logging(self) -> None:
        """Apply log_level to every statement_importer logger."""
        logging.getLogger(PACKAGE_LOGGER).setLevel(self.log_level)

    def log_config(self) -> None:
        """Log current configuration."""
        logger.info("Max upload size:     %.1f MiB", self.max_upload_bytes / MIB)
        logger.info("CSV size ceiling:    %.1f MiB", self.csv_max_bytes / MIB)
        logger.info("OFX size ceiling:    %.1f MiB", self.ofx_max_bytes / MIB)
        logger.info("Include credits:     %s", self.include_credits)
        logger.info("Known banks:         %s", ", ".join(self.known_banks))
        logger.info("Log level:           %s", self.log_level)


# Global settings instance
settings = Settings()
