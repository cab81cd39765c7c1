"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal
from typing import Literal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./hierarchy_ledger.db"
    database_echo: bool = False

    # Commission
    commission_rate: Decimal = Field(
        default=Decimal("0.02"),
        ge=0,
        lt=1,
        description="Fraction of every transfer routed to the sender's parent",
    )
    root_commission_policy: Literal["evaporate", "waive"] = Field(
        default="evaporate",
        description=(
            "What happens to the commission when the sender has no parent: "
            "'evaporate' debits it anyway, 'waive' skips it"
        ),
    )

    # Currency
    currency_decimal_places: int = Field(
        default=2, ge=0, le=8,
        description="Digits after the decimal point of the minor unit"
    )

    # Atomic units
    transaction_timeout_seconds: float = Field(
        default=10.0, gt=0,
        description="Upper bound for a single transactional unit"
    )
    transaction_max_attempts: int = Field(
        default=3, ge=1, le=20,
        description="Attempts before a contended unit surfaces TransientFailure"
    )
    transaction_retry_backoff_seconds: float = Field(
        default=0.05, ge=0,
        description="Linear backoff between attempts"
    )

    # Application
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate log level name."""
        level = v.upper()
        allowed = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(
                f"Invalid log level '{v}'. Expected one of: {', '.join(sorted(allowed))}"
            )
        return level

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "SQLite is not supported in production. "
                    "Set DATABASE_URL to a postgresql+asyncpg:// URL."
                )
        elif self.database_url.startswith("sqlite") and ":memory:" in self.database_url:
            logger.warning(
                "DATABASE_URL points to an in-memory SQLite database; "
                "every connection will see an empty schema."
            )
        return self

    @property
    def minor_unit(self) -> Decimal:
        """Smallest representable amount, e.g. Decimal('0.01')."""
        return Decimal(1).scaleb(-self.currency_decimal_places)

    @property
    def commission_percentage(self) -> Decimal:
        """Commission rate expressed in percent (0.02 -> 2.00)."""
        return (self.commission_rate * 100).quantize(Decimal("0.01"))


# Global settings instance
settings = Settings()
