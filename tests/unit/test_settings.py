"""Unit tests for application settings."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from hierarchy_ledger.config.settings import Settings


class TestSettingsDefaults:
    """Test default values."""

    def test_defaults(self):
        settings = Settings(environment="development")

        assert settings.commission_rate == Decimal("0.02")
        assert settings.root_commission_policy == "evaporate"
        assert settings.currency_decimal_places == 2
        assert settings.transaction_max_attempts >= 1

    def test_minor_unit(self):
        assert Settings().minor_unit == Decimal("0.01")
        assert Settings(currency_decimal_places=3).minor_unit == Decimal("0.001")

    def test_commission_percentage(self):
        assert Settings(commission_rate=Decimal("0.02")).commission_percentage == Decimal("2.00")
        assert Settings(commission_rate=Decimal("0.125")).commission_percentage == Decimal("12.50")


class TestSettingsValidation:
    """Test field and model validation."""

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="loud")

    @pytest.mark.parametrize("rate", [Decimal("-0.01"), Decimal("1"), Decimal("1.5")])
    def test_commission_rate_bounds(self, rate):
        with pytest.raises(ValidationError):
            Settings(commission_rate=rate)

    def test_invalid_policy(self):
        with pytest.raises(ValidationError):
            Settings(root_commission_policy="redirect")

    def test_waive_policy(self):
        assert Settings(root_commission_policy="waive").root_commission_policy == "waive"

    def test_production_rejects_sqlite(self):
        with pytest.raises(ValidationError, match="SQLite"):
            Settings(environment="production", database_url="sqlite+aiosqlite:///./x.db")

    def test_production_rejects_debug(self):
        with pytest.raises(ValidationError, match="DEBUG"):
            Settings(
                environment="production",
                debug=True,
                database_url="postgresql+asyncpg://u:p@localhost/ledger",
            )

    def test_production_with_postgres(self):
        settings = Settings(
            environment="production",
            database_url="postgresql+asyncpg://u:p@localhost/ledger",
        )
        assert settings.environment == "production"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("COMMISSION_RATE", "0.05")
        monkeypatch.setenv("ROOT_COMMISSION_POLICY", "waive")

        settings = Settings()

        assert settings.commission_rate == Decimal("0.05")
        assert settings.root_commission_policy == "waive"
