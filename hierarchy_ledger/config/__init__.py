"""Configuration package."""

from hierarchy_ledger.config.settings import Settings, settings

__all__ = ["Settings", "settings"]
