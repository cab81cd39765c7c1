"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Settings instance with default commission
- Fake session factory for the atomic-unit runner
"""

from decimal import Decimal

import pytest

from hierarchy_ledger.config.settings import Settings


class FakeSessionMaker:
    """
    Stand-in for async_sessionmaker.

    Hands out the same mocked session on every call and records how many
    sessions were opened.
    """

    def __init__(self, session) -> None:
        self.session = session
        self.opened = 0

    def __call__(self) -> "FakeSessionMaker":
        self.opened += 1
        return self

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


@pytest.fixture
def unit_settings():
    """
    Settings with default commission and no database access.

    Returns:
        Settings: 2% commission, evaporate policy, two decimal places
    """
    return Settings(
        database_url="sqlite+aiosqlite:///./unused.db",
        commission_rate=Decimal("0.02"),
    )


@pytest.fixture
def fake_session_maker(mock_session):
    """
    Session factory over the mocked session.

    Args:
        mock_session: Mocked database session

    Returns:
        FakeSessionMaker: Factory yielding mock_session
    """
    return FakeSessionMaker(mock_session)
