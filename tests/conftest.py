"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path
from types import SimpleNamespace

# Minimal environment for tests; must be set before settings are imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("COMMISSION_RATE", "0.02")
os.environ.setdefault("CURRENCY_DECIMAL_PLACES", "2")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.database import create_engine, create_session_maker, init_models
from hierarchy_ledger.models.enums import AccountRole
from hierarchy_ledger.services.network_service import ActorContext, NetworkService
from hierarchy_ledger.utils.security import PasswordHasher


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def db_url(tmp_path):
    """File-backed SQLite database, one per test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def test_settings(db_url):
    """Settings pointing at the per-test database."""
    return Settings(
        database_url=db_url,
        commission_rate=Decimal("0.02"),
        root_commission_policy="evaporate",
        transaction_timeout_seconds=30.0,
        transaction_max_attempts=3,
        transaction_retry_backoff_seconds=0.01,
    )


@pytest.fixture
def hasher():
    """Fast bcrypt hasher (minimum cost factor)."""
    return PasswordHasher(rounds=4)


@pytest_asyncio.fixture
async def engine(test_settings):
    """Engine with all tables created."""
    engine = create_engine(test_settings)
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test engine."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Plain session for direct assertions."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def network(session_maker, test_settings, hasher):
    """NetworkService over the test database."""
    return NetworkService(session_maker, test_settings, hasher)


def actor_of(account) -> ActorContext:
    """Identity context for an account."""
    return ActorContext(account_id=account.id, role=account.role)


@pytest_asyncio.fixture
async def hierarchy(network):
    """
    Standard network used by integration tests.

    Shape:
        admin (root, admin role)
        peter (root) -> xavier -> yvonne -> zed

    Balances after setup:
        peter 900.00, xavier 100.00, yvonne 0, zed 0
    """
    admin = await network.register("admin", "admin-pass", role=AccountRole.ADMIN)
    peter = await network.register("peter", "peter-pass")
    xavier = await network.create_child_account(actor_of(peter), "xavier", "xavier-pass")
    yvonne = await network.create_child_account(actor_of(xavier), "yvonne", "yvonne-pass")
    zed = await network.create_child_account(actor_of(yvonne), "zed", "zed-pass-1")

    await network.issue_credit(actor_of(admin), peter.id, "1000")
    await network.issue_credit(actor_of(admin), xavier.id, "100")

    return SimpleNamespace(
        admin=admin,
        peter=peter,
        xavier=xavier,
        yvonne=yvonne,
        zed=zed,
        admin_ctx=actor_of(admin),
        peter_ctx=actor_of(peter),
        xavier_ctx=actor_of(xavier),
        yvonne_ctx=actor_of(yvonne),
        zed_ctx=actor_of(zed),
    )


@pytest.fixture
def balance_of(network):
    """Current balance of an account, read through the dashboard."""

    async def _balance_of(account) -> Decimal:
        result = await network.get_dashboard_summary(account.id)
        assert result.success, result.error
        return result.data["balance"]

    return _balance_of


@pytest.fixture
def transactions_of(network):
    """Statement entries of an account."""

    async def _transactions_of(account) -> list[dict]:
        result = await network.get_statement(account.id)
        assert result.success, result.error
        return result.data

    return _transactions_of
