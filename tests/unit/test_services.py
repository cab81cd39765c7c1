"""Unit tests for service helpers that need no database."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.services.base_service import ServiceResult
from hierarchy_ledger.services.ledger import Ledger
from hierarchy_ledger.services.network_service import ActorContext, NetworkService
from hierarchy_ledger.services.transfer_service import TransferService
from hierarchy_ledger.utils.exceptions import (
    InvalidAmount,
    LedgerError,
    StorageError,
    TransientFailure,
)
from hierarchy_ledger.utils.security import PasswordHasher


class TestSplitAmount:
    """Test TransferService.split_amount."""

    def test_sender_with_parent(self, mock_session, unit_settings):
        service = TransferService(mock_session, unit_settings)

        assert service.split_amount(10000, has_parent=True) == (200, 9800)

    def test_root_sender_evaporate(self, mock_session, unit_settings):
        service = TransferService(mock_session, unit_settings)

        # Commission is still charged; nobody receives it
        assert service.split_amount(10000, has_parent=False) == (200, 9800)

    def test_root_sender_waive(self, mock_session):
        settings = Settings(root_commission_policy="waive")
        service = TransferService(mock_session, settings)

        assert service.split_amount(10000, has_parent=False) == (0, 10000)
        assert service.split_amount(10000, has_parent=True) == (200, 9800)

    def test_rounding(self, mock_session, unit_settings):
        service = TransferService(mock_session, unit_settings)

        # 0.25 * 2% = 0.005 -> 0.01
        assert service.split_amount(25, has_parent=True) == (1, 24)


class TestLedgerGuards:
    """Test argument guards that reject before touching the database."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1])
    async def test_credit_rejects_non_positive(self, mock_session, unit_settings, amount):
        ledger = Ledger(mock_session, unit_settings)

        with pytest.raises(InvalidAmount):
            await ledger.credit(1, amount)

        mock_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -1])
    async def test_debit_rejects_non_positive(self, mock_session, unit_settings, amount):
        ledger = Ledger(mock_session, unit_settings)

        with pytest.raises(InvalidAmount):
            await ledger.debit(1, amount)

        mock_session.execute.assert_not_awaited()


class TestActorContext:
    """Test ActorContext."""

    def test_roles(self):
        assert ActorContext(account_id=1, role="admin").is_admin
        assert not ActorContext(account_id=2, role="user").is_admin
        assert not ActorContext(account_id=3).is_admin

    def test_frozen(self):
        actor = ActorContext(account_id=1)
        with pytest.raises(AttributeError):
            actor.account_id = 2


class TestServiceResult:
    """Test ServiceResult constructors and unwrapping."""

    def test_defaults(self):
        result = ServiceResult(success=True, data=Decimal("1"))

        assert result.error is None
        assert result.error_code is None

    def test_ok_unwraps(self):
        assert ServiceResult.ok([1, 2]).raise_for_error() == [1, 2]

    def test_fail_keeps_empty_payload(self):
        result = ServiceResult.fail("Account 9 not found", "not_found", empty=[])

        assert result.success is False
        assert result.data == []
        assert result.error_code == "not_found"

    def test_fail_raises_with_code(self):
        result = ServiceResult.fail("Account 9 not found", "not_found")

        with pytest.raises(LedgerError, match="Account 9 not found") as exc_info:
            result.raise_for_error()
        assert exc_info.value.code == "not_found"


class TestNetworkServiceDatabaseErrors:
    """Database failures surface as domain errors, never raw SQLAlchemy errors."""

    @pytest.fixture
    def network(self, fake_session_maker, unit_settings):
        return NetworkService(fake_session_maker, unit_settings, PasswordHasher(rounds=4))

    @pytest.mark.asyncio
    async def test_authenticate_on_locked_database(self, network, mock_session):
        mock_session.execute.side_effect = OperationalError(
            "SELECT", {}, Exception("database is locked")
        )

        with pytest.raises(TransientFailure):
            await network.authenticate("peter", "peter-pass")

    @pytest.mark.asyncio
    async def test_authenticate_on_rejected_query(self, network, mock_session):
        mock_session.execute.side_effect = ProgrammingError(
            "SELECT", {}, Exception('relation "accounts" does not exist')
        )

        with pytest.raises(StorageError):
            await network.authenticate("peter", "peter-pass")

    @pytest.mark.asyncio
    async def test_read_reports_storage_error_code(self, network, mock_session):
        mock_session.get.side_effect = ProgrammingError(
            "SELECT", {}, Exception('relation "accounts" does not exist')
        )

        result = await network.get_statement(1)

        assert result.success is False
        assert result.data == []
        assert result.error_code == "storage_error"
