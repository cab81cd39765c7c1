"""Integration tests for ledger primitives and the transaction recorder."""

import pytest

from hierarchy_ledger.config.constants import MAX_BALANCE_MINOR
from hierarchy_ledger.models.enums import TransactionType
from hierarchy_ledger.repositories.transaction_repository import TransactionRepository
from hierarchy_ledger.services.ledger import Ledger
from hierarchy_ledger.services.transaction_recorder import TransactionRecorder
from hierarchy_ledger.utils.exceptions import (
    ConsistencyViolation,
    InsufficientBalance,
    InvalidAmount,
    NotFound,
)


class TestLedger:
    """Credit and debit in minor units."""

    @pytest.mark.asyncio
    async def test_credit(self, session, test_settings, hierarchy):
        ledger = Ledger(session, test_settings)

        new_balance = await ledger.credit(hierarchy.zed.id, 150)

        assert new_balance == 150
        assert await ledger.get_balance_minor(hierarchy.zed.id) == 150

    @pytest.mark.asyncio
    async def test_debit(self, session, test_settings, hierarchy):
        ledger = Ledger(session, test_settings)

        assert await ledger.debit(hierarchy.xavier.id, 2500) == 7500

    @pytest.mark.asyncio
    async def test_debit_entire_balance(self, session, test_settings, hierarchy):
        ledger = Ledger(session, test_settings)

        assert await ledger.debit(hierarchy.xavier.id, 10000) == 0

    @pytest.mark.asyncio
    async def test_overdraft_rejected(self, session, test_settings, hierarchy):
        ledger = Ledger(session, test_settings)

        with pytest.raises(InsufficientBalance) as exc_info:
            await ledger.debit(hierarchy.xavier.id, 10001)

        assert str(exc_info.value.available) == "100.00"
        assert str(exc_info.value.requested) == "100.01"
        # No partial debit
        assert await ledger.get_balance_minor(hierarchy.xavier.id) == 10000

    @pytest.mark.asyncio
    async def test_credit_stops_at_ceiling(self, session, test_settings, hierarchy):
        ledger = Ledger(session, test_settings)
        zed_id = hierarchy.zed.id

        assert await ledger.credit(zed_id, MAX_BALANCE_MINOR - 10) == MAX_BALANCE_MINOR - 10

        with pytest.raises(InvalidAmount, match="maximum"):
            await ledger.credit(zed_id, 11)
        assert await ledger.get_balance_minor(zed_id) == MAX_BALANCE_MINOR - 10

        assert await ledger.credit(zed_id, 10) == MAX_BALANCE_MINOR

    @pytest.mark.asyncio
    async def test_unknown_account(self, session, test_settings, hierarchy):
        ledger = Ledger(session, test_settings)

        with pytest.raises(NotFound):
            await ledger.credit(9999, 1)
        with pytest.raises(NotFound):
            await ledger.debit(9999, 1)


class TestTransactionRecorder:
    """Append-only transaction rows."""

    @pytest.mark.asyncio
    async def test_record_and_derive(self, session, test_settings, hierarchy):
        h = hierarchy
        recorder = TransactionRecorder(session, test_settings)
        repo = TransactionRepository(session)
        before = await repo.get_derived_balance_minor(h.zed.id)

        tx = await recorder.record(
            sender_id=h.yvonne.id,
            receiver_id=h.zed.id,
            amount_minor=500,
            tx_type=TransactionType.CREDIT,
            description="Manual entry",
        )

        assert tx.id is not None
        assert tx.type == "CREDIT"
        assert await repo.get_derived_balance_minor(h.zed.id) == before + 500

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -10])
    async def test_non_positive_amount_is_consistency_violation(
        self, session, test_settings, hierarchy, amount
    ):
        recorder = TransactionRecorder(session, test_settings)

        with pytest.raises(ConsistencyViolation):
            await recorder.record(
                sender_id=hierarchy.xavier.id,
                receiver_id=hierarchy.yvonne.id,
                amount_minor=amount,
                tx_type=TransactionType.DEBIT,
                description="bad",
            )

    @pytest.mark.asyncio
    async def test_commission_requires_positive_amount(self, session, test_settings, hierarchy):
        recorder = TransactionRecorder(session, test_settings)

        with pytest.raises(ConsistencyViolation):
            await recorder.record_commission(
                beneficiary_id=hierarchy.peter.id,
                transaction_id=1,
                amount_minor=0,
                percentage=test_settings.commission_percentage,
            )
