"""
Integration tests for administrative credit and self-recharge.

Network (see conftest.hierarchy):
    admin (root, admin role)
    peter (root, 900.00) -> xavier (100.00) -> yvonne (0) -> zed (0)
"""

from decimal import Decimal

import pytest

from hierarchy_ledger.services.network_service import ActorContext
from hierarchy_ledger.utils.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    NotFound,
    UnauthorizedAction,
)


class TestIssueCreditToRoot:
    """Branch A: a root target receives newly created funds."""

    @pytest.mark.asyncio
    async def test_root_credit(self, network, hierarchy, balance_of, transactions_of):
        h = hierarchy

        receipt = await network.issue_credit(h.admin_ctx, h.peter.id, "250.50")

        assert receipt.source_id is None
        assert receipt.target_balance == Decimal("1150.50")
        assert await balance_of(h.peter) == Decimal("1150.50")

        row = (await transactions_of(h.peter))[0]
        assert row["id"] == receipt.transaction_ids[0]
        assert row["type"] == "CREDIT"
        assert row["description"] == "Admin Credit"
        assert row["sender_id"] == h.admin.id
        assert row["amount"] == Decimal("250.50")

    @pytest.mark.asyncio
    async def test_admin_may_credit_itself(self, network, hierarchy, balance_of):
        h = hierarchy

        await network.issue_credit(h.admin_ctx, h.admin.id, "10")

        assert await balance_of(h.admin) == Decimal("10.00")


class TestIssueCreditToChild:
    """Branch B: a child target is funded from its parent's float."""

    @pytest.mark.asyncio
    async def test_funds_move_from_parent(self, network, hierarchy, balance_of, transactions_of):
        h = hierarchy

        receipt = await network.issue_credit(h.admin_ctx, h.yvonne.id, "40")

        assert receipt.source_id == h.xavier.id
        assert receipt.source_balance == Decimal("60.00")
        assert receipt.target_balance == Decimal("40.00")
        assert await balance_of(h.xavier) == Decimal("60.00")
        assert await balance_of(h.yvonne) == Decimal("40.00")
        # No commission on credits
        assert await balance_of(h.peter) == Decimal("900.00")

        rows = {row["id"]: row for row in await transactions_of(h.yvonne)}
        debit_id, credit_id = receipt.transaction_ids
        assert rows[debit_id]["type"] == "DEBIT"
        assert rows[debit_id]["description"] == "Admin Credit to yvonne"
        assert rows[credit_id]["type"] == "CREDIT"
        assert rows[credit_id]["description"] == "Admin Credit from xavier"
        for tx_id in (debit_id, credit_id):
            assert rows[tx_id]["sender_id"] == h.xavier.id
            assert rows[tx_id]["receiver_id"] == h.yvonne.id
            assert rows[tx_id]["amount"] == Decimal("40.00")
            assert rows[tx_id]["commission"] is None

    @pytest.mark.asyncio
    async def test_parent_float_insufficient(self, network, hierarchy, balance_of):
        h = hierarchy

        with pytest.raises(InsufficientBalance) as exc_info:
            await network.issue_credit(h.admin_ctx, h.zed.id, "5")

        assert exc_info.value.message == (
            "Insufficient balance in parent account. Parent balance is 0.00"
        )
        assert await balance_of(h.yvonne) == Decimal("0.00")
        assert await balance_of(h.zed) == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_source_is_immediate_parent_regardless_of_actor(
        self, network, hierarchy, balance_of
    ):
        h = hierarchy

        # The admin is not in peter's tree; xavier's parent still pays
        await network.issue_credit(h.admin_ctx, h.xavier.id, "100")

        assert await balance_of(h.peter) == Decimal("800.00")
        assert await balance_of(h.xavier) == Decimal("200.00")


class TestIssueCreditRejections:
    """Authorization and validation of credits."""

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self, network, hierarchy, balance_of):
        h = hierarchy

        with pytest.raises(UnauthorizedAction):
            await network.issue_credit(h.peter_ctx, h.xavier.id, "10")

        assert await balance_of(h.xavier) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_unknown_target(self, network, hierarchy):
        with pytest.raises(NotFound):
            await network.issue_credit(hierarchy.admin_ctx, 9999, "10")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-1", "ten", "1e20"])
    async def test_invalid_amount(self, network, hierarchy, amount):
        with pytest.raises(InvalidAmount):
            await network.issue_credit(hierarchy.admin_ctx, hierarchy.peter.id, amount)


class TestSelfRecharge:
    """Owner accounts adding funds to themselves."""

    @pytest.mark.asyncio
    async def test_root_recharges(self, network, hierarchy, balance_of, transactions_of):
        h = hierarchy

        receipt = await network.self_recharge(h.peter_ctx, "100")

        assert receipt.target_balance == Decimal("1000.00")
        assert await balance_of(h.peter) == Decimal("1000.00")

        row = (await transactions_of(h.peter))[0]
        assert row["description"] == "Self Recharge"
        assert row["type"] == "CREDIT"
        assert row["sender_id"] == row["receiver_id"] == h.peter.id
        assert row["is_credit"] and not row["is_debit"]

    @pytest.mark.asyncio
    async def test_child_cannot_recharge(self, network, hierarchy, balance_of):
        h = hierarchy

        with pytest.raises(UnauthorizedAction):
            await network.self_recharge(h.xavier_ctx, "100")

        assert await balance_of(h.xavier) == Decimal("100.00")

    @pytest.mark.asyncio
    async def test_unknown_account(self, network, hierarchy):
        with pytest.raises(NotFound):
            await network.self_recharge(ActorContext(account_id=9999), "1")

    @pytest.mark.asyncio
    async def test_amount_above_maximum(self, network, hierarchy, balance_of):
        h = hierarchy

        with pytest.raises(InvalidAmount):
            await network.self_recharge(h.peter_ctx, "1e20")

        assert await balance_of(h.peter) == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_balance_ceiling_is_exact(self, network, hierarchy, balance_of):
        olga = await network.register("olga", "olga-pass")
        olga_ctx = ActorContext(account_id=olga.id, role=olga.role)

        await network.self_recharge(olga_ctx, "92233720368547758.00")
        with pytest.raises(InvalidAmount, match="maximum"):
            await network.self_recharge(olga_ctx, "92233720368547758.00")

        assert await balance_of(olga) == Decimal("92233720368547758.00")
        assert (await network.find_balance_mismatches()).data == {}
