"""
Transaction repository.

Data access layer for the append-only transaction log.
"""

from typing import Any

from sqlalchemy import case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from hierarchy_ledger.models.account import Account
from hierarchy_ledger.models.enums import TransactionType
from hierarchy_ledger.models.transaction import Transaction
from hierarchy_ledger.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[Transaction]):
    """Transaction repository with statement and reconciliation queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize transaction repository."""
        super().__init__(Transaction, session)

    async def get_statement(
        self, account_id: int, limit: int | None = None
    ) -> list[Any]:
        """
        Get transactions where the account is sender or receiver.

        Args:
            account_id: Account ID
            limit: Optional max number of rows

        Returns:
            Rows with the Transaction plus ``sender_username`` and
            ``receiver_username``, newest first
        """
        sender = aliased(Account)
        receiver = aliased(Account)
        stmt = (
            select(
                Transaction,
                sender.username.label("sender_username"),
                receiver.username.label("receiver_username"),
            )
            .outerjoin(sender, Transaction.sender_id == sender.id)
            .outerjoin(receiver, Transaction.receiver_id == receiver.id)
            .where(
                or_(
                    Transaction.sender_id == account_id,
                    Transaction.receiver_id == account_id,
                )
            )
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.all())

    def _signed_amount(self) -> Any:
        """Signed contribution of a row to its account's balance."""
        return case(
            (Transaction.type == TransactionType.CREDIT.value, Transaction.amount_minor),
            else_=-Transaction.amount_minor,
        )

    async def get_derived_balance_minor(self, account_id: int) -> int:
        """
        Balance implied by the log alone.

        CREDIT rows add to their receiver, DEBIT rows subtract from their
        sender.

        Args:
            account_id: Account ID

        Returns:
            Derived balance in minor units
        """
        credits = select(
            func.coalesce(func.sum(Transaction.amount_minor), 0)
        ).where(
            Transaction.receiver_id == account_id,
            Transaction.type == TransactionType.CREDIT.value,
        )
        debits = select(
            func.coalesce(func.sum(Transaction.amount_minor), 0)
        ).where(
            Transaction.sender_id == account_id,
            Transaction.type == TransactionType.DEBIT.value,
        )
        credit_total = (await self.session.execute(credits)).scalar() or 0
        debit_total = (await self.session.execute(debits)).scalar() or 0
        return int(credit_total) - int(debit_total)

    async def get_derived_balances(self) -> dict[int, int]:
        """
        Derived balance for every account that appears in the log.

        Returns:
            Mapping account_id -> derived balance in minor units
        """
        owner = case(
            (Transaction.type == TransactionType.CREDIT.value, Transaction.receiver_id),
            else_=Transaction.sender_id,
        ).label("account_id")
        stmt = select(
            owner, func.sum(self._signed_amount()).label("balance_minor")
        ).group_by(owner)
        result = await self.session.execute(stmt)
        return {row.account_id: int(row.balance_minor) for row in result.all()}
