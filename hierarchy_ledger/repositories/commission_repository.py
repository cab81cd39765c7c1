"""
Commission repository.

Data access layer for Commission model.
"""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.models.account import Account
from hierarchy_ledger.models.commission import Commission
from hierarchy_ledger.models.transaction import Transaction
from hierarchy_ledger.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with beneficiary queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_history(self, beneficiary_id: int) -> list[Any]:
        """
        Get commissions earned by an account.

        Args:
            beneficiary_id: Beneficiary account ID

        Returns:
            Rows with the Commission plus the originating transaction's
            amount, description, date and sender username, newest first
        """
        stmt = (
            select(
                Commission,
                Transaction.amount_minor.label("transaction_amount_minor"),
                Transaction.description.label("description"),
                Transaction.created_at.label("transaction_date"),
                Account.username.label("sender_username"),
            )
            .outerjoin(Transaction, Commission.transaction_id == Transaction.id)
            .outerjoin(Account, Transaction.sender_id == Account.id)
            .where(Commission.beneficiary_id == beneficiary_id)
            .order_by(Commission.created_at.desc(), Commission.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    async def get_total_minor(self, beneficiary_id: int) -> int:
        """
        Total commission earned by an account.

        Args:
            beneficiary_id: Beneficiary account ID

        Returns:
            Sum in minor units (0 if none)
        """
        stmt = select(
            func.coalesce(func.sum(Commission.amount_minor), 0)
        ).where(Commission.beneficiary_id == beneficiary_id)
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)
