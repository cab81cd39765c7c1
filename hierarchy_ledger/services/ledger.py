"""
Ledger.

Balance mutation primitives. Both operations are single conditional
UPDATE statements, so concurrent callers can never lose an update or
drive a balance below zero, whatever the isolation level.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.constants import MAX_BALANCE_MINOR
from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.models.account import Account
from hierarchy_ledger.services.base_service import BaseService
from hierarchy_ledger.utils.exceptions import (
    InsufficientBalance,
    InvalidAmount,
    NotFound,
)
from hierarchy_ledger.utils.money import from_minor


class Ledger(BaseService):
    """Atomic debit/credit on account balances (minor units)."""

    def __init__(
        self, session: AsyncSession, settings: Settings | None = None
    ) -> None:
        """Initialize ledger."""
        super().__init__(session, settings)

    async def credit(self, account_id: int, amount_minor: int) -> int:
        """
        Increase an account's balance.

        The ceiling check and the addition happen in the same statement, so
        the counter never leaves the signed 64-bit range.

        Args:
            account_id: Account to credit
            amount_minor: Positive amount in minor units

        Returns:
            New balance in minor units

        Raises:
            InvalidAmount: If amount_minor <= 0 or the new balance would
                exceed MAX_BALANCE_MINOR
            NotFound: If the account does not exist
        """
        if amount_minor <= 0:
            raise InvalidAmount("Credit amount must be greater than 0")

        stmt = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.balance_minor <= MAX_BALANCE_MINOR - amount_minor,
            )
            .values(balance_minor=Account.balance_minor + amount_minor)
            .returning(Account.balance_minor)
            .execution_options(synchronize_session=False)
        )
        new_balance = (await self.session.execute(stmt)).scalar_one_or_none()
        if new_balance is None:
            current = await self.get_balance_minor(account_id)
            self.logger.warning(
                "Credit rejected: balance ceiling reached",
                extra={
                    "account_id": account_id,
                    "balance_minor": current,
                    "amount_minor": amount_minor,
                },
            )
            raise InvalidAmount("Balance would exceed the maximum allowed")

        self.logger.debug(
            "Balance credited",
            extra={
                "account_id": account_id,
                "amount_minor": amount_minor,
                "balance_after_minor": new_balance,
            },
        )
        return int(new_balance)

    async def debit(self, account_id: int, amount_minor: int) -> int:
        """
        Decrease an account's balance.

        The sufficiency check and the subtraction happen in the same
        statement; there is no partial debit.

        Args:
            account_id: Account to debit
            amount_minor: Positive amount in minor units

        Returns:
            New balance in minor units

        Raises:
            InvalidAmount: If amount_minor <= 0
            InsufficientBalance: If balance < amount
            NotFound: If the account does not exist
        """
        if amount_minor <= 0:
            raise InvalidAmount("Debit amount must be greater than 0")

        stmt = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.balance_minor >= amount_minor,
            )
            .values(balance_minor=Account.balance_minor - amount_minor)
            .returning(Account.balance_minor)
            .execution_options(synchronize_session=False)
        )
        new_balance = (await self.session.execute(stmt)).scalar_one_or_none()

        if new_balance is None:
            available = await self.get_balance_minor(account_id)
            self.logger.warning(
                "Insufficient balance for debit",
                extra={
                    "account_id": account_id,
                    "available_minor": available,
                    "requested_minor": amount_minor,
                },
            )
            raise InsufficientBalance(
                available=from_minor(available, self.places),
                requested=from_minor(amount_minor, self.places),
            )

        self.logger.debug(
            "Balance debited",
            extra={
                "account_id": account_id,
                "amount_minor": amount_minor,
                "balance_after_minor": new_balance,
            },
        )
        return int(new_balance)

    async def get_balance_minor(self, account_id: int) -> int:
        """
        Current balance as seen by this transaction.

        Raises:
            NotFound: If the account does not exist
        """
        stmt = select(Account.balance_minor).where(Account.id == account_id)
        balance = (await self.session.execute(stmt)).scalar_one_or_none()
        if balance is None:
            raise NotFound(f"Account {account_id} not found")
        return int(balance)
