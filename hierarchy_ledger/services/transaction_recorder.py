"""
Transaction recorder.

Appends immutable Transaction and Commission rows. Always called inside
the same atomic unit as the ledger mutation the row documents.
"""

from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.models.commission import Commission
from hierarchy_ledger.models.enums import TransactionType
from hierarchy_ledger.models.transaction import Transaction
from hierarchy_ledger.repositories.commission_repository import CommissionRepository
from hierarchy_ledger.repositories.transaction_repository import TransactionRepository
from hierarchy_ledger.services.base_service import BaseService
from hierarchy_ledger.utils.exceptions import ConsistencyViolation


class TransactionRecorder(BaseService):
    """Append-only writer for the transaction and commission logs."""

    def __init__(
        self, session: AsyncSession, settings: Settings | None = None
    ) -> None:
        """Initialize recorder."""
        super().__init__(session, settings)
        self.transaction_repo = TransactionRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def record(
        self,
        sender_id: int,
        receiver_id: int,
        amount_minor: int,
        tx_type: TransactionType,
        description: str,
        commission_minor: int | None = None,
    ) -> Transaction:
        """
        Append one transaction row.

        Args:
            sender_id: Paying side
            receiver_id: Receiving side
            amount_minor: Positive amount in minor units
            tx_type: CREDIT or DEBIT
            description: Free-text description
            commission_minor: Commission metadata, if any

        Returns:
            Created transaction (ID assigned)

        Raises:
            ConsistencyViolation: If asked to record a non-positive amount
        """
        if amount_minor <= 0:
            raise ConsistencyViolation(
                f"Refusing to record {tx_type} of {amount_minor} minor units"
            )

        transaction = await self.transaction_repo.create(
            sender_id=sender_id,
            receiver_id=receiver_id,
            amount_minor=amount_minor,
            type=TransactionType(tx_type).value,
            description=description,
            commission_minor=commission_minor,
        )

        self.logger.debug(
            "Transaction recorded",
            extra={
                "transaction_id": transaction.id,
                "type": transaction.type,
                "sender_id": sender_id,
                "receiver_id": receiver_id,
                "amount_minor": amount_minor,
            },
        )
        return transaction

    async def record_commission(
        self,
        beneficiary_id: int,
        transaction_id: int,
        amount_minor: int,
        percentage: Decimal,
    ) -> Commission:
        """
        Append one commission row linked to the originating DEBIT.

        Args:
            beneficiary_id: Account credited with the commission
            transaction_id: DEBIT transaction of the transfer
            amount_minor: Commission in minor units
            percentage: Rate applied, in percent

        Returns:
            Created commission
        """
        if amount_minor <= 0:
            raise ConsistencyViolation(
                f"Refusing to record commission of {amount_minor} minor units"
            )

        return await self.commission_repo.create(
            beneficiary_id=beneficiary_id,
            transaction_id=transaction_id,
            amount_minor=amount_minor,
            percentage=percentage,
        )
