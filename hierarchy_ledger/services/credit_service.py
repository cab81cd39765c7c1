"""
Credit service.

Administrative balance issuance and owner self-recharge. Unlike transfers,
credits never skim commission.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.constants import (
    DESCRIPTION_ADMIN_CREDIT,
    DESCRIPTION_ADMIN_CREDIT_FROM,
    DESCRIPTION_ADMIN_CREDIT_TO,
    DESCRIPTION_SELF_RECHARGE,
)
from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.models.enums import TransactionType
from hierarchy_ledger.repositories.account_repository import AccountRepository
from hierarchy_ledger.services.base_service import BaseService
from hierarchy_ledger.services.ledger import Ledger
from hierarchy_ledger.services.transaction_recorder import TransactionRecorder
from hierarchy_ledger.utils.exceptions import (
    InsufficientBalance,
    UnauthorizedAction,
)
from hierarchy_ledger.utils.money import format_amount, from_minor, parse_amount, to_minor


@dataclass(frozen=True)
class CreditReceipt:
    """Outcome of a completed credit."""

    target_id: int
    source_id: int | None
    amount: Decimal
    target_balance: Decimal
    source_balance: Decimal | None
    transaction_ids: tuple[int, ...]


class CreditService(BaseService):
    """Balance issuance engine."""

    def __init__(
        self, session: AsyncSession, settings: Settings | None = None
    ) -> None:
        """Initialize credit service."""
        super().__init__(session, settings)
        self.account_repo = AccountRepository(session)
        self.ledger = Ledger(session, self.settings)
        self.recorder = TransactionRecorder(session, self.settings)

    async def issue_credit(
        self, actor_id: int, target_id: int, amount: object
    ) -> CreditReceipt:
        """
        Credit an account on behalf of an administrator.

        A root target is credited directly: new funds enter the network. A
        target with a parent is funded from that parent's balance, whoever
        the acting administrator is.

        Args:
            actor_id: Acting administrator (role checked by the caller)
            target_id: Account to credit
            amount: Amount (str, int or Decimal)

        Returns:
            CreditReceipt

        Raises:
            InvalidAmount: If amount is not a positive decimal
            NotFound: If actor or target does not exist
            InsufficientBalance: If the target's parent cannot cover amount
        """
        amount_dec = parse_amount(amount, self.places)
        amount_minor = to_minor(amount_dec, self.places)

        actor = await self.account_repo.get_account(actor_id)
        target = await self.account_repo.get_account(target_id)

        if target.parent_id is None:
            accounts = await self.account_repo.lock_accounts([target_id])
            target_after = await self.ledger.credit(target_id, amount_minor)
            tx = await self.recorder.record(
                sender_id=actor.id,
                receiver_id=target_id,
                amount_minor=amount_minor,
                tx_type=TransactionType.CREDIT,
                description=DESCRIPTION_ADMIN_CREDIT,
            )

            self.logger.info(
                "Admin credit issued to root account",
                extra={
                    "actor_id": actor_id,
                    "target_id": target_id,
                    "amount": str(amount_dec),
                    "balance_before": str(
                        from_minor(accounts[target_id].balance_minor, self.places)
                    ),
                    "balance_after": str(from_minor(target_after, self.places)),
                },
            )
            return CreditReceipt(
                target_id=target_id,
                source_id=None,
                amount=amount_dec,
                target_balance=from_minor(target_after, self.places),
                source_balance=None,
                transaction_ids=(tx.id,),
            )

        parent_id = target.parent_id
        accounts = await self.account_repo.lock_accounts([parent_id, target_id])
        parent = accounts[parent_id]

        if parent.balance_minor < amount_minor:
            self.logger.warning(
                "Admin credit rejected: parent balance too low",
                extra={
                    "actor_id": actor_id,
                    "target_id": target_id,
                    "parent_id": parent_id,
                    "available": str(from_minor(parent.balance_minor, self.places)),
                    "requested": str(amount_dec),
                },
            )
            raise InsufficientBalance(
                available=from_minor(parent.balance_minor, self.places),
                requested=amount_dec,
                message=(
                    "Insufficient balance in parent account. Parent balance is "
                    f"{format_amount(parent.balance_minor, self.places)}"
                ),
            )

        parent_after = await self.ledger.debit(parent_id, amount_minor)
        target_after = await self.ledger.credit(target_id, amount_minor)

        debit_tx = await self.recorder.record(
            sender_id=parent_id,
            receiver_id=target_id,
            amount_minor=amount_minor,
            tx_type=TransactionType.DEBIT,
            description=DESCRIPTION_ADMIN_CREDIT_TO.format(target=target.username),
        )
        credit_tx = await self.recorder.record(
            sender_id=parent_id,
            receiver_id=target_id,
            amount_minor=amount_minor,
            tx_type=TransactionType.CREDIT,
            description=DESCRIPTION_ADMIN_CREDIT_FROM.format(parent=parent.username),
        )

        self.logger.info(
            "Admin credit issued from parent float",
            extra={
                "actor_id": actor_id,
                "target_id": target_id,
                "parent_id": parent_id,
                "amount": str(amount_dec),
                "parent_balance_after": str(from_minor(parent_after, self.places)),
                "target_balance_after": str(from_minor(target_after, self.places)),
            },
        )
        return CreditReceipt(
            target_id=target_id,
            source_id=parent_id,
            amount=amount_dec,
            target_balance=from_minor(target_after, self.places),
            source_balance=from_minor(parent_after, self.places),
            transaction_ids=(debit_tx.id, credit_tx.id),
        )

    async def self_recharge(self, actor_id: int, amount: object) -> CreditReceipt:
        """
        Add funds to a root account's own balance.

        Args:
            actor_id: Root account recharging itself
            amount: Amount (str, int or Decimal)

        Returns:
            CreditReceipt

        Raises:
            InvalidAmount: If amount is not a positive decimal
            NotFound: If the account does not exist
            UnauthorizedAction: If the account has a parent
        """
        amount_dec = parse_amount(amount, self.places)
        amount_minor = to_minor(amount_dec, self.places)

        accounts = await self.account_repo.lock_accounts([actor_id])
        actor = accounts[actor_id]
        if actor.parent_id is not None:
            raise UnauthorizedAction("Only owner accounts can recharge themselves")

        balance_after = await self.ledger.credit(actor_id, amount_minor)
        tx = await self.recorder.record(
            sender_id=actor_id,
            receiver_id=actor_id,
            amount_minor=amount_minor,
            tx_type=TransactionType.CREDIT,
            description=DESCRIPTION_SELF_RECHARGE,
        )

        self.logger.info(
            "Self recharge completed",
            extra={
                "account_id": actor_id,
                "amount": str(amount_dec),
                "balance_after": str(from_minor(balance_after, self.places)),
            },
        )
        return CreditReceipt(
            target_id=actor_id,
            source_id=None,
            amount=amount_dec,
            target_balance=from_minor(balance_after, self.places),
            source_balance=None,
            transaction_ids=(tx.id,),
        )
