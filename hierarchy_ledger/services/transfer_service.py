"""
Transfer service.

Moves funds from an account to one of its direct children, skimming a
commission to the sender's parent.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.constants import (
    DESCRIPTION_COMMISSION_FROM,
    DESCRIPTION_RECEIVED_FROM,
    DESCRIPTION_RECEIVED_WITH_COMMISSION,
    DESCRIPTION_TRANSFER_TO,
)
from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.models.enums import TransactionType
from hierarchy_ledger.repositories.account_repository import AccountRepository
from hierarchy_ledger.services.base_service import BaseService
from hierarchy_ledger.services.ledger import Ledger
from hierarchy_ledger.services.transaction_recorder import TransactionRecorder
from hierarchy_ledger.utils.exceptions import (
    ConsistencyViolation,
    InsufficientBalance,
    InvalidAmount,
    UnauthorizedTransfer,
)
from hierarchy_ledger.utils.money import (
    compute_commission,
    format_amount,
    from_minor,
    parse_amount,
    to_minor,
)


@dataclass(frozen=True)
class TransferReceipt:
    """Outcome of a completed transfer."""

    sender_id: int
    receiver_id: int
    beneficiary_id: int | None
    amount: Decimal
    net_amount: Decimal
    commission: Decimal
    debit_transaction_id: int
    credit_transaction_id: int
    commission_transaction_id: int | None
    commission_id: int | None
    sender_balance: Decimal


class TransferService(BaseService):
    """
    Peer-to-child transfer engine.

    Preconditions are checked in order and the first failure wins:
    amount validity, direct-child relationship, sender balance. All
    mutations and records of one transfer belong to the caller's atomic
    unit; the service itself never commits.
    """

    def __init__(
        self, session: AsyncSession, settings: Settings | None = None
    ) -> None:
        """Initialize transfer service."""
        super().__init__(session, settings)
        self.account_repo = AccountRepository(session)
        self.ledger = Ledger(session, self.settings)
        self.recorder = TransactionRecorder(session, self.settings)

    def split_amount(
        self, amount_minor: int, has_parent: bool
    ) -> tuple[int, int]:
        """
        Split a gross amount into (commission, net).

        Args:
            amount_minor: Gross amount in minor units
            has_parent: Whether the sender has a commission beneficiary

        Returns:
            Tuple of (commission_minor, net_minor)
        """
        if not has_parent and self.settings.root_commission_policy == "waive":
            return 0, amount_minor

        commission_minor = compute_commission(amount_minor, self.settings.commission_rate)
        return commission_minor, amount_minor - commission_minor

    async def transfer(
        self, actor_id: int, receiver_id: int, amount: object
    ) -> TransferReceipt:
        """
        Transfer funds to a direct child.

        Args:
            actor_id: Sending account
            receiver_id: Receiving account, must be a direct child of actor
            amount: Gross amount (str, int or Decimal)

        Returns:
            TransferReceipt with the created record IDs

        Raises:
            InvalidAmount: If amount is not a positive decimal
            UnauthorizedTransfer: If receiver is not a direct child
            InsufficientBalance: If actor's balance is below amount
        """
        # 1. Amount
        amount_dec = parse_amount(amount, self.places)
        amount_minor = to_minor(amount_dec, self.places)

        # 2. Next-level only
        if not await self.account_repo.is_direct_child(actor_id, receiver_id):
            self.logger.warning(
                "Transfer rejected: receiver is not a direct child",
                extra={"actor_id": actor_id, "receiver_id": receiver_id},
            )
            raise UnauthorizedTransfer()

        parent_id = await self.account_repo.get_parent_id(actor_id)
        involved = [actor_id, receiver_id]
        if parent_id is not None:
            involved.append(parent_id)
        accounts = await self.account_repo.lock_accounts(involved)

        sender = accounts[actor_id]
        receiver = accounts[receiver_id]
        beneficiary = accounts.get(parent_id) if parent_id is not None else None

        # 3. Balance
        sender_before = sender.balance_minor
        receiver_before = receiver.balance_minor
        beneficiary_before = beneficiary.balance_minor if beneficiary else 0

        if sender_before < amount_minor:
            self.logger.warning(
                "Transfer rejected: insufficient balance",
                extra={
                    "actor_id": actor_id,
                    "available": str(from_minor(sender_before, self.places)),
                    "requested": str(amount_dec),
                },
            )
            raise InsufficientBalance(
                available=from_minor(sender_before, self.places),
                requested=amount_dec,
                message=(
                    "Insufficient balance. Your current balance is "
                    f"{format_amount(sender_before, self.places)}"
                ),
            )

        commission_minor, net_minor = self.split_amount(
            amount_minor, has_parent=beneficiary is not None
        )
        if net_minor <= 0:
            raise InvalidAmount("Amount is too small to cover the commission")

        # Mutations
        sender_after = await self.ledger.debit(actor_id, amount_minor)
        receiver_after = await self.ledger.credit(receiver_id, net_minor)
        beneficiary_after = beneficiary_before
        if beneficiary is not None and commission_minor > 0:
            beneficiary_after = await self.ledger.credit(beneficiary.id, commission_minor)

        # Records
        debit_tx = await self.recorder.record(
            sender_id=actor_id,
            receiver_id=receiver_id,
            amount_minor=amount_minor,
            tx_type=TransactionType.DEBIT,
            description=DESCRIPTION_TRANSFER_TO.format(receiver=receiver.username),
            commission_minor=commission_minor,
        )

        commission_tx_id = None
        commission_id = None
        if beneficiary is not None and commission_minor > 0:
            commission_tx = await self.recorder.record(
                sender_id=actor_id,
                receiver_id=beneficiary.id,
                amount_minor=commission_minor,
                tx_type=TransactionType.CREDIT,
                description=DESCRIPTION_COMMISSION_FROM.format(sender=sender.username),
                commission_minor=commission_minor,
            )
            commission = await self.recorder.record_commission(
                beneficiary_id=beneficiary.id,
                transaction_id=debit_tx.id,
                amount_minor=commission_minor,
                percentage=self.settings.commission_percentage,
            )
            commission_tx_id = commission_tx.id
            commission_id = commission.id

        if commission_minor > 0:
            credit_description = DESCRIPTION_RECEIVED_WITH_COMMISSION.format(
                sender=sender.username,
                commission=format_amount(commission_minor, self.places),
            )
        else:
            credit_description = DESCRIPTION_RECEIVED_FROM.format(sender=sender.username)

        credit_tx = await self.recorder.record(
            sender_id=actor_id,
            receiver_id=receiver_id,
            amount_minor=net_minor,
            tx_type=TransactionType.CREDIT,
            description=credit_description,
        )

        self._verify_deltas(
            sender=(sender_before, sender_after, -amount_minor),
            receiver=(receiver_before, receiver_after, net_minor),
            beneficiary=(
                beneficiary_before,
                beneficiary_after,
                commission_minor if beneficiary is not None else 0,
            ),
        )

        self.logger.info(
            "Transfer completed",
            extra={
                "actor_id": actor_id,
                "receiver_id": receiver_id,
                "beneficiary_id": beneficiary.id if beneficiary else None,
                "amount": str(amount_dec),
                "commission": str(from_minor(commission_minor, self.places)),
                "net": str(from_minor(net_minor, self.places)),
                "sender_balance_before": str(from_minor(sender_before, self.places)),
                "sender_balance_after": str(from_minor(sender_after, self.places)),
            },
        )

        return TransferReceipt(
            sender_id=actor_id,
            receiver_id=receiver_id,
            beneficiary_id=beneficiary.id if beneficiary else None,
            amount=amount_dec,
            net_amount=from_minor(net_minor, self.places),
            commission=from_minor(commission_minor, self.places),
            debit_transaction_id=debit_tx.id,
            credit_transaction_id=credit_tx.id,
            commission_transaction_id=commission_tx_id,
            commission_id=commission_id,
            sender_balance=from_minor(sender_after, self.places),
        )

    def _verify_deltas(self, **sides: tuple[int, int, int]) -> None:
        """
        Check that every locked balance moved by exactly the expected delta.

        Raises:
            ConsistencyViolation: On any mismatch or negative balance
        """
        for side, (before, after, expected_delta) in sides.items():
            if after < 0 or after - before != expected_delta:
                raise ConsistencyViolation(
                    f"Transfer {side} balance moved {after - before}, "
                    f"expected {expected_delta}"
                )
