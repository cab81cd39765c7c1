"""
Transaction model.

Append-only ledger entry documenting one balance mutation.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from hierarchy_ledger.models.base import Base
from hierarchy_ledger.models.types import MinorUnitsType


class Transaction(Base):
    """
    Transaction entity.

    Immutable once created. ``type`` is CREDIT for the receiving side of a
    mutation and DEBIT for the paying side; ``commission_minor`` is set on
    transfer debits and commission credits.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount_minor > 0", name="amount_positive"),
        CheckConstraint(
            "commission_minor IS NULL OR commission_minor >= 0",
            name="commission_non_negative",
        ),
        CheckConstraint("type IN ('CREDIT', 'DEBIT')", name="type_valid"),
        Index("idx_transactions_sender_created", "sender_id", "created_at"),
        Index("idx_transactions_receiver_created", "receiver_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    sender_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )

    amount_minor: Mapped[int] = mapped_column(MinorUnitsType, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    commission_minor: Mapped[int | None] = mapped_column(
        MinorUnitsType, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Transaction(id={self.id}, {self.type} {self.sender_id}->"
            f"{self.receiver_id}, amount_minor={self.amount_minor})>"
        )
