"""
Commission model.

Created only as a side effect of a transfer whose sender has a parent.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from hierarchy_ledger.models.base import Base
from hierarchy_ledger.models.types import MinorUnitsType, PercentType


class Commission(Base):
    """
    Commission entity.

    Attributes:
        id: Primary key
        beneficiary_id: Parent of the sender, credited with the commission
        transaction_id: DEBIT transaction of the originating transfer
        amount_minor: Commission in minor units
        percentage: Rate applied, in percent
        created_at: Creation timestamp
    """

    __tablename__ = "commissions"
    __table_args__ = (
        CheckConstraint("amount_minor > 0", name="amount_positive"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    beneficiary_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    transaction_id: Mapped[int] = mapped_column(
        ForeignKey("transactions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount_minor: Mapped[int] = mapped_column(MinorUnitsType, nullable=False)
    percentage: Mapped[Decimal] = mapped_column(PercentType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, beneficiary_id={self.beneficiary_id}, "
            f"transaction_id={self.transaction_id}, amount_minor={self.amount_minor})>"
        )

