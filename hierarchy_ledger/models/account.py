"""
Account model.

Represents one node of the hierarchy: a root (owner) account or a child
created by its parent.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from hierarchy_ledger.models.base import Base
from hierarchy_ledger.models.enums import AccountRole
from hierarchy_ledger.models.types import MinorUnitsType


class Account(Base):
    """
    Account entity.

    Attributes:
        id: Primary key
        username: Unique login name (3-50 chars)
        password_hash: Opaque credential
        balance_minor: Balance in minor units, never negative
        role: admin or user
        parent_id: Parent account, None for root accounts
        created_at: Creation timestamp
    """

    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint(
            "balance_minor >= 0", name="balance_non_negative"
        ),
        CheckConstraint(
            "role IN ('admin', 'user')", name="role_valid"
        ),
        CheckConstraint(
            "parent_id IS NULL OR parent_id <> id", name="not_own_parent"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Credentials
    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(
        String(255), nullable=False
    )

    # Balance
    balance_minor: Mapped[int] = mapped_column(
        MinorUnitsType,
        default=0,
        server_default="0",
        nullable=False,
    )

    role: Mapped[str] = mapped_column(
        String(10),
        default=AccountRole.USER.value,
        server_default=AccountRole.USER.value,
        nullable=False,
    )

    # Hierarchy edge
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Account(id={self.id}, username={self.username!r}, "
            f"balance_minor={self.balance_minor}, parent_id={self.parent_id})>"
        )

    @property
    def is_root(self) -> bool:
        """True if the account has no parent."""
        return self.parent_id is None

    @property
    def is_admin(self) -> bool:
        """True if the account has the admin role."""
        return self.role == AccountRole.ADMIN
