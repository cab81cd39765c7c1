"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from hierarchy_ledger.models.account import Account
from hierarchy_ledger.models.base import Base
from hierarchy_ledger.models.commission import Commission
from hierarchy_ledger.models.enums import AccountRole, TransactionType
from hierarchy_ledger.models.transaction import Transaction

__all__ = [
    # Base
    "Base",
    # Enums
    "AccountRole",
    "TransactionType",
    # Core Models
    "Account",
    "Transaction",
    "Commission",
]
