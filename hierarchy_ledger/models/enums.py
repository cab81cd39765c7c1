"""
Model enums.
"""

import enum


class AccountRole(enum.StrEnum):
    """Account role."""

    ADMIN = "admin"
    USER = "user"


class TransactionType(enum.StrEnum):
    """Direction of a ledger entry."""

    CREDIT = "CREDIT"
    DEBIT = "DEBIT"
