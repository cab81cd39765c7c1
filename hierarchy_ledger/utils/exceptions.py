"""
Exception handling utilities.

Defines the domain exception taxonomy and categorizes database errors
by handling strategy.
"""

from decimal import Decimal

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError


class LedgerError(Exception):
    """Base class for all domain errors raised by the ledger engine."""

    code = "ledger_error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class InvalidAmount(LedgerError):
    """Amount must be a positive number."""

    code = "invalid_amount"


class InsufficientBalance(LedgerError):
    """Insufficient balance."""

    code = "insufficient_balance"

    def __init__(
        self,
        available: Decimal,
        requested: Decimal,
        message: str | None = None,
    ) -> None:
        self.available = available
        self.requested = requested
        super().__init__(
            message
            or f"Insufficient balance: available {available}, requested {requested}"
        )


class UnauthorizedAction(LedgerError):
    """Actor is not allowed to perform this action."""

    code = "unauthorized_action"


class UnauthorizedTransfer(UnauthorizedAction):
    """You can only transfer to your direct next-level users."""

    code = "unauthorized_transfer"


class NotFound(LedgerError):
    """Requested record does not exist."""

    code = "not_found"


class DuplicateUsername(LedgerError):
    """Username already exists. Please choose another one."""

    code = "duplicate_username"


class ValidationError(LedgerError):
    """Input failed validation."""

    code = "validation_error"


class TransientFailure(LedgerError):
    """Operation could not complete due to contention; retry later."""

    code = "transient_failure"


class ConsistencyViolation(LedgerError):
    """Internal ledger invariant broken."""

    code = "consistency_violation"


class StorageError(LedgerError):
    """Database rejected the operation; retrying will not help."""

    code = "storage_error"


# Exception categories based on handling strategy

# Retryable at the atomic-unit boundary
TRANSIENT_DB_ERRORS = (
    OperationalError,
)

# Postgres SQLSTATEs for serialization failure, deadlock, lock timeout
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03"}

# SQLite lock messages
TRANSIENT_SQLITE_MESSAGES = ("database is locked", "database table is locked")


def is_transient_db_error(exc: BaseException) -> bool:
    """
    Check if a database error is worth retrying.

    Args:
        exc: Exception to check

    Returns:
        True for lock contention, deadlock and serialization failures
    """
    if not isinstance(exc, DBAPIError):
        return False

    if exc.connection_invalidated:
        return True

    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True

    message = str(orig or exc).lower()
    if any(text in message for text in TRANSIENT_SQLITE_MESSAGES):
        return True

    return isinstance(exc, TRANSIENT_DB_ERRORS) and "timeout" in message


def is_unique_violation(exc: BaseException, column: str) -> bool:
    """
    Check if an IntegrityError was raised by a unique index on column.

    Args:
        exc: Exception to check
        column: Column name of the unique index

    Returns:
        True if the error is a uniqueness violation on that column
    """
    if not isinstance(exc, IntegrityError):
        return False
    message = str(exc.orig).lower()
    return column in message and ("unique" in message or "duplicate" in message)


def is_check_violation(exc: BaseException) -> bool:
    """
    Check if an IntegrityError was raised by a CHECK constraint.

    Args:
        exc: Exception to check

    Returns:
        True if a check constraint rejected the write
    """
    if not isinstance(exc, IntegrityError):
        return False
    message = str(exc.orig).lower()
    return "check constraint" in message or "check_" in message
