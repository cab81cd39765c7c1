"""
Database helpers for atomic units of work.

Every money-moving operation runs inside ``run_atomic``: one session, one
database transaction, commit on success, rollback on any error, bounded by
a timeout and retried on lock contention.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hierarchy_ledger.utils.exceptions import (
    ConsistencyViolation,
    DuplicateUsername,
    InvalidAmount,
    LedgerError,
    StorageError,
    TransientFailure,
    is_check_violation,
    is_transient_db_error,
    is_unique_violation,
)


T = TypeVar("T")


def translate_db_error(exc: SQLAlchemyError) -> LedgerError | None:
    """
    Map a database error onto the domain taxonomy.

    Args:
        exc: Error raised by SQLAlchemy

    Returns:
        Domain error, or None if the error is transient and retryable.
        Anything not retryable maps to a non-retryable domain error
    """
    if is_transient_db_error(exc):
        return None
    if is_unique_violation(exc, "username"):
        return DuplicateUsername()
    if is_check_violation(exc):
        return ConsistencyViolation(f"Constraint rejected ledger write: {exc.orig}")
    if isinstance(exc, IntegrityError):
        return ConsistencyViolation(f"Integrity error: {exc.orig}")
    if isinstance(exc, DataError):
        return InvalidAmount("Value is out of range for the ledger")
    return StorageError(f"Database error: {type(exc).__name__}")


async def run_atomic(
    session_maker: async_sessionmaker[AsyncSession],
    work: Callable[[AsyncSession], Awaitable[T]],
    *,
    operation: str,
    timeout: float,
    max_attempts: int = 1,
    backoff: float = 0.0,
) -> T:
    """
    Run ``work`` as one atomic, isolated unit.

    The unit commits only if ``work`` returns normally. Any exception rolls
    the whole unit back. Lock contention, deadlocks, serialization failures
    and timeouts are retried up to ``max_attempts`` times, then surface as
    TransientFailure.

    Args:
        session_maker: Factory for fresh sessions (one per attempt)
        work: Coroutine function receiving the session
        operation: Name used in log records
        timeout: Seconds allowed for work + commit of a single attempt
        max_attempts: Attempts before giving up on transient errors
        backoff: Linear backoff in seconds between attempts

    Returns:
        Whatever ``work`` returned

    Raises:
        LedgerError: Domain errors raised by ``work`` or translated from
            the database
        TransientFailure: When attempts are exhausted
    """
    last_error: BaseException | None = None

    for attempt in range(1, max_attempts + 1):
        async with session_maker() as session:

            async def _unit() -> T:
                result = await work(session)
                await session.commit()
                return result

            try:
                return await asyncio.wait_for(_unit(), timeout=timeout)
            except ConsistencyViolation:
                await session.rollback()
                logger.error(
                    f"Consistency violation in {operation}, unit rolled back",
                    extra={"operation": operation, "attempt": attempt},
                    exc_info=True,
                )
                raise
            except LedgerError as e:
                await session.rollback()
                logger.info(
                    f"Rollback performed in {operation} due to error: {type(e).__name__}"
                )
                raise
            except asyncio.TimeoutError as e:
                await session.rollback()
                last_error = e
                logger.warning(
                    f"Timeout in {operation}",
                    extra={"operation": operation, "attempt": attempt, "timeout": timeout},
                )
            except SQLAlchemyError as e:
                await session.rollback()
                translated = translate_db_error(e)
                if translated is not None:
                    logger.warning(
                        f"Database error in {operation}: {type(e).__name__}",
                        extra={"operation": operation, "code": translated.code},
                    )
                    raise translated from e
                last_error = e
                logger.warning(
                    f"Contention in {operation}, will retry",
                    extra={"operation": operation, "attempt": attempt, "error": str(e)},
                )
            except BaseException:
                await session.rollback()
                raise

        if attempt < max_attempts and backoff:
            await asyncio.sleep(backoff * attempt)

    logger.error(
        f"Giving up on {operation} after {max_attempts} attempts",
        extra={"operation": operation, "error": str(last_error)},
    )
    raise TransientFailure(
        f"{operation} could not complete, please retry"
    ) from last_error
