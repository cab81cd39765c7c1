"""
Base service class.

Session, settings and a bound logger shared by every ledger service, plus
the result container used by the read path.
"""

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.settings import Settings, settings as default_settings
from hierarchy_ledger.utils.exceptions import LedgerError


T = TypeVar("T")


@dataclass
class ServiceResult:
    """
    Outcome of a read operation.

    Reads never raise domain errors at the caller; a failure carries the
    caller-facing message and the stable error code instead, with ``data``
    set to an empty value of the expected shape.
    """
    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: Any) -> "ServiceResult":
        """Successful result wrapping ``data``."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, message: str, code: str, empty: Any = None) -> "ServiceResult":
        """Failed result with an empty payload."""
        return cls(success=False, data=empty, error=message, error_code=code)

    def raise_for_error(self) -> Any:
        """
        Unwrap the payload.

        Returns:
            ``data`` of a successful result

        Raises:
            LedgerError: If the result is a failure
        """
        if not self.success:
            error = LedgerError(self.error or "Operation failed")
            error.code = self.error_code or LedgerError.code
            raise error
        return self.data


class BaseService:
    """
    Base class for services working inside one unit of work.

    Services never commit: the session belongs to the caller's atomic unit.
    """

    def __init__(
        self, session: AsyncSession, settings: Settings | None = None
    ) -> None:
        """
        Initialize base service.

        Args:
            session: Session of the current unit of work
            settings: Settings override (defaults to the global instance)
        """
        self.session = session
        self.settings = settings or default_settings
        self.logger = logger.bind(service=self.__class__.__name__)

    @property
    def places(self) -> int:
        """Digits after the decimal point of the minor unit."""
        return self.settings.currency_decimal_places


def log_operation(func: Callable[..., T]) -> Callable[..., T]:
    """
    Time a service method and log its outcome.

    Successful calls are logged at DEBUG, failures at WARNING with the
    error code for domain errors. Exceptions always propagate.

    Usage:
        @log_operation
        async def get_admin_summary(self) -> dict[str, Any]:
            ...
    """
    @functools.wraps(func)
    async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
        bound = logger.bind(service=self.__class__.__name__)
        started = time.perf_counter()

        try:
            result = await func(self, *args, **kwargs)
        except LedgerError as e:
            bound.warning(
                f"{func.__name__} rejected: {e.message}",
                extra={
                    "function": func.__name__,
                    "code": e.code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            raise
        except Exception as e:
            bound.error(
                f"{func.__name__} failed: {type(e).__name__}",
                extra={
                    "function": func.__name__,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            raise

        bound.debug(
            f"{func.__name__} done",
            extra={
                "function": func.__name__,
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return result

    return wrapper
