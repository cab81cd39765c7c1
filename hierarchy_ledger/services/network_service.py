"""
Network service.

Public entry point of the hierarchy ledger. Every mutating operation runs as
one atomic unit through ``run_atomic``; read operations open a short-lived
session and degrade to a failed ServiceResult instead of raising.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from hierarchy_ledger.config.settings import Settings, settings as default_settings
from hierarchy_ledger.models.account import Account
from hierarchy_ledger.models.enums import AccountRole
from hierarchy_ledger.repositories.account_repository import AccountRepository
from hierarchy_ledger.services.account import AccountService
from hierarchy_ledger.services.base_service import ServiceResult
from hierarchy_ledger.services.credit_service import CreditReceipt, CreditService
from hierarchy_ledger.services.reporting_service import ReportingService
from hierarchy_ledger.services.transfer_service import TransferReceipt, TransferService
from hierarchy_ledger.utils.db_decorators import run_atomic, translate_db_error
from hierarchy_ledger.utils.exceptions import (
    ConsistencyViolation,
    LedgerError,
    TransientFailure,
    UnauthorizedAction,
)
from hierarchy_ledger.utils.money import from_minor
from hierarchy_ledger.utils.security import PasswordHasher


T = TypeVar("T")


@dataclass(frozen=True)
class ActorContext:
    """Authenticated caller identity, trusted as supplied."""

    account_id: int
    role: str = AccountRole.USER.value

    @property
    def is_admin(self) -> bool:
        """True if the caller has the admin role."""
        return self.role == AccountRole.ADMIN


class NetworkService:
    """
    Facade over account, transfer, credit and reporting services.

    Args:
        session_maker: Factory for sessions, one per operation
        settings: Settings override (defaults to the global instance)
        hasher: Password hasher override
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
        hasher: PasswordHasher | None = None,
    ) -> None:
        self.session_maker = session_maker
        self.settings = settings or default_settings
        self.hasher = hasher or PasswordHasher()
        self.logger = logger.bind(service=self.__class__.__name__)

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    async def _atomic(
        self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]
    ) -> T:
        return await run_atomic(
            self.session_maker,
            work,
            operation=operation,
            timeout=self.settings.transaction_timeout_seconds,
            max_attempts=self.settings.transaction_max_attempts,
            backoff=self.settings.transaction_retry_backoff_seconds,
        )

    async def _read(
        self,
        operation: str,
        work: Callable[[AsyncSession], Awaitable[Any]],
        empty: Any = None,
    ) -> ServiceResult:
        """
        Run a read-only query and wrap the outcome.

        ConsistencyViolation is never degraded: it propagates to the caller.
        """
        try:
            async with self.session_maker() as session:
                data = await work(session)
        except ConsistencyViolation:
            self.logger.error(f"Consistency violation in {operation}", exc_info=True)
            raise
        except LedgerError as e:
            self.logger.warning(
                f"{operation} failed: {e.message}",
                extra={"operation": operation, "code": e.code},
            )
            return ServiceResult.fail(e.message, e.code, empty)
        except SQLAlchemyError as e:
            error = translate_db_error(e) or TransientFailure(
                "Temporary database error, please retry"
            )
            self.logger.error(
                f"Database error in {operation}: {type(e).__name__}",
                extra={"operation": operation, "code": error.code},
                exc_info=True,
            )
            if isinstance(error, ConsistencyViolation):
                raise error from e
            return ServiceResult.fail(error.message, error.code, empty)

        return ServiceResult.ok(data)

    def _require_admin(self, actor: ActorContext, operation: str) -> None:
        if not actor.is_admin:
            self.logger.warning(
                f"{operation} rejected: admin role required",
                extra={"actor_id": actor.account_id, "role": actor.role},
            )
            raise UnauthorizedAction("Administrator access required")

    # ------------------------------------------------------------------
    # accounts
    # ------------------------------------------------------------------

    async def register(
        self,
        username: str,
        password: str,
        role: AccountRole = AccountRole.USER,
    ) -> Account:
        """
        Register a root account.

        Raises:
            ValidationError: If username or password is malformed
            DuplicateUsername: If the username is taken
        """

        async def work(session: AsyncSession) -> Account:
            service = AccountService(session, self.settings, self.hasher)
            return await service.register(username, password, role)

        return await self._atomic("register", work)

    async def authenticate(self, username: str, password: str) -> Account | None:
        """
        Check credentials.

        Returns:
            Account on success, None on unknown user or wrong password

        Raises:
            TransientFailure: If the database is busy or unreachable
            StorageError: If the database rejected the query
        """
        try:
            async with self.session_maker() as session:
                service = AccountService(session, self.settings, self.hasher)
                return await service.authenticate(username, password)
        except SQLAlchemyError as e:
            error = translate_db_error(e) or TransientFailure(
                "Temporary database error, please retry"
            )
            self.logger.error(
                f"Database error in authenticate: {type(e).__name__}",
                extra={"operation": "authenticate", "code": error.code},
                exc_info=True,
            )
            raise error from e

    async def create_child_account(
        self, actor: ActorContext, username: str, password: str
    ) -> Account:
        """
        Create a child account under the actor.

        Raises:
            NotFound: If the actor does not exist
            ValidationError: If username or password is malformed
            DuplicateUsername: If the username is taken
        """

        async def work(session: AsyncSession) -> Account:
            service = AccountService(session, self.settings, self.hasher)
            return await service.create_child_account(actor.account_id, username, password)

        return await self._atomic("create_child_account", work)

    async def change_child_password(
        self, actor: ActorContext, target_id: int, new_password: str
    ) -> None:
        """
        Change the password of one of the actor's direct children.

        Raises:
            ValidationError: If the password is malformed
            UnauthorizedAction: If target is not a direct child
        """

        async def work(session: AsyncSession) -> None:
            service = AccountService(session, self.settings, self.hasher)
            await service.change_child_password(actor.account_id, target_id, new_password)

        await self._atomic("change_child_password", work)

    # ------------------------------------------------------------------
    # money movement
    # ------------------------------------------------------------------

    async def transfer(
        self, actor: ActorContext, receiver_id: int, amount: object
    ) -> TransferReceipt:
        """
        Transfer to a direct child with commission to the actor's parent.

        Raises:
            InvalidAmount, UnauthorizedTransfer, InsufficientBalance,
            TransientFailure, ConsistencyViolation
        """

        async def work(session: AsyncSession) -> TransferReceipt:
            service = TransferService(session, self.settings)
            return await service.transfer(actor.account_id, receiver_id, amount)

        return await self._atomic("transfer", work)

    async def issue_credit(
        self, actor: ActorContext, target_id: int, amount: object
    ) -> CreditReceipt:
        """
        Administrative credit.

        Raises:
            UnauthorizedAction: If the actor is not an administrator
            InvalidAmount, NotFound, InsufficientBalance, TransientFailure
        """
        self._require_admin(actor, "issue_credit")

        async def work(session: AsyncSession) -> CreditReceipt:
            service = CreditService(session, self.settings)
            return await service.issue_credit(actor.account_id, target_id, amount)

        return await self._atomic("issue_credit", work)

    async def self_recharge(self, actor: ActorContext, amount: object) -> CreditReceipt:
        """
        Add funds to the actor's own root account.

        Raises:
            UnauthorizedAction: If the actor has a parent
            InvalidAmount, NotFound, TransientFailure
        """

        async def work(session: AsyncSession) -> CreditReceipt:
            service = CreditService(session, self.settings)
            return await service.self_recharge(actor.account_id, amount)

        return await self._atomic("self_recharge", work)

    # ------------------------------------------------------------------
    # reporting
    # ------------------------------------------------------------------

    async def list_direct_children(self, account_id: int) -> ServiceResult:
        """Direct children as dicts (id, username, balance), by username."""

        async def work(session: AsyncSession) -> list[dict[str, Any]]:
            service = AccountService(session, self.settings, self.hasher)
            children = await service.list_direct_children(account_id)
            places = self.settings.currency_decimal_places
            return [
                {
                    "id": child.id,
                    "username": child.username,
                    "balance": from_minor(child.balance_minor, places),
                }
                for child in children
            ]

        return await self._read("list_direct_children", work, empty=[])

    async def get_dashboard_summary(self, account_id: int) -> ServiceResult:
        """Dashboard numbers for one account."""
        return await self._read(
            "get_dashboard_summary",
            lambda session: ReportingService(session, self.settings).get_dashboard_summary(
                account_id
            ),
            empty={},
        )

    async def get_downline(self, account_id: int) -> ServiceResult:
        """Downline report (DownlineReport) of the account."""
        return await self._read(
            "get_downline",
            lambda session: ReportingService(session, self.settings).get_downline(account_id),
        )

    async def get_level(self, account_id: int) -> ServiceResult:
        """Depth from root of the account (root = 0)."""
        return await self._read(
            "get_level",
            lambda session: ReportingService(session, self.settings).get_level(account_id),
        )

    async def get_statement(self, account_id: int) -> ServiceResult:
        """Statement entries, newest first."""
        return await self._read(
            "get_statement",
            lambda session: ReportingService(session, self.settings).get_statement(account_id),
            empty=[],
        )

    async def get_commission_history(self, account_id: int) -> ServiceResult:
        """Commissions earned by the account plus their total."""
        return await self._read(
            "get_commission_history",
            lambda session: ReportingService(
                session, self.settings
            ).get_commission_history(account_id),
            empty={"commissions": [], "total": None},
        )

    async def get_admin_summary(self, actor: ActorContext) -> ServiceResult:
        """
        Network totals and root accounts.

        Raises:
            UnauthorizedAction: If the actor is not an administrator
        """
        self._require_admin(actor, "get_admin_summary")
        return await self._read(
            "get_admin_summary",
            lambda session: ReportingService(session, self.settings).get_admin_summary(),
            empty={},
        )

    async def get_balance_summary(self, actor: ActorContext) -> ServiceResult:
        """
        Every account with depth and per-depth statistics.

        Raises:
            UnauthorizedAction: If the actor is not an administrator
        """
        self._require_admin(actor, "get_balance_summary")
        return await self._read(
            "get_balance_summary",
            lambda session: ReportingService(session, self.settings).get_balance_summary(),
            empty={},
        )

    async def get_user_downline(
        self, actor: ActorContext, account_id: int
    ) -> ServiceResult:
        """
        Administrator view of any account's downline.

        Raises:
            UnauthorizedAction: If the actor is not an administrator
        """
        self._require_admin(actor, "get_user_downline")
        return await self.get_downline(account_id)

    async def get_member_downline(
        self, actor: ActorContext, account_id: int
    ) -> ServiceResult:
        """
        Downline of the actor or of any account below it.

        Administrators may view every account.

        Raises:
            UnauthorizedAction: If the account is outside the actor's downline
        """
        if not actor.is_admin and account_id != actor.account_id:
            async with self.session_maker() as session:
                allowed = await AccountRepository(session).is_descendant(
                    actor.account_id, account_id
                )
            if not allowed:
                self.logger.warning(
                    "get_member_downline rejected: account outside downline",
                    extra={"actor_id": actor.account_id, "account_id": account_id},
                )
                raise UnauthorizedAction("You can only view accounts in your own downline")

        return await self.get_downline(account_id)

    async def find_balance_mismatches(self) -> ServiceResult:
        """Accounts whose stored balance disagrees with the transaction log."""
        return await self._read(
            "find_balance_mismatches",
            lambda session: ReportingService(
                session, self.settings
            ).find_balance_mismatches(),
            empty={},
        )
