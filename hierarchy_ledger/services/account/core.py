"""
Core account service functionality.

Handles account retrieval and the listing of direct children.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.models.account import Account
from hierarchy_ledger.repositories.account_repository import AccountRepository
from hierarchy_ledger.services.base_service import BaseService
from hierarchy_ledger.utils.security import PasswordHasher


class AccountServiceCore(BaseService):
    """
    Core account service.

    Provides account retrieval methods shared by the other mixins.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """
        Initialize account service core.

        Args:
            session: Database session
            settings: Settings override
            hasher: Password hasher (defaults to bcrypt with cost 10)
        """
        super().__init__(session, settings)
        self.account_repo = AccountRepository(session)
        self.hasher = hasher or PasswordHasher()

    async def get_account(self, account_id: int) -> Account:
        """
        Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account

        Raises:
            NotFound: If the account does not exist
        """
        return await self.account_repo.get_account(account_id)

    async def get_by_username(self, username: str) -> Account | None:
        """Get account by username (trimmed)."""
        return await self.account_repo.get_by_username(username.strip())

    async def list_direct_children(self, actor_id: int) -> list[Account]:
        """
        Accounts the actor may transfer to or manage.

        Args:
            actor_id: Parent account

        Returns:
            Direct children ordered by username

        Raises:
            NotFound: If the actor does not exist
        """
        await self.account_repo.get_account(actor_id)
        return await self.account_repo.get_direct_children(actor_id)
