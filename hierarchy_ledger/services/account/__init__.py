"""
Account service module.

Provides account management: registration, child creation, credential
checks and password changes.

Structure:
- core.py: Account retrieval and direct-children listing
- registration.py: Root registration and child creation
- authentication.py: Credential checks and child password changes

Usage:
    from hierarchy_ledger.services.account import AccountService

    account_service = AccountService(session)
    owner = await account_service.register("owner", "secret1")
    child = await account_service.create_child_account(owner.id, "child", "secret2")
"""

from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.services.account.authentication import AccountAuthenticationMixin
from hierarchy_ledger.services.account.core import AccountServiceCore
from hierarchy_ledger.services.account.registration import AccountRegistrationMixin
from hierarchy_ledger.utils.security import PasswordHasher


class AccountService(
    AccountServiceCore,
    AccountRegistrationMixin,
    AccountAuthenticationMixin,
):
    """
    Combined account service.

    Inherits from all account service mixins to provide complete
    functionality.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """
        Initialize account service with all mixins.

        Args:
            session: Database session
            settings: Settings override
            hasher: Password hasher
        """
        AccountServiceCore.__init__(self, session, settings, hasher)


__all__ = ["AccountService"]
