"""
Account registration functionality.

Handles root registration and the creation of child accounts by their
parent.
"""

from hierarchy_ledger.models.account import Account
from hierarchy_ledger.models.enums import AccountRole
from hierarchy_ledger.utils.exceptions import DuplicateUsername, ValidationError
from hierarchy_ledger.validators import validate_password, validate_username


class AccountRegistrationMixin:
    """
    Mixin for account registration functionality.

    Expects ``account_repo``, ``hasher`` and ``logger`` from
    AccountServiceCore.
    """

    def _validate_credentials(self, username: str, password: str) -> str:
        """
        Validate username and password.

        Returns:
            Trimmed username

        Raises:
            ValidationError: If either value is malformed
        """
        is_valid, clean_username, error = validate_username(username)
        if not is_valid:
            raise ValidationError(error)

        is_valid, _, error = validate_password(password)
        if not is_valid:
            raise ValidationError(error)

        return clean_username

    async def _create_account(
        self,
        username: str,
        password: str,
        parent_id: int | None,
        role: AccountRole,
    ) -> Account:
        clean_username = self._validate_credentials(username, password)

        existing = await self.account_repo.get_by_username(clean_username)
        if existing:
            raise DuplicateUsername()

        # The unique index still guards against a concurrent insert
        return await self.account_repo.create(
            username=clean_username,
            password_hash=self.hasher.hash(password),
            balance_minor=0,
            role=role.value,
            parent_id=parent_id,
        )

    async def register(
        self,
        username: str,
        password: str,
        role: AccountRole = AccountRole.USER,
    ) -> Account:
        """
        Register a new root (owner) account.

        Args:
            username: Login name, trimmed, 3-50 characters
            password: Plain text password (will be hashed with bcrypt)
            role: Account role; administrators are provisioned by operators

        Returns:
            Created account with zero balance and no parent

        Raises:
            ValidationError: If username or password is malformed
            DuplicateUsername: If the username is taken
        """
        account = await self._create_account(username, password, None, role)

        self.logger.info(
            "Root account registered",
            extra={"account_id": account.id, "username": account.username, "role": account.role},
        )
        return account

    async def create_child_account(
        self, actor_id: int, username: str, password: str
    ) -> Account:
        """
        Create a child account under the actor.

        Args:
            actor_id: Parent of the new account
            username: Login name, trimmed, 3-50 characters
            password: Plain text password

        Returns:
            Created account with zero balance

        Raises:
            NotFound: If the actor does not exist
            ValidationError: If username or password is malformed
            DuplicateUsername: If the username is taken
        """
        parent = await self.account_repo.get_account(actor_id)
        account = await self._create_account(
            username, password, parent.id, AccountRole.USER
        )

        self.logger.info(
            "Child account created",
            extra={
                "account_id": account.id,
                "username": account.username,
                "parent_id": parent.id,
            },
        )
        return account
