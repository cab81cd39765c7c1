"""
Account authentication functionality.

Handles credential checks and password changes on direct children.
"""

from hierarchy_ledger.models.account import Account
from hierarchy_ledger.utils.exceptions import UnauthorizedAction, ValidationError
from hierarchy_ledger.validators import validate_password


class AccountAuthenticationMixin:
    """
    Mixin for account authentication functionality.

    Expects ``account_repo``, ``hasher`` and ``logger`` from
    AccountServiceCore.
    """

    async def authenticate(self, username: str, password: str) -> Account | None:
        """
        Check credentials.

        Token issuance is left to the caller.

        Args:
            username: Login name (trimmed before lookup)
            password: Plain password

        Returns:
            Account if the credentials match, None otherwise
        """
        if not username or not password:
            return None

        account = await self.account_repo.get_by_username(username.strip())
        if account is None or not self.hasher.verify(password, account.password_hash):
            self.logger.warning(
                "Authentication failed",
                extra={"username": username.strip()},
            )
            return None

        return account

    async def change_child_password(
        self, actor_id: int, target_id: int, new_password: str
    ) -> Account:
        """
        Set a new password on one of the actor's direct children.

        Args:
            actor_id: Parent account
            target_id: Child whose password changes
            new_password: Plain text password

        Returns:
            Updated account

        Raises:
            ValidationError: If the password is malformed
            UnauthorizedAction: If target is not a direct child of actor
            NotFound: If the target does not exist
        """
        is_valid, _, error = validate_password(new_password)
        if not is_valid:
            raise ValidationError(error)

        if not await self.account_repo.is_direct_child(actor_id, target_id):
            self.logger.warning(
                "Password change rejected: target is not a direct child",
                extra={"actor_id": actor_id, "target_id": target_id},
            )
            raise UnauthorizedAction(
                "You can only change passwords of your direct next-level users."
            )

        target = await self.account_repo.get_account(target_id)
        target.password_hash = self.hasher.hash(new_password)
        await self.session.flush()

        self.logger.info(
            "Child password changed",
            extra={"actor_id": actor_id, "target_id": target_id},
        )
        return target
