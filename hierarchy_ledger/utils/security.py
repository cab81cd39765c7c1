"""
Password hashing.

Credentials are opaque to the ledger core; this wrapper is the only place
that knows they are bcrypt hashes.
"""

import bcrypt


class PasswordHasher:
    """bcrypt-backed password hasher."""

    def __init__(self, rounds: int = 10) -> None:
        """
        Initialize hasher.

        Args:
            rounds: bcrypt cost factor
        """
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a plain-text password."""
        return bcrypt.hashpw(
            password.encode(), bcrypt.gensalt(rounds=self.rounds)
        ).decode()

    def verify(self, password: str, hashed: str) -> bool:
        """Check a plain-text password against a stored hash."""
        try:
            return bcrypt.checkpw(password.encode(), hashed.encode())
        except ValueError:
            # Malformed hash in storage
            return False
