"""
Common validators for account input.

Each validator returns a tuple of (is_valid, parsed_value, error_message).
"""

from hierarchy_ledger.config.constants import (
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
)


def validate_username(value: str | None) -> tuple[bool, str | None, str | None]:
    """
    Validate a login name.

    Surrounding whitespace is trimmed before the length check.

    Args:
        value: Username to validate

    Returns:
        Tuple of (is_valid, trimmed_username, error_message)

    Examples:
        >>> validate_username("  alice ")
        (True, 'alice', None)
        >>> validate_username("ab")
        (False, None, 'Username must be 3-50 characters')
    """
    if value is None or not isinstance(value, str):
        return False, None, "Username cannot be empty"

    username = value.strip()

    if not username:
        return False, None, "Username cannot be empty"

    if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
        return (
            False,
            None,
            f"Username must be {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters",
        )

    return True, username, None


def validate_password(value: str | None) -> tuple[bool, str | None, str | None]:
    """
    Validate a plain-text password.

    Passwords are not trimmed.

    Args:
        value: Password to validate

    Returns:
        Tuple of (is_valid, password, error_message)

    Examples:
        >>> validate_password("secret")
        (True, 'secret', None)
        >>> validate_password("123")
        (False, None, 'Password must be at least 6 characters')
    """
    if value is None or not isinstance(value, str) or not value:
        return False, None, "Password cannot be empty"

    if len(value) < PASSWORD_MIN_LENGTH:
        return (
            False,
            None,
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
        )

    return True, value, None
