"""
Validators package.

Provides validation functions for account input.
"""

from hierarchy_ledger.validators.common import validate_password, validate_username


__all__ = [
    "validate_username",
    "validate_password",
]
