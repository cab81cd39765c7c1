"""
Business logic constants for the hierarchy ledger.

Central location for account rules and transaction descriptions shared by
services and repositories.
"""

# Account credentials
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6

# Largest balance or amount in minor units (signed 64-bit column)
MAX_BALANCE_MINOR = 2**63 - 1

# Transaction descriptions
DESCRIPTION_TRANSFER_TO = "Transfer to {receiver}"
DESCRIPTION_COMMISSION_FROM = "Commission from {sender}"
DESCRIPTION_RECEIVED_FROM = "Received from {sender}"
DESCRIPTION_RECEIVED_WITH_COMMISSION = "Received from {sender} (Commission: {commission})"
DESCRIPTION_ADMIN_CREDIT = "Admin Credit"
DESCRIPTION_ADMIN_CREDIT_TO = "Admin Credit to {target}"
DESCRIPTION_ADMIN_CREDIT_FROM = "Admin Credit from {parent}"
DESCRIPTION_SELF_RECHARGE = "Self Recharge"

# Guard for hierarchy walks; a chain deeper than this means the parent
# graph is corrupt
MAX_HIERARCHY_DEPTH = 100_000
