"""
Standard type definitions for database models.

Provides consistent types for monetary and percentage fields across all models.
"""

from sqlalchemy import DECIMAL, BigInteger

# Money is stored in integer minor units (paise/cents)
# Range: up to 9,223,372,036,854,775,807 minor units
MinorUnitsType = BigInteger()

# Standard percentage type for commission rates
# Precision: 5 digits total, 2 after decimal point
# Suitable for: commission percentages (e.g., 2.00%, 12.50%)
# Range: 0.00 to 999.99
PercentType = DECIMAL(5, 2)
