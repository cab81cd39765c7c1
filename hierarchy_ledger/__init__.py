"""
Hierarchy ledger.

Multi-level account network with a commission-skimming transfer ledger.
"""

__version__ = "1.0.0"
