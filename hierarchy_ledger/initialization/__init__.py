"""
Initialization helpers.
"""

from hierarchy_ledger.initialization.logging import setup_logging


__all__ = ["setup_logging"]
