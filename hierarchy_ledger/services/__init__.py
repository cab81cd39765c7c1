"""
Services.

Business logic layer.
"""

from hierarchy_ledger.services.account import AccountService
from hierarchy_ledger.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
)
from hierarchy_ledger.services.credit_service import CreditReceipt, CreditService
from hierarchy_ledger.services.ledger import Ledger
from hierarchy_ledger.services.network_service import ActorContext, NetworkService
from hierarchy_ledger.services.reporting_service import (
    DownlineReport,
    LevelStats,
    ReportingService,
)
from hierarchy_ledger.services.transaction_recorder import TransactionRecorder
from hierarchy_ledger.services.transfer_service import (
    TransferReceipt,
    TransferService,
)


__all__ = [
    "AccountService",
    "ActorContext",
    "BaseService",
    "CreditReceipt",
    "CreditService",
    "DownlineReport",
    "Ledger",
    "LevelStats",
    "NetworkService",
    "ReportingService",
    "ServiceResult",
    "TransactionRecorder",
    "TransferReceipt",
    "TransferService",
    "log_operation",
]
