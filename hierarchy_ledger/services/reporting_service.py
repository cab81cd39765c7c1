"""
Reporting service.

Read-only aggregations over the hierarchy store and the ledger.

Reports are snapshot-best-effort: each query sees a consistent state, but
a long report assembled from several queries may observe transfers that
commit in between.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.config.settings import Settings
from hierarchy_ledger.repositories.account_repository import AccountRepository
from hierarchy_ledger.repositories.commission_repository import CommissionRepository
from hierarchy_ledger.repositories.transaction_repository import TransactionRepository
from hierarchy_ledger.services.base_service import BaseService, log_operation
from hierarchy_ledger.utils.money import from_minor
from hierarchy_ledger.utils.tree import DownlineNode, compute_depths, flatten_downline


@dataclass
class LevelStats:
    """Count and total balance of accounts at one depth."""

    count: int = 0
    total_balance: Decimal = Decimal("0")


@dataclass
class DownlineReport:
    """Downline of one account: tree, flat listing and per-level stats."""

    account_id: int
    username: str
    balance: Decimal
    depth_from_root: int
    tree: list[DownlineNode] = field(default_factory=list)
    flat: list[DownlineNode] = field(default_factory=list)
    by_level: dict[int, LevelStats] = field(default_factory=dict)

    @property
    def total_members(self) -> int:
        """Number of descendants at any depth."""
        return len(self.flat)

    @property
    def total_balance(self) -> Decimal:
        """Sum of descendant balances."""
        return sum((node.balance for node in self.flat), Decimal("0"))


class ReportingService(BaseService):
    """Dashboards, statements and network summaries."""

    def __init__(
        self, session: AsyncSession, settings: Settings | None = None
    ) -> None:
        """Initialize reporting service."""
        super().__init__(session, settings)
        self.account_repo = AccountRepository(session)
        self.transaction_repo = TransactionRepository(session)
        self.commission_repo = CommissionRepository(session)

    def _money(self, minor: int) -> Decimal:
        return from_minor(minor, self.places)

    async def get_downline(self, account_id: int) -> DownlineReport:
        """
        Full downline of an account with per-level statistics.

        Levels in ``by_level`` are depths from the viewer: direct children
        are level 1.

        Args:
            account_id: Viewer account

        Returns:
            DownlineReport

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.account_repo.get_account(account_id)
        tree = await self.account_repo.get_full_downline(account_id, self.places)
        flat = flatten_downline(tree)

        by_level: dict[int, LevelStats] = {}
        for node in flat:
            stats = by_level.setdefault(node.depth_from_viewer, LevelStats())
            stats.count += 1
            stats.total_balance += node.balance

        depth_from_root = flat[0].depth_from_root - 1 if flat else (
            await self.account_repo.get_level(account_id)
        )

        return DownlineReport(
            account_id=account.id,
            username=account.username,
            balance=self._money(account.balance_minor),
            depth_from_root=depth_from_root,
            tree=tree,
            flat=flat,
            by_level=dict(sorted(by_level.items())),
        )

    async def get_level(self, account_id: int) -> int:
        """Depth from root of an account (root = 0)."""
        return await self.account_repo.get_level(account_id)

    async def get_dashboard_summary(self, account_id: int) -> dict[str, Any]:
        """
        Dashboard numbers for one account.

        Args:
            account_id: Account ID

        Returns:
            Dict with account fields, balance, children count, total
            commission earned and depth from root

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.account_repo.get_account(account_id)
        children_count = await self.account_repo.count_direct_children(account_id)
        total_commission = await self.commission_repo.get_total_minor(account_id)
        depth = await self.account_repo.get_level(account_id)

        return {
            "account_id": account.id,
            "username": account.username,
            "role": account.role,
            "parent_id": account.parent_id,
            "is_root": account.is_root,
            "balance": self._money(account.balance_minor),
            "children_count": children_count,
            "total_commission": self._money(total_commission),
            "depth_from_root": depth,
            "created_at": account.created_at,
        }

    async def get_statement(self, account_id: int) -> list[dict[str, Any]]:
        """
        Transaction statement of an account, newest first.

        ``is_credit`` marks rows received by the account, ``is_debit``
        rows sent by it to someone else.

        Args:
            account_id: Account ID

        Returns:
            List of statement entries

        Raises:
            NotFound: If the account does not exist
        """
        await self.account_repo.get_account(account_id)
        rows = await self.transaction_repo.get_statement(account_id)

        statement = []
        for row in rows:
            tx = row.Transaction
            statement.append(
                {
                    "id": tx.id,
                    "type": tx.type,
                    "sender_id": tx.sender_id,
                    "receiver_id": tx.receiver_id,
                    "sender_username": row.sender_username,
                    "receiver_username": row.receiver_username,
                    "amount": self._money(tx.amount_minor),
                    "commission": (
                        self._money(tx.commission_minor)
                        if tx.commission_minor is not None
                        else None
                    ),
                    "description": tx.description,
                    "created_at": tx.created_at,
                    "is_credit": tx.receiver_id == account_id,
                    "is_debit": (
                        tx.sender_id == account_id and tx.receiver_id != account_id
                    ),
                }
            )
        return statement

    async def get_commission_history(self, account_id: int) -> dict[str, Any]:
        """
        Commissions earned by an account.

        Args:
            account_id: Beneficiary account

        Returns:
            Dict with ``commissions`` (newest first) and ``total``

        Raises:
            NotFound: If the account does not exist
        """
        await self.account_repo.get_account(account_id)
        rows = await self.commission_repo.get_history(account_id)
        total_minor = await self.commission_repo.get_total_minor(account_id)

        commissions = []
        for row in rows:
            commission = row.Commission
            commissions.append(
                {
                    "id": commission.id,
                    "transaction_id": commission.transaction_id,
                    "amount": self._money(commission.amount_minor),
                    "percentage": commission.percentage,
                    "transaction_amount": (
                        self._money(row.transaction_amount_minor)
                        if row.transaction_amount_minor is not None
                        else None
                    ),
                    "description": row.description,
                    "transaction_date": row.transaction_date,
                    "sender_username": row.sender_username,
                    "created_at": commission.created_at,
                }
            )

        return {"commissions": commissions, "total": self._money(total_minor)}

    @log_operation
    async def get_admin_summary(self) -> dict[str, Any]:
        """
        Network-wide summary for administrators.

        Returns:
            Dict with totals and the root accounts with children counts
        """
        total_accounts, total_balance, root_accounts = await self.account_repo.get_totals()
        children_counts = await self.account_repo.get_children_counts()
        roots = await self.account_repo.get_roots()

        return {
            "total_accounts": total_accounts,
            "total_balance": self._money(total_balance),
            "root_accounts": root_accounts,
            "roots": [
                {
                    "account_id": root.id,
                    "username": root.username,
                    "role": root.role,
                    "balance": self._money(root.balance_minor),
                    "children_count": children_counts.get(root.id, 0),
                    "created_at": root.created_at,
                }
                for root in roots
            ],
        }

    @log_operation
    async def get_balance_summary(self) -> dict[str, Any]:
        """
        Every account with its depth, plus per-depth counts and balances.

        Depths here are from the root (root = 0). The parent map is loaded
        once and depths are computed in memory.

        Returns:
            Dict with ``accounts``, ``total_accounts``, ``total_balance``
            and ``by_level``
        """
        accounts = await self.account_repo.get_all()
        children_counts = await self.account_repo.get_children_counts()
        parent_of = {account.id: account.parent_id for account in accounts}
        usernames = {account.id: account.username for account in accounts}
        depths = compute_depths(parent_of)

        rows = []
        by_level: dict[int, LevelStats] = {}
        total_balance = Decimal("0")
        for account in accounts:
            depth = depths[account.id]
            balance = self._money(account.balance_minor)
            rows.append(
                {
                    "account_id": account.id,
                    "username": account.username,
                    "balance": balance,
                    "parent_id": account.parent_id,
                    "parent_username": usernames.get(account.parent_id),
                    "children_count": children_counts.get(account.id, 0),
                    "depth_from_root": depth,
                    "created_at": account.created_at,
                }
            )
            stats = by_level.setdefault(depth, LevelStats())
            stats.count += 1
            stats.total_balance += balance
            total_balance += balance

        return {
            "accounts": rows,
            "total_accounts": len(rows),
            "total_balance": total_balance,
            "by_level": dict(sorted(by_level.items())),
        }

    @log_operation
    async def find_balance_mismatches(self) -> dict[int, tuple[Decimal, Decimal]]:
        """
        Compare stored balances with balances derived from the log.

        Returns:
            Mapping account_id -> (stored, derived) for every account whose
            counter disagrees with its transactions; empty when consistent
        """
        accounts = await self.account_repo.get_all()
        derived = await self.transaction_repo.get_derived_balances()

        mismatches = {}
        for account in accounts:
            derived_minor = derived.get(account.id, 0)
            if derived_minor != account.balance_minor:
                mismatches[account.id] = (
                    self._money(account.balance_minor),
                    self._money(derived_minor),
                )

        if mismatches:
            self.logger.error(
                "Stored balances disagree with transaction log",
                extra={"accounts": sorted(mismatches)},
            )
        return mismatches
