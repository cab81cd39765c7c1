"""
Account repository.

Hierarchy store: account records, parent/child edges, ancestry and
downline queries.
"""

from sqlalchemy import Integer, func, literal_column, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from hierarchy_ledger.config.constants import MAX_HIERARCHY_DEPTH
from hierarchy_ledger.models.account import Account
from hierarchy_ledger.repositories.base import BaseRepository
from hierarchy_ledger.utils.exceptions import ConsistencyViolation, NotFound
from hierarchy_ledger.utils.money import from_minor
from hierarchy_ledger.utils.tree import AccountRow, DownlineNode, build_downline_tree


class AccountRepository(BaseRepository[Account]):
    """Account repository with hierarchy queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize account repository."""
        super().__init__(Account, session)

    async def get_account(self, account_id: int) -> Account:
        """
        Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account

        Raises:
            NotFound: If the account does not exist
        """
        account = await self.get_by_id(account_id)
        if account is None:
            raise NotFound(f"Account {account_id} not found")
        return account

    async def get_by_username(self, username: str) -> Account | None:
        """
        Get account by exact username.

        Args:
            username: Login name

        Returns:
            Account or None
        """
        return await self.get_by(username=username)

    async def get_direct_children(self, account_id: int) -> list[Account]:
        """
        Get accounts whose parent is ``account_id``.

        Args:
            account_id: Parent account ID

        Returns:
            Children ordered by username ascending
        """
        stmt = (
            select(Account)
            .where(Account.parent_id == account_id)
            .order_by(Account.username.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_direct_children(self, account_id: int) -> int:
        """Count direct children of an account."""
        return await self.count(parent_id=account_id)

    async def get_parent_id(self, account_id: int) -> int | None:
        """
        Get parent ID of an account.

        Args:
            account_id: Account ID

        Returns:
            Parent ID or None for root accounts

        Raises:
            NotFound: If the account does not exist
        """
        stmt = select(Account.id, Account.parent_id).where(Account.id == account_id)
        row = (await self.session.execute(stmt)).one_or_none()
        if row is None:
            raise NotFound(f"Account {account_id} not found")
        return row.parent_id

    async def is_direct_child(self, parent_id: int, child_id: int) -> bool:
        """
        Check the one-hop relationship used to gate transfers.

        Args:
            parent_id: Expected parent
            child_id: Candidate child

        Returns:
            True if ``child_id`` exists and its parent is ``parent_id``
        """
        stmt = select(Account.parent_id).where(Account.id == child_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        return row is not None and row.parent_id is not None and row.parent_id == parent_id

    async def get_ancestor_ids(self, account_id: int) -> list[int]:
        """
        Walk parent pointers upward (recursive CTE).

        Args:
            account_id: Starting account

        Returns:
            IDs from the account itself up to its root, in hop order

        Raises:
            NotFound: If the account does not exist
            ConsistencyViolation: If the walk does not terminate
        """
        ancestry = (
            select(
                Account.id,
                Account.parent_id,
                literal_column("0", Integer).label("hops"),
            )
            .where(Account.id == account_id)
            .cte("ancestry", recursive=True)
        )
        parent = aliased(Account)
        ancestry = ancestry.union_all(
            select(
                parent.id,
                parent.parent_id,
                (ancestry.c.hops + 1).label("hops"),
            ).where(
                parent.id == ancestry.c.parent_id,
                ancestry.c.hops < MAX_HIERARCHY_DEPTH,
            )
        )

        stmt = select(ancestry.c.id, ancestry.c.hops).order_by(ancestry.c.hops)
        rows = (await self.session.execute(stmt)).all()

        if not rows:
            raise NotFound(f"Account {account_id} not found")
        if rows[-1].hops >= MAX_HIERARCHY_DEPTH:
            raise ConsistencyViolation(
                f"Ancestry walk from account {account_id} did not reach a root"
            )

        return [row.id for row in rows]

    async def get_level(self, account_id: int) -> int:
        """
        Depth from root: number of parent hops, root = 0.

        Args:
            account_id: Account ID

        Returns:
            Level of the account
        """
        ancestors = await self.get_ancestor_ids(account_id)
        return len(ancestors) - 1

    async def is_descendant(self, ancestor_id: int, account_id: int) -> bool:
        """
        Check whether ``ancestor_id`` sits strictly above ``account_id``.

        Args:
            ancestor_id: Candidate ancestor
            account_id: Account to test

        Returns:
            True if walking up from account_id reaches ancestor_id
        """
        if ancestor_id == account_id:
            return False
        try:
            ancestors = await self.get_ancestor_ids(account_id)
        except NotFound:
            return False
        return ancestor_id in ancestors[1:]

    async def get_downline_rows(
        self, account_id: int, places: int = 2
    ) -> list[AccountRow]:
        """
        Fetch every descendant of an account in one recursive query.

        Args:
            account_id: Root of the downline
            places: Digits after the decimal point of the minor unit

        Returns:
            Flat rows of all descendants (any depth)
        """
        downline = (
            select(
                Account.id,
                Account.username,
                Account.balance_minor,
                Account.role,
                Account.parent_id,
                Account.created_at,
                literal_column("1", Integer).label("depth"),
            )
            .where(Account.parent_id == account_id)
            .cte("downline", recursive=True)
        )
        child = aliased(Account)
        downline = downline.union_all(
            select(
                child.id,
                child.username,
                child.balance_minor,
                child.role,
                child.parent_id,
                child.created_at,
                (downline.c.depth + 1).label("depth"),
            ).where(
                child.parent_id == downline.c.id,
                downline.c.depth < MAX_HIERARCHY_DEPTH,
            )
        )

        stmt = select(downline).order_by(downline.c.depth, downline.c.username)
        rows = (await self.session.execute(stmt)).all()

        return [
            AccountRow(
                id=row.id,
                username=row.username,
                balance=from_minor(row.balance_minor, places),
                role=row.role,
                parent_id=row.parent_id,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def get_full_downline(
        self, account_id: int, places: int = 2
    ) -> list[DownlineNode]:
        """
        Full downline tree of an account.

        Args:
            account_id: Viewer account
            places: Digits after the decimal point of the minor unit

        Returns:
            Direct children, each with its subtree; depth-first,
            username ascending at every level

        Raises:
            NotFound: If the account does not exist
        """
        viewer_level = await self.get_level(account_id)
        rows = await self.get_downline_rows(account_id, places)
        return build_downline_tree(account_id, rows, viewer_level)

    async def lock_accounts(self, account_ids: list[int]) -> dict[int, Account]:
        """
        Lock account rows for the current transaction.

        Rows are locked in ascending ID order so two units touching the
        same pair of accounts can never deadlock on each other.

        Args:
            account_ids: Accounts to lock (duplicates ignored)

        Returns:
            Mapping account_id -> refreshed Account

        Raises:
            NotFound: If any account does not exist
        """
        ids = sorted(set(account_ids))
        stmt = (
            select(Account)
            .where(Account.id.in_(ids))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        accounts = {account.id: account for account in result.scalars().all()}

        missing = [account_id for account_id in ids if account_id not in accounts]
        if missing:
            raise NotFound(f"Account {missing[0]} not found")

        return accounts

    async def get_parent_map(self) -> dict[int, int | None]:
        """Mapping of every account ID to its parent ID."""
        result = await self.session.execute(select(Account.id, Account.parent_id))
        return {row.id: row.parent_id for row in result.all()}

    async def get_totals(self) -> tuple[int, int, int]:
        """
        Network-wide aggregates in a single query.

        Returns:
            Tuple of (total accounts, total balance in minor units,
            root accounts)
        """
        stmt = select(
            func.count(Account.id),
            func.coalesce(func.sum(Account.balance_minor), 0),
            func.count(Account.id).filter(Account.parent_id.is_(None)),
        )
        total, balance_minor, roots = (await self.session.execute(stmt)).one()
        return int(total), int(balance_minor), int(roots)

    async def get_children_counts(self) -> dict[int, int]:
        """Mapping parent_id -> number of direct children."""
        stmt = (
            select(Account.parent_id, func.count(Account.id).label("count"))
            .where(Account.parent_id.is_not(None))
            .group_by(Account.parent_id)
        )
        result = await self.session.execute(stmt)
        return {row.parent_id: row.count for row in result.all()}

    async def get_roots(self) -> list[Account]:
        """Root accounts ordered by ID."""
        stmt = (
            select(Account)
            .where(Account.parent_id.is_(None))
            .order_by(Account.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_all(self) -> list[Account]:
        """Every account ordered by ID."""
        result = await self.session.execute(select(Account).order_by(Account.id.asc()))
        return list(result.scalars().all())
