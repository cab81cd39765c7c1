"""
Base repository.

Shared lookups and append-only inserts. Ledger rows are never updated or
deleted through repositories; balance changes go through the Ledger service.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hierarchy_ledger.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Repository bound to one model and the caller's session.

    Repositories never commit: the surrounding atomic unit owns the
    transaction.

    Example:
        class CommissionRepository(BaseRepository[Commission]):
            def __init__(self, session: AsyncSession):
                super().__init__(Commission, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: Mapped model class
            session: Session of the current unit of work
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """Primary key lookup through the identity map."""
        return await self.session.get(self.model, id)

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Fetch the single row matching equality filters.

        Args:
            **filters: Column name -> value

        Returns:
            Matching row or None
        """
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **data: Any) -> ModelType:
        """
        Insert a row and flush so its ID and server defaults are populated.

        Args:
            **data: Column values

        Returns:
            The persisted row

        Raises:
            IntegrityError: If a constraint rejects the row
        """
        row = self.model(**data)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        return row

    async def count(self, **filters: Any) -> int:
        """Number of rows matching equality filters (all rows if none)."""
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0
