"""
Base CRUD operations for SQLAlchemy models.

Generic bulk insert, filtered listing, counting and deletion shared by
model-specific CRUD classes. Filters are SQLAlchemy column expressions.

Dependencies: sqlalchemy
System role: Foundation for chunk store CRUD operations
"""

from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from semantic_kb.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Generic base class for CRUD operations.

    Methods flush but never commit; transaction boundaries belong to
    the caller.

    Type Parameters:
        ModelT: SQLAlchemy model class inheriting from Base
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create_many(
        self,
        session: AsyncSession,
        rows: Sequence[dict[str, Any]],
    ) -> list[ModelT]:
        """
        Insert several records in one flush.

        Args:
            session: Async database session
            rows: Field values per record

        Returns:
            Created model instances in input order
        """
        instances = [self.model(**row) for row in rows]
        session.add_all(instances)
        await session.flush()
        return instances

    async def list_where(
        self,
        session: AsyncSession,
        *criteria: ColumnElement[bool],
        order_by: Sequence[Any] = (),
    ) -> Sequence[ModelT]:
        """
        Rows matching every criterion.

        Args:
            session: Async database session
            *criteria: Column expressions combined with AND
            order_by: Ordering columns

        Returns:
            Sequence of model instances
        """
        stmt = select(self.model).where(*criteria).order_by(*order_by)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count(self, session: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        """Number of rows matching every criterion (all rows when none given)."""
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def delete_where(self, session: AsyncSession, *criteria: ColumnElement[bool]) -> int:
        """
        Delete rows matching every criterion.

        Returns:
            int: Rows deleted
        """
        if not criteria:
            raise ValueError("delete_where requires at least one criterion")
        stmt = delete(self.model).where(*criteria)
        result = await session.execute(stmt)
        return result.rowcount or 0
