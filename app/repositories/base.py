"""
Base repository.

Generic data access helpers shared by all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic operations.

    Repositories never commit; the service owning the unit of work does.

    Example:
        class VoucherRepository(BaseRepository[Voucher]):
            def __init__(self, session: AsyncSession):
                super().__init__(Voucher, session)
    """

    def __init__(self, model: type[ModelType], session: AsyncSession) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int, for_update: bool = False) -> ModelType | None:
        """
        Get entity by primary key.

        Args:
            id: Entity ID
            for_update: Lock the row until the transaction ends

        Returns:
            Entity or None if not found
        """
        if not for_update:
            return await self.session.get(self.model, id)

        stmt = (
            select(self.model)
            .where(self.model.id == id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by(self, **filters: Any) -> ModelType | None:
        """Get single entity by column filters."""
        stmt = select(self.model).filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by(self, limit: int | None = None, **filters: Any) -> list[ModelType]:
        """
        Find entities by column filters, ordered by id.

        Args:
            limit: Max number of results
            **filters: Column filters

        Returns:
            List of matching entities
        """
        stmt = select(self.model).filter_by(**filters).order_by(self.model.id)
        if limit:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity and flush it to obtain its id.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def add_all(self, items: list[dict[str, Any]]) -> list[ModelType]:
        """Create several entities in one flush."""
        entities = [self.model(**item) for item in items]
        self.session.add_all(entities)
        await self.session.flush()
        return entities

    async def count(self, **filters: Any) -> int:
        """Count entities matching filters."""
        stmt = select(func.count()).select_from(self.model)
        if filters:
            stmt = stmt.filter_by(**filters)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """Check if any entity matches filters."""
        return await self.count(**filters) > 0
