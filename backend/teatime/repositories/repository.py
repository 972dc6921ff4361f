from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class Repository(Generic[T]):
    """Generic data access for one mapped entity type."""

    model: type[T]

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, *criteria: Any) -> T | None:
        stmt = select(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self._session.execute(stmt.limit(1))
        return result.scalars().first()

    async def get_by_id(self, entity_id: Any) -> T | None:
        return await self._session.get(self.model, entity_id)

    async def get_all(self, *criteria: Any) -> list[T]:
        stmt = select(self.model)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    def add(self, entity: T) -> None:
        self._session.add(entity)

    async def remove(self, entity: T) -> None:
        await self._session.delete(entity)

    async def remove_range(self, entities: list[T]) -> None:
        for entity in entities:
            await self._session.delete(entity)
