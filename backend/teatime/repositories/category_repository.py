from typing import Any

from sqlalchemy import select

from ..models import Category
from .repository import Repository


class CategoryRepository(Repository[Category]):
    model = Category

    async def get_all(self, *criteria: Any) -> list[Category]:
        stmt = select(Category).order_by(Category.display_order, Category.id)
        if criteria:
            stmt = stmt.where(*criteria)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    def update(self, category: Category, data: dict[str, Any]) -> Category:
        """Apply partial field updates."""
        updatable_fields = {"name", "display_order"}
        for field, value in data.items():
            if field in updatable_fields:
                setattr(category, field, value)
        return category
