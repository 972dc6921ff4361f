from __future__ import annotations

from typing import Any, Protocol, TypeVar

from ..models import ApplicationUser, Category, Product

# Entity type variable for generic repository
T = TypeVar("T")


class IRepository(Protocol[T]):
    """
    Protocol for entity repositories.
    Allows mocking and dependency injection.

    Repositories only stage changes on the session; nothing is persisted until
    the owning unit of work calls ``save()``.
    """

    async def get(self, *criteria: Any) -> T | None:
        """
        Fetch the first entity matching all criteria.

        Returns:
            The entity if found, None otherwise.
        """
        ...

    async def get_by_id(self, entity_id: Any) -> T | None:
        ...

    async def get_all(self, *criteria: Any) -> list[T]:
        """Fetch every entity matching all criteria (all entities when none given)."""
        ...

    def add(self, entity: T) -> None:
        ...

    async def remove(self, entity: T) -> None:
        ...

    async def remove_range(self, entities: list[T]) -> None:
        ...


class ICategoryRepository(IRepository[Category], Protocol):
    def update(self, category: Category, data: dict[str, Any]) -> Category:
        """
        Apply partial update to a category.

        Only whitelisted fields are applied.
        """
        ...


class IProductRepository(IRepository[Product], Protocol):
    def update(self, product: Product, data: dict[str, Any]) -> Product:
        """
        Apply partial update to a product.

        Only whitelisted fields are applied; an empty ``image_url`` keeps the
        stored image.
        """
        ...


class IApplicationUserRepository(IRepository[ApplicationUser], Protocol):
    async def get_by_email(self, email: str) -> ApplicationUser | None:
        ...


class IUnitOfWork(Protocol):
    """
    Groups the per-entity repositories behind a single commit.

    One instance lives for one request. Every change staged through its
    repositories is persisted by ``save()`` in one transaction, or not at all.
    """

    category: ICategoryRepository
    product: IProductRepository
    application_user: IApplicationUserRepository

    async def save(self) -> None:
        ...


class IDbInitializer(Protocol):
    async def initialize(self) -> None:
        """
        Create the schema and seed baseline data.

        Idempotent: running it against a seeded store changes nothing.

        Raises:
            DbInitializationError: when the store cannot be prepared
        """
        ...


class IEmailSender(Protocol):
    async def send_email(self, recipient: str, subject: str, html_body: str) -> None:
        ...
