import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .application_user_repository import ApplicationUserRepository
from .category_repository import CategoryRepository
from .product_repository import ProductRepository

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Per-request set of repositories sharing one session.

    Repositories stage changes on the session; ``save()`` commits them in a
    single transaction. A failed commit is rolled back so none of the staged
    writes reach the database.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self.category = CategoryRepository(session)
        self.product = ProductRepository(session)
        self.application_user = ApplicationUserRepository(session)

    async def save(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError:
            logger.exception("Commit failed, rolling back unit of work")
            await self._session.rollback()
            raise
