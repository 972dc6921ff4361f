import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..database import Base
from ..errors import DbInitializationError
from ..identity.managers import RoleManager, UserManager
from ..identity.roles import Roles
from ..models import ApplicationUser, Category, Product
from ..domain import IUnitOfWork

logger = logging.getLogger(__name__)

# ── Baseline catalog ─────────────────────────────────────────────────

SEED_CATEGORIES = [
    {"name": "Classic Tea", "display_order": 1},
    {"name": "Milk Tea", "display_order": 2},
    {"name": "Fruit Tea", "display_order": 3},
]

SEED_PRODUCTS = [
    {
        "category": "Classic Tea",
        "name": "Jasmine Green Tea",
        "description": "Green tea scented with jasmine blossoms.",
        "size": "Large",
        "price": 35,
    },
    {
        "category": "Classic Tea",
        "name": "Roasted Oolong",
        "description": "Charcoal roasted oolong with a nutty finish.",
        "size": "Large",
        "price": 40,
    },
    {
        "category": "Milk Tea",
        "name": "Pearl Milk Tea",
        "description": "Black tea with fresh milk and brown sugar pearls.",
        "size": "Large",
        "price": 55,
    },
    {
        "category": "Fruit Tea",
        "name": "Passion Fruit Green Tea",
        "description": "Green tea shaken with passion fruit pulp.",
        "size": "Large",
        "price": 60,
    },
]


class DbInitializer:
    """
    Prepares the database once at startup.

    Creates missing tables, then seeds roles, the admin account and the
    baseline catalog. Each step checks for existing data first, so running it
    against a seeded store is a no-op.
    """

    def __init__(
        self,
        session: AsyncSession,
        unit_of_work: IUnitOfWork,
        user_manager: UserManager,
        role_manager: RoleManager,
        settings: Settings,
    ) -> None:
        self._session = session
        self._uow = unit_of_work
        self._users = user_manager
        self._roles = role_manager
        self._settings = settings

    async def initialize(self) -> None:
        try:
            await self._ensure_schema()
            await self._seed_roles_and_admin()
            await self._seed_catalog()
            await self._uow.save()
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Database initialization failed")
            raise DbInitializationError(f"Database initialization failed: {exc}") from exc

    async def _ensure_schema(self) -> None:
        conn = await self._session.connection()
        await conn.run_sync(Base.metadata.create_all)

    async def _seed_roles_and_admin(self) -> None:
        if await self._roles.role_exists(Roles.CUSTOMER):
            return

        for role in Roles:
            await self._roles.create(role)

        admin = ApplicationUser(
            email=self._settings.ADMIN_EMAIL,
            user_name=self._settings.ADMIN_EMAIL,
            name=self._settings.ADMIN_NAME,
            email_confirmed=True,
        )
        result = await self._users.create(admin, self._settings.ADMIN_PASSWORD.get_secret_value())
        if not result.succeeded:
            logger.error("Admin account %s rejected: %s", admin.email, result.errors)
            raise DbInitializationError(
                "Could not create the admin account: " + " ".join(result.errors)
            )
        result = await self._users.add_to_role(admin, Roles.ADMIN)
        if not result.succeeded:
            raise DbInitializationError(" ".join(result.errors))
        logger.info("Seeded roles and admin account %s", admin.email)

    async def _seed_catalog(self) -> None:
        if await self._uow.category.get():
            return

        categories = {}
        for data in SEED_CATEGORIES:
            category = Category(**data)
            self._uow.category.add(category)
            categories[category.name] = category

        for data in SEED_PRODUCTS:
            fields = {key: value for key, value in data.items() if key != "category"}
            self._uow.product.add(Product(category=categories[data["category"]], **fields))
        logger.info(
            "Seeded %d categories and %d products", len(SEED_CATEGORIES), len(SEED_PRODUCTS)
        )
