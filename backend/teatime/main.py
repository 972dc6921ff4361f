import logging
from collections.abc import Callable
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .config import Settings, get_settings
from .di import ServiceProvider
from .domain import IEmailSender
from .logging_config import configure_logging
from .pipeline import configure_pipeline
from .routes import admin_category, admin_product, customer_home, identity_account

logger = logging.getLogger(__name__)


async def seed_database(services: ServiceProvider) -> None:
    """Run the database initializer once, in a scope of its own."""
    async with services.create_scope() as scope:
        await scope.db_initializer.initialize()


def create_app(
    settings: Settings | None = None,
    email_sender_factory: Callable[[], IEmailSender] | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    # Raises ConfigurationError when the connection string is missing
    services = ServiceProvider(settings, email_sender_factory)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
        try:
            await seed_database(services)
            yield
        finally:
            await services.dispose()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        debug=settings.is_development,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.services = services

    configure_pipeline(app, settings, services.cookies)

    # Identity pages are mapped apart from the conventional controller route
    app.include_router(identity_account.router)

    app.include_router(customer_home.router)
    app.include_router(admin_category.router)
    app.include_router(admin_product.router)

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.SERVER_HOST, port=settings.SERVER_PORT)
