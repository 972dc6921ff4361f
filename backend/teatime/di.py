from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings
from .database import create_engine, create_session_factory
from .domain import IDbInitializer, IEmailSender, IUnitOfWork
from .identity.cookies import CookieAuthentication
from .identity.managers import RoleManager, UserManager
from .identity.sign_in import SignInManager
from .identity.tokens import TokenProvider
from .repositories.unit_of_work import UnitOfWork
from .services.db_initializer import DbInitializer
from .services.email_sender import create_email_sender

logger = logging.getLogger(__name__)


class ServiceScope:
    """
    Services that live for one logical request.

    Owns a single database session; the unit of work, identity managers and
    database initializer built here all share it and are discarded with it.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        token_provider: TokenProvider,
        email_sender: IEmailSender,
    ) -> None:
        self.session = session
        self.settings = settings

        # Data access
        self.unit_of_work: IUnitOfWork = UnitOfWork(session)

        # Identity
        self.role_manager = RoleManager(session)
        self.user_manager = UserManager(
            unit_of_work=self.unit_of_work,
            role_manager=self.role_manager,
            token_provider=token_provider,
        )
        self.sign_in_manager = SignInManager(
            user_manager=self.user_manager,
            require_confirmed_account=settings.REQUIRE_CONFIRMED_ACCOUNT,
        )

        self.email_sender = email_sender

        self.db_initializer: IDbInitializer = DbInitializer(
            session=session,
            unit_of_work=self.unit_of_work,
            user_manager=self.user_manager,
            role_manager=self.role_manager,
            settings=settings,
        )


class ServiceProvider:
    """
    Application-wide services, created once by the composition root.

    Holds the engine and session factory and hands out ``ServiceScope``
    instances, one per request (or per startup task).
    """

    def __init__(
        self,
        settings: Settings,
        email_sender_factory: Callable[[], IEmailSender] | None = None,
    ) -> None:
        self.settings = settings
        self.engine = create_engine(
            settings.get_connection_string(), echo=settings.DB_ECHO_LOG
        )
        self.session_factory = create_session_factory(self.engine)
        self.token_provider = TokenProvider(
            settings.SECRET_KEY.get_secret_value(), settings.TOKEN_LIFESPAN_MINUTES
        )
        self.cookies = CookieAuthentication(settings)
        self.email_sender_factory = email_sender_factory or (
            lambda: create_email_sender(settings)
        )

    @asynccontextmanager
    async def create_scope(self) -> AsyncIterator[ServiceScope]:
        async with self.session_factory() as session:
            yield ServiceScope(
                session=session,
                settings=self.settings,
                token_provider=self.token_provider,
                email_sender=self.email_sender_factory(),
            )

    async def dispose(self) -> None:
        await self.engine.dispose()


# ── FastAPI dependencies ─────────────────────────────────────────────


def get_provider(request: Request) -> ServiceProvider:
    return request.app.state.services


async def get_scope(
    provider: ServiceProvider = Depends(get_provider),
) -> AsyncIterator[ServiceScope]:
    """One scope per request; FastAPI caches it for every dependent."""
    async with provider.create_scope() as scope:
        yield scope


def get_unit_of_work(scope: ServiceScope = Depends(get_scope)) -> IUnitOfWork:
    return scope.unit_of_work


def get_user_manager(scope: ServiceScope = Depends(get_scope)) -> UserManager:
    return scope.user_manager


def get_sign_in_manager(scope: ServiceScope = Depends(get_scope)) -> SignInManager:
    return scope.sign_in_manager


def get_email_sender(scope: ServiceScope = Depends(get_scope)) -> IEmailSender:
    return scope.email_sender


def get_cookies(provider: ServiceProvider = Depends(get_provider)) -> CookieAuthentication:
    return provider.cookies
