from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio

from teatime.config import Settings
from teatime.database import Base
from teatime.di import ServiceProvider, ServiceScope
from tests.fakes import RecordingEmailSender

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Admin123*"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "ENVIRONMENT": "Production",
        "CONNECTION_STRINGS": {
            "DefaultConnection": f"sqlite+aiosqlite:///{tmp_path / 'teatime.db'}"
        },
        "SECRET_KEY": "test-secret-key",
        "ADMIN_EMAIL": ADMIN_EMAIL,
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Fixture providing production settings bound to a temporary SQLite file."""
    return make_settings(tmp_path)


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    """Fixture providing a fresh RecordingEmailSender instance."""
    return RecordingEmailSender()


@pytest_asyncio.fixture
async def provider(
    settings: Settings, email_sender: RecordingEmailSender
) -> AsyncIterator[ServiceProvider]:
    """Fixture providing a ServiceProvider whose scopes share the recording email sender."""
    provider = ServiceProvider(settings, email_sender_factory=lambda: email_sender)
    yield provider
    await provider.dispose()


@pytest_asyncio.fixture
async def schema(provider: ServiceProvider) -> None:
    """Fixture creating the empty schema without seeding."""
    async with provider.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture
async def seeded(provider: ServiceProvider) -> None:
    """Fixture running the database initializer once."""
    async with provider.create_scope() as scope:
        await scope.db_initializer.initialize()


@pytest_asyncio.fixture
async def scope(provider: ServiceProvider) -> AsyncIterator[ServiceScope]:
    """Fixture providing one request-like service scope."""
    async with provider.create_scope() as scope:
        yield scope
