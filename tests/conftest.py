"""Test fixtures — fresh processor per test, tables created/dropped around each test."""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Force SQLite test database *before* any package import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_webhooks.db"
os.environ.pop("NEHTW_WEBHOOK_SECRET", None)
os.environ.pop("NEHTW_WEBHOOK_IPS", None)

from nehtw_webhooks.database import Base, engine  # noqa: E402
from nehtw_webhooks.main import create_app  # noqa: E402
from nehtw_webhooks.schemas import WebhookConfig  # noqa: E402
from nehtw_webhooks.services.processor import WebhookProcessor  # noqa: E402

SECRET = "abc"


@pytest_asyncio.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def config() -> WebhookConfig:
    return WebhookConfig(secret=SECRET, timeout=0.5, retry_attempts_max=3, retry_delay=0, drain_interval=60)


@pytest.fixture
def processor(config: WebhookConfig) -> WebhookProcessor:
    return WebhookProcessor(config)


@pytest_asyncio.fixture
async def client(processor: WebhookProcessor) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(processor)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
