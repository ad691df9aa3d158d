"""Shared pytest fixtures for the Dealer Studio tests.

This module provides fixtures used across all test files, including:
- Settings pointing at a temporary SQLite database
- Durable and ephemeral dealer stores
- A recording stub for the image provider HTTP endpoints
- The lifecycle service and an ASGI test client
"""

import json
from typing import AsyncGenerator, Callable, List

import httpx
import pytest
from fakeredis import FakeAsyncRedis

from dealer_studio.core.config import Settings
from dealer_studio.database.dealer_repository import DealerRepository
from dealer_studio.database.session import SessionManager
from dealer_studio.database.stores import RedisDealerStore, RoutingDealerStore, SqlDealerStore
from dealer_studio.main import create_application
from dealer_studio.services.dealer_lifecycle import DealerLifecycleService
from dealer_studio.services.image_generation import ImageGenerationService

OPENAI_URL = "https://openai.test/v1/images/generations"
GETIMG_URL = "https://getimg.test/v1/generation/text-to-image"


class ProviderStub:
    """Stand-in for both provider endpoints.

    Responses are queued per test; every request is recorded so tests can
    assert how many network calls happened and what was sent.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._responses: List[Callable[[httpx.Request], httpx.Response]] = []

    def reply(self, status_code: int = 200, json_body=None, text: str = None):
        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text)
            return httpx.Response(status_code, json=json_body)
        self._responses.append(respond)

    def raise_error(self, exc: Exception):
        def respond(request: httpx.Request) -> httpx.Response:
            raise exc
        self._responses.append(respond)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(500, json={"error": "no stubbed response"})
        return self._responses.pop(0)(request)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with credentials for both providers and a throwaway database."""
    return Settings(
        _env_file=None,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'dealers.db'}",
        OPENAI_API_KEY="test-openai-key",
        GETIMG_API_KEY="test-getimg-key",
        OPENAI_IMAGES_URL=OPENAI_URL,
        GETIMG_TEXT_TO_IMAGE_URL=GETIMG_URL,
    )


@pytest.fixture
async def session_manager(settings: Settings) -> AsyncGenerator[SessionManager, None]:
    manager = SessionManager(settings)
    await manager.init_db()
    yield manager
    await manager.close()


@pytest.fixture
def sql_store(session_manager: SessionManager) -> SqlDealerStore:
    return SqlDealerStore(session_manager)


@pytest.fixture
async def redis_store() -> AsyncGenerator[RedisDealerStore, None]:
    client = FakeAsyncRedis()
    yield RedisDealerStore(client, ttl_seconds=3600)
    await client.flushall()


@pytest.fixture
def store(sql_store: SqlDealerStore, redis_store: RedisDealerStore) -> RoutingDealerStore:
    return RoutingDealerStore(sql_store, redis_store, draft_prefix="new-")


@pytest.fixture
def repository(store: RoutingDealerStore) -> DealerRepository:
    return DealerRepository(store, draft_prefix="new-")


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


@pytest.fixture
async def image_service(settings: Settings, provider: ProviderStub) -> AsyncGenerator[ImageGenerationService, None]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(provider.handler))
    yield ImageGenerationService(settings, client=client)
    await client.aclose()


@pytest.fixture
def lifecycle(repository: DealerRepository, image_service: ImageGenerationService) -> DealerLifecycleService:
    return DealerLifecycleService(repository, image_service)


@pytest.fixture
def sophia_fields() -> dict:
    return {
        "name": "Sophia",
        "personality": "Elegant & Sophisticated",
        "model": "Stable Diffusion XL",
    }


@pytest.fixture
async def app(settings, session_manager, image_service, lifecycle):
    """Application with services injected directly; lifespan is not run."""
    application = create_application(settings)
    application.state.session_manager = session_manager
    application.state.image_service = image_service
    application.state.lifecycle = lifecycle
    return application


@pytest.fixture
async def async_client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Get async HTTP client."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
