"""Pytest configuration and fixtures for the storefront core."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from src.models.context import RequestContext
from src.services.claims.lifecycle import ClaimLifecycle, get_claim_lifecycle
from src.services.clients.storefront_client import StorefrontClient, get_storefront_client
from src.services.collection.paginated_collection import PaginatedCollection, get_collection
from src.services.fetch.page_fetcher import PageFetcher
from src.services.notifications.state_store import (
    NotificationStateStore,
    get_notification_state_store,
    get_redis_client,
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


class StubStorefrontClient(StorefrontClient):
    """In-memory backend: routes are matched on method and path without the query string."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def add(self, method: str, path: str, *responses: Any) -> None:
        """Queue responses for a route; the last one is repeated once the queue drains.

        A response may be a body, an exception instance to raise, or a callable
        ``(method, path, json_body)`` whose (possibly awaitable) result is the body.
        """
        self._routes[(method, path)] = list(responses)

    def calls_to(self, method: str, path: str) -> list[tuple[str, str, dict[str, Any] | None]]:
        return [call for call in self.calls if call[0] == method and call[1].split("?")[0] == path]

    async def request(
        self,
        method: str,
        path: str,
        *,
        context: RequestContext,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        self.calls.append((method, path, json_body))
        await asyncio.sleep(0)
        queue = self._routes.get((method, path.split("?")[0]))
        if not queue:
            raise AssertionError(f"Unexpected request {method} {path}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            result = response(method, path, json_body)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return response


@pytest.fixture()
def storefront_client() -> StubStorefrontClient:
    return StubStorefrontClient()


@pytest.fixture()
def collection(storefront_client) -> PaginatedCollection:
    return PaginatedCollection(PageFetcher(storefront_client), RequestContext())


@pytest.fixture()
def lifecycle(storefront_client, collection) -> ClaimLifecycle:
    return ClaimLifecycle(storefront_client, collection)


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    client = fakeredis.FakeRedis()
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()


@pytest.fixture()
def state_store(redis_client) -> NotificationStateStore:
    return NotificationStateStore(redis_client)


@pytest_asyncio.fixture()
async def client(storefront_client, collection, lifecycle, redis_client, state_store):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from src.api.routes import notifications as notification_routes
    from src.main import app

    app.dependency_overrides[get_storefront_client] = lambda: storefront_client
    app.dependency_overrides[get_collection] = lambda: collection
    app.dependency_overrides[get_claim_lifecycle] = lambda: lifecycle
    app.dependency_overrides[get_redis_client] = lambda: redis_client
    app.dependency_overrides[get_notification_state_store] = lambda: state_store
    notification_routes._syncs.clear()  # type: ignore[attr-defined]
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        notification_routes._syncs.clear()  # type: ignore[attr-defined]
