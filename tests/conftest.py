import os
from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("ACCOUNT_STORE_BACKEND", "memory")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")

BASE_URL = "https://jikan.test/v4"


def anime_items(start: int, count: int) -> list[dict[str, Any]]:
    return [{"mal_id": i, "title": f"Anime {i}"} for i in range(start, start + count)]


def data_response(items: list[dict[str, Any]], **extra: Any) -> httpx.Response:
    return httpx.Response(200, json={"data": items, **extra})


class JikanStub:
    """Replays queued responses (or raises queued exceptions) and records every request."""

    def __init__(self) -> None:
        self.responses: list[httpx.Response | Exception] = []
        self.requests: list[httpx.Request] = []

    def add(self, *responses: httpx.Response | Exception) -> None:
        self.responses.extend(responses)

    def pages_requested(self) -> list[int]:
        return [int(r.url.params["page"]) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"unexpected upstream request: {request.url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def stub() -> JikanStub:
    return JikanStub()


@pytest.fixture
def sleeps() -> RecordingSleep:
    return RecordingSleep()


@pytest_asyncio.fixture
async def upstream_http(stub) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(stub)) as http:
        yield http


@pytest.fixture
def upstream(upstream_http, sleeps):
    from app.upstream.client import UpstreamClient
    from app.upstream.retry import RetryPolicy
    return UpstreamClient(
        upstream_http,
        base_url=BASE_URL,
        policy=RetryPolicy(retry_budget=3, backoff_base=1.0, backoff_exponent_base=2.0),
        sleep=sleeps,
    )


@pytest.fixture
def aggregator(upstream):
    from app.core.config import Settings
    from app.upstream.aggregator import PaginatedAggregator
    return PaginatedAggregator(upstream, settings=Settings())


@pytest.fixture
def account_store():
    from app.storage.memory import InMemoryAccountStore
    return InMemoryAccountStore()


@pytest_asyncio.fixture
async def client(aggregator, account_store) -> AsyncGenerator[AsyncClient, None]:
    from app.deps import get_aggregator
    from app.main import app
    from app.storage.base import get_account_store
    app.dependency_overrides[get_aggregator] = lambda: aggregator
    app.dependency_overrides[get_account_store] = lambda: account_store
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
