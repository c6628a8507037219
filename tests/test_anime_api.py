"""HTTP surface for anime lookups, with the upstream mocked."""

import httpx
import pytest

from app.core.config import Settings
from app.deps import get_aggregator
from app.main import app
from app.upstream.aggregator import PaginatedAggregator
from app.upstream.client import UpstreamClient
from app.upstream.retry import RetryPolicy
from conftest import BASE_URL, anime_items, data_response

pytestmark = pytest.mark.asyncio


async def test_search_aggregates_pages(client, stub):
    stub.add(data_response(anime_items(0, 25)), data_response(anime_items(25, 25)))
    r = await client.get("/v1/anime/search", params={"q": "naruto"})
    assert r.status_code == 200
    body = r.json()
    assert len(body["items"]) == 50
    assert body["pages_fetched"] == 2
    assert body["termination_reason"] == "item-cap-reached"
    assert stub.requests[0].url.params["q"] == "naruto"


async def test_search_by_genres_only(client, stub):
    stub.add(data_response([]))
    r = await client.get("/v1/anime/search", params={"genres": "1,4"})
    assert r.status_code == 200
    assert r.json()["termination_reason"] == "exhausted"
    sent = stub.requests[0].url.params
    assert sent["genres"] == "1,4"
    assert "q" not in sent


async def test_search_without_parameters_is_invalid(client, stub):
    r = await client.get("/v1/anime/search")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_QUERY"
    assert stub.requests == []


async def test_search_with_bad_genre_ids_is_invalid(client, stub):
    r = await client.get("/v1/anime/search", params={"genres": "action"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_QUERY"
    assert stub.requests == []


async def test_index_accepts_legacy_search_param(client, stub):
    stub.add(data_response(anime_items(0, 3)), data_response([]))
    r = await client.get("/v1/anime", params={"search": "bebop"})
    assert r.status_code == 200
    assert stub.requests[0].url.params["q"] == "bebop"


async def test_index_without_filters_browses(client, stub):
    stub.add(data_response(anime_items(0, 25)))
    r = await client.get("/v1/anime")
    assert r.status_code == 200
    assert r.json()["termination_reason"] == "single-shot"
    assert stub.requests[0].url.path.endswith("/anime")


async def test_top_ranked(client, stub):
    stub.add(*[data_response(anime_items(n * 25, 25)) for n in range(4)])
    r = await client.get("/v1/anime/top")
    assert r.status_code == 200
    body = r.json()
    assert len(body["items"]) == 100
    assert body["termination_reason"] == "page-cap-reached"


async def test_recommendations(client, stub):
    entries = [{"entry": {"mal_id": 2, "title": "B"}, "votes": 10}]
    stub.add(data_response(entries))
    r = await client.get("/v1/anime/1/recommendations")
    assert r.status_code == 200
    assert r.json()["items"] == entries
    assert stub.requests[0].url.path.endswith("/anime/1/recommendations")


async def test_recommendations_rejects_non_positive_id(client, stub):
    r = await client.get("/v1/anime/0/recommendations")
    assert r.status_code == 400
    assert stub.requests == []


async def test_genres(client, stub):
    stub.add(data_response([{"mal_id": 1, "name": "Action", "count": 5000}]))
    r = await client.get("/v1/anime/genres")
    assert r.status_code == 200
    assert r.json()["items"][0]["name"] == "Action"


async def test_upstream_error_maps_to_500(client, stub):
    stub.add(httpx.Response(503))
    r = await client.get("/v1/anime/top")
    assert r.status_code == 500
    error = r.json()["error"]
    assert error["code"] == "UPSTREAM_ERROR"
    assert error["details"]["upstream_status"] == 503
    assert "items" not in r.json()


async def test_rate_limit_exhaustion_is_distinct(client, stub):
    stub.add(*[httpx.Response(429) for _ in range(4)])
    r = await client.get("/v1/anime/genres")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "UPSTREAM_RATE_LIMITED"


async def test_error_envelope_carries_request_id(client, stub):
    stub.add(httpx.Response(500))
    r = await client.get("/v1/anime/genres", headers={"X-Request-ID": "abc"})
    assert r.json()["request_id"] == "abc"


async def test_corrupt_body_maps_to_upstream_error(client, stub):
    stub.add(httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not gzip at all"))
    r = await client.get("/v1/anime/genres")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "UPSTREAM_ERROR"


async def test_recommendations_rejects_non_numeric_id(client, stub):
    r = await client.get("/v1/anime/abc/recommendations")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_QUERY"
    assert stub.requests == []


async def test_unreachable_upstream_envelope(client, stub):
    stub.add(*[httpx.ConnectError("connection refused") for _ in range(4)])
    r = await client.get("/v1/anime/genres")
    assert r.status_code == 500
    error = r.json()["error"]
    assert error["code"] == "UPSTREAM_UNREACHABLE"
    assert error["details"]["attempts"] == 4


async def test_deadline_envelope(client, stub, upstream_http):
    stub.add(*[httpx.Response(429) for _ in range(4)])
    upstream = UpstreamClient(upstream_http, base_url=BASE_URL, policy=RetryPolicy(retry_budget=3))
    app.dependency_overrides[get_aggregator] = lambda: PaginatedAggregator(
        upstream, settings=Settings(), deadline_seconds=0.05
    )
    r = await client.get("/v1/anime/top")
    assert r.status_code == 500
    assert r.json()["error"]["code"] == "AGGREGATION_CANCELLED"
    assert len(stub.requests) == 1
