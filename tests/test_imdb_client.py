"""Tests for the seasons/episodes metadata client."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

import httpx
import pytest

from app.clock import fixed_clock
from app.config import Settings
from app.services.imdb import ImdbApiClient, MetadataError

NOW = datetime(2024, 6, 15, 12, 0, 0)


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def build_settings(**overrides: Any) -> Settings:
    """Return a settings object with defaults suitable for tests."""

    return Settings(_env_file=None, **overrides)  # type: ignore[arg-type]


def _client(
    handler: Callable[[httpx.Request], httpx.Response],
    **overrides: Any,
) -> tuple[httpx.AsyncClient, ImdbApiClient]:
    transport = httpx.MockTransport(handler)
    http_client = httpx.AsyncClient(transport=transport, base_url="https://api.example.com")
    return http_client, ImdbApiClient(
        build_settings(**overrides), http_client, clock=fixed_clock(NOW)
    )


@pytest.mark.anyio("asyncio")
async def test_fetch_seasons_keeps_upstream_order() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "seasons": [
                    {"season": "2", "episodeCount": 8},
                    {"season": "1", "episodeCount": 7},
                    {"season": "Specials"},
                ]
            },
        )

    http_client, client = _client(handler)
    async with http_client:
        seasons = await client.fetch_seasons("tt0903747")

    assert [season.label for season in seasons] == ["2", "1", "Specials"]
    assert [season.number for season in seasons] == [2, 1, None]
    assert requests[0].url.path == "/titles/tt0903747/seasons"


@pytest.mark.anyio("asyncio")
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(404, json={"message": "not found"}),
        httpx.Response(200, json={"seasons": []}),
        httpx.Response(200, json={"seasons": "1,2"}),
        httpx.Response(200, json={}),
        httpx.Response(200, json=[{"season": "1"}]),
        httpx.Response(200, text="<html>not json</html>"),
    ],
)
async def test_fetch_seasons_failures_raise_metadata_error(response: httpx.Response) -> None:
    http_client, client = _client(lambda request: response)
    async with http_client:
        with pytest.raises(MetadataError):
            await client.fetch_seasons("tt1")


@pytest.mark.anyio("asyncio")
async def test_transport_errors_raise_metadata_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http_client, client = _client(handler)
    async with http_client:
        with pytest.raises(MetadataError) as excinfo:
            await client.fetch_episodes("tt1", 1)

    assert isinstance(excinfo.value.original_exception, httpx.ConnectError)


@pytest.mark.anyio("asyncio")
async def test_fetch_episodes_requests_single_page_and_filters_records() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "episodes": [
                    {
                        "id": "tt01",
                        "title": "Pilot",
                        "season": "2",
                        "episodeNumber": 1,
                        "releaseDate": {"year": 2009, "month": 3, "day": 8},
                    },
                    {"id": "", "title": "No id", "episodeNumber": 2},
                    {"id": "tt03", "title": "", "episodeNumber": 3},
                    {"id": "tt04", "title": "No number"},
                    {"id": "tt01", "title": "Duplicate", "episodeNumber": 9},
                    {"id": "tt05", "title": "Undated", "season": "2", "episodeNumber": 5},
                ],
                "nextPageToken": "abc",
            },
        )

    http_client, client = _client(handler, EPISODE_PAGE_SIZE=25)
    async with http_client:
        episodes = await client.fetch_episodes("tt0903747", 2)

    assert [episode.id for episode in episodes] == ["tt01", "tt05"]
    assert len(requests) == 1
    assert requests[0].url.path == "/titles/tt0903747/episodes"
    assert requests[0].url.params["season"] == "2"
    assert requests[0].url.params["pageSize"] == "25"
    undated = episodes[1]
    assert (undated.release_date.year, undated.release_date.month, undated.release_date.day) == (
        2024,
        6,
        15,
    )


@pytest.mark.anyio("asyncio")
async def test_fetch_episodes_without_valid_records_is_an_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"episodes": [{"title": "No id"}, None]})

    http_client, client = _client(handler)
    async with http_client:
        with pytest.raises(MetadataError):
            await client.fetch_episodes("tt1", 1)
