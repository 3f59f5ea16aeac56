# tests/test_stackexchange_fetcher.py

from __future__ import annotations

import httpx
import pytest

from stack_track.core.errors import FetchError
from stack_track.core.models import Tag
from stack_track.fetch.stackexchange import StackExchangeFetcher

from .fakes import raw_item

BASE = "https://api.example.test/2.2"


def _fetcher(handler, **kwargs) -> StackExchangeFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StackExchangeFetcher(BASE, client=client, **kwargs)


@pytest.mark.asyncio
async def test_fetch_builds_request_and_returns_items() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": [raw_item("1", 100)], "quota_remaining": 9})

    fetcher = _fetcher(handler, api_key="k3y")
    items = await fetcher.fetch(Tag("ux", "forms"), 7)

    assert [i["question_id"] for i in items] == ["1"]
    req = seen[0]
    assert req.url.path == "/2.2/questions/unanswered"
    assert req.url.params["site"] == "ux.stackexchange.com"
    assert req.url.params["tagged"] == "forms"
    assert req.url.params["pagesize"] == "7"
    assert req.url.params["key"] == "k3y"


@pytest.mark.asyncio
async def test_fetch_without_key_omits_it() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"items": []})

    assert await _fetcher(handler).fetch(Tag("stackoverflow", "python"), 5) == []
    assert "key" not in seen[0].url.params


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="oops"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=[1, 2]),
        httpx.Response(200, json={"quota_remaining": 1}),
        httpx.Response(200, json={"error_id": 502, "error_name": "throttle_violation", "error_message": "slow down"}),
    ],
)
async def test_fetch_errors_become_fetch_error(response: httpx.Response) -> None:
    fetcher = _fetcher(lambda request: response)
    with pytest.raises(FetchError):
        await fetcher.fetch(Tag("stackoverflow", "python"), 5)


@pytest.mark.asyncio
async def test_fetch_transport_error_becomes_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(FetchError):
        await _fetcher(handler).fetch(Tag("stackoverflow", "python"), 5)


@pytest.mark.asyncio
async def test_fetch_unknown_network_becomes_fetch_error() -> None:
    fetcher = _fetcher(lambda request: httpx.Response(200, json={"items": []}))
    with pytest.raises(FetchError):
        await fetcher.fetch(Tag("serverfault", "nginx"), 5)


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"items": []})))
    fetcher = StackExchangeFetcher(BASE, client=client)
    await fetcher.aclose()
    assert not client.is_closed
    await client.aclose()
