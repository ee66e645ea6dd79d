"""Tests for RelationsClient against a mocked transport."""

import httpx
import pytest

from callmap.core.client import RelationsClient
from callmap.core.exceptions import FetchError


def client_for(handler) -> RelationsClient:
    return RelationsClient("http://server:8080/", transport=httpx.MockTransport(handler))


PAGE_BODY = {
    "page": 2,
    "pageSize": 5,
    "totalRoots": 12,
    "roots": [],
    "data": [
        {
            "name": "main.main",
            "line": 3,
            "filePath": "main.go",
            "called": [{"name": "pkg.Run", "filePath": "pkg/run.go"}],
        }
    ],
    "loadedAt": "2024-05-01T10:00:00+00:00",
}


@pytest.mark.asyncio
async def test_fetch_page_sends_paging_params():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=PAGE_BODY)

    page = await client_for(handler).fetch_page(2, 5)

    assert seen == {"path": "/api/relations", "params": {"page": "2", "pageSize": "5"}}
    assert page.total_roots == 12
    assert page.page == 2
    assert page.data[0].calls[0].name == "pkg.Run"


@pytest.mark.asyncio
async def test_search_sends_query():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/search"
        assert request.url.params["q"] == "run"
        return httpx.Response(
            200,
            json={"page": 1, "pageSize": 5, "totalResults": 1, "query": "run", "data": []},
        )

    result = await client_for(handler).search("run", 1, 5)
    assert result.total_results == 1
    assert result.query == "run"


@pytest.mark.asyncio
async def test_reload_posts():
    methods = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append((request.method, request.url.path))
        return httpx.Response(200)

    await client_for(handler).reload()
    assert methods == [("POST", "/api/reload")]


@pytest.mark.asyncio
async def test_http_error_status_becomes_fetch_error():
    client = client_for(lambda request: httpx.Response(503, text="busy"))

    with pytest.raises(FetchError) as exc_info:
        await client.fetch_page(1, 5)

    assert exc_info.value.status_code == 503
    assert "503" in str(exc_info.value)


@pytest.mark.asyncio
async def test_transport_failure_becomes_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as exc_info:
        await client_for(handler).fetch_page(1, 5)
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_timeout_becomes_fetch_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(FetchError, match="timed out"):
        await client_for(handler).search("x", 1, 5)


@pytest.mark.asyncio
async def test_invalid_json_becomes_fetch_error():
    client = client_for(lambda request: httpx.Response(200, text="<html>"))
    with pytest.raises(FetchError):
        await client.fetch_page(1, 5)


@pytest.mark.asyncio
async def test_unexpected_shape_becomes_fetch_error():
    client = client_for(lambda request: httpx.Response(200, json={"data": "nope"}))
    with pytest.raises(FetchError, match="Unexpected page response"):
        await client.fetch_page(1, 5)


def test_download_url_strips_trailing_slash():
    client = RelationsClient("http://server:8080/")
    assert client.download_url() == "http://server:8080/api/download"
