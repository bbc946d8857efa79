"""Tests for the default httpx transports."""

import json

import httpx
import pytest

from fetchx import CacheContext, TransportError
from fetchx.transport import getter, poster


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")


class TestGetter:
    async def test_decodes_json(self):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/items"
            assert request.url.params["page"] == "2"
            return httpx.Response(200, json=[{"id": 1}])

        async with _client(handler) as client:
            assert await getter("/items?page=2", client=client) == [{"id": 1}]

    async def test_non_success_raises(self):
        async with _client(lambda request: httpx.Response(404)) as client:
            with pytest.raises(TransportError) as info:
                await getter("/missing", client=client)

        assert info.value.status_code == 404
        assert info.value.url == "/missing"
        assert str(info.value) == "Failed to fetch /missing:\n  404 Not Found"


class TestPoster:
    async def test_sends_json_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 7})

        async with _client(handler) as client:
            assert await poster("/items", {"name": "x"}, client=client) == {"id": 7}

        assert seen == {"method": "POST", "body": {"name": "x"}}

    async def test_empty_body(self):
        def handler(request):
            assert request.content == b""
            assert request.headers["content-type"] == "application/json"
            return httpx.Response(200, json={"ok": True})

        async with _client(handler) as client:
            assert await poster("/ping", client=client) == {"ok": True}

    async def test_non_success_raises(self):
        async with _client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(TransportError, match="Failed to post /boom"):
                await poster("/boom", {"a": 1}, client=client)


class TestThroughHandles:
    async def test_transport_error_surfaces_on_handle(self):
        ctx = CacheContext(retry_delay=60)
        async with _client(lambda request: httpx.Response(503)) as client:

            async def fetch(key):
                return await getter(key, client=client)

            h = ctx.observe_resource("/down", fetch_fn=fetch)
            await ctx.settle()

        assert isinstance(h.error, TransportError)
        assert h.error.status_code == 503
        ctx.reset_all_caches()
