"""Tests for the external places sync client (mocked HTTP transport)."""

import httpx
import pytest

from src.infrastructure.places_client import ExternalSyncFailure, PlacesSyncClient


def _client(handler, **kwargs) -> PlacesSyncClient:
    return PlacesSyncClient(
        "http://places.test/api/online-data/",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestSyncCity:
    @pytest.mark.asyncio
    async def test_wrapped_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers.get("x-api-key")
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "message": "Synced",
                    "data": {"processed": 12, "created": 3, "updated": 9, "cityName": "Bar"},
                },
            )

        result = await _client(handler, api_key="secret").sync_city("bar")

        assert seen == {
            "method": "POST",
            "url": "http://places.test/api/online-data/sync/bar",
            "api_key": "secret",
        }
        assert (result.processed, result.created, result.updated) == (12, 3, 9)
        assert result.city_name == "Bar"

    @pytest.mark.asyncio
    async def test_bare_payload(self):
        def handler(request):
            return httpx.Response(200, json={"processed": 1, "created": 1, "updated": 0})

        result = await _client(handler).sync_city("kotor")
        assert result.processed == 1
        assert result.city_name == ""

    @pytest.mark.asyncio
    async def test_no_api_key_header_without_key(self):
        def handler(request):
            assert "x-api-key" not in request.headers
            return httpx.Response(200, json={"processed": 0, "created": 0, "updated": 0})

        await _client(handler).sync_city("tivat")

    @pytest.mark.asyncio
    async def test_http_error_uses_body_message(self):
        def handler(request):
            return httpx.Response(429, json={"message": "Rate limit exceeded"})

        with pytest.raises(ExternalSyncFailure, match="Rate limit exceeded"):
            await _client(handler).sync_city("bar")

    @pytest.mark.asyncio
    async def test_http_error_without_body(self):
        def handler(request):
            return httpx.Response(503, text="Service Unavailable")

        with pytest.raises(ExternalSyncFailure, match="HTTP error! status: 503"):
            await _client(handler).sync_city("bar")

    @pytest.mark.asyncio
    async def test_success_false(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Unknown city"})

        with pytest.raises(ExternalSyncFailure, match="Unknown city"):
            await _client(handler).sync_city("atlantis")

    @pytest.mark.asyncio
    async def test_success_false_without_message(self):
        def handler(request):
            return httpx.Response(200, json={"success": False})

        with pytest.raises(ExternalSyncFailure, match="Sync failed"):
            await _client(handler).sync_city("bar")

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {"processed": "lots"}})

        with pytest.raises(ExternalSyncFailure, match="Malformed sync response"):
            await _client(handler).sync_city("bar")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        def handler(request):
            return httpx.Response(200, json=[1, 2, 3])

        with pytest.raises(ExternalSyncFailure, match="expected a JSON object"):
            await _client(handler).sync_city("bar")

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalSyncFailure, match="Network error"):
            await _client(handler).sync_city("bar")
