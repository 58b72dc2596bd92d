"""Tests for transport/http.py.

Covers:
- URL construction under /projects/{project_id}
- auth and request-id headers
- JSON decoding, including empty and non-JSON 2xx bodies
- status -> exception mapping (400/422, 401/403, 404, 429, other 4xx, 5xx)
- transport failures surfacing as NetworkError
- borrowed (injected) httpx clients

All HTTP is mocked with respx or httpx.MockTransport.
"""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from cms_client.config.connection import ClientConfig
from cms_client.core.exceptions import (
    AuthError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RequestError,
    ServerError,
    ValidationError,
)
from cms_client.transport.http import USER_AGENT, RequestTransport, quote_segment

API_URL = "https://api.example-cms.io/v1"
PROJECT_ROOT = f"{API_URL}/projects/blog"
ITEMS_URL = f"{PROJECT_ROOT}/collections/posts/items"


def _transport(http_client: httpx.AsyncClient | None = None) -> RequestTransport:
    config = ClientConfig.build(api_url=API_URL, api_key="sk_test_123", project_id="blog")
    return RequestTransport(config, http_client=http_client)


# ---------------------------------------------------------------------------
# URL construction
# ---------------------------------------------------------------------------


class TestBuildUrl:
    def test_path_scoped_under_project(self) -> None:
        assert _transport().build_url("collections/posts/items") == ITEMS_URL

    def test_leading_and_trailing_slashes_ignored(self) -> None:
        assert _transport().build_url("/schema/") == f"{PROJECT_ROOT}/schema"

    def test_empty_path_is_project_root(self) -> None:
        assert _transport().build_url("") == PROJECT_ROOT

    def test_project_id_is_quoted(self) -> None:
        config = ClientConfig.build(api_url=API_URL, api_key="k", project_id="team/blog")
        assert RequestTransport(config).project_root == f"{API_URL}/projects/team%2Fblog"

    def test_quote_segment_escapes_slashes_and_spaces(self) -> None:
        assert quote_segment("a b/c") == "a%20b%2Fc"


# ---------------------------------------------------------------------------
# Successful requests
# ---------------------------------------------------------------------------


class TestSuccessfulRequests:
    @pytest.mark.asyncio
    @respx.mock
    async def test_headers_attached(self) -> None:
        """Every request carries the bearer key, JSON accept header, UA and a request id."""
        route = respx.get(ITEMS_URL).mock(return_value=httpx.Response(200, json=[]))

        await _transport().request("GET", "collections/posts/items")

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer sk_test_123"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"] == USER_AGENT
        assert len(request.headers["X-Request-ID"]) == 36

    @pytest.mark.asyncio
    @respx.mock
    async def test_request_ids_differ_per_call(self) -> None:
        route = respx.get(ITEMS_URL).mock(return_value=httpx.Response(200, json=[]))
        transport = _transport()

        await transport.request("GET", "collections/posts/items")
        await transport.request("GET", "collections/posts/items")

        ids = {call.request.headers["X-Request-ID"] for call in route.calls}
        assert len(ids) == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_json_body_and_params_sent(self) -> None:
        route = respx.post(ITEMS_URL).mock(return_value=httpx.Response(201, json={"id": "c_1"}))

        result = await _transport().request(
            "post", "collections/posts/items", params={"draft": "1"}, json={"title": "Hello"}
        )

        request = route.calls.last.request
        assert request.method == "POST"
        assert request.url.params["draft"] == "1"
        assert json.loads(request.content) == {"title": "Hello"}
        assert result == {"id": "c_1"}

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_2xx_body_decodes_to_none(self) -> None:
        respx.put(f"{PROJECT_ROOT}/schema").mock(return_value=httpx.Response(204))

        assert await _transport().request("PUT", "schema", json={"fields": []}) is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_non_json_2xx_body_decodes_to_none(self) -> None:
        respx.put(f"{PROJECT_ROOT}/schema").mock(
            return_value=httpx.Response(200, text="OK", headers={"Content-Type": "text/plain"})
        )

        assert await _transport().request("PUT", "schema") is None


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "exc_type"),
        [
            (400, ValidationError),
            (422, ValidationError),
            (401, AuthError),
            (403, AuthError),
            (404, NotFoundError),
            (409, RequestError),
            (429, RateLimitError),
            (500, ServerError),
            (503, ServerError),
        ],
    )
    async def test_status_maps_to_exception(self, status: int, exc_type: type[Exception]) -> None:
        with respx.mock:
            respx.get(ITEMS_URL).mock(
                return_value=httpx.Response(status, json={"message": "nope"})
            )

            with pytest.raises(exc_type) as exc_info:
                await _transport().request("GET", "collections/posts/items")

        assert exc_info.value.status_code == status
        assert exc_info.value.message == "nope"
        assert exc_info.value.method == "GET"
        assert exc_info.value.url == ITEMS_URL

    @pytest.mark.asyncio
    @respx.mock
    async def test_validation_error_reports_backend_field(self) -> None:
        respx.post(ITEMS_URL).mock(
            return_value=httpx.Response(
                422, json={"error": {"message": "title is required", "field": "title"}}
            )
        )

        with pytest.raises(ValidationError) as exc_info:
            await _transport().request("POST", "collections/posts/items", json={})

        assert exc_info.value.field == "title"
        assert exc_info.value.message == "title is required"

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_reads_retry_after(self) -> None:
        respx.get(ITEMS_URL).mock(
            return_value=httpx.Response(429, headers={"Retry-After": "12"})
        )

        with pytest.raises(RateLimitError) as exc_info:
            await _transport().request("GET", "collections/posts/items")

        assert exc_info.value.retry_after == 12.0

    @pytest.mark.asyncio
    @respx.mock
    async def test_rate_limit_without_header_uses_default(self) -> None:
        respx.get(ITEMS_URL).mock(return_value=httpx.Response(429))

        with pytest.raises(RateLimitError) as exc_info:
            await _transport().request("GET", "collections/posts/items")

        assert exc_info.value.retry_after == 60.0

    @pytest.mark.asyncio
    @respx.mock
    async def test_plain_text_error_body_used_as_message(self) -> None:
        respx.get(ITEMS_URL).mock(return_value=httpx.Response(502, text="Bad Gateway upstream"))

        with pytest.raises(ServerError) as exc_info:
            await _transport().request("GET", "collections/posts/items")

        assert exc_info.value.message == "Bad Gateway upstream"

    @pytest.mark.asyncio
    @respx.mock
    async def test_list_detail_serialised_into_message(self) -> None:
        respx.post(ITEMS_URL).mock(
            return_value=httpx.Response(422, json={"detail": [{"loc": ["title"], "msg": "required"}]})
        )

        with pytest.raises(ValidationError) as exc_info:
            await _transport().request("POST", "collections/posts/items", json={})

        assert "required" in exc_info.value.message

    @pytest.mark.asyncio
    @respx.mock
    async def test_connect_error_raises_network_error(self) -> None:
        respx.get(ITEMS_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        with pytest.raises(NetworkError) as exc_info:
            await _transport().request("GET", "collections/posts/items")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert exc_info.value.url == ITEMS_URL

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout_raises_network_error(self) -> None:
        respx.get(ITEMS_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        with pytest.raises(NetworkError):
            await _transport().request("GET", "collections/posts/items")

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_retry_on_server_error(self) -> None:
        route = respx.get(ITEMS_URL).mock(return_value=httpx.Response(503))

        with pytest.raises(ServerError):
            await _transport().request("GET", "collections/posts/items")

        assert route.call_count == 1


# ---------------------------------------------------------------------------
# Injected client
# ---------------------------------------------------------------------------


class TestInjectedClient:
    @pytest.mark.asyncio
    async def test_injected_client_used_and_left_open(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            transport = _transport(http_client)
            assert await transport.request("GET", "") == {"ok": True}
            assert await transport.request("GET", "") == {"ok": True}
            assert not http_client.is_closed

        assert len(seen) == 2
        assert str(seen[0].url) == PROJECT_ROOT

    @pytest.mark.asyncio
    async def test_injected_client_uses_configured_timeout(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        config = ClientConfig.build(
            api_url=API_URL, api_key="sk_test_123", project_id="blog", timeout_seconds=1.5
        )
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            await RequestTransport(config, http_client=http_client).request("GET", "")

        timeout = seen[0].extensions["timeout"]
        assert timeout["read"] == 1.5
        assert timeout["connect"] == 1.5
