"""Tests for the HTTP client (httpx.MockTransport, no network)."""

import asyncio
import json

import httpx
import pytest

from home_budget.config import DEFAULT_USER_ID, ApiSettings
from home_budget.models import ErrorKind
from home_budget.services.api import (
    ApiClient,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ServerError,
)
from home_budget.services.api.errors import ResponseFormatError
from home_budget.services.storage import MemoryStore


BASE_URL = "http://api.test/api"


def make_client(handler, store=None, **settings):
    transport = httpx.MockTransport(handler)
    return ApiClient(
        settings=ApiSettings(base_url=BASE_URL, **settings),
        store=store,
        http_client=httpx.AsyncClient(transport=transport),
    )


class TestRequests:
    """Tests for URLs, headers and envelopes."""

    async def test_default_headers(self):
        """Every call carries JSON content type and the user id."""
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(200, json={"data": []})

        client = make_client(handler)
        await client.get("/expenses", params={"page": 1})

        assert seen["url"] == f"{BASE_URL}/expenses?page=1"
        assert seen["headers"]["content-type"] == "application/json"
        assert seen["headers"]["x-user-id"] == DEFAULT_USER_ID
        assert "authorization" not in seen["headers"]

    async def test_token_and_user_from_store(self):
        """A stored token and user id are sent."""
        store = MemoryStore()
        store.set_auth_token("secret")
        store.set_user_id("user-7")
        seen = {}

        def handler(request):
            seen.update(request.headers)
            return httpx.Response(200, json={})

        client = make_client(handler, store=store)
        await client.get("/tasks")

        assert seen["authorization"] == "Bearer secret"
        assert seen["x-user-id"] == "user-7"

    async def test_data_envelope_unwrapped(self):
        """get() strips {"data": ...}; get_raw() keeps it."""
        def handler(request):
            return httpx.Response(200, json={"data": [1, 2], "total": 2})

        client = make_client(handler)
        assert await client.get("/x") == [1, 2]
        assert await client.get_raw("/x") == {"data": [1, 2], "total": 2}

    async def test_bare_body_used_as_is(self):
        """A body without envelope is returned untouched."""
        def handler(request):
            return httpx.Response(200, json={"id": "1"})

        client = make_client(handler)
        assert await client.get("/x") == {"id": "1"}

    async def test_empty_response(self):
        """204 yields None."""
        client = make_client(lambda request: httpx.Response(204))
        assert await client.delete("/expenses/1") is None

    async def test_post_sends_json_body(self):
        """Mutations send the body as JSON."""
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "9"})

        client = make_client(handler)
        result = await client.post("/notes", {"title": "hi"})

        assert seen == {"method": "POST", "body": {"title": "hi"}}
        assert result == {"id": "9"}

    def test_dev_proxy_url(self):
        """The dev proxy replaces the base URL when enabled."""
        settings = ApiSettings(base_url=BASE_URL, use_dev_proxy=True)
        assert settings.effective_base_url == "http://localhost:5173/api"


class TestErrors:
    """Tests for the error taxonomy."""

    async def test_not_found(self):
        """404 becomes NotFoundError with the body's message."""
        client = make_client(
            lambda request: httpx.Response(404, json={"error": "Expense not found"})
        )
        with pytest.raises(NotFoundError) as exc_info:
            await client.get("/expenses/1")

        assert exc_info.value.status == 404
        assert exc_info.value.message == "Expense not found"
        assert exc_info.value.to_err().kind is ErrorKind.NOT_FOUND

    async def test_server_error(self):
        """Non-2xx becomes ServerError with status and code."""
        client = make_client(
            lambda request: httpx.Response(500, json={"message": "db down"})
        )
        with pytest.raises(ServerError) as exc_info:
            await client.put("/expenses/1", {"name": "x"})

        assert exc_info.value.status == 500
        assert exc_info.value.code == "SERVER_ERROR"
        assert exc_info.value.message == "db down"

    async def test_non_json_error_body(self):
        """A plain-text error still maps to ServerError."""
        client = make_client(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(ServerError) as exc_info:
            await client.get("/x")
        assert exc_info.value.message == "HTTP 502"

    async def test_timeout(self):
        """A client-side timeout is status 408, code TIMEOUT."""
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = make_client(handler)
        with pytest.raises(RequestTimeoutError) as exc_info:
            await client.get("/x")

        assert exc_info.value.status == 408
        assert exc_info.value.code == "TIMEOUT"
        assert exc_info.value.to_err().kind is ErrorKind.TIMEOUT

    async def test_network_error(self):
        """A transport failure is status 0, code NETWORK_ERROR."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        with pytest.raises(NetworkError) as exc_info:
            await client.post("/x", {})

        assert exc_info.value.status == 0
        assert exc_info.value.code == "NETWORK_ERROR"

    async def test_invalid_json(self):
        """An unparseable 2xx body is a ResponseFormatError."""
        client = make_client(lambda request: httpx.Response(200, text="{nope"))
        with pytest.raises(ResponseFormatError):
            await client.get("/x")


class TestDeduplication:
    """Tests for sharing identical in-flight mutations."""

    async def test_identical_concurrent_posts_share_one_request(self):
        """Same method, path and body go out once."""
        calls = []
        gate = asyncio.Event()

        async def handler(request):
            calls.append(request.content)
            await gate.wait()
            return httpx.Response(201, json={"id": "1"})

        client = make_client(handler)
        first = asyncio.create_task(client.post("/tasks", {"title": "a"}))
        second = asyncio.create_task(client.post("/tasks", {"title": "a"}))
        await asyncio.sleep(0.01)
        assert client.inflight_count == 1

        gate.set()
        assert await first == await second == {"id": "1"}
        assert len(calls) == 1
        assert client.inflight_count == 0

    async def test_different_bodies_not_shared(self):
        """Different bodies are separate requests."""
        calls = []

        async def handler(request):
            calls.append(json.loads(request.content))
            return httpx.Response(201, json={})

        client = make_client(handler)
        await asyncio.gather(
            client.post("/tasks", {"title": "a"}),
            client.post("/tasks", {"title": "b"}),
        )
        assert len(calls) == 2

    async def test_sequential_calls_not_shared(self):
        """A settled request is not reused."""
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(200, json={})

        client = make_client(handler)
        await client.put("/tasks/1/toggle")
        await client.put("/tasks/1/toggle")
        assert len(calls) == 2


class TestRetry:
    """Tests for retrying idempotent GETs."""

    async def test_get_retries_transport_failures(self):
        """GETs are retried up to the configured attempts."""
        calls = []

        def handler(request):
            calls.append(1)
            if len(calls) < 3:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"data": "ok"})

        client = make_client(handler, retry_attempts=3, retry_max_wait_seconds=0)
        assert await client.get("/x") == "ok"
        assert len(calls) == 3

    async def test_default_is_single_attempt(self):
        """With the default configuration a GET is tried once."""
        calls = []

        def handler(request):
            calls.append(1)
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        with pytest.raises(NetworkError):
            await client.get("/x")
        assert len(calls) == 1

    async def test_server_errors_not_retried(self):
        """Only transport failures and timeouts are retried."""
        calls = []

        def handler(request):
            calls.append(1)
            return httpx.Response(500, json={})

        client = make_client(handler, retry_attempts=3, retry_max_wait_seconds=0)
        with pytest.raises(ServerError):
            await client.get("/x")
        assert len(calls) == 1

    async def test_mutations_not_retried(self):
        """POST is never retried."""
        calls = []

        def handler(request):
            calls.append(1)
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler, retry_attempts=3, retry_max_wait_seconds=0)
        with pytest.raises(NetworkError):
            await client.post("/x", {})
        assert len(calls) == 1
