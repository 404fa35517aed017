"""
Budget API HTTP Client

A thin async wrapper over httpx that every gateway goes through.

Responsibilities:
1. Build the URL from the configured base and attach the identity headers
2. Turn transport failures, timeouts and non-2xx answers into ApiError
3. Collapse identical concurrent mutating calls into one request
4. Retry idempotent GETs on transport failures (tenacity)

DESIGN DECISION: The client returns the decoded JSON body untouched.
Unwrapping the {"data": ...} envelope and reading pagination hints is left
to the callers, which know what shape they expect.
"""

import asyncio
import json
from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from home_budget.config import ApiSettings, get_settings
from home_budget.services.api.errors import (
    ApiError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ResponseFormatError,
    ServerError,
)
from home_budget.services.storage import KeyValueStore


MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def unwrap_data(body: Any) -> Any:
    """Strip the {"data": ...} envelope if present."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class ApiClient:
    """
    Async JSON client for the budget API.

    Usage:
        async with ApiClient() as client:
            rows = await client.get("/expenses", params={"page": 1})
    """

    def __init__(
        self,
        settings: Optional[ApiSettings] = None,
        store: Optional[KeyValueStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            settings: API settings; defaults to the global configuration.
            store: Local store holding the auth token and user id.
            http_client: Preconfigured httpx client (tests pass one with
                         a MockTransport). Owned by the caller if given.
        """
        self._settings = settings or get_settings().api
        self._store = store
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
        )
        self._inflight: dict[tuple[str, str, str], asyncio.Task] = {}
        self._logger = structlog.get_logger(__name__)

    @property
    def base_url(self) -> str:
        return self._settings.effective_base_url

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "x-user-id": self._settings.user_id,
        }
        if self._store is not None:
            user_id = self._store.get_user_id()
            if user_id:
                headers["x-user-id"] = user_id
            token = self._store.get_auth_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    # -------------------------------------------------------------------------
    # Core request path
    # -------------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        url = self._url(path)
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=body,
                headers=self._headers(),
                timeout=self._settings.timeout_seconds,
            )
        except httpx.TimeoutException:
            self._logger.warning("api_request_timeout", method=method, url=url)
            raise RequestTimeoutError(
                f"Request timed out after {self._settings.timeout_seconds}s"
            )
        except httpx.TransportError as e:
            self._logger.warning(
                "api_network_error",
                method=method,
                url=url,
                error=str(e),
            )
            raise NetworkError(f"Network error: {e}")

        if not response.is_success:
            raise self._error_from_response(method, url, response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise ResponseFormatError(
                f"Invalid JSON from {method} {path}: {e}",
                status=response.status_code,
                code="INVALID_JSON",
            )

    def _error_from_response(
        self,
        method: str,
        url: str,
        response: httpx.Response,
    ) -> ApiError:
        body: Any = None
        message = f"HTTP {response.status_code}"
        code = None
        try:
            body = response.json()
        except json.JSONDecodeError:
            body = response.text or None

        if isinstance(body, dict):
            detail = body.get("error") or body.get("message")
            if isinstance(detail, dict):
                code = detail.get("code")
                detail = detail.get("message")
            if detail:
                message = str(detail)
            code = code or body.get("code")

        self._logger.warning(
            "api_error_response",
            method=method,
            url=url,
            status=response.status_code,
            message=message,
        )

        if response.status_code == 404:
            return NotFoundError(message, status=404, code=code or "NOT_FOUND", body=body)
        return ServerError(
            message,
            status=response.status_code,
            code=code or "SERVER_ERROR",
            body=body,
        )

    async def _get_with_retry(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.retry_attempts),
            wait=wait_exponential(
                multiplier=1,
                min=0,
                max=self._settings.retry_max_wait_seconds,
            ),
            retry=retry_if_exception_type((NetworkError, RequestTimeoutError)),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._send("GET", path, params=params)

    async def _send_deduplicated(self, method: str, path: str, body: Any) -> Any:
        """
        Send a mutating request, sharing it with identical concurrent calls.

        The key is method + path + body; the entry is dropped as soon as
        the request settles so later identical calls go out again.
        """
        key = (method, path, json.dumps(body, sort_keys=True, default=str))
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._send(method, path, body=body))
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        else:
            self._logger.debug("api_request_deduplicated", method=method, path=path)
        return await asyncio.shield(task)

    # -------------------------------------------------------------------------
    # Public helpers
    # -------------------------------------------------------------------------

    async def get_raw(
        self,
        path: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """GET and return the decoded body with its envelope intact."""
        return await self._get_with_retry(path, params=params)

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return unwrap_data(await self._get_with_retry(path, params=params))

    async def post(self, path: str, body: Any = None) -> Any:
        return unwrap_data(await self._send_deduplicated("POST", path, body))

    async def put(self, path: str, body: Any = None) -> Any:
        return unwrap_data(await self._send_deduplicated("PUT", path, body))

    async def patch(self, path: str, body: Any = None) -> Any:
        return unwrap_data(await self._send_deduplicated("PATCH", path, body))

    async def delete(self, path: str) -> Any:
        return unwrap_data(await self._send_deduplicated("DELETE", path, None))

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
