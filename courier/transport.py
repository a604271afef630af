"""Transport - Sends a composed request and returns the raw response.

The client only depends on the Transport protocol. HttpxTransport is the
production implementation on top of httpx.AsyncClient. Redirects, retries
and connection reuse are left to httpx; courier adds none of its own.

Caching is delegated to a ResponseCache keyed by the request signature.
The client forwards the call's CachePolicy; the transport decides what
that means for the cache it holds.
"""

from __future__ import annotations

from collections import OrderedDict
from threading import Lock
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field

from courier.headers import sanitize_header_value
from courier.models import CachePolicy, HTTPMethod

DEFAULT_TIMEOUT = 60.0


class TransportResponse(BaseModel):
    """Raw response as returned by a transport."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Response headers (lowercase keys)"
    )
    body: bytes = Field(default=b"", description="Response body")
    url: str = Field(default="", description="Final request URL")


class CacheMissError(Exception):
    """Raised for RETURN_CACHE_DONT_LOAD when nothing is cached."""


class Transport(Protocol):
    """Anything that can send one HTTP request."""

    async def send(
        self,
        method: HTTPMethod,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY,
        cache_key: str = "",
    ) -> Any: ...


# =============================================================================
# Response Cache
# =============================================================================


class ResponseCache(Protocol):
    def get(self, key: str) -> TransportResponse | None: ...

    def put(self, key: str, response: TransportResponse) -> None: ...

    def clear(self) -> None: ...


class InMemoryResponseCache:
    """Bounded LRU cache of responses, safe to share between tasks and threads."""

    def __init__(self, max_entries: int = 128) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, TransportResponse] = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> TransportResponse | None:
        with self._lock:
            response = self._entries.get(key)
            if response is not None:
                self._entries.move_to_end(key)
            return response

    def put(self, key: str, response: TransportResponse) -> None:
        with self._lock:
            self._entries[key] = response
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


# =============================================================================
# httpx Transport
# =============================================================================


class HttpxTransport:
    """Transport backed by httpx.AsyncClient.

    Usage:
        async with HttpxTransport(timeout=10.0) as transport:
            client = Client("api.example.com", transport=transport)
            result = await client.get("/users")
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout: Request timeout in seconds.
            cache: Optional response cache consulted for GET requests.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        self._cache = cache
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
        )

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    async def send(
        self,
        method: HTTPMethod,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY,
        cache_key: str = "",
    ) -> TransportResponse:
        """Send one request, consulting the cache for GETs.

        Raises:
            httpx.RequestError: On connection, timeout or protocol failures.
            CacheMissError: For RETURN_CACHE_DONT_LOAD with no cached entry.
        """
        cacheable = self._cache is not None and method == HTTPMethod.GET and bool(cache_key)

        if cacheable and cache_policy in (
            CachePolicy.RETURN_CACHE_ELSE_LOAD,
            CachePolicy.RETURN_CACHE_DONT_LOAD,
        ):
            cached = self._cache.get(cache_key)
            if cached is not None:
                return cached
            if cache_policy == CachePolicy.RETURN_CACHE_DONT_LOAD:
                raise CacheMissError(f"No cached response for {method.value} {url}")

        response = await self._client.request(
            method.value,
            url,
            headers={key: sanitize_header_value(value) for key, value in headers.items()},
            content=body,
        )
        converted = from_httpx_response(response)

        if cacheable and 200 <= converted.status_code <= 299:
            self._cache.put(cache_key, converted)

        return converted


def from_httpx_response(response: httpx.Response) -> TransportResponse:
    """Convert an httpx Response to a TransportResponse.

    Header keys are lower-cased; repeated headers are folded into one
    comma-separated value.
    """
    headers: dict[str, str] = {}
    for key, value in response.headers.multi_items():
        key_lower = key.lower()
        if key_lower in headers:
            headers[key_lower] = f"{headers[key_lower]}, {value}"
        else:
            headers[key_lower] = value

    # Responses built by hand (tests, custom transports) have no request.
    try:
        url = str(response.request.url)
    except RuntimeError:
        url = ""

    return TransportResponse(
        status_code=response.status_code,
        headers=headers,
        body=response.content,
        url=url,
    )
