"""MockClient - Stubbing and call recording for code that uses a Client.

Stubs are keyed by the literal (method, path) pair; query, fragment and
headers are recorded but never matched. An unstubbed call returns an
invalid URL failure instead of raising or hanging.

Recorded calls and stubs may be touched from concurrent calls (and from
test threads), so both tables are guarded by one lock.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from courier.client import RequestVerbs, is_success_status
from courier.errors import CourierError, InvalidURLError, ServerError
from courier.models import CachePolicy, HTTPMethod, ResponseMetadata
from courier.results import Failure, Result, Success

MOCK_BASE_URL = "https://example.com"


@dataclass(frozen=True)
class RecordedCall:
    """One call made against a MockClient."""

    method: HTTPMethod
    path: str
    headers: dict[str, str] | None = None
    query: dict[str, str] | None = None
    fragment: str | None = None
    cache_policy: CachePolicy | None = None
    has_body: bool = False


@dataclass(frozen=True)
class StubbedResponse:
    result: Result
    delay: float = 0.0


@dataclass
class _MockState:
    calls: list[RecordedCall] = field(default_factory=list)
    stubs: dict[tuple[HTTPMethod, str], StubbedResponse] = field(default_factory=dict)


class MockClient(RequestVerbs):
    """Drop-in stand-in for Client in tests.

    Usage:
        mock = MockClient()
        mock.stub("GET", "/users/1", {"id": 1, "name": "Ada"})
        result = await mock.get("/users/1")
        assert result.value == {"id": 1, "name": "Ada"}
        assert mock.call_count("GET", "/users/1") == 1
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._state = _MockState()

    # =========================================================================
    # Stubbing
    # =========================================================================

    def stub(
        self,
        method: HTTPMethod | str,
        path: str,
        response: Any,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
        delay: float = 0.0,
    ) -> None:
        """Stub the value returned for (method, path).

        A non-2xx status_code produces a server failure, as a real client would.
        """
        method = HTTPMethod(method)
        request_string = f"{method.value} {path}"
        metadata = ResponseMetadata(
            status_code=status_code,
            headers={key.lower(): value for key, value in (headers or {}).items()},
            url=f"{MOCK_BASE_URL}{path}",
        )

        if is_success_status(status_code):
            result: Result = Success(response, metadata, request_string, "")
        else:
            body = response if isinstance(response, bytes) else None
            result = Failure(ServerError(status_code, body), request_string, response=metadata)

        self._store(method, path, StubbedResponse(result=result, delay=delay))

    def stub_failure(
        self,
        method: HTTPMethod | str,
        path: str,
        error: CourierError,
        delay: float = 0.0,
    ) -> None:
        """Stub a failure for (method, path)."""
        method = HTTPMethod(method)
        result = Failure(error, f"{method.value} {path}")
        self._store(method, path, StubbedResponse(result=result, delay=delay))

    def _store(self, method: HTTPMethod, path: str, stubbed: StubbedResponse) -> None:
        with self._lock:
            self._state.stubs[(method, path)] = stubbed

    def reset(self) -> None:
        """Remove all stubs and recorded calls."""
        with self._lock:
            self._state = _MockState()

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def recorded_calls(self) -> list[RecordedCall]:
        """All calls in the order they were made."""
        with self._lock:
            return list(self._state.calls)

    def call_count(self, method: HTTPMethod | str | None = None, path: str | None = None) -> int:
        """Number of calls, optionally filtered by method and/or path."""
        wanted = HTTPMethod(method) if method is not None else None
        return sum(
            1
            for call in self.recorded_calls
            if (wanted is None or call.method == wanted) and (path is None or call.path == path)
        )

    def was_called(self, method: HTTPMethod | str, path: str) -> bool:
        return self.call_count(method, path) > 0

    # =========================================================================
    # Client Surface
    # =========================================================================

    async def request(
        self,
        method: HTTPMethod | str,
        path: str,
        *,
        body: Any = None,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
        fragment: str | None = None,
        cache_policy: CachePolicy | None = None,
        decode_to: Any = bytes,
    ) -> Result:
        try:
            method = HTTPMethod(method)
        except ValueError:
            return Failure(
                InvalidURLError(f"Unsupported HTTP method: {method}"), f"{method} {path}"
            )
        call = RecordedCall(
            method=method,
            path=path,
            headers=dict(headers) if headers is not None else None,
            query=dict(query) if query is not None else None,
            fragment=fragment,
            cache_policy=cache_policy,
            has_body=body is not None,
        )

        with self._lock:
            self._state.calls.append(call)
            stubbed = self._state.stubs.get((method, path))

        if stubbed is None:
            return Failure(
                InvalidURLError(f"No stub registered for {method.value} {path}"),
                f"{method.value} {path}",
            )

        if stubbed.delay > 0:
            await asyncio.sleep(stubbed.delay)
        return stubbed.result
