"""Pytest configuration and shared helpers for courier tests.

This file provides:
- make_transport_response: TransportResponse with sensible defaults
- StubTransport: in-process Transport that records sends and replays canned outcomes
- Fixtures: stub transport and a client wired to it
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from courier.client import Client
from courier.models import CachePolicy, HTTPMethod
from courier.transport import TransportResponse

TEST_HOST = "https://api.example.com/v1"


def make_transport_response(
    status_code: int = 200,
    body: bytes = b"",
    headers: dict[str, str] | None = None,
    url: str = "",
) -> TransportResponse:
    """Create a TransportResponse for tests.

    Prefer this over constructing TransportResponse directly - it documents
    which fields are typically varied in tests.
    """
    return TransportResponse(
        status_code=status_code,
        headers=headers or {},
        body=body,
        url=url,
    )


@dataclass
class SentRequest:
    """One request as seen by StubTransport."""

    method: HTTPMethod
    url: str
    headers: dict[str, str]
    body: bytes | None
    cache_policy: CachePolicy
    cache_key: str


@dataclass
class StubTransport:
    """Transport double returning a fixed outcome.

    Set `response` to any object (a TransportResponse normally, anything
    else to simulate a non-HTTP response) or `error` to raise instead.
    Set `block` to make send() wait forever (for cancellation tests).
    """

    response: Any = field(default_factory=make_transport_response)
    error: BaseException | None = None
    block: bool = False
    sent: list[SentRequest] = field(default_factory=list)
    started: asyncio.Event = field(default_factory=asyncio.Event)

    async def send(
        self,
        method: HTTPMethod,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY,
        cache_key: str = "",
    ) -> Any:
        self.sent.append(SentRequest(method, url, headers, body, cache_policy, cache_key))
        self.started.set()
        if self.block:
            await asyncio.Event().wait()
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last(self) -> SentRequest:
        return self.sent[-1]


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()


@pytest.fixture
def client(stub_transport: StubTransport) -> Client:
    """Client on TEST_HOST with default headers, sending through stub_transport."""
    return Client(TEST_HOST, transport=stub_transport)


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Tag CLI tests as integration and everything else as unit.

    Enables running subsets via:
        pytest -m integration
        pytest -m unit
    """
    for item in items:
        test_path = Path(item.fspath)
        if test_path.name.startswith("test_cli"):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
