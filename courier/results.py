"""Execution results returned by every client call.

A call returns either Success or Failure, never raises. Both carry the
canonical request string and signature; they are "" when the call failed
before a request descriptor existed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

from courier.errors import CourierError, ErrorKind
from courier.models import ResponseMetadata

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """A 2xx response decoded into the requested type."""

    value: T
    response: ResponseMetadata
    request_string: str
    signature: str

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """A failed call.

    response is set only when an HTTP response was actually received
    (server and decoding failures).
    """

    error: CourierError
    request_string: str = ""
    signature: str = ""
    response: ResponseMetadata | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def unwrap(self) -> NoReturn:
        raise self.error


Result = Success[T] | Failure
