"""Error taxonomy for courier.

The client never lets these escape: each call returns a Failure carrying
one of them. Callers branch on `error.kind` (or isinstance) and may re-raise
via Failure.unwrap().
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Which stage of the call failed."""

    INVALID_URL = "invalid_url"
    SERVER = "server"
    INVALID_RESPONSE = "invalid_response"
    TRANSPORT = "transport"
    ENCODING = "encoding"
    DECODING = "decoding"
    CANCELLED = "cancelled"


class CourierError(Exception):
    """Base class for request failures."""

    kind: ErrorKind


class InvalidURLError(CourierError):
    """The base host was unusable or the URL could not be composed."""

    kind = ErrorKind.INVALID_URL

    def __init__(self, message: str = "Invalid URL") -> None:
        super().__init__(message)


class ServerError(CourierError):
    """The server answered with a status outside 200-299."""

    kind = ErrorKind.SERVER

    def __init__(self, status_code: int, body: bytes | None = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.body:
            try:
                text = self.body.decode("utf-8")
            except UnicodeDecodeError:
                text = ""
            if text:
                return f"Server returned status code {self.status_code} with body:\n{text}"
        return f"Server returned status code {self.status_code}"


class InvalidResponseError(CourierError):
    """The transport returned something that is not an HTTP response."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, message: str = "Invalid or unexpected response from server") -> None:
        super().__init__(message)


class TransportError(CourierError):
    """Connection, timeout, DNS or TLS failure reported by the transport."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Transport error: {cause}")


class EncodingError(CourierError):
    """The request body could not be serialized."""

    kind = ErrorKind.ENCODING

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Encoding error: {cause}")


class DecodingError(CourierError):
    """The response body could not be decoded into the requested type.

    field_path is the dotted location of the failure within the payload
    ("root" when it cannot be determined).
    """

    kind = ErrorKind.DECODING

    def __init__(self, type_name: str, field_path: str, cause: BaseException) -> None:
        self.type_name = type_name
        self.field_path = field_path
        self.cause = cause
        super().__init__(
            f"Decoding failed in '{type_name}' for key '{field_path}': {cause}"
        )


class RequestCancelledError(CourierError):
    """The call was cancelled while waiting on the transport."""

    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Request cancelled") -> None:
        super().__init__(message)
