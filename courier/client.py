"""Client - Builds, signs, sends and decodes HTTP requests.

The Client is an immutable value after construction: a parsed base host,
default headers and a default cache policy. Every call runs a pure,
per-call pipeline

    compose URL -> encode body -> merge headers -> build descriptor
    -> canonicalize + sign -> send -> classify status -> decode

and returns a Success or Failure. Nothing raises past the client, so many
calls can be in flight on one instance without locking.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

import httpx
from pydantic import ValidationError

from courier.codec import Codec, JsonCodec, PayloadMode, payload_mode_for, type_name
from courier.decode_errors import map_key_path
from courier.errors import (
    CourierError,
    DecodingError,
    EncodingError,
    InvalidResponseError,
    InvalidURLError,
    RequestCancelledError,
    ServerError,
    TransportError,
)
from courier.headers import merge_headers
from courier.host_parser import parse_host
from courier.models import (
    CachePolicy,
    ClientConfig,
    HTTPMethod,
    ParsedHost,
    RequestDescriptor,
    ResponseMetadata,
)
from courier.results import Failure, Result, Success
from courier.transport import (
    HttpxTransport,
    InMemoryResponseCache,
    Transport,
    TransportResponse,
    from_httpx_response,
)
from courier.url_composer import build_full_path, compose_url

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


def is_success_status(status_code: int) -> bool:
    """2xx responses are decoded; everything else is a server failure."""
    return 200 <= status_code <= 299


class RequestVerbs:
    """Per-verb shorthands over `request`, shared by Client and MockClient."""

    async def request(self, method: HTTPMethod | str, path: str, **kwargs: Any) -> Result:
        raise NotImplementedError

    async def get(self, path: str, **kwargs: Any) -> Result:
        return await self.request(HTTPMethod.GET, path, **kwargs)

    async def post(self, path: str, *, body: Any = None, **kwargs: Any) -> Result:
        return await self.request(HTTPMethod.POST, path, body=body, **kwargs)

    async def put(self, path: str, *, body: Any = None, **kwargs: Any) -> Result:
        return await self.request(HTTPMethod.PUT, path, body=body, **kwargs)

    async def patch(self, path: str, *, body: Any = None, **kwargs: Any) -> Result:
        return await self.request(HTTPMethod.PATCH, path, body=body, **kwargs)

    async def delete(self, path: str, *, body: Any = None, **kwargs: Any) -> Result:
        return await self.request(HTTPMethod.DELETE, path, body=body, **kwargs)


class Client(RequestVerbs):
    """Async HTTP client over an injected transport.

    Usage:
        async with Client("https://api.example.com/v1") as client:
            result = await client.get("/users/1", decode_to=User)
            if result.ok:
                print(result.value, result.signature)
            else:
                print(result.error.kind, result.error)
    """

    def __init__(
        self,
        host: str,
        port: int | None = None,
        default_headers: dict[str, str] | None = None,
        default_cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY,
        transport: Transport | None = None,
        codec: Codec | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Base host, e.g. "api.example.com" or "http://localhost:8080/api".
                  Scheme defaults to https. An unusable host does not raise;
                  every call then fails with an invalid URL error.
            port: Explicit port, overriding any port in host.
            default_headers: Headers sent with every request. Defaults to
                             JSON Accept/Content-Type.
            default_cache_policy: Cache policy for calls that don't pass one.
            transport: Transport used to send requests. Defaults to an
                       HttpxTransport owned (and closed) by this client.
            codec: Body codec. Defaults to JsonCodec.
        """
        parsed = parse_host(host)
        if port is not None:
            parsed = parsed.model_copy(update={"port": port})
        self._host = parsed
        self._default_headers = dict(DEFAULT_HEADERS if default_headers is None else default_headers)
        self._default_cache_policy = default_cache_policy
        self._codec: Codec = codec or JsonCodec()
        self._owns_transport = transport is None
        self._transport: Transport = transport if transport is not None else HttpxTransport()

    @classmethod
    def from_config(cls, config: ClientConfig, codec: Codec | None = None) -> Client:
        """Build a client and its HttpxTransport from a ClientConfig."""
        cache = InMemoryResponseCache(config.cache_size) if config.cache_size else None
        client = cls(
            config.host,
            port=config.port,
            default_headers=config.default_headers,
            default_cache_policy=config.cache_policy,
            transport=HttpxTransport(timeout=config.timeout, cache=cache),
            codec=codec,
        )
        client._owns_transport = True
        return client

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            close = getattr(self._transport, "aclose", None)
            if close is not None:
                await close()

    def clear_cache(self) -> None:
        """Drop cached responses held by the transport, if it caches."""
        clear = getattr(self._transport, "clear_cache", None)
        if clear is not None:
            clear()

    @property
    def base_host(self) -> ParsedHost:
        return self._host

    @property
    def default_headers(self) -> dict[str, str]:
        return dict(self._default_headers)

    @property
    def default_cache_policy(self) -> CachePolicy:
        return self._default_cache_policy

    # =========================================================================
    # Request Building
    # =========================================================================

    async def build_request(
        self,
        method: HTTPMethod | str,
        path: str,
        body: Any = None,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
        fragment: str | None = None,
        cache_policy: CachePolicy | None = None,
    ) -> RequestDescriptor:
        """Resolve one call into an immutable RequestDescriptor.

        bytes bodies are sent as-is; any other non-None body is encoded by
        the codec.

        Raises:
            InvalidURLError: If the base host is unusable, the URL can't be
                composed, the method is unknown, or headers/query hold
                non-string values.
            EncodingError: If the body can't be encoded.
        """
        try:
            http_method = HTTPMethod(method)
        except ValueError as e:
            raise InvalidURLError(f"Unsupported HTTP method: {method}") from e

        if compose_url(self._host, path, query, fragment) is None:
            raise InvalidURLError()

        encoded = await self._encode_body(body)

        try:
            return RequestDescriptor(
                method=http_method,
                scheme=self._host.scheme,
                host=self._host.host,
                port=self._host.port,
                path=build_full_path(self._host.base_path, path),
                headers=merge_headers(self._default_headers, headers),
                query=dict(query) if query else None,
                fragment=fragment,
                body=encoded,
                cache_policy=cache_policy or self._default_cache_policy,
            )
        except ValidationError as e:
            raise InvalidURLError(f"Invalid request components: {e}") from e

    async def _encode_body(self, body: Any) -> bytes | None:
        if body is None:
            return None
        if isinstance(body, (bytes, bytearray, memoryview)):
            return bytes(body)
        try:
            encoded = self._codec.encode(body)
            if inspect.isawaitable(encoded):
                encoded = await encoded
        except Exception as e:
            raise EncodingError(e) from e
        if not isinstance(encoded, (bytes, bytearray, memoryview)):
            raise EncodingError(TypeError(f"codec returned {type(encoded).__name__}, expected bytes"))
        return bytes(encoded)

    # =========================================================================
    # Request Execution
    # =========================================================================

    async def execute(self, descriptor: RequestDescriptor, decode_to: Any = bytes) -> Result:
        """Send a descriptor and decode the response into decode_to.

        decode_to selects the payload mode: bytes (raw body), str (UTF-8
        text) or any type the codec can parse.
        """
        request_string = descriptor.string
        signature = descriptor.signature

        url = compose_url(
            ParsedHost(scheme=descriptor.scheme, host=descriptor.host, port=descriptor.port),
            descriptor.path,
            descriptor.query,
            descriptor.fragment,
        )
        if url is None:
            return Failure(InvalidURLError(), request_string, signature)

        try:
            raw = await self._transport.send(
                descriptor.method,
                url,
                dict(descriptor.headers),
                descriptor.body,
                cache_policy=descriptor.cache_policy,
                cache_key=signature,
            )
        except asyncio.CancelledError:
            # Reported as a result, so the task is no longer being cancelled.
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            return Failure(RequestCancelledError(), request_string, signature)
        except Exception as e:
            return Failure(TransportError(e), request_string, signature)

        if isinstance(raw, httpx.Response):
            raw = from_httpx_response(raw)
        if not isinstance(raw, TransportResponse):
            return Failure(InvalidResponseError(), request_string, signature)

        metadata = ResponseMetadata(
            status_code=raw.status_code,
            headers=raw.headers,
            url=raw.url or url,
        )

        if not is_success_status(raw.status_code):
            return Failure(
                ServerError(raw.status_code, raw.body or None),
                request_string,
                signature,
                response=metadata,
            )

        return self._decode(raw.body, decode_to, metadata, request_string, signature)

    def _decode(
        self,
        body: bytes,
        decode_to: Any,
        metadata: ResponseMetadata,
        request_string: str,
        signature: str,
    ) -> Result:
        mode = payload_mode_for(decode_to)
        try:
            if mode is PayloadMode.BYTES:
                value = body
            elif mode is PayloadMode.TEXT:
                value = body.decode("utf-8")
            else:
                value = self._codec.decode(body, decode_to)
        except Exception as e:
            name = type_name(decode_to)
            return Failure(
                DecodingError(name, map_key_path(e, name), e),
                request_string,
                signature,
                response=metadata,
            )
        return Success(value, metadata, request_string, signature)

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
        """Build and execute one request.

        Failures before a descriptor exists (invalid URL, body encoding)
        carry an empty request string and signature.
        """
        try:
            descriptor = await self.build_request(
                method,
                path,
                body=body,
                headers=headers,
                query=query,
                fragment=fragment,
                cache_policy=cache_policy,
            )
        except CourierError as e:
            return Failure(e)
        return await self.execute(descriptor, decode_to)
