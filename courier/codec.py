"""Codec - Request body encoding and response payload decoding.

JsonCodec is backed by pydantic TypeAdapters, so any type pydantic can
validate (BaseModel subclasses, dataclasses, TypedDicts, builtins) can be
used as a decode target, and decode failures are pydantic ValidationErrors
that courier.decode_errors knows how to locate.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any, Awaitable, Protocol, get_args

from pydantic import BaseModel, TypeAdapter


class PayloadMode(str, Enum):
    """How a response body is turned into a value."""

    BYTES = "bytes"  # Raw body, untouched
    TEXT = "text"  # Body decoded as UTF-8
    STRUCTURED = "structured"  # Body parsed by the codec


def payload_mode_for(target_type: Any) -> PayloadMode:
    if target_type is bytes:
        return PayloadMode.BYTES
    if target_type is str:
        return PayloadMode.TEXT
    return PayloadMode.STRUCTURED


def type_name(target_type: Any) -> str:
    """Readable name of a decode target, e.g. "User" or "list[int]"."""
    if get_args(target_type):
        # Parameterized generics report their origin's __name__ ("list").
        return repr(target_type)
    return getattr(target_type, "__name__", None) or repr(target_type)


class Codec(Protocol):
    """Serializes request bodies and parses response payloads.

    encode may return an awaitable for codecs that serialize asynchronously.
    """

    def encode(self, value: Any) -> bytes | Awaitable[bytes]: ...

    def decode(self, data: bytes, target_type: Any) -> Any: ...


@lru_cache(maxsize=256)
def _adapter(target_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target_type)


class JsonCodec:
    """JSON codec using pydantic for both directions."""

    def encode(self, value: Any) -> bytes:
        if isinstance(value, BaseModel):
            return value.model_dump_json().encode("utf-8")
        return _adapter(type(value)).dump_json(value)

    def decode(self, data: bytes, target_type: Any) -> Any:
        return _adapter(target_type).validate_json(data)
