"""Internal data models for courier.

All models use Pydantic v2 and are frozen once constructed. A client's
ParsedHost is built once and shared by every call; RequestDescriptors are
built fresh per call and never shared.
"""

from __future__ import annotations

from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Enumerations
# =============================================================================


class HTTPMethod(str, Enum):
    """HTTP verbs supported by the client."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def _missing_(cls, value: object) -> HTTPMethod | None:
        # Accept "get", "Post", ...
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class CachePolicy(str, Enum):
    """Caching strategy forwarded untouched to the transport."""

    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_CACHE = "reload_ignoring_cache"
    RETURN_CACHE_ELSE_LOAD = "return_cache_else_load"
    RETURN_CACHE_DONT_LOAD = "return_cache_dont_load"


# =============================================================================
# Host and Request Models
# =============================================================================


class ParsedHost(BaseModel):
    """Base host configuration split into its URL components.

    base_path is either "" or starts with exactly one "/" and never ends
    with "/".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    scheme: str = Field(default="https", description="URL scheme, case preserved")
    host: str = Field(default="", description="Hostname, IPv6 literals keep their brackets")
    port: int | None = Field(default=None, description="Explicit port, if any")
    base_path: str = Field(default="", description="Normalized path prefix")

    @field_validator("base_path")
    @classmethod
    def validate_base_path(cls, v: str) -> str:
        if v and (not v.startswith("/") or v.startswith("//") or v.endswith("/")):
            raise ValueError("base_path must be empty or '/segment[/segment...]'")
        return v

    @property
    def is_valid(self) -> bool:
        return bool(self.host)


class RequestDescriptor(BaseModel):
    """One fully-resolved HTTP call, immutable before it is sent.

    path is the full path (base path already joined). headers hold the merged
    result of defaults and per-call overrides, one entry per case-insensitive
    key.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    method: HTTPMethod = Field(description="HTTP method")
    scheme: str = Field(description="URL scheme")
    host: str = Field(description="Hostname")
    port: int | None = Field(default=None, description="Port, if any")
    path: str = Field(default="/", description="Full request path")
    headers: dict[str, str] = Field(default_factory=dict, description="Merged request headers")
    query: dict[str, str] | None = Field(default=None, description="Query parameters")
    fragment: str | None = Field(default=None, description="URL fragment")
    body: bytes | None = Field(default=None, description="Encoded request body")
    cache_policy: CachePolicy = Field(
        default=CachePolicy.USE_PROTOCOL_CACHE_POLICY, description="Cache policy for this call"
    )

    @model_validator(mode="after")
    def check_unique_header_keys(self) -> Self:
        lowered = [key.lower() for key in self.headers]
        if len(lowered) != len(set(lowered)):
            raise ValueError("header keys must be unique ignoring case")
        return self

    @property
    def string(self) -> str:
        """Canonical request string (see courier.canonical.canonicalize)."""
        from courier.canonical import canonicalize

        return canonicalize(self)

    @property
    def signature(self) -> str:
        """Signature over the signing form of the canonical string."""
        from courier.signature import sign_descriptor

        return sign_descriptor(self)


class ResponseMetadata(BaseModel):
    """Status line and headers of a received response."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status_code: int = Field(description="HTTP status code")
    headers: dict[str, str] = Field(
        default_factory=dict, description="Response headers (lowercase keys)"
    )
    url: str = Field(default="", description="URL the request was sent to")


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class ClientConfig(BaseModel):
    """Client configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(description="Base host, e.g. https://api.example.com/v1")
    port: int | None = Field(default=None, description="Overrides any port in host")
    default_headers: dict[str, str] | None = Field(
        default=None,
        description="Headers sent with every request (supports ${ENV_VAR} substitution)",
    )
    cache_policy: CachePolicy = Field(
        default=CachePolicy.USE_PROTOCOL_CACHE_POLICY, description="Default cache policy"
    )
    timeout: float = Field(default=60.0, description="Request timeout in seconds")
    cache_size: int = Field(default=0, description="In-memory response cache entries (0 disables)")

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int | None) -> int | None:
        if v is not None and not 0 <= v <= 65535:
            raise ValueError("port must be between 0 and 65535")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("cache_size")
    @classmethod
    def validate_cache_size(cls, v: int) -> int:
        if v < 0:
            raise ValueError("cache_size cannot be negative")
        return v
