"""Host Parser - Splits a free-form base host into URL components.

Accepts strings like "api.example.com", "http://localhost:8080/api/v1" or
"https://[::1]:9000/x" and returns a ParsedHost. Parsing never raises:
unusable input degrades to an empty host, which the client reports as an
invalid URL at call time.
"""

from __future__ import annotations

import re

from courier.models import ParsedHost

DEFAULT_SCHEME = "https"

_SCHEME_PATTERN = re.compile(r"^([A-Za-z][A-Za-z0-9+.-]*)://")
_SLASH_RUN = re.compile(r"/+")


def parse_host(raw: str) -> ParsedHost:
    """Parse a base host string into scheme, host, port and base path.

    Examples:
        "https://example.com:8080/api/v1" -> (https, example.com, 8080, /api/v1)
        "http://[::1]:9000/x"             -> (http, [::1], 9000, /x)
        "host:notaport/p"                 -> (https, host:notaport, None, /p)
        ""                                -> (https, "", None, "")
    """
    scheme, rest = _split_scheme(raw)
    host_and_port, path = _split_host_and_path(rest)
    host, port = _split_host_and_port(host_and_port)
    return ParsedHost(
        scheme=scheme,
        host=host,
        port=port,
        base_path=normalize_base_path(path),
    )


def normalize_base_path(path: str) -> str:
    """Collapse slash runs and strip outer slashes; "" or "/a/b"."""
    normalized = _SLASH_RUN.sub("/", path).strip("/")
    return f"/{normalized}" if normalized else ""


def _split_scheme(raw: str) -> tuple[str, str]:
    match = _SCHEME_PATTERN.match(raw)
    if match is None:
        return DEFAULT_SCHEME, raw
    return match.group(1), raw[match.end():]


def _split_host_and_path(rest: str) -> tuple[str, str]:
    trimmed = rest.strip()
    host_and_port, _, path = trimmed.partition("/")
    return host_and_port, path


def _parse_port(text: str) -> int | None:
    # Only plain ASCII digits: int() would also accept "+80", " 80" and "8_0".
    if text and text.isascii() and text.isdigit():
        return int(text)
    return None


def _split_host_and_port(token: str) -> tuple[str, int | None]:
    """Split "host:port", keeping IPv6 brackets on the host.

    A suffix that is not a valid port is left on the host untouched
    ("host:8080x" stays one host token, port None).
    """
    if token.startswith("["):
        end = token.find("]")
        if end != -1:
            literal = token[: end + 1]
            remainder = token[end + 1:]
            if remainder.startswith(":"):
                port = _parse_port(remainder[1:])
                if port is not None:
                    return literal, port
                return token, None
            return literal, None

    name, sep, suffix = token.partition(":")
    if sep:
        port = _parse_port(suffix)
        if port is not None:
            return name, port
    return token, None
