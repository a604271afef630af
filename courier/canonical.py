"""Request Canonicalizer - Deterministic string form of a RequestDescriptor.

Grammar (segments present only when their data is non-empty):

    <METHOD>|<scheme>://<host>[:<port>]<path>[?<query>][#<fragment>][|headers:<headers>]

Query pairs are sorted by key and headers by lower-cased key, so two
descriptors built from the same key/value sets in a different insertion
order canonicalize identically.

The observed form renders components as-is and is meant for reading. The
signing form percent-escapes path, query, fragment and header components
so that delimiter characters inside a value can't make two different
requests render the same string. It additionally ends with
"|body:<sha256 of body>" when a body is present; raw body bytes never
appear in either form.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Callable
from urllib.parse import quote

from courier.url_composer import render_authority

if TYPE_CHECKING:
    from courier.models import RequestDescriptor

SEGMENT_SEPARATOR = "|"
PAIR_SEPARATOR = "&"

# Everything outside this set (and letters, digits, "_.-~") is escaped,
# including "%", so escaping is injective.
_SIGNING_SAFE = "/;,+*@$!'()[]"


def _verbatim(text: str) -> str:
    return text


def _escape(text: str) -> str:
    return quote(text, safe=_SIGNING_SAFE)


def hash_body(body: bytes) -> str:
    """SHA-256 hex digest of a request body."""
    return hashlib.sha256(body).hexdigest()


def canonical_query(
    query: dict[str, str] | None,
    escape: Callable[[str], str] = _verbatim,
) -> str:
    """Render query pairs sorted by key as "k=v&k=v"."""
    if not query:
        return ""
    return PAIR_SEPARATOR.join(f"{escape(key)}={escape(query[key])}" for key in sorted(query))


def canonical_headers(
    headers: dict[str, str] | None,
    escape: Callable[[str], str] = _verbatim,
) -> str:
    """Render headers lower-cased and sorted as "k:v&k:v"."""
    if not headers:
        return ""
    lowered = sorted((key.lower(), value) for key, value in headers.items())
    return PAIR_SEPARATOR.join(f"{escape(key)}:{escape(value)}" for key, value in lowered)


def _render(descriptor: RequestDescriptor, escape: Callable[[str], str]) -> str:
    url = render_authority(descriptor.scheme, descriptor.host, descriptor.port)
    url += escape(descriptor.path)

    query = canonical_query(descriptor.query, escape)
    if query:
        url += f"?{query}"
    if descriptor.fragment:
        url += f"#{escape(descriptor.fragment)}"

    segments = [descriptor.method.value, url]

    headers = canonical_headers(descriptor.headers, escape)
    if headers:
        segments.append(f"headers:{headers}")

    return SEGMENT_SEPARATOR.join(segments)


def canonicalize(descriptor: RequestDescriptor) -> str:
    """Observed request string, without the body."""
    return _render(descriptor, _verbatim)


def canonicalize_for_signing(descriptor: RequestDescriptor) -> str:
    """Escaped canonical string plus a body digest segment; the signature pre-image."""
    canonical = _render(descriptor, _escape)
    if descriptor.body:
        canonical += f"{SEGMENT_SEPARATOR}body:{hash_body(descriptor.body)}"
    return canonical
