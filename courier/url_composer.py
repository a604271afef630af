"""URL Composer - Joins a parsed base host with per-call path, query and fragment."""

from __future__ import annotations

import re
from urllib.parse import urlencode

import httpx

from courier.models import ParsedHost

_SLASH_RUN = re.compile(r"/+")
_PATH_TRIM = "/ \t\r\n"


def render_authority(scheme: str, host: str, port: int | None) -> str:
    """Render "scheme://host[:port]"."""
    authority = f"{scheme}://{host}"
    if port is not None:
        authority += f":{port}"
    return authority


def build_full_path(base_path: str, path: str) -> str:
    """Join base path and call path into one normalized absolute path.

    Each part is trimmed of surrounding slashes and whitespace, empty parts
    are dropped, and any remaining slash runs collapse to one "/".
    """
    parts = [part.strip(_PATH_TRIM) for part in (base_path, path)]
    joined = "/" + "/".join(part for part in parts if part)
    return _SLASH_RUN.sub("/", joined)


def compose_url(
    parsed: ParsedHost,
    path: str,
    query: dict[str, str] | None = None,
    fragment: str | None = None,
) -> str | None:
    """Compose the request URL, or None if the base host is unusable.

    Query pairs keep the caller's insertion order; only the canonical string
    sorts them.
    """
    if not parsed.host:
        return None

    url = render_authority(parsed.scheme, parsed.host, parsed.port)
    url += build_full_path(parsed.base_path, path)
    if query:
        url += "?" + urlencode(list(query.items()))
    if fragment is not None:
        url += f"#{fragment}"

    # httpx is the final arbiter of what can actually be sent.
    try:
        httpx.URL(url)
    except httpx.InvalidURL:
        return None
    return url
