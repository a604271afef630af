"""Header Merger - Case-insensitive merge of default and per-call headers."""

from __future__ import annotations


def merge_headers(
    defaults: dict[str, str],
    overrides: dict[str, str] | None = None,
) -> dict[str, str]:
    """Merge per-call headers over defaults.

    Keys match case-insensitively. When an override matches a default, the
    override's value AND its key casing win, so {"Accept": "a"} merged with
    {"accept": "b"} yields exactly {"accept": "b"}. Position follows the
    first occurrence of the key.
    """
    merged: dict[str, tuple[str, str]] = {}
    for key, value in defaults.items():
        merged[key.lower()] = (key, value)
    for key, value in (overrides or {}).items():
        merged[key.lower()] = (key, value)
    return dict(merged.values())


def sanitize_header_value(value: str) -> str:
    """Replace non-ASCII characters with '?'.

    HTTP header values must be ASCII (RFC 7230); httpx refuses anything else.
    """
    return value.encode("ascii", errors="replace").decode("ascii")
