"""Decode Error Mapper - Locates where a response payload failed to decode.

Payload decoding goes through pydantic, so parse failures arrive as
pydantic.ValidationError. The first reported error is classified into one
of four shapes and turned into a dotted field path:

    missing field          -> path down to and including the missing key
    type mismatch          -> path of the offending value
    null where required    -> path of the offending value
    corrupted value        -> path of the offending value ("" for the document)

Anything that is not a pydantic validation error maps to "root".
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ValidationError

UNKNOWN_FIELD_PATH = "root"

# Pydantic appends this marker when a dict *key* (not value) fails validation.
_SYNTHETIC_KEY_SEGMENT = "[key]"

_CORRUPTED_ERROR_TYPES = frozenset({
    "json_invalid",
    "value_error",
    "assertion_error",
    "date_parsing",
    "date_from_datetime_parsing",
    "datetime_parsing",
    "datetime_from_date_parsing",
    "time_parsing",
    "uuid_parsing",
    "url_parsing",
})


class DecodeErrorShape(str, Enum):
    """Classification of a payload parse failure."""

    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    NULL_VALUE = "null_value"
    CORRUPTED = "corrupted"
    UNKNOWN = "unknown"


def _first_error(error: BaseException) -> dict[str, Any] | None:
    if not isinstance(error, ValidationError):
        return None
    details = error.errors()
    return details[0] if details else None


def classify_decode_error(error: BaseException) -> DecodeErrorShape:
    """Classify a decode failure by the first error pydantic reports."""
    detail = _first_error(error)
    if detail is None:
        return DecodeErrorShape.UNKNOWN

    error_type = detail.get("type", "")
    if error_type == "missing":
        return DecodeErrorShape.MISSING_FIELD
    if error_type in _CORRUPTED_ERROR_TYPES:
        return DecodeErrorShape.CORRUPTED
    if detail.get("input", ...) is None:
        return DecodeErrorShape.NULL_VALUE
    return DecodeErrorShape.TYPE_MISMATCH


def _join_path(segments: tuple[Any, ...] | list[Any]) -> str:
    return ".".join(str(segment) for segment in segments)


def map_key_path(error: BaseException, target_type_name: str) -> str:
    """Return the dotted field path at which decoding `target_type_name` failed.

    Args:
        error: The exception raised by the codec.
        target_type_name: Name of the type being decoded (kept for callers
            that report it alongside the path).

    Returns:
        Dotted path such as "user.address.zip", "" for a failure at the
        document level, or "root" for an unrecognized error.
    """
    shape = classify_decode_error(error)
    if shape is DecodeErrorShape.UNKNOWN:
        return UNKNOWN_FIELD_PATH

    detail = _first_error(error)
    loc = list(detail.get("loc", ()))

    if shape is DecodeErrorShape.MISSING_FIELD:
        return _join_path(loc)

    if loc and loc[-1] == _SYNTHETIC_KEY_SEGMENT:
        loc = loc[:-1]
    return _join_path(loc)
