"""Tests for request signatures: determinism, the empty-input rule, and sensitivity."""

from __future__ import annotations

import hashlib

import pytest
from hypothesis import given
from hypothesis import strategies as st

from courier.models import HTTPMethod, RequestDescriptor
from courier.signature import SIGNATURE_ALGORITHM, sign, sign_descriptor

BASE = {
    "method": HTTPMethod.POST,
    "scheme": "https",
    "host": "api.example.com",
    "port": 443,
    "path": "/v1/items",
    "headers": {"Accept": "application/json", "X-Trace": "abc"},
    "query": {"page": "1", "sort": "name"},
    "fragment": None,
    "body": b'{"name":"widget"}',
}


def descriptor(**overrides) -> RequestDescriptor:
    fields = dict(BASE)
    fields.update(overrides)
    return RequestDescriptor(**fields)


class TestSign:
    def test_empty_input_is_empty_signature(self) -> None:
        assert sign("") == ""

    def test_hex_sha256_of_utf8(self) -> None:
        canonical = "GET|https://example.com/é"
        assert sign(canonical) == hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def test_fixed_length_lowercase_hex(self) -> None:
        signature = sign("GET|https://example.com/")
        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_algorithm_is_sha256(self) -> None:
        assert SIGNATURE_ALGORITHM == "sha256"

    @given(st.text(min_size=1))
    def test_deterministic(self, canonical: str) -> None:
        assert sign(canonical) == sign(canonical)


class TestSignatureSensitivity:
    """Every semantic change alters the signature; mapping order does not."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"method": HTTPMethod.PUT},
            {"host": "api.example.org"},
            {"port": 8443},
            {"port": None},
            {"path": "/v1/items/1"},
            {"query": {"page": "2", "sort": "name"}},
            {"headers": {"Accept": "application/json", "X-Trace": "abd"}},
            {"body": b'{"name":"gadget"}'},
            {"body": None},
            {"fragment": "details"},
            {"scheme": "http"},
        ],
    )
    def test_change_alters_signature(self, overrides: dict) -> None:
        assert sign_descriptor(descriptor(**overrides)) != sign_descriptor(descriptor())

    def test_mapping_order_does_not_alter_signature(self) -> None:
        reordered = descriptor(
            headers={"X-Trace": "abc", "Accept": "application/json"},
            query={"sort": "name", "page": "1"},
        )
        assert sign_descriptor(reordered) == sign_descriptor(descriptor())

    @pytest.mark.parametrize(
        ("first", "second"),
        [
            ({"query": {"a": "1&b=2", "b": "3"}}, {"query": {"a": "1", "b": "2&b=3"}}),
            ({"query": {"a": "1=2"}}, {"query": {"a=1": "2"}}),
            (
                {"headers": {"X-A": "1&x-b:2", "X-B": "3"}},
                {"headers": {"X-A": "1", "X-B": "2&x-b:3"}},
            ),
            ({"path": "/v1/items?page=1", "query": None}, {"path": "/v1/items", "query": {"page": "1"}}),
            ({"fragment": "f|headers:a:b", "headers": {}}, {"fragment": "f", "headers": {"a": "b"}}),
        ],
    )
    def test_delimiters_inside_values_do_not_collide(self, first: dict, second: dict) -> None:
        """Values containing '&', '=', ':' or '|' can't mimic other requests."""
        assert sign_descriptor(descriptor(**first)) != sign_descriptor(descriptor(**second))

    def test_descriptor_signature_property(self) -> None:
        d = descriptor()
        assert d.signature == sign_descriptor(d)
        assert d.signature != ""
