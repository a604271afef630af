"""Signature Generator - Stable content hash of a canonical request string.

Signatures are used as cache and dedup keys, so the digest algorithm is
fixed for the whole system. Changing SIGNATURE_ALGORITHM invalidates every
stored signature and must bump SIGNATURE_VERSION.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

from courier.canonical import canonicalize_for_signing

if TYPE_CHECKING:
    from courier.models import RequestDescriptor

SIGNATURE_ALGORITHM = "sha256"
SIGNATURE_VERSION = 1


def sign(canonical: str) -> str:
    """Lower-case hex digest of the canonical string's UTF-8 bytes.

    An empty canonical string means no request was built, so it signs to ""
    rather than to the digest of empty input.
    """
    if not canonical:
        return ""
    return hashlib.new(SIGNATURE_ALGORITHM, canonical.encode("utf-8")).hexdigest()


def sign_descriptor(descriptor: RequestDescriptor) -> str:
    return sign(canonicalize_for_signing(descriptor))
