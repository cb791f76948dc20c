"""SHA-256 helpers shared by seed derivation, scoring and bundle hashing."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def sha256_hexdigest(value: str) -> str:
    """Return the SHA-256 hex digest of ``value`` encoded as UTF-8."""
    if not isinstance(value, str):
        raise TypeError("value must be a string")
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def canonical_json(payload: Any) -> str:
    """Serialize ``payload`` into the canonical form used for digests.

    Keys are sorted, separators are compact and non-ASCII characters are
    kept as-is so that the UTF-8 bytes of the result are stable.
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def digest_json(payload: Any) -> str:
    """Return the SHA-256 hex digest of ``payload``'s canonical JSON form."""
    return sha256_hexdigest(canonical_json(payload))


__all__ = ["canonical_json", "digest_json", "sha256_hexdigest"]
