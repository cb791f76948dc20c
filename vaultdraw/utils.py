"""Small formatting helpers shared across the package."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

_SLUG_INVALID = re.compile(r"[^a-z0-9]+")
SLUG_MAX_LENGTH = 50


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def dt_iso(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO 8601 string in UTC, or return None.

    Naive datetimes are assumed to already be in UTC. Milliseconds are kept
    so that the value matches the ``Z``-suffixed form used in bundles.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    text = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def compact_timestamp(dt: datetime) -> str:
    """Return ``dt`` as ``YYYYMMDDTHHMMSSZ`` (UTC), safe for paths and tags."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def slugify(value: Optional[str], *, fallback: str = "draw") -> str:
    """Lower-case ``value`` and collapse anything non-alphanumeric into dashes."""
    if not value:
        return fallback
    slug = _SLUG_INVALID.sub("-", value.strip().lower()).strip("-")
    slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug or fallback


__all__ = ["compact_timestamp", "dt_iso", "slugify", "utc_now"]
