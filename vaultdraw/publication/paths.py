"""Deterministic storage paths and release tags for published bundles."""

from __future__ import annotations

from datetime import datetime

from ..models.draw import LIVE, TEST, Competition
from ..utils import compact_timestamp, slugify

BUNDLE_FILENAME = "draw.json"


def competition_slug(competition: Competition) -> str:
    """Slugify the competition name, falling back to its id."""
    fallback = slugify(str(competition.id)) if competition.id is not None else "draw"
    return slugify(competition.name, fallback=fallback)


def publication_path(competition: Competition, timestamp: datetime) -> str:
    """Return ``{live|test}/{YYYY-MM}/{slug}-{timestamp}/draw.json``.

    Live competitions land in the ``live`` namespace and everything else in
    ``test``; retention and visibility policies rely on that split.
    """
    namespace = LIVE if competition.is_live else TEST
    stamp = compact_timestamp(timestamp)
    month = f"{stamp[0:4]}-{stamp[4:6]}"
    return f"{namespace}/{month}/{competition_slug(competition)}-{stamp}/{BUNDLE_FILENAME}"


def release_tag(competition: Competition, timestamp: datetime) -> str:
    return f"draw-{competition_slug(competition)}-{compact_timestamp(timestamp)}"


__all__ = ["BUNDLE_FILENAME", "competition_slug", "publication_path", "release_tag"]
