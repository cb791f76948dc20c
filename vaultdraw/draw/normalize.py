"""Helpers for normalizing submitted entries before scoring."""

from __future__ import annotations

from typing import Iterable, Optional

from ..hashing import sha256_hexdigest
from ..models.entry import (
    DISQUALIFIED,
    QUALIFIED,
    Location,
    ProcessedEntry,
    RawEntry,
)
from .qualification import DEFAULT_QUALIFICATION_RULES, QualificationRuleSet


def _trim(value: Optional[str]) -> Optional[str]:
    """Strip ``value``; empty strings collapse to ``None``."""
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def hash_email(email: str) -> str:
    """Return the digest of a lower-cased, trimmed e-mail address.

    Parameters
    ----------
    email : str
        Raw address as submitted. It is never stored or logged.
    """
    if not isinstance(email, str):
        raise TypeError("email must be a string")
    return sha256_hexdigest(email.strip().lower())


def _normalize_location(location: Optional[Location]) -> Optional[Location]:
    if location is None:
        return None
    country = _trim(location.country)
    region = _trim(location.region)
    if country is None and region is None:
        return None
    return Location(country=country, region=region)


def normalize_entry(
    entry: RawEntry,
    rules: Optional[QualificationRuleSet] = None,
) -> ProcessedEntry:
    """Trim metadata, hash the e-mail and decide qualification for ``entry``."""
    active_rules = rules if rules is not None else DEFAULT_QUALIFICATION_RULES
    outcome = active_rules.evaluate(entry)

    email = _trim(entry.email)
    return ProcessedEntry(
        entry_code=entry.entry_code.strip(),
        status=DISQUALIFIED if outcome.disqualified else QUALIFIED,
        disqualification_reason=outcome.reason if outcome.disqualified else None,
        gamertag=_trim(entry.gamertag),
        email_hash=hash_email(email) if email is not None else None,
        entry_timestamp=_trim(entry.entry_timestamp),
        location=_normalize_location(entry.location),
        quiz=entry.quiz,
    )


def normalize_entries(
    entries: Iterable[RawEntry],
    rules: Optional[QualificationRuleSet] = None,
) -> list[ProcessedEntry]:
    """Normalize every entry, preserving order. No entry is dropped."""
    return [normalize_entry(entry, rules) for entry in entries]


__all__ = ["hash_email", "normalize_entries", "normalize_entry"]
