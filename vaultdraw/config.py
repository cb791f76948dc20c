"""Immutable configuration values threaded into the draw components."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

ALGORITHM_VERSION = "VaultPlay Draw v1.0"
HASH_FUNCTION = "SHA-256"
BUNDLE_VERSION = "1.0"

DEFAULT_GITHUB_API_URL = "https://api.github.com"
DEFAULT_DRAND_URL = "https://api.drand.sh/public/latest"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable '{name}' must be an integer") from exc


@dataclass(frozen=True)
class DrawConfig:
    """Limits and identifiers applied to every draw.

    Attributes
    ----------
    max_entries : int
        Upper bound on the number of entries accepted per draw.
    max_entry_code_length : int
        Maximum length of an ``entryCode`` after trimming.
    max_randomness_length : int
        Maximum length of the supplied randomness string.
    max_draw_round_length : int
        Maximum length of ``drawRound`` once converted to text.
    top_winners_limit : int
        Highest rank included in the ``topWinners`` convenience list.
    max_scoring_workers : int
        Upper bound on threads used to score entries. ``1`` scores inline.
    algorithm_version : str
        Version string recorded in responses and audit bundles.
    hash_function : str
        Name of the digest used for seeds, scores and bundle hashes.
    bundle_version : str
        Layout version of the audit bundle document.
    """

    max_entries: int = 1_000_000
    max_entry_code_length: int = 256
    max_randomness_length: int = 1024
    max_draw_round_length: int = 64
    top_winners_limit: int = 10
    max_scoring_workers: int = 8
    algorithm_version: str = ALGORITHM_VERSION
    hash_function: str = HASH_FUNCTION
    bundle_version: str = BUNDLE_VERSION

    def __post_init__(self) -> None:
        if self.max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        if self.max_scoring_workers < 1:
            raise ValueError("max_scoring_workers must be >= 1")
        if self.top_winners_limit < 0:
            raise ValueError("top_winners_limit must be non-negative")

    @classmethod
    def from_env(cls) -> "DrawConfig":
        """Build a config, overriding limits from ``DRAW_*`` variables."""
        load_dotenv()
        return cls(
            max_entries=_env_int("DRAW_MAX_ENTRIES", cls.max_entries),
            max_scoring_workers=_env_int(
                "DRAW_MAX_SCORING_WORKERS", cls.max_scoring_workers
            ),
        )


@dataclass(frozen=True)
class PublicationSettings:
    """Connection details for the GitHub repository that stores bundles.

    Missing ``token`` or ``repository`` values are accepted here so that the
    publisher can report them as a non-retryable failure instead of raising.
    """

    token: Optional[str] = None
    repository: Optional[str] = None
    branch: str = "main"
    api_url: str = DEFAULT_GITHUB_API_URL
    timeout: float = 30.0
    max_attempts: int = 3
    retry_base_delay: float = 1.0
    deadline_seconds: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.retry_base_delay < 0:
            raise ValueError("retry_base_delay must be >= 0")

    @classmethod
    def from_env(cls) -> "PublicationSettings":
        load_dotenv()
        return cls(
            token=os.getenv("GITHUB_TOKEN") or None,
            repository=os.getenv("GITHUB_REPOSITORY") or None,
            branch=os.getenv("GITHUB_BRANCH") or "main",
            api_url=os.getenv("GITHUB_API_URL") or DEFAULT_GITHUB_API_URL,
        )

    def missing_fields(self) -> list[str]:
        missing: list[str] = []
        if not self.token:
            missing.append("GITHUB_TOKEN")
        if not self.repository or "/" not in self.repository:
            missing.append("GITHUB_REPOSITORY")
        if not self.branch:
            missing.append("GITHUB_BRANCH")
        return missing

    @property
    def is_configured(self) -> bool:
        return not self.missing_fields()


@dataclass(frozen=True)
class BeaconSettings:
    """Endpoint used when a request asks for an auto-fetched drand round."""

    url: str = DEFAULT_DRAND_URL
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "BeaconSettings":
        load_dotenv()
        return cls(url=os.getenv("DRAND_URL") or DEFAULT_DRAND_URL)


__all__ = [
    "ALGORITHM_VERSION",
    "BUNDLE_VERSION",
    "BeaconSettings",
    "DrawConfig",
    "HASH_FUNCTION",
    "PublicationSettings",
]
