"""Request-level records: competition, randomness provenance and the request."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .entry import RawEntry

LIVE = "live"
TEST = "test"
COMPETITION_MODES = (LIVE, TEST)

DrawRound = Union[str, int, float]


@dataclass(frozen=True)
class Competition:
    """Competition metadata; its presence enables publication."""

    id: Optional[Union[str, int]]
    name: str
    mode: str = TEST

    @property
    def is_live(self) -> bool:
        return self.mode == LIVE

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "mode": self.mode}


@dataclass(frozen=True)
class RandomnessSource:
    """Provenance of the randomness value. Not used in scoring."""

    provider: Optional[str] = None
    round: Optional[DrawRound] = None
    timestamp: Optional[str] = None
    verification_url: Optional[str] = None
    fetched_by_worker: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "round": self.round,
            "timestamp": self.timestamp,
            "verificationUrl": self.verification_url,
            "fetchedByWorker": self.fetched_by_worker,
        }


@dataclass(frozen=True)
class DrawRequest:
    """Validated draw request.

    Attributes
    ----------
    entries : tuple[RawEntry, ...]
        Entries in submission order with unique trimmed codes.
    randomness : Optional[str]
        Hex randomness value. ``None`` only when ``auto_fetch`` is set and
        the value has not been fetched yet.
    auto_fetch : bool
        ``True`` when the randomness must be fetched from the drand beacon.
    draw_round : Optional[DrawRound]
        Caller-supplied round identifier, kept with its original type.
    competition : Optional[Competition]
        Competition metadata, ``None`` disables publication.
    randomness_source : RandomnessSource
        Provenance metadata recorded in the audit bundle.
    """

    entries: tuple[RawEntry, ...]
    randomness: Optional[str] = None
    auto_fetch: bool = False
    draw_round: Optional[DrawRound] = None
    competition: Optional[Competition] = None
    randomness_source: RandomnessSource = field(default_factory=RandomnessSource)


__all__ = [
    "COMPETITION_MODES",
    "Competition",
    "DrawRequest",
    "DrawRound",
    "LIVE",
    "RandomnessSource",
    "TEST",
]
