"""Entry records flowing through normalization, scoring and ranking."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

QUALIFIED = "qualified"
DISQUALIFIED = "disqualified"


@dataclass(frozen=True)
class Location:
    """Optional location block attached to an entry."""

    country: Optional[str] = None
    region: Optional[str] = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.country is not None:
            data["country"] = self.country
        if self.region is not None:
            data["region"] = self.region
        return data


@dataclass(frozen=True)
class Quiz:
    """Optional qualifying-question block attached to an entry."""

    question: Optional[str] = None
    answer_given: Optional[str] = None
    answer_correct: Optional[bool] = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.question is not None:
            data["question"] = self.question
        if self.answer_given is not None:
            data["answerGiven"] = self.answer_given
        if self.answer_correct is not None:
            data["answerCorrect"] = self.answer_correct
        return data


@dataclass(frozen=True)
class RawEntry:
    """Validated entry exactly as submitted by the caller.

    ``entry_code`` has already been trimmed by request parsing so that the
    uniqueness check and the score both see the same value.
    """

    entry_code: str
    gamertag: Optional[str] = None
    email: Optional[str] = None
    entry_timestamp: Optional[str] = None
    location: Optional[Location] = None
    quiz: Optional[Quiz] = None


@dataclass(frozen=True)
class ProcessedEntry:
    """Normalized entry with the e-mail hashed and qualification decided."""

    entry_code: str
    status: str = QUALIFIED
    disqualification_reason: Optional[str] = None
    gamertag: Optional[str] = None
    email_hash: Optional[str] = None
    entry_timestamp: Optional[str] = None
    location: Optional[Location] = None
    quiz: Optional[Quiz] = None

    @property
    def is_qualified(self) -> bool:
        return self.status == QUALIFIED

    def to_json(self) -> dict[str, Any]:
        """Return the camelCase JSON form; absent optional blocks are omitted."""
        data: dict[str, Any] = {"entryCode": self.entry_code}
        if self.gamertag is not None:
            data["gamertag"] = self.gamertag
        if self.email_hash is not None:
            data["emailHash"] = self.email_hash
        if self.entry_timestamp is not None:
            data["entryTimestamp"] = self.entry_timestamp
        if self.location is not None:
            data["location"] = self.location.to_json()
        if self.quiz is not None:
            data["quiz"] = self.quiz.to_json()
        data["status"] = self.status
        data["disqualificationReason"] = self.disqualification_reason
        return data


@dataclass(frozen=True)
class ScoredEntry:
    """A processed entry paired with its score.

    ``score`` is the integer value of ``score_hex``; it is rendered as a
    decimal string in JSON so that it never passes through a float.
    """

    entry: ProcessedEntry
    score: int
    score_hex: str

    @property
    def entry_code(self) -> str:
        return self.entry.entry_code

    @property
    def is_qualified(self) -> bool:
        return self.entry.is_qualified

    def to_json(self) -> dict[str, Any]:
        data = self.entry.to_json()
        data["score"] = str(self.score)
        data["scoreHex"] = self.score_hex
        return data


@dataclass(frozen=True)
class RankedEntry:
    """A scored entry with its rank; ``rank`` is ``None`` when disqualified."""

    scored: ScoredEntry
    rank: Optional[int]

    @property
    def entry(self) -> ProcessedEntry:
        return self.scored.entry

    @property
    def entry_code(self) -> str:
        return self.scored.entry_code

    @property
    def score(self) -> int:
        return self.scored.score

    @property
    def score_hex(self) -> str:
        return self.scored.score_hex

    @property
    def is_qualified(self) -> bool:
        return self.scored.is_qualified

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"rank": self.rank}
        data.update(self.scored.to_json())
        return data


__all__ = [
    "DISQUALIFIED",
    "Location",
    "ProcessedEntry",
    "QUALIFIED",
    "Quiz",
    "RankedEntry",
    "RawEntry",
    "ScoredEntry",
]
