"""Parsing of raw draw requests into validated :class:`DrawRequest` values."""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional

from .config import DrawConfig
from .errors import DrawInputError
from .models.draw import (
    COMPETITION_MODES,
    TEST,
    Competition,
    DrawRequest,
    DrawRound,
    RandomnessSource,
)
from .models.entry import Location, Quiz, RawEntry

_HEX = re.compile(r"^[0-9a-fA-F]+$")
DRAND = "drand"


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def _optional_str(container: Mapping[str, Any], key: str, label: str) -> Optional[str]:
    value = container.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DrawInputError(f"{label} must be a string")
    return value


def _optional_mapping(
    container: Mapping[str, Any], key: str, label: str
) -> Optional[Mapping[str, Any]]:
    value = container.get(key)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise DrawInputError(f"{label} must be an object")
    return value


def _parse_randomness_source(body: Mapping[str, Any]) -> tuple[RandomnessSource, bool]:
    raw = _optional_mapping(body, "randomnessSource", "Field 'randomnessSource'")
    if raw is None:
        return RandomnessSource(), False

    auto_fetch = raw.get("autoFetch", False)
    if not isinstance(auto_fetch, bool):
        raise DrawInputError("Field 'randomnessSource.autoFetch' must be a boolean")

    provider = _optional_str(raw, "provider", "Field 'randomnessSource.provider'")
    if auto_fetch:
        provider = provider or DRAND
        if provider.strip().lower() != DRAND:
            raise DrawInputError(
                "Field 'randomnessSource.autoFetch' is only supported for provider 'drand'"
            )
        provider = DRAND

    round_value = raw.get("round")
    if round_value is not None and not (
        isinstance(round_value, str) or _is_number(round_value)
    ):
        raise DrawInputError("Field 'randomnessSource.round' must be a string or number")

    source = RandomnessSource(
        provider=provider,
        round=round_value,
        timestamp=_optional_str(raw, "timestamp", "Field 'randomnessSource.timestamp'"),
        verification_url=_optional_str(
            raw, "verificationUrl", "Field 'randomnessSource.verificationUrl'"
        ),
        fetched_by_worker=False,
    )
    return source, auto_fetch


def validate_randomness(value: Any, config: DrawConfig) -> str:
    """Check that ``value`` is a non-empty hexadecimal string within limits."""
    if not isinstance(value, str) or not value:
        raise DrawInputError("Field 'randomness' is required and must be a string")
    if len(value) > config.max_randomness_length:
        raise DrawInputError(
            f"Field 'randomness' must be between 1 and "
            f"{config.max_randomness_length} characters"
        )
    if not _HEX.match(value):
        raise DrawInputError("Field 'randomness' must be a hexadecimal string")
    return value


def _parse_location(raw: Mapping[str, Any], index: int) -> Optional[Location]:
    location = _optional_mapping(raw, "location", f"Entry at index {index}: 'location'")
    if location is None:
        return None
    return Location(
        country=_optional_str(location, "country", f"Entry at index {index}: 'location.country'"),
        region=_optional_str(location, "region", f"Entry at index {index}: 'location.region'"),
    )


def _parse_quiz(raw: Mapping[str, Any], index: int) -> Optional[Quiz]:
    quiz = _optional_mapping(raw, "quiz", f"Entry at index {index}: 'quiz'")
    if quiz is None:
        return None
    answer_correct = quiz.get("answerCorrect")
    if answer_correct is not None and not isinstance(answer_correct, bool):
        raise DrawInputError(
            f"Entry at index {index}: 'quiz.answerCorrect' must be a boolean"
        )
    return Quiz(
        question=_optional_str(quiz, "question", f"Entry at index {index}: 'quiz.question'"),
        answer_given=_optional_str(
            quiz, "answerGiven", f"Entry at index {index}: 'quiz.answerGiven'"
        ),
        answer_correct=answer_correct,
    )


def _parse_entry(raw: Any, index: int, config: DrawConfig) -> RawEntry:
    if not isinstance(raw, Mapping):
        raise DrawInputError(f"Entry at index {index} must be an object")

    code = raw.get("entryCode")
    if not isinstance(code, str):
        raise DrawInputError(f"Entry at index {index} must have a string 'entryCode' field")
    code = code.strip()
    if not code or len(code) > config.max_entry_code_length:
        raise DrawInputError(
            f"Entry code at index {index} must be between 1 and "
            f"{config.max_entry_code_length} characters"
        )

    return RawEntry(
        entry_code=code,
        gamertag=_optional_str(raw, "gamertag", f"Entry at index {index}: 'gamertag'"),
        email=_optional_str(raw, "email", f"Entry at index {index}: 'email'"),
        entry_timestamp=_optional_str(
            raw, "entryTimestamp", f"Entry at index {index}: 'entryTimestamp'"
        ),
        location=_parse_location(raw, index),
        quiz=_parse_quiz(raw, index),
    )


def parse_entries(value: Any, config: DrawConfig) -> tuple[RawEntry, ...]:
    """Validate the entry list and reject duplicate codes before any hashing."""
    if not isinstance(value, list):
        raise DrawInputError("Field 'entries' must be an array")
    if not value:
        raise DrawInputError("Field 'entries' must contain at least one entry")
    if len(value) > config.max_entries:
        raise DrawInputError(f"Maximum {config.max_entries} entries allowed per draw")

    entries: list[RawEntry] = []
    seen: set[str] = set()
    for index, raw in enumerate(value):
        entry = _parse_entry(raw, index, config)
        if entry.entry_code in seen:
            raise DrawInputError(f'Duplicate entry code detected: "{entry.entry_code}"')
        seen.add(entry.entry_code)
        entries.append(entry)
    return tuple(entries)


def _parse_draw_round(value: Any, config: DrawConfig) -> Optional[DrawRound]:
    if value is None:
        return None
    if not (isinstance(value, str) or _is_number(value)):
        raise DrawInputError("Field 'drawRound' must be a string or number")
    if len(str(value)) > config.max_draw_round_length:
        raise DrawInputError(
            f"Field 'drawRound' must be maximum {config.max_draw_round_length} characters"
        )
    return value


def _parse_competition(body: Mapping[str, Any]) -> Optional[Competition]:
    raw = _optional_mapping(body, "competition", "Field 'competition'")
    if raw is None:
        return None

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise DrawInputError("Field 'competition.name' is required and must be a string")

    competition_id = raw.get("id")
    if competition_id is not None and not (
        isinstance(competition_id, str) or _is_number(competition_id)
    ):
        raise DrawInputError("Field 'competition.id' must be a string or number")

    mode = raw.get("mode", TEST)
    if mode is None:
        mode = TEST
    if mode not in COMPETITION_MODES:
        raise DrawInputError("Field 'competition.mode' must be 'live' or 'test'")

    return Competition(id=competition_id, name=name.strip(), mode=mode)


def parse_draw_request(body: Any, config: Optional[DrawConfig] = None) -> DrawRequest:
    """Validate ``body`` and return a :class:`DrawRequest`.

    Exactly one entropy source is accepted: a ``randomness`` hex string, or
    ``randomnessSource.autoFetch`` with the ``drand`` provider.

    Raises
    ------
    DrawInputError
        With a specific, human-readable message for the first problem found.
    """
    config = config or DrawConfig()
    if not isinstance(body, Mapping):
        raise DrawInputError("Request body must be a JSON object")

    source, auto_fetch = _parse_randomness_source(body)
    randomness_value = body.get("randomness")
    if auto_fetch:
        if randomness_value is not None:
            raise DrawInputError(
                "Provide either 'randomness' or randomnessSource.autoFetch, not both"
            )
        randomness = None
    elif randomness_value is None:
        raise DrawInputError(
            "Field 'randomness' is required unless randomnessSource.autoFetch "
            "is enabled with provider 'drand'"
        )
    else:
        randomness = validate_randomness(randomness_value, config)

    entries = parse_entries(body.get("entries"), config)

    return DrawRequest(
        entries=entries,
        randomness=randomness,
        auto_fetch=auto_fetch,
        draw_round=_parse_draw_round(body.get("drawRound"), config),
        competition=_parse_competition(body),
        randomness_source=source,
    )


__all__ = ["parse_draw_request", "parse_entries", "validate_randomness"]
