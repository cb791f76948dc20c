"""Seed derivation and per-entry scoring."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from ..hashing import sha256_hexdigest
from ..models.entry import ProcessedEntry, ScoredEntry

logger = logging.getLogger(__name__)

# Below this many entries a thread pool costs more than it saves.
PARALLEL_THRESHOLD = 1024


@dataclass(frozen=True)
class ScoreComputation:
    """Raw score of one entry: the digest and its integer value."""

    score: int
    score_hex: str


def derive_seed(randomness: str) -> str:
    """Return ``SHA-256(randomness)`` as a 64-character hex string.

    The randomness string is hashed as supplied (UTF-8 text), so a third
    party can reproduce the seed without knowing how the value was fetched.
    """
    if not randomness:
        raise ValueError("randomness must not be empty")
    return sha256_hexdigest(randomness)


def compute_score(seed: str, entry_code: str) -> ScoreComputation:
    """Score ``entry_code`` as ``int(SHA-256(seed || entry_code), 16)``.

    The seed and code are concatenated directly, without a delimiter.
    """
    score_hex = sha256_hexdigest(seed + entry_code)
    return ScoreComputation(score=int(score_hex, 16), score_hex=score_hex)


def score_entry(seed: str, entry: ProcessedEntry) -> ScoredEntry:
    computation = compute_score(seed, entry.entry_code)
    return ScoredEntry(
        entry=entry,
        score=computation.score,
        score_hex=computation.score_hex,
    )


def score_entries(
    seed: str,
    entries: Sequence[ProcessedEntry],
    *,
    max_workers: int = 1,
) -> list[ScoredEntry]:
    """Score every entry against ``seed``, preserving input order.

    Parameters
    ----------
    seed : str
        Hex seed returned by :func:`derive_seed`.
    entries : Sequence[ProcessedEntry]
        Entries to score. Disqualified entries are scored too.
    max_workers : int, default: 1
        Upper bound on worker threads. Large batches are fanned out over a
        pool capped at ``min(max_workers, len(entries))``; each score only
        depends on the shared seed and its own code.

    Returns
    -------
    list[ScoredEntry]
        One scored entry per input entry, in the same order.
    """
    if max_workers < 1:
        raise ValueError("max_workers must be >= 1")

    workers = min(max_workers, len(entries))
    if workers <= 1 or len(entries) < PARALLEL_THRESHOLD:
        return [score_entry(seed, entry) for entry in entries]

    logger.debug(f"Scoring {len(entries)} entries on {workers} threads")
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda entry: score_entry(seed, entry), entries))


__all__ = [
    "ScoreComputation",
    "compute_score",
    "derive_seed",
    "score_entries",
    "score_entry",
]
