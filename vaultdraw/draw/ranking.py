"""Ranking of scored entries."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..models.entry import RankedEntry, ScoredEntry


def _ranking_key(entry: ScoredEntry) -> tuple[int, str]:
    # Highest score first; equal scores fall back to ascending entry code.
    return (-entry.score, entry.entry_code)


def rank_entries(scored_entries: Iterable[ScoredEntry]) -> list[RankedEntry]:
    """Rank qualified entries and append disqualified ones unranked.

    Qualified entries are sorted by score descending with ties broken by
    ascending ``entry_code`` and receive dense ranks ``1..K``. Disqualified
    entries follow in their original relative order with ``rank=None``,
    whatever their score.

    An input without qualified entries yields only unranked entries; it is
    not an error.
    """
    qualified: list[ScoredEntry] = []
    disqualified: list[ScoredEntry] = []
    for entry in scored_entries:
        if entry.is_qualified:
            qualified.append(entry)
        else:
            disqualified.append(entry)

    ranked = [
        RankedEntry(scored=entry, rank=index + 1)
        for index, entry in enumerate(sorted(qualified, key=_ranking_key))
    ]
    ranked.extend(RankedEntry(scored=entry, rank=None) for entry in disqualified)
    return ranked


def winner_of(ranked_entries: Sequence[RankedEntry]) -> Optional[RankedEntry]:
    """Return the entry ranked first, or ``None`` when nobody qualified."""
    for entry in ranked_entries:
        if entry.rank == 1:
            return entry
    return None


def top_ranked(
    ranked_entries: Sequence[RankedEntry],
    *,
    limit: int,
) -> list[RankedEntry]:
    """Return qualified entries with ``rank <= limit`` in rank order."""
    if limit < 0:
        raise ValueError("limit must be non-negative")
    top = [e for e in ranked_entries if e.rank is not None and e.rank <= limit]
    return sorted(top, key=lambda e: e.rank or 0)


__all__ = ["rank_entries", "top_ranked", "winner_of"]
