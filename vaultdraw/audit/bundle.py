"""Construction and verification of the audit bundle for one draw."""

from __future__ import annotations

import copy
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Sequence

from ..config import DrawConfig
from ..draw.engine import DrawOutcome
from ..draw.ranking import rank_entries
from ..draw.scoring import derive_seed, score_entries
from ..hashing import digest_json, sha256_hexdigest
from ..models.draw import Competition, DrawRound, RandomnessSource
from ..models.entry import ProcessedEntry, RankedEntry
from ..utils import dt_iso

logger = logging.getLogger(__name__)

# Fields attached after hashing; excluded from ``bundleHash``.
UNHASHED_FIELDS = ("bundleHash", "publication")

SEED_DERIVATION = "SHA-256(randomness)"
SCORE_DERIVATION = "uint256(SHA-256(seed || entryCode))"
TIE_BREAK = "score descending, then entryCode ascending"
CANONICALIZATION = "JSON, keys sorted, separators (',', ':'), UTF-8, non-ASCII unescaped"
UNRANKED_MARKER = "-"


def results_checksum(ranked: Iterable[RankedEntry]) -> str:
    """Return a short checksum over ``rank:entryCode:scoreHex`` of each result.

    Unranked entries contribute ``-`` as their rank.
    """
    parts = []
    for entry in ranked:
        rank = UNRANKED_MARKER if entry.rank is None else str(entry.rank)
        parts.append(f"{rank}:{entry.entry_code}:{entry.score_hex}")
    return sha256_hexdigest("|".join(parts))[:16]


def collect_statistics(
    entries: Sequence[ProcessedEntry],
) -> dict[str, Any]:
    """Aggregate counts over all entries, qualified and disqualified."""
    reasons: Counter[str] = Counter()
    countries: Counter[str] = Counter()
    regions: Counter[str] = Counter()
    qualified = 0
    for entry in entries:
        if entry.is_qualified:
            qualified += 1
        elif entry.disqualification_reason:
            reasons[entry.disqualification_reason] += 1
        if entry.location is not None:
            if entry.location.country is not None:
                countries[entry.location.country] += 1
            if entry.location.region is not None:
                regions[entry.location.region] += 1

    stats: dict[str, Any] = {
        "totalEntries": len(entries),
        "qualifiedEntries": qualified,
        "disqualifiedEntries": len(entries) - qualified,
    }
    if reasons:
        stats["disqualificationReasons"] = dict(sorted(reasons.items()))
    stats["countries"] = dict(sorted(countries.items()))
    stats["regions"] = dict(sorted(regions.items()))
    return stats


def verification_section(config: DrawConfig) -> dict[str, Any]:
    return {
        "algorithm": config.algorithm_version,
        "hashFunction": config.hash_function,
        "seedDerivation": SEED_DERIVATION,
        "scoreDerivation": SCORE_DERIVATION,
        "tieBreak": TIE_BREAK,
        "canonicalization": CANONICALIZATION,
        "bundleHashExcludes": list(UNHASHED_FIELDS),
    }


def compute_bundle_hash(document: Mapping[str, Any]) -> str:
    """Digest ``document`` with the post-hash fields removed."""
    content = {k: v for k, v in document.items() if k not in UNHASHED_FIELDS}
    return digest_json(content)


@dataclass(frozen=True)
class AuditBundle:
    """Hashed audit record of one draw.

    Attributes
    ----------
    content : dict
        Bundle body covered by ``bundle_hash``.
    bundle_hash : str
        SHA-256 of the canonical JSON form of ``content``.
    """

    content: dict[str, Any]
    bundle_hash: str

    @property
    def timestamp(self) -> str:
        return self.content["generatedAt"]

    def to_json(self) -> dict[str, Any]:
        document = copy.deepcopy(self.content)
        document["bundleHash"] = self.bundle_hash
        return document

    def with_publication(self, publication: Mapping[str, Any]) -> dict[str, Any]:
        """Return the document as published: hashed content plus filing details."""
        document = self.to_json()
        document["publication"] = dict(publication)
        return document


def build_audit_bundle(
    outcome: DrawOutcome,
    *,
    config: DrawConfig,
    generated_at: datetime,
    competition: Optional[Competition] = None,
    randomness_source: Optional[RandomnessSource] = None,
    draw_round: Optional[DrawRound] = None,
) -> AuditBundle:
    """Assemble the audit bundle for ``outcome`` and compute its hash.

    Parameters
    ----------
    outcome : DrawOutcome
        Completed draw computation.
    config : DrawConfig
        Supplies the algorithm version and hash function name.
    generated_at : datetime
        Timestamp recorded as ``generatedAt``; it is part of the hashed content.
    competition : Optional[Competition], default: None
        Competition metadata, recorded as ``null`` when absent.
    randomness_source : Optional[RandomnessSource], default: None
        Provenance of the randomness value.
    draw_round : Optional[DrawRound], default: None
        Round identifier supplied with the request.

    Returns
    -------
    AuditBundle
        Bundle content and its ``bundleHash``.
    """
    source = randomness_source or RandomnessSource()
    winner = outcome.winner

    randomness = {"value": outcome.randomness, "seed": outcome.seed}
    randomness.update(source.to_json())

    content: dict[str, Any] = {
        "bundleVersion": config.bundle_version,
        "generatedAt": dt_iso(generated_at),
        "competition": competition.to_json() if competition is not None else None,
        "drawRound": draw_round,
        "randomness": randomness,
        "entries": [entry.to_json() for entry in outcome.entries],
        "statistics": collect_statistics(outcome.entries),
        "results": {
            "winner": winner.to_json() if winner is not None else None,
            "ranking": [entry.to_json() for entry in outcome.ranked],
            "resultsChecksum": results_checksum(outcome.ranked),
        },
        "verification": verification_section(config),
        "timing": {
            "startedAt": dt_iso(outcome.started_at),
            "completedAt": dt_iso(outcome.completed_at),
            "durationMs": outcome.duration_ms,
        },
    }
    bundle_hash = compute_bundle_hash(content)
    logger.debug(f"Audit bundle built with hash {bundle_hash}")
    return AuditBundle(content=content, bundle_hash=bundle_hash)


@dataclass
class BundleVerification:
    """Outcome of re-checking a published bundle."""

    ok: bool = True
    problems: list[str] = field(default_factory=list)

    def fail(self, problem: str) -> None:
        self.ok = False
        self.problems.append(problem)


def verify_bundle(
    document: Mapping[str, Any],
    config: Optional[DrawConfig] = None,
) -> BundleVerification:
    """Recompute a bundle's seed, ranking, checksum and hash from its own data.

    Only the recorded randomness value, entry codes and entry statuses are
    trusted; everything derived from them is recomputed and compared.
    """
    config = config or DrawConfig()
    report = BundleVerification()

    try:
        randomness = document["randomness"]["value"]
        recorded_seed = document["randomness"].get("seed")
        results = document["results"]
        entries = [
            ProcessedEntry(
                entry_code=item["entryCode"],
                status=item["status"],
                disqualification_reason=item.get("disqualificationReason"),
            )
            for item in document["entries"]
        ]
        ranking = results.get("ranking", [])
        recorded = [
            (item.get("rank"), item.get("entryCode"), item.get("scoreHex"))
            for item in ranking
        ]
        recorded_winner = results.get("winner")
        winner_code = recorded_winner.get("entryCode") if recorded_winner else None
    except (KeyError, TypeError, AttributeError) as exc:
        report.fail(f"Bundle is missing a required section: {exc}")
        return report

    if not isinstance(randomness, str) or not randomness:
        report.fail("randomness.value must be a non-empty string")
        return report
    bad_codes = [e.entry_code for e in entries if not isinstance(e.entry_code, str)]
    if bad_codes:
        report.fail(f"Entry codes must be strings, found {bad_codes[0]!r}")
        return report

    seed = derive_seed(randomness)
    if recorded_seed != seed:
        report.fail("Recorded seed does not match SHA-256 of the randomness value")

    ranked = rank_entries(score_entries(seed, entries))

    expected = [(e.rank, e.entry_code, e.score_hex) for e in ranked]
    if expected != recorded:
        report.fail("Recorded ranking does not match the recomputed ranking")

    if results.get("resultsChecksum") != results_checksum(ranked):
        report.fail("Recorded results checksum does not match")

    expected_winner = ranked[0].entry_code if ranked and ranked[0].rank == 1 else None
    if winner_code != expected_winner:
        report.fail("Recorded winner does not match the recomputed winner")

    try:
        bundle_hash = compute_bundle_hash(document)
    except (TypeError, ValueError) as exc:
        report.fail(f"Bundle content cannot be canonicalized: {exc}")
        return report
    if document.get("bundleHash") != bundle_hash:
        report.fail("bundleHash does not match the bundle content")

    return report


__all__ = [
    "AuditBundle",
    "BundleVerification",
    "UNHASHED_FIELDS",
    "build_audit_bundle",
    "collect_statistics",
    "compute_bundle_hash",
    "results_checksum",
    "verification_section",
    "verify_bundle",
]
