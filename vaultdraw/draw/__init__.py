"""Deterministic draw computation: normalization, scoring and ranking."""

from .engine import DrawEngine, DrawOutcome, compute_draw
from .normalize import hash_email, normalize_entries, normalize_entry
from .qualification import (
    DEFAULT_QUALIFICATION_RULES,
    QUIZ_ANSWERED_INCORRECTLY,
    QualificationRule,
    QualificationRuleSet,
    RuleOutcome,
    default_rules,
)
from .ranking import rank_entries, top_ranked, winner_of
from .scoring import compute_score, derive_seed, score_entries, score_entry

__all__ = [
    "DEFAULT_QUALIFICATION_RULES",
    "DrawEngine",
    "DrawOutcome",
    "QUIZ_ANSWERED_INCORRECTLY",
    "QualificationRule",
    "QualificationRuleSet",
    "RuleOutcome",
    "compute_draw",
    "compute_score",
    "default_rules",
    "derive_seed",
    "hash_email",
    "normalize_entries",
    "normalize_entry",
    "rank_entries",
    "score_entries",
    "score_entry",
    "top_ranked",
    "winner_of",
]
