"""Draw engine chaining normalization, scoring and ranking."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..config import DrawConfig
from ..models.draw import DrawRequest
from ..models.entry import ProcessedEntry, RankedEntry
from ..utils import utc_now
from .normalize import normalize_entries
from .qualification import DEFAULT_QUALIFICATION_RULES, QualificationRuleSet
from .ranking import rank_entries, top_ranked, winner_of
from .scoring import derive_seed, score_entries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrawOutcome:
    """Complete result of one draw computation.

    Attributes
    ----------
    randomness : str
        Randomness value the seed was derived from.
    seed : str
        ``SHA-256(randomness)`` as hex.
    entries : tuple[ProcessedEntry, ...]
        Normalized entries in submission order.
    ranked : tuple[RankedEntry, ...]
        Qualified entries in rank order followed by disqualified entries.
    started_at : datetime
        Clock reading taken before normalization.
    completed_at : datetime
        Clock reading taken after ranking.
    """

    randomness: str
    seed: str
    entries: tuple[ProcessedEntry, ...]
    ranked: tuple[RankedEntry, ...]
    started_at: datetime
    completed_at: datetime

    @property
    def winner(self) -> Optional[RankedEntry]:
        return winner_of(self.ranked)

    @property
    def total_entries(self) -> int:
        return len(self.ranked)

    @property
    def qualified_entries(self) -> int:
        return sum(1 for entry in self.ranked if entry.is_qualified)

    @property
    def disqualified_entries(self) -> int:
        return self.total_entries - self.qualified_entries

    @property
    def duration_ms(self) -> int:
        delta = self.completed_at - self.started_at
        return max(0, int(delta.total_seconds() * 1000))

    def top_winners(self, limit: int) -> list[RankedEntry]:
        return top_ranked(self.ranked, limit=limit)


class DrawEngine:
    """Engine that turns a validated request and randomness into a ranking."""

    def __init__(
        self,
        config: Optional[DrawConfig] = None,
        *,
        rules: Optional[QualificationRuleSet] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Create an engine.

        Parameters
        ----------
        config : Optional[DrawConfig], default: None
            Limits applied to the computation. Defaults to :class:`DrawConfig`.
        rules : Optional[QualificationRuleSet], default: None
            Qualification rules. Typically omitted, in which case the
            built-in rule set is used.
        clock : Callable[[], datetime], default: utc_now
            Source of the start and completion timestamps.
        """
        self._config = config or DrawConfig()
        self._rules = rules if rules is not None else DEFAULT_QUALIFICATION_RULES
        self._clock = clock

    @property
    def config(self) -> DrawConfig:
        return self._config

    def compute(self, request: DrawRequest, randomness: str) -> DrawOutcome:
        """Compute the draw for ``request`` using ``randomness``.

        Notes
        -----
        The computation performs the following steps:

        1. Normalize every entry and evaluate the qualification rules.
        2. Derive the seed from the randomness value.
        3. Score every entry, qualified or not.
        4. Rank the qualified entries.

        Given a validated request none of these steps can fail.
        """
        started_at = self._clock()

        entries = normalize_entries(request.entries, self._rules)
        seed = derive_seed(randomness)
        scored = score_entries(
            seed, entries, max_workers=self._config.max_scoring_workers
        )
        ranked = rank_entries(scored)

        completed_at = self._clock()
        outcome = DrawOutcome(
            randomness=randomness,
            seed=seed,
            entries=tuple(entries),
            ranked=tuple(ranked),
            started_at=started_at,
            completed_at=completed_at,
        )
        logger.debug(
            f"Draw computed: {outcome.total_entries} entries, "
            f"{outcome.qualified_entries} qualified"
        )
        return outcome


def compute_draw(
    request: DrawRequest,
    randomness: str,
    config: Optional[DrawConfig] = None,
    *,
    rules: Optional[QualificationRuleSet] = None,
    clock: Callable[[], datetime] = utc_now,
) -> DrawOutcome:
    """Convenience wrapper around :meth:`DrawEngine.compute`."""
    return DrawEngine(config, rules=rules, clock=clock).compute(request, randomness)


__all__ = ["DrawEngine", "DrawOutcome", "compute_draw"]
