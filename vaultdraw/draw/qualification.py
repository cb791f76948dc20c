"""Pluggable qualification rules evaluated for every entry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..models.entry import RawEntry

QUIZ_ANSWERED_INCORRECTLY = "Quiz answered incorrectly"


@dataclass(frozen=True)
class RuleOutcome:
    """Result of evaluating one rule against an entry.

    Attributes
    ----------
    disqualified : bool
        ``True`` when the rule rejects the entry.
    reason : Optional[str]
        Human-readable reason recorded on the entry; ``None`` when qualified.
    """

    disqualified: bool
    reason: Optional[str] = None


PASSED = RuleOutcome(disqualified=False)


@dataclass(frozen=True)
class QualificationRule:
    """Definition of a qualification rule.

    Attributes
    ----------
    key : str
        Identifier used by :class:`QualificationRuleSet`.
    check : Callable[[RawEntry], RuleOutcome]
        Predicate applied to each entry.
    description : Optional[str]
        Human-readable summary of the rule.
    """

    key: str
    check: Callable[[RawEntry], RuleOutcome]
    description: Optional[str] = None

    def evaluate(self, entry: RawEntry) -> RuleOutcome:
        outcome = self.check(entry)
        if outcome.disqualified and not outcome.reason:
            raise ValueError(f"Rule '{self.key}' disqualified an entry without a reason")
        return outcome


class QualificationRuleSet:
    """Ordered collection of rules; the first disqualifying rule wins."""

    def __init__(self, rules: Optional[Iterable[QualificationRule]] = None) -> None:
        self._rules: list[QualificationRule] = []
        for rule in rules or ():
            self.register(rule)

    def register(self, rule: QualificationRule, *, replace: bool = False) -> None:
        """Append ``rule`` to the set.

        Parameters
        ----------
        rule : QualificationRule
            Rule to add. Rules are evaluated in registration order.
        replace : bool, default: False
            When ``True`` an existing rule with the same key is replaced in
            place. Otherwise a duplicate key raises :class:`ValueError`.
        """
        for index, existing in enumerate(self._rules):
            if existing.key == rule.key:
                if not replace:
                    raise ValueError(f"Rule '{rule.key}' is already registered")
                self._rules[index] = rule
                return
        self._rules.append(rule)

    def get(self, key: str) -> QualificationRule:
        for rule in self._rules:
            if rule.key == key:
                return rule
        raise KeyError(f"Unknown qualification rule '{key}'")

    def keys(self) -> list[str]:
        return [rule.key for rule in self._rules]

    def evaluate(self, entry: RawEntry) -> RuleOutcome:
        """Return the first disqualifying outcome, or a passing outcome."""
        for rule in self._rules:
            outcome = rule.evaluate(entry)
            if outcome.disqualified:
                return outcome
        return PASSED

    def __len__(self) -> int:
        return len(self._rules)


def _quiz_answered_incorrectly(entry: RawEntry) -> RuleOutcome:
    # Only an explicit False disqualifies; a missing answer flag does not.
    if entry.quiz is not None and entry.quiz.answer_correct is False:
        return RuleOutcome(disqualified=True, reason=QUIZ_ANSWERED_INCORRECTLY)
    return PASSED


QUIZ_ANSWER_RULE = QualificationRule(
    key="quiz_answer",
    check=_quiz_answered_incorrectly,
    description="Disqualify entries whose quiz block reports an incorrect answer.",
)


def default_rules() -> QualificationRuleSet:
    """Return a fresh rule set holding the built-in rules."""
    return QualificationRuleSet([QUIZ_ANSWER_RULE])


DEFAULT_QUALIFICATION_RULES = default_rules()

__all__ = [
    "DEFAULT_QUALIFICATION_RULES",
    "PASSED",
    "QUIZ_ANSWERED_INCORRECTLY",
    "QUIZ_ANSWER_RULE",
    "QualificationRule",
    "QualificationRuleSet",
    "RuleOutcome",
    "default_rules",
]
