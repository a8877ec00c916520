# engine/scoring/resolver.py
"""
Résolution d'un Aggregate vers UN résultat. ZÉRO accès DB.

Algorithme :
    1. Parcours des résultats dans l'ordre de l'auteur (départage : le premier
       qui matche gagne, les suivants qui se chevauchent sont inatteignables ;
       voir engine/scoring/lint.py pour les avertissements).
    2. Plage de score : lower <= total_score <= upper (ou >= lower si ouverte).
    3. Pattern : égalité de séquence (ordered) ou d'ensembles (unordered).
    4. Aucun match → NO_MATCH, une valeur de première classe :
       ni exception, ni résultat par défaut arbitraire.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from quizlab.engine.definition.model import (
    Answer,
    Condition,
    PatternCondition,
    Result,
    ScoreRangeCondition,
    Test,
)
from quizlab.engine.scoring.aggregator import (
    Aggregate,
    MalformedAnswerError,
    aggregate_answers,
)


@dataclass(frozen=True)
class NoMatchOutcome:
    """Trou de couverture côté auteur : aucune condition ne couvre l'agrégat."""
    reason: str = "Aucun résultat ne correspond à cet agrégat."


NO_MATCH = NoMatchOutcome()

Resolution = Union[Result, NoMatchOutcome]


def is_no_match(resolution: Resolution) -> bool:
    return isinstance(resolution, NoMatchOutcome)


def condition_matches(condition: Condition, aggregate: Aggregate) -> bool:
    if isinstance(condition, ScoreRangeCondition):
        if aggregate.total_score < condition.lower:
            return False
        return condition.is_open or aggregate.total_score <= condition.upper

    if isinstance(condition, PatternCondition):
        if condition.ordered:
            return tuple(aggregate.pattern) == tuple(condition.tags)
        return set(aggregate.pattern) == set(condition.tags)

    raise TypeError(f"Condition inconnue : {type(condition).__name__}")


def resolve_result(results: Iterable[Result], aggregate: Aggregate) -> Resolution:
    for result in results:
        if condition_matches(result.condition, aggregate):
            return result
    return NO_MATCH


# ── Pipeline complet (aperçu auteur + soumission) ─────────────────────────────

@dataclass(frozen=True)
class AttemptEvaluation:
    """
    aggregate/resolution renseignés si la séquence est bien formée,
    error renseigné sinon (jamais les deux).
    """
    aggregate:  Optional[Aggregate] = None
    resolution: Optional[Resolution] = None
    error:      Optional[MalformedAnswerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def result(self) -> Optional[Result]:
        """Le résultat retenu, ou None (séquence invalide ou no-match)."""
        return self.resolution if isinstance(self.resolution, Result) else None


def evaluate_attempt(test: Test, answers: Sequence[Answer]) -> AttemptEvaluation:
    outcome = aggregate_answers(test, answers)
    if not outcome.ok:
        return AttemptEvaluation(error=outcome.error)
    return AttemptEvaluation(
        aggregate=outcome.aggregate,
        resolution=resolve_result(test.results, outcome.aggregate),
    )
