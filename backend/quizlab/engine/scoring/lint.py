# engine/scoring/lint.py
"""
Avertissements d'auteur sur les résultats d'un Test. ZÉRO accès DB.

Le resolver ne rejette jamais un chevauchement (premier match gagne) ;
ce module permet à l'assistant de signaler :
    - les résultats masqués par des résultats antérieurs (SHADOWED)
    - les plages qu'aucune combinaison de réponses n'atteint (OUT_OF_REACH)
    - les scores atteignables couverts par aucune plage (find_score_gaps)

Les scores atteignables sont calculés exactement (somme des options,
une par question) et non sur l'intervalle [min, max] : avec des options
0/5 et 0/3, seuls {0, 3, 5, 8} sont atteignables.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Tuple

from quizlab.engine.definition.model import (
    PatternCondition,
    ScoreRangeCondition,
    Test,
)
from quizlab.shared.enums import LintKind


@dataclass(frozen=True)
class LintWarning:
    kind:        LintKind
    result_id:   str
    shadowed_by: Tuple[str, ...] = ()
    message:     str = ""


def score_bounds(test: Test) -> Tuple[int, int]:
    """(min, max) du total_score. Les questions sans option sont ignorées."""
    answered = [q for q in test.questions if q.options]
    low = sum(min(o.score for o in q.options) for q in answered)
    high = sum(max(o.score for o in q.options) for q in answered)
    return low, high


def achievable_scores(test: Test) -> FrozenSet[int]:
    totals: Set[int] = {0}
    for q in test.questions:
        if not q.options:
            continue
        totals = {t + o.score for t in totals for o in q.options}
    return frozenset(totals)


def _in_range(score: int, cond: ScoreRangeCondition) -> bool:
    return score >= cond.lower and (cond.is_open or score <= cond.upper)


def find_score_gaps(test: Test) -> List[int]:
    """
    Scores atteignables qu'aucune condition de plage ne couvre.
    Les conditions pattern sont ignorées ici : un trou listé peut
    encore être couvert par un pattern, jamais garanti.
    """
    ranges = [r.condition for r in test.results if isinstance(r.condition, ScoreRangeCondition)]
    return sorted(
        s for s in achievable_scores(test)
        if not any(_in_range(s, c) for c in ranges)
    )


def _pattern_covers(earlier: PatternCondition, later: PatternCondition) -> bool:
    if later.ordered:
        if earlier.ordered:
            return earlier.tags == later.tags
        return set(earlier.tags) == set(later.tags)
    return not earlier.ordered and set(earlier.tags) == set(later.tags)


def find_shadowed_results(test: Test) -> List[LintWarning]:
    scores = achievable_scores(test) if test.questions else frozenset()
    warnings: List[LintWarning] = []
    covered: Set[int] = set()
    range_ids: List[str] = []

    for i, result in enumerate(test.results):
        cond = result.condition
        earlier = test.results[:i]
        blocker: Optional[Tuple[str, ...]] = None

        if scores and covered >= scores:
            blocker = tuple(range_ids)
        elif isinstance(cond, ScoreRangeCondition):
            reachable = {s for s in scores if _in_range(s, cond)}
            if scores and not reachable:
                warnings.append(LintWarning(
                    LintKind.OUT_OF_REACH, result.id,
                    message=f"Aucun score atteignable dans la plage (atteignables : {sorted(scores)}).",
                ))
            elif reachable and reachable <= covered:
                blocker = tuple(range_ids)
        elif isinstance(cond, PatternCondition):
            twins = tuple(
                r.id for r in earlier
                if isinstance(r.condition, PatternCondition) and _pattern_covers(r.condition, cond)
            )
            if twins:
                blocker = twins

        if blocker:
            warnings.append(LintWarning(
                LintKind.SHADOWED, result.id, shadowed_by=blocker,
                message="Inatteignable : un résultat antérieur matche toujours en premier.",
            ))

        if isinstance(cond, ScoreRangeCondition):
            newly = {s for s in scores if _in_range(s, cond)} - covered
            if newly:
                covered |= newly
                range_ids.append(result.id)

    return warnings
