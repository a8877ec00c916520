# engine/scoring/aggregator.py
"""
Réduction d'une séquence de réponses en Aggregate. ZÉRO accès DB.
Reçoit le Test déjà hydraté, retourne une valeur typée, ne lève jamais.

Aggregate :
{
    total_score : somme des scores des options choisies (indépendante de l'ordre)
    pattern     : tags des options choisies, dans l'ordre de la séquence
                  (= ordre des questions pour une tentative bien formée).
                  Une option sans tag n'ajoute rien au pattern.
}

Entrée mal formée (question inconnue, doublon, option étrangère, question
manquante) → MalformedAnswerError listant TOUS les problèmes, sans calcul partiel.

Appelé par : engine/scoring/resolver.py (evaluate_attempt), modules/quiz/service.py
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from quizlab.engine.definition.model import Answer, Option, Test
from quizlab.shared.enums import AnswerIssueKind


@dataclass(frozen=True)
class Aggregate:
    total_score: int
    pattern:     Tuple[str, ...] = ()


@dataclass(frozen=True)
class AnswerIssue:
    kind:        AnswerIssueKind
    question_id: str
    option_id:   Optional[str] = None


@dataclass(frozen=True)
class MalformedAnswerError:
    """Échec typé (valeur, pas exception) : la séquence ne couvre pas le test."""
    issues: Tuple[AnswerIssue, ...]


@dataclass(frozen=True)
class AggregationOutcome:
    aggregate: Optional[Aggregate] = None
    error:     Optional[MalformedAnswerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def aggregate_answers(test: Test, answers: Sequence[Answer]) -> AggregationOutcome:
    """
    Vérifie la séquence contre les questions du test puis agrège.

    Fonction 100% pure : mêmes entrées → même sortie, parallélisable
    sans coordination entre tentatives.
    """
    questions = {q.id: q for q in test.questions}
    issues: List[AnswerIssue] = []
    seen: Dict[str, Answer] = {}
    chosen: List[Option] = []

    for answer in answers:
        question = questions.get(answer.question_id)
        if question is None:
            issues.append(AnswerIssue(AnswerIssueKind.UNKNOWN_QUESTION, answer.question_id, answer.option_id))
            continue
        if answer.question_id in seen:
            issues.append(AnswerIssue(AnswerIssueKind.DUPLICATE_QUESTION, answer.question_id, answer.option_id))
            continue
        seen[answer.question_id] = answer

        option = question.option(answer.option_id)
        if option is None:
            issues.append(AnswerIssue(AnswerIssueKind.FOREIGN_OPTION, answer.question_id, answer.option_id))
            continue
        chosen.append(option)

    for q in test.questions:
        if q.id not in seen:
            issues.append(AnswerIssue(AnswerIssueKind.MISSING_QUESTION, q.id))

    if issues:
        return AggregationOutcome(error=MalformedAnswerError(issues=tuple(issues)))

    return AggregationOutcome(aggregate=Aggregate(
        total_score=sum(o.score for o in chosen),
        pattern=tuple(o.tag for o in chosen if o.tag),
    ))
