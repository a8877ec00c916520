# engine/definition/model.py
"""
Formes du modèle de définition. ZÉRO accès DB.

Test → Questions → Options
     → Results (chacun porte une Condition)

Toutes les entités sont des valeurs immuables (dataclasses gelées).
Les back-références (Question.test_id, Option.question_id, Result.test_id)
ne sont jamais maintenues à la main par l'appelant : elles sont recalculées
par normalize() après chaque mutation.

Condition = choix étiqueté :
    ScoreRangeCondition(lower, upper)   upper=None → borne ouverte ("et plus")
    PatternCondition(tags, ordered)     ordered=False → égalité d'ensembles
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Tuple, Union

from quizlab.shared.enums import ConditionType


# Borne haute ouverte, distincte de tout entier fini
OPEN_UPPER = None


def new_id() -> str:
    """Identifiant stable pour une nouvelle entité (généré côté appelant)."""
    return str(uuid.uuid4())


# ── Conditions ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreRangeCondition:
    """
    Plage inclusive sur total_score.

    lower : borne basse incluse
    upper : borne haute incluse, ou OPEN_UPPER (None) pour "lower et plus"
    """
    lower: int
    upper: Optional[int] = OPEN_UPPER

    @property
    def type(self) -> ConditionType:
        return ConditionType.SCORE

    @property
    def is_open(self) -> bool:
        return self.upper is OPEN_UPPER


@dataclass(frozen=True)
class PatternCondition:
    """
    Tags requis sur le pattern de l'agrégat.

    ordered=True  : égalité exacte de séquence
    ordered=False : égalité d'ensembles (ordre et doublons ignorés)
    """
    tags:    Tuple[str, ...]
    ordered: bool = True

    @property
    def type(self) -> ConditionType:
        return ConditionType.PATTERN


Condition = Union[ScoreRangeCondition, PatternCondition]


# ── Entités ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Option:
    id:          str
    text:        str = ""
    score:       int = 0
    tag:         Optional[str] = None
    question_id: Optional[str] = None


@dataclass(frozen=True)
class Question:
    id:          str
    prompt:      str = ""
    options:     Tuple[Option, ...] = ()
    order_index: int = 0
    test_id:     Optional[str] = None

    def option(self, option_id: str) -> Optional[Option]:
        return next((o for o in self.options if o.id == option_id), None)


@dataclass(frozen=True)
class Result:
    id:              str
    condition:       Condition
    title:           str = ""
    description:     str = ""
    keywords:        Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    test_id:         Optional[str] = None


@dataclass(frozen=True)
class Test:
    __test__ = False  # pas une classe de test pytest

    id:            str
    title:         str = ""
    slug:          str = ""
    category_id:   Optional[int] = None
    description:   str = ""
    emoji:         str = ""
    start_message: str = ""
    is_published:  bool = False
    created_at:    Optional[datetime] = None
    tags:          Tuple[str, ...] = ()
    questions:     Tuple[Question, ...] = ()
    results:       Tuple[Result, ...] = ()

    def question(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)

    def result(self, result_id: str) -> Optional[Result]:
        return next((r for r in self.results if r.id == result_id), None)


# ── Réponses d'une tentative ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Answer:
    """Une paire (question, option choisie). La sélection se fait par id, jamais par position."""
    question_id: str
    option_id:   str


AnswerSequence = Tuple[Answer, ...]


# ── Normalisation ─────────────────────────────────────────────────────────────

def normalize(test: Test) -> Test:
    """
    Recalcule les back-références et renumérote les questions 1..N
    dans l'ordre courant du tuple.
    """
    questions = tuple(
        replace(
            q,
            test_id=test.id,
            order_index=i,
            options=tuple(replace(o, question_id=q.id) for o in q.options),
        )
        for i, q in enumerate(test.questions, start=1)
    )
    results = tuple(replace(r, test_id=test.id) for r in test.results)
    return replace(test, questions=questions, results=results)
