# modules/quiz/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional, Union
from datetime import datetime


# ── Conditions (choix étiqueté) ────────────────────────────

class ScoreConditionIn(BaseModel):
    type: Literal["score"] = "score"
    min: int
    max: Optional[int] = None        # None → "min et plus"


class PatternConditionIn(BaseModel):
    type: Literal["pattern"]
    tags: List[str]
    ordered: bool = True


# "type" absent → condition de score
ConditionIn = Union[ScoreConditionIn, PatternConditionIn]


# ── Définition (création / mise à jour / aperçu) ───────────

class OptionIn(BaseModel):
    id: Optional[str] = None
    text: str = ""
    score: int = 0
    tag: Optional[str] = None


class QuestionIn(BaseModel):
    id: Optional[str] = None
    prompt: str = ""
    options: List[OptionIn] = []


class ResultIn(BaseModel):
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    keywords: List[str] = []
    recommendations: List[str] = []
    condition: ConditionIn


class TestIn(BaseModel):
    __test__ = False

    id: Optional[str] = None
    title: str = ""
    slug: str = ""                   # vide → dérivé du titre
    category_id: Optional[int] = None
    description: str = ""
    emoji: str = Field("", max_length=8)
    start_message: str = ""
    tags: List[str] = []
    questions: List[QuestionIn] = []
    results: List[ResultIn] = []


class PublishIn(BaseModel):
    is_published: bool


# ── Sorties ────────────────────────────────────────────────

class OptionOut(BaseModel):
    id: str
    text: str
    score: int
    tag: Optional[str] = None


class QuestionOut(BaseModel):
    id: str
    order_index: int
    prompt: str
    options: List[OptionOut]


class ResultOut(BaseModel):
    id: str
    title: str
    description: str
    keywords: List[str] = []
    recommendations: List[str] = []
    condition: ConditionIn


class TestOut(BaseModel):
    __test__ = False

    id: str
    title: str
    slug: str
    category_id: Optional[int] = None
    description: str
    emoji: str
    start_message: str
    is_published: bool
    created_at: Optional[datetime] = None
    tags: List[str] = []
    questions: List[QuestionOut]
    results: List[ResultOut]


class TestSummaryOut(BaseModel):
    __test__ = False

    id: str
    title: str
    slug: str
    category_id: Optional[int] = None
    emoji: str
    is_published: bool
    created_at: Optional[datetime] = None
    n_questions: int
    n_results: int
    n_responses: int = 0


# ── Validation ─────────────────────────────────────────────

class ValidateIn(BaseModel):
    definition: TestIn
    strict: bool = False


class ViolationOut(BaseModel):
    kind: str
    entity_id: Optional[str] = None
    message: str = ""


class ValidationOut(BaseModel):
    is_valid: bool
    violations: List[ViolationOut] = []


# ── Réponses / aperçu / tentatives ─────────────────────────

class AnswerIn(BaseModel):
    question_id: str
    option_id: str


class PreviewIn(BaseModel):
    definition: TestIn
    answers: List[AnswerIn]


class AttemptIn(BaseModel):
    answers: List[AnswerIn] = Field(..., min_length=1)


class AggregateOut(BaseModel):
    total_score: int
    pattern: List[str] = []


class LintWarningOut(BaseModel):
    kind: str
    result_id: str
    shadowed_by: List[str] = []
    message: str = ""


class PreviewOut(BaseModel):
    """
    Aperçu auteur : agrégat + résultat retenu (matched=False → no-match),
    plus les avertissements de couverture du test en cours d'édition.
    """
    aggregate: AggregateOut
    matched: bool
    result: Optional[ResultOut] = None
    warnings: List[LintWarningOut] = []
    uncovered_scores: List[int] = []


class AttemptOut(BaseModel):
    id: int
    test_id: str
    result_id: Optional[str] = None
    total_score: int
    pattern: List[str] = []
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
