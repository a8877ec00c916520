# modules/quiz/mapper.py
"""
Conversions entre les trois représentations d'un test :

    payload API (schemas)  →  définition engine  ←→  lignes ORM (shared/models)
                                    ↓
                            dict de sortie (TestOut)

Les conditions typées de l'engine sont stockées à plat :
    condition_type  = "score" | "pattern"
    condition_value = {"min", "max"} | {"tags", "ordered"}

Un condition_type inconnu lève ValueError : c'est une donnée corrompue
à la frontière de stockage, jamais un cas de l'engine.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from quizlab.engine.catalogue import slugify
from quizlab.engine.definition.model import (
    Answer,
    Condition,
    Option,
    PatternCondition,
    Question,
    Result,
    ScoreRangeCondition,
    Test,
    new_id,
    normalize,
)
from quizlab.engine.scoring.aggregator import Aggregate, MalformedAnswerError
from quizlab.engine.definition.validation import ValidationResult
from quizlab.shared import models
from quizlab.shared.enums import ConditionType


# ── Conditions ────────────────────────────────────────────────────────────────

def condition_from_record(condition_type: str, value: Dict[str, Any]) -> Condition:
    value = value or {}
    if condition_type == ConditionType.SCORE.value:
        upper = value.get("max")
        return ScoreRangeCondition(
            lower=int(value.get("min", 0)),
            upper=None if upper is None else int(upper),
        )
    if condition_type == ConditionType.PATTERN.value:
        return PatternCondition(
            tags=tuple(str(t) for t in value.get("tags", [])),
            ordered=bool(value.get("ordered", True)),
        )
    raise ValueError(f"condition_type inconnu : {condition_type!r}")


def condition_to_record(condition: Condition) -> Tuple[str, Dict[str, Any]]:
    if isinstance(condition, ScoreRangeCondition):
        return ConditionType.SCORE.value, {"min": condition.lower, "max": condition.upper}
    if isinstance(condition, PatternCondition):
        return ConditionType.PATTERN.value, {"tags": list(condition.tags), "ordered": condition.ordered}
    raise ValueError(f"Condition inconnue : {type(condition).__name__}")


# ── ORM → engine ──────────────────────────────────────────────────────────────

def definition_from_orm(row: models.Test) -> Test:
    """
    Les order_index stockés sont conservés tels quels (pas de renumérotation) :
    une base incohérente doit remonter en violation à la validation.
    """
    questions = tuple(
        Question(
            id=q.id,
            test_id=q.test_id,
            order_index=q.order_index,
            prompt=q.text or "",
            options=tuple(
                Option(id=o.id, question_id=o.question_id, text=o.text or "", score=o.score or 0, tag=o.tag)
                for o in sorted(q.options, key=lambda o: o.order_index)
            ),
        )
        for q in sorted(row.questions, key=lambda q: q.order_index)
    )
    results = tuple(
        Result(
            id=r.id,
            test_id=r.test_id,
            title=r.title or "",
            description=r.description or "",
            keywords=tuple(r.keywords or ()),
            recommendations=tuple(r.recommendations or ()),
            condition=condition_from_record(r.condition_type, r.condition_value),
        )
        for r in sorted(row.results, key=lambda r: r.order_index)
    )
    return Test(
        id=row.id,
        title=row.title or "",
        slug=row.slug or "",
        category_id=row.category_id,
        description=row.description or "",
        emoji=row.emoji or "",
        start_message=row.start_message or "",
        is_published=bool(row.is_published),
        created_at=row.created_at,
        tags=tuple(row.tags or ()),
        questions=questions,
        results=results,
    )


# ── engine → ORM ──────────────────────────────────────────────────────────────

def questions_to_orm(test: Test) -> List[models.Question]:
    return [
        models.Question(
            id=q.id,
            test_id=test.id,
            order_index=q.order_index,
            text=q.prompt,
            options=[
                models.QuestionOption(
                    id=o.id, question_id=q.id, order_index=j, text=o.text, score=o.score, tag=o.tag,
                )
                for j, o in enumerate(q.options, start=1)
            ],
        )
        for q in test.questions
    ]


def results_to_orm(test: Test) -> List[models.TestResult]:
    rows = []
    for i, r in enumerate(test.results, start=1):
        condition_type, condition_value = condition_to_record(r.condition)
        rows.append(models.TestResult(
            id=r.id,
            test_id=test.id,
            order_index=i,
            title=r.title,
            description=r.description,
            keywords=list(r.keywords),
            recommendations=list(r.recommendations),
            condition_type=condition_type,
            condition_value=condition_value,
        ))
    return rows


def info_to_record(test: Test) -> Dict[str, Any]:
    return {
        "title": test.title,
        "slug": test.slug,
        "category_id": test.category_id,
        "description": test.description,
        "emoji": test.emoji,
        "start_message": test.start_message,
        "is_published": test.is_published,
        "tags": list(test.tags),
    }


def definition_to_orm(test: Test) -> models.Test:
    return models.Test(
        id=test.id,
        **info_to_record(test),
        questions=questions_to_orm(test),
        results=results_to_orm(test),
    )


# ── API → engine ──────────────────────────────────────────────────────────────

def definition_from_payload(
    payload,
    test_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
    is_published: bool = False,
) -> Test:
    """
    payload : schemas.TestIn. Les ids absents sont générés ici (frontière API),
    les back-références et l'ordre sont ensuite recalculés par normalize().
    """
    questions = tuple(
        Question(
            id=q.id or new_id(),
            prompt=q.prompt,
            options=tuple(
                Option(id=o.id or new_id(), text=o.text, score=o.score, tag=o.tag)
                for o in q.options
            ),
        )
        for q in payload.questions
    )
    results = tuple(
        Result(
            id=r.id or new_id(),
            title=r.title,
            description=r.description,
            keywords=tuple(r.keywords),
            recommendations=tuple(r.recommendations),
            condition=condition_from_record(r.condition.type, r.condition.model_dump(exclude={"type"})),
        )
        for r in payload.results
    )
    return normalize(Test(
        id=test_id or payload.id or new_id(),
        title=payload.title,
        slug=payload.slug or slugify(payload.title),
        category_id=payload.category_id,
        description=payload.description,
        emoji=payload.emoji,
        start_message=payload.start_message,
        is_published=is_published,
        created_at=created_at,
        tags=tuple(payload.tags),
        questions=questions,
        results=results,
    ))


def answers_from_payload(items) -> Tuple[Answer, ...]:
    return tuple(Answer(question_id=a.question_id, option_id=a.option_id) for a in items)


# ── engine → dict de sortie ───────────────────────────────────────────────────

def condition_to_dict(condition: Condition) -> Dict[str, Any]:
    condition_type, value = condition_to_record(condition)
    return {"type": condition_type, **value}


def result_to_dict(result: Result) -> Dict[str, Any]:
    return {
        "id": result.id,
        "title": result.title,
        "description": result.description,
        "keywords": list(result.keywords),
        "recommendations": list(result.recommendations),
        "condition": condition_to_dict(result.condition),
    }


def definition_to_dict(test: Test) -> Dict[str, Any]:
    return {
        "id": test.id,
        "title": test.title,
        "slug": test.slug,
        "category_id": test.category_id,
        "description": test.description,
        "emoji": test.emoji,
        "start_message": test.start_message,
        "is_published": test.is_published,
        "created_at": test.created_at,
        "tags": list(test.tags),
        "questions": [
            {
                "id": q.id,
                "order_index": q.order_index,
                "prompt": q.prompt,
                "options": [
                    {"id": o.id, "text": o.text, "score": o.score, "tag": o.tag}
                    for o in q.options
                ],
            }
            for q in test.questions
        ],
        "results": [result_to_dict(r) for r in test.results],
    }


def summary_to_dict(test: Test, n_responses: int = 0) -> Dict[str, Any]:
    return {
        "id": test.id,
        "title": test.title,
        "slug": test.slug,
        "category_id": test.category_id,
        "emoji": test.emoji,
        "is_published": test.is_published,
        "created_at": test.created_at,
        "n_questions": len(test.questions),
        "n_results": len(test.results),
        "n_responses": n_responses,
    }


def validation_to_dict(validation: ValidationResult) -> Dict[str, Any]:
    return {
        "is_valid": validation.is_valid,
        "violations": [
            {"kind": v.kind.value, "entity_id": v.entity_id, "message": v.message}
            for v in validation.violations
        ],
    }


def issues_to_list(error: MalformedAnswerError) -> List[Dict[str, Any]]:
    return [
        {"kind": i.kind.value, "question_id": i.question_id, "option_id": i.option_id}
        for i in error.issues
    ]


def aggregate_to_dict(aggregate: Aggregate) -> Dict[str, Any]:
    return {"total_score": aggregate.total_score, "pattern": list(aggregate.pattern)}
