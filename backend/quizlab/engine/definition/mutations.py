# engine/definition/mutations.py
"""
Mutations pures du modèle de définition.

Chaque fonction reçoit un Test et retourne un NOUVEAU Test normalisé
(back-références recalculées, questions renumérotées 1..N).
Aucune n'accède au stockage, aucune ne génère d'identifiant :
les ids sont fournis par l'appelant (voir model.new_id).

Un id inconnu lève KeyError : c'est une erreur de programmation côté
appelant, pas une violation de validation.
"""
from __future__ import annotations
from dataclasses import replace
from typing import Any, Optional, Sequence, Tuple, TypeVar

from quizlab.engine.definition.model import (
    Condition,
    Option,
    Question,
    Result,
    Test,
    normalize,
)

T = TypeVar("T", Question, Option, Result)

# Champs de base modifiables via update_info (pas les collections, pas l'id)
INFO_FIELDS = frozenset({
    "title", "slug", "category_id", "description", "emoji",
    "start_message", "is_published", "created_at", "tags",
})


def _index_of(items: Sequence[T], entity_id: str) -> int:
    for i, item in enumerate(items):
        if item.id == entity_id:
            return i
    raise KeyError(entity_id)


def _moved(items: Tuple[T, ...], entity_id: str, position: int) -> Tuple[T, ...]:
    """Déplace l'élément à la position 1-based donnée (bornée à [1, N])."""
    current = _index_of(items, entity_id)
    target = min(max(position, 1), len(items)) - 1
    rest = items[:current] + items[current + 1:]
    return rest[:target] + (items[current],) + rest[target:]


def _with_question(test: Test, question_id: str, question: Question) -> Test:
    i = _index_of(test.questions, question_id)
    questions = test.questions[:i] + (question,) + test.questions[i + 1:]
    return normalize(replace(test, questions=questions))


# ── Infos de base ─────────────────────────────────────────────────────────────

def update_info(test: Test, **fields: Any) -> Test:
    unknown = set(fields) - INFO_FIELDS
    if unknown:
        raise TypeError(f"Champs non modifiables : {sorted(unknown)}")
    if "tags" in fields:
        fields["tags"] = tuple(fields["tags"])
    return normalize(replace(test, **fields))


def set_published(test: Test, is_published: bool) -> Test:
    return replace(test, is_published=is_published)


# ── Questions ─────────────────────────────────────────────────────────────────

def add_question(
    test: Test,
    question_id: str,
    prompt: str = "",
    options: Sequence[Option] = (),
    position: Optional[int] = None,
) -> Test:
    """Ajoute une question en fin de liste (ou à la position 1-based donnée)."""
    question = Question(id=question_id, prompt=prompt, options=tuple(options))
    questions = test.questions + (question,)
    if position is not None:
        questions = _moved(questions, question_id, position)
    return normalize(replace(test, questions=questions))


def update_question(test: Test, question_id: str, prompt: str) -> Test:
    question = test.questions[_index_of(test.questions, question_id)]
    return _with_question(test, question_id, replace(question, prompt=prompt))


def remove_question(test: Test, question_id: str) -> Test:
    """Supprime la question (et ses options) puis re-densifie les ordres."""
    i = _index_of(test.questions, question_id)
    return normalize(replace(test, questions=test.questions[:i] + test.questions[i + 1:]))


def move_question(test: Test, question_id: str, position: int) -> Test:
    """Déplace la question à la position 1-based donnée, les autres sont renumérotées."""
    return normalize(replace(test, questions=_moved(test.questions, question_id, position)))


# ── Options ───────────────────────────────────────────────────────────────────

def add_option(
    test: Test,
    question_id: str,
    option_id: str,
    text: str = "",
    score: int = 0,
    tag: Optional[str] = None,
) -> Test:
    question = test.questions[_index_of(test.questions, question_id)]
    option = Option(id=option_id, text=text, score=score, tag=tag)
    return _with_question(test, question_id, replace(question, options=question.options + (option,)))


def update_option(test: Test, question_id: str, option_id: str, **fields: Any) -> Test:
    """Modifie text / score / tag. La position de l'option est conservée."""
    unknown = set(fields) - {"text", "score", "tag"}
    if unknown:
        raise TypeError(f"Champs non modifiables : {sorted(unknown)}")
    question = test.questions[_index_of(test.questions, question_id)]
    j = _index_of(question.options, option_id)
    options = question.options[:j] + (replace(question.options[j], **fields),) + question.options[j + 1:]
    return _with_question(test, question_id, replace(question, options=options))


def remove_option(test: Test, question_id: str, option_id: str) -> Test:
    question = test.questions[_index_of(test.questions, question_id)]
    j = _index_of(question.options, option_id)
    options = question.options[:j] + question.options[j + 1:]
    return _with_question(test, question_id, replace(question, options=options))


# ── Résultats ─────────────────────────────────────────────────────────────────

def add_result(
    test: Test,
    result_id: str,
    condition: Condition,
    title: str = "",
    description: str = "",
    keywords: Sequence[str] = (),
    recommendations: Sequence[str] = (),
) -> Test:
    result = Result(
        id=result_id,
        condition=condition,
        title=title,
        description=description,
        keywords=tuple(keywords),
        recommendations=tuple(recommendations),
    )
    return normalize(replace(test, results=test.results + (result,)))


def update_result(test: Test, result_id: str, **fields: Any) -> Test:
    unknown = set(fields) - {"title", "description", "condition", "keywords", "recommendations"}
    if unknown:
        raise TypeError(f"Champs non modifiables : {sorted(unknown)}")
    for key in ("keywords", "recommendations"):
        if key in fields:
            fields[key] = tuple(fields[key])
    i = _index_of(test.results, result_id)
    results = test.results[:i] + (replace(test.results[i], **fields),) + test.results[i + 1:]
    return normalize(replace(test, results=results))


def remove_result(test: Test, result_id: str) -> Test:
    i = _index_of(test.results, result_id)
    return normalize(replace(test, results=test.results[:i] + test.results[i + 1:]))


def move_result(test: Test, result_id: str, position: int) -> Test:
    """L'ordre des résultats est le départage du resolver : le premier qui matche gagne."""
    return normalize(replace(test, results=_moved(test.results, result_id, position)))
