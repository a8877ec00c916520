# engine/definition/draft.py
"""
Brouillon de l'assistant de création (3 étapes : infos → questions → résultats).

Le brouillon est une valeur immuable ; chaque action produit un nouveau
brouillon via reduce_draft(draft, action). Aucun état partagé entre
composants : l'UI garde le dernier TestDraft et le repasse au reducer.

Les ids des nouvelles entités sont portés par les actions (générés au
moment où l'action est créée), ce qui garde le reducer déterministe.
"""
from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple

from quizlab.engine.definition import mutations
from quizlab.engine.definition.model import (
    Condition,
    Option,
    ScoreRangeCondition,
    Test,
    new_id,
    normalize,
)
from quizlab.shared.enums import WizardStep

# Plage par défaut d'un nouveau résultat dans l'assistant
DEFAULT_RESULT_RANGE = ScoreRangeCondition(lower=0, upper=10)


@dataclass(frozen=True)
class TestDraft:
    __test__ = False  # pas une classe de test pytest

    test: Test
    step: WizardStep = WizardStep.BASIC


# ── Actions ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SetInfo:
    fields: Dict[str, Any]


@dataclass(frozen=True)
class AddQuestion:
    question_id: str
    option_ids:  Tuple[str, ...] = ()
    prompt:      str = ""


@dataclass(frozen=True)
class UpdateQuestion:
    question_id: str
    prompt:      str


@dataclass(frozen=True)
class RemoveQuestion:
    question_id: str


@dataclass(frozen=True)
class MoveQuestion:
    question_id: str
    position:    int


@dataclass(frozen=True)
class AddOption:
    question_id: str
    option_id:   str
    text:        str = ""
    score:       int = 0
    tag:         Optional[str] = None


@dataclass(frozen=True)
class UpdateOption:
    question_id: str
    option_id:   str
    fields:      Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveOption:
    question_id: str
    option_id:   str


@dataclass(frozen=True)
class AddResult:
    result_id:   str
    condition:   Condition = DEFAULT_RESULT_RANGE
    title:       str = ""
    description: str = ""


@dataclass(frozen=True)
class UpdateResult:
    result_id: str
    fields:    Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RemoveResult:
    result_id: str


@dataclass(frozen=True)
class MoveResult:
    result_id: str
    position:  int


@dataclass(frozen=True)
class GoToStep:
    step: WizardStep


# ── Constructeurs ─────────────────────────────────────────────────────────────

def add_question_action(prompt: str = "", n_options: int = 2) -> AddQuestion:
    """Action prête à l'emploi : nouvelle question avec n options vides."""
    return AddQuestion(
        question_id=new_id(),
        option_ids=tuple(new_id() for _ in range(n_options)),
        prompt=prompt,
    )


def new_draft(
    test_id: str,
    question_id: str,
    option_ids: Tuple[str, str],
    result_id: str,
    created_at: Optional[datetime] = None,
) -> TestDraft:
    """
    Brouillon initial de l'assistant : une question à deux options vides
    et un résultat sur la plage [0, 10].
    """
    test = Test(id=test_id, created_at=created_at)
    test = mutations.add_question(
        test, question_id, options=[Option(id=oid) for oid in option_ids],
    )
    test = mutations.add_result(test, result_id, DEFAULT_RESULT_RANGE)
    return TestDraft(test=test)


# ── Reducer ───────────────────────────────────────────────────────────────────

def _set_info(test: Test, a: SetInfo) -> Test:
    return mutations.update_info(test, **a.fields)


def _add_question(test: Test, a: AddQuestion) -> Test:
    options = [Option(id=oid) for oid in a.option_ids]
    return mutations.add_question(test, a.question_id, prompt=a.prompt, options=options)


def _add_option(test: Test, a: AddOption) -> Test:
    return mutations.add_option(test, a.question_id, a.option_id, text=a.text, score=a.score, tag=a.tag)


def _add_result(test: Test, a: AddResult) -> Test:
    return mutations.add_result(test, a.result_id, a.condition, title=a.title, description=a.description)


_HANDLERS: Dict[type, Callable[[Test, Any], Test]] = {
    SetInfo:        _set_info,
    AddQuestion:    _add_question,
    UpdateQuestion: lambda t, a: mutations.update_question(t, a.question_id, a.prompt),
    RemoveQuestion: lambda t, a: mutations.remove_question(t, a.question_id),
    MoveQuestion:   lambda t, a: mutations.move_question(t, a.question_id, a.position),
    AddOption:      _add_option,
    UpdateOption:   lambda t, a: mutations.update_option(t, a.question_id, a.option_id, **a.fields),
    RemoveOption:   lambda t, a: mutations.remove_option(t, a.question_id, a.option_id),
    AddResult:      _add_result,
    UpdateResult:   lambda t, a: mutations.update_result(t, a.result_id, **a.fields),
    RemoveResult:   lambda t, a: mutations.remove_result(t, a.result_id),
    MoveResult:     lambda t, a: mutations.move_result(t, a.result_id, a.position),
}


def reduce_draft(draft: TestDraft, action: Any) -> TestDraft:
    """Applique une action et retourne un nouveau brouillon (l'ancien est intact)."""
    if isinstance(action, GoToStep):
        return replace(draft, step=action.step)

    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Action inconnue : {type(action).__name__}")
    return replace(draft, test=normalize(handler(draft.test, action)))
