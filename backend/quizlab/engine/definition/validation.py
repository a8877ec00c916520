# engine/definition/validation.py
"""
Validation structurelle d'un Test. ZÉRO accès DB, ne lève jamais.

Deux niveaux :
    brouillon (strict=False) : invariants structurels seulement
                               (slug, ids, ordre, références, conditions)
    publication (strict=True) : + contenu complet
                               (≥1 question, ≥2 options par question,
                                textes non vides, ≥1 résultat)

Les slugs des AUTRES tests (existing_slugs) et les ids qu'ils possèdent déjà
(foreign_ids) sont fournis par l'appelant : l'unicité est vérifiée ici,
la lecture en base reste dans le repository.
"""
from __future__ import annotations
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from quizlab.engine.definition.model import (
    PatternCondition,
    ScoreRangeCondition,
    Test,
)
from quizlab.shared.enums import ViolationKind

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MIN_OPTIONS_PER_QUESTION = 2


@dataclass(frozen=True)
class Violation:
    kind:      ViolationKind
    entity_id: Optional[str]
    message:   str = ""


@dataclass(frozen=True)
class ValidationResult:
    violations: Tuple[Violation, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.violations

    def kinds(self) -> List[ViolationKind]:
        return [v.kind for v in self.violations]


def validate_test(
    test: Test,
    strict: bool = False,
    existing_slugs: Iterable[str] = (),
    foreign_ids: Iterable[str] = (),
) -> ValidationResult:
    """
    Retourne toutes les violations trouvées, dans un ordre stable.
    Un Test valide fraîchement construit retourne ValidationResult() vide.
    """
    violations: List[Violation] = []
    violations += _check_slug(test, existing_slugs)
    violations += _check_ids(test)
    violations += _check_ownership(test, foreign_ids)
    violations += _check_order(test)
    violations += _check_references(test)
    violations += _check_conditions(test)
    if strict:
        violations += _check_publishable(test)
    return ValidationResult(violations=tuple(violations))


# ── Invariants toujours vérifiés ──────────────────────────────────────────────

def _check_slug(test: Test, existing_slugs: Iterable[str]) -> List[Violation]:
    if not SLUG_PATTERN.match(test.slug or ""):
        return [Violation(
            ViolationKind.INVALID_SLUG, test.id,
            f"Slug invalide : {test.slug!r} (minuscules, chiffres et tirets).",
        )]
    if test.slug in set(existing_slugs):
        return [Violation(
            ViolationKind.DUPLICATE_SLUG, test.id,
            f"Slug déjà utilisé : {test.slug!r}.",
        )]
    return []


def _check_ids(test: Test) -> List[Violation]:
    ids = entity_ids(test)[1:]
    return [
        Violation(ViolationKind.DUPLICATE_ID, entity_id, f"Identifiant dupliqué : {entity_id}.")
        for entity_id, count in Counter(ids).items()
        if count > 1
    ]


def entity_ids(test: Test) -> List[str]:
    """Id du test puis ids des questions, options et résultats, dans l'ordre de l'auteur."""
    ids = [test.id]
    ids += [q.id for q in test.questions]
    ids += [o.id for q in test.questions for o in q.options]
    ids += [r.id for r in test.results]
    return ids


def _check_ownership(test: Test, foreign_ids: Iterable[str]) -> List[Violation]:
    foreign = set(foreign_ids)
    if not foreign:
        return []
    seen = set()
    violations = []
    for entity_id in entity_ids(test):
        if entity_id in foreign and entity_id not in seen:
            seen.add(entity_id)
            violations.append(Violation(
                ViolationKind.FOREIGN_ID, entity_id,
                f"Identifiant déjà utilisé par un autre test : {entity_id}.",
            ))
    return violations


def _check_order(test: Test) -> List[Violation]:
    """Les order_index doivent former exactement 1..N."""
    expected = list(range(1, len(test.questions) + 1))
    actual = sorted(q.order_index for q in test.questions)
    if actual == expected:
        return []
    return [
        Violation(
            ViolationKind.NON_CONTIGUOUS_ORDER, q.id,
            f"Ordre {q.order_index} hors de la séquence 1..{len(expected)}.",
        )
        for q, rank in zip(sorted(test.questions, key=lambda q: q.order_index), expected)
        if q.order_index != rank
    ]


def _check_references(test: Test) -> List[Violation]:
    violations = []
    for q in test.questions:
        if q.test_id != test.id:
            violations.append(Violation(
                ViolationKind.DANGLING_REFERENCE, q.id,
                f"Question rattachée à {q.test_id!r} au lieu de {test.id!r}.",
            ))
        for o in q.options:
            if o.question_id != q.id:
                violations.append(Violation(
                    ViolationKind.DANGLING_REFERENCE, o.id,
                    f"Option rattachée à {o.question_id!r} au lieu de {q.id!r}.",
                ))
    for r in test.results:
        if r.test_id != test.id:
            violations.append(Violation(
                ViolationKind.DANGLING_REFERENCE, r.id,
                f"Résultat rattaché à {r.test_id!r} au lieu de {test.id!r}.",
            ))
    return violations


def _check_conditions(test: Test) -> List[Violation]:
    violations = []
    for r in test.results:
        cond = r.condition
        if isinstance(cond, ScoreRangeCondition):
            if not cond.is_open and cond.lower > cond.upper:
                violations.append(Violation(
                    ViolationKind.INVALID_SCORE_RANGE, r.id,
                    f"Plage inversée : [{cond.lower}, {cond.upper}].",
                ))
        elif isinstance(cond, PatternCondition):
            if not cond.tags:
                violations.append(Violation(
                    ViolationKind.EMPTY_PATTERN, r.id, "Condition pattern sans tag.",
                ))
    return violations


# ── Publication ───────────────────────────────────────────────────────────────

def _check_publishable(test: Test) -> List[Violation]:
    violations = []
    if not test.title.strip():
        violations.append(Violation(ViolationKind.EMPTY_TITLE, test.id, "Titre du test vide."))
    if not test.questions:
        violations.append(Violation(ViolationKind.NO_QUESTIONS, test.id, "Aucune question."))
    for q in test.questions:
        if not q.prompt.strip():
            violations.append(Violation(ViolationKind.EMPTY_PROMPT, q.id, "Énoncé vide."))
        if len(q.options) < MIN_OPTIONS_PER_QUESTION:
            violations.append(Violation(
                ViolationKind.TOO_FEW_OPTIONS, q.id,
                f"{len(q.options)} option(s), minimum {MIN_OPTIONS_PER_QUESTION}.",
            ))
        for o in q.options:
            if not o.text.strip():
                violations.append(Violation(ViolationKind.EMPTY_OPTION_TEXT, o.id, "Texte d'option vide."))
    if not test.results:
        violations.append(Violation(ViolationKind.NO_RESULTS, test.id, "Aucun résultat."))
    for r in test.results:
        if not r.title.strip():
            violations.append(Violation(ViolationKind.EMPTY_RESULT_TITLE, r.id, "Titre de résultat vide."))
    return violations
