# modules/quiz/service.py
"""
Orchestration du cycle de vie des tests.

Responsabilités :
1. Interroger la DB via repository (définitions, slugs, tentatives)
2. Déléguer validation / agrégation / résolution à l'engine (pur)
3. Traduire les échecs typés de l'engine en exceptions de service
   (le router les convertit en codes HTTP)
4. Sauvegarder les définitions et les tentatives résolues
"""
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from quizlab.core.config import settings
from quizlab.engine.catalogue import filter_tests
from quizlab.engine.definition.model import Test
from quizlab.engine.definition.mutations import set_published as mark_published
from quizlab.engine.definition.validation import ValidationResult, Violation, entity_ids, validate_test
from quizlab.engine.scoring.aggregator import MalformedAnswerError
from quizlab.engine.scoring.lint import find_score_gaps, find_shadowed_results
from quizlab.engine.scoring.resolver import evaluate_attempt
from quizlab.modules.quiz import mapper
from quizlab.modules.quiz.repository import QuizRepository
from quizlab.shared.enums import CatalogueSort, CatalogueStatus, ViolationKind

logger = logging.getLogger(__name__)

repo = QuizRepository()


class TestNotFound(LookupError):
    __test__ = False

    def __init__(self, test_id: str):
        super().__init__(f"Test introuvable : {test_id}")
        self.test_id = test_id


class DefinitionRejected(ValueError):
    """Définition refusée : porte la liste complète des violations."""

    def __init__(self, validation: ValidationResult):
        super().__init__(f"Définition invalide ({len(validation.violations)} violation(s)).")
        self.validation = validation


class AnswersRejected(ValueError):
    """Séquence de réponses mal formée : porte les problèmes détectés par l'agrégateur."""

    def __init__(self, error: MalformedAnswerError):
        super().__init__(f"Réponses invalides ({len(error.issues)} problème(s)).")
        self.error = error


class QuizService:

    # ─────────────────────────────────────────────
    # CATALOGUE
    # ─────────────────────────────────────────────

    async def get_catalogue(
        self,
        db: AsyncSession,
        search: str = "",
        status: CatalogueStatus = CatalogueStatus.ALL,
        sort_by: CatalogueSort = CatalogueSort.CREATED_AT,
        descending: bool = True,
    ) -> List[Tuple[Test, int]]:
        """Tests filtrés / triés, chacun avec son nombre de tentatives."""
        rows = await repo.get_all_tests(db)
        counts = {row.id: n_responses for row, n_responses in rows}
        tests = [mapper.definition_from_orm(row) for row, _ in rows]
        selected = filter_tests(tests, search=search, status=status, sort_by=sort_by, descending=descending)
        return [(t, counts[t.id]) for t in selected]

    async def get_test(self, db: AsyncSession, test_id: str) -> Test:
        row = await repo.get_test(db, test_id)
        if row is None:
            raise TestNotFound(test_id)
        return mapper.definition_from_orm(row)

    # ─────────────────────────────────────────────
    # AUTHORING
    # ─────────────────────────────────────────────

    async def validate(self, db: AsyncSession, payload, strict: bool = False) -> ValidationResult:
        definition = mapper.definition_from_payload(payload)
        slugs = await repo.get_slugs(db, exclude_test_id=payload.id)
        foreign = await repo.get_foreign_ids(db, entity_ids(definition), exclude_test_id=payload.id)
        return validate_test(definition, strict=strict, existing_slugs=slugs, foreign_ids=foreign)

    async def create_test(self, db: AsyncSession, payload) -> Test:
        """Création en brouillon : seuls les invariants structurels sont exigés."""
        definition = mapper.definition_from_payload(payload)
        await self._check_against_storage(db, definition, strict=False)

        row = await repo.create_test(db, definition)
        if row is None:
            await self._raise_conflict(db, definition, strict=False)
        logger.info("Test créé id=%s slug=%s", definition.id, definition.slug)
        return mapper.definition_from_orm(row)

    async def update_test(self, db: AsyncSession, test_id: str, payload) -> Test:
        """
        Un test déjà publié doit rester publiable : la validation stricte
        s'applique alors à la nouvelle définition.
        """
        row = await repo.get_test(db, test_id)
        if row is None:
            raise TestNotFound(test_id)

        definition = mapper.definition_from_payload(
            payload, test_id=test_id, created_at=row.created_at, is_published=bool(row.is_published),
        )
        strict = definition.is_published and settings.STRICT_PUBLISH_VALIDATION
        await self._check_against_storage(db, definition, strict=strict, exclude_test_id=test_id)

        row = await repo.replace_test(db, row, definition)
        if row is None:
            await self._raise_conflict(db, definition, strict=strict, exclude_test_id=test_id)
        logger.info("Test mis à jour id=%s", test_id)
        return mapper.definition_from_orm(row)

    async def set_published(self, db: AsyncSession, test_id: str, is_published: bool) -> Test:
        row = await repo.get_test(db, test_id)
        if row is None:
            raise TestNotFound(test_id)

        definition = mapper.definition_from_orm(row)
        if is_published:
            slugs = await repo.get_slugs(db, exclude_test_id=test_id)
            self._ensure_valid(definition, strict=settings.STRICT_PUBLISH_VALIDATION, existing_slugs=slugs)

        await repo.set_published(db, row, is_published)
        logger.info("Test id=%s publié=%s", test_id, is_published)
        return mark_published(definition, is_published)

    async def delete_test(self, db: AsyncSession, test_id: str) -> None:
        row = await repo.get_test(db, test_id)
        if row is None:
            raise TestNotFound(test_id)
        await repo.delete_test(db, row)
        logger.info("Test supprimé id=%s", test_id)

    def preview(self, payload, answers: Sequence) -> Dict[str, Any]:
        """
        Aperçu auteur sur la définition en cours d'édition (rien n'est lu ni écrit).
        Retourne agrégat, résultat retenu et avertissements de couverture.
        """
        definition = mapper.definition_from_payload(payload)
        evaluation = evaluate_attempt(definition, mapper.answers_from_payload(answers))
        if not evaluation.ok:
            raise AnswersRejected(evaluation.error)

        result = evaluation.result
        return {
            "aggregate": mapper.aggregate_to_dict(evaluation.aggregate),
            "matched": result is not None,
            "result": mapper.result_to_dict(result) if result else None,
            "warnings": [
                {
                    "kind": w.kind.value,
                    "result_id": w.result_id,
                    "shadowed_by": list(w.shadowed_by),
                    "message": w.message,
                }
                for w in find_shadowed_results(definition)
            ],
            "uncovered_scores": find_score_gaps(definition),
        }

    # ─────────────────────────────────────────────
    # TENTATIVES
    # ─────────────────────────────────────────────

    async def submit_attempt(self, db: AsyncSession, test_id: str, answers: Sequence):
        """
        Pipeline de soumission :
        1. Hydratation de la définition (seul accès DB en lecture)
        2. Agrégation + résolution (engine pur)
        3. Sauvegarde de la tentative avec result_id (NULL si no-match)
        """
        definition = await self.get_test(db, test_id)
        if settings.REQUIRE_PUBLISHED_FOR_ATTEMPTS and not definition.is_published:
            raise PermissionError("Test non publié.")

        sequence = mapper.answers_from_payload(answers)
        evaluation = evaluate_attempt(definition, sequence)
        if not evaluation.ok:
            logger.info("Tentative rejetée test=%s issues=%d", test_id, len(evaluation.error.issues))
            raise AnswersRejected(evaluation.error)

        if evaluation.result is None:
            # Trou de couverture côté auteur : la tentative est gardée sans résultat
            logger.warning(
                "Aucun résultat pour test=%s total_score=%s pattern=%s",
                test_id, evaluation.aggregate.total_score, list(evaluation.aggregate.pattern),
            )

        saved = await repo.save_attempt(db, test_id, sequence, evaluation)
        logger.info("Tentative enregistrée id=%s test=%s result=%s", saved.id, test_id, saved.result_id)
        return saved

    async def get_attempts(self, db: AsyncSession, test_id: str) -> List:
        await self.get_test(db, test_id)
        return await repo.get_attempts(db, test_id)

    # ─────────────────────────────────────────────

    async def _check_against_storage(
        self, db: AsyncSession, definition: Test, strict: bool, exclude_test_id: Optional[str] = None,
    ) -> None:
        """Validation avec les slugs et les ids déjà possédés par les autres tests."""
        slugs = await repo.get_slugs(db, exclude_test_id=exclude_test_id)
        foreign = await repo.get_foreign_ids(db, entity_ids(definition), exclude_test_id=exclude_test_id)
        self._ensure_valid(definition, strict=strict, existing_slugs=slugs, foreign_ids=foreign)

    async def _raise_conflict(
        self, db: AsyncSession, definition: Test, strict: bool, exclude_test_id: Optional[str] = None,
    ) -> None:
        """
        Contrainte d'unicité violée à l'écriture (écriture concurrente).
        On revalide contre l'état actuel de la base pour nommer le conflit.
        """
        logger.warning("Conflit d'unicité à l'écriture test=%s slug=%s", definition.id, definition.slug)
        await self._check_against_storage(db, definition, strict=strict, exclude_test_id=exclude_test_id)
        raise DefinitionRejected(ValidationResult(violations=(
            Violation(ViolationKind.DUPLICATE_ID, definition.id, "Conflit d'unicité en base."),
        )))

    def _ensure_valid(
        self,
        definition: Test,
        strict: bool,
        existing_slugs: Optional[Sequence[str]] = (),
        foreign_ids: Iterable[str] = (),
    ) -> None:
        validation = validate_test(
            definition, strict=strict, existing_slugs=existing_slugs or (), foreign_ids=foreign_ids,
        )
        if not validation.is_valid:
            logger.info(
                "Définition refusée test=%s strict=%s violations=%s",
                definition.id, strict, [v.kind.value for v in validation.violations],
            )
            raise DefinitionRejected(validation)
