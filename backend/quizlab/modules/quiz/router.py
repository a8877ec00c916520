# modules/quiz/router.py
"""
Endpoints du cycle de vie des tests.
Catalogue → Édition → Publication → Tentatives

Règle : ce fichier ne touche jamais la DB ni l'engine.
Tout passe par QuizService.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from quizlab.core.database import get_db
from quizlab.modules.quiz import mapper
from quizlab.modules.quiz.service import (
    AnswersRejected,
    DefinitionRejected,
    QuizService,
    TestNotFound,
)
from quizlab.modules.quiz.schemas import (
    AttemptIn,
    AttemptOut,
    PreviewIn,
    PreviewOut,
    PublishIn,
    TestIn,
    TestOut,
    TestSummaryOut,
    ValidateIn,
    ValidationOut,
)
from quizlab.shared.enums import CatalogueSort, CatalogueStatus

router = APIRouter(prefix="/tests", tags=["Quiz"])
service = QuizService()


def _not_found(e: TestNotFound) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


def _rejected_definition(e: DefinitionRejected) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=mapper.validation_to_dict(e.validation),
    )


def _rejected_answers(e: AnswersRejected) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"issues": mapper.issues_to_list(e.error)},
    )


# ─────────────────────────────────────────────
# CATALOGUE
# ─────────────────────────────────────────────

@router.get(
    "",
    response_model=List[TestSummaryOut],
    summary="Liste des tests (recherche, statut, tri)",
)
async def list_tests(
    search: str = Query("", description="Recherche dans titre, description et slug"),
    status_filter: CatalogueStatus = Query(CatalogueStatus.ALL, alias="status"),
    sort_by: CatalogueSort = Query(CatalogueSort.CREATED_AT),
    descending: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    tests = await service.get_catalogue(
        db, search=search, status=status_filter, sort_by=sort_by, descending=descending,
    )
    return [mapper.summary_to_dict(t, n_responses) for t, n_responses in tests]


@router.get(
    "/{test_id}",
    response_model=TestOut,
    summary="Définition complète d'un test",
)
async def get_test(test_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return mapper.definition_to_dict(await service.get_test(db, test_id))
    except TestNotFound as e:
        raise _not_found(e)


# ─────────────────────────────────────────────
# ÉDITION
# ─────────────────────────────────────────────

@router.post(
    "/validate",
    response_model=ValidationOut,
    summary="Valider une définition sans l'enregistrer",
)
async def validate_definition(payload: ValidateIn, db: AsyncSession = Depends(get_db)):
    """Retourne toutes les violations (jamais seulement la première)."""
    validation = await service.validate(db, payload.definition, strict=payload.strict)
    return mapper.validation_to_dict(validation)


@router.post(
    "/preview",
    response_model=PreviewOut,
    summary="Aperçu du résultat pour une définition en cours d'édition",
)
async def preview_attempt(payload: PreviewIn):
    try:
        return service.preview(payload.definition, payload.answers)
    except AnswersRejected as e:
        raise _rejected_answers(e)


@router.post(
    "",
    response_model=TestOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer un test (brouillon)",
)
async def create_test(payload: TestIn, db: AsyncSession = Depends(get_db)):
    try:
        return mapper.definition_to_dict(await service.create_test(db, payload))
    except DefinitionRejected as e:
        raise _rejected_definition(e)


@router.put(
    "/{test_id}",
    response_model=TestOut,
    summary="Remplacer la définition d'un test",
)
async def update_test(test_id: str, payload: TestIn, db: AsyncSession = Depends(get_db)):
    try:
        return mapper.definition_to_dict(await service.update_test(db, test_id, payload))
    except TestNotFound as e:
        raise _not_found(e)
    except DefinitionRejected as e:
        raise _rejected_definition(e)


@router.patch(
    "/{test_id}/publish",
    response_model=TestOut,
    summary="Publier / dépublier un test",
)
async def publish_test(test_id: str, payload: PublishIn, db: AsyncSession = Depends(get_db)):
    """La publication exige une définition complète (validation stricte)."""
    try:
        return mapper.definition_to_dict(await service.set_published(db, test_id, payload.is_published))
    except TestNotFound as e:
        raise _not_found(e)
    except DefinitionRejected as e:
        raise _rejected_definition(e)


@router.delete(
    "/{test_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer un test",
)
async def delete_test(test_id: str, db: AsyncSession = Depends(get_db)):
    try:
        await service.delete_test(db, test_id)
    except TestNotFound as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─────────────────────────────────────────────
# TENTATIVES
# ─────────────────────────────────────────────

@router.post(
    "/{test_id}/attempts",
    response_model=AttemptOut,
    status_code=status.HTTP_201_CREATED,
    summary="Soumettre les réponses d'un test",
)
async def submit_attempt(test_id: str, payload: AttemptIn, db: AsyncSession = Depends(get_db)):
    """
    Agrège les réponses, résout le résultat (premier qui correspond)
    et enregistre la tentative. result_id est null si aucun résultat ne correspond.
    """
    try:
        return await service.submit_attempt(db, test_id, payload.answers)
    except TestNotFound as e:
        raise _not_found(e)
    except AnswersRejected as e:
        raise _rejected_answers(e)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))


@router.get(
    "/{test_id}/attempts",
    response_model=List[AttemptOut],
    summary="Historique des tentatives d'un test",
)
async def list_attempts(test_id: str, db: AsyncSession = Depends(get_db)):
    try:
        return await service.get_attempts(db, test_id)
    except TestNotFound as e:
        raise _not_found(e)
