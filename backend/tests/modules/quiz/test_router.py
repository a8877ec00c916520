# tests/modules/quiz/test_router.py
"""
Tests HTTP pour modules.quiz.router

Couverture :
    GET    /tests                       → 200 liste, paramètres transmis au service
    GET    /tests/{id}                  → 200 / 404
    POST   /tests                       → 201 / 422 (violations) / 422 (schéma)
    PUT    /tests/{id}                  → 200 / 404
    PATCH  /tests/{id}/publish          → 200 / 422
    DELETE /tests/{id}                  → 204 / 404
    POST   /tests/validate              → 200 avec la liste des violations
    POST   /tests/preview               → 200 (pipeline réel) / 422 (réponses)
    POST   /tests/{id}/attempts         → 201 / 403 / 404 / 422
    GET    /tests/{id}/attempts         → 200
"""
import pytest
from unittest.mock import AsyncMock

from quizlab.engine.definition.validation import ValidationResult, Violation
from quizlab.engine.scoring.aggregator import AnswerIssue, MalformedAnswerError
from quizlab.modules.quiz.service import AnswersRejected, DefinitionRejected, TestNotFound
from quizlab.shared.enums import AnswerIssueKind, CatalogueSort, CatalogueStatus, ViolationKind
from tests.conftest import low_high_payload, low_high_test, make_attempt_row

pytestmark = pytest.mark.router

SERVICE = "quizlab.modules.quiz.router.service"

HIGH_ANSWERS = [
    {"question_id": "q1", "option_id": "q1-o2"},
    {"question_id": "q2", "option_id": "q2-o2"},
]


def _rejected(*kinds):
    return DefinitionRejected(ValidationResult(violations=tuple(
        Violation(kind, "t1", "message") for kind in kinds
    )))


def _bad_answers():
    return AnswersRejected(MalformedAnswerError(issues=(
        AnswerIssue(AnswerIssueKind.MISSING_QUESTION, "q2"),
    )))


# ── GET /tests ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_liste_200(client, mocker):
    get_catalogue = mocker.patch(
        f"{SERVICE}.get_catalogue",
        AsyncMock(return_value=[(low_high_test(is_published=True), 4)]),
    )
    resp = await client.get("/tests", params={"search": "voyage", "status": "published", "sort_by": "title"})
    assert resp.status_code == 200
    body = resp.json()
    assert body[0]["slug"] == "quel-voyageur"
    assert body[0]["n_questions"] == 2
    assert body[0]["n_responses"] == 4
    kwargs = get_catalogue.call_args.kwargs
    assert kwargs["search"] == "voyage"
    assert kwargs["status"] == CatalogueStatus.PUBLISHED
    assert kwargs["sort_by"] == CatalogueSort.TITLE


@pytest.mark.asyncio
async def test_liste_statut_invalide_422(client):
    resp = await client.get("/tests", params={"status": "archived"})
    assert resp.status_code == 422


# ── GET /tests/{id} ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_get_test_200(client, mocker):
    mocker.patch(f"{SERVICE}.get_test", AsyncMock(return_value=low_high_test()))
    resp = await client.get("/tests/t1")
    assert resp.status_code == 200
    body = resp.json()
    assert [q["order_index"] for q in body["questions"]] == [1, 2]
    assert body["results"][1]["condition"] == {"type": "score", "min": 5, "max": 8}


@pytest.mark.asyncio
async def test_get_test_404(client, mocker):
    mocker.patch(f"{SERVICE}.get_test", AsyncMock(side_effect=TestNotFound("absent")))
    resp = await client.get("/tests/absent")
    assert resp.status_code == 404


# ── POST /tests ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_creation_201(client, mocker):
    mocker.patch(f"{SERVICE}.create_test", AsyncMock(return_value=low_high_test()))
    resp = await client.post("/tests", json=low_high_payload())
    assert resp.status_code == 201
    assert resp.json()["id"] == "t1"


@pytest.mark.asyncio
async def test_creation_definition_refusee_422(client, mocker):
    mocker.patch(
        f"{SERVICE}.create_test",
        AsyncMock(side_effect=_rejected(ViolationKind.DUPLICATE_SLUG, ViolationKind.INVALID_SCORE_RANGE)),
    )
    resp = await client.post("/tests", json=low_high_payload())
    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert detail["is_valid"] is False
    assert [v["kind"] for v in detail["violations"]] == ["duplicate_slug", "invalid_score_range"]


@pytest.mark.asyncio
async def test_creation_schema_invalide_422(client):
    resp = await client.post("/tests", json=low_high_payload(emoji="🧭" * 20))
    assert resp.status_code == 422


# ── PUT /tests/{id} ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_mise_a_jour_200(client, mocker):
    update = mocker.patch(f"{SERVICE}.update_test", AsyncMock(return_value=low_high_test(title="Modifié")))
    resp = await client.put("/tests/t1", json=low_high_payload(title="Modifié"))
    assert resp.status_code == 200
    assert resp.json()["title"] == "Modifié"
    assert update.call_args.args[1] == "t1"


@pytest.mark.asyncio
async def test_mise_a_jour_404(client, mocker):
    mocker.patch(f"{SERVICE}.update_test", AsyncMock(side_effect=TestNotFound("absent")))
    resp = await client.put("/tests/absent", json=low_high_payload())
    assert resp.status_code == 404


# ── PATCH /tests/{id}/publish ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_publication_200(client, mocker):
    publish = mocker.patch(f"{SERVICE}.set_published", AsyncMock(return_value=low_high_test(is_published=True)))
    resp = await client.patch("/tests/t1/publish", json={"is_published": True})
    assert resp.status_code == 200
    assert resp.json()["is_published"] is True
    assert publish.call_args.args[1:] == ("t1", True)


@pytest.mark.asyncio
async def test_publication_incomplete_422(client, mocker):
    mocker.patch(f"{SERVICE}.set_published", AsyncMock(side_effect=_rejected(ViolationKind.NO_RESULTS)))
    resp = await client.patch("/tests/t1/publish", json={"is_published": True})
    assert resp.status_code == 422
    assert resp.json()["detail"]["violations"][0]["kind"] == "no_results"


# ── DELETE /tests/{id} ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_suppression_204(client, mocker):
    mocker.patch(f"{SERVICE}.delete_test", AsyncMock(return_value=None))
    resp = await client.delete("/tests/t1")
    assert resp.status_code == 204


@pytest.mark.asyncio
async def test_suppression_404(client, mocker):
    mocker.patch(f"{SERVICE}.delete_test", AsyncMock(side_effect=TestNotFound("absent")))
    resp = await client.delete("/tests/absent")
    assert resp.status_code == 404


# ── POST /tests/validate ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_validate_200(client, mocker):
    validate = mocker.patch(
        f"{SERVICE}.validate",
        AsyncMock(return_value=ValidationResult(violations=(
            Violation(ViolationKind.EMPTY_PROMPT, "q1", "Énoncé vide."),
        ))),
    )
    resp = await client.post("/tests/validate", json={"definition": low_high_payload(), "strict": True})
    assert resp.status_code == 200
    assert resp.json() == {
        "is_valid": False,
        "violations": [{"kind": "empty_prompt", "entity_id": "q1", "message": "Énoncé vide."}],
    }
    assert validate.call_args.kwargs["strict"] is True


# ── POST /tests/preview (pipeline réel, sans DB) ──────────────────────────────

@pytest.mark.asyncio
async def test_preview_200(client):
    resp = await client.post("/tests/preview", json={"definition": low_high_payload(), "answers": HIGH_ANSWERS})
    assert resp.status_code == 200
    body = resp.json()
    assert body["aggregate"] == {"total_score": 8, "pattern": []}
    assert body["matched"] is True
    assert body["result"]["title"] == "High"
    assert body["warnings"] == []


@pytest.mark.asyncio
async def test_preview_no_match(client):
    definition = low_high_payload(results=[{"id": "expert", "title": "Expert", "condition": {"min": 100}}])
    resp = await client.post("/tests/preview", json={"definition": definition, "answers": HIGH_ANSWERS})
    assert resp.status_code == 200
    body = resp.json()
    assert body["matched"] is False
    assert body["result"] is None
    assert body["uncovered_scores"] == [0, 3, 5, 8]


@pytest.mark.asyncio
async def test_preview_reponses_invalides_422(client):
    resp = await client.post("/tests/preview", json={"definition": low_high_payload(), "answers": HIGH_ANSWERS[:1]})
    assert resp.status_code == 422
    assert resp.json()["detail"]["issues"] == [
        {"kind": "missing_question", "question_id": "q2", "option_id": None},
    ]


# ── POST /tests/{id}/attempts ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_tentative_201(client, mocker):
    mocker.patch(f"{SERVICE}.submit_attempt", AsyncMock(return_value=make_attempt_row()))
    resp = await client.post("/tests/t1/attempts", json={"answers": HIGH_ANSWERS})
    assert resp.status_code == 201
    body = resp.json()
    assert body["result_id"] == "high"
    assert body["total_score"] == 8


@pytest.mark.asyncio
async def test_tentative_no_match_201(client, mocker):
    mocker.patch(f"{SERVICE}.submit_attempt", AsyncMock(return_value=make_attempt_row(result_id=None)))
    resp = await client.post("/tests/t1/attempts", json={"answers": HIGH_ANSWERS})
    assert resp.status_code == 201
    assert resp.json()["result_id"] is None


@pytest.mark.asyncio
async def test_tentative_sans_reponse_422(client):
    resp = await client.post("/tests/t1/attempts", json={"answers": []})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_tentative_test_non_publie_403(client, mocker):
    mocker.patch(f"{SERVICE}.submit_attempt", AsyncMock(side_effect=PermissionError("Test non publié.")))
    resp = await client.post("/tests/t1/attempts", json={"answers": HIGH_ANSWERS})
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_tentative_test_inconnu_404(client, mocker):
    mocker.patch(f"{SERVICE}.submit_attempt", AsyncMock(side_effect=TestNotFound("absent")))
    resp = await client.post("/tests/absent/attempts", json={"answers": HIGH_ANSWERS})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_tentative_reponses_mal_formees_422(client, mocker):
    mocker.patch(f"{SERVICE}.submit_attempt", AsyncMock(side_effect=_bad_answers()))
    resp = await client.post("/tests/t1/attempts", json={"answers": HIGH_ANSWERS[:1]})
    assert resp.status_code == 422
    assert resp.json()["detail"]["issues"][0]["kind"] == "missing_question"


# ── GET /tests/{id}/attempts ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_historique_200(client, mocker):
    mocker.patch(
        f"{SERVICE}.get_attempts",
        AsyncMock(return_value=[make_attempt_row(id=2), make_attempt_row(id=1, result_id=None)]),
    )
    resp = await client.get("/tests/t1/attempts")
    assert resp.status_code == 200
    assert [a["id"] for a in resp.json()] == [2, 1]
