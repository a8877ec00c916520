# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Trois couches :
    1. Engine  : fonctions pures, aucun mock nécessaire (factories de définitions)
    2. Service : repository mocké via pytest-mock, lignes ORM en SimpleNamespace
    3. Router  : httpx.AsyncClient + dependency_overrides FastAPI
"""
import pytest
from types import SimpleNamespace
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from quizlab.main import app
from quizlab.core.database import get_db
from quizlab.engine.definition.model import (
    OPEN_UPPER,
    Option,
    PatternCondition,
    Question,
    Result,
    ScoreRangeCondition,
    Test,
    normalize,
)
from quizlab.modules.quiz.mapper import condition_to_record


# ── Factories de définitions (engine) ─────────────────────────────────────────

def make_option(id: str = "o1", score: int = 0, tag=None, text: str = "Option") -> Option:
    return Option(id=id, text=text, score=score, tag=tag)


def make_question(id: str = "q1", scores=(0, 1), tags=None, prompt: str = "Question ?") -> Question:
    """Options "<id>-o1", "<id>-o2", ... avec les scores (et tags) donnés."""
    tags = tags or [None] * len(scores)
    return Question(
        id=id,
        prompt=prompt,
        options=tuple(
            make_option(id=f"{id}-o{j}", score=s, tag=t, text=f"Réponse {j}")
            for j, (s, t) in enumerate(zip(scores, tags), start=1)
        ),
    )


def make_range_result(id: str = "r1", lower: int = 0, upper=OPEN_UPPER, title: str = "Résultat") -> Result:
    return Result(id=id, title=title, condition=ScoreRangeCondition(lower=lower, upper=upper))


def make_pattern_result(id: str = "p1", tags=("A",), ordered: bool = True, title: str = "Profil") -> Result:
    return Result(id=id, title=title, condition=PatternCondition(tags=tuple(tags), ordered=ordered))


def make_test(questions=(), results=(), **kwargs) -> Test:
    """Test normalisé (back-références posées, ordres 1..N)."""
    defaults = {
        "id": "t1",
        "title": "Quel voyageur êtes-vous ?",
        "slug": "quel-voyageur",
        "description": "Un test court.",
        "emoji": "🧭",
        "start_message": "C'est parti !",
        "created_at": datetime(2025, 1, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return normalize(Test(questions=tuple(questions), results=tuple(results), **defaults))


def low_high_test(**kwargs) -> Test:
    """
    Q1 : options 0 / 5, Q2 : options 0 / 3
    Résultats : [0, 4] → "Low", [5, 8] → "High"
    """
    return make_test(
        questions=[make_question("q1", scores=(0, 5)), make_question("q2", scores=(0, 3))],
        results=[
            make_range_result("low", 0, 4, title="Low"),
            make_range_result("high", 5, 8, title="High"),
        ],
        **kwargs,
    )


def tagged_test(**kwargs) -> Test:
    """Trois questions, options taguées A / B (score 1 / 2)."""
    return make_test(
        questions=[
            make_question(f"q{i}", scores=(1, 2), tags=("A", "B"))
            for i in range(1, 4)
        ],
        **kwargs,
    )


# ── Factories de lignes ORM (SimpleNamespace, léger, sans ORM) ───────────────

def make_test_row(definition: Test = None, **kwargs) -> SimpleNamespace:
    """Ligne `tests` avec ses questions / options / résultats chargés."""
    definition = definition or low_high_test()
    questions = [
        SimpleNamespace(
            id=q.id,
            test_id=definition.id,
            order_index=q.order_index,
            text=q.prompt,
            options=[
                SimpleNamespace(
                    id=o.id, question_id=q.id, order_index=j,
                    text=o.text, score=o.score, tag=o.tag,
                )
                for j, o in enumerate(q.options, start=1)
            ],
        )
        for q in definition.questions
    ]
    results = []
    for i, r in enumerate(definition.results, start=1):
        condition_type, condition_value = condition_to_record(r.condition)
        results.append(SimpleNamespace(
            id=r.id,
            test_id=definition.id,
            order_index=i,
            title=r.title,
            description=r.description,
            keywords=list(r.keywords),
            recommendations=list(r.recommendations),
            condition_type=condition_type,
            condition_value=condition_value,
        ))
    defaults = {
        "id": definition.id,
        "title": definition.title,
        "slug": definition.slug,
        "category_id": definition.category_id,
        "description": definition.description,
        "emoji": definition.emoji,
        "start_message": definition.start_message,
        "is_published": definition.is_published,
        "tags": list(definition.tags),
        "created_at": definition.created_at,
        "questions": questions,
        "results": results,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_attempt_row(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "test_id": "t1",
        "result_id": "high",
        "answers": [
            {"question_id": "q1", "option_id": "q1-o2"},
            {"question_id": "q2", "option_id": "q2-o2"},
        ],
        "total_score": 8,
        "pattern": [],
        "created_at": datetime(2025, 3, 1, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── Payloads API ──────────────────────────────────────────────────────────────

def low_high_payload(**kwargs) -> dict:
    """Équivalent JSON (TestIn) de low_high_test()."""
    payload = {
        "id": "t1",
        "title": "Quel voyageur êtes-vous ?",
        "slug": "quel-voyageur",
        "questions": [
            {"id": "q1", "prompt": "Question ?", "options": [
                {"id": "q1-o1", "text": "Réponse 1", "score": 0},
                {"id": "q1-o2", "text": "Réponse 2", "score": 5},
            ]},
            {"id": "q2", "prompt": "Question ?", "options": [
                {"id": "q2-o1", "text": "Réponse 1", "score": 0},
                {"id": "q2-o2", "text": "Réponse 2", "score": 3},
            ]},
        ],
        "results": [
            {"id": "low", "title": "Low", "condition": {"type": "score", "min": 0, "max": 4}},
            {"id": "high", "title": "High", "condition": {"type": "score", "min": 5, "max": 8}},
        ],
    }
    payload.update(kwargs)
    return payload


# ── Clients HTTP ──────────────────────────────────────────────────────────────

@pytest.fixture
async def client():
    """Client avec session DB mockée, le service est patché test par test."""
    mock_db = AsyncMock(spec=AsyncSession)
    app.dependency_overrides[get_db] = lambda: mock_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    return AsyncMock(spec=AsyncSession)
