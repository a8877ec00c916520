# quizlab/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from quizlab.shared.models import Test, Question, ...

→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant la création des tables (Alembic, create_all).
"""

from quizlab.shared.models.Quiz import (
    Test,
    Question,
    QuestionOption,
    TestResult,
    UserResponse,
)

__all__ = [
    "Test",
    "Question",
    "QuestionOption",
    "TestResult",
    "UserResponse",
]
