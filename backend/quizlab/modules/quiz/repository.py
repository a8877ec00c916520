# modules/quiz/repository.py
"""
Accès DB pour le module quiz.
Toute la logique SQL est ici : le service n'écrit jamais de query directe
et l'engine ne voit que des définitions déjà hydratées.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from quizlab.engine.definition.model import Answer, Test as TestDefinition
from quizlab.engine.scoring.resolver import AttemptEvaluation
from quizlab.modules.quiz import mapper
from quizlab.shared.models import Question, QuestionOption, Test, TestResult, UserResponse


def _with_children():
    return (
        selectinload(Test.questions).selectinload(Question.options),
        selectinload(Test.results),
    )


class QuizRepository:

    # ─────────────────────────────────────────────
    # LECTURE
    # ─────────────────────────────────────────────

    async def get_all_tests(self, db: AsyncSession) -> List[Tuple[Test, int]]:
        """Tous les tests avec leur nombre de tentatives (count groupé, 0 si aucune)."""
        counts = (
            select(UserResponse.test_id, func.count(UserResponse.id).label("n_responses"))
            .group_by(UserResponse.test_id)
            .subquery()
        )
        r = await db.execute(
            select(Test, func.coalesce(counts.c.n_responses, 0))
            .outerjoin(counts, counts.c.test_id == Test.id)
            .options(*_with_children())
        )
        return [(row, n) for row, n in r.all()]

    async def get_test(self, db: AsyncSession, test_id: str) -> Optional[Test]:
        r = await db.execute(
            select(Test).where(Test.id == test_id).options(*_with_children())
        )
        return r.scalar_one_or_none()

    async def get_slugs(self, db: AsyncSession, exclude_test_id: Optional[str] = None) -> List[str]:
        """Slugs des AUTRES tests, pour la vérification d'unicité dans l'engine."""
        stmt = select(Test.slug)
        if exclude_test_id is not None:
            stmt = stmt.where(Test.id != exclude_test_id)
        r = await db.execute(stmt)
        return list(r.scalars().all())

    async def get_foreign_ids(
        self, db: AsyncSession, ids: Iterable[str], exclude_test_id: Optional[str] = None,
    ) -> Set[str]:
        """
        Parmi `ids`, ceux déjà possédés par un AUTRE test
        (test, question, option ou résultat).
        """
        ids = list(ids)
        if not ids:
            return set()
        queries = (
            select(Test.id).where(Test.id.in_(ids)),
            select(Question.id).where(Question.id.in_(ids)),
            select(QuestionOption.id)
            .join(Question, QuestionOption.question_id == Question.id)
            .where(QuestionOption.id.in_(ids)),
            select(TestResult.id).where(TestResult.id.in_(ids)),
        )
        owners = (Test.id, Question.test_id, Question.test_id, TestResult.test_id)
        found: Set[str] = set()
        for stmt, owner in zip(queries, owners):
            if exclude_test_id is not None:
                stmt = stmt.where(owner != exclude_test_id)
            r = await db.execute(stmt)
            found.update(r.scalars().all())
        return found

    # ─────────────────────────────────────────────
    # ÉCRITURE DÉFINITION
    # ─────────────────────────────────────────────

    async def create_test(self, db: AsyncSession, definition: TestDefinition) -> Optional[Test]:
        """None si une contrainte d'unicité saute (slug ou id pris entre-temps)."""
        try:
            db.add(mapper.definition_to_orm(definition))
            await db.commit()
        except IntegrityError:
            await db.rollback()
            return None
        return await self.get_test(db, definition.id)

    async def replace_test(self, db: AsyncSession, row: Test, definition: TestDefinition) -> Optional[Test]:
        """
        Remplace infos, questions et résultats.
        merge() conserve les lignes dont l'id existe déjà (les tentatives
        gardent leur result_id), delete-orphan supprime les disparues.
        Les ids possédés par un autre test doivent avoir été refusés avant
        (get_foreign_ids) : merge() les rattacherait à ce test.
        None si une contrainte d'unicité saute.
        """
        try:
            for key, value in mapper.info_to_record(definition).items():
                setattr(row, key, value)
            row.questions = [await db.merge(q) for q in mapper.questions_to_orm(definition)]
            row.results = [await db.merge(r) for r in mapper.results_to_orm(definition)]
            await db.commit()
        except IntegrityError:
            await db.rollback()
            return None
        return await self.get_test(db, definition.id)

    async def set_published(self, db: AsyncSession, row: Test, is_published: bool) -> Test:
        row.is_published = is_published
        await db.commit()
        return row

    async def delete_test(self, db: AsyncSession, row: Test) -> None:
        await db.delete(row)
        await db.commit()

    # ─────────────────────────────────────────────
    # TENTATIVES
    # ─────────────────────────────────────────────

    async def save_attempt(
        self,
        db: AsyncSession,
        test_id: str,
        answers: Sequence[Answer],
        evaluation: AttemptEvaluation,
    ) -> UserResponse:
        result = evaluation.result
        db_obj = UserResponse(
            test_id=test_id,
            result_id=result.id if result else None,
            answers=[{"question_id": a.question_id, "option_id": a.option_id} for a in answers],
            total_score=evaluation.aggregate.total_score,
            pattern=list(evaluation.aggregate.pattern),
        )
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get_attempts(self, db: AsyncSession, test_id: str) -> List[UserResponse]:
        r = await db.execute(
            select(UserResponse)
            .where(UserResponse.test_id == test_id)
            .order_by(UserResponse.created_at.desc())
        )
        return r.scalars().all()
