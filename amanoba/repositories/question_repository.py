"""퀴즈 문항 레포지토리 — 레슨 퀴즈 및 최종 시험 풀 쿼리.

Quiz Question Repository — Lesson quiz and final exam pool queries.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.question import QuizQuestion
from amanoba.repositories.base import BaseRepository


class QuestionRepository(BaseRepository[QuizQuestion]):
    """퀴즈 문항 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the quiz_questions table.
    """

    def __init__(self) -> None:
        super().__init__(QuizQuestion)

    def _pool_criteria(self, pool_course_pk: UUID) -> tuple:
        # 최종 시험 풀 — active, course-specific questions of the pool course
        return (
            QuizQuestion.course_id == pool_course_pk,
            QuizQuestion.is_course_specific.is_(True),
            QuizQuestion.is_active.is_(True),
        )

    async def count_pool(self, db: AsyncSession, pool_course_pk: UUID) -> int:
        """최종 시험 풀 문항 수를 셉니다 (Count final exam pool questions)."""
        query: Select = select(func.count(QuizQuestion.id)).where(*self._pool_criteria(pool_course_pk))
        return (await db.execute(query)).scalar() or 0

    async def list_pool_ids(self, db: AsyncSession, pool_course_pk: UUID) -> list[UUID]:
        """최종 시험 풀 문항 ID 목록 (Ids of every final exam pool question)."""
        query: Select = select(QuizQuestion.id).where(*self._pool_criteria(pool_course_pk))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def list_by_lesson(
        self,
        db: AsyncSession,
        lesson_id: str,
        active_only: bool = True,
    ) -> Sequence[QuizQuestion]:
        query: Select = select(QuizQuestion).where(QuizQuestion.lesson_id == lesson_id)
        if active_only:
            query = query.where(QuizQuestion.is_active.is_(True))
        result = await db.execute(query.order_by(QuizQuestion.created_at))
        return result.scalars().all()

    async def list_by_ids(self, db: AsyncSession, ids: list[UUID]) -> Sequence[QuizQuestion]:
        if not ids:
            return []
        result = await db.execute(select(QuizQuestion).where(QuizQuestion.id.in_(ids)))
        return result.scalars().all()

    async def list_by_course(self, db: AsyncSession, course_pk: UUID) -> Sequence[QuizQuestion]:
        result = await db.execute(
            select(QuizQuestion).where(QuizQuestion.course_id == course_pk).order_by(QuizQuestion.created_at)
        )
        return result.scalars().all()

    def build_filter_query(
        self,
        course_pk: UUID | None = None,
        lesson_id: str | None = None,
        difficulty: str | None = None,
        category: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
    ) -> Select:
        """관리자 문항 목록 쿼리를 구성합니다.

        Build the admin question list query. Every filter is optional;
        ``search`` matches the question text case-insensitively.
        """
        query: Select = select(QuizQuestion)
        if course_pk is not None:
            query = query.where(QuizQuestion.course_id == course_pk)
        if lesson_id:
            query = query.where(QuizQuestion.lesson_id == lesson_id)
        if difficulty:
            query = query.where(QuizQuestion.difficulty == difficulty.upper())
        if category:
            query = query.where(QuizQuestion.category == category)
        if is_active is not None:
            query = query.where(QuizQuestion.is_active == is_active)
        if search:
            query = query.where(func.lower(QuizQuestion.question).like(f"%{search.strip().lower()}%"))
        return query.order_by(QuizQuestion.created_at.desc())


# 싱글턴 인스턴스 — Singleton instance
question_repository: QuestionRepository = QuestionRepository()
