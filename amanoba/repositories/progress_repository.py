"""코스 진행 레포지토리 — 수강 등록 및 레슨 퀴즈 결과 쿼리.

Course Progress Repository — Enrolment and lesson quiz result queries.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from amanoba.models.progress import AssessmentResult, CourseProgress
from amanoba.repositories.base import BaseRepository


class CourseProgressRepository(BaseRepository[CourseProgress]):
    """코스 진행 레포지토리 (Course progress repository)."""

    def __init__(self) -> None:
        super().__init__(CourseProgress)

    async def get_for_player(
        self,
        db: AsyncSession,
        player_id: UUID,
        course_pk: UUID,
    ) -> CourseProgress | None:
        """플레이어의 코스 진행을 조회합니다 (Player's progress row for a course)."""
        result = await db.execute(
            select(CourseProgress).where(
                CourseProgress.player_id == player_id,
                CourseProgress.course_id == course_pk,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_player(self, db: AsyncSession, player_id: UUID) -> Sequence[CourseProgress]:
        """플레이어의 모든 수강 코스를 코스와 함께 조회합니다.

        All progress rows of a player with the course eagerly loaded,
        most recently accessed first.
        """
        result = await db.execute(
            select(CourseProgress)
            .options(selectinload(CourseProgress.course))
            .where(CourseProgress.player_id == player_id)
            .order_by(CourseProgress.last_accessed_at.desc())
        )
        return result.scalars().all()


class AssessmentResultRepository(BaseRepository[AssessmentResult]):
    """레슨 퀴즈 결과 레포지토리 (Lesson quiz result repository)."""

    def __init__(self) -> None:
        super().__init__(AssessmentResult)


# 싱글턴 인스턴스 — Singleton instances
course_progress_repository: CourseProgressRepository = CourseProgressRepository()
assessment_result_repository: AssessmentResultRepository = AssessmentResultRepository()
