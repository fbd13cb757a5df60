"""대시보드 서비스 — 관리자 플랫폼 통계 집계.

Dashboard Service — Platform-wide counters for the admin stats view.
"""

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.certification import ATTEMPT_GRADED, Certificate, FinalExamAttempt
from amanoba.models.course import Course, Lesson
from amanoba.models.player import Player
from amanoba.models.progress import PROGRESS_COMPLETED, CourseProgress
from amanoba.models.question import QuizQuestion
from amanoba.schemas.admin import StatsResponse


class DashboardService:
    """대시보드 서비스.

    Aggregation service for the admin stats endpoint.
    """

    async def _scalar(self, db: AsyncSession, query) -> int:
        return (await db.execute(query)).scalar() or 0

    async def get_stats(self, db: AsyncSession) -> StatsResponse:
        """플랫폼 통계 집계."""
        certificates = (await db.execute(
            select(
                func.count(Certificate.id).label("total"),
                func.sum(case((Certificate.is_revoked.is_(True), 1), else_=0)).label("revoked"),
            )
        )).one()
        attempts = (await db.execute(
            select(
                func.count(FinalExamAttempt.id).label("graded"),
                func.sum(case((FinalExamAttempt.passed.is_(True), 1), else_=0)).label("passed"),
            ).where(FinalExamAttempt.status == ATTEMPT_GRADED)
        )).one()

        graded: int = attempts.graded or 0
        passed: int = attempts.passed or 0
        return StatsResponse(
            players=await self._scalar(db, select(func.count()).select_from(Player)),
            active_courses=await self._scalar(
                db, select(func.count()).select_from(Course).where(Course.is_active.is_(True))
            ),
            lessons=await self._scalar(db, select(func.count()).select_from(Lesson)),
            questions=await self._scalar(
                db, select(func.count()).select_from(QuizQuestion).where(QuizQuestion.is_active.is_(True))
            ),
            enrolments=await self._scalar(db, select(func.count()).select_from(CourseProgress)),
            completed_courses=await self._scalar(
                db, select(func.count()).select_from(CourseProgress).where(CourseProgress.status == PROGRESS_COMPLETED)
            ),
            certificates_issued=certificates.total or 0,
            certificates_revoked=certificates.revoked or 0,
            graded_attempts=graded,
            pass_rate=round(passed / graded * 100, 1) if graded > 0 else 0,
        )


# 싱글턴 인스턴스 — Singleton instance
dashboard_service: DashboardService = DashboardService()
