"""업적 서비스 — 달성 조건 평가, 잠금 해제, 보상 지급, 관리자 CRUD.

Achievement Service — Criteria evaluation, idempotent unlocking with rewards,
and admin CRUD.

Criteria types:
    - lessons_completed: 완료 레슨 수 (Lessons completed; per course when scoped)
    - courses_completed: 완료 코스 수 (Courses completed; 0/1 when scoped)
    - level_reached: 도달 레벨 (Current level)
    - certificates_earned: 유효 인증서 수 (Non-revoked certificates)
    - perfect_final_exam: 100점 최종 시험 수 (Graded final exams scored 100)
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.achievement import (
    CRITERIA_CERTIFICATES_EARNED,
    CRITERIA_COURSES_COMPLETED,
    CRITERIA_LESSONS_COMPLETED,
    CRITERIA_LEVEL_REACHED,
    CRITERIA_PERFECT_FINAL_EXAM,
    Achievement,
    AchievementUnlock,
)
from amanoba.models.certification import ATTEMPT_GRADED, Certificate, FinalExamAttempt
from amanoba.models.course import Course
from amanoba.models.player import PlayerProgression
from amanoba.models.points import SOURCE_ACHIEVEMENT
from amanoba.models.progress import PROGRESS_COMPLETED, CourseProgress
from amanoba.repositories.achievement_repository import achievement_repository, achievement_unlock_repository
from amanoba.repositories.course_repository import course_repository
from amanoba.repositories.progress_repository import course_progress_repository
from amanoba.schemas.profile import (
    AchievementCreate,
    AchievementResponse,
    AchievementUpdate,
    PlayerAchievementResponse,
)
from amanoba.services.points_service import points_service
from amanoba.services.progression_service import progression_service
from amanoba.utils.exceptions import DuplicateError, NotFoundError
from amanoba.utils.log import get_logger

logger = get_logger(__name__)


class AchievementService:
    """업적 관련 비즈니스 로직을 처리하는 서비스.

    Service handling achievement business logic.
    """

    async def _course_codes(self, db: AsyncSession, achievements: list[Achievement]) -> dict[UUID, str]:
        ids: list[UUID] = [a.course_id for a in achievements if a.course_id is not None]
        courses = await course_repository.list_by_ids(db, ids)
        return {c.id: c.course_id for c in courses}

    def _to_response(self, achievement: Achievement, course_codes: dict[UUID, str]) -> AchievementResponse:
        return AchievementResponse(
            id=str(achievement.id),
            key=achievement.key,
            name=achievement.name,
            description=achievement.description,
            category=achievement.category,
            criteria_type=achievement.criteria_type,
            criteria_target=achievement.criteria_target,
            course_id=course_codes.get(achievement.course_id) if achievement.course_id else None,
            points_reward=achievement.points_reward,
            xp_reward=achievement.xp_reward,
            is_active=achievement.is_active,
            unlock_count=achievement.unlock_count,
        )

    async def _current_value(
        self,
        db: AsyncSession,
        player_id: UUID,
        achievement: Achievement,
        progression: PlayerProgression,
    ) -> int:
        """업적 조건의 현재 값을 계산합니다 (Current metric value for an achievement's criteria)."""
        criteria: str = achievement.criteria_type
        course_pk: UUID | None = achievement.course_id

        if criteria == CRITERIA_LEVEL_REACHED:
            return progression.level

        if criteria in (CRITERIA_LESSONS_COMPLETED, CRITERIA_COURSES_COMPLETED) and course_pk is not None:
            progress: CourseProgress | None = await course_progress_repository.get_for_player(db, player_id, course_pk)
            if progress is None:
                return 0
            if criteria == CRITERIA_LESSONS_COMPLETED:
                return len(progress.completed_days or [])
            return 1 if progress.status == PROGRESS_COMPLETED else 0

        if criteria == CRITERIA_LESSONS_COMPLETED:
            return progression.lessons_completed
        if criteria == CRITERIA_COURSES_COMPLETED:
            return progression.courses_completed

        if criteria == CRITERIA_CERTIFICATES_EARNED:
            query = select(func.count()).select_from(Certificate).where(
                Certificate.player_id == player_id,
                Certificate.is_revoked.is_(False),
            )
            if course_pk is not None:
                query = query.where(Certificate.course_id == course_pk)
            return (await db.execute(query)).scalar() or 0

        if criteria == CRITERIA_PERFECT_FINAL_EXAM:
            query = select(func.count()).select_from(FinalExamAttempt).where(
                FinalExamAttempt.player_id == player_id,
                FinalExamAttempt.status == ATTEMPT_GRADED,
                FinalExamAttempt.score_percent_integer == 100,
            )
            if course_pk is not None:
                query = query.where(FinalExamAttempt.course_id == course_pk)
            return (await db.execute(query)).scalar() or 0

        return 0

    async def check_and_unlock(
        self,
        db: AsyncSession,
        player_id: UUID,
    ) -> list[Achievement]:
        """달성 가능한 업적을 모두 잠금 해제합니다.

        Unlock every active achievement whose criteria the player now meets.
        Unlocking is idempotent: already unlocked achievements are skipped.
        Rewards are paid immediately; XP rewards may level the player up,
        so evaluation repeats until nothing new unlocks.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player_id: 플레이어 ID (Player UUID)

        Returns:
            list[Achievement]: 새로 달성한 업적 목록 (Newly unlocked achievements)
        """
        achievements = list(await achievement_repository.list_active(db))
        unlocked_ids: set[UUID] = {
            u.achievement_id for u in await achievement_unlock_repository.list_for_player(db, player_id)
        }
        newly_unlocked: list[Achievement] = []

        changed: bool = True
        while changed:
            changed = False
            progression: PlayerProgression = await progression_service.get_or_create(db, player_id)
            for achievement in achievements:
                if achievement.id in unlocked_ids:
                    continue
                value: int = await self._current_value(db, player_id, achievement, progression)
                if value < achievement.criteria_target:
                    continue

                await achievement_unlock_repository.create(db, {
                    "player_id": player_id,
                    "achievement_id": achievement.id,
                    "current_value": value,
                })
                achievement.unlock_count = achievement.unlock_count + 1
                unlocked_ids.add(achievement.id)
                newly_unlocked.append(achievement)
                changed = True

                if achievement.points_reward > 0:
                    await points_service.credit(
                        db,
                        player_id,
                        achievement.points_reward,
                        source_type=SOURCE_ACHIEVEMENT,
                        description=f"Achievement unlocked: {achievement.name}",
                        reference_id=str(achievement.id),
                    )
                if achievement.xp_reward > 0:
                    await progression_service.add_xp(db, player_id, achievement.xp_reward, "achievement")
                logger.info(
                    "achievement_unlocked",
                    player_id=str(player_id),
                    achievement_key=achievement.key,
                    value=value,
                )
                # 보상으로 레벨이 바뀌었을 수 있음 — re-read progression before the next check
                break

        await db.flush()
        return newly_unlocked

    async def check_and_unlock_safely(
        self,
        db: AsyncSession,
        player_id: UUID,
    ) -> list[Achievement]:
        """업적 확인 실패가 호출자 요청을 실패시키지 않도록 감쌉니다.

        Run check_and_unlock inside a SAVEPOINT. A failure rolls back only the
        achievement writes (unlock rows, rewards), is logged with its
        traceback and reported as "nothing unlocked", so the caller's lesson
        completion or exam grading still commits.
        """
        try:
            async with db.begin_nested():
                return await self.check_and_unlock(db, player_id)
        except Exception:
            logger.exception("achievement_check_failed", player_id=str(player_id))
            return []

    async def list_for_player(
        self,
        db: AsyncSession,
        player_id: UUID,
    ) -> list[PlayerAchievementResponse]:
        """모든 활성 업적과 플레이어의 달성 여부를 반환합니다.

        Return every active achievement with the player's unlock state.
        """
        achievements = list(await achievement_repository.list_active(db))
        unlocks: dict[UUID, datetime] = {
            u.achievement_id: u.unlocked_at for u in await achievement_unlock_repository.list_for_player(db, player_id)
        }
        course_codes: dict[UUID, str] = await self._course_codes(db, achievements)
        return [
            PlayerAchievementResponse(
                **self._to_response(a, course_codes).model_dump(),
                unlocked=a.id in unlocks,
                unlocked_at=unlocks.get(a.id),
            )
            for a in achievements
        ]

    async def list_all(self, db: AsyncSession) -> list[AchievementResponse]:
        """관리자용 전체 업적 목록 (All achievements, including inactive)."""
        achievements = list(await achievement_repository.get_all(db, order_by=Achievement.created_at))
        course_codes: dict[UUID, str] = await self._course_codes(db, achievements)
        return [self._to_response(a, course_codes) for a in achievements]

    async def create(self, db: AsyncSession, data: AchievementCreate) -> AchievementResponse:
        """업적을 생성합니다.

        Create an achievement definition.

        Raises:
            DuplicateError: 키 중복 (Duplicate key)
            NotFoundError: 범위 코스를 찾을 수 없음 (Scoped course not found)
        """
        if await achievement_repository.exists(db, {"key": data.key}):
            raise DuplicateError("Achievement key already exists")

        values = data.model_dump()
        course: Course | None = None
        if data.course_id:
            course = await course_repository.get_by_code(db, data.course_id)
            if course is None:
                raise NotFoundError("Course not found")
        values["course_id"] = course.id if course else None

        achievement: Achievement = await achievement_repository.create(db, values)
        return self._to_response(achievement, {course.id: course.course_id} if course else {})

    async def update(self, db: AsyncSession, achievement_id: UUID, data: AchievementUpdate) -> AchievementResponse:
        achievement: Achievement | None = await achievement_repository.update(
            db, achievement_id, data.model_dump(exclude_unset=True)
        )
        if achievement is None:
            raise NotFoundError("Achievement not found")
        course_codes: dict[UUID, str] = await self._course_codes(db, [achievement])
        return self._to_response(achievement, course_codes)


# 싱글턴 인스턴스 — Singleton instance
achievement_service: AchievementService = AchievementService()
