"""연속 기록 서비스 — 일일 로그인 연속 일수와 마일스톤 보상.

Streak Service — Daily login streak tracking and milestone rewards.

Rules (UTC calendar days):
    - 첫 로그인: 연속 1일 (First login starts a streak of 1)
    - 같은 날 재로그인: 변화 없음 (Another login the same day changes nothing)
    - 전날 로그인 후: +1, 최고 기록 갱신 (Login the day after: +1, best updated)
    - 그 외: 1일로 재시작 (Any longer gap restarts the streak at 1)

Crossing a milestone (3, 7, 14, 30, 50, 100 days) credits
milestone * STREAK_MILESTONE_POINTS_PER_DAY bonus points once per run.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.points import SOURCE_STREAK, TX_BONUS
from amanoba.models.streak import STREAK_DAILY_LOGIN, Streak
from amanoba.repositories.streak_repository import streak_repository
from amanoba.schemas.profile import StreakResponse
from amanoba.services.points_service import points_service
from amanoba.utils.log import get_logger

logger = get_logger(__name__)

STREAK_MILESTONES: tuple[int, ...] = (3, 7, 14, 30, 50, 100)
STREAK_MILESTONE_POINTS_PER_DAY: int = 10


def _as_utc(value: datetime) -> datetime:
    # SQLite는 tz 정보를 보존하지 않음 — naive values are stored as UTC
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value.astimezone(timezone.utc)


def milestone_crossed(current: int, previous: int) -> int | None:
    """이번 증가로 넘은 마일스톤 (Milestone crossed going from ``previous`` to ``current``)."""
    for milestone in STREAK_MILESTONES:
        if current >= milestone > previous:
            return milestone
    return None


@dataclass
class StreakResult:
    """로그인 연속 기록 갱신 결과 (Outcome of one login streak update)."""

    current_streak: int
    best_streak: int
    continued: bool = False
    milestone: int | None = None
    points_awarded: int = 0


class StreakService:
    """일일 로그인 연속 기록 서비스 (Daily login streak service)."""

    async def update_daily_login(
        self,
        db: AsyncSession,
        player_id: UUID,
        now: datetime | None = None,
    ) -> StreakResult:
        """로그인 시 연속 기록을 갱신합니다.

        Record a login for today and pay the milestone reward when the streak
        crosses one.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player_id: 플레이어 ID (Player UUID)
            now: 기준 시각 (Reference time, defaults to the current UTC time)

        Returns:
            StreakResult: 갱신 결과 (Updated streak state)
        """
        now = now or datetime.now(timezone.utc)
        today: date = now.date()
        streak: Streak | None = await streak_repository.get_for_player(db, player_id, STREAK_DAILY_LOGIN)

        if streak is None:
            streak = await streak_repository.create(db, {
                "player_id": player_id,
                "streak_type": STREAK_DAILY_LOGIN,
                "current_streak": 1,
                "best_streak": 1,
                "last_activity_at": now,
                "streak_started_at": now,
                "milestones": [],
            })
            return StreakResult(current_streak=1, best_streak=1)

        last_day: date = _as_utc(streak.last_activity_at).date()
        if last_day == today:
            return StreakResult(current_streak=streak.current_streak, best_streak=streak.best_streak)

        if last_day != today - timedelta(days=1):
            logger.info("login_streak_broken", player_id=str(player_id), broken_streak=streak.current_streak)
            streak.current_streak = 1
            streak.last_activity_at = now
            streak.streak_started_at = now
            await db.flush()
            return StreakResult(current_streak=1, best_streak=streak.best_streak)

        previous: int = streak.current_streak
        streak.current_streak = previous + 1
        streak.best_streak = max(streak.best_streak, streak.current_streak)
        streak.last_activity_at = now
        result = StreakResult(current_streak=streak.current_streak, best_streak=streak.best_streak, continued=True)

        milestone: int | None = milestone_crossed(streak.current_streak, previous)
        if milestone is not None:
            result.milestone = milestone
            result.points_awarded = milestone * STREAK_MILESTONE_POINTS_PER_DAY
            # JSON 컬럼은 재할당 — reassign so the change is tracked
            streak.milestones = [
                *(streak.milestones or []),
                {"value": milestone, "achieved_at": now.isoformat(), "points": result.points_awarded},
            ]
            await points_service.credit(
                db,
                player_id,
                result.points_awarded,
                source_type=SOURCE_STREAK,
                description=f"Daily login streak: {milestone} days",
                reference_id=f"{STREAK_DAILY_LOGIN}:{milestone}",
                tx_type=TX_BONUS,
            )
        await db.flush()

        logger.info(
            "login_streak_continued",
            player_id=str(player_id),
            current_streak=streak.current_streak,
            milestone=milestone,
        )
        return result

    async def get_daily_login(
        self,
        db: AsyncSession,
        player_id: UUID,
        now: datetime | None = None,
    ) -> StreakResponse:
        """현재 연속 기록을 조회합니다.

        A streak whose last login is older than yesterday has lapsed and
        reports a current value of 0; the best value is kept.
        """
        streak: Streak | None = await streak_repository.get_for_player(db, player_id, STREAK_DAILY_LOGIN)
        if streak is None:
            return StreakResponse()
        today: date = (now or datetime.now(timezone.utc)).date()
        last_day: date = _as_utc(streak.last_activity_at).date()
        current: int = streak.current_streak if last_day >= today - timedelta(days=1) else 0
        return StreakResponse(
            current_streak=current,
            best_streak=streak.best_streak,
            last_activity_at=streak.last_activity_at,
        )


# 싱글턴 인스턴스 — Singleton instance
streak_service: StreakService = StreakService()
