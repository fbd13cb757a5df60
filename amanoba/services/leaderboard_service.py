"""리더보드 서비스 — 포인트, XP, 레벨, 완료 레슨, 로그인 연속 기록 기준 순위.

Leaderboard Service — Rankings by points balance, lifetime points, total XP,
level, lessons completed or daily login streak. Only active, non-banned
players are ranked; ties keep the earlier registration first.

Periods:
    all_time 전체 기간, daily 오늘, weekly 이번 주 (일요일 시작), monthly 이번 달.
    Windowed periods (UTC) rank by points earned inside the window and are
    available for the points metrics only; players without earnings in the
    window are not listed.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import Select, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.player import Player, PlayerProgression
from amanoba.models.points import PointsTransaction, PointsWallet
from amanoba.models.streak import STREAK_DAILY_LOGIN, Streak
from amanoba.schemas.profile import LeaderboardEntry, LeaderboardResponse
from amanoba.utils.exceptions import BadRequestError

METRIC_POINTS: str = "points"
METRIC_POINTS_LIFETIME: str = "points_lifetime"
METRIC_XP: str = "xp"
METRIC_LEVEL: str = "level"
METRIC_LESSONS: str = "lessons"
METRIC_STREAK: str = "streak"
LEADERBOARD_METRICS: tuple[str, ...] = (
    METRIC_POINTS, METRIC_POINTS_LIFETIME, METRIC_XP, METRIC_LEVEL, METRIC_LESSONS, METRIC_STREAK,
)
POINTS_METRICS: tuple[str, ...] = (METRIC_POINTS, METRIC_POINTS_LIFETIME)

PERIOD_ALL_TIME: str = "all_time"
PERIOD_DAILY: str = "daily"
PERIOD_WEEKLY: str = "weekly"
PERIOD_MONTHLY: str = "monthly"
LEADERBOARD_PERIODS: tuple[str, ...] = (PERIOD_ALL_TIME, PERIOD_DAILY, PERIOD_WEEKLY, PERIOD_MONTHLY)
MAX_LIMIT: int = 100


def period_start(period: str, now: datetime | None = None) -> datetime | None:
    """기간 시작 시각, 전체 기간은 None (Window start in UTC; None for all_time)."""
    now = now or datetime.now(timezone.utc)
    midnight: datetime = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == PERIOD_DAILY:
        return midnight
    if period == PERIOD_WEEKLY:
        # 주 시작은 일요일 — weeks start on Sunday
        return midnight - timedelta(days=(midnight.weekday() + 1) % 7)
    if period == PERIOD_MONTHLY:
        return midnight.replace(day=1)
    return None


class LeaderboardService:
    """리더보드 조회 서비스 (Leaderboard service)."""

    def _base_query(self, value) -> Select:
        level = func.coalesce(PlayerProgression.level, 1)
        return (
            select(Player.id, Player.display_name, level.label("level"), value.label("value"))
            .outerjoin(PlayerProgression, PlayerProgression.player_id == Player.id)
            .where(Player.is_active.is_(True), Player.is_banned.is_(False))
            .order_by(value.desc(), Player.created_at)
        )

    def _build_query(self, metric: str, now: datetime) -> Select:
        if metric == METRIC_POINTS:
            value = func.coalesce(PointsWallet.current_balance, 0)
            return self._base_query(value).outerjoin(PointsWallet, PointsWallet.player_id == Player.id)
        if metric == METRIC_POINTS_LIFETIME:
            value = func.coalesce(PointsWallet.lifetime_earned, 0)
            return self._base_query(value).outerjoin(PointsWallet, PointsWallet.player_id == Player.id)
        if metric == METRIC_STREAK:
            # 어제 이전에 끊긴 연속 기록은 0 — lapsed streaks rank as 0
            yesterday = now.replace(hour=0, minute=0, second=0, microsecond=0) - timedelta(days=1)
            value = func.coalesce(
                case((Streak.last_activity_at >= yesterday, Streak.current_streak), else_=0), 0
            )
            return self._base_query(value).outerjoin(
                Streak, (Streak.player_id == Player.id) & (Streak.streak_type == STREAK_DAILY_LOGIN)
            )
        if metric == METRIC_XP:
            return self._base_query(func.coalesce(PlayerProgression.total_xp, 0))
        if metric == METRIC_LEVEL:
            return self._base_query(func.coalesce(PlayerProgression.level, 1))
        return self._base_query(func.coalesce(PlayerProgression.lessons_completed, 0))

    def _build_window_query(self, start: datetime) -> Select:
        earned = (
            select(
                PointsTransaction.player_id.label("player_id"),
                func.sum(PointsTransaction.amount).label("earned"),
            )
            .where(PointsTransaction.amount > 0, PointsTransaction.created_at >= start)
            .group_by(PointsTransaction.player_id)
            .subquery()
        )
        return self._base_query(earned.c.earned).join(earned, earned.c.player_id == Player.id)

    async def get_leaderboard(
        self,
        db: AsyncSession,
        metric: str = METRIC_POINTS,
        limit: int = 10,
        period: str = PERIOD_ALL_TIME,
    ) -> LeaderboardResponse:
        """리더보드를 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            metric: 순위 기준 (points | points_lifetime | xp | level | lessons | streak)
            limit: 최대 항목 수 (Max entries, capped at 100)
            period: 기간 (all_time | daily | weekly | monthly)

        Raises:
            BadRequestError: 알 수 없는 지표/기간, 또는 기간을 지원하지 않는 지표
                             (Unknown metric or period, or a period on a non-points metric)
        """
        if metric not in LEADERBOARD_METRICS:
            raise BadRequestError(f"Unknown leaderboard metric: {metric}")
        if period not in LEADERBOARD_PERIODS:
            raise BadRequestError(f"Unknown leaderboard period: {period}")
        if period != PERIOD_ALL_TIME and metric not in POINTS_METRICS:
            raise BadRequestError(f"Period {period} is only available for points leaderboards")

        limit = max(1, min(limit, MAX_LIMIT))
        now: datetime = datetime.now(timezone.utc)
        start: datetime | None = period_start(period, now)
        query: Select = self._build_window_query(start) if start is not None else self._build_query(metric, now)

        result = await db.execute(query.limit(limit))
        entries: list[LeaderboardEntry] = [
            LeaderboardEntry(
                rank=rank,
                player_id=str(row.id),
                display_name=row.display_name,
                level=row.level,
                value=row.value,
            )
            for rank, row in enumerate(result.all(), start=1)
        ]
        return LeaderboardResponse(metric=metric, period=period, entries=entries)


# 싱글턴 인스턴스 — Singleton instance
leaderboard_service: LeaderboardService = LeaderboardService()
