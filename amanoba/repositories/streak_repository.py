"""연속 기록 레포지토리 (Streak repository)."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.streak import Streak
from amanoba.repositories.base import BaseRepository


class StreakRepository(BaseRepository[Streak]):
    """연속 기록 테이블 레포지토리 (Repository for the streaks table)."""

    def __init__(self) -> None:
        super().__init__(Streak)

    async def get_for_player(self, db: AsyncSession, player_id: UUID, streak_type: str) -> Streak | None:
        result = await db.execute(
            select(Streak).where(Streak.player_id == player_id, Streak.streak_type == streak_type)
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
streak_repository: StreakRepository = StreakRepository()
