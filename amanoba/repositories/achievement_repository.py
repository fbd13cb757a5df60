"""업적 레포지토리 — 업적 정의 및 달성 기록 쿼리.

Achievement Repository — Achievement definitions and unlock records.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.achievement import Achievement, AchievementUnlock
from amanoba.repositories.base import BaseRepository


class AchievementRepository(BaseRepository[Achievement]):
    """업적 레포지토리 (Achievement repository)."""

    def __init__(self) -> None:
        super().__init__(Achievement)

    async def list_active(self, db: AsyncSession) -> Sequence[Achievement]:
        result = await db.execute(
            select(Achievement).where(Achievement.is_active.is_(True)).order_by(Achievement.created_at)
        )
        return result.scalars().all()


class AchievementUnlockRepository(BaseRepository[AchievementUnlock]):
    """업적 달성 기록 레포지토리 (Achievement unlock repository)."""

    def __init__(self) -> None:
        super().__init__(AchievementUnlock)

    async def list_for_player(self, db: AsyncSession, player_id: UUID) -> Sequence[AchievementUnlock]:
        result = await db.execute(
            select(AchievementUnlock).where(AchievementUnlock.player_id == player_id)
        )
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instances
achievement_repository: AchievementRepository = AchievementRepository()
achievement_unlock_repository: AchievementUnlockRepository = AchievementUnlockRepository()
