"""경험치/레벨 서비스 — XP 적립, 연쇄 레벨업, 레벨 보상.

Progression Service — XP gain, cascading level-ups and level rewards.

Level curve:
    xp_to_next_level(level) = floor(level * 100 * (1 + level * 0.1))
    Level 1 → 2: 110 XP, level 10 → 11: 2,000 XP. Level cap is 100; XP keeps
    accumulating at the cap. Each level reached pays level * 50 points.
"""

import math
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.player import PlayerProgression
from amanoba.models.points import SOURCE_LEVEL_UP, TX_BONUS
from amanoba.repositories.player_repository import progression_repository
from amanoba.schemas.profile import ProgressionResponse
from amanoba.services.points_service import points_service
from amanoba.utils.log import get_logger

logger = get_logger(__name__)

MAX_LEVEL: int = 100
LEVEL_UP_POINTS_PER_LEVEL: int = 50

# 레벨 칭호 — Titles granted on reaching these levels
LEVEL_TITLES: dict[int, str] = {
    5: "Novice",
    10: "Adept",
    15: "Expert",
    20: "Master",
    30: "Champion",
    40: "Legend",
    50: "Mythic",
    75: "Transcendent",
    100: "Immortal",
}


def xp_to_next_level(level: int) -> int:
    """다음 레벨까지 필요한 XP (XP needed to advance from ``level``)."""
    return math.floor(level * 100 * (1 + level * 0.1))


def title_for_level(level: int) -> str | None:
    """해당 레벨에서 보유하는 최고 칭호 (Highest title earned at or below ``level``)."""
    earned: list[int] = [threshold for threshold in LEVEL_TITLES if threshold <= level]
    return LEVEL_TITLES[max(earned)] if earned else None


@dataclass
class XPResult:
    """XP 적립 결과 (Outcome of one XP grant)."""

    xp_gained: int
    level: int
    leveled_up: bool = False
    levels_gained: int = 0
    points_awarded: int = 0
    new_titles: list[str] = field(default_factory=list)


class ProgressionService:
    """플레이어 성장 비즈니스 로직을 처리하는 서비스 (Player progression service)."""

    def to_response(self, progression: PlayerProgression | None) -> ProgressionResponse:
        if progression is None:
            return ProgressionResponse(
                level=1,
                current_xp=0,
                xp_to_next_level=xp_to_next_level(1),
                total_xp=0,
                title=None,
                lessons_completed=0,
                courses_completed=0,
            )
        return ProgressionResponse(
            level=progression.level,
            current_xp=progression.current_xp,
            xp_to_next_level=progression.xp_to_next_level,
            total_xp=progression.total_xp,
            title=progression.title,
            lessons_completed=progression.lessons_completed,
            courses_completed=progression.courses_completed,
        )

    async def get_or_create(self, db: AsyncSession, player_id: UUID) -> PlayerProgression:
        """성장 레코드를 조회하거나 생성합니다 (Return the progression row, creating it lazily)."""
        progression: PlayerProgression | None = await progression_repository.get_by_player(db, player_id)
        if progression is None:
            progression = await progression_repository.create(db, {
                "player_id": player_id,
                "level": 1,
                "current_xp": 0,
                "xp_to_next_level": xp_to_next_level(1),
                "total_xp": 0,
            })
        return progression

    async def add_xp(
        self,
        db: AsyncSession,
        player_id: UUID,
        amount: int,
        reason: str,
    ) -> XPResult:
        """XP를 적립하고 연쇄 레벨업을 처리합니다.

        Grant XP and process cascading level-ups. Overflow XP carries into
        the next level; every level reached credits level * 50 bonus points.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player_id: 플레이어 ID (Player UUID)
            amount: 적립 XP (XP to add; zero or negative is a no-op)
            reason: 적립 사유 (Reason, logged)

        Returns:
            XPResult: 레벨업 결과 (Level-up outcome)
        """
        progression: PlayerProgression = await self.get_or_create(db, player_id)
        if amount <= 0:
            return XPResult(xp_gained=0, level=progression.level)

        result: XPResult = XPResult(xp_gained=amount, level=progression.level)
        current_xp: int = progression.current_xp + amount
        level: int = progression.level
        requirement: int = progression.xp_to_next_level

        while level < MAX_LEVEL and current_xp >= requirement:
            current_xp -= requirement
            level += 1
            requirement = xp_to_next_level(level)
            result.levels_gained += 1
            result.points_awarded += level * LEVEL_UP_POINTS_PER_LEVEL
            if level in LEVEL_TITLES:
                result.new_titles.append(LEVEL_TITLES[level])

        progression.current_xp = current_xp
        progression.total_xp = progression.total_xp + amount
        progression.level = level
        progression.xp_to_next_level = requirement
        progression.title = title_for_level(level)
        await db.flush()

        result.level = level
        result.leveled_up = result.levels_gained > 0
        if result.points_awarded > 0:
            await points_service.credit(
                db,
                player_id,
                result.points_awarded,
                source_type=SOURCE_LEVEL_UP,
                description=f"Level up reward (level {level})",
                reference_id=str(level),
                tx_type=TX_BONUS,
            )
        if result.leveled_up:
            logger.info(
                "level_up",
                player_id=str(player_id),
                level=level,
                levels_gained=result.levels_gained,
                reason=reason,
            )
        return result


# 싱글턴 인스턴스 — Singleton instance
progression_service: ProgressionService = ProgressionService()
