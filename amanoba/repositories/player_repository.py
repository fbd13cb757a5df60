"""플레이어 레포지토리 — 플레이어 및 성장 정보 쿼리.

Player Repository — Queries for players and their progression rows.
"""

from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.player import Player, PlayerProgression
from amanoba.repositories.base import BaseRepository


class PlayerRepository(BaseRepository[Player]):
    """플레이어 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the players table.
    """

    def __init__(self) -> None:
        super().__init__(Player)

    async def get_by_email(self, db: AsyncSession, email: str) -> Player | None:
        """이메일로 플레이어를 조회합니다 (Look up a player by lower-cased email).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 로그인 이메일 (Login email, case-insensitive)

        Returns:
            Player | None: 플레이어 또는 None (Player or None)
        """
        result = await db.execute(select(Player).where(Player.email == email.strip().lower()))
        return result.scalar_one_or_none()

    def build_search_query(
        self,
        search: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
    ) -> Select:
        """관리자 플레이어 목록용 쿼리를 구성합니다.

        Build the admin player list query with optional name/email search,
        role and active filters, newest first.
        """
        query: Select = select(Player)
        if search:
            pattern: str = f"%{search.strip().lower()}%"
            query = query.where(
                or_(func.lower(Player.display_name).like(pattern), Player.email.like(pattern))
            )
        if role is not None:
            query = query.where(Player.role == role)
        if is_active is not None:
            query = query.where(Player.is_active == is_active)
        return query.order_by(Player.created_at.desc())


class ProgressionRepository(BaseRepository[PlayerProgression]):
    """플레이어 성장 레포지토리 (Player progression repository)."""

    def __init__(self) -> None:
        super().__init__(PlayerProgression)

    async def get_by_player(self, db: AsyncSession, player_id: UUID) -> PlayerProgression | None:
        result = await db.execute(select(PlayerProgression).where(PlayerProgression.player_id == player_id))
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instances
player_repository: PlayerRepository = PlayerRepository()
progression_repository: ProgressionRepository = ProgressionRepository()
