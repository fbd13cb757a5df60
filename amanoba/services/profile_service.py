"""프로필 서비스 — 내 프로필, 공개 프로필, 프로필 수정.

Profile Service — Own profile, public profile and profile updates.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.achievement import AchievementUnlock
from amanoba.models.certification import Certificate
from amanoba.models.course import Course
from amanoba.models.player import Player
from amanoba.models.progress import PROGRESS_COMPLETED, CourseProgress
from amanoba.repositories.player_repository import player_repository, progression_repository
from amanoba.repositories.points_repository import wallet_repository
from amanoba.schemas.profile import (
    ProfileResponse,
    ProfileStats,
    ProfileUpdate,
    PublicCertificate,
    PublicPlayer,
    PublicProfileResponse,
)
from amanoba.services.auth_service import auth_service
from amanoba.services.points_service import points_service
from amanoba.services.progression_service import progression_service
from amanoba.services.streak_service import streak_service
from amanoba.utils.exceptions import NotFoundError


class ProfileService:
    """프로필 관련 비즈니스 로직을 처리하는 서비스.

    Service handling profile business logic.
    """

    async def _count(self, db: AsyncSession, query) -> int:
        return (await db.execute(query)).scalar() or 0

    async def _stats(self, db: AsyncSession, player_id: UUID) -> ProfileStats:
        return ProfileStats(
            courses_enrolled=await self._count(
                db, select(func.count()).select_from(CourseProgress).where(CourseProgress.player_id == player_id)
            ),
            courses_completed=await self._count(
                db,
                select(func.count()).select_from(CourseProgress).where(
                    CourseProgress.player_id == player_id,
                    CourseProgress.status == PROGRESS_COMPLETED,
                ),
            ),
            certificates=await self._count(
                db,
                select(func.count()).select_from(Certificate).where(
                    Certificate.player_id == player_id,
                    Certificate.is_revoked.is_(False),
                ),
            ),
            achievements=await self._count(
                db, select(func.count()).select_from(AchievementUnlock).where(AchievementUnlock.player_id == player_id)
            ),
        )

    async def get_profile(self, db: AsyncSession, player: Player) -> ProfileResponse:
        """내 프로필을 조회합니다.

        Return the caller's profile with progression, wallet, login streak and
        counters.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player: 현재 플레이어 (Current player)

        Returns:
            ProfileResponse: 프로필 응답 (Profile response)
        """
        progression = await progression_repository.get_by_player(db, player.id)
        wallet = await wallet_repository.get_by_player(db, player.id)
        return ProfileResponse(
            player=auth_service.to_me_response(player),
            progression=progression_service.to_response(progression),
            wallet=points_service.to_wallet_response(wallet),
            streak=await streak_service.get_daily_login(db, player.id),
            stats=await self._stats(db, player.id),
        )

    async def update_profile(self, db: AsyncSession, player: Player, data: ProfileUpdate) -> ProfileResponse:
        """표시 이름/로케일을 수정합니다 (Update display name and/or locale)."""
        values = data.model_dump(exclude_unset=True, exclude_none=True)
        if "display_name" in values:
            values["display_name"] = values["display_name"].strip()
        for field, value in values.items():
            setattr(player, field, value)
        await db.flush()
        return await self.get_profile(db, player)

    async def get_public_profile(self, db: AsyncSession, player_id: str) -> PublicProfileResponse:
        """공개 프로필을 조회합니다.

        Public profile of any active player. Email and account flags are
        never exposed; only public, non-revoked certificates are listed.

        Raises:
            NotFoundError: 플레이어 없음 또는 비활성 (Missing, malformed id or inactive)
        """
        try:
            player_pk: UUID = UUID(player_id)
        except ValueError:
            raise NotFoundError("Player not found")

        player: Player | None = await player_repository.get_by_id(db, player_pk)
        if player is None or not player.is_active:
            raise NotFoundError("Player not found")

        result = await db.execute(
            select(Certificate, Course.course_id)
            .join(Course, Course.id == Certificate.course_id)
            .where(
                Certificate.player_id == player.id,
                Certificate.is_revoked.is_(False),
                Certificate.is_public.is_(True),
            )
            .order_by(Certificate.issued_at.desc())
        )
        certificates: list[PublicCertificate] = [
            PublicCertificate(
                course_id=course_code,
                course_title=certificate.course_title,
                verification_slug=certificate.verification_slug,
                issued_at=certificate.issued_at,
            )
            for certificate, course_code in result.all()
        ]

        progression = await progression_repository.get_by_player(db, player.id)
        return PublicProfileResponse(
            player=PublicPlayer(id=str(player.id), display_name=player.display_name, created_at=player.created_at),
            progression=progression_service.to_response(progression),
            certificates=certificates,
            achievements_unlocked=await self._count(
                db, select(func.count()).select_from(AchievementUnlock).where(AchievementUnlock.player_id == player.id)
            ),
        )


# 싱글턴 인스턴스 — Singleton instance
profile_service: ProfileService = ProfileService()
