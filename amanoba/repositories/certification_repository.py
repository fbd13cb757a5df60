"""인증 레포지토리 — 응시 권한, 최종 시험, 인증서, 전역 설정 쿼리.

Certification Repository — Entitlements, final exam attempts, certificates
and global certification settings.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.certification import (
    ATTEMPT_IN_PROGRESS,
    GLOBAL_SETTINGS_KEY,
    Certificate,
    CertificateEntitlement,
    CertificationSettings,
    FinalExamAttempt,
)
from amanoba.repositories.base import BaseRepository


class EntitlementRepository(BaseRepository[CertificateEntitlement]):
    """인증 응시 권한 레포지토리 (Certification entitlement repository)."""

    def __init__(self) -> None:
        super().__init__(CertificateEntitlement)

    async def get_for_player(
        self,
        db: AsyncSession,
        player_id: UUID,
        course_pk: UUID,
    ) -> CertificateEntitlement | None:
        result = await db.execute(
            select(CertificateEntitlement).where(
                CertificateEntitlement.player_id == player_id,
                CertificateEntitlement.course_id == course_pk,
            )
        )
        return result.scalar_one_or_none()


class AttemptRepository(BaseRepository[FinalExamAttempt]):
    """최종 시험 응시 레포지토리 (Final exam attempt repository)."""

    def __init__(self) -> None:
        super().__init__(FinalExamAttempt)

    async def get_owned(
        self,
        db: AsyncSession,
        attempt_id: UUID,
        player_id: UUID,
    ) -> FinalExamAttempt | None:
        """플레이어 소유의 응시 기록만 조회합니다 (Attempt, only when owned by the player)."""
        result = await db.execute(
            select(FinalExamAttempt).where(
                FinalExamAttempt.id == attempt_id,
                FinalExamAttempt.player_id == player_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_in_progress(
        self,
        db: AsyncSession,
        player_id: UUID,
        course_pk: UUID,
    ) -> Sequence[FinalExamAttempt]:
        result = await db.execute(
            select(FinalExamAttempt).where(
                FinalExamAttempt.player_id == player_id,
                FinalExamAttempt.course_id == course_pk,
                FinalExamAttempt.status == ATTEMPT_IN_PROGRESS,
            )
        )
        return result.scalars().all()

    async def list_for_player(
        self,
        db: AsyncSession,
        player_id: UUID,
        course_pk: UUID | None = None,
    ) -> Sequence[FinalExamAttempt]:
        query: Select = select(FinalExamAttempt).where(FinalExamAttempt.player_id == player_id)
        if course_pk is not None:
            query = query.where(FinalExamAttempt.course_id == course_pk)
        result = await db.execute(query.order_by(FinalExamAttempt.started_at.desc()))
        return result.scalars().all()


class CertificateRepository(BaseRepository[Certificate]):
    """인증서 레포지토리 (Certificate repository)."""

    def __init__(self) -> None:
        super().__init__(Certificate)

    async def get_for_player(
        self,
        db: AsyncSession,
        player_id: UUID,
        course_pk: UUID,
    ) -> Certificate | None:
        result = await db.execute(
            select(Certificate).where(
                Certificate.player_id == player_id,
                Certificate.course_id == course_pk,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_slug(self, db: AsyncSession, slug: str) -> Certificate | None:
        result = await db.execute(select(Certificate).where(Certificate.verification_slug == slug))
        return result.scalar_one_or_none()

    def build_admin_query(
        self,
        course_pk: UUID | None = None,
        is_revoked: bool | None = None,
    ) -> Select:
        query: Select = select(Certificate)
        if course_pk is not None:
            query = query.where(Certificate.course_id == course_pk)
        if is_revoked is not None:
            query = query.where(Certificate.is_revoked == is_revoked)
        return query.order_by(Certificate.issued_at.desc())


class SettingsRepository(BaseRepository[CertificationSettings]):
    """전역 인증 설정 레포지토리 (Global certification settings repository)."""

    def __init__(self) -> None:
        super().__init__(CertificationSettings)

    async def get_global(self, db: AsyncSession) -> CertificationSettings | None:
        result = await db.execute(
            select(CertificationSettings).where(CertificationSettings.key == GLOBAL_SETTINGS_KEY)
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instances
entitlement_repository: EntitlementRepository = EntitlementRepository()
attempt_repository: AttemptRepository = AttemptRepository()
certificate_repository: CertificateRepository = CertificateRepository()
settings_repository: SettingsRepository = SettingsRepository()
