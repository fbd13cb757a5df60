"""인증 서비스 — 인증 설정 해석, 응시 권한, 인증서 발급/취소, 전역 설정.

Certification Service — Certification config resolution, entitlements
(points redemption and admin grants), certificate issue/revoke/verify, and
the global certification settings.

Points redemption is the one explicit multi-step unit of work: the wallet
row is locked and debited, the transaction is logged and the entitlement is
inserted in the same session; the router commits once.
"""

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.config import settings
from amanoba.models.certification import (
    ENTITLEMENT_ADMIN,
    ENTITLEMENT_POINTS,
    GLOBAL_SETTINGS_KEY,
    Certificate,
    CertificateEntitlement,
    CertificationSettings,
)
from amanoba.models.course import Course, default_certification_config
from amanoba.models.player import Player
from amanoba.models.points import SOURCE_CERTIFICATION, PointsTransaction
from amanoba.repositories.certification_repository import (
    certificate_repository,
    entitlement_repository,
    settings_repository,
)
from amanoba.repositories.course_repository import course_repository
from amanoba.repositories.player_repository import player_repository
from amanoba.repositories.question_repository import question_repository
from amanoba.schemas.certification import (
    CertificateEnvelope,
    CertificateResponse,
    CertificateVerification,
    CertificateVerifyResponse,
    CertificationSettingsResponse,
    CertificationSettingsUpdate,
    EntitlementResponse,
    EntitlementStatus,
    EntitlementStatusResponse,
    RedeemResponse,
)
from amanoba.schemas.course import PriceMoney
from amanoba.services.points_service import points_service
from amanoba.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from amanoba.utils.log import get_logger
from amanoba.utils.pagination import Page
from amanoba.utils.randomization import stable_weighted_choice

logger = get_logger(__name__)


@dataclass
class ResolvedCertification:
    """기본값이 적용된 코스 인증 설정 (Course certification config with defaults applied)."""

    enabled: bool
    pool_course_pk: UUID | None
    question_count: int
    pass_threshold: int
    require_all_lessons_completed: bool
    require_all_quizzes_passed: bool
    price_points: int | None
    price_money: dict[str, Any] | None
    premium_includes_certification: bool
    raw: dict[str, Any]


class CertificationService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling certification business logic.
    """

    # --- 설정 해석 (Config resolution) ---

    async def resolve_config(self, db: AsyncSession, course: Course) -> ResolvedCertification:
        """코스 인증 설정에 기본값을 적용하고 문항 풀 코스를 해석합니다.

        Apply application defaults to the course certification config and
        resolve the pool course: ``pool_course_id`` when set, else the course
        itself. An unknown pool course code leaves the pool empty.
        """
        raw: dict[str, Any] = {**default_certification_config(), **(course.certification or {})}

        pool_course_pk: UUID | None = course.id
        if raw.get("pool_course_id"):
            pool_course: Course | None = await course_repository.get_by_code(db, raw["pool_course_id"])
            pool_course_pk = pool_course.id if pool_course else None

        threshold = raw.get("pass_threshold_percent")
        return ResolvedCertification(
            enabled=bool(raw.get("enabled")),
            pool_course_pk=pool_course_pk,
            question_count=raw.get("cert_question_count") or settings.FINAL_EXAM_DEFAULT_QUESTION_COUNT,
            pass_threshold=threshold if threshold is not None else settings.FINAL_EXAM_DEFAULT_PASS_THRESHOLD,
            require_all_lessons_completed=raw.get("require_all_lessons_completed") is not False,
            require_all_quizzes_passed=raw.get("require_all_quizzes_passed") is not False,
            price_points=raw.get("price_points"),
            price_money=raw.get("price_money"),
            premium_includes_certification=bool(raw.get("premium_includes_certification")),
            raw=raw,
        )

    async def pool_count(self, db: AsyncSession, config: ResolvedCertification) -> int:
        if config.pool_course_pk is None:
            return 0
        return await question_repository.count_pool(db, config.pool_course_pk)

    async def has_access(
        self,
        db: AsyncSession,
        player: Player,
        course: Course,
        config: ResolvedCertification,
    ) -> bool:
        """최종 시험 응시 권한 확인 (Entitlement held, or premium when premium includes certification)."""
        if await entitlement_repository.get_for_player(db, player.id, course.id) is not None:
            return True
        return config.premium_includes_certification and player.has_active_premium()

    # --- 응시 권한 (Entitlements) ---

    def _entitlement_response(self, entitlement: CertificateEntitlement, course_code: str) -> EntitlementResponse:
        return EntitlementResponse(
            id=str(entitlement.id),
            player_id=str(entitlement.player_id),
            course_id=course_code,
            source=entitlement.source,
            points_spent=entitlement.points_spent,
            granted_at=entitlement.granted_at,
        )

    async def get_entitlement_status(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
    ) -> EntitlementStatusResponse:
        """코스 인증 응시 권한 상태를 반환합니다.

        Return the certification status of a course for the player.
        Availability requires certification enabled and a pool at least as
        large as the exam.

        Raises:
            NotFoundError: 코스 없음 (Course missing or inactive)
        """
        course: Course | None = await course_repository.get_by_code(db, course_code, active_only=True)
        if course is None:
            raise NotFoundError("Course not found")

        config: ResolvedCertification = await self.resolve_config(db, course)
        pool_count: int = await self.pool_count(db, config)
        owned: bool = await entitlement_repository.get_for_player(db, player.id, course.id) is not None

        return EntitlementStatusResponse(data=EntitlementStatus(
            certification_enabled=config.enabled,
            certification_available=config.enabled and pool_count >= config.question_count,
            entitlement_owned=owned,
            premium_includes_certification=config.premium_includes_certification,
            price_money=PriceMoney(**config.price_money) if config.price_money else None,
            price_points=config.price_points,
            pool_count=pool_count,
            required_question_count=config.question_count,
        ))

    async def redeem_points(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
    ) -> RedeemResponse:
        """포인트로 인증 응시 권한을 구매합니다.

        Buy the certification entitlement with points. The wallet debit, the
        ``spend`` transaction and the entitlement insert share one
        transaction; nothing is committed here.

        Raises:
            NotFoundError: 코스 없음 (Course missing or inactive)
            BadRequestError: 인증 비활성, 포인트 가격 없음, 잔액 부족
                             (Certification disabled, no points price, insufficient balance)
            DuplicateError: 이미 보유 (Entitlement already owned)
        """
        course: Course | None = await course_repository.get_by_code(db, course_code, active_only=True)
        if course is None:
            raise NotFoundError("Course not found")

        config: ResolvedCertification = await self.resolve_config(db, course)
        if not config.enabled:
            raise BadRequestError("Certification is not enabled for this course")
        if not config.price_points or config.price_points <= 0:
            raise BadRequestError("Certification cannot be redeemed with points for this course")
        if await entitlement_repository.get_for_player(db, player.id, course.id) is not None:
            raise DuplicateError("Certification entitlement already owned")

        tx: PointsTransaction = await points_service.debit(
            db,
            player.id,
            config.price_points,
            source_type=SOURCE_CERTIFICATION,
            description=f"Certification entitlement: {course.course_id}",
            reference_id=course.course_id,
        )
        entitlement: CertificateEntitlement = await entitlement_repository.create(db, {
            "player_id": player.id,
            "course_id": course.id,
            "source": ENTITLEMENT_POINTS,
            "points_spent": config.price_points,
            "transaction_id": tx.id,
        })

        logger.info(
            "points_redeemed",
            player_id=str(player.id),
            course_id=course.course_id,
            points=config.price_points,
            balance=tx.balance_after,
        )
        return RedeemResponse(
            entitlement=self._entitlement_response(entitlement, course.course_id),
            balance=tx.balance_after,
        )

    async def grant_entitlement(
        self,
        db: AsyncSession,
        admin: Player,
        player_id: UUID,
        course_code: str,
    ) -> EntitlementResponse:
        """관리자가 응시 권한을 부여합니다.

        Admin grant of a certification entitlement.

        Raises:
            NotFoundError: 플레이어 또는 코스 없음 (Player or course missing)
            DuplicateError: 이미 보유 (Entitlement already owned)
        """
        if await player_repository.get_by_id(db, player_id) is None:
            raise NotFoundError("Player not found")
        course: Course | None = await course_repository.get_by_code(db, course_code)
        if course is None:
            raise NotFoundError("Course not found")
        if await entitlement_repository.get_for_player(db, player_id, course.id) is not None:
            raise DuplicateError("Certification entitlement already owned")

        entitlement: CertificateEntitlement = await entitlement_repository.create(db, {
            "player_id": player_id,
            "course_id": course.id,
            "source": ENTITLEMENT_ADMIN,
            "points_spent": 0,
            "granted_by": admin.id,
        })
        logger.info(
            "entitlement_granted",
            player_id=str(player_id),
            course_id=course.course_id,
            granted_by=str(admin.id),
        )
        return self._entitlement_response(entitlement, course.course_id)

    async def revoke_entitlement(
        self,
        db: AsyncSession,
        player_id: UUID,
        course_code: str,
    ) -> None:
        """응시 권한을 삭제합니다 (Delete an entitlement; points are not refunded)."""
        course: Course | None = await course_repository.get_by_code(db, course_code)
        if course is None:
            raise NotFoundError("Course not found")
        entitlement: CertificateEntitlement | None = await entitlement_repository.get_for_player(db, player_id, course.id)
        if entitlement is None:
            raise NotFoundError("Entitlement not found")
        await entitlement_repository.delete(db, entitlement.id)
        logger.info("entitlement_revoked", player_id=str(player_id), course_id=course.course_id)

    # --- 인증서 (Certificates) ---

    def to_certificate_response(self, certificate: Certificate, course_code: str) -> CertificateResponse:
        return CertificateResponse(
            certificate_id=certificate.certificate_id,
            player_id=str(certificate.player_id),
            course_id=course_code,
            recipient_name=certificate.recipient_name,
            course_title=certificate.course_title,
            locale=certificate.locale,
            design_template_id=certificate.design_template_id,
            credential_id=certificate.credential_id,
            verification_slug=certificate.verification_slug,
            final_exam_score_percent_integer=certificate.final_exam_score_percent_integer,
            issued_at=certificate.issued_at,
            is_revoked=certificate.is_revoked,
            revoked_at=certificate.revoked_at,
            revoked_reason=certificate.revoked_reason,
            is_public=certificate.is_public,
        )

    async def resolve_template(
        self,
        db: AsyncSession,
        course: Course,
        player_id: UUID,
    ) -> tuple[str, str]:
        """인증서 템플릿 변형과 자격 ID를 결정합니다.

        Pick the design template and credential id at issue time.
        Weighted variants are bucketed by a stable hash of player and course,
        so the same learner always lands on the same variant. Course settings
        win over the global settings, which win over the application defaults.

        Returns:
            tuple[str, str]: (design_template_id, credential_id)
        """
        config: dict[str, Any] = course.certification or {}
        global_settings: CertificationSettings | None = await settings_repository.get_global(db)
        seed: str = f"{player_id}:{course.course_id}"

        template_id: str | None = stable_weighted_choice(
            seed, config.get("template_variant_ids") or [], config.get("template_variant_weights") or None
        ) or config.get("template_id")
        if template_id is None and global_settings is not None:
            template_id = stable_weighted_choice(
                seed,
                global_settings.template_variant_ids or [],
                global_settings.template_variant_weights or None,
            ) or global_settings.default_template_id

        credential_id: str | None = config.get("credential_title_id")
        if credential_id is None and global_settings is not None:
            credential_id = global_settings.credential_title_id

        return (
            template_id or settings.DEFAULT_CERTIFICATE_TEMPLATE_ID,
            credential_id or settings.DEFAULT_CREDENTIAL_ID,
        )

    async def issue_or_update(
        self,
        db: AsyncSession,
        player: Player,
        course: Course,
        score_percent_integer: int,
        attempt_id: UUID,
    ) -> Certificate:
        """인증서를 발급하거나 기존 인증서를 갱신/복원합니다.

        Issue a certificate, or refresh an existing one (new score, last
        attempt, un-revoked). Existing certificates keep their slug.
        """
        certificate: Certificate | None = await certificate_repository.get_for_player(db, player.id, course.id)
        if certificate is not None:
            certificate.final_exam_score_percent_integer = score_percent_integer
            certificate.last_attempt_id = attempt_id
            certificate.is_revoked = False
            certificate.revoked_at = None
            certificate.revoked_reason = None
            await db.flush()
            logger.info(
                "certificate_updated",
                player_id=str(player.id),
                course_id=course.course_id,
                score=score_percent_integer,
            )
            return certificate

        design_template_id, credential_id = await self.resolve_template(db, course, player.id)
        certificate = await certificate_repository.create(db, {
            "certificate_id": str(uuid.uuid4()),
            "player_id": player.id,
            "course_id": course.id,
            "recipient_name": player.display_name or player.email,
            "course_title": course.name or course.course_id,
            "locale": course.language or "en",
            "design_template_id": design_template_id,
            "credential_id": credential_id,
            "verification_slug": secrets.token_hex(10),
            "final_exam_score_percent_integer": score_percent_integer,
            "last_attempt_id": attempt_id,
            "is_revoked": False,
            "is_public": True,
        })
        logger.info(
            "certificate_issued",
            player_id=str(player.id),
            course_id=course.course_id,
            certificate_id=certificate.certificate_id,
            template=design_template_id,
        )
        return certificate

    async def revoke(
        self,
        db: AsyncSession,
        certificate: Certificate,
        reason: str,
        score_percent_integer: int | None = None,
        attempt_id: UUID | None = None,
    ) -> Certificate:
        """인증서를 취소합니다 (Revoke a certificate, optionally recording the failing attempt)."""
        if score_percent_integer is not None:
            certificate.final_exam_score_percent_integer = score_percent_integer
        if attempt_id is not None:
            certificate.last_attempt_id = attempt_id
        certificate.is_revoked = True
        certificate.revoked_at = datetime.now(timezone.utc)
        certificate.revoked_reason = reason
        await db.flush()
        logger.info(
            "certificate_revoked",
            player_id=str(certificate.player_id),
            certificate_id=certificate.certificate_id,
            reason=reason,
        )
        return certificate

    async def _course_code(self, db: AsyncSession, course_pk: UUID) -> str:
        course: Course | None = await course_repository.get_by_id(db, course_pk)
        return course.course_id if course else ""

    async def get_public_certificate(self, db: AsyncSession, slug: str) -> CertificateEnvelope:
        """검증 슬러그로 공개 인증서를 조회합니다.

        Raises:
            NotFoundError: 없거나 비공개 (Missing or not public)
        """
        certificate: Certificate | None = await certificate_repository.get_by_slug(db, slug)
        if certificate is None or not certificate.is_public:
            raise NotFoundError("Certificate not found")
        return CertificateEnvelope(
            certificate=self.to_certificate_response(certificate, await self._course_code(db, certificate.course_id))
        )

    async def verify(self, db: AsyncSession, player_id: str, course_code: str) -> CertificateVerifyResponse:
        """플레이어/코스 인증서 유효성 확인 (valid = exists and not revoked)."""
        course: Course | None = await course_repository.get_by_code(db, course_code)
        try:
            player_pk: UUID | None = UUID(player_id)
        except ValueError:
            player_pk = None
        if course is None or player_pk is None:
            return CertificateVerifyResponse(data=CertificateVerification(valid=False))

        certificate: Certificate | None = await certificate_repository.get_for_player(db, player_pk, course.id)
        if certificate is None:
            return CertificateVerifyResponse(data=CertificateVerification(valid=False))
        return CertificateVerifyResponse(data=CertificateVerification(
            valid=not certificate.is_revoked,
            certificate=self.to_certificate_response(certificate, course.course_id),
        ))

    async def list_certificates(
        self,
        db: AsyncSession,
        course_code: str | None = None,
        is_revoked: bool | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page:
        """관리자 인증서 목록 (Admin certificate list, newest first)."""
        course_pk: UUID | None = None
        if course_code:
            course: Course | None = await course_repository.get_by_code(db, course_code)
            if course is None:
                return Page.build([], 0, page, per_page)
            course_pk = course.id

        items, total = await certificate_repository.get_paginated(
            db, certificate_repository.build_admin_query(course_pk, is_revoked), page, per_page
        )
        courses = await course_repository.list_by_ids(db, list({c.course_id for c in items}))
        codes: dict[UUID, str] = {c.id: c.course_id for c in courses}
        return Page.build(
            [self.to_certificate_response(c, codes.get(c.course_id, "")) for c in items], total, page, per_page
        )

    async def admin_revoke(self, db: AsyncSession, certificate_id: str, reason: str) -> CertificateResponse:
        certificate: Certificate | None = await certificate_repository.get_one_by(db, {"certificate_id": certificate_id})
        if certificate is None:
            raise NotFoundError("Certificate not found")
        await self.revoke(db, certificate, reason)
        return self.to_certificate_response(certificate, await self._course_code(db, certificate.course_id))

    async def admin_reinstate(self, db: AsyncSession, certificate_id: str) -> CertificateResponse:
        certificate: Certificate | None = await certificate_repository.get_one_by(db, {"certificate_id": certificate_id})
        if certificate is None:
            raise NotFoundError("Certificate not found")
        certificate.is_revoked = False
        certificate.revoked_at = None
        certificate.revoked_reason = None
        await db.flush()
        logger.info("certificate_reinstated", certificate_id=certificate.certificate_id)
        return self.to_certificate_response(certificate, await self._course_code(db, certificate.course_id))

    # --- 전역 설정 (Global settings) ---

    def _settings_response(self, row: CertificationSettings | None) -> CertificationSettingsResponse:
        if row is None:
            return CertificationSettingsResponse(default_template_id=settings.DEFAULT_CERTIFICATE_TEMPLATE_ID)
        return CertificationSettingsResponse(
            default_template_id=row.default_template_id,
            template_variant_ids=row.template_variant_ids or [],
            template_variant_weights=row.template_variant_weights or [],
            credential_title_id=row.credential_title_id,
        )

    async def get_settings(self, db: AsyncSession) -> CertificationSettingsResponse:
        return self._settings_response(await settings_repository.get_global(db))

    async def update_settings(
        self,
        db: AsyncSession,
        data: CertificationSettingsUpdate,
    ) -> CertificationSettingsResponse:
        """전역 설정을 생성 또는 수정합니다 (Upsert the global settings row).

        Raises:
            BadRequestError: 변형 수와 가중치 수 불일치 (Variant/weight length mismatch)
        """
        values: dict[str, Any] = data.model_dump(exclude_unset=True)
        row: CertificationSettings | None = await settings_repository.get_global(db)
        if row is None:
            row = await settings_repository.create(db, {"key": GLOBAL_SETTINGS_KEY})

        variant_ids: list[str] = values.get("template_variant_ids", row.template_variant_ids) or []
        weights: list[float] = values.get("template_variant_weights", row.template_variant_weights) or []
        if weights and len(weights) != len(variant_ids):
            raise BadRequestError("template_variant_weights must match template_variant_ids")

        row = await settings_repository.update(db, row.id, values)
        return self._settings_response(row)


# 싱글턴 인스턴스 — Singleton instance
certification_service: CertificationService = CertificationService()
