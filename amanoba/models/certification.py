"""인증(자격증) 관련 SQLAlchemy ORM 모델 정의.

Certification SQLAlchemy ORM model definitions.

Tables:
    - certificate_entitlements: 인증 응시 권한 (Right to sit a course final exam)
    - final_exam_attempts: 최종 시험 응시 기록 (Final exam attempt state machine)
    - certificates: 발급된 인증서 (Issued certificates, one per player per course)
    - certification_settings: 전역 인증서 설정 (Global template/credential settings)

Attempt lifecycle:
    IN_PROGRESS → GRADED     (submit)
    IN_PROGRESS → DISCARDED  (discard, or superseded by a new start)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, Boolean, DateTime, Float, Integer, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from amanoba.database import Base

# 권한 출처 — Entitlement sources
ENTITLEMENT_POINTS: str = "points"
ENTITLEMENT_ADMIN: str = "admin"
ENTITLEMENT_PREMIUM: str = "premium"

# 시험 상태 — Attempt status values
ATTEMPT_IN_PROGRESS: str = "IN_PROGRESS"
ATTEMPT_GRADED: str = "GRADED"
ATTEMPT_DISCARDED: str = "DISCARDED"

# 폐기/취소 사유 — Discard and revoke reasons
DISCARD_SUPERSEDED: str = "superseded"
DISCARD_USER_EXIT: str = "user_exit"
REVOKE_SCORE_BELOW_THRESHOLD: str = "score_below_threshold"
REVOKE_REQUIREMENTS_NOT_MET: str = "requirements_not_met"

GLOBAL_SETTINGS_KEY: str = "global"


class CertificateEntitlement(Base):
    """인증 응시 권한 모델 (Certification entitlement, one per player per course)."""

    __tablename__ = "certificate_entitlements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)
    points_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    transaction_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("points_transactions.id", ondelete="SET NULL"), nullable=True)
    granted_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    granted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("player_id", "course_id", name="uq_entitlement_player_course"),
    )


class FinalExamAttempt(Base):
    """최종 시험 응시 모델.

    Final exam attempt model.
    question_order lists the sampled question ids (as strings) in display
    order; answer_orders maps each question id to the permutation of stored
    option indices shown to the player; answers records
    ``[{question_id, selected_index, mapped_index, is_correct}]``.
    """

    __tablename__ = "final_exam_attempts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    pool_course_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=ATTEMPT_IN_PROGRESS)
    question_order: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    answer_orders: Mapped[dict[str, list[int]]] = mapped_column(JSON, nullable=False, default=dict)
    answers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    current_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_percent_raw: Mapped[float | None] = mapped_column(Float, nullable=True)
    score_percent_integer: Mapped[int | None] = mapped_column(Integer, nullable=True)
    passed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    discarded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    discard_reason: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        Index("ix_final_exam_attempts_player_course_status", "player_id", "course_id", "status"),
    )


class Certificate(Base):
    """인증서 모델.

    Certificate model. A revoked certificate keeps its row so that a later
    passing attempt can reinstate it under the same verification slug.
    """

    __tablename__ = "certificates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    certificate_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(100), nullable=False)
    course_title: Mapped[str] = mapped_column(String(200), nullable=False)
    locale: Mapped[str] = mapped_column(String(10), nullable=False, default="hu")
    design_template_id: Mapped[str] = mapped_column(String(100), nullable=False)
    credential_id: Mapped[str] = mapped_column(String(100), nullable=False)
    verification_slug: Mapped[str] = mapped_column(String(40), nullable=False, unique=True, index=True)
    final_exam_score_percent_integer: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_attempt_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    is_revoked: Mapped[bool] = mapped_column(Boolean, default=False)
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_reason: Mapped[str | None] = mapped_column(String(200), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("player_id", "course_id", name="uq_certificate_player_course"),
    )


class CertificationSettings(Base):
    """전역 인증서 설정 모델 (Global certificate template and credential settings)."""

    __tablename__ = "certification_settings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, default=GLOBAL_SETTINGS_KEY)
    default_template_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    template_variant_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    template_variant_weights: Mapped[list[float]] = mapped_column(JSON, nullable=False, default=list)
    credential_title_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
