"""인증 관련 Pydantic 요청/응답 스키마 정의.

Certification Pydantic request/response schema definitions.
Covers entitlement status and redemption, the final exam flow, certificates
and the global certification settings.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from amanoba.schemas.course import PriceMoney


# === 응시 권한 (Entitlement) 스키마 ===

class EntitlementStatus(BaseModel):
    """응시 권한 상태.

    Entitlement status for one course.

    Attributes:
        certification_enabled: 코스 인증 활성화 (Course has certification switched on)
        certification_available: 응시 가능 (Enabled and the pool is large enough)
        entitlement_owned: 권한 보유 (Player holds an entitlement)
        pool_count: 풀 문항 수 (Active course-specific questions in the pool)
        required_question_count: 필요한 문항 수 (Final exam length)
    """

    certification_enabled: bool
    certification_available: bool
    entitlement_owned: bool
    premium_includes_certification: bool
    price_money: PriceMoney | None = None
    price_points: int | None = None
    pool_count: int
    required_question_count: int


class EntitlementStatusResponse(BaseModel):
    success: bool = True
    data: EntitlementStatus


class CourseRef(BaseModel):
    """코스 코드 요청 본문 (Request body naming a course by code)."""

    course_id: str = Field(..., min_length=1)


class EntitlementResponse(BaseModel):
    id: str
    player_id: str
    course_id: str  # 코스 코드 (Course code)
    source: str  # points | admin | premium
    points_spent: int
    granted_at: datetime


class RedeemResponse(BaseModel):
    """포인트 교환 응답 (Points redemption result with the new balance)."""

    success: bool = True
    entitlement: EntitlementResponse
    balance: int


class EntitlementGrantRequest(BaseModel):
    player_id: str
    course_id: str


# === 최종 시험 (Final exam) 스키마 ===

class ExamQuestion(BaseModel):
    """표시용 시험 문항 — 섞인 보기 (Displayed exam question with shuffled options)."""

    question_id: str
    question: str
    options: list[str]
    index: int  # 0부터 시작하는 문항 위치 (Zero-based position in the attempt)
    total: int


class ExamStartResponse(BaseModel):
    success: bool = True
    attempt_id: str
    question: ExamQuestion


class ExamAnswerRequest(BaseModel):
    attempt_id: str
    question_id: str
    selected_index: int = Field(..., ge=0)  # 표시된 보기 기준 인덱스 (Index into the displayed options)


class ExamAnswerResponse(BaseModel):
    success: bool = True
    completed: bool
    next_question: ExamQuestion | None = None


class AttemptRef(BaseModel):
    attempt_id: str


class ExamDiscardRequest(BaseModel):
    attempt_id: str
    reason: str | None = Field(default=None, max_length=50)


class ExamSubmitResponse(BaseModel):
    """최종 시험 채점 응답 (Final exam grading result)."""

    success: bool = True
    score_percent_integer: int
    passed: bool
    certificate_eligible: bool
    certificate_updated: bool


class AttemptResponse(BaseModel):
    id: str
    course_id: str  # 코스 코드 (Course code)
    status: str  # IN_PROGRESS | GRADED | DISCARDED
    current_index: int
    total_questions: int
    correct_count: int
    score_percent_integer: int | None = None
    passed: bool | None = None
    started_at: datetime
    submitted_at: datetime | None = None
    discarded_at: datetime | None = None
    discard_reason: str | None = None


class AttemptListResponse(BaseModel):
    success: bool = True
    attempts: list[AttemptResponse]


# === 인증서 (Certificate) 스키마 ===

class CertificateResponse(BaseModel):
    """인증서 응답 스키마 (Certificate view)."""

    certificate_id: str
    player_id: str
    course_id: str  # 코스 코드 (Course code)
    recipient_name: str
    course_title: str
    locale: str
    design_template_id: str
    credential_id: str
    verification_slug: str
    final_exam_score_percent_integer: int
    issued_at: datetime
    is_revoked: bool
    revoked_at: datetime | None = None
    revoked_reason: str | None = None
    is_public: bool


class CertificateEnvelope(BaseModel):
    success: bool = True
    certificate: CertificateResponse


class CertificateVerification(BaseModel):
    valid: bool  # 존재하고 취소되지 않음 (Exists and not revoked)
    certificate: CertificateResponse | None = None


class CertificateVerifyResponse(BaseModel):
    success: bool = True
    data: CertificateVerification


class CertificateRevokeRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=200)


# === 전역 설정 (Global settings) 스키마 ===

class CertificationSettingsUpdate(BaseModel):
    default_template_id: str | None = None
    template_variant_ids: list[str] | None = None
    template_variant_weights: list[float] | None = None
    credential_title_id: str | None = None


class CertificationSettingsResponse(BaseModel):
    success: bool = True
    default_template_id: str | None = None
    template_variant_ids: list[str] = []
    template_variant_weights: list[float] = []
    credential_title_id: str | None = None
