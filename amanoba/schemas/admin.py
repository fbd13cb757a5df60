"""관리자 전용 Pydantic 스키마 정의.

Admin-only Pydantic schema definitions: player management, points
adjustment, course import/export and platform statistics.
"""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from amanoba.schemas.course import CourseCreate, LessonCreate
from amanoba.schemas.profile import TransactionResponse
from amanoba.schemas.question import QuestionCreate


# === 플레이어 관리 (Player management) ===

class PlayerAdminResponse(BaseModel):
    id: str
    display_name: str
    email: str
    role: str
    locale: str
    is_premium: bool
    premium_expires_at: datetime | None = None
    is_active: bool
    is_banned: bool
    ban_reason: str | None = None
    last_login_at: datetime | None = None
    created_at: datetime


class PlayerAdminUpdate(BaseModel):
    """플레이어 수정 요청 (부분 업데이트)."""

    role: str | None = Field(default=None, pattern=r"^(user|editor|admin)$")
    is_active: bool | None = None
    is_banned: bool | None = None
    ban_reason: str | None = None
    is_premium: bool | None = None
    premium_expires_at: datetime | None = None


class PointsAdjustRequest(BaseModel):
    """포인트 수동 조정 요청 — 양수는 지급, 음수는 차감 (Positive adds, negative deducts)."""

    amount: int
    reason: str = Field(..., min_length=1, max_length=500)

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("amount must not be zero")
        return value


class PointsAdjustResponse(BaseModel):
    success: bool = True
    transaction: TransactionResponse
    balance: int


# === 코스 내보내기/가져오기 (Course export/import) ===

class CourseExportPayload(BaseModel):
    """코스 내보내기 문서.

    Portable course document: the course, its lessons and its questions.
    The same shape is accepted by the import endpoint; question course codes
    are replaced by the imported course.
    """

    version: int = 1
    exported_at: datetime | None = None
    course: CourseCreate
    lessons: list[LessonCreate] = []
    questions: list[QuestionCreate] = []


class CourseImportResponse(BaseModel):
    success: bool = True
    created: bool  # False이면 기존 코스를 덮어씀 (False when an existing course was overwritten)
    course_id: str
    lessons: int
    questions: int


# === 통계 (Statistics) ===

class StatsResponse(BaseModel):
    """플랫폼 통계 응답 (Platform-wide counters)."""

    success: bool = True
    players: int
    active_courses: int
    lessons: int
    questions: int
    enrolments: int
    completed_courses: int
    certificates_issued: int
    certificates_revoked: int
    graded_attempts: int
    pass_rate: float  # 통과한 채점 응시 비율(%) (Share of graded attempts that passed)
