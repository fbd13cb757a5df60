"""코스 및 레슨 관련 Pydantic 요청/응답 스키마 정의.

Course and lesson Pydantic request/response schema definitions.
Covers the JSON sub-documents stored on courses and lessons (certification
config, lesson quiz policy, quiz config) plus admin CRUD payloads.
"""

from datetime import datetime
from pydantic import BaseModel, Field


# === JSON 하위 문서 (Sub-document) 스키마 ===

class PriceMoney(BaseModel):
    """금액 스키마 (Money amount in minor units plus ISO currency)."""

    amount: int = Field(..., ge=0)  # 최소 단위 금액, 예: 2999 = 29.99 (Amount in minor units)
    currency: str = "USD"  # ISO 통화 코드 (ISO currency code)


class CertificationConfig(BaseModel):
    """코스 인증 설정 스키마.

    Course certification sub-document.
    Unset counts and thresholds fall back to the application defaults
    (50 questions, 50 percent).

    Attributes:
        enabled: 인증 활성화 (Certification switched on for the course)
        pool_course_id: 문항 풀 코스 코드 (Course code whose questions form the pool, optional)
        cert_question_count: 최종 시험 문항 수 (Final exam length, optional)
        pass_threshold_percent: 합격 기준(%) (Pass threshold, optional)
        require_all_lessons_completed: 모든 레슨 완료 필요 (Lessons requirement)
        require_all_quizzes_passed: 모든 퀴즈 통과 필요 (Lesson quiz requirement)
        price_points: 포인트 가격 (Points price, None disables redemption)
        price_money: 현금 가격 (Money price, informational)
        premium_includes_certification: 프리미엄 포함 여부 (Premium players need no entitlement)
        template_id: 인증서 템플릿 ID (Template id, optional)
        template_variant_ids / template_variant_weights: 템플릿 변형과 가중치 (Weighted template variants)
        credential_title_id: 자격 명칭 ID (Credential title id, optional)
    """

    enabled: bool = False
    pool_course_id: str | None = None
    cert_question_count: int | None = Field(default=None, ge=1, le=200)
    pass_threshold_percent: int | None = Field(default=None, ge=0, le=100)
    require_all_lessons_completed: bool = True
    require_all_quizzes_passed: bool = True
    price_points: int | None = Field(default=None, ge=0)
    price_money: PriceMoney | None = None
    premium_includes_certification: bool = False
    template_id: str | None = None
    template_variant_ids: list[str] = []
    template_variant_weights: list[float] = []
    credential_title_id: str | None = None


class LessonQuizPolicy(BaseModel):
    """코스 단위 레슨 퀴즈 정책 (Course-wide lesson quiz policy, overrides per-lesson settings)."""

    enabled: bool = True  # False이면 모든 레슨 퀴즈 비활성 (Disables every lesson quiz)
    required: bool = True  # False이면 퀴즈 통과 없이 완료 가능 (Quizzes become optional)
    question_count: int | None = Field(default=None, ge=1, le=50)
    success_threshold: int | None = Field(default=None, ge=0, le=100)


class QuizConfig(BaseModel):
    """레슨 퀴즈 설정 (Per-lesson quiz sub-document)."""

    enabled: bool = False
    success_threshold: int = Field(default=70, ge=0, le=100)
    question_count: int = Field(default=5, ge=1, le=50)
    pool_size: int = Field(default=10, ge=1, le=200)
    required: bool = True


# === 코스 (Course) 스키마 ===

class CourseCreate(BaseModel):
    """코스 생성 요청 스키마.

    Course creation request schema. The course code is upper-case
    letters, digits and underscores.
    """

    course_id: str = Field(..., pattern=r"^[A-Z0-9_]+$", max_length=100)  # 코스 코드 (Course code)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=2000)
    language: str = Field(default="hu", min_length=2, max_length=10)
    thumbnail: str | None = None
    duration_days: int = Field(default=30, ge=1, le=365)  # 기간 1..365일 (Duration in days)
    is_active: bool = True
    requires_premium: bool = False
    lesson_points: int = Field(default=10, ge=0)
    lesson_xp: int = Field(default=25, ge=0)
    completion_points: int = Field(default=100, ge=0)
    completion_xp: int = Field(default=250, ge=0)
    lesson_quiz_policy: LessonQuizPolicy = LessonQuizPolicy()
    certification: CertificationConfig = CertificationConfig()
    assigned_editors: list[str] = []  # 담당 에디터 플레이어 ID 목록 (Assigned editor player ids)


class CourseUpdate(BaseModel):
    """코스 수정 요청 스키마 (부분 업데이트, course code is immutable)."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    language: str | None = Field(default=None, min_length=2, max_length=10)
    thumbnail: str | None = None
    duration_days: int | None = Field(default=None, ge=1, le=365)
    is_active: bool | None = None
    requires_premium: bool | None = None
    lesson_points: int | None = Field(default=None, ge=0)
    lesson_xp: int | None = Field(default=None, ge=0)
    completion_points: int | None = Field(default=None, ge=0)
    completion_xp: int | None = Field(default=None, ge=0)
    lesson_quiz_policy: LessonQuizPolicy | None = None
    certification: CertificationConfig | None = None
    assigned_editors: list[str] | None = None


class CourseResponse(BaseModel):
    """코스 응답 스키마 — 플레이어 공개용.

    Player-facing course response schema.

    Attributes:
        id: 코스 UUID (Course unique identifier)
        course_id: 코스 코드 (Course code used in URLs)
        lesson_count: 활성 레슨 수 (Number of active lessons, computed by service)
        certification_enabled: 인증 활성화 여부 (Certification switched on)
    """

    id: str  # 코스 UUID 문자열 (Course UUID as string)
    course_id: str  # 코스 코드 (Course code)
    name: str
    description: str
    language: str
    thumbnail: str | None = None
    duration_days: int
    is_active: bool
    requires_premium: bool
    lesson_points: int
    lesson_xp: int
    completion_points: int
    completion_xp: int
    certification_enabled: bool = False
    lesson_count: int = 0
    created_at: datetime


class CourseAdminResponse(CourseResponse):
    """관리자용 코스 응답 스키마 — 하위 문서와 담당 에디터 포함.

    Admin course response including JSON sub-documents and assigned editors.
    """

    lesson_quiz_policy: LessonQuizPolicy
    certification: CertificationConfig
    assigned_editors: list[str] = []
    created_by: str | None = None
    updated_at: datetime


class CourseListResponse(BaseModel):
    """코스 목록 응답 (Course list envelope)."""

    success: bool = True
    courses: list[CourseResponse]


class CourseDetailResponse(BaseModel):
    """코스 상세 응답 (Course detail envelope)."""

    success: bool = True
    course: CourseResponse


# === 레슨 (Lesson) 스키마 ===

class LessonCreate(BaseModel):
    """레슨 생성 요청 스키마.

    Lesson creation request schema. The owning course comes from the URL path.
    """

    lesson_id: str = Field(..., min_length=1, max_length=120)  # 레슨 코드, 전역 고유 (Lesson code, globally unique)
    day_number: int = Field(..., ge=1, le=365)
    language: str | None = Field(default=None, max_length=10)  # None이면 코스 언어 (Defaults to the course language)
    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    email_subject: str | None = None
    email_body: str | None = None
    quiz_config: QuizConfig = QuizConfig()
    points_reward: int | None = Field(default=None, ge=0)
    xp_reward: int | None = Field(default=None, ge=0)
    is_active: bool = True
    display_order: int = 0


class LessonUpdate(BaseModel):
    """레슨 수정 요청 스키마 (부분 업데이트)."""

    day_number: int | None = Field(default=None, ge=1, le=365)
    language: str | None = Field(default=None, max_length=10)
    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    email_subject: str | None = None
    email_body: str | None = None
    quiz_config: QuizConfig | None = None
    points_reward: int | None = Field(default=None, ge=0)
    xp_reward: int | None = Field(default=None, ge=0)
    is_active: bool | None = None
    display_order: int | None = None


class LessonContentUpdate(BaseModel):
    """에디터용 레슨 내용 수정 스키마 (Editor update, content fields only)."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    content: str | None = None
    email_subject: str | None = None
    email_body: str | None = None


class LessonResponse(BaseModel):
    """레슨 응답 스키마.

    Lesson response schema. course_id is the owning course code.
    """

    id: str  # 레슨 UUID 문자열 (Lesson UUID as string)
    lesson_id: str  # 레슨 코드 (Lesson code)
    course_id: str  # 코스 코드 (Course code)
    day_number: int
    language: str
    title: str
    content: str
    email_subject: str | None = None
    email_body: str | None = None
    quiz_config: QuizConfig
    points_reward: int | None = None
    xp_reward: int | None = None
    is_active: bool
    display_order: int
    updated_at: datetime


class LessonListResponse(BaseModel):
    success: bool = True
    lessons: list[LessonResponse]
