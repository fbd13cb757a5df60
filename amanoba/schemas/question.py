"""퀴즈 문항 관련 Pydantic 요청/응답 스키마 정의.

Quiz question Pydantic request/response schema definitions.
Creation payloads validate option count, uniqueness and the correct index.
"""

from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator

# 최소 보기 수 — Minimum number of options per question
MIN_OPTIONS: int = 4
# 일괄 생성 최대 개수 — Maximum questions per batch request
MAX_BATCH_SIZE: int = 100


class QuestionCreate(BaseModel):
    """문항 생성 요청 스키마.

    Question creation request schema.

    Attributes:
        question: 문항 본문 (Question text, 10..500 chars)
        options: 보기 목록 (At least four unique options)
        correct_index: 정답 인덱스 (Index of the correct option)
        difficulty: 난이도 (EASY | MEDIUM | HARD | EXPERT)
        course_id: 코스 코드 (Owning course code, optional)
        lesson_id: 레슨 코드 (Owning lesson code, optional)
        is_course_specific: 최종 시험 풀 포함 여부 (Part of the course final exam pool)
    """

    question: str = Field(..., min_length=10, max_length=500)
    options: list[str] = Field(..., min_length=MIN_OPTIONS)
    correct_index: int = Field(..., ge=0)
    difficulty: str = Field(default="MEDIUM", pattern=r"^(EASY|MEDIUM|HARD|EXPERT)$")
    category: str = Field(default="General", max_length=100)
    question_type: str | None = None
    hashtags: list[str] = []
    course_id: str | None = None
    lesson_id: str | None = None
    is_course_specific: bool = False
    is_active: bool = True

    @field_validator("options")
    @classmethod
    def _options_unique(cls, value: list[str]) -> list[str]:
        cleaned: list[str] = [option.strip() for option in value]
        if any(not option for option in cleaned):
            raise ValueError("Options must not be empty")
        if len({option.lower() for option in cleaned}) != len(cleaned):
            raise ValueError("Options must be unique")
        return cleaned

    @model_validator(mode="after")
    def _correct_index_in_range(self) -> "QuestionCreate":
        if self.correct_index >= len(self.options):
            raise ValueError("correct_index is out of range")
        return self


class QuestionUpdate(BaseModel):
    """문항 수정 요청 스키마 (부분 업데이트).

    options/correct_index consistency is re-checked by the service against
    the stored values.
    """

    question: str | None = Field(default=None, min_length=10, max_length=500)
    options: list[str] | None = Field(default=None, min_length=MIN_OPTIONS)
    correct_index: int | None = Field(default=None, ge=0)
    difficulty: str | None = Field(default=None, pattern=r"^(EASY|MEDIUM|HARD|EXPERT)$")
    category: str | None = Field(default=None, max_length=100)
    question_type: str | None = None
    hashtags: list[str] | None = None
    lesson_id: str | None = None
    is_course_specific: bool | None = None
    is_active: bool | None = None


class QuestionResponse(BaseModel):
    """문항 응답 스키마 — 관리자용, 정답 포함 (Admin view including the answer)."""

    id: str
    question: str
    options: list[str]
    correct_index: int
    difficulty: str
    category: str
    question_type: str | None = None
    hashtags: list[str] = []
    course_id: str | None = None  # 코스 코드 (Course code)
    lesson_id: str | None = None
    is_course_specific: bool
    show_count: int
    correct_count: int
    is_active: bool
    created_at: datetime


class QuestionBatchCreate(BaseModel):
    """문항 일괄 생성 요청 — 하나라도 실패하면 전체 거부 (All-or-nothing batch)."""

    questions: list[QuestionCreate] = Field(..., min_length=1, max_length=MAX_BATCH_SIZE)


class QuestionBatchResponse(BaseModel):
    success: bool = True
    created: int
    ids: list[str]
