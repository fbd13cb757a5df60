"""퀴즈 문항 SQLAlchemy ORM 모델 정의.

Quiz question SQLAlchemy ORM model definition.
Questions belong to a lesson quiz and, when course-specific, to the final
exam pool of their course.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import JSON, String, Boolean, DateTime, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from amanoba.database import Base

# 난이도 — Question difficulty values
QUESTION_DIFFICULTIES: tuple[str, ...] = ("EASY", "MEDIUM", "HARD", "EXPERT")


class QuizQuestion(Base):
    """퀴즈 문항 모델 — 4개 이상의 보기를 가진 객관식 문항.

    Quiz question model — Multiple choice question with at least four options.

    Attributes:
        question: 문항 본문 (Question text, 10..500 chars)
        options: 보기 목록 JSON (Option texts, stored order)
        correct_index: 정답 보기 인덱스 (Index into the stored options)
        difficulty: 난이도 (EASY | MEDIUM | HARD | EXPERT)
        lesson_id: 레슨 코드 (Lesson code, optional)
        course_id: 코스 FK (Owning course, optional)
        is_course_specific: 코스 전용 여부 (Eligible for the course final exam pool)
        show_count / correct_count: 노출/정답 통계 (Display and correct-answer counters)
    """

    __tablename__ = "quiz_questions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    question: Mapped[str] = mapped_column(String(500), nullable=False)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    correct_index: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(10), nullable=False, default="MEDIUM")
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    question_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    hashtags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    lesson_id: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    course_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=True)
    is_course_specific: Mapped[bool] = mapped_column(Boolean, default=False)
    show_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        # 최종 시험 풀 조회용 — Final exam pool lookup
        Index("ix_quiz_questions_pool", "course_id", "is_course_specific", "is_active"),
    )
