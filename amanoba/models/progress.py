"""코스 진행 상황 및 레슨 퀴즈 결과 SQLAlchemy ORM 모델 정의.

Course progress and lesson quiz result SQLAlchemy ORM model definitions.

Tables:
    - course_progress: 플레이어별 코스 진행 (One row per player per course)
    - assessment_results: 레슨 퀴즈 채점 결과 (Graded lesson quiz submissions)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, Boolean, DateTime, Float, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amanoba.database import Base

# 진행 상태 — Progress status values
PROGRESS_NOT_STARTED: str = "not_started"
PROGRESS_IN_PROGRESS: str = "in_progress"
PROGRESS_COMPLETED: str = "completed"
PROGRESS_ABANDONED: str = "abandoned"


class CourseProgress(Base):
    """코스 진행 모델 — 수강 등록과 일차별 완료 기록.

    Course progress model — Enrolment plus per-day completion record.
    completed_days holds day numbers; assessment_results maps the day number
    (as a string key) to the id of the passing AssessmentResult.
    """

    __tablename__ = "course_progress"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    current_day: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    completed_days: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    assessment_results: Mapped[dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    total_points_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_xp_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=PROGRESS_NOT_STARTED)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_accessed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("player_id", "course_id", name="uq_course_progress_player_course"),
    )

    course = relationship("Course")

    def is_day_completed(self, day: int) -> bool:
        """해당 일차 완료 여부 (Whether the given day number is completed)."""
        return day in (self.completed_days or [])

    def has_passed_quiz(self, day: int) -> bool:
        """해당 일차 퀴즈 통과 여부 (Whether a passing quiz result is recorded for the day)."""
        return str(day) in (self.assessment_results or {})


class AssessmentResult(Base):
    """레슨 퀴즈 결과 모델.

    Lesson quiz result model. answers holds
    ``[{question_id, selected_index, is_correct}]``.
    """

    __tablename__ = "assessment_results"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    lesson_id: Mapped[str] = mapped_column(String(120), nullable=False)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_percent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    passed: Mapped[bool] = mapped_column(Boolean, default=False)
    answers: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
