"""코스 및 레슨 SQLAlchemy ORM 모델 정의.

Course and lesson SQLAlchemy ORM model definitions.
Courses carry their reward, lesson-quiz policy and certification settings as
JSON sub-documents; lessons are addressed by day number within a course.

Tables:
    - courses: 코스 (Courses, soft-delete via is_active)
    - lessons: 레슨 (Day-numbered lessons, with per-lesson quiz config)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, Boolean, DateTime, Integer, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amanoba.database import Base


def default_certification_config() -> dict[str, Any]:
    """코스 인증 설정 기본값 (Default course certification sub-document)."""
    return {
        "enabled": False,
        "pool_course_id": None,
        "cert_question_count": None,
        "pass_threshold_percent": None,
        "require_all_lessons_completed": True,
        "require_all_quizzes_passed": True,
        "price_points": None,
        "price_money": None,
        "premium_includes_certification": False,
        "template_id": None,
        "template_variant_ids": [],
        "template_variant_weights": [],
        "credential_title_id": None,
    }


def default_lesson_quiz_policy() -> dict[str, Any]:
    """코스 단위 레슨 퀴즈 정책 기본값 (Default course-wide lesson quiz policy)."""
    return {"enabled": True, "required": True, "question_count": None, "success_threshold": None}


def default_quiz_config() -> dict[str, Any]:
    """레슨 퀴즈 설정 기본값 (Default per-lesson quiz sub-document)."""
    return {"enabled": False, "success_threshold": 70, "question_count": 5, "pool_size": 10, "required": True}


class Course(Base):
    """코스 모델 — 일 단위 레슨으로 구성된 학습 과정.

    Course model — A learning program made of day-numbered lessons.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        course_id: 코스 코드 (Public code, ^[A-Z0-9_]+$, unique)
        name: 코스 이름 (Course name)
        description: 설명 (Description)
        language: 언어 코드 (Language code, lower-case)
        thumbnail: 썸네일 URL (Thumbnail URL, optional)
        duration_days: 기간(일) (Number of lesson days, 1..365)
        is_active: 활성 상태 (Soft-delete and visibility flag)
        requires_premium: 프리미엄 전용 여부 (Premium-only enrolment)
        lesson_points / lesson_xp: 레슨 완료 보상 (Per-lesson rewards)
        completion_points / completion_xp: 코스 완료 보상 (Course completion rewards)
        lesson_quiz_policy: 레슨 퀴즈 정책 JSON (Course-wide lesson quiz policy)
        certification: 인증 설정 JSON (Certification sub-document)
        assigned_editors: 담당 에디터 ID 목록 JSON (Assigned editor player ids, as strings)
        created_by: 생성자 플레이어 ID (Creator player id, optional)
    """

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    course_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="hu")
    thumbnail: Mapped[str | None] = mapped_column(String(500), nullable=True)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    requires_premium: Mapped[bool] = mapped_column(Boolean, default=False)
    # 보상 설정 — Reward configuration
    lesson_points: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    lesson_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=25)
    completion_points: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    completion_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=250)
    # JSON 하위 문서 — in-place 변경 대신 재할당 필요 (Reassign, do not mutate in place)
    lesson_quiz_policy: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=default_lesson_quiz_policy)
    certification: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=default_certification_config)
    assigned_editors: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("players.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    lessons = relationship("Lesson", back_populates="course", cascade="all, delete-orphan", order_by="Lesson.day_number")


class Lesson(Base):
    """레슨 모델 — 코스 내 특정 일차의 학습 내용.

    Lesson model — Content for one day of a course.
    """

    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lesson_id: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)
    course_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    day_number: Mapped[int] = mapped_column(Integer, nullable=False)
    language: Mapped[str] = mapped_column(String(10), nullable=False, default="hu")
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    email_subject: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    quiz_config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=default_quiz_config)
    # 레슨별 보상 — None이면 코스 설정 사용 (Falls back to the course reward when None)
    points_reward: Mapped[int | None] = mapped_column(Integer, nullable=True)
    xp_reward: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("course_id", "day_number", "display_order", name="uq_lesson_course_day_order"),
    )

    course = relationship("Course", back_populates="lessons")
