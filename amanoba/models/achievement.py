"""업적 SQLAlchemy ORM 모델 정의.

Achievement SQLAlchemy ORM model definitions.

Tables:
    - achievements: 업적 정의 (Achievement definitions with unlock criteria)
    - achievement_unlocks: 업적 달성 기록 (One row per player per unlocked achievement)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amanoba.database import Base

# 달성 조건 유형 — Criteria types
CRITERIA_LESSONS_COMPLETED: str = "lessons_completed"
CRITERIA_COURSES_COMPLETED: str = "courses_completed"
CRITERIA_LEVEL_REACHED: str = "level_reached"
CRITERIA_CERTIFICATES_EARNED: str = "certificates_earned"
CRITERIA_PERFECT_FINAL_EXAM: str = "perfect_final_exam"
CRITERIA_TYPES: tuple[str, ...] = (
    CRITERIA_LESSONS_COMPLETED,
    CRITERIA_COURSES_COMPLETED,
    CRITERIA_LEVEL_REACHED,
    CRITERIA_CERTIFICATES_EARNED,
    CRITERIA_PERFECT_FINAL_EXAM,
)


class Achievement(Base):
    """업적 모델.

    Achievement model. course_id, when set, scopes lesson/course criteria to
    a single course.
    """

    __tablename__ = "achievements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(30), nullable=False, default="course")
    criteria_type: Mapped[str] = mapped_column(String(30), nullable=False)
    criteria_target: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    course_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("courses.id", ondelete="CASCADE"), nullable=True)
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    xp_reward: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    unlock_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class AchievementUnlock(Base):
    """업적 달성 기록 모델 (Achievement unlock record)."""

    __tablename__ = "achievement_unlocks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    achievement_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)
    current_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("player_id", "achievement_id", name="uq_achievement_unlock_player_achievement"),
    )

    achievement = relationship("Achievement")
