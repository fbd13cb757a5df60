"""연속 기록 SQLAlchemy ORM 모델 정의.

Streak SQLAlchemy ORM model definitions.

Tables:
    - streaks: 연속 기록 (One row per player and streak type)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import JSON, String, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from amanoba.database import Base

# 연속 기록 유형 — Streak types
STREAK_DAILY_LOGIN: str = "daily_login"


class Streak(Base):
    """연속 기록 모델 — 일일 로그인 연속 일수.

    Streak model — Consecutive-day counter.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        player_id: 플레이어 FK (Owner player)
        streak_type: 유형 (Streak type, e.g. "daily_login")
        current_streak: 현재 연속 일수 (Current run length)
        best_streak: 최고 연속 일수 (Longest run ever)
        last_activity_at: 마지막 활동 일시 (Last counted activity)
        streak_started_at: 현재 연속 시작 일시 (Start of the current run)
        milestones: 달성 마일스톤 목록 (Reached milestones: [{value, achieved_at, points}])
    """

    __tablename__ = "streaks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, index=True)
    streak_type: Mapped[str] = mapped_column(String(20), nullable=False, default=STREAK_DAILY_LOGIN)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_activity_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    streak_started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    milestones: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("player_id", "streak_type", name="uq_streak_player_type"),
    )
