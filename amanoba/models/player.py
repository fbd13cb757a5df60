"""플레이어 및 성장 관련 SQLAlchemy ORM 모델 정의.

Player and progression SQLAlchemy ORM model definitions.
A player is any authenticated account; the role column decides whether the
account may also use the editor or admin tooling.

Tables:
    - players: 플레이어 계정 (Player accounts, soft-delete via is_active)
    - player_progressions: 레벨/경험치 (Level, XP and learning counters, one per player)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Integer, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amanoba.database import Base

# 역할 상수 — Player role values
ROLE_USER: str = "user"
ROLE_EDITOR: str = "editor"
ROLE_ADMIN: str = "admin"
PLAYER_ROLES: tuple[str, ...] = (ROLE_USER, ROLE_EDITOR, ROLE_ADMIN)


class Player(Base):
    """플레이어 모델 — 학습자 계정 정보.

    Player model — Learner account information.
    Email is globally unique and used as the login identifier.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        display_name: 표시 이름 (Public display name, max 50 chars)
        email: 이메일 (Login email, unique)
        password_hash: bcrypt 해시된 비밀번호 (bcrypt-hashed password)
        role: 역할 (user | editor | admin)
        locale: 언어 코드 (Preferred locale, e.g. "hu", "en")
        is_premium: 프리미엄 여부 (Premium subscription flag)
        premium_expires_at: 프리미엄 만료 일시 (Premium expiry, optional)
        is_active: 활성 상태 (Soft-delete flag)
        is_banned: 차단 여부 (Ban flag)
        ban_reason: 차단 사유 (Ban reason, optional)
        last_login_at: 마지막 로그인 일시 (Last successful login)
    """

    __tablename__ = "players"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    display_name: Mapped[str] = mapped_column(String(50), nullable=False)
    # 로그인 이메일 — 소문자로 정규화되어 저장 (Stored lower-cased)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)
    locale: Mapped[str] = mapped_column(String(10), nullable=False, default="hu")
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False)
    premium_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_banned: Mapped[bool] = mapped_column(Boolean, default=False)
    ban_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 — Relationships
    progression = relationship("PlayerProgression", back_populates="player", uselist=False, cascade="all, delete-orphan")
    wallet = relationship("PointsWallet", back_populates="player", uselist=False, cascade="all, delete-orphan")

    def has_active_premium(self, now: datetime | None = None) -> bool:
        """프리미엄이 유효한지 확인합니다 (Premium flag set and not yet expired)."""
        if not self.is_premium:
            return False
        if self.premium_expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        expires_at: datetime = self.premium_expires_at
        # SQLite는 tz 정보를 보존하지 않음 — naive values are stored as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at > now


class PlayerProgression(Base):
    """플레이어 성장 모델 — 레벨, 경험치, 학습 카운터.

    Player progression model — Level, XP and learning counters.
    Exactly one row per player, created lazily on first XP gain.
    """

    __tablename__ = "player_progressions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, unique=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    current_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # 다음 레벨까지 필요한 경험치 — floor(level * 100 * (1 + level * 0.1)), level 1 = 110
    xp_to_next_level: Mapped[int] = mapped_column(Integer, nullable=False, default=110)
    total_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str | None] = mapped_column(String(50), nullable=True)
    lessons_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    courses_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    player = relationship("Player", back_populates="progression")
