"""포인트 지갑 및 거래 내역 SQLAlchemy ORM 모델 정의.

Points wallet and transaction log SQLAlchemy ORM model definitions.
Every balance movement writes exactly one immutable transaction row whose
balance_before + amount equals balance_after.

Tables:
    - points_wallets: 포인트 지갑 (One wallet per player)
    - points_transactions: 포인트 거래 내역 (Append-only transaction log)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, String, DateTime, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from amanoba.database import Base

# 거래 유형 — Transaction types
TX_EARN: str = "earn"
TX_SPEND: str = "spend"
TX_REFUND: str = "refund"
TX_ADMIN_ADD: str = "admin_add"
TX_ADMIN_DEDUCT: str = "admin_deduct"
TX_BONUS: str = "bonus"

# 거래 출처 — Transaction source types
SOURCE_LESSON_COMPLETION: str = "lesson_completion"
SOURCE_COURSE_COMPLETION: str = "course_completion"
SOURCE_ACHIEVEMENT: str = "achievement"
SOURCE_LEVEL_UP: str = "level_up"
SOURCE_CERTIFICATION: str = "certification"
SOURCE_ADMIN: str = "admin"
SOURCE_STREAK: str = "streak"


class PointsWallet(Base):
    """포인트 지갑 모델.

    Points wallet model. Balance never goes negative.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        player_id: 소유 플레이어 FK (Owner player, unique)
        current_balance: 현재 잔액 (Spendable balance)
        lifetime_earned: 누적 적립 (Total points ever credited)
        lifetime_spent: 누적 사용 (Total points ever debited)
    """

    __tablename__ = "points_wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False, unique=True)
    current_balance: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lifetime_earned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lifetime_spent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_wallet_balance_non_negative"),
    )

    player = relationship("Player", back_populates="wallet")


class PointsTransaction(Base):
    """포인트 거래 모델 — 불변 거래 기록.

    Points transaction model — Immutable ledger entry.
    Positive amounts are credits, negative amounts are debits.
    """

    __tablename__ = "points_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    player_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    wallet_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("points_wallets.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_before: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    source_type: Mapped[str] = mapped_column(String(30), nullable=False)
    # 관련 문서 ID — Related record (lesson, achievement, entitlement...), stored as text
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    processed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        CheckConstraint("amount <> 0", name="ck_points_tx_amount_non_zero"),
        CheckConstraint("balance_before + amount = balance_after", name="ck_points_tx_balance"),
        Index("ix_points_tx_player_created", "player_id", "created_at"),
    )
