"""프로필 및 게이미피케이션 관련 Pydantic 스키마 정의.

Profile and gamification Pydantic schema definitions.
Covers progression, wallet, transaction log, achievements and leaderboards.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from amanoba.schemas.auth import PlayerMeResponse


class ProgressionResponse(BaseModel):
    """레벨/경험치 응답 (Level and XP snapshot)."""

    level: int
    current_xp: int
    xp_to_next_level: int
    total_xp: int
    title: str | None = None
    lessons_completed: int
    courses_completed: int


class WalletResponse(BaseModel):
    """포인트 지갑 응답 (Points wallet snapshot)."""

    current_balance: int
    lifetime_earned: int
    lifetime_spent: int


class StreakResponse(BaseModel):
    """일일 로그인 연속 기록 (Daily login streak; current is 0 once the run has lapsed)."""

    current_streak: int = 0
    best_streak: int = 0
    last_activity_at: datetime | None = None


class ProfileStats(BaseModel):
    courses_enrolled: int = 0
    courses_completed: int = 0
    certificates: int = 0
    achievements: int = 0


class ProfileResponse(BaseModel):
    """내 프로필 응답 (Own profile with progression, wallet and counters)."""

    success: bool = True
    player: PlayerMeResponse
    progression: ProgressionResponse
    wallet: WalletResponse
    streak: StreakResponse
    stats: ProfileStats


class ProfileUpdate(BaseModel):
    """프로필 수정 요청 (부분 업데이트)."""

    display_name: str | None = Field(default=None, min_length=1, max_length=50)
    locale: str | None = Field(default=None, min_length=2, max_length=10)


class PublicPlayer(BaseModel):
    """공개 플레이어 정보 — 이메일 제외 (Public player info, never includes email)."""

    id: str
    display_name: str
    created_at: datetime


class PublicCertificate(BaseModel):
    course_id: str  # 코스 코드 (Course code)
    course_title: str
    verification_slug: str
    issued_at: datetime


class PublicProfileResponse(BaseModel):
    success: bool = True
    player: PublicPlayer
    progression: ProgressionResponse
    certificates: list[PublicCertificate] = []
    achievements_unlocked: int = 0


class TransactionResponse(BaseModel):
    """포인트 거래 응답 (Points transaction entry)."""

    id: str
    type: str
    amount: int
    balance_before: int
    balance_after: int
    source_type: str
    reference_id: str | None = None
    description: str
    created_at: datetime


# === 업적 (Achievement) 스키마 ===

class AchievementCreate(BaseModel):
    """업적 생성 요청 스키마 (Achievement creation, course scope by course code)."""

    key: str = Field(..., pattern=r"^[a-z0-9_]+$", max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    category: str = "course"
    criteria_type: str = Field(
        ...,
        pattern=r"^(lessons_completed|courses_completed|level_reached|certificates_earned|perfect_final_exam)$",
    )
    criteria_target: int = Field(default=1, ge=1)
    course_id: str | None = None
    points_reward: int = Field(default=0, ge=0)
    xp_reward: int = Field(default=0, ge=0)
    is_active: bool = True


class AchievementUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    category: str | None = None
    criteria_target: int | None = Field(default=None, ge=1)
    points_reward: int | None = Field(default=None, ge=0)
    xp_reward: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class AchievementResponse(BaseModel):
    id: str
    key: str
    name: str
    description: str
    category: str
    criteria_type: str
    criteria_target: int
    course_id: str | None = None  # 코스 코드 (Scoped course code)
    points_reward: int
    xp_reward: int
    is_active: bool
    unlock_count: int


class PlayerAchievementResponse(AchievementResponse):
    """플레이어별 달성 여부 포함 (Achievement with the caller's unlock state)."""

    unlocked: bool = False
    unlocked_at: datetime | None = None


class AchievementListResponse(BaseModel):
    success: bool = True
    achievements: list[PlayerAchievementResponse]


# === 리더보드 (Leaderboard) 스키마 ===

class LeaderboardEntry(BaseModel):
    rank: int
    player_id: str
    display_name: str
    level: int
    value: int  # 지표 값 (Metric value: points, XP, level, lessons or streak days)


class LeaderboardResponse(BaseModel):
    success: bool = True
    metric: str
    period: str = "all_time"
    entries: list[LeaderboardEntry]
