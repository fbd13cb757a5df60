"""인증 관련 Pydantic 요청/응답 스키마 정의.

Authentication-related Pydantic request/response schema definitions.
Covers registration, login, token issuance/refresh, and current player info.
"""

from datetime import datetime
from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """플레이어 회원가입 요청 스키마.

    Player self-registration request schema.
    Creates a new player with the default ``user`` role.

    Attributes:
        display_name: 표시 이름 (Public display name, 1..50 chars)
        email: 이메일 (Login email, unique, stored lower-cased)
        password: 비밀번호 (Plain text, will be bcrypt-hashed on server)
        locale: 언어 코드 (Preferred locale, optional)
    """

    display_name: str = Field(..., min_length=1, max_length=50)  # 표시 이름 (Display name)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)  # 이메일 (Email address)
    password: str = Field(..., min_length=8, max_length=128)  # 비밀번호 — 최소 8자 (At least 8 chars)
    locale: str | None = Field(default=None, max_length=10)  # 언어 코드 (Locale, optional)


class LoginRequest(BaseModel):
    """로그인 요청 스키마.

    Login request schema.

    Attributes:
        email: 로그인 이메일 (Login email, case-insensitive)
        password: 비밀번호 (Plain text password, verified against bcrypt hash)
    """

    email: str  # 로그인 이메일 (Login email)
    password: str  # 비밀번호 — 평문, 서버에서 bcrypt 해시와 비교 (Plain text, compared to bcrypt hash)


class TokenResponse(BaseModel):
    """JWT 토큰 발급 응답 스키마.

    JWT token issuance response schema.
    Returned after successful registration, login or token refresh.
    """

    access_token: str  # JWT 액세스 토큰 — 만료: 60분 기본 (Access token, default TTL: 60min)
    refresh_token: str  # JWT 리프레시 토큰 — 만료: 14일 기본 (Refresh token, default TTL: 14 days)
    token_type: str = "bearer"  # 토큰 유형 — 항상 "bearer" (Token type for Authorization header)


class RefreshRequest(BaseModel):
    """토큰 갱신 요청 스키마 (Exchange a refresh token for a new token pair)."""

    refresh_token: str  # 기존 리프레시 토큰 (Current refresh token)


class PlayerMeResponse(BaseModel):
    """현재 플레이어 정보 응답 스키마 (GET /me).

    Current player info response schema.

    Attributes:
        id: 플레이어 UUID (Player unique identifier)
        display_name: 표시 이름 (Display name)
        email: 이메일 (Login email)
        role: 역할 (user | editor | admin)
        locale: 언어 코드 (Preferred locale)
        is_premium: 프리미엄 활성 여부 (Whether premium is currently active)
        premium_expires_at: 프리미엄 만료 일시 (Premium expiry, nullable)
        created_at: 가입 일시 (Registration timestamp)
    """

    id: str
    display_name: str
    email: str
    role: str
    locale: str
    is_premium: bool
    premium_expires_at: datetime | None = None
    created_at: datetime
