"""JWT 토큰 생성 및 검증 유틸리티 모듈.

JWT token creation and verification utility module.

JWT Payload Structure:
    {
        "sub": "player_uuid",       # 플레이어 ID (Player identifier)
        "role": "user",             # 역할 (user | editor | admin)
        "iat": 1234567000,          # 발급 시간 (Issued at)
        "exp": 1234567890,          # 만료 시간 UNIX timestamp (Expiration)
        "type": "access"|"refresh"  # 토큰 유형 (Token type discriminator)
    }
"""

from datetime import datetime, timedelta, timezone
from typing import Any
import jwt

from amanoba.config import settings

# 토큰 유형 — Token type discriminators
TOKEN_ACCESS: str = "access"
TOKEN_REFRESH: str = "refresh"


def _encode(data: dict[str, Any], token_type: str, lifetime: timedelta) -> str:
    now: datetime = datetime.now(timezone.utc)
    claims: dict[str, Any] = {**data, "iat": now, "exp": now + lifetime, "type": token_type}
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: dict[str, Any]) -> str:
    """JWT 액세스 토큰을 생성합니다.

    Generate a JWT access token. Expires after JWT_ACCESS_TOKEN_EXPIRE_MINUTES.

    Args:
        data: JWT 페이로드 데이터, 일반적으로 {"sub": player_id, "role": role}
              (JWT payload data)

    Returns:
        str: 인코딩된 JWT 문자열 (Encoded JWT token string)
    """
    return _encode(data, TOKEN_ACCESS, timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(data: dict[str, Any]) -> str:
    """JWT 리프레시 토큰을 생성합니다 (Refresh token, expires after JWT_REFRESH_TOKEN_EXPIRE_DAYS)."""
    return _encode(data, TOKEN_REFRESH, timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str) -> dict[str, Any]:
    """JWT 토큰을 디코딩하고 서명과 만료를 검증합니다.

    Decode a JWT, verifying signature and expiry. The ``type`` claim is left
    to the caller.

    Raises:
        jwt.ExpiredSignatureError: 토큰 만료 시 (When token has expired)
        jwt.InvalidTokenError: 유효하지 않은 토큰 (When token is invalid)
    """
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub", "type"]},
    )
