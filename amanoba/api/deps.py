"""FastAPI 의존성 주입 모듈 — 인증 및 역할 검사.

FastAPI dependency injection module — Authentication and authorization.
Provides reusable dependencies for extracting the current player from the
JWT and enforcing role-based access on API endpoints.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies the JWT and returns its payload)
    4. 페이로드의 "sub" 필드로 DB에서 플레이어를 조회
       (Player is fetched from the DB using the "sub" claim)
    5. 활성/차단 상태를 확인 (Active and banned flags are verified)

Roles:
    user < editor < admin. require_editor accepts editors and admins.
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.database import get_db
from amanoba.models.player import ROLE_ADMIN, ROLE_EDITOR, Player
from amanoba.repositories.player_repository import player_repository
from amanoba.utils.exceptions import ForbiddenError, UnauthorizedError
from amanoba.utils.jwt import TOKEN_ACCESS, decode_token

# HTTP Bearer 토큰 추출기 — 헤더가 없으면 None (missing header yields None so we can answer 401)
security: HTTPBearer = HTTPBearer(auto_error=False)


async def _player_from_token(db: AsyncSession, token: str) -> Player:
    """토큰을 검증하고 플레이어를 반환합니다.

    Raises:
        UnauthorizedError: 유효하지 않은 토큰 또는 사용 불가 계정 (Invalid token or unusable account)
    """
    try:
        payload: dict = decode_token(token)
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid or expired token")

    # 토큰 타입 검증 — Reject refresh tokens used as access tokens
    if payload.get("type") != TOKEN_ACCESS:
        raise UnauthorizedError("Invalid token type")
    try:
        player_id: UUID = UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedError("Invalid token")

    player: Player | None = await player_repository.get_by_id(db, player_id)
    if player is None or not player.is_active or player.is_banned:
        raise UnauthorizedError("Player not found or inactive")
    return player


async def get_current_player(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Player:
    """JWT 토큰에서 현재 인증된 플레이어를 추출합니다.

    Decode the JWT from the Authorization header and return the player.

    Args:
        credentials: HTTP Bearer 토큰 자격 증명 (Bearer token credentials, None when absent)
        db: 비동기 DB 세션 (Async database session)

    Returns:
        Player: 인증된 플레이어 (Authenticated player)

    Raises:
        UnauthorizedError: 토큰 없음, 무효, 만료 또는 계정 사용 불가
                           (Missing, invalid or expired token, or unusable account)
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    return await _player_from_token(db, credentials.credentials)


async def require_admin(
    current_player: Annotated[Player, Depends(get_current_player)],
) -> Player:
    """관리자 권한 검사 (Admin only, 403 otherwise)."""
    if current_player.role != ROLE_ADMIN:
        raise ForbiddenError("Admin access required")
    return current_player


async def require_editor(
    current_player: Annotated[Player, Depends(get_current_player)],
) -> Player:
    """에디터 권한 검사 (Editor or admin, 403 otherwise)."""
    if current_player.role not in (ROLE_EDITOR, ROLE_ADMIN):
        raise ForbiddenError("Editor access required")
    return current_player
