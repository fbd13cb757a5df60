"""앱 인증 라우터 — 회원가입, 로그인, 토큰 갱신, 내 정보.

App Auth Router — Registration, login, token refresh and current player.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import get_current_player
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.auth import (
    LoginRequest,
    PlayerMeResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from amanoba.services.auth_service import auth_service

router: APIRouter = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """플레이어 회원가입 — user 역할 계정 생성.

    Player registration. Creates a ``user`` account with wallet and progression.
    """
    result: TokenResponse = await auth_service.register(db, data)
    await db.commit()
    return result


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """로그인 (Login with email and password)."""
    result: TokenResponse = await auth_service.login(db, data)
    await db.commit()
    return result


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    data: RefreshRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """토큰 갱신 — 리프레시 토큰으로 새 토큰 쌍 발급.

    Refresh token endpoint. Issues a new token pair using a refresh token.
    """
    return await auth_service.refresh_tokens(db, data)


@router.get("/me", response_model=PlayerMeResponse)
async def get_me(
    current_player: Annotated[Player, Depends(get_current_player)],
) -> PlayerMeResponse:
    """현재 로그인한 플레이어 정보 (Current player)."""
    return auth_service.to_me_response(current_player)
