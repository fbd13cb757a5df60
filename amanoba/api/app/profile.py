"""앱 프로필 라우터 — 내 프로필, 공개 프로필, 포인트 거래 내역.

App Profile Router — Own profile, public profiles and the points
transaction log.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import get_current_player
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.profile import ProfileResponse, ProfileUpdate, PublicProfileResponse
from amanoba.services.points_service import points_service
from amanoba.services.profile_service import profile_service
from amanoba.utils.pagination import Page

router: APIRouter = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_my_profile(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> ProfileResponse:
    """내 프로필을 조회합니다.

    Get the current player's profile.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_player: 인증된 플레이어 (Authenticated player)

    Returns:
        ProfileResponse: 프로필 정보 (Profile information)
    """
    return await profile_service.get_profile(db, current_player)


@router.put("/profile", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> ProfileResponse:
    """내 프로필을 업데이트합니다.

    Update the current player's display name and/or locale.
    """
    result: ProfileResponse = await profile_service.update_profile(db, current_player, data)
    await db.commit()
    return result


@router.get("/profile/wallet/transactions", response_model=Page)
async def list_my_transactions(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> Page:
    """포인트 거래 내역 (Paginated points transaction log, newest first)."""
    return await points_service.list_transactions(db, current_player.id, page, per_page)


@router.get("/profile/{player_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    player_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PublicProfileResponse:
    """공개 프로필 — 이메일 미포함 (Public profile, never includes email)."""
    return await profile_service.get_public_profile(db, player_id)
