"""관리자 플레이어 라우터 — 플레이어 목록, 수정, 포인트 조정.

Admin Player Router — Player list, account updates and points adjustment.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_admin
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.admin import (
    PlayerAdminResponse,
    PlayerAdminUpdate,
    PointsAdjustRequest,
    PointsAdjustResponse,
)
from amanoba.services.player_service import player_service
from amanoba.utils.pagination import Page

router: APIRouter = APIRouter()


@router.get("", response_model=Page)
async def list_players(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
    search: Annotated[str | None, Query(description="이름/이메일 검색")] = None,
    role: Annotated[str | None, Query(description="역할 필터")] = None,
    is_active: Annotated[bool | None, Query(description="활성 상태 필터")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> Page:
    """플레이어 목록 (Paginated players, newest first)."""
    return await player_service.list_players(db, search, role, is_active, page, per_page)


@router.get("/{player_id}", response_model=PlayerAdminResponse)
async def get_player(
    player_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> PlayerAdminResponse:
    return await player_service.get_player(db, player_id)


@router.put("/{player_id}", response_model=PlayerAdminResponse)
async def update_player(
    player_id: UUID,
    data: PlayerAdminUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> PlayerAdminResponse:
    """플레이어 수정 — 역할, 활성, 차단, 프리미엄.

    Update role, activation, ban and premium fields.
    """
    result: PlayerAdminResponse = await player_service.update_player(db, current_player, player_id, data)
    await db.commit()
    return result


@router.post("/{player_id}/points", response_model=PointsAdjustResponse)
async def adjust_points(
    player_id: UUID,
    data: PointsAdjustRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> PointsAdjustResponse:
    """포인트 수동 조정 — 양수 지급, 음수 차감 (Positive adds, negative deducts)."""
    result: PointsAdjustResponse = await player_service.adjust_points(db, current_player, player_id, data)
    await db.commit()
    return result
