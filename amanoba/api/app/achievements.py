"""앱 업적 라우터 (App Achievement Router)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import get_current_player
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.profile import AchievementListResponse
from amanoba.services.achievement_service import achievement_service

router: APIRouter = APIRouter()


@router.get("/achievements", response_model=AchievementListResponse)
async def list_achievements(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> AchievementListResponse:
    """활성 업적 목록과 달성 여부 (Active achievements with the caller's unlock state)."""
    achievements = await achievement_service.list_for_player(db, current_player.id)
    return AchievementListResponse(achievements=achievements)
