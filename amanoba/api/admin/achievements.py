"""관리자 업적 라우터 (Admin Achievement Router)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_admin
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.profile import AchievementCreate, AchievementResponse, AchievementUpdate
from amanoba.services.achievement_service import achievement_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[AchievementResponse])
async def list_achievements(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> list[AchievementResponse]:
    """전체 업적 목록 — 비활성 포함 (All achievements, including inactive)."""
    return await achievement_service.list_all(db)


@router.post("", response_model=AchievementResponse, status_code=201)
async def create_achievement(
    data: AchievementCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> AchievementResponse:
    result: AchievementResponse = await achievement_service.create(db, data)
    await db.commit()
    return result


@router.put("/{achievement_id}", response_model=AchievementResponse)
async def update_achievement(
    achievement_id: UUID,
    data: AchievementUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> AchievementResponse:
    result: AchievementResponse = await achievement_service.update(db, achievement_id, data)
    await db.commit()
    return result
