"""관리자 통계 라우터 (Admin Stats Router)."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_admin
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.admin import StatsResponse
from amanoba.services.dashboard_service import dashboard_service

router: APIRouter = APIRouter()


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> StatsResponse:
    """플랫폼 통계 (Platform-wide counters and final exam pass rate)."""
    return await dashboard_service.get_stats(db)
