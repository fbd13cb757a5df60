"""앱 리더보드 라우터 (App Leaderboard Router)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.database import get_db
from amanoba.schemas.profile import LeaderboardResponse
from amanoba.services.leaderboard_service import leaderboard_service

router: APIRouter = APIRouter()


@router.get("/leaderboards", response_model=LeaderboardResponse)
async def get_leaderboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    metric: Annotated[str, Query(description="points | points_lifetime | xp | level | lessons | streak")] = "points",
    period: Annotated[str, Query(description="all_time | daily | weekly | monthly (points metrics only)")] = "all_time",
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
) -> LeaderboardResponse:
    """리더보드 조회 (Ranked players by the chosen metric and period)."""
    return await leaderboard_service.get_leaderboard(db, metric, limit, period)
