"""헬스 체크 라우터 — 서버 및 데이터베이스 상태 확인.

Health Router — Server and database liveness check for load balancers.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.database import get_db
from amanoba.utils.log import get_logger

logger = get_logger(__name__)

router: APIRouter = APIRouter()


@router.get("/health")
async def health_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """서버 상태 확인 엔드포인트.

    Health check. Pings the database; 503 when it is unreachable.
    """
    timestamp: str = datetime.now(timezone.utc).isoformat()
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.error("health_check_failed", error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "disconnected", "timestamp": timestamp},
        )
    return JSONResponse(content={"status": "healthy", "database": "connected", "timestamp": timestamp})
