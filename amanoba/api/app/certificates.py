"""공개 인증서 라우터 — 인증 없이 인증서 조회 및 검증.

Public Certificate Router — Certificate lookup by verification slug and
validity check by player and course. No authentication required.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.database import get_db
from amanoba.schemas.certification import CertificateEnvelope, CertificateVerifyResponse
from amanoba.services.certification_service import certification_service

router: APIRouter = APIRouter()


@router.get("/verify/{player_id}/{course_id}", response_model=CertificateVerifyResponse)
async def verify_certificate(
    player_id: str,
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CertificateVerifyResponse:
    """인증서 유효성 확인 (valid = exists and not revoked)."""
    return await certification_service.verify(db, player_id, course_id)


@router.get("/{slug}", response_model=CertificateEnvelope)
async def get_certificate(
    slug: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CertificateEnvelope:
    """검증 슬러그로 공개 인증서 조회 (Public certificate by verification slug)."""
    return await certification_service.get_public_certificate(db, slug)
