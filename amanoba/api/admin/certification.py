"""관리자 인증 라우터 — 인증서 관리, 전역 설정, 응시 권한.

Admin Certification Router — Certificate list/revoke/reinstate, global
certification settings and entitlement grant/revoke.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_admin
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.certification import (
    CertificateResponse,
    CertificateRevokeRequest,
    CertificationSettingsResponse,
    CertificationSettingsUpdate,
    EntitlementGrantRequest,
    EntitlementResponse,
)
from amanoba.services.certification_service import certification_service
from amanoba.utils.exceptions import BadRequestError
from amanoba.utils.pagination import Page

router: APIRouter = APIRouter()


# --- 인증서 (Certificates) ---


@router.get("/certificates", response_model=Page)
async def list_certificates(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
    course_id: Annotated[str | None, Query(description="코스 코드 필터")] = None,
    is_revoked: Annotated[bool | None, Query(description="취소 여부 필터")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> Page:
    """인증서 목록 (Paginated certificates, newest first)."""
    return await certification_service.list_certificates(db, course_id, is_revoked, page, per_page)


@router.post("/certificates/{certificate_id}/revoke", response_model=CertificateResponse)
async def revoke_certificate(
    certificate_id: str,
    data: CertificateRevokeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CertificateResponse:
    result: CertificateResponse = await certification_service.admin_revoke(db, certificate_id, data.reason)
    await db.commit()
    return result


@router.post("/certificates/{certificate_id}/reinstate", response_model=CertificateResponse)
async def reinstate_certificate(
    certificate_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CertificateResponse:
    result: CertificateResponse = await certification_service.admin_reinstate(db, certificate_id)
    await db.commit()
    return result


# --- 전역 설정 (Global settings) ---


@router.get("/certification/settings", response_model=CertificationSettingsResponse)
async def get_certification_settings(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CertificationSettingsResponse:
    return await certification_service.get_settings(db)


@router.put("/certification/settings", response_model=CertificationSettingsResponse)
async def update_certification_settings(
    data: CertificationSettingsUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CertificationSettingsResponse:
    """전역 인증서 설정 수정 (Upsert global template and credential settings)."""
    result: CertificationSettingsResponse = await certification_service.update_settings(db, data)
    await db.commit()
    return result


# --- 응시 권한 (Entitlements) ---


def _parse_player_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        raise BadRequestError("Invalid player_id")


@router.post("/entitlements", response_model=EntitlementResponse, status_code=201)
async def grant_entitlement(
    data: EntitlementGrantRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> EntitlementResponse:
    """응시 권한 부여 (Grant an entitlement; already owned → 409)."""
    result: EntitlementResponse = await certification_service.grant_entitlement(
        db, current_player, _parse_player_id(data.player_id), data.course_id
    )
    await db.commit()
    return result


@router.delete("/entitlements/{player_id}/{course_id}", status_code=204)
async def revoke_entitlement(
    player_id: UUID,
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> None:
    await certification_service.revoke_entitlement(db, player_id, course_id)
    await db.commit()
