"""플레이어 관리 서비스 — 관리자 플레이어 목록, 수정, 포인트 조정.

Player Service — Admin player listing, account updates and manual points
adjustment.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.player import Player
from amanoba.models.points import SOURCE_ADMIN, TX_ADMIN_ADD, TX_ADMIN_DEDUCT, PointsTransaction
from amanoba.repositories.player_repository import player_repository
from amanoba.schemas.admin import (
    PlayerAdminResponse,
    PlayerAdminUpdate,
    PointsAdjustRequest,
    PointsAdjustResponse,
)
from amanoba.services.points_service import points_service
from amanoba.utils.exceptions import BadRequestError, NotFoundError
from amanoba.utils.log import get_logger
from amanoba.utils.pagination import Page

logger = get_logger(__name__)


class PlayerService:
    """관리자용 플레이어 비즈니스 로직을 처리하는 서비스.

    Service handling admin player management.
    """

    def _to_response(self, player: Player) -> PlayerAdminResponse:
        return PlayerAdminResponse(
            id=str(player.id),
            display_name=player.display_name,
            email=player.email,
            role=player.role,
            locale=player.locale,
            is_premium=player.is_premium,
            premium_expires_at=player.premium_expires_at,
            is_active=player.is_active,
            is_banned=player.is_banned,
            ban_reason=player.ban_reason,
            last_login_at=player.last_login_at,
            created_at=player.created_at,
        )

    async def _get_player(self, db: AsyncSession, player_id: UUID) -> Player:
        player: Player | None = await player_repository.get_by_id(db, player_id)
        if player is None:
            raise NotFoundError("Player not found")
        return player

    async def list_players(
        self,
        db: AsyncSession,
        search: str | None = None,
        role: str | None = None,
        is_active: bool | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page:
        """플레이어 목록을 페이지 단위로 조회합니다 (Paginated player list, newest first)."""
        items, total = await player_repository.get_paginated(
            db, player_repository.build_search_query(search, role, is_active), page, per_page
        )
        return Page.build([self._to_response(p) for p in items], total, page, per_page)

    async def get_player(self, db: AsyncSession, player_id: UUID) -> PlayerAdminResponse:
        return self._to_response(await self._get_player(db, player_id))

    async def update_player(
        self,
        db: AsyncSession,
        admin: Player,
        player_id: UUID,
        data: PlayerAdminUpdate,
    ) -> PlayerAdminResponse:
        """플레이어 계정을 수정합니다.

        Update role, activation, ban and premium fields. Admins cannot demote,
        deactivate or ban themselves. Unbanning clears the ban reason.

        Raises:
            NotFoundError: 플레이어 없음 (Player not found)
            BadRequestError: 자기 자신의 권한/상태 변경 (Self lock-out attempt)
        """
        player: Player = await self._get_player(db, player_id)
        values: dict[str, Any] = data.model_dump(exclude_unset=True)

        if player.id == admin.id and (
            values.get("role", player.role) != player.role
            or values.get("is_active") is False
            or values.get("is_banned") is True
        ):
            raise BadRequestError("Admins cannot demote, deactivate or ban themselves")
        if values.get("is_banned") is False:
            values["ban_reason"] = None

        updated: Player | None = await player_repository.update(db, player.id, values)
        logger.info("player_updated", player_id=str(player.id), fields=sorted(values), updated_by=str(admin.id))
        return self._to_response(updated)

    async def adjust_points(
        self,
        db: AsyncSession,
        admin: Player,
        player_id: UUID,
        data: PointsAdjustRequest,
    ) -> PointsAdjustResponse:
        """관리자 포인트 조정.

        Positive amounts are credited as ``admin_add``, negative amounts are
        debited as ``admin_deduct``; both record the processing admin.

        Raises:
            NotFoundError: 플레이어 없음 (Player not found)
            BadRequestError: 잔액 부족 (Deduction larger than the balance)
        """
        player: Player = await self._get_player(db, player_id)
        if data.amount > 0:
            tx: PointsTransaction = await points_service.credit(
                db, player.id, data.amount,
                source_type=SOURCE_ADMIN,
                description=data.reason,
                tx_type=TX_ADMIN_ADD,
                processed_by=admin.id,
            )
        else:
            tx = await points_service.debit(
                db, player.id, -data.amount,
                source_type=SOURCE_ADMIN,
                description=data.reason,
                tx_type=TX_ADMIN_DEDUCT,
                processed_by=admin.id,
            )
        return PointsAdjustResponse(transaction=points_service.to_transaction_response(tx), balance=tx.balance_after)


# 싱글턴 인스턴스 — Singleton instance
player_service: PlayerService = PlayerService()
