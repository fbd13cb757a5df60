"""포인트 레포지토리 — 지갑 조회/잠금 및 거래 내역 쿼리.

Points Repository — Wallet lookup (optionally row-locked) and transaction log queries.
"""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.points import PointsTransaction, PointsWallet
from amanoba.repositories.base import BaseRepository


class WalletRepository(BaseRepository[PointsWallet]):
    """포인트 지갑 레포지토리 (Points wallet repository)."""

    def __init__(self) -> None:
        super().__init__(PointsWallet)

    async def get_by_player(
        self,
        db: AsyncSession,
        player_id: UUID,
        for_update: bool = False,
    ) -> PointsWallet | None:
        """플레이어의 지갑을 조회합니다.

        Retrieve a player's wallet. With ``for_update`` the row is locked with
        SELECT ... FOR UPDATE until the surrounding transaction ends, and an
        instance already in the session is refreshed from the locked row.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player_id: 플레이어 ID (Player UUID)
            for_update: 행 잠금 여부 (Lock the wallet row)

        Returns:
            PointsWallet | None: 지갑 또는 None (Wallet or None)
        """
        query: Select = select(PointsWallet).where(PointsWallet.player_id == player_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()


class TransactionRepository(BaseRepository[PointsTransaction]):
    """포인트 거래 레포지토리 — 추가 전용 (Append-only transaction repository)."""

    def __init__(self) -> None:
        super().__init__(PointsTransaction)

    def build_player_query(self, player_id: UUID) -> Select:
        """플레이어 거래 내역 쿼리, 최신순 (Player transaction log, newest first)."""
        return (
            select(PointsTransaction)
            .where(PointsTransaction.player_id == player_id)
            .order_by(PointsTransaction.created_at.desc())
        )


# 싱글턴 인스턴스 — Singleton instances
wallet_repository: WalletRepository = WalletRepository()
transaction_repository: TransactionRepository = TransactionRepository()
