"""포인트 서비스 — 지갑 적립/차감 및 거래 내역 비즈니스 로직.

Points Service — Wallet credit/debit and transaction log business logic.
Every balance movement writes exactly one immutable PointsTransaction row.
Wallets are created on demand and locked (SELECT ... FOR UPDATE) before
their balance changes.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.points import TX_EARN, TX_SPEND, PointsTransaction, PointsWallet
from amanoba.repositories.points_repository import transaction_repository, wallet_repository
from amanoba.schemas.profile import TransactionResponse, WalletResponse
from amanoba.utils.exceptions import BadRequestError
from amanoba.utils.log import get_logger
from amanoba.utils.pagination import Page

logger = get_logger(__name__)


class PointsService:
    """포인트 지갑 관련 비즈니스 로직을 처리하는 서비스.

    Service handling points wallet business logic.
    Callers own the transaction: nothing here commits.
    """

    def to_transaction_response(self, tx: PointsTransaction) -> TransactionResponse:
        """거래 모델을 응답 스키마로 변환합니다 (Convert a transaction to its response)."""
        return TransactionResponse(
            id=str(tx.id),
            type=tx.type,
            amount=tx.amount,
            balance_before=tx.balance_before,
            balance_after=tx.balance_after,
            source_type=tx.source_type,
            reference_id=tx.reference_id,
            description=tx.description,
            created_at=tx.created_at,
        )

    def to_wallet_response(self, wallet: PointsWallet | None) -> WalletResponse:
        if wallet is None:
            return WalletResponse(current_balance=0, lifetime_earned=0, lifetime_spent=0)
        return WalletResponse(
            current_balance=wallet.current_balance,
            lifetime_earned=wallet.lifetime_earned,
            lifetime_spent=wallet.lifetime_spent,
        )

    async def get_or_create_wallet(
        self,
        db: AsyncSession,
        player_id: UUID,
        for_update: bool = False,
    ) -> PointsWallet:
        """플레이어 지갑을 조회하거나 새로 생성합니다.

        Return the player's wallet, creating an empty one on first use.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player_id: 플레이어 ID (Player UUID)
            for_update: 행 잠금 여부 (Lock the wallet row for the rest of the transaction)

        Returns:
            PointsWallet: 플레이어 지갑 (The player's wallet)
        """
        wallet: PointsWallet | None = await wallet_repository.get_by_player(db, player_id, for_update=for_update)
        if wallet is None:
            wallet = await wallet_repository.create(db, {"player_id": player_id})
        return wallet

    async def credit(
        self,
        db: AsyncSession,
        player_id: UUID,
        amount: int,
        source_type: str,
        description: str,
        reference_id: str | None = None,
        tx_type: str = TX_EARN,
        processed_by: UUID | None = None,
    ) -> PointsTransaction:
        """지갑에 포인트를 적립하고 거래를 기록합니다.

        Credit points to a wallet and append the transaction.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player_id: 플레이어 ID (Player UUID)
            amount: 적립 포인트, 양수 (Points to add, must be positive)
            source_type: 거래 출처 (Source type, e.g. "lesson_completion")
            description: 거래 설명 (Human readable description)
            reference_id: 관련 레코드 ID (Related record id, optional)
            tx_type: 거래 유형 (earn | refund | admin_add | bonus)
            processed_by: 처리 관리자 ID (Admin who triggered the movement, optional)

        Returns:
            PointsTransaction: 생성된 거래 (The appended transaction)

        Raises:
            BadRequestError: 금액이 0 이하일 때 (Non-positive amount)
        """
        if amount <= 0:
            raise BadRequestError("Credit amount must be positive")

        wallet: PointsWallet = await self.get_or_create_wallet(db, player_id, for_update=True)
        balance_before: int = wallet.current_balance
        wallet.current_balance = balance_before + amount
        wallet.lifetime_earned = wallet.lifetime_earned + amount

        tx: PointsTransaction = await transaction_repository.create(db, {
            "player_id": player_id,
            "wallet_id": wallet.id,
            "type": tx_type,
            "amount": amount,
            "balance_before": balance_before,
            "balance_after": wallet.current_balance,
            "source_type": source_type,
            "reference_id": reference_id,
            "description": description,
            "processed_by": processed_by,
        })
        logger.info(
            "points_credited",
            player_id=str(player_id),
            amount=amount,
            source_type=source_type,
            balance=wallet.current_balance,
        )
        return tx

    async def debit(
        self,
        db: AsyncSession,
        player_id: UUID,
        amount: int,
        source_type: str,
        description: str,
        reference_id: str | None = None,
        tx_type: str = TX_SPEND,
        processed_by: UUID | None = None,
    ) -> PointsTransaction:
        """지갑에서 포인트를 차감하고 거래를 기록합니다.

        Debit points from a wallet and append the transaction. The wallet row
        stays locked until the caller commits.

        Raises:
            BadRequestError: 금액이 0 이하이거나 잔액 부족 (Non-positive amount or insufficient balance)
        """
        if amount <= 0:
            raise BadRequestError("Debit amount must be positive")

        wallet: PointsWallet = await self.get_or_create_wallet(db, player_id, for_update=True)
        balance_before: int = wallet.current_balance
        if balance_before < amount:
            raise BadRequestError("Insufficient points balance")

        wallet.current_balance = balance_before - amount
        wallet.lifetime_spent = wallet.lifetime_spent + amount

        tx: PointsTransaction = await transaction_repository.create(db, {
            "player_id": player_id,
            "wallet_id": wallet.id,
            "type": tx_type,
            "amount": -amount,
            "balance_before": balance_before,
            "balance_after": wallet.current_balance,
            "source_type": source_type,
            "reference_id": reference_id,
            "description": description,
            "processed_by": processed_by,
        })
        logger.info(
            "points_debited",
            player_id=str(player_id),
            amount=amount,
            source_type=source_type,
            balance=wallet.current_balance,
        )
        return tx

    async def list_transactions(
        self,
        db: AsyncSession,
        player_id: UUID,
        page: int = 1,
        per_page: int = 20,
    ) -> Page:
        """플레이어 거래 내역을 페이지 단위로 조회합니다 (Paginated transaction log, newest first)."""
        items, total = await transaction_repository.get_paginated(
            db, transaction_repository.build_player_query(player_id), page, per_page
        )
        return Page.build([self.to_transaction_response(tx) for tx in items], total, page, per_page)


# 싱글턴 인스턴스 — Singleton instance
points_service: PointsService = PointsService()
