"""인증 서비스 — 회원가입, 로그인, 토큰 갱신 비즈니스 로직.

Auth Service — Business logic for registration, login and token refresh.
Tokens are stateless JWTs; a refresh token is only accepted when its
``type`` claim is ``refresh``.
"""

from datetime import datetime, timezone
from uuid import UUID

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.player import ROLE_USER, Player
from amanoba.repositories.player_repository import player_repository
from amanoba.schemas.auth import (
    LoginRequest,
    PlayerMeResponse,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
)
from amanoba.services.points_service import points_service
from amanoba.services.progression_service import progression_service
from amanoba.services.streak_service import streak_service
from amanoba.utils.exceptions import DuplicateError, UnauthorizedError
from amanoba.utils.jwt import TOKEN_REFRESH, create_access_token, create_refresh_token, decode_token
from amanoba.utils.log import get_logger
from amanoba.utils.password import hash_password, verify_password

logger = get_logger(__name__)


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    """

    def _build_jwt_payload(self, player: Player) -> dict[str, str]:
        """JWT 토큰 페이로드를 생성합니다 (Build the JWT payload from a player)."""
        return {"sub": str(player.id), "role": player.role}

    def _generate_tokens(self, player: Player) -> TokenResponse:
        """액세스 토큰과 리프레시 토큰을 생성합니다 (Generate an access/refresh token pair)."""
        payload: dict[str, str] = self._build_jwt_payload(player)
        return TokenResponse(
            access_token=create_access_token(payload),
            refresh_token=create_refresh_token(payload),
        )

    def to_me_response(self, player: Player) -> PlayerMeResponse:
        return PlayerMeResponse(
            id=str(player.id),
            display_name=player.display_name,
            email=player.email,
            role=player.role,
            locale=player.locale,
            is_premium=player.has_active_premium(),
            premium_expires_at=player.premium_expires_at,
            created_at=player.created_at,
        )

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
    ) -> TokenResponse:
        """플레이어 회원가입을 처리합니다.

        Register a new player with the ``user`` role, an empty wallet and a
        level 1 progression.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 회원가입 요청 데이터 (Registration request data)

        Returns:
            TokenResponse: 토큰 응답 (Token response)

        Raises:
            DuplicateError: 같은 이메일이 이미 존재할 때 (Email already registered)
        """
        email: str = data.email.strip().lower()
        if await player_repository.get_by_email(db, email) is not None:
            raise DuplicateError("Email already registered")

        player: Player = await player_repository.create(db, {
            "display_name": data.display_name.strip(),
            "email": email,
            "password_hash": hash_password(data.password),
            "role": ROLE_USER,
            "locale": data.locale or "hu",
        })
        await points_service.get_or_create_wallet(db, player.id)
        await progression_service.get_or_create(db, player.id)

        logger.info("player_registered", player_id=str(player.id))
        return self._generate_tokens(player)

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> TokenResponse:
        """로그인을 처리합니다.

        Process login, stamp last_login_at and advance the daily login streak.

        Raises:
            UnauthorizedError: 잘못된 인증 정보, 비활성 또는 차단 계정 (Invalid credentials, inactive or banned)
        """
        player: Player | None = await player_repository.get_by_email(db, data.email)
        if player is None or not verify_password(data.password, player.password_hash):
            raise UnauthorizedError("Invalid email or password")

        if not player.is_active:
            raise UnauthorizedError("Account is deactivated")
        if player.is_banned:
            raise UnauthorizedError("Account is banned")

        now: datetime = datetime.now(timezone.utc)
        player.last_login_at = now
        await streak_service.update_daily_login(db, player.id, now)
        await db.flush()
        return self._generate_tokens(player)

    async def refresh_tokens(
        self,
        db: AsyncSession,
        data: RefreshRequest,
    ) -> TokenResponse:
        """리프레시 토큰으로 새 토큰 쌍을 발급합니다.

        Issue a new token pair from a refresh token.

        Raises:
            UnauthorizedError: 유효하지 않거나 만료된 토큰, 또는 액세스 토큰 사용 시
                               (Invalid, expired, or not a refresh token)
        """
        try:
            payload: dict = decode_token(data.refresh_token)
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid refresh token")

        if payload.get("type") != TOKEN_REFRESH:
            raise UnauthorizedError("Invalid token type")

        try:
            player_id: UUID = UUID(str(payload.get("sub")))
        except ValueError:
            raise UnauthorizedError("Invalid refresh token payload")

        player: Player | None = await player_repository.get_by_id(db, player_id)
        if player is None or not player.is_active or player.is_banned:
            raise UnauthorizedError("Player not found or inactive")

        return self._generate_tokens(player)


# 싱글턴 인스턴스 — Singleton instance
auth_service: AuthService = AuthService()
