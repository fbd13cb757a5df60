"""인증 API 테스트 — 회원가입, 로그인, 토큰 갱신, /me 엔드포인트.

Auth API tests — Register, login, token refresh and /me.
"""

from httpx import AsyncClient
from sqlalchemy import select

from amanoba.models.player import Player, PlayerProgression
from amanoba.models.points import PointsWallet
from tests.conftest import auth_header

AUTH = "/api/auth"


class TestRegister:
    """회원가입 테스트."""

    async def test_register_success(self, client: AsyncClient, db):
        """회원가입 성공 — 토큰 발급, 지갑과 성장 레코드 생성."""
        res = await client.post(f"{AUTH}/register", json={
            "display_name": "New Learner",
            "email": "New@Example.com",
            "password": "longpassword",
        })
        assert res.status_code == 201
        data = res.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"] and data["refresh_token"]

        player = (await db.execute(select(Player).where(Player.email == "new@example.com"))).scalar_one()
        assert player.role == "user"
        assert (await db.execute(select(PointsWallet).where(PointsWallet.player_id == player.id))).scalar_one()
        assert (await db.execute(select(PlayerProgression).where(PlayerProgression.player_id == player.id))).scalar_one()

    async def test_register_duplicate_email(self, client: AsyncClient, player):
        """중복 이메일 회원가입 시 409."""
        res = await client.post(f"{AUTH}/register", json={
            "display_name": "Copy",
            "email": "player@test.com",
            "password": "longpassword",
        })
        assert res.status_code == 409

    async def test_register_short_password(self, client: AsyncClient):
        """8자 미만 비밀번호는 400."""
        res = await client.post(f"{AUTH}/register", json={
            "display_name": "Short",
            "email": "short@test.com",
            "password": "abc",
        })
        assert res.status_code == 400


class TestLogin:
    """로그인 테스트."""

    async def test_login_success(self, client: AsyncClient, player):
        """로그인 성공."""
        res = await client.post(f"{AUTH}/login", json={"email": "player@test.com", "password": "password123!"})
        assert res.status_code == 200
        assert "access_token" in res.json()

    async def test_login_wrong_password(self, client: AsyncClient, player):
        """잘못된 비밀번호는 401."""
        res = await client.post(f"{AUTH}/login", json={"email": "player@test.com", "password": "wrong-password"})
        assert res.status_code == 401

    async def test_login_unknown_email(self, client: AsyncClient):
        """존재하지 않는 이메일은 401."""
        res = await client.post(f"{AUTH}/login", json={"email": "ghost@test.com", "password": "password123!"})
        assert res.status_code == 401

    async def test_login_banned(self, client: AsyncClient, db, player):
        """차단된 계정은 401."""
        player.is_banned = True
        await db.flush()
        res = await client.post(f"{AUTH}/login", json={"email": "player@test.com", "password": "password123!"})
        assert res.status_code == 401


class TestRefreshAndMe:
    """토큰 갱신 및 /me 테스트."""

    async def test_refresh_success(self, client: AsyncClient, player):
        """리프레시 토큰으로 새 토큰 쌍 발급."""
        login = await client.post(f"{AUTH}/login", json={"email": "player@test.com", "password": "password123!"})
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": login.json()["refresh_token"]})
        assert res.status_code == 200
        assert "access_token" in res.json()

    async def test_refresh_with_access_token(self, client: AsyncClient, player):
        """액세스 토큰으로 갱신 시 401."""
        login = await client.post(f"{AUTH}/login", json={"email": "player@test.com", "password": "password123!"})
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": login.json()["access_token"]})
        assert res.status_code == 401

    async def test_me(self, client: AsyncClient, player):
        """현재 플레이어 조회."""
        res = await client.get(f"{AUTH}/me", headers=auth_header(player))
        assert res.status_code == 200
        data = res.json()
        assert data["email"] == "player@test.com"
        assert data["role"] == "user"
        assert data["is_premium"] is False

    async def test_me_inactive_player(self, client: AsyncClient, db, player):
        """비활성 계정 토큰은 401."""
        player.is_active = False
        await db.flush()
        res = await client.get(f"{AUTH}/me", headers=auth_header(player))
        assert res.status_code == 401
