"""프로필 및 게이미피케이션 테스트 — 프로필, 지갑, 업적, 리더보드, 로그인 연속 기록, 레벨업.

Profile and gamification tests — Profile, wallet transactions and locking,
achievements, leaderboards and periods, login streaks and XP progression.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from amanoba.models.achievement import Achievement, AchievementUnlock
from amanoba.models.player import PlayerProgression
from amanoba.models.points import PointsTransaction, PointsWallet
from amanoba.models.streak import Streak
from amanoba.repositories.achievement_repository import achievement_unlock_repository
from amanoba.services.points_service import points_service
from amanoba.services.progression_service import progression_service, xp_to_next_level
from amanoba.utils.exceptions import BadRequestError
from tests.conftest import auth_header, make_player

LOGIN = {"email": "player@test.com", "password": "password123!"}


class TestProfile:
    """프로필 테스트."""

    async def test_get_profile(self, client: AsyncClient, player, course):
        """프로필 — 성장, 지갑, 통계 포함."""
        await client.post("/api/courses/TEST_COURSE/enroll", headers=auth_header(player))
        res = await client.get("/api/profile", headers=auth_header(player))
        assert res.status_code == 200
        data = res.json()
        assert data["player"]["email"] == "player@test.com"
        assert data["progression"]["level"] == 1
        assert data["progression"]["xp_to_next_level"] == 110
        assert data["wallet"]["current_balance"] == 0
        assert data["stats"]["courses_enrolled"] == 1
        assert data["stats"]["certificates"] == 0

    async def test_update_profile(self, client: AsyncClient, player):
        """표시 이름과 언어 수정."""
        res = await client.put("/api/profile", json={"display_name": "Renamed", "locale": "en"}, headers=auth_header(player))
        assert res.status_code == 200
        assert res.json()["player"]["display_name"] == "Renamed"
        assert res.json()["player"]["locale"] == "en"

    async def test_public_profile_hides_email(self, client: AsyncClient, player):
        """공개 프로필에 이메일 없음."""
        res = await client.get(f"/api/profile/{player.id}")
        assert res.status_code == 200
        data = res.json()
        assert data["player"]["display_name"] == "Learner"
        assert "email" not in data["player"]

    async def test_public_profile_missing(self, client: AsyncClient):
        """없는 플레이어 또는 잘못된 ID는 404."""
        assert (await client.get(f"/api/profile/{uuid.uuid4()}")).status_code == 404
        assert (await client.get("/api/profile/not-a-uuid")).status_code == 404

    async def test_public_profile_inactive(self, client: AsyncClient, db, player):
        """비활성 플레이어 공개 프로필은 404."""
        player.is_active = False
        await db.flush()
        res = await client.get(f"/api/profile/{player.id}")
        assert res.status_code == 404


class TestWalletTransactions:
    """포인트 거래 내역 테스트."""

    async def test_transactions_paginated(self, client: AsyncClient, player, course):
        """레슨 완료 후 거래 내역 페이지 조회."""
        await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        await client.post("/api/courses/TEST_COURSE/day/2/complete", headers=auth_header(player))
        res = await client.get(
            "/api/profile/wallet/transactions", params={"page": 1, "per_page": 1}, headers=auth_header(player)
        )
        assert res.status_code == 200
        data = res.json()
        assert data["total"] == 2
        assert data["pages"] == 2
        assert len(data["items"]) == 1
        assert data["items"][0]["source_type"] == "lesson_completion"


class TestAchievements:
    """업적 테스트."""

    async def test_achievement_unlocked_on_lesson(self, client: AsyncClient, db, player, course):
        """첫 레슨 완료 시 업적 달성 및 보상."""
        db.add(Achievement(
            key="first_lesson", name="First Steps", criteria_type="lessons_completed",
            criteria_target=1, points_reward=5, xp_reward=0,
        ))
        db.add(Achievement(
            key="three_lessons", name="Three", criteria_type="lessons_completed", criteria_target=3,
        ))
        await db.flush()

        done = await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        assert done.json()["unlocked_achievements"] == ["first_lesson"]

        res = await client.get("/api/achievements", headers=auth_header(player))
        assert res.status_code == 200
        state = {a["key"]: a["unlocked"] for a in res.json()["achievements"]}
        assert state == {"first_lesson": True, "three_lessons": False}

        profile = await client.get("/api/profile", headers=auth_header(player))
        assert profile.json()["wallet"]["current_balance"] == 10 + 5
        assert profile.json()["stats"]["achievements"] == 1

    async def test_achievement_unlocks_once(self, client: AsyncClient, db, player, course):
        """같은 업적은 한 번만 달성."""
        db.add(Achievement(key="first_lesson", name="First", criteria_type="lessons_completed", criteria_target=1))
        await db.flush()
        await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        second = await client.post("/api/courses/TEST_COURSE/day/2/complete", headers=auth_header(player))
        assert second.json()["unlocked_achievements"] == []

    async def test_achievement_failure_keeps_completion(self, client: AsyncClient, db, player, course, monkeypatch):
        """업적 확인 실패 시에도 레슨 완료는 저장, 업적 보상만 롤백."""
        achievement = Achievement(
            key="first_lesson", name="First", criteria_type="lessons_completed",
            criteria_target=1, points_reward=5,
        )
        db.add(achievement)
        await db.flush()
        db.add(AchievementUnlock(player_id=player.id, achievement_id=achievement.id, current_value=1))
        await db.flush()

        # 동시 요청이 먼저 달성한 상황 — the unlock row exists but is not seen, so the insert collides
        async def _no_unlocks(session, player_id):
            return []

        monkeypatch.setattr(achievement_unlock_repository, "list_for_player", _no_unlocks)

        res = await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        assert res.status_code == 200
        assert res.json()["unlocked_achievements"] == []
        assert res.json()["progress"]["completed_days"] == [1]

        monkeypatch.undo()
        again = await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        assert again.json()["already_completed"] is True

        profile = await client.get("/api/profile", headers=auth_header(player))
        assert profile.json()["wallet"]["current_balance"] == 10
        assert profile.json()["progression"]["lessons_completed"] == 1


class TestLeaderboard:
    """리더보드 테스트."""

    async def test_points_leaderboard(self, client: AsyncClient, db):
        """포인트 잔액 내림차순."""
        await make_player(db, "a@test.com", display_name="A", balance=5)
        await make_player(db, "b@test.com", display_name="B", balance=50)
        await make_player(db, "c@test.com", display_name="C", balance=20)
        await make_player(db, "d@test.com", display_name="Banned", balance=999, is_banned=True)

        res = await client.get("/api/leaderboards", params={"metric": "points", "limit": 2})
        assert res.status_code == 200
        entries = res.json()["entries"]
        assert [(e["rank"], e["display_name"], e["value"]) for e in entries] == [(1, "B", 50), (2, "C", 20)]

    async def test_unknown_metric(self, client: AsyncClient):
        """알 수 없는 지표는 400."""
        res = await client.get("/api/leaderboards", params={"metric": "karma"})
        assert res.status_code == 400

    async def test_lifetime_and_level_metrics(self, client: AsyncClient, db):
        """누적 포인트와 레벨 지표."""
        spender = await make_player(db, "spender@test.com", display_name="Spender", balance=5)
        saver = await make_player(db, "saver@test.com", display_name="Saver", balance=40)
        wallet = (await db.execute(select(PointsWallet).where(PointsWallet.player_id == spender.id))).scalar_one()
        wallet.lifetime_earned = 300
        progression = (
            await db.execute(select(PlayerProgression).where(PlayerProgression.player_id == saver.id))
        ).scalar_one()
        progression.level = 7
        await db.flush()

        lifetime = await client.get("/api/leaderboards", params={"metric": "points_lifetime"})
        assert [(e["display_name"], e["value"]) for e in lifetime.json()["entries"]] == [("Spender", 300), ("Saver", 40)]

        level = await client.get("/api/leaderboards", params={"metric": "level"})
        assert [(e["display_name"], e["value"]) for e in level.json()["entries"]] == [("Saver", 7), ("Spender", 1)]


async def _add_transaction(db, player, amount: int, created_at: datetime) -> None:
    wallet = (await db.execute(select(PointsWallet).where(PointsWallet.player_id == player.id))).scalar_one()
    db.add(PointsTransaction(
        player_id=player.id,
        wallet_id=wallet.id,
        type="earn",
        amount=amount,
        balance_before=0,
        balance_after=amount,
        source_type="lesson_completion",
        description="Lesson completed",
        created_at=created_at,
    ))
    await db.flush()


class TestLeaderboardPeriods:
    """기간별 리더보드 테스트."""

    async def test_monthly_counts_window_earnings(self, client: AsyncClient, db):
        """이번 달 적립분만 집계, 기간 밖 적립만 있는 플레이어는 제외."""
        now = datetime.now(timezone.utc)
        veteran = await make_player(db, "veteran@test.com", display_name="Veteran", balance=500)
        rookie = await make_player(db, "rookie@test.com", display_name="Rookie", balance=20)
        await _add_transaction(db, veteran, 500, now - timedelta(days=40))
        await _add_transaction(db, rookie, 15, now)
        await _add_transaction(db, rookie, 5, now)

        res = await client.get("/api/leaderboards", params={"metric": "points", "period": "monthly"})
        assert res.status_code == 200
        assert res.json()["period"] == "monthly"
        assert [(e["display_name"], e["value"]) for e in res.json()["entries"]] == [("Rookie", 20)]

        all_time = await client.get("/api/leaderboards", params={"metric": "points"})
        assert [e["display_name"] for e in all_time.json()["entries"]] == ["Veteran", "Rookie"]

    async def test_daily_excludes_yesterday(self, client: AsyncClient, db):
        """오늘 적립분만 집계."""
        now = datetime.now(timezone.utc)
        early = await make_player(db, "early@test.com", display_name="Early")
        late = await make_player(db, "late@test.com", display_name="Late")
        await _add_transaction(db, early, 100, now - timedelta(days=2))
        await _add_transaction(db, late, 10, now)

        res = await client.get("/api/leaderboards", params={"metric": "points_lifetime", "period": "daily"})
        assert [e["display_name"] for e in res.json()["entries"]] == ["Late"]

    async def test_period_rejected_for_other_metrics(self, client: AsyncClient):
        """포인트 외 지표의 기간 조회와 알 수 없는 기간은 400."""
        assert (await client.get("/api/leaderboards", params={"metric": "xp", "period": "weekly"})).status_code == 400
        assert (await client.get("/api/leaderboards", params={"period": "yearly"})).status_code == 400


async def _login_streak(db, player) -> Streak:
    return (await db.execute(select(Streak).where(Streak.player_id == player.id))).scalar_one()


class TestLoginStreak:
    """일일 로그인 연속 기록 테스트."""

    async def test_first_login_starts_streak(self, client: AsyncClient, player):
        """첫 로그인은 1일, 같은 날 재로그인은 변화 없음."""
        await client.post("/api/auth/login", json=LOGIN)
        await client.post("/api/auth/login", json=LOGIN)
        res = await client.get("/api/profile", headers=auth_header(player))
        assert res.json()["streak"]["current_streak"] == 1
        assert res.json()["streak"]["best_streak"] == 1

    async def test_consecutive_day_and_milestone(self, client: AsyncClient, db, player):
        """전날 로그인 후 연속 증가, 3일 마일스톤 보상."""
        await client.post("/api/auth/login", json=LOGIN)
        streak = await _login_streak(db, player)
        streak.current_streak = 2
        streak.best_streak = 2
        streak.last_activity_at = datetime.now(timezone.utc) - timedelta(days=1)
        await db.flush()

        res = await client.post("/api/auth/login", json=LOGIN)
        assert res.status_code == 200

        profile = await client.get("/api/profile", headers=auth_header(player))
        assert profile.json()["streak"]["current_streak"] == 3
        assert profile.json()["streak"]["best_streak"] == 3
        assert profile.json()["wallet"]["current_balance"] == 30

        log = await client.get("/api/profile/wallet/transactions", headers=auth_header(player))
        item = log.json()["items"][0]
        assert (item["type"], item["source_type"], item["amount"]) == ("bonus", "streak", 30)

    async def test_gap_restarts_streak(self, client: AsyncClient, db, player):
        """하루 이상 공백이면 1일로 재시작, 최고 기록 유지."""
        await client.post("/api/auth/login", json=LOGIN)
        streak = await _login_streak(db, player)
        streak.current_streak = 5
        streak.best_streak = 5
        streak.last_activity_at = datetime.now(timezone.utc) - timedelta(days=3)
        await db.flush()

        lapsed = await client.get("/api/profile", headers=auth_header(player))
        assert lapsed.json()["streak"]["current_streak"] == 0

        await client.post("/api/auth/login", json=LOGIN)
        profile = await client.get("/api/profile", headers=auth_header(player))
        assert profile.json()["streak"]["current_streak"] == 1
        assert profile.json()["streak"]["best_streak"] == 5
        assert profile.json()["wallet"]["current_balance"] == 0

    async def test_streak_leaderboard(self, client: AsyncClient, db, player):
        """연속 기록 리더보드 — 끊긴 기록은 0."""
        other = await make_player(db, "other@test.com", display_name="Other")
        await client.post("/api/auth/login", json=LOGIN)
        db.add(Streak(
            player_id=other.id,
            current_streak=9,
            best_streak=9,
            last_activity_at=datetime.now(timezone.utc) - timedelta(days=5),
            streak_started_at=datetime.now(timezone.utc) - timedelta(days=14),
            milestones=[],
        ))
        await db.flush()

        res = await client.get("/api/leaderboards", params={"metric": "streak"})
        assert [(e["display_name"], e["value"]) for e in res.json()["entries"]] == [("Learner", 1), ("Other", 0)]


class TestProgression:
    """XP 적립과 레벨업 테스트."""

    async def test_cascading_level_up(self, db, player):
        """연쇄 레벨업 — 초과 XP 이월, 레벨당 level * 50 보너스."""
        result = await progression_service.add_xp(db, player.id, 110 + 240 + 5, "test")
        assert result.level == 3
        assert result.levels_gained == 2
        assert result.points_awarded == 2 * 50 + 3 * 50

        progression = (
            await db.execute(select(PlayerProgression).where(PlayerProgression.player_id == player.id))
        ).scalar_one()
        assert progression.current_xp == 5
        assert progression.xp_to_next_level == xp_to_next_level(3)
        assert progression.total_xp == 355

        txs = (await db.execute(select(PointsTransaction).where(PointsTransaction.player_id == player.id))).scalars().all()
        assert [(tx.type, tx.source_type, tx.amount) for tx in txs] == [("bonus", "level_up", 250)]

    async def test_level_cap(self, db, player):
        """레벨 100 상한 — 이후 XP는 누적만."""
        progression = (
            await db.execute(select(PlayerProgression).where(PlayerProgression.player_id == player.id))
        ).scalar_one()
        progression.level = 99
        progression.xp_to_next_level = xp_to_next_level(99)
        await db.flush()

        result = await progression_service.add_xp(db, player.id, xp_to_next_level(99) + 50_000, "test")
        assert result.level == 100
        assert result.levels_gained == 1
        assert result.points_awarded == 100 * 50
        assert result.new_titles == ["Immortal"]
        assert progression.current_xp == 50_000
        assert progression.title == "Immortal"

    async def test_non_positive_xp_is_noop(self, db, player):
        """0 이하 XP는 변화 없음."""
        result = await progression_service.add_xp(db, player.id, 0, "test")
        assert result.xp_gained == 0
        assert result.leveled_up is False


class TestWalletLocking:
    """지갑 잠금 조회 테스트."""

    async def test_locked_read_refreshes_loaded_wallet(self, db):
        """세션에 이미 로드된 지갑도 잠금 조회 시 DB 값으로 갱신."""
        owner = await make_player(db, "owner@test.com", balance=100)
        wallet = (await db.execute(select(PointsWallet).where(PointsWallet.player_id == owner.id))).scalar_one()
        assert wallet.current_balance == 100

        # 다른 트랜잭션의 차감을 흉내 — change the row behind the loaded instance
        await db.execute(
            update(PointsWallet)
            .where(PointsWallet.id == wallet.id)
            .values(current_balance=40)
            .execution_options(synchronize_session=False)
        )

        with pytest.raises(BadRequestError):
            await points_service.debit(db, owner.id, 50, source_type="certification", description="Too much")
        assert wallet.current_balance == 40
