"""코스 API 테스트 — 카탈로그, 수강 등록, 일차 레슨, 완료, 레슨 퀴즈.

Course API tests — Catalogue, enrolment, day lessons, completion rewards,
lesson quizzes and my-courses.
"""

from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from sqlalchemy import select

from amanoba.models.points import PointsTransaction
from amanoba.models.progress import AssessmentResult
from tests.conftest import auth_header, make_course, make_lesson, make_question


# ===== Catalogue =====

class TestCatalogue:
    """코스 목록/상세 테스트."""

    async def test_list_active_courses(self, client: AsyncClient, db, course):
        """활성 코스만 레슨 수와 함께 조회."""
        await make_course(db, "HIDDEN", is_active=False)
        res = await client.get("/api/courses")
        assert res.status_code == 200
        courses = res.json()["courses"]
        assert [c["course_id"] for c in courses] == ["TEST_COURSE"]
        assert courses[0]["lesson_count"] == 3

    async def test_list_filter_by_language(self, client: AsyncClient, db, course):
        """언어 필터."""
        await make_course(db, "HU_COURSE", language="hu")
        res = await client.get("/api/courses", params={"language": "hu"})
        assert [c["course_id"] for c in res.json()["courses"]] == ["HU_COURSE"]

    async def test_course_detail(self, client: AsyncClient, course):
        """코스 상세 조회."""
        res = await client.get("/api/courses/TEST_COURSE")
        assert res.status_code == 200
        assert res.json()["course"]["duration_days"] == 3

    async def test_inactive_course_404(self, client: AsyncClient, db):
        """비활성 코스 상세는 404."""
        await make_course(db, "OLD", is_active=False)
        res = await client.get("/api/courses/OLD")
        assert res.status_code == 404


# ===== Enrolment =====

class TestEnroll:
    """수강 등록 테스트."""

    async def test_enroll_idempotent(self, client: AsyncClient, player, course):
        """두 번째 등록은 already_enrolled=true."""
        first = await client.post("/api/courses/TEST_COURSE/enroll", headers=auth_header(player))
        assert first.status_code == 200
        assert first.json()["already_enrolled"] is False
        assert first.json()["progress"]["current_day"] == 1

        second = await client.post("/api/courses/TEST_COURSE/enroll", headers=auth_header(player))
        assert second.json()["already_enrolled"] is True

    async def test_enroll_premium_course_forbidden(self, client: AsyncClient, db, player):
        """프리미엄 코스에 비프리미엄 플레이어 등록 시 403."""
        await make_course(db, "PREMIUM", requires_premium=True)
        res = await client.post("/api/courses/PREMIUM/enroll", headers=auth_header(player))
        assert res.status_code == 403

    async def test_enroll_premium_course_allowed(self, client: AsyncClient, db, player):
        """유효한 프리미엄 플레이어는 등록 가능."""
        await make_course(db, "PREMIUM", requires_premium=True)
        player.is_premium = True
        player.premium_expires_at = datetime.now(timezone.utc) + timedelta(days=30)
        await db.flush()
        res = await client.post("/api/courses/PREMIUM/enroll", headers=auth_header(player))
        assert res.status_code == 200

    async def test_enroll_requires_auth(self, client: AsyncClient, course):
        """인증 없이 등록 시 401."""
        res = await client.post("/api/courses/TEST_COURSE/enroll")
        assert res.status_code == 401


# ===== Day lessons =====

class TestDayLesson:
    """일차 레슨 조회 테스트."""

    async def test_day_one_auto_enrolls(self, client: AsyncClient, player, course):
        """첫 접근 시 자동 등록 및 내비게이션."""
        res = await client.get("/api/courses/TEST_COURSE/day/1", headers=auth_header(player))
        assert res.status_code == 200
        data = res.json()
        assert data["lesson"]["title"] == "Day 1"
        assert data["is_completed"] is False
        assert data["previous_lesson"] is None
        assert data["next_lesson"] == {"day_number": 2, "title": "Day 2"}

        my = await client.get("/api/my-courses", headers=auth_header(player))
        assert len(my.json()["courses"]) == 1

    async def test_day_out_of_range(self, client: AsyncClient, player, course):
        """기간을 벗어난 일차는 400."""
        res = await client.get("/api/courses/TEST_COURSE/day/4", headers=auth_header(player))
        assert res.status_code == 400
        res = await client.get("/api/courses/TEST_COURSE/day/0", headers=auth_header(player))
        assert res.status_code == 400

    async def test_missing_lesson(self, client: AsyncClient, db, player):
        """레슨이 없는 일차는 404."""
        await make_course(db, "SPARSE", duration_days=5)
        res = await client.get("/api/courses/SPARSE/day/2", headers=auth_header(player))
        assert res.status_code == 404

    async def test_locked_day(self, client: AsyncClient, player, course):
        """이전 일차 미완료 시 잠김 403."""
        res = await client.get("/api/courses/TEST_COURSE/day/2", headers=auth_header(player))
        assert res.status_code == 403

    async def test_unauthenticated(self, client: AsyncClient, course):
        """인증 없이 조회 시 401."""
        res = await client.get("/api/courses/TEST_COURSE/day/1")
        assert res.status_code == 401


# ===== Completion =====

class TestCompleteDay:
    """일차 완료 및 보상 테스트."""

    async def test_complete_day_awards_rewards(self, client: AsyncClient, db, player, course):
        """레슨 완료 시 포인트와 XP 지급, 다음 일차 해제."""
        res = await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        assert res.status_code == 200
        data = res.json()
        assert data["already_completed"] is False
        assert data["points_awarded"] == 10
        assert data["xp_awarded"] == 25
        assert data["progress"]["completed_days"] == [1]
        assert data["progress"]["current_day"] == 2

        tx = (await db.execute(
            select(PointsTransaction).where(PointsTransaction.player_id == player.id)
        )).scalars().all()
        assert [(t.type, t.source_type, t.amount) for t in tx] == [("earn", "lesson_completion", 10)]

        day2 = await client.get("/api/courses/TEST_COURSE/day/2", headers=auth_header(player))
        assert day2.status_code == 200

    async def test_complete_twice_no_reward(self, client: AsyncClient, player, course):
        """이미 완료한 일차는 보상 없이 already_completed."""
        await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        res = await client.post("/api/courses/TEST_COURSE/day/1/complete", headers=auth_header(player))
        assert res.status_code == 200
        assert res.json()["already_completed"] is True
        assert res.json()["points_awarded"] == 0

    async def test_complete_course(self, client: AsyncClient, player, course):
        """마지막 일차 완료 시 코스 완료 보상."""
        for day in (1, 2):
            await client.post(f"/api/courses/TEST_COURSE/day/{day}/complete", headers=auth_header(player))
        res = await client.post("/api/courses/TEST_COURSE/day/3/complete", headers=auth_header(player))
        data = res.json()
        assert data["course_completed"] is True
        assert data["points_awarded"] == 10 + 100
        assert data["xp_awarded"] == 25 + 250
        assert data["progress"]["status"] == "completed"
        assert data["progress"]["completed_at"] is not None
        assert data["progress"]["progress_percent"] == 100

    async def test_lesson_reward_override(self, client: AsyncClient, db, player):
        """레슨별 보상 값이 코스 기본값보다 우선."""
        c = await make_course(db, "REWARD", duration_days=2)
        await make_lesson(db, c, 1, points_reward=42, xp_reward=7)
        res = await client.post("/api/courses/REWARD/day/1/complete", headers=auth_header(player))
        assert res.json()["points_awarded"] == 42
        assert res.json()["xp_awarded"] == 7


# ===== Lesson quiz =====

class TestLessonQuiz:
    """레슨 퀴즈 테스트."""

    async def _quiz_course(self, db):
        c = await make_course(db, "QUIZ", duration_days=2)
        lesson = await make_lesson(db, c, 1, quiz={"enabled": True, "question_count": 2, "success_threshold": 70})
        questions = [await make_question(db, c, lesson, correct_index=i) for i in (0, 1)]
        return c, lesson, questions

    async def test_get_quiz_hides_answers(self, client: AsyncClient, db, player):
        """퀴즈 문항에 정답이 노출되지 않음."""
        await self._quiz_course(db)
        res = await client.get("/api/courses/QUIZ/day/1/quiz", headers=auth_header(player))
        assert res.status_code == 200
        questions = res.json()["questions"]
        assert len(questions) == 2
        assert all("correct_index" not in q for q in questions)

    async def test_quiz_disabled(self, client: AsyncClient, player, course):
        """퀴즈 비활성 레슨은 400."""
        res = await client.get("/api/courses/TEST_COURSE/day/1/quiz", headers=auth_header(player))
        assert res.status_code == 400

    async def test_required_quiz_blocks_completion(self, client: AsyncClient, db, player):
        """필수 퀴즈 미통과 시 완료 400."""
        await self._quiz_course(db)
        res = await client.post("/api/courses/QUIZ/day/1/complete", headers=auth_header(player))
        assert res.status_code == 400

    async def test_pass_quiz_then_complete(self, client: AsyncClient, db, player):
        """퀴즈 통과 후 완료 가능, 결과 기록."""
        _, _, questions = await self._quiz_course(db)
        answers = [{"question_id": str(q.id), "selected_index": q.correct_index} for q in questions]
        res = await client.post("/api/courses/QUIZ/day/1/quiz", json={"answers": answers}, headers=auth_header(player))
        assert res.status_code == 200
        data = res.json()
        assert data["passed"] is True
        assert data["score_percent"] == 100

        result = (await db.execute(select(AssessmentResult))).scalar_one()
        assert str(result.id) == data["result_id"]
        await db.refresh(questions[0])
        assert questions[0].show_count == 1
        assert questions[0].correct_count == 1

        done = await client.post("/api/courses/QUIZ/day/1/complete", headers=auth_header(player))
        assert done.status_code == 200
        assert done.json()["progress"]["passed_quiz_days"] == [1]

    async def test_failed_quiz(self, client: AsyncClient, db, player):
        """기준 미달 시 passed=false, 완료 불가."""
        _, _, questions = await self._quiz_course(db)
        answers = [{"question_id": str(q.id), "selected_index": 3} for q in questions]
        res = await client.post("/api/courses/QUIZ/day/1/quiz", json={"answers": answers}, headers=auth_header(player))
        assert res.json()["passed"] is False
        done = await client.post("/api/courses/QUIZ/day/1/complete", headers=auth_header(player))
        assert done.status_code == 400

    async def test_quiz_foreign_question(self, client: AsyncClient, db, player):
        """다른 레슨 문항으로 제출 시 400."""
        c, _, questions = await self._quiz_course(db)
        other = await make_question(db, c, None)
        answers = [
            {"question_id": str(questions[0].id), "selected_index": 0},
            {"question_id": str(other.id), "selected_index": 0},
        ]
        res = await client.post("/api/courses/QUIZ/day/1/quiz", json={"answers": answers}, headers=auth_header(player))
        assert res.status_code == 400

    async def test_course_policy_disables_quiz(self, client: AsyncClient, db, player):
        """코스 정책으로 퀴즈를 끄면 완료 가능."""
        c = await make_course(db, "NOQUIZ", duration_days=1, lesson_quiz_policy={"enabled": False, "required": True})
        await make_lesson(db, c, 1, quiz={"enabled": True})
        res = await client.post("/api/courses/NOQUIZ/day/1/complete", headers=auth_header(player))
        assert res.status_code == 200
