"""관리자 API 테스트 — 코스/레슨/문항 관리, 인증 관리, 플레이어, 업적, 통계.

Admin API tests — Course, lesson and question management, certification
management, players, achievements and platform stats.
"""

import uuid

from httpx import AsyncClient

from amanoba.models.certification import Certificate
from tests.conftest import auth_header, make_course, make_lesson, make_player, make_question


class TestAdminAccess:
    """관리자 권한 테스트."""

    async def test_requires_auth(self, client: AsyncClient):
        """토큰 없으면 401."""
        res = await client.get("/api/admin/courses")
        assert res.status_code == 401

    async def test_player_forbidden(self, client: AsyncClient, player):
        """일반 플레이어는 403."""
        res = await client.get("/api/admin/courses", headers=auth_header(player))
        assert res.status_code == 403
        assert res.json() == {"success": False, "error": "Admin access required"}

    async def test_editor_forbidden(self, client: AsyncClient, editor):
        """에디터도 관리자 API는 403."""
        res = await client.get("/api/admin/stats", headers=auth_header(editor))
        assert res.status_code == 403


class TestAdminCourses:
    """코스 관리 테스트."""

    async def test_create_and_list(self, client: AsyncClient, admin):
        """코스 생성 후 비활성 포함 목록 조회."""
        body = {"course_id": "NEW_COURSE", "name": "New Course", "language": "en", "duration_days": 5}
        res = await client.post("/api/admin/courses", json=body, headers=auth_header(admin))
        assert res.status_code == 201
        data = res.json()
        assert data["course_id"] == "NEW_COURSE"
        assert data["lesson_points"] == 10
        assert data["certification"]["enabled"] is False
        assert data["created_by"] == str(admin.id)

        dup = await client.post("/api/admin/courses", json=body, headers=auth_header(admin))
        assert dup.status_code == 409

        await client.put("/api/admin/courses/NEW_COURSE", json={"is_active": False}, headers=auth_header(admin))
        listed = await client.get("/api/admin/courses", headers=auth_header(admin))
        assert [c["course_id"] for c in listed.json()] == ["NEW_COURSE"]
        assert listed.json()[0]["is_active"] is False

    async def test_invalid_course_code(self, client: AsyncClient, admin):
        """코스 코드 형식 위반은 400."""
        res = await client.post(
            "/api/admin/courses", json={"course_id": "bad code", "name": "X"}, headers=auth_header(admin)
        )
        assert res.status_code == 400
        assert res.json()["error"] == "Validation failed"

    async def test_update_certification(self, client: AsyncClient, admin, course):
        """인증 설정 수정."""
        res = await client.put(
            "/api/admin/courses/TEST_COURSE",
            json={"certification": {"enabled": True, "price_points": 250}},
            headers=auth_header(admin),
        )
        assert res.status_code == 200
        assert res.json()["certification_enabled"] is True
        assert res.json()["certification"]["price_points"] == 250
        assert res.json()["lesson_count"] == 3

    async def test_soft_delete(self, client: AsyncClient, admin, course):
        """코스 삭제는 비활성화 — 카탈로그에서 사라짐."""
        res = await client.delete("/api/admin/courses/TEST_COURSE", headers=auth_header(admin))
        assert res.status_code == 204
        assert (await client.get("/api/courses/TEST_COURSE")).status_code == 404
        detail = await client.get("/api/admin/courses/TEST_COURSE", headers=auth_header(admin))
        assert detail.json()["is_active"] is False

    async def test_missing_course(self, client: AsyncClient, admin):
        """없는 코스는 404."""
        res = await client.get("/api/admin/courses/NOPE", headers=auth_header(admin))
        assert res.status_code == 404


class TestAdminLessons:
    """레슨 관리 테스트."""

    async def test_create_lesson(self, client: AsyncClient, admin, db):
        """레슨 생성 — 언어는 코스 언어 상속."""
        await make_course(db, "HU_COURSE", language="hu")
        body = {"lesson_id": "HU_COURSE_DAY_01", "day_number": 1, "title": "Első nap"}
        res = await client.post("/api/admin/courses/HU_COURSE/lessons", json=body, headers=auth_header(admin))
        assert res.status_code == 201
        assert res.json()["language"] == "hu"
        assert res.json()["course_id"] == "HU_COURSE"

        dup = await client.post("/api/admin/courses/HU_COURSE/lessons", json=body, headers=auth_header(admin))
        assert dup.status_code == 409

    async def test_day_beyond_duration(self, client: AsyncClient, admin, course):
        """코스 기간을 넘는 일차는 400."""
        body = {"lesson_id": "TEST_COURSE_DAY_09", "day_number": 9, "title": "Too late"}
        res = await client.post("/api/admin/courses/TEST_COURSE/lessons", json=body, headers=auth_header(admin))
        assert res.status_code == 400

    async def test_slot_taken(self, client: AsyncClient, admin, course):
        """같은 일차와 순서는 409."""
        body = {"lesson_id": "EXTRA", "day_number": 1, "title": "Extra"}
        res = await client.post("/api/admin/courses/TEST_COURSE/lessons", json=body, headers=auth_header(admin))
        assert res.status_code == 409
        body["display_order"] = 1
        ok = await client.post("/api/admin/courses/TEST_COURSE/lessons", json=body, headers=auth_header(admin))
        assert ok.status_code == 201

    async def test_update_and_delete(self, client: AsyncClient, admin, course):
        """레슨 수정 후 삭제."""
        res = await client.put(
            "/api/admin/courses/TEST_COURSE/lessons/TEST_COURSE_DAY_02",
            json={"title": "Renamed", "points_reward": 3},
            headers=auth_header(admin),
        )
        assert res.status_code == 200
        assert res.json()["title"] == "Renamed"
        assert res.json()["points_reward"] == 3

        gone = await client.delete("/api/admin/courses/TEST_COURSE/lessons/TEST_COURSE_DAY_02", headers=auth_header(admin))
        assert gone.status_code == 204
        lessons = await client.get("/api/admin/courses/TEST_COURSE/lessons", headers=auth_header(admin))
        assert [l["day_number"] for l in lessons.json()] == [1, 3]


class TestAdminExportImport:
    """코스 내보내기/가져오기 테스트."""

    async def test_export_then_import_copy(self, client: AsyncClient, admin, db, course):
        """내보낸 문서를 새 코드로 가져오면 새 코스 생성."""
        await make_question(db, course=course)
        exported = await client.get("/api/admin/courses/TEST_COURSE/export", headers=auth_header(admin))
        assert exported.status_code == 200
        doc = exported.json()
        assert doc["version"] == 1
        assert len(doc["lessons"]) == 3
        assert len(doc["questions"]) == 1

        doc["course"]["course_id"] = "COPY_COURSE"
        for lesson in doc["lessons"]:
            lesson["lesson_id"] = lesson["lesson_id"].replace("TEST_COURSE", "COPY_COURSE")
        for question in doc["questions"]:
            question["course_id"] = "COPY_COURSE"
            question["lesson_id"] = None
        res = await client.post("/api/admin/courses/import", json=doc, headers=auth_header(admin))
        assert res.status_code == 200
        assert res.json() == {
            "success": True, "created": True, "course_id": "COPY_COURSE", "lessons": 3, "questions": 1,
        }

    async def test_import_overwrites(self, client: AsyncClient, admin, db, course):
        """같은 코드로 가져오면 레슨과 문항을 교체."""
        await make_question(db, course=course)
        doc = (await client.get("/api/admin/courses/TEST_COURSE/export", headers=auth_header(admin))).json()
        doc["course"]["name"] = "Overwritten"
        doc["lessons"] = doc["lessons"][:1]
        doc["questions"] = []

        res = await client.post("/api/admin/courses/import", json=doc, headers=auth_header(admin))
        assert res.status_code == 200
        assert res.json()["created"] is False

        detail = await client.get("/api/admin/courses/TEST_COURSE", headers=auth_header(admin))
        assert detail.json()["name"] == "Overwritten"
        assert detail.json()["lesson_count"] == 1
        questions = await client.get(
            "/api/admin/questions", params={"course_id": "TEST_COURSE"}, headers=auth_header(admin)
        )
        assert questions.json()["total"] == 0


class TestAdminQuestions:
    """문항 관리 테스트."""

    QUESTION = {
        "question": "What is the capital of Hungary?",
        "options": ["Budapest", "Vienna", "Prague", "Warsaw"],
        "correct_index": 0,
    }

    async def test_create_with_lesson_inherits_course(self, client: AsyncClient, admin, course):
        """레슨만 지정하면 레슨의 코스를 상속."""
        res = await client.post(
            "/api/admin/questions",
            json={**self.QUESTION, "lesson_id": "TEST_COURSE_DAY_01"},
            headers=auth_header(admin),
        )
        assert res.status_code == 201
        assert res.json()["course_id"] == "TEST_COURSE"
        assert res.json()["show_count"] == 0

    async def test_lesson_of_other_course(self, client: AsyncClient, admin, db, course):
        """다른 코스의 레슨은 400."""
        await make_course(db, "OTHER")
        res = await client.post(
            "/api/admin/questions",
            json={**self.QUESTION, "course_id": "OTHER", "lesson_id": "TEST_COURSE_DAY_01"},
            headers=auth_header(admin),
        )
        assert res.status_code == 400

    async def test_duplicate_options(self, client: AsyncClient, admin):
        """중복 보기는 400."""
        res = await client.post(
            "/api/admin/questions",
            json={**self.QUESTION, "options": ["A", "a", "B", "C"]},
            headers=auth_header(admin),
        )
        assert res.status_code == 400

    async def test_batch_all_or_nothing(self, client: AsyncClient, admin, course):
        """일괄 생성 — 하나라도 실패하면 전체 거부."""
        bad = {"questions": [{**self.QUESTION, "course_id": "TEST_COURSE"}, {**self.QUESTION, "course_id": "NOPE"}]}
        res = await client.post("/api/admin/questions/batch", json=bad, headers=auth_header(admin))
        assert res.status_code == 400
        assert res.json()["error"].startswith("questions[1]")

        good = {"questions": [{**self.QUESTION, "course_id": "TEST_COURSE"}] * 2}
        ok = await client.post("/api/admin/questions/batch", json=good, headers=auth_header(admin))
        assert ok.status_code == 201
        assert ok.json()["created"] == 2

        listed = await client.get("/api/admin/questions", params={"course_id": "TEST_COURSE"}, headers=auth_header(admin))
        assert listed.json()["total"] == 2

    async def test_filters_and_soft_delete(self, client: AsyncClient, admin, db, course):
        """검색 필터와 비활성화."""
        keep = await make_question(db, course=course, text="Which planet is the largest?")
        drop = await make_question(db, course=course, text="Which ocean is the deepest?")

        found = await client.get("/api/admin/questions", params={"search": "planet"}, headers=auth_header(admin))
        assert [q["id"] for q in found.json()["items"]] == [str(keep.id)]

        res = await client.delete(f"/api/admin/questions/{drop.id}", headers=auth_header(admin))
        assert res.status_code == 204
        active = await client.get("/api/admin/questions", params={"is_active": True}, headers=auth_header(admin))
        assert [q["id"] for q in active.json()["items"]] == [str(keep.id)]

        unknown = await client.get("/api/admin/questions", params={"course_id": "NOPE"}, headers=auth_header(admin))
        assert unknown.json()["total"] == 0

    async def test_update_correct_index(self, client: AsyncClient, admin, db, course):
        """정답 인덱스 범위 검사."""
        question = await make_question(db, course=course)
        res = await client.put(
            f"/api/admin/questions/{question.id}", json={"correct_index": 2}, headers=auth_header(admin)
        )
        assert res.status_code == 200
        assert res.json()["correct_index"] == 2
        bad = await client.put(
            f"/api/admin/questions/{question.id}", json={"correct_index": 7}, headers=auth_header(admin)
        )
        assert bad.status_code == 400

    async def test_missing_question(self, client: AsyncClient, admin):
        """없는 문항은 404."""
        res = await client.get(f"/api/admin/questions/{uuid.uuid4()}", headers=auth_header(admin))
        assert res.status_code == 404


class TestAdminCertification:
    """인증서/설정/응시 권한 관리 테스트."""

    async def test_revoke_and_reinstate(self, client: AsyncClient, admin, db, player, course):
        """인증서 취소 후 복원."""
        db.add(Certificate(
            certificate_id="cert-1", player_id=player.id, course_id=course.id,
            recipient_name="Learner", course_title="Course TEST_COURSE", locale="en",
            design_template_id="default_v1", credential_id="CERT", verification_slug="slug-1",
            final_exam_score_percent_integer=90,
        ))
        await db.flush()

        res = await client.post(
            "/api/admin/certificates/cert-1/revoke", json={"reason": "fraud"}, headers=auth_header(admin)
        )
        assert res.status_code == 200
        assert res.json()["is_revoked"] is True
        assert res.json()["revoked_reason"] == "fraud"

        revoked = await client.get("/api/admin/certificates", params={"is_revoked": True}, headers=auth_header(admin))
        assert revoked.json()["total"] == 1
        assert revoked.json()["items"][0]["course_id"] == "TEST_COURSE"

        back = await client.post("/api/admin/certificates/cert-1/reinstate", headers=auth_header(admin))
        assert back.json()["is_revoked"] is False
        verify = await client.get(f"/api/certificates/verify/{player.id}/TEST_COURSE")
        assert verify.json()["data"]["valid"] is True

    async def test_settings(self, client: AsyncClient, admin):
        """전역 설정 기본값과 수정."""
        res = await client.get("/api/admin/certification/settings", headers=auth_header(admin))
        assert res.json()["default_template_id"] == "default_v1"

        bad = await client.put(
            "/api/admin/certification/settings",
            json={"template_variant_ids": ["a", "b"], "template_variant_weights": [1]},
            headers=auth_header(admin),
        )
        assert bad.status_code == 400

        ok = await client.put(
            "/api/admin/certification/settings",
            json={"template_variant_ids": ["a", "b"], "template_variant_weights": [1, 3], "credential_title_id": "AMB"},
            headers=auth_header(admin),
        )
        assert ok.status_code == 200
        assert ok.json()["template_variant_ids"] == ["a", "b"]
        assert ok.json()["credential_title_id"] == "AMB"

    async def test_grant_and_revoke_entitlement(self, client: AsyncClient, admin, player, course):
        """응시 권한 부여, 중복 409, 삭제."""
        body = {"player_id": str(player.id), "course_id": "TEST_COURSE"}
        res = await client.post("/api/admin/entitlements", json=body, headers=auth_header(admin))
        assert res.status_code == 201
        assert res.json()["source"] == "admin"

        dup = await client.post("/api/admin/entitlements", json=body, headers=auth_header(admin))
        assert dup.status_code == 409

        gone = await client.delete(f"/api/admin/entitlements/{player.id}/TEST_COURSE", headers=auth_header(admin))
        assert gone.status_code == 204
        again = await client.delete(f"/api/admin/entitlements/{player.id}/TEST_COURSE", headers=auth_header(admin))
        assert again.status_code == 404

    async def test_grant_invalid_player(self, client: AsyncClient, admin, course):
        """잘못된 플레이어 ID는 400, 없는 플레이어는 404."""
        bad = await client.post(
            "/api/admin/entitlements", json={"player_id": "x", "course_id": "TEST_COURSE"}, headers=auth_header(admin)
        )
        assert bad.status_code == 400
        missing = await client.post(
            "/api/admin/entitlements",
            json={"player_id": str(uuid.uuid4()), "course_id": "TEST_COURSE"},
            headers=auth_header(admin),
        )
        assert missing.status_code == 404


class TestAdminPlayers:
    """플레이어 관리 테스트."""

    async def test_list_and_search(self, client: AsyncClient, admin, player):
        """이름/이메일 검색과 역할 필터."""
        res = await client.get("/api/admin/players", params={"search": "learn"}, headers=auth_header(admin))
        assert res.status_code == 200
        assert [p["email"] for p in res.json()["items"]] == ["player@test.com"]

        admins = await client.get("/api/admin/players", params={"role": "admin"}, headers=auth_header(admin))
        assert admins.json()["total"] == 1

    async def test_ban_and_unban(self, client: AsyncClient, admin, player):
        """차단하면 로그인 불가, 해제하면 사유 삭제."""
        res = await client.put(
            f"/api/admin/players/{player.id}",
            json={"is_banned": True, "ban_reason": "spam"},
            headers=auth_header(admin),
        )
        assert res.status_code == 200
        assert res.json()["ban_reason"] == "spam"
        me = await client.get("/api/auth/me", headers=auth_header(player))
        assert me.status_code == 401

        unban = await client.put(
            f"/api/admin/players/{player.id}", json={"is_banned": False}, headers=auth_header(admin)
        )
        assert unban.json()["is_banned"] is False
        assert unban.json()["ban_reason"] is None

    async def test_self_lockout(self, client: AsyncClient, admin):
        """관리자 자신의 강등/비활성화는 400."""
        for body in ({"role": "user"}, {"is_active": False}, {"is_banned": True}):
            res = await client.put(f"/api/admin/players/{admin.id}", json=body, headers=auth_header(admin))
            assert res.status_code == 400

    async def test_adjust_points(self, client: AsyncClient, admin, player):
        """포인트 지급과 차감, 잔액 부족은 400."""
        add = await client.post(
            f"/api/admin/players/{player.id}/points", json={"amount": 40, "reason": "bonus"}, headers=auth_header(admin)
        )
        assert add.status_code == 200
        assert add.json()["balance"] == 40
        assert add.json()["transaction"]["type"] == "admin_add"

        deduct = await client.post(
            f"/api/admin/players/{player.id}/points", json={"amount": -15, "reason": "fix"}, headers=auth_header(admin)
        )
        assert deduct.json()["balance"] == 25
        assert deduct.json()["transaction"]["type"] == "admin_deduct"

        too_much = await client.post(
            f"/api/admin/players/{player.id}/points", json={"amount": -100, "reason": "fix"}, headers=auth_header(admin)
        )
        assert too_much.status_code == 400

        zero = await client.post(
            f"/api/admin/players/{player.id}/points", json={"amount": 0, "reason": "noop"}, headers=auth_header(admin)
        )
        assert zero.status_code == 400

    async def test_missing_player(self, client: AsyncClient, admin):
        """없는 플레이어는 404."""
        res = await client.get(f"/api/admin/players/{uuid.uuid4()}", headers=auth_header(admin))
        assert res.status_code == 404


class TestAdminAchievements:
    """업적 관리 테스트."""

    async def test_create_update_list(self, client: AsyncClient, admin, course):
        """업적 생성, 수정, 목록."""
        body = {
            "key": "course_finisher",
            "name": "Finisher",
            "criteria_type": "courses_completed",
            "course_id": "TEST_COURSE",
            "points_reward": 20,
        }
        res = await client.post("/api/admin/achievements", json=body, headers=auth_header(admin))
        assert res.status_code == 201
        assert res.json()["course_id"] == "TEST_COURSE"

        dup = await client.post("/api/admin/achievements", json=body, headers=auth_header(admin))
        assert dup.status_code == 409

        updated = await client.put(
            f"/api/admin/achievements/{res.json()['id']}", json={"points_reward": 50}, headers=auth_header(admin)
        )
        assert updated.json()["points_reward"] == 50

        listed = await client.get("/api/admin/achievements", headers=auth_header(admin))
        assert [a["key"] for a in listed.json()] == ["course_finisher"]

    async def test_unknown_criteria(self, client: AsyncClient, admin):
        """알 수 없는 조건 유형은 400."""
        res = await client.post(
            "/api/admin/achievements",
            json={"key": "odd", "name": "Odd", "criteria_type": "logins"},
            headers=auth_header(admin),
        )
        assert res.status_code == 400


class TestAdminStats:
    """플랫폼 통계 테스트."""

    async def test_stats(self, client: AsyncClient, admin, player, course):
        """수강과 완료가 통계에 반영."""
        for day in (1, 2, 3):
            await client.post(f"/api/courses/TEST_COURSE/day/{day}/complete", headers=auth_header(player))
        res = await client.get("/api/admin/stats", headers=auth_header(admin))
        assert res.status_code == 200
        data = res.json()
        assert data["players"] == 2
        assert data["active_courses"] == 1
        assert data["lessons"] == 3
        assert data["enrolments"] == 1
        assert data["completed_courses"] == 1
        assert data["graded_attempts"] == 0
        assert data["pass_rate"] == 0
