"""인증 API 테스트 — 응시 권한, 포인트 교환, 최종 시험, 인증서 검증.

Certification API tests — Entitlement status, points redemption, the final
exam flow and certificate verification.
"""

import uuid

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.certification import CertificateEntitlement, CertificationSettings
from amanoba.models.course import Course
from amanoba.models.player import Player
from amanoba.models.points import PointsTransaction
from amanoba.utils.randomization import stable_weighted_choice
from tests.conftest import auth_header, make_course, make_lesson, make_player, make_question

CERT_CONFIG: dict = {
    "enabled": True,
    "cert_question_count": 2,
    "pass_threshold_percent": 50,
    "require_all_quizzes_passed": False,
    "price_points": 100,
}


@pytest_asyncio.fixture
async def cert_course(db: AsyncSession) -> Course:
    """인증이 켜진 3일 코스와 3문항 풀을 생성합니다."""
    course = await make_course(db, "CERT_COURSE", certification=CERT_CONFIG, name="Certified Course")
    for day in range(1, 4):
        await make_lesson(db, course, day)
    for n in range(3):
        await make_question(db, course=course, text=f"Pool question {n}")
    return course


async def _grant(db: AsyncSession, player: Player, course: Course) -> None:
    db.add(CertificateEntitlement(player_id=player.id, course_id=course.id, source="admin"))
    await db.flush()


async def _complete_course(client: AsyncClient, player: Player, course: Course) -> None:
    for day in range(1, course.duration_days + 1):
        res = await client.post(f"/api/courses/{course.course_id}/day/{day}/complete", headers=auth_header(player))
        assert res.status_code == 200


async def _run_exam(client: AsyncClient, player: Player, course_code: str, correct: bool | list[bool]) -> dict:
    """시험을 시작해 모든 문항에 답하고 제출합니다 (correct may list one flag per question)."""
    start = await client.post(
        "/api/certification/final-exam/start", json={"course_id": course_code}, headers=auth_header(player)
    )
    assert start.status_code == 200
    attempt_id = start.json()["attempt_id"]
    question = start.json()["question"]
    while question is not None:
        right = correct[question["index"]] if isinstance(correct, list) else correct
        choice = question["options"].index("Alpha" if right else "Bravo")
        res = await client.post(
            "/api/certification/final-exam/answer",
            json={"attempt_id": attempt_id, "question_id": question["question_id"], "selected_index": choice},
            headers=auth_header(player),
        )
        assert res.status_code == 200
        question = res.json()["next_question"]
    submit = await client.post(
        "/api/certification/final-exam/submit", json={"attempt_id": attempt_id}, headers=auth_header(player)
    )
    assert submit.status_code == 200
    return submit.json()


class TestEntitlement:
    """응시 권한 상태 및 포인트 교환 테스트."""

    async def test_status(self, client: AsyncClient, player, cert_course):
        """인증 상태 — 풀 크기와 가격."""
        res = await client.get(
            "/api/certification/entitlement", params={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        assert res.status_code == 200
        data = res.json()["data"]
        assert data["certification_enabled"] is True
        assert data["certification_available"] is True
        assert data["entitlement_owned"] is False
        assert data["pool_count"] == 3
        assert data["required_question_count"] == 2
        assert data["price_points"] == 100

    async def test_status_unknown_course(self, client: AsyncClient, player):
        """없는 코스는 404."""
        res = await client.get(
            "/api/certification/entitlement", params={"course_id": "NOPE"}, headers=auth_header(player)
        )
        assert res.status_code == 404

    async def test_redeem_success(self, client: AsyncClient, db, cert_course):
        """포인트 차감 후 권한 생성."""
        buyer = await make_player(db, "buyer@test.com", balance=150)
        res = await client.post(
            "/api/certification/entitlement/redeem-points", json={"course_id": "CERT_COURSE"}, headers=auth_header(buyer)
        )
        assert res.status_code == 200
        data = res.json()
        assert data["balance"] == 50
        assert data["entitlement"]["source"] == "points"
        assert data["entitlement"]["points_spent"] == 100

        again = await client.post(
            "/api/certification/entitlement/redeem-points", json={"course_id": "CERT_COURSE"}, headers=auth_header(buyer)
        )
        assert again.status_code == 409

        wallet = await client.get("/api/profile/wallet/transactions", headers=auth_header(buyer))
        assert wallet.json()["items"][0]["type"] == "spend"
        assert wallet.json()["items"][0]["amount"] == -100

    async def test_redeem_insufficient(self, client: AsyncClient, player, cert_course):
        """잔액 부족은 400, 권한 미생성."""
        res = await client.post(
            "/api/certification/entitlement/redeem-points", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        assert res.status_code == 400
        status = await client.get(
            "/api/certification/entitlement", params={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        assert status.json()["data"]["entitlement_owned"] is False

    async def test_redeem_disabled(self, client: AsyncClient, db, course):
        """인증 비활성 코스는 400."""
        rich = await make_player(db, "rich@test.com", balance=1000)
        res = await client.post(
            "/api/certification/entitlement/redeem-points", json={"course_id": "TEST_COURSE"}, headers=auth_header(rich)
        )
        assert res.status_code == 400


class TestFinalExamStart:
    """최종 시험 시작 검사 순서 테스트."""

    async def test_unknown_course(self, client: AsyncClient, player):
        """없는 코스는 404."""
        res = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "NOPE"}, headers=auth_header(player)
        )
        assert res.status_code == 404

    async def test_not_enabled(self, client: AsyncClient, db, player, course):
        """인증 비활성은 권한이 있어도 400."""
        await _grant(db, player, course)
        res = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "TEST_COURSE"}, headers=auth_header(player)
        )
        assert res.status_code == 400

    async def test_pool_too_small(self, client: AsyncClient, db, player):
        """풀이 시험 문항 수보다 작으면 400."""
        small = await make_course(db, "SMALL", certification={**CERT_CONFIG, "cert_question_count": 5})
        await make_question(db, course=small)
        await _grant(db, player, small)
        res = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "SMALL"}, headers=auth_header(player)
        )
        assert res.status_code == 400

    async def test_no_entitlement(self, client: AsyncClient, player, cert_course):
        """권한 없으면 403."""
        res = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        assert res.status_code == 403

    async def test_premium_includes_certification(self, client: AsyncClient, db):
        """프리미엄 포함 코스는 프리미엄 플레이어가 권한 없이 응시."""
        course = await make_course(db, "PREMIUM_CERT", certification={**CERT_CONFIG, "premium_includes_certification": True})
        for _ in range(2):
            await make_question(db, course=course)
        member = await make_player(db, "member@test.com", is_premium=True)
        res = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "PREMIUM_CERT"}, headers=auth_header(member)
        )
        assert res.status_code == 200

    async def test_start_shape(self, client: AsyncClient, db, player, cert_course):
        """첫 문항 — 정답 미노출, 4개 보기."""
        await _grant(db, player, cert_course)
        res = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        question = res.json()["question"]
        assert question["index"] == 0
        assert question["total"] == 2
        assert sorted(question["options"]) == ["Alpha", "Bravo", "Charlie", "Delta"]
        assert "correct_index" not in question

    async def test_restart_supersedes(self, client: AsyncClient, db, player, cert_course):
        """재시작 시 이전 진행 중 응시는 superseded로 폐기."""
        await _grant(db, player, cert_course)
        body = {"course_id": "CERT_COURSE"}
        first = await client.post("/api/certification/final-exam/start", json=body, headers=auth_header(player))
        await client.post("/api/certification/final-exam/start", json=body, headers=auth_header(player))

        res = await client.get("/api/certification/final-exam/attempts", headers=auth_header(player))
        attempts = {a["id"]: a for a in res.json()["attempts"]}
        assert len(attempts) == 2
        old = attempts[first.json()["attempt_id"]]
        assert old["status"] == "DISCARDED"
        assert old["discard_reason"] == "superseded"


class TestFinalExamFlow:
    """답안, 채점, 인증서 발급/취소 테스트."""

    async def test_pass_issues_certificate(self, client: AsyncClient, db, player, cert_course):
        """요건 충족 후 합격하면 인증서 발급 및 검증 가능."""
        await _grant(db, player, cert_course)
        await _complete_course(client, player, cert_course)

        result = await _run_exam(client, player, "CERT_COURSE", correct=True)
        assert result["score_percent_integer"] == 100
        assert result["passed"] is True
        assert result["certificate_eligible"] is True
        assert result["certificate_updated"] is True

        verify = await client.get(f"/api/certificates/verify/{player.id}/CERT_COURSE")
        assert verify.status_code == 200
        data = verify.json()["data"]
        assert data["valid"] is True
        certificate = data["certificate"]
        assert certificate["recipient_name"] == "Learner"
        assert certificate["course_title"] == "Certified Course"
        assert certificate["design_template_id"] == "default_v1"
        assert certificate["credential_id"] == "CERT"

        public = await client.get(f"/api/certificates/{certificate['verification_slug']}")
        assert public.status_code == 200
        assert public.json()["certificate"]["certificate_id"] == certificate["certificate_id"]

    async def test_failed_retake_revokes(self, client: AsyncClient, db, player, cert_course):
        """합격 후 재응시에서 불합격하면 인증서 취소, 슬러그 유지."""
        await _grant(db, player, cert_course)
        await _complete_course(client, player, cert_course)
        await _run_exam(client, player, "CERT_COURSE", correct=True)
        before = (await client.get(f"/api/certificates/verify/{player.id}/CERT_COURSE")).json()["data"]["certificate"]

        result = await _run_exam(client, player, "CERT_COURSE", correct=False)
        assert result["score_percent_integer"] == 0
        assert result["passed"] is False
        assert result["certificate_updated"] is True

        data = (await client.get(f"/api/certificates/verify/{player.id}/CERT_COURSE")).json()["data"]
        assert data["valid"] is False
        assert data["certificate"]["revoked_reason"] == "score_below_threshold"
        assert data["certificate"]["verification_slug"] == before["verification_slug"]

        again = await _run_exam(client, player, "CERT_COURSE", correct=True)
        assert again["certificate_updated"] is True
        restored = (await client.get(f"/api/certificates/verify/{player.id}/CERT_COURSE")).json()["data"]
        assert restored["valid"] is True
        assert restored["certificate"]["certificate_id"] == before["certificate_id"]

    async def test_requirements_not_met(self, client: AsyncClient, db, player, cert_course):
        """레슨 미완료 시 합격해도 인증서 없음."""
        await _grant(db, player, cert_course)
        await client.post("/api/courses/CERT_COURSE/enroll", headers=auth_header(player))

        result = await _run_exam(client, player, "CERT_COURSE", correct=True)
        assert result["passed"] is True
        assert result["certificate_eligible"] is False
        assert result["certificate_updated"] is False

        verify = await client.get(f"/api/certificates/verify/{player.id}/CERT_COURSE")
        assert verify.json()["data"] == {"valid": False, "certificate": None}

    async def test_quiz_requirement(self, client: AsyncClient, db, player):
        """퀴즈 요건이 켜져 있으면 퀴즈 결과 없는 일차가 있을 때 부적격."""
        course = await make_course(db, "QUIZ_CERT", certification={**CERT_CONFIG, "require_all_quizzes_passed": True})
        for day in range(1, 4):
            await make_lesson(db, course, day)
        for _ in range(2):
            await make_question(db, course=course)
        await _grant(db, player, course)
        await _complete_course(client, player, course)

        result = await _run_exam(client, player, "QUIZ_CERT", correct=True)
        assert result["passed"] is True
        assert result["certificate_eligible"] is False

    async def test_wrong_question(self, client: AsyncClient, db, player, cert_course):
        """현재 문항이 아닌 답안은 400."""
        await _grant(db, player, cert_course)
        start = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        res = await client.post(
            "/api/certification/final-exam/answer",
            json={"attempt_id": start.json()["attempt_id"], "question_id": str(uuid.uuid4()), "selected_index": 0},
            headers=auth_header(player),
        )
        assert res.status_code == 400

    async def test_option_out_of_range(self, client: AsyncClient, db, player, cert_course):
        """보기 범위를 벗어난 인덱스는 400."""
        await _grant(db, player, cert_course)
        start = (await client.post(
            "/api/certification/final-exam/start", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )).json()
        res = await client.post(
            "/api/certification/final-exam/answer",
            json={"attempt_id": start["attempt_id"], "question_id": start["question"]["question_id"], "selected_index": 4},
            headers=auth_header(player),
        )
        assert res.status_code == 400

    async def test_discard(self, client: AsyncClient, db, player, cert_course):
        """폐기 후 다시 폐기하거나 제출하면 400."""
        await _grant(db, player, cert_course)
        start = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        attempt_id = start.json()["attempt_id"]

        res = await client.post(
            "/api/certification/final-exam/discard", json={"attempt_id": attempt_id}, headers=auth_header(player)
        )
        assert res.status_code == 200
        assert res.json()["status"] == "DISCARDED"
        assert res.json()["discard_reason"] == "user_exit"

        again = await client.post(
            "/api/certification/final-exam/discard", json={"attempt_id": attempt_id}, headers=auth_header(player)
        )
        assert again.status_code == 400
        submit = await client.post(
            "/api/certification/final-exam/submit", json={"attempt_id": attempt_id}, headers=auth_header(player)
        )
        assert submit.status_code == 400

    async def test_other_players_attempt(self, client: AsyncClient, db, player, cert_course):
        """다른 플레이어의 응시는 404."""
        await _grant(db, player, cert_course)
        start = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "CERT_COURSE"}, headers=auth_header(player)
        )
        other = await make_player(db, "other@test.com")
        res = await client.post(
            "/api/certification/final-exam/submit",
            json={"attempt_id": start.json()["attempt_id"]},
            headers=auth_header(other),
        )
        assert res.status_code == 404


class TestPublicCertificates:
    """공개 인증서 조회 테스트."""

    async def test_unknown_slug(self, client: AsyncClient):
        """없는 슬러그는 404."""
        res = await client.get("/api/certificates/does-not-exist")
        assert res.status_code == 404

    async def test_verify_malformed_player(self, client: AsyncClient, course):
        """잘못된 플레이어 ID는 valid=false."""
        res = await client.get("/api/certificates/verify/not-a-uuid/TEST_COURSE")
        assert res.status_code == 200
        assert res.json()["data"]["valid"] is False


async def _single_day_course(db: AsyncSession, code: str, pool: int = 2, **certification) -> Course:
    """1일 코스 — 레슨 하나와 pool개 풀 문항."""
    course = await make_course(db, code, duration_days=1, certification={**CERT_CONFIG, **certification})
    await make_lesson(db, course, 1)
    for n in range(pool):
        await make_question(db, course=course, text=f"{code} question {n}")
    return course


class TestPoolCourse:
    """pool_course_id로 다른 코스의 문항 풀 사용."""

    async def test_pool_from_other_course(self, client: AsyncClient, db, player):
        """풀 코스의 문항으로 출제."""
        await _single_day_course(db, "POOL_SOURCE", pool=2)
        target = await _single_day_course(db, "POOL_TARGET", pool=0, pool_course_id="POOL_SOURCE")
        await _grant(db, player, target)

        status = await client.get(
            "/api/certification/entitlement", params={"course_id": "POOL_TARGET"}, headers=auth_header(player)
        )
        assert status.json()["data"]["pool_count"] == 2
        assert status.json()["data"]["certification_available"] is True

        start = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "POOL_TARGET"}, headers=auth_header(player)
        )
        assert start.status_code == 200
        assert start.json()["question"]["total"] == 2
        assert start.json()["question"]["question"].startswith("POOL_SOURCE question")

    async def test_unknown_pool_course(self, client: AsyncClient, db, player):
        """없는 풀 코스는 빈 풀 — 응시 불가 400."""
        course = await _single_day_course(db, "ORPHAN", pool=2, pool_course_id="MISSING_POOL")
        await _grant(db, player, course)

        status = await client.get(
            "/api/certification/entitlement", params={"course_id": "ORPHAN"}, headers=auth_header(player)
        )
        assert status.json()["data"]["pool_count"] == 0
        assert status.json()["data"]["certification_available"] is False

        start = await client.post(
            "/api/certification/final-exam/start", json={"course_id": "ORPHAN"}, headers=auth_header(player)
        )
        assert start.status_code == 400


class TestScoringBoundary:
    """합격 기준 경계 테스트."""

    async def test_score_equal_to_threshold_passes(self, client: AsyncClient, db, player, cert_course):
        """2문항 중 1개 정답 — 50점, 기준 50이면 합격."""
        await _grant(db, player, cert_course)
        await _complete_course(client, player, cert_course)

        result = await _run_exam(client, player, "CERT_COURSE", correct=[True, False])
        assert result["score_percent_integer"] == 50
        assert result["passed"] is True
        assert result["certificate_eligible"] is True

    async def test_score_below_threshold_fails(self, client: AsyncClient, db, player):
        """기준 51이면 50점은 불합격."""
        course = await _single_day_course(db, "STRICT", pass_threshold_percent=51)
        await _grant(db, player, course)
        await _complete_course(client, player, course)

        result = await _run_exam(client, player, "STRICT", correct=[True, False])
        assert result["score_percent_integer"] == 50
        assert result["passed"] is False
        assert result["certificate_updated"] is False


class TestTemplateSelection:
    """발급 시 인증서 템플릿 변형 선택 테스트."""

    async def _issue(self, client: AsyncClient, db, player, course: Course) -> dict:
        await _grant(db, player, course)
        await _complete_course(client, player, course)
        result = await _run_exam(client, player, course.course_id, correct=True)
        assert result["certificate_updated"] is True
        verify = await client.get(f"/api/certificates/verify/{player.id}/{course.course_id}")
        return verify.json()["data"]["certificate"]

    async def test_course_variants(self, client: AsyncClient, db, player):
        """코스 가중치 변형 — 플레이어와 코스 기준 결정적 선택."""
        variants, weights = ["course_a", "course_b", "course_c"], [1.0, 3.0, 2.0]
        course = await _single_day_course(
            db, "VARIANTS", template_variant_ids=variants, template_variant_weights=weights, template_id="course_fixed",
        )
        certificate = await self._issue(client, db, player, course)
        assert certificate["design_template_id"] == stable_weighted_choice(f"{player.id}:VARIANTS", variants, weights)

    async def test_global_fallback(self, client: AsyncClient, db, player):
        """코스 설정이 없으면 전역 변형과 자격 ID 사용."""
        db.add(CertificationSettings(
            default_template_id="global_default",
            template_variant_ids=["global_off", "global_on"],
            template_variant_weights=[0.0, 1.0],
            credential_title_id="GLOBAL_CRED",
        ))
        await db.flush()
        course = await _single_day_course(db, "GLOBAL_TPL")

        certificate = await self._issue(client, db, player, course)
        assert certificate["design_template_id"] == "global_on"
        assert certificate["credential_id"] == "GLOBAL_CRED"

    async def test_course_template_beats_global(self, client: AsyncClient, db, player):
        """코스 template_id가 전역 설정보다 우선."""
        db.add(CertificationSettings(default_template_id="global_default", template_variant_ids=["global_on"]))
        await db.flush()
        course = await _single_day_course(db, "OWN_TPL", template_id="course_fixed", credential_title_id="COURSE_CRED")

        certificate = await self._issue(client, db, player, course)
        assert certificate["design_template_id"] == "course_fixed"
        assert certificate["credential_id"] == "COURSE_CRED"


class TestRedemptionAtomicity:
    """포인트 교환 실패 시 부분 기록 없음."""

    async def test_insufficient_leaves_no_rows(self, client: AsyncClient, db, cert_course):
        """잔액 부족 400 후 권한, 거래 없음, 잔액 유지."""
        poor = await make_player(db, "poor@test.com", balance=99)
        res = await client.post(
            "/api/certification/entitlement/redeem-points", json={"course_id": "CERT_COURSE"}, headers=auth_header(poor)
        )
        assert res.status_code == 400

        entitlements = await db.execute(
            select(func.count()).select_from(CertificateEntitlement).where(CertificateEntitlement.player_id == poor.id)
        )
        transactions = await db.execute(
            select(func.count()).select_from(PointsTransaction).where(PointsTransaction.player_id == poor.id)
        )
        assert entitlements.scalar() == 0
        assert transactions.scalar() == 0

        profile = await client.get("/api/profile", headers=auth_header(poor))
        assert profile.json()["wallet"]["current_balance"] == 99
