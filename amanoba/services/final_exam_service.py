"""최종 시험 서비스 — 시작, 답안 제출, 채점, 폐기.

Final Exam Service — Start, answer, submit and discard a course final exam.

Attempt state machine:
    start   → IN_PROGRESS (other IN_PROGRESS attempts → DISCARDED "superseded")
    answer  → IN_PROGRESS, current_index advances by one
    submit  → GRADED, certificate issued / refreshed / revoked
    discard → DISCARDED
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.certification import (
    ATTEMPT_DISCARDED,
    ATTEMPT_GRADED,
    ATTEMPT_IN_PROGRESS,
    DISCARD_SUPERSEDED,
    DISCARD_USER_EXIT,
    REVOKE_REQUIREMENTS_NOT_MET,
    REVOKE_SCORE_BELOW_THRESHOLD,
    Certificate,
    FinalExamAttempt,
)
from amanoba.models.course import Course
from amanoba.models.player import Player
from amanoba.models.progress import CourseProgress
from amanoba.models.question import QuizQuestion
from amanoba.repositories.certification_repository import attempt_repository, certificate_repository
from amanoba.repositories.course_repository import course_repository
from amanoba.repositories.progress_repository import course_progress_repository
from amanoba.repositories.question_repository import question_repository
from amanoba.schemas.certification import (
    AttemptListResponse,
    AttemptResponse,
    ExamAnswerRequest,
    ExamAnswerResponse,
    ExamQuestion,
    ExamStartResponse,
    ExamSubmitResponse,
)
from amanoba.services.achievement_service import achievement_service
from amanoba.services.certification_service import ResolvedCertification, certification_service
from amanoba.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from amanoba.utils.log import get_logger
from amanoba.utils.randomization import option_permutation, round_half_up, sample_without_replacement

logger = get_logger(__name__)

# 문항 순서가 비어 있을 때의 분모 — Denominator when an attempt has no question order
EMPTY_ORDER_TOTAL: int = 50


class FinalExamService:
    """최종 시험 비즈니스 로직을 처리하는 서비스.

    Service handling final exam business logic.
    """

    def _to_response(self, attempt: FinalExamAttempt, course_code: str) -> AttemptResponse:
        return AttemptResponse(
            id=str(attempt.id),
            course_id=course_code,
            status=attempt.status,
            current_index=attempt.current_index,
            total_questions=len(attempt.question_order or []),
            correct_count=attempt.correct_count,
            score_percent_integer=attempt.score_percent_integer,
            passed=attempt.passed,
            started_at=attempt.started_at,
            submitted_at=attempt.submitted_at,
            discarded_at=attempt.discarded_at,
            discard_reason=attempt.discard_reason,
        )

    async def _build_question(self, db: AsyncSession, attempt: FinalExamAttempt) -> ExamQuestion | None:
        """현재 문항을 섞인 보기와 함께 구성합니다.

        Build the current question with options in the attempt's stored
        display order. Returns None once every question is answered.
        """
        order: list[str] = attempt.question_order or []
        if attempt.current_index >= len(order):
            return None

        question_id: str = order[attempt.current_index]
        question: QuizQuestion | None = await question_repository.get_by_id(db, UUID(question_id))
        if question is None:
            raise NotFoundError("Question not found")

        permutation: list[int] = (attempt.answer_orders or {}).get(question_id) or list(range(len(question.options)))
        return ExamQuestion(
            question_id=question_id,
            question=question.question,
            options=[question.options[i] for i in permutation],
            index=attempt.current_index,
            total=len(order),
        )

    async def _get_owned_attempt(self, db: AsyncSession, player: Player, attempt_id: str) -> FinalExamAttempt:
        """플레이어 소유 응시 기록 조회 (Owned attempt; malformed ids are reported as missing)."""
        try:
            attempt_pk: UUID = UUID(attempt_id)
        except ValueError:
            raise NotFoundError("Attempt not found")
        attempt: FinalExamAttempt | None = await attempt_repository.get_owned(db, attempt_pk, player.id)
        if attempt is None:
            raise NotFoundError("Attempt not found")
        return attempt

    async def start(self, db: AsyncSession, player: Player, course_code: str) -> ExamStartResponse:
        """최종 시험을 시작합니다.

        Start a final exam. Any other IN_PROGRESS attempt of the player for
        the course is discarded as superseded. Questions are sampled without
        replacement from the pool and each gets its own option permutation.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player: 현재 플레이어 (Current player)
            course_code: 코스 코드 (Course code)

        Returns:
            ExamStartResponse: 응시 ID와 첫 문항 (Attempt id and the first question)

        Raises:
            NotFoundError: 코스 없음 (Course missing or inactive)
            BadRequestError: 인증 불가 — 비활성 또는 풀 부족 (Certification unavailable)
            ForbiddenError: 응시 권한 없음 (No entitlement and no premium access)
        """
        course: Course | None = await course_repository.get_by_code(db, course_code, active_only=True)
        if course is None:
            raise NotFoundError("Course not found")

        config: ResolvedCertification = await certification_service.resolve_config(db, course)
        pool_count: int = await certification_service.pool_count(db, config)
        if not config.enabled or pool_count < config.question_count:
            raise BadRequestError("Certification is not available for this course")
        if not await certification_service.has_access(db, player, course, config):
            raise ForbiddenError("Certification entitlement required")

        now: datetime = datetime.now(timezone.utc)
        for previous in await attempt_repository.list_in_progress(db, player.id, course.id):
            previous.status = ATTEMPT_DISCARDED
            previous.discarded_at = now
            previous.discard_reason = DISCARD_SUPERSEDED

        pool_ids: list[UUID] = await question_repository.list_pool_ids(db, config.pool_course_pk)
        sampled: list[UUID] = sample_without_replacement(pool_ids, config.question_count)
        questions: dict[UUID, QuizQuestion] = {
            q.id: q for q in await question_repository.list_by_ids(db, sampled)
        }

        attempt: FinalExamAttempt = await attempt_repository.create(db, {
            "player_id": player.id,
            "course_id": course.id,
            "pool_course_id": config.pool_course_pk,
            "status": ATTEMPT_IN_PROGRESS,
            "question_order": [str(qid) for qid in sampled],
            "answer_orders": {str(qid): option_permutation(len(questions[qid].options)) for qid in sampled},
            "answers": [],
        })

        logger.info(
            "final_exam_started",
            player_id=str(player.id),
            course_id=course.course_id,
            attempt_id=str(attempt.id),
            questions=len(sampled),
        )
        first: ExamQuestion | None = await self._build_question(db, attempt)
        return ExamStartResponse(attempt_id=str(attempt.id), question=first)

    async def answer(self, db: AsyncSession, player: Player, data: ExamAnswerRequest) -> ExamAnswerResponse:
        """현재 문항에 답합니다.

        Answer the current question. ``selected_index`` addresses the
        displayed options and is mapped back through the stored permutation
        before grading.

        Raises:
            NotFoundError: 응시 기록 없음 (Attempt missing or not owned)
            BadRequestError: 진행 중 아님, 현재 문항 아님, 보기 범위 초과
                             (Not in progress, not the current question, index out of range)
        """
        attempt: FinalExamAttempt = await self._get_owned_attempt(db, player, data.attempt_id)
        if attempt.status != ATTEMPT_IN_PROGRESS:
            raise BadRequestError("Attempt is not in progress")

        order: list[str] = attempt.question_order or []
        if attempt.current_index >= len(order) or order[attempt.current_index] != data.question_id:
            raise BadRequestError("Question is not the current question")

        question: QuizQuestion | None = await question_repository.get_by_id(db, UUID(data.question_id))
        if question is None:
            raise NotFoundError("Question not found")

        permutation: list[int] = (attempt.answer_orders or {}).get(data.question_id) or list(range(len(question.options)))
        if data.selected_index >= len(permutation):
            raise BadRequestError("Selected option is out of range")

        mapped_index: int = permutation[data.selected_index]
        is_correct: bool = mapped_index == question.correct_index

        # JSON 컬럼은 재할당해야 변경 감지됨 — JSON columns are reassigned, never mutated in place
        attempt.answers = [*(attempt.answers or []), {
            "question_id": data.question_id,
            "selected_index": data.selected_index,
            "mapped_index": mapped_index,
            "is_correct": is_correct,
        }]
        attempt.current_index = attempt.current_index + 1
        if is_correct:
            attempt.correct_count = attempt.correct_count + 1
            question.correct_count = question.correct_count + 1
        question.show_count = question.show_count + 1
        await db.flush()

        next_question: ExamQuestion | None = await self._build_question(db, attempt)
        return ExamAnswerResponse(completed=next_question is None, next_question=next_question)

    def _requirements_met(
        self,
        course: Course,
        progress: CourseProgress | None,
        config: ResolvedCertification,
    ) -> bool:
        """시험 외 인증 요건 충족 여부 (Enrolment, lesson and quiz requirements)."""
        if progress is None:
            return False
        if config.require_all_lessons_completed and len(progress.completed_days or []) < course.duration_days:
            return False
        if config.require_all_quizzes_passed:
            results: dict[str, Any] = progress.assessment_results or {}
            if any(str(day) not in results for day in range(1, course.duration_days + 1)):
                return False
        return True

    async def submit(self, db: AsyncSession, player: Player, attempt_id: str) -> ExamSubmitResponse:
        """최종 시험을 채점하고 인증서를 반영합니다.

        Grade the attempt and reconcile the certificate. Unanswered questions
        count as wrong. An eligible player gets a new or refreshed
        certificate; an ineligible player's existing certificate is revoked.
        ``certificate_updated`` reflects an actual certificate write: a passed
        attempt that is not eligible and has no certificate reports False.

        Raises:
            NotFoundError: 응시 기록 없음 (Attempt missing or not owned)
            BadRequestError: 진행 중 아님 (Attempt not in progress)
        """
        attempt: FinalExamAttempt = await self._get_owned_attempt(db, player, attempt_id)
        if attempt.status != ATTEMPT_IN_PROGRESS:
            raise BadRequestError("Attempt is not in progress")

        course: Course | None = await course_repository.get_by_id(db, attempt.course_id)
        if course is None:
            raise NotFoundError("Course not found")
        config: ResolvedCertification = await certification_service.resolve_config(db, course)

        total: int = len(attempt.question_order or []) or EMPTY_ORDER_TOTAL
        score_raw: float = attempt.correct_count / total * 100
        score_integer: int = round_half_up(score_raw)
        passed: bool = score_integer >= config.pass_threshold

        attempt.status = ATTEMPT_GRADED
        attempt.score_percent_raw = score_raw
        attempt.score_percent_integer = score_integer
        attempt.passed = passed
        attempt.submitted_at = datetime.now(timezone.utc)
        await db.flush()

        progress: CourseProgress | None = await course_progress_repository.get_for_player(db, player.id, course.id)
        eligible: bool = passed and self._requirements_met(course, progress, config)
        existing: Certificate | None = await certificate_repository.get_for_player(db, player.id, course.id)

        certificate_updated: bool = False
        if eligible:
            await certification_service.issue_or_update(db, player, course, score_integer, attempt.id)
            certificate_updated = True
        elif existing is not None:
            reason: str = REVOKE_REQUIREMENTS_NOT_MET if passed else REVOKE_SCORE_BELOW_THRESHOLD
            await certification_service.revoke(db, existing, reason, score_integer, attempt.id)
            certificate_updated = True

        logger.info(
            "final_exam_submitted",
            player_id=str(player.id),
            course_id=course.course_id,
            attempt_id=str(attempt.id),
            score=score_integer,
            passed=passed,
            eligible=eligible,
        )
        await achievement_service.check_and_unlock_safely(db, player.id)

        return ExamSubmitResponse(
            score_percent_integer=score_integer,
            passed=passed,
            certificate_eligible=eligible,
            certificate_updated=certificate_updated,
        )

    async def discard(
        self,
        db: AsyncSession,
        player: Player,
        attempt_id: str,
        reason: str | None = None,
    ) -> AttemptResponse:
        """진행 중인 시험을 폐기합니다.

        Raises:
            NotFoundError: 응시 기록 없음 (Attempt missing or not owned)
            BadRequestError: 진행 중 아님 (Attempt not in progress)
        """
        attempt: FinalExamAttempt = await self._get_owned_attempt(db, player, attempt_id)
        if attempt.status != ATTEMPT_IN_PROGRESS:
            raise BadRequestError("Attempt is not in progress")

        attempt.status = ATTEMPT_DISCARDED
        attempt.discarded_at = datetime.now(timezone.utc)
        attempt.discard_reason = reason or DISCARD_USER_EXIT
        await db.flush()

        logger.info("final_exam_discarded", attempt_id=str(attempt.id), reason=attempt.discard_reason)
        course: Course | None = await course_repository.get_by_id(db, attempt.course_id)
        return self._to_response(attempt, course.course_id if course else "")

    async def list_attempts(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str | None = None,
    ) -> AttemptListResponse:
        """플레이어 응시 기록 목록 (Player's attempts, newest first; unknown course → empty)."""
        course_pk: UUID | None = None
        if course_code:
            course: Course | None = await course_repository.get_by_code(db, course_code)
            if course is None:
                return AttemptListResponse(attempts=[])
            course_pk = course.id

        attempts = await attempt_repository.list_for_player(db, player.id, course_pk)
        courses = await course_repository.list_by_ids(db, list({a.course_id for a in attempts}))
        codes: dict[UUID, str] = {c.id: c.course_id for c in courses}
        return AttemptListResponse(attempts=[self._to_response(a, codes.get(a.course_id, "")) for a in attempts])


# 싱글턴 인스턴스 — Singleton instance
final_exam_service: FinalExamService = FinalExamService()
