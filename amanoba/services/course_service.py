"""코스 서비스 — 코스 조회, 수강 등록, 일차 레슨, 레슨 완료, 레슨 퀴즈.

Course Service — Player-facing course catalogue, enrolment, day lessons,
day completion with rewards, and lesson quizzes.

Day access rules:
    - current_day is always recomputed as the first uncompleted day
      (duration_days + 1 once every day is done).
    - Day N is locked when N > 1, day N-1 is not completed and current_day < N.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.course import Course, Lesson, default_quiz_config
from amanoba.models.player import ROLE_ADMIN, Player, PlayerProgression
from amanoba.models.points import SOURCE_COURSE_COMPLETION, SOURCE_LESSON_COMPLETION
from amanoba.models.progress import (
    PROGRESS_COMPLETED,
    PROGRESS_IN_PROGRESS,
    AssessmentResult,
    CourseProgress,
)
from amanoba.models.question import QuizQuestion
from amanoba.repositories.course_repository import course_repository, lesson_repository
from amanoba.repositories.progress_repository import assessment_result_repository, course_progress_repository
from amanoba.repositories.question_repository import question_repository
from amanoba.schemas.course import (
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    LessonResponse,
    QuizConfig,
)
from amanoba.schemas.progress import (
    CompleteDayResponse,
    DayLessonResponse,
    EnrollResponse,
    LessonNav,
    LessonQuizResponse,
    MyCourseItem,
    MyCoursesResponse,
    ProgressResponse,
    QuizQuestionPublic,
    QuizSubmitRequest,
    QuizSubmitResponse,
    QuizSummary,
)
from amanoba.services.achievement_service import achievement_service
from amanoba.services.points_service import points_service
from amanoba.services.progression_service import progression_service
from amanoba.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from amanoba.utils.log import get_logger
from amanoba.utils.randomization import sample_without_replacement

logger = get_logger(__name__)


def calculate_current_day(completed_days: list[int], total_days: int) -> int:
    """첫 번째 미완료 일차를 계산합니다.

    Return the first day in 1..total_days that is not completed, or
    total_days + 1 when every day is done.
    """
    completed: set[int] = set(completed_days or [])
    for day in range(1, total_days + 1):
        if day not in completed:
            return day
    return total_days + 1


def effective_quiz_config(course: Course, lesson: Lesson) -> dict[str, Any]:
    """코스 정책을 적용한 레슨 퀴즈 설정.

    Merge the lesson quiz config with the course-wide policy. The policy can
    switch quizzes off or make them optional, and its question count and
    threshold override the lesson's when set.
    """
    policy: dict[str, Any] = course.lesson_quiz_policy or {}
    config: dict[str, Any] = {**default_quiz_config(), **(lesson.quiz_config or {})}

    enabled: bool = bool(config["enabled"]) and bool(policy.get("enabled", True))
    required: bool = enabled and bool(config["required"]) and bool(policy.get("required", True))
    question_count: int = policy.get("question_count") or config["question_count"]
    threshold: int = policy.get("success_threshold")
    if threshold is None:
        threshold = config["success_threshold"]
    return {
        "enabled": enabled,
        "required": required,
        "question_count": int(question_count),
        "success_threshold": int(threshold),
    }


class CourseService:
    """플레이어용 코스 비즈니스 로직을 처리하는 서비스.

    Service handling player-facing course business logic.
    """

    # --- 응답 변환 (Response conversion) ---

    def to_course_response(self, course: Course, lesson_count: int = 0) -> CourseResponse:
        return CourseResponse(
            id=str(course.id),
            course_id=course.course_id,
            name=course.name,
            description=course.description,
            language=course.language,
            thumbnail=course.thumbnail,
            duration_days=course.duration_days,
            is_active=course.is_active,
            requires_premium=course.requires_premium,
            lesson_points=course.lesson_points,
            lesson_xp=course.lesson_xp,
            completion_points=course.completion_points,
            completion_xp=course.completion_xp,
            certification_enabled=bool((course.certification or {}).get("enabled")),
            lesson_count=lesson_count,
            created_at=course.created_at,
        )

    def to_lesson_response(self, lesson: Lesson, course_code: str) -> LessonResponse:
        return LessonResponse(
            id=str(lesson.id),
            lesson_id=lesson.lesson_id,
            course_id=course_code,
            day_number=lesson.day_number,
            language=lesson.language,
            title=lesson.title,
            content=lesson.content,
            email_subject=lesson.email_subject,
            email_body=lesson.email_body,
            quiz_config=QuizConfig(**{**default_quiz_config(), **(lesson.quiz_config or {})}),
            points_reward=lesson.points_reward,
            xp_reward=lesson.xp_reward,
            is_active=lesson.is_active,
            display_order=lesson.display_order,
            updated_at=lesson.updated_at,
        )

    def to_progress_response(self, progress: CourseProgress, course: Course) -> ProgressResponse:
        completed: list[int] = sorted(progress.completed_days or [])
        percent: int = min(100, round(len(completed) / course.duration_days * 100)) if course.duration_days else 0
        return ProgressResponse(
            course_id=course.course_id,
            current_day=progress.current_day,
            completed_days=completed,
            passed_quiz_days=sorted(int(day) for day in (progress.assessment_results or {})),
            status=progress.status,
            total_points_earned=progress.total_points_earned,
            total_xp_earned=progress.total_xp_earned,
            progress_percent=percent,
            started_at=progress.started_at,
            completed_at=progress.completed_at,
            last_accessed_at=progress.last_accessed_at,
        )

    # --- 내부 헬퍼 (Internal helpers) ---

    async def get_active_course(self, db: AsyncSession, course_code: str) -> Course:
        """활성 코스를 조회합니다 (Active course by code, 404 otherwise)."""
        course: Course | None = await course_repository.get_by_code(db, course_code, active_only=True)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    def _check_premium(self, player: Player, course: Course) -> None:
        if course.requires_premium and not (player.has_active_premium() or player.role == ROLE_ADMIN):
            raise ForbiddenError("This course requires premium")

    async def _get_or_enroll(
        self,
        db: AsyncSession,
        player: Player,
        course: Course,
    ) -> tuple[CourseProgress, bool]:
        """진행 레코드를 조회하거나 새로 등록합니다 (Return (progress, created))."""
        progress: CourseProgress | None = await course_progress_repository.get_for_player(db, player.id, course.id)
        if progress is not None:
            return progress, False

        self._check_premium(player, course)
        now: datetime = datetime.now(timezone.utc)
        progress = await course_progress_repository.create(db, {
            "player_id": player.id,
            "course_id": course.id,
            "current_day": 1,
            "completed_days": [],
            "assessment_results": {},
            "status": PROGRESS_IN_PROGRESS,
            "started_at": now,
            "last_accessed_at": now,
        })
        logger.info("course_enrolled", player_id=str(player.id), course_id=course.course_id)
        return progress, True

    async def _load_day(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
        day: int,
    ) -> tuple[Course, Lesson, CourseProgress]:
        """일차 레슨 접근을 검증하고 코스/레슨/진행을 반환합니다.

        Validate access to a course day: day range, lesson existence,
        enrolment (auto-enrols) and the lock rule.

        Raises:
            NotFoundError: 코스 또는 레슨 없음 (Course or lesson missing)
            BadRequestError: 일차 범위 밖 (Day outside 1..duration_days)
            ForbiddenError: 잠긴 레슨 또는 프리미엄 필요 (Locked lesson or premium required)
        """
        course: Course = await self.get_active_course(db, course_code)
        if day < 1 or day > course.duration_days:
            raise BadRequestError("Invalid day number")

        lesson: Lesson | None = await lesson_repository.get_by_day(db, course.id, day)
        if lesson is None:
            raise NotFoundError("Lesson not found")

        progress, _ = await self._get_or_enroll(db, player, course)

        current_day: int = calculate_current_day(progress.completed_days, course.duration_days)
        if progress.current_day != current_day:
            progress.current_day = current_day
        progress.last_accessed_at = datetime.now(timezone.utc)

        unlocked: bool = day == 1 or progress.is_day_completed(day - 1) or progress.current_day >= day
        if not unlocked:
            raise ForbiddenError("Lesson is locked")
        return course, lesson, progress

    # --- 공개 API (Public operations) ---

    async def list_courses(
        self,
        db: AsyncSession,
        language: str | None = None,
        search: str | None = None,
    ) -> CourseListResponse:
        """활성 코스 목록을 조회합니다 (Active courses, newest first)."""
        courses = list(await course_repository.list_courses(db, language=language, search=search))
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [c.id for c in courses])
        return CourseListResponse(courses=[self.to_course_response(c, counts.get(c.id, 0)) for c in courses])

    async def get_course(self, db: AsyncSession, course_code: str) -> CourseDetailResponse:
        course: Course = await self.get_active_course(db, course_code)
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [course.id])
        return CourseDetailResponse(course=self.to_course_response(course, counts.get(course.id, 0)))

    async def enroll(self, db: AsyncSession, player: Player, course_code: str) -> EnrollResponse:
        """코스에 수강 등록합니다.

        Enrol the player. Enrolling twice returns the existing progress with
        ``already_enrolled`` set.

        Raises:
            NotFoundError: 코스 없음 (Course missing or inactive)
            ForbiddenError: 프리미엄 코스에 비프리미엄 플레이어 (Premium course, non-premium player)
        """
        course: Course = await self.get_active_course(db, course_code)
        progress, created = await self._get_or_enroll(db, player, course)
        return EnrollResponse(already_enrolled=not created, progress=self.to_progress_response(progress, course))

    async def get_day(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
        day: int,
    ) -> DayLessonResponse:
        """일차 레슨과 내비게이션 정보를 반환합니다 (Day lesson with navigation)."""
        course, lesson, progress = await self._load_day(db, player, course_code, day)
        quiz: dict[str, Any] = effective_quiz_config(course, lesson)

        previous_lesson: Lesson | None = await lesson_repository.get_by_day(db, course.id, day - 1) if day > 1 else None
        next_lesson: Lesson | None = (
            await lesson_repository.get_by_day(db, course.id, day + 1) if day < course.duration_days else None
        )
        await db.flush()

        return DayLessonResponse(
            lesson=self.to_lesson_response(lesson, course.course_id),
            day=day,
            total_days=course.duration_days,
            current_day=progress.current_day,
            is_completed=progress.is_day_completed(day),
            quiz=QuizSummary(**quiz, passed=progress.has_passed_quiz(day)),
            previous_lesson=LessonNav(day_number=day - 1, title=previous_lesson.title) if previous_lesson else None,
            next_lesson=LessonNav(day_number=day + 1, title=next_lesson.title) if next_lesson else None,
        )

    async def complete_day(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
        day: int,
    ) -> CompleteDayResponse:
        """일차를 완료 처리하고 보상을 지급합니다.

        Mark a day completed, pay lesson rewards, and on the final missing day
        complete the course and pay completion rewards. Completing an already
        completed day is a no-op.

        Raises:
            BadRequestError: 필수 퀴즈 미통과 (Required quiz not passed)
        """
        course, lesson, progress = await self._load_day(db, player, course_code, day)

        if progress.is_day_completed(day):
            await db.flush()
            return CompleteDayResponse(already_completed=True, progress=self.to_progress_response(progress, course))

        quiz: dict[str, Any] = effective_quiz_config(course, lesson)
        if quiz["required"] and not progress.has_passed_quiz(day):
            raise BadRequestError("Lesson quiz must be passed before completing this day")

        now: datetime = datetime.now(timezone.utc)
        # JSON 컬럼은 재할당 — reassign so the change is tracked
        progress.completed_days = sorted({*(progress.completed_days or []), day})
        progress.current_day = calculate_current_day(progress.completed_days, course.duration_days)
        progress.last_accessed_at = now

        points: int = lesson.points_reward if lesson.points_reward is not None else course.lesson_points
        xp: int = lesson.xp_reward if lesson.xp_reward is not None else course.lesson_xp

        progression: PlayerProgression = await progression_service.get_or_create(db, player.id)
        progression.lessons_completed = progression.lessons_completed + 1

        course_completed: bool = len(progress.completed_days) >= course.duration_days
        if course_completed:
            progress.status = PROGRESS_COMPLETED
            progress.completed_at = now
            progression.courses_completed = progression.courses_completed + 1

        if points > 0:
            await points_service.credit(
                db, player.id, points,
                source_type=SOURCE_LESSON_COMPLETION,
                description=f"Lesson completed: {course.course_id} day {day}",
                reference_id=lesson.lesson_id,
            )
        await progression_service.add_xp(db, player.id, xp, "lesson_completion")
        total_points: int = points
        total_xp: int = xp

        if course_completed:
            if course.completion_points > 0:
                await points_service.credit(
                    db, player.id, course.completion_points,
                    source_type=SOURCE_COURSE_COMPLETION,
                    description=f"Course completed: {course.course_id}",
                    reference_id=course.course_id,
                )
            await progression_service.add_xp(db, player.id, course.completion_xp, "course_completion")
            total_points += course.completion_points
            total_xp += course.completion_xp
            logger.info("course_completed", player_id=str(player.id), course_id=course.course_id)

        progress.total_points_earned = progress.total_points_earned + total_points
        progress.total_xp_earned = progress.total_xp_earned + total_xp
        await db.flush()

        unlocked = await achievement_service.check_and_unlock_safely(db, player.id)
        logger.info(
            "lesson_completed",
            player_id=str(player.id),
            course_id=course.course_id,
            day=day,
            current_day=progress.current_day,
        )
        return CompleteDayResponse(
            points_awarded=total_points,
            xp_awarded=total_xp,
            course_completed=course_completed,
            unlocked_achievements=[a.key for a in unlocked],
            progress=self.to_progress_response(progress, course),
        )

    async def get_quiz(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
        day: int,
    ) -> LessonQuizResponse:
        """레슨 퀴즈 문항을 무작위로 추출합니다.

        Sample ``question_count`` active questions of the lesson. Correct
        answers are never included.

        Raises:
            BadRequestError: 퀴즈 비활성 또는 문항 없음 (Quiz disabled or no questions)
        """
        course, lesson, _ = await self._load_day(db, player, course_code, day)
        quiz: dict[str, Any] = effective_quiz_config(course, lesson)
        if not quiz["enabled"]:
            raise BadRequestError("Quiz is not enabled for this lesson")

        questions = list(await question_repository.list_by_lesson(db, lesson.lesson_id))
        if not questions:
            raise BadRequestError("No quiz questions available for this lesson")

        sampled: list[QuizQuestion] = sample_without_replacement(questions, quiz["question_count"])
        await db.flush()
        return LessonQuizResponse(
            day=day,
            lesson_id=lesson.lesson_id,
            success_threshold=quiz["success_threshold"],
            questions=[
                QuizQuestionPublic(question_id=str(q.id), question=q.question, options=list(q.options))
                for q in sampled
            ],
        )

    async def submit_quiz(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
        day: int,
        data: QuizSubmitRequest,
    ) -> QuizSubmitResponse:
        """레슨 퀴즈를 채점하고 결과를 저장합니다.

        Grade a lesson quiz, store the AssessmentResult, update question
        statistics, and record the result on the progress when passed.

        Raises:
            BadRequestError: 퀴즈 비활성, 중복/잘못된 문항, 범위 밖 보기, 답안 부족
                             (Quiz disabled, duplicate/foreign question, bad index, too few answers)
        """
        course, lesson, progress = await self._load_day(db, player, course_code, day)
        quiz: dict[str, Any] = effective_quiz_config(course, lesson)
        if not quiz["enabled"]:
            raise BadRequestError("Quiz is not enabled for this lesson")

        try:
            question_ids: list[UUID] = [UUID(a.question_id) for a in data.answers]
        except ValueError:
            raise BadRequestError("Invalid question id")
        if len(set(question_ids)) != len(question_ids):
            raise BadRequestError("Duplicate answers for the same question")

        available: int = len(await question_repository.list_by_lesson(db, lesson.lesson_id))
        if len(question_ids) < min(quiz["question_count"], available):
            raise BadRequestError("Not all quiz questions were answered")

        questions: dict[UUID, QuizQuestion] = {
            q.id: q for q in await question_repository.list_by_ids(db, question_ids)
        }
        graded: list[dict[str, Any]] = []
        correct_count: int = 0
        for answer, question_id in zip(data.answers, question_ids):
            question: QuizQuestion | None = questions.get(question_id)
            if question is None or question.lesson_id != lesson.lesson_id or not question.is_active:
                raise BadRequestError("Question does not belong to this lesson quiz")
            if answer.selected_index >= len(question.options):
                raise BadRequestError("Selected option is out of range")

            is_correct: bool = answer.selected_index == question.correct_index
            question.show_count = question.show_count + 1
            if is_correct:
                question.correct_count = question.correct_count + 1
                correct_count += 1
            graded.append({
                "question_id": str(question_id),
                "selected_index": answer.selected_index,
                "is_correct": is_correct,
            })

        total: int = len(graded)
        score_percent: float = round(correct_count / total * 100, 2)
        passed: bool = score_percent >= quiz["success_threshold"]

        result: AssessmentResult = await assessment_result_repository.create(db, {
            "player_id": player.id,
            "course_id": course.id,
            "lesson_id": lesson.lesson_id,
            "day_number": day,
            "correct_count": correct_count,
            "total_questions": total,
            "score_percent": score_percent,
            "passed": passed,
            "answers": graded,
        })
        if passed:
            progress.assessment_results = {**(progress.assessment_results or {}), str(day): str(result.id)}
        await db.flush()

        logger.info(
            "lesson_quiz_graded",
            player_id=str(player.id),
            course_id=course.course_id,
            day=day,
            score_percent=score_percent,
            passed=passed,
        )
        return QuizSubmitResponse(
            result_id=str(result.id),
            correct_count=correct_count,
            total_questions=total,
            score_percent=score_percent,
            success_threshold=quiz["success_threshold"],
            passed=passed,
        )

    async def my_courses(self, db: AsyncSession, player: Player) -> MyCoursesResponse:
        """수강 중인 코스와 진행 상황 (Enrolled courses with progress)."""
        rows = list(await course_progress_repository.list_for_player(db, player.id))
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [p.course_id for p in rows])
        return MyCoursesResponse(courses=[
            MyCourseItem(
                course=self.to_course_response(p.course, counts.get(p.course_id, 0)),
                progress=self.to_progress_response(p, p.course),
            )
            for p in rows
        ])


# 싱글턴 인스턴스 — Singleton instance
course_service: CourseService = CourseService()
