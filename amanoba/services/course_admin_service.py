"""코스 관리 서비스 — 관리자 코스/레슨 CRUD, 내보내기, 가져오기.

Course Admin Service — Admin CRUD for courses and lessons, plus course
export and import (create or overwrite by course code).
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.course import (
    Course,
    Lesson,
    default_certification_config,
    default_lesson_quiz_policy,
)
from amanoba.models.player import Player
from amanoba.models.question import QuizQuestion
from amanoba.repositories.course_repository import course_repository, lesson_repository
from amanoba.repositories.question_repository import question_repository
from amanoba.schemas.admin import CourseExportPayload, CourseImportResponse
from amanoba.schemas.course import (
    CertificationConfig,
    CourseAdminResponse,
    CourseCreate,
    CourseUpdate,
    LessonCreate,
    LessonQuizPolicy,
    LessonResponse,
    LessonUpdate,
    QuizConfig,
)
from amanoba.schemas.question import QuestionCreate
from amanoba.services.course_service import course_service
from amanoba.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from amanoba.utils.log import get_logger

logger = get_logger(__name__)

# 부분 업데이트에서 None을 허용하지 않는 JSON 필드 — JSON columns that never accept None
_JSON_FIELDS: tuple[str, ...] = ("lesson_quiz_policy", "certification", "assigned_editors")


class CourseAdminService:
    """관리자용 코스/레슨 비즈니스 로직을 처리하는 서비스.

    Service handling admin course and lesson business logic.
    """

    def to_admin_response(self, course: Course, lesson_count: int = 0) -> CourseAdminResponse:
        """코스 모델을 관리자 응답으로 변환합니다 (Course → admin response with sub-documents)."""
        return CourseAdminResponse(
            **course_service.to_course_response(course, lesson_count).model_dump(),
            lesson_quiz_policy=LessonQuizPolicy(**{**default_lesson_quiz_policy(), **(course.lesson_quiz_policy or {})}),
            certification=CertificationConfig(**{**default_certification_config(), **(course.certification or {})}),
            assigned_editors=course.assigned_editors or [],
            created_by=str(course.created_by) if course.created_by else None,
            updated_at=course.updated_at,
        )

    async def _get_course(self, db: AsyncSession, course_code: str) -> Course:
        course: Course | None = await course_repository.get_by_code(db, course_code)
        if course is None:
            raise NotFoundError("Course not found")
        return course

    async def _get_lesson(self, db: AsyncSession, course: Course, lesson_id: str) -> Lesson:
        lesson: Lesson | None = await lesson_repository.get_by_lesson_id(db, lesson_id)
        if lesson is None or lesson.course_id != course.id:
            raise NotFoundError("Lesson not found")
        return lesson

    # --- 코스 (Courses) ---

    async def list_courses(
        self,
        db: AsyncSession,
        language: str | None = None,
        search: str | None = None,
    ) -> list[CourseAdminResponse]:
        """비활성 포함 전체 코스 목록 (Every course, including inactive ones)."""
        courses = list(await course_repository.list_courses(db, language, search, active_only=False))
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [c.id for c in courses])
        return [self.to_admin_response(c, counts.get(c.id, 0)) for c in courses]

    async def get_course(self, db: AsyncSession, course_code: str) -> CourseAdminResponse:
        course: Course = await self._get_course(db, course_code)
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [course.id])
        return self.to_admin_response(course, counts.get(course.id, 0))

    async def create_course(
        self,
        db: AsyncSession,
        admin: Player,
        data: CourseCreate,
    ) -> CourseAdminResponse:
        """코스를 생성합니다.

        Create a course.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            admin: 생성 관리자 (Creating admin)
            data: 코스 생성 데이터 (Course creation data)

        Returns:
            CourseAdminResponse: 생성된 코스 (Created course)

        Raises:
            DuplicateError: 코스 코드 중복 (Duplicate course code)
        """
        if await course_repository.get_by_code(db, data.course_id) is not None:
            raise DuplicateError("Course already exists")

        values: dict[str, Any] = data.model_dump()
        values["created_by"] = admin.id
        course: Course = await course_repository.create(db, values)
        logger.info("course_created", course_id=course.course_id, created_by=str(admin.id))
        return self.to_admin_response(course)

    async def update_course(
        self,
        db: AsyncSession,
        course_code: str,
        data: CourseUpdate,
    ) -> CourseAdminResponse:
        """코스를 부분 수정합니다 (Partial update; the course code never changes)."""
        course: Course = await self._get_course(db, course_code)
        values: dict[str, Any] = data.model_dump(exclude_unset=True)
        for field in _JSON_FIELDS:
            if field in values and values[field] is None:
                del values[field]

        updated: Course | None = await course_repository.update(db, course.id, values)
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [course.id])
        return self.to_admin_response(updated, counts.get(course.id, 0))

    async def delete_course(self, db: AsyncSession, course_code: str) -> None:
        """코스를 비활성화합니다 (Soft delete: is_active = False)."""
        course: Course = await self._get_course(db, course_code)
        course.is_active = False
        await db.flush()
        logger.info("course_deactivated", course_id=course.course_id)

    # --- 레슨 (Lessons) ---

    async def list_lessons(self, db: AsyncSession, course_code: str) -> list[LessonResponse]:
        course: Course = await self._get_course(db, course_code)
        lessons = await lesson_repository.list_by_course(db, course.id)
        return [course_service.to_lesson_response(lesson, course.course_id) for lesson in lessons]

    async def _ensure_free_slot(
        self,
        db: AsyncSession,
        course: Course,
        day_number: int,
        display_order: int,
        exclude_id: UUID | None = None,
    ) -> None:
        for lesson in await lesson_repository.list_by_course(db, course.id):
            if lesson.id == exclude_id:
                continue
            if lesson.day_number == day_number and lesson.display_order == display_order:
                raise DuplicateError("A lesson already uses this day and display order")

    async def create_lesson(
        self,
        db: AsyncSession,
        course_code: str,
        data: LessonCreate,
    ) -> LessonResponse:
        """레슨을 생성합니다.

        Create a lesson for a course. The lesson language defaults to the
        course language.

        Raises:
            NotFoundError: 코스 없음 (Course not found)
            BadRequestError: 일차가 코스 기간을 벗어남 (Day beyond the course duration)
            DuplicateError: 레슨 코드 또는 일차 슬롯 중복 (Duplicate lesson code or day slot)
        """
        course: Course = await self._get_course(db, course_code)
        if data.day_number > course.duration_days:
            raise BadRequestError("day_number exceeds the course duration")
        if await lesson_repository.get_by_lesson_id(db, data.lesson_id) is not None:
            raise DuplicateError("Lesson already exists")
        await self._ensure_free_slot(db, course, data.day_number, data.display_order)

        values: dict[str, Any] = data.model_dump()
        values["course_id"] = course.id
        values["language"] = data.language or course.language
        lesson: Lesson = await lesson_repository.create(db, values)
        logger.info("lesson_created", course_id=course.course_id, lesson_id=lesson.lesson_id)
        return course_service.to_lesson_response(lesson, course.course_id)

    async def update_lesson(
        self,
        db: AsyncSession,
        course_code: str,
        lesson_id: str,
        data: LessonUpdate,
    ) -> LessonResponse:
        course: Course = await self._get_course(db, course_code)
        lesson: Lesson = await self._get_lesson(db, course, lesson_id)

        values: dict[str, Any] = data.model_dump(exclude_unset=True)
        if values.get("quiz_config", False) is None:
            del values["quiz_config"]
        day_number: int = values.get("day_number") or lesson.day_number
        if day_number > course.duration_days:
            raise BadRequestError("day_number exceeds the course duration")
        display_order: int = values.get("display_order") if values.get("display_order") is not None else lesson.display_order
        await self._ensure_free_slot(db, course, day_number, display_order, exclude_id=lesson.id)

        updated: Lesson | None = await lesson_repository.update(db, lesson.id, values)
        return course_service.to_lesson_response(updated, course.course_id)

    async def delete_lesson(self, db: AsyncSession, course_code: str, lesson_id: str) -> None:
        """레슨을 삭제합니다 (Hard delete; its questions keep their lesson code)."""
        course: Course = await self._get_course(db, course_code)
        lesson: Lesson = await self._get_lesson(db, course, lesson_id)
        await lesson_repository.delete(db, lesson.id)
        logger.info("lesson_deleted", course_id=course.course_id, lesson_id=lesson_id)

    # --- 내보내기/가져오기 (Export / import) ---

    async def export_course(self, db: AsyncSession, course_code: str) -> CourseExportPayload:
        """코스, 레슨, 코스 문항을 하나의 JSON 문서로 내보냅니다.

        Export a course with its lessons and the questions owned by it.
        """
        course: Course = await self._get_course(db, course_code)
        admin_view: CourseAdminResponse = self.to_admin_response(course)
        lessons = await lesson_repository.list_by_course(db, course.id)
        questions = await question_repository.list_by_course(db, course.id)

        return CourseExportPayload(
            exported_at=datetime.now(timezone.utc),
            course=CourseCreate(**admin_view.model_dump(include=set(CourseCreate.model_fields))),
            lessons=[
                LessonCreate(
                    lesson_id=lesson.lesson_id,
                    day_number=lesson.day_number,
                    language=lesson.language,
                    title=lesson.title,
                    content=lesson.content,
                    email_subject=lesson.email_subject,
                    email_body=lesson.email_body,
                    quiz_config=QuizConfig(**(lesson.quiz_config or {})),
                    points_reward=lesson.points_reward,
                    xp_reward=lesson.xp_reward,
                    is_active=lesson.is_active,
                    display_order=lesson.display_order,
                )
                for lesson in lessons
            ],
            questions=[
                QuestionCreate(
                    question=q.question,
                    options=list(q.options),
                    correct_index=q.correct_index,
                    difficulty=q.difficulty,
                    category=q.category,
                    question_type=q.question_type,
                    hashtags=list(q.hashtags or []),
                    course_id=course.course_id,
                    lesson_id=q.lesson_id,
                    is_course_specific=q.is_course_specific,
                    is_active=q.is_active,
                )
                for q in questions
            ],
        )

    async def import_course(
        self,
        db: AsyncSession,
        admin: Player,
        payload: CourseExportPayload,
    ) -> CourseImportResponse:
        """내보낸 코스 문서를 가져옵니다.

        Import an exported course document. An existing course with the same
        code is overwritten: its fields are replaced and its lessons and
        questions are deleted before the imported ones are inserted.

        Raises:
            DuplicateError: 다른 코스가 사용하는 레슨 코드 (Lesson code owned by another course)
            BadRequestError: 일차가 코스 기간을 벗어남 (Lesson day beyond the course duration)
        """
        course_values: dict[str, Any] = payload.course.model_dump()
        course: Course | None = await course_repository.get_by_code(db, payload.course.course_id)
        created: bool = course is None

        if course is None:
            course = await course_repository.create(db, {**course_values, "created_by": admin.id})
        else:
            course = await course_repository.update(db, course.id, course_values)
            await db.execute(delete(QuizQuestion).where(QuizQuestion.course_id == course.id))
            await db.execute(delete(Lesson).where(Lesson.course_id == course.id))
            await db.flush()

        for lesson_data in payload.lessons:
            if lesson_data.day_number > course.duration_days:
                raise BadRequestError(f"Lesson {lesson_data.lesson_id}: day_number exceeds the course duration")
            if await lesson_repository.get_by_lesson_id(db, lesson_data.lesson_id) is not None:
                raise DuplicateError(f"Lesson {lesson_data.lesson_id} already exists in another course")
            await lesson_repository.create(db, {
                **lesson_data.model_dump(),
                "course_id": course.id,
                "language": lesson_data.language or course.language,
            })

        for question_data in payload.questions:
            await question_repository.create(db, {
                **question_data.model_dump(),
                "course_id": course.id,
                "created_by": admin.id,
            })

        logger.info(
            "course_imported",
            course_id=course.course_id,
            created=created,
            lessons=len(payload.lessons),
            questions=len(payload.questions),
        )
        return CourseImportResponse(
            created=created,
            course_id=course.course_id,
            lessons=len(payload.lessons),
            questions=len(payload.questions),
        )


# 싱글턴 인스턴스 — Singleton instance
course_admin_service: CourseAdminService = CourseAdminService()
