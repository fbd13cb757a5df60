"""에디터 서비스 — 담당 코스 조회 및 레슨 내용 수정.

Editor Service — Assigned courses and lesson content editing for editors.
Admins are treated as assigned to every course.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.course import Course, Lesson
from amanoba.models.player import ROLE_ADMIN, Player
from amanoba.repositories.course_repository import course_repository, lesson_repository
from amanoba.schemas.course import CourseListResponse, LessonContentUpdate, LessonListResponse, LessonResponse
from amanoba.services.course_service import course_service
from amanoba.utils.exceptions import ForbiddenError, NotFoundError
from amanoba.utils.log import get_logger

logger = get_logger(__name__)


class EditorService:
    """에디터 비즈니스 로직을 처리하는 서비스 (Editor service)."""

    def _is_assigned(self, player: Player, course: Course) -> bool:
        return player.role == ROLE_ADMIN or str(player.id) in (course.assigned_editors or [])

    async def _get_assigned_course(self, db: AsyncSession, player: Player, course_code: str) -> Course:
        """담당 코스를 조회합니다.

        Raises:
            NotFoundError: 코스 없음 (Course not found)
            ForbiddenError: 담당 에디터 아님 (Caller is not assigned to the course)
        """
        course: Course | None = await course_repository.get_by_code(db, course_code)
        if course is None:
            raise NotFoundError("Course not found")
        if not self._is_assigned(player, course):
            raise ForbiddenError("Not assigned to this course")
        return course

    async def list_courses(self, db: AsyncSession, player: Player) -> CourseListResponse:
        """담당 코스 목록 (Courses the caller may edit; admins see every course)."""
        courses: list[Course] = [
            c for c in await course_repository.list_courses(db, active_only=False) if self._is_assigned(player, c)
        ]
        counts: dict[UUID, int] = await lesson_repository.count_active_by_course(db, [c.id for c in courses])
        return CourseListResponse(courses=[course_service.to_course_response(c, counts.get(c.id, 0)) for c in courses])

    async def list_lessons(self, db: AsyncSession, player: Player, course_code: str) -> LessonListResponse:
        course: Course = await self._get_assigned_course(db, player, course_code)
        lessons = await lesson_repository.list_by_course(db, course.id)
        return LessonListResponse(lessons=[course_service.to_lesson_response(l, course.course_id) for l in lessons])

    async def update_lesson_content(
        self,
        db: AsyncSession,
        player: Player,
        course_code: str,
        lesson_id: str,
        data: LessonContentUpdate,
    ) -> LessonResponse:
        """레슨 내용을 수정합니다.

        Update the content fields of a lesson (title, content, email subject
        and body). Structural fields stay admin-only.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            player: 에디터 또는 관리자 (Editor or admin)
            course_code: 코스 코드 (Course code)
            lesson_id: 레슨 코드 (Lesson code)
            data: 수정할 내용 (Content fields to change)

        Raises:
            NotFoundError: 코스 또는 레슨 없음 (Course or lesson not found)
            ForbiddenError: 담당 에디터 아님 (Caller is not assigned to the course)
        """
        course: Course = await self._get_assigned_course(db, player, course_code)
        lesson: Lesson | None = await lesson_repository.get_by_lesson_id(db, lesson_id)
        if lesson is None or lesson.course_id != course.id:
            raise NotFoundError("Lesson not found")

        values = data.model_dump(exclude_unset=True)
        if values.get("title", "") is None:
            del values["title"]
        updated: Lesson | None = await lesson_repository.update(db, lesson.id, values)
        logger.info("lesson_content_updated", course_id=course.course_id, lesson_id=lesson_id, editor_id=str(player.id))
        return course_service.to_lesson_response(updated, course.course_id)


# 싱글턴 인스턴스 — Singleton instance
editor_service: EditorService = EditorService()
