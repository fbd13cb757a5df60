"""코스 레포지토리 — 코스 및 레슨 쿼리.

Course Repository — Queries for courses and their day-numbered lessons.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.course import Course, Lesson
from amanoba.repositories.base import BaseRepository


class CourseRepository(BaseRepository[Course]):
    """코스 테이블에 대한 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling database queries for the courses table.
    Courses are addressed externally by their upper-case code (course_id).
    """

    def __init__(self) -> None:
        super().__init__(Course)

    async def get_by_code(
        self,
        db: AsyncSession,
        course_code: str,
        active_only: bool = False,
    ) -> Course | None:
        """코스 코드로 조회합니다.

        Retrieve a course by its public code.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            course_code: 코스 코드 (Course code, matched upper-cased)
            active_only: 활성 코스만 조회 (Only return active courses)

        Returns:
            Course | None: 코스 또는 None (Course or None)
        """
        query: Select = select(Course).where(Course.course_id == course_code.strip().upper())
        if active_only:
            query = query.where(Course.is_active.is_(True))
        result = await db.execute(query)
        return result.scalar_one_or_none()

    def build_list_query(
        self,
        language: str | None = None,
        search: str | None = None,
        active_only: bool = True,
    ) -> Select:
        """코스 목록 쿼리를 구성합니다 (Course list query with language/search filters)."""
        query: Select = select(Course)
        if active_only:
            query = query.where(Course.is_active.is_(True))
        if language:
            query = query.where(Course.language == language.lower())
        if search:
            pattern: str = f"%{search.strip().lower()}%"
            query = query.where(
                or_(func.lower(Course.name).like(pattern), func.lower(Course.description).like(pattern))
            )
        return query.order_by(Course.created_at.desc())

    async def list_courses(
        self,
        db: AsyncSession,
        language: str | None = None,
        search: str | None = None,
        active_only: bool = True,
    ) -> Sequence[Course]:
        result = await db.execute(self.build_list_query(language, search, active_only))
        return result.scalars().all()

    async def list_by_ids(self, db: AsyncSession, ids: list[UUID]) -> Sequence[Course]:
        if not ids:
            return []
        result = await db.execute(select(Course).where(Course.id.in_(ids)))
        return result.scalars().all()


class LessonRepository(BaseRepository[Lesson]):
    """레슨 레포지토리 (Lesson repository)."""

    def __init__(self) -> None:
        super().__init__(Lesson)

    async def get_by_lesson_id(self, db: AsyncSession, lesson_id: str) -> Lesson | None:
        result = await db.execute(select(Lesson).where(Lesson.lesson_id == lesson_id))
        return result.scalar_one_or_none()

    async def get_by_day(
        self,
        db: AsyncSession,
        course_pk: UUID,
        day_number: int,
        active_only: bool = True,
    ) -> Lesson | None:
        """코스의 특정 일차 레슨을 조회합니다.

        Retrieve the lesson for a course day. When several lessons share a
        day the lowest display_order wins.
        """
        query: Select = select(Lesson).where(Lesson.course_id == course_pk, Lesson.day_number == day_number)
        if active_only:
            query = query.where(Lesson.is_active.is_(True))
        result = await db.execute(query.order_by(Lesson.display_order).limit(1))
        return result.scalar_one_or_none()

    async def list_by_course(
        self,
        db: AsyncSession,
        course_pk: UUID,
        active_only: bool = False,
    ) -> Sequence[Lesson]:
        query: Select = select(Lesson).where(Lesson.course_id == course_pk)
        if active_only:
            query = query.where(Lesson.is_active.is_(True))
        result = await db.execute(query.order_by(Lesson.day_number, Lesson.display_order))
        return result.scalars().all()

    async def count_active_by_course(self, db: AsyncSession, course_pks: list[UUID]) -> dict[UUID, int]:
        """코스별 활성 레슨 수 (Active lesson count per course)."""
        if not course_pks:
            return {}
        result = await db.execute(
            select(Lesson.course_id, func.count(Lesson.id))
            .where(Lesson.course_id.in_(course_pks), Lesson.is_active.is_(True))
            .group_by(Lesson.course_id)
        )
        return {course_pk: count for course_pk, count in result.all()}


# 싱글턴 인스턴스 — Singleton instances
course_repository: CourseRepository = CourseRepository()
lesson_repository: LessonRepository = LessonRepository()
