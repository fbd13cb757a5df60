"""문항 서비스 — 관리자 퀴즈 문항 CRUD 및 일괄 생성.

Question Service — Admin quiz question CRUD, filtered listing and
all-or-nothing batch creation.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.models.course import Course, Lesson
from amanoba.models.player import Player
from amanoba.models.question import QuizQuestion
from amanoba.repositories.course_repository import course_repository, lesson_repository
from amanoba.repositories.question_repository import question_repository
from amanoba.schemas.question import (
    MIN_OPTIONS,
    QuestionBatchCreate,
    QuestionBatchResponse,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
)
from amanoba.utils.exceptions import BadRequestError, NotFoundError
from amanoba.utils.log import get_logger
from amanoba.utils.pagination import Page

logger = get_logger(__name__)


class QuestionService:
    """퀴즈 문항 관리 비즈니스 로직을 처리하는 서비스.

    Service handling quiz question administration.
    """

    def _to_response(self, question: QuizQuestion, course_code: str | None) -> QuestionResponse:
        return QuestionResponse(
            id=str(question.id),
            question=question.question,
            options=list(question.options),
            correct_index=question.correct_index,
            difficulty=question.difficulty,
            category=question.category,
            question_type=question.question_type,
            hashtags=list(question.hashtags or []),
            course_id=course_code,
            lesson_id=question.lesson_id,
            is_course_specific=question.is_course_specific,
            show_count=question.show_count,
            correct_count=question.correct_count,
            is_active=question.is_active,
            created_at=question.created_at,
        )

    async def _course_code(self, db: AsyncSession, course_pk: UUID | None) -> str | None:
        if course_pk is None:
            return None
        course: Course | None = await course_repository.get_by_id(db, course_pk)
        return course.course_id if course else None

    async def _resolve_owner(
        self,
        db: AsyncSession,
        course_code: str | None,
        lesson_id: str | None,
    ) -> UUID | None:
        """코스 코드/레슨 코드를 코스 PK로 해석합니다.

        Resolve the owning course. A lesson-only question inherits the
        lesson's course; a lesson from a different course is rejected.

        Raises:
            NotFoundError: 코스 또는 레슨 없음 (Course or lesson not found)
            BadRequestError: 레슨이 다른 코스 소속 (Lesson belongs to another course)
        """
        course_pk: UUID | None = None
        if course_code:
            course: Course | None = await course_repository.get_by_code(db, course_code)
            if course is None:
                raise NotFoundError(f"Course {course_code} not found")
            course_pk = course.id
        if lesson_id:
            lesson: Lesson | None = await lesson_repository.get_by_lesson_id(db, lesson_id)
            if lesson is None:
                raise NotFoundError(f"Lesson {lesson_id} not found")
            if course_pk is not None and lesson.course_id != course_pk:
                raise BadRequestError(f"Lesson {lesson_id} does not belong to course {course_code}")
            course_pk = lesson.course_id
        return course_pk

    async def list_questions(
        self,
        db: AsyncSession,
        course_code: str | None = None,
        lesson_id: str | None = None,
        difficulty: str | None = None,
        category: str | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> Page:
        """필터 조건으로 문항 목록을 페이지 단위로 조회합니다.

        Paginated question list. An unknown course code yields an empty page.
        """
        course_pk: UUID | None = None
        if course_code:
            course: Course | None = await course_repository.get_by_code(db, course_code)
            if course is None:
                return Page.build([], 0, page, per_page)
            course_pk = course.id

        query = question_repository.build_filter_query(course_pk, lesson_id, difficulty, category, is_active, search)
        items, total = await question_repository.get_paginated(db, query, page, per_page)
        courses = await course_repository.list_by_ids(db, list({q.course_id for q in items if q.course_id}))
        codes: dict[UUID, str] = {c.id: c.course_id for c in courses}
        return Page.build(
            [self._to_response(q, codes.get(q.course_id)) for q in items], total, page, per_page
        )

    async def get_question(self, db: AsyncSession, question_id: UUID) -> QuestionResponse:
        question: QuizQuestion | None = await question_repository.get_by_id(db, question_id)
        if question is None:
            raise NotFoundError("Question not found")
        return self._to_response(question, await self._course_code(db, question.course_id))

    async def create_question(
        self,
        db: AsyncSession,
        admin: Player,
        data: QuestionCreate,
    ) -> QuestionResponse:
        """문항을 생성합니다.

        Create a question.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            admin: 생성 관리자 (Creating admin)
            data: 문항 생성 데이터 (Question creation data)

        Returns:
            QuestionResponse: 생성된 문항 (Created question)
        """
        course_pk: UUID | None = await self._resolve_owner(db, data.course_id, data.lesson_id)
        values: dict[str, Any] = data.model_dump()
        values["course_id"] = course_pk
        values["created_by"] = admin.id
        question: QuizQuestion = await question_repository.create(db, values)
        return self._to_response(question, await self._course_code(db, course_pk))

    async def update_question(
        self,
        db: AsyncSession,
        question_id: UUID,
        data: QuestionUpdate,
    ) -> QuestionResponse:
        """문항을 부분 수정합니다.

        Partial update. The merged options and correct index are validated
        together, since either may change alone.

        Raises:
            NotFoundError: 문항 없음 (Question not found)
            BadRequestError: 보기/정답 불일치 (Inconsistent options or correct index)
        """
        question: QuizQuestion | None = await question_repository.get_by_id(db, question_id)
        if question is None:
            raise NotFoundError("Question not found")

        values: dict[str, Any] = data.model_dump(exclude_unset=True)
        options: list[str] = values.get("options") or list(question.options)
        if "options" in values:
            options = [option.strip() for option in options]
            if len(options) < MIN_OPTIONS or any(not option for option in options):
                raise BadRequestError(f"At least {MIN_OPTIONS} non-empty options are required")
            if len({option.lower() for option in options}) != len(options):
                raise BadRequestError("Options must be unique")
            values["options"] = options
        correct_index: int = values.get("correct_index", question.correct_index)
        if correct_index is None or correct_index >= len(options):
            raise BadRequestError("correct_index is out of range")

        if values.get("lesson_id"):
            values["course_id"] = await self._resolve_owner(
                db, await self._course_code(db, question.course_id), values["lesson_id"]
            )

        updated: QuizQuestion | None = await question_repository.update(db, question.id, values)
        return self._to_response(updated, await self._course_code(db, updated.course_id))

    async def delete_question(self, db: AsyncSession, question_id: UUID) -> None:
        """문항을 비활성화합니다 (Soft delete: is_active = False)."""
        question: QuizQuestion | None = await question_repository.get_by_id(db, question_id)
        if question is None:
            raise NotFoundError("Question not found")
        question.is_active = False
        await db.flush()

    async def create_batch(
        self,
        db: AsyncSession,
        admin: Player,
        data: QuestionBatchCreate,
    ) -> QuestionBatchResponse:
        """문항을 일괄 생성합니다.

        Create a batch of questions. Every owner reference is resolved before
        anything is inserted, so one bad entry rejects the whole batch.

        Raises:
            NotFoundError / BadRequestError: 항목 번호가 포함된 오류 (Error naming the failing entry)
        """
        owners: list[UUID | None] = []
        for index, item in enumerate(data.questions):
            try:
                owners.append(await self._resolve_owner(db, item.course_id, item.lesson_id))
            except (NotFoundError, BadRequestError) as exc:
                raise BadRequestError(f"questions[{index}]: {exc.detail}")

        ids: list[str] = []
        for item, course_pk in zip(data.questions, owners):
            question: QuizQuestion = await question_repository.create(db, {
                **item.model_dump(),
                "course_id": course_pk,
                "created_by": admin.id,
            })
            ids.append(str(question.id))

        logger.info("questions_batch_created", count=len(ids), created_by=str(admin.id))
        return QuestionBatchResponse(created=len(ids), ids=ids)


# 싱글턴 인스턴스 — Singleton instance
question_service: QuestionService = QuestionService()
