"""에디터 코스 라우터 — 담당 코스와 레슨 내용 편집.

Editor Course Router — Assigned courses and lesson content editing.
Editors see only courses listing them in assigned_editors; admins see all.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_editor
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.course import CourseListResponse, LessonContentUpdate, LessonListResponse, LessonResponse
from amanoba.services.editor_service import editor_service

router: APIRouter = APIRouter()


@router.get("/courses", response_model=CourseListResponse)
async def list_assigned_courses(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_editor)],
) -> CourseListResponse:
    """담당 코스 목록 (Courses the caller may edit)."""
    return await editor_service.list_courses(db, current_player)


@router.get("/courses/{course_id}/lessons", response_model=LessonListResponse)
async def list_course_lessons(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_editor)],
) -> LessonListResponse:
    """담당 코스의 레슨 목록 (Lessons of an assigned course)."""
    return await editor_service.list_lessons(db, current_player, course_id)


@router.put("/courses/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson_content(
    course_id: str,
    lesson_id: str,
    data: LessonContentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_editor)],
) -> LessonResponse:
    """레슨 내용 수정 — 내용 필드만 변경 가능.

    Update lesson content fields. Non-assigned editors get 403.
    """
    result: LessonResponse = await editor_service.update_lesson_content(
        db, current_player, course_id, lesson_id, data
    )
    await db.commit()
    return result
