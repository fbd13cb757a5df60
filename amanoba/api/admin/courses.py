"""관리자 코스 라우터 — 코스/레슨 CRUD, 내보내기, 가져오기.

Admin Course Router — Course and lesson CRUD plus course export/import.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_admin
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.admin import CourseExportPayload, CourseImportResponse
from amanoba.schemas.course import (
    CourseAdminResponse,
    CourseCreate,
    CourseUpdate,
    LessonCreate,
    LessonResponse,
    LessonUpdate,
)
from amanoba.services.course_admin_service import course_admin_service

router: APIRouter = APIRouter()


@router.get("", response_model=list[CourseAdminResponse])
async def list_courses(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
    language: Annotated[str | None, Query(description="언어 필터")] = None,
    search: Annotated[str | None, Query(description="이름/설명 검색")] = None,
) -> list[CourseAdminResponse]:
    """전체 코스 목록 — 비활성 포함 (Every course, including inactive ones)."""
    return await course_admin_service.list_courses(db, language, search)


@router.post("", response_model=CourseAdminResponse, status_code=201)
async def create_course(
    data: CourseCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CourseAdminResponse:
    """코스 생성 (Create a course; duplicate code → 409)."""
    result: CourseAdminResponse = await course_admin_service.create_course(db, current_player, data)
    await db.commit()
    return result


@router.post("/import", response_model=CourseImportResponse)
async def import_course(
    data: CourseExportPayload,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CourseImportResponse:
    """코스 가져오기 — 같은 코드의 코스는 덮어씀.

    Import a course document; an existing course with the same code is overwritten.
    """
    result: CourseImportResponse = await course_admin_service.import_course(db, current_player, data)
    await db.commit()
    return result


@router.get("/{course_id}", response_model=CourseAdminResponse)
async def get_course(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CourseAdminResponse:
    return await course_admin_service.get_course(db, course_id)


@router.put("/{course_id}", response_model=CourseAdminResponse)
async def update_course(
    course_id: str,
    data: CourseUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CourseAdminResponse:
    """코스 부분 수정 (Partial course update)."""
    result: CourseAdminResponse = await course_admin_service.update_course(db, course_id, data)
    await db.commit()
    return result


@router.delete("/{course_id}", status_code=204)
async def delete_course(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> None:
    """코스 비활성화 (Soft delete)."""
    await course_admin_service.delete_course(db, course_id)
    await db.commit()


@router.get("/{course_id}/export", response_model=CourseExportPayload)
async def export_course(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> CourseExportPayload:
    """코스 내보내기 — 코스, 레슨, 코스 문항 (Course, lessons and course questions as JSON)."""
    return await course_admin_service.export_course(db, course_id)


# --- 레슨 (Lessons) ---


@router.get("/{course_id}/lessons", response_model=list[LessonResponse])
async def list_lessons(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> list[LessonResponse]:
    return await course_admin_service.list_lessons(db, course_id)


@router.post("/{course_id}/lessons", response_model=LessonResponse, status_code=201)
async def create_lesson(
    course_id: str,
    data: LessonCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> LessonResponse:
    """레슨 생성 (Create a lesson; duplicate lesson code → 409)."""
    result: LessonResponse = await course_admin_service.create_lesson(db, course_id, data)
    await db.commit()
    return result


@router.put("/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def update_lesson(
    course_id: str,
    lesson_id: str,
    data: LessonUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> LessonResponse:
    result: LessonResponse = await course_admin_service.update_lesson(db, course_id, lesson_id, data)
    await db.commit()
    return result


@router.delete("/{course_id}/lessons/{lesson_id}", status_code=204)
async def delete_lesson(
    course_id: str,
    lesson_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> None:
    await course_admin_service.delete_lesson(db, course_id, lesson_id)
    await db.commit()
