"""관리자 문항 라우터 — 퀴즈 문항 CRUD 및 일괄 생성.

Admin Question Router — Quiz question CRUD, filtered listing and batch creation.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import require_admin
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.question import (
    QuestionBatchCreate,
    QuestionBatchResponse,
    QuestionCreate,
    QuestionResponse,
    QuestionUpdate,
)
from amanoba.services.question_service import question_service
from amanoba.utils.pagination import Page

router: APIRouter = APIRouter()


@router.get("", response_model=Page)
async def list_questions(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
    course_id: Annotated[str | None, Query(description="코스 코드 필터")] = None,
    lesson_id: Annotated[str | None, Query(description="레슨 코드 필터")] = None,
    difficulty: Annotated[str | None, Query(description="난이도 필터")] = None,
    category: Annotated[str | None, Query(description="카테고리 필터")] = None,
    is_active: Annotated[bool | None, Query(description="활성 상태 필터")] = None,
    search: Annotated[str | None, Query(description="문항 본문 검색")] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> Page:
    """문항 목록을 필터 조건으로 조회합니다.

    List questions with optional filters, newest first.
    """
    return await question_service.list_questions(
        db, course_id, lesson_id, difficulty, category, is_active, search, page, per_page
    )


@router.post("", response_model=QuestionResponse, status_code=201)
async def create_question(
    data: QuestionCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> QuestionResponse:
    result: QuestionResponse = await question_service.create_question(db, current_player, data)
    await db.commit()
    return result


@router.post("/batch", response_model=QuestionBatchResponse, status_code=201)
async def create_questions_batch(
    data: QuestionBatchCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> QuestionBatchResponse:
    """문항 일괄 생성 — 하나라도 실패하면 전체 거부.

    All-or-nothing batch creation, at most 100 questions.
    """
    result: QuestionBatchResponse = await question_service.create_batch(db, current_player, data)
    await db.commit()
    return result


@router.get("/{question_id}", response_model=QuestionResponse)
async def get_question(
    question_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> QuestionResponse:
    return await question_service.get_question(db, question_id)


@router.put("/{question_id}", response_model=QuestionResponse)
async def update_question(
    question_id: UUID,
    data: QuestionUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> QuestionResponse:
    result: QuestionResponse = await question_service.update_question(db, question_id, data)
    await db.commit()
    return result


@router.delete("/{question_id}", status_code=204)
async def delete_question(
    question_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(require_admin)],
) -> None:
    """문항 비활성화 (Soft delete)."""
    await question_service.delete_question(db, question_id)
    await db.commit()
