"""앱 코스 라우터 — 코스 목록, 수강 등록, 일차 레슨, 완료, 레슨 퀴즈.

App Course Router — Course catalogue, enrolment, day lessons, day
completion and lesson quizzes.
Follows 3-layer architecture: Router → Service → Repository.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import get_current_player
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.course import CourseDetailResponse, CourseListResponse
from amanoba.schemas.progress import (
    CompleteDayResponse,
    DayLessonResponse,
    EnrollResponse,
    LessonQuizResponse,
    MyCoursesResponse,
    QuizSubmitRequest,
    QuizSubmitResponse,
)
from amanoba.services.course_service import course_service

router: APIRouter = APIRouter()


@router.get("/courses", response_model=CourseListResponse)
async def list_courses(
    db: Annotated[AsyncSession, Depends(get_db)],
    language: Annotated[str | None, Query(description="언어 필터")] = None,
    search: Annotated[str | None, Query(description="이름/설명 검색")] = None,
) -> CourseListResponse:
    """활성 코스 목록을 조회합니다.

    List active courses, optionally filtered by language and search text.
    """
    return await course_service.list_courses(db, language, search)


@router.get("/courses/{course_id}", response_model=CourseDetailResponse)
async def get_course(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CourseDetailResponse:
    """코스 상세 (Course detail by course code)."""
    return await course_service.get_course(db, course_id)


@router.post("/courses/{course_id}/enroll", response_model=EnrollResponse)
async def enroll(
    course_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> EnrollResponse:
    """코스 수강 등록 — 이미 등록된 경우 기존 진행 상황 반환.

    Enrol in a course; idempotent.
    """
    result: EnrollResponse = await course_service.enroll(db, current_player, course_id)
    await db.commit()
    return result


@router.get("/courses/{course_id}/day/{day}", response_model=DayLessonResponse)
async def get_day(
    course_id: str,
    day: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> DayLessonResponse:
    """일차 레슨 조회 — 미등록 시 자동 등록.

    Day lesson with navigation. Auto-enrols the player on first access.

    Args:
        course_id: 코스 코드 (Course code)
        day: 일차 번호 (Day number, 1..duration_days)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_player: 인증된 플레이어 (Authenticated player)

    Returns:
        DayLessonResponse: 레슨, 퀴즈 요약, 이전/다음 레슨 (Lesson, quiz summary, navigation)
    """
    result: DayLessonResponse = await course_service.get_day(db, current_player, course_id, day)
    await db.commit()
    return result


@router.post("/courses/{course_id}/day/{day}/complete", response_model=CompleteDayResponse)
async def complete_day(
    course_id: str,
    day: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> CompleteDayResponse:
    """일차 완료 처리 및 보상 지급 (Complete a day and collect rewards)."""
    result: CompleteDayResponse = await course_service.complete_day(db, current_player, course_id, day)
    await db.commit()
    return result


@router.get("/courses/{course_id}/day/{day}/quiz", response_model=LessonQuizResponse)
async def get_quiz(
    course_id: str,
    day: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> LessonQuizResponse:
    """레슨 퀴즈 문항 조회 — 정답 미포함 (Lesson quiz questions without answers)."""
    result: LessonQuizResponse = await course_service.get_quiz(db, current_player, course_id, day)
    await db.commit()
    return result


@router.post("/courses/{course_id}/day/{day}/quiz", response_model=QuizSubmitResponse)
async def submit_quiz(
    course_id: str,
    day: int,
    data: QuizSubmitRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> QuizSubmitResponse:
    """레슨 퀴즈 제출 및 채점 (Submit and grade a lesson quiz)."""
    result: QuizSubmitResponse = await course_service.submit_quiz(db, current_player, course_id, day, data)
    await db.commit()
    return result


@router.get("/my-courses", response_model=MyCoursesResponse)
async def my_courses(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> MyCoursesResponse:
    """내 수강 코스 목록 (Enrolled courses with progress)."""
    return await course_service.my_courses(db, current_player)
