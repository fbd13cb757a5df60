"""앱 인증 라우터 — 응시 권한, 포인트 교환, 최종 시험.

App Certification Router — Entitlement status, points redemption and the
final exam flow (start, answer, submit, discard, attempts).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from amanoba.api.deps import get_current_player
from amanoba.database import get_db
from amanoba.models.player import Player
from amanoba.schemas.certification import (
    AttemptListResponse,
    AttemptRef,
    AttemptResponse,
    CourseRef,
    EntitlementStatusResponse,
    ExamAnswerRequest,
    ExamAnswerResponse,
    ExamDiscardRequest,
    ExamStartResponse,
    ExamSubmitResponse,
    RedeemResponse,
)
from amanoba.services.certification_service import certification_service
from amanoba.services.final_exam_service import final_exam_service

router: APIRouter = APIRouter()


@router.get("/entitlement", response_model=EntitlementStatusResponse)
async def get_entitlement(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
    course_id: Annotated[str, Query(min_length=1, description="코스 코드")],
) -> EntitlementStatusResponse:
    """코스 인증 응시 권한 상태 (Certification status and prices for a course)."""
    return await certification_service.get_entitlement_status(db, current_player, course_id)


@router.post("/entitlement/redeem-points", response_model=RedeemResponse)
async def redeem_points(
    data: CourseRef,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> RedeemResponse:
    """포인트로 응시 권한 구매.

    Buy the certification entitlement with points. Debit, transaction log
    and entitlement are committed together.
    """
    result: RedeemResponse = await certification_service.redeem_points(db, current_player, data.course_id)
    await db.commit()
    return result


@router.post("/final-exam/start", response_model=ExamStartResponse)
async def start_final_exam(
    data: CourseRef,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> ExamStartResponse:
    """최종 시험 시작 — 진행 중인 이전 응시는 폐기.

    Start a final exam; any in-progress attempt for the course is superseded.
    """
    result: ExamStartResponse = await final_exam_service.start(db, current_player, data.course_id)
    await db.commit()
    return result


@router.post("/final-exam/answer", response_model=ExamAnswerResponse)
async def answer_final_exam(
    data: ExamAnswerRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> ExamAnswerResponse:
    """현재 문항 답안 제출 (Answer the current question)."""
    result: ExamAnswerResponse = await final_exam_service.answer(db, current_player, data)
    await db.commit()
    return result


@router.post("/final-exam/submit", response_model=ExamSubmitResponse)
async def submit_final_exam(
    data: AttemptRef,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> ExamSubmitResponse:
    """최종 시험 채점 및 인증서 반영.

    Grade the attempt and issue, refresh or revoke the certificate.

    Args:
        data: 응시 ID (Attempt reference)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_player: 인증된 플레이어 (Authenticated player)

    Returns:
        ExamSubmitResponse: 점수, 합격 여부, 인증서 자격 (Score, pass flag, certificate eligibility)
    """
    result: ExamSubmitResponse = await final_exam_service.submit(db, current_player, data.attempt_id)
    await db.commit()
    return result


@router.post("/final-exam/discard", response_model=AttemptResponse)
async def discard_final_exam(
    data: ExamDiscardRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
) -> AttemptResponse:
    """진행 중인 시험 폐기 (Discard an in-progress attempt)."""
    result: AttemptResponse = await final_exam_service.discard(db, current_player, data.attempt_id, data.reason)
    await db.commit()
    return result


@router.get("/final-exam/attempts", response_model=AttemptListResponse)
async def list_attempts(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_player: Annotated[Player, Depends(get_current_player)],
    course_id: Annotated[str | None, Query(description="코스 코드 필터")] = None,
) -> AttemptListResponse:
    """내 최종 시험 응시 기록 (My final exam attempts, newest first)."""
    return await final_exam_service.list_attempts(db, current_player, course_id)
