"""앱 API 라우터 패키지 — 모든 플레이어용 엔드포인트 통합.

App API Router package — Aggregates all player-facing endpoints into a
single router for inclusion in the FastAPI application.

Included routers:
    - health: 서버/DB 상태 (Server and database health)
    - auth: 회원가입, 로그인, 토큰 갱신 (Registration, login, refresh)
    - courses: 코스, 일차 레슨, 퀴즈 (Courses, day lessons, quizzes)
    - profile: 프로필, 지갑 거래 내역 (Profile and wallet log)
    - achievements / leaderboards: 게이미피케이션 (Gamification)
    - certification: 응시 권한, 최종 시험 (Entitlements and final exam)
    - certificates: 공개 인증서 조회/검증 (Public certificates)
"""

from fastapi import APIRouter

from amanoba.api.app.achievements import router as achievements_router
from amanoba.api.app.auth import router as auth_router
from amanoba.api.app.certificates import router as certificates_router
from amanoba.api.app.certification import router as certification_router
from amanoba.api.app.courses import router as courses_router
from amanoba.api.app.health import router as health_router
from amanoba.api.app.leaderboards import router as leaderboards_router
from amanoba.api.app.profile import router as profile_router

app_router: APIRouter = APIRouter()

app_router.include_router(health_router, tags=["Health"])
app_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
# 코스: /courses, /my-courses 엔드포인트 (Course catalogue and learning flow)
app_router.include_router(courses_router, tags=["Courses"])
app_router.include_router(profile_router, tags=["Profile"])
app_router.include_router(achievements_router, tags=["Achievements"])
app_router.include_router(leaderboards_router, tags=["Leaderboards"])
app_router.include_router(certification_router, prefix="/certification", tags=["Certification"])
app_router.include_router(certificates_router, prefix="/certificates", tags=["Certificates"])
