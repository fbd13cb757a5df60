"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all admin endpoints into a single
router. Every endpoint requires the ``admin`` role.

Included routers:
    - courses: 코스/레슨 관리, 내보내기/가져오기 (Courses, lessons, export/import)
    - questions: 퀴즈 문항 관리 (Quiz questions)
    - certification: 인증서, 전역 설정, 응시 권한 (Certificates, settings, entitlements)
    - players: 플레이어 관리, 포인트 조정 (Players and points adjustment)
    - achievements: 업적 정의 관리 (Achievement definitions)
    - stats: 플랫폼 통계 (Platform statistics)
"""

from fastapi import APIRouter

from amanoba.api.admin.achievements import router as achievements_router
from amanoba.api.admin.certification import router as certification_router
from amanoba.api.admin.courses import router as courses_router
from amanoba.api.admin.players import router as players_router
from amanoba.api.admin.questions import router as questions_router
from amanoba.api.admin.stats import router as stats_router

admin_router: APIRouter = APIRouter()

admin_router.include_router(courses_router, prefix="/courses", tags=["Admin Courses"])
admin_router.include_router(questions_router, prefix="/questions", tags=["Admin Questions"])
# 인증서/설정/권한: /certificates, /certification/settings, /entitlements
admin_router.include_router(certification_router, tags=["Admin Certification"])
admin_router.include_router(players_router, prefix="/players", tags=["Admin Players"])
admin_router.include_router(achievements_router, prefix="/achievements", tags=["Admin Achievements"])
admin_router.include_router(stats_router, tags=["Admin Stats"])
