"""FastAPI 애플리케이션 엔트리포인트 — 로깅, 미들웨어, 예외 핸들러, 라우터 등록.

FastAPI application entry point — Logging, middleware, exception handler
and router registration.

Mounted routers:
    - /api: 학습자 API (Learner API: auth, courses, gamification, certification)
    - /api/editor: 에디터 API (Lesson content editing for assigned editors)
    - /api/admin: 관리자 API (Admin API)
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from amanoba.config import settings
from amanoba.middleware.axiom_logging import AxiomLoggingMiddleware
from amanoba.utils.exceptions import (
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from amanoba.utils.log import configure_logging

configure_logging(settings.LOG_LEVEL)

app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Axiom API 로깅 미들웨어 — Axiom API request/response logging
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 오류 응답 형식 통일 — Every error is rendered as {"success": false, "error": ...}
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# ---------------------------------------------------------------------------
# 라우터 등록 — Router registration
# ---------------------------------------------------------------------------
from amanoba.api.admin import admin_router  # noqa: E402
from amanoba.api.app import app_router  # noqa: E402
from amanoba.api.editor import editor_router  # noqa: E402

app.include_router(app_router, prefix="/api")
app.include_router(editor_router, prefix="/api/editor", tags=["Editor"])
app.include_router(admin_router, prefix="/api/admin")
