"""에디터 API 라우터 패키지 (Editor API router package)."""

from fastapi import APIRouter

from amanoba.api.editor.courses import router as courses_router

editor_router: APIRouter = APIRouter()

editor_router.include_router(courses_router, tags=["Editor Courses"])
