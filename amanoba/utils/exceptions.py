"""커스텀 HTTP 예외 클래스 및 전역 예외 핸들러 모듈.

Custom HTTP exception classes and global exception handlers.
Services raise the pre-configured HTTPException subclasses; the handlers
registered in main.py render every error as ``{"success": false, "error": ...}``.

Usage:
    from amanoba.utils.exceptions import NotFoundError, DuplicateError
    raise NotFoundError("Course not found")
    raise DuplicateError("Email already registered")
"""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from amanoba.utils.log import get_logger

logger = get_logger(__name__)


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    404 Not Found exception.
    Raised when a requested resource (course, lesson, attempt, etc.) does not exist.

    Args:
        detail: 오류 메시지 (Error message, default: "Resource not found")
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 Conflict 예외 — 중복 리소스 생성 시도 시 사용.

    409 Conflict exception.
    Raised when attempting to create a resource that violates a uniqueness constraint
    (e.g. duplicate email, duplicate course code, entitlement already owned).

    Args:
        detail: 오류 메시지 (Error message, default: "Resource already exists")
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    403 Forbidden exception.
    Raised when the authenticated player lacks the required role or access
    (e.g. non-admin calling admin endpoints, exam without entitlement).

    Args:
        detail: 오류 메시지 (Error message, default: "Insufficient permissions")
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용.

    401 Unauthorized exception.
    Raised when authentication is missing, invalid, or expired.

    Args:
        detail: 오류 메시지 (Error message, default: "Unauthorized")
    """

    def __init__(self, detail: str = "Unauthorized") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    400 Bad Request exception.
    Raised when the request data is invalid beyond what Pydantic validation catches
    (e.g. invalid state transitions, insufficient points balance).

    Args:
        detail: 오류 메시지 (Error message, default: "Bad request")
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _error_body(error: Any, **extra: Any) -> dict[str, Any]:
    return {"success": False, "error": error, **extra}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTPException을 {success, error} 형태로 변환합니다.

    Render any HTTPException (including the subclasses above) as the
    standard error envelope, preserving status code and headers.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 실패를 400 응답으로 변환합니다.

    Request validation failures are reported as 400 with the field errors attached.
    """
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("Validation failed", details=jsonable_encoder(exc.errors())),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """예상치 못한 예외를 로깅하고 500으로 응답합니다.

    Log the unexpected exception with its traceback and hide internals from the client.
    """
    logger.exception(
        "unhandled_exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Internal server error"),
    )
