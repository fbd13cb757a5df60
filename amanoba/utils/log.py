"""구조화 로깅 설정 — structlog 기반 JSON 로그.

Structured logging setup built on structlog.
Routes stdlib and uvicorn loggers through one JSON formatter on stdout.

Usage:
    from amanoba.utils.log import get_logger
    logger = get_logger(__name__)
    logger.info("certificate_issued", player_id=str(player.id))
"""

import logging
import sys

import structlog

_CONFIGURED: bool = False


def configure_logging(level: str | int = "INFO") -> None:
    """stdlib logging과 structlog을 한 번만 구성합니다.

    Configure stdlib logging and structlog to emit JSON lines to stdout.
    Safe to call multiple times; only the first call has an effect.

    Args:
        level: 루트 로그 레벨 (Root log level name or number)
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    pre_chain = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=pre_chain,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # uvicorn 로거를 루트로 통합 — Make uvicorn loggers share the root formatter
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.handlers = []
        uv_logger.propagate = True

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """이름이 지정된 structlog 로거를 반환합니다 (Return a named structlog logger)."""
    return structlog.get_logger(name)
