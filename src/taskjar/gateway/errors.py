"""异常 -> HTTP 错误响应映射

统一响应体：{"error": {"code": ..., "message": ...}}。
持久化失败返回 503 并标记 retryable，供客户端提示重试。
"""

import aiosqlite
import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse
from taskjar.core.exceptions import (
    LedgerInvariantError,
    TaskAlreadyCompletedError,
    TaskAlreadyCountedError,
    TaskJarError,
    TaskNotFoundError,
    TaskValidationError,
)

log = structlog.get_logger()

_STATUS_BY_ERROR: list[tuple[type[TaskJarError], int]] = [
    (TaskValidationError, 400),
    (TaskNotFoundError, 404),
    (TaskAlreadyCompletedError, 409),
    (TaskAlreadyCountedError, 409),
    (LedgerInvariantError, 409),
]


def error_response(
    status_code: int,
    code: str,
    message: str,
    retryable: bool | None = None,
) -> JSONResponse:
    """构造统一格式的错误响应"""
    error: dict = {"code": code, "message": message}
    if retryable is not None:
        error["retryable"] = retryable
    return JSONResponse(status_code=status_code, content={"error": error})


def status_for(exc: TaskJarError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def taskjar_error_handler(request: Request, exc: TaskJarError) -> JSONResponse:
    """业务异常处理"""
    status_code = status_for(exc)
    if isinstance(exc, LedgerInvariantError):
        await log.aerror("ledger_invariant_violated", error=str(exc))
    else:
        await log.ainfo(
            "request_rejected",
            code=exc.code,
            status_code=status_code,
            error=str(exc),
        )
    return error_response(status_code, exc.code, str(exc))


async def persistence_error_handler(
    request: Request, exc: aiosqlite.Error
) -> JSONResponse:
    """数据库写入/读取失败，未应用任何部分变更"""
    await log.aerror(
        "persistence_failed",
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return error_response(
        503,
        "PERSISTENCE_UNAVAILABLE",
        "Storage is temporarily unavailable, please retry",
        retryable=True,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskJarError, taskjar_error_handler)
    app.add_exception_handler(aiosqlite.Error, persistence_error_handler)
