"""LoggingMiddleware -- 请求级日志

每个请求绑定 request_id（沿用客户端传入的 X-Request-ID，否则生成 ULID），
结束时按状态码分级记录耗时。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_MAX_LENGTH = 64


def resolve_request_id(incoming: str | None) -> str:
    """客户端提供的 request_id 截断后沿用，缺失或为空白时生成新 ULID"""
    if incoming and incoming.strip():
        return incoming.strip()[:_REQUEST_ID_MAX_LENGTH]
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()
        start_time = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            await log.aexception(
                "request_failed",
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            raise

        duration_ms = int((time.monotonic() - start_time) * 1000)
        if response.status_code >= 500:
            emit = log.aerror
        elif response.status_code >= 400:
            emit = log.awarning
        else:
            emit = log.ainfo
        await emit("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
