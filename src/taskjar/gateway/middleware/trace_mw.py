"""TraceMiddleware -- 为任务操作绑定 user_id 与 task_id

task_id 从 /api/tasks/{task_id}[/...] 路径中提取。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 字符串长度
_ULID_LENGTH = 26


def extract_task_id(path: str) -> str | None:
    """从请求路径提取 task_id，子路由（如 /import）返回 None"""
    parts = path.strip("/").split("/")
    for i, part in enumerate(parts):
        if part == "tasks" and i + 1 < len(parts):
            candidate = parts[i + 1]
            if len(candidate) == _ULID_LENGTH:
                return candidate
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        user_id = request.headers.get("X-TaskJar-User")
        if user_id:
            structlog.contextvars.bind_contextvars(user_id=user_id)

        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(task_id=task_id)

        return await call_next(request)
