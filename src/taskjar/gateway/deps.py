"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与服务实例

Store 与生成服务通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Header, Request
from taskjar.core.config import get_default_user_id
from taskjar.core.store import StoreGroup

from .services.analytics_service import AnalyticsService
from .services.generation_service import GenerationService
from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_generation_service(request: Request) -> GenerationService:
    """从 app.state 获取 GenerationService 实例"""
    return request.app.state.generation_service


def get_user_id(
    x_taskjar_user: str | None = Header(default=None, alias="X-TaskJar-User"),
) -> str:
    """当前用户 ID，未携带请求头时使用默认用户"""
    if x_taskjar_user and x_taskjar_user.strip():
        return x_taskjar_user.strip()
    return get_default_user_id()


def get_task_service(request: Request) -> TaskService:
    return TaskService(get_store_group(request))


def get_analytics_service(request: Request) -> AnalyticsService:
    return AnalyticsService(get_store_group(request))
