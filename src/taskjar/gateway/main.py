"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 生成服务组件初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from taskjar.core.config import get_db_path
from taskjar.core.store import create_store_group
from taskjar.provider import (
    FallbackManager,
    LiteLLMClient,
    OfflineMessageAdapter,
    load_provider_config,
)

from .errors import register_error_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import analytics, data, generate, health, jars, settings, tasks
from .services.generation_service import GenerationService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和生成服务，关闭时清理连接"""
    # 启动：初始化 Store
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    # 生成服务初始化（根据配置选择模式）
    provider_config = load_provider_config()
    app.state.provider_config = provider_config

    if provider_config.llm_mode == "litellm":
        # LiteLLM 模式：LiteLLMClient + FallbackManager（降级到离线回显）
        litellm_client = LiteLLMClient(
            proxy_base_url=provider_config.proxy_base_url,
            proxy_api_key=provider_config.proxy_api_key.get_secret_value(),
            timeout_s=provider_config.timeout_s,
        )
        fallback_manager = FallbackManager(
            primary=litellm_client,
            fallback=OfflineMessageAdapter(),
        )
        # 保存 litellm_client 引用供健康检查使用
        app.state.litellm_client = litellm_client
        log.info(
            "generation_service_initialized",
            mode="litellm",
            proxy_url=provider_config.proxy_base_url,
            timeout_s=provider_config.timeout_s,
        )
    else:
        fallback_manager = FallbackManager(
            primary=OfflineMessageAdapter(),
            fallback=None,
        )
        app.state.litellm_client = None
        log.info("generation_service_initialized", mode="offline")

    app.state.generation_service = GenerationService(
        fallback_manager=fallback_manager,
        model_alias=provider_config.model_alias,
    )

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskJar Gateway",
        version="0.1.0",
        description="TaskJar 任务 / XP Jar / 完成率分析 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    register_error_handlers(app)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(jars.router, tags=["jars"])
    app.include_router(settings.router, tags=["settings"])
    app.include_router(analytics.router, tags=["analytics"])
    app.include_router(generate.router, tags=["generate"])
    app.include_router(data.router, tags=["data"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
