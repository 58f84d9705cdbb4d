"""集成测试配置 -- 完整 app（含 lifespan）+ 离线生成模式"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskjar.gateway.services.task_service import TaskService


@pytest.fixture(autouse=True)
def reset_user_locks():
    TaskService._user_locks.clear()
    yield
    TaskService._user_locks.clear()


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch):
    """通过 lifespan 初始化的 app 实例"""
    monkeypatch.setenv("TASKJAR_DB_PATH", str(tmp_path / "sqlite" / "integration.db"))
    monkeypatch.setenv("TASKJAR_LLM_MODE", "offline")
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from taskjar.gateway.main import create_app, lifespan

    app = create_app()
    async with lifespan(app):
        yield app


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
