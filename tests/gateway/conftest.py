"""gateway 测试配置 -- 手动初始化 app.state（ASGITransport 不触发 lifespan）"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskjar.core.store import create_store_group
from taskjar.gateway.services.generation_service import GenerationService
from taskjar.gateway.services.task_service import TaskService
from taskjar.provider import FallbackManager, OfflineMessageAdapter


@pytest.fixture(autouse=True)
def reset_user_locks():
    """用户级锁绑定事件循环，每个测试使用新的锁"""
    TaskService._user_locks.clear()
    yield
    TaskService._user_locks.clear()


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    os.environ["TASKJAR_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskjar.gateway.main import create_app

    app = create_app()
    store_group = await create_store_group(os.environ["TASKJAR_DB_PATH"])
    app.state.store_group = store_group
    app.state.generation_service = GenerationService(
        fallback_manager=FallbackManager(primary=OfflineMessageAdapter()),
    )
    app.state.litellm_client = None

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKJAR_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def create_task(client: AsyncClient):
    """通过 API 创建任务的辅助函数"""

    async def _create(name: str = "write report", **fields) -> dict:
        resp = await client.post("/api/tasks", json={"name": name, **fields})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
