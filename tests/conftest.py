"""全局 pytest 配置 -- 临时 SQLite 数据库 fixture + 固定时区"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    """日期归属统一按 UTC 计算，避免依赖运行机器的本地时区"""
    monkeypatch.setenv("TASKJAR_TIMEZONE", "UTC")


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from taskjar.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    await init_db(conn)
    yield conn
    await conn.close()
