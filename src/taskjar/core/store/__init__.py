"""TaskJar Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .daily_completion_store import SqliteDailyCompletionStore
from .jar_store import SqliteJarStore
from .settings_store import SqliteSettingsStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import (
    clear_user_data,
    commit_ledger_result,
    commit_settings_change,
    commit_tasks,
    get_write_lock,
    write_transaction,
)


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.jar_store = SqliteJarStore(conn)
        self.daily_store = SqliteDailyCompletionStore(conn)
        self.settings_store = SqliteSettingsStore(conn)

    @property
    def write_lock(self) -> asyncio.Lock:
        """连接共享的写锁"""
        return get_write_lock(self.conn)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteJarStore",
    "SqliteDailyCompletionStore",
    "SqliteSettingsStore",
    "init_db",
    "commit_tasks",
    "commit_ledger_result",
    "commit_settings_change",
    "clear_user_data",
    "get_write_lock",
    "write_transaction",
]
