"""账本原子事务封装

在同一 SQLite 事务内提交一次账本操作产生的全部写入（任务 + 所有封存/新建的 Jar），
保证连续封存要么整体落盘，要么完全不落盘。
"""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from ..ledger import LedgerResult
from ..models.jar import Jar
from ..models.settings import Settings
from ..models.task import Task
from .daily_completion_store import SqliteDailyCompletionStore
from .jar_store import SqliteJarStore
from .settings_store import SqliteSettingsStore
from .task_store import SqliteTaskStore

# 每个连接一把写锁；所有写事务串行提交
_write_locks: "weakref.WeakKeyDictionary[aiosqlite.Connection, asyncio.Lock]" = (
    weakref.WeakKeyDictionary()
)


def get_write_lock(conn: aiosqlite.Connection) -> asyncio.Lock:
    """返回连接共享的写锁（首次访问时创建）"""
    lock = _write_locks.get(conn)
    if lock is None:
        lock = asyncio.Lock()
        _write_locks[conn] = lock
    return lock


@asynccontextmanager
async def write_transaction(conn: aiosqlite.Connection) -> AsyncIterator[None]:
    """持有连接写锁执行一次写事务：正常退出提交，异常回滚后重新抛出

    同一连接上的 commit / rollback 作用于连接上全部未提交写入，所有写路径都经由此处。
    """
    async with get_write_lock(conn):
        try:
            yield
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise


async def commit_tasks(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    tasks: list[Task],
) -> None:
    """在同一事务内写入一批任务（创建 / 批量导入 / 编辑）"""
    async with write_transaction(conn):
        for task in tasks:
            await task_store.save_task(task)


async def commit_ledger_result(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    jar_store: SqliteJarStore,
    result: LedgerResult,
) -> None:
    """在同一事务内原子提交任务与 Jar 更新

    Jar 按封存顺序写入，最后写入 ACTIVE Jar，
    保证任意时刻库中每个用户最多一个 ACTIVE Jar。

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        jar_store: JarStore 实例
        result: 账本运算结果

    Raises:
        Exception: 如果事务提交失败，自动回滚
    """
    async with write_transaction(conn):
        if result.task is not None:
            await task_store.save_task(result.task)
        for jar in result.touched_jars:
            await jar_store.save_jar(jar)


async def commit_settings_change(
    conn: aiosqlite.Connection,
    settings_store: SqliteSettingsStore,
    jar_store: SqliteJarStore,
    user_id: str,
    settings: Settings,
    result: LedgerResult | None = None,
) -> None:
    """在同一事务内保存设置并应用 Jar 目标值变更"""
    async with write_transaction(conn):
        await settings_store.save_settings(user_id, settings)
        if result is not None:
            for jar in result.touched_jars:
                await jar_store.save_jar(jar)


async def clear_user_data(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    jar_store: SqliteJarStore,
    daily_store: SqliteDailyCompletionStore,
    user_id: str,
    fresh_jar: Jar,
) -> None:
    """清空用户的任务、Jar、任务链接与每日记录，并写入一个新的空 ACTIVE Jar

    设置保留。
    """
    async with write_transaction(conn):
        await task_store.delete_tasks_for_user(user_id)
        await jar_store.delete_jars_for_user(user_id)
        await daily_store.delete_for_user(user_id)
        await jar_store.save_jar(fresh_jar)
