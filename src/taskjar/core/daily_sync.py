"""每日完成率记录同步

daily_completion 表是 tasks 表的派生数据。
支持单日 upsert（任务变化后的后续副作用）和全量重建两种模式。
"""

import time
from datetime import date, tzinfo

import aiosqlite
import structlog

from .analytics import daily_completion_series, task_day, today_in
from .config import get_timezone
from .store.protocols import DailyCompletionStore, TaskStore
from .store.transaction import write_transaction

log = structlog.get_logger()


async def sync_day(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    daily_store: DailyCompletionStore,
    user_id: str,
    day: date | None = None,
    tz: tzinfo | None = None,
) -> int:
    """重新计算某一天（默认今天）的完成率并写入

    Returns:
        写入的完成百分比
    """
    tz = tz or get_timezone()
    day = day or today_in(tz)
    async with write_transaction(conn):
        tasks = await task_store.list_tasks(user_id)
        [record] = daily_completion_series(tasks, 1, today=day, tz=tz)
        await daily_store.upsert_daily_completion(user_id, day, record.completion_pct)
    return record.completion_pct


async def rebuild_daily_completion(
    conn: aiosqlite.Connection,
    task_store: TaskStore,
    daily_store: DailyCompletionStore,
    user_id: str,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> int:
    """从 tasks 表重建用户的全部每日记录

    流程：
    1. 读取用户全部任务
    2. 计算从最早归属日期到今天的完整序列（无缺口）
    3. 清空该用户旧记录后写入

    Returns:
        写入的记录数
    """
    start_time = time.monotonic()
    tz = tz or get_timezone()
    today = today or today_in(tz)

    tasks = await task_store.list_tasks(user_id)
    await log.ainfo(
        "daily_completion_rebuild_started",
        user_id=user_id,
        task_count=len(tasks),
    )

    days = [task_day(t, tz) for t in tasks]
    earliest = min((d for d in days if d <= today), default=today)
    window_days = (today - earliest).days + 1
    series = daily_completion_series(tasks, window_days, today=today, tz=tz)

    async with write_transaction(conn):
        await daily_store.delete_for_user(user_id)
        for record in series:
            await daily_store.upsert_daily_completion(
                user_id, record.date_iso, record.completion_pct
            )

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "daily_completion_rebuild_completed",
        user_id=user_id,
        record_count=len(series),
        elapsed_ms=elapsed_ms,
    )
    return len(series)
