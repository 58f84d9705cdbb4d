"""TaskService -- 任务/Jar/设置业务逻辑

账本写操作流程：
1. 获取用户级锁（同一用户的账本变更串行执行）
2. 在锁内读取最新的任务与 Jar
3. 调用 ledger 纯函数计算新状态（含连续封存）
4. 单事务提交全部结果
5. 释放锁后同步受影响日期的每日完成率（失败只记录日志）
"""

import asyncio
from collections.abc import Iterable
from datetime import UTC, date, datetime, tzinfo
from typing import Any

import structlog
from pydantic import ValidationError
from taskjar.core import ledger
from taskjar.core.analytics import task_day
from taskjar.core.config import CLEAR_DATA_CONFIRMATION, get_timezone
from taskjar.core.daily_sync import sync_day
from taskjar.core.exceptions import TaskNotFoundError, TaskValidationError
from taskjar.core.ledger import LedgerResult
from taskjar.core.models import Jar, Settings, Task
from taskjar.core.store import StoreGroup
from taskjar.core.store.transaction import (
    clear_user_data,
    commit_ledger_result,
    commit_settings_change,
    commit_tasks,
    write_transaction,
)
from taskjar.core.vocabulary import map_difficulty, map_priority
from ulid import ULID

log = structlog.get_logger()


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'value'}: {e['msg']}"
        for e in error.errors()
    )


class TaskService:
    """任务与账本业务服务"""

    _user_locks: dict[str, asyncio.Lock] = {}
    _user_locks_guard = asyncio.Lock()

    def __init__(self, store_group: StoreGroup, tz: tzinfo | None = None) -> None:
        self._stores = store_group
        self._tz = tz or get_timezone()

    # ============================================================
    # 设置
    # ============================================================

    async def get_settings(self, user_id: str) -> Settings:
        """读取用户设置，未保存过时返回默认值"""
        settings = await self._stores.settings_store.get_settings(user_id)
        return settings or Settings()

    async def update_settings(self, user_id: str, changes: dict[str, Any]) -> Settings:
        """合并并保存设置；jar_target 变化时同一事务内作用于 ACTIVE Jar

        Raises:
            TaskValidationError: 取值越界
        """
        lock = await self._get_user_lock(user_id)
        async with lock:
            current = await self.get_settings(user_id)
            merged = current.model_dump()
            for key, value in changes.items():
                if key == "xp_values" and isinstance(value, dict):
                    merged["xp_values"] = {**merged["xp_values"], **value}
                else:
                    merged[key] = value
            try:
                updated = Settings.model_validate(merged)
            except ValidationError as e:
                raise TaskValidationError(_validation_message(e)) from e

            result: LedgerResult | None = None
            if updated.jar_target != current.jar_target:
                jars = await self._stores.jar_store.list_jars(user_id)
                active, _ = ledger.ensure_active_jar(jars, current, user_id)
                result = ledger.on_jar_target_changed(active, updated.jar_target)

            await commit_settings_change(
                self._stores.conn,
                self._stores.settings_store,
                self._stores.jar_store,
                user_id,
                updated,
                result,
            )

        log.info(
            "settings_updated",
            user_id=user_id,
            jar_target=updated.jar_target,
            sealed_count=len(result.sealed_jars) if result else 0,
        )
        return updated

    # ============================================================
    # 任务
    # ============================================================

    async def list_tasks(
        self,
        user_id: str,
        day: date | None = None,
        completed: bool | None = None,
    ) -> list[Task]:
        """查询任务列表，可按归属日期与完成状态筛选"""
        tasks = await self._stores.task_store.list_tasks(user_id)
        if day is not None:
            tasks = [t for t in tasks if task_day(t, self._tz) == day]
        if completed is not None:
            tasks = [t for t in tasks if t.completed == completed]
        return tasks

    async def get_task(self, user_id: str, task_id: str) -> Task:
        """查询任务详情

        Raises:
            TaskNotFoundError: 任务不存在或不属于该用户
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None or task.user_id != user_id:
            raise TaskNotFoundError(task_id)
        return task

    async def create_task(
        self,
        user_id: str,
        name: str,
        description: str = "",
        priority: str | None = None,
        difficulty: str | None = None,
        scheduled_for: date | None = None,
    ) -> Task:
        """创建任务，XP 按当前设置由难度推导

        Raises:
            TaskValidationError: 名称为空
        """
        settings = await self.get_settings(user_id)
        task = self._build_task(
            user_id,
            settings,
            name=name,
            description=description,
            priority=priority,
            difficulty=difficulty,
            scheduled_for=scheduled_for,
        )
        await commit_tasks(self._stores.conn, self._stores.task_store, [task])
        log.info("task_created", user_id=user_id, task_id=task.task_id, xp_value=task.xp_value)
        await self._sync_days(user_id, [task_day(task, self._tz)])
        return task

    async def import_tasks(self, user_id: str, items: list[dict[str, Any]]) -> list[Task]:
        """批量导入候选任务（单事务）

        导入时即标记为已完成的任务不计入任何 Jar。

        Raises:
            TaskValidationError: 列表为空或任一任务名称为空（整体拒绝）
        """
        if not items:
            raise TaskValidationError("At least one task is required for import")
        settings = await self.get_settings(user_id)
        now = datetime.now(UTC)
        tasks = []
        for item in items:
            task = self._build_task(
                user_id,
                settings,
                name=item.get("name", ""),
                description=item.get("description") or "",
                priority=item.get("priority"),
                difficulty=item.get("difficulty"),
                scheduled_for=item.get("scheduled_for"),
                now=now,
            )
            if item.get("completed"):
                task = task.model_copy(update={"completed": True, "completed_at": now})
            tasks.append(task)

        await commit_tasks(self._stores.conn, self._stores.task_store, tasks)
        log.info("tasks_imported", user_id=user_id, count=len(tasks))
        await self._sync_days(user_id, {task_day(t, self._tz) for t in tasks})
        return tasks

    async def update_task(
        self,
        user_id: str,
        task_id: str,
        changes: dict[str, Any],
    ) -> Task:
        """编辑任务字段

        未完成任务修改难度时按当前设置重新推导 XP；已完成任务的 XP 保持不变。

        Raises:
            TaskNotFoundError: 任务不存在
            TaskValidationError: 名称为空等校验失败
        """
        lock = await self._get_user_lock(user_id)
        async with lock:
            task = await self.get_task(user_id, task_id)
            updates: dict[str, Any] = {"updated_at": datetime.now(UTC)}
            if "name" in changes:
                updates["name"] = changes["name"] or ""
            if "description" in changes:
                updates["description"] = changes["description"] or ""
            if "priority" in changes:
                updates["priority"] = map_priority(changes["priority"])
            if "difficulty" in changes:
                updates["difficulty"] = map_difficulty(changes["difficulty"])
                if not task.completed:
                    settings = await self.get_settings(user_id)
                    updates["xp_value"] = settings.xp_values.for_difficulty(
                        updates["difficulty"]
                    )
            if "scheduled_for" in changes:
                updates["scheduled_for"] = changes["scheduled_for"]

            try:
                updated = Task.model_validate({**task.model_dump(), **updates})
            except ValidationError as e:
                raise TaskValidationError(_validation_message(e)) from e

            await commit_tasks(self._stores.conn, self._stores.task_store, [updated])

        log.info("task_updated", user_id=user_id, task_id=task_id, fields=sorted(changes))
        await self._sync_days(
            user_id, {task_day(task, self._tz), task_day(updated, self._tz)}
        )
        return updated

    async def delete_task(self, user_id: str, task_id: str) -> None:
        """删除任务，已记录的 Jar 不受影响

        Raises:
            TaskNotFoundError: 任务不存在
        """
        lock = await self._get_user_lock(user_id)
        async with lock:
            task = await self.get_task(user_id, task_id)
            async with write_transaction(self._stores.conn):
                await self._stores.task_store.delete_task(task_id)

        log.info("task_deleted", user_id=user_id, task_id=task_id)
        await self._sync_days(user_id, [task_day(task, self._tz)])

    async def complete_task(self, user_id: str, task_id: str) -> LedgerResult:
        """完成任务并入账（含连续封存），单事务落盘

        Raises:
            TaskNotFoundError: 任务不存在
            TaskAlreadyCompletedError: 任务已完成（重复完成不会重复计 XP）
            LedgerInvariantError: 存在多个 ACTIVE Jar
        """
        lock = await self._get_user_lock(user_id)
        async with lock:
            task = await self.get_task(user_id, task_id)
            settings = await self.get_settings(user_id)
            jars = await self._stores.jar_store.list_jars(user_id)
            active, _ = ledger.ensure_active_jar(jars, settings, user_id)
            result = ledger.complete_task(task, active, settings)
            await commit_ledger_result(
                self._stores.conn,
                self._stores.task_store,
                self._stores.jar_store,
                result,
            )

        await self._sync_days(user_id, [task_day(task, self._tz)])
        return result

    async def uncomplete_task(self, user_id: str, task_id: str) -> Task:
        """撤销完成（仅限未计入 Jar 的任务）

        Raises:
            TaskNotFoundError: 任务不存在
            TaskAlreadyCountedError: 任务 XP 已计入 Jar
        """
        lock = await self._get_user_lock(user_id)
        async with lock:
            task = await self.get_task(user_id, task_id)
            # 只加载记录了该任务的 Jar（jar_tasks 索引查询）
            jar_id = await self._stores.jar_store.find_jar_for_task(task_id)
            counted_in = await self._stores.jar_store.get_jar(jar_id) if jar_id else None
            updated = ledger.uncomplete_task(task, [counted_in] if counted_in else [])
            if updated is not task:
                await commit_tasks(self._stores.conn, self._stores.task_store, [updated])

        log.info("task_uncompleted", user_id=user_id, task_id=task_id)
        await self._sync_days(user_id, [task_day(task, self._tz)])
        return updated

    # ============================================================
    # Jar
    # ============================================================

    async def list_jars(self, user_id: str) -> list[Jar]:
        """查询 Jar 历史（按创建时间正序），缺少 ACTIVE Jar 时合成并持久化"""
        lock = await self._get_user_lock(user_id)
        async with lock:
            jars = await self._stores.jar_store.list_jars(user_id)
            settings = await self.get_settings(user_id)
            active, created = ledger.ensure_active_jar(jars, settings, user_id)
            if created:
                async with write_transaction(self._stores.conn):
                    await self._stores.jar_store.save_jar(active)
                jars = [*jars, active]
        return jars

    async def get_current_jar(self, user_id: str) -> Jar:
        jars = await self.list_jars(user_id)
        return ledger.find_active_jar(jars)

    # ============================================================
    # 清空数据
    # ============================================================

    async def clear_all_data(self, user_id: str, confirmation: str) -> Jar:
        """清空任务、Jar 与每日记录，保留设置，并创建新的空 Jar

        Raises:
            TaskValidationError: 确认短语不匹配
        """
        if confirmation != CLEAR_DATA_CONFIRMATION:
            raise TaskValidationError(
                f'Type "{CLEAR_DATA_CONFIRMATION}" to confirm clearing all data'
            )
        lock = await self._get_user_lock(user_id)
        async with lock:
            settings = await self.get_settings(user_id)
            fresh = ledger.fresh_jar(user_id, settings)
            await clear_user_data(
                self._stores.conn,
                self._stores.task_store,
                self._stores.jar_store,
                self._stores.daily_store,
                user_id,
                fresh,
            )
        log.warning("user_data_cleared", user_id=user_id, jar_id=fresh.jar_id)
        return fresh

    # ============================================================
    # 内部工具
    # ============================================================

    def _build_task(
        self,
        user_id: str,
        settings: Settings,
        name: str,
        description: str = "",
        priority: str | None = None,
        difficulty: str | None = None,
        scheduled_for: date | None = None,
        now: datetime | None = None,
    ) -> Task:
        if not name or not name.strip():
            raise TaskValidationError("Task name is required")
        mapped_difficulty = map_difficulty(difficulty)
        now = now or datetime.now(UTC)
        try:
            return Task(
                task_id=str(ULID()),
                user_id=user_id,
                name=name,
                description=description,
                priority=map_priority(priority),
                difficulty=mapped_difficulty,
                xp_value=settings.xp_values.for_difficulty(mapped_difficulty),
                created_at=now,
                updated_at=now,
                scheduled_for=scheduled_for,
            )
        except ValidationError as e:
            raise TaskValidationError(_validation_message(e)) from e

    async def _sync_days(self, user_id: str, days: Iterable[date]) -> None:
        """同步每日完成率（后续副作用，失败只记录日志）"""
        for day in days:
            try:
                await sync_day(
                    self._stores.conn,
                    self._stores.task_store,
                    self._stores.daily_store,
                    user_id,
                    day,
                    self._tz,
                )
            except Exception as e:
                log.warning(
                    "daily_completion_sync_failed",
                    user_id=user_id,
                    day=day.isoformat(),
                    error=str(e),
                )

    @classmethod
    async def _get_user_lock(cls, user_id: str) -> asyncio.Lock:
        """获取用户级锁，串行化同一用户的账本变更"""
        async with cls._user_locks_guard:
            lock = cls._user_locks.get(user_id)
            if lock is None:
                lock = asyncio.Lock()
                cls._user_locks[user_id] = lock
            return lock
