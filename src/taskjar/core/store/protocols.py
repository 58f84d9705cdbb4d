"""Store Protocol 接口定义

定义 TaskStore、JarStore、DailyCompletionStore、SettingsStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from datetime import date
from typing import Protocol

from ..models.analytics import DailyCompletion
from ..models.jar import Jar
from ..models.settings import Settings
from ..models.task import Task


class TaskStore(Protocol):
    """Task 存储接口"""

    async def save_task(self, task: Task) -> Task:
        """插入或更新任务"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, user_id: str) -> list[Task]:
        """查询用户的全部任务"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务（不影响 Jar 记录）"""
        ...


class JarStore(Protocol):
    """Jar 存储接口

    Jar 仅在批量清空数据时删除。
    """

    async def save_jar(self, jar: Jar) -> Jar:
        """插入或更新 Jar"""
        ...

    async def list_jars(self, user_id: str) -> list[Jar]:
        """查询用户的全部 Jar"""
        ...

    async def delete_jar(self, jar_id: str) -> bool:
        """删除 Jar"""
        ...


class DailyCompletionStore(Protocol):
    """每日完成率存储接口"""

    async def list_daily_completion(self, user_id: str) -> list[DailyCompletion]:
        """查询用户全部每日记录"""
        ...

    async def upsert_daily_completion(
        self,
        user_id: str,
        day: date,
        completion_pct: int,
    ) -> DailyCompletion:
        """写入或覆盖某天的完成率"""
        ...

    async def delete_for_user(self, user_id: str) -> None:
        """删除用户全部每日记录"""
        ...


class SettingsStore(Protocol):
    """设置存储接口"""

    async def get_settings(self, user_id: str) -> Settings | None:
        """查询用户设置"""
        ...

    async def save_settings(self, user_id: str, settings: Settings) -> Settings:
        """保存用户设置"""
        ...
