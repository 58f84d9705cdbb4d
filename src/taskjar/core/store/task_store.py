"""TaskStore SQLite 实现

写操作不自动提交事务，由调用方管理。
"""

from datetime import date, datetime

import aiosqlite

from ..models.task import Task

_COLUMNS = (
    "task_id, user_id, name, description, priority, difficulty, xp_value, "
    "completed, completed_at, created_at, updated_at, scheduled_for"
)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_task(self, task: Task) -> Task:
        """插入或更新任务（按 task_id upsert）"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(task_id) DO UPDATE SET
                name = excluded.name,
                description = excluded.description,
                priority = excluded.priority,
                difficulty = excluded.difficulty,
                xp_value = excluded.xp_value,
                completed = excluded.completed,
                completed_at = excluded.completed_at,
                updated_at = excluded.updated_at,
                scheduled_for = excluded.scheduled_for
            """,
            (
                task.task_id,
                task.user_id,
                task.name,
                task.description,
                task.priority.value,
                task.difficulty.value,
                task.xp_value,
                1 if task.completed else 0,
                task.completed_at.isoformat() if task.completed_at else None,
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
                task.scheduled_for.isoformat() if task.scheduled_for else None,
            ),
        )
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, user_id: str) -> list[Task]:
        """查询用户的全部任务，按 created_at 正序"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? ORDER BY created_at ASC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，Jar 中的任务链接保留

        Returns:
            True 如果确实删除了记录
        """
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount > 0

    async def delete_tasks_for_user(self, user_id: str) -> None:
        await self._conn.execute("DELETE FROM tasks WHERE user_id = ?", (user_id,))

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            user_id=row[1],
            name=row[2],
            description=row[3],
            priority=row[4],
            difficulty=row[5],
            xp_value=row[6],
            completed=bool(row[7]),
            completed_at=datetime.fromisoformat(row[8]) if row[8] else None,
            created_at=datetime.fromisoformat(row[9]),
            updated_at=datetime.fromisoformat(row[10]),
            scheduled_for=date.fromisoformat(row[11]) if row[11] else None,
        )
