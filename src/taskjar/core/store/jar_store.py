"""JarStore SQLite 实现

Jar 本体存 jars 表，贡献任务存 jar_tasks 链接表。
写操作不自动提交事务，由调用方管理。
"""

from collections import defaultdict
from datetime import datetime

import aiosqlite

from ..models.jar import Jar

_COLUMNS = "jar_id, user_id, name, current_xp, target_xp, status, completed_at, created_at"


class SqliteJarStore:
    """JarStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def save_jar(self, jar: Jar) -> Jar:
        """插入或更新 Jar，并补齐任务链接

        任务链接只增不减：已记录的贡献任务不会因保存而丢失。
        """
        await self._conn.execute(
            f"""
            INSERT INTO jars ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(jar_id) DO UPDATE SET
                name = excluded.name,
                current_xp = excluded.current_xp,
                target_xp = excluded.target_xp,
                status = excluded.status,
                completed_at = excluded.completed_at
            """,
            (
                jar.jar_id,
                jar.user_id,
                jar.name,
                jar.current_xp,
                jar.target_xp,
                jar.status.value,
                jar.completed_at.isoformat() if jar.completed_at else None,
                jar.created_at.isoformat(),
            ),
        )
        if jar.task_ids:
            await self._conn.executemany(
                "INSERT OR IGNORE INTO jar_tasks (jar_id, task_id) VALUES (?, ?)",
                [(jar.jar_id, task_id) for task_id in jar.task_ids],
            )
        return jar

    async def get_jar(self, jar_id: str) -> Jar | None:
        """根据 jar_id 查询 Jar"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM jars WHERE jar_id = ?",
            (jar_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        links = await self._load_links([jar_id])
        return self._row_to_jar(row, links.get(jar_id, []))

    async def list_jars(self, user_id: str) -> list[Jar]:
        """查询用户的全部 Jar，按 created_at 正序"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM jars WHERE user_id = ? ORDER BY created_at ASC, jar_id ASC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        links = await self._load_links([row[0] for row in rows])
        return [self._row_to_jar(row, links.get(row[0], [])) for row in rows]

    async def delete_jar(self, jar_id: str) -> bool:
        """删除 Jar（链接随外键级联删除）"""
        cursor = await self._conn.execute(
            "DELETE FROM jars WHERE jar_id = ?",
            (jar_id,),
        )
        return cursor.rowcount > 0

    async def delete_jars_for_user(self, user_id: str) -> None:
        await self._conn.execute("DELETE FROM jars WHERE user_id = ?", (user_id,))

    async def find_jar_for_task(self, task_id: str) -> str | None:
        """返回记录了该任务的 jar_id，未计入任何 Jar 时返回 None"""
        cursor = await self._conn.execute(
            "SELECT jar_id FROM jar_tasks WHERE task_id = ? LIMIT 1",
            (task_id,),
        )
        row = await cursor.fetchone()
        return row[0] if row else None

    async def _load_links(self, jar_ids: list[str]) -> dict[str, list[str]]:
        if not jar_ids:
            return {}
        placeholders = ", ".join("?" for _ in jar_ids)
        cursor = await self._conn.execute(
            f"SELECT jar_id, task_id FROM jar_tasks WHERE jar_id IN ({placeholders})",
            jar_ids,
        )
        links: dict[str, list[str]] = defaultdict(list)
        for row in await cursor.fetchall():
            links[row[0]].append(row[1])
        return links

    @staticmethod
    def _row_to_jar(row: aiosqlite.Row, task_ids: list[str]) -> Jar:
        """将数据库行转换为 Jar 模型"""
        return Jar(
            jar_id=row[0],
            user_id=row[1],
            name=row[2],
            current_xp=row[3],
            target_xp=row[4],
            status=row[5],
            completed_at=datetime.fromisoformat(row[6]) if row[6] else None,
            created_at=datetime.fromisoformat(row[7]),
            task_ids=task_ids,
        )
