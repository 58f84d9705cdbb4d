"""DailyCompletionStore SQLite 实现

每个用户每天一条记录，upsert 覆盖。
"""

from datetime import UTC, date, datetime

import aiosqlite

from ..models.analytics import DailyCompletion


class SqliteDailyCompletionStore:
    """DailyCompletionStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def upsert_daily_completion(
        self,
        user_id: str,
        day: date,
        completion_pct: int,
    ) -> DailyCompletion:
        """写入或覆盖某天的完成率"""
        record = DailyCompletion(date_iso=day, completion_pct=completion_pct)
        await self._conn.execute(
            """
            INSERT INTO daily_completion (user_id, date_iso, completion_pct, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id, date_iso) DO UPDATE SET
                completion_pct = excluded.completion_pct,
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                record.date_iso.isoformat(),
                record.completion_pct,
                datetime.now(UTC).isoformat(),
            ),
        )
        return record

    async def list_daily_completion(self, user_id: str) -> list[DailyCompletion]:
        """查询用户全部每日记录，按日期正序"""
        cursor = await self._conn.execute(
            """
            SELECT date_iso, completion_pct FROM daily_completion
            WHERE user_id = ? ORDER BY date_iso ASC
            """,
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def delete_for_user(self, user_id: str) -> None:
        await self._conn.execute(
            "DELETE FROM daily_completion WHERE user_id = ?", (user_id,)
        )

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> DailyCompletion:
        return DailyCompletion(
            date_iso=date.fromisoformat(row[0]),
            completion_pct=row[1],
        )
