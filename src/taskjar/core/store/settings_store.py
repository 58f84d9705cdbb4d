"""SettingsStore SQLite 实现 -- 设置整体以 JSON 存储"""

from datetime import UTC, datetime

import aiosqlite

from ..models.settings import Settings


class SqliteSettingsStore:
    """SettingsStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def get_settings(self, user_id: str) -> Settings | None:
        """查询用户设置，未保存过时返回 None"""
        cursor = await self._conn.execute(
            "SELECT payload FROM settings WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return Settings.model_validate_json(row[0])

    async def save_settings(self, user_id: str, settings: Settings) -> Settings:
        await self._conn.execute(
            """
            INSERT INTO settings (user_id, payload, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
            """,
            (user_id, settings.model_dump_json(), datetime.now(UTC).isoformat()),
        )
        return settings
