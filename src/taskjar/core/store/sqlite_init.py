"""SQLite 数据库初始化

PRAGMA 配置 + 五张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# tasks 表 DDL
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id       TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL DEFAULT 'owner',
    name          TEXT NOT NULL,
    description   TEXT NOT NULL DEFAULT '',
    priority      TEXT NOT NULL DEFAULT 'scheduled',
    difficulty    TEXT NOT NULL DEFAULT 'standard',
    xp_value      INTEGER NOT NULL CHECK (xp_value > 0),
    completed     INTEGER NOT NULL DEFAULT 0,
    completed_at  TEXT,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    scheduled_for TEXT
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_created ON tasks(user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_user_scheduled ON tasks(user_id, scheduled_for);",
]

# jars 表 DDL
_JARS_DDL = """
CREATE TABLE IF NOT EXISTS jars (
    jar_id        TEXT PRIMARY KEY,
    user_id       TEXT NOT NULL DEFAULT 'owner',
    name          TEXT NOT NULL DEFAULT '',
    current_xp    INTEGER NOT NULL DEFAULT 0 CHECK (current_xp >= 0),
    target_xp     INTEGER NOT NULL CHECK (target_xp > 0),
    status        TEXT NOT NULL DEFAULT 'ACTIVE',
    completed_at  TEXT,
    created_at    TEXT NOT NULL,

    CHECK (current_xp <= target_xp)
);
"""

_JARS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_jars_user_created ON jars(user_id, created_at);",
    # 每个用户最多一个 ACTIVE Jar
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_jars_one_active "
        "ON jars(user_id) WHERE status = 'ACTIVE';"
    ),
]

# jar_tasks 表 DDL（任务删除后链接保留）
_JAR_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS jar_tasks (
    jar_id   TEXT NOT NULL,
    task_id  TEXT NOT NULL,

    PRIMARY KEY (jar_id, task_id),
    FOREIGN KEY (jar_id) REFERENCES jars(jar_id) ON DELETE CASCADE
);
"""

_JAR_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_jar_tasks_task_id ON jar_tasks(task_id);",
]

# daily_completion 表 DDL
_DAILY_COMPLETION_DDL = """
CREATE TABLE IF NOT EXISTS daily_completion (
    user_id         TEXT NOT NULL,
    date_iso        TEXT NOT NULL,
    completion_pct  INTEGER NOT NULL CHECK (completion_pct BETWEEN 0 AND 100),
    updated_at      TEXT NOT NULL,

    PRIMARY KEY (user_id, date_iso)
);
"""

# settings 表 DDL
_SETTINGS_DDL = """
CREATE TABLE IF NOT EXISTS settings (
    user_id     TEXT PRIMARY KEY,
    payload     TEXT NOT NULL DEFAULT '{}',
    updated_at  TEXT NOT NULL
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_TASKS_DDL)
    await conn.execute(_JARS_DDL)
    await conn.execute(_JAR_TASKS_DDL)
    await conn.execute(_DAILY_COMPLETION_DDL)
    await conn.execute(_SETTINGS_DDL)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _JARS_INDEXES + _JAR_TASKS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
