"""core 测试配置 -- 领域对象工厂 + Store 实例组"""

from collections.abc import AsyncGenerator
from datetime import UTC, date, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from taskjar.core.models import Difficulty, Jar, JarStatus, Priority, Task
from ulid import ULID

NOW = datetime(2024, 6, 10, 9, 30, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_task():
    """Task 工厂"""

    def _make(
        xp_value: int = 10,
        completed: bool = False,
        created_at: datetime = NOW,
        completed_at: datetime | None = None,
        scheduled_for: date | None = None,
        priority: Priority = Priority.SCHEDULED,
        difficulty: Difficulty = Difficulty.STANDARD,
        user_id: str = "owner",
        name: str = "write report",
    ) -> Task:
        if completed and completed_at is None:
            completed_at = created_at
        return Task(
            task_id=str(ULID()),
            user_id=user_id,
            name=name,
            priority=priority,
            difficulty=difficulty,
            xp_value=xp_value,
            completed=completed,
            completed_at=completed_at,
            created_at=created_at,
            updated_at=created_at,
            scheduled_for=scheduled_for,
        )

    return _make


@pytest.fixture
def make_jar():
    """ACTIVE Jar 工厂"""

    def _make(current_xp: int = 0, target_xp: int = 100, user_id: str = "owner") -> Jar:
        return Jar(
            jar_id=str(ULID()),
            user_id=user_id,
            current_xp=current_xp,
            target_xp=target_xp,
            status=JarStatus.ACTIVE,
            created_at=NOW,
        )

    return _make


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator:
    """共享连接的 Store 实例组"""
    from taskjar.core.store import create_store_group

    group = await create_store_group(str(tmp_path / "sqlite" / "core_test.db"))
    yield group
    await group.conn.close()
