"""Jar 账本 -- XP 记账与封存/结转

所有函数均为同步纯计算：输入当前 Task/Jar 快照与显式传入的 Settings，
返回新的状态快照，不做任何 I/O。持久化由 store.transaction 在单个事务内完成，
因此一次完成（含连续封存）要么整体落盘，要么完全不落盘。

封存流程（对同一次入账循环执行，直到 current_xp < target_xp）：
1. 当前 Jar current_xp 截断为 target_xp，状态 ACTIVE -> SEALED，记录 completed_at
2. 溢出 XP = 入账后总量 - target_xp
3. 新建 ACTIVE Jar，target_xp 取当前设置，current_xp = 溢出 XP
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from ulid import ULID

from .exceptions import (
    LedgerInvariantError,
    TaskAlreadyCompletedError,
    TaskAlreadyCountedError,
    TaskValidationError,
)
from .models.enums import JarStatus, validate_transition
from .models.jar import Jar
from .models.settings import JAR_TARGET_MAX, JAR_TARGET_MIN, Settings
from .models.task import Task

log = structlog.get_logger()


@dataclass
class LedgerResult:
    """一次账本操作的结果快照

    Attributes:
        active_jar: 操作完成后唯一的 ACTIVE Jar
        sealed_jars: 本次操作中被封存的 Jar（按封存顺序）
        created_jars: 本次操作中新建的 Jar（最后一个即 active_jar）
        task: 被修改的任务（仅 complete_task 返回）
    """

    active_jar: Jar
    sealed_jars: list[Jar] = field(default_factory=list)
    created_jars: list[Jar] = field(default_factory=list)
    task: Task | None = None

    @property
    def touched_jars(self) -> list[Jar]:
        """需要持久化的全部 Jar（封存的 + 当前 ACTIVE）"""
        return [*self.sealed_jars, self.active_jar]


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


def new_jar(
    user_id: str,
    target_xp: int,
    current_xp: int = 0,
    now: datetime | None = None,
) -> Jar:
    """创建新的 ACTIVE Jar"""
    return Jar(
        jar_id=str(ULID()),
        user_id=user_id,
        current_xp=current_xp,
        target_xp=target_xp,
        status=JarStatus.ACTIVE,
        created_at=_now(now),
    )


def fresh_jar(user_id: str, settings: Settings, now: datetime | None = None) -> Jar:
    """按当前设置创建空 Jar（首次启动 / 清空数据后）"""
    return new_jar(user_id, settings.jar_target, 0, now)


def find_active_jar(jars: Iterable[Jar]) -> Jar | None:
    """返回唯一的 ACTIVE Jar

    Raises:
        LedgerInvariantError: 存在多个 ACTIVE Jar
    """
    active = [j for j in jars if j.status == JarStatus.ACTIVE]
    if len(active) > 1:
        raise LedgerInvariantError(
            f"expected exactly one active jar, found {len(active)}: "
            f"{[j.jar_id for j in active]}"
        )
    return active[0] if active else None


def ensure_active_jar(
    jars: Iterable[Jar],
    settings: Settings,
    user_id: str,
    now: datetime | None = None,
) -> tuple[Jar, bool]:
    """获取 ACTIVE Jar，不存在时按当前设置合成一个

    Returns:
        (jar, created) -- created=True 表示新合成、需要持久化
    """
    active = find_active_jar(jars)
    if active is not None:
        return active, False
    jar = fresh_jar(user_id, settings, now)
    log.info("active_jar_synthesized", user_id=user_id, jar_id=jar.jar_id)
    return jar, True


def _seal(jar: Jar, now: datetime) -> Jar:
    if not validate_transition(jar.status, JarStatus.SEALED):
        raise LedgerInvariantError(f"Cannot seal jar {jar.jar_id} in state {jar.status}")
    return Jar(
        **jar.model_dump(exclude={"current_xp", "status", "completed_at"}),
        current_xp=jar.target_xp,
        status=JarStatus.SEALED,
        completed_at=now,
    )


def _roll_over(
    jar: Jar,
    total_xp: int,
    jar_target: int,
    now: datetime,
) -> LedgerResult:
    """对 jar 入账 total_xp，循环封存直到剩余 XP 小于目标"""
    sealed: list[Jar] = []
    created: list[Jar] = []
    xp = total_xp
    while xp >= jar.target_xp:
        overflow = xp - jar.target_xp
        sealed_jar = _seal(jar, now)
        sealed.append(sealed_jar)
        log.info(
            "jar_sealed",
            jar_id=sealed_jar.jar_id,
            target_xp=sealed_jar.target_xp,
            overflow=overflow,
        )
        jar = new_jar(jar.user_id, jar_target, 0, now)
        created.append(jar)
        xp = overflow

    active = Jar(**jar.model_dump(exclude={"current_xp"}), current_xp=xp)
    if created:
        created[-1] = active
    return LedgerResult(active_jar=active, sealed_jars=sealed, created_jars=created)


def complete_task(
    task: Task,
    active_jar: Jar | None,
    settings: Settings,
    now: datetime | None = None,
) -> LedgerResult:
    """完成任务并入账

    Args:
        task: 待完成任务（必须未完成）
        active_jar: 当前 ACTIVE Jar
        settings: 当前设置（新 Jar 的 target_xp 取 settings.jar_target）
        now: 时间戳，默认当前 UTC 时间

    Returns:
        LedgerResult，task 为已完成的任务快照

    Raises:
        TaskAlreadyCompletedError: 任务已完成
        LedgerInvariantError: 缺少 ACTIVE Jar
    """
    if task.completed:
        raise TaskAlreadyCompletedError(task.task_id)
    if active_jar is None or active_jar.status != JarStatus.ACTIVE:
        raise LedgerInvariantError(
            f"No active jar available to record completion of task {task.task_id}"
        )

    ts = _now(now)
    completed_task = task.model_copy(
        update={"completed": True, "completed_at": ts, "updated_at": ts}
    )

    credited = active_jar.model_copy(
        update={"task_ids": [*active_jar.task_ids, task.task_id]}
    )
    new_xp = active_jar.current_xp + task.xp_value
    result = _roll_over(credited, new_xp, settings.jar_target, ts)
    result.task = completed_task

    log.info(
        "task_completed",
        task_id=task.task_id,
        xp_value=task.xp_value,
        jar_id=active_jar.jar_id,
        sealed_count=len(result.sealed_jars),
        active_xp=result.active_jar.current_xp,
    )
    return result


def on_jar_target_changed(
    active_jar: Jar,
    new_target: int,
    now: datetime | None = None,
) -> LedgerResult:
    """Jar 目标值变更：立即作用于 ACTIVE Jar，已封存 Jar 不受影响

    新目标不大于当前 XP 时，按同一封存流程结转，保持 current_xp <= target_xp。

    Raises:
        TaskValidationError: 目标值越界
        LedgerInvariantError: 传入的 Jar 不是 ACTIVE
    """
    if not JAR_TARGET_MIN <= new_target <= JAR_TARGET_MAX:
        raise TaskValidationError(
            f"jar target must be between {JAR_TARGET_MIN} and {JAR_TARGET_MAX}"
        )
    if active_jar.status != JarStatus.ACTIVE:
        raise LedgerInvariantError(f"Jar {active_jar.jar_id} is not active")

    retargeted = active_jar.model_copy(update={"target_xp": new_target})
    result = _roll_over(retargeted, active_jar.current_xp, new_target, _now(now))
    log.info(
        "jar_target_changed",
        jar_id=active_jar.jar_id,
        old_target=active_jar.target_xp,
        new_target=new_target,
        sealed_count=len(result.sealed_jars),
    )
    return result


def uncomplete_task(
    task: Task,
    jars: Iterable[Jar],
    now: datetime | None = None,
) -> Task:
    """撤销完成

    已计入任一 Jar 的任务不允许撤销（Jar 封存为终态，XP 不回退）。
    仅未计入 Jar 的已完成任务（例如批量导入时已完成）可以撤销。

    Raises:
        TaskAlreadyCountedError: 任务已计入 Jar
    """
    for jar in jars:
        if task.task_id in jar.task_ids:
            raise TaskAlreadyCountedError(task.task_id, jar.jar_id)
    if not task.completed:
        return task
    ts = _now(now)
    return task.model_copy(
        update={"completed": False, "completed_at": None, "updated_at": ts}
    )
