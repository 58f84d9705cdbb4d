"""TaskJar Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .analytics import DailyCompletion, InsightPolicy, TaskBreakdown
from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    BreakdownDimension,
    Difficulty,
    ExternalDifficulty,
    ExternalPriority,
    JarStatus,
    Priority,
    validate_transition,
)
from .generation import GeneratedTask, TaskDraft
from .jar import Jar
from .settings import Settings, XpValues
from .task import Task

__all__ = [
    # 枚举
    "Priority",
    "Difficulty",
    "ExternalPriority",
    "ExternalDifficulty",
    "JarStatus",
    "BreakdownDimension",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # Task / Jar
    "Task",
    "Jar",
    # Settings
    "Settings",
    "XpValues",
    # Analytics
    "DailyCompletion",
    "TaskBreakdown",
    "InsightPolicy",
    # Generation
    "GeneratedTask",
    "TaskDraft",
]
