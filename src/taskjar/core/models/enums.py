"""枚举定义

包含任务优先级/难度（内部词汇与生成服务的外部词汇）、Jar 状态机、
分析维度枚举，以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class Priority(StrEnum):
    """任务优先级（内部词汇）"""

    URGENT = "urgent"
    SCHEDULED = "scheduled"
    OPTIONAL = "optional"


class Difficulty(StrEnum):
    """任务难度（内部词汇），决定 XP"""

    LIGHT = "light"
    STANDARD = "standard"
    CHALLENGING = "challenging"


class ExternalPriority(StrEnum):
    """生成服务返回的优先级词汇"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExternalDifficulty(StrEnum):
    """生成服务返回的难度词汇"""

    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


class JarStatus(StrEnum):
    """Jar 状态机：ACTIVE -> SEALED（终态）"""

    ACTIVE = "ACTIVE"
    SEALED = "SEALED"


VALID_TRANSITIONS: dict[JarStatus, set[JarStatus]] = {
    JarStatus.ACTIVE: {JarStatus.SEALED},
    # 终态不可再流转
    JarStatus.SEALED: set(),
}

TERMINAL_STATES: set[JarStatus] = {JarStatus.SEALED}


class BreakdownDimension(StrEnum):
    """完成任务分类统计维度"""

    PRIORITY = "priority"
    DIFFICULTY = "difficulty"


def validate_transition(from_status: JarStatus, to_status: JarStatus) -> bool:
    """验证 Jar 状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
