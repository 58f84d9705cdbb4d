"""优先级/难度词汇映射表

生成服务使用 low/medium/high 与 easy/moderate/hard，
内部使用 urgent/scheduled/optional 与 light/standard/challenging。
所有跨越外部词汇边界的调用点统一使用本模块；映射是全函数：
无法识别的值落到中间档（scheduled / standard）并记录告警。
"""

import structlog

from .models.enums import Difficulty, ExternalDifficulty, ExternalPriority, Priority

log = structlog.get_logger()

PRIORITY_FROM_EXTERNAL: dict[ExternalPriority, Priority] = {
    ExternalPriority.LOW: Priority.OPTIONAL,
    ExternalPriority.MEDIUM: Priority.SCHEDULED,
    ExternalPriority.HIGH: Priority.URGENT,
}

DIFFICULTY_FROM_EXTERNAL: dict[ExternalDifficulty, Difficulty] = {
    ExternalDifficulty.EASY: Difficulty.LIGHT,
    ExternalDifficulty.MODERATE: Difficulty.STANDARD,
    ExternalDifficulty.HARD: Difficulty.CHALLENGING,
}

PRIORITY_TO_EXTERNAL: dict[Priority, ExternalPriority] = {
    v: k for k, v in PRIORITY_FROM_EXTERNAL.items()
}

DIFFICULTY_TO_EXTERNAL: dict[Difficulty, ExternalDifficulty] = {
    v: k for k, v in DIFFICULTY_FROM_EXTERNAL.items()
}

DEFAULT_PRIORITY = Priority.SCHEDULED
DEFAULT_DIFFICULTY = Difficulty.STANDARD

_PRIORITY_VALUES = {p.value for p in Priority}
_EXTERNAL_PRIORITY_VALUES = {p.value for p in ExternalPriority}
_DIFFICULTY_VALUES = {d.value for d in Difficulty}
_EXTERNAL_DIFFICULTY_VALUES = {d.value for d in ExternalDifficulty}


def _normalize(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def map_priority(value: object) -> Priority:
    """外部或内部优先级词汇 -> 内部 Priority

    Args:
        value: 任意输入（大小写、首尾空白不敏感）

    Returns:
        Priority，无法识别时返回 scheduled
    """
    key = _normalize(value)
    if key in _PRIORITY_VALUES:
        return Priority(key)
    if key in _EXTERNAL_PRIORITY_VALUES:
        return PRIORITY_FROM_EXTERNAL[ExternalPriority(key)]
    log.warning("unknown_priority_value", value=value, fallback=DEFAULT_PRIORITY.value)
    return DEFAULT_PRIORITY


def map_difficulty(value: object) -> Difficulty:
    """外部或内部难度词汇 -> 内部 Difficulty

    Args:
        value: 任意输入（大小写、首尾空白不敏感）

    Returns:
        Difficulty，无法识别时返回 standard
    """
    key = _normalize(value)
    if key in _DIFFICULTY_VALUES:
        return Difficulty(key)
    if key in _EXTERNAL_DIFFICULTY_VALUES:
        return DIFFICULTY_FROM_EXTERNAL[ExternalDifficulty(key)]
    log.warning(
        "unknown_difficulty_value", value=value, fallback=DEFAULT_DIFFICULTY.value
    )
    return DEFAULT_DIFFICULTY


def to_external_priority(priority: Priority) -> ExternalPriority:
    return PRIORITY_TO_EXTERNAL[Priority(priority)]


def to_external_difficulty(difficulty: Difficulty) -> ExternalDifficulty:
    return DIFFICULTY_TO_EXTERNAL[Difficulty(difficulty)]
