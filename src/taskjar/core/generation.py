"""任务生成辅助函数

生成服务本身在 provider 层；这里只负责：
- 构造发送给生成服务的消息（原样透传用户输入）
- 解析响应为 GeneratedTask 列表
- 周计划日期归一到 7 天窗口内
- 外部词汇映射为内部 TaskDraft
- 生成失败时的确定性占位列表
"""

import json
import math
import re
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

import structlog
from pydantic import ValidationError

from .config import TASK_NAME_MAX_LENGTH
from .exceptions import GenerationParseError, TaskValidationError
from .models.generation import GeneratedTask, TaskDraft
from .models.settings import Settings
from .vocabulary import DEFAULT_DIFFICULTY, DEFAULT_PRIORITY, map_difficulty, map_priority

log = structlog.get_logger()

WEEK_LENGTH = 7

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

DAILY_SYSTEM_PROMPT = """You are an expert task manager. Based on the user's input, generate a list of tasks.
For each task, provide a name, a brief description, a priority, and a difficulty.
The priority can be one of: "low", "medium", "high".
The difficulty can be one of: "easy", "moderate", "hard".

Return the output as a valid JSON array of objects. Each object should have the following properties: "name", "description", "priority", "difficulty"."""

WEEKLY_SYSTEM_PROMPT = """You are an expert task manager. Based on the user's input, generate a list of tasks for the week.

Available dates for this week:
{dates}

For each task, provide:
- scheduledDate: one of the ISO dates above (YYYY-MM-DD format)
- name: a clear, concise task name
- description: a brief description (optional)
- priority: "low", "medium", or "high"
- difficulty: "easy", "moderate", or "hard"

Distribute tasks evenly across the week. If the user mentions specific days, use the corresponding ISO date.
If no specific day is mentioned, distribute tasks logically across the week.

Return the output as a valid JSON array of objects. Each object should have: "scheduledDate", "name", "description", "priority", "difficulty"."""

FALLBACK_DESCRIPTION = "Placeholder created while task generation was unavailable"
FALLBACK_TASK_NAME = "Plan next steps"


def _require_prompt(prompt: str | None) -> str:
    if prompt is None or not prompt.strip():
        raise TaskValidationError("Prompt is required")
    return prompt


def build_daily_messages(prompt: str) -> list[dict[str, str]]:
    """构造单日任务生成消息

    Raises:
        TaskValidationError: prompt 为空
    """
    prompt = _require_prompt(prompt)
    return [
        {"role": "system", "content": DAILY_SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]


def build_weekly_messages(prompt: str, window: Sequence[date]) -> list[dict[str, str]]:
    """构造周计划任务生成消息，列出窗口内每天的星期名与 ISO 日期"""
    prompt = _require_prompt(prompt)
    window = validate_week_window(window)
    dates = "\n".join(f"{d.strftime('%A')}: {d.isoformat()}" for d in window)
    return [
        {"role": "system", "content": WEEKLY_SYSTEM_PROMPT.format(dates=dates)},
        {"role": "user", "content": prompt},
    ]


def week_window(start: date) -> list[date]:
    """从 start 开始的连续 7 天"""
    return [start + timedelta(days=i) for i in range(WEEK_LENGTH)]


def validate_week_window(values: Sequence[Any]) -> list[date]:
    """校验周窗口：恰好 7 个合法日期（date 或 ISO 字符串）

    Raises:
        TaskValidationError: 长度不为 7 或存在非法日期
    """
    if values is None or len(values) != WEEK_LENGTH:
        raise TaskValidationError("Valid week window with 7 dates is required")
    window: list[date] = []
    for value in values:
        if isinstance(value, date):
            window.append(value)
            continue
        try:
            window.append(date.fromisoformat(str(value)))
        except ValueError as e:
            raise TaskValidationError(f"Invalid date in week window: {value!r}") from e
    return window


def parse_generated_tasks(text: str | None) -> list[GeneratedTask]:
    """解析生成服务响应

    接受 JSON 数组或 {"tasks": [...]}，允许 markdown 代码块包裹。
    非对象元素被跳过。

    Raises:
        GenerationParseError: 非 JSON、结构不符或没有任何任务
    """
    if not text:
        raise GenerationParseError("Empty generation response")
    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise GenerationParseError(f"Generation response is not valid JSON: {e}") from e

    if isinstance(payload, dict) and isinstance(payload.get("tasks"), list):
        payload = payload["tasks"]
    if not isinstance(payload, list):
        raise GenerationParseError(
            f"Generation response must be a JSON array, got {type(payload).__name__}"
        )

    tasks: list[GeneratedTask] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            log.warning("generated_task_skipped", index=index, reason="not_an_object")
            continue
        try:
            tasks.append(GeneratedTask.model_validate(item))
        except ValidationError as e:
            log.warning("generated_task_skipped", index=index, reason=str(e))
    if not tasks:
        raise GenerationParseError("Generation response contained no tasks")
    return tasks


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def _spread_index(index: int, total: int) -> int:
    """按序号把 total 个任务均匀分布到 7 天"""
    per_day = math.ceil(total / WEEK_LENGTH)
    return min(index // per_day, WEEK_LENGTH - 1)


def clamp_scheduled_dates(
    tasks: Sequence[GeneratedTask],
    window: Sequence[date],
) -> list[GeneratedTask]:
    """把缺失或窗口外的 scheduled_date 替换为按序号均匀分布的窗口日期

    窗口内的合法日期保持不变。
    """
    window = validate_week_window(window)
    allowed = set(window)
    total = len(tasks)
    clamped: list[GeneratedTask] = []
    for index, task in enumerate(tasks):
        scheduled = _parse_date(task.scheduled_date)
        if scheduled not in allowed:
            scheduled = window[_spread_index(index, total)]
        clamped.append(task.model_copy(update={"scheduled_date": scheduled.isoformat()}))
    return clamped


def to_drafts(tasks: Sequence[GeneratedTask], settings: Settings) -> list[TaskDraft]:
    """外部词汇 -> 内部 TaskDraft，XP 按当前设置推导"""
    drafts: list[TaskDraft] = []
    for index, task in enumerate(tasks):
        name = (task.name or "").strip()[:TASK_NAME_MAX_LENGTH] or f"Task {index + 1}"
        difficulty = map_difficulty(task.difficulty)
        drafts.append(
            TaskDraft(
                name=name,
                description=(task.description or "").strip(),
                priority=map_priority(task.priority),
                difficulty=difficulty,
                xp_value=settings.xp_values.for_difficulty(difficulty),
                scheduled_for=_parse_date(task.scheduled_date),
            )
        )
    return drafts


def fallback_drafts(
    prompt: str | None,
    settings: Settings,
    window: Sequence[date] | None = None,
) -> list[TaskDraft]:
    """生成失败时的占位任务列表，保证非空且不抛异常

    用户输入的每个非空行成为一个任务；提供周窗口时按序号均匀分布日期。
    """
    lines = [line.strip() for line in (prompt or "").splitlines() if line.strip()]
    names = [line[:TASK_NAME_MAX_LENGTH] for line in lines] or [FALLBACK_TASK_NAME]
    dates = list(window) if window is not None and len(window) == WEEK_LENGTH else None
    xp_value = settings.xp_values.for_difficulty(DEFAULT_DIFFICULTY)
    return [
        TaskDraft(
            name=name,
            description=FALLBACK_DESCRIPTION,
            priority=DEFAULT_PRIORITY,
            difficulty=DEFAULT_DIFFICULTY,
            xp_value=xp_value,
            scheduled_for=dates[_spread_index(index, len(names))] if dates else None,
        )
        for index, name in enumerate(names)
    ]
