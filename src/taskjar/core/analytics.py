"""完成率分析聚合器

只读：所有函数都是输入快照的纯函数，不修改任务或 Jar。
每次任务集合变化后全量重算（数据规模通常为数百条任务）。

日期归属规则：任务有 scheduled_for 时归属该日，否则归属 created_at
在给定时区下的本地日期。百分比取整为四舍五入（.5 向上）。
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta, tzinfo

from .config import get_timezone
from .exceptions import TaskValidationError
from .models.analytics import DailyCompletion, InsightPolicy, TaskBreakdown
from .models.enums import BreakdownDimension, Difficulty, Priority
from .models.task import Task

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

INSUFFICIENT_DATA = "Insufficient data"
NO_STRONG_PATTERN = "No strong pattern detected"


def _round_half_up(numerator: int, denominator: int) -> int:
    """非负整数除法，四舍五入（.5 向上）"""
    return (2 * numerator + denominator) // (2 * denominator)


def today_in(tz: tzinfo | None = None) -> date:
    """给定时区（默认配置时区）下的今天"""
    return datetime.now(tz or get_timezone()).date()


def last_n_days(n: int, today: date | None = None) -> list[date]:
    """以 today 结尾的连续 n 天，升序"""
    end = today or today_in()
    return [end - timedelta(days=i) for i in range(n - 1, -1, -1)]


def task_day(task: Task, tz: tzinfo | None = None) -> date:
    """任务归属的日历日"""
    if task.scheduled_for is not None:
        return task.scheduled_for
    return task.created_at.astimezone(tz or get_timezone()).date()


def daily_completion_series(
    tasks: Iterable[Task],
    window_days: int,
    today: date | None = None,
    tz: tzinfo | None = None,
) -> list[DailyCompletion]:
    """最近 window_days 天（含今天）的每日完成率

    Returns:
        恰好 window_days 条记录，最早的在前，无缺口；无任务的日期为 0
    """
    tz = tz or get_timezone()
    eligible: dict[date, int] = defaultdict(int)
    done: dict[date, int] = defaultdict(int)
    for task in tasks:
        day = task_day(task, tz)
        eligible[day] += 1
        if task.completed:
            done[day] += 1

    series = []
    for day in last_n_days(window_days, today or today_in(tz)):
        total = eligible.get(day, 0)
        pct = _round_half_up(100 * done.get(day, 0), total) if total else 0
        series.append(DailyCompletion(date_iso=day, completion_pct=pct))
    return series


def normalize_series(
    rows: Iterable[DailyCompletion],
    window_days: int,
    today: date | None = None,
) -> list[DailyCompletion]:
    """将已存储的每日记录对齐到窗口：补齐缺失日期为 0，百分比截断到 0-100"""
    by_day = {row.date_iso: row.completion_pct for row in rows}
    return [
        DailyCompletion(
            date_iso=day,
            completion_pct=max(0, min(100, by_day.get(day, 0))),
        )
        for day in last_n_days(window_days, today)
    ]


def streak(series: Sequence[DailyCompletion]) -> int:
    """从最近一天往回数连续完成率 > 0 的天数

    最近一天（今天）为 0 时连续记录视为中断，返回 0。
    """
    count = 0
    for row in reversed(series):
        if row.completion_pct > 0:
            count += 1
        else:
            break
    return count


def average_pct(series: Sequence[DailyCompletion]) -> int:
    """完成率算术平均，四舍五入；空序列为 0"""
    if not series:
        return 0
    return _round_half_up(sum(row.completion_pct for row in series), len(series))


def last_n(series: Sequence[DailyCompletion], n: int) -> list[DailyCompletion]:
    return list(series[-n:]) if n > 0 else []


def is_established(rows: Iterable[DailyCompletion], n: int = 7) -> bool:
    """已存储的每日记录是否覆盖至少 n 个不同日期（否则展示引导卡片）"""
    return len({row.date_iso for row in rows}) >= n


def heatmap_grid(
    series: Sequence[DailyCompletion],
    rows: int,
    cols: int,
) -> list[list[DailyCompletion]]:
    """将最近 rows*cols 天切分为 rows 组、每组 cols 个连续日期（最早在前）

    单元格与日期一一对应，不做聚合。序列短于 rows*cols 时末尾分组不满。
    """
    if rows <= 0 or cols <= 0:
        raise TaskValidationError("heatmap rows and cols must be positive")
    window = list(series[-rows * cols:])
    return [window[r * cols:(r + 1) * cols] for r in range(rows)]


def _categories(dimension: BreakdownDimension) -> list[str]:
    if dimension == BreakdownDimension.PRIORITY:
        return [p.value for p in Priority]
    return [d.value for d in Difficulty]


def breakdown_by_dimension(
    completed_tasks: Iterable[Task],
    dimension: BreakdownDimension,
    tz: tzinfo | None = None,
) -> TaskBreakdown:
    """按优先级或难度统计已完成任务，并生成完成时间的 24 小时直方图

    未完成的任务会被忽略。
    """
    dimension = BreakdownDimension(dimension)
    tz = tz or get_timezone()
    counts = {category: 0 for category in _categories(dimension)}
    hours = [0] * 24
    for task in completed_tasks:
        if not task.completed or task.completed_at is None:
            continue
        category = getattr(task, dimension.value).value
        counts[category] += 1
        hours[task.completed_at.astimezone(tz).hour] += 1
    return TaskBreakdown(dimension=dimension, counts=counts, hours=hours)


def average_completion_minutes(completed_tasks: Iterable[Task]) -> int | None:
    """创建到完成的平均耗时（分钟），无有效数据返回 None"""
    durations = [
        (task.completed_at - task.created_at).total_seconds()
        for task in completed_tasks
        if task.completed_at is not None
    ]
    durations = [d for d in durations if d > 0]
    if not durations:
        return None
    return round(sum(durations) / len(durations) / 60)


def _mean(values: Sequence[int]) -> float:
    return sum(values) / len(values)


def insights(
    series: Sequence[DailyCompletion],
    policy: InsightPolicy | None = None,
) -> list[str]:
    """基于完成率序列的启发式洞察文本（仅用于展示）

    规则：
    1. 数据不足（少于 min_days 天或全部为 0）-> "Insufficient data"
    2. 平均完成率最低的星期几低于 low_day_threshold_pct -> "<Weekday>s trend lower"
    3. 最近 trend_window_days 天与之前同长度窗口的均值差超过 trend_delta_pct -> 趋势提示
    4. 以上均未触发 -> "No strong pattern detected"
    """
    policy = policy or InsightPolicy()
    if len(series) < policy.min_days or not any(r.completion_pct > 0 for r in series):
        return [INSUFFICIENT_DATA]

    messages: list[str] = []

    by_weekday: dict[int, list[int]] = defaultdict(list)
    for row in series:
        by_weekday[row.date_iso.weekday()].append(row.completion_pct)
    lowest_avg, lowest_day = min(
        (_mean(values), weekday) for weekday, values in by_weekday.items()
    )
    if lowest_avg < policy.low_day_threshold_pct:
        messages.append(f"{WEEKDAY_NAMES[lowest_day]}s trend lower")

    window = policy.trend_window_days
    if len(series) >= 2 * window:
        pcts = [row.completion_pct for row in series]
        delta = _mean(pcts[-window:]) - _mean(pcts[-2 * window:-window])
        if delta > policy.trend_delta_pct:
            messages.append(
                f"Completion trending up: +{round(delta)} pts over the last {window} days"
            )
        elif delta < -policy.trend_delta_pct:
            messages.append(
                f"Completion trending down: {round(delta)} pts over the last {window} days"
            )

    return messages or [NO_STRONG_PATTERN]
