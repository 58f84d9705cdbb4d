"""AnalyticsService -- 完成率仪表盘数据组装

每次请求基于任务快照全量重算，不做增量缓存。
"""

from datetime import date, tzinfo

from pydantic import BaseModel, Field
from taskjar.core import analytics
from taskjar.core.config import (
    ANALYTICS_WINDOW_DAYS,
    HEATMAP_COLS,
    HEATMAP_ROWS,
    RECENT_AVERAGE_DAYS,
    get_timezone,
)
from taskjar.core.models import (
    BreakdownDimension,
    DailyCompletion,
    InsightPolicy,
    TaskBreakdown,
)
from taskjar.core.store import StoreGroup


class AnalyticsSummary(BaseModel):
    """仪表盘汇总"""

    today: date
    today_pct: int = Field(description="今天的完成率")
    streak: int = Field(description="连续完成天数")
    seven_day_average: int = Field(description="最近 7 天平均完成率")
    forecast_pct: int = Field(description="未来 7 天预测完成率（最近 7 天均值）")
    window_average: int = Field(description="整个窗口平均完成率")
    established: bool = Field(description="数据是否足以展示完整分析")
    completed_count: int = Field(description="已完成任务总数")
    average_completion_minutes: int | None = Field(
        default=None, description="创建到完成的平均耗时（分钟）"
    )
    series: list[DailyCompletion]
    heatmap: list[list[DailyCompletion]]
    breakdowns: list[TaskBreakdown]
    insights: list[str]


class AnalyticsService:
    """完成率分析服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        tz: tzinfo | None = None,
        policy: InsightPolicy | None = None,
        window_days: int = ANALYTICS_WINDOW_DAYS,
        heatmap_rows: int = HEATMAP_ROWS,
        heatmap_cols: int = HEATMAP_COLS,
    ) -> None:
        self._stores = store_group
        self._tz = tz or get_timezone()
        self._policy = policy or InsightPolicy()
        self._window_days = window_days
        self._heatmap_rows = heatmap_rows
        self._heatmap_cols = heatmap_cols

    async def summary(self, user_id: str, today: date | None = None) -> AnalyticsSummary:
        today = today or analytics.today_in(self._tz)
        tasks = await self._stores.task_store.list_tasks(user_id)
        stored = await self._stores.daily_store.list_daily_completion(user_id)
        completed = [t for t in tasks if t.completed]

        heatmap_days = max(self._window_days, self._heatmap_rows * self._heatmap_cols)
        long_series = analytics.daily_completion_series(
            tasks, heatmap_days, today=today, tz=self._tz
        )
        series = long_series[-self._window_days:]
        recent = analytics.last_n(series, RECENT_AVERAGE_DAYS)

        return AnalyticsSummary(
            today=today,
            today_pct=series[-1].completion_pct if series else 0,
            streak=analytics.streak(series),
            seven_day_average=analytics.average_pct(recent),
            forecast_pct=analytics.average_pct(recent),
            window_average=analytics.average_pct(series),
            established=analytics.is_established(stored, RECENT_AVERAGE_DAYS),
            completed_count=len(completed),
            average_completion_minutes=analytics.average_completion_minutes(completed),
            series=series,
            heatmap=analytics.heatmap_grid(
                long_series, self._heatmap_rows, self._heatmap_cols
            ),
            breakdowns=[
                analytics.breakdown_by_dimension(completed, dimension, self._tz)
                for dimension in BreakdownDimension
            ],
            insights=analytics.insights(series, self._policy),
        )

    async def stored_daily_completion(
        self,
        user_id: str,
        today: date | None = None,
    ) -> list[DailyCompletion]:
        """已存储的每日记录，对齐到分析窗口"""
        today = today or analytics.today_in(self._tz)
        rows = await self._stores.daily_store.list_daily_completion(user_id)
        return analytics.normalize_series(rows, self._window_days, today)
