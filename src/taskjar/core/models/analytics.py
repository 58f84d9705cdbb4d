"""分析相关模型 -- 每日完成率、分类统计、洞察策略"""

from datetime import date

from pydantic import BaseModel, Field

from ..config import INSIGHT_LOW_DAY_PCT, INSIGHT_TREND_DELTA_PCT
from .enums import BreakdownDimension


class DailyCompletion(BaseModel):
    """单日完成率记录（派生数据）"""

    date_iso: date = Field(description="日历日期")
    completion_pct: int = Field(ge=0, le=100, description="完成百分比 0-100")


class TaskBreakdown(BaseModel):
    """已完成任务按维度的分类计数 + 24 小时分布"""

    dimension: BreakdownDimension
    counts: dict[str, int] = Field(description="类别 -> 完成数量，三个类别恒定存在")
    hours: list[int] = Field(description="按完成时间本地小时统计的 24 桶直方图")


class InsightPolicy(BaseModel):
    """洞察规则阈值，全部可配置"""

    low_day_threshold_pct: int = Field(default=INSIGHT_LOW_DAY_PCT, ge=0, le=100)
    trend_delta_pct: int = Field(default=INSIGHT_TREND_DELTA_PCT, ge=0, le=100)
    trend_window_days: int = Field(default=3, ge=1)
    min_days: int = Field(default=7, ge=1)
