"""分析路由

GET /api/analytics/summary: 完成率序列、连续天数、均值、热力图、分类统计与洞察
GET /api/analytics/daily-completion: 已存储的每日记录（对齐到分析窗口）
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from taskjar.core.models import DailyCompletion

from ..deps import get_analytics_service, get_user_id
from ..services.analytics_service import AnalyticsService, AnalyticsSummary

router = APIRouter()


class DailyCompletionResponse(BaseModel):
    days: list[DailyCompletion]


@router.get("/api/analytics/summary", response_model=AnalyticsSummary)
async def summary(
    user_id: str = Depends(get_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await service.summary(user_id)


@router.get("/api/analytics/daily-completion", response_model=DailyCompletionResponse)
async def daily_completion(
    user_id: str = Depends(get_user_id),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return DailyCompletionResponse(days=await service.stored_daily_completion(user_id))
