"""数据管理路由

POST /api/data/clear: 清空任务、Jar 与每日记录（需输入确认短语），保留设置
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..deps import get_task_service, get_user_id
from ..services.task_service import TaskService
from .jars import JarView

router = APIRouter()


class ClearDataRequest(BaseModel):
    confirmation: str = Field(default="", description="确认短语")


class ClearDataResponse(BaseModel):
    cleared: bool
    active_jar: JarView


@router.post("/api/data/clear", response_model=ClearDataResponse)
async def clear_data(
    body: ClearDataRequest,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """清空数据

    - 200: 已清空，返回新的空 Jar
    - 400: 确认短语不匹配
    """
    jar = await service.clear_all_data(user_id, body.confirmation)
    return ClearDataResponse(cleared=True, active_jar=JarView.from_jar(jar))
