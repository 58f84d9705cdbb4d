"""设置路由

GET /api/settings: 当前设置（未保存过时返回默认值）
PUT /api/settings: 合并更新设置；jar_target 变化立即作用于 ACTIVE Jar
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from taskjar.core.models import Settings

from ..deps import get_task_service, get_user_id
from ..services.task_service import TaskService

router = APIRouter()


class XpValuesUpdate(BaseModel):
    light: int | None = None
    standard: int | None = None
    challenging: int | None = None


class SettingsUpdateRequest(BaseModel):
    """设置更新请求体，只更新显式提供的字段，范围校验在服务层完成"""

    student_name: str | None = None
    xp_values: XpValuesUpdate | None = None
    jar_target: int | None = None
    sound_enabled: bool | None = None
    theme: str | None = None


@router.get("/api/settings", response_model=Settings)
async def get_settings(
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    return await service.get_settings(user_id)


@router.put("/api/settings", response_model=Settings)
async def update_settings(
    body: SettingsUpdateRequest,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """更新设置

    - 200: 更新成功
    - 400: 取值越界（XP 1-100，jar_target 50-500）
    """
    return await service.update_settings(
        user_id, body.model_dump(exclude_unset=True, exclude_none=True)
    )
