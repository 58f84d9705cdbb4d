"""任务生成路由

POST /api/generate-tasks: prompt -> 候选任务
POST /api/generate-weekly-tasks: prompt + 7 天窗口 -> 带计划日期的候选任务

生成服务失败或响应无法解析时返回占位列表（is_fallback=true），不返回 5xx。
"""

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from ..deps import get_generation_service, get_task_service, get_user_id
from ..services.generation_service import GenerationResult, GenerationService
from ..services.task_service import TaskService

router = APIRouter()


class GenerateRequest(BaseModel):
    prompt: str | None = Field(default=None, description="自然语言描述")


class GenerateWeeklyRequest(GenerateRequest):
    week_window: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("week_window", "weekWindow"),
        description="7 个 ISO 日期",
    )


@router.post("/api/generate-tasks", response_model=GenerationResult)
async def generate_tasks(
    body: GenerateRequest,
    user_id: str = Depends(get_user_id),
    tasks: TaskService = Depends(get_task_service),
    generation: GenerationService = Depends(get_generation_service),
):
    """生成单日任务

    - 200: 候选任务列表
    - 400: 缺少 prompt
    """
    settings = await tasks.get_settings(user_id)
    return await generation.generate_daily(body.prompt, settings)


@router.post("/api/generate-weekly-tasks", response_model=GenerationResult)
async def generate_weekly_tasks(
    body: GenerateWeeklyRequest,
    user_id: str = Depends(get_user_id),
    tasks: TaskService = Depends(get_task_service),
    generation: GenerationService = Depends(get_generation_service),
):
    """生成周计划任务

    - 200: 候选任务列表，scheduled_for 均落在窗口内
    - 400: 缺少 prompt 或窗口不是 7 个合法日期
    """
    settings = await tasks.get_settings(user_id)
    return await generation.generate_weekly(body.prompt, body.week_window, settings)
