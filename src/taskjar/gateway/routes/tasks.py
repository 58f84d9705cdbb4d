"""任务路由

GET    /api/tasks: 任务列表，支持 day / completed 筛选
POST   /api/tasks: 创建任务
POST   /api/tasks/import: 批量导入候选任务
GET    /api/tasks/{task_id}: 任务详情
PATCH  /api/tasks/{task_id}: 编辑任务
DELETE /api/tasks/{task_id}: 删除任务
POST   /api/tasks/{task_id}/complete: 完成并入账
POST   /api/tasks/{task_id}/uncomplete: 撤销完成（仅限未计入 Jar 的任务）
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field
from starlette.responses import JSONResponse, Response
from taskjar.core.models import Task

from ..deps import get_task_service, get_user_id
from ..services.task_service import TaskService
from .jars import JarView

router = APIRouter()


class TaskCreateRequest(BaseModel):
    """创建任务请求体，priority/difficulty 接受内部或外部词汇"""

    name: str = Field(default="", description="任务名称")
    description: str = Field(default="", description="任务描述")
    priority: str | None = Field(default=None, description="优先级")
    difficulty: str | None = Field(default=None, description="难度")
    scheduled_for: date | None = Field(
        default=None,
        validation_alias=AliasChoices("scheduled_for", "scheduledFor", "scheduled_date"),
        description="计划日期",
    )


class TaskImportItem(TaskCreateRequest):
    """批量导入条目"""

    completed: bool = Field(default=False, description="导入时是否已完成（不计入 Jar）")


class TaskImportRequest(BaseModel):
    tasks: list[TaskImportItem]


class TaskUpdateRequest(BaseModel):
    """编辑任务请求体，只更新显式提供的字段"""

    name: str | None = None
    description: str | None = None
    priority: str | None = None
    difficulty: str | None = None
    scheduled_for: date | None = Field(
        default=None,
        validation_alias=AliasChoices("scheduled_for", "scheduledFor", "scheduled_date"),
    )


class TaskListResponse(BaseModel):
    tasks: list[Task]


class CompletionResponse(BaseModel):
    """完成任务响应"""

    task: Task
    active_jar: JarView
    sealed_jars: list[JarView]


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    day: date | None = Query(default=None, description="按归属日期筛选"),
    completed: bool | None = Query(default=None, description="按完成状态筛选"),
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """查询任务列表，按 created_at 正序"""
    tasks = await service.list_tasks(user_id, day=day, completed=completed)
    return TaskListResponse(tasks=tasks)


@router.post("/api/tasks")
async def create_task(
    body: TaskCreateRequest,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """创建任务 -- 201 Created"""
    task = await service.create_task(
        user_id,
        name=body.name,
        description=body.description,
        priority=body.priority,
        difficulty=body.difficulty,
        scheduled_for=body.scheduled_for,
    )
    return JSONResponse(status_code=201, content=task.model_dump(mode="json"))


@router.post("/api/tasks/import")
async def import_tasks(
    body: TaskImportRequest,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """批量导入候选任务（单事务，任一条目非法则整体拒绝）"""
    tasks = await service.import_tasks(
        user_id, [item.model_dump() for item in body.tasks]
    )
    return JSONResponse(
        status_code=201,
        content=TaskListResponse(tasks=tasks).model_dump(mode="json"),
    )


@router.get("/api/tasks/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    return await service.get_task(user_id, task_id)


@router.patch("/api/tasks/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    return await service.update_task(
        user_id, task_id, body.model_dump(exclude_unset=True)
    )


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """删除任务 -- 204 No Content"""
    await service.delete_task(user_id, task_id)
    return Response(status_code=204)


@router.post("/api/tasks/{task_id}/complete", response_model=CompletionResponse)
async def complete_task(
    task_id: str,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """完成任务并入账

    - 200: 完成成功，返回当前 ACTIVE Jar 与本次封存的 Jar
    - 404: 任务不存在
    - 409: 任务已完成
    """
    result = await service.complete_task(user_id, task_id)
    return CompletionResponse(
        task=result.task,
        active_jar=JarView.from_jar(result.active_jar),
        sealed_jars=[JarView.from_jar(j) for j in result.sealed_jars],
    )


@router.post("/api/tasks/{task_id}/uncomplete", response_model=Task)
async def uncomplete_task(
    task_id: str,
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """撤销完成

    - 200: 撤销成功
    - 404: 任务不存在
    - 409: 任务 XP 已计入 Jar
    """
    return await service.uncomplete_task(user_id, task_id)
