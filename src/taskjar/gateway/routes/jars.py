"""Jar 路由

GET /api/jars: Jar 历史（按创建时间正序）
GET /api/jars/current: 当前 ACTIVE Jar
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from taskjar.core.models import Jar, JarStatus

from ..deps import get_task_service, get_user_id
from ..services.task_service import TaskService

router = APIRouter()


class JarView(BaseModel):
    """Jar 响应视图，附带派生字段"""

    jar_id: str
    name: str
    current_xp: int
    target_xp: int
    status: JarStatus
    completed: bool
    fill_pct: int
    completed_at: datetime | None
    created_at: datetime
    task_ids: list[str]

    @classmethod
    def from_jar(cls, jar: Jar) -> "JarView":
        return cls(
            jar_id=jar.jar_id,
            name=jar.name,
            current_xp=jar.current_xp,
            target_xp=jar.target_xp,
            status=jar.status,
            completed=jar.completed,
            fill_pct=jar.fill_pct,
            completed_at=jar.completed_at,
            created_at=jar.created_at,
            task_ids=jar.task_ids,
        )


class JarListResponse(BaseModel):
    jars: list[JarView]
    total_xp: int


@router.get("/api/jars", response_model=JarListResponse)
async def list_jars(
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    """Jar 历史，缺少 ACTIVE Jar 时自动创建"""
    jars = await service.list_jars(user_id)
    return JarListResponse(
        jars=[JarView.from_jar(j) for j in jars],
        total_xp=sum(j.current_xp for j in jars),
    )


@router.get("/api/jars/current", response_model=JarView)
async def current_jar(
    user_id: str = Depends(get_user_id),
    service: TaskService = Depends(get_task_service),
):
    return JarView.from_jar(await service.get_current_jar(user_id))
