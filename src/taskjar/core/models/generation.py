"""任务生成模型

GeneratedTask 保留生成服务的外部词汇且容忍任意脏数据；
TaskDraft 是映射到内部词汇、可直接导入的候选任务。
"""

from datetime import date
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from .enums import Difficulty, Priority


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class GeneratedTask(BaseModel):
    """生成服务返回的单条任务（外部词汇）"""

    name: str | None = None
    description: str | None = None
    priority: str | None = None
    difficulty: str | None = None
    scheduled_date: str | None = Field(
        default=None,
        validation_alias=AliasChoices("scheduled_date", "scheduledDate"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _as_text(value)


class TaskDraft(BaseModel):
    """候选任务（内部词汇）"""

    name: str = Field(min_length=1, description="任务名称")
    description: str = Field(default="", description="任务描述")
    priority: Priority = Field(description="优先级")
    difficulty: Difficulty = Field(description="难度")
    xp_value: int = Field(gt=0, description="按当前设置推导的 XP")
    scheduled_for: date | None = Field(default=None, description="计划日期")
