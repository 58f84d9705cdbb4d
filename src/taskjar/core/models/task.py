"""Task Domain Model

completed 与 completed_at 必须同时存在或同时缺失。
xp_value 在创建时由难度和当前设置推导，之后不随设置变化。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import Difficulty, Priority


class Task(BaseModel):
    """Task 数据模型

    scheduled_for 存在时任务归属该日历日，否则归属 created_at 所在的本地日期。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    user_id: str = Field(default="owner", description="所属用户")
    name: str = Field(description="任务名称，非空")
    description: str = Field(default="", description="任务描述")
    priority: Priority = Field(default=Priority.SCHEDULED, description="优先级")
    difficulty: Difficulty = Field(default=Difficulty.STANDARD, description="难度")
    xp_value: int = Field(gt=0, description="完成奖励 XP")
    completed: bool = Field(default=False, description="是否已完成")
    completed_at: datetime | None = Field(default=None, description="完成时间")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    scheduled_for: date | None = Field(default=None, description="计划日期")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("task name must not be empty")
        return value

    @model_validator(mode="after")
    def _completion_consistent(self) -> "Task":
        if self.completed != (self.completed_at is not None):
            raise ValueError("completed must be set iff completed_at is set")
        return self
