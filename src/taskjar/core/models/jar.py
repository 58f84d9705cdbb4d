"""Jar Domain Model

Jar 是有上限的 XP 容器。ACTIVE 状态下 current_xp < target_xp，
达到上限即封存（SEALED，终态），封存后 current_xp == target_xp 且不再变化。
同一用户任意时刻恰好有一个 ACTIVE Jar。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import JarStatus


class Jar(BaseModel):
    """Jar 数据模型"""

    jar_id: str = Field(description="唯一标识，ULID 格式")
    user_id: str = Field(default="owner", description="所属用户")
    name: str = Field(default="", description="Jar 名称")
    current_xp: int = Field(default=0, ge=0, description="当前 XP")
    target_xp: int = Field(gt=0, description="目标 XP（上限）")
    status: JarStatus = Field(default=JarStatus.ACTIVE, description="当前状态")
    completed_at: datetime | None = Field(default=None, description="封存时间")
    task_ids: list[str] = Field(
        default_factory=list,
        description="贡献 XP 的任务 ID（集合语义，顺序无关）",
    )
    created_at: datetime = Field(description="创建时间")

    @property
    def completed(self) -> bool:
        return self.status == JarStatus.SEALED

    @property
    def fill_pct(self) -> int:
        """填充百分比（0-100）"""
        return min(100, (200 * self.current_xp + self.target_xp) // (2 * self.target_xp))

    @field_validator("task_ids")
    @classmethod
    def _dedupe_task_ids(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @model_validator(mode="after")
    def _cap_invariant(self) -> "Jar":
        if self.current_xp > self.target_xp:
            raise ValueError("current_xp must not exceed target_xp")
        if self.status == JarStatus.SEALED:
            if self.current_xp != self.target_xp:
                raise ValueError("sealed jar must hold exactly target_xp")
            if self.completed_at is None:
                raise ValueError("sealed jar requires completed_at")
        elif self.completed_at is not None:
            raise ValueError("active jar must not have completed_at")
        return self
