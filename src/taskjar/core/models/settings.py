"""Settings Domain Model -- 每个用户一份

XP 映射与 Jar 目标值作为只读配置显式传入账本运算。
取值范围越界属于校验错误，不做静默截断。
"""

from pydantic import BaseModel, Field

from .enums import Difficulty

XP_VALUE_MIN = 1
XP_VALUE_MAX = 100
JAR_TARGET_MIN = 50
JAR_TARGET_MAX = 500


class XpValues(BaseModel):
    """难度 -> XP 映射"""

    light: int = Field(default=5, ge=XP_VALUE_MIN, le=XP_VALUE_MAX)
    standard: int = Field(default=10, ge=XP_VALUE_MIN, le=XP_VALUE_MAX)
    challenging: int = Field(default=15, ge=XP_VALUE_MIN, le=XP_VALUE_MAX)

    def for_difficulty(self, difficulty: Difficulty) -> int:
        return getattr(self, Difficulty(difficulty).value)


class Settings(BaseModel):
    """用户设置"""

    student_name: str = Field(default="Student", description="显示名称")
    xp_values: XpValues = Field(default_factory=XpValues, description="难度 XP 映射")
    jar_target: int = Field(
        default=100,
        ge=JAR_TARGET_MIN,
        le=JAR_TARGET_MAX,
        description="新 Jar 的目标 XP",
    )
    sound_enabled: bool = Field(default=True, description="是否启用音效")
    theme: str = Field(default="dark", description="界面主题")
