"""GenerationService -- 自然语言 -> 候选任务

输入校验失败（缺少 prompt、周窗口非法）直接抛出 TaskValidationError；
生成服务不可用或响应无法解析时降级为确定性占位列表，不向调用方抛出。
"""

from collections.abc import Sequence
from datetime import date

import structlog
from pydantic import BaseModel, Field
from taskjar.core.exceptions import GenerationParseError
from taskjar.core.generation import (
    build_daily_messages,
    build_weekly_messages,
    clamp_scheduled_dates,
    fallback_drafts,
    parse_generated_tasks,
    to_drafts,
    validate_week_window,
)
from taskjar.core.models import Settings, TaskDraft
from taskjar.provider import FallbackManager, GenerationKind, ProviderError

log = structlog.get_logger()


class GenerationResult(BaseModel):
    """一次生成请求的结果"""

    tasks: list[TaskDraft] = Field(description="候选任务（内部词汇）")
    is_fallback: bool = Field(default=False, description="是否使用了降级路径")
    fallback_reason: str = Field(default="", description="降级原因")


class GenerationService:
    """任务生成服务"""

    def __init__(
        self,
        fallback_manager: FallbackManager,
        model_alias: str = "main",
    ) -> None:
        self._fallback_manager = fallback_manager
        self._model_alias = model_alias

    async def generate_daily(self, prompt: str | None, settings: Settings) -> GenerationResult:
        """生成单日任务

        Raises:
            TaskValidationError: prompt 为空
        """
        messages = build_daily_messages(prompt)
        return await self._generate(messages, prompt, settings)

    async def generate_weekly(
        self,
        prompt: str | None,
        week_window: Sequence[date | str] | None,
        settings: Settings,
    ) -> GenerationResult:
        """生成周计划任务，日期归一到 7 天窗口内

        Raises:
            TaskValidationError: prompt 为空或周窗口不是 7 个合法日期
        """
        window = validate_week_window(week_window)
        messages = build_weekly_messages(prompt, window)
        return await self._generate(messages, prompt, settings, window)

    async def _generate(
        self,
        messages: list[dict[str, str]],
        prompt: str,
        settings: Settings,
        window: list[date] | None = None,
    ) -> GenerationResult:
        try:
            result = await self._fallback_manager.call_with_fallback(
                messages=messages,
                model_alias=self._model_alias,
                kind=GenerationKind.DAILY if window is None else GenerationKind.WEEKLY,
            )
            generated = parse_generated_tasks(result.content)
        except (ProviderError, GenerationParseError) as e:
            log.warning(
                "generation_degraded_to_placeholder",
                error=str(e),
                error_type=type(e).__name__,
            )
            return GenerationResult(
                tasks=fallback_drafts(prompt, settings, window),
                is_fallback=True,
                fallback_reason=str(e),
            )

        if window is not None:
            generated = clamp_scheduled_dates(generated, window)
        drafts = to_drafts(generated, settings)
        log.info(
            "tasks_generated",
            count=len(drafts),
            weekly=window is not None,
            is_fallback=result.is_fallback,
        )
        return GenerationResult(
            tasks=drafts,
            is_fallback=result.is_fallback,
            fallback_reason=result.fallback_reason,
        )
