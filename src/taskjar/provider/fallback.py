"""FallbackManager -- 任务生成降级链

每次生成请求按顺序尝试链上的客户端（LiteLLMClient -> OfflineMessageAdapter），
第一个成功的结果即返回。不缓存降级状态，primary 恢复后下一次请求自动回到 primary。
"""

from enum import StrEnum

import structlog

from .exceptions import ProviderError
from .models import ModelCallResult

log = structlog.get_logger()


class GenerationKind(StrEnum):
    """生成请求类型，随降级日志与 fallback_reason 一并输出"""

    DAILY = "daily"
    WEEKLY = "weekly"


class FallbackManager:
    """生成请求降级管理器"""

    def __init__(self, primary, fallback=None) -> None:
        """
        Args:
            primary: 主客户端（LiteLLMClient 或 OfflineMessageAdapter）
            fallback: 降级客户端，None 表示无降级
        """
        self._chain = [("primary", primary)]
        if fallback is not None:
            self._chain.append(("fallback", fallback))

    @property
    def has_fallback(self) -> bool:
        return len(self._chain) > 1

    async def call_with_fallback(
        self,
        messages: list[dict[str, str]],
        model_alias: str = "main",
        kind: GenerationKind | str = GenerationKind.DAILY,
        **kwargs,
    ) -> ModelCallResult:
        """按降级链生成任务列表文本

        额外 kwargs 只传给 primary。

        Returns:
            ModelCallResult
            - primary 成功: is_fallback=False
            - fallback 成功: is_fallback=True, fallback_reason 含生成类型与 primary 错误

        Raises:
            ProviderError: 链上所有客户端都失败（recoverable=False）
        """
        kind = GenerationKind(kind)
        errors: list[tuple[str, Exception]] = []

        for label, client in self._chain:
            call_kwargs = kwargs if label == "primary" else {}
            try:
                result = await client.complete(
                    messages=messages, model_alias=model_alias, **call_kwargs
                )
            except Exception as e:
                errors.append((label, e))
                log.warning(
                    "generation_client_failed",
                    client=label,
                    generation_kind=kind.value,
                    model_alias=model_alias,
                    error=str(e),
                    remaining=len(self._chain) - len(errors),
                )
                continue

            if not errors:
                return result

            primary_error = errors[0][1]
            log.info(
                "generation_fallback_activated",
                generation_kind=kind.value,
                model_alias=model_alias,
                fallback_reason=str(primary_error),
            )
            return result.model_copy(
                update={
                    "is_fallback": True,
                    "fallback_reason": f"{kind.value} generation fell back: {primary_error}",
                }
            )

        detail = "; ".join(f"{label}: {e}" for label, e in errors)
        if self.has_fallback:
            log.error(
                "generation_chain_exhausted",
                generation_kind=kind.value,
                errors=detail,
            )
            message = f"Primary and fallback both failed for {kind.value} generation. {detail}"
        else:
            message = (
                f"Primary call failed and no fallback is configured "
                f"for {kind.value} generation: {errors[0][1]}"
            )
        raise ProviderError(message, recoverable=False) from errors[-1][1]
