"""OfflineMessageAdapter -- 离线模式生成适配器

不访问任何外部服务：把最后一条 user message 原样作为一个任务返回，
输出格式与真实生成服务一致（外部词汇的 JSON 数组）。
FallbackManager 的降级后备统一使用此适配器。
"""

import json
import time

from .models import ModelCallResult, TokenUsage

OFFLINE_PRIORITY = "medium"
OFFLINE_DIFFICULTY = "moderate"
_NAME_MAX_LENGTH = 200


class OfflineMessageAdapter:
    """complete(messages) -> ModelCallResult 接口的离线实现"""

    async def complete(
        self,
        messages: list[dict[str, str]],
        model_alias: str = "offline",
        **kwargs,
    ) -> ModelCallResult:
        """把用户输入回显为单个任务

        行为:
            1. 从 messages 中提取最后一条 user message 的 content
            2. 首个非空行作为任务名称，全文作为描述
            3. 优先级/难度固定为中间档（medium / moderate）

        Args:
            messages: 消息列表
            model_alias: 模型组名
            **kwargs: 忽略

        Returns:
            ModelCallResult，content 为 JSON 数组
        """
        start_time = time.monotonic()

        user_content = self._extract_last_user_content(messages).strip()
        first_line = next(
            (line.strip() for line in user_content.splitlines() if line.strip()),
            "",
        )
        task = {
            "name": first_line[:_NAME_MAX_LENGTH],
            "description": user_content,
            "priority": OFFLINE_PRIORITY,
            "difficulty": OFFLINE_DIFFICULTY,
        }
        response_text = json.dumps([task], ensure_ascii=False)

        # 计算 token（按 word 简单估算）
        prompt_tokens = len(user_content.split())
        completion_tokens = len(response_text.split())

        duration_ms = int((time.monotonic() - start_time) * 1000)

        return ModelCallResult(
            content=response_text,
            model_alias=model_alias,
            model_name="offline",
            provider="offline",
            duration_ms=duration_ms,
            token_usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            is_fallback=False,  # 由 FallbackManager 按需覆盖
            fallback_reason="",
        )

    @staticmethod
    def _extract_last_user_content(messages: list[dict[str, str]]) -> str:
        """从 messages 中提取最后一条 user message 的 content，无消息时返回空串"""
        for msg in reversed(messages):
            if msg.get("role") == "user":
                return msg.get("content", "")
        if messages:
            return messages[-1].get("content", "")
        return ""
