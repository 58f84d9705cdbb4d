"""LiteLLMClient -- LiteLLM Proxy 调用封装

通过 litellm.acompletion() 调用 Proxy，生成服务的唯一真实后端。
"""

import contextlib
import time

import httpx
import structlog
from litellm import acompletion

from .exceptions import ProviderError, ProxyUnreachableError
from .models import ModelCallResult, TokenUsage

log = structlog.get_logger()

# 健康检查超时（应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常类型集合（触发 ProxyUnreachableError，进而触发 FallbackManager 降级）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)


def _is_connection_error(e: Exception) -> bool:
    """判断异常是否为连接类错误（Proxy 不可达）"""
    if isinstance(e, _CONNECTION_ERROR_TYPES):
        return True
    # LiteLLM 的 APIConnectionError 也属于连接类错误
    error_name = type(e).__name__
    return error_name in ("APIConnectionError", "APITimeoutError")


def parse_usage(response) -> TokenUsage:
    """从 LiteLLM 响应解析 token 使用数据，缺失时返回全零"""
    usage = getattr(response, "usage", None)
    if usage is None:
        return TokenUsage()
    return TokenUsage(
        prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
        completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
        total_tokens=getattr(usage, "total_tokens", 0) or 0,
    )


def extract_model_info(response) -> tuple[str, str]:
    """从 LiteLLM 响应提取 (model_name, provider)"""
    model_name = ""
    provider = ""

    with contextlib.suppress(Exception):
        model_name = getattr(response, "model", "") or ""

    with contextlib.suppress(Exception):
        hidden = getattr(response, "_hidden_params", None)
        if hidden and isinstance(hidden, dict):
            provider = hidden.get("custom_llm_provider", "") or ""

    return model_name, provider


class LiteLLMClient:
    """LiteLLM Proxy 客户端"""

    def __init__(
        self,
        proxy_base_url: str = "http://localhost:4000",
        proxy_api_key: str = "",
        timeout_s: int = 30,
    ) -> None:
        """初始化 LiteLLM Proxy 客户端

        Args:
            proxy_base_url: Proxy 基础 URL
            proxy_api_key: Proxy 访问密钥（LITELLM_PROXY_KEY）
            timeout_s: 请求超时（秒）
        """
        self._proxy_base_url = proxy_base_url.rstrip("/")
        self._proxy_api_key = proxy_api_key
        self._timeout_s = timeout_s

    async def complete(
        self,
        messages: list[dict[str, str]],
        model_alias: str = "main",
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs,
    ) -> ModelCallResult:
        """发送 chat completion 请求到 LiteLLM Proxy

        Args:
            messages: 消息列表，格式 [{"role": "user", "content": "..."}]
            model_alias: Proxy 上的模型组名
            temperature: 采样温度
            max_tokens: 最大生成 token 数，None 使用模型默认
            **kwargs: 其他 LiteLLM 支持的参数

        Returns:
            ModelCallResult

        Raises:
            ProxyUnreachableError: Proxy 连接失败或超时
            ProviderError: Proxy 返回错误（如模型不可用、配额耗尽）
        """
        start_time = time.monotonic()

        try:
            call_kwargs = {
                "model": model_alias,
                "messages": messages,
                "api_base": self._proxy_base_url,
                "api_key": self._proxy_api_key or "no-key",
                "temperature": temperature,
                "timeout": self._timeout_s,
                **kwargs,
            }
            if max_tokens is not None:
                call_kwargs["max_tokens"] = max_tokens

            log.debug(
                "litellm_call_start",
                model_alias=model_alias,
                message_count=len(messages),
            )

            response = await acompletion(**call_kwargs)

            duration_ms = int((time.monotonic() - start_time) * 1000)
            content = response.choices[0].message.content or ""
            model_name, provider = extract_model_info(response)

            result = ModelCallResult(
                content=content,
                model_alias=model_alias,
                model_name=model_name,
                provider=provider,
                duration_ms=duration_ms,
                token_usage=parse_usage(response),
            )

            log.info(
                "litellm_call_completed",
                model_alias=model_alias,
                model_name=model_name,
                provider=provider,
                duration_ms=duration_ms,
            )

            return result

        except ProviderError:
            raise
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(
                "litellm_call_failed",
                model_alias=model_alias,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            if _is_connection_error(e):
                raise ProxyUnreachableError(
                    proxy_url=self._proxy_base_url,
                    original_error=e,
                ) from e
            raise ProviderError(
                message=f"LLM call failed: {e}",
                recoverable=True,
            ) from e

    async def health_check(self) -> bool:
        """检查 LiteLLM Proxy 可达性

        发送 GET {proxy_base_url}/health/liveliness 请求。
        此方法不抛出异常，不可达或异常时返回 False。
        """
        url = f"{self._proxy_base_url}/health/liveliness"
        try:
            async with httpx.AsyncClient() as http_client:
                resp = await http_client.get(url, timeout=HEALTH_CHECK_TIMEOUT_S)
                return resp.status_code == 200
        except Exception as e:
            log.debug("health_check_failed", url=url, error=str(e))
            return False
