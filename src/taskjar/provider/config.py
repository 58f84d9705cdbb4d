"""ProviderConfig -- Provider 配置加载

从环境变量加载配置，不硬编码 provider/模型名。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_TIMEOUT_S = 30


class ProviderConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        LITELLM_PROXY_URL: Proxy 地址（默认 http://localhost:4000）
        LITELLM_PROXY_KEY: Proxy 访问密钥
        TASKJAR_LLM_MODE: 生成服务运行模式（litellm/offline）
        TASKJAR_LLM_TIMEOUT_S: 调用超时（秒，默认 30）
        TASKJAR_LLM_MODEL_ALIAS: Proxy 上的模型组名（默认 main）
    """

    proxy_base_url: str = Field(
        default="http://localhost:4000",
        description="LiteLLM Proxy 基础 URL",
    )
    proxy_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Proxy 访问密钥（不是 LLM provider API key）",
    )
    llm_mode: Literal["litellm", "offline"] = Field(
        default="litellm",
        description="生成服务运行模式：litellm / offline",
    )
    timeout_s: int = Field(
        default=DEFAULT_TIMEOUT_S,
        ge=1,
        description="LLM 调用超时（秒）",
    )
    model_alias: str = Field(
        default="main",
        description="Proxy 模型组名",
    )


def load_provider_config() -> ProviderConfig:
    """从环境变量加载 Provider 配置

    环境变量映射:
        LITELLM_PROXY_URL -> proxy_base_url (默认 "http://localhost:4000")
        LITELLM_PROXY_KEY -> proxy_api_key (默认 "")
        TASKJAR_LLM_MODE -> llm_mode (默认 "litellm")
        TASKJAR_LLM_TIMEOUT_S -> timeout_s (默认 30)
        TASKJAR_LLM_MODEL_ALIAS -> model_alias (默认 "main")

    Returns:
        ProviderConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("LITELLM_PROXY_URL"):
        kwargs["proxy_base_url"] = val

    if val := os.environ.get("LITELLM_PROXY_KEY"):
        kwargs["proxy_api_key"] = SecretStr(val)

    if val := os.environ.get("TASKJAR_LLM_MODE"):
        if val in ("litellm", "offline"):
            kwargs["llm_mode"] = val
        else:
            log.warning(
                "invalid_llm_mode_config",
                env_var="TASKJAR_LLM_MODE",
                value=val,
                fallback="litellm",
            )

    if val := os.environ.get("TASKJAR_LLM_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="TASKJAR_LLM_TIMEOUT_S",
                value=val,
                fallback=DEFAULT_TIMEOUT_S,
            )
            # 使用默认值，不阻塞启动

    if val := os.environ.get("TASKJAR_LLM_MODEL_ALIAS"):
        kwargs["model_alias"] = val

    return ProviderConfig(**kwargs)
