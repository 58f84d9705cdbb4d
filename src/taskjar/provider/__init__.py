"""TaskJar Provider -- 任务生成服务调用抽象层

taskjar.provider 的公开接口导出。
"""

# 核心组件
from .client import LiteLLMClient

# 配置
from .config import ProviderConfig, load_provider_config

# 异常
from .exceptions import ProviderError, ProxyUnreachableError
from .fallback import FallbackManager, GenerationKind

# 数据模型
from .models import ModelCallResult, TokenUsage
from .offline_adapter import OfflineMessageAdapter

__all__ = [
    "ModelCallResult",
    "TokenUsage",
    "LiteLLMClient",
    "FallbackManager",
    "GenerationKind",
    "OfflineMessageAdapter",
    "ProviderConfig",
    "load_provider_config",
    "ProviderError",
    "ProxyUnreachableError",
]
