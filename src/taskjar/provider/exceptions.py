"""Provider 异常体系

GenerationService 捕获这些异常并降级为占位任务列表。
"""


class ProviderError(Exception):
    """Provider 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class ProxyUnreachableError(ProviderError):
    """LiteLLM Proxy 不可达（连接失败、超时、DNS 解析失败等）

    此异常触发 FallbackManager 的降级逻辑。
    """

    def __init__(self, proxy_url: str, original_error: Exception) -> None:
        """
        Args:
            proxy_url: 尝试连接的 Proxy 地址
            original_error: 原始异常
        """
        super().__init__(
            f"LiteLLM Proxy unreachable: {proxy_url} -- {original_error}",
            recoverable=True,
        )
        self.proxy_url = proxy_url
        self.original_error = original_error
