"""structlog 配置模块

TASKJAR_LOG_FORMAT=json 输出结构化 JSON，默认 dev 模式 pretty print。
标准库 logging（uvicorn / LiteLLM / httpx / aiosqlite）经 ProcessorFormatter 统一渲染，
第三方 logger 压到 THIRD_PARTY_LOG_LEVEL。
Logfire APM 由 LOGFIRE_SEND_TO_LOGFIRE 控制，未启用时只输出本地日志。
"""

import logging
import os

import structlog
from fastapi import FastAPI
from taskjar.core.config import THIRD_PARTY_LOG_LEVEL, get_log_format, get_log_level

THIRD_PARTY_LOGGERS = (
    "LiteLLM",
    "LiteLLM Router",
    "LiteLLM Proxy",
    "httpx",
    "httpcore",
    "aiosqlite",
)


def _level(name: str, default: int = logging.INFO) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), default)


def build_processors(log_format: str) -> list[structlog.types.Processor]:
    """共享处理器链；json 模式额外把异常展开为字符串字段"""
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
    processors.append(structlog.processors.UnicodeDecoder())
    return processors


def setup_logging() -> None:
    """初始化 structlog 与标准库 logging"""
    log_format = get_log_format()
    shared_processors = build_processors(log_format)

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_level(get_log_level()))

    third_party_level = _level(THIRD_PARTY_LOG_LEVEL, logging.WARNING)
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)


def setup_logfire(app: FastAPI) -> None:
    """LOGFIRE_SEND_TO_LOGFIRE=true 时启用 Logfire（需要 LOGFIRE_TOKEN）"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return
    try:
        import logfire

        logfire.configure(service_name="taskjar-gateway")
        logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error=str(e),
            message="Logfire init failed, using local logging only",
        )
