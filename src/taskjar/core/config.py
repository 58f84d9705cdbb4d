"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、默认用户、分析窗口、热力图尺寸、洞察阈值等可配置常量。
"""

import os
from datetime import datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKJAR_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKJAR_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskjar.db"),
    )


def get_default_user_id() -> str:
    """获取默认用户 ID（未携带 X-TaskJar-User 头时使用）"""
    return os.environ.get("TASKJAR_DEFAULT_USER", "owner")


def get_timezone() -> tzinfo:
    """获取日期归属使用的本地时区

    TASKJAR_TIMEZONE 未设置时使用服务器本地时区。
    """
    name = os.environ.get("TASKJAR_TIMEZONE")
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


# 分析窗口天数（每日完成率序列长度）
ANALYTICS_WINDOW_DAYS: int = int(
    os.environ.get("TASKJAR_ANALYTICS_WINDOW_DAYS", "30")
)

# 热力图行列（5 行 x 7 列 = 35 天）
HEATMAP_ROWS: int = int(os.environ.get("TASKJAR_HEATMAP_ROWS", "5"))
HEATMAP_COLS: int = int(os.environ.get("TASKJAR_HEATMAP_COLS", "7"))

# 洞察规则阈值
INSIGHT_LOW_DAY_PCT: int = int(
    os.environ.get("TASKJAR_INSIGHT_LOW_DAY_PCT", "50")
)
INSIGHT_TREND_DELTA_PCT: int = int(
    os.environ.get("TASKJAR_INSIGHT_TREND_DELTA_PCT", "10")
)

# 近期均值窗口（7 日平均 / 预测）
RECENT_AVERAGE_DAYS: int = 7

# 清空数据确认短语
CLEAR_DATA_CONFIRMATION: str = "CLEAR ALL DATA"

# 生成任务名称截断长度
TASK_NAME_MAX_LENGTH: int = 200

# 日志渲染模式（dev / json）与级别
def get_log_format() -> str:
    return os.environ.get("TASKJAR_LOG_FORMAT", "dev").lower()


def get_log_level() -> str:
    return os.environ.get("TASKJAR_LOG_LEVEL", "INFO").upper()


# 第三方 logger 的最低级别（LiteLLM 在 INFO 级别逐次打印请求详情）
THIRD_PARTY_LOG_LEVEL: str = os.environ.get("TASKJAR_THIRD_PARTY_LOG_LEVEL", "WARNING")
