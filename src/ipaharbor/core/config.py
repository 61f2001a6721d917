"""配置常量模块 -- 可通过环境变量覆盖

包含数据目录、下载并发上限、频道推送参数等可配置常量。
"""

import os
from pathlib import Path

import structlog

log = structlog.get_logger()

# 并发下载上限默认值
DEFAULT_MAX_CONCURRENT_DOWNLOADS = 2


def get_data_dir() -> Path:
    """获取 IPA 产物目录（ipa / json / tmp 文件所在目录）"""
    return Path(os.environ.get("IPAHARBOR_DATA_DIR", "data"))


def get_max_concurrent_downloads() -> int:
    """获取全局并发下载上限

    非法值（非整数或小于 1）记录告警并回退到默认值，不阻塞启动。
    """
    raw = os.environ.get("IPAHARBOR_MAX_CONCURRENT_DOWNLOADS")
    if raw is None:
        return DEFAULT_MAX_CONCURRENT_DOWNLOADS
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        log.warning(
            "invalid_max_concurrent_downloads",
            env_var="IPAHARBOR_MAX_CONCURRENT_DOWNLOADS",
            value=raw,
            fallback=DEFAULT_MAX_CONCURRENT_DOWNLOADS,
        )
        return DEFAULT_MAX_CONCURRENT_DOWNLOADS
    return value


def _get_interval(env_var: str) -> float:
    raw = os.environ.get(env_var, "0")
    try:
        return max(float(raw), 0.0)
    except ValueError:
        log.warning("invalid_interval_config", env_var=env_var, value=raw, fallback=0)
        return 0.0


def get_task_list_broadcast_interval() -> float:
    """task-list 快照广播间隔（秒），0 表示关闭"""
    return _get_interval("IPAHARBOR_TASK_LIST_BROADCAST_INTERVAL")


def get_file_list_broadcast_interval() -> float:
    """watch（文件列表）快照广播间隔（秒），0 表示关闭"""
    return _get_interval("IPAHARBOR_FILE_LIST_BROADCAST_INTERVAL")


# 产物目录中受管理的文件后缀（clear-all 时全部删除）
TRACKED_EXTENSIONS: tuple[str, ...] = (".ipa", ".json", ".tmp")

# 默认广播频道
DEFAULT_CHANNEL = "download-task"

# SSE 心跳间隔（秒）
SSE_HEARTBEAT_INTERVAL: int = int(
    os.environ.get("IPAHARBOR_SSE_HEARTBEAT_INTERVAL", "15")
)

# 每个订阅者的事件队列容量，写满即视为失联并移除
CHANNEL_QUEUE_SIZE: int = int(os.environ.get("IPAHARBOR_CHANNEL_QUEUE_SIZE", "100"))
