"""IPA Harbor Downloader -- 下载器适配层

ipaharbor.downloader 的公开接口导出。
"""

# 配置
from .config import DownloaderConfig, load_downloader_config

# 异常
from .exceptions import DownloaderError, DownloaderSpawnError

# 核心组件
from .ipatool import IpatoolDownloader, IpatoolProcess, build_download_args

# 数据模型
from .models import (
    Downloader,
    DownloadProcess,
    DownloadRequest,
    OutputStream,
    resolve_external_version_id,
)
from .scripted import DownloadScript, ScriptedDownloader, ScriptedProcess, simulate_script
from .sentinels import IPATOOL_SENTINELS, Sentinel, match_sentinel


def create_downloader(config: DownloaderConfig) -> "IpatoolDownloader | ScriptedDownloader":
    """按运行模式创建下载器"""
    if config.mode == "simulate":
        return ScriptedDownloader(default_script=simulate_script(config.simulate_line_delay))
    return IpatoolDownloader(
        executable=config.ipatool_path,
        keychain_passphrase=config.keychain_passphrase,
    )


__all__ = [
    "DownloadRequest",
    "DownloadProcess",
    "Downloader",
    "OutputStream",
    "resolve_external_version_id",
    "IpatoolDownloader",
    "IpatoolProcess",
    "build_download_args",
    "ScriptedDownloader",
    "ScriptedProcess",
    "DownloadScript",
    "simulate_script",
    "Sentinel",
    "IPATOOL_SENTINELS",
    "match_sentinel",
    "create_downloader",
    "DownloaderConfig",
    "load_downloader_config",
    "DownloaderError",
    "DownloaderSpawnError",
]
