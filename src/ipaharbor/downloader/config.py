"""DownloaderConfig -- Downloader 配置加载

从环境变量加载配置，keychain passphrase 使用 SecretStr，不进入日志。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr, ValidationError

log = structlog.get_logger()


class DownloaderConfig(BaseModel):
    """Downloader 包配置 -- 从环境变量加载

    环境变量:
        IPAHARBOR_IPATOOL_PATH: ipatool 可执行文件路径（默认 bin/ipatool）
        KEYCHAIN_PASSPHRASE: ipatool keychain 口令
        IPAHARBOR_DOWNLOADER_MODE: 运行模式（ipatool/simulate）
        IPAHARBOR_SIMULATE_LINE_DELAY: simulate 模式下每行输出间隔（秒）
    """

    ipatool_path: str = Field(
        default="bin/ipatool",
        description="ipatool 可执行文件路径",
    )
    keychain_passphrase: SecretStr = Field(
        default=SecretStr(""),
        description="ipatool keychain 口令",
    )
    mode: Literal["ipatool", "simulate"] = Field(
        default="ipatool",
        description="运行模式：ipatool 调用真实二进制，simulate 使用脚本化下载器",
    )
    simulate_line_delay: float = Field(
        default=0.2,
        ge=0.0,
        description="simulate 模式下每行输出间隔（秒）",
    )


def load_downloader_config() -> DownloaderConfig:
    """从环境变量加载 Downloader 配置

    环境变量映射:
        IPAHARBOR_IPATOOL_PATH -> ipatool_path (默认 "bin/ipatool")
        KEYCHAIN_PASSPHRASE -> keychain_passphrase (默认 "")
        IPAHARBOR_DOWNLOADER_MODE -> mode (默认 "ipatool")
        IPAHARBOR_SIMULATE_LINE_DELAY -> simulate_line_delay (默认 0.2)

    非法值记录告警并使用默认值，不阻塞启动。

    Returns:
        DownloaderConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("IPAHARBOR_IPATOOL_PATH"):
        kwargs["ipatool_path"] = val

    if val := os.environ.get("KEYCHAIN_PASSPHRASE"):
        kwargs["keychain_passphrase"] = SecretStr(val)

    if val := os.environ.get("IPAHARBOR_DOWNLOADER_MODE"):
        if val in ("ipatool", "simulate"):
            kwargs["mode"] = val
        else:
            log.warning(
                "invalid_downloader_mode",
                env_var="IPAHARBOR_DOWNLOADER_MODE",
                value=val,
                fallback="ipatool",
            )

    if val := os.environ.get("IPAHARBOR_SIMULATE_LINE_DELAY"):
        try:
            kwargs["simulate_line_delay"] = max(float(val), 0.0)
        except ValueError:
            log.warning(
                "invalid_line_delay_config",
                env_var="IPAHARBOR_SIMULATE_LINE_DELAY",
                value=val,
                fallback=0.2,
            )

    try:
        return DownloaderConfig(**kwargs)
    except ValidationError as e:
        log.warning("invalid_downloader_config", error=str(e))
        return DownloaderConfig()
