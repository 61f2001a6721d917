"""数据模型 -- DownloadRequest + 下载进程接口

Downloader 与 DownloadProcess 是下载器适配层的窄接口：
核心只依赖逐行输出、退出码与终止信号，不解析下载器的结构化输出。
"""

from collections.abc import AsyncIterator
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, Field

from .sentinels import Sentinel

LATEST_VERSION = "latest"


def resolve_external_version_id(
    version_id: str,
    resolved_version_id: str | None = None,
) -> str | None:
    """确定传给下载器的显式版本 ID

    - 请求具体版本：使用请求的版本 ID
    - 请求 latest：使用外部解析出的具体版本 ID（本身不是 latest 时）
    - 否则不指定，由下载器下载最新版本
    """
    if version_id != LATEST_VERSION:
        return version_id
    if resolved_version_id and resolved_version_id != LATEST_VERSION:
        return resolved_version_id
    return None


class OutputStream(StrEnum):
    """下载进程输出流"""

    STDOUT = "stdout"
    STDERR = "stderr"


class DownloadRequest(BaseModel):
    """一次下载调用的参数"""

    bundle_id: str = Field(description="Bundle ID（先购买再下载）")
    output_path: str = Field(description="产物输出路径")
    external_version_id: str | None = Field(
        default=None,
        description="显式版本 ID，None 表示下载最新版本",
    )

    @classmethod
    def build(
        cls,
        bundle_id: str,
        version_id: str,
        output_path: str,
        resolved_version_id: str | None = None,
    ) -> "DownloadRequest":
        return cls(
            bundle_id=bundle_id,
            output_path=output_path,
            external_version_id=resolve_external_version_id(version_id, resolved_version_id),
        )


class DownloadProcess(Protocol):
    """运行中的下载进程"""

    @property
    def pid(self) -> int | None: ...

    def lines(self, stream: OutputStream) -> AsyncIterator[str]:
        """逐行读取输出（按 \\n 与 \\r 切分，未 strip），EOF 时结束"""
        ...

    async def wait(self) -> int:
        """等待进程退出并返回退出码（被信号终止时为负数）"""
        ...

    def terminate(self) -> None:
        """发送终止信号，不等待退出；进程已退出时无操作"""
        ...


class Downloader(Protocol):
    """下载器适配层"""

    sentinels: tuple[Sentinel, ...]

    async def spawn(self, request: DownloadRequest) -> DownloadProcess:
        """启动下载进程

        Raises:
            DownloaderSpawnError: 进程无法启动
        """
        ...
