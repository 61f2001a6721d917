"""IpatoolDownloader -- ipatool 子进程封装

调用形式:
    ipatool download -b <bundle_id> --purchase --keychain-passphrase <p>
        [--external-version-id <id>] -o <output_path> --format json

输出按 \\n 与 \\r 切分为行（进度条使用 \\r 原地重绘）。
"""

import asyncio
import codecs
import contextlib
import re
from collections.abc import AsyncIterator

import structlog
from pydantic import SecretStr

from .exceptions import DownloaderSpawnError
from .models import DownloadRequest, OutputStream
from .sentinels import IPATOOL_SENTINELS, Sentinel

log = structlog.get_logger()

READ_CHUNK_SIZE = 4096

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def build_download_args(request: DownloadRequest, passphrase: str) -> list[str]:
    """构建 ipatool download 参数列表（不含可执行文件本身）"""
    args = [
        "download",
        "-b",
        request.bundle_id,
        "--purchase",
        "--keychain-passphrase",
        passphrase,
    ]
    if request.external_version_id:
        args += ["--external-version-id", request.external_version_id]
    args += ["-o", request.output_path, "--format", "json"]
    return args


async def iter_lines(reader: asyncio.StreamReader) -> AsyncIterator[str]:
    """按 \\n / \\r 切分读取流，EOF 时输出剩余内容"""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    while True:
        chunk = await reader.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer += decoder.decode(chunk)
        *lines, buffer = _LINE_BREAK_RE.split(buffer)
        for line in lines:
            yield line
    buffer += decoder.decode(b"", final=True)
    if buffer:
        yield buffer


class IpatoolProcess:
    """运行中的 ipatool 进程"""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self._process = process

    @property
    def pid(self) -> int | None:
        return self._process.pid

    def lines(self, stream: OutputStream) -> AsyncIterator[str]:
        reader = self._process.stdout if stream == OutputStream.STDOUT else self._process.stderr
        return iter_lines(reader)

    async def wait(self) -> int:
        return await self._process.wait()

    def terminate(self) -> None:
        if self._process.returncode is not None:
            return
        # 进程可能在检查与发送信号之间退出
        with contextlib.suppress(ProcessLookupError):
            self._process.terminate()


class IpatoolDownloader:
    """Downloader 的 ipatool 实现"""

    def __init__(
        self,
        executable: str = "bin/ipatool",
        keychain_passphrase: SecretStr | str = "",
        sentinels: tuple[Sentinel, ...] = IPATOOL_SENTINELS,
    ) -> None:
        """
        Args:
            executable: ipatool 可执行文件路径
            keychain_passphrase: keychain 口令
            sentinels: 哨兵表
        """
        if isinstance(keychain_passphrase, str):
            keychain_passphrase = SecretStr(keychain_passphrase)
        self._executable = executable
        self._passphrase = keychain_passphrase
        self.sentinels = sentinels

    @property
    def executable(self) -> str:
        return self._executable

    async def spawn(self, request: DownloadRequest) -> IpatoolProcess:
        """启动 ipatool download 子进程

        Raises:
            DownloaderSpawnError: 可执行文件不存在、无法执行，或参数无法传给子进程
        """
        args = build_download_args(request, self._passphrase.get_secret_value())
        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            # ValueError: 参数中含 NUL 字节
            log.error(
                "ipatool_spawn_failed",
                executable=self._executable,
                bundle_id=request.bundle_id,
                error=str(e),
            )
            raise DownloaderSpawnError(self._executable, e) from e

        log.info(
            "ipatool_spawned",
            pid=process.pid,
            bundle_id=request.bundle_id,
            external_version_id=request.external_version_id,
            output_path=request.output_path,
        )
        return IpatoolProcess(process)
