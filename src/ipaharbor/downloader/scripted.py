"""ScriptedDownloader -- 按脚本回放输出的下载器

用于 simulate 运行模式与测试：不启动真实进程，
按 DownloadScript 依次输出 stdout / stderr 行，然后以指定退出码结束。
成功退出时先写 <output>.tmp 再重命名为产物，与真实下载器的落盘方式一致。
"""

import asyncio
import contextlib
import io
import itertools
import plistlib
import zipfile
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from .exceptions import DownloaderSpawnError
from .models import DownloadRequest, OutputStream
from .sentinels import IPATOOL_SENTINELS, Sentinel

log = structlog.get_logger()

# 被终止时的退出码（与 SIGTERM 终止的子进程一致）
TERMINATED_EXIT_CODE = -15

_pid_counter = itertools.count(40000)


@dataclass
class DownloadScript:
    """单次下载的回放脚本

    Attributes:
        stdout / stderr: 依次输出的行
        exit_code: 输出结束后的退出码
        artifact: 成功退出时写入的产物内容（bytes 或按请求生成）
        hold: 输出结束后保持运行，直到 terminate() 或 release()
        spawn_error: 非空时 spawn 直接失败，模拟可执行文件不存在
        line_delay: 每行输出前的等待（秒）
    """

    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    exit_code: int = 0
    artifact: bytes | Callable[[DownloadRequest], bytes] | None = None
    hold: bool = False
    spawn_error: str | None = None
    line_delay: float = 0.0

    def lines_for(self, stream: OutputStream) -> list[str]:
        return self.stdout if stream == OutputStream.STDOUT else self.stderr


def build_sample_ipa(request: DownloadRequest) -> bytes:
    """生成一个只包含 iTunesMetadata.plist 的最小 IPA（zip）"""
    metadata = {
        "itemId": 0,
        "bundleDisplayName": request.bundle_id.rsplit(".", 1)[-1],
        "artistName": "IPA Harbor",
        "softwareVersionBundleId": request.bundle_id,
        "bundleShortVersionString": "1.0.0",
        "bundleVersion": "1",
        "softwareVersionExternalIdentifier": request.external_version_id or "0",
        "product-type": "ios-app",
    }
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("iTunesMetadata.plist", plistlib.dumps(metadata, fmt=plistlib.FMT_BINARY))
        archive.writestr(
            "Payload/App.app/Info.plist",
            plistlib.dumps({"CFBundleIdentifier": request.bundle_id}),
        )
    return buffer.getvalue()


def simulate_script(line_delay: float = 0.2, steps: int = 10) -> DownloadScript:
    """simulate 模式的默认脚本：逐步输出进度行后成功退出"""
    total_mb = 48
    lines = []
    for i in range(steps + 1):
        percent = i * 100 // steps
        done = total_mb * percent // 100
        bar = "█" * (percent // 5)
        lines.append(f"downloading {percent:3d}% |{bar:<20}| ({done}/{total_mb} MB, 2.4 MB/s)")
    return DownloadScript(
        stderr=lines,
        stdout=['{"level":"info","success":true}'],
        artifact=build_sample_ipa,
        line_delay=line_delay,
    )


class ScriptedProcess:
    """按脚本回放的下载进程"""

    def __init__(self, script: DownloadScript, request: DownloadRequest) -> None:
        self.script = script
        self.request = request
        self._pid = next(_pid_counter)
        self._terminated = asyncio.Event()
        self._released = asyncio.Event()
        self._streams_done = {stream: asyncio.Event() for stream in OutputStream}
        self._returncode: int | None = None
        self.terminate_calls = 0

    @property
    def pid(self) -> int | None:
        return self._pid

    @property
    def returncode(self) -> int | None:
        return self._returncode

    @property
    def terminated(self) -> bool:
        return self._terminated.is_set()

    async def lines(self, stream: OutputStream) -> AsyncIterator[str]:
        try:
            for line in self.script.lines_for(stream):
                if self.script.line_delay:
                    # 等待期间收到 terminate 立即停止输出
                    with contextlib.suppress(TimeoutError):
                        await asyncio.wait_for(self._terminated.wait(), self.script.line_delay)
                if self._terminated.is_set():
                    break
                yield line
        finally:
            self._streams_done[stream].set()

    async def wait(self) -> int:
        if self._returncode is None:
            self._returncode = await self._run()
        return self._returncode

    async def _run(self) -> int:
        # 输出完毕或被终止
        streams_done = asyncio.gather(*(e.wait() for e in self._streams_done.values()))
        terminated = asyncio.ensure_future(self._terminated.wait())
        await asyncio.wait({streams_done, terminated}, return_when=asyncio.FIRST_COMPLETED)

        if self.script.hold and not self._terminated.is_set():
            released = asyncio.ensure_future(self._released.wait())
            await asyncio.wait({released, terminated}, return_when=asyncio.FIRST_COMPLETED)
            released.cancel()

        streams_done.cancel()
        terminated.cancel()

        if self._terminated.is_set():
            return TERMINATED_EXIT_CODE

        if self.script.exit_code == 0 and self.script.artifact is not None:
            self._write_artifact()
        return self.script.exit_code

    def _write_artifact(self) -> None:
        artifact = self.script.artifact
        content = artifact(self.request) if callable(artifact) else artifact
        output = Path(self.request.output_path)
        partial = output.with_name(output.name + ".tmp")
        output.parent.mkdir(parents=True, exist_ok=True)
        partial.write_bytes(content)
        partial.replace(output)

    def release(self) -> None:
        """让 hold 脚本以其 exit_code 正常结束"""
        self._released.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self._returncode is not None:
            return
        self._terminated.set()


class ScriptedDownloader:
    """Downloader 的脚本回放实现

    脚本按 bundle_id 注册，未注册时使用 default_script。
    """

    def __init__(
        self,
        default_script: DownloadScript | None = None,
        sentinels: tuple[Sentinel, ...] = IPATOOL_SENTINELS,
    ) -> None:
        self.default_script = default_script or DownloadScript(artifact=build_sample_ipa)
        self.sentinels = sentinels
        self._scripts: dict[str, DownloadScript] = {}
        self.requests: list[DownloadRequest] = []
        self.processes: list[ScriptedProcess] = []

    def register(self, bundle_id: str, script: DownloadScript) -> None:
        self._scripts[bundle_id] = script

    def process_for(self, bundle_id: str) -> ScriptedProcess | None:
        """最近一次为 bundle_id 启动的进程"""
        for process in reversed(self.processes):
            if process.request.bundle_id == bundle_id:
                return process
        return None

    async def spawn(self, request: DownloadRequest) -> ScriptedProcess:
        script = self._scripts.get(request.bundle_id, self.default_script)
        self.requests.append(request)
        if script.spawn_error is not None:
            raise DownloaderSpawnError("scripted", FileNotFoundError(script.spawn_error))

        process = ScriptedProcess(script, request)
        self.processes.append(process)
        log.debug("scripted_process_spawned", pid=process.pid, bundle_id=request.bundle_id)
        return process
