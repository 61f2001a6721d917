"""IpatoolDownloader 测试

测试内容：
1. 命令行参数构建（版本参数可选）
2. \\r / \\n 混合切分、跨 chunk 的多字节字符
3. 可执行文件不存在 -> DownloaderSpawnError
4. 使用 shell 脚本替身验证真实子进程的输出与退出码
"""

import asyncio
import os
import stat
import sys
from pathlib import Path

import pytest
from ipaharbor.downloader import (
    DownloaderSpawnError,
    DownloadRequest,
    IpatoolDownloader,
    OutputStream,
    build_download_args,
)
from ipaharbor.downloader.ipatool import iter_lines

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="需要 /bin/sh")


def _reader(*chunks: bytes) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    for chunk in chunks:
        reader.feed_data(chunk)
    reader.feed_eof()
    return reader


async def _collect(reader: asyncio.StreamReader) -> list[str]:
    return [line async for line in iter_lines(reader)]


class TestBuildDownloadArgs:
    def test_with_version(self, download_request):
        args = build_download_args(download_request, "pw")
        assert args == [
            "download",
            "-b",
            "com.example.demo",
            "--purchase",
            "--keychain-passphrase",
            "pw",
            "--external-version-id",
            "2",
            "-o",
            download_request.output_path,
            "--format",
            "json",
        ]

    def test_without_version(self):
        request = DownloadRequest(bundle_id="com.a", output_path="/tmp/x.ipa")
        args = build_download_args(request, "pw")
        assert "--external-version-id" not in args
        assert args[-4:] == ["-o", "/tmp/x.ipa", "--format", "json"]


class TestIterLines:
    async def test_carriage_return_splits(self):
        lines = await _collect(_reader(b"downloading 1%\rdownloading 2%\r\ndone\n"))
        assert lines == ["downloading 1%", "downloading 2%", "done"]

    async def test_trailing_partial_line(self):
        assert await _collect(_reader(b"a\nb")) == ["a", "b"]

    async def test_line_split_across_chunks(self):
        assert await _collect(_reader(b"down", b"loading 5%\n")) == ["downloading 5%"]

    async def test_multibyte_split_across_chunks(self):
        bar = "█".encode()
        assert await _collect(_reader(b"|" + bar[:1], bar[1:] + b"|\n")) == ["|█|"]

    async def test_empty_stream(self):
        assert await _collect(_reader()) == []


class TestIpatoolDownloader:
    async def test_missing_executable(self, download_request, tmp_path):
        downloader = IpatoolDownloader(executable=str(tmp_path / "no-such-ipatool"))
        with pytest.raises(DownloaderSpawnError) as exc_info:
            await downloader.spawn(download_request)
        assert str(exc_info.value)
        assert exc_info.value.executable.endswith("no-such-ipatool")
        assert isinstance(exc_info.value.original_error, OSError)

    @posix_only
    async def test_nul_byte_in_argument(self, tmp_path: Path):
        """参数含 NUL 字节时子进程无法启动，同样转换为 DownloaderSpawnError"""
        request = DownloadRequest(bundle_id="com.x\x00y", output_path=str(tmp_path / "1_2.ipa"))
        downloader = IpatoolDownloader(executable="/bin/true")
        with pytest.raises(DownloaderSpawnError) as exc_info:
            await downloader.spawn(request)
        assert isinstance(exc_info.value.original_error, ValueError)

    @posix_only
    async def test_real_process_output_and_exit_code(self, download_request, tmp_path: Path):
        script = tmp_path / "ipatool"
        script.write_text(
            "#!/bin/sh\n"
            "printf 'downloading 10%% (1/10 MB, 1 MB/s)\\rdownloading 20%% (2/10 MB, 1 MB/s)\\n'\n"
            'echo "args: $*" 1>&2\n'
            "exit 3\n"
        )
        script.chmod(script.stat().st_mode | stat.S_IXUSR)

        downloader = IpatoolDownloader(executable=str(script), keychain_passphrase="pw")
        process = await downloader.spawn(download_request)
        assert process.pid is not None

        stdout, stderr = await asyncio.gather(
            _collect_lines(process, OutputStream.STDOUT),
            _collect_lines(process, OutputStream.STDERR),
        )
        assert await process.wait() == 3
        assert stdout == ["downloading 10% (1/10 MB, 1 MB/s)", "downloading 20% (2/10 MB, 1 MB/s)"]
        assert "--keychain-passphrase pw" in stderr[0]

        # 已退出的进程 terminate 无操作
        process.terminate()

    @posix_only
    async def test_terminate_running_process(self, download_request, tmp_path: Path):
        script = tmp_path / "ipatool"
        script.write_text("#!/bin/sh\nexec sleep 30\n")
        script.chmod(script.stat().st_mode | stat.S_IXUSR)

        process = await IpatoolDownloader(executable=str(script)).spawn(download_request)
        process.terminate()
        exit_code = await asyncio.wait_for(process.wait(), timeout=5)
        assert exit_code != 0

    @posix_only
    async def test_non_executable_file(self, download_request, tmp_path: Path):
        script = tmp_path / "ipatool"
        script.write_text("#!/bin/sh\nexit 0\n")
        os.chmod(script, 0o644)
        if os.access(script, os.X_OK):
            pytest.skip("以 root 运行时文件权限不生效")
        with pytest.raises(DownloaderSpawnError):
            await IpatoolDownloader(executable=str(script)).spawn(download_request)


async def _collect_lines(process, stream: OutputStream) -> list[str]:
    return [line async for line in process.lines(stream)]
