"""Downloader 包测试 fixtures"""

from pathlib import Path

import pytest
from ipaharbor.downloader import DownloadRequest


@pytest.fixture
def download_request(tmp_path: Path) -> DownloadRequest:
    """标准下载请求"""
    return DownloadRequest(
        bundle_id="com.example.demo",
        output_path=str(tmp_path / "1_2.ipa"),
        external_version_id="2",
    )


@pytest.fixture
def progress_lines() -> list[str]:
    """ipatool 进度条输出行"""
    return [
        "downloading   0% |                                        | (0/48 MB, 0 B/s)",
        "downloading  50% |████████████████████                    | (24/48 MB, 2.4 MB/s)",
        "downloading 100% |████████████████████████████████████████| (48/48 MB, 2.4 MB/s)",
    ]
