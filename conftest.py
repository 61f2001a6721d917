"""全局 pytest 配置 -- 临时产物目录 + 异步条件等待 fixture"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """屏蔽宿主机上可能存在的运行配置"""
    for key in (
        "IPAHARBOR_DATA_DIR",
        "IPAHARBOR_MAX_CONCURRENT_DOWNLOADS",
        "IPAHARBOR_DOWNLOADER_MODE",
        "IPAHARBOR_IPATOOL_PATH",
        "IPAHARBOR_SIMULATE_LINE_DELAY",
        "IPAHARBOR_TASK_LIST_BROADCAST_INTERVAL",
        "IPAHARBOR_FILE_LIST_BROADCAST_INTERVAL",
        "KEYCHAIN_PASSPHRASE",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")


@pytest_asyncio.fixture
async def tmp_data_dir(tmp_path: Path) -> Path:
    """提供临时产物目录"""
    data_dir = tmp_path / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


@pytest.fixture
def wait_for_condition() -> Callable[..., Awaitable[None]]:
    """轮询等待条件成立，超时则测试失败"""

    async def _wait(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
        deadline = time.monotonic() + timeout
        while not predicate():
            if time.monotonic() > deadline:
                pytest.fail(f"条件在 {timeout}s 内未满足")
            await asyncio.sleep(0.01)

    return _wait
