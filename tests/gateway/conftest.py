"""gateway 测试配置 -- 脚本化下载器 + 编排服务 + FastAPI AsyncClient"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from ipaharbor.core.metadata import MetadataExtractor
from ipaharbor.core.store import StoreGroup, create_store_group
from ipaharbor.downloader import DownloadScript, ScriptedDownloader
from ipaharbor.downloader.config import DownloaderConfig
from ipaharbor.downloader.scripted import build_sample_ipa
from ipaharbor.gateway.services.download_manager import DownloadManager
from ipaharbor.gateway.services.event_hub import EventHub
from ipaharbor.gateway.services.notifier import CompletionNotifier


@pytest.fixture
def store_group(tmp_data_dir: Path) -> StoreGroup:
    return create_store_group(tmp_data_dir)


@pytest.fixture
def downloader() -> ScriptedDownloader:
    """默认脚本：无输出，立即成功并写入带 metadata 的产物"""
    return ScriptedDownloader(default_script=DownloadScript(artifact=build_sample_ipa))


@pytest.fixture
def hold_script() -> DownloadScript:
    """保持运行直到 terminate / release 的脚本"""
    return DownloadScript(hold=True, artifact=build_sample_ipa)


@pytest.fixture
def event_hub() -> EventHub:
    return EventHub(queue_maxsize=10)


@pytest.fixture
def notifier(store_group: StoreGroup, event_hub: EventHub) -> CompletionNotifier:
    return CompletionNotifier(MetadataExtractor(store_group.artifact_store), event_hub)


@pytest_asyncio.fixture
async def manager(
    store_group: StoreGroup,
    downloader: ScriptedDownloader,
    notifier: CompletionNotifier,
) -> AsyncGenerator[DownloadManager, None]:
    """并发上限为 2 的编排服务"""
    download_manager = DownloadManager(
        store_group=store_group,
        downloader=downloader,
        notifier=notifier,
        max_concurrency=2,
    )
    yield download_manager
    await download_manager.close()


@pytest_asyncio.fixture
async def app(store_group: StoreGroup, downloader: ScriptedDownloader):
    """创建测试用 FastAPI app（手动初始化，绕过 lifespan）"""
    from ipaharbor.gateway.main import create_app, init_services

    application = create_app()
    manager = init_services(
        application,
        store_group,
        downloader,
        DownloaderConfig(mode="simulate", simulate_line_delay=0),
        max_concurrency=2,
    )
    yield application
    await manager.close()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
