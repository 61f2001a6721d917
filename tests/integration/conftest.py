"""集成测试共享 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from ipaharbor.core.store import create_store_group
from ipaharbor.downloader import create_downloader
from ipaharbor.downloader.config import DownloaderConfig


@pytest_asyncio.fixture
async def integration_app(tmp_data_dir: Path):
    """simulate 模式的完整 app（下载器为内置脚本，无行间隔）"""
    from ipaharbor.gateway.main import create_app, init_services

    app = create_app()
    config = DownloaderConfig(mode="simulate", simulate_line_delay=0)
    manager = init_services(
        app,
        create_store_group(tmp_data_dir),
        create_downloader(config),
        config,
        max_concurrency=2,
    )

    yield app

    await manager.close()


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
