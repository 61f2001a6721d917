"""FastAPI 应用主文件

app 创建 + lifespan 管理：产物目录 / 下载器 / 编排服务初始化，
关闭时终止运行中进程、停止快照发布。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from ipaharbor.core.config import (
    CHANNEL_QUEUE_SIZE,
    get_data_dir,
    get_file_list_broadcast_interval,
    get_max_concurrent_downloads,
    get_task_list_broadcast_interval,
)
from ipaharbor.core.metadata import MetadataExtractor
from ipaharbor.core.store import StoreGroup, create_store_group
from ipaharbor.downloader import (
    Downloader,
    DownloaderConfig,
    create_downloader,
    load_downloader_config,
)

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import downloads, files, health, stream, tasks
from .services.download_manager import DownloadManager
from .services.event_hub import EventHub
from .services.notifier import CompletionNotifier
from .services.snapshot_publisher import SnapshotPublisher

log = structlog.get_logger()


def init_services(
    app: FastAPI,
    store_group: StoreGroup,
    downloader: Downloader,
    downloader_config: DownloaderConfig,
    max_concurrency: int,
) -> DownloadManager:
    """组装编排服务并挂到 app.state"""
    event_hub = EventHub(queue_maxsize=CHANNEL_QUEUE_SIZE)
    extractor = MetadataExtractor(store_group.artifact_store)
    notifier = CompletionNotifier(extractor, event_hub)
    manager = DownloadManager(
        store_group=store_group,
        downloader=downloader,
        notifier=notifier,
        max_concurrency=max_concurrency,
    )

    app.state.store_group = store_group
    app.state.event_hub = event_hub
    app.state.metadata_extractor = extractor
    app.state.downloader_config = downloader_config
    app.state.download_manager = manager
    return manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化服务，关闭时终止下载进程"""
    # 启动：初始化 Store
    store_group = create_store_group(get_data_dir())

    # 下载器初始化（根据配置选择模式）
    downloader_config = load_downloader_config()
    downloader = create_downloader(downloader_config)
    max_concurrency = get_max_concurrent_downloads()

    manager = init_services(app, store_group, downloader, downloader_config, max_concurrency)
    log.info(
        "download_manager_initialized",
        mode=downloader_config.mode,
        data_dir=str(store_group.data_dir),
        max_concurrency=max_concurrency,
    )

    publisher = SnapshotPublisher(
        manager,
        app.state.event_hub,
        task_list_interval=get_task_list_broadcast_interval(),
        file_list_interval=get_file_list_broadcast_interval(),
    )
    publisher.start()

    yield

    # 关闭：停止快照发布，终止运行中进程（产物保留）
    await publisher.stop()
    await manager.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="IPA Harbor Gateway",
        version="0.1.0",
        description="IPA 下载任务编排 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    # 注册路由
    app.include_router(downloads.router, tags=["downloads"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(files.router, tags=["files"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
