"""依赖注入模块 -- 通过 FastAPI Depends 注入服务实例

服务实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from ipaharbor.core.metadata import MetadataExtractor
from ipaharbor.core.store import StoreGroup

from .services.download_manager import DownloadManager
from .services.event_hub import EventHub


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_download_manager(request: Request) -> DownloadManager:
    """从 app.state 获取 DownloadManager 实例"""
    return request.app.state.download_manager


def get_event_hub(request: Request) -> EventHub:
    """从 app.state 获取 EventHub 实例"""
    return request.app.state.event_hub


def get_metadata_extractor(request: Request) -> MetadataExtractor:
    """从 app.state 获取 MetadataExtractor 实例"""
    return request.app.state.metadata_extractor
