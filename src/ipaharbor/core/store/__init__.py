"""IPA Harbor Core Store -- 内存任务表 + 产物目录

提供工厂函数创建共享同一产物目录的 Store 实例组。
"""

from pathlib import Path

from .artifact_store import FileArtifactStore, validate_artifact_name
from .protocols import ArtifactStore, TaskStore, Terminable
from .task_store import InMemoryTaskStore, RunningJob


class StoreGroup:
    """Store 实例组 -- 任务表与产物目录"""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.task_store = InMemoryTaskStore()
        self.artifact_store = FileArtifactStore(data_dir)


def create_store_group(data_dir: str | Path) -> StoreGroup:
    """创建 Store 实例组

    Args:
        data_dir: 产物目录，不存在时自动创建

    Returns:
        StoreGroup 实例
    """
    group = StoreGroup(data_dir=Path(data_dir))
    group.artifact_store.ensure_dir()
    return group


__all__ = [
    "StoreGroup",
    "create_store_group",
    "TaskStore",
    "ArtifactStore",
    "Terminable",
    "InMemoryTaskStore",
    "RunningJob",
    "FileArtifactStore",
    "validate_artifact_name",
]
