"""Store Protocol 接口定义

定义 TaskStore、ArtifactStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。

TaskStore 的所有方法均为同步方法：在单事件循环内，
一次状态变更序列中不存在 await，天然串行，无需加锁。
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from ..models.artifact import ArtifactFileList
from ..models.task import Task


class Terminable(Protocol):
    """可被终止的运行中下载进程"""

    @property
    def pid(self) -> int | None: ...

    def terminate(self) -> None: ...


class TaskStore(Protocol):
    """Task 存储接口：任务表 + FIFO 准入队列 + 运行集合"""

    def add(self, task: Task) -> None:
        """新增任务"""
        ...

    def get(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    def list_tasks(self) -> list[Task]:
        """全部任务，按创建时间倒序"""
        ...

    def find_by_job_key(self, app_id: str, version_id: str) -> list[Task]:
        """查询同一 job key 的全部任务（任意状态）"""
        ...

    def find_by_file_name(self, file_name: str) -> list[Task]:
        """查询产物文件名匹配的全部任务（任意状态）"""
        ...

    def remove(self, task_id: str) -> Task | None:
        """从任务表移除任务"""
        ...

    def enqueue(self, task_id: str) -> None:
        """追加到 FIFO 队尾"""
        ...

    def pop_next(self) -> str | None:
        """弹出队首 task_id，队列为空返回 None"""
        ...

    def dequeue(self, task_id: str) -> bool:
        """从队列中移除指定任务"""
        ...

    def clear(self) -> None:
        """清空任务表、队列、运行集合与进度文本"""
        ...


class ArtifactStore(Protocol):
    """产物目录接口"""

    @property
    def root(self) -> Path:
        """产物目录"""
        ...

    def path_for(self, file_name: str) -> Path:
        """校验文件名并返回其在产物目录中的路径"""
        ...

    def delete_artifact_files(self, file_name: str) -> bool:
        """删除产物、sidecar 与临时文件，返回是否删除了任何文件"""
        ...

    def delete_all(self) -> int:
        """删除产物目录下所有受管理后缀的文件，返回删除数量"""
        ...

    def iter_artifacts(self) -> Iterator[Path]:
        """遍历产物目录下的 *.ipa"""
        ...

    def list_files(self) -> ArtifactFileList:
        """列出产物文件（附带 sidecar metadata 摘要）"""
        ...
