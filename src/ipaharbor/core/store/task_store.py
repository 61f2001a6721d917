"""TaskStore 内存实现

任务不持久化，进程重启即丢失。
维护四份状态：任务表、FIFO 准入队列、运行集合、每个任务最新的进度行。
"""

import asyncio
from collections import deque
from dataclasses import dataclass

from ..models.task import Task
from .protocols import Terminable


@dataclass
class RunningJob:
    """运行集合条目 -- 独占持有该任务的下载进程

    进程启动前收到的终止请求会被记录，进程一旦启动立即生效。
    """

    task_id: str
    process: Terminable | None = None
    terminate_requested: bool = False
    driver: asyncio.Task | None = None

    def attach(self, process: Terminable) -> None:
        """绑定已启动的进程，补发启动前收到的终止请求"""
        self.process = process
        if self.terminate_requested:
            process.terminate()

    def request_terminate(self) -> None:
        """发送终止信号（不等待进程退出）"""
        self.terminate_requested = True
        if self.process is not None:
            self.process.terminate()


class InMemoryTaskStore:
    """TaskStore 的内存实现"""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._queue: deque[str] = deque()
        self._running: dict[str, RunningJob] = {}
        self._progress_texts: dict[str, str] = {}

    # ---- 任务表 ----

    def add(self, task: Task) -> None:
        self._tasks[task.task_id] = task

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def list_tasks(self) -> list[Task]:
        """全部任务，按 created_at 倒序"""
        return sorted(
            self._tasks.values(),
            key=lambda t: (t.created_at, t.task_id),
            reverse=True,
        )

    def find_by_job_key(self, app_id: str, version_id: str) -> list[Task]:
        return [t for t in self._tasks.values() if t.job_key == (app_id, version_id)]

    def find_by_file_name(self, file_name: str) -> list[Task]:
        return [t for t in self._tasks.values() if t.file_name == file_name]

    def remove(self, task_id: str) -> Task | None:
        """移除任务及其进度文本（不处理队列与运行集合）"""
        self._progress_texts.pop(task_id, None)
        return self._tasks.pop(task_id, None)

    # ---- FIFO 队列 ----

    def enqueue(self, task_id: str) -> None:
        self._queue.append(task_id)

    def pop_next(self) -> str | None:
        if not self._queue:
            return None
        return self._queue.popleft()

    def dequeue(self, task_id: str) -> bool:
        try:
            self._queue.remove(task_id)
        except ValueError:
            return False
        return True

    @property
    def queued_ids(self) -> list[str]:
        return list(self._queue)

    # ---- 运行集合 ----

    def add_running(self, task_id: str) -> RunningJob:
        job = RunningJob(task_id=task_id)
        self._running[task_id] = job
        return job

    def get_running(self, task_id: str) -> RunningJob | None:
        return self._running.get(task_id)

    def pop_running(self, task_id: str) -> RunningJob | None:
        return self._running.pop(task_id, None)

    def running_jobs(self) -> list[RunningJob]:
        return list(self._running.values())

    @property
    def running_count(self) -> int:
        return len(self._running)

    # ---- 进度文本 ----

    def set_progress_text(self, task_id: str, text: str) -> None:
        self._progress_texts[task_id] = text

    def get_progress_text(self, task_id: str) -> str | None:
        return self._progress_texts.get(task_id)

    def remove_progress_text(self, task_id: str) -> None:
        self._progress_texts.pop(task_id, None)

    @property
    def progress_texts(self) -> dict[str, str]:
        return dict(self._progress_texts)

    def clear(self) -> None:
        self._tasks.clear()
        self._queue.clear()
        self._running.clear()
        self._progress_texts.clear()

    def __len__(self) -> int:
        return len(self._tasks)
