"""JobScheduler -- 有界并发的 FIFO 准入

事件驱动：入队、进程结束、删除 / 清空之后立即调用 admit()，
不依赖定时轮询。
"""

from collections.abc import Callable

import structlog
from ipaharbor.core.store import InMemoryTaskStore

log = structlog.get_logger()


class JobScheduler:
    """按 FIFO 顺序将等待中的任务准入运行集合"""

    def __init__(
        self,
        task_store: InMemoryTaskStore,
        start: Callable[[str], bool],
        max_concurrency: int,
    ) -> None:
        """
        Args:
            task_store: 任务表（含 FIFO 队列与运行集合）
            start: 启动单个任务，返回是否真正启动
            max_concurrency: 全局并发上限，启动时确定
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._store = task_store
        self._start = start
        self._max_concurrency = max_concurrency
        self._closed = False

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def admit(self) -> int:
        """在容量允许时依次弹出队首任务并启动

        已被删除或不再是 pending 的队首条目直接丢弃。

        Returns:
            本次启动的任务数
        """
        started = 0
        while not self._closed and self._store.running_count < self._max_concurrency:
            task_id = self._store.pop_next()
            if task_id is None:
                break
            if self._start(task_id):
                started += 1
            else:
                log.debug("stale_queue_entry_skipped", task_id=task_id)
        return started

    def close(self) -> None:
        """停止准入（应用关闭时）"""
        self._closed = True
