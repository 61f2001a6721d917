"""ProcessSupervisor -- 驱动单个运行中任务的下载进程

对每个被准入的任务：
1. 启动下载器进程（失败 -> FAILED / SPAWN_ERROR）
2. 并发消费 stdout / stderr：识别进度行（last-writer-wins），识别哨兵（fail-fast）
3. 进程退出后按退出码收尾：0 -> COMPLETED 并触发完成通知；非 0 -> 重新扫描输出分类
4. 释放运行集合条目并通知调度器补位

状态变更序列内部没有 await，单事件循环下天然串行。
任务在运行期间被删除后，进程退出时不再修改该任务。
"""

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path

import structlog
from ipaharbor.core.models import (
    Task,
    TaskErrorKind,
    TaskStatus,
    validate_transition,
)
from ipaharbor.core.progress import is_progress_line, parse_progress
from ipaharbor.core.store import InMemoryTaskStore, RunningJob
from ipaharbor.downloader import (
    Downloader,
    DownloaderSpawnError,
    DownloadProcess,
    DownloadRequest,
    OutputStream,
    match_sentinel,
)

log = structlog.get_logger()

CompletionCallback = Callable[[str, str], Awaitable[object]]


class ProcessSupervisor:
    """运行中任务的进程生命周期管理"""

    def __init__(
        self,
        task_store: InMemoryTaskStore,
        downloader: Downloader,
        data_dir: Path,
        on_completed: CompletionCallback | None = None,
        on_exit: Callable[[], None] | None = None,
    ) -> None:
        """
        Args:
            task_store: 任务表
            downloader: 下载器适配层
            data_dir: 产物目录
            on_completed: 下载成功回调 (task_id, file_name)，在后台任务中执行
            on_exit: 任一任务的进程结束（含启动失败）后的回调，用于调度补位
        """
        self._store = task_store
        self._downloader = downloader
        self._data_dir = data_dir
        self._on_completed = on_completed
        self._on_exit = on_exit
        self._drivers: set[asyncio.Task] = set()
        self._background: set[asyncio.Task] = set()

    def start(self, task_id: str) -> bool:
        """将 pending 任务切换为 running 并启动驱动协程

        Returns:
            是否成功启动（任务不存在或不是 pending 时返回 False）
        """
        task = self._store.get(task_id)
        if task is None or not validate_transition(task.status, TaskStatus.RUNNING):
            return False

        task.status = TaskStatus.RUNNING
        task.touch()
        job = self._store.add_running(task_id)
        job.driver = self._spawn_background(
            self._drive(task, job), self._drivers, name=f"download-{task_id}"
        )
        log.info("task_started", task_id=task_id, file_name=task.file_name)
        return True

    # ---- 驱动 ----

    async def _drive(self, task: Task, job: RunningJob) -> None:
        request = DownloadRequest.build(
            bundle_id=task.bundle_id,
            version_id=task.version_id,
            output_path=str(self._data_dir / task.file_name),
            resolved_version_id=task.resolved_version_id,
        )
        try:
            try:
                process = await self._downloader.spawn(request)
            except DownloaderSpawnError as e:
                self._finish_spawn_error(task, job, e)
                return
            except Exception as e:
                log.exception("task_spawn_unexpected_error", task_id=task.task_id)
                self._finish_failure(
                    task, job, TaskErrorKind.SPAWN_ERROR, str(e) or type(e).__name__
                )
                return

            job.attach(process)
            if self._owns(task, job):
                task.process_id = process.pid

            stdout: list[str] = []
            stderr: list[str] = []
            try:
                await asyncio.gather(
                    self._pump(task, job, process, OutputStream.STDOUT, stdout),
                    self._pump(task, job, process, OutputStream.STDERR, stderr),
                )
                exit_code = await process.wait()
            except asyncio.CancelledError:
                process.terminate()
                raise
            except Exception as e:
                log.exception("task_supervision_error", task_id=task.task_id)
                process.terminate()
                self._finish_failure(task, job, TaskErrorKind.GENERAL_ERROR, str(e) or type(e).__name__)
                return

            self._finish_exit(task, job, exit_code, "\n".join(stdout), "\n".join(stderr))
        finally:
            self._release(task, job)
            if self._on_exit is not None:
                self._on_exit()

    async def _pump(
        self,
        task: Task,
        job: RunningJob,
        process: DownloadProcess,
        stream: OutputStream,
        captured: list[str],
    ) -> None:
        """消费单个输出流直到 EOF

        任务被删除或已失败后仍继续读取（避免管道写满阻塞进程），但不再修改任务。
        """
        async for raw in process.lines(stream):
            line = raw.strip()
            if not line:
                continue
            captured.append(line)
            log.debug("downloader_output", task_id=task.task_id, stream=stream.value, line=line)

            if task.status != TaskStatus.RUNNING or not self._owns(task, job):
                continue

            if is_progress_line(line):
                self._store.set_progress_text(task.task_id, line)
                task.progress = parse_progress(line).percentage
                task.touch()

            sentinel = match_sentinel(line, self._downloader.sentinels)
            if sentinel is not None:
                task.status = TaskStatus.FAILED
                task.error = sentinel.message
                task.error_kind = TaskErrorKind(sentinel.kind)
                task.touch()
                log.warning(
                    "task_failed_fast",
                    task_id=task.task_id,
                    error_kind=sentinel.kind,
                    stream=stream.value,
                )
                job.request_terminate()

    # ---- 收尾 ----

    def _finish_exit(
        self,
        task: Task,
        job: RunningJob,
        exit_code: int,
        stdout: str,
        stderr: str,
    ) -> None:
        if not self._owns(task, job):
            log.info("task_exit_after_delete", task_id=task.task_id, exit_code=exit_code)
            return

        # fail-fast 结果优先，不被退出码覆盖
        if task.status == TaskStatus.FAILED and task.error_kind not in (
            None,
            TaskErrorKind.GENERAL_ERROR,
        ):
            log.info(
                "task_exit_after_fail_fast",
                task_id=task.task_id,
                error_kind=task.error_kind,
                exit_code=exit_code,
            )
            return

        if exit_code == 0:
            task.status = TaskStatus.COMPLETED
            task.progress = 100
            task.touch()
            log.info("task_completed", task_id=task.task_id, file_name=task.file_name)
            if self._on_completed is not None:
                self._spawn_background(
                    self._on_completed(task.task_id, task.file_name),
                    self._background,
                    name=f"notify-{task.task_id}",
                )
            return

        sentinel = match_sentinel(f"{stdout}\n{stderr}", self._downloader.sentinels)
        if sentinel is not None:
            self._finish_failure(task, job, TaskErrorKind(sentinel.kind), sentinel.message, exit_code)
        else:
            message = stderr or stdout or f"进程退出码: {exit_code}"
            self._finish_failure(task, job, TaskErrorKind.GENERAL_ERROR, message, exit_code)

    def _finish_spawn_error(self, task: Task, job: RunningJob, error: DownloaderSpawnError) -> None:
        self._finish_failure(task, job, TaskErrorKind.SPAWN_ERROR, str(error))

    def _finish_failure(
        self,
        task: Task,
        job: RunningJob,
        kind: TaskErrorKind,
        message: str,
        exit_code: int | None = None,
    ) -> None:
        # 已由 fail-fast 收尾或任务已被删除
        if not self._owns(task, job) or task.status != TaskStatus.RUNNING:
            return
        task.status = TaskStatus.FAILED
        task.error = message
        task.error_kind = kind
        task.touch()
        log.warning(
            "task_failed",
            task_id=task.task_id,
            error_kind=kind.value,
            exit_code=exit_code,
        )

    def _release(self, task: Task, job: RunningJob) -> None:
        """移出运行集合并清理进度文本（仅当条目仍属于本次运行）"""
        if self._store.get_running(task.task_id) is job:
            self._store.pop_running(task.task_id)
        if self._owns(task, job):
            task.process_id = None
            self._store.remove_progress_text(task.task_id)

    def _owns(self, task: Task, job: RunningJob) -> bool:
        """任务仍在任务表中（未被删除或清空）"""
        return self._store.get(task.task_id) is task

    # ---- 后台任务 ----

    @staticmethod
    def _spawn_background(coro, registry: set[asyncio.Task], name: str) -> asyncio.Task:
        bg = asyncio.create_task(coro, name=name)
        registry.add(bg)
        bg.add_done_callback(registry.discard)
        bg.add_done_callback(_log_task_exception)
        return bg

    @property
    def active_count(self) -> int:
        return len(self._drivers)

    async def join(self) -> None:
        """等待所有驱动协程与完成通知结束"""
        while self._drivers or self._background:
            await asyncio.gather(*self._drivers, *self._background, return_exceptions=True)

    async def shutdown(self, timeout: float = 5.0) -> None:
        """终止所有运行中进程，等待驱动协程退出，超时后取消"""
        for job in self._store.running_jobs():
            job.request_terminate()
        pending = self._drivers | self._background
        if not pending:
            return
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for bg in still_running:
            bg.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)


def _log_task_exception(bg: asyncio.Task) -> None:
    if bg.cancelled():
        return
    exc = bg.exception()
    if exc is not None:
        log.error("background_task_failed", task_name=bg.get_name(), error=str(exc))
