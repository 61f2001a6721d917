"""DownloadManager -- 下载任务编排服务

启动时创建一次，注入到请求处理中。负责：
1. 创建任务（按 job key 去重 + 清理孤儿产物）
2. 删除任务（按 ID / 按产物文件名 / 全部清空）
3. 查询投影（分组任务列表、进度快照、文件列表）

进程驱动交给 ProcessSupervisor，准入交给 JobScheduler。
"""

from datetime import UTC, datetime

import structlog
from ipaharbor.core.models import (
    ArtifactFileList,
    ClearResult,
    FileDeleteResult,
    ProgressSnapshot,
    Task,
    TaskListView,
    artifact_file_name,
)
from ipaharbor.core.projection import build_progress_snapshots, group_tasks_with_progress
from ipaharbor.core.store import StoreGroup, validate_artifact_name
from ipaharbor.downloader import Downloader
from ulid import ULID

from .job_scheduler import JobScheduler
from .notifier import CompletionNotifier
from .process_supervisor import ProcessSupervisor

log = structlog.get_logger()


class DownloadManager:
    """下载任务编排服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        downloader: Downloader,
        notifier: CompletionNotifier | None = None,
        max_concurrency: int = 2,
    ) -> None:
        self._tasks = store_group.task_store
        self._artifacts = store_group.artifact_store
        self._supervisor = ProcessSupervisor(
            task_store=self._tasks,
            downloader=downloader,
            data_dir=store_group.data_dir,
            on_completed=notifier.notify if notifier is not None else None,
            on_exit=self._on_job_exit,
        )
        self._scheduler = JobScheduler(
            task_store=self._tasks,
            start=self._supervisor.start,
            max_concurrency=max_concurrency,
        )

    @property
    def supervisor(self) -> ProcessSupervisor:
        return self._supervisor

    @property
    def scheduler(self) -> JobScheduler:
        return self._scheduler

    # ---- 创建 ----

    async def create_task(
        self,
        app_id: str,
        version_id: str,
        bundle_id: str,
        resolved_version_id: str | None = None,
    ) -> Task:
        """创建下载任务

        同一 job key 的已有任务（任意状态）全部删除，残留产物一并清理，
        返回时该 job key 只剩新建的这一个任务。

        Raises:
            InvalidFileNameError: app_id / version_id 无法构成合法的产物文件名
        """
        file_name = validate_artifact_name(artifact_file_name(app_id, version_id))

        for existing in self._tasks.find_by_job_key(app_id, version_id):
            log.info("duplicate_task_replaced", task_id=existing.task_id, file_name=file_name)
            self._delete(existing)

        # 没有任务引用的孤儿产物
        self._artifacts.delete_artifact_files(file_name)

        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            app_id=app_id,
            version_id=version_id,
            bundle_id=bundle_id,
            resolved_version_id=resolved_version_id,
            file_name=file_name,
            created_at=now,
            updated_at=now,
        )
        self._tasks.add(task)
        self._tasks.enqueue(task.task_id)
        log.info(
            "task_created",
            task_id=task.task_id,
            app_id=app_id,
            version_id=version_id,
            bundle_id=bundle_id,
            resolved_version_id=resolved_version_id,
        )

        self._scheduler.admit()
        return task

    # ---- 删除 ----

    async def delete_task(self, task_id: str) -> Task | None:
        """删除单个任务，任务不存在返回 None"""
        task = self._tasks.get(task_id)
        if task is None:
            return None
        self._delete(task)
        self._scheduler.admit()
        return task

    async def delete_by_file_name(self, file_name: str) -> FileDeleteResult:
        """删除产物文件名匹配的全部任务，并删除产物文件（即使没有任务引用）

        Raises:
            InvalidFileNameError: 文件名非法
        """
        validate_artifact_name(file_name)
        result = FileDeleteResult(file_name=file_name)
        for task in self._tasks.find_by_file_name(file_name):
            result.file_deleted |= self._delete(task)
            result.deleted_tasks += 1
        result.file_deleted |= self._artifacts.delete_artifact_files(file_name)
        self._scheduler.admit()

        log.info(
            "delete_by_file_name",
            file_name=file_name,
            deleted_tasks=result.deleted_tasks,
            file_deleted=result.file_deleted,
        )
        return result

    async def clear_all(self) -> ClearResult:
        """终止全部进程，清空队列与任务表，删除产物目录下所有受管理文件"""
        for job in self._tasks.running_jobs():
            job.request_terminate()
        deleted_tasks = len(self._tasks)
        self._tasks.clear()
        deleted_files = self._artifacts.delete_all()

        log.info("all_tasks_cleared", deleted_tasks=deleted_tasks, deleted_files=deleted_files)
        return ClearResult(deleted_tasks=deleted_tasks, deleted_files=deleted_files)

    def _delete(self, task: Task) -> bool:
        """删除任务：终止进程 / 出队，删除产物文件，移出任务表

        Returns:
            是否删除了任何产物文件
        """
        job = self._tasks.pop_running(task.task_id)
        if job is not None:
            # 不等待进程退出
            job.request_terminate()
        self._tasks.dequeue(task.task_id)

        files_deleted = self._artifacts.delete_artifact_files(task.file_name)
        self._tasks.remove(task.task_id)
        log.info(
            "task_deleted",
            task_id=task.task_id,
            status=task.status.value,
            files_deleted=files_deleted,
        )
        return files_deleted

    # ---- 查询 ----

    def get_task(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def list_tasks(self) -> TaskListView:
        """按状态分组的任务列表（新的在前）+ 摘要"""
        return group_tasks_with_progress(self._tasks.list_tasks(), self._tasks.progress_texts)

    def get_progress(self) -> list[ProgressSnapshot]:
        """运行中 / 等待中任务的实时进度"""
        return build_progress_snapshots(self._tasks.list_tasks(), self._tasks.progress_texts)

    def list_files(self) -> ArtifactFileList:
        return self._artifacts.list_files()

    # ---- 生命周期 ----

    def _on_job_exit(self) -> None:
        self._scheduler.admit()

    async def close(self) -> None:
        """停止准入并终止所有运行中进程（产物保留）"""
        self._scheduler.close()
        await self._supervisor.shutdown()
        log.info("download_manager_closed")
