"""任务查询投影

将内存中的 Task 与实时进度文本组合为对外的查询视图：
- 按状态分组的任务列表 + app/version 摘要
- 运行中 / 等待中任务的进度快照
"""

from collections.abc import Iterable, Mapping

from .models.enums import TaskStatus
from .models.task import Task
from .models.views import (
    ProgressSnapshot,
    TaskListView,
    TaskSummaryEntry,
    TaskView,
)
from .progress import WAITING_TEXT, parse_progress

_IN_FLIGHT = (TaskStatus.RUNNING, TaskStatus.PENDING)


def to_task_view(task: Task, progress_text: str | None = None) -> TaskView:
    """Task -> TaskView，附带解析后的进度（不暴露进程信息）"""
    return TaskView(
        task_id=task.task_id,
        app_id=task.app_id,
        version_id=task.version_id,
        bundle_id=task.bundle_id,
        resolved_version_id=task.resolved_version_id,
        status=task.status,
        file_name=task.file_name,
        error=task.error,
        error_kind=task.error_kind,
        created_at=task.created_at,
        updated_at=task.updated_at,
        progress=parse_progress(progress_text, task.status),
    )


def group_tasks_with_progress(
    tasks: Iterable[Task],
    progress_texts: Mapping[str, str],
) -> TaskListView:
    """按状态分组任务并生成摘要

    只有 running / pending 任务使用进度文本，其余状态按默认进度处理。

    Args:
        tasks: 任务序列（顺序即输出顺序）
        progress_texts: task_id -> 最新进度行

    Returns:
        TaskListView
    """
    view = TaskListView()
    for task in tasks:
        text = progress_texts.get(task.task_id) if task.status in _IN_FLIGHT else None
        task_view = to_task_view(task, text)
        getattr(view, task.status.value).append(task_view)
        view.summary.setdefault(task.app_id, {})[task.version_id] = TaskSummaryEntry(
            task_id=task.task_id,
            percentage=task_view.progress.percentage,
            status=task.status,
        )
    return view


def build_progress_snapshots(
    tasks: Iterable[Task],
    progress_texts: Mapping[str, str],
) -> list[ProgressSnapshot]:
    """运行中 / 等待中任务的实时进度快照"""
    return [
        ProgressSnapshot(
            task_id=task.task_id,
            app_id=task.app_id,
            version_id=task.version_id,
            status=task.status,
            progress_text=progress_texts.get(task.task_id) or WAITING_TEXT,
            updated_at=task.updated_at,
        )
        for task in tasks
        if task.status in _IN_FLIGHT
    ]
