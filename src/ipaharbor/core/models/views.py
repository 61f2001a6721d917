"""查询视图模型 -- 任务列表分组、进度快照"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import TaskErrorKind, TaskStatus


class ProgressInfo(BaseModel):
    """从进度行解析出的结构化进度"""

    percentage: int = Field(default=0, description="进度百分比")
    size_progress: str = Field(default="", description="已下载/总大小，如 10/24 MB")
    download_speed: str = Field(default="", description="下载速度，如 1.2 MB/s")


class TaskView(BaseModel):
    """对外展示的任务（不含进程信息），附带解析后的进度"""

    task_id: str
    app_id: str
    version_id: str
    bundle_id: str
    resolved_version_id: str | None = None
    status: TaskStatus
    file_name: str
    error: str | None = None
    error_kind: TaskErrorKind | None = None
    created_at: datetime
    updated_at: datetime
    progress: ProgressInfo


class TaskSummaryEntry(BaseModel):
    """summary[app_id][version_id] 条目"""

    task_id: str
    percentage: int
    status: TaskStatus


class TaskListView(BaseModel):
    """按状态分组的任务列表 + 摘要"""

    running: list[TaskView] = Field(default_factory=list)
    pending: list[TaskView] = Field(default_factory=list)
    completed: list[TaskView] = Field(default_factory=list)
    failed: list[TaskView] = Field(default_factory=list)
    summary: dict[str, dict[str, TaskSummaryEntry]] = Field(default_factory=dict)


class ProgressSnapshot(BaseModel):
    """运行中 / 等待中任务的实时进度快照"""

    task_id: str
    app_id: str
    version_id: str
    status: TaskStatus
    progress_text: str
    updated_at: datetime


class FileDeleteResult(BaseModel):
    """按产物文件名删除的结果"""

    file_name: str
    deleted_tasks: int = 0
    file_deleted: bool = False

    @property
    def found(self) -> bool:
        return self.deleted_tasks > 0 or self.file_deleted


class ClearResult(BaseModel):
    """清空全部任务与文件的结果"""

    deleted_tasks: int = 0
    deleted_files: int = 0
