"""Task Domain Model

任务只存在于内存中，进程重启即丢失。
同一 job key (app_id, version_id) 任意时刻至多存在一个任务。
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from .enums import TaskErrorKind, TaskStatus


class Task(BaseModel):
    """下载任务数据模型

    file_name 在创建时即按 job key 确定（文件尚不存在），
    使得 pending 任务也能参与去重与清理。
    """

    task_id: str = Field(description="唯一标识，ULID 格式，不复用")
    app_id: str = Field(description="App ID")
    version_id: str = Field(description="请求的版本 ID，可为 latest")
    bundle_id: str = Field(description="Bundle ID，传给下载器用于购买与下载")
    resolved_version_id: str | None = Field(
        default=None,
        description="version_id 为 latest 时外部解析出的具体版本 ID",
    )
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    progress: int = Field(default=0, ge=0, le=100, description="进度百分比")
    process_id: int | None = Field(default=None, description="运行中下载进程的 PID")
    file_name: str = Field(description="产物文件名 {app_id}_{version_id}.ipa")
    error: str | None = Field(default=None, description="失败信息")
    error_kind: TaskErrorKind | None = Field(default=None, description="失败分类")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @property
    def job_key(self) -> tuple[str, str]:
        return self.app_id, self.version_id

    def touch(self) -> None:
        """刷新 updated_at"""
        self.updated_at = datetime.now(UTC)
