"""IPA Harbor Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .artifact import (
    ArtifactFileInfo,
    ArtifactFileList,
    artifact_file_name,
    partial_file_name,
    sidecar_file_name,
)
from .enums import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ChannelEventType,
    TaskErrorKind,
    TaskStatus,
    validate_transition,
)
from .event import ChannelEvent
from .payloads import TaskCompletedPayload
from .task import Task
from .views import (
    ClearResult,
    FileDeleteResult,
    ProgressInfo,
    ProgressSnapshot,
    TaskListView,
    TaskSummaryEntry,
    TaskView,
)

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskErrorKind",
    "ChannelEventType",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "validate_transition",
    # Task
    "Task",
    # Artifact
    "ArtifactFileInfo",
    "ArtifactFileList",
    "artifact_file_name",
    "sidecar_file_name",
    "partial_file_name",
    # Event
    "ChannelEvent",
    "TaskCompletedPayload",
    # Views
    "ProgressInfo",
    "ProgressSnapshot",
    "TaskListView",
    "TaskSummaryEntry",
    "TaskView",
    "FileDeleteResult",
    "ClearResult",
]
