"""枚举定义

包含 TaskStatus 状态机、TaskErrorKind 错误分类、ChannelEventType 频道事件类型，
以及 VALID_TRANSITIONS 合法流转映射和 TERMINAL_STATES 终态集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """下载任务状态机"""

    PENDING = "pending"
    RUNNING = "running"

    # 终态
    COMPLETED = "completed"
    FAILED = "failed"


# 合法状态流转：单调、无环，重试即创建新任务
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.RUNNING},
    TaskStatus.RUNNING: {TaskStatus.COMPLETED, TaskStatus.FAILED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.FAILED: set(),
}

TERMINAL_STATES: set[TaskStatus] = {
    TaskStatus.COMPLETED,
    TaskStatus.FAILED,
}


class TaskErrorKind(StrEnum):
    """任务失败分类

    TOKEN_EXPIRED / LICENSE_REQUIRED 由输出中的哨兵子串实时识别（fail-fast），
    GENERAL_ERROR 为非零退出且无已知哨兵，SPAWN_ERROR 为下载器无法启动。
    """

    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    LICENSE_REQUIRED = "LICENSE_REQUIRED"
    GENERAL_ERROR = "GENERAL_ERROR"
    SPAWN_ERROR = "SPAWN_ERROR"


class ChannelEventType(StrEnum):
    """广播频道事件类型"""

    SYSTEM = "system"
    TASK_COMPLETED = "task-completed"
    TASK_LIST = "task-list"
    WATCH = "watch"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
