"""Channel Event Payload 子类型

task-completed 事件的 payload 键名（taskId / fileName）是对客户端的线上契约，
通过 alias 保持 camelCase。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskCompletedPayload(BaseModel):
    """task-completed 事件 payload

    success=True 时携带 data（解析出的 metadata），
    success=False 时携带 error（metadata 解析失败原因），下载本身已完成。
    """

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    data: dict[str, Any] | None = None
    error: str | None = None
    task_id: str = Field(alias="taskId")
    file_name: str = Field(alias="fileName")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
