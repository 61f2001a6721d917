"""Channel Event Model

广播频道上流转的事件，形如 {type, data}。
data 为 JSON 字符串或可 JSON 序列化的对象，由发布方决定。
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import ChannelEventType


class ChannelEvent(BaseModel):
    """频道事件"""

    type: ChannelEventType = Field(description="事件类型")
    data: Any = Field(default=None, description="事件数据")
    ts: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="发布时间",
    )

    def to_wire(self) -> dict[str, Any]:
        """转换为推送给客户端的消息体"""
        return {"type": self.type.value, "data": self.data, "broadcast": True}
