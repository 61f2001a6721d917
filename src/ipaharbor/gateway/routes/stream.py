"""SSE 频道推送路由

GET /api/stream/{channel}: 订阅广播频道（目前只开放 download-task）。
连接建立后先推送一条 system 消息，之后实时推送频道事件，空闲时心跳保活。
"""

import asyncio
import json
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from ipaharbor.core.config import DEFAULT_CHANNEL, SSE_HEARTBEAT_INTERVAL
from ipaharbor.core.models import ChannelEvent, ChannelEventType
from sse_starlette.sse import EventSourceResponse

from ..deps import get_event_hub

router = APIRouter()

ALLOWED_CHANNELS = frozenset({DEFAULT_CHANNEL})


def _system_message(channel: str) -> dict:
    return {
        "type": ChannelEventType.SYSTEM.value,
        "data": f"Connected to SSE channel: {channel}",
        "timestamp": datetime.now(UTC).isoformat(),
    }


def _event_to_sse(event: ChannelEvent) -> dict:
    return {
        "event": event.type.value,
        "data": json.dumps(event.to_wire(), ensure_ascii=False),
    }


@router.get("/api/stream/{channel}")
async def stream_channel(
    channel: str,
    hub=Depends(get_event_hub),
):
    """SSE 事件流端点

    1. 推送 system 连接消息
    2. 注册到 EventHub 监听频道事件
    3. 实时推送新事件
    4. 心跳保活
    5. 订阅被移除（消费过慢）后结束流
    """
    if channel not in ALLOWED_CHANNELS:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "CHANNEL_NOT_FOUND",
                    "message": f"Channel {channel} does not exist",
                }
            },
        )

    async def event_generator():
        # 订阅后再推送 system 消息，客户端收到它之后发布的事件不会丢失
        queue = await hub.subscribe(channel)
        try:
            yield {
                "event": ChannelEventType.SYSTEM.value,
                "data": json.dumps(_system_message(channel), ensure_ascii=False),
            }
            while True:
                # 因队列写满被移除的订阅者：推送完积压事件后结束流，由客户端重连
                if queue.empty() and not hub.is_subscribed(channel, queue):
                    break
                try:
                    # 等待新事件（带心跳超时）
                    event = await asyncio.wait_for(queue.get(), timeout=SSE_HEARTBEAT_INTERVAL)
                    yield _event_to_sse(event)
                except TimeoutError:
                    # 心跳保活
                    yield {"comment": "heartbeat"}
        finally:
            await hub.unsubscribe(channel, queue)

    return EventSourceResponse(event_generator())
