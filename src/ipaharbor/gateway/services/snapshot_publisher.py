"""SnapshotPublisher -- 周期性向默认频道发布 task-list / watch 快照

间隔为 0 的快照不发布。默认配置下两者均关闭，
此时失败任务不会被推送，只能通过查询接口获知。
"""

import asyncio
import contextlib

import structlog
from ipaharbor.core.config import DEFAULT_CHANNEL
from ipaharbor.core.models import ChannelEvent, ChannelEventType

from .download_manager import DownloadManager
from .event_hub import EventHub

log = structlog.get_logger()


class SnapshotPublisher:
    """周期快照发布器"""

    def __init__(
        self,
        manager: DownloadManager,
        hub: EventHub,
        task_list_interval: float = 0.0,
        file_list_interval: float = 0.0,
        channel: str = DEFAULT_CHANNEL,
    ) -> None:
        self._manager = manager
        self._hub = hub
        self._channel = channel
        self._intervals = {
            ChannelEventType.TASK_LIST: task_list_interval,
            ChannelEventType.WATCH: file_list_interval,
        }
        self._loops: list[asyncio.Task] = []

    def _snapshot(self, event_type: ChannelEventType) -> dict:
        if event_type == ChannelEventType.TASK_LIST:
            return self._manager.list_tasks().model_dump(mode="json")
        return self._manager.list_files().model_dump(mode="json")

    async def publish_once(self, event_type: ChannelEventType) -> int:
        """立即发布一次快照，返回投递的订阅者数量"""
        if self._hub.subscriber_count(self._channel) == 0:
            return 0
        event = ChannelEvent(type=event_type, data=self._snapshot(event_type))
        return await self._hub.publish(self._channel, event)

    async def _run(self, event_type: ChannelEventType, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.publish_once(event_type)
            except OSError as e:
                # 产物目录暂时不可读，下个周期重试
                log.warning("snapshot_publish_failed", type=event_type.value, error=str(e))

    def start(self) -> None:
        for event_type, interval in self._intervals.items():
            if interval > 0:
                self._loops.append(
                    asyncio.create_task(
                        self._run(event_type, interval), name=f"snapshot-{event_type.value}"
                    )
                )
                log.info("snapshot_publisher_started", type=event_type.value, interval=interval)

    async def stop(self) -> None:
        for loop in self._loops:
            loop.cancel()
        for loop in self._loops:
            with contextlib.suppress(asyncio.CancelledError):
                await loop
        self._loops.clear()
