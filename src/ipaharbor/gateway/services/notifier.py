"""CompletionNotifier -- 下载完成后提取 metadata 并广播 task-completed

下载成功时无论 metadata 是否提取成功都会广播一次（success / 失败变体）；
下载失败不广播，只能通过任务列表查询获知。
"""

import json

import structlog
from ipaharbor.core.config import DEFAULT_CHANNEL
from ipaharbor.core.exceptions import MetadataError
from ipaharbor.core.metadata import MetadataExtractor
from ipaharbor.core.models import ChannelEvent, ChannelEventType, TaskCompletedPayload

from .event_hub import EventHub

log = structlog.get_logger()


class CompletionNotifier:
    """task-completed 事件发布器"""

    def __init__(
        self,
        extractor: MetadataExtractor,
        hub: EventHub,
        channel: str = DEFAULT_CHANNEL,
    ) -> None:
        self._extractor = extractor
        self._hub = hub
        self._channel = channel

    async def notify(self, task_id: str, file_name: str) -> TaskCompletedPayload:
        """提取 metadata 并向默认频道发布 task-completed

        metadata 提取失败（含 sidecar 写入失败）不抛出，转为 success=False 的事件。
        """
        try:
            metadata = await self._extractor.extract(file_name)
        except (MetadataError, OSError) as e:
            log.warning(
                "metadata_extract_failed",
                task_id=task_id,
                file_name=file_name,
                error=str(e),
            )
            payload = TaskCompletedPayload(
                success=False,
                message=f"任务 {task_id} 下载完成，但 metadata 解析失败",
                error=str(e),
                task_id=task_id,
                file_name=file_name,
            )
        else:
            payload = TaskCompletedPayload(
                success=True,
                message=f"任务 {task_id} 下载完成，metadata 解析成功",
                data=metadata,
                task_id=task_id,
                file_name=file_name,
            )

        event = ChannelEvent(
            type=ChannelEventType.TASK_COMPLETED,
            data=json.dumps(payload.to_wire(), ensure_ascii=False),
        )
        delivered = await self._hub.publish(self._channel, event)
        log.info(
            "task_completed_published",
            task_id=task_id,
            file_name=file_name,
            success=payload.success,
            subscribers=delivered,
        )
        return payload
