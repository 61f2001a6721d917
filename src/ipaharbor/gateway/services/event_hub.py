"""EventHub -- 内存中频道事件广播器

每个订阅者持有一个 asyncio.Queue，按频道名 subscribe/unsubscribe/publish。
与传输层（SSE）解耦：发布方只关心频道与事件。
"""

import asyncio
from collections import defaultdict

import structlog
from ipaharbor.core.models import ChannelEvent

log = structlog.get_logger()


class EventHub:
    """频道事件广播器 -- 基于 asyncio.Queue 的发布/订阅模式

    队列写满的订阅者视为失联，直接移除。
    """

    def __init__(self, queue_maxsize: int = 100) -> None:
        # channel -> set of asyncio.Queue
        self._subscribers: dict[str, set[asyncio.Queue]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    async def subscribe(self, channel: str) -> asyncio.Queue:
        """订阅频道

        Args:
            channel: 频道名

        Returns:
            asyncio.Queue 实例，新事件会被推送到此队列
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_maxsize)
        self._subscribers[channel].add(queue)
        return queue

    async def unsubscribe(self, channel: str, queue: asyncio.Queue) -> None:
        """取消订阅

        Args:
            channel: 频道名
            queue: 之前订阅时返回的队列
        """
        self._subscribers[channel].discard(queue)
        if not self._subscribers[channel]:
            del self._subscribers[channel]

    async def publish(self, channel: str, event: ChannelEvent) -> int:
        """向频道所有订阅者广播事件

        Args:
            channel: 频道名
            event: 要广播的事件

        Returns:
            成功投递的订阅者数量
        """
        delivered = 0
        dead_queues = []
        for queue in self._subscribers.get(channel, set()):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                dead_queues.append(queue)

        # 清理已满的队列
        for q in dead_queues:
            self._subscribers[channel].discard(q)
        if dead_queues:
            log.warning("channel_subscribers_dropped", channel=channel, count=len(dead_queues))
        if channel in self._subscribers and not self._subscribers[channel]:
            del self._subscribers[channel]
        return delivered

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, ()))

    def is_subscribed(self, channel: str, queue: asyncio.Queue) -> bool:
        """队列仍在频道订阅者中（写满被移除后返回 False）"""
        return queue in self._subscribers.get(channel, ())
