"""In-process transport for tests and single-process deployments."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import AsyncIterator, Dict, List, Optional

from ..contracts import StatusEvent
from .base import BaseTransport


class InMemoryTransport(BaseTransport):
    """Fan out events to per-subscriber queues within one process."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[asyncio.Queue]] = defaultdict(list)

    def attach(self, topic: str) -> asyncio.Queue:
        """Register a queue receiving every event published from now on."""
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers[topic].append(queue)
        return queue

    def detach(self, topic: str, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(topic)
        if subscribers and queue in subscribers:
            subscribers.remove(queue)
        if not subscribers:
            self._subscribers.pop(topic, None)

    async def publish(self, topic: str, event: StatusEvent) -> None:
        """Deliver event to subscribers attached right now."""
        for queue in list(self._subscribers.get(topic, ())):
            queue.put_nowait(event)

    async def subscribe(
        self, topic: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[StatusEvent]:
        """Subscribe to events from topic.

        Args:
            topic: The topic to subscribe to
            lifespan: Maximum time in seconds to keep listening. If None, runs indefinitely.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + lifespan if lifespan else None
        queue = self.attach(topic)
        try:
            while True:
                timeout = None
                if deadline is not None:
                    timeout = deadline - loop.time()
                    if timeout <= 0:
                        break
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=timeout)
                except asyncio.TimeoutError:
                    break
                yield event
        finally:
            self.detach(topic, queue)
