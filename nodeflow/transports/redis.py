"""Redis pub/sub transport for cross-process status events."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from pydantic import ValidationError

from ..contracts import StatusEvent
from .base import BaseTransport

logger = logging.getLogger(__name__)


class RedisTransport(BaseTransport):
    """Redis-based transport using PUBLISH/SUBSCRIBE channels."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        prefix: str = "nodeflow",
    ) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisTransport")

        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self.prefix = prefix
        self._redis: Optional[Any] = None

    def _channel(self, topic: str) -> str:
        return f"{self.prefix}:{topic}"

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def publish(self, topic: str, event: StatusEvent) -> None:
        """Publish event on the Redis channel for ``topic``."""
        if not self._redis:
            await self.connect()
        await self._redis.publish(self._channel(topic), event.to_json())

    async def subscribe(
        self, topic: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[StatusEvent]:
        """Subscribe to the Redis channel for ``topic``."""
        if not self._redis:
            await self.connect()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + lifespan if lifespan else None
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel(topic))
        try:
            while deadline is None or loop.time() < deadline:
                message = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=1.0
                )
                if not message:
                    continue
                try:
                    yield StatusEvent.from_json(message["data"])
                except ValidationError as e:
                    logger.warning(f"Failed to parse status event: {e}")
        finally:
            await pubsub.unsubscribe(self._channel(topic))
            await pubsub.aclose()
