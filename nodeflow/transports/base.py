"""Base transport interface for status event fan-out."""

from __future__ import annotations

import abc
from typing import AsyncIterator, Optional

from ..contracts import StatusEvent


class BaseTransport(metaclass=abc.ABCMeta):
    """Abstract publish/subscribe channel for :class:`StatusEvent` values.

    Delivery is best effort: subscribers only receive events published while
    they are attached, and there is no replay buffer.
    """

    async def connect(self) -> None:
        """Open connection to broker (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to broker (no-op by default)."""
        pass

    @abc.abstractmethod
    async def publish(self, topic: str, event: StatusEvent) -> None:
        """Send an event to every subscriber of ``topic``."""
        raise NotImplementedError

    @abc.abstractmethod
    def subscribe(
        self, topic: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[StatusEvent]:
        """Yield events published to ``topic``.

        Args:
            topic: The topic to subscribe to
            lifespan: Maximum time in seconds to keep listening. If None, runs indefinitely.
        """
        raise NotImplementedError
