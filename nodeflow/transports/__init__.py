"""Status event transports.

``inmemory`` delivers events within one process; ``redis`` fans them out
over Redis pub/sub so a UI in another process can follow a run.
"""

from __future__ import annotations

import os
from typing import Optional

from ..config import NodeflowConfig, RedisConfig, load_config
from .base import BaseTransport
from .inmemory import InMemoryTransport


def _redis_transport(settings: RedisConfig) -> BaseTransport:
    from .redis import RedisTransport

    return RedisTransport(
        host=settings.host,
        port=settings.port,
        db=settings.db,
        password=settings.password,
        prefix=settings.channel_prefix,
    )


def get_transport(
    backend: Optional[str] = None, config: Optional[NodeflowConfig] = None
) -> BaseTransport:
    """Build the status transport named by ``backend``.

    The backend falls back to ``NODEFLOW_TRANSPORT`` and then to
    ``config.transport.backend``.
    """

    config = config or load_config()
    name = (backend or os.getenv("NODEFLOW_TRANSPORT") or config.transport.backend).lower()

    if name == "inmemory":
        return InMemoryTransport()
    if name == "redis":
        return _redis_transport(config.transport.redis)
    raise ValueError(f"Unsupported transport backend: {name}")


__all__ = ["BaseTransport", "InMemoryTransport", "get_transport"]
