"""Per-run publication of node status transitions."""

from __future__ import annotations

import logging

from .contracts import NodeStatus, StatusEvent, run_topic
from .steps import StepRunner
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class StatusPublisher:
    """Publishes node status events on the topic of a single run.

    Publication is best effort: a failing transport is logged and never
    aborts the run, since the run result is retrievable independently.
    """

    def __init__(self, transport: BaseTransport, run_id: str) -> None:
        self._transport = transport
        self.run_id = run_id
        self.topic = run_topic(run_id)

    async def publish(
        self, node_id: str, status: NodeStatus, channel: str = "workflow"
    ) -> StatusEvent:
        event = StatusEvent(
            run_id=self.run_id, node_id=node_id, status=status, channel=channel
        )
        try:
            await self._transport.publish(self.topic, event)
        except Exception as e:
            logger.warning(
                f"Failed to publish {status.value} for node {node_id} "
                f"on {self.topic}: {e}"
            )
        return event

    async def record(
        self,
        step: StepRunner,
        node_id: str,
        status: NodeStatus,
        channel: str = "workflow",
    ) -> None:
        """Publish ``status`` for ``node_id`` at most once per run.

        Retried attempts walk the same nodes again; the ledger entry keeps
        them from announcing a node twice.
        """

        async def _send() -> str:
            await self.publish(node_id, status, channel=channel)
            return status.value

        await step.run(f"{node_id}:status-{status.value}", _send)
