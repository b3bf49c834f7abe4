"""Workflow dispatcher for nodeflow."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .config import EngineConfig
from .contracts import RunResult, TriggerEvent
from .engine import WorkflowEngine
from .errors import NodeflowError, RunCancelled
from .persistence import WorkflowRepository
from .persistence.models import RUN_CANCELLED, RUN_COMPLETED, RUN_FAILED
from .utils import retry

logger = logging.getLogger(__name__)


class WorkflowDispatcher:
    """Service responsible for running triggered workflows to completion.

    Each trigger becomes one run record. Retriable failures re-attempt the
    whole run under the same run id, so the step ledger skips side effects
    that already completed; non-retriable failures end the run at once.
    """

    def __init__(
        self,
        engine: WorkflowEngine,
        repository: WorkflowRepository,
        config: Optional[EngineConfig] = None,
    ) -> None:
        self._engine = engine
        self._repository = repository
        self._config = config or EngineConfig()

    async def dispatch(self, trigger: TriggerEvent) -> RunResult:
        """Run the workflow named by ``trigger``.

        Returns:
            The completed run result.

        Raises:
            NodeflowError: The typed error of the last attempt.
        """
        await self._repository.create_run(
            trigger.run_id, trigger.workflow_id, trigger.initial_data
        )
        max_attempts = self._config.retries + 1

        while True:
            attempt = await self._repository.record_attempt(trigger.run_id)
            try:
                result = await self._engine.run(
                    trigger.workflow_id,
                    initial_data=trigger.initial_data,
                    run_id=trigger.run_id,
                    final_attempt=attempt >= max_attempts,
                )
            except RunCancelled:
                await self._repository.mark_run_finished(
                    trigger.run_id, RUN_CANCELLED, error="cancelled"
                )
                raise
            except NodeflowError as e:
                if e.retriable and attempt < max_attempts:
                    logger.warning(
                        f"Run {trigger.run_id} attempt {attempt}/{max_attempts} failed: {e}. Retrying"
                    )
                    await retry.schedule_retry(
                        attempt,
                        base=self._config.backoff_base,
                        jitter=self._config.backoff_jitter,
                    )
                    continue
                logger.error(f"Run {trigger.run_id} failed: {e}")
                await self._repository.mark_run_finished(
                    trigger.run_id, RUN_FAILED, error=str(e)
                )
                raise
            except Exception as e:
                logger.error(f"Run {trigger.run_id} crashed: {e}")
                await self._repository.mark_run_finished(
                    trigger.run_id, RUN_FAILED, error=str(e)
                )
                raise

            await self._repository.mark_run_finished(
                trigger.run_id, RUN_COMPLETED, result=result.result
            )
            return result

    async def trigger(
        self,
        workflow_id: str,
        initial_data: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
    ) -> RunResult:
        """Convenience wrapper building the :class:`TriggerEvent`."""
        event = TriggerEvent(workflow_id=workflow_id, initial_data=initial_data or {})
        if run_id:
            event.run_id = run_id
        return await self.dispatch(event)
