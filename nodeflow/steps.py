"""Durable step boundary backed by the per-run ledger."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Union

from .errors import NodeflowError, NonRetriableEffectError, RetriableEffectError
from .persistence import WorkflowRepository
from .persistence.models import STEP_COMPLETED, STEP_FAILED

logger = logging.getLogger(__name__)

StepFn = Callable[..., Union[Any, Awaitable[Any]]]


class StepRunner:
    """Executes labelled units of work at most effectively once per run.

    The first call for a ``step_key`` performs the side effect and records
    its result. Any later call for the same key within the same run returns
    the recorded result without invoking the effect again, including calls
    made by a retried attempt of the run. Failed or interrupted steps are not
    memoized and run again on the next attempt.
    """

    def __init__(self, run_id: str, repository: WorkflowRepository) -> None:
        self.run_id = run_id
        self._repository = repository
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def run(self, step_key: str, fn: StepFn, *args: Any, **kwargs: Any) -> Any:
        async with self._locks[step_key]:
            record = await self._repository.get_step(self.run_id, step_key)
            if record is not None and record.status == STEP_COMPLETED:
                logger.debug(f"Step {step_key} already completed for run {self.run_id}")
                return record.output

            await self._repository.mark_step_started(self.run_id, step_key)
            try:
                result = fn(*args, **kwargs)
                if inspect.isawaitable(result):
                    result = await result
            except NodeflowError as e:
                await self._record_failure(step_key, e)
                raise
            except Exception as e:
                await self._record_failure(step_key, e)
                raise RetriableEffectError(f"Step {step_key} failed: {e}") from e

            try:
                await self._repository.mark_step_completed(
                    self.run_id, step_key, status=STEP_COMPLETED, output=result
                )
            except (TypeError, ValueError) as e:
                await self._record_failure(step_key, e)
                raise NonRetriableEffectError(
                    f"Step {step_key} returned a value the ledger cannot store: {e}"
                ) from e
            logger.debug(f"Step {step_key} completed for run {self.run_id}")
            return result

    async def _record_failure(self, step_key: str, error: Exception) -> None:
        logger.warning(f"Step {step_key} failed for run {self.run_id}: {error}")
        await self._repository.mark_step_completed(
            self.run_id, step_key, status=STEP_FAILED, error=str(error)
        )
