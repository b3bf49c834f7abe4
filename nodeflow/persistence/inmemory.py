"""In-memory implementation of the workflow repository."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from .models import (
    RUN_CANCELLED,
    RUN_IN_PROGRESS,
    STEP_COMPLETED,
    STEP_PENDING,
    StepRecord,
    WorkflowRun,
)
from .repository import WorkflowRepository


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryWorkflowRepository(WorkflowRepository):
    """Store run state and step ledger in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._runs: Dict[str, WorkflowRun] = {}
        self._steps: Dict[Tuple[str, str], StepRecord] = {}

    # ------------------------------------------------------------------
    async def create_run(
        self, run_id: str, workflow_id: str, initial_data: dict | None = None
    ) -> None:
        if run_id in self._runs:
            return
        self._runs[run_id] = WorkflowRun(
            run_id=run_id,
            workflow_id=workflow_id,
            initial_data=copy.deepcopy(initial_data or {}),
        )

    async def record_attempt(self, run_id: str) -> int:
        run = self._runs.get(run_id)
        if run is None:
            return 0
        run.attempts += 1
        return run.attempts

    async def mark_run_finished(
        self,
        run_id: str,
        status: str,
        result: dict | None = None,
        error: str | None = None,
    ) -> None:
        run = self._runs.get(run_id)
        if run is None:
            return
        run.status = status
        run.result = copy.deepcopy(result)
        run.error = error

    async def cancel_run(self, run_id: str) -> bool:
        run = self._runs.get(run_id)
        if run is None or run.status != RUN_IN_PROGRESS:
            return False
        run.status = RUN_CANCELLED
        return True

    async def get_run(self, run_id: str) -> WorkflowRun | None:
        run = self._runs.get(run_id)
        if run is None:
            return None
        steps = [step for key, step in self._steps.items() if key[0] == run_id]
        return run.model_copy(update={"steps": [s.model_copy() for s in steps]})

    async def list_runs(self) -> list[WorkflowRun]:
        return [run.model_copy() for run in self._runs.values()]

    # ------------------------------------------------------------------
    async def get_step(self, run_id: str, step_key: str) -> StepRecord | None:
        step = self._steps.get((run_id, step_key))
        return step.model_copy(deep=True) if step else None

    async def mark_step_started(self, run_id: str, step_key: str) -> None:
        step = self._steps.get((run_id, step_key))
        if step is None:
            self._steps[(run_id, step_key)] = StepRecord(
                run_id=run_id, step_key=step_key, started_at=_now()
            )
            return
        if step.status == STEP_COMPLETED:
            return
        step.status = STEP_PENDING
        step.attempts += 1
        step.error = None
        step.started_at = _now()

    async def mark_step_completed(
        self,
        run_id: str,
        step_key: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        step = self._steps.get((run_id, step_key))
        if step is None:
            step = StepRecord(run_id=run_id, step_key=step_key, started_at=_now())
            self._steps[(run_id, step_key)] = step
        elif step.status == STEP_COMPLETED:
            return
        step.status = status
        step.output = copy.deepcopy(output)
        step.error = error
        step.completed_at = _now()
