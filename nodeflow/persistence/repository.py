"""Repository abstraction for run state and the durable step ledger."""

from __future__ import annotations

from typing import Any, Protocol

from .models import StepRecord, WorkflowRun


class WorkflowRepository(Protocol):
    """Protocol for run persistence backends.

    Step records are keyed by ``(run_id, step_key)``. A completed record is
    final: later completions for the same key must leave it untouched.
    """

    async def create_run(
        self, run_id: str, workflow_id: str, initial_data: dict | None = None
    ) -> None:
        """Persist a new run; no-op if ``run_id`` already exists."""

    async def record_attempt(self, run_id: str) -> int:
        """Increment and return the attempt counter of a run."""

    async def mark_run_finished(
        self,
        run_id: str,
        status: str,
        result: dict | None = None,
        error: str | None = None,
    ) -> None:
        """Record the terminal status of a run."""

    async def cancel_run(self, run_id: str) -> bool:
        """Mark an in-progress run as cancelled. Return ``False`` otherwise."""

    async def get_run(self, run_id: str) -> WorkflowRun | None:
        """Retrieve a run with its step history."""

    async def list_runs(self) -> list[WorkflowRun]:
        """Return all persisted runs (without steps)."""

    async def get_step(self, run_id: str, step_key: str) -> StepRecord | None:
        """Return the ledger entry for ``step_key`` if any."""

    async def mark_step_started(self, run_id: str, step_key: str) -> None:
        """Create a pending entry, or re-open a pending/failed one."""

    async def mark_step_completed(
        self,
        run_id: str,
        step_key: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        """Resolve a step entry unless it is already completed."""
