"""Data models for persisted runs and the step ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

STEP_PENDING = "pending"
STEP_COMPLETED = "completed"
STEP_FAILED = "failed"

RUN_IN_PROGRESS = "in_progress"
RUN_COMPLETED = "completed"
RUN_FAILED = "failed"
RUN_CANCELLED = "cancelled"


class StepRecord(BaseModel):
    """Ledger entry for one labelled step of one run."""

    run_id: str
    step_key: str
    status: str = STEP_PENDING
    attempts: int = 1
    output: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == STEP_COMPLETED


class WorkflowRun(BaseModel):
    """Persisted state of one workflow run."""

    run_id: str
    workflow_id: str
    status: str = RUN_IN_PROGRESS
    initial_data: dict[str, Any] = Field(default_factory=dict)
    result: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    attempts: int = 0
    steps: list[StepRecord] = Field(default_factory=list)
