"""PostgreSQL implementation of the workflow repository."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import asyncpg

from .models import (
    RUN_CANCELLED,
    RUN_IN_PROGRESS,
    STEP_COMPLETED,
    STEP_PENDING,
    StepRecord,
    WorkflowRun,
)
from .repository import WorkflowRepository


def _loads(value: Any) -> Any:
    return json.loads(value) if isinstance(value, str) else value


class PostgresWorkflowRepository(WorkflowRepository):
    """Persist run state and step ledger using PostgreSQL."""

    def __init__(self, dsn: str):
        self._dsn = dsn
        self._initialized = False

    async def _connect(self) -> asyncpg.Connection:
        conn = await asyncpg.connect(self._dsn)
        if not self._initialized:
            await self._ensure_schema(conn)
            self._initialized = True
        return conn

    async def _ensure_schema(self, conn: asyncpg.Connection) -> None:
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id TEXT PRIMARY KEY,
                workflow_id TEXT NOT NULL,
                status TEXT NOT NULL,
                initial_data JSONB,
                result JSONB,
                error TEXT,
                attempts INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        await conn.execute(
            """
            CREATE TABLE IF NOT EXISTS step_ledger (
                run_id TEXT NOT NULL,
                step_key TEXT NOT NULL,
                status TEXT NOT NULL,
                attempts INTEGER NOT NULL DEFAULT 1,
                output JSONB,
                error TEXT,
                started_at TIMESTAMPTZ,
                completed_at TIMESTAMPTZ,
                PRIMARY KEY (run_id, step_key)
            )
            """
        )

    @staticmethod
    def _step_from_row(row: asyncpg.Record) -> StepRecord:
        return StepRecord(
            run_id=row["run_id"],
            step_key=row["step_key"],
            status=row["status"],
            attempts=row["attempts"],
            output=_loads(row["output"]),
            error=row["error"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
        )

    @staticmethod
    def _run_from_row(row: asyncpg.Record, steps: list[StepRecord]) -> WorkflowRun:
        return WorkflowRun(
            run_id=row["run_id"],
            workflow_id=row["workflow_id"],
            status=row["status"],
            initial_data=_loads(row["initial_data"]) or {},
            result=_loads(row["result"]),
            error=row["error"],
            attempts=row["attempts"],
            steps=steps,
        )

    # ------------------------------------------------------------------
    async def create_run(
        self, run_id: str, workflow_id: str, initial_data: dict | None = None
    ) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO runs (run_id, workflow_id, status, initial_data)
                VALUES ($1, $2, $3, $4::jsonb)
                ON CONFLICT (run_id) DO NOTHING
                """,
                run_id,
                workflow_id,
                RUN_IN_PROGRESS,
                json.dumps(initial_data or {}),
            )
        finally:
            await conn.close()

    async def record_attempt(self, run_id: str) -> int:
        conn = await self._connect()
        try:
            attempts = await conn.fetchval(
                "UPDATE runs SET attempts = attempts + 1 WHERE run_id = $1 RETURNING attempts",
                run_id,
            )
        finally:
            await conn.close()
        return attempts or 0

    async def mark_run_finished(
        self,
        run_id: str,
        status: str,
        result: dict | None = None,
        error: str | None = None,
    ) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                "UPDATE runs SET status = $1, result = $2::jsonb, error = $3 WHERE run_id = $4",
                status,
                json.dumps(result) if result is not None else None,
                error,
                run_id,
            )
        finally:
            await conn.close()

    async def cancel_run(self, run_id: str) -> bool:
        conn = await self._connect()
        try:
            status = await conn.execute(
                "UPDATE runs SET status = $1 WHERE run_id = $2 AND status = $3",
                RUN_CANCELLED,
                run_id,
                RUN_IN_PROGRESS,
            )
        finally:
            await conn.close()
        return status.endswith(" 1")

    async def get_run(self, run_id: str) -> WorkflowRun | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT run_id, workflow_id, status, initial_data, result, error, attempts FROM runs WHERE run_id = $1",
                run_id,
            )
            if not row:
                return None
            step_rows = await conn.fetch(
                "SELECT * FROM step_ledger WHERE run_id = $1 ORDER BY started_at",
                run_id,
            )
        finally:
            await conn.close()
        return self._run_from_row(row, [self._step_from_row(r) for r in step_rows])

    async def list_runs(self) -> list[WorkflowRun]:
        conn = await self._connect()
        try:
            rows = await conn.fetch(
                "SELECT run_id, workflow_id, status, initial_data, result, error, attempts FROM runs"
            )
        finally:
            await conn.close()
        return [self._run_from_row(r, []) for r in rows]

    # ------------------------------------------------------------------
    async def get_step(self, run_id: str, step_key: str) -> StepRecord | None:
        conn = await self._connect()
        try:
            row = await conn.fetchrow(
                "SELECT * FROM step_ledger WHERE run_id = $1 AND step_key = $2",
                run_id,
                step_key,
            )
        finally:
            await conn.close()
        return self._step_from_row(row) if row else None

    async def mark_step_started(self, run_id: str, step_key: str) -> None:
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO step_ledger (run_id, step_key, status, attempts, started_at)
                VALUES ($1, $2, $3, 1, $4)
                ON CONFLICT (run_id, step_key) DO UPDATE SET
                    status = EXCLUDED.status,
                    attempts = step_ledger.attempts + 1,
                    error = NULL,
                    started_at = EXCLUDED.started_at
                WHERE step_ledger.status <> $5
                """,
                run_id,
                step_key,
                STEP_PENDING,
                datetime.now(timezone.utc),
                STEP_COMPLETED,
            )
        finally:
            await conn.close()

    async def mark_step_completed(
        self,
        run_id: str,
        step_key: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        now = datetime.now(timezone.utc)
        conn = await self._connect()
        try:
            await conn.execute(
                """
                INSERT INTO step_ledger (run_id, step_key, status, output, error, started_at, completed_at)
                VALUES ($1, $2, $3, $4::jsonb, $5, $6, $6)
                ON CONFLICT (run_id, step_key) DO UPDATE SET
                    status = EXCLUDED.status,
                    output = EXCLUDED.output,
                    error = EXCLUDED.error,
                    completed_at = EXCLUDED.completed_at
                WHERE step_ledger.status <> $7
                """,
                run_id,
                step_key,
                status,
                json.dumps(output),
                error,
                now,
                STEP_COMPLETED,
            )
        finally:
            await conn.close()
