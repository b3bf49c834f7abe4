"""SQLite implementation of the workflow repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .models import (
    RUN_CANCELLED,
    RUN_IN_PROGRESS,
    STEP_COMPLETED,
    STEP_PENDING,
    StepRecord,
    WorkflowRun,
)
from .repository import WorkflowRepository


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteWorkflowRepository(WorkflowRepository):
    """Persist run state and step ledger using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id TEXT PRIMARY KEY,
                workflow_id TEXT NOT NULL,
                status TEXT NOT NULL,
                initial_data TEXT,
                result TEXT,
                error TEXT,
                attempts INTEGER NOT NULL DEFAULT 0
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS step_ledger (
                run_id TEXT NOT NULL,
                step_key TEXT NOT NULL,
                status TEXT NOT NULL,
                attempts INTEGER NOT NULL DEFAULT 1,
                output TEXT,
                error TEXT,
                started_at TEXT,
                completed_at TEXT,
                PRIMARY KEY (run_id, step_key)
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> int:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()
        return cur.rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    @staticmethod
    def _step_from_row(row: sqlite3.Row) -> StepRecord:
        return StepRecord(
            run_id=row["run_id"],
            step_key=row["step_key"],
            status=row["status"],
            attempts=row["attempts"],
            output=json.loads(row["output"]) if row["output"] is not None else None,
            error=row["error"],
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
        )

    @staticmethod
    def _run_from_row(row: sqlite3.Row, steps: list[StepRecord]) -> WorkflowRun:
        return WorkflowRun(
            run_id=row["run_id"],
            workflow_id=row["workflow_id"],
            status=row["status"],
            initial_data=json.loads(row["initial_data"]) if row["initial_data"] else {},
            result=json.loads(row["result"]) if row["result"] else None,
            error=row["error"],
            attempts=row["attempts"],
            steps=steps,
        )

    # ------------------------------------------------------------------
    # Runs
    async def create_run(
        self, run_id: str, workflow_id: str, initial_data: dict | None = None
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT OR IGNORE INTO runs (run_id, workflow_id, status, initial_data) VALUES (?, ?, ?, ?)",
            run_id,
            workflow_id,
            RUN_IN_PROGRESS,
            json.dumps(initial_data or {}),
        )

    async def record_attempt(self, run_id: str) -> int:
        await asyncio.to_thread(
            self._execute,
            "UPDATE runs SET attempts = attempts + 1 WHERE run_id = ?",
            run_id,
        )
        row = await asyncio.to_thread(
            self._fetchone, "SELECT attempts FROM runs WHERE run_id = ?", run_id
        )
        return row["attempts"] if row else 0

    async def mark_run_finished(
        self,
        run_id: str,
        status: str,
        result: dict | None = None,
        error: str | None = None,
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            "UPDATE runs SET status = ?, result = ?, error = ? WHERE run_id = ?",
            status,
            json.dumps(result) if result is not None else None,
            error,
            run_id,
        )

    async def cancel_run(self, run_id: str) -> bool:
        updated = await asyncio.to_thread(
            self._execute,
            "UPDATE runs SET status = ? WHERE run_id = ? AND status = ?",
            RUN_CANCELLED,
            run_id,
            RUN_IN_PROGRESS,
        )
        return updated > 0

    async def get_run(self, run_id: str) -> WorkflowRun | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT run_id, workflow_id, status, initial_data, result, error, attempts FROM runs WHERE run_id = ?",
            run_id,
        )
        if not row:
            return None
        step_rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT * FROM step_ledger WHERE run_id = ? ORDER BY started_at",
            run_id,
        )
        return self._run_from_row(row, [self._step_from_row(r) for r in step_rows])

    async def list_runs(self) -> list[WorkflowRun]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT run_id, workflow_id, status, initial_data, result, error, attempts FROM runs",
        )
        return [self._run_from_row(row, []) for row in rows]

    # ------------------------------------------------------------------
    # Step ledger
    async def get_step(self, run_id: str, step_key: str) -> StepRecord | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT * FROM step_ledger WHERE run_id = ? AND step_key = ?",
            run_id,
            step_key,
        )
        return self._step_from_row(row) if row else None

    async def mark_step_started(self, run_id: str, step_key: str) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO step_ledger (run_id, step_key, status, attempts, started_at)
            VALUES (?, ?, ?, 1, ?)
            ON CONFLICT (run_id, step_key) DO UPDATE SET
                status = excluded.status,
                attempts = step_ledger.attempts + 1,
                error = NULL,
                started_at = excluded.started_at
            WHERE step_ledger.status != ?
            """,
            run_id,
            step_key,
            STEP_PENDING,
            _now(),
            STEP_COMPLETED,
        )

    async def mark_step_completed(
        self,
        run_id: str,
        step_key: str,
        status: str,
        output: Any = None,
        error: str | None = None,
    ) -> None:
        now = _now()
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO step_ledger (run_id, step_key, status, output, error, started_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (run_id, step_key) DO UPDATE SET
                status = excluded.status,
                output = excluded.output,
                error = excluded.error,
                completed_at = excluded.completed_at
            WHERE step_ledger.status != ?
            """,
            run_id,
            step_key,
            status,
            json.dumps(output),
            error,
            now,
            now,
            STEP_COMPLETED,
        )
